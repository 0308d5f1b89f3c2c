# -*- coding: utf-8 -*-
"""
@FileName    : transform.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 13:20
@Description :
响应转换：上游响应 → 返回给客户端的响应（纯函数，不做 IO）

1. body 已被 httpx 解码，这里移除 content-encoding / content-length，避免客户端二次解压
2. HEAD 请求永远不返回 body
3. JSON 元数据中的 tarball 地址改写为代理的对外域名，后续下载仍经过代理
4. JSON 解析失败时拒绝响应（MALFORMED_UPSTREAM_BODY），不能把无法理解的结果当成功返回
5. 非 JSON 的 body（tarball、纯文本）原样透传
"""
import json
from enum import Enum
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from .errors import ErrorKind, ProxyError
from .logger import get_logger
from .models import RewriteContext, TransformedResponse, UpstreamResponse
from .utils import RESPONSE_DROP_HEADERS, is_json_media_type

logger = get_logger()


class Variant(Enum):
    OMIT_BODY = "omit_body"
    REWRITE = "rewrite"
    PASSTHROUGH = "passthrough"


# (是否 HEAD, 是否 JSON, 是否 2xx) → 处理方式
_DECISIONS: dict[tuple[bool, bool, bool], Variant] = {
    (True, True, True): Variant.OMIT_BODY,
    (True, True, False): Variant.OMIT_BODY,
    (True, False, True): Variant.OMIT_BODY,
    (True, False, False): Variant.OMIT_BODY,
    (False, True, True): Variant.REWRITE,
    (False, True, False): Variant.PASSTHROUGH,
    (False, False, True): Variant.PASSTHROUGH,
    (False, False, False): Variant.PASSTHROUGH,
}


def decide(method: str, content_type: str, status: int, rewrite_enabled: bool = True) -> Variant:
    variant = _DECISIONS[(method.upper() == "HEAD", is_json_media_type(content_type), 200 <= status < 300)]
    if variant is Variant.REWRITE and not rewrite_enabled:
        return Variant.PASSTHROUGH
    return variant


def rewrite_url(url: str, ctx: RewriteContext) -> str:
    """只替换 scheme/host/port，保留 path/query/fragment；相对地址或已指向代理的地址不变"""
    parts = urlsplit(url)
    if not parts.netloc or not ctx.target_host:
        return url
    if parts.netloc.lower() == ctx.target_host.lower():
        return url
    scheme = ctx.public_scheme or parts.scheme
    return urlunsplit((scheme, ctx.target_host, parts.path, parts.query, parts.fragment))


def _rewrite_dist(dist: Any, ctx: RewriteContext) -> bool:
    if not isinstance(dist, dict):
        return False
    tarball = dist.get("tarball")
    if not isinstance(tarball, str):
        return False
    rewritten = rewrite_url(tarball, ctx)
    if rewritten == tarball:
        return False
    dist["tarball"] = rewritten
    return True


def rewrite_tarballs(document: Any, ctx: RewriteContext) -> bool:
    """
    原地改写文档中所有 dist.tarball 字段，返回是否有改动。

    覆盖：包文档的 versions.*.dist、单版本文档的 dist，以及其它嵌套位置上的 dist 对象
    （如 by-field 视图、搜索结果中的列表）。
    """
    changed = False
    if isinstance(document, dict):
        for key, value in document.items():
            if key == "dist":
                changed = _rewrite_dist(value, ctx) or changed
            elif isinstance(value, (dict, list)):
                changed = rewrite_tarballs(value, ctx) or changed
    elif isinstance(document, list):
        for item in document:
            changed = rewrite_tarballs(item, ctx) or changed
    return changed


def transform(upstream: UpstreamResponse, ctx: RewriteContext, method: str) -> TransformedResponse:
    headers = {k: v for k, v in upstream.headers.items() if k not in RESPONSE_DROP_HEADERS}
    if upstream.content_encoding:
        logger.debug(f"🗜️ [转换] 上游编码 {upstream.content_encoding} 已解码，移除 content-encoding")

    variant = decide(method, upstream.content_type, upstream.status, ctx.rewrite_enabled)

    if variant is Variant.OMIT_BODY:
        return TransformedResponse(status=upstream.status, headers=headers, body=b"")

    if variant is Variant.PASSTHROUGH:
        return TransformedResponse(status=upstream.status, headers=headers, body=upstream.body)

    try:
        document = json.loads(upstream.body)
    except (UnicodeDecodeError, ValueError) as e:
        logger.error(f"🧨 [转换] 上游 JSON 无法解析 → URL: {upstream.url} | 错误: {e}")
        raise ProxyError(ErrorKind.MALFORMED_UPSTREAM_BODY, "Registry returned a malformed JSON document") from e

    if not rewrite_tarballs(document, ctx):
        # 没有需要改写的地址时保持字节级一致
        return TransformedResponse(status=upstream.status, headers=headers, body=upstream.body)

    logger.info(f"🔄 [转换] 已将 tarball 地址改写到 {ctx.target_host}")
    body = json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return TransformedResponse(status=upstream.status, headers=headers, body=body)

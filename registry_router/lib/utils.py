# -*- coding: utf-8 -*-
"""
@FileName    : utils.py
@Author      : jiaxin
@Date        : 2026/1/20
@Time        : 00:22
@Description :
工具函数模块，包含：
- 请求头/响应头处理（合并重复头、移除逐跳头）
- 媒体类型判断
"""

from typing import Iterable, Union

from .logger import get_logger

logger = get_logger()

# RFC 7230 逐跳头，代理不得转发
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})

# 转发给上游时去掉：host 由 httpx 按目标地址生成；content-length 由 httpx 重新计算；
# accept-encoding 交给 httpx，保证返回的压缩格式一定能被解码
REQUEST_DROP_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length", "accept-encoding"}

# 返回给客户端时去掉：body 已解码，避免客户端二次解压；长度由响应对象重新计算
RESPONSE_DROP_HEADERS = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}

# 不能用逗号合并的响应头（Set-Cookie 的值本身可能含逗号），需逐条保留
MULTI_VALUE_HEADERS = frozenset({"set-cookie"})


# ======================
# 请求头处理：合并重复头 + 移除不应转发的头
# ======================
def _text(value: Union[bytes, str]) -> str:
    return value.decode("latin-1") if isinstance(value, bytes) else value


def handle_headers(raw_headers: Iterable[tuple[Union[bytes, str], Union[bytes, str]]], drop: Iterable[str] = REQUEST_DROP_HEADERS) -> dict[str, str]:
    """
    将 header 列表（Starlette / httpx 的 Headers.raw，或 dict.items()）转换为标准 dict，并：
    - 合并重复的 header（如多个 Accept）→ 用逗号连接（符合 RFC）
    - 移除 drop 中列出的头，以及 Connection 头中声明的逐跳头
    - 所有 header key 转为小写（HTTP 规范不区分大小写）
    """
    pairs = [(_text(key).lower(), _text(value)) for key, value in raw_headers]
    dropped = set(drop)

    for key, value in pairs:
        if key == "connection":
            dropped.update(token.strip().lower() for token in value.split(",") if token.strip())

    header_dict: dict[str, str] = {}
    for key, value in pairs:
        if key in dropped:
            continue

        if key in header_dict:
            header_dict[key] = f"{header_dict[key]},{value}"
        else:
            header_dict[key] = value

    logger.debug(f"🔧 [Headers] 已处理请求头 → 共 {len(header_dict)} 项")
    return header_dict


def is_json_media_type(content_type: str) -> bool:
    """application/json 以及 application/vnd.npm.install-v1+json 等 +json 类型"""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")

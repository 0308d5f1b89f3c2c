# -*- coding: utf-8 -*-
"""
@FileName    : upstream.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 11:30
@Description :
上游客户端：把请求转发到解析出的注册表。

- 方法、query 原样转发；POST/PUT/DELETE 的 body 原样转发
- 响应体由 httpx 自动解码（gzip/deflate 等），content_encoding 记录上游声明的编码
- 网络层失败（连接拒绝、DNS、超时）→ UPSTREAM_UNREACHABLE
- 上游返回的 HTTP 错误状态（包括 5xx）作为正常结果返回，不抛异常
"""
from typing import Optional

import httpx

from .errors import ErrorKind, ProxyError
from .logger import get_logger
from .models import ProxyRequest, UpstreamResponse
from .registry import RegistryEndpoint
from .utils import handle_headers, MULTI_VALUE_HEADERS, REQUEST_DROP_HEADERS

logger = get_logger()

BODY_METHODS = frozenset({"POST", "PUT", "DELETE"})
USER_AGENT = "registry-router/0.1.0"


class UpstreamClient:
    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def get_client(self) -> httpx.AsyncClient:
        # 进程内共享一个连接池，首次使用时创建
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
                transport=self._transport,
                headers={"user-agent": USER_AGENT},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    @staticmethod
    def build_url(endpoint: RegistryEndpoint, path: str, query: str = "") -> str:
        url = endpoint.base_url + path
        if query:
            url = url + "?" + query
        return url

    async def send(self, request: ProxyRequest, endpoint: RegistryEndpoint, path: str) -> UpstreamResponse:
        """
        path 为已编码、可直接拼接的路径（scoped 包的斜杠已转义为 %2F）。
        """
        url = self.build_url(endpoint, path, request.query)
        method = request.method.upper()
        headers = handle_headers(request.headers.items(), REQUEST_DROP_HEADERS)
        content = request.body if method in BODY_METHODS and request.body else None

        logger.info(f"➡️ [上游] {method} {url}")
        client = self.get_client()
        try:
            upstream_resp = await client.request(method, url, headers=headers, content=content)
        except httpx.DecodingError as e:
            logger.exception(f"🧩 [上游] 响应体解码失败 → {url}")
            raise ProxyError(ErrorKind.MALFORMED_UPSTREAM_BODY, f"Could not decode response from {endpoint.base_url}") from e
        except httpx.TimeoutException as e:
            logger.error(f"⏱️ [上游] 请求超时 → {url} | 错误: {e!r}")
            raise ProxyError(ErrorKind.UPSTREAM_UNREACHABLE, f"Timed out waiting for {endpoint.base_url}") from e
        except httpx.TransportError as e:
            logger.exception(f"🔥 [上游] 请求上游失败 → {url}")
            raise ProxyError(ErrorKind.UPSTREAM_UNREACHABLE, f"Could not reach {endpoint.base_url}") from e

        logger.debug(f"📡 [上游] 响应 → Status: {upstream_resp.status_code} | URL: {url}")
        return UpstreamResponse(
            status=upstream_resp.status_code,
            headers=handle_headers(upstream_resp.headers.raw, MULTI_VALUE_HEADERS),
            cookies=tuple(upstream_resp.headers.get_list("set-cookie")),
            body=upstream_resp.content,
            content_encoding=upstream_resp.headers.get("content-encoding"),
            url=url,
        )

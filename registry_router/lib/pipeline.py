# -*- coding: utf-8 -*-
"""
@FileName    : pipeline.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 14:05
@Description :
请求流水线，阶段顺序固定：
vhost 校验 → 管理路径拦截 → 路径分类 → 注册表解析 → 上游调用 → 响应转换 → 返回

任一阶段失败即终止后续阶段；ProxyError 按其类型映射状态码，
其它未预期异常统一在边界处捕获并返回 500，单个异常请求不会影响进程。
"""
from typing import Optional

from fastapi import Response

from .classifier import PackageRef, classify
from .errors import ErrorKind, NotAPackagePath, ProxyError
from .guard import AdminPathGuard, error_response
from .logger import get_logger
from .models import ProxyRequest, RewriteContext
from .registry import RegistryTable
from .resolver import resolve
from .settings import Settings
from .transform import transform
from .upstream import UpstreamClient

logger = get_logger()

REGISTRY_HEADER = "x-registry"


class RequestPipeline:
    """进程级只读状态（注册表、拦截规则、上游客户端）在构造时确定，之后不再修改"""

    def __init__(self, settings: Settings, table: RegistryTable, upstream: UpstreamClient):
        self.settings = settings
        self.table = table
        self.upstream = upstream
        self.guard = AdminPathGuard(settings.admin_paths)
        self.vhosts = frozenset(settings.vhosts)

    def rewrite_context(self, vhost: str) -> RewriteContext:
        return RewriteContext(
            vhost=vhost,
            rewrite_enabled=self.settings.rewrite_tarballs,
            public_host=self.settings.public_host,
            public_scheme=self.settings.public_scheme,
        )

    def match_vhost(self, request: ProxyRequest) -> str:
        """按去掉端口的主机名校验；返回值保留端口，作为 tarball 改写的目标地址"""
        host = request.host
        if self.vhosts and host not in self.vhosts:
            raise ProxyError(ErrorKind.UNKNOWN_VHOST, f"Unknown registry host: {host or '<empty>'}")
        return request.authority

    async def handle(self, request: ProxyRequest) -> Response:
        try:
            return await self._run(request)
        except ProxyError as e:
            logger.warning(f"⚠️ [流水线] {request.method} {request.path} → {e.kind.name}: {e.message}")
            return error_response(e.status_code, e.message, request.headers)
        except Exception:
            logger.exception(f"💥 [流水线] 处理请求时发生未预期异常 → {request.method} {request.path}")
            return error_response(500, "An internal server error occurred", request.headers)

    async def _run(self, request: ProxyRequest) -> Response:
        vhost = self.match_vhost(request)

        if self.guard.is_blocked(request.path):
            return self.guard.blocked_response(request.path, request.headers)

        ref: Optional[PackageRef]
        try:
            ref = classify(request.raw_path)
            upstream_path = ref.to_path(escape_scope=True)
        except NotAPackagePath:
            ref = None
            upstream_path = request.raw_path

        endpoint = resolve(ref, request.method, self.table)
        logger.info(
            f"🧭 [流水线] {request.method} {request.path} → "
            f"{ref.full_name if ref else '非包路径'} @ {endpoint.base_url}"
        )

        upstream_resp = await self.upstream.send(request, endpoint, upstream_path)
        if upstream_resp.status == 404:
            logger.info(f"🔍 [流水线] {ErrorKind.UPSTREAM_REPORTED_NOT_FOUND.name} → {endpoint.base_url}{upstream_path}")
        elif upstream_resp.status >= 500:
            logger.warning(f"📛 [流水线] 上游返回 {upstream_resp.status}，原样透传 → {endpoint.base_url}")

        result = transform(upstream_resp, self.rewrite_context(vhost), request.method)

        headers = dict(result.headers)
        headers[REGISTRY_HEADER] = endpoint.base_url
        response = Response(content=result.body, status_code=result.status, headers=headers)
        for cookie in upstream_resp.cookies:
            response.headers.append("set-cookie", cookie)
        return response

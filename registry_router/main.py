# -*- coding: utf-8 -*-
"""
@FileName    : main.py
@Author      : jiaxin
@Date        : 2026/1/10
@Time        : 17:31
@Description :
npm Registry 路由代理服务：
- 将多个上游注册表（私有 + 公共）合并为一个对外域名下的虚拟注册表
- 按配置的顺序与包规则静态选择上游，不做探测与回退
- 自动解码上游压缩响应，并把元数据中的 tarball 地址改写回代理
- 拦截注册表管理界面路径（如 CouchDB /_utils）
- 提供健康检查接口
"""
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response

from registry_router.lib.logger import get_logger, setup_logging
from registry_router.lib.models import ProxyRequest
from registry_router.lib.pipeline import RequestPipeline
from registry_router.lib.registry import RegistryTable
from registry_router.lib.schemas import HealthCheckResponse
from registry_router.lib.settings import Settings, get_settings
from registry_router.lib.upstream import UpstreamClient
from registry_router.lib.utils import handle_headers

VERSION = "0.1.0"
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE"]


# ======================
# 请求转换：Starlette Request → ProxyRequest
# ======================
async def to_proxy_request(request: Request) -> ProxyRequest:
    # raw_path 保留客户端发送的原始编码（%2F 不能被提前解码）；部分 ASGI 实现会把 query 一并放入
    raw_path = request.scope.get("raw_path")
    if raw_path:
        raw_path = raw_path.decode("latin-1").split("?", 1)[0]
    else:
        raw_path = request.url.path

    return ProxyRequest(
        method=request.method.upper(),
        path=request.url.path,
        raw_path=raw_path,
        query=request.url.query,
        headers=handle_headers(request.headers.raw, ()),
        body=await request.body(),
    )


def create_app(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    构建应用。注册表、拦截规则、上游客户端在此一次性创建，之后所有请求只读共享。

    transport 仅用于测试时替换上游网络层。
    """
    logger = setup_logging(settings)  # 初始化日志系统

    table = RegistryTable.from_config(settings.registries)
    upstream = UpstreamClient(timeout=settings.timeout, transport=transport)
    pipeline = RequestPipeline(settings, table, upstream)

    logger.info("📚 已加载的上游注册表（顺序即优先级）：")
    for endpoint in table:
        rule = ", ".join(endpoint.packages) if endpoint.packages else "兜底"
        logger.info(f"  🌍 [{endpoint.index}] {endpoint.base_url} ← {rule}")

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        await upstream.aclose()
        logger.info("🔌 上游连接池已关闭")

    app = FastAPI(
        title="Registry Router",
        description="npm Registry 路由代理，多个上游注册表合并为一个虚拟注册表",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry_table = table
    app.state.pipeline = pipeline

    # ======================
    # 健康检查端点（位于 npm 保留的 /-/ 命名空间，不会遮挡任何包名）
    # ======================
    @app.get("/-/healthz", response_model=HealthCheckResponse, summary="健康检查")
    async def health_check():
        """返回服务运行状态，用于 K8s/Liveness Probe"""
        logger.debug("🩺 [健康检查] 收到探测请求")
        return HealthCheckResponse(
            status="ok",
            message="registry-router is running",
            version=VERSION,
            registries=[endpoint.base_url for endpoint in table],
        )

    # ======================
    # 主代理路由：所有包请求
    # ======================
    @app.api_route("/{path:path}", methods=PROXY_METHODS, summary="主代理入口")
    async def proxy(request: Request) -> Response:
        """
        核心代理逻辑见 RequestPipeline：
        vhost 校验 → 管理路径拦截 → 路径分类 → 注册表解析 → 上游调用 → 响应转换
        """
        return await pipeline.handle(await to_proxy_request(request))

    return app


app = create_app(get_settings())


# ======================
# 应用启动入口
# ======================
if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logger = get_logger()

    ssl_args = {}
    if settings.https.enabled:
        # 证书与私钥已由 HTTPSConfig 校验
        ssl_args = {
            "ssl_certfile": settings.https.cert,
            "ssl_keyfile": settings.https.key
        }
        logger.info(f"🔒 启动 HTTPS 代理服务 → https://{settings.listen.host}:{settings.listen.port}")
    else:
        logger.info(f"🔌 启动 HTTP 代理服务 → http://{settings.listen.host}:{settings.listen.port}")

    uvicorn.run(
        app,
        host=settings.listen.host,
        port=settings.listen.port,
        reload=False,
        log_config=None,  # 沿用 setup_logging 的配置
        **ssl_args
    )

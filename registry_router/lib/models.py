# -*- coding: utf-8 -*-
"""
@FileName    : models.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 10:12
@Description :
请求/响应在流水线中流转时使用的不可变数据结构
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ProxyRequest:
    """入站请求的只读视图；path 为解码后路径，raw_path 为客户端原样发送的路径"""
    method: str
    path: str
    raw_path: str
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def authority(self) -> str:
        """完整的 Host 头（小写，含端口），即客户端看到的代理地址"""
        return self.headers.get("host", "").strip().lower()

    @property
    def host(self) -> str:
        """去掉端口后的 Host 头（小写）"""
        host = self.authority
        if host.startswith("["):
            # IPv6 字面量：[::1]:8000
            return host.split("]", 1)[0].lower() + "]"
        return host.split(":", 1)[0].lower()


@dataclass(frozen=True)
class UpstreamResponse:
    """一次上游调用的结果，body 已经过传输层解码（gzip/deflate）"""
    status: int
    headers: dict[str, str]
    body: bytes
    content_encoding: Optional[str] = None
    url: str = ""
    # Set-Cookie 逐条保存，不参与 headers 的合并
    cookies: tuple[str, ...] = ()

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")


@dataclass(frozen=True)
class RewriteContext:
    """tarball 地址重写所需的上下文，public_host 为空时使用请求匹配到的 vhost"""
    vhost: str
    rewrite_enabled: bool = True
    public_host: Optional[str] = None
    public_scheme: Optional[str] = None

    @property
    def target_host(self) -> str:
        return self.public_host or self.vhost


@dataclass(frozen=True)
class TransformedResponse:
    status: int
    headers: dict[str, str]
    body: bytes

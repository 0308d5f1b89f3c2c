# -*- coding: utf-8 -*-
"""
@FileName    : errors.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 10:05
@Description :
路由器的错误类型：
- ProxyError：请求处理过程中的失败，携带 ErrorKind 决定返回给客户端的状态码
- ResolutionFailure：启动阶段的配置错误（注册表为空），不会在运行期出现
- NotAPackagePath：路径分类器的信号，表示路径不是包路径（如 /-/by-field）
"""
from enum import Enum


class ErrorKind(str, Enum):
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    MALFORMED_UPSTREAM_BODY = "malformed_upstream_body"
    # 仅用于日志分类，404 响应本身原样透传
    UPSTREAM_REPORTED_NOT_FOUND = "upstream_reported_not_found"
    ADMIN_PATH_BLOCKED = "admin_path_blocked"
    UNKNOWN_VHOST = "unknown_vhost"


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UPSTREAM_UNREACHABLE: 500,
    ErrorKind.MALFORMED_UPSTREAM_BODY: 500,
    ErrorKind.UPSTREAM_REPORTED_NOT_FOUND: 404,
    ErrorKind.ADMIN_PATH_BLOCKED: 403,
    ErrorKind.UNKNOWN_VHOST: 400,
}


class ProxyError(Exception):
    """请求流水线中任意阶段的失败"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]

    def __repr__(self) -> str:
        return f"ProxyError({self.kind.name}, {self.message!r})"


class ResolutionFailure(Exception):
    """注册表配置无法解析出任何上游（启动期错误）"""


class NotAPackagePath(ValueError):
    """路径不指向任何包"""

    def __init__(self, path: str):
        super().__init__(f"not a package path: {path}")
        self.path = path

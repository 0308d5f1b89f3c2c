# -*- coding: utf-8 -*-
"""
@FileName    : guard.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 11:10
@Description :
管理界面拦截：注册表自带的管理 UI（如 CouchDB 的 /_utils）无法感知代理，
其访问控制不可依赖，因此在解析之前无条件返回 403，且不调用上游。
"""
import posixpath
from fnmatch import fnmatchcase
from html import escape
from http import HTTPStatus
from typing import Iterable

from fastapi import Response

from .logger import get_logger
from .schemas import ErrorResponse

logger = get_logger()

_ERROR_HTML = (
    "<!DOCTYPE html>\n"
    "<html><head><title>{status} {reason}</title></head>"
    "<body><h1>{status} {reason}</h1><p>{message}</p></body></html>\n"
)


def normalize_path(path: str) -> str:
    """消解 . 与 .. 路径段并合并多余斜杠，保留末尾斜杠；/x/../_utils 与 /_utils 视为同一路径"""
    normalized = posixpath.normpath("/" + path.lstrip("/"))
    if path.endswith("/") and normalized != "/":
        normalized += "/"
    return normalized


def wants_json(headers: dict[str, str]) -> bool:
    """Accept 或 Content-Type 中声明了 JSON 即按 JSON 返回"""
    for key in ("accept", "content-type"):
        value = headers.get(key, "").lower()
        if "application/json" in value or "+json" in value:
            return True
    return False


def error_response(status_code: int, message: str, headers: dict[str, str]) -> Response:
    """按请求协商出 JSON 或 HTML 错误体"""
    status_code = int(status_code)
    reason = HTTPStatus(status_code).phrase
    if wants_json(headers):
        payload = ErrorResponse(statusCode=status_code, error=reason, message=message)
        return Response(
            content=payload.model_dump_json(),
            status_code=status_code,
            media_type="application/json",
        )
    return Response(
        content=_ERROR_HTML.format(status=status_code, reason=escape(reason), message=escape(message)),
        status_code=status_code,
        media_type="text/html",
    )


class AdminPathGuard:
    def __init__(self, patterns: Iterable[str]):
        self.patterns = tuple(patterns)

    def is_blocked(self, path: str) -> bool:
        path = normalize_path(path)
        return any(fnmatchcase(path, pattern) for pattern in self.patterns)

    def blocked_response(self, path: str, headers: dict[str, str]) -> Response:
        logger.warning(f"⛔ [拦截] 管理路径访问被拒绝 → {path}")
        return error_response(HTTPStatus.FORBIDDEN, "Administrative interface is not available through this registry", headers)

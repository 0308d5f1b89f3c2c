# -*- coding: utf-8 -*-
"""
@FileName    : schemas.py
@Author      : jiaxin
@Date        : 2026/1/10
@Time        : 17:29
@Description :
"""
from pydantic import BaseModel
from typing import List, Optional


class HealthCheckResponse(BaseModel):
    status: str
    message: str
    version: Optional[str] = None
    registries: List[str] = []


class ErrorResponse(BaseModel):
    """与 npm 客户端兼容的错误体（boom 风格）"""
    statusCode: int
    error: str
    message: str

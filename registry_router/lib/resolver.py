# -*- coding: utf-8 -*-
"""
@FileName    : resolver.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 10:55
@Description :
注册表解析：根据请求形态和静态规则选择唯一的上游。

不做探测：不会向多个注册表发起试探请求，也不会在收到 404 后尝试下一个。
"""
from typing import Optional

from .classifier import PackageRef
from .logger import get_logger
from .registry import RegistryEndpoint, RegistryTable

logger = get_logger()

WRITE_METHODS = frozenset({"POST", "PUT", "DELETE"})


def resolve(ref: Optional[PackageRef], method: str, table: RegistryTable) -> RegistryEndpoint:
    """
    选择处理该请求的注册表：
    1. 写请求（发布/撤销/登录/dist-tag）→ 主注册表（下标 0）
    2. 读包 → 下标最小且包规则匹配的注册表
    3. 未匹配的读请求、非包路径 → 兜底注册表
    """
    if method.upper() in WRITE_METHODS:
        endpoint = table.primary
        logger.debug(f"🧭 [解析] 写请求 {method} → 主注册表 {endpoint.base_url}")
        return endpoint

    if ref is not None:
        for endpoint in table:
            if endpoint.owns(ref.full_name):
                logger.debug(f"🧭 [解析] 包 {ref.full_name} 命中规则 → {endpoint.base_url}")
                return endpoint

    endpoint = table.fallback
    logger.debug(f"🧭 [解析] {ref.full_name if ref else '非包路径'} 未命中规则 → 兜底 {endpoint.base_url}")
    return endpoint

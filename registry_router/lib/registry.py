# -*- coding: utf-8 -*-
"""
@FileName    : registry.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 10:40
@Description :
注册表列表：启动时由配置构建一次，之后只读。

顺序即优先级：下标 0 是私有/组织注册表（所有写请求都发往它），
后面的条目是公共兜底源。解析时同样按下标从小到大匹配。
"""
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Iterable, Iterator

from .errors import ResolutionFailure
from .settings import RegistryConfig


@dataclass(frozen=True)
class RegistryEndpoint:
    base_url: str
    # 身份只由 base_url 决定
    index: int = field(compare=False)
    packages: tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_fallback(self) -> bool:
        return not self.packages

    def owns(self, package_name: str) -> bool:
        """该注册表是否静态声明了这个包（glob 匹配，如 "@myorg/*"）"""
        return any(fnmatchcase(package_name, pattern) for pattern in self.packages)


class RegistryTable:
    """不可变、非空、按优先级排序的上游注册表列表"""

    def __init__(self, endpoints: Iterable[RegistryEndpoint]):
        self._endpoints = tuple(sorted(endpoints, key=lambda e: e.index))
        if not self._endpoints:
            raise ResolutionFailure("registry table is empty, at least one upstream registry is required")

    @classmethod
    def from_config(cls, registries: Iterable[RegistryConfig]) -> "RegistryTable":
        return cls(
            RegistryEndpoint(base_url=r.url.rstrip("/"), index=i, packages=tuple(r.packages))
            for i, r in enumerate(registries)
        )

    @property
    def primary(self) -> RegistryEndpoint:
        return self._endpoints[0]

    @property
    def fallback(self) -> RegistryEndpoint:
        """第一个未声明包规则的注册表；全部都声明了规则时取最后一个"""
        for endpoint in self._endpoints:
            if endpoint.is_fallback:
                return endpoint
        return self._endpoints[-1]

    def __iter__(self) -> Iterator[RegistryEndpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> RegistryEndpoint:
        return self._endpoints[index]

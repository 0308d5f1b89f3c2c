# -*- coding: utf-8 -*-
"""
@FileName    : classifier.py
@Author      : jiaxin
@Date        : 2026/10/19
@Time        : 10:20
@Description :
路径分类器：从请求路径中提取包引用（scope / name / version / 其余路径）

npm 路径形态：
- /{name}                         包元数据
- /{name}/{version}               指定版本元数据
- /{name}/-/{name}-{version}.tgz  tarball
- /@{scope}/{name}[...]           scoped 包（客户端也可能发送 /@scope%2Fname）
- /-/...  /_...                   注册表自身的接口，不是包路径
"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote

from .errors import NotAPackagePath

# 重新编码路径段时保留的字符（与 npm 客户端一致，@ 不编码）
_SEGMENT_SAFE = "@:+!$&'()*,;=~"


def _quote_segment(segment: str) -> str:
    return quote(segment, safe=_SEGMENT_SAFE)


@dataclass(frozen=True)
class PackageRef:
    name: str
    scope: Optional[str] = None
    version: Optional[str] = None
    rest: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"@{self.scope}/{self.name}" if self.scope else self.name

    def to_path(self, escape_scope: bool = False) -> str:
        """
        重建请求路径。

        escape_scope=True 时 scope 与 name 之间的斜杠写成 %2F，
        保证转发到上游时 "@scope/name" 作为一个路径段被识别。
        """
        if self.scope:
            separator = "%2F" if escape_scope else "/"
            head = f"@{_quote_segment(self.scope)}{separator}{_quote_segment(self.name)}"
        else:
            head = _quote_segment(self.name)

        segments = [head]
        if self.version is not None:
            segments.append(_quote_segment(self.version))
        segments.extend(_quote_segment(s) for s in self.rest)
        return "/" + "/".join(segments)


def classify(raw_path: str) -> PackageRef:
    """
    将原始（未解码）路径解析为 PackageRef。

    必须先按字面 "/" 切分再逐段解码，否则 %2F 会被误当成版本分隔符。
    非包路径抛出 NotAPackagePath。
    """
    path = raw_path.split("?", 1)[0]
    segments = [unquote(s) for s in path.split("/")[1:]]
    # 末尾斜杠产生的空段忽略
    while segments and segments[-1] == "":
        segments.pop()

    if not segments or not segments[0]:
        raise NotAPackagePath(raw_path)

    # . / .. 段会被上游（以及 httpx）按相对路径消解，不能作为包名或版本转发
    if any(part in (".", "..") for segment in segments for part in segment.split("/")):
        raise NotAPackagePath(raw_path)

    first = segments[0]
    if first[0] in "-_.":
        raise NotAPackagePath(raw_path)

    scope: Optional[str] = None
    if first.startswith("@"):
        if "/" in first:
            scope, name = first[1:].split("/", 1)
            remaining = segments[1:]
        else:
            scope = first[1:]
            name = segments[1] if len(segments) > 1 else ""
            remaining = segments[2:]
        if not scope or not name or "/" in name:
            raise NotAPackagePath(raw_path)
    else:
        if "/" in first:
            raise NotAPackagePath(raw_path)
        name = first
        remaining = segments[1:]

    version: Optional[str] = None
    if remaining and remaining[0] != "-":
        version = remaining[0]
        remaining = remaining[1:]

    return PackageRef(name=name, scope=scope, version=version, rest=tuple(remaining))

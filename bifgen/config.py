"""
bifgen 配置
============
历史上同一生成器存在多个变体，策略常量各不相同
（受限操作数上限 1 或 2、是否支持十进制/扩展精度类型等）。
这里以最完整的变体为默认值，并把这些常量做成可配置项。
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from .semantic.type import BaseType, BASE_TYPES_BY_KEYWORD

DEFAULT_MAX_RESTRICTED_OPERANDS = 2
DEFAULT_MAX_LINE_LENGTH = 1024
DEFAULT_COMMENT_MARKER = ';'
DEFAULT_TARGET_PREFIX = 'rs6000'

_PREFIX_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@dataclass(frozen=True)
class GeneratorConfig:
    max_restricted_operands: int = DEFAULT_MAX_RESTRICTED_OPERANDS
    base_types:       frozenset = field(default_factory=lambda: frozenset(BaseType))
    max_line_length:  int = DEFAULT_MAX_LINE_LENGTH
    comment_marker:   str = DEFAULT_COMMENT_MARKER
    target_prefix:    str = DEFAULT_TARGET_PREFIX
    max_builtins:         Optional[int] = None
    max_overloads:        Optional[int] = None
    max_overload_stanzas: Optional[int] = None

    def validate(self) -> 'GeneratorConfig':
        if self.max_restricted_operands < 0:
            raise ValueError("max_restricted_operands must be >= 0")
        if not self.base_types:
            raise ValueError("base type vocabulary must not be empty")
        if self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")
        if len(self.comment_marker) != 1 or self.comment_marker.isspace():
            raise ValueError("comment marker must be a single non-blank character")
        if not _PREFIX_RE.match(self.target_prefix):
            raise ValueError(f"invalid target prefix: {self.target_prefix!r}")
        for limit in (self.max_builtins, self.max_overloads, self.max_overload_stanzas):
            if limit is not None and limit < 1:
                raise ValueError("soft limits must be positive")
        return self

    def with_base_keywords(self, keywords: Iterable[str]) -> 'GeneratorConfig':
        """按关键字列表（如 'int', 'long long', '__ibm128'）替换基础类型词表"""
        chosen = set()
        for kw in keywords:
            kw = ' '.join(kw.split())
            if kw not in BASE_TYPES_BY_KEYWORD:
                raise ValueError(f"unknown base type keyword: {kw!r}")
            chosen.add(BASE_TYPES_BY_KEYWORD[kw])
        return replace(self, base_types=frozenset(chosen))

    @property
    def upper_prefix(self) -> str:
        return self.target_prefix.upper()


DEFAULT_CONFIG = GeneratorConfig()

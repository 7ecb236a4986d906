"""
bifgen 符号表
==============
三个相互独立的唯一性注册表：

  builtin_ids   内置函数 id（重复即解析失败）
  overload_ids  重载条目引用的 id（重复即解析失败）
  fntype_ids    mangle 后的函数类型 id（重复是正常现象，插入即去重）

遍历顺序固定为字典序，保证多次生成的输出逐字节一致。
生成阶段开始前注册表会被 close()，之后任何插入都是程序错误。
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, Optional

from bifgen.error import InternalError


class RegistryFull(Exception):
    """超过可选的软上限"""
    def __init__(self, registry: 'Registry'):
        super().__init__(f"too many entries in {registry.name} (limit {registry.capacity})")
        self.registry = registry


class Registry:
    """
    有序字符串集合。

    Attributes:
        name:     用于诊断的名称
        capacity: 可选软上限；None 表示不限
    """
    def __init__(self, name: str, capacity: Optional[int] = None):
        self.name = name
        self.capacity = capacity
        self._names: set[str] = set()
        self._closed = False

    def insert(self, item: str) -> bool:
        """不存在则插入并返回 True；已存在返回 False"""
        if self._closed:
            raise InternalError(f"insertion of '{item}' into closed registry {self.name}")
        if item in self._names:
            return False
        if self.capacity is not None and len(self._names) >= self.capacity:
            raise RegistryFull(self)
        self._names.add(item)
        return True

    def close(self):
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __contains__(self, item) -> bool:
        return item in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self):
        return len(self._names)

    def __repr__(self):
        return f"Registry({self.name}, {len(self)} entries)"


@dataclass
class SymbolTables:
    builtin_ids:  Registry = field(default_factory=lambda: Registry('builtin ids'))
    overload_ids: Registry = field(default_factory=lambda: Registry('overload ids'))
    fntype_ids:   Registry = field(default_factory=lambda: Registry('function type ids'))

    @classmethod
    def with_limits(cls, max_builtins: Optional[int] = None,
                    max_overloads: Optional[int] = None) -> 'SymbolTables':
        return cls(builtin_ids=Registry('builtin ids', max_builtins),
                   overload_ids=Registry('overload ids', max_overloads))

    def close(self):
        self.builtin_ids.close()
        self.overload_ids.close()
        self.fntype_ids.close()

    # ── 调试辅助 ────────────────────────────────────────────────────────────

    def dump(self) -> str:
        lines = []
        for reg in (self.builtin_ids, self.overload_ids, self.fntype_ids):
            lines.append(f"[{reg.name}]")
            for item in reg:
                lines.append(f"  {item}")
        return '\n'.join(lines)

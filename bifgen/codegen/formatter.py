"""
缩进感知的源码输出器。

    fmt = Formatter()
    with fmt.indented('enum bif_enable {', '};'):
        fmt.line('ENB_ALWAYS,')
    fmt.text()
"""

from __future__ import annotations
from contextlib import contextmanager

TAB_WIDTH = 8


def tabbed(left: str, right: str, column: int = 32) -> str:
    """用制表符把 right 对齐到 column（按 8 列制表位计算，至少一个制表符）"""
    tabs = max(1, -(-(column - len(left)) // TAB_WIDTH))
    return left + '\t' * tabs + right


class Formatter:
    def __init__(self, indent: str = '  '):
        self._lines: list[str] = []
        self._indent = indent
        self._level = 0

    def line(self, s: str = ''):
        self._lines.append(self._indent * self._level + s if s else '')

    def lines(self, items):
        for s in items:
            self.line(s)

    @contextmanager
    def indented(self, before: str = '', after: str = ''):
        if before:
            self.line(before)
        self._level += 1
        try:
            yield self
        finally:
            self._level -= 1
        if after:
            self.line(after)

    def text(self) -> str:
        return '\n'.join(self._lines) + '\n'

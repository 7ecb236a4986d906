"""
行扫描器
========
输入文件是严格按行组织的：stanza 头占一行，每个条目占两行。
Scanner 只负责"当前行 + 游标"，所有列号对外均为 1 起（pos + 1）。

空行以及首个非空白字符为注释符的行在 advance_line() 中被跳过。
"""

from __future__ import annotations
import re
from typing import Optional, Sequence

from bifgen.error import InternalError

_IDENTIFIER_RE = re.compile(r'[A-Za-z0-9_]+')
_INTEGER_RE    = re.compile(r'-?[0-9]+')
_BLANKS = ' \t'


class Scanner:
    """
    Attributes:
        text: 当前行（不含换行符）
        pos:  0 起的游标
        line: 1 起的行号；尚未读入任何行时为 0
    """

    def __init__(self, lines: Sequence[str], max_line_length: int = 1024,
                 comment_marker: str = ';', path: str = '<input>'):
        self._lines = lines
        self._next = 0
        self.max_line_length = max_line_length
        self.comment_marker = comment_marker
        self.path = path
        self.text = ''
        self.pos = 0
        self.line = 0

    @classmethod
    def from_text(cls, source: str, **kwargs) -> 'Scanner':
        return cls(source.splitlines(), **kwargs)

    # ── 行 ──────────────────────────────────────────────────────────────────

    def advance_line(self) -> bool:
        """读入下一有效行；文件结束返回 False"""
        while self._next < len(self._lines):
            raw = self._lines[self._next]
            self._next += 1
            self.line = self._next
            if len(raw) > self.max_line_length:
                raise InternalError(
                    f"line exceeds {self.max_line_length} characters",
                    self.path, self.line)
            stripped = raw.strip()
            if not stripped or stripped.startswith(self.comment_marker):
                continue
            self.text = raw
            self.pos = 0
            return True
        self.text = ''
        self.pos = 0
        return False

    # ── 游标 ────────────────────────────────────────────────────────────────

    @property
    def column(self) -> int:
        return self.pos + 1

    @property
    def rest(self) -> str:
        return self.text[self.pos:]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return '' if self.at_end() else self.text[self.pos]

    def advance(self, n: int = 1):
        self.pos = min(self.pos + n, len(self.text))

    def rewind(self, pos: int):
        self.pos = pos

    def consume_whitespace(self):
        while self.pos < len(self.text) and self.text[self.pos] in _BLANKS:
            self.pos += 1

    # ── 记号 ────────────────────────────────────────────────────────────────

    def _match(self, pattern: re.Pattern) -> Optional[str]:
        m = pattern.match(self.text, self.pos)
        if m is None:
            return None
        self.pos = m.end()
        return m.group()

    def match_identifier(self) -> Optional[str]:
        return self._match(_IDENTIFIER_RE)

    def match_integer(self) -> Optional[int]:
        token = self._match(_INTEGER_RE)
        return None if token is None else int(token)

    def match_until(self, stop: str) -> str:
        """消费到 stop 中任一字符之前（不含），不跨行"""
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in stop:
            self.pos += 1
        return self.text[start:self.pos]

    def __repr__(self):
        return f"Scanner({self.path}:{self.line}:{self.column})"

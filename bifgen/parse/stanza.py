"""
Stanza / 文件解析
==================
驱动 Scanner 与 PrototypeParser，把两个输入文件解析为有序条目列表。

两种文件共用同一个状态机::

    ExpectStanzaHeader → ExpectEntry* → (下一个 '[' | EOF)

内置函数文件::

    [power8-vector]
      const vsll __builtin_altivec_vmaxsd (vsll, vsll);
        VMAXSD smaxv2di3 {}

重载文件（必须在内置函数文件完整解析之后处理）::

    [VEC_MAX, vec_max, __builtin_vec_max]
      vsll __builtin_vec_max (vsll, vsll);
        VMAXSD

首个语法违例立即以 ParseFailure 终止，不做恢复。
"""

from __future__ import annotations
import logging
from typing import Optional

from bifgen.config import GeneratorConfig, DEFAULT_CONFIG
from bifgen.error import DiagnosticBag, InputKind, ParseFailure
from bifgen.semantic.entry import (
    BifAttr, BuiltinEntry, FunctionKind, OverloadEntry, OverloadStanza,
    ATTRIBUTES_BY_TOKEN, FUNCTION_KINDS, NO_ATTRS, STANZAS_BY_TOKEN, BifStanza,
    attr_members,
)
from bifgen.semantic.mangle import mangle_prototype
from bifgen.semantic.symbol import Registry, RegistryFull, SymbolTables
from bifgen.semantic.type import Prototype
from .prototype import PrototypeError, PrototypeParser
from .scanner import Scanner

log = logging.getLogger(__name__)


class StanzaFileParser:
    """
    两种输入文件的公共骨架。子类实现 parse_header() 与 parse_entry()。

    Args:
        source: 文件全文
        bag:    绑定到该文件的诊断袋（path 即诊断中的文件名）
        tables: 本次运行共享的注册表
    """
    which: InputKind

    def __init__(self, source: str, bag: DiagnosticBag, tables: SymbolTables,
                 config: GeneratorConfig = DEFAULT_CONFIG):
        self.bag = bag
        self.tables = tables
        self.config = config
        self.scanner = Scanner.from_text(source,
                                         max_line_length=config.max_line_length,
                                         comment_marker=config.comment_marker,
                                         path=bag.path)
        self.protos = PrototypeParser(config)

    # ── 诊断 ────────────────────────────────────────────────────────────────

    def fail(self, message: str, column: Optional[int] = None,
             hint: str = '') -> ParseFailure:
        """记录错误并返回待抛出的异常（调用方 raise）"""
        if column is None:
            column = self.scanner.column
        diag = self.bag.error(message, self.scanner.line, column, hint)
        return ParseFailure(self.which, diag)

    # ── 主循环 ──────────────────────────────────────────────────────────────

    def parse(self):
        sc = self.scanner
        log.info("开始解析 %s", self.bag.path)
        more = sc.advance_line()
        while more:
            sc.consume_whitespace()
            header_line = sc.line
            self.parse_header()
            count = 0
            more = sc.advance_line()
            while more:
                sc.consume_whitespace()
                if sc.peek() == '[':
                    break
                self.parse_entry()
                count += 1
                more = sc.advance_line()
            if count == 0:
                self.bag.warning("空 stanza：没有任何条目", header_line)
        log.info("%s 解析完成", self.bag.path)
        return self

    def parse_header(self):
        raise NotImplementedError

    def parse_entry(self):
        raise NotImplementedError

    # ── 公共片段 ────────────────────────────────────────────────────────────

    def next_entry_line(self, what: str):
        """条目的第二行；文件在条目中途结束是解析失败"""
        if not self.scanner.advance_line():
            raise self.fail(f"文件意外结束：缺少{what}", column=-1)
        self.scanner.consume_whitespace()

    def expect_char(self, char: str, what: str):
        sc = self.scanner
        sc.consume_whitespace()
        if sc.peek() != char:
            raise self.fail(f"期望 '{char}'（{what}）")
        sc.advance()

    def expect_identifier(self, what: str) -> str:
        sc = self.scanner
        sc.consume_whitespace()
        ident = sc.match_identifier()
        if ident is None:
            raise self.fail(f"缺少{what}")
        return ident

    def expect_line_end(self):
        sc = self.scanner
        sc.consume_whitespace()
        if not sc.at_end():
            raise self.fail(f"行尾存在多余内容 '{sc.rest.rstrip()}'")

    def parse_prototype(self) -> tuple[Prototype, str]:
        """解析到行尾的原型，并把 mangle 后的类型 id 插入 fntype_ids"""
        sc = self.scanner
        try:
            proto = self.protos.parse(sc.rest, sc.pos)
        except PrototypeError as e:
            raise self.fail(e.message, e.column) from None
        sc.advance(len(sc.rest))
        fntype = mangle_prototype(proto)
        if self.tables.fntype_ids.insert(fntype):
            log.debug("新函数类型 %s", fntype)
        return proto, fntype

    def register(self, registry: Registry, item: str, column: int) -> bool:
        try:
            return registry.insert(item)
        except RegistryFull as e:
            raise self.fail(str(e), column) from None


# ──────────────────────────────────────────────────────────────────────────────
# 内置函数文件
# ──────────────────────────────────────────────────────────────────────────────

class BuiltinFileParser(StanzaFileParser):
    which = InputKind.BUILTIN

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.stanza: Optional[BifStanza] = None
        self.entries: list[BuiltinEntry] = []

    def parse_header(self):
        sc = self.scanner
        self.expect_char('[', 'stanza 头')
        sc.consume_whitespace()
        column = sc.column
        token = sc.match_until(']').strip()
        if sc.peek() != ']':
            raise self.fail("stanza 头缺少 ']'")
        stanza = STANZAS_BY_TOKEN.get(token)
        if stanza is None:
            raise self.fail(f"未知的门控关键字 '{token}'", column,
                            hint=f"可用关键字：{', '.join(STANZAS_BY_TOKEN)}")
        sc.advance()
        self.expect_line_end()
        self.stanza = stanza
        log.debug("stanza [%s] → %s", token, stanza.enable)

    def parse_entry(self):
        sc = self.scanner
        line = sc.line

        # 第一行：[const|pure|fpmath] 原型
        kind = FunctionKind.NONE
        start = sc.pos
        word = sc.match_identifier()
        if word in FUNCTION_KINDS:
            kind = FUNCTION_KINDS[word]
            sc.consume_whitespace()
        else:
            sc.rewind(start)
        proto, fntype = self.parse_prototype()

        # 第二行：<id> <pattern> { attr, ... }
        self.next_entry_line('内置函数 id 行')
        column = sc.column
        bif_id = self.expect_identifier('内置函数 id')
        if not self.register(self.tables.builtin_ids, bif_id, column):
            raise self.fail(f"重复的内置函数 id '{bif_id}'", column)
        pattern = self.expect_identifier('指令模式名')
        attrs = self.parse_attrs()
        self.expect_line_end()

        entry = BuiltinEntry(self.stanza, kind, proto, bif_id, pattern, attrs,
                             fntype, line)
        self.entries.append(entry)
        log.debug("内置函数 %s: %s → %s {%s}", bif_id, proto, pattern,
                  ', '.join(a.token for a in attr_members(attrs)))

    def parse_attrs(self) -> BifAttr:
        sc = self.scanner
        self.expect_char('{', '属性列表')
        attrs = NO_ATTRS
        sc.consume_whitespace()
        if sc.peek() == '}':
            sc.advance()
            return attrs
        while True:
            sc.consume_whitespace()
            column = sc.column
            token = sc.match_identifier()
            if token is None:
                raise self.fail("缺少属性名")
            attr = ATTRIBUTES_BY_TOKEN.get(token)
            if attr is None:
                raise self.fail(f"未知属性 '{token}'", column)
            attrs |= attr
            sc.consume_whitespace()
            ch = sc.peek()
            if ch == ',':
                sc.advance()
            elif ch == '}':
                sc.advance()
                return attrs
            else:
                raise self.fail("属性列表未闭合：期望 ',' 或 '}'")


# ──────────────────────────────────────────────────────────────────────────────
# 重载文件
# ──────────────────────────────────────────────────────────────────────────────

class OverloadFileParser(StanzaFileParser):
    which = InputKind.OVERLOAD

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.stanza: Optional[OverloadStanza] = None
        self.stanzas: list[OverloadStanza] = []
        self.entries: list[OverloadEntry] = []

    def parse_header(self):
        sc = self.scanner
        line = sc.line
        self.expect_char('[', 'stanza 头')
        limit = self.config.max_overload_stanzas
        if limit is not None and len(self.stanzas) >= limit:
            raise self.fail(f"重载 stanza 过多（上限 {limit}）")
        stanza_id = self.expect_identifier('重载 stanza id')
        self.expect_char(',', '分隔 stanza id 与外部名')
        extern_name = self.expect_identifier('外部函数名')
        self.expect_char(',', '分隔外部名与内部名')
        intern_name = self.expect_identifier('内部函数名')
        self.expect_char(']', 'stanza 头结束')
        self.expect_line_end()

        self.stanza = OverloadStanza(stanza_id, extern_name, intern_name, line)
        self.stanzas.append(self.stanza)
        log.debug("重载 stanza %s: %s → %s", stanza_id, extern_name, intern_name)

    def parse_entry(self):
        sc = self.scanner
        line = sc.line
        proto, fntype = self.parse_prototype()

        self.next_entry_line('重载 id 行')
        column = sc.column
        ovld_id = self.expect_identifier('重载 id')
        if ovld_id not in self.tables.builtin_ids:
            raise self.fail(f"重载引用了未定义的内置函数 id '{ovld_id}'", column)
        if not self.register(self.tables.overload_ids, ovld_id, column):
            raise self.fail(f"重复的重载 id '{ovld_id}'", column)
        self.expect_line_end()

        self.entries.append(OverloadEntry(self.stanza, proto, ovld_id, fntype, line))
        log.debug("重载 %s: %s", ovld_id, proto)

"""
原型解析
========
Lark 负责一行原型文本的词法 + 语法分析，PrototypeTransformer 把 CST
转换为 Prototype / TypeDescriptor。

列号约定：Lark 报告的列号相对于传入的文本片段，
PrototypeParser 会加上片段在整行中的偏移，得到整行的 1 起列号。
"""

from __future__ import annotations
import logging
from dataclasses import replace

from lark import Token, Transformer, v_args, exceptions as lark_exc

from bifgen.config import GeneratorConfig, DEFAULT_CONFIG
from bifgen.semantic.type import (
    BaseType, BASE_TYPES_BY_KEYWORD, TypeDescriptor, Prototype, RestrictedOperand,
    Bits, Range, VarRange, Values, VOID, VOID_PTR, OPAQUE, VECTOR_SHORTHANDS,
)
from .grammar import build_parser

log = logging.getLogger(__name__)


class PrototypeError(Exception):
    """原型语法违例；column 为整行中的 1 起列号"""
    def __init__(self, message: str, column: int = -1):
        super().__init__(message)
        self.message = message
        self.column = column


# 期望记号 → 可读名称，用于诊断
_EXPECTED_NAMES = {
    'SEMICOLON': "';'",
    'LPAR':      "'('",
    'RPAR':      "')'",
    'COMMA':     "','",
    'NAME':      '函数名',
    'NUMBER':    '整数',
    'MORETHAN':  "'>'",
    'RSQB':      "']'",
    'RBRACE':    "'}'",
}


def _describe_expected(expected) -> str:
    names = sorted(_EXPECTED_NAMES.get(e, e) for e in expected)
    if len(names) > 6:
        return '类型'
    return ', '.join(names)


# ──────────────────────────────────────────────────────────────────────────────
# Transformer
# ──────────────────────────────────────────────────────────────────────────────

class PrototypeTransformer(Transformer):
    """
    将原型 CST 转换为 Prototype。

    Args:
        offset:         片段在整行中的 0 起偏移
        max_restricted: 每个原型允许的受限操作数上限
    """

    def __init__(self, offset: int = 0, max_restricted: int = 2):
        super().__init__()
        self.offset = offset
        self.max_restricted = max_restricted

    def _col(self, meta) -> int:
        return self.offset + getattr(meta, 'column', 0)

    # ── 原型 ────────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def start(self, meta, items):
        ret, name, args = items
        args = tuple(args or ())
        restricted = []
        for index, arg in enumerate(args):
            if arg.restriction is None:
                continue
            if len(restricted) >= self.max_restricted:
                raise PrototypeError(
                    f"受限操作数过多（上限 {self.max_restricted}）", arg.column)
            restricted.append(RestrictedOperand(index, arg.restriction))
        # 返回类型上的约束没有意义，解析后丢弃
        if ret.restriction is not None:
            ret = replace(ret, restriction=None)
        return Prototype(ret, str(name), args, tuple(restricted))

    def arg_list(self, items):
        return list(items)

    # ── 类型 ────────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def void_type(self, meta, items):
        _void, star = items
        td = VOID_PTR if star is not None else VOID
        return replace(td, column=self._col(meta))

    @v_args(meta=True)
    def void_pointer(self, meta, items):
        return replace(VOID_PTR, column=self._col(meta))

    @v_args(meta=True)
    def ret_type(self, meta, items):
        return items[0]

    @v_args(meta=True)
    def vector_type(self, meta, items):
        shorthand, star = items
        return replace(VECTOR_SHORTHANDS[shorthand], is_pointer=star is not None,
                       column=self._col(meta))

    @v_args(meta=True)
    def opaque_type(self, meta, items):
        return replace(OPAQUE, column=self._col(meta))

    @v_args(meta=True)
    def const_type(self, meta, items):
        _const, (sign, base), restriction = items
        return TypeDescriptor(is_const=True,
                              is_signed=sign == 'signed',
                              is_unsigned=sign == 'unsigned',
                              base=base, restriction=restriction,
                              column=self._col(meta))

    @v_args(meta=True)
    def scalar_type(self, meta, items):
        sign, base, star = items
        if sign is not None and not base.is_integral:
            raise PrototypeError(f"'{sign}' 不能修饰非整数类型 '{base.keyword}'",
                                 self._col(meta))
        return TypeDescriptor(is_signed=sign == 'signed',
                              is_unsigned=sign == 'unsigned',
                              is_pointer=star is not None,
                              base=base, column=self._col(meta))

    # ── 关键字 ──────────────────────────────────────────────────────────────

    def const_int(self, items):
        sign = items[0] if len(items) > 1 else None
        return sign, BaseType.INT

    def sign(self, items):
        return str(items[0])

    def vector(self, items):
        return str(items[0])

    def base(self, items):
        keyword = ' '.join(str(t) for t in items if isinstance(t, Token))
        return BASE_TYPES_BY_KEYWORD[keyword]

    # ── 约束 ────────────────────────────────────────────────────────────────

    def bits(self, items):
        return Bits(int(items[0]))

    def range(self, items):
        return Range(int(items[0]), int(items[1]))

    def var_range(self, items):
        return VarRange(int(items[0]), int(items[1]))

    def values(self, items):
        return Values(int(items[0]), int(items[1]))


# ──────────────────────────────────────────────────────────────────────────────
# 解析入口
# ──────────────────────────────────────────────────────────────────────────────

class PrototypeParser:
    """按配置构建（并缓存）LALR 解析器，解析单行原型"""

    def __init__(self, config: GeneratorConfig = DEFAULT_CONFIG):
        self.config = config
        self._parser = build_parser(frozenset(config.base_types))

    def parse(self, text: str, offset: int = 0) -> Prototype:
        """
        Args:
            text:   从原型开头到行尾的文本（分号之后只允许空白）
            offset: text 在整行中的 0 起偏移
        Raises:
            PrototypeError: 任何语法违例
        """
        try:
            tree = self._parser.parse(text)
        except lark_exc.UnexpectedCharacters as e:
            raise PrototypeError(f"意外字符 '{e.char}'", offset + e.column) from None
        except lark_exc.UnexpectedToken as e:
            raise self._token_error(e, text, offset) from None
        except lark_exc.UnexpectedEOF as e:
            raise PrototypeError(
                f"原型意外结束，期望 {_describe_expected(e.expected)}",
                offset + len(text.rstrip()) + 1) from None

        transformer = PrototypeTransformer(offset, self.config.max_restricted_operands)
        try:
            proto = transformer.transform(tree)
        except lark_exc.VisitError as e:
            if isinstance(e.orig_exc, PrototypeError):
                raise e.orig_exc from None
            raise
        log.debug("原型 %s", proto)
        return proto

    @staticmethod
    def _token_error(e: lark_exc.UnexpectedToken, text: str, offset: int) -> PrototypeError:
        token = e.token
        if token.type == '$END':
            column = offset + len(text.rstrip()) + 1
            if 'SEMICOLON' in e.expected:
                return PrototypeError("缺少分号", column)
            return PrototypeError(
                f"原型意外结束，期望 {_describe_expected(e.expected)}", column)
        column = offset + (token.column or 1)
        if set(e.expected) <= {'$END'}:
            return PrototypeError(f"分号之后存在多余内容 '{token}'", column)
        return PrototypeError(
            f"意外的记号 '{token}'，期望 {_describe_expected(e.expected)}", column)

"""
原型 grammar
============
一行函数原型的 Lark grammar，形如::

    vsi __builtin_altivec_vsldoi_4si (vsi, vsi, const int<4>);

基础类型词表是可配置的，因此 grammar 文本由模板按词表生成，
并按词表缓存编译好的 LALR 解析器。

注意：不要定义名为 INT 的终结符，字面量 "int" 的匿名终结符就叫 INT。
"""

from __future__ import annotations
from functools import lru_cache
from string import Template

from lark import Lark

from bifgen.semantic.type import BaseType, VECTOR_SHORTHANDS

_GRAMMAR = Template(r'''
start: ret_type NAME "(" [arg_list] ")" ";"

arg_list: arg ("," arg)*

ret_type: VOID [STAR]                       -> void_type
        | type

?arg: VOID STAR                             -> void_pointer
    | type

?type: vector [STAR]                        -> vector_type
     | OPAQUE                               -> opaque_type
     | CONST const_int [restriction]        -> const_type
     | [sign] base [STAR]                   -> scalar_type

!const_int: [sign] "int"
!sign: "signed" | "unsigned"
!vector: $vectors
!base: $bases

restriction: "<" NUMBER ">"                 -> bits
           | "<" NUMBER "," NUMBER ">"      -> range
           | "[" NUMBER "," NUMBER "]"      -> var_range
           | "{" NUMBER "," NUMBER "}"      -> values

VOID:   "void"
OPAQUE: "vop"
CONST:  "const"
STAR:   "*"
NAME:   /[A-Za-z_][A-Za-z0-9_]*/
NUMBER: /-?[0-9]+/

%import common.WS_INLINE
%ignore WS_INLINE
''')


def _keyword_rule(keyword: str) -> str:
    # "long long" 是两个记号，中间允许任意空白
    return ' '.join(f'"{word}"' for word in keyword.split())


def grammar_text(base_types) -> str:
    bases = sorted(base_types, key=lambda b: (-len(b.keyword), b.keyword))
    return _GRAMMAR.substitute(
        bases=' | '.join(_keyword_rule(b.keyword) for b in bases),
        vectors=' | '.join(f'"{name}"' for name in sorted(VECTOR_SHORTHANDS)),
    )


@lru_cache(maxsize=None)
def build_parser(base_types: frozenset = frozenset(BaseType)) -> Lark:
    return Lark(
        grammar_text(base_types),
        parser='lalr',
        propagate_positions=True,
        maybe_placeholders=True,
    )

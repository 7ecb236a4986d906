"""
bifgen 条目定义
================
内置函数文件与重载文件解析后得到的条目，以及它们依附的 stanza。

  - BifStanza:      内置函数 stanza 的门控谓词（封闭词表，1:1 对应 enable 标签）
  - FunctionKind:   原型前可选的纯度修饰（const / pure / fpmath）
  - BifAttr:        属性集合（封闭词表，IntFlag 位与生成代码中的掩码一致）
  - BuiltinEntry / OverloadStanza / OverloadEntry
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntFlag

from .type import Prototype


class BifStanza(Enum):
    """value = (门控关键字, enable 标签)"""
    ALWAYS      = ('always',        'ENB_ALWAYS')
    P5          = ('power5',        'ENB_P5')
    P6          = ('power6',        'ENB_P6')
    ALTIVEC     = ('altivec',       'ENB_ALTIVEC')
    VSX         = ('vsx',           'ENB_VSX')
    P7          = ('power7',        'ENB_P7')
    P7_64       = ('power7-64',     'ENB_P7_64')
    P8          = ('power8',        'ENB_P8')
    P8V         = ('power8-vector', 'ENB_P8V')
    P9          = ('power9',        'ENB_P9')
    P9_64       = ('power9-64',     'ENB_P9_64')
    P9V         = ('power9-vector', 'ENB_P9V')
    IEEE128_HW  = ('ieee128-hw',    'ENB_IEEE128_HW')
    DFP         = ('dfp',           'ENB_DFP')
    CRYPTO      = ('crypto',        'ENB_CRYPTO')
    HTM         = ('htm',           'ENB_HTM')
    P10         = ('power10',       'ENB_P10')
    MMA         = ('mma',           'ENB_MMA')

    @property
    def token(self) -> str:
        return self.value[0]

    @property
    def enable(self) -> str:
        return self.value[1]


STANZAS_BY_TOKEN: dict[str, BifStanza] = {s.token: s for s in BifStanza}


class FunctionKind(Enum):
    NONE   = ''
    CONST  = 'const'
    PURE   = 'pure'
    FPMATH = 'fpmath'


FUNCTION_KINDS: dict[str, FunctionKind] = {
    k.value: k for k in FunctionKind if k is not FunctionKind.NONE
}


class BifAttr(IntFlag):
    INIT     = 0x00000001
    SET      = 0x00000002
    EXTRACT  = 0x00000004
    NOSOFT   = 0x00000008
    LDVEC    = 0x00000010
    STVEC    = 0x00000020
    REVE     = 0x00000040
    PRED     = 0x00000080
    HTM      = 0x00000100
    HTMSPR   = 0x00000200
    HTMCR    = 0x00000400
    MMA      = 0x00000800
    NO32BIT  = 0x00001000
    CPU      = 0x00002000
    LDSTMASK = 0x00004000

    @property
    def token(self) -> str:
        return self.name.lower()

    @property
    def predicate(self) -> str:
        """生成代码中 bif_is_<x> 的后缀（pred 沿用历史拼写 predicate）"""
        return 'predicate' if self is BifAttr.PRED else self.token


NO_ATTRS = BifAttr(0)

ATTRIBUTES_BY_TOKEN: dict[str, BifAttr] = {a.token: a for a in BifAttr}


def attr_members(attrs: BifAttr) -> list[BifAttr]:
    """按位序列出集合中的成员"""
    return [a for a in BifAttr if a in attrs]


# ──────────────────────────────────────────────────────────────────────────────
# 条目
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class BuiltinEntry:
    """内置函数文件中的一个两行条目"""
    stanza:  BifStanza
    kind:    FunctionKind
    proto:   Prototype
    bif_id:  str
    pattern: str
    attrs:   BifAttr
    fntype:  str            # mangle 后的类型描述符 id
    line:    int = -1

    @property
    def name(self) -> str:
        return self.proto.name


@dataclass
class OverloadStanza:
    """[<overload-id>, <extern-name>, <intern-name>]"""
    stanza_id:   str
    extern_name: str
    intern_name: str
    line:        int = -1


@dataclass
class OverloadEntry:
    """重载文件中的一个两行条目；bif_id 必须已在内置函数文件中注册"""
    stanza: OverloadStanza
    proto:  Prototype
    bif_id: str
    fntype: str
    line:   int = -1

    @property
    def name(self) -> str:
        return self.proto.name

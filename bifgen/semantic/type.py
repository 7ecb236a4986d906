"""
bifgen 类型系统
================
描述内置函数原型中出现的返回类型与参数类型。

类型描述符（TypeDescriptor）是一组布尔标志 + 基础元素类型 + 可选的
常量约束（restriction），与输入文件中的类型写法一一对应：

    const int<4>        → 常量整数，限定为 4 位无符号
    vsc                 → vector signed char
    unsigned long long  → 标量
    void *              → 通用指针
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# ──────────────────────────────────────────────────────────────────────────────
# 基础元素类型
# ──────────────────────────────────────────────────────────────────────────────

class BaseType(Enum):
    """标量/向量元素的基础类型，value 为输入文件中的关键字"""
    CHAR       = 'char'
    SHORT      = 'short'
    INT        = 'int'
    LONGLONG   = 'long long'
    FLOAT      = 'float'
    DOUBLE     = 'double'
    INT128     = '__int128'
    FLOAT128   = '_Float128'
    DECIMAL32  = '_Decimal32'
    DECIMAL64  = '_Decimal64'
    DECIMAL128 = '_Decimal128'
    IBM128     = '__ibm128'

    @property
    def keyword(self) -> str:
        return self.value

    @property
    def is_integral(self) -> bool:
        return self in INTEGRAL_TYPES


INTEGRAL_TYPES = frozenset({
    BaseType.CHAR, BaseType.SHORT, BaseType.INT,
    BaseType.LONGLONG, BaseType.INT128,
})

BASE_TYPES_BY_KEYWORD: dict[str, BaseType] = {b.keyword: b for b in BaseType}


# ──────────────────────────────────────────────────────────────────────────────
# 常量约束
# ──────────────────────────────────────────────────────────────────────────────

class RestrictionKind(Enum):
    """生成代码中 enum restriction 的枚举值"""
    NONE      = 'RES_NONE'
    BITS      = 'RES_BITS'
    RANGE     = 'RES_RANGE'
    VAR_RANGE = 'RES_VAR_RANGE'
    VALUES    = 'RES_VALUES'


@dataclass(frozen=True)
class Bits:
    """<N>：按无符号数解释，可用 N 位表示"""
    n: int
    kind = RestrictionKind.BITS

    @property
    def values(self) -> tuple[int, int]:
        return self.n, 0

    def __str__(self):
        return f"<{self.n}>"


@dataclass(frozen=True)
class Range:
    """<X,Y>：必须落在 [X,Y]，无条件检查"""
    lo: int
    hi: int
    kind = RestrictionKind.RANGE

    @property
    def values(self) -> tuple[int, int]:
        return self.lo, self.hi

    def __str__(self):
        return f"<{self.lo},{self.hi}>"


@dataclass(frozen=True)
class VarRange:
    """[X,Y]：同 Range，但实参不是编译期常量时不检查"""
    lo: int
    hi: int
    kind = RestrictionKind.VAR_RANGE

    @property
    def values(self) -> tuple[int, int]:
        return self.lo, self.hi

    def __str__(self):
        return f"[{self.lo},{self.hi}]"


@dataclass(frozen=True)
class Values:
    """{X,Y}：只能等于 X 或 Y"""
    a: int
    b: int
    kind = RestrictionKind.VALUES

    @property
    def values(self) -> tuple[int, int]:
        return self.a, self.b

    def __str__(self):
        return f"{{{self.a},{self.b}}}"


Restriction = Union[Bits, Range, VarRange, Values]


# ──────────────────────────────────────────────────────────────────────────────
# 类型描述符
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TypeDescriptor:
    """
    一个返回类型或参数类型。

    Attributes:
        base:        基础元素类型；void 与 opaque 时为 None
        restriction: 仅 const int 参数可带
        column:      源码列号（1 起），不参与相等比较
    """
    is_void:     bool = False
    is_const:    bool = False
    is_vector:   bool = False
    is_signed:   bool = False
    is_unsigned: bool = False
    is_bool:     bool = False
    is_pixel:    bool = False
    is_pointer:  bool = False
    is_opaque:   bool = False
    base:        Optional[BaseType] = None
    restriction: Optional[Restriction] = None
    column:      int = field(default=-1, compare=False, repr=False)

    def __post_init__(self):
        if self.restriction is not None and not self.is_const_int:
            raise ValueError("restriction is only allowed on a const int")

    @property
    def is_const_int(self) -> bool:
        return (self.is_const and self.base == BaseType.INT
                and not self.is_vector and not self.is_pointer)

    def __str__(self):
        if self.is_opaque:
            return 'vop'
        if self.is_void:
            text = 'void'
        elif self.is_vector:
            text = VECTOR_NAMES.get(self._vector_key(), 'vector')
        else:
            text = self.base.keyword if self.base else '?'
            if self.is_unsigned:
                text = 'unsigned ' + text
            elif self.is_signed:
                text = 'signed ' + text
        if self.is_const:
            text = 'const ' + text
        if self.restriction is not None:
            text += str(self.restriction)
        if self.is_pointer:
            text += ' *'
        return text

    def _vector_key(self):
        return (self.base, self.is_signed, self.is_unsigned, self.is_bool, self.is_pixel)


VOID = TypeDescriptor(is_void=True)
VOID_PTR = TypeDescriptor(is_void=True, is_pointer=True)
OPAQUE = TypeDescriptor(is_opaque=True)


def _vec(base: BaseType, *, signed=False, unsigned=False, boolean=False,
         pixel=False) -> TypeDescriptor:
    return TypeDescriptor(is_vector=True, is_signed=signed, is_unsigned=unsigned,
                          is_bool=boolean, is_pixel=pixel, base=base)


# 向量简写 → 固定的描述符（vop 单独处理，它不允许带 *）
VECTOR_SHORTHANDS: dict[str, TypeDescriptor] = {
    'vsc':  _vec(BaseType.CHAR, signed=True),
    'vuc':  _vec(BaseType.CHAR, unsigned=True),
    'vbc':  _vec(BaseType.CHAR, boolean=True),
    'vss':  _vec(BaseType.SHORT, signed=True),
    'vus':  _vec(BaseType.SHORT, unsigned=True),
    'vbs':  _vec(BaseType.SHORT, boolean=True),
    'vsi':  _vec(BaseType.INT, signed=True),
    'vui':  _vec(BaseType.INT, unsigned=True),
    'vbi':  _vec(BaseType.INT, boolean=True),
    'vsll': _vec(BaseType.LONGLONG, signed=True),
    'vull': _vec(BaseType.LONGLONG, unsigned=True),
    'vbll': _vec(BaseType.LONGLONG, boolean=True),
    'vsq':  _vec(BaseType.INT128, signed=True),
    'vuq':  _vec(BaseType.INT128, unsigned=True),
    'vbq':  _vec(BaseType.INT128, boolean=True),
    'vp':   _vec(BaseType.SHORT, pixel=True),
    'vf':   _vec(BaseType.FLOAT),
    'vd':   _vec(BaseType.DOUBLE),
}

OPAQUE_SHORTHAND = 'vop'

VECTOR_NAMES = {td._vector_key(): name for name, td in VECTOR_SHORTHANDS.items()}


# ──────────────────────────────────────────────────────────────────────────────
# 函数原型
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RestrictedOperand:
    """带约束的参数：arg_index 从 0 开始"""
    arg_index:   int
    restriction: Restriction

    @property
    def operand(self) -> int:
        """生成代码中使用的操作数编号（从 1 开始）"""
        return self.arg_index + 1


@dataclass(frozen=True)
class Prototype:
    return_type: TypeDescriptor
    name:        str
    args:        tuple[TypeDescriptor, ...] = ()
    restricted_operands: tuple[RestrictedOperand, ...] = ()

    @property
    def nargs(self) -> int:
        return len(self.args)

    def __str__(self):
        args = ', '.join(str(a) for a in self.args)
        return f"{self.return_type} {self.name} ({args});"

"""
函数类型 mangler
=================
把 (返回类型, 参数类型列表) 变成规范化的类型描述符 id，例如：

    int f (int);               → si_ftype_si
    int f ();                  → si_ftype_v
    vsc f (vsc, const int<4>); → v16qi_ftype_v16qi_si
    void f (vf *);             → v_ftype_pv

同形状的原型（忽略函数名与常量约束）得到相同 id，
它既是 fntype_ids 注册表的去重键，也是生成代码中的变量名。
"""

from __future__ import annotations
from typing import Iterable

from bifgen.error import InternalError
from .type import BaseType, Prototype, TypeDescriptor

FTYPE_INFIX = '_ftype'
NO_ARGS = 'v'
POINTER = 'pv'
OPAQUE = 'opaque'

_SCALAR_CODES: dict[BaseType, str] = {
    BaseType.CHAR:       'qi',
    BaseType.SHORT:      'hi',
    BaseType.INT:        'si',
    BaseType.LONGLONG:   'di',
    BaseType.FLOAT:      'sf',
    BaseType.DOUBLE:     'df',
    BaseType.INT128:     'ti',
    BaseType.FLOAT128:   'tf',
    BaseType.DECIMAL32:  'sd',
    BaseType.DECIMAL64:  'dd',
    BaseType.DECIMAL128: 'td',
    BaseType.IBM128:     'if',
}

_VECTOR_CODES: dict[BaseType, str] = {
    BaseType.CHAR:     '16qi',
    BaseType.SHORT:    '8hi',
    BaseType.INT:      '4si',
    BaseType.LONGLONG: '2di',
    BaseType.FLOAT:    '4sf',
    BaseType.DOUBLE:   '2df',
    BaseType.INT128:   '1ti',
    BaseType.FLOAT128: '1tf',
}


def _vector_fragment(td: TypeDescriptor) -> str:
    prefix = 'bv' if td.is_bool else 'v'
    if td.is_pixel:
        return prefix + 'p8hi'
    code = _VECTOR_CODES.get(td.base)
    if code is None:
        raise InternalError(f"unhandled vector base type {td.base}")
    return prefix + code


def _value_fragment(td: TypeDescriptor) -> str:
    if td.is_opaque:
        return OPAQUE
    if td.base is None:
        raise InternalError(f"type '{td}' has no base type")
    prefix = 'u' if td.is_unsigned else ''
    if td.is_vector:
        return prefix + _vector_fragment(td)
    code = _SCALAR_CODES.get(td.base)
    if code is None:
        raise InternalError(f"unhandled base type {td.base}")
    return prefix + code


def return_fragment(td: TypeDescriptor) -> str:
    if td.is_pointer:
        return POINTER
    if td.is_void:
        return 'v'
    return _value_fragment(td)


def arg_fragment(td: TypeDescriptor) -> str:
    # 指针参数一律视为 void *，与指向的类型无关
    if td.is_pointer:
        return POINTER
    return _value_fragment(td)


def mangle(return_type: TypeDescriptor, args: Iterable[TypeDescriptor]) -> str:
    parts = [return_fragment(return_type) + FTYPE_INFIX]
    args = list(args)
    if not args:
        parts.append(NO_ARGS)
    for arg in args:
        parts.append(arg_fragment(arg))
    return '_'.join(parts)


def mangle_prototype(proto: Prototype) -> str:
    return mangle(proto.return_type, proto.args)


def split_fntype(fntype: str) -> tuple[str, list[str]]:
    """
    mangle 的逆过程：si_ftype_si_v16qi → ('si', ['si', 'v16qi'])。
    零参数的 _v 哨兵解析为空列表。
    """
    parts = fntype.split('_')
    if len(parts) < 3 or parts[1] != FTYPE_INFIX.lstrip('_'):
        raise InternalError(f"malformed function type id '{fntype}'")
    ret, args = parts[0], parts[2:]
    if args == [NO_ARGS]:
        args = []
    return ret, args

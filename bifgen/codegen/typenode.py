"""
mangle 片段 → 宿主编译器类型节点名

函数类型 id 由 split_fntype() 拆成片段，每个片段对应一个
已存在的 *_type_node 全局变量，用来拼出 build_function_type_list 调用。
"""

from __future__ import annotations

from bifgen.error import InternalError
from bifgen.semantic.mangle import NO_ARGS, OPAQUE, POINTER, split_fntype

_SCALAR_NODES = {
    NO_ARGS: 'void',
    POINTER: 'ptr',
    OPAQUE:  'opaque_V4SI',
    'sf':    'float',
    'df':    'double',
    'tf':    'float128',
    'if':    'ibm128_float',
    'sd':    'dfloat32',
    'dd':    'dfloat64',
    'td':    'dfloat128',
}

for _mode in ('qi', 'hi', 'si', 'di', 'ti'):
    _SCALAR_NODES[_mode] = f'int{_mode.upper()}'
    _SCALAR_NODES['u' + _mode] = f'unsigned_int{_mode.upper()}'

_VECTOR_NODES = {
    'vp8hi': 'pixel_V8HI',
    'v4sf':  'V4SF',
    'v2df':  'V2DF',
    'v1tf':  'V1TF',
}

for _mode in ('16qi', '8hi', '4si', '2di', '1ti'):
    _VECTOR_NODES['v' + _mode] = f'V{_mode.upper()}'
    _VECTOR_NODES['uv' + _mode] = f'unsigned_V{_mode.upper()}'
    _VECTOR_NODES['bv' + _mode] = f'bool_V{_mode.upper()}'

TYPE_NODES = {frag: node + '_type_node'
              for frag, node in {**_SCALAR_NODES, **_VECTOR_NODES}.items()}


def type_node(fragment: str) -> str:
    node = TYPE_NODES.get(fragment)
    if node is None:
        raise InternalError(f"no type node for fragment '{fragment}'")
    return node


def fntype_nodes(fntype: str) -> list[str]:
    """返回类型节点 + 各参数类型节点；零参数时只有返回类型"""
    ret, args = split_fntype(fntype)
    return [type_node(ret)] + [type_node(a) for a in args]

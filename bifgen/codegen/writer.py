"""
代码生成
========
由解析完成、注册表已关闭的模型生成三个产物：

  header_text()   声明：枚举、结构体、属性位宏、外部函数类型声明
  init_text()     定义：信息表、哈希表、初始化函数
  defines_text()  宏别名：每个重载 stanza 一行 #define

所有遍历都走注册表的有序迭代或条目的文件顺序，相同输入的输出逐字节一致。
"""

from __future__ import annotations
import logging

from bifgen.config import GeneratorConfig
from bifgen.semantic.entry import BifAttr, BifStanza, FunctionKind, attr_members
from bifgen.semantic.type import RestrictionKind
from .formatter import Formatter, tabbed
from .typenode import fntype_nodes

log = logging.getLogger(__name__)

PROGRAM_NAME = 'bifgen'

HOST_INCLUDES = ('config.h', 'system.h', 'coretypes.h', 'backend.h', 'rtl.h', 'tree.h')

HASH_TABLE_SIZE = 1024

# 纯度修饰 → 注册后设置的 tree 标志
_PURITY_FLAGS = {
    FunctionKind.NONE:   (),
    FunctionKind.CONST:  ('TREE_READONLY', 'TREE_NOTHROW'),
    FunctionKind.PURE:   ('DECL_PURE_P', 'TREE_NOTHROW'),
    FunctionKind.FPMATH: ('TREE_NOTHROW', 'TREE_READONLY'),
}


class Names:
    """按目标前缀拼出生成代码中的标识符"""

    def __init__(self, config: GeneratorConfig):
        self.p = config.target_prefix
        self.u = config.upper_prefix

    def bif(self, bif_id: str) -> str:
        return f'{self.u}_BIF_{bif_id}'

    def ovld(self, ovld_id: str) -> str:
        return f'{self.u}_OVLD_{ovld_id}'

    @property
    def bif_enum(self):
        return f'{self.p}_gen_builtins'

    @property
    def ovld_enum(self):
        return f'{self.p}_gen_overloads'

    @property
    def bif_info(self):
        return f'{self.p}_builtin_info'

    @property
    def ovld_info(self):
        return f'{self.p}_overload_info'

    @property
    def bif_decls(self):
        return f'{self.p}_builtin_decls'

    @property
    def bif_hasher(self):
        return f'{self.p}_bif_hasher'

    @property
    def ovld_hasher(self):
        return f'{self.p}_ovld_hasher'

    @property
    def enabled_p(self):
        return f'{self.p}_builtin_enabled_p'

    @property
    def init_fn(self):
        return f'{self.p}_init_generated_builtins'

    def ovld_slot(self, ovld_id: str) -> str:
        return f'{self.ovld_info}[{self.ovld(ovld_id)} - {self.u}_OVLD_NONE]'


def _c_string(s: str) -> str:
    return '"' + s.replace('\\', '\\\\').replace('"', '\\"') + '"'


def _banner(fmt: Formatter, model):
    fmt.line(f"/* Automatically generated by the program '{PROGRAM_NAME}'")
    fmt.line(f"   from the files '{model.builtin_path}' and '{model.overload_path}'.  */")
    fmt.line()


def _restriction_slots(config: GeneratorConfig) -> int:
    # C 不允许零长数组
    return max(1, config.max_restricted_operands)


# ──────────────────────────────────────────────────────────────────────────────
# 声明
# ──────────────────────────────────────────────────────────────────────────────

def _gen_enum_builtins(fmt: Formatter, model, names: Names):
    fmt.line(f'enum {names.bif_enum}')
    with fmt.indented('{', '};'):
        fmt.line(f'{names.u}_BIF_NONE,')
        for bif_id in model.tables.builtin_ids:
            fmt.line(names.bif(bif_id) + ',')
        fmt.line(f'{names.u}_BIF_MAX')
    fmt.line()


def _gen_fixed_enums(fmt: Formatter):
    with fmt.indented('enum restriction {', '};'):
        kinds = [k.value for k in RestrictionKind]
        fmt.lines(k + ',' for k in kinds[:-1])
        fmt.line(kinds[-1])
    fmt.line()

    with fmt.indented('enum bif_enable {', '};'):
        tags = [s.enable for s in BifStanza]
        fmt.lines(t + ',' for t in tags[:-1])
        fmt.line(tags[-1])
    fmt.line()


def _gen_bifdata(fmt: Formatter, config: GeneratorConfig):
    n = _restriction_slots(config)
    fmt.line('struct bifdata')
    with fmt.indented('{', '};'):
        fmt.lines([
            'const char *bifname;',
            'bif_enable enable;',
            'tree fntype;',
            'insn_code icode;',
            'int  nargs;',
            'int  bifattrs;',
            f'int  restr_opnd[{n}];',
            f'restriction restr[{n}];',
            f'int  restr_val1[{n}];',
            f'int  restr_val2[{n}];',
        ])
    fmt.line()


def _gen_attr_macros(fmt: Formatter):
    for attr in BifAttr:
        fmt.line(tabbed(f'#define bif_{attr.token}_bit', f'(0x{attr.value:08x})'))
    fmt.line()
    for attr in BifAttr:
        fmt.line(tabbed(f'#define bif_is_{attr.predicate}(x)',
                        f'((x).bifattrs & bif_{attr.token}_bit)'))
    fmt.line()


def _gen_hasher_decl(fmt: Formatter, hasher: str, data: str):
    fmt.line(f'struct {hasher} : nofree_ptr_hash<{data}>')
    with fmt.indented('{', '};'):
        fmt.line('typedef const char *compare_type;')
        fmt.line()
        fmt.line(f'static hashval_t hash ({data} *);')
        fmt.line(f'static bool equal ({data} *, const char *);')
    fmt.line()


def _gen_enum_overloads(fmt: Formatter, model, names: Names):
    # 重载编号紧接在内置函数编号之后，两段不重叠
    fmt.line(f'enum {names.ovld_enum}')
    with fmt.indented('{', '};'):
        fmt.line(f'{names.u}_OVLD_NONE = {names.u}_BIF_MAX + 1,')
        for ovld_id in model.tables.overload_ids:
            fmt.line(names.ovld(ovld_id) + ',')
        fmt.line(f'{names.u}_OVLD_MAX')
    fmt.line()


def header_text(model, config: GeneratorConfig) -> str:
    names = Names(config)
    fmt = Formatter()
    _banner(fmt, model)
    for inc in HOST_INCLUDES:
        fmt.line(f'#include "{inc}"')
    fmt.line()

    _gen_enum_builtins(fmt, model, names)
    _gen_fixed_enums(fmt)
    _gen_bifdata(fmt, config)
    _gen_attr_macros(fmt)

    fmt.line(f'extern bifdata {names.bif_info}[];')
    fmt.line(f'extern tree {names.bif_decls}[];')
    fmt.line()
    _gen_hasher_decl(fmt, names.bif_hasher, 'bifdata')
    fmt.line(f'extern hash_table<{names.bif_hasher}> bif_hash;')
    fmt.line()

    _gen_enum_overloads(fmt, model, names)
    fmt.line('struct ovlddata')
    with fmt.indented('{', '};'):
        fmt.lines([
            'const char *ovldname;',
            'const char *bifname;',
            f'{names.bif_enum} bifid;',
            'tree fntype;',
            'ovlddata *next;',
        ])
    fmt.line()
    fmt.line(f'extern ovlddata {names.ovld_info}[];')
    fmt.line()
    _gen_hasher_decl(fmt, names.ovld_hasher, 'ovlddata')
    fmt.line(f'extern hash_table<{names.ovld_hasher}> ovld_hash;')
    fmt.line()

    fmt.line(f'extern bool {names.enabled_p} (bif_enable);')
    fmt.line(f'extern void {names.init_fn} ();')
    fmt.line()

    for fntype in model.tables.fntype_ids:
        fmt.line(f'extern tree {fntype};')
    fmt.line()
    log.info("声明：%d 个内置函数，%d 个重载，%d 个函数类型",
             len(model.tables.builtin_ids), len(model.tables.overload_ids),
             len(model.tables.fntype_ids))
    return fmt.text()


# ──────────────────────────────────────────────────────────────────────────────
# 定义
# ──────────────────────────────────────────────────────────────────────────────

def _gen_hasher_body(fmt: Formatter, hasher: str, data: str, key: str):
    fmt.line('hashval_t')
    fmt.line(f'{hasher}::hash ({data} *d)')
    with fmt.indented('{', '}'):
        fmt.line(f'return htab_hash_string (d->{key});')
    fmt.line()
    fmt.line('bool')
    fmt.line(f'{hasher}::equal ({data} *d, const char *name)')
    with fmt.indented('{', '}'):
        fmt.line(f'return d && name && !strcmp (d->{key}, name);')
    fmt.line()


def _gen_fntype_init(fmt: Formatter, fntype: str):
    nodes = fntype_nodes(fntype) + ['NULL_TREE']
    fmt.line(f'{fntype}')
    with fmt.indented():
        fmt.line(f'= build_function_type_list ({", ".join(nodes)});')


def _gen_builtin_init(fmt: Formatter, entry, names: Names):
    slot = f'{names.bif_info}[{names.bif(entry.bif_id)}]'
    attrs = ' | '.join(f'bif_{a.token}_bit' for a in attr_members(entry.attrs)) or '0'
    fmt.line(f'{slot}.bifname = {_c_string(entry.name)};')
    fmt.line(f'{slot}.enable = {entry.stanza.enable};')
    fmt.line(f'{slot}.fntype = {entry.fntype};')
    fmt.line(f'{slot}.icode = CODE_FOR_{entry.pattern};')
    fmt.line(f'{slot}.nargs = {entry.proto.nargs};')
    fmt.line(f'{slot}.bifattrs = {attrs};')
    for i, ro in enumerate(entry.proto.restricted_operands):
        val1, val2 = ro.restriction.values
        fmt.line(f'{slot}.restr_opnd[{i}] = {ro.operand};')
        fmt.line(f'{slot}.restr[{i}] = {ro.restriction.kind.value};')
        fmt.line(f'{slot}.restr_val1[{i}] = {val1};')
        fmt.line(f'{slot}.restr_val2[{i}] = {val2};')

    name = _c_string(entry.name)
    fmt.line(f'bslot = bif_hash.find_slot_with_hash ({name}, htab_hash_string ({name}), INSERT);')
    fmt.line(f'*bslot = &{slot};')

    def register():
        fmt.line(f't = add_builtin_function ({name}, {entry.fntype},')
        fmt.line(f'                          (int) {names.bif(entry.bif_id)}, BUILT_IN_MD,')
        fmt.line('                          NULL, NULL_TREE);')
        for flag in _PURITY_FLAGS[entry.kind]:
            fmt.line(f'{flag} (t) = 1;')
        fmt.line(f'{names.bif_decls}[(int) {names.bif(entry.bif_id)}] = t;')

    if entry.stanza is BifStanza.ALWAYS:
        register()
    else:
        fmt.line(f'if ({names.enabled_p} ({entry.stanza.enable}))')
        with fmt.indented('{', '}'):
            register()
    fmt.line()


def _gen_overload_inits(fmt: Formatter, model, names: Names):
    # 初始化块按文件顺序输出；next 指针按外部名串联（首次定义顺序），链头插入哈希表
    successor = {}
    heads = set()
    for chain in model.overload_chains().values():
        heads.add(chain[0].bif_id)
        for entry, following in zip(chain, chain[1:]):
            successor[entry.bif_id] = following.bif_id

    for entry in model.overloads:
        extern_name = entry.stanza.extern_name
        slot = names.ovld_slot(entry.bif_id)
        fmt.line(f'{slot}.ovldname = {_c_string(extern_name)};')
        fmt.line(f'{slot}.bifname = {_c_string(entry.name)};')
        fmt.line(f'{slot}.bifid = {names.bif(entry.bif_id)};')
        fmt.line(f'{slot}.fntype = {entry.fntype};')
        if entry.bif_id in successor:
            fmt.line(f'{slot}.next = &{names.ovld_slot(successor[entry.bif_id])};')
        else:
            fmt.line(f'{slot}.next = NULL;')
        if entry.bif_id in heads:
            key = _c_string(extern_name)
            fmt.line(f'oslot = ovld_hash.find_slot_with_hash ({key}, htab_hash_string ({key}), INSERT);')
            fmt.line(f'*oslot = &{slot};')
        fmt.line()


def init_text(model, config: GeneratorConfig, header_name: str) -> str:
    names = Names(config)
    fmt = Formatter()
    _banner(fmt, model)
    fmt.line(f'#include "{header_name}"')
    fmt.line()

    for fntype in model.tables.fntype_ids:
        fmt.line(f'tree {fntype};')
    fmt.line()

    fmt.line(f'bifdata {names.bif_info}[{names.u}_BIF_MAX];')
    fmt.line(f'tree {names.bif_decls}[{names.u}_BIF_MAX];')
    fmt.line(f'ovlddata {names.ovld_info}[{names.u}_OVLD_MAX - {names.u}_OVLD_NONE];')
    fmt.line()
    fmt.line(f'hash_table<{names.bif_hasher}> bif_hash ({HASH_TABLE_SIZE});')
    fmt.line(f'hash_table<{names.ovld_hasher}> ovld_hash ({HASH_TABLE_SIZE});')
    fmt.line()
    _gen_hasher_body(fmt, names.bif_hasher, 'bifdata', 'bifname')
    _gen_hasher_body(fmt, names.ovld_hasher, 'ovlddata', 'ovldname')

    fmt.line('void')
    fmt.line(f'{names.init_fn} ()')
    with fmt.indented('{', '}'):
        fmt.line('tree t;')
        fmt.line('bifdata **bslot;')
        fmt.line('ovlddata **oslot;')
        fmt.line()
        for fntype in model.tables.fntype_ids:
            _gen_fntype_init(fmt, fntype)
        fmt.line()
        for entry in model.builtins:
            _gen_builtin_init(fmt, entry, names)
        _gen_overload_inits(fmt, model, names)
    return fmt.text()


# ──────────────────────────────────────────────────────────────────────────────
# 宏别名
# ──────────────────────────────────────────────────────────────────────────────

def defines_text(model) -> str:
    lines = [f'#define {s.extern_name} {s.intern_name}\n' for s in model.overload_stanzas]
    return ''.join(lines)

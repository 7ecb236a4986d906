from .type import (
    BaseType, TypeDescriptor, Prototype, RestrictedOperand,
    Bits, Range, VarRange, Values, RestrictionKind,
)
from .entry import (
    BifStanza, FunctionKind, BifAttr,
    BuiltinEntry, OverloadStanza, OverloadEntry,
)
from .symbol import Registry, RegistryFull, SymbolTables
from .mangle import mangle, mangle_prototype, split_fntype

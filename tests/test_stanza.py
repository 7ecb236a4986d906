import pytest

from bifgen.config import GeneratorConfig
from bifgen.error import DiagnosticBag, ExitCode, InputKind, ParseFailure
from bifgen.parse.stanza import BuiltinFileParser, OverloadFileParser
from bifgen.semantic.entry import BifAttr, BifStanza, FunctionKind
from bifgen.semantic.symbol import SymbolTables

from conftest import FOO_BUILTINS, VECTOR_BUILTINS


def _parse_builtins(source: str, tables: SymbolTables = None, **config):
    tables = tables or SymbolTables()
    parser = BuiltinFileParser(source, DiagnosticBag("bif.def"), tables,
                               GeneratorConfig(**config))
    return parser.parse()


def _parse_overloads(source: str, builtins: str = FOO_BUILTINS, **config):
    tables = SymbolTables()
    _parse_builtins(builtins, tables)
    parser = OverloadFileParser(source, DiagnosticBag("ovld.def"), tables,
                                GeneratorConfig(**config))
    return parser.parse()


def _failure(excinfo: pytest.ExceptionInfo) -> tuple[int, int]:
    diag = excinfo.value.diagnostic
    return diag.line, diag.column


# ── builtin file ─────────────────────────────────────────────────────────────

def test_builtin_entries_keep_file_order_and_stanza() -> None:
    parser = _parse_builtins(VECTOR_BUILTINS)

    ids = [e.bif_id for e in parser.entries]
    assert ids == ["VADDUBM", "VSLDOI_16QI", "LVX", "VMAXSD", "XSMAXDP"]
    assert parser.entries[0].stanza is BifStanza.ALTIVEC
    assert parser.entries[3].stanza is BifStanza.P8V
    assert parser.entries[0].line == 4


def test_purity_keywords_and_attributes() -> None:
    entries = _parse_builtins(VECTOR_BUILTINS).entries

    assert entries[0].kind is FunctionKind.CONST
    assert entries[2].kind is FunctionKind.PURE
    assert entries[2].attrs == BifAttr.LDVEC
    assert entries[4].kind is FunctionKind.FPMATH
    assert entries[4].pattern == "smaxdf3"


def test_entry_without_purity_keyword() -> None:
    entries = _parse_builtins("[vsx]\n  vd __builtin_x (vd);\n    X x_insn {set, extract}\n").entries

    assert entries[0].kind is FunctionKind.NONE
    assert entries[0].attrs == BifAttr.SET | BifAttr.EXTRACT


def test_identical_shapes_share_one_type_id() -> None:
    tables = SymbolTables()
    _parse_builtins(
        "[always]\n"
        "  int __builtin_a (int);\n    A a_insn {}\n"
        "  int __builtin_b (int);\n    B b_insn {}\n",
        tables)

    assert list(tables.fntype_ids) == ["si_ftype_si"]
    assert len(tables.builtin_ids) == 2


def test_duplicate_builtin_id_fails() -> None:
    source = ("[always]\n"
              "  int __builtin_a (int);\n    FOO a_insn {}\n"
              "  int __builtin_b (int);\n    FOO b_insn {}\n")

    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins(source)

    assert excinfo.value.which is InputKind.BUILTIN
    assert excinfo.value.exit_code == ExitCode.PARSE_BUILTIN
    assert _failure(excinfo) == (5, 5)


def test_unknown_attribute_reports_its_column() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[always]\n  int f (int);\n    F f_insn {init, bogus}\n")

    assert _failure(excinfo) == (3, 21)


def test_unterminated_attribute_list_fails() -> None:
    with pytest.raises(ParseFailure):
        _parse_builtins("[always]\n  int f (int);\n    F f_insn {init\n")


def test_trailing_content_after_attributes_fails() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[always]\n  int f (int);\n    F f_insn {} x\n")

    assert _failure(excinfo) == (3, 17)


def test_unknown_gating_token_fails() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[power42]\n")

    assert _failure(excinfo) == (1, 2)


def test_gating_token_with_dash_and_blanks() -> None:
    entries = _parse_builtins("[ power7-64 ]\n  int f (int);\n    F f_insn {}\n").entries

    assert entries[0].stanza is BifStanza.P7_64


def test_missing_semicolon_is_column_accurate() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[always]\n  const int __builtin_foo (int)\n    FOO foo_insn {}\n")

    assert _failure(excinfo) == (2, 32)


def test_eof_between_entry_lines_fails() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[always]\n  int f (int);\n; nothing follows\n")

    assert excinfo.value.diagnostic.line == 3


def test_entry_before_any_stanza_header_fails() -> None:
    with pytest.raises(ParseFailure):
        _parse_builtins("  int f (int);\n    F f_insn {}\n")


def test_empty_stanza_is_a_warning() -> None:
    parser = _parse_builtins("[power9]\n[always]\n  int f (int);\n    F f_insn {}\n")

    assert len(parser.entries) == 1
    assert [w.line for w in parser.bag.warnings] == [1]
    assert not parser.bag.has_errors


def test_builtin_soft_limit() -> None:
    tables = SymbolTables.with_limits(max_builtins=1)
    source = ("[always]\n"
              "  int __builtin_a (int);\n    A a_insn {}\n"
              "  int __builtin_b (int);\n    B b_insn {}\n")

    with pytest.raises(ParseFailure):
        _parse_builtins(source, tables)


# ── overload file ────────────────────────────────────────────────────────────

def test_overload_stanzas_and_entries() -> None:
    parser = _parse_overloads(
        "[OVLD_FOO, vec_foo, __builtin_vec_foo]\n  int __builtin_vec_foo (int);\n    FOO\n")

    assert len(parser.stanzas) == 1
    stanza = parser.stanzas[0]
    assert (stanza.stanza_id, stanza.extern_name, stanza.intern_name) == (
        "OVLD_FOO", "vec_foo", "__builtin_vec_foo")
    assert parser.entries[0].stanza is stanza
    assert parser.entries[0].fntype == "si_ftype_si"


def test_overload_referencing_unknown_builtin_fails() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_overloads("[O, vec_o, __builtin_vec_o]\n  int __builtin_vec_o (int);\n    BAR\n")

    assert excinfo.value.which is InputKind.OVERLOAD
    assert excinfo.value.exit_code == ExitCode.PARSE_OVERLOAD
    assert _failure(excinfo) == (3, 5)


def test_duplicate_overload_id_fails() -> None:
    source = ("[O, vec_o, __builtin_vec_o]\n"
              "  int __builtin_vec_o (int);\n    FOO\n"
              "  int __builtin_vec_o (int);\n    FOO\n")

    with pytest.raises(ParseFailure) as excinfo:
        _parse_overloads(source)

    assert excinfo.value.which is InputKind.OVERLOAD
    assert excinfo.value.diagnostic.line == 5


def test_overload_id_line_must_hold_one_identifier() -> None:
    with pytest.raises(ParseFailure):
        _parse_overloads("[O, vec_o, __builtin_vec_o]\n  int __builtin_vec_o (int);\n    FOO extra\n")


def test_malformed_overload_header_fails() -> None:
    with pytest.raises(ParseFailure):
        _parse_overloads("[O, vec_o]\n")


def test_overload_eof_between_entry_lines_fails() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_overloads("[O, vec_o, __builtin_vec_o]\n  int __builtin_vec_o (int);\n")

    assert excinfo.value.which is InputKind.OVERLOAD


def test_overload_stanza_soft_limit() -> None:
    source = ("[A, vec_a, __builtin_vec_a]\n  int __builtin_vec_a (int);\n    FOO\n"
              "[B, vec_b, __builtin_vec_b]\n")

    with pytest.raises(ParseFailure):
        _parse_overloads(source, max_overload_stanzas=1)


def test_gating_hint_stays_on_the_diagnostic_line() -> None:
    with pytest.raises(ParseFailure) as excinfo:
        _parse_builtins("[power42]\n")

    text = str(excinfo.value.diagnostic)
    assert "\n" not in text
    assert text.startswith("bif.def:1:2: ")
    assert "(hint: " in text and "power8-vector" in text

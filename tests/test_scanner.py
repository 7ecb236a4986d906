import pytest

from bifgen.error import InternalError
from bifgen.parse.scanner import Scanner


def test_advance_line_skips_blank_and_comment_lines() -> None:
    sc = Scanner.from_text("\n; comment\n   ; indented comment\n\t\n[always]\n")

    assert sc.advance_line() is True
    assert sc.line == 5
    assert sc.text == "[always]"
    assert sc.advance_line() is False


def test_advance_line_on_empty_source_reports_eof() -> None:
    assert Scanner.from_text("").advance_line() is False


def test_consume_whitespace_stops_at_end_of_line() -> None:
    sc = Scanner(["ab \t  "])
    assert sc.advance_line()
    assert sc.match_identifier() == "ab"
    sc.consume_whitespace()

    assert sc.at_end()
    assert sc.column == 7


def test_match_identifier_takes_maximal_run() -> None:
    sc = Scanner(["  VSLDOI_16QI altivec_vsldoi_v16qi {}"])
    assert sc.advance_line()
    sc.consume_whitespace()

    assert sc.column == 3
    assert sc.match_identifier() == "VSLDOI_16QI"
    sc.consume_whitespace()
    assert sc.match_identifier() == "altivec_vsldoi_v16qi"
    sc.consume_whitespace()
    assert sc.match_identifier() is None
    assert sc.peek() == "{"


def test_match_integer_accepts_leading_minus() -> None:
    sc = Scanner(["-16,15"])
    assert sc.advance_line()

    assert sc.match_integer() == -16
    assert sc.match_integer() is None
    sc.advance()
    assert sc.match_integer() == 15
    assert sc.at_end()


def test_match_until_stops_before_delimiter() -> None:
    sc = Scanner(["[ power7-64 ] "])
    assert sc.advance_line()
    sc.advance()

    assert sc.match_until("]") == " power7-64 "
    assert sc.peek() == "]"


def test_rewind_restores_cursor() -> None:
    sc = Scanner(["const int f (int);"])
    assert sc.advance_line()
    start = sc.pos
    assert sc.match_identifier() == "const"
    sc.rewind(start)

    assert sc.rest == "const int f (int);"


def test_overlong_line_is_internal_error() -> None:
    sc = Scanner(["x" * 20], max_line_length=10, path="bif.def")

    with pytest.raises(InternalError) as exc_info:
        sc.advance_line()

    assert "bif.def:1" in str(exc_info.value)


def test_comment_marker_is_configurable() -> None:
    sc = Scanner(["# skipped", "; kept"], comment_marker="#")

    assert sc.advance_line()
    assert sc.text == "; kept"
    assert sc.line == 2

from collections.abc import Callable

import pytest

from bifgen import ExitCode, GeneratorPaths
from bifgen.cli import build_arg_parser, config_from_args, main
from bifgen.error import BadArgs
from bifgen.semantic.type import BaseType

from conftest import FOO_BUILTINS


def _argv(paths: GeneratorPaths) -> list[str]:
    return [str(p) for p in (paths.builtin, paths.overload, paths.header,
                             paths.init, paths.defines)]


def test_successful_run_returns_ok(write_sources: Callable[..., GeneratorPaths]) -> None:
    paths = write_sources()

    assert main(_argv(paths)) == ExitCode.OK
    assert paths.defines.read_text(encoding="utf-8") == "#define vec_foo __builtin_vec_foo\n"


@pytest.mark.parametrize("count", [0, 4, 6])
def test_wrong_argument_count_is_bad_args(
    write_sources: Callable[..., GeneratorPaths], count: int,
    capsys: pytest.CaptureFixture[str],
) -> None:
    argv = (_argv(write_sources()) * 2)[:count]

    assert main(argv) == ExitCode.BAD_ARGS
    assert "Five arguments required" in capsys.readouterr().err


def test_parse_failure_prints_single_diagnostic_line(
    write_sources: Callable[..., GeneratorPaths], capsys: pytest.CaptureFixture[str],
) -> None:
    paths = write_sources(FOO_BUILTINS.replace("(int);", "(int)"))

    assert main(_argv(paths)) == ExitCode.PARSE_BUILTIN
    err = capsys.readouterr().err.strip()
    assert err.startswith(f"{paths.builtin}:3:32: ")
    assert not paths.header.exists()


def test_overload_parse_failure_exit_code(
    write_sources: Callable[..., GeneratorPaths],
) -> None:
    paths = write_sources(overloads="[O, vec_o]\n")

    assert main(_argv(paths)) == ExitCode.PARSE_OVERLOAD


def test_missing_input_exit_code(
    write_sources: Callable[..., GeneratorPaths], capsys: pytest.CaptureFixture[str],
) -> None:
    paths = write_sources()
    paths.overload.unlink()

    assert main(_argv(paths)) == ExitCode.NO_OVERLOAD_INPUT
    assert "Cannot find input overload file" in capsys.readouterr().err


def test_unknown_option_is_bad_args(write_sources: Callable[..., GeneratorPaths]) -> None:
    assert main(["--no-such-option", *_argv(write_sources())]) == ExitCode.BAD_ARGS


def test_bad_base_type_keyword_is_bad_args(
    write_sources: Callable[..., GeneratorPaths],
) -> None:
    argv = ["--base-types", "int,quad", *_argv(write_sources())]

    assert main(argv) == ExitCode.BAD_ARGS


def test_policy_options_build_config() -> None:
    args = build_arg_parser().parse_args(
        ["--max-restricted-operands", "1", "--base-types", "char, long long",
         "--prefix", "ppc", "--max-line-length", "200", "a", "b", "c", "d", "e"])
    config = config_from_args(args)

    assert config.max_restricted_operands == 1
    assert config.base_types == frozenset({BaseType.CHAR, BaseType.LONGLONG})
    assert config.target_prefix == "ppc"
    assert config.max_line_length == 200


def test_invalid_prefix_is_rejected() -> None:
    args = build_arg_parser().parse_args(["--prefix", "9bad", "a", "b", "c", "d", "e"])

    with pytest.raises(BadArgs):
        config_from_args(args)


def test_overlong_line_is_internal_error_and_removes_outputs(
    write_sources: Callable[..., GeneratorPaths], capsys: pytest.CaptureFixture[str],
) -> None:
    paths = write_sources()

    assert main(["--max-line-length", "20", *_argv(paths)]) == ExitCode.INTERNAL
    assert "internal error" in capsys.readouterr().err
    assert not any(p.exists() for p in (paths.header, paths.init, paths.defines))


def test_invalid_utf8_input_reports_its_position(
    write_sources: Callable[..., GeneratorPaths], capsys: pytest.CaptureFixture[str],
) -> None:
    paths = write_sources()
    paths.overload.write_bytes(b"; caf\xe9\n")

    assert main(_argv(paths)) == ExitCode.PARSE_OVERLOAD
    assert capsys.readouterr().err.startswith(f"{paths.overload}:1:6: ")

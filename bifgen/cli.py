"""
命令行入口

    bifgen [-v] [选项] <builtin-file> <overload-file> <header> <init> <defines>

诊断打印到 stderr，进程退出码区分失败阶段（见 ExitCode）。
"""

from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import replace

from .config import GeneratorConfig
from .error import BadArgs, ExitCode, GeneratorError, ParseFailure
from .pipeline import BuiltinGenerator, GeneratorPaths

log = logging.getLogger(__name__)

_POSITIONALS = ('builtin', 'overload', 'header', 'init', 'defines')


class _ArgumentParser(argparse.ArgumentParser):
    """参数错误不直接退出，而是交给 main() 按 BadArgs 处理"""

    def error(self, message):
        raise BadArgs(message)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='bifgen',
        description='Generate builtin declarations and initialization code '
                    'from builtin and overload description files.')
    parser.add_argument('paths', nargs='*', metavar='FILE',
                        help='builtin input, overload input, header output, '
                             'init output, defines output')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='-v for progress, -vv for debug dumps')
    parser.add_argument('--max-restricted-operands', type=int, default=None,
                        help='restricted operands allowed per prototype')
    parser.add_argument('--base-types', default=None,
                        help='comma separated scalar base type keywords')
    parser.add_argument('--prefix', default=None,
                        help='prefix of generated identifiers')
    parser.add_argument('--max-line-length', type=int, default=None,
                        help='longest accepted input line')
    return parser


def config_from_args(args) -> GeneratorConfig:
    config = GeneratorConfig()
    if args.max_restricted_operands is not None:
        config = replace(config, max_restricted_operands=args.max_restricted_operands)
    if args.prefix is not None:
        config = replace(config, target_prefix=args.prefix)
    if args.max_line_length is not None:
        config = replace(config, max_line_length=args.max_line_length)
    try:
        if args.base_types is not None:
            config = config.with_base_keywords(
                kw for kw in args.base_types.split(',') if kw.strip())
        return config.validate()
    except ValueError as e:
        raise BadArgs(str(e)) from None


def _setup_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr,
                        format='%(levelname)s %(name)s: %(message)s')


def main(argv=None) -> int:
    try:
        args = build_arg_parser().parse_args(argv)
        _setup_logging(args.verbose)
        if len(args.paths) != len(_POSITIONALS):
            raise BadArgs("Five arguments required: two input files and three output files.")
        config = config_from_args(args)
        result = BuiltinGenerator(config).run(GeneratorPaths.of(*args.paths))
    except ParseFailure as e:
        print(e.diagnostic, file=sys.stderr)
        return int(e.exit_code)
    except GeneratorError as e:
        print(e.message if not isinstance(e, BadArgs) else f"bifgen: {e.message}",
              file=sys.stderr)
        return int(e.exit_code)

    for warning in result.warnings:
        print(warning, file=sys.stderr)
    log.info("生成完成：%s, %s, %s", result.paths.header, result.paths.init,
             result.paths.defines)
    return int(ExitCode.OK)


if __name__ == '__main__':
    sys.exit(main())

"""
bifgen 生成流水线
==================
把 读取输入 → 创建输出 → 解析内置函数文件 → 解析重载文件 → 写出产物
串联为一个高层接口。

阶段顺序是严格的：重载文件引用内置函数 id，必须在内置函数文件
完整解析之后处理；生成阶段开始前所有注册表都已关闭。
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .codegen.writer import defines_text, header_text, init_text
from .config import GeneratorConfig, DEFAULT_CONFIG
from .error import (
    DiagnosticBag, InputKind, InputNotFound, OutputKind,
    OutputNotCreatable, ParseFailure, WriteFailure,
)
from .parse.stanza import BuiltinFileParser, OverloadFileParser
from .semantic.entry import BuiltinEntry, OverloadEntry, OverloadStanza
from .semantic.symbol import SymbolTables

log = logging.getLogger(__name__)


# ─── 结果对象 ──────────────────────────────────────────────────────────────────

@dataclass
class GeneratorModel:
    """解析并校验完成的模型；注册表已关闭"""
    builtins:         list[BuiltinEntry]
    overload_stanzas: list[OverloadStanza]
    overloads:        list[OverloadEntry]
    tables:           SymbolTables
    builtin_path:     str = '<builtin>'
    overload_path:    str = '<overload>'
    diags:            list[DiagnosticBag] = field(default_factory=list)

    def overload_chains(self) -> dict[str, list[OverloadEntry]]:
        """外部名 → 条目列表；键与条目都保持首次出现的顺序"""
        chains: dict[str, list[OverloadEntry]] = {}
        for entry in self.overloads:
            chains.setdefault(entry.stanza.extern_name, []).append(entry)
        return chains

    @property
    def warnings(self):
        return [w for bag in self.diags for w in bag.warnings]


@dataclass
class GeneratedSources:
    header:  str
    init:    str
    defines: str


@dataclass
class GeneratorPaths:
    """命令行的五个位置参数"""
    builtin:  Path
    overload: Path
    header:   Path
    init:     Path
    defines:  Path

    @classmethod
    def of(cls, *paths) -> 'GeneratorPaths':
        return cls(*(Path(p) for p in paths))

    def outputs(self) -> list[tuple[OutputKind, Path]]:
        return [(OutputKind.DECL, self.header),
                (OutputKind.DEF, self.init),
                (OutputKind.ALIAS, self.defines)]


@dataclass
class GeneratorResult:
    model:   GeneratorModel
    sources: GeneratedSources
    paths:   GeneratorPaths

    @property
    def warnings(self):
        return self.model.warnings


# ─── 输出文件 ──────────────────────────────────────────────────────────────────

class OutputFiles:
    """
    三个输出文件的所有者。

    创建阶段任何一个失败，已创建的文件立即关闭并删除；
    之后的任何失败由调用方通过 discard() 清理。
    """

    def __init__(self, paths: GeneratorPaths):
        self.paths = paths
        self._files: dict[OutputKind, object] = {}

    def create(self):
        for kind, path in self.paths.outputs():
            try:
                self._files[kind] = open(path, 'w', encoding='utf-8', newline='\n')
            except OSError:
                self.discard()
                raise OutputNotCreatable(kind, path) from None

    def write(self, kind: OutputKind, text: str):
        try:
            f = self._files[kind]
            f.write(text)
            f.flush()
        except OSError as e:
            raise WriteFailure(kind, dict(self.paths.outputs())[kind], e.strerror or '') from None

    def close(self):
        for f in self._files.values():
            f.close()
        self._files.clear()

    def discard(self):
        created = [dict(self.paths.outputs())[k] for k in self._files]
        for f in self._files.values():
            f.close()
        self._files.clear()
        for path in created:
            path.unlink(missing_ok=True)
            log.debug("已删除输出 %s", path)


# ─── 主流水线 ─────────────────────────────────────────────────────────────────

class BuiltinGenerator:
    """
    内置函数 / 重载代码生成器。

    主要流程：
      1. BuiltinFileParser   → 内置函数条目 + builtin_ids + fntype_ids
      2. OverloadFileParser  → 重载 stanza / 条目 + overload_ids
      3. 关闭注册表，codegen 生成三个产物

    用法::

        gen = BuiltinGenerator()
        result = gen.run(GeneratorPaths.of('bif.def', 'overload.def',
                                           'builtins.h', 'builtins.c', 'vecdefines.h'))
    """

    def __init__(self, config: GeneratorConfig = DEFAULT_CONFIG):
        self.config = config.validate()

    # ── 解析 ───────────────────────────────────────────────────────────────

    def parse_text(self, builtin_text: str, overload_text: str,
                   builtin_path: str = '<builtin>',
                   overload_path: str = '<overload>') -> GeneratorModel:
        """纯解析 + 校验，不涉及文件 I/O。失败抛出 ParseFailure"""
        cfg = self.config
        tables = SymbolTables.with_limits(cfg.max_builtins, cfg.max_overloads)

        # ── Step 1: 内置函数文件 ────────────────────────────────────────
        bif_bag = DiagnosticBag(builtin_path)
        bifs = BuiltinFileParser(builtin_text, bif_bag, tables, cfg).parse()
        tables.builtin_ids.close()
        log.info("内置函数：%d 个条目，%d 个函数类型",
                 len(bifs.entries), len(tables.fntype_ids))

        # ── Step 2: 重载文件 ────────────────────────────────────────────
        ovld_bag = DiagnosticBag(overload_path)
        ovlds = OverloadFileParser(overload_text, ovld_bag, tables, cfg).parse()
        tables.close()
        log.info("重载：%d 个 stanza，%d 个条目",
                 len(ovlds.stanzas), len(ovlds.entries))
        log.debug("注册表\n%s", tables.dump())

        return GeneratorModel(bifs.entries, ovlds.stanzas, ovlds.entries, tables,
                              builtin_path, overload_path, [bif_bag, ovld_bag])

    # ── 生成 ───────────────────────────────────────────────────────────────

    def generate(self, model: GeneratorModel,
                 header_name: str = 'rs6000-builtins.h') -> GeneratedSources:
        return GeneratedSources(
            header=header_text(model, self.config),
            init=init_text(model, self.config, header_name),
            defines=defines_text(model),
        )

    # ── 完整运行 ───────────────────────────────────────────────────────────

    def run(self, paths: GeneratorPaths) -> GeneratorResult:
        builtin_text = _read_input(InputKind.BUILTIN, paths.builtin)
        overload_text = _read_input(InputKind.OVERLOAD, paths.overload)

        outputs = OutputFiles(paths)
        outputs.create()
        try:
            model = self.parse_text(builtin_text, overload_text,
                                    str(paths.builtin), str(paths.overload))
            sources = self.generate(model, paths.header.name)
            outputs.write(OutputKind.DECL, sources.header)
            outputs.write(OutputKind.DEF, sources.init)
            outputs.write(OutputKind.ALIAS, sources.defines)
        except Exception:
            outputs.discard()
            raise
        outputs.close()
        return GeneratorResult(model, sources, paths)


def _read_input(which: InputKind, path: Path) -> str:
    try:
        data = path.read_bytes()
    except OSError:
        raise InputNotFound(which, path) from None
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        line = data.count(b'\n', 0, e.start) + 1
        column = e.start - (data.rfind(b'\n', 0, e.start) + 1) + 1
        diag = DiagnosticBag(str(path)).error(
            f"输入不是合法的 UTF-8（字节 0x{data[e.start]:02x}）", line, column)
        raise ParseFailure(which, diag) from None

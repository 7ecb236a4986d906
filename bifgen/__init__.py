"""
bifgen - 内置函数 / 重载代码生成器
=====================================
模块结构：
  bifgen/
    __init__.py          本文件：公共 API
    error.py             诊断信息与退出码
    config.py            生成器配置
    pipeline.py          解析 → 校验 → 生成 流水线
    cli.py               命令行入口
    parse/
      scanner.py         行扫描器
      grammar.py         原型 Lark grammar
      prototype.py       原型 Transformer
      stanza.py          两种输入文件的解析器
    semantic/
      type.py            类型描述符与原型
      entry.py           条目、stanza、属性
      symbol.py          注册表
      mangle.py          函数类型 mangler
    codegen/
      writer.py          三个产物的生成
      typenode.py        mangle 片段 → 类型节点

快速使用示例：

    from bifgen import BuiltinGenerator

    gen = BuiltinGenerator()
    model = gen.parse_text(builtin_source, overload_source)
    sources = gen.generate(model)
    print(sources.header)
"""

from .pipeline import (
    BuiltinGenerator, GeneratorModel, GeneratedSources, GeneratorPaths, GeneratorResult,
)
from .config import GeneratorConfig, DEFAULT_CONFIG
from .error import (
    Diagnostic, DiagnosticBag, ExitCode, GeneratorError, BadArgs, InputNotFound,
    OutputNotCreatable, ParseFailure, WriteFailure, InternalError,
)
from .semantic.mangle import mangle

__all__ = [
    'BuiltinGenerator', 'GeneratorModel', 'GeneratedSources', 'GeneratorPaths',
    'GeneratorResult',
    'GeneratorConfig', 'DEFAULT_CONFIG',
    'Diagnostic', 'DiagnosticBag', 'ExitCode', 'GeneratorError', 'BadArgs',
    'InputNotFound', 'OutputNotCreatable', 'ParseFailure', 'WriteFailure', 'InternalError',
    'mangle',
]

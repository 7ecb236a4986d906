"""
bifgen 诊断与错误体系
======================
生成器采用"首错即停"策略：任何语法违例都立即终止本次运行，
不做错误恢复。诊断信息先写入当前文件绑定的 DiagnosticBag，
再以异常形式抛出，由 pipeline / cli 统一处理退出码与输出清理。
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto


class ErrorSeverity(Enum):
    WARNING = auto()
    ERROR   = auto()


class ExitCode(IntEnum):
    """进程退出码，每个阶段一个"""
    OK                = 0
    BAD_ARGS          = 1
    NO_BUILTIN_INPUT  = 2
    NO_OVERLOAD_INPUT = 3
    NO_HEADER         = 4
    NO_INIT           = 5
    NO_DEFINES        = 6
    PARSE_BUILTIN     = 7
    PARSE_OVERLOAD    = 8
    WRITE_HEADER      = 9
    WRITE_INIT        = 10
    WRITE_DEFINES     = 11
    INTERNAL          = 12


class InputKind(Enum):
    BUILTIN  = 'builtin'
    OVERLOAD = 'overload'


class OutputKind(Enum):
    DECL  = 'decl'       # 声明（头文件）
    DEF   = 'def'        # 定义（初始化代码）
    ALIAS = 'alias'      # 宏别名


@dataclass
class Diagnostic:
    """一条诊断信息"""
    severity: ErrorSeverity
    message:  str
    path:     str = '<input>'
    line:     int = -1
    column:   int = -1
    hint:     str = ''       # 可选修复提示

    def __str__(self):
        loc = self.path
        if self.line > 0:
            loc += f":{self.line}"
            if self.column > 0:
                loc += f":{self.column}"
        base = f"{loc}: {self.message}"
        if self.severity == ErrorSeverity.WARNING:
            base = f"{loc}: warning: {self.message}"
        if self.hint:
            base += f" (hint: {self.hint})"
        return base


class DiagnosticBag:
    """
    诊断信息收集袋，绑定到单个输入文件。

    每个文件处理阶段新建一个 bag，path 只绑定一次，
    解析器无需再关心"当前在处理哪个文件"。
    """
    def __init__(self, path: str = '<input>'):
        self.path = path
        self._diags: list[Diagnostic] = []

    # ── 添加诊断 ────────────────────────────────────────────────────────────

    def error(self, message: str, line: int = -1, column: int = -1,
              hint: str = '') -> Diagnostic:
        diag = Diagnostic(ErrorSeverity.ERROR, message, self.path, line, column, hint)
        self._diags.append(diag)
        return diag

    def warning(self, message: str, line: int = -1, column: int = -1,
                hint: str = '') -> Diagnostic:
        diag = Diagnostic(ErrorSeverity.WARNING, message, self.path, line, column, hint)
        self._diags.append(diag)
        return diag

    # ── 查询 ────────────────────────────────────────────────────────────────

    @property
    def has_errors(self) -> bool:
        return any(d.severity == ErrorSeverity.ERROR for d in self._diags)

    @property
    def errors(self):
        return [d for d in self._diags if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self):
        return [d for d in self._diags if d.severity == ErrorSeverity.WARNING]


# ─── 异常体系 ──────────────────────────────────────────────────────────────────

class GeneratorError(Exception):
    """所有致命错误的基类，携带进程退出码"""
    exit_code = ExitCode.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadArgs(GeneratorError):
    exit_code = ExitCode.BAD_ARGS


class InputNotFound(GeneratorError):
    def __init__(self, which: InputKind, path):
        super().__init__(f"Cannot find input {which.value} file '{path}'.")
        self.which = which
        self.path  = path
        self.exit_code = (ExitCode.NO_BUILTIN_INPUT if which == InputKind.BUILTIN
                          else ExitCode.NO_OVERLOAD_INPUT)


_OUTPUT_CREATE_CODES = {
    OutputKind.DECL:  ExitCode.NO_HEADER,
    OutputKind.DEF:   ExitCode.NO_INIT,
    OutputKind.ALIAS: ExitCode.NO_DEFINES,
}

_OUTPUT_WRITE_CODES = {
    OutputKind.DECL:  ExitCode.WRITE_HEADER,
    OutputKind.DEF:   ExitCode.WRITE_INIT,
    OutputKind.ALIAS: ExitCode.WRITE_DEFINES,
}


class OutputNotCreatable(GeneratorError):
    def __init__(self, which: OutputKind, path):
        super().__init__(f"Cannot open {which.value} file '{path}' for output.")
        self.which = which
        self.path  = path
        self.exit_code = _OUTPUT_CREATE_CODES[which]


class ParseFailure(GeneratorError):
    """语法违例：诊断已写入 bag，异常只负责中止"""
    def __init__(self, which: InputKind, diagnostic: Diagnostic):
        super().__init__(str(diagnostic))
        self.which = which
        self.diagnostic = diagnostic
        self.exit_code = (ExitCode.PARSE_BUILTIN if which == InputKind.BUILTIN
                          else ExitCode.PARSE_OVERLOAD)


class WriteFailure(GeneratorError):
    def __init__(self, which: OutputKind, path, reason: str = ''):
        message = f"Output to '{path}' failed, aborting."
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.which = which
        self.path  = path
        self.exit_code = _OUTPUT_WRITE_CODES[which]


class InternalError(GeneratorError):
    """
    不应发生的内部条件（行长度溢出、mangler 遇到未处理的基础类型等）。
    属于程序错误，而非用户输入错误。
    """
    exit_code = ExitCode.INTERNAL

    def __init__(self, message: str, path: str = '', line: int = -1):
        loc = ''
        if path:
            loc = f"{path}:{line}: " if line > 0 else f"{path}: "
        super().__init__(f"{loc}internal error: {message}")
        self.path = path
        self.line = line

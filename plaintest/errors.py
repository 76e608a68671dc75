"""异常定义"""

from typing import Optional


class PlaintestError(Exception):
    """所有 plaintest 异常的基类"""


class ConfigError(PlaintestError):
    """配置值非法"""


class ScriptSyntaxError(PlaintestError):
    """脚本语法错误，执行前抛出"""

    def __init__(self, message: str, line: int, source: str = ""):
        self.message = message
        self.line = line
        self.source = source
        text = f"line {line}: {message}"
        if source:
            text += f" -> {source}"
        super().__init__(text)


class CommandError(PlaintestError):
    """可恢复的命令失败，可被 catch-error 或 if 条件吸收"""


class LocateError(CommandError):
    """所有定位策略在超时内都没有命中"""

    def __init__(self, descriptor: str, timeout: Optional[float] = None):
        self.descriptor = descriptor
        self.timeout = timeout
        message = f"could not locate element {descriptor!r}"
        if timeout is not None:
            message += f" within {timeout:g}s"
        super().__init__(message)


class TransportError(CommandError):
    """Session 调用失败"""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class NoElementError(CommandError):
    """命令需要元素，但还没有 locate 过任何元素"""

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"no element located for {command}; use locate first")

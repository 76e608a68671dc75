"""plaintest 包：纯英文浏览器测试脚本的执行引擎

包含各个模块：
- models: 数据模型（语句、命令、运行结果）
- lexer / parser: 脚本解析
- variables: 变量表
- context: 执行上下文
- resolver: 元素定位
- session: 浏览器会话接口与 Playwright 实现
- interpreter: 解释器
- artifacts / datatable / runner / cli: 外围工具
"""

from .config import EngineConfig
from .context import ExecutionContext
from .errors import (
    CommandError,
    ConfigError,
    LocateError,
    NoElementError,
    PlaintestError,
    ScriptSyntaxError,
    TransportError,
)
from .interpreter import Interpreter, run_script
from .models import Query, RunResult, RunState, StatementStatus, Strategy
from .parser import parse
from .resolver import LocatorResolver
from .variables import VariableStore

__all__ = [
    "EngineConfig",
    "ExecutionContext",
    "CommandError",
    "ConfigError",
    "LocateError",
    "NoElementError",
    "PlaintestError",
    "ScriptSyntaxError",
    "TransportError",
    "Interpreter",
    "run_script",
    "Query",
    "RunResult",
    "RunState",
    "StatementStatus",
    "Strategy",
    "parse",
    "LocatorResolver",
    "VariableStore",
]

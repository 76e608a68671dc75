"""数据模型定义"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


# ──────────────────────────────────────────────
# 参数
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Param:
    """字符串字面量或变量引用，执行时才解析"""
    value: str
    is_literal: bool = True

    def __str__(self) -> str:
        if self.is_literal:
            return '"' + self.value.replace("\\", "\\\\").replace('"', '\\"') + '"'
        return self.value


# ──────────────────────────────────────────────
# 命令
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Locate:
    descriptor: Param
    scroll: bool = True


@dataclass(frozen=True)
class Click:
    pass


@dataclass(frozen=True)
class Type:
    value: Param


@dataclass(frozen=True)
class Save:
    """value 为空时保存最近定位元素的文本"""
    name: str
    value: Optional[Param] = None


@dataclass(frozen=True)
class ReadTo:
    name: str


@dataclass(frozen=True)
class Screenshot:
    pass


@dataclass(frozen=True)
class Url:
    target: Param


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class Press:
    key: Param


@dataclass(frozen=True)
class Chill:
    seconds: Param


@dataclass(frozen=True)
class Select:
    option: Param


@dataclass(frozen=True)
class DragTo:
    descriptor: Param


@dataclass(frozen=True)
class Upload:
    path: Param


Command = Union[
    Locate, Click, Type, Save, ReadTo, Screenshot, Url,
    Refresh, Press, Chill, Select, DragTo, Upload,
]
Chain = Tuple[Command, ...]


# ──────────────────────────────────────────────
# 语句
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Action:
    """普通命令链：cmd and cmd and ..."""
    chain: Chain
    line: int = 0
    source: str = ""


@dataclass(frozen=True)
class Conditional:
    """if <condition> then <action>"""
    condition: Command
    action: Chain
    line: int = 0
    source: str = ""


@dataclass(frozen=True)
class ErrorCatch:
    """catch-error: <action>"""
    action: Chain
    line: int = 0
    source: str = ""


@dataclass(frozen=True)
class Scoped:
    """under <descriptor> <inner>"""
    scope_descriptor: Param
    inner: "Statement"
    line: int = 0
    source: str = ""


Statement = Union[Action, Conditional, ErrorCatch, Scoped]


# ──────────────────────────────────────────────
# 定位策略
# ──────────────────────────────────────────────

class Strategy(Enum):
    """定位策略，按优先级排列"""
    LABEL_FOR = "label_for"
    LABEL_CONTAINS = "label_contains"
    TEXT = "text"
    TITLE = "title"
    ID = "id"
    CLASS = "class"
    NAME = "name"
    XPATH = "xpath"


@dataclass(frozen=True)
class Query:
    """交给 Session 执行的单条查询"""
    strategy: Strategy
    value: str


# ──────────────────────────────────────────────
# 执行结果
# ──────────────────────────────────────────────

class RunState(Enum):
    RUNNING = "running"
    HALTED_ON_ERROR = "halted_on_error"
    COMPLETED = "completed"


class StatementStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


@dataclass
class StatementRecord:
    """单条语句的执行记录"""
    index: int
    line: int
    source: str
    status: StatementStatus = StatementStatus.SKIPPED
    error: Optional[Exception] = None
    recovered: bool = False
    detail: Optional[str] = None


@dataclass
class RunResult:
    """一次脚本执行的结果，交给外部报告模块"""
    state: RunState
    records: List[StatementRecord] = field(default_factory=list)
    error: Optional[Exception] = None
    failed_statement: Optional[StatementRecord] = None
    variables: Dict[str, str] = field(default_factory=dict)
    screenshots: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.COMPLETED

    def format_log(self) -> str:
        """格式化执行日志，每条语句一行"""
        lines = []
        for rec in self.records:
            if rec.status == StatementStatus.SKIPPED:
                continue
            lines.append(f"Info: {rec.source}")
            if rec.detail:
                lines.append(f"Info: {rec.detail}")
            if rec.status == StatementStatus.FAILURE:
                suffix = " (recovered)" if rec.recovered else ""
                lines.append(f"Error: {rec.error}{suffix}")

        if self.state == RunState.HALTED_ON_ERROR and self.failed_statement is not None:
            lines.append(
                f"Error: halted at line {self.failed_statement.line}: "
                f"{self.failed_statement.source}"
            )

        return "\n".join(lines) + ("\n" if lines else "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "error": str(self.error) if self.error else None,
            "failed_line": self.failed_statement.line if self.failed_statement else None,
            "screenshots": self.screenshots,
            "variables": dict(self.variables),
            "records": [
                {
                    "line": rec.line,
                    "source": rec.source,
                    "status": rec.status.value,
                    "recovered": rec.recovered,
                    "detail": rec.detail,
                    "error": str(rec.error) if rec.error else None,
                }
                for rec in self.records
            ],
        }

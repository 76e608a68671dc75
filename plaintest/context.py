"""执行上下文：一次运行的全部可变状态"""

from contextlib import contextmanager
from typing import Any, Iterator, Optional

from .errors import CommandError
from .models import RunState
from .variables import VariableStore


class ExecutionContext:
    """
    每次运行一个实例，只由 Interpreter 修改。

    - scope_root: 定位范围，None 表示整个文档
    - last_element: 最近定位到的元素，后续命令默认作用于它
    - variables: 变量表
    - pending_error: 等待下一条 catch-error 消费的错误
    """

    def __init__(self):
        self.scope_root: Optional[Any] = None
        self.last_element: Optional[Any] = None
        self.variables = VariableStore()
        self.pending_error: Optional[CommandError] = None
        self.state = RunState.RUNNING
        self.highlighted: Optional[Any] = None

    @contextmanager
    def scoped(self, scope: Any) -> Iterator[None]:
        """临时收窄定位范围，退出时无论成败都恢复"""
        previous = self.scope_root
        self.scope_root = scope
        try:
            yield
        finally:
            self.scope_root = previous

    def take_pending_error(self) -> Optional[CommandError]:
        error = self.pending_error
        self.pending_error = None
        return error

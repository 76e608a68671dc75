"""解释器：逐条执行语句，驱动浏览器会话"""

import asyncio
import logging
import math
from typing import Any, Optional, Sequence

from .artifacts import ArtifactStore, MemoryArtifactStore
from .config import EngineConfig
from .context import ExecutionContext
from .errors import CommandError, NoElementError, TransportError
from .models import (
    Action,
    Chain,
    Chill,
    Click,
    Command,
    Conditional,
    DragTo,
    ErrorCatch,
    Locate,
    Param,
    Press,
    ReadTo,
    Refresh,
    RunResult,
    RunState,
    Save,
    Scoped,
    Screenshot,
    Select,
    Statement,
    StatementRecord,
    StatementStatus,
    Type,
    Upload,
    Url,
)
from .parser import parse
from .resolver import LocatorResolver

logger = logging.getLogger(__name__)

CONDITION_NOT_MET = "condition not met, action skipped"
NO_PENDING_ERROR = "no pending error"


class Interpreter:
    """
    脚本解释器。

    状态机：Running → Completed | HaltedOnError。
    一条语句失败后不立即停机，而是记下 pending_error 并看下一条语句：
    是 catch-error 就消费错误并执行其命令链，否则停机，后续语句全部跳过。
    if 的条件失败只在本地吸收，不产生 pending_error。
    """

    def __init__(
        self,
        session,
        config: Optional[EngineConfig] = None,
        artifacts: Optional[ArtifactStore] = None,
    ):
        self.session = session
        self.config = config or EngineConfig()
        self.artifacts = artifacts if artifacts is not None else MemoryArtifactStore()
        self.resolver = LocatorResolver(
            session,
            timeout=self.config.locate_timeout,
            poll_interval=self.config.poll_interval,
            max_poll_interval=self.config.max_poll_interval,
        )
        self.context: Optional[ExecutionContext] = None
        self._screenshots = 0

    async def run_script(self, source: str) -> RunResult:
        """解析后执行；语法错误在执行前抛出 ScriptSyntaxError"""
        return await self.run(parse(source))

    async def run(self, statements: Sequence[Statement]) -> RunResult:
        """
        从上到下执行一遍语句，返回运行结果。
        每次运行都使用新的 ExecutionContext。
        """
        ctx = ExecutionContext()
        self.context = ctx
        self._screenshots = 0

        records = [
            StatementRecord(index=i, line=stmt.line, source=stmt.source)
            for i, stmt in enumerate(statements)
        ]
        failed: Optional[StatementRecord] = None

        for i, stmt in enumerate(statements):
            record = records[i]

            if ctx.pending_error is not None:
                if isinstance(stmt, ErrorCatch):
                    error = ctx.take_pending_error()
                    failed.recovered = True
                    logger.info("⚠ 第 %d 行的错误被 catch-error 捕获: %s", failed.line, error)
                else:
                    ctx.state = RunState.HALTED_ON_ERROR
                    break
            elif isinstance(stmt, ErrorCatch):
                # 没有待处理错误时 catch-error 不执行，记为 skipped 而不是 success
                record.detail = NO_PENDING_ERROR
                logger.debug("跳过 catch-error（没有待处理错误）: %s", stmt.source)
                continue

            logger.info("▶ 第 %d 行: %s", stmt.line, stmt.source)
            try:
                record.detail = await self._execute_statement(stmt)
            except CommandError as e:
                record.status = StatementStatus.FAILURE
                record.error = e
                ctx.pending_error = e
                failed = record
                logger.error("❌ 第 %d 行失败: %s", stmt.line, e)
            else:
                record.status = StatementStatus.SUCCESS

        # 最后一条语句失败且没有 catch-error 时同样停机
        if ctx.pending_error is not None:
            ctx.state = RunState.HALTED_ON_ERROR

        if ctx.state == RunState.HALTED_ON_ERROR:
            logger.error("❌ 脚本在第 %d 行停止: %s", failed.line, failed.error)
            result = RunResult(
                state=RunState.HALTED_ON_ERROR,
                records=records,
                error=ctx.pending_error,
                failed_statement=failed,
            )
        else:
            ctx.state = RunState.COMPLETED
            logger.info("✓ 脚本执行完成（共 %d 条语句）", len(statements))
            result = RunResult(state=RunState.COMPLETED, records=records)

        result.variables = ctx.variables.snapshot()
        result.screenshots = self._screenshots
        return result

    # ──────────────────────────────────────────
    # 语句
    # ──────────────────────────────────────────

    async def _execute_statement(self, stmt: Statement) -> Optional[str]:
        """执行单条语句，失败抛出 CommandError；返回可选的说明文字"""
        if isinstance(stmt, (Action, ErrorCatch)):
            await self._execute_chain(stmt.chain if isinstance(stmt, Action) else stmt.action)
            return None

        if isinstance(stmt, Conditional):
            try:
                await self._execute_command(stmt.condition)
            except CommandError as e:
                logger.info("⚠ 条件不成立，跳过: %s", e)
                return CONDITION_NOT_MET
            await self._execute_chain(stmt.action)
            return None

        if isinstance(stmt, Scoped):
            ctx = self.context
            descriptor = ctx.variables.resolve(stmt.scope_descriptor)
            scope = await self.resolver.resolve(descriptor, ctx.scope_root, scroll=False)
            logger.info("✓ 进入范围 %r", descriptor)
            with ctx.scoped(scope):
                return await self._execute_statement(stmt.inner)

        raise TypeError(f"unknown statement: {stmt!r}")

    async def _execute_chain(self, chain: Chain):
        for command in chain:
            await self._execute_command(command)

    # ──────────────────────────────────────────
    # 命令
    # ──────────────────────────────────────────

    async def _execute_command(self, command: Command):
        if self.config.command_delay:
            await asyncio.sleep(self.config.command_delay)

        if isinstance(command, Locate):
            await self._locate(command.descriptor, command.scroll)
        elif isinstance(command, Click):
            await self._click()
        elif isinstance(command, Type):
            await self._type(command.value)
        elif isinstance(command, Save):
            await self._save(command)
        elif isinstance(command, ReadTo):
            await self._read_to(command.name)
        elif isinstance(command, Screenshot):
            await self._screenshot()
        elif isinstance(command, Url):
            await self._url(command.target)
        elif isinstance(command, Refresh):
            await self._refresh()
        elif isinstance(command, Press):
            await self._press(command.key)
        elif isinstance(command, Chill):
            await self._chill(command.seconds)
        elif isinstance(command, Select):
            await self._select(command.option)
        elif isinstance(command, DragTo):
            await self._drag_to(command.descriptor)
        elif isinstance(command, Upload):
            await self._upload(command.path)
        else:
            raise TypeError(f"unknown command: {command!r}")

    def _resolve(self, param: Param) -> str:
        return self.context.variables.resolve(param)

    def _current_element(self, command: str) -> Any:
        element = self.context.last_element
        if element is None:
            raise NoElementError(command)
        return element

    async def _locate(self, param: Param, scroll: bool):
        descriptor = self._resolve(param)
        element = await self.resolver.resolve(descriptor, self.context.scope_root, scroll=scroll)
        await self._set_current_element(element)
        logger.info("✓ 定位 %r", descriptor)

    async def _set_current_element(self, element: Any):
        ctx = self.context
        if self.config.demo:
            await self.session.highlight(element, True)
            previous = ctx.highlighted
            if previous is not None and previous is not element:
                try:
                    await self.session.highlight(previous, False)
                except TransportError as e:
                    # 旧元素可能已失效
                    logger.debug("取消高亮失败: %s", e)
            ctx.highlighted = element
        ctx.last_element = element

    async def _click(self):
        await self.session.click(self._current_element("click"))
        logger.info("✓ 点击")

    async def _type(self, param: Param):
        element = self._current_element("type")
        text = self._resolve(param)
        await self.session.type_text(element, text)
        logger.info("✓ 输入 %r", text)

    async def _save(self, command: Save):
        if command.value is not None:
            value = self._resolve(command.value)
        else:
            value = await self.session.read_text(self._current_element("save"))
        self.context.variables.set(command.name, value)
        logger.info("✓ 保存 %s = %r", command.name, value)

    async def _read_to(self, name: str):
        text = await self.session.read_text(self._current_element("read-to"))
        self.context.variables.set(name, text)
        logger.info("✓ 读取 %s = %r", name, text)

    async def _screenshot(self):
        data = await self.session.screenshot()
        self._screenshots += 1
        name = self.artifacts.save_screenshot(data, f"screenshot_{self._screenshots}")
        logger.info("✓ 截图 %s", name)

    async def _url(self, param: Param):
        url = self._resolve(param)
        await self.session.navigate(url)
        self._forget_element()
        logger.info("✓ 打开 %s", url)

    async def _refresh(self):
        await self.session.refresh()
        self._forget_element()
        logger.info("✓ 刷新页面")

    def _forget_element(self):
        # 页面已变化，旧句柄失效
        self.context.last_element = None
        self.context.highlighted = None

    async def _press(self, param: Param):
        key = self._resolve(param)
        await self.session.press_key(self._current_element("press"), key)
        logger.info("✓ 按键 %s", key)

    async def _chill(self, param: Param):
        raw = self._resolve(param)
        try:
            seconds = float(raw)
        except ValueError:
            raise CommandError(f"chill expects a number of seconds, got {raw!r}") from None
        if not math.isfinite(seconds) or seconds < 0:
            raise CommandError(f"chill expects a finite non-negative number, got {raw!r}")
        await asyncio.sleep(seconds)
        logger.info("✓ 等待 %ss", raw)

    async def _select(self, param: Param):
        option = self._resolve(param)
        await self.session.select_option(self._current_element("select"), option)
        logger.info("✓ 选择 %r", option)

    async def _drag_to(self, param: Param):
        source = self._current_element("drag-to")
        descriptor = self._resolve(param)
        target = await self.resolver.resolve(descriptor, self.context.scope_root, scroll=False)
        await self.session.drag_to(source, target)
        await self._set_current_element(target)
        logger.info("✓ 拖拽到 %r", descriptor)

    async def _upload(self, param: Param):
        path = self._resolve(param)
        await self.session.upload_file(self._current_element("upload"), path)
        logger.info("✓ 上传 %s", path)


async def run_script(session, source: str, config: Optional[EngineConfig] = None,
                     artifacts: Optional[ArtifactStore] = None) -> RunResult:
    """便捷入口：解析并执行一段脚本"""
    return await Interpreter(session, config, artifacts).run_script(source)


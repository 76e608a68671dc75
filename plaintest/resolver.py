"""定位模块：把自然语言描述解析为页面元素"""

import asyncio
import logging
from typing import Any, List, Optional, Tuple

from .errors import LocateError, TransportError
from .models import Query, Strategy

logger = logging.getLogger(__name__)


# 优先级固定，先命中者胜出
STRATEGY_ORDER: Tuple[Strategy, ...] = (
    Strategy.LABEL_FOR,
    Strategy.LABEL_CONTAINS,
    Strategy.TEXT,
    Strategy.TITLE,
    Strategy.ID,
    Strategy.CLASS,
    Strategy.NAME,
    Strategy.XPATH,
)

PATH_PREFIXES = ("/", "./", "../", "(")


def looks_like_path(descriptor: str) -> bool:
    """描述是否形如 xpath 表达式"""
    return descriptor.startswith(PATH_PREFIXES)


class LocatorResolver:
    """
    定位模块：按固定顺序尝试各策略，带退避的轮询直到超时。

    每一轮把所有策略各试一次（不等待），都没命中就睡眠一段时间再来，
    间隔从 poll_interval 开始翻倍，上限 max_poll_interval，且不越过截止时间。
    截止时刻还会再试最后一轮，晚出现的元素不会被漏掉。
    """

    def __init__(
        self,
        session,
        timeout: float = 10.0,
        poll_interval: float = 0.1,
        max_poll_interval: float = 1.0,
    ):
        self.session = session
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_poll_interval = max_poll_interval

    def strategies_for(self, descriptor: str) -> List[Strategy]:
        """该描述适用的策略，xpath 只在形如路径时才尝试"""
        if looks_like_path(descriptor):
            return list(STRATEGY_ORDER)
        return [s for s in STRATEGY_ORDER if s is not Strategy.XPATH]

    async def resolve(self, descriptor: str, scope: Optional[Any] = None, scroll: bool = True) -> Any:
        """
        在 scope 内定位元素，scope 为 None 表示整个文档。
        超时仍未命中抛出 LocateError。
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        interval = self.poll_interval
        strategies = self.strategies_for(descriptor)
        rounds = 0

        while True:
            rounds += 1
            match = await self.find_once(descriptor, scope, strategies)
            if match is not None:
                strategy, element = match
                logger.debug("✓ 定位 %r 命中策略 %s（第 %d 轮）", descriptor, strategy.value, rounds)
                if scroll:
                    await self.session.scroll_into_view(element)
                return element

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            logger.debug("… 第 %d 轮未找到 %r，%.2fs 后重试", rounds, descriptor, min(interval, remaining))
            await asyncio.sleep(min(interval, remaining))
            interval = min(interval * 2, self.max_poll_interval)

        logger.debug("❌ 定位 %r 失败，共 %d 轮", descriptor, rounds)
        raise LocateError(descriptor, self.timeout)

    async def find_once(
        self,
        descriptor: str,
        scope: Optional[Any],
        strategies: Optional[List[Strategy]] = None,
    ) -> Optional[Tuple[Strategy, Any]]:
        """按顺序把每个策略各试一次，返回第一个命中"""
        if strategies is None:
            strategies = self.strategies_for(descriptor)
        for strategy in strategies:
            try:
                found = await self.session.find_all(scope, Query(strategy, descriptor))
            except TransportError as e:
                if strategy is not Strategy.XPATH:
                    raise
                # "(optional)" 这类普通文本也会被当成 xpath，语法无效时视为本轮未命中
                logger.debug("xpath 查询 %r 无效，本轮跳过: %s", descriptor, e)
                continue
            if found:
                return strategy, found[0]
        return None

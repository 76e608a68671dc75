"""浏览器会话：解释器消费的 Session 接口及其 Playwright 实现"""

from typing import Any, List, Optional, Protocol

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from .errors import TransportError
from .models import Query, Strategy


class Session(Protocol):
    """
    解释器使用的浏览器能力。scope 为 None 表示整个文档。
    任何调用失败都应抛出 TransportError。
    """

    async def navigate(self, url: str) -> None: ...

    async def refresh(self) -> None: ...

    async def find_all(self, scope: Optional[Any], query: Query) -> List[Any]: ...

    async def click(self, element: Any) -> None: ...

    async def type_text(self, element: Any, text: str) -> None: ...

    async def read_text(self, element: Any) -> str: ...

    async def scroll_into_view(self, element: Any) -> None: ...

    async def screenshot(self) -> bytes: ...

    async def press_key(self, element: Any, key: str) -> None: ...

    async def select_option(self, element: Any, text: str) -> None: ...

    async def drag_to(self, source: Any, target: Any) -> None: ...

    async def upload_file(self, element: Any, path: str) -> None: ...

    async def highlight(self, element: Any, enabled: bool) -> None: ...


def xpath_literal(value: str) -> str:
    """把任意字符串转成 xpath 字符串字面量"""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"


def build_xpath(query: Query) -> str:
    """把定位查询翻译成相对于 scope 的 xpath"""
    lit = xpath_literal(query.value)
    strategy = query.strategy

    if strategy is Strategy.LABEL_FOR:
        return f".//label[normalize-space(.)={lit}][@for]"
    if strategy is Strategy.LABEL_CONTAINS:
        return (
            f".//label[normalize-space(text())={lit}]"
            "//*[self::input or self::textarea or self::select]"
        )
    if strategy is Strategy.TEXT:
        return f".//*[text()[normalize-space(.)={lit}]]"
    if strategy is Strategy.TITLE:
        return f".//*[@title={lit}]"
    if strategy is Strategy.ID:
        return f".//*[@id={lit}]"
    if strategy is Strategy.CLASS:
        return (
            f".//*[@class={lit} or "
            f"contains(concat(' ', normalize-space(@class), ' '), concat(' ', {lit}, ' '))]"
        )
    if strategy is Strategy.NAME:
        return f".//*[@name={lit}]"
    if strategy is Strategy.XPATH:
        return query.value
    raise ValueError(f"unknown strategy: {strategy}")


HIGHLIGHT_JS = """
(el, enabled) => {
    el.style.border = enabled ? '5px solid purple' : '';
}
"""

TAG_NAME_JS = "el => el.tagName.toLowerCase()"


class PlaywrightSession:
    """基于 playwright.async_api.Page 的 Session 实现"""

    def __init__(self, page: Page):
        self.page = page

    async def navigate(self, url: str) -> None:
        try:
            await self.page.goto(url)
        except PlaywrightError as e:
            raise TransportError(f"navigate to {url}", e) from e

    async def refresh(self) -> None:
        try:
            await self.page.reload()
        except PlaywrightError as e:
            raise TransportError("refresh", e) from e

    async def find_all(self, scope: Optional[ElementHandle], query: Query) -> List[ElementHandle]:
        try:
            if query.strategy is Strategy.LABEL_FOR:
                return await self._find_by_label_for(scope, query)
            if query.strategy is Strategy.TEXT:
                return await self._find_by_text(scope, query)
            xpath = build_xpath(query)
            if query.strategy is Strategy.XPATH and scope is not None:
                xpath = self._relative(xpath)
            return await self._xpath(scope, xpath)
        except PlaywrightError as e:
            raise TransportError(f"find {query.strategy.value} {query.value!r}", e) from e

    async def _find_by_label_for(self, scope, query: Query) -> List[ElementHandle]:
        found: List[ElementHandle] = []
        for label in await self._xpath(scope, build_xpath(query)):
            target_id = await label.get_attribute("for")
            if target_id:
                found.extend(await self._xpath(scope, f".//*[@id={xpath_literal(target_id)}]"))
        return found

    async def _find_by_text(self, scope, query: Query) -> List[ElementHandle]:
        # 精确匹配优先，没有再退到包含匹配
        exact = await self._xpath(scope, build_xpath(query))
        if exact:
            return exact
        lit = xpath_literal(query.value)
        return await self._xpath(scope, f".//*[text()[contains(., {lit})]]")

    async def _xpath(self, scope: Optional[ElementHandle], xpath: str) -> List[ElementHandle]:
        root = self.page if scope is None else scope
        return await root.query_selector_all(f"xpath={xpath}")

    @staticmethod
    def _relative(xpath: str) -> str:
        """绝对路径改为相对 scope 的路径，避免逃出范围"""
        if xpath.startswith("/"):
            return "." + xpath
        if xpath.startswith("(/"):
            return "(." + xpath[1:]
        return xpath

    async def click(self, element: ElementHandle) -> None:
        try:
            await element.click()
        except PlaywrightError as e:
            raise TransportError("click", e) from e

    async def type_text(self, element: ElementHandle, text: str) -> None:
        try:
            await element.fill(text)
        except PlaywrightError as e:
            raise TransportError("type", e) from e

    async def read_text(self, element: ElementHandle) -> str:
        try:
            tag = await element.evaluate(TAG_NAME_JS)
            if tag in ("input", "textarea", "select"):
                return await element.input_value()
            return await element.inner_text()
        except PlaywrightError as e:
            raise TransportError("read text", e) from e

    async def scroll_into_view(self, element: ElementHandle) -> None:
        try:
            await element.scroll_into_view_if_needed()
        except PlaywrightError as e:
            raise TransportError("scroll into view", e) from e

    async def screenshot(self) -> bytes:
        try:
            return await self.page.screenshot()
        except PlaywrightError as e:
            raise TransportError("screenshot", e) from e

    async def press_key(self, element: ElementHandle, key: str) -> None:
        try:
            await element.press(key)
        except PlaywrightError as e:
            raise TransportError(f"press {key}", e) from e

    async def select_option(self, element: ElementHandle, text: str) -> None:
        try:
            # 用户常按默认选项的文字去定位，此时要退回到外层 select
            if await element.evaluate(TAG_NAME_JS) == "option":
                parent = await element.query_selector("xpath=..")
                if parent is None:
                    raise TransportError(f"select {text!r}: option has no parent select")
                element = parent
            await element.select_option(label=text)
        except PlaywrightError as e:
            raise TransportError(f"select {text!r}", e) from e

    async def drag_to(self, source: ElementHandle, target: ElementHandle) -> None:
        try:
            src_box = await source.bounding_box()
            dst_box = await target.bounding_box()
            if src_box is None or dst_box is None:
                raise TransportError("drag: element is not visible")
            mouse = self.page.mouse
            await mouse.move(src_box["x"] + src_box["width"] / 2, src_box["y"] + src_box["height"] / 2)
            await mouse.down()
            await mouse.move(
                dst_box["x"] + dst_box["width"] / 2,
                dst_box["y"] + dst_box["height"] / 2,
                steps=10,
            )
            await mouse.up()
        except PlaywrightError as e:
            raise TransportError("drag", e) from e

    async def upload_file(self, element: ElementHandle, path: str) -> None:
        try:
            await element.set_input_files(path)
        except PlaywrightError as e:
            raise TransportError(f"upload {path}", e) from e

    async def highlight(self, element: ElementHandle, enabled: bool) -> None:
        try:
            await element.evaluate(HIGHLIGHT_JS, enabled)
        except PlaywrightError as e:
            raise TransportError("highlight", e) from e

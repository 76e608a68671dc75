"""测试公共设施：内存中的假页面和假 Session"""

from typing import Dict, List, Optional

import pytest

from plaintest.config import EngineConfig
from plaintest.errors import TransportError
from plaintest.models import Query, Strategy

INPUT_TAGS = ("input", "textarea", "select")


class FakeElement:
    """极简 DOM 节点：标签、自身文本、属性、子节点"""

    def __init__(self, tag: str, text: str = "", children=(), **attrs):
        self.tag = tag
        self.text = text
        self.attrs: Dict[str, str] = {}
        for key, value in attrs.items():
            self.attrs[key.rstrip("_")] = value
        self.children: List["FakeElement"] = []
        self.parent: Optional["FakeElement"] = None
        for child in children:
            self.append(child)

    def append(self, child: "FakeElement") -> "FakeElement":
        child.parent = self
        self.children.append(child)
        return child

    def descendants(self):
        for child in self.children:
            yield child
            yield from child.descendants()

    def full_text(self) -> str:
        parts = [self.text] + [c.full_text() for c in self.children]
        return " ".join(p for p in parts if p).strip()

    def __repr__(self):
        return f"<{self.tag} {self.attrs} {self.text!r}>"


def el(tag: str, text: str = "", *children, **attrs) -> FakeElement:
    return FakeElement(tag, text, children, **attrs)


class FakeSession:
    """按 plaintest 的定位语义在 FakeElement 树上查找，并记录所有操作"""

    def __init__(self, *children: FakeElement):
        self.root = FakeElement("html", "", children)
        self.xpaths: Dict[str, List[FakeElement]] = {}
        self.queries: List[Query] = []
        self.find_calls = 0
        self.hidden: Dict[int, int] = {}
        self.broken: List[FakeElement] = []
        self.fail_screenshot = False

        self.visited: List[str] = []
        self.refreshed = 0
        self.clicked: List[FakeElement] = []
        self.typed: List[tuple] = []
        self.scrolled: List[FakeElement] = []
        self.pressed: List[tuple] = []
        self.selected: List[tuple] = []
        self.dragged: List[tuple] = []
        self.uploaded: List[tuple] = []
        self.highlights: List[tuple] = []
        self.screenshots = 0

    # ── 测试辅助 ─────────────────────────────

    def reveal_after(self, element: FakeElement, calls: int):
        """前 calls 次 find_all 调用中该元素不可见，模拟异步渲染"""
        self.hidden[id(element)] = calls

    def _visible(self, element: FakeElement) -> bool:
        return self.find_calls > self.hidden.get(id(element), 0)

    # ── Session 接口 ─────────────────────────

    async def navigate(self, url: str) -> None:
        self.visited.append(url)

    async def refresh(self) -> None:
        self.refreshed += 1

    async def find_all(self, scope, query: Query) -> List[FakeElement]:
        self.find_calls += 1
        self.queries.append(query)
        root = self.root if scope is None else scope
        pool = [e for e in root.descendants() if self._visible(e)]
        value = query.value
        strategy = query.strategy

        if strategy is Strategy.LABEL_FOR:
            found = []
            for label in pool:
                if label.tag == "label" and label.full_text() == value and label.attrs.get("for"):
                    found.extend(e for e in pool if e.attrs.get("id") == label.attrs["for"])
            return found
        if strategy is Strategy.LABEL_CONTAINS:
            found = []
            for label in pool:
                if label.tag == "label" and label.text.strip() == value:
                    found.extend(e for e in label.descendants() if e.tag in INPUT_TAGS)
            return found
        if strategy is Strategy.TEXT:
            exact = [e for e in pool if e.text.strip() == value]
            return exact or [e for e in pool if value and value in e.text]
        if strategy is Strategy.TITLE:
            return [e for e in pool if e.attrs.get("title") == value]
        if strategy is Strategy.ID:
            return [e for e in pool if e.attrs.get("id") == value]
        if strategy is Strategy.CLASS:
            return [e for e in pool if value in e.attrs.get("class", "").split()
                    or e.attrs.get("class") == value]
        if strategy is Strategy.NAME:
            return [e for e in pool if e.attrs.get("name") == value]
        if strategy is Strategy.XPATH:
            return [e for e in self.xpaths.get(value, []) if e in pool]
        raise AssertionError(f"unexpected strategy {strategy}")

    async def click(self, element) -> None:
        if element in self.broken:
            raise TransportError("click", RuntimeError("element is detached"))
        self.clicked.append(element)

    async def type_text(self, element, text: str) -> None:
        self.typed.append((element, text))
        element.attrs["value"] = text

    async def read_text(self, element) -> str:
        if element.tag in INPUT_TAGS:
            return element.attrs.get("value", "")
        return element.full_text()

    async def scroll_into_view(self, element) -> None:
        self.scrolled.append(element)

    async def screenshot(self) -> bytes:
        if self.fail_screenshot:
            raise TransportError("screenshot")
        self.screenshots += 1
        return b"\x89PNG fake"

    async def press_key(self, element, key: str) -> None:
        self.pressed.append((element, key))

    async def select_option(self, element, text: str) -> None:
        self.selected.append((element, text))

    async def drag_to(self, source, target) -> None:
        self.dragged.append((source, target))

    async def upload_file(self, element, path: str) -> None:
        self.uploaded.append((element, path))

    async def highlight(self, element, enabled: bool) -> None:
        self.highlights.append((element, enabled))


@pytest.fixture
def fast_config() -> EngineConfig:
    return EngineConfig(locate_timeout=0.05, poll_interval=0.01, max_poll_interval=0.02)

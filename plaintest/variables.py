"""变量模块：保存脚本运行期间捕获的值"""

from typing import Dict, Iterator, Optional

from .models import Param


class VariableStore:
    """变量表：名称 → 最近一次保存的字符串，后写覆盖先写"""

    def __init__(self):
        self._values: Dict[str, str] = {}

    def set(self, name: str, value: str):
        self._values[name] = value

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def resolve(self, param: Param) -> str:
        """
        解析参数。字面量原样返回；引用先查变量表，查不到则当作字面量。
        """
        if param.is_literal:
            return param.value
        value = self._values.get(param.value)
        return param.value if value is None else value

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

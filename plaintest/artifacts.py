"""截图存储"""

import logging
from pathlib import Path
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    def save_screenshot(self, data: bytes, label: str) -> str: ...


class MemoryArtifactStore:
    """把截图留在内存里，测试和嵌入式调用使用"""

    def __init__(self):
        self.screenshots: List[Tuple[str, bytes]] = []

    def save_screenshot(self, data: bytes, label: str) -> str:
        name = f"{label}_{len(self.screenshots)}"
        self.screenshots.append((name, data))
        return name

    def __len__(self) -> int:
        return len(self.screenshots)


class DirectoryArtifactStore:
    """写到 <directory>/<prefix>_screenshot_<n>.png"""

    def __init__(self, directory, prefix: str):
        self.directory = Path(directory)
        self.prefix = prefix
        self.count = 0

    def save_screenshot(self, data: bytes, label: str) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{self.prefix}_screenshot_{self.count}.png"
        path.write_bytes(data)
        self.count += 1
        logger.info("✓ 截图已保存 %s (%s)", path, label)
        return str(path)

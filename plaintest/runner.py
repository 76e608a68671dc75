"""运行器：启动浏览器，执行脚本文件，写出日志和截图"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from playwright.async_api import async_playwright

from .artifacts import DirectoryArtifactStore
from .config import EngineConfig
from .datatable import load_rows, substitute
from .interpreter import Interpreter
from .models import RunResult, Statement
from .parser import parse
from .session import PlaywrightSession

logger = logging.getLogger(__name__)


def prepare(script_path, datatable=None) -> List[Tuple[str, List[Statement]]]:
    """
    读取并解析脚本，返回 (运行名, 语句) 列表。
    所有语法错误都在启动浏览器之前抛出。
    """
    path = Path(script_path)
    source = path.read_text(encoding="utf-8")
    name = path.stem

    if datatable is None:
        return [(name, parse(source))]

    runs = []
    for i, row in enumerate(load_rows(datatable)):
        runs.append((f"{name}_{i}", parse(substitute(source, row))))
    return runs


async def run_file(
    script_path,
    config: Optional[EngineConfig] = None,
    datatable=None,
) -> List[Tuple[str, RunResult]]:
    """
    执行一个脚本文件（提供数据表时每行执行一次）。
    每次运行使用独立的页面，日志写到 <output_dir>/<运行名>.log，
    截图写到 <output_dir>/screenshots/。
    """
    config = config or EngineConfig()
    runs = prepare(script_path, datatable)
    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    results: List[Tuple[str, RunResult]] = []
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=config.headless)
        try:
            for name, statements in runs:
                print(f"\n{'='*60}")
                print(f"Run {name} ({len(statements)} statements)")
                print(f"{'='*60}")

                page = await browser.new_page()
                try:
                    artifacts = DirectoryArtifactStore(output_dir / "screenshots", name)
                    interpreter = Interpreter(PlaywrightSession(page), config, artifacts)
                    result = await interpreter.run(statements)
                finally:
                    await page.close()

                log_path = output_dir / f"{name}.log"
                log_path.write_text(result.format_log(), encoding="utf-8")
                logger.info("✓ 日志已写入 %s", log_path)
                results.append((name, result))
        finally:
            await browser.close()

    return results

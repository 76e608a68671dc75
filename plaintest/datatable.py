"""数据表：用 CSV 的每一行替换脚本里的 <列名> 占位符"""

import csv
import re
from pathlib import Path
from typing import Dict, List

from .errors import PlaintestError

PLACEHOLDER = re.compile(r"<([^<>\s]+)>")


def load_rows(path) -> List[Dict[str, str]]:
    """读取 CSV，首行为列名"""
    with open(Path(path), newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            raise PlaintestError(f"datatable {path} has no header row")
        return [dict(row) for row in reader]


def substitute(script: str, row: Dict[str, str]) -> str:
    """替换占位符；表中没有的列名保持原样"""

    def replace(match: "re.Match") -> str:
        value = row.get(match.group(1))
        return match.group(0) if value is None else value

    return PLACEHOLDER.sub(replace, script)

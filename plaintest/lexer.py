"""词法模块：把脚本文本切分为 token"""

from dataclasses import dataclass
from typing import List

from .errors import ScriptSyntaxError


KEYWORDS = {
    "locate",
    "locate-no-scroll",
    "click",
    "type",
    "save",
    "as",
    "read-to",
    "screenshot",
    "url",
    "refresh",
    "press",
    "chill",
    "select",
    "drag-to",
    "upload",
    "if",
    "then",
    "and",
    "under",
    "catch-error:",
}

# 兼容省略冒号的写法
ALIASES = {"catch-error": "catch-error:"}

KEYWORD = "keyword"
STRING = "string"
WORD = "word"
EOL = "eol"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    line: int


class Lexer:
    """
    逐行扫描脚本。

    每个非空行结尾输出一个 EOL token，其 value 是该行去掉首尾空白的原文，
    供 Parser 记录语句来源。空行和纯注释行不产生任何 token。
    """

    def __init__(self, source: str):
        self.source = source

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        for line_no, raw in enumerate(self.source.splitlines(), start=1):
            line_tokens = self._scan_line(raw, line_no)
            if line_tokens:
                tokens.extend(line_tokens)
                tokens.append(Token(EOL, self._strip_comment(raw), line_no))
        return tokens

    def _scan_line(self, raw: str, line_no: int) -> List[Token]:
        tokens: List[Token] = []
        i = 0
        n = len(raw)
        while i < n:
            ch = raw[i]
            if ch.isspace():
                i += 1
            elif ch == "#":
                # 注释直到行尾
                break
            elif ch == '"':
                value, i = self._scan_string(raw, i, line_no)
                tokens.append(Token(STRING, value, line_no))
            else:
                start = i
                while i < n and not raw[i].isspace() and raw[i] != '"':
                    i += 1
                word = raw[start:i]
                word = ALIASES.get(word, word)
                kind = KEYWORD if word in KEYWORDS else WORD
                tokens.append(Token(kind, word, line_no))
        return tokens

    def _scan_string(self, raw: str, start: int, line_no: int):
        chars = []
        i = start + 1
        while i < len(raw):
            ch = raw[i]
            if ch == "\\" and i + 1 < len(raw) and raw[i + 1] in ('"', "\\"):
                chars.append(raw[i + 1])
                i += 2
            elif ch == '"':
                return "".join(chars), i + 1
            else:
                chars.append(ch)
                i += 1
        raise ScriptSyntaxError("unterminated string literal", line_no, raw.strip())

    @staticmethod
    def _strip_comment(raw: str) -> str:
        """去掉行尾注释，保留语句原文"""
        text = raw.strip()
        in_string = False
        escaped = False
        for i, ch in enumerate(text):
            if escaped:
                escaped = False
            elif ch == "\\" and in_string:
                escaped = True
            elif ch == '"':
                in_string = not in_string
            elif ch == "#" and not in_string and (i == 0 or text[i - 1].isspace() or text[i - 1] == '"'):
                return text[:i].rstrip()
        return text


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()

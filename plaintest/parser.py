"""语法模块：把 token 流组装成语句序列"""

from typing import List, Optional

from .errors import ScriptSyntaxError
from .lexer import EOL, KEYWORD, STRING, WORD, Token, tokenize
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
    Save,
    Scoped,
    Screenshot,
    Select,
    Statement,
    Type,
    Upload,
    Url,
)


class Parser:
    """
    递归下降解析器，每行一条语句。

    解析阶段不访问 Session 和变量表：裸单词既可能是变量，也可能是字面量
    或 xpath，这里一律记为引用，交给执行阶段决定。
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self._source = ""
        self._line_no = 0

    def parse(self) -> List[Statement]:
        statements: List[Statement] = []
        while not self._at_end():
            line_tokens = self._take_line()
            statements.append(self._parse_line(line_tokens))
        return statements

    # ──────────────────────────────────────────
    # 行级
    # ──────────────────────────────────────────

    def _take_line(self) -> List[Token]:
        """取出一行的 token（不含 EOL），并记住该行原文"""
        line: List[Token] = []
        while self.tokens[self.pos].kind != EOL:
            line.append(self.tokens[self.pos])
            self.pos += 1
        self._source = self.tokens[self.pos].value
        self._line_no = self.tokens[self.pos].line
        self.pos += 1
        return line

    def _parse_line(self, tokens: List[Token]) -> Statement:
        cursor = _Cursor(tokens, self._line_no, self._source)
        head = cursor.peek()

        if head.kind == KEYWORD and head.value == "catch-error:":
            cursor.advance()
            chain = self._parse_chain(cursor)
            stmt: Statement = ErrorCatch(chain, self._line_no, self._source)
        else:
            stmt = self._parse_inner(cursor)

        if not cursor.at_end():
            cursor.fail(f"unexpected {cursor.peek().value!r}")
        return stmt

    def _parse_inner(self, cursor: "_Cursor") -> Statement:
        head = cursor.peek()
        if head.kind == KEYWORD and head.value == "if":
            cursor.advance()
            condition = self._parse_command(cursor)
            cursor.expect_keyword("then")
            action = self._parse_chain(cursor)
            return Conditional(condition, action, self._line_no, self._source)

        if head.kind == KEYWORD and head.value == "under":
            cursor.advance()
            descriptor = self._parse_param(cursor, "under")
            if cursor.at_end():
                cursor.fail("under needs a statement to run inside the scope")
            if cursor.peek().kind == KEYWORD and cursor.peek().value == "catch-error:":
                cursor.fail("catch-error cannot be used inside under")
            inner = self._parse_inner(cursor)
            return Scoped(descriptor, inner, self._line_no, self._source)

        return Action(self._parse_chain(cursor), self._line_no, self._source)

    # ──────────────────────────────────────────
    # 命令链
    # ──────────────────────────────────────────

    def _parse_chain(self, cursor: "_Cursor") -> Chain:
        commands = [self._parse_command(cursor)]
        while cursor.match_keyword("and"):
            commands.append(self._parse_command(cursor))
        return tuple(commands)

    def _parse_command(self, cursor: "_Cursor") -> Command:
        if cursor.at_end():
            cursor.fail("expected a command")
        tok = cursor.advance()
        if tok.kind != KEYWORD:
            cursor.fail(f"expected a command, got {tok.value!r}")

        name = tok.value
        if name == "locate":
            return Locate(self._parse_param(cursor, name), scroll=True)
        elif name == "locate-no-scroll":
            return Locate(self._parse_param(cursor, name), scroll=False)
        elif name == "click":
            return Click()
        elif name == "type":
            return Type(self._parse_param(cursor, name))
        elif name == "save":
            value: Optional[Param] = None
            if not cursor.check_keyword("as"):
                value = self._parse_param(cursor, name)
            cursor.expect_keyword("as")
            return Save(self._parse_name(cursor, name), value)
        elif name == "read-to":
            return ReadTo(self._parse_name(cursor, name))
        elif name == "screenshot":
            return Screenshot()
        elif name == "url":
            return Url(self._parse_param(cursor, name))
        elif name == "refresh":
            return Refresh()
        elif name == "press":
            return Press(self._parse_param(cursor, name))
        elif name == "chill":
            return Chill(self._parse_param(cursor, name))
        elif name == "select":
            return Select(self._parse_param(cursor, name))
        elif name == "drag-to":
            return DragTo(self._parse_param(cursor, name))
        elif name == "upload":
            return Upload(self._parse_param(cursor, name))

        cursor.fail(f"{name!r} is not a command")

    def _parse_param(self, cursor: "_Cursor", command: str) -> Param:
        if cursor.at_end():
            cursor.fail(f"{command} expects a value")
        tok = cursor.advance()
        if tok.kind == STRING:
            return Param(tok.value, is_literal=True)
        if tok.kind == WORD:
            return Param(tok.value, is_literal=False)
        cursor.fail(f"{command} expects a value, got keyword {tok.value!r}")

    def _parse_name(self, cursor: "_Cursor", command: str) -> str:
        if cursor.at_end() or cursor.peek().kind != WORD:
            cursor.fail(f"{command} expects a variable name")
        return cursor.advance().value

    def _at_end(self) -> bool:
        return self.pos >= len(self.tokens)


class _Cursor:
    """单行 token 游标"""

    def __init__(self, tokens: List[Token], line: int, source: str):
        self.tokens = tokens
        self.line = line
        self.source = source
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def check_keyword(self, value: str) -> bool:
        return not self.at_end() and self.peek().kind == KEYWORD and self.peek().value == value

    def match_keyword(self, value: str) -> bool:
        if self.check_keyword(value):
            self.pos += 1
            return True
        return False

    def expect_keyword(self, value: str) -> None:
        if not self.match_keyword(value):
            found = "end of line" if self.at_end() else repr(self.peek().value)
            self.fail(f"expected {value!r}, got {found}")

    def fail(self, message: str):
        raise ScriptSyntaxError(message, self.line, self.source)


def parse(source: str) -> List[Statement]:
    """脚本文本 → 语句序列，语法错误抛出 ScriptSyntaxError"""
    return Parser(tokenize(source)).parse()

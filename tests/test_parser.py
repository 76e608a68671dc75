"""Tests for the statement parser."""

import pytest

from plaintest.errors import ScriptSyntaxError
from plaintest.models import (
    Action,
    Chill,
    Click,
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
    Type,
    Upload,
    Url,
)
from plaintest.parser import parse


def test_action_chain():
    [stmt] = parse('locate "Submit" and click')
    assert stmt == Action(
        (Locate(Param("Submit"), scroll=True), Click()),
        line=1,
        source='locate "Submit" and click',
    )


def test_url_and_screenshot_lines():
    stmts = parse('url "http://localhost:1234"\nscreenshot')
    assert stmts[0].chain == (Url(Param("http://localhost:1234")),)
    assert stmts[1].chain == (Screenshot(),)
    assert [s.line for s in stmts] == [1, 2]


def test_locate_no_scroll():
    [stmt] = parse('locate-no-scroll "Footer"')
    assert stmt.chain == (Locate(Param("Footer"), scroll=False),)


def test_bare_words_become_references():
    [stmt] = parse("locate username and type wow")
    assert stmt.chain == (
        Locate(Param("username", is_literal=False)),
        Type(Param("wow", is_literal=False)),
    )


def test_save_literal_and_save_from_element():
    literal, captured = parse('save "Wow" as wow\nlocate "Title" and save as title')
    assert literal.chain == (Save("wow", Param("Wow")),)
    assert captured.chain[1] == Save("title", None)


def test_read_to():
    [stmt] = parse('locate "Total" and read-to total')
    assert stmt.chain[1] == ReadTo("total")


def test_conditional():
    [stmt] = parse('if locate "missing" then click and screenshot')
    assert isinstance(stmt, Conditional)
    assert stmt.condition == Locate(Param("missing"))
    assert stmt.action == (Click(), Screenshot())


def test_catch_error():
    [stmt] = parse("catch-error: screenshot and refresh")
    assert isinstance(stmt, ErrorCatch)
    assert stmt.action == (Screenshot(), Refresh())


def test_under_wraps_a_chain():
    [stmt] = parse('under "Under Command" locate "partial text test" and click')
    assert isinstance(stmt, Scoped)
    assert stmt.scope_descriptor == Param("Under Command")
    assert stmt.inner.chain == (Locate(Param("partial text test")), Click())


def test_under_can_wrap_conditional_and_nested_under():
    [stmt] = parse('under "Form" under "Row 2" if locate "Delete" then click')
    assert isinstance(stmt.inner, Scoped)
    assert isinstance(stmt.inner.inner, Conditional)


def test_extra_commands():
    [stmt] = parse(
        'locate "Country" and select "Norway" and press "Enter" and chill "1" '
        'and upload "/tmp/a.txt" and drag-to "Bin"'
    )
    assert stmt.chain[1:] == (
        Select(Param("Norway")),
        Press(Param("Enter")),
        Chill(Param("1")),
        Upload(Param("/tmp/a.txt")),
        DragTo(Param("Bin")),
    )


def test_comments_and_blank_lines_are_dropped():
    stmts = parse("# login flow\n\nclick  # go\n\n# done\n")
    assert len(stmts) == 1
    assert stmts[0].line == 3
    assert stmts[0].source == "click"


@pytest.mark.parametrize(
    "script, line, fragment",
    [
        ("click\nlocate", 2, "expects a value"),
        ("click and", 1, "expected a command"),
        ("if locate \"x\" click", 1, "'then'"),
        ("catch-error:", 1, "expected a command"),
        ("under \"Form\"", 1, "under needs a statement"),
        ("under \"Form\" catch-error: click", 1, "catch-error cannot"),
        ("save \"x\" wow", 1, "'as'"),
        ("read-to \"name\"", 1, "variable name"),
        ("hello world", 1, "expected a command"),
        ("click click", 1, "unexpected 'click'"),
        ("locate then", 1, "keyword 'then'"),
    ],
)
def test_syntax_errors_name_the_line(script, line, fragment):
    with pytest.raises(ScriptSyntaxError) as exc_info:
        parse(script)
    assert exc_info.value.line == line
    assert fragment in str(exc_info.value)


def test_statements_are_immutable():
    [stmt] = parse("click")
    with pytest.raises(AttributeError):
        stmt.line = 7

"""Tests for data tables, artifact stores, script preparation and file runs."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from plaintest import runner
from plaintest.artifacts import DirectoryArtifactStore, MemoryArtifactStore
from plaintest.cli import EXIT_USAGE, main
from plaintest.config import EngineConfig
from plaintest.datatable import load_rows, substitute
from plaintest.errors import PlaintestError, ScriptSyntaxError
from plaintest.models import RunState
from plaintest.runner import prepare, run_file


def test_substitute_replaces_known_columns_only():
    script = 'locate "Username" and type "<user>"\nlocate <button> and click <other>'
    out = substitute(script, {"user": "bob", "button": "Submit"})
    assert out == 'locate "Username" and type "bob"\nlocate Submit and click <other>'


def test_load_rows(tmp_path):
    csv_path = tmp_path / "users.csv"
    csv_path.write_text("user,password\nbob,secret\nalice,hunter2\n", encoding="utf-8")

    assert load_rows(csv_path) == [
        {"user": "bob", "password": "secret"},
        {"user": "alice", "password": "hunter2"},
    ]


def test_load_rows_requires_header(tmp_path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")

    with pytest.raises(PlaintestError):
        load_rows(csv_path)


def test_prepare_single_run(tmp_path):
    script = tmp_path / "login.ui"
    script.write_text('url "http://localhost"\nlocate "Go" and click\n', encoding="utf-8")

    [(name, statements)] = prepare(script)

    assert name == "login"
    assert len(statements) == 2


def test_prepare_with_datatable(tmp_path):
    script = tmp_path / "login.ui"
    script.write_text('locate "Username" and type "<user>"\n', encoding="utf-8")
    table = tmp_path / "rows.csv"
    table.write_text("user\nbob\nalice\n", encoding="utf-8")

    runs = prepare(script, table)

    assert [name for name, _ in runs] == ["login_0", "login_1"]
    assert runs[1][1][0].chain[1].value.value == "alice"


def test_prepare_raises_syntax_errors(tmp_path):
    script = tmp_path / "broken.ui"
    script.write_text("click\nlocate\n", encoding="utf-8")

    with pytest.raises(ScriptSyntaxError):
        prepare(script)


def test_cli_reports_syntax_error_without_launching_browser(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    script = tmp_path / "broken.ui"
    script.write_text('if locate "x" click\n', encoding="utf-8")

    assert main([str(script)]) == EXIT_USAGE


def test_memory_store_names_are_unique():
    store = MemoryArtifactStore()
    first = store.save_screenshot(b"a", "shot")
    second = store.save_screenshot(b"b", "shot")
    assert first != second
    assert len(store) == 2


def test_directory_store_writes_numbered_pngs(tmp_path):
    store = DirectoryArtifactStore(tmp_path / "screenshots", "login")

    store.save_screenshot(b"one", "screenshot_1")
    path = store.save_screenshot(b"two", "screenshot_2")

    assert path.endswith("login_screenshot_1.png")
    assert (tmp_path / "screenshots" / "login_screenshot_0.png").read_bytes() == b"one"


@pytest.fixture
def browser(monkeypatch):
    """替换 async_playwright，返回一个假浏览器，页面操作都是 AsyncMock"""
    page = MagicMock()
    page.goto = AsyncMock()
    page.close = AsyncMock()

    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    manager = MagicMock()
    manager.__aenter__ = AsyncMock(return_value=playwright)
    manager.__aexit__ = AsyncMock(return_value=False)
    monkeypatch.setattr(runner, "async_playwright", lambda: manager)

    browser.page = page
    browser.playwright = playwright
    return browser


@pytest.mark.asyncio
async def test_run_file_writes_log_and_closes_browser(tmp_path, browser):
    script = tmp_path / "home.ui"
    script.write_text('url "http://localhost:8000"\n', encoding="utf-8")
    config = EngineConfig(output_dir=str(tmp_path / "out"), headless=True)

    [(name, result)] = await run_file(script, config)

    assert name == "home"
    assert result.succeeded
    browser.playwright.chromium.launch.assert_awaited_once_with(headless=True)
    browser.page.goto.assert_awaited_once_with("http://localhost:8000")
    browser.page.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    log = (tmp_path / "out" / "home.log").read_text(encoding="utf-8")
    assert log == 'Info: url "http://localhost:8000"\n'


@pytest.mark.asyncio
async def test_run_file_logs_halted_run(tmp_path, browser):
    browser.page.goto.side_effect = PlaywrightError("net::ERR_CONNECTION_REFUSED")
    script = tmp_path / "home.ui"
    script.write_text('url "http://localhost:1"\n', encoding="utf-8")
    config = EngineConfig(output_dir=str(tmp_path / "out"))

    [(_, result)] = await run_file(script, config)

    assert result.state == RunState.HALTED_ON_ERROR
    log = (tmp_path / "out" / "home.log").read_text(encoding="utf-8")
    assert "ERR_CONNECTION_REFUSED" in log
    assert log.endswith('Error: halted at line 1: url "http://localhost:1"\n')


@pytest.mark.asyncio
async def test_run_file_closes_page_and_browser_on_unexpected_error(tmp_path, browser):
    browser.page.goto.side_effect = RuntimeError("browser crashed")
    script = tmp_path / "home.ui"
    script.write_text('url "http://localhost"\n', encoding="utf-8")
    config = EngineConfig(output_dir=str(tmp_path / "out"))

    with pytest.raises(RuntimeError):
        await run_file(script, config)

    browser.page.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    assert not (tmp_path / "out" / "home.log").exists()

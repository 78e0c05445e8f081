"""Tests for the MCP server tools."""

import asyncio
import json
import os
import time

import pytest

import mcp_line_counter.server as srv
from mcp_line_counter.annotator import make_annotation

KR_SOURCE = "int f(void) {\n\tx = 1;\n}\n"


@pytest.fixture(autouse=True)
def _reset_server_state(tmp_path):
    """Point the server at a fresh project and reset module-level state."""
    srv._project_root = str(tmp_path)
    srv._extensions = (".c", ".h")
    srv._max_lines = 25
    srv._session_start = time.time()
    srv._tool_call_counts.clear()
    srv._files_rewritten = 0
    srv._functions_annotated = 0
    yield
    srv._tool_call_counts.clear()


@pytest.fixture
def c_file(tmp_path):
    path = tmp_path / "main.c"
    path.write_text(KR_SOURCE)
    return path


def _call(name, arguments):
    result = asyncio.run(srv.call_tool(name, arguments))
    assert len(result) == 1
    return result[0].text


class TestConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.delenv("LINE_COUNTER_EXTENSIONS", raising=False)
        monkeypatch.delenv("LINE_COUNTER_MAX_LINES", raising=False)
        srv._load_config()
        assert srv._project_root == str(tmp_path)
        assert srv._extensions == (".c", ".h")
        assert srv._max_lines == 25

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("LINE_COUNTER_EXTENSIONS", "c, .H,,.inc")
        monkeypatch.setenv("LINE_COUNTER_MAX_LINES", "40")
        srv._load_config()
        assert srv._extensions == (".c", ".h", ".inc")
        assert srv._max_lines == 40

    def test_invalid_max_lines(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("LINE_COUNTER_MAX_LINES", "many")
        srv._load_config()
        assert srv._max_lines == 25


class TestGuards:
    def test_is_supported(self):
        assert srv._is_supported("main.c")
        assert srv._is_supported("include/MAIN.H")
        assert not srv._is_supported("main.py")
        assert not srv._is_supported("Makefile")

    def test_path_outside_root(self):
        with pytest.raises(ValueError):
            srv._resolve_path("../outside.c")

    def test_unsupported_extension(self, tmp_path):
        (tmp_path / "notes.txt").write_text(KR_SOURCE)
        text = _call("count_lines", {"file_path": "notes.txt"})
        assert text.startswith("Error: this tool works only with C files")
        assert (tmp_path / "notes.txt").read_text() == KR_SOURCE

    def test_missing_file(self):
        assert _call("analyze_style", {"file_path": "missing.c"}) == "Error: 'missing.c' is not a file"

    def test_unknown_tool(self):
        assert _call("nope", {}) == "Error: unknown tool 'nope'"


class TestCountLines:
    def test_rewrites_file(self, c_file):
        text = _call("count_lines", {"file_path": "main.c"})
        assert text.startswith("Line counts updated in main.c.")
        assert "line 2: int f(void) -> 1 line(s)" in text
        assert c_file.read_text() == make_annotation(1) + "\nint f(void)\n{\n\tx = 1;\n}\n"
        assert srv._files_rewritten == 1
        assert srv._functions_annotated == 1

    def test_dry_run(self, c_file):
        text = _call("count_lines", {"file_path": "main.c", "dry_run": True})
        assert text == make_annotation(1) + "\nint f(void)\n{\n\tx = 1;\n}\n"
        assert c_file.read_text() == KR_SOURCE

    def test_over_limit_reported(self, c_file):
        srv._max_lines = 0
        assert "exceed" not in _call("count_lines", {"file_path": "main.c", "dry_run": False})
        c_file.write_text("int g(void)\n{\n" + "\tx++;\n" * 3 + "}\n")
        srv._max_lines = 2
        text = _call("count_lines", {"file_path": "main.c"})
        assert "(over limit)" in text
        assert "1 function(s) exceed 2 lines" in text

    def test_write_failure_leaves_file_untouched(self, c_file, tmp_path, monkeypatch):
        def fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(srv.os, "replace", fail)
        text = _call("count_lines", {"file_path": "main.c"})
        assert text == "Error: failed to update main.c: disk full"
        assert c_file.read_text() == KR_SOURCE
        assert sorted(p.name for p in tmp_path.iterdir()) == ["main.c"]


class TestOtherTools:
    def test_format_only(self, c_file):
        text = _call("format_only", {"file_path": "main.c"})
        assert text == "1 function(s) formatted in Allman style in main.c."
        assert c_file.read_text() == "int f(void)\n{\n\tx = 1;\n}\n"

    def test_remove_line_counts(self, c_file):
        _call("count_lines", {"file_path": "main.c"})
        text = _call("remove_line_counts", {"file_path": "main.c"})
        assert text == "Line count comments removed from main.c."
        assert c_file.read_text() == "int f(void)\n{\n\tx = 1;\n}\n"

    def test_remove_line_counts_has_no_extension_guard(self, tmp_path):
        (tmp_path / "notes.txt").write_text(make_annotation(1) + "\nhello\n")
        _call("remove_line_counts", {"file_path": "notes.txt"})
        assert (tmp_path / "notes.txt").read_text() == "hello\n"

    def test_analyze_style(self, c_file):
        text = _call("analyze_style", {"file_path": "main.c"})
        assert text.startswith("Code analysis: 1 function(s) | 0 well formatted | Allman style not respected")
        payload = json.loads(text.split("\n", 1)[1])
        assert payload["function_count"] == 1
        assert payload["allman_compliant"] is False
        assert c_file.read_text() == KR_SOURCE

    def test_check_project(self, c_file, tmp_path):
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "util.h").write_text("int f(void);\n")
        payload = json.loads(_call("check_project", {}))
        assert payload["total_files"] == 2
        assert payload["total_functions"] == 1
        assert payload["files"][0]["file"] == os.path.join("lib", "util.h")

    def test_check_project_max_results(self, c_file, tmp_path):
        (tmp_path / "other.c").write_text(KR_SOURCE)
        payload = json.loads(_call("check_project", {"max_results": 1}))
        assert payload["total_files"] == 2
        assert len(payload["files"]) == 1


class TestUsageStats:
    def test_format_duration(self):
        assert srv._format_duration(45) == "45s"
        assert srv._format_duration(125) == "2m 5s"
        assert srv._format_duration(3725) == "1h 2m"

    def test_stats_after_calls(self, c_file):
        _call("count_lines", {"file_path": "main.c"})
        _call("analyze_style", {"file_path": "main.c"})
        text = _call("get_usage_stats", {})
        assert "Total tool calls: 2" in text
        assert "count_lines: 1" in text
        assert "get_usage_stats" not in text
        assert "Files rewritten: 1" in text
        assert "Functions annotated: 1" in text

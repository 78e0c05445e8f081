# mcp-line-counter - C function line counter with MCP server
# Copyright (C) 2026 Michael Doyle
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""MCP server for the C function line counter.

Exposes the line-count operations as MCP tools that act on files inside a
project: annotate functions with their body line count, reformat into
Allman style, strip the count markers, and report on brace style.

Usage:
    PROJECT_ROOT=/path/to/project python -m mcp_line_counter.server

Environment:
    PROJECT_ROOT             root that tool paths are resolved against (default: cwd)
    LINE_COUNTER_EXTENSIONS  accepted source extensions (default: ".c,.h")
    LINE_COUNTER_MAX_LINES   body-line limit flagged in reports, 0 disables (default: 25)
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
import time
import traceback

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent
import mcp.types as types

from mcp_line_counter.models import AnalysisReport, FunctionSpan
from mcp_line_counter.operations import (
    analyze,
    annotate_with_spans,
    format_only,
    strip_annotations,
)
from mcp_line_counter.project_scanner import ProjectScanner, read_source

# ---------------------------------------------------------------------------
# Module-level state
# ---------------------------------------------------------------------------

server = Server("mcp-line-counter")

_project_root: str = ""
_extensions: tuple[str, ...] = (".c", ".h")
_max_lines: int = 25

# Session usage stats
_session_start: float = time.time()
_tool_call_counts: dict[str, int] = {}
_files_rewritten: int = 0
_functions_annotated: int = 0


def _load_config() -> None:
    """Read configuration from the environment."""
    global _project_root, _extensions, _max_lines

    _project_root = os.path.abspath(os.environ.get("PROJECT_ROOT", os.getcwd()))

    raw_ext = os.environ.get("LINE_COUNTER_EXTENSIONS", ".c,.h")
    exts = []
    for ext in raw_ext.split(","):
        ext = ext.strip().lower()
        if not ext:
            continue
        exts.append(ext if ext.startswith(".") else "." + ext)
    _extensions = tuple(exts) or (".c", ".h")

    raw_max = os.environ.get("LINE_COUNTER_MAX_LINES", "25")
    try:
        _max_lines = max(0, int(raw_max))
    except ValueError:
        print(
            f"[mcp-line-counter] Ignoring invalid LINE_COUNTER_MAX_LINES={raw_max!r}",
            file=sys.stderr,
        )
        _max_lines = 25

    print(
        f"[mcp-line-counter] Project root: {_project_root} "
        f"(extensions: {', '.join(_extensions)}, max lines: {_max_lines})",
        file=sys.stderr,
    )


def _format_result(value: object) -> str:
    """Format a tool result as readable text."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, default=str)
    return str(value)


def _format_duration(seconds: float) -> str:
    """Format seconds into a human-readable duration."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h {mins}m"


def _format_usage_stats() -> str:
    """Format session usage statistics."""
    elapsed = time.time() - _session_start
    total_calls = sum(_tool_call_counts.values())
    # Don't count get_usage_stats itself
    tool_calls = total_calls - _tool_call_counts.get("get_usage_stats", 0)

    lines = [
        f"Session duration: {_format_duration(elapsed)}",
        f"Total tool calls: {tool_calls}",
    ]

    if _tool_call_counts:
        lines.append("")
        lines.append("Calls by tool:")
        for tool_name, count in sorted(_tool_call_counts.items(), key=lambda x: -x[1]):
            if tool_name == "get_usage_stats":
                continue
            lines.append(f"  {tool_name}: {count}")

    lines.append("")
    lines.append(f"Files rewritten: {_files_rewritten}")
    lines.append(f"Functions annotated: {_functions_annotated}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# File access
# ---------------------------------------------------------------------------


def _resolve_path(file_path: str) -> str:
    """Resolve a project-relative path, refusing anything outside the root."""
    abs_path = os.path.abspath(os.path.join(_project_root, file_path))
    if os.path.commonpath([abs_path, _project_root]) != _project_root:
        raise ValueError(f"'{file_path}' is outside the project root")
    if not os.path.isfile(abs_path):
        raise ValueError(f"'{file_path}' is not a file")
    return abs_path


def _is_supported(file_path: str) -> bool:
    """Host-level guard: only C sources and headers are processed."""
    dot_idx = file_path.rfind(".")
    if dot_idx < 0:
        return False
    return file_path[dot_idx:].lower() in _extensions


def _unsupported_message() -> str:
    return f"Error: this tool works only with C files ({' or '.join(_extensions)})"


def _write_atomic(abs_path: str, text: str) -> None:
    """Replace the whole file content, or leave the file untouched."""
    directory = os.path.dirname(abs_path)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".line-counter-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.chmod(tmp_path, os.stat(abs_path).st_mode & 0o7777)
        os.replace(tmp_path, abs_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _commit(file_path: str, abs_path: str, new_text: str) -> str | None:
    """Write *new_text*; return an error message on failure."""
    global _files_rewritten

    try:
        _write_atomic(abs_path, new_text)
    except OSError as e:
        print(f"[mcp-line-counter] Failed to update {file_path}: {e}", file=sys.stderr)
        return f"Error: failed to update {file_path}: {e}"
    _files_rewritten += 1
    return None


# ---------------------------------------------------------------------------
# Report formatting
# ---------------------------------------------------------------------------


def _format_style_line(analysis: AnalysisReport) -> str:
    if analysis.is_allman_compliant:
        return f"{analysis.function_count} function(s) correctly formatted (Allman style)"
    return (
        f"{analysis.functions_formatted}/{analysis.function_count} "
        f"function(s) formatted (Allman style not respected)"
    )


def _format_functions(spans: list[FunctionSpan]) -> list[str]:
    lines = []
    for span in spans:
        flag = " (over limit)" if _max_lines and span.line_count > _max_lines else ""
        lines.append(
            f"  line {span.start_line + 1}: {span.signature_text} "
            f"-> {span.line_count} line(s){flag}"
        )
    return lines


def _format_analysis(file_path: str, analysis: AnalysisReport) -> dict:
    return {
        "file": file_path,
        "total_lines": analysis.total_lines,
        "code_lines": analysis.code_lines,
        "comment_lines": analysis.comment_lines,
        "empty_lines": analysis.empty_lines,
        "function_count": analysis.function_count,
        "functions_formatted": analysis.functions_formatted,
        "allman_compliant": analysis.is_allman_compliant,
    }


# ---------------------------------------------------------------------------
# Tool implementations
# ---------------------------------------------------------------------------


def _count_lines(arguments: dict) -> str:
    global _functions_annotated

    file_path = arguments["file_path"]
    if not _is_supported(file_path):
        return _unsupported_message()
    abs_path = _resolve_path(file_path)

    new_text, spans = annotate_with_spans(read_source(abs_path))
    if arguments.get("dry_run", False):
        return new_text

    error = _commit(file_path, abs_path, new_text)
    if error:
        return error
    _functions_annotated += len(spans)

    analysis = analyze(new_text)
    over = [s for s in spans if _max_lines and s.line_count > _max_lines]
    parts = [
        f"Line counts updated in {file_path}. {_format_style_line(analysis)}",
        f"Functions: {len(spans)}",
    ]
    parts.extend(_format_functions(spans))
    if over:
        parts.append(f"{len(over)} function(s) exceed {_max_lines} lines")
    return "\n".join(parts)


def _format_only(arguments: dict) -> str:
    file_path = arguments["file_path"]
    if not _is_supported(file_path):
        return _unsupported_message()
    abs_path = _resolve_path(file_path)

    new_text = format_only(read_source(abs_path))
    if arguments.get("dry_run", False):
        return new_text

    error = _commit(file_path, abs_path, new_text)
    if error:
        return error
    analysis = analyze(new_text)
    return f"{analysis.function_count} function(s) formatted in Allman style in {file_path}."


def _remove_line_counts(arguments: dict) -> str:
    file_path = arguments["file_path"]
    abs_path = _resolve_path(file_path)

    new_text = strip_annotations(read_source(abs_path))
    if arguments.get("dry_run", False):
        return new_text

    error = _commit(file_path, abs_path, new_text)
    if error:
        return error
    return f"Line count comments removed from {file_path}."


def _analyze_style(arguments: dict) -> str:
    file_path = arguments["file_path"]
    if not _is_supported(file_path):
        return _unsupported_message()
    abs_path = _resolve_path(file_path)

    analysis = analyze(read_source(abs_path))
    status = "Allman style respected" if analysis.is_allman_compliant else "Allman style not respected"
    return (
        f"Code analysis: {analysis.function_count} function(s) | "
        f"{analysis.functions_formatted} well formatted | {status}\n"
        + _format_result(_format_analysis(file_path, analysis))
    )


def _check_project(arguments: dict) -> str:
    patterns = arguments.get("patterns") or ["**/*" + ext for ext in _extensions]
    scanner = ProjectScanner(_project_root, include_patterns=patterns, max_lines=_max_lines)
    report = scanner.scan()

    max_results = arguments.get("max_results", 0)
    files = []
    for rel_path, file_report in sorted(report.files.items()):
        entry = _format_analysis(rel_path, file_report.analysis)
        entry["over_limit"] = [
            {"line": s.start_line + 1, "signature": s.signature_text, "lines": s.line_count}
            for s in file_report.over_limit
        ]
        files.append(entry)
    if max_results and max_results > 0:
        files = files[:max_results]

    return _format_result({
        "root": report.root_path,
        "total_files": report.total_files,
        "total_lines": report.total_lines,
        "total_functions": report.total_functions,
        "total_formatted": report.total_formatted,
        "total_over_limit": report.total_over_limit,
        "files": files,
    })


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

_FILE_PATH_SCHEMA = {
    "type": "string",
    "description": "Path to a C source or header file, relative to the project root.",
}

_DRY_RUN_SCHEMA = {
    "type": "boolean",
    "description": "Return the rewritten text instead of writing the file (default false).",
}

TOOLS = [
    Tool(
        name="count_lines",
        description="Reformat a C file into Allman style and write a '// »»-----► Number of lines: N' comment above every function.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH_SCHEMA,
                "dry_run": _DRY_RUN_SCHEMA,
            },
            "required": ["file_path"],
        },
    ),
    Tool(
        name="format_only",
        description="Reformat the functions of a C file into Allman style (braces on their own lines) without adding line counts.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH_SCHEMA,
                "dry_run": _DRY_RUN_SCHEMA,
            },
            "required": ["file_path"],
        },
    ),
    Tool(
        name="remove_line_counts",
        description="Remove every line-count comment from a file.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path to the file, relative to the project root.",
                },
                "dry_run": _DRY_RUN_SCHEMA,
            },
            "required": ["file_path"],
        },
    ),
    Tool(
        name="analyze_style",
        description="Read-only report for a C file: line census, function count, and how many functions follow Allman style.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": _FILE_PATH_SCHEMA,
            },
            "required": ["file_path"],
        },
    ),
    Tool(
        name="check_project",
        description="Read-only scan of every C file in the project: style compliance and functions over the line limit.",
        inputSchema={
            "type": "object",
            "properties": {
                "patterns": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Glob patterns to include (default: one per configured extension, e.g. '**/*.c').",
                },
                "max_results": {
                    "type": "integer",
                    "description": "Maximum number of files to list (0 = unlimited, default 0).",
                },
            },
        },
    ),
    Tool(
        name="get_usage_stats",
        description="Session stats: tool calls, files rewritten, functions annotated.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
]

_HANDLERS = {
    "count_lines": _count_lines,
    "format_only": _format_only,
    "remove_line_counts": _remove_line_counts,
    "analyze_style": _analyze_style,
    "check_project": _check_project,
}


# ---------------------------------------------------------------------------
# MCP handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def list_tools() -> list[Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    _tool_call_counts[name] = _tool_call_counts.get(name, 0) + 1

    try:
        if name == "get_usage_stats":
            return [TextContent(type="text", text=_format_usage_stats())]

        handler = _HANDLERS.get(name)
        if handler is None:
            return [TextContent(type="text", text=f"Error: unknown tool '{name}'")]

        result = handler(arguments or {})
        return [TextContent(type="text", text=_format_result(result))]

    except Exception as e:
        tb = traceback.format_exc()
        print(f"[mcp-line-counter] Error in {name}: {tb}", file=sys.stderr)
        return [TextContent(type="text", text=f"Error: {e}")]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def main():
    _load_config()
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main_sync():
    """Synchronous entry point for console_scripts."""
    import asyncio

    asyncio.run(main())


if __name__ == "__main__":
    main_sync()

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

"""Line-count annotation of C function definitions.

Each function found in a buffer gets exactly one marker comment directly
above its signature::

    // »»-----► Number of lines: 12

Markers are recognized purely by their prefix. Markers that no longer sit
above a function are dropped, so annotating twice gives the same result as
annotating once.
"""

from __future__ import annotations

import dataclasses

from mcp_line_counter.detector import find_functions
from mcp_line_counter.models import FunctionSpan

ANNOTATION_PREFIX = '// »»-----►'


def make_annotation(line_count: int) -> str:
    return f"{ANNOTATION_PREFIX} Number of lines: {line_count}"


def is_line_count_comment(line: str) -> bool:
    return line.replace('\r', '').strip().startswith(ANNOTATION_PREFIX)


def annotate_lines(lines: list[str]) -> tuple[list[str], list[FunctionSpan]]:
    """Insert a fresh marker above every function in *lines*.

    Returns the new lines and the function spans, re-based so that their
    line numbers point into the returned lines (the marker sits at
    ``start_line - 1``).

    Blank lines and markers directly above a function are replaced by its
    new marker. Stale markers elsewhere outside function bodies are dropped.
    """
    spans_by_start = {span.start_line: span for span in find_functions(lines)}
    result: list[str] = []
    spans: list[FunctionSpan] = []

    i = 0
    while i < len(lines):
        span = spans_by_start.get(i)
        if span is None:
            if not is_line_count_comment(lines[i]):
                result.append(lines[i])
            i += 1
            continue

        while result and (is_line_count_comment(result[-1]) or not result[-1].strip()):
            result.pop()

        result.append(make_annotation(span.line_count))
        offset = len(result) - span.start_line
        spans.append(
            dataclasses.replace(
                span,
                start_line=span.start_line + offset,
                end_line=span.end_line + offset,
                open_brace_line=span.open_brace_line + offset,
            )
        )
        result.extend(lines[span.start_line:span.end_line + 1])
        i = span.end_line + 1

    return result, spans


def strip_lines(lines: list[str]) -> list[str]:
    """Remove every marker line, leaving everything else untouched."""
    return [line for line in lines if not is_line_count_comment(line)]

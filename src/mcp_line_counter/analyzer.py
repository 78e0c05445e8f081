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

"""Read-only style analysis: line census and Allman-style compliance.

Uses a simpler, line-local signature heuristic than the boundary detector;
the numbers are meant for reporting, not for locating bodies.
"""

import dataclasses
import re

from mcp_line_counter.lexer import split_lines
from mcp_line_counter.models import AnalysisReport

_COMMENT_PREFIXES = ('//', '/*', '*', '<!--')

_NON_FUNCTION_STARTERS = ['if', 'while', 'for', 'switch', 'return', 'sizeof', 'printf', 'write']

# type-and-name tokens, parameter list, optional trailing brace
_FUNCTION_SHAPE_RE = re.compile(r'^[\s\w*]*\s+\w+\s*\([^)]*\)\s*\{?$')


def _is_comment_line(trimmed: str) -> bool:
    return trimmed.startswith(_COMMENT_PREFIXES)


def analyze_code(code: str) -> AnalysisReport:
    """Count total, code, comment and empty lines."""
    lines = split_lines(code)
    code_lines = 0
    comment_lines = 0
    empty_lines = 0

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            empty_lines += 1
        elif _is_comment_line(trimmed):
            comment_lines += 1
        else:
            code_lines += 1

    return AnalysisReport(
        total_lines=len(lines),
        code_lines=code_lines,
        comment_lines=comment_lines,
        empty_lines=empty_lines,
    )


def is_function_signature(line: str) -> bool:
    trimmed = line.strip()

    if '(' not in trimmed or ')' not in trimmed:
        return False

    for keyword in _NON_FUNCTION_STARTERS:
        if trimmed.startswith(keyword + ' ') or trimmed.startswith(keyword + '('):
            return False

    if ' ' not in trimmed:
        return False

    return _FUNCTION_SHAPE_RE.match(trimmed) is not None


def analyze_c_code(code: str) -> AnalysisReport:
    """Line census plus function count and how many are in Allman style.

    A function counts as formatted when its signature line has no ``{`` and
    the next line is exactly ``{``.
    """
    report = analyze_code(code)
    lines = split_lines(code)
    function_count = 0
    functions_formatted = 0

    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line or _is_comment_line(line) or line.startswith('#'):
            continue
        if not is_function_signature(line):
            continue

        function_count += 1
        if '{' not in line and i + 1 < len(lines) and lines[i + 1].strip() == '{':
            functions_formatted += 1

    return dataclasses.replace(
        report,
        function_count=function_count,
        functions_formatted=functions_formatted,
    )


def is_allman_style_compliant(code: str) -> bool:
    return analyze_c_code(code).is_allman_compliant

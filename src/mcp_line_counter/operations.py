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

"""Core entry points: whole-buffer operations on C source text.

Every function here is pure: text in, text (or a report) out. Line endings
are normalized to ``\\n`` on input and the output always uses ``\\n``.
"""

from mcp_line_counter.analyzer import analyze_c_code
from mcp_line_counter.annotator import annotate_lines, strip_lines
from mcp_line_counter.formatter import reformat_lines
from mcp_line_counter.lexer import split_lines
from mcp_line_counter.models import AnalysisReport, FunctionSpan


def annotate_with_spans(text: str) -> tuple[str, list[FunctionSpan]]:
    """Reformat, then annotate; also return the spans found (0-indexed into the result)."""
    lines, spans = annotate_lines(reformat_lines(split_lines(text)))
    return "\n".join(lines), spans


def annotate(text: str) -> str:
    """Reformat into Allman style, then write a line-count marker above each function."""
    return annotate_with_spans(text)[0]


def format_only(text: str) -> str:
    """Reformat into Allman style without touching markers."""
    return "\n".join(reformat_lines(split_lines(text)))


def strip_annotations(text: str) -> str:
    """Remove every line-count marker."""
    return "\n".join(strip_lines(split_lines(text)))


def analyze(text: str) -> AnalysisReport:
    return analyze_c_code(text)


def is_allman_compliant(text: str) -> bool:
    return analyze(text).is_allman_compliant

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

"""Significant body-line counting.

A function's line count covers the lines strictly inside its outermost
brace pair. Brace-only lines and comment-only lines contribute nothing;
blank lines inside a body that has real code do count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mcp_line_counter.lexer import scan_line
from mcp_line_counter.models import LexState

_NON_CODE_RE = re.compile(r'[\s{}]')


@dataclass(frozen=True)
class _BodyLine:
    raw: str
    text: str  # comment-free text that belongs to the body
    incoming: LexState
    edge: bool  # holds the opening or the closing brace


def _has_code(text: str) -> bool:
    return bool(_NON_CODE_RE.sub('', text))


def _body_lines(
    lines: list[str], start_line: int, end_line: int, state: LexState
) -> list[_BodyLine] | None:
    """Slice a span into body lines, from the opening-brace line to end_line.

    On the opening line only the text after the first ``{`` belongs to the
    body; on the closing line only the text before the last ``}``. Returns
    None if the span has no opening brace.
    """
    body: list[_BodyLine] = []
    opened = False
    for idx in range(start_line, end_line + 1):
        raw = lines[idx]
        scan = scan_line(raw, state)
        incoming, state = state, scan.state
        lo, hi = 0, len(raw)
        edge = False

        if not opened:
            opens = [col for col, ch in scan.structural if ch == '{']
            if not opens:
                continue
            opened = True
            edge = True
            lo = opens[0] + 1

        if idx == end_line:
            closes = [col for col, ch in scan.structural if ch == '}' and col >= lo]
            if closes:
                hi = closes[-1]
            edge = True

        # A structural brace is never inside a comment or literal, so the
        # slice after one starts from a clean state.
        seg_state = incoming if lo == 0 else LexState()
        text = scan_line(raw[lo:hi], seg_state).code
        body.append(_BodyLine(raw=raw, text=text, incoming=incoming, edge=edge))

    return body if opened else None


def has_body_code(
    lines: list[str], start_line: int, end_line: int, state: LexState = LexState()
) -> bool:
    """True if the body holds anything besides braces, blanks and comments."""
    body = _body_lines(lines, start_line, end_line, state)
    if body is None:
        return False
    return any(_has_code(b.text) for b in body)


def count_body_lines(
    lines: list[str], start_line: int, end_line: int, state: LexState = LexState()
) -> int:
    """Count the significant body lines of the function spanning the given lines.

    Rules, per line after the opening brace:
      - the signature itself is never counted;
      - text after ``{`` on the opening line counts once if it holds code
        (for ``sig() { stmt; }`` on one line the count is therefore 1 or 0);
      - the closing line counts only if code precedes its final ``}``;
      - lines made only of braces contribute 0;
      - comment-only lines, and lines wholly inside a block comment,
        contribute 0; code before ``/*`` or after ``*/`` makes the line count;
      - blank lines inside the body count 1.
    A body without any code at all counts 0, blank lines included.
    """
    body = _body_lines(lines, start_line, end_line, state)
    if body is None:
        return 0
    if not any(_has_code(b.text) for b in body):
        return 0

    count = 0
    for b in body:
        if b.edge:
            if _has_code(b.text):
                count += 1
            continue
        if not b.raw.strip():
            if not b.incoming.in_block_comment:
                count += 1
            continue
        if _has_code(b.text):
            count += 1
    return count

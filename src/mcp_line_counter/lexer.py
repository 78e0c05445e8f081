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

"""Line-at-a-time lexical scanner for C source.

Tracks string literals, char literals, line comments and block comments so
that brace and parenthesis characters inside them are never counted. Only
the block-comment flag is carried from one line to the next (see LexState).
"""

from mcp_line_counter.models import LexState, LineScan

_STRUCTURAL = "{}();"


def normalize_newlines(text: str) -> str:
    """Convert \\r\\n and bare \\r line endings to \\n."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(text: str) -> list[str]:
    """Split a buffer into lines after normalizing line endings."""
    return normalize_newlines(text).split("\n")


def _is_escaped(line: str, pos: int) -> bool:
    """True if the quote at *pos* is preceded by an odd number of backslashes."""
    count = 0
    j = pos - 1
    while j >= 0 and line[j] == '\\':
        count += 1
        j -= 1
    return count % 2 == 1


def scan_line(line: str, state: LexState = LexState()) -> LineScan:
    """Scan one line starting from *state*.

    Returns the outgoing state, the positions of structural characters
    (``{ } ( ) ;``) that occur outside literals and comments, and the line's
    code text with all comment content removed.

    An unterminated string or char literal stays open to the end of the line
    and is dropped at the line break.
    """
    in_block_comment = state.in_block_comment
    in_string = False
    in_char = False
    structural: list[tuple[int, str]] = []
    code: list[str] = []

    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < n else ''

        if in_block_comment:
            if ch == '*' and nxt == '/':
                in_block_comment = False
                i += 2
                continue
            i += 1
            continue

        if not in_string and not in_char and ch == '/':
            if nxt == '/':
                break  # rest is line comment
            if nxt == '*':
                in_block_comment = True
                i += 2
                continue

        if ch == '"' and not in_char:
            if not in_string:
                in_string = True
            elif not _is_escaped(line, i):
                in_string = False
        elif ch == '\'' and not in_string:
            if not in_char:
                in_char = True
            elif not _is_escaped(line, i):
                in_char = False
        elif not in_string and not in_char and ch in _STRUCTURAL:
            structural.append((i, ch))

        code.append(ch)
        i += 1

    return LineScan(
        state=LexState(in_block_comment=in_block_comment),
        structural=tuple(structural),
        code=''.join(code),
    )


def line_states(lines: list[str], state: LexState = LexState()) -> list[LexState]:
    """Return the incoming LexState of every line in *lines*."""
    states: list[LexState] = []
    for line in lines:
        states.append(state)
        state = scan_line(line, state).state
    return states


def find_matching_close(
    line: str,
    start: int,
    open_char: str = '(',
    close_char: str = ')',
    state: LexState = LexState(),
) -> int:
    """Find the index of the character closing the group opened at *start*.

    Only structural characters outside literals and comments take part.
    Returns -1 if the group does not close on this line.
    """
    depth = 0
    for pos, ch in scan_line(line, state).structural:
        if pos < start:
            continue
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return pos
    return -1

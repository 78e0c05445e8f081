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

"""Function boundary detection for C source (best-effort).

A line is classified by a short chain of rejection rules followed by one
acceptance test; the first rule that matches decides. The result is either a
Candidate (looks like the first line of a function definition) or a
Rejected carrying a short reason tag. Nothing here raises for malformed C.
"""

from __future__ import annotations

import logging
import re
from typing import Union

from mcp_line_counter.counter import count_body_lines
from mcp_line_counter.lexer import find_matching_close, scan_line
from mcp_line_counter.models import Candidate, FunctionSpan, LexState, Rejected

logger = logging.getLogger(__name__)

Verdict = Union[Candidate, Rejected]

# Signatures may wrap across at most this many lines.
MAX_SIGNATURE_LINES = 10
# The opening brace must appear within this many lines of the signature start.
MAX_BRACE_LOOKAHEAD = 10

_FUNC_NAME_RE = re.compile(r'(\w+)\s*\(')
_TYPE_DECL_RE = re.compile(r'(struct|enum|union)\b')
_TYPEDEF_RE = re.compile(r'typedef\b')

_INVALID_STARTERS = frozenset(
    ['if', 'while', 'for', 'switch', 'return', 'sizeof', 'else', 'case', 'do', 'goto']
)


def _clean(line: str) -> str:
    return line.replace('\r', '').strip()


def _is_comment_line(clean: str) -> bool:
    return clean.startswith('//') or clean.startswith('/*') or clean.startswith('*')


def _reject_leading(clean: str) -> Rejected | None:
    """Rejection rules that only look at how the line starts."""
    if not clean:
        return Rejected('blank')
    if _is_comment_line(clean):
        return Rejected('comment')
    if clean.startswith('#'):
        return Rejected('preprocessor')
    if _TYPEDEF_RE.match(clean):
        return Rejected('type-declaration')
    if _TYPE_DECL_RE.match(clean) and '(' not in clean:
        return Rejected('type-declaration')
    return None


# ---------------------------------------------------------------------------
# Acceptance
# ---------------------------------------------------------------------------


def classify_signature(text: str) -> Verdict:
    """Apply the acceptance test to a (possibly joined) signature text.

    The first identifier followed by ``(`` is the candidate name. The text
    before it must look like a return type, the parameter list must close,
    and whatever follows it must be empty or start with ``{``.
    """
    m = _FUNC_NAME_RE.search(text)
    if not m:
        return Rejected('not-a-signature')

    name = m.group(1)
    before = text[:m.start()].strip()
    if not before:
        return Rejected('not-a-signature')
    if any(c in before for c in '=;{}'):
        return Rejected('not-a-signature')

    words = re.findall(r'\w+', before)
    if name in _INVALID_STARTERS or (words and words[-1] in _INVALID_STARTERS):
        return Rejected('not-a-signature')

    close_paren = find_matching_close(text, m.end() - 1)
    if close_paren == -1:
        return Rejected('not-a-signature')

    after = text[close_paren + 1:].strip()
    if after and not after.startswith('{'):
        return Rejected('not-a-signature')

    return Candidate(name=name, signature=text)


def is_valid_function_signature(line: str) -> bool:
    return isinstance(classify_signature(_clean(line)), Candidate)


# ---------------------------------------------------------------------------
# Single-line and multi-line classification
# ---------------------------------------------------------------------------


def classify_line(line: str) -> Verdict:
    """Classify a single line as a function start or not."""
    clean = _clean(line)
    rejected = _reject_leading(clean)
    if rejected is not None:
        return rejected
    if clean.endswith(';'):
        return Rejected('declaration')
    return classify_signature(clean)


def classify_multiline(
    lines: list[str], index: int, state: LexState = LexState()
) -> Verdict:
    """Classify the signature starting at *index*, which may wrap lines.

    Line text is accumulated (comment lines skipped, trailing comments
    dropped) until the parenthesis depth returns to zero. If that does not
    happen within MAX_SIGNATURE_LINES lines the candidate is rejected.
    """
    if state.in_block_comment:
        return Rejected('in-block-comment')

    clean = _clean(lines[index])
    rejected = _reject_leading(clean)
    if rejected is not None:
        return rejected
    if clean.endswith(';'):
        return Rejected('declaration')

    parts: list[str] = []
    depth = 0
    seen_open = False
    found_close = False
    scan_state = state
    idx = index

    while idx < len(lines) and idx < index + MAX_SIGNATURE_LINES:
        current = _clean(lines[idx])
        scan = scan_line(current, scan_state)
        if scan_state.in_block_comment or _is_comment_line(current):
            scan_state = scan.state
            idx += 1
            continue
        scan_state = scan.state

        parts.append(scan.code.strip())
        for _, ch in scan.structural:
            if ch == '(':
                depth += 1
                seen_open = True
            elif ch == ')':
                depth -= 1
                if depth < 0:
                    return Rejected('unterminated-signature')
        idx += 1

        if seen_open and depth == 0:
            found_close = True
            break

    if not found_close:
        return Rejected('unterminated-signature')

    signature = ' '.join(p for p in parts if p)
    if signature.endswith(';'):
        return Rejected('declaration')
    return classify_signature(signature)


def is_function_start(line: str) -> bool:
    return isinstance(classify_line(line), Candidate)


def is_function_start_multiline(lines: list[str], index: int) -> bool:
    return isinstance(classify_multiline(lines, index), Candidate)


# ---------------------------------------------------------------------------
# Body location
# ---------------------------------------------------------------------------


def _signature_text(lines: list[str], start_line: int, open_line: int, open_col: int) -> str:
    parts: list[str] = []
    state = LexState()
    for idx in range(start_line, open_line + 1):
        line = lines[idx] if idx != open_line else lines[idx][:open_col]
        scan = scan_line(line, state)
        state = scan.state
        if scan.code.strip():
            parts.append(scan.code.strip())
    return ' '.join(parts)


def find_body(
    lines: list[str], start_line: int, state: LexState = LexState()
) -> FunctionSpan | None:
    """Find the body of the function whose signature starts at *start_line*.

    Returns None when no opening brace appears within MAX_BRACE_LOOKAHEAD
    lines, when a closing brace comes before any opening one, or when the
    braces never balance before the end of the buffer.
    """
    balance = 0
    found_open = False
    open_line = -1
    open_col = -1
    scan_state = state
    current = start_line

    while current < len(lines):
        scan = scan_line(lines[current], scan_state)
        scan_state = scan.state
        for col, ch in scan.structural:
            if ch == '{':
                balance += 1
                if not found_open:
                    found_open = True
                    open_line, open_col = current, col
            elif ch == '}':
                if not found_open:
                    logger.debug("Closing brace before body at line %d", current + 1)
                    return None
                balance -= 1
                if balance == 0:
                    return FunctionSpan(
                        start_line=start_line,
                        end_line=current,
                        signature_text=_signature_text(lines, start_line, open_line, open_col),
                        line_count=count_body_lines(lines, start_line, current, state),
                        open_brace_line=open_line,
                    )

        current += 1
        if not found_open and current - start_line > MAX_BRACE_LOOKAHEAD:
            break

    logger.debug("No function body found for candidate at line %d", start_line + 1)
    return None


def find_functions(lines: list[str]) -> list[FunctionSpan]:
    """Locate every function definition in *lines*, in order.

    Scanning resumes after the closing line of each function found, so
    nothing inside a body is ever taken for a signature.
    """
    spans: list[FunctionSpan] = []
    state = LexState()
    i = 0
    while i < len(lines):
        span = None
        if isinstance(classify_multiline(lines, i, state), Candidate):
            span = find_body(lines, i, state)
        if span is None:
            state = scan_line(lines[i], state).state
            i += 1
            continue
        spans.append(span)
        for j in range(i, span.end_line + 1):
            state = scan_line(lines[j], state).state
        i = span.end_line + 1
    return spans

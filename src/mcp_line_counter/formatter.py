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

"""Allman-style reformatting of C function bodies, plus text preprocessing.

The reformatter is a textual, single-pass rewrite: each line is looked at on
its own and either kept or split. It only moves braces of function
definitions and of lines that end in a closing brace; everything else is
left verbatim. Running it twice gives the same result as running it once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mcp_line_counter.detector import is_valid_function_signature
from mcp_line_counter.lexer import (
    find_matching_close,
    line_states,
    normalize_newlines,
    scan_line,
)

_INDENT_RE = re.compile(r'^\s*')
_EMPTY_BRACE_RE = re.compile(r'\{\s*\}')


def _indent_of(line: str) -> str:
    return _INDENT_RE.match(line).group(0)


def _is_passthrough(trimmed: str) -> bool:
    return (
        not trimmed
        or trimmed.startswith('//')
        or trimmed.startswith('/*')
        or trimmed.startswith('*')
        or trimmed.startswith('#')
    )


def _reduce_indent(indent: str) -> str:
    """Strip one indent unit: a tab, else four spaces, else one character."""
    if indent.endswith('\t'):
        return indent[:-1]
    if indent.endswith('    '):
        return indent[:-4]
    if indent:
        return indent[:-1]
    return indent


def _split_statements(text: str) -> list[str]:
    """Split inline body text at top-level ``;`` (outside literals and comments)."""
    pieces: list[str] = []
    depth = 0
    start = 0
    for col, ch in scan_line(text).structural:
        if ch in '({':
            depth += 1
        elif ch in ')}':
            depth -= 1
        elif ch == ';' and depth == 0:
            pieces.append(text[start:col + 1].strip())
            start = col + 1
    tail = text[start:].strip()
    if tail:
        pieces.append(tail)
    return [p for p in pieces if p and p != ';']


# ---------------------------------------------------------------------------
# Line rules
# ---------------------------------------------------------------------------


def _first_open_brace(trimmed: str) -> int:
    for col, ch in scan_line(trimmed).structural:
        if ch == '{':
            return col
    return -1


def is_function_signature_with_brace(line: str) -> bool:
    """A function signature with its opening brace on the same line."""
    trimmed = line.strip()
    if not trimmed or trimmed.startswith('{'):
        return False
    if _first_open_brace(trimmed) == -1:
        return False
    return is_valid_function_signature(trimmed)


def _format_function_line(line: str) -> list[str]:
    trimmed = line.strip()
    indent = _indent_of(line)
    brace = _first_open_brace(trimmed)

    signature = trimmed[:brace].strip()
    result = [indent + signature, indent + '{']

    after = trimmed[brace + 1:]
    if not after.strip():
        return result
    if after.strip() == '}':
        result.append(indent + '}')
        return result

    close = find_matching_close(trimmed, brace, '{', '}')
    content = trimmed[brace + 1:close] if close != -1 else after
    for statement in _split_statements(content):
        result.extend(_format_line(indent + '\t' + statement))

    if close != -1:
        result.append(indent + '}')
        trailing = trimmed[close + 1:].strip()
        if trailing:
            result.extend(_format_line(indent + trailing))
    return result


def is_empty_brace_block(line: str) -> bool:
    return _EMPTY_BRACE_RE.fullmatch(line.strip()) is not None


def _format_empty_brace_block(line: str) -> list[str]:
    indent = _indent_of(line)
    return [indent + '{', indent + '}']


def has_closing_brace_with_content(line: str) -> bool:
    """A line whose last character is a real ``}`` preceded by other text."""
    trimmed = line.strip()
    if not trimmed.endswith('}') or trimmed in ('}', '{}'):
        return False
    structural = scan_line(trimmed).structural
    if not structural or structural[-1] != (len(trimmed) - 1, '}'):
        return False
    return bool(trimmed[:-1].strip())


def _format_closing_brace_line(line: str) -> list[str]:
    trimmed = line.strip()
    indent = _indent_of(line)
    content = trimmed[:-1].strip()
    return _format_line(indent + content) + [_reduce_indent(indent) + '}']


def _format_line(line: str) -> list[str]:
    trimmed = line.strip()
    if _is_passthrough(trimmed):
        return [line]
    if is_function_signature_with_brace(line):
        return _format_function_line(line)
    if is_empty_brace_block(line):
        return _format_empty_brace_block(line)
    if has_closing_brace_with_content(line):
        return _format_closing_brace_line(line)
    return [line]


def reformat_lines(lines: list[str]) -> list[str]:
    """Rewrite K&R-style function braces onto their own lines.

    Lines that start inside a block comment are kept verbatim.
    """
    result: list[str] = []
    for line, state in zip(lines, line_states(lines)):
        if state.in_block_comment:
            result.append(line)
        else:
            result.extend(_format_line(line))
    return result


def format_c_functions(code: str) -> str:
    """Reformat a whole buffer into Allman style."""
    return '\n'.join(reformat_lines(normalize_newlines(code).split('\n')))


def format_single_c_function(function_code: str) -> str:
    """Move the opening brace of a single function snippet onto its own line."""
    formatted = function_code.strip()
    lines = formatted.split('\n')
    signature_line = lines[0]

    if '{' in signature_line:
        signature, _, rest = signature_line.partition('{')
        body = rest + '\n' + '\n'.join(lines[1:])
        formatted = f"{signature.strip()}\n{{{body}"

    return formatted


# ---------------------------------------------------------------------------
# Preprocessing for raw line counts
# ---------------------------------------------------------------------------


@dataclass
class FormatOptions:
    remove_comments: bool = True
    normalize_whitespace: bool = True
    remove_empty_lines: bool = True
    preserve_indentation: bool = False
    format_c_functions: bool = True


def remove_comments(code: str) -> str:
    code = re.sub(r'/\*[\s\S]*?\*/', '', code)
    code = re.sub(r'//.*$', '', code, flags=re.MULTILINE)
    return re.sub(r'<!--[\s\S]*?-->', '', code)


def normalize_whitespace(code: str, preserve_indentation: bool = False) -> str:
    """Collapse runs of blanks, normalize line endings, drop trailing blanks.

    With *preserve_indentation*, leading whitespace of each line is kept.
    """
    code = normalize_newlines(code)
    if preserve_indentation:
        lines = []
        for line in code.split('\n'):
            indent = _indent_of(line)
            lines.append(indent + re.sub(r'[ \t]+', ' ', line[len(indent):]))
        code = '\n'.join(lines)
    else:
        code = re.sub(r'[ \t]+', ' ', code)
    return re.sub(r'[ \t]+$', '', code, flags=re.MULTILINE)


def remove_empty_lines(code: str) -> str:
    return '\n'.join(line for line in code.split('\n') if line.strip())


def preprocess_for_counting(code: str, options: FormatOptions | None = None) -> str:
    """Apply the enabled preprocessing steps, in a fixed order."""
    opts = options or FormatOptions()
    processed = code

    if opts.format_c_functions:
        processed = format_c_functions(processed)
    if opts.remove_comments:
        processed = remove_comments(processed)
    if opts.normalize_whitespace:
        processed = normalize_whitespace(processed, opts.preserve_indentation)
    if opts.remove_empty_lines:
        processed = remove_empty_lines(processed)

    return processed


def count_significant_lines(code: str) -> int:
    """Number of lines left once comments, extra whitespace and blanks are gone."""
    return len(preprocess_for_counting(code).split('\n'))

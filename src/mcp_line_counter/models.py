"""Data models shared by the scanner, detector, counter and annotator."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LexState:
    """Lexical state carried from one line to the next.

    Only the block-comment flag survives a line break: string and char
    literals cannot span a raw newline in C.
    """

    in_block_comment: bool = False


@dataclass(frozen=True)
class LineScan:
    """Result of scanning a single line."""

    state: LexState  # outgoing state, to seed the next line
    structural: tuple[tuple[int, str], ...]  # (column, char) of {}();  outside literals/comments
    code: str  # the line with comment text removed (literals kept)


@dataclass(frozen=True)
class Candidate:
    """A line (or run of lines) accepted as the start of a function definition."""

    name: str
    signature: str  # signature text, joined onto one line for multi-line signatures


@dataclass(frozen=True)
class Rejected:
    """A line that is not the start of a function definition."""

    reason: str  # e.g. "blank", "comment", "declaration", "not-a-signature"


@dataclass(frozen=True)
class FunctionSpan:
    """A located function definition (0-indexed lines, inclusive on both ends)."""

    start_line: int  # first line of the signature
    end_line: int  # line holding the brace that closes the body
    signature_text: str
    line_count: int
    open_brace_line: int = -1


@dataclass(frozen=True)
class AnalysisReport:
    """Read-only style report for a single buffer."""

    total_lines: int
    code_lines: int
    comment_lines: int
    empty_lines: int
    function_count: int = 0
    functions_formatted: int = 0

    @property
    def is_allman_compliant(self) -> bool:
        return self.function_count == self.functions_formatted


@dataclass
class FileReport:
    """Style and line-count report for one file of a project scan."""

    path: str  # relative to the project root
    analysis: AnalysisReport
    functions: list[FunctionSpan] = field(default_factory=list)
    over_limit: list[FunctionSpan] = field(default_factory=list)


@dataclass
class ProjectReport:
    """Aggregated report for every C source file found in a project."""

    root_path: str
    files: dict[str, FileReport] = field(default_factory=dict)

    # Stats
    total_files: int = 0
    total_lines: int = 0
    total_functions: int = 0
    total_formatted: int = 0
    total_over_limit: int = 0
    scan_time_seconds: float = 0.0

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

"""Project-wide line-count and style scan.

Walks a project directory, analyzes every C source/header file and collects
per-function line counts. Read-only: files are never modified.
"""

import fnmatch
import logging
import os
import time
from pathlib import Path

from mcp_line_counter.detector import find_functions
from mcp_line_counter.lexer import split_lines
from mcp_line_counter.models import FileReport, ProjectReport
from mcp_line_counter.operations import analyze

logger = logging.getLogger(__name__)


def read_source(abs_path: str) -> str:
    """Read a file as text, trying UTF-8 first then latin-1 as fallback."""
    try:
        with open(abs_path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError:
        with open(abs_path, "r", encoding="latin-1", newline="") as f:
            return f.read()


class ProjectScanner:
    """Scans an entire codebase for function line counts and brace style."""

    def __init__(
        self,
        root_path: str,
        include_patterns: list[str] | None = None,
        exclude_patterns: list[str] | None = None,
        max_file_size_bytes: int = 500_000,
        max_lines: int = 25,
    ):
        self.root_path = os.path.abspath(root_path)
        self.include_patterns = include_patterns or [
            "**/*.c",
            "**/*.h",
        ]
        self.exclude_patterns = exclude_patterns or [
            "**/.git/**",
            "**/build/**",
            "**/.venv/**",
            "**/venv/**",
            "**/node_modules/**",
        ]
        self.max_file_size_bytes = max_file_size_bytes
        self.max_lines = max_lines

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self) -> ProjectReport:
        """Discover matching files and build a report for each of them."""
        start_time = time.monotonic()

        file_paths = self._discover_files()
        logger.info("Discovered %d files in %s", len(file_paths), self.root_path)

        report = ProjectReport(root_path=self.root_path)
        for fpath in file_paths:
            rel_path = os.path.relpath(fpath, self.root_path)
            file_report = self.scan_file(rel_path)
            if file_report is None:
                continue
            report.files[rel_path] = file_report
            report.total_lines += file_report.analysis.total_lines
            report.total_functions += len(file_report.functions)
            report.total_formatted += file_report.analysis.functions_formatted
            report.total_over_limit += len(file_report.over_limit)

        report.total_files = len(report.files)
        report.scan_time_seconds = time.monotonic() - start_time

        logger.info(
            "Scanned %d files (%d lines, %d functions, %d over limit) in %.2fs",
            report.total_files,
            report.total_lines,
            report.total_functions,
            report.total_over_limit,
            report.scan_time_seconds,
        )
        return report

    def scan_file(self, file_path: str) -> FileReport | None:
        """Analyze a single file (absolute or relative to root_path)."""
        abs_path = (
            os.path.abspath(file_path)
            if os.path.isabs(file_path)
            else os.path.join(self.root_path, file_path)
        )
        rel_path = os.path.relpath(abs_path, self.root_path)

        try:
            source = read_source(abs_path)
        except OSError as e:
            logger.warning("Skipping %s: %s", rel_path, e)
            return None

        functions = find_functions(split_lines(source))
        over_limit = []
        if self.max_lines > 0:
            over_limit = [f for f in functions if f.line_count > self.max_lines]

        return FileReport(
            path=rel_path,
            analysis=analyze(source),
            functions=functions,
            over_limit=over_limit,
        )

    # ------------------------------------------------------------------
    # File discovery
    # ------------------------------------------------------------------

    def _discover_files(self) -> list[str]:
        """Discover files matching include patterns, excluding exclude patterns."""
        root = Path(self.root_path)
        matched: set[str] = set()

        for pattern in self.include_patterns:
            for p in root.glob(pattern):
                if p.is_file():
                    abs_str = str(p)
                    rel_str = os.path.relpath(abs_str, self.root_path)

                    if self._is_excluded(rel_str):
                        continue

                    try:
                        size = p.stat().st_size
                    except OSError:
                        continue
                    if size > self.max_file_size_bytes:
                        logger.debug("Skipping %s (size %d > %d)", rel_str, size, self.max_file_size_bytes)
                        continue

                    matched.add(abs_str)

        return sorted(matched)

    def _is_excluded(self, rel_path: str) -> bool:
        """Check if a relative path matches any exclude pattern."""
        normalized = rel_path.replace(os.sep, "/")
        parts = normalized.split("/")
        for pattern in self.exclude_patterns:
            if fnmatch.fnmatch(normalized, pattern):
                return True
            # Plain directory exclusions, e.g. "build" anywhere in the path
            dir_name = pattern.replace("**/", "").replace("/**", "").strip("/")
            if dir_name in parts[:-1]:
                return True
        return False

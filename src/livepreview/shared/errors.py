"""
Error Reporting

Diagnostics and exception types shared by the virtual file system, the
source transformer, the module graph assembler and the tool layer.
"""

import os
import sys
from dataclasses import dataclass, field
from typing import Optional, List, Dict
from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set or not a TTY)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("LIVEPREVIEW_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    if explicit in ("1", "true", "yes", "always"):
        return True
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_YELLOW = "\033[33m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """A build error or warning ready for rendering."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    severity: str = "error"
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class Diagnostic:
    """
    Non-fatal build finding (an unresolved import).

    Diagnostics travel alongside a successful build; they never abort it.
    """
    message: str
    path: str
    specifier: Optional[str] = None
    location: Optional[SourceLocation] = None
    severity: str = "warning"
    code: str = "W0001"

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.code,
            severity=self.severity,
            label="imported here" if self.location else None,
        )

    def __str__(self) -> str:
        where = str(self.location) if self.location else self.path
        return f"{self.severity}[{self.code}]: {self.message}\n --> {where}"


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0201]: Expected corresponding JSX closing tag for <div>
         --> /App.jsx:3:5
          |
        3 |     </span>
          |     ^^^^^^^
    """
    out: List[str] = []
    tint = _RED if error.severity == "error" else _YELLOW

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"{error.severity}{code_str}", _BOLD, tint, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None:
        out.append(
            _style(" --> ", _BOLD, _BLUE, color=color)
            + f"{loc.file}:{loc.line}:{loc.column}"
        )
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""
    gw = max(len(str(loc.line)), 1)

    out.append(
        _style(" " * gw + "--> ", _BOLD, _BLUE, color=color)
        + f"{loc.file}:{loc.line}:{loc.column}"
    )
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_column > loc.column and loc.end_line in (0, loc.line):
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, tint, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when end_column is unavailable."""
    if col_start >= len(code_line):
        return 1
    length = 0
    for ch in code_line[col_start:]:
        if ch in (" ", "\t", ";", ",", ")", "]", "}", ">"):
            break
        length += 1
    return max(1, length)


def _append_annotations(
    out: List[str],
    error: Error,
    gw: int,
    color: bool,
) -> None:
    if not (error.help or error.note):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects errors and warnings and renders them against project sources."""

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []
        self.warnings: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def report_exception(self, exc: "LivePreviewError") -> None:
        self.errors.append(exc.to_error())

    def report_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.warnings.append(diagnostic.to_error())

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all(self, color: Optional[bool] = None) -> str:
        parts = [self.format_error(w, color=color) for w in self.warnings]
        parts.extend(self.format_error(e, color=color) for e in self.errors)
        count = len(self.errors)
        if count:
            use_color = color if color is not None else _use_color()
            summary = f"preview failed due to {count} previous error{'s' if count != 1 else ''}"
            parts.append(
                _style("error", _BOLD, _RED, color=use_color)
                + _style(f": {summary}", _BOLD, color=use_color)
            )
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def print_all(self) -> None:
        text = self.format_all()
        if text:
            print(text, file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class LivePreviewError(Exception):
    """Base exception for all livepreview errors"""
    error_code = "E0001"

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def to_error(self) -> Error:
        return Error(message=self.message, location=self.location, code=self.error_code)

    def __str__(self):
        if self.location:
            return f"error[{self.error_code}]: {self.message}\n --> {self.location}"
        return self.message


# -- virtual file system ------------------------------------------------------

class FileSystemError(LivePreviewError):
    """Failure of a virtual file system operation; carries the offending path."""
    error_code = "E0100"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidPath(FileSystemError):
    error_code = "E0101"


class NotFound(FileSystemError):
    error_code = "E0102"


class AlreadyExists(FileSystemError):
    error_code = "E0103"


class PathIsDirectory(FileSystemError):
    error_code = "E0104"


class NotDirectory(FileSystemError):
    error_code = "E0105"


class CorruptSnapshot(FileSystemError):
    error_code = "E0106"


# -- source transformer -------------------------------------------------------

class TransformSyntaxError(LivePreviewError):
    """
    Source that cannot be lexed or lowered.

    Rendered with a rustc-style snippet when the file text is attached.
    """
    error_code = "E0201"

    def __init__(self,
                 message: str,
                 path: str,
                 location: Optional[SourceLocation] = None,
                 source_code: Optional[str] = None,
                 help: Optional[str] = None):
        super().__init__(message, location)
        self.path = path
        self.source_code = source_code
        self.help_text = help

    @property
    def line(self) -> Optional[int]:
        return self.location.line if self.location else None

    @property
    def column(self) -> Optional[int]:
        return self.location.column if self.location else None

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
        )

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code is not None and self.location:
            source_files[self.location.file] = self.source_code
        return _format_diagnostic(self.to_error(), source_files, color=False)


# -- module graph assembler ---------------------------------------------------

class BuildFailed(LivePreviewError):
    """A preview build that cannot produce a runnable module graph."""
    error_code = "E0301"

    def __init__(self,
                 path: str,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, location)
        self.path = path
        self.cause = cause

    def to_error(self) -> Error:
        if isinstance(self.cause, LivePreviewError):
            error = self.cause.to_error()
            error.note = f"while building the preview module graph for {self.path}"
            return error
        return Error(message=self.message, location=self.location, code=self.error_code)

    def __str__(self):
        if self.location:
            return f"{self.location}: {self.message}"
        return f"{self.path}: {self.message}"


# -- tool layer ---------------------------------------------------------------

class ToolError(LivePreviewError):
    """Invalid tool-call arguments, reported back to the agent."""
    error_code = "E0400"


class NoMatch(ToolError):
    error_code = "E0401"


class LineOutOfRange(ToolError):
    error_code = "E0402"


class NothingToUndo(ToolError):
    error_code = "E0403"


class UnknownCommand(ToolError):
    error_code = "E0404"

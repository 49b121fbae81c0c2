"""
Tests for diagnostics rendering and the exception hierarchy.
"""

import re

import pytest
from livepreview.frontend.lexer import tokenize
from livepreview.shared.errors import (
    BuildFailed,
    Diagnostic,
    Error,
    ErrorReporter,
    FileSystemError,
    LivePreviewError,
    NotFound,
    ToolError,
    TransformSyntaxError,
    UnknownCommand,
)
from livepreview.shared.source_location import SourceLocation

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

BROKEN = "const a = <div></span>;"
IMPORTING = 'import a from "./x";'


def _strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def _syntax_error() -> TransformSyntaxError:
    with pytest.raises(TransformSyntaxError) as info:
        tokenize(BROKEN, "/App.jsx")
    return info.value


class TestErrorReporter:
    """rustc-style rendering of errors and warnings."""

    def test_syntax_error_snippet(self):
        reporter = ErrorReporter({"/App.jsx": BROKEN})
        reporter.report_exception(_syntax_error())
        out = reporter.format_all(color=False)
        assert "error[E0201]: Expected corresponding JSX closing tag for <div>" in out
        assert " --> /App.jsx:1:16" in out
        assert "1 | const a = <div></span>;" in out
        assert out.endswith("error: preview failed due to 1 previous error")
        assert reporter.has_errors()

    def test_diagnostic_label(self):
        location = SourceLocation("/App.jsx", 1, 15, end_line=1, end_column=20)
        diagnostic = Diagnostic("Unable to resolve import './x' from /App.jsx", "/App.jsx", "./x", location)
        reporter = ErrorReporter({"/App.jsx": IMPORTING})
        reporter.report_diagnostic(diagnostic)
        out = reporter.format_all(color=False)
        assert out.startswith("warning[W0001]: Unable to resolve import './x' from /App.jsx")
        assert " " * 14 + "^^^^^ imported here" in out
        assert "previous error" not in out
        assert not reporter.has_errors()

    def test_location_none(self):
        reporter = ErrorReporter({})
        out = reporter.format_error(Error("something failed", None, code="E0001"), color=False)
        assert "error[E0001]: something failed" in out
        assert "<unknown location>" in out

    def test_file_not_in_source_files(self):
        reporter = ErrorReporter({})
        out = reporter.format_error(Error("oops", SourceLocation("/x.js", 2, 3)), color=False)
        assert " --> /x.js:2:3" in out

    def test_help_and_note(self):
        error = Error("bad", SourceLocation("/a.js", 1, 1), help="try this", note="context")
        out = ErrorReporter({"/a.js": "x"}).format_error(error, color=False)
        assert "= help: try this" in out
        assert "= note: context" in out

    def test_color(self):
        out = ErrorReporter({}).format_error(Error("bad", None), color=True)
        assert "\x1b[" in out
        assert _strip_ansi(out).startswith("error: bad")

    def test_no_color_environment(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        reporter = ErrorReporter({})
        reporter.report_error("bad", None)
        assert "\x1b[" not in reporter.format_all()

    def test_print_all_goes_to_stderr(self, capsys):
        reporter = ErrorReporter({})
        reporter.report_error("bad", None)
        reporter.print_all()
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "bad" in captured.err

    def test_nothing_to_print(self, capsys):
        ErrorReporter({}).print_all()
        assert capsys.readouterr().err == ""


class TestExceptions:
    """Exception payloads and conversions."""

    def test_syntax_error_fields(self):
        error = _syntax_error()
        assert error.path == "/App.jsx"
        assert error.source_code == BROKEN
        assert isinstance(error, LivePreviewError)

    def test_build_failed_wraps_cause(self):
        cause = _syntax_error()
        failed = BuildFailed("/App.jsx", cause.message, cause.location, cause=cause)
        error = failed.to_error()
        assert error.code == "E0201"
        assert error.note == "while building the preview module graph for /App.jsx"
        assert str(failed) == "/App.jsx:1:16: Expected corresponding JSX closing tag for <div>"

    def test_build_failed_without_cause(self):
        failed = BuildFailed("/", "No entry point found")
        assert failed.to_error().code == "E0301"
        assert str(failed) == "/: No entry point found"

    def test_diagnostic_str(self):
        diagnostic = Diagnostic("missing", "/App.jsx", location=SourceLocation("/App.jsx", 1, 15))
        assert str(diagnostic) == "warning[W0001]: missing\n --> /App.jsx:1:15"
        assert str(Diagnostic("missing", "/App.jsx")) == "warning[W0001]: missing\n --> /App.jsx"

    def test_hierarchy(self):
        assert issubclass(NotFound, FileSystemError)
        assert issubclass(UnknownCommand, ToolError)
        error = NotFound("No such file or directory: /a", path="/a")
        assert error.path == "/a"
        assert str(error) == "No such file or directory: /a"

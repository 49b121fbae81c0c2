"""
Shared components: source locations, diagnostics and the error hierarchy.
"""

from .source_location import SourceLocation
from .errors import (
    Error, Diagnostic, ErrorReporter,
    LivePreviewError,
    FileSystemError, InvalidPath, NotFound, AlreadyExists, PathIsDirectory, NotDirectory, CorruptSnapshot,
    TransformSyntaxError,
    BuildFailed,
    ToolError, NoMatch, LineOutOfRange, NothingToUndo, UnknownCommand,
)

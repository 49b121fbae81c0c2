"""
str_replace_editor

The text-editing tool the agent drives the project with. Every command
works on the bound VirtualFileSystem; content-changing commands are
recorded so that undo_edit can roll them back one at a time.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..shared.errors import (
    LineOutOfRange,
    LivePreviewError,
    NoMatch,
    NothingToUndo,
    ToolError,
    UnknownCommand,
)
from ..utils.config import VIEW_LINE_NUMBER_WIDTH
from ..vfs.filesystem import VirtualFileSystem
from ..vfs.paths import basename, normalize_path
from .result import ToolResult

logger = logging.getLogger(__name__)

TOOL_NAME = "str_replace_editor"

_TEXT_ARGUMENTS = ("path", "file_text", "old_str", "new_str")


@dataclass(frozen=True)
class _Edit:
    path: str
    previous: Optional[str]  # None: the edit created the file


def _numbered(lines: Sequence[str], first: int) -> str:
    return "\n".join(
        f"{number:>{VIEW_LINE_NUMBER_WIDTH}}\t{line}"
        for number, line in enumerate(lines, start=first)
    )


class StrReplaceEditor:
    """
    Commands: view, create, str_replace, insert, undo_edit.

    The command methods raise LivePreviewError subclasses; execute() is the
    agent-facing entry point and turns them into failed ToolResults.
    """

    # command -> (required, optional) argument names
    _arguments: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
        "view": (("path",), ("view_range",)),
        "create": (("path", "file_text"), ()),
        "str_replace": (("path", "old_str"), ("new_str",)),
        "insert": (("path", "insert_line", "new_str"), ()),
        "undo_edit": ((), ("path",)),
    }

    def __init__(self, file_system: VirtualFileSystem):
        self.file_system = file_system
        self._history: List[_Edit] = []

    @property
    def history_depth(self) -> int:
        return len(self._history)

    def execute(self, command: str, **args) -> ToolResult:
        try:
            handler = self._handler(command)
            required, optional = self._arguments[command]
            kwargs = {name: value for name, value in args.items()
                      if name in required + optional and value is not None}
            missing = [name for name in required if name not in kwargs]
            if missing:
                raise ToolError(f"Missing argument(s) for {command}: {', '.join(missing)}")
            for name, value in kwargs.items():
                if name in _TEXT_ARGUMENTS and not isinstance(value, str):
                    raise ToolError(f"{name} must be a string, got {type(value).__name__}")
            output = handler(**kwargs)
        except LivePreviewError as e:
            logger.debug(f"{TOOL_NAME} {command} failed: {e.message}")
            return ToolResult.failed(e)
        logger.debug(f"{TOOL_NAME} {command} ok")
        return ToolResult.ok(output)

    def _handler(self, command: str) -> Callable[..., str]:
        if command not in self._arguments:
            raise UnknownCommand(
                f"Unknown command '{command}'. Allowed commands: {', '.join(self._arguments)}")
        return getattr(self, command)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def view(self, path: str, view_range: Optional[Sequence[int]] = None) -> str:
        """Numbered lines of a file, or the entries of a directory."""
        node = self.file_system.get_node(path)
        if node.is_directory:
            return self._listing(node.path)
        lines = (node.content or "").split("\n")
        if view_range is None:
            return _numbered(lines, 1)
        start, end = self._checked_range(view_range, len(lines))
        return _numbered(lines[start - 1:end], start)

    def create(self, path: str, file_text: str) -> str:
        normalized = normalize_path(path)
        previous = self.file_system.read(normalized) if self.file_system.is_file(normalized) else None
        self.file_system.create_or_update(normalized, file_text)
        self._history.append(_Edit(normalized, previous))
        if previous is None:
            return f"File created: {normalized}"
        return f"File overwritten: {normalized}"

    def str_replace(self, path: str, old_str: str, new_str: str = "") -> str:
        """Replace the single occurrence of old_str."""
        normalized = normalize_path(path)
        content = self.file_system.read(normalized)
        if not old_str:
            raise ToolError("old_str must not be empty")
        count = content.count(old_str)
        if count == 0:
            raise NoMatch(f"No match found for old_str in {normalized}")
        if count > 1:
            raise NoMatch(
                f"Found {count} matches for old_str in {normalized}; "
                "include more surrounding context to make the match unique")
        self.file_system.update(normalized, content.replace(old_str, new_str, 1))
        self._history.append(_Edit(normalized, content))
        return f"Replaced text in {normalized}"

    def insert(self, path: str, insert_line: int, new_str: str) -> str:
        """Insert new_str after line insert_line (0 inserts at the top)."""
        normalized = normalize_path(path)
        content = self.file_system.read(normalized)
        lines = content.splitlines(keepends=True)
        if isinstance(insert_line, bool) or not isinstance(insert_line, int):
            raise LineOutOfRange(f"insert_line must be an integer, got {insert_line!r}")
        if insert_line < 0 or insert_line > len(lines):
            raise LineOutOfRange(
                f"insert_line {insert_line} is out of range for {normalized} "
                f"(valid: 0 to {len(lines)})")
        if insert_line == len(lines) and lines and not lines[-1].endswith(("\n", "\r")):
            lines[-1] += "\n"
            text = new_str
        else:
            text = new_str if new_str.endswith("\n") else new_str + "\n"
        lines.insert(insert_line, text)
        self.file_system.update(normalized, "".join(lines))
        self._history.append(_Edit(normalized, content))
        return f"Inserted text after line {insert_line} of {normalized}"

    def undo_edit(self, path: Optional[str] = None) -> str:
        """
        Roll back the most recent edit (of path, when given).

        A file the edit created is removed again.
        """
        index = self._last_edit_index(normalize_path(path) if path is not None else None)
        edit = self._history.pop(index)
        if edit.previous is None:
            if self.file_system.exists(edit.path):
                self.file_system.delete(edit.path)
            return f"Undid creation of {edit.path}"
        self.file_system.create_or_update(edit.path, edit.previous)
        return f"Restored previous content of {edit.path}"

    # ------------------------------------------------------------------

    def _last_edit_index(self, path: Optional[str]) -> int:
        for index in range(len(self._history) - 1, -1, -1):
            if path is None or self._history[index].path == path:
                return index
        if path is None:
            raise NothingToUndo("No edits to undo")
        raise NothingToUndo(f"No edits to undo for {path}")

    def _listing(self, directory: str) -> str:
        entries = []
        for child in self.file_system.list(directory):
            name = basename(child)
            entries.append(name + "/" if self.file_system.is_directory(child) else name)
        if not entries:
            return f"{directory} is empty"
        return "\n".join(entries)

    @staticmethod
    def _checked_range(view_range: Sequence[int], line_count: int) -> Tuple[int, int]:
        if (not isinstance(view_range, (list, tuple)) or len(view_range) != 2
                or not all(isinstance(n, int) and not isinstance(n, bool) for n in view_range)):
            raise ToolError(f"view_range must be [start, end], got {view_range!r}")
        start, end = view_range
        if start < 1 or start > line_count:
            raise LineOutOfRange(f"view_range start {start} is out of range (1 to {line_count})")
        if end == -1:
            end = line_count
        if end < start or end > line_count:
            raise LineOutOfRange(f"view_range end {end} is out of range ({start} to {line_count})")
        return start, end

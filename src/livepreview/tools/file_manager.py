"""
file_manager: renames and deletes project files and directories.
"""

import logging
from typing import Callable, Dict, Optional

from ..shared.errors import LivePreviewError, ToolError, UnknownCommand
from ..vfs.filesystem import VirtualFileSystem
from ..vfs.paths import normalize_path
from .result import ToolResult

logger = logging.getLogger(__name__)

TOOL_NAME = "file_manager"


class FileManager:
    def __init__(self, file_system: VirtualFileSystem):
        self.file_system = file_system

    def rename_file(self, path: str, new_path: str) -> str:
        """Move a file or directory; missing parents of new_path are created."""
        source = normalize_path(path)
        target = self.file_system.rename(source, new_path)
        return f"Successfully renamed {source} to {target}"

    def delete_file(self, path: str) -> str:
        """Delete a file, or a directory with everything below it."""
        removed = self.file_system.delete(path)
        if len(removed) > 1:
            return f"Successfully deleted {removed[0]} ({len(removed)} entries)"
        return f"Successfully deleted {removed[0]}"

    def execute(self, command: str, path: Optional[str] = None, new_path: Optional[str] = None, **_) -> ToolResult:
        commands: Dict[str, Callable[[], str]] = {
            "rename": lambda: self.rename_file(self._required("path", path), self._required("new_path", new_path)),
            "delete": lambda: self.delete_file(self._required("path", path)),
        }
        commands["rename_file"] = commands["rename"]
        commands["delete_file"] = commands["delete"]
        try:
            if command not in commands:
                raise UnknownCommand(f"Unknown command '{command}'. Allowed commands: rename, delete")
            output = commands[command]()
        except LivePreviewError as e:
            logger.debug(f"{TOOL_NAME} {command} failed: {e.message}")
            return ToolResult.failed(e)
        logger.debug(f"{TOOL_NAME} {command} ok")
        return ToolResult.ok(output)

    @staticmethod
    def _required(name: str, value: Optional[str]) -> str:
        if value is None:
            raise ToolError(f"Missing argument: {name}")
        return value

"""
File system node types.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class NodeKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class FileNode:
    """
    One entry of the virtual file system.

    Nodes are immutable; the file system swaps in a new node on every write,
    so a node handed out to a caller can never change underneath it.
    """
    path: str
    kind: NodeKind
    content: Optional[str] = None
    created_at: float = 0.0
    updated_at: float = 0.0

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def with_content(self, content: str, timestamp: float) -> "FileNode":
        return replace(self, content=content, updated_at=timestamp)

    def moved_to(self, path: str, timestamp: float) -> "FileNode":
        return replace(self, path=path, updated_at=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Storage form used by serialize()."""
        data: Dict[str, Any] = {
            "type": self.kind.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.is_file:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, path: str, data: Dict[str, Any]) -> "FileNode":
        """Inverse of to_dict(); raises KeyError/ValueError/TypeError on malformed input."""
        kind = NodeKind(data["type"])
        content = data.get("content") if kind is NodeKind.FILE else None
        if kind is NodeKind.FILE and not isinstance(content, str):
            raise TypeError(f"file node {path} has no text content")
        return cls(
            path=path,
            kind=kind,
            content=content,
            created_at=float(data.get("created_at", 0.0)),
            updated_at=float(data.get("updated_at", 0.0)),
        )

    def __repr__(self) -> str:
        if self.is_file:
            return f"FileNode(file {self.path!r}, {len(self.content or '')} chars)"
        return f"FileNode(directory {self.path!r})"

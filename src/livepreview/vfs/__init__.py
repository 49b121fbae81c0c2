"""
Virtual file system: normalized paths, immutable nodes, snapshots.
"""

from .paths import normalize_path, dirname, basename, join_path, extension
from .node import FileNode, NodeKind
from .filesystem import VirtualFileSystem, FileSystemSnapshot

__all__ = [
    "normalize_path",
    "dirname",
    "basename",
    "join_path",
    "extension",
    "FileNode",
    "NodeKind",
    "VirtualFileSystem",
    "FileSystemSnapshot",
]

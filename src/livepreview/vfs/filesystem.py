"""
Virtual File System

In-memory hierarchical store of text files that stands in for disk I/O.
Every path is normalized before lookup or insertion, every file's ancestor
directories exist as directory nodes, and mutations happen only through the
operations below. Builds never see the live mapping: they read an immutable
FileSystemSnapshot taken at request time.
"""

import logging
import time
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from typing_extensions import TypeAlias

from ..shared.errors import (
    AlreadyExists,
    CorruptSnapshot,
    InvalidPath,
    NotDirectory,
    NotFound,
    PathIsDirectory,
)
from .node import FileNode, NodeKind
from .paths import ROOT, ancestors, dirname, is_descendant, normalize_path

logger = logging.getLogger(__name__)

SerializedNode: TypeAlias = Dict[str, Any]
SerializedSnapshot: TypeAlias = List[Tuple[str, SerializedNode]]


class _NodeReader:
    """Read-only queries shared by the live file system and its snapshots."""

    _nodes: Mapping[str, FileNode]

    def _lookup(self, path: str) -> Tuple[str, Optional[FileNode]]:
        normalized = normalize_path(path)
        return normalized, self._nodes.get(normalized)

    def get_node(self, path: str) -> FileNode:
        normalized, node = self._lookup(path)
        if node is None:
            raise NotFound(f"No such file or directory: {normalized}", path=normalized)
        return node

    def exists(self, path: str) -> bool:
        try:
            return self._lookup(path)[1] is not None
        except InvalidPath:
            return False

    def is_file(self, path: str) -> bool:
        try:
            node = self._lookup(path)[1]
        except InvalidPath:
            return False
        return node is not None and node.is_file

    def is_directory(self, path: str) -> bool:
        try:
            node = self._lookup(path)[1]
        except InvalidPath:
            return False
        return node is not None and node.is_directory

    def read(self, path: str) -> str:
        node = self.get_node(path)
        if node.is_directory:
            raise PathIsDirectory(f"Cannot read a directory: {node.path}", path=node.path)
        return node.content

    def list(self, directory: str = ROOT) -> List[str]:
        """Sorted direct children (files and subdirectories) of a directory."""
        node = self.get_node(directory)
        if node.is_file:
            raise NotDirectory(f"Not a directory: {node.path}", path=node.path)
        return sorted(p for p in self._nodes if p != ROOT and dirname(p) == node.path)

    def walk(self) -> Iterator[FileNode]:
        """Every file node, in path order."""
        for path in sorted(self._nodes):
            node = self._nodes[path]
            if node.is_file:
                yield node

    def file_paths(self) -> List[str]:
        return [node.path for node in self.walk()]

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    def __len__(self) -> int:
        return len(self._nodes)


class FileSystemSnapshot(_NodeReader):
    """
    Immutable point-in-time view of a VirtualFileSystem.

    Nodes are frozen and the mapping is a read-only proxy over a private
    copy, so later mutations of the file system are never observed.
    """

    def __init__(self, nodes: Dict[str, FileNode], version: int):
        self._nodes = MappingProxyType(dict(nodes))
        self.version = version

    def files(self) -> Dict[str, str]:
        """path -> content for every file (used for diagnostics rendering)."""
        return {node.path: node.content for node in self.walk()}

    def __repr__(self) -> str:
        return f"FileSystemSnapshot(version={self.version}, nodes={len(self._nodes)})"


class VirtualFileSystem(_NodeReader):
    """
    Mutable in-memory project tree.

    Invariants:
    - the root directory "/" always exists
    - every node's ancestors exist as directory nodes
    - keys are normalized paths, so equivalent spellings never coexist
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        now = clock()
        self._nodes: Dict[str, FileNode] = {
            ROOT: FileNode(ROOT, NodeKind.DIRECTORY, created_at=now, updated_at=now)
        }
        self.version = 0

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create(self, path: str, content: str) -> FileNode:
        """
        Create a file, creating missing ancestor directories.

        An existing file at the path is overwritten (its creation time is
        kept); an existing directory raises PathIsDirectory.
        """
        normalized = self._file_target(path)
        existing = self._nodes.get(normalized)
        if existing is not None and existing.is_directory:
            raise PathIsDirectory(f"Path is a directory: {normalized}", path=normalized)
        nodes = dict(self._nodes)
        now = self._clock()
        self._ensure_ancestors(nodes, normalized, now)
        if existing is not None:
            node = existing.with_content(content, now)
        else:
            node = FileNode(normalized, NodeKind.FILE, content, created_at=now, updated_at=now)
        nodes[normalized] = node
        self._commit(nodes)
        logger.debug(f"{'updated' if existing else 'created'} {normalized} ({len(content)} chars)")
        return node

    def update(self, path: str, content: str) -> FileNode:
        """Replace the content of an existing file; never creates one."""
        normalized = self._file_target(path)
        existing = self._nodes.get(normalized)
        if existing is None:
            raise NotFound(f"No such file: {normalized}", path=normalized)
        if existing.is_directory:
            raise PathIsDirectory(f"Path is a directory: {normalized}", path=normalized)
        nodes = dict(self._nodes)
        node = existing.with_content(content, self._clock())
        nodes[normalized] = node
        self._commit(nodes)
        logger.debug(f"updated {normalized} ({len(content)} chars)")
        return node

    def create_or_update(self, path: str, content: str) -> FileNode:
        """Upsert used by the editor tool's `create` command."""
        return self.create(path, content)

    def mkdir(self, path: str) -> FileNode:
        """Create a directory (and its ancestors); existing directories are kept."""
        normalized = normalize_path(path)
        existing = self._nodes.get(normalized)
        if existing is not None:
            if existing.is_file:
                raise AlreadyExists(f"A file already exists at {normalized}", path=normalized)
            return existing
        nodes = dict(self._nodes)
        now = self._clock()
        self._ensure_ancestors(nodes, normalized, now)
        node = FileNode(normalized, NodeKind.DIRECTORY, created_at=now, updated_at=now)
        nodes[normalized] = node
        self._commit(nodes)
        return node

    def delete(self, path: str) -> List[str]:
        """
        Remove a node; directories are removed with all their descendants.

        Returns the removed paths. Deleting a missing path is an error.
        """
        normalized = normalize_path(path)
        if normalized == ROOT:
            raise InvalidPath("Cannot delete the project root", path=normalized)
        node = self._nodes.get(normalized)
        if node is None:
            raise NotFound(f"No such file or directory: {normalized}", path=normalized)
        removed = [normalized]
        if node.is_directory:
            removed.extend(p for p in self._nodes if is_descendant(p, normalized))
        nodes = {p: n for p, n in self._nodes.items() if p not in set(removed)}
        self._commit(nodes)
        logger.debug(f"deleted {normalized} ({len(removed)} node(s))")
        return sorted(removed)

    def rename(self, old_path: str, new_path: str) -> str:
        """
        Move a file or directory.

        Directory descendants are rewritten by prefix substitution. The new
        mapping is built on the side and swapped in with one assignment, so
        no reader can observe a half-renamed tree.
        """
        source = normalize_path(old_path)
        target = normalize_path(new_path)
        if source == ROOT or target == ROOT:
            raise InvalidPath("Cannot rename the project root", path=source)
        node = self._nodes.get(source)
        if node is None:
            raise NotFound(f"No such file or directory: {source}", path=source)
        if target in self._nodes:
            raise AlreadyExists(f"Destination already exists: {target}", path=target)
        if node.is_directory and is_descendant(target, source):
            raise InvalidPath(f"Cannot move {source} into itself ({target})", path=target)

        now = self._clock()
        nodes = dict(self._nodes)
        moved = [source]
        if node.is_directory:
            moved.extend(p for p in self._nodes if is_descendant(p, source))
        for path in moved:
            del nodes[path]
        self._ensure_ancestors(nodes, target, now)
        for path in moved:
            rewritten = target + path[len(source):]
            nodes[rewritten] = self._nodes[path].moved_to(rewritten, now)
        self._commit(nodes)
        logger.debug(f"renamed {source} -> {target} ({len(moved)} node(s))")
        return target

    # ------------------------------------------------------------------
    # Snapshots and persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> FileSystemSnapshot:
        return FileSystemSnapshot(self._nodes, self.version)

    def serialize(self) -> SerializedSnapshot:
        """Ordered (path, node) pairs, parents before children."""
        return [(path, self._nodes[path].to_dict()) for path in sorted(self._nodes)]

    @classmethod
    def deserialize(
        cls,
        snapshot: SerializedSnapshot,
        clock: Callable[[], float] = time.time,
    ) -> "VirtualFileSystem":
        """
        Rebuild a file system from serialize() output.

        Raises:
            CorruptSnapshot: an unnormalizable path, a malformed node, a
                duplicate path, or a node whose ancestors are missing or
                are not directories
        """
        fs = cls(clock=clock)
        nodes: Dict[str, FileNode] = dict(fs._nodes)
        seen = set()
        try:
            entries = [(path, data) for path, data in snapshot]
        except (TypeError, ValueError) as e:
            raise CorruptSnapshot(f"Snapshot is not a sequence of (path, node) pairs: {e}") from e

        for path, data in entries:
            try:
                normalized = normalize_path(path)
            except InvalidPath as e:
                raise CorruptSnapshot(f"Invalid path in snapshot: {path!r}", path=path) from e
            if normalized in seen:
                raise CorruptSnapshot(f"Duplicate path in snapshot: {normalized}", path=normalized)
            seen.add(normalized)
            if not isinstance(data, dict):
                raise CorruptSnapshot(f"Malformed node for {normalized}", path=normalized)
            declared = data.get("path")
            if declared is not None:
                try:
                    declared_path = normalize_path(declared)
                except InvalidPath as e:
                    raise CorruptSnapshot(f"Invalid node path in snapshot: {declared!r}", path=normalized) from e
            if declared is not None and declared_path != normalized:
                raise CorruptSnapshot(f"Node path {declared!r} disagrees with key {normalized}", path=normalized)
            try:
                node = FileNode.from_dict(normalized, data)
            except (KeyError, ValueError, TypeError) as e:
                raise CorruptSnapshot(f"Malformed node for {normalized}: {e}", path=normalized) from e
            if normalized == ROOT:
                if node.is_file:
                    raise CorruptSnapshot("The project root must be a directory", path=ROOT)
            nodes[normalized] = node

        for path in nodes:
            for ancestor in ancestors(path):
                parent = nodes.get(ancestor)
                if parent is None:
                    raise CorruptSnapshot(f"Missing ancestor directory {ancestor} for {path}", path=path)
                if parent.is_file:
                    raise CorruptSnapshot(f"Ancestor {ancestor} of {path} is a file", path=path)

        fs._nodes = nodes
        logger.debug(f"deserialized {len(nodes)} node(s)")
        return fs

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _file_target(self, path: str) -> str:
        normalized = normalize_path(path)
        if normalized == ROOT:
            raise InvalidPath("The project root cannot hold file content", path=ROOT)
        return normalized

    def _ensure_ancestors(self, nodes: Dict[str, FileNode], path: str, now: float) -> None:
        for ancestor in ancestors(path):
            existing = nodes.get(ancestor)
            if existing is None:
                nodes[ancestor] = FileNode(ancestor, NodeKind.DIRECTORY, created_at=now, updated_at=now)
            elif existing.is_file:
                raise NotDirectory(f"Not a directory: {ancestor}", path=ancestor)

    def _commit(self, nodes: Dict[str, FileNode]) -> None:
        self._nodes = nodes
        self.version += 1

    def __repr__(self) -> str:
        files = sum(1 for _ in self.walk())
        return f"VirtualFileSystem(version={self.version}, files={files})"

"""
Centralized file I/O utilities.

- Single place for encoding handling
- Use Path.read_text() consistently (no raw open/read)
- Loading a project into a VirtualFileSystem, from a directory on disk or
  from a JSON snapshot
"""

import json
import logging
import os
from pathlib import Path
from typing import Union

from ..shared.errors import CorruptSnapshot
from ..vfs.filesystem import VirtualFileSystem
from .config import DEFAULT_FILE_ENCODING, IGNORED_DIRECTORIES

logger = logging.getLogger(__name__)


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_text_file(path: Union[Path, str], text: str) -> None:
    p = Path(path) if not isinstance(path, Path) else path
    p.write_text(text, encoding=DEFAULT_FILE_ENCODING)


def load_directory(root: Union[Path, str]) -> VirtualFileSystem:
    """
    Copy a project directory into a fresh VirtualFileSystem.

    Paths become absolute from the directory root. Dependency and VCS
    directories are skipped, as are files that are not valid text.
    """
    root = Path(root)
    fs = VirtualFileSystem()
    for current, directories, files in os.walk(root):
        directories[:] = sorted(d for d in directories if d not in IGNORED_DIRECTORIES)
        for name in sorted(files):
            disk_path = Path(current) / name
            virtual_path = "/" + disk_path.relative_to(root).as_posix()
            try:
                fs.create(virtual_path, read_source_file(disk_path))
            except UnicodeDecodeError:
                logger.warning(f"skipping non-text file {disk_path}")
    logger.debug(f"loaded {len(fs.file_paths())} file(s) from {root}")
    return fs


def to_json(fs: VirtualFileSystem, indent: int = 2) -> str:
    return json.dumps(fs.serialize(), indent=indent)


def from_json(text: str) -> VirtualFileSystem:
    """
    Inverse of to_json().

    Also accepts an object keyed by path, the shape an exported project
    map uses.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptSnapshot(f"Snapshot is not valid JSON: {e}") from e
    if isinstance(data, dict):
        data = sorted(data.items())
    return VirtualFileSystem.deserialize(data)


def load_snapshot(path: Union[Path, str]) -> VirtualFileSystem:
    return from_json(read_source_file(path))


def dump_snapshot(fs: VirtualFileSystem, path: Union[Path, str]) -> None:
    write_text_file(path, to_json(fs))


def load_project(path: Union[Path, str]) -> VirtualFileSystem:
    """A directory is loaded file by file; anything else is read as a JSON snapshot."""
    p = Path(path)
    if p.is_dir():
        return load_directory(p)
    return load_snapshot(p)

"""
Configuration constants and file I/O helpers.
"""

from .io_utils import (
    read_source_file,
    write_text_file,
    load_directory,
    load_project,
    load_snapshot,
    dump_snapshot,
    to_json,
    from_json,
)

__all__ = [
    'read_source_file',
    'write_text_file',
    'load_directory',
    'load_project',
    'load_snapshot',
    'dump_snapshot',
    'to_json',
    'from_json',
]

"""
Virtual path helpers.

Paths inside the virtual project are POSIX-style strings rooted at "/".
They are pure strings: nothing here touches the host file system.
"""

from typing import List, Tuple

from ..shared.errors import InvalidPath

ROOT = "/"
SEPARATOR = "/"


def normalize_path(path: str) -> str:
    """
    Normalize a virtual path.

    Collapses "." segments and repeated separators, resolves ".." against the
    path's own directory chain, ensures a leading "/" and strips any trailing
    "/" except for the root. Backslashes count as separators.

    Raises:
        InvalidPath: empty input, or a ".." that climbs above the root
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidPath(f"Invalid path: {path!r}", path=path)
    segments: List[str] = []
    for segment in path.replace("\\", SEPARATOR).split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPath(f"Path escapes the project root: {path}", path=path)
            segments.pop()
        else:
            segments.append(segment)
    return ROOT + SEPARATOR.join(segments)


def is_valid_path(path: str) -> bool:
    try:
        normalize_path(path)
    except InvalidPath:
        return False
    return True


def dirname(path: str) -> str:
    """Parent directory of a normalized path ("/" for top-level entries and root)."""
    if path == ROOT:
        return ROOT
    head = path.rsplit(SEPARATOR, 1)[0]
    return head or ROOT


def basename(path: str) -> str:
    return path.rsplit(SEPARATOR, 1)[-1]


def join_path(directory: str, relative: str) -> str:
    """Join and normalize; `relative` may carry "./" and "../" segments."""
    return normalize_path(directory.rstrip(SEPARATOR) + SEPARATOR + relative)


def ancestors(path: str) -> List[str]:
    """Proper ancestors of a normalized path, root first."""
    result = [ROOT]
    if path == ROOT:
        return []
    parts = path.strip(SEPARATOR).split(SEPARATOR)
    for index in range(1, len(parts)):
        result.append(ROOT + SEPARATOR.join(parts[:index]))
    return result


def is_descendant(path: str, ancestor: str) -> bool:
    """True when `path` lies strictly below `ancestor`."""
    if ancestor == ROOT:
        return path != ROOT
    return path.startswith(ancestor + SEPARATOR)


def split_extension(path: str) -> Tuple[str, str]:
    """("/a/b.test", ".jsx") for "/a/b.test.jsx"; extension is "" when absent."""
    name = basename(path)
    dot = name.rfind(".")
    if dot <= 0:
        return path, ""
    cut = len(path) - (len(name) - dot)
    return path[:cut], path[cut:]


def extension(path: str) -> str:
    return split_extension(path)[1].lower()

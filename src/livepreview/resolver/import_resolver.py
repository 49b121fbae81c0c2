"""
Import Resolution

Maps the module specifier of an import, as written in a project file, to a
loadable target: a file in the virtual project, or an ES module URL on the
CDN for third-party packages.

Rules are tried in order, first match wins:
- /components/Button   -> absolute project path
- @/components/Button  -> alias for the project root
- ./Button, ../lib     -> relative to the importing file
- lodash, @scope/pkg   -> CDN package URL
Anything else is unresolved.

The resolver is stateless and can be shared/reused.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..shared.errors import InvalidPath
from ..utils.config import (
    ALIAS_PREFIX,
    ALIAS_ROOT,
    CDN_BASE_URL,
    EXTERNALIZED_QUERY,
    INDEX_MODULE_NAME,
    REACT_VERSION,
    RECOGNIZED_EXTENSIONS,
    SHARED_PACKAGES,
    SOURCE_EXTENSIONS,
    URL_PREFIXES,
)
from ..vfs.paths import ROOT, dirname, extension, join_path, normalize_path

logger = logging.getLogger(__name__)

_PACKAGE_NAME_RE = re.compile(r"^(?:@[A-Za-z0-9][\w.~-]*/)?[A-Za-z0-9][\w.~-]*$")


class ResolutionKind(Enum):
    LOCAL_ABSOLUTE = "local-absolute"
    ALIASED = "aliased"
    RELATIVE = "relative"
    EXTERNAL = "external"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one specifier.

    target is a normalized project path for local kinds, a URL for
    EXTERNAL, and "" for UNRESOLVED.
    """
    specifier: str
    kind: ResolutionKind
    target: str = ""

    @property
    def is_local(self) -> bool:
        return self.kind in (ResolutionKind.LOCAL_ABSOLUTE, ResolutionKind.ALIASED, ResolutionKind.RELATIVE)

    @property
    def is_external(self) -> bool:
        return self.kind is ResolutionKind.EXTERNAL

    @property
    def is_unresolved(self) -> bool:
        return self.kind is ResolutionKind.UNRESOLVED


def parse_package_specifier(specifier: str) -> Optional[Tuple[str, Optional[str], str]]:
    """
    Split a bare specifier into (name, version, subpath).

    Examples:
        "lodash"                 -> ("lodash", None, "")
        "lodash/fp"              -> ("lodash", None, "/fp")
        "@scope/pkg@2.1.0/utils" -> ("@scope/pkg", "2.1.0", "/utils")

    Returns None when the specifier is not a valid package name.
    """
    segments = specifier.split("/")
    take = 2 if specifier.startswith("@") else 1
    if len(segments) < take or any(not s for s in segments[:take]):
        return None
    head = "/".join(segments[:take])
    subpath = "".join("/" + s for s in segments[take:])
    version = None
    at = head.find("@", 1)
    if at != -1:
        head, version = head[:at], head[at + 1:]
        if not version:
            return None
    if not _PACKAGE_NAME_RE.match(head):
        return None
    return head, version, subpath


def package_url(name: str, version: Optional[str] = None, subpath: str = "") -> str:
    """
    CDN URL for a package; React and its renderer are always the pinned build.

    Examples:
        package_url("react", None, "/jsx-runtime")
            -> https://esm.sh/react@19.1.0/jsx-runtime
        package_url("react-dom", None, "/client")
            -> https://esm.sh/react-dom@19.1.0/client?external=react
        package_url("lodash")
            -> https://esm.sh/lodash?external=react,react-dom
    """
    if name == "react":
        return f"{CDN_BASE_URL}/react@{REACT_VERSION}{subpath}"
    if name == "react-dom":
        return f"{CDN_BASE_URL}/react-dom@{REACT_VERSION}{subpath}?external=react"
    pinned = f"@{version}" if version else ""
    return f"{CDN_BASE_URL}/{name}{pinned}{subpath}?{EXTERNALIZED_QUERY}"


def pinned_url(specifier: str) -> Optional[str]:
    """URL for a bare specifier, or None when it does not name a package."""
    parsed = parse_package_specifier(specifier)
    if parsed is None:
        return None
    return package_url(*parsed)


def shared_package_imports() -> Dict[str, str]:
    """
    Import-map entries for the shared packages.

    CDN builds are loaded with React externalized, so their own bare
    `react` / `react-dom` imports have to be mapped to the pinned URLs too.
    """
    imports: Dict[str, str] = {}
    for specifier in ("react", "react/jsx-runtime", "react/jsx-dev-runtime", "react-dom", "react-dom/client"):
        imports[specifier] = pinned_url(specifier)
    for name in SHARED_PACKAGES:
        imports[f"{name}/"] = f"{CDN_BASE_URL}/{name}@{REACT_VERSION}/"
    return imports


class ImportResolver:
    """
    Pure specifier resolution against a file system snapshot.

    Anything with is_file(path) works as the snapshot: a FileSystemSnapshot
    during builds, or the live VirtualFileSystem.
    """

    def __init__(self):
        self._rules: List[Tuple[Callable[[str], bool], Callable]] = [
            (self._is_absolute, self._resolve_absolute),
            (self._is_aliased, self._resolve_aliased),
            (self._is_relative, self._resolve_relative),
        ]

    def resolve(self, specifier: str, importer_path: str, snapshot) -> Resolution:
        """
        Resolve a specifier written in importer_path.

        Args:
            specifier: Module specifier as written (e.g. "./Button")
            importer_path: Normalized path of the importing file
            snapshot: File system view used for existence checks

        Returns:
            Resolution; never raises for a bad specifier (UNRESOLVED instead)
        """
        for matches, rule in self._rules:
            if matches(specifier):
                resolution = rule(specifier, importer_path, snapshot)
                break
        else:
            resolution = self._resolve_external(specifier)
        logger.debug(f"resolve {specifier!r} from {importer_path}: {resolution.kind.value} {resolution.target}")
        return resolution

    def probe(self, path: str, snapshot) -> Optional[str]:
        """
        Find the file a path refers to.

        A path that already ends in a recognized extension is only tried
        exactly. Otherwise: the exact file, then each source extension, then
        `<path>/index` with each source extension. A directory alone never
        matches.
        """
        if extension(path) in RECOGNIZED_EXTENSIONS:
            return path if snapshot.is_file(path) else None
        if snapshot.is_file(path):
            return path
        if path != ROOT:
            for ext in SOURCE_EXTENSIONS:
                if snapshot.is_file(path + ext):
                    return path + ext
        for ext in SOURCE_EXTENSIONS:
            candidate = join_path(path, INDEX_MODULE_NAME + ext)
            if snapshot.is_file(candidate):
                return candidate
        return None

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @staticmethod
    def _is_absolute(specifier: str) -> bool:
        return specifier.startswith("/") and not specifier.startswith("//")

    @staticmethod
    def _is_aliased(specifier: str) -> bool:
        return specifier.startswith(ALIAS_PREFIX)

    @staticmethod
    def _is_relative(specifier: str) -> bool:
        return specifier in (".", "..") or specifier.startswith(("./", "../"))

    def _local(self, specifier: str, kind: ResolutionKind, path_thunk: Callable[[], str], snapshot) -> Resolution:
        try:
            path = path_thunk()
        except InvalidPath:
            return Resolution(specifier, ResolutionKind.UNRESOLVED)
        target = self.probe(path, snapshot)
        if target is None:
            return Resolution(specifier, ResolutionKind.UNRESOLVED)
        return Resolution(specifier, kind, target)

    def _resolve_absolute(self, specifier: str, importer_path: str, snapshot) -> Resolution:
        return self._local(specifier, ResolutionKind.LOCAL_ABSOLUTE,
                           lambda: normalize_path(specifier), snapshot)

    def _resolve_aliased(self, specifier: str, importer_path: str, snapshot) -> Resolution:
        return self._local(specifier, ResolutionKind.ALIASED,
                           lambda: join_path(ALIAS_ROOT, specifier[len(ALIAS_PREFIX):]), snapshot)

    def _resolve_relative(self, specifier: str, importer_path: str, snapshot) -> Resolution:
        return self._local(specifier, ResolutionKind.RELATIVE,
                           lambda: join_path(dirname(importer_path), specifier), snapshot)

    def _resolve_external(self, specifier: str) -> Resolution:
        if specifier.startswith(URL_PREFIXES):
            return Resolution(specifier, ResolutionKind.EXTERNAL, specifier)
        url = pinned_url(specifier)
        if url is None:
            return Resolution(specifier, ResolutionKind.UNRESOLVED)
        return Resolution(specifier, ResolutionKind.EXTERNAL, url)

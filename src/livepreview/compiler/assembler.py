"""
Module Graph Assembler

Builds the runnable module graph of a preview from an entry file:

1. Walk every file reachable from the entry through its import specifiers
   (local targets only; CDN packages are leaves), transforming each
   resolved path once.
2. Link every transformed module against the loadable references of its
   dependencies, substituting placeholder modules for imports that do not
   resolve.
3. Record the result in a registry keyed by specifiers as written.

A build either completes in full or raises BuildFailed, releasing every
reference it allocated.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from ..frontend.transformer import SourceTransformer, TransformResult
from ..resolver.import_resolver import ImportResolver, Resolution, pinned_url
from ..shared.errors import BuildFailed, Diagnostic, InvalidPath, TransformSyntaxError
from ..utils.config import ENTRY_POINT_CANDIDATES, PLACEHOLDER_DIRECTORY
from ..vfs.paths import extension, normalize_path
from .blobs import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class RegistryEntry:
    reference: str
    source_path: str
    style_text: Optional[str] = None


@dataclass
class ModuleRecord:
    """One linked module of a build (a project file or a placeholder)."""
    path: str
    reference: str
    code: str
    style_text: Optional[str] = None
    placeholder: bool = False
    specifiers: List[str] = field(default_factory=list)


@dataclass
class ModuleRegistry:
    """
    Specifier -> module mapping handed to the sandbox.

    imports holds the first mapping seen for each specifier. When the same
    specifier text leads somewhere else for another importer (two files each
    importing their own "./utils"), that importer's mapping goes to
    scopes[importer_path] instead.
    """
    imports: Dict[str, RegistryEntry] = field(default_factory=dict)
    scopes: Dict[str, Dict[str, RegistryEntry]] = field(default_factory=dict)
    modules: Dict[str, ModuleRecord] = field(default_factory=dict)

    def register(self, importer_path: str, specifier: str, entry: RegistryEntry) -> None:
        existing = self.imports.get(specifier)
        if existing is None:
            self.imports[specifier] = entry
        elif existing.source_path != entry.source_path:
            self.scopes.setdefault(importer_path, {})[specifier] = entry

    def lookup(self, specifier: str, importer_path: Optional[str] = None) -> Optional[RegistryEntry]:
        if importer_path is not None:
            scoped = self.scopes.get(importer_path, {}).get(specifier)
            if scoped is not None:
                return scoped
        return self.imports.get(specifier)

    def source_paths(self) -> List[str]:
        """Project files in the graph, in discovery order."""
        return [path for path, record in self.modules.items() if not record.placeholder]

    def __len__(self) -> int:
        return len(self.imports)


@dataclass
class BuildResult:
    registry: ModuleRegistry
    entry_specifier: str
    styles: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    generation: int = 0

    @property
    def aggregated_style_text(self) -> str:
        return "\n".join(self.styles)

    @property
    def entry(self) -> RegistryEntry:
        return self.registry.imports[self.entry_specifier]


def find_entry_point(snapshot) -> Optional[str]:
    """The conventional entry file of a project, else its first JSX/TSX file."""
    for candidate in ENTRY_POINT_CANDIDATES:
        if snapshot.is_file(candidate):
            return candidate
    for node in snapshot.walk():
        if extension(node.path) in (".jsx", ".tsx"):
            return node.path
    return None


def placeholder_path(specifier: str) -> str:
    return PLACEHOLDER_DIRECTORY + quote(specifier, safe="")


def placeholder_code(specifier: str, names: List[str]) -> str:
    """
    Stand-in module for an unresolved import: a default component that
    renders a visible notice, re-exported under every name importers bind.
    """
    react = pinned_url("react")
    notice = json.dumps(f"Module not found: {specifier}")
    marker = json.dumps(specifier)
    lines = [
        f"import {{ createElement }} from {json.dumps(react)};",
        "export default function MissingModule() {",
        "  return createElement(\"div\", {",
        f"    \"data-missing-module\": {marker},",
        "    style: { padding: \"8px 12px\", border: \"1px dashed #d97706\", background: \"#fffbeb\","
        " color: \"#92400e\", fontFamily: \"monospace\", fontSize: \"12px\" }",
        f"  }}, {notice});",
        "}",
    ]
    if names:
        lines.append(_export_as("MissingModule", names))
    return "\n".join(lines) + "\n"


def style_module_code(names: List[str]) -> str:
    """
    Linked form of a stylesheet. The CSS itself goes into the preview
    document; the module only gives importers something to bind.
    """
    lines = ["const stylesheet = {};", "export default stylesheet;"]
    if names:
        lines.append(_export_as("stylesheet", names))
    return "\n".join(lines) + "\n"


def _export_as(local: str, names: List[str]) -> str:
    exported = ", ".join(f"{local} as {name if name.isidentifier() else json.dumps(name)}" for name in names)
    return f"export {{ {exported} }};"


class ModuleGraphAssembler:
    """
    Builds module graphs from file system snapshots.

    Owns the BlobStore that backs the loadable references of its builds.
    At most one build is installed at a time; installing a build releases
    the references of the one it replaces.
    """

    def __init__(self,
                 transformer: Optional[SourceTransformer] = None,
                 resolver: Optional[ImportResolver] = None,
                 blobs: Optional[BlobStore] = None):
        self.transformer = transformer or SourceTransformer()
        self.resolver = resolver or ImportResolver()
        self.blobs = blobs or BlobStore()
        self.installed: Optional[BuildResult] = None

    def build(self, entry_path: str, snapshot) -> BuildResult:
        """
        Build the module graph reachable from entry_path.

        Raises:
            BuildFailed: the entry is missing, or a reachable file does not transform
        """
        generation = self.blobs.new_generation()
        try:
            result = self._build(generation, entry_path, snapshot)
        except Exception:
            self.blobs.release(generation)
            raise
        logger.debug(
            f"built generation {generation} from {result.entry_specifier}: "
            f"{len(result.registry.modules)} module(s), {len(result.diagnostics)} diagnostic(s)"
        )
        return result

    def install(self, result: BuildResult) -> None:
        """Make result the current build and release the previous one."""
        previous = self.installed
        self.installed = result
        if previous is not None and previous.generation != result.generation:
            self.blobs.release(previous.generation)
        logger.info(
            f"installed preview build {result.generation} ({len(result.registry.source_paths())} file(s))"
        )

    def discard(self, result: BuildResult) -> None:
        """Release a build that will never be installed."""
        if self.installed is not None and self.installed.generation == result.generation:
            return
        self.blobs.release(result.generation)

    # ------------------------------------------------------------------

    def _build(self, generation: int, entry_path: str, snapshot) -> BuildResult:
        try:
            entry = normalize_path(entry_path)
        except InvalidPath as e:
            raise BuildFailed(entry_path, e.message, cause=e) from e
        if not snapshot.is_file(entry):
            raise BuildFailed(entry, f"Entry file not found: {entry}")

        order, transforms, resolutions = self._walk(entry, snapshot)

        registry = ModuleRegistry()
        registry.register(entry, entry, RegistryEntry(
            self.blobs.reference_for(generation, entry), entry, transforms[entry].extracted_style_text))

        unresolved: Dict[str, List[str]] = {}
        diagnostics: List[Diagnostic] = []
        for path in order:
            result = transforms[path]
            for resolution in resolutions[path]:
                if resolution.is_unresolved:
                    names = unresolved.setdefault(resolution.specifier, [])
                    for name in result.imported_names.get(resolution.specifier, []):
                        if name not in names:
                            names.append(name)
                    diagnostics.append(self._diagnostic(path, resolution, result))

        placeholders: Dict[str, RegistryEntry] = {}
        for specifier, names in unresolved.items():
            path = placeholder_path(specifier)
            code = placeholder_code(specifier, names)
            reference = self.blobs.allocate(generation, path, code)
            registry.modules[path] = ModuleRecord(path, reference, code, placeholder=True)
            placeholders[specifier] = RegistryEntry(reference, path)

        style_names: Dict[str, List[str]] = {}
        for path in order:
            result = transforms[path]
            for resolution in resolutions[path]:
                if resolution.is_local and transforms[resolution.target].is_style:
                    names = style_names.setdefault(resolution.target, [])
                    for name in result.imported_names.get(resolution.specifier, []):
                        if name not in names:
                            names.append(name)

        styles: List[str] = []
        for path in order:
            result = transforms[path]
            targets: Dict[str, str] = {}
            for resolution in resolutions[path]:
                specifier = resolution.specifier
                if resolution.is_external:
                    targets[specifier] = resolution.target
                    continue
                if resolution.is_local:
                    entry_record = RegistryEntry(
                        self.blobs.reference_for(generation, resolution.target),
                        resolution.target,
                        transforms[resolution.target].extracted_style_text,
                    )
                else:
                    entry_record = placeholders[specifier]
                targets[specifier] = entry_record.reference
                registry.register(path, specifier, entry_record)
            if result.is_style:
                code = style_module_code(style_names.get(path, []))
                styles.append(result.extracted_style_text)
            else:
                code = result.link(targets)
            reference = self.blobs.allocate(generation, path, code)
            registry.modules[path] = ModuleRecord(
                path, reference, code, result.extracted_style_text, specifiers=list(result.import_specifiers))

        return BuildResult(registry, entry, styles, diagnostics, generation)

    def _walk(self, entry: str, snapshot) -> Tuple[List[str], Dict[str, TransformResult], Dict[str, List[Resolution]]]:
        """Depth-first reachability walk; specifiers are followed in source order."""
        order: List[str] = []
        transforms: Dict[str, TransformResult] = {}
        resolutions: Dict[str, List[Resolution]] = {}
        stack = [entry]
        while stack:
            path = stack.pop()
            if path in transforms:
                continue
            transforms[path] = self._transform(path, snapshot)
            order.append(path)
            resolutions[path] = [
                self.resolver.resolve(specifier, path, snapshot)
                for specifier in transforms[path].import_specifiers
            ]
            for resolution in reversed(resolutions[path]):
                if resolution.is_local and resolution.target not in transforms:
                    stack.append(resolution.target)
        return order, transforms, resolutions

    def _transform(self, path: str, snapshot) -> TransformResult:
        try:
            return self.transformer.transform(path, snapshot.read(path))
        except TransformSyntaxError as e:
            raise BuildFailed(path, e.message, e.location, cause=e) from e

    @staticmethod
    def _diagnostic(importer: str, resolution: Resolution, result: TransformResult) -> Diagnostic:
        message = f"Unable to resolve import '{resolution.specifier}' from {importer}"
        logger.warning(message)
        return Diagnostic(
            message=message,
            path=importer,
            specifier=resolution.specifier,
            location=result.specifier_locations.get(resolution.specifier),
        )

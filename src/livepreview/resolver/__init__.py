"""
Import resolution: project paths, the `@/` alias and CDN packages.
"""

from .import_resolver import (
    ImportResolver,
    Resolution,
    ResolutionKind,
    package_url,
    parse_package_specifier,
    pinned_url,
    shared_package_imports,
)

__all__ = [
    'ImportResolver',
    'Resolution',
    'ResolutionKind',
    'package_url',
    'parse_package_specifier',
    'pinned_url',
    'shared_package_imports',
]

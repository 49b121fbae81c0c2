"""
Compiler: module graph assembly, loadable references and preview scheduling.
"""

from .blobs import BlobStore
from .assembler import (
    BuildResult,
    ModuleGraphAssembler,
    ModuleRecord,
    ModuleRegistry,
    RegistryEntry,
    find_entry_point,
)
from .session import BuildTicket, PreviewSession

__all__ = [
    'BlobStore',
    'BuildResult',
    'ModuleGraphAssembler',
    'ModuleRecord',
    'ModuleRegistry',
    'RegistryEntry',
    'find_entry_point',
    'BuildTicket',
    'PreviewSession',
]

"""
Pytest configuration and shared fixtures for all livepreview tests.

The transformer and resolver are stateless and the import parser caches
its Lark tables, so they are shared per session. File systems, assemblers
and sessions are created fresh for every test.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from livepreview.compiler.assembler import ModuleGraphAssembler
from livepreview.compiler.blobs import BlobStore
from livepreview.compiler.session import PreviewSession
from livepreview.frontend.transformer import SourceTransformer
from livepreview.resolver.import_resolver import ImportResolver
from livepreview.vfs.filesystem import VirtualFileSystem


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def transformer():
    """Session-scoped transformer; holds no per-file state."""
    return SourceTransformer()


@pytest.fixture(scope="session")
def resolver():
    """Session-scoped resolver; resolution depends only on the snapshot passed in."""
    return ImportResolver()


# =============================================================================
# Function-scoped fixtures (default - one per test)
# =============================================================================

@pytest.fixture
def fs():
    """Empty file system with a deterministic clock."""
    ticks = iter(range(1, 1_000_000))
    return VirtualFileSystem(clock=lambda: float(next(ticks)))


@pytest.fixture
def blobs():
    return BlobStore()


@pytest.fixture
def assembler(transformer, resolver, blobs):
    return ModuleGraphAssembler(transformer, resolver, blobs)


@pytest.fixture
def session(fs, assembler):
    return PreviewSession(fs, assembler)


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )

"""
Loadable module references

Transformed module code is handed to the sandbox under opaque references
of the form preview://g<generation>/<path>. Every reference belongs to the
build generation that allocated it, and a whole generation is released at
once when a newer build is installed or the build that owned it fails.
"""

import logging
import threading
from typing import Dict, List, Tuple
from urllib.parse import quote

from ..shared.errors import LivePreviewError
from ..utils.config import BLOB_SCHEME

logger = logging.getLogger(__name__)


class BlobStore:
    """Thread-safe store of module code keyed by generation-scoped references."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next_generation = 0
        self._blobs: Dict[str, str] = {}
        self._generations: Dict[int, List[str]] = {}

    def new_generation(self) -> int:
        with self._lock:
            self._next_generation += 1
            generation = self._next_generation
            self._generations[generation] = []
        return generation

    @staticmethod
    def reference_for(generation: int, path: str) -> str:
        return f"{BLOB_SCHEME}://g{generation}{quote(path)}"

    def allocate(self, generation: int, path: str, code: str) -> str:
        """Store code for path under generation and return its reference."""
        reference = self.reference_for(generation, path)
        with self._lock:
            owned = self._generations.get(generation)
            if owned is None:
                raise LivePreviewError(f"Build generation {generation} is not live")
            if reference not in self._blobs:
                owned.append(reference)
            self._blobs[reference] = code
        return reference

    def read(self, reference: str) -> str:
        with self._lock:
            try:
                return self._blobs[reference]
            except KeyError:
                raise LivePreviewError(f"Unknown or released module reference: {reference}") from None

    def release(self, generation: int) -> int:
        """Drop every reference of a generation; returns how many were freed."""
        with self._lock:
            owned = self._generations.pop(generation, [])
            for reference in owned:
                self._blobs.pop(reference, None)
        if owned:
            logger.debug(f"released generation {generation}: {len(owned)} reference(s)")
        return len(owned)

    def live_generations(self) -> Tuple[int, ...]:
        with self._lock:
            return tuple(sorted(self._generations))

    def __contains__(self, reference: str) -> bool:
        with self._lock:
            return reference in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)

"""
Preview scheduling

A PreviewSession owns one preview surface. Every file system change asks
for a build of the newest snapshot; a build that finishes after a newer
request was made is stale and is thrown away instead of installed, so the
preview never regresses to an older state. Installation is all or nothing.
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from ..shared.errors import BuildFailed
from ..vfs.filesystem import FileSystemSnapshot, VirtualFileSystem
from .assembler import BuildResult, ModuleGraphAssembler, find_entry_point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildTicket:
    request_id: int
    snapshot: FileSystemSnapshot
    entry_path: Optional[str] = None


class PreviewSession:
    """
    Serializes preview builds for one surface.

    request_build may be called from any thread; run executes a ticket
    synchronously. Builds never run concurrently, and only the build of
    the most recent request is ever installed.
    """

    def __init__(self,
                 file_system: Optional[VirtualFileSystem] = None,
                 assembler: Optional[ModuleGraphAssembler] = None,
                 entry_path: Optional[str] = None):
        self.file_system = file_system
        self.assembler = assembler or ModuleGraphAssembler()
        self.entry_path = entry_path
        self.last_error: Optional[BuildFailed] = None
        self._ids = itertools.count(1)
        self._latest = 0
        self._state_lock = threading.Lock()
        self._build_lock = threading.Lock()

    @property
    def current(self) -> Optional[BuildResult]:
        return self.assembler.installed

    def request_build(self, snapshot: FileSystemSnapshot, entry_path: Optional[str] = None) -> BuildTicket:
        with self._state_lock:
            request_id = next(self._ids)
            self._latest = request_id
        return BuildTicket(request_id, snapshot, entry_path or self.entry_path)

    def is_stale(self, ticket: BuildTicket) -> bool:
        with self._state_lock:
            return ticket.request_id != self._latest

    def run(self, ticket: BuildTicket) -> Optional[BuildResult]:
        """
        Build a ticket and install it unless a newer request superseded it.

        Returns the installed result, or None when the ticket was stale or
        the build failed (see last_error).
        """
        with self._build_lock:
            if self.is_stale(ticket):
                logger.warning(f"skipping superseded preview request {ticket.request_id}")
                return None
            entry = ticket.entry_path or find_entry_point(ticket.snapshot)
            try:
                if entry is None:
                    raise BuildFailed("/", "No entry point found (expected /App.jsx or another .jsx/.tsx file)")
                result = self.assembler.build(entry, ticket.snapshot)
            except BuildFailed as e:
                if not self.is_stale(ticket):
                    self.last_error = e
                    logger.info(f"preview build {ticket.request_id} failed: {e}")
                return None
            if self.is_stale(ticket):
                logger.warning(f"discarding stale preview build {ticket.request_id}")
                self.assembler.discard(result)
                return None
            self.assembler.install(result)
            self.last_error = None
            return result

    def refresh(self) -> Optional[BuildResult]:
        """Snapshot the bound file system, build, install."""
        if self.file_system is None:
            raise ValueError("PreviewSession.refresh needs a bound VirtualFileSystem")
        return self.run(self.request_build(self.file_system.snapshot()))

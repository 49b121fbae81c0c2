"""
Tests for preview scheduling: stale builds are discarded and failures
leave the installed preview alone.
"""

import threading

import pytest
from livepreview.compiler.assembler import ModuleGraphAssembler
from livepreview.compiler.session import PreviewSession
from livepreview.shared.errors import BuildFailed

APP = "export default function App() { return <h1>Hello</h1>; }"


class TestRefresh:
    """refresh snapshots the bound file system and installs the build."""

    def test_refresh_installs(self, fs, session):
        fs.create("/App.jsx", APP)
        result = session.refresh()
        assert result is not None
        assert session.current is result
        assert session.last_error is None

    def test_refresh_without_file_system(self, assembler):
        with pytest.raises(ValueError):
            PreviewSession(assembler=assembler).refresh()

    def test_no_entry_point(self, fs, session):
        fs.create("/util.js", "export const a = 1;")
        assert session.refresh() is None
        assert "No entry point" in session.last_error.message

    def test_explicit_entry(self, fs, assembler):
        fs.create("/App.jsx", APP)
        fs.create("/Other.jsx", APP)
        result = PreviewSession(fs, assembler, entry_path="/Other.jsx").refresh()
        assert result.entry_specifier == "/Other.jsx"

    def test_failure_keeps_previous_preview(self, fs, session):
        fs.create("/App.jsx", APP)
        good = session.refresh()
        fs.update("/App.jsx", "export default () => <div>")
        assert session.refresh() is None
        assert isinstance(session.last_error, BuildFailed)
        assert session.current is good
        assert good.entry.reference in session.assembler.blobs

    def test_recovery_clears_last_error(self, fs, session):
        fs.create("/App.jsx", "export default () => <div>")
        session.refresh()
        assert session.last_error is not None
        fs.update("/App.jsx", APP)
        assert session.refresh() is not None
        assert session.last_error is None


class TestStaleRequests:
    """Only the newest request is ever installed."""

    def test_superseded_ticket_is_skipped(self, fs, session):
        fs.create("/App.jsx", APP)
        old = session.request_build(fs.snapshot())
        fs.update("/App.jsx", APP.replace("Hello", "World"))
        new = session.request_build(fs.snapshot())
        assert session.is_stale(old)
        assert session.run(old) is None
        installed = session.run(new)
        assert "World" in installed.registry.modules["/App.jsx"].code

    def test_build_finishing_after_newer_request_is_discarded(self, fs, resolver, transformer, blobs):
        fs.create("/App.jsx", APP)
        session = None

        class InterruptingAssembler(ModuleGraphAssembler):
            def build(self, entry_path, snapshot):
                result = super().build(entry_path, snapshot)
                session.request_build(fs.snapshot())
                return result

        assembler = InterruptingAssembler(transformer, resolver, blobs)
        session = PreviewSession(fs, assembler)
        assert session.refresh() is None
        assert session.current is None
        assert blobs.live_generations() == ()

    def test_failure_of_stale_build_is_not_reported(self, fs, resolver, transformer, blobs):
        fs.create("/App.jsx", "export default () => <div>")
        session = None

        class InterruptingAssembler(ModuleGraphAssembler):
            def build(self, entry_path, snapshot):
                session.request_build(fs.snapshot())
                return super().build(entry_path, snapshot)

        session = PreviewSession(fs, InterruptingAssembler(transformer, resolver, blobs))
        assert session.refresh() is None
        assert session.last_error is None

    def test_concurrent_requests_install_the_newest(self, fs, session):
        fs.create("/App.jsx", APP)
        tickets = []
        for word in ("one", "two", "three"):
            fs.update("/App.jsx", APP.replace("Hello", word))
            tickets.append(session.request_build(fs.snapshot()))
        threads = [threading.Thread(target=session.run, args=(ticket,)) for ticket in tickets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert "three" in session.current.registry.modules["/App.jsx"].code
        assert session.assembler.blobs.live_generations() == (session.current.generation,)

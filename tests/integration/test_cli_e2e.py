"""
End-to-end tests for the livepreview command line.
"""

import json

import pytest
from livepreview.__main__ import main


@pytest.fixture
def project(tmp_path):
    (tmp_path / "App.jsx").write_text(
        'import Greeting from "./Greeting";\n'
        "export default function App() { return <Greeting name=\"you\" />; }\n",
        encoding="utf-8",
    )
    (tmp_path / "Greeting.jsx").write_text(
        "export default function Greeting({ name }) { return <h1>Hello {name}</h1>; }\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.mark.integration
class TestCommandLine:
    """livepreview PROJECT [--entry] [--out]"""

    def test_renders_to_stdout(self, project, capsys):
        assert main([str(project)]) == 0
        captured = capsys.readouterr()
        assert captured.out.startswith("<!DOCTYPE html>")
        assert '<script type="importmap">' in captured.out

    def test_writes_out_file(self, project, tmp_path, capsys):
        out = tmp_path / "preview.html"
        assert main([str(project), "--out", str(out)]) == 0
        assert out.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
        assert "wrote" in capsys.readouterr().err

    def test_snapshot_input(self, tmp_path, capsys):
        snapshot = tmp_path / "project.json"
        snapshot.write_text(json.dumps({
            "/index.tsx": {"type": "file", "content": "export default (): null => null;"},
        }), encoding="utf-8")
        assert main([str(snapshot)]) == 0
        assert "preview://g1/index.tsx" in capsys.readouterr().out

    def test_unresolved_import_warns(self, project, capsys):
        (project / "Greeting.jsx").unlink()
        assert main([str(project)]) == 0
        captured = capsys.readouterr()
        assert "warning[W0001]: Unable to resolve import './Greeting' from /App.jsx" in captured.err
        assert "livepreview-banner" in captured.out

    def test_syntax_error(self, project, tmp_path, capsys):
        (project / "Greeting.jsx").write_text("export default () => <h1>Hello</h2>;", encoding="utf-8")
        out = tmp_path / "error.html"
        assert main([str(project), "--out", str(out)]) == 1
        err = capsys.readouterr().err
        assert "error[E0201]: Expected corresponding JSX closing tag for <h1>" in err
        assert "= note: while building the preview module graph for /Greeting.jsx" in err
        assert "Build failed in <code>/Greeting.jsx</code>" in out.read_text(encoding="utf-8")

    def test_missing_entry(self, project, capsys):
        assert main([str(project), "--entry", "/Nope.jsx"]) == 1
        assert "Entry file not found: /Nope.jsx" in capsys.readouterr().err

    def test_missing_project(self, tmp_path, capsys):
        assert main([str(tmp_path / "nowhere")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_corrupt_snapshot(self, tmp_path, capsys):
        snapshot = tmp_path / "bad.json"
        snapshot.write_text("{", encoding="utf-8")
        assert main([str(snapshot)]) == 1
        assert "could not load project" in capsys.readouterr().err

"""
Tests for the str_replace_editor tool.
"""

import pytest
from livepreview.shared.errors import LineOutOfRange, NoMatch, NothingToUndo, NotFound
from livepreview.tools.editor import StrReplaceEditor


@pytest.fixture
def editor(fs):
    return StrReplaceEditor(fs)


class TestView:
    """Numbered file views and directory listings."""

    def test_view_file(self, fs, editor):
        fs.create("/App.jsx", "a\nb\nc")
        assert editor.view("/App.jsx") == "     1\ta\n     2\tb\n     3\tc"

    def test_view_range(self, fs, editor):
        fs.create("/App.jsx", "a\nb\nc")
        assert editor.view("/App.jsx", [2, -1]) == "     2\tb\n     3\tc"
        assert editor.view("/App.jsx", [1, 1]) == "     1\ta"

    @pytest.mark.parametrize("view_range", [[0, 1], [4, 4], [2, 1], [1, 9]])
    def test_view_range_out_of_bounds(self, fs, editor, view_range):
        fs.create("/App.jsx", "a\nb\nc")
        with pytest.raises(LineOutOfRange):
            editor.view("/App.jsx", view_range)

    def test_view_directory(self, fs, editor):
        fs.create("/App.jsx", "")
        fs.create("/components/Button.jsx", "")
        assert editor.view("/") == "App.jsx\ncomponents/"

    def test_view_empty_directory(self, fs, editor):
        fs.mkdir("/empty")
        assert editor.view("/empty") == "/empty is empty"

    def test_view_missing(self, editor):
        with pytest.raises(NotFound):
            editor.view("/nope.jsx")


class TestEdits:
    """create, str_replace and insert."""

    def test_create_and_overwrite(self, fs, editor):
        assert editor.create("App.jsx", "one") == "File created: /App.jsx"
        assert editor.create("/App.jsx", "two") == "File overwritten: /App.jsx"
        assert fs.read("/App.jsx") == "two"
        assert editor.history_depth == 2

    def test_str_replace_unique(self, fs, editor):
        fs.create("/App.jsx", "const a = 1;\nconst b = 2;\n")
        assert editor.str_replace("/App.jsx", "a = 1", "a = 10") == "Replaced text in /App.jsx"
        assert fs.read("/App.jsx") == "const a = 10;\nconst b = 2;\n"

    def test_str_replace_no_match(self, fs, editor):
        fs.create("/App.jsx", "x")
        with pytest.raises(NoMatch) as info:
            editor.str_replace("/App.jsx", "y", "z")
        assert info.value.message == "No match found for old_str in /App.jsx"

    def test_str_replace_ambiguous(self, fs, editor):
        fs.create("/App.jsx", "x x")
        with pytest.raises(NoMatch) as info:
            editor.str_replace("/App.jsx", "x", "y")
        assert "Found 2 matches" in info.value.message
        assert fs.read("/App.jsx") == "x x"
        assert editor.history_depth == 0

    def test_insert(self, fs, editor):
        fs.create("/a.js", "a\nb\n")
        editor.insert("/a.js", 1, "x")
        assert fs.read("/a.js") == "a\nx\nb\n"
        editor.insert("/a.js", 0, "top\n")
        assert fs.read("/a.js") == "top\na\nx\nb\n"

    def test_insert_at_end_without_trailing_newline(self, fs, editor):
        fs.create("/a.js", "a\nb")
        editor.insert("/a.js", 2, "c")
        assert fs.read("/a.js") == "a\nb\nc"

    def test_insert_into_empty_file(self, fs, editor):
        fs.create("/a.js", "")
        editor.insert("/a.js", 0, "first")
        assert fs.read("/a.js") == "first\n"

    @pytest.mark.parametrize("line", [-1, 3, "1", True])
    def test_insert_out_of_range(self, fs, editor, line):
        fs.create("/a.js", "a\nb\n")
        with pytest.raises(LineOutOfRange):
            editor.insert("/a.js", line, "x")


class TestUndo:
    """undo_edit rolls edits back one at a time."""

    def test_undo_chain(self, fs, editor):
        editor.create("/App.jsx", "one")
        editor.str_replace("/App.jsx", "one", "two")
        assert editor.undo_edit() == "Restored previous content of /App.jsx"
        assert fs.read("/App.jsx") == "one"
        assert editor.undo_edit() == "Undid creation of /App.jsx"
        assert not fs.exists("/App.jsx")
        with pytest.raises(NothingToUndo):
            editor.undo_edit()

    def test_undo_by_path(self, fs, editor):
        editor.create("/a.js", "a1")
        editor.create("/b.js", "b1")
        editor.create("/a.js", "a2")
        editor.create("/b.js", "b2")
        editor.undo_edit("/a.js")
        assert fs.read("/a.js") == "a1"
        assert fs.read("/b.js") == "b2"
        with pytest.raises(NothingToUndo) as info:
            editor.undo_edit("/c.js")
        assert info.value.message == "No edits to undo for /c.js"

    def test_undo_after_file_was_deleted(self, fs, editor):
        editor.create("/a.js", "a")
        fs.delete("/a.js")
        assert editor.undo_edit() == "Undid creation of /a.js"


class TestExecute:
    """The agent-facing entry point never raises for tool errors."""

    def test_success(self, fs, editor):
        result = editor.execute("create", path="/App.jsx", file_text="x")
        assert result.success
        assert str(result) == "File created: /App.jsx"

    def test_failure_is_reported(self, editor):
        result = editor.execute("str_replace", path="/missing.jsx", old_str="a", new_str="b")
        assert not result.success
        assert result.error.startswith("Error: ")
        assert str(result) == result.error

    def test_unknown_command(self, editor):
        result = editor.execute("delete", path="/App.jsx")
        assert result.error == (
            "Error: Unknown command 'delete'. Allowed commands: view, create, str_replace, insert, undo_edit"
        )

    def test_missing_arguments(self, editor):
        result = editor.execute("create", path="/App.jsx")
        assert result.error == "Error: Missing argument(s) for create: file_text"

    def test_none_and_unknown_arguments_are_ignored(self, fs, editor):
        fs.create("/App.jsx", "keep drop")
        result = editor.execute("str_replace", path="/App.jsx", old_str=" drop", new_str=None, extra=1)
        assert result.success
        assert fs.read("/App.jsx") == "keep"

    def test_view_range_shape(self, fs, editor):
        fs.create("/App.jsx", "a")
        result = editor.execute("view", path="/App.jsx", view_range=[1])
        assert not result.success

    @pytest.mark.parametrize("command, args", [
        ("str_replace", {"path": "/App.jsx", "old_str": 1, "new_str": "b"}),
        ("str_replace", {"path": "/App.jsx", "old_str": "a", "new_str": ["b"]}),
        ("create", {"path": "/App.jsx", "file_text": {"text": "x"}}),
        ("insert", {"path": "/App.jsx", "insert_line": "1", "new_str": "b"}),
        ("view", {"path": "/App.jsx", "view_range": ["1", "2"]}),
        ("view", {"path": "/App.jsx", "view_range": 3}),
    ])
    def test_wrong_argument_types_fail(self, fs, editor, command, args):
        fs.create("/App.jsx", "a\nb")
        result = editor.execute(command, **args)
        assert not result.success
        assert fs.read("/App.jsx") == "a\nb"

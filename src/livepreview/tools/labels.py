"""
Status lines for tool calls, as the chat shows them while a call runs.
"""

from typing import Any, Mapping, Optional

_EDITOR_LABELS = {
    "create": "Creating {path}",
    "view": "Viewing {path}",
    "str_replace": "Editing {path}",
    "insert": "Editing {path}",
    "undo_edit": "Attempting undo",
}

_FILE_MANAGER_LABELS = {
    "rename": "Renaming {path}",
    "delete": "Deleting {path}",
}


def tool_call_label(tool_name: str, args: Optional[Mapping[str, Any]] = None) -> str:
    """
    Human-readable label for one tool call.

    >>> tool_call_label("str_replace_editor", {"command": "create", "path": "/App.jsx"})
    'Creating /App.jsx'
    """
    args = args or {}
    command = args.get("command")
    path = args.get("path") or ""
    if tool_name == "str_replace_editor":
        template = _EDITOR_LABELS.get(command, "Processing file")
    elif tool_name == "file_manager":
        template = _FILE_MANAGER_LABELS.get(command, "Managing file")
    else:
        return tool_name
    return template.format(path=path)

"""
Tool-call contract: the commands an agent uses to edit the project.
"""

from .result import ToolResult
from .editor import StrReplaceEditor
from .file_manager import FileManager
from .labels import tool_call_label

__all__ = [
    'ToolResult',
    'StrReplaceEditor',
    'FileManager',
    'tool_call_label',
]

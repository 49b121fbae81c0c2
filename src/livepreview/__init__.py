"""
livepreview: an in-memory React project tree, rebuilt into a browser-runnable
module graph after every change.
"""

from .vfs import VirtualFileSystem, FileSystemSnapshot
from .frontend import SourceTransformer, TransformResult
from .resolver import ImportResolver, Resolution
from .compiler import ModuleGraphAssembler, BuildResult, PreviewSession, find_entry_point
from .preview import SandboxPayload, render_preview_html, render_error_html
from .tools import StrReplaceEditor, FileManager, ToolResult, tool_call_label

__version__ = "0.1.0"

__all__ = [
    'VirtualFileSystem',
    'FileSystemSnapshot',
    'SourceTransformer',
    'TransformResult',
    'ImportResolver',
    'Resolution',
    'ModuleGraphAssembler',
    'BuildResult',
    'PreviewSession',
    'find_entry_point',
    'SandboxPayload',
    'render_preview_html',
    'render_error_html',
    'StrReplaceEditor',
    'FileManager',
    'ToolResult',
    'tool_call_label',
]

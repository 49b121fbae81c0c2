"""
Preview: sandbox payload and the HTML document that runs it.
"""

from .sandbox import SandboxPayload, build_import_map, module_data_url, render_error_html, render_preview_html

__all__ = [
    'SandboxPayload',
    'build_import_map',
    'module_data_url',
    'render_error_html',
    'render_preview_html',
]

"""
Sandbox adapter

Packages an installed build for the execution sandbox and renders it as a
self-contained HTML document. Every module is inlined as a `data:` URL
behind an import map entry for its preview:// reference, next to the
pinned React entries shared by the project modules and the CDN packages,
so the document runs without any server.
"""

import base64
import html
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..compiler.assembler import BuildResult, ModuleRegistry
from ..resolver.import_resolver import shared_package_imports
from ..shared.errors import BuildFailed, Diagnostic, LivePreviewError
from ..utils.config import DEFAULT_FILE_ENCODING

logger = logging.getLogger(__name__)


@dataclass
class SandboxPayload:
    """Everything the sandbox receives; never the file system itself."""
    registry: ModuleRegistry
    entry_specifier: str
    aggregated_style_text: str = ""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @classmethod
    def from_build(cls, result: BuildResult) -> "SandboxPayload":
        return cls(
            registry=result.registry,
            entry_specifier=result.entry_specifier,
            aggregated_style_text=result.aggregated_style_text,
            diagnostics=list(result.diagnostics),
        )

    @property
    def entry_reference(self) -> str:
        return self.registry.imports[self.entry_specifier].reference


def module_data_url(code: str) -> str:
    payload = base64.b64encode(code.encode(DEFAULT_FILE_ENCODING)).decode("ascii")
    return f"data:text/javascript;base64,{payload}"


def build_import_map(payload: SandboxPayload) -> Dict[str, Dict[str, str]]:
    imports = shared_package_imports()
    for record in payload.registry.modules.values():
        imports[record.reference] = module_data_url(record.code)
    return {"imports": imports}


def _script_json(value) -> str:
    """JSON that is safe inside a <script> element."""
    return json.dumps(value, indent=2).replace("</", "<\\/")


def _style_text(css: str) -> str:
    return css.replace("</style", "<\\/style")


_BASE_CSS = """
.livepreview-banner { font: 12px/1.4 ui-monospace, monospace; background: #fffbeb; color: #92400e;
  border-bottom: 1px solid #fcd34d; padding: 6px 12px; }
.livepreview-banner ul { margin: 0; padding-left: 16px; }
.livepreview-runtime-error { font: 13px/1.5 ui-monospace, monospace; color: #b91c1c; white-space: pre-wrap;
  padding: 12px; }
"""

_MOUNT_SCRIPT = """
import {{ createElement }} from "react";
import {{ createRoot }} from "react-dom/client";

const showError = (error) => {{
  const panel = document.createElement("pre");
  panel.className = "livepreview-runtime-error";
  panel.textContent = String(error && error.stack ? error.stack : error);
  document.body.appendChild(panel);
}};
window.addEventListener("error", (event) => showError(event.error || event.message));
window.addEventListener("unhandledrejection", (event) => showError(event.reason));

try {{
  const entry = await import({entry});
  const App = entry.default;
  if (typeof App !== "function" && typeof App !== "object") {{
    throw new Error({missing_default});
  }}
  createRoot(document.getElementById("root")).render(createElement(App));
}} catch (error) {{
  showError(error);
}}
"""


def _diagnostics_banner(diagnostics: List[Diagnostic]) -> str:
    if not diagnostics:
        return ""
    items = "\n".join(f"<li>{html.escape(d.message)}</li>" for d in diagnostics)
    return f'<div class="livepreview-banner" role="status"><ul>\n{items}\n</ul></div>'


def render_preview_html(payload: SandboxPayload, title: str = "Preview") -> str:
    """
    Render the complete preview document.

    Args:
        payload: The installed build
        title: Document title

    Returns:
        Complete HTML string
    """
    import_map = _script_json(build_import_map(payload))
    mount = _MOUNT_SCRIPT.format(
        entry=json.dumps(payload.entry_reference),
        missing_default=json.dumps(f"{payload.entry_specifier} has no default export to render"),
    ).replace("</", "<\\/")
    logger.debug(f"rendering preview document: {len(payload.registry.modules)} module(s)")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{html.escape(title)}</title>
<script type="importmap">
{import_map}
</script>
<style>{_BASE_CSS}</style>
<style id="livepreview-styles">
{_style_text(payload.aggregated_style_text)}
</style>
</head>
<body>
{_diagnostics_banner(payload.diagnostics)}
<div id="root"></div>
<script type="module">{mount}</script>
</body>
</html>
"""


def render_error_html(error: BuildFailed, title: str = "Preview error") -> str:
    """Error panel shown in place of the preview when a build fails."""
    if isinstance(error.cause, LivePreviewError):
        detail = str(error.cause)
    else:
        detail = error.message
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>{html.escape(title)}</title>
<style>
body {{ margin: 0; font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; background: #fef2f2; }}
.livepreview-error {{ padding: 24px; color: #7f1d1d; }}
.livepreview-error h1 {{ font-size: 16px; margin: 0 0 8px; }}
.livepreview-error pre {{ font: 13px/1.5 ui-monospace, monospace; white-space: pre-wrap; background: #fff;
  border: 1px solid #fecaca; border-radius: 6px; padding: 12px; }}
</style>
</head>
<body>
<div class="livepreview-error" role="alert">
<h1>Build failed in <code>{html.escape(error.path)}</code></h1>
<p>{html.escape(error.message)}</p>
<pre>{html.escape(detail)}</pre>
</div>
</body>
</html>
"""

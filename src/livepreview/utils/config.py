"""
Configuration constants to replace magic values throughout livepreview
"""

import os
import tempfile

# Source file extensions, in extension-probing priority order
SOURCE_EXTENSIONS = (".jsx", ".tsx", ".js", ".ts")
MODULE_EXTENSIONS = SOURCE_EXTENSIONS + (".mjs",)
STYLE_EXTENSIONS = (".css",)
RECOGNIZED_EXTENSIONS = MODULE_EXTENSIONS + STYLE_EXTENSIONS

# Dialect switches per extension
TYPESCRIPT_EXTENSIONS = (".ts", ".tsx")
JSX_EXTENSIONS = (".jsx", ".tsx", ".js", ".mjs")

# Directory imports probe `<dir>/index` + SOURCE_EXTENSIONS
INDEX_MODULE_NAME = "index"

# Import alias: `@/components/Button` -> `/components/Button`
ALIAS_PREFIX = "@/"
ALIAS_ROOT = "/"

# Third-party packages are loaded from an ESM CDN
CDN_BASE_URL = "https://esm.sh"
URL_PREFIXES = ("http://", "https://", "data:", "blob:", "//")

# React and its DOM renderer are pinned so every module shares one instance
REACT_VERSION = "19.1.0"
SHARED_PACKAGES = ("react", "react-dom")
EXTERNALIZED_QUERY = "external=" + ",".join(SHARED_PACKAGES)

# Automatic JSX runtime
JSX_RUNTIME_SOURCE = "react/jsx-runtime"
JSX_HELPER_NAMES = {
    "jsx": "_jsx",
    "jsxs": "_jsxs",
    "Fragment": "_Fragment",
}

# Loadable references handed to the sandbox: preview://g<generation>/<path>
BLOB_SCHEME = "preview"
PLACEHOLDER_DIRECTORY = "/__placeholder__/"

# Entry point discovery, first existing file wins
ENTRY_POINT_CANDIDATES = (
    "/App.jsx",
    "/App.tsx",
    "/index.jsx",
    "/index.tsx",
    "/src/App.jsx",
    "/src/App.tsx",
)

# Loading a project from disk
IGNORED_DIRECTORIES = ("node_modules", ".git", "__pycache__", "dist", "build")

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "livepreview_imports_lalr.cache")

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Tool output
VIEW_LINE_NUMBER_WIDTH = 6

"""
Tests for import resolution: project paths, the alias, probing and CDN URLs.
"""

import pytest
from livepreview.resolver.import_resolver import (
    ImportResolver,
    ResolutionKind,
    package_url,
    parse_package_specifier,
    pinned_url,
    shared_package_imports,
)
from tests.test_utils import make_fs

PROJECT = {
    "/App.jsx": "",
    "/components/Button.tsx": "",
    "/components/index.js": "",
    "/lib/utils.ts": "",
    "/lib/format.js": "",
    "/lib/format.jsx": "",
    "/styles/app.css": "",
    "/data": "",
}


@pytest.fixture
def snapshot():
    return make_fs(PROJECT).snapshot()


class TestLocalResolution:
    """Absolute, aliased and relative specifiers."""

    def test_relative_with_probe(self, resolver, snapshot):
        resolution = resolver.resolve("./components/Button", "/App.jsx", snapshot)
        assert resolution.kind is ResolutionKind.RELATIVE
        assert resolution.target == "/components/Button.tsx"
        assert resolution.is_local

    def test_parent_directory(self, resolver, snapshot):
        resolution = resolver.resolve("../lib/utils", "/components/Button.tsx", snapshot)
        assert resolution.target == "/lib/utils.ts"

    def test_alias(self, resolver, snapshot):
        resolution = resolver.resolve("@/lib/utils", "/components/Button.tsx", snapshot)
        assert resolution.kind is ResolutionKind.ALIASED
        assert resolution.target == "/lib/utils.ts"

    def test_absolute(self, resolver, snapshot):
        resolution = resolver.resolve("/styles/app.css", "/lib/utils.ts", snapshot)
        assert resolution.kind is ResolutionKind.LOCAL_ABSOLUTE
        assert resolution.target == "/styles/app.css"

    def test_directory_index(self, resolver, snapshot):
        assert resolver.resolve("./components", "/App.jsx", snapshot).target == "/components/index.js"

    def test_missing_file(self, resolver, snapshot):
        resolution = resolver.resolve("./missing", "/App.jsx", snapshot)
        assert resolution.is_unresolved
        assert resolution.target == ""

    def test_escaping_the_root(self, resolver, snapshot):
        assert resolver.resolve("../../x", "/lib/utils.ts", snapshot).is_unresolved

    def test_does_not_raise_on_odd_input(self, resolver, snapshot):
        assert resolver.resolve("@/", "/App.jsx", snapshot).is_unresolved


class TestProbe:
    """Candidate order when looking a path up."""

    def test_extension_priority(self, resolver, snapshot):
        assert resolver.probe("/lib/format", snapshot) == "/lib/format.jsx"

    def test_exact_file_wins(self, resolver, snapshot):
        assert resolver.probe("/data", snapshot) == "/data"

    def test_recognized_extension_is_tried_exactly(self, resolver, snapshot):
        assert resolver.probe("/lib/utils.ts", snapshot) == "/lib/utils.ts"
        assert resolver.probe("/lib/utils.js", snapshot) is None

    def test_directory_alone_never_matches(self, resolver, snapshot):
        assert resolver.probe("/styles", snapshot) is None

    def test_root_index(self, resolver):
        snapshot = make_fs({"/index.tsx": ""}).snapshot()
        assert resolver.probe("/", snapshot) == "/index.tsx"


class TestExternalResolution:
    """Bare specifiers map to pinned CDN URLs."""

    def test_react_is_pinned(self, resolver, snapshot):
        resolution = resolver.resolve("react", "/App.jsx", snapshot)
        assert resolution.is_external
        assert resolution.target == "https://esm.sh/react@19.1.0"

    def test_third_party_externalizes_react(self, resolver, snapshot):
        target = resolver.resolve("lodash/debounce", "/App.jsx", snapshot).target
        assert target == "https://esm.sh/lodash/debounce?external=react,react-dom"

    def test_url_passes_through(self, resolver, snapshot):
        url = "https://cdn.example.com/mod.js"
        assert resolver.resolve(url, "/App.jsx", snapshot).target == url

    @pytest.mark.parametrize("specifier", ["", "@scope", "lodash@", "Not Valid", "#internal"])
    def test_invalid_package(self, resolver, snapshot, specifier):
        assert resolver.resolve(specifier, "/App.jsx", snapshot).kind is ResolutionKind.UNRESOLVED


class TestPackageSpecifiers:
    """Package name parsing and URL construction."""

    @pytest.mark.parametrize("specifier, expected", [
        ("lodash", ("lodash", None, "")),
        ("lodash/fp", ("lodash", None, "/fp")),
        ("lodash@4.17.21", ("lodash", "4.17.21", "")),
        ("@scope/pkg@2.1.0/utils", ("@scope/pkg", "2.1.0", "/utils")),
        ("@scope/pkg", ("@scope/pkg", None, "")),
    ])
    def test_parse(self, specifier, expected):
        assert parse_package_specifier(specifier) == expected

    def test_versioned_url(self):
        assert package_url("date-fns", "3.6.0") == "https://esm.sh/date-fns@3.6.0?external=react,react-dom"

    def test_react_dom_externalizes_react_only(self):
        assert pinned_url("react-dom/client") == "https://esm.sh/react-dom@19.1.0/client?external=react"

    def test_shared_package_imports(self):
        imports = shared_package_imports()
        assert imports["react/jsx-runtime"] == "https://esm.sh/react@19.1.0/jsx-runtime"
        assert imports["react-dom/"] == "https://esm.sh/react-dom@19.1.0/"
        assert set(imports) >= {"react", "react-dom", "react-dom/client"}


def test_resolver_is_reusable():
    resolver = ImportResolver()
    first = make_fs({"/a.js": ""}).snapshot()
    second = make_fs({"/a.ts": ""}).snapshot()
    assert resolver.resolve("./a", "/App.jsx", first).target == "/a.js"
    assert resolver.resolve("./a", "/App.jsx", second).target == "/a.ts"

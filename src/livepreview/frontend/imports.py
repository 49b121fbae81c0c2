"""
Module declarations

Finds the static import / export-from / export-list statements of a module
in its top-level token stream and parses each one with a small LALR
grammar (imports.lark). Also finds dynamic `import("literal")` calls.
"""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput
from lark.lexer import Token as LarkToken

from ..shared.errors import TransformSyntaxError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE
from .tokens import TokenKind, TokenList, decode_string_literal

logger = logging.getLogger(__name__)


@dataclass
class ImportBinding:
    """
    One name bound or re-exported by a declaration.

    For imports, `imported` is the exporting module's name ("default", "*"
    for namespaces) and `local` the binding. For export lists and
    re-exports, `imported` is the name being exported and `local` the name
    it is exported as.
    """
    imported: str
    local: str
    form: str = "named"
    type_only: bool = False


@dataclass
class ModuleDeclaration:
    kind: str
    specifier: Optional[str] = None
    bindings: List[ImportBinding] = field(default_factory=list)
    type_only: bool = False
    attributes: Optional[str] = None
    start: int = 0
    end: int = 0
    source_index: Optional[int] = None

    @property
    def is_import(self) -> bool:
        return self.kind in ("import", "side_effect")

    def binding_names(self) -> List[str]:
        """Names the importer expects the target module to export by name."""
        return [b.imported for b in self.bindings if b.imported not in ("default", "*")]


@dataclass
class _Source:
    value: str


@dataclass
class _Attributes:
    text: str


def _flatten(items):
    type_only = False
    source = None
    attributes = None
    names: List[str] = []
    bindings: List[ImportBinding] = []
    for item in items:
        if isinstance(item, LarkToken) and item.type == "TYPE":
            type_only = True
        elif isinstance(item, _Source):
            source = item.value
        elif isinstance(item, _Attributes):
            attributes = item.text
        elif isinstance(item, list):
            bindings.extend(item)
        else:
            names.append(str(item))
    return type_only, source, attributes, names, bindings


@v_args(inline=True)
class ModuleDeclarationTransformer(Transformer):
    """Turns an imports.lark parse tree into a ModuleDeclaration."""

    def import_from(self, *items):
        type_only, source, attributes, _, bindings = _flatten(items)
        if type_only:
            for binding in bindings:
                binding.type_only = True
        return ModuleDeclaration("import", source, bindings, type_only, attributes)

    def import_side_effect(self, *items):
        _, source, attributes, _, _ = _flatten(items)
        return ModuleDeclaration("side_effect", source, [], False, attributes)

    def import_clause(self, *parts):
        return [binding for part in parts for binding in part]

    def default_import(self, name):
        return [ImportBinding("default", str(name), form="default")]

    def namespace_import(self, name):
        return [ImportBinding("*", str(name), form="namespace")]

    def named_imports(self, *specifiers):
        return list(specifiers)

    def import_specifier(self, *items):
        type_only, _, _, names, _ = _flatten(items)
        local = names[1] if len(names) > 1 else names[0]
        return ImportBinding(names[0], local, type_only=type_only)

    def export_all(self, *items):
        type_only, source, attributes, names, _ = _flatten(items)
        bindings = [ImportBinding("*", names[0], form="namespace", type_only=type_only)] if names else []
        return ModuleDeclaration("export_all", source, bindings, type_only, attributes)

    def export_from(self, *items):
        type_only, source, attributes, _, bindings = _flatten(items)
        if type_only:
            for binding in bindings:
                binding.type_only = True
        return ModuleDeclaration("export_from", source, bindings, type_only, attributes)

    def export_list(self, *items):
        type_only, _, _, _, bindings = _flatten(items)
        if type_only:
            for binding in bindings:
                binding.type_only = True
        return ModuleDeclaration("export_list", None, bindings, type_only)

    def named_exports(self, *specifiers):
        return list(specifiers)

    def export_specifier(self, *items):
        type_only, _, _, names, _ = _flatten(items)
        exported = names[1] if len(names) > 1 else names[0]
        return ImportBinding(names[0], exported, type_only=type_only)

    def export_name(self, token):
        if token.type == "STRING":
            return decode_string_literal(str(token))
        return str(token)

    def source(self, token):
        return _Source(decode_string_literal(str(token)))

    def attribute(self, key, value):
        return f"{key}: {value}"

    def attributes(self, keyword, *entries):
        return _Attributes(f"{keyword} {{ {', '.join(entries)} }}")


class ImportParser:
    """LALR parser for single module declarations, with Lark's on-disk cache."""

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "imports.lark"
        self.parser = Lark.open(
            grammar_path,
            start="start",
            parser="lalr",
            cache=cache_file,
            maybe_placeholders=False,
        )
        self.transformer = ModuleDeclarationTransformer()

    def parse(self, text: str, path: str, location: Optional[SourceLocation] = None,
              source_code: Optional[str] = None) -> ModuleDeclaration:
        try:
            tree = self.parser.parse(text)
        except UnexpectedInput as e:
            raise TransformSyntaxError(
                f"Malformed module declaration: {text.strip()}",
                path=path,
                location=location,
                source_code=source_code,
                help="expected `import ... from \"module\"` or `export { ... } from \"module\"`",
            ) from e
        return self.transformer.transform(tree)


@lru_cache(maxsize=1)
def get_import_parser() -> ImportParser:
    return ImportParser()


# ---------------------------------------------------------------------------
# Finding declarations in a token stream
# ---------------------------------------------------------------------------

def _after_dot(tokens: TokenList, index: int) -> bool:
    return index > 0 and tokens[index - 1].is_punct(".", "?.")


def _skip_attributes_and_semicolon(tokens: TokenList, j: int) -> int:
    token = tokens.get(j)
    follower = tokens.get(j + 1)
    if (token is not None and token.is_name("with", "assert") and not tokens.newline_before(j)
            and follower is not None and follower.is_punct("{")):
        j = tokens.pairs[j + 1] + 1
    token = tokens.get(j)
    if token is not None and token.is_punct(";"):
        j += 1
    return j


def _import_end(tokens: TokenList, i: int) -> int:
    j = i + 1
    if tokens[j].kind is TokenKind.STRING:
        return _skip_attributes_and_semicolon(tokens, j + 1)
    while j < len(tokens):
        token = tokens[j]
        if token.is_punct("{"):
            j = tokens.pairs[j] + 1
            continue
        follower = tokens.get(j + 1)
        if token.is_name("from") and follower is not None and follower.kind is TokenKind.STRING:
            return _skip_attributes_and_semicolon(tokens, j + 2)
        if token.is_punct(";") or not (token.kind is TokenKind.NAME or token.is_punct(",", "*")):
            return j + 1
        j += 1
    return j


def _export_end(tokens: TokenList, i: int) -> int:
    j = i + 1
    if tokens[j].is_name("type"):
        j += 1
    if tokens[j].is_punct("*"):
        j += 1
        if tokens.get(j) is not None and tokens[j].is_name("as"):
            j += 2
    else:
        j = tokens.pairs[j] + 1
    token = tokens.get(j)
    follower = tokens.get(j + 1)
    if token is not None and token.is_name("from") and follower is not None and follower.kind is TokenKind.STRING:
        j += 2
    return _skip_attributes_and_semicolon(tokens, j)


def declaration_ranges(tokens: TokenList) -> List[Tuple[int, int, int]]:
    """
    (start, end, source_index) of every static declaration in a top-level
    token list; source_index is -1 for export lists without a `from`.
    """
    ranges: List[Tuple[int, int, int]] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        follower = tokens.get(i + 1)
        if follower is None or _after_dot(tokens, i):
            i += 1
            continue
        if token.is_name("import") and (follower.kind in (TokenKind.STRING, TokenKind.NAME)
                                        or follower.is_punct("{", "*")):
            end = _import_end(tokens, i)
        elif token.is_name("export") and (
                follower.is_punct("{", "*")
                or (follower.is_name("type") and tokens.get(i + 2) is not None
                    and tokens[i + 2].is_punct("{", "*"))):
            end = _export_end(tokens, i)
        else:
            i += 1
            continue
        source_index = -1
        for k in range(end - 1, i, -1):
            if tokens[k].kind is TokenKind.STRING and tokens[k - 1].is_name("from", "import"):
                source_index = k
                break
        ranges.append((i, end, source_index))
        i = end
    return ranges


def dynamic_import_sources(tokens: TokenList) -> List[int]:
    """Indices of the string literal in every `import("literal")` call of one list."""
    found = []
    for i, token in enumerate(tokens.tokens):
        if not token.is_name("import") or _after_dot(tokens, i):
            continue
        paren = tokens.get(i + 1)
        literal = tokens.get(i + 2)
        closer = tokens.get(i + 3)
        if (paren is not None and paren.is_punct("(") and literal is not None
                and literal.kind is TokenKind.STRING and closer is not None and closer.is_punct(")", ",")):
            found.append(i + 2)
    return found


def parse_declarations(tokens: TokenList, path: str, parser: Optional[ImportParser] = None) -> List[ModuleDeclaration]:
    parser = parser or get_import_parser()
    declarations = []
    for start, end, source_index in declaration_ranges(tokens):
        first = tokens[start]
        text = " ".join(token.value for token in tokens.tokens[start:end])
        location = SourceLocation(path, first.line, first.column, first.start, first.end,
                                  first.line, first.column + len(first.value))
        declaration = parser.parse(text, path, location, source_code=tokens.source)
        declaration.start = start
        declaration.end = end
        declaration.source_index = source_index if source_index >= 0 else None
        declarations.append(declaration)
    logger.debug(f"{path}: {len(declarations)} module declaration(s)")
    return declarations


# ---------------------------------------------------------------------------
# Printing rewritten declarations
# ---------------------------------------------------------------------------

def _export_name(name: str) -> str:
    if name.isidentifier() or name == "default":
        return name
    return json.dumps(name)


def _specifier_text(binding: ImportBinding, is_export: bool) -> str:
    imported = _export_name(binding.imported)
    local = _export_name(binding.local) if is_export else binding.local
    return imported if imported == local else f"{imported} as {local}"


def format_declaration(declaration: ModuleDeclaration, bindings: List[ImportBinding]) -> Tuple[str, str]:
    """
    Text before and after the module specifier for `declaration` reduced to
    `bindings`. Export lists have no specifier; their whole text is returned
    as the first element.
    """
    suffix = f" {declaration.attributes};" if declaration.attributes else ";"
    if declaration.kind == "import":
        head = []
        for binding in bindings:
            if binding.form == "default":
                head.append(binding.local)
            elif binding.form == "namespace":
                head.append(f"* as {binding.local}")
        named = [_specifier_text(b, False) for b in bindings if b.form == "named"]
        if named:
            head.append("{ " + ", ".join(named) + " }")
        return f"import {', '.join(head)} from ", suffix
    listed = "{ " + ", ".join(_specifier_text(b, True) for b in bindings) + " }"
    if declaration.kind == "export_list":
        return f"export {listed};", ""
    return f"export {listed} from ", suffix

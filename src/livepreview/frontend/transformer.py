"""
Source Transformer

Turns one project file into browser-executable module code:

    lex -> parse module declarations -> erase types (.ts/.tsx)
        -> rewrite declarations -> lower JSX -> render

The output is kept as chunks in which every module specifier is a
SpecifierSlot, so the assembler can link the same transformation against
whatever loadable targets the specifiers resolve to.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

from typing_extensions import TypeAlias

from ..shared.source_location import SourceLocation
from ..utils.config import (
    JSX_HELPER_NAMES,
    JSX_RUNTIME_SOURCE,
    STYLE_EXTENSIONS,
    TYPESCRIPT_EXTENSIONS,
)
from ..vfs.paths import extension
from .imports import (
    ImportBinding,
    ImportParser,
    ModuleDeclaration,
    dynamic_import_sources,
    format_declaration,
    parse_declarations,
)
from .jsx import JSXLowering
from .lexer import tokenize
from .tokens import JSXElement, JSXExpression, Token, TokenKind, TokenList, decode_string_literal
from .typescript import TypeEraser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecifierSlot:
    """Position of a module specifier string in transformed code."""
    specifier: str


Chunk: TypeAlias = Union[str, SpecifierSlot]


@dataclass
class TransformResult:
    """
    Transformed file.

    executable_source is the module code with every specifier left as
    written; chunks hold the same code with specifiers as slots (see link).
    Style files carry extracted_style_text and no executable source.
    """
    path: str
    executable_source: Optional[str]
    import_specifiers: List[str]
    extracted_style_text: Optional[str] = None
    chunks: List[Chunk] = field(default_factory=list)
    imported_names: Dict[str, List[str]] = field(default_factory=dict)
    specifier_locations: Dict[str, SourceLocation] = field(default_factory=dict)

    @property
    def is_style(self) -> bool:
        return self.executable_source is None

    def link(self, targets: Mapping[str, str]) -> str:
        """Module code with each specifier replaced by its target (unmapped ones kept)."""
        parts = []
        for chunk in self.chunks:
            if isinstance(chunk, SpecifierSlot):
                parts.append(json.dumps(targets.get(chunk.specifier, chunk.specifier)))
            else:
                parts.append(chunk)
        return "".join(parts)


# ---------------------------------------------------------------------------
# Token list traversal
# ---------------------------------------------------------------------------

def _nested_lists(tokens: TokenList) -> Iterator[TokenList]:
    """tokens and every list embedded in its live templates and JSX, depth first."""
    yield tokens
    for index, token in enumerate(tokens.tokens):
        if index in tokens.erased:
            continue
        if token.kind is TokenKind.TEMPLATE:
            for part in token.payload:
                if part.expression is not None:
                    yield from _nested_lists(part.expression)
        elif token.kind is TokenKind.JSX:
            yield from _jsx_lists(token.payload)


def _jsx_lists(element: JSXElement) -> Iterator[TokenList]:
    for attribute in element.attributes:
        if attribute.spread is not None:
            yield from _nested_lists(attribute.spread)
        elif isinstance(attribute.value, JSXExpression) and attribute.value.expression is not None:
            yield from _nested_lists(attribute.value.expression)
        elif isinstance(attribute.value, JSXElement):
            yield from _jsx_lists(attribute.value)
    for child in element.children:
        if isinstance(child, JSXExpression) and child.expression is not None:
            yield from _nested_lists(child.expression)
        elif isinstance(child, JSXElement):
            yield from _jsx_lists(child)


def _jsx_component_names(element: JSXElement) -> Iterator[str]:
    """Identifiers a JSX element refers to by its tag name."""
    if element.name is not None and ":" not in element.name:
        root = element.name.split(".")[0]
        if "." in element.name or not (re.match(r"[a-z]", root) or "-" in root):
            yield root
    for attribute in element.attributes:
        if isinstance(attribute.value, JSXElement):
            yield from _jsx_component_names(attribute.value)
    for child in element.children:
        if isinstance(child, JSXElement):
            yield from _jsx_component_names(child)


def _token_location(path: str, token: Token) -> SourceLocation:
    return SourceLocation(path, token.line, token.column, token.start, token.end,
                          token.line, token.column + len(token.value))


_OPENERS = ("", " ", "\t", "\n", "(", "[", "{")
_CLOSERS = ")]},;.:?!"


def _is_word_char(ch: str) -> bool:
    return bool(ch) and (ch.isalnum() or ch in "_$#")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class _Emitter:
    """Renders a token list back to code, applying erasures and replacements."""

    def __init__(self, lowering: JSXLowering):
        self.lowering = lowering

    def render(self, tokens: TokenList) -> List[Chunk]:
        out: List[Chunk] = []
        skipped = False
        pending = ""
        for index, token in enumerate(tokens.tokens):
            gap = tokens.gap_before(index)
            blank = not gap.strip(" \t")
            if index in tokens.erased and index not in tokens.replacements:
                # blank runs around erased tokens go with them; line breaks and comments stay
                if not blank:
                    out.append(gap)
                elif not skipped:
                    pending = gap
                skipped = True
                continue
            last = self._last_char(out)
            if gap and not (skipped and blank and last in _OPENERS):
                out.append(gap)
            elif skipped and last not in _OPENERS and (
                    (_is_word_char(token.value[:1]) and _is_word_char(last))
                    or (pending and token.value[:1] not in _CLOSERS)):
                out.append(pending or " ")
            skipped = False
            pending = ""
            if index in tokens.replacements:
                out.extend(tokens.replacements[index])
            elif token.kind is TokenKind.TEMPLATE:
                out.extend(self._template(token))
            elif token.kind is TokenKind.JSX:
                out.extend(self._jsx(token))
            else:
                out.append(token.value)
        last = tokens.tokens[-1].end if tokens.tokens else tokens.start
        if tokens.end > last:
            out.append(tokens.source[last:tokens.end])
        return out

    @staticmethod
    def _last_char(out: List[Chunk]) -> str:
        """Last character emitted so far; a specifier slot counts as a closing quote."""
        for chunk in reversed(out):
            if isinstance(chunk, SpecifierSlot):
                return '"'
            if chunk:
                return chunk[-1]
        return ""

    def _template(self, token: Token) -> List[Chunk]:
        out: List[Chunk] = ["`"]
        for part in token.payload:
            out.append(part.text)
            if part.expression is not None:
                out.append("${")
                out.extend(self.render(part.expression))
                out.append("}")
        out.append("`")
        return out

    def _jsx(self, token: Token) -> List[Chunk]:
        out = self.lowering.lower(token.payload, self.render)
        produced = sum(chunk.count("\n") for chunk in out if isinstance(chunk, str))
        missing = token.value.count("\n") - produced
        if missing > 0:
            out.append("\n" * missing)
        return out


def _compact(chunks: List[Chunk]) -> List[Chunk]:
    """Merge runs of adjacent strings."""
    merged: List[Chunk] = []
    buffer: List[str] = []
    for chunk in chunks:
        if isinstance(chunk, SpecifierSlot):
            if buffer:
                merged.append("".join(buffer))
                buffer = []
            merged.append(chunk)
        elif chunk:
            buffer.append(chunk)
    if buffer:
        merged.append("".join(buffer))
    return merged


# ---------------------------------------------------------------------------
# Transformer
# ---------------------------------------------------------------------------

class SourceTransformer:
    """
    Transforms JSX/TSX/JS/TS files into module code for the automatic JSX
    runtime, and passes style files through untouched.

    One instance may be shared between builds; transform keeps no state.
    """

    def __init__(self, parser: Optional[ImportParser] = None):
        self.parser = parser

    def transform(self, path: str, source: str) -> TransformResult:
        ext = extension(path)
        if ext in STYLE_EXTENSIONS:
            return TransformResult(path, None, [], source)

        typescript = ext in TYPESCRIPT_EXTENSIONS
        tokens = tokenize(source, path, jsx=ext != ".ts", typescript=typescript)
        declarations = parse_declarations(tokens, path, self.parser)
        protected = {i for d in declarations for i in range(d.start, d.end)}

        type_names: Set[str] = set()
        if typescript:
            eraser = TypeEraser(path)
            eraser.erase(tokens, protected)
            type_names = set(eraser.type_names)

        slots: List[Tuple[int, str, Token]] = []
        imported_names: Dict[str, List[str]] = {}
        used = self._value_names(tokens, protected, declarations) if typescript else None
        for declaration in declarations:
            kept = self._rewrite_declaration(tokens, declaration, used, type_names)
            if kept is None or declaration.specifier is None:
                continue
            literal = tokens[declaration.source_index]
            slots.append((literal.start, declaration.specifier, literal))
            names = imported_names.setdefault(declaration.specifier, [])
            for name in ModuleDeclaration(declaration.kind, bindings=kept).binding_names():
                if name not in names:
                    names.append(name)

        for nested in _nested_lists(tokens):
            for index in dynamic_import_sources(nested):
                if index in nested.erased:
                    continue
                literal = nested[index]
                specifier = decode_string_literal(literal.value)
                nested.replacements[index] = [SpecifierSlot(specifier)]
                slots.append((literal.start, specifier, literal))

        lowering = JSXLowering()
        chunks = _Emitter(lowering).render(tokens)
        specifiers: List[str] = []
        locations: Dict[str, SourceLocation] = {}
        if lowering.helpers_used:
            chunks = self._with_runtime_import(chunks, lowering.helpers_used)
            specifiers.append(JSX_RUNTIME_SOURCE)
        for _, specifier, literal in sorted(slots, key=lambda slot: slot[0]):
            if specifier not in locations:
                locations[specifier] = _token_location(path, literal)
            if specifier not in specifiers:
                specifiers.append(specifier)

        chunks = _compact(chunks)
        result = TransformResult(
            path=path,
            executable_source=None,
            import_specifiers=specifiers,
            chunks=chunks,
            imported_names=imported_names,
            specifier_locations=locations,
        )
        result.executable_source = result.link({})
        logger.debug(f"transformed {path}: {len(specifiers)} import specifier(s)")
        return result

    # ------------------------------------------------------------------

    @staticmethod
    def _value_names(tokens: TokenList, protected: Set[int],
                     declarations: List[ModuleDeclaration]) -> Set[str]:
        """Identifiers still referenced by runtime code once types are erased."""
        used: Set[str] = set()
        for nested in _nested_lists(tokens):
            for index, token in enumerate(nested.tokens):
                if index in nested.erased or (nested is tokens and index in protected):
                    continue
                if token.kind is TokenKind.NAME:
                    prev = nested.prev_live(index)
                    if prev >= 0 and nested[prev].is_punct(".", "?."):
                        continue
                    used.add(token.value)
                elif token.kind is TokenKind.JSX:
                    used.update(_jsx_component_names(token.payload))
        for declaration in declarations:
            if declaration.kind == "export_list" and not declaration.type_only:
                used.update(b.imported for b in declaration.bindings if not b.type_only)
        return used

    @staticmethod
    def _rewrite_declaration(tokens: TokenList, declaration: ModuleDeclaration,
                             used: Optional[Set[str]], type_names: Set[str]) -> Optional[List[ImportBinding]]:
        """
        Reduce a declaration to its runtime bindings, marking the tokens to
        rewrite. Returns the kept bindings, or None when the declaration
        disappears.
        """
        start, end = declaration.start, declaration.end
        if declaration.type_only:
            tokens.erase(start, end)
            if declaration.kind == "import":
                type_names.update(b.local for b in declaration.bindings)
            return None

        bindings = declaration.bindings
        type_names.update(b.local for b in bindings if b.type_only and declaration.kind == "import")
        if declaration.kind == "import" and used is not None:
            kept = [b for b in bindings if not b.type_only and b.local in used]
        elif declaration.kind == "export_from":
            kept = [b for b in bindings if not b.type_only]
        elif declaration.kind == "export_list":
            kept = [b for b in bindings if not b.type_only and b.imported not in type_names]
        else:
            kept = list(bindings)

        if len(kept) != len(bindings):
            if not kept:
                tokens.erase(start, end)
                return None
            prefix, suffix = format_declaration(declaration, kept)
            if declaration.kind == "export_list":
                tokens.replacements[start] = [prefix]
            else:
                tokens.replacements[start] = [prefix, SpecifierSlot(declaration.specifier), suffix]
            tokens.erase(start + 1, end)
            return kept

        if declaration.source_index is not None:
            tokens.replacements[declaration.source_index] = [SpecifierSlot(declaration.specifier)]
        return kept

    @staticmethod
    def _with_runtime_import(chunks: List[Chunk], helpers: Set[str]) -> List[Chunk]:
        """Prepend the JSX runtime import on the first line, keeping line numbers stable."""
        bound = [f"{name} as {local}" for name, local in JSX_HELPER_NAMES.items() if local in helpers]
        header: List[Chunk] = [
            "import { " + ", ".join(bound) + " } from ",
            SpecifierSlot(JSX_RUNTIME_SOURCE),
            "; ",
        ]
        first = chunks[0] if chunks else ""
        if isinstance(first, str) and first.startswith("#!"):
            # a hashbang must stay the very first line
            newline = first.find("\n") + 1 or len(first)
            return [first[:newline], *header, first[newline:], *chunks[1:]]
        return header + chunks

"""
Token and JSX node types produced by the lexer.

A TokenList covers a slice of the original text. Everything between two
tokens (whitespace and comments) is kept verbatim when a list is rendered,
so passes only ever mark tokens as erased or replaced and never need to
re-print code they did not touch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from typing_extensions import TypeAlias


class TokenKind(Enum):
    NAME = "name"
    NUMBER = "number"
    STRING = "string"
    TEMPLATE = "template"
    REGEX = "regex"
    PUNCT = "punct"
    JSX = "jsx"


# Keywords after which an expression (and so a regex or JSX literal) may start
EXPRESSION_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await", "default", "extends",
})

# Punctuators that end an operand; anything else leaves us at an expression start
OPERAND_END_PUNCTUATORS = frozenset({")", "]", "}", "++", "--"})


@dataclass
class Token:
    kind: TokenKind
    value: str
    start: int
    end: int
    line: int
    column: int
    payload: Any = None

    def is_punct(self, *values: str) -> bool:
        return self.kind is TokenKind.PUNCT and (not values or self.value in values)

    def is_name(self, *values: str) -> bool:
        return self.kind is TokenKind.NAME and (not values or self.value in values)

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.value!r}, {self.line}:{self.column})"


@dataclass
class TokenList:
    """
    A run of tokens over source[start:end].

    pairs maps the index of every bracket to the index of its partner.
    erased and replacements are filled in by the transformation passes.
    """
    source: str
    tokens: List[Token]
    start: int
    end: int
    pairs: Dict[int, int] = field(default_factory=dict)
    erased: Set[int] = field(default_factory=set)
    replacements: Dict[int, List[Any]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    def get(self, index: int) -> Optional[Token]:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def gap_before(self, index: int) -> str:
        """Source text (whitespace, comments) between token index-1 and index."""
        begin = self.tokens[index - 1].end if index > 0 else self.start
        return self.source[begin:self.tokens[index].start]

    def newline_before(self, index: int) -> bool:
        return "\n" in self.gap_before(index)

    def erase(self, begin: int, end: int) -> None:
        self.erased.update(range(begin, end))

    def live(self, index: int) -> bool:
        return index not in self.erased

    def prev_live(self, index: int) -> int:
        """Index of the nearest non-erased token before index, or -1."""
        index -= 1
        while index >= 0 and index in self.erased:
            index -= 1
        return index


# ---------------------------------------------------------------------------
# Compound payloads
# ---------------------------------------------------------------------------

@dataclass
class TemplatePart:
    """A raw text chunk of a template literal followed by its `${}` expression."""
    text: str
    expression: Optional[TokenList] = None


@dataclass
class JSXText:
    raw: str


@dataclass
class JSXExpression:
    """`{expr}` child or attribute value; expression is None for `{}` and `{/* comment */}`."""
    expression: Optional[TokenList]
    spread: bool = False


@dataclass
class JSXAttribute:
    name: Optional[str]
    value: Union[None, str, JSXExpression, "JSXElement"] = None
    spread: Optional[TokenList] = None
    line: int = 0
    column: int = 0


@dataclass
class JSXElement:
    """An element or fragment (name is None for `<>...</>`)."""
    name: Optional[str]
    attributes: List[JSXAttribute] = field(default_factory=list)
    children: List[Union[JSXText, JSXExpression, "JSXElement"]] = field(default_factory=list)
    line: int = 0
    column: int = 0

    @property
    def is_fragment(self) -> bool:
        return self.name is None


JSXChild: TypeAlias = Union[JSXText, JSXExpression, JSXElement]
Span: TypeAlias = Tuple[int, int]


_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}


def decode_string_literal(literal: str) -> str:
    """Cooked value of a quoted JavaScript string literal."""
    body = literal[1:-1]
    if "\\" not in body:
        return body
    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            out.append(ch)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[nxt])
            i += 2
        elif nxt in ("x", "u"):
            if nxt == "u" and body[i + 2:i + 3] == "{" and "}" in body[i:]:
                close = body.find("}", i)
                digits, step = body[i + 3:close], close + 1 - i
            else:
                width = 2 if nxt == "x" else 4
                digits, step = body[i + 2:i + 2 + width], 2 + width
            try:
                out.append(chr(int(digits, 16)))
            except ValueError:
                out.append(nxt)
                step = 2
            i += step
        elif nxt == "\n":
            i += 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)

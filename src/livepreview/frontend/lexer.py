"""
Lexer

Hand-written scanner for JavaScript and TypeScript modules with JSX.

The scanner does just enough parsing to be unambiguous: it pairs brackets,
decides between division and regular expressions (and between comparison
and JSX) from the previous token, and reads template literals and JSX
elements as compound tokens whose embedded expressions are lexed
recursively into nested TokenLists.
"""

import bisect
import logging
import re
from typing import Dict, List, Optional, Tuple

from ..shared.errors import TransformSyntaxError
from ..shared.source_location import SourceLocation
from .tokens import (
    EXPRESSION_KEYWORDS,
    OPERAND_END_PUNCTUATORS,
    JSXAttribute,
    JSXElement,
    JSXExpression,
    JSXText,
    TemplatePart,
    Token,
    TokenKind,
    TokenList,
)

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"#?(?:[^\W\d]|\$)(?:\w|\$)*")
_JSX_NAME_RE = re.compile(r"(?:[^\W\d]|\$)(?:\w|\$|-)*")
_NUMBER_RE = re.compile(
    r"""
    0[xX][0-9a-fA-F_]+n?
  | 0[oO][0-7_]+n?
  | 0[bB][01_]+n?
  | (?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?
    """,
    re.VERBOSE,
)

# `>` is always a single token so that nested generics (`Array<Array<T>>`)
# close one level at a time; `>=`, `>>` and friends are re-formed from
# adjacent tokens when the list is rendered.
_PUNCTUATORS = (
    "...", "===", "!==", "**=", "<<=", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
    "&&", "||", "??", "?.", "++", "--", "**", "<<",
    "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-", "*", "/",
    "%", "&", "|", "^", "!", "~", "?", ":", "=", ".", "@", "#",
)
_PUNCT_BY_CHAR: Dict[str, List[str]] = {}
for _p in sorted(_PUNCTUATORS, key=len, reverse=True):
    _PUNCT_BY_CHAR.setdefault(_p[0], []).append(_p)

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}


class Lexer:
    """
    Scanner for one module.

    jsx enables JSX elements at expression positions (off for `.ts`).
    typescript makes `<T,>` and `<T extends ...>` generic parameter lists
    instead of JSX in `.tsx` files.
    """

    def __init__(self, source: str, path: str, jsx: bool = True, typescript: bool = False):
        self.source = source
        self.path = path
        self.jsx = jsx
        self.typescript = typescript
        self.pos = 0
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]

    def tokenize(self) -> TokenList:
        self.pos = 0
        if self.source.startswith("#!"):
            newline = self.source.find("\n")
            self.pos = len(self.source) if newline == -1 else newline
        tokens = self._lex_tokens(nested=False)
        tokens.start = 0
        logger.debug(f"lexed {self.path}: {len(tokens)} top-level tokens")
        return tokens

    # ------------------------------------------------------------------
    # Positions and errors
    # ------------------------------------------------------------------

    def position(self, offset: int) -> Tuple[int, int]:
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def location(self, offset: int, length: int = 1) -> SourceLocation:
        line, column = self.position(offset)
        return SourceLocation(
            file=self.path,
            line=line,
            column=column,
            start=offset,
            end=offset + length,
            end_line=line,
            end_column=column + length,
        )

    def _error(self, message: str, offset: int, help: Optional[str] = None) -> None:
        raise TransformSyntaxError(
            message,
            path=self.path,
            location=self.location(min(offset, len(self.source))),
            source_code=self.source,
            help=help,
        )

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.source[index] if index < len(self.source) else ""

    def _token(self, kind: TokenKind, start: int, payload=None) -> Token:
        line, column = self.position(start)
        return Token(kind, self.source[start:self.pos], start, self.pos, line, column, payload)

    # ------------------------------------------------------------------
    # Token runs
    # ------------------------------------------------------------------

    def _lex_tokens(self, nested: bool, opener: int = 0) -> TokenList:
        """
        Lex until end of input, or for nested runs until the `}` closing
        the enclosing `${` / `{` (left unconsumed for the caller).
        """
        begin = self.pos
        tokens: List[Token] = []
        pairs: Dict[int, int] = {}
        open_stack: List[int] = []
        while True:
            self._skip_trivia()
            if self.pos >= len(self.source):
                if open_stack:
                    unclosed = tokens[open_stack[-1]]
                    self._error(
                        f"Unterminated '{unclosed.value}': expected a matching '{OPENERS[unclosed.value]}'",
                        unclosed.start,
                    )
                if nested:
                    self._error("Unterminated expression: expected '}'", opener)
                break
            ch = self.source[self.pos]
            if ch == "}" and nested and not open_stack:
                break
            token = self._next_token(ch, tokens[-1] if tokens else None)
            index = len(tokens)
            tokens.append(token)
            if token.kind is not TokenKind.PUNCT:
                continue
            if token.value in OPENERS:
                open_stack.append(index)
            elif token.value in CLOSERS:
                if not open_stack:
                    self._error(f"Unexpected token '{token.value}'", token.start)
                match = open_stack.pop()
                expected = OPENERS[tokens[match].value]
                if expected != token.value:
                    self._error(
                        f"Unexpected token '{token.value}': expected '{expected}' to close "
                        f"'{tokens[match].value}' from line {tokens[match].line}",
                        token.start,
                    )
                pairs[match] = index
                pairs[index] = match
        return TokenList(self.source, tokens, begin, self.pos, pairs)

    def _skip_trivia(self) -> None:
        src = self.source
        n = len(src)
        while self.pos < n:
            ch = src[self.pos]
            if ch.isspace() or ch == "\ufeff":
                self.pos += 1
            elif src.startswith("//", self.pos):
                newline = src.find("\n", self.pos)
                self.pos = n if newline == -1 else newline
            elif src.startswith("/*", self.pos):
                close = src.find("*/", self.pos + 2)
                if close == -1:
                    self._error("Unterminated comment", self.pos)
                self.pos = close + 2
            else:
                break

    def _next_token(self, ch: str, prev: Optional[Token]) -> Token:
        start = self.pos
        if ch in ("'", '"'):
            return self._lex_string()
        if ch == "`":
            return self._lex_template()
        if "0" <= ch <= "9" or (ch == "." and "0" <= self._peek(1) <= "9"):
            match = _NUMBER_RE.match(self.source, start)
            self.pos = match.end()
            return self._token(TokenKind.NUMBER, start)
        match = _IDENT_RE.match(self.source, start)
        if match:
            self.pos = match.end()
            return self._token(TokenKind.NAME, start)

        expression_start = self._expression_allowed(prev)
        if ch == "/" and expression_start:
            return self._lex_regex()
        if ch == "<" and expression_start and self.jsx and self._looks_like_jsx():
            element = self._jsx_element()
            return self._token(TokenKind.JSX, start, element)

        for candidate in _PUNCT_BY_CHAR.get(ch, ()):
            if self.source.startswith(candidate, start):
                if candidate == "?." and "0" <= self._peek(2) <= "9":
                    continue
                self.pos += len(candidate)
                return self._token(TokenKind.PUNCT, start)
        self._error(f"Unexpected character {ch!r}", start)

    @staticmethod
    def _expression_allowed(prev: Optional[Token]) -> bool:
        if prev is None:
            return True
        if prev.kind is TokenKind.PUNCT:
            return prev.value not in OPERAND_END_PUNCTUATORS
        if prev.kind is TokenKind.NAME:
            return prev.value in EXPRESSION_KEYWORDS
        return False

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _lex_string(self) -> Token:
        src = self.source
        start = self.pos
        quote = src[start]
        pos = start + 1
        while True:
            if pos >= len(src) or src[pos] in "\r\n":
                self._error("Unterminated string constant", start)
            ch = src[pos]
            if ch == "\\":
                pos += 3 if src.startswith("\r\n", pos + 1) else 2
            elif ch == quote:
                pos += 1
                break
            else:
                pos += 1
        self.pos = pos
        return self._token(TokenKind.STRING, start)

    def _lex_template(self) -> Token:
        src = self.source
        start = self.pos
        parts: List[TemplatePart] = []
        self.pos += 1
        chunk = self.pos
        while True:
            if self.pos >= len(src):
                self._error("Unterminated template literal", start)
            ch = src[self.pos]
            if ch == "\\":
                self.pos += 2
            elif ch == "`":
                parts.append(TemplatePart(src[chunk:self.pos]))
                self.pos += 1
                break
            elif ch == "$" and self._peek(1) == "{":
                text = src[chunk:self.pos]
                opener = self.pos
                self.pos += 2
                expression = self._lex_tokens(nested=True, opener=opener)
                self.pos += 1
                parts.append(TemplatePart(text, expression))
                chunk = self.pos
            else:
                self.pos += 1
        return self._token(TokenKind.TEMPLATE, start, parts)

    def _lex_regex(self) -> Token:
        src = self.source
        start = self.pos
        pos = start + 1
        in_class = False
        while True:
            if pos >= len(src) or src[pos] in "\r\n":
                self._error("Unterminated regular expression", start)
            ch = src[pos]
            if ch == "\\":
                pos += 2
                continue
            pos += 1
            if in_class:
                in_class = ch != "]"
            elif ch == "[":
                in_class = True
            elif ch == "/":
                break
        while pos < len(src) and (src[pos].isalnum() or src[pos] in "_$"):
            pos += 1
        self.pos = pos
        return self._token(TokenKind.REGEX, start)

    # ------------------------------------------------------------------
    # JSX
    # ------------------------------------------------------------------

    def _looks_like_jsx(self) -> bool:
        pos = self.pos + 1
        src = self.source
        while pos < len(src) and src[pos] in " \t\r\n":
            pos += 1
        if pos >= len(src):
            return False
        if src[pos] == ">":
            return True
        match = _JSX_NAME_RE.match(src, pos)
        if not match:
            return False
        if self.typescript:
            rest = src[match.end():].lstrip()
            if rest.startswith(",") or re.match(r"extends\s", rest):
                return False
        return True

    def _jsx_element(self) -> JSXElement:
        open_at = self.pos
        line, column = self.position(open_at)
        self.pos += 1
        self._skip_trivia()
        if self._peek() == ">":
            self.pos += 1
            element = JSXElement(None, line=line, column=column)
            self._jsx_children(element, open_at)
            return element

        element = JSXElement(self._jsx_name(), line=line, column=column)
        if self.typescript:
            self._skip_trivia()
            if self._peek() == "<":
                self._skip_jsx_type_arguments()
        while True:
            self._skip_trivia()
            ch = self._peek()
            if ch == "":
                self._error(f"Unterminated JSX contents for <{element.name}>", open_at)
            if ch == "/":
                self.pos += 1
                self._skip_trivia()
                if self._peek() != ">":
                    self._error("Expected '>' to close a self-closing JSX tag", self.pos)
                self.pos += 1
                return element
            if ch == ">":
                self.pos += 1
                break
            if ch == "{":
                element.attributes.append(self._jsx_spread_attribute())
            else:
                element.attributes.append(self._jsx_attribute())
        self._jsx_children(element, open_at)
        return element

    def _jsx_name(self) -> str:
        match = _JSX_NAME_RE.match(self.source, self.pos)
        if not match:
            self._error("Expected a JSX element name", self.pos)
        name = match.group(0)
        self.pos = match.end()
        while self._peek() in (".", ":"):
            separator = self._peek()
            self.pos += 1
            match = _JSX_NAME_RE.match(self.source, self.pos)
            if not match:
                self._error("Expected a JSX element name", self.pos)
            name += separator + match.group(0)
            self.pos = match.end()
        return name

    def _skip_jsx_type_arguments(self) -> None:
        """Step over `<T>` after a tag name; the runtime call takes no type arguments."""
        start = self.pos
        depth = 0
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in ("'", '"', "`"):
                close = self.source.find(ch, self.pos + 1)
                if close == -1:
                    break
                self.pos = close
            elif self.source.startswith("=>", self.pos):
                self.pos += 1
            elif ch == "<":
                depth += 1
            elif ch == ">":
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return
            self.pos += 1
        self._error("Unterminated type arguments in JSX tag", start)

    def _jsx_attribute(self) -> JSXAttribute:
        line, column = self.position(self.pos)
        match = _JSX_NAME_RE.match(self.source, self.pos)
        if not match:
            self._error(f"Unexpected character {self._peek()!r} in JSX tag", self.pos)
        name = match.group(0)
        self.pos = match.end()
        if self._peek() == ":":
            self.pos += 1
            match = _JSX_NAME_RE.match(self.source, self.pos)
            if not match:
                self._error("Expected an attribute name after ':'", self.pos)
            name += ":" + match.group(0)
            self.pos = match.end()

        self._skip_trivia()
        if self._peek() != "=":
            return JSXAttribute(name, None, line=line, column=column)
        self.pos += 1
        self._skip_trivia()
        ch = self._peek()
        if ch in ("'", '"'):
            close = self.source.find(ch, self.pos + 1)
            if close == -1:
                self._error("Unterminated string constant", self.pos)
            value = self.source[self.pos + 1:close]
            self.pos = close + 1
            return JSXAttribute(name, value, line=line, column=column)
        if ch == "{":
            container_at = self.pos
            container = self._jsx_expression_container()
            if container.expression is None or container.spread:
                self._error("JSX attributes must only be assigned a non-empty expression", container_at)
            return JSXAttribute(name, container, line=line, column=column)
        if ch == "<":
            return JSXAttribute(name, self._jsx_element(), line=line, column=column)
        self._error("JSX value should be either an expression or a quoted JSX text", self.pos)

    def _jsx_spread_attribute(self) -> JSXAttribute:
        line, column = self.position(self.pos)
        container_at = self.pos
        container = self._jsx_expression_container()
        if not container.spread:
            self._error("Expected '...' in a JSX spread attribute", container_at)
        return JSXAttribute(None, spread=container.expression, line=line, column=column)

    def _jsx_expression_container(self) -> JSXExpression:
        open_at = self.pos
        self.pos += 1
        self._skip_trivia()
        if self._peek() == "}":
            self.pos += 1
            return JSXExpression(None)
        spread = self.source.startswith("...", self.pos)
        if spread:
            self.pos += 3
        expression = self._lex_tokens(nested=True, opener=open_at)
        if not expression.tokens:
            self._error("Unexpected token '}'", self.pos)
        self.pos += 1
        return JSXExpression(expression, spread=spread)

    def _jsx_children(self, element: JSXElement, open_at: int) -> None:
        src = self.source
        while True:
            text_start = self.pos
            while self.pos < len(src) and src[self.pos] not in "{<>}":
                self.pos += 1
            if self.pos > text_start:
                element.children.append(JSXText(src[text_start:self.pos]))
            if self.pos >= len(src):
                tag = f"<{element.name}>" if element.name else "<>"
                self._error(f"Unterminated JSX contents for {tag}", open_at)
            ch = src[self.pos]
            if ch in ">}":
                entity = "&gt;" if ch == ">" else "&rbrace;"
                self._error(
                    f"Unexpected token '{ch}' in JSX text",
                    self.pos,
                    help=f"use {{'{ch}'}} or {entity} to render it",
                )
            if ch == "{":
                container_at = self.pos
                container = self._jsx_expression_container()
                if container.spread:
                    self._error("Spread children are not supported in React", container_at)
                element.children.append(container)
                continue

            tag_at = self.pos
            self.pos += 1
            self._skip_trivia()
            if self._peek() != "/":
                self.pos = tag_at
                element.children.append(self._jsx_element())
                continue
            self.pos += 1
            self._skip_trivia()
            closing = None if self._peek() == ">" else self._jsx_name()
            self._skip_trivia()
            if self._peek() != ">":
                self._error("Expected '>' in a JSX closing tag", self.pos)
            self.pos += 1
            if closing != element.name:
                if element.name is None:
                    self._error("Expected corresponding closing tag for JSX fragment", tag_at)
                self._error(f"Expected corresponding JSX closing tag for <{element.name}>", tag_at)
            return


def tokenize(source: str, path: str, jsx: bool = True, typescript: bool = False) -> TokenList:
    return Lexer(source, path, jsx=jsx, typescript=typescript).tokenize()

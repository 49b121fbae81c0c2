"""
TypeScript erasure

Removes type-level syntax from a lexed `.ts` / `.tsx` module by marking
tokens as erased. This is purely syntactic: types are skipped by shape and
never checked, so a malformed type only matters if erasing it leaves
invalid JavaScript behind.
"""

import logging
from typing import Iterable, Optional, Set

from ..shared.errors import TransformSyntaxError
from ..shared.source_location import SourceLocation
from .tokens import JSXElement, JSXExpression, Token, TokenKind, TokenList

logger = logging.getLogger(__name__)

# Reserved words that never end an operand
NON_OPERAND_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void", "throw",
    "case", "do", "else", "yield", "await", "default", "extends", "export", "import",
    "const", "let", "var", "function", "class", "if", "while", "for", "switch", "try",
    "catch", "finally", "with", "as", "satisfies", "implements",
})

CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "with", "return", "typeof", "await", "new"})

# Keywords that may follow `declare`
DECLARABLE = frozenset({
    "const", "let", "var", "function", "class", "module", "namespace", "global",
    "enum", "type", "interface", "abstract", "async",
})

ACCESS_MODIFIERS = frozenset({"public", "private", "protected", "readonly", "override"})
MEMBER_MODIFIERS = ACCESS_MODIFIERS | {"abstract", "declare", "static", "async", "get", "set", "accessor"}
TS_MEMBER_MODIFIERS = ACCESS_MODIFIERS | {"abstract", "declare"}

# Punctuation that can appear between `<` and `>` of a type argument list
TYPE_ARGUMENT_PUNCTUATORS = frozenset({
    ",", ".", "|", "&", "?", ":", "=>", "=", "-", "...", "<", ">", "(", "[", "{",
})

STATEMENT_KEYWORDS = frozenset({
    "const", "let", "var", "function", "class", "if", "for", "while", "do", "return",
    "switch", "throw", "try", "export", "import", "type", "interface", "declare", "async",
})


class _NotAType(Exception):
    """The tokens ahead do not form a type."""


class TypeEraser:
    """
    Marks TypeScript-only tokens as erased across a token list and every
    list nested inside it (template substitutions, JSX expressions).

    type_names collects the names of erased type declarations so that
    `export { Name }` lists can drop them.
    """

    def __init__(self, path: str):
        self.path = path
        self.type_names: Set[str] = set()

    def erase(self, tokens: TokenList, protected: Iterable[int] = ()) -> None:
        self._erase_list(tokens, set(protected))
        logger.debug(f"{self.path}: {len(tokens.erased)} top-level token(s) erased")

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _erase_list(self, tokens: TokenList, protected: Set[int]) -> None:
        i = 0
        while i < len(tokens):
            if i in tokens.erased or i in protected:
                i += 1
                continue
            i = self._visit(tokens, i)
        for index, token in enumerate(tokens.tokens):
            if index in tokens.erased:
                continue
            if token.kind is TokenKind.TEMPLATE:
                for part in token.payload:
                    if part.expression is not None:
                        self._erase_list(part.expression, set())
            elif token.kind is TokenKind.JSX:
                self._erase_jsx(token.payload)

    def _erase_jsx(self, element: JSXElement) -> None:
        for attribute in element.attributes:
            if attribute.spread is not None:
                self._erase_list(attribute.spread, set())
            elif isinstance(attribute.value, JSXExpression) and attribute.value.expression is not None:
                self._erase_list(attribute.value.expression, set())
            elif isinstance(attribute.value, JSXElement):
                self._erase_jsx(attribute.value)
        for child in element.children:
            if isinstance(child, JSXExpression) and child.expression is not None:
                self._erase_list(child.expression, set())
            elif isinstance(child, JSXElement):
                self._erase_jsx(child)

    def _visit(self, tokens: TokenList, i: int) -> int:
        token = tokens[i]
        if token.kind is TokenKind.NAME:
            handler = self._keyword_handlers.get(token.value)
            if handler is not None:
                result = handler(self, tokens, i)
                if result is not None:
                    return result
        elif token.is_punct("("):
            self._parenthesized(tokens, i)
        elif token.is_punct("<"):
            self._angle(tokens, i)
        elif token.is_punct("!"):
            self._non_null(tokens, i)
        return i + 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _error(self, token: Token, message: str, help: Optional[str] = None) -> None:
        location = SourceLocation(self.path, token.line, token.column, token.start, token.end,
                                  token.line, token.column + len(token.value))
        raise TransformSyntaxError(message, path=self.path, location=location, help=help)

    @staticmethod
    def _is_operand_end(tokens: TokenList, index: int) -> bool:
        if index < 0:
            return False
        token = tokens[index]
        if token.kind is TokenKind.NAME:
            return token.value not in NON_OPERAND_KEYWORDS
        if token.kind is TokenKind.PUNCT:
            return token.value in (")", "]", "}")
        return True

    @staticmethod
    def _same_line_name(tokens: TokenList, index: int) -> Optional[Token]:
        token = tokens.get(index)
        if token is None or token.kind is not TokenKind.NAME or tokens.newline_before(index):
            return None
        return token

    def _declaration_start(self, tokens: TokenList, i: int) -> int:
        """Widen a declaration at i to include a leading `export` / `export default`."""
        prev = tokens.prev_live(i)
        if prev >= 0 and tokens[prev].is_name("default"):
            before = tokens.prev_live(prev)
            if before >= 0 and tokens[before].is_name("export"):
                return before
        if prev >= 0 and tokens[prev].is_name("export", "declare"):
            return prev
        return i

    @staticmethod
    def _include_semicolon(tokens: TokenList, end: int) -> int:
        token = tokens.get(end)
        if token is not None and token.is_punct(";"):
            return end + 1
        return end

    def _statement_end(self, tokens: TokenList, start: int, limit: Optional[int] = None) -> int:
        """
        End of the statement or class member beginning at start: after a
        `;`, after a `{...}` block, or before a token that starts a new line
        when the previous token cannot continue an expression.
        """
        n = len(tokens) if limit is None else limit
        k = start
        while k < n:
            token = tokens[k]
            if k > start and tokens.newline_before(k):
                prev = tokens[k - 1]
                continues = prev.kind is TokenKind.PUNCT and prev.value not in (")", "]", "}", ">", "++", "--")
                leads = token.kind is TokenKind.PUNCT and token.value not in ("[", "{", "(", "@", "#", "*")
                if not continues and not leads:
                    return k
            if token.is_punct(";"):
                return k + 1
            if token.is_punct("{"):
                return self._include_semicolon(tokens, tokens.pairs[k] + 1)
            if token.is_punct("(", "["):
                k = tokens.pairs[k] + 1
                continue
            if token.is_punct(")", "]", "}"):
                return k
            k += 1
        return k

    # ------------------------------------------------------------------
    # Type skipping
    # ------------------------------------------------------------------

    def _skip_type(self, tokens: TokenList, j: int, limit: Optional[int] = None) -> int:
        n = len(tokens) if limit is None else limit
        if j < n and tokens[j].is_punct("|", "&"):
            j += 1
        j = self._skip_type_operand(tokens, j, n)
        while j < n:
            token = tokens[j]
            if token.is_punct("|", "&"):
                j = self._skip_type_operand(tokens, j + 1, n)
            elif token.is_name("extends") and not tokens.newline_before(j):
                j = self._skip_type_operand(tokens, j + 1, n)
                if j >= n or not tokens[j].is_punct("?"):
                    raise _NotAType()
                j = self._skip_type(tokens, j + 1, n)
                if j >= n or not tokens[j].is_punct(":"):
                    raise _NotAType()
                return self._skip_type(tokens, j + 1, n)
            else:
                break
        return j

    def _skip_type_operand(self, tokens: TokenList, j: int, n: int) -> int:
        if j >= n:
            raise _NotAType()
        while (tokens[j].is_name("keyof", "readonly", "unique") and j + 1 < n
               and not tokens[j + 1].is_punct(",", ")", "]", ">", ";", "=", "|", "&")):
            j += 1
        token = tokens[j]
        if token.is_name("infer"):
            j += 2
        elif token.is_name("typeof"):
            j = self._skip_entity_name(tokens, j + 1, n)
        elif token.is_name("new", "abstract") and j + 1 < n and tokens[j + 1].kind is TokenKind.PUNCT:
            return self._skip_function_type(tokens, j + 1, n)
        elif token.is_name("abstract") and j + 1 < n and tokens[j + 1].is_name("new"):
            return self._skip_function_type(tokens, j + 2, n)
        elif token.is_name("asserts") and j + 1 < n and tokens[j + 1].kind is TokenKind.NAME:
            j += 2
            if j < n and tokens[j].is_name("is"):
                j = self._skip_type(tokens, j + 1, n)
            return j
        elif token.is_name("import") and j + 1 < n and tokens[j + 1].is_punct("("):
            j = tokens.pairs[j + 1] + 1
            while j + 1 < n and tokens[j].is_punct(".") and tokens[j + 1].kind is TokenKind.NAME:
                j += 2
            if j < n and tokens[j].is_punct("<"):
                j = self._skip_angle(tokens, j, n)
        elif token.kind is TokenKind.NAME:
            j = self._skip_entity_name(tokens, j, n)
            if j < n and tokens[j].is_name("is") and not tokens.newline_before(j):
                return self._skip_type(tokens, j + 1, n)
        elif token.kind in (TokenKind.STRING, TokenKind.NUMBER, TokenKind.TEMPLATE):
            j += 1
        elif token.is_punct("-") and j + 1 < n and tokens[j + 1].kind is TokenKind.NUMBER:
            j += 2
        elif token.is_punct("{", "["):
            j = tokens.pairs[j] + 1
        elif token.is_punct("("):
            j = tokens.pairs[j] + 1
            if j < n and tokens[j].is_punct("=>"):
                return self._skip_type(tokens, j + 1, n)
        elif token.is_punct("<"):
            return self._skip_function_type(tokens, j, n)
        else:
            raise _NotAType()
        while j < n and tokens[j].is_punct("[") and not tokens.newline_before(j):
            j = tokens.pairs[j] + 1
        return j

    def _skip_entity_name(self, tokens: TokenList, j: int, n: int) -> int:
        if j >= n or tokens[j].kind is not TokenKind.NAME:
            raise _NotAType()
        j += 1
        while j + 1 < n and tokens[j].is_punct(".") and tokens[j + 1].kind is TokenKind.NAME:
            j += 2
        if j < n and tokens[j].is_punct("<"):
            j = self._skip_angle(tokens, j, n)
        return j

    def _skip_function_type(self, tokens: TokenList, j: int, n: int) -> int:
        if j < n and tokens[j].is_punct("<"):
            j = self._skip_angle(tokens, j, n)
        if j >= n or not tokens[j].is_punct("("):
            raise _NotAType()
        j = tokens.pairs[j] + 1
        if j >= n or not tokens[j].is_punct("=>"):
            raise _NotAType()
        return self._skip_type(tokens, j + 1, n)

    def _skip_angle(self, tokens: TokenList, j: int, limit: Optional[int] = None) -> int:
        """Skip a `<...>` type argument or parameter list starting at j."""
        n = len(tokens) if limit is None else limit
        depth = 0
        k = j
        while k < n:
            token = tokens[k]
            if token.kind is TokenKind.PUNCT:
                if token.value not in TYPE_ARGUMENT_PUNCTUATORS:
                    raise _NotAType()
                if token.value == "<":
                    depth += 1
                elif token.value == ">":
                    depth -= 1
                    if depth == 0:
                        return k + 1
                elif token.value in ("(", "[", "{"):
                    k = tokens.pairs[k]
            elif token.kind in (TokenKind.REGEX, TokenKind.JSX):
                raise _NotAType()
            k += 1
        raise _NotAType()

    def _try(self, skip, *args) -> Optional[int]:
        try:
            return skip(*args)
        except _NotAType:
            return None

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _type_alias(self, tokens: TokenList, i: int) -> Optional[int]:
        name = self._same_line_name(tokens, i + 1)
        follower = tokens.get(i + 2)
        if name is None or follower is None or not follower.is_punct("=", "<"):
            return None
        start = self._declaration_start(tokens, i)
        j = i + 2
        if follower.is_punct("<"):
            j = self._try(self._skip_angle, tokens, j)
            if j is None or tokens.get(j) is None or not tokens[j].is_punct("="):
                return None
        end = self._try(self._skip_type, tokens, j + 1)
        if end is None:
            end = self._statement_end(tokens, j + 1)
        end = self._include_semicolon(tokens, end)
        tokens.erase(start, end)
        self.type_names.add(name.value)
        return end

    def _interface(self, tokens: TokenList, i: int) -> Optional[int]:
        name = self._same_line_name(tokens, i + 1)
        if name is None:
            return None
        j = i + 2
        while j < len(tokens) and not tokens[j].is_punct("{"):
            j += 1
        if j >= len(tokens):
            return None
        start = self._declaration_start(tokens, i)
        end = self._include_semicolon(tokens, tokens.pairs[j] + 1)
        tokens.erase(start, end)
        self.type_names.add(name.value)
        return end

    def _declare(self, tokens: TokenList, i: int) -> Optional[int]:
        keyword = self._same_line_name(tokens, i + 1)
        if keyword is None or keyword.value not in DECLARABLE:
            return None
        start = self._declaration_start(tokens, i)
        end = self._statement_end(tokens, i + 1)
        name = tokens.get(i + 2)
        if name is not None and name.kind is TokenKind.NAME:
            self.type_names.add(name.value)
        tokens.erase(start, end)
        return end

    def _abstract(self, tokens: TokenList, i: int) -> Optional[int]:
        follower = self._same_line_name(tokens, i + 1)
        if follower is not None and follower.value == "class":
            tokens.erase(i, i + 1)
            return i + 1
        return None

    def _enum(self, tokens: TokenList, i: int) -> Optional[int]:
        name = self._same_line_name(tokens, i + 1)
        brace = tokens.get(i + 2)
        if name is not None and brace is not None and brace.is_punct("{"):
            self._error(
                tokens[i],
                f"TypeScript enum '{name.value}' is not supported in the preview",
                help="use a plain object with `as const` instead",
            )
        return None

    def _namespace(self, tokens: TokenList, i: int) -> Optional[int]:
        name = tokens.get(i + 1)
        brace = tokens.get(i + 2)
        prev = tokens.prev_live(i)
        at_statement = prev < 0 or tokens[prev].is_punct(";", "{", "}") or tokens.newline_before(i)
        if (at_statement and name is not None and name.kind in (TokenKind.NAME, TokenKind.STRING)
                and not tokens.newline_before(i + 1) and brace is not None and brace.is_punct("{")):
            self._error(
                tokens[i],
                f"TypeScript {tokens[i].value} declarations are not supported in the preview",
                help="export the members from a module instead",
            )
        return None

    def _function(self, tokens: TokenList, i: int) -> Optional[int]:
        """Generic parameters and overload signatures of `function` declarations."""
        j = i + 1
        if tokens.get(j) is not None and tokens[j].is_punct("*"):
            j += 1
        if tokens.get(j) is not None and tokens[j].kind is TokenKind.NAME:
            j += 1
        if tokens.get(j) is not None and tokens[j].is_punct("<"):
            k = self._try(self._skip_angle, tokens, j)
            if k is None:
                return None
            tokens.erase(j, k)
            j = k
        if tokens.get(j) is None or not tokens[j].is_punct("("):
            return None
        after = tokens.pairs[j] + 1
        if tokens.get(after) is not None and tokens[after].is_punct(":"):
            after = self._try(self._skip_type, tokens, after + 1)
            if after is None:
                return None
        body = tokens.get(after)
        if body is not None and body.is_punct("{"):
            return None
        start = self._declaration_start(tokens, i)
        prev = tokens.prev_live(i)
        if prev >= 0 and tokens[prev].is_name("async"):
            start = self._declaration_start(tokens, prev)
        end = self._include_semicolon(tokens, after)
        tokens.erase(start, end)
        return end

    # ------------------------------------------------------------------
    # Variables, casts, non-null assertions
    # ------------------------------------------------------------------

    def _binding_annotation(self, tokens: TokenList, j: int) -> Optional[int]:
        """Erase `!` / `: Type` after a binding name or pattern at j; return the index after it."""
        token = tokens.get(j)
        if token is None:
            return None
        if token.kind is TokenKind.NAME:
            j += 1
        elif token.is_punct("{", "["):
            j = tokens.pairs[j] + 1
        else:
            return None
        follower = tokens.get(j)
        if follower is not None and follower.is_punct("!"):
            tokens.erase(j, j + 1)
            j += 1
            follower = tokens.get(j)
        if follower is not None and follower.is_punct(":"):
            end = self._try(self._skip_type, tokens, j + 1)
            if end is not None:
                tokens.erase(j, end)
                return end
        return j

    def _variable(self, tokens: TokenList, i: int) -> Optional[int]:
        if tokens[i].value == "const":
            follower = self._same_line_name(tokens, i + 1)
            if follower is not None and follower.value == "enum":
                return self._enum(tokens, i + 1)
        j = self._binding_annotation(tokens, i + 1)
        if j is None:
            return None
        # further declarators: `let a: A = x, b: B`
        k = j
        while k < len(tokens):
            token = tokens[k]
            if token.is_punct(";", ")", "]", "}"):
                break
            if tokens.newline_before(k) and token.kind is TokenKind.NAME and token.value in STATEMENT_KEYWORDS:
                break
            if token.is_punct("(", "[", "{"):
                k = tokens.pairs[k] + 1
                continue
            if token.is_punct(","):
                nxt = self._binding_annotation(tokens, k + 1)
                k = nxt if nxt is not None else k + 1
                continue
            k += 1
        return None

    def _cast(self, tokens: TokenList, i: int) -> Optional[int]:
        prev = tokens.prev_live(i)
        if not self._is_operand_end(tokens, prev) or tokens.newline_before(i):
            return None
        follower = tokens.get(i + 1)
        if follower is None:
            return None
        if follower.is_name("const"):
            tokens.erase(i, i + 2)
            return i + 2
        end = self._try(self._skip_type, tokens, i + 1)
        if end is None:
            return None
        tokens.erase(i, end)
        return end

    def _non_null(self, tokens: TokenList, i: int) -> None:
        if tokens[i].value != "!" or i == 0 or tokens.gap_before(i):
            return
        prev = tokens.prev_live(i)
        if prev == i - 1 and self._is_operand_end(tokens, prev) and not tokens[prev].is_punct("}"):
            tokens.erase(i, i + 1)

    # ------------------------------------------------------------------
    # Generics, parameters, return types
    # ------------------------------------------------------------------

    def _angle(self, tokens: TokenList, i: int) -> None:
        end = self._try(self._skip_angle, tokens, i)
        if end is None or end >= len(tokens):
            return
        follower = tokens[end]
        prev = tokens.prev_live(i)
        if self._is_operand_end(tokens, prev):
            # call or tagged template with explicit type arguments
            if follower.is_punct("(") or follower.kind is TokenKind.TEMPLATE:
                tokens.erase(i, end)
            return
        # generic arrow function
        if follower.is_punct("("):
            after = tokens.pairs[end] + 1
            token = tokens.get(after)
            if token is not None and token.is_punct(":"):
                after = self._try(self._skip_type, tokens, after + 1)
                token = tokens.get(after) if after is not None else None
            if token is not None and token.is_punct("=>"):
                tokens.erase(i, end)

    def _function_context(self, tokens: TokenList, p: int) -> Optional[str]:
        prev = tokens.prev_live(p)
        if prev < 0:
            return None
        token = tokens[prev]
        if token.is_name("function"):
            return "function"
        before = tokens.prev_live(prev)
        if token.is_punct("*") and before >= 0 and tokens[before].is_name("function"):
            return "function"
        if token.kind is TokenKind.NAME:
            if before >= 0 and tokens[before].is_name("function"):
                return "function"
            if before >= 0 and tokens[before].is_punct("*"):
                keyword = tokens.prev_live(before)
                if keyword >= 0 and tokens[keyword].is_name("function"):
                    return "function"
            if token.value == "catch":
                return "catch"
            if token.value in NON_OPERAND_KEYWORDS or token.value in CONTROL_KEYWORDS:
                return None
            if before >= 0 and tokens[before].is_name("case"):
                return None
            return "method"
        if token.is_punct("]") or token.kind in (TokenKind.STRING, TokenKind.NUMBER):
            return "method"
        return None

    def _parenthesized(self, tokens: TokenList, p: int) -> None:
        q = tokens.pairs[p]
        context = self._function_context(tokens, p)
        after = q + 1
        return_end = None
        follower = tokens.get(after)
        if follower is not None and follower.is_punct(":"):
            return_end = self._try(self._skip_type, tokens, after + 1)
        landing = tokens.get(return_end if return_end is not None else after)
        landing_index = return_end if return_end is not None else after
        is_arrow = landing is not None and landing.is_punct("=>") and not tokens.newline_before(landing_index)
        is_body = (landing is not None and landing.is_punct("{")
                   and not tokens.newline_before(landing_index))
        if not (context in ("function", "catch") or is_arrow or (context == "method" and is_body)):
            return
        self._parameters(tokens, p, q)
        if return_end is not None and (is_arrow or is_body or context == "function"):
            tokens.erase(after, return_end)

    def _parameters(self, tokens: TokenList, p: int, q: int) -> None:
        k = p + 1
        while k < q:
            j = k
            in_default = False
            while j < q and not tokens[j].is_punct(","):
                token = tokens[j]
                if token.is_punct("(", "[", "{"):
                    j = tokens.pairs[j]
                elif token.is_punct("="):
                    in_default = True
                elif token.is_punct(":") and not in_default:
                    # commas inside type arguments belong to the annotation
                    end = self._try(self._skip_type, tokens, j + 1, q)
                    if end is not None:
                        j = end
                        continue
                j += 1
            self._parameter(tokens, k, j, q)
            k = j + 1

    def _parameter(self, tokens: TokenList, a: int, b: int, q: int) -> None:
        j = a
        while (j + 1 < b and tokens[j].is_name(*ACCESS_MODIFIERS)
               and (tokens[j + 1].kind is TokenKind.NAME or tokens[j + 1].is_punct("{", "["))):
            tokens.erase(j, j + 1)
            j += 1
        if j >= b:
            return
        if tokens[j].is_name("this") and j + 1 < b and tokens[j + 1].is_punct(":"):
            tokens.erase(a, b + 1 if b < q else b)
            return
        if tokens[j].is_punct("..."):
            j += 1
        if j >= b:
            return
        if tokens[j].is_punct("{", "["):
            j = tokens.pairs[j] + 1
        elif tokens[j].kind is TokenKind.NAME:
            j += 1
        else:
            return
        if j < b and tokens[j].is_punct("?") and (j + 1 == b or tokens[j + 1].is_punct(":", "=")):
            tokens.erase(j, j + 1)
            j += 1
        if j < b and tokens[j].is_punct(":"):
            end = self._try(self._skip_type, tokens, j + 1, b)
            if end is None:
                end = j + 1
                while end < b and not tokens[end].is_punct("="):
                    end += 1
            tokens.erase(j, end)

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class(self, tokens: TokenList, i: int) -> Optional[int]:
        j = i + 1
        token = tokens.get(j)
        if token is not None and token.kind is TokenKind.NAME and token.value not in ("extends", "implements"):
            j += 1
        token = tokens.get(j)
        if token is not None and token.is_punct("<"):
            k = self._try(self._skip_angle, tokens, j)
            if k is None:
                return None
            tokens.erase(j, k)
            j = k
        has_super = False
        if tokens.get(j) is not None and tokens[j].is_name("extends"):
            has_super = True
            j += 1
            while j < len(tokens) and not tokens[j].is_punct("{") and not tokens[j].is_name("implements"):
                if tokens[j].is_punct("<"):
                    k = self._try(self._skip_angle, tokens, j)
                    if k is not None and k < len(tokens) and (tokens[k].is_punct("{") or tokens[k].is_name("implements")):
                        tokens.erase(j, k)
                        j = k
                        continue
                if tokens[j].is_punct("(", "["):
                    j = tokens.pairs[j]
                j += 1
        if tokens.get(j) is not None and tokens[j].is_name("implements"):
            k = j
            while k < len(tokens) and not tokens[k].is_punct("{"):
                k += 1
            tokens.erase(j, k)
            j = k
        if tokens.get(j) is None or not tokens[j].is_punct("{"):
            return None
        self._class_body(tokens, j, tokens.pairs[j], has_super)
        return None

    def _class_body(self, tokens: TokenList, open_index: int, close: int, has_super: bool) -> None:
        k = open_index + 1
        while k < close:
            k = max(self._class_member(tokens, k, close, has_super), k + 1)

    def _class_member(self, tokens: TokenList, k: int, close: int, has_super: bool) -> int:
        start = k
        if tokens[k].is_punct(";"):
            return k + 1
        while k < close and tokens[k].is_punct("@"):
            k += 1
            while k < close and (tokens[k].kind is TokenKind.NAME or tokens[k].is_punct(".")):
                k += 1
            if k < close and tokens[k].is_punct("("):
                k = tokens.pairs[k] + 1
        modifiers = []
        while (k + 1 < close and tokens[k].kind is TokenKind.NAME and tokens[k].value in MEMBER_MODIFIERS
               and not tokens.newline_before(k + 1)
               and (tokens[k + 1].kind in (TokenKind.NAME, TokenKind.STRING, TokenKind.NUMBER)
                    or tokens[k + 1].is_punct("[", "*", "#"))):
            modifiers.append(k)
            k += 1
        if k < close and tokens[k].is_punct("*"):
            k += 1
        if k >= close:
            return close
        if tokens[k].is_punct("["):
            inner = tokens.get(k + 1)
            colon = tokens.get(k + 2)
            if inner is not None and inner.kind is TokenKind.NAME and colon is not None and colon.is_punct(":"):
                end = self._statement_end(tokens, k, close)
                tokens.erase(start, end)
                return end
            k = tokens.pairs[k] + 1
        else:
            k += 1
        ts_modifiers = [m for m in modifiers if tokens[m].value in TS_MEMBER_MODIFIERS]
        for m in ts_modifiers:
            tokens.erase(m, m + 1)
        if any(tokens[m].value in ("abstract", "declare") for m in ts_modifiers):
            end = self._statement_end(tokens, k, close)
            tokens.erase(start, end)
            return end
        if k < close and tokens[k].is_punct("?", "!"):
            tokens.erase(k, k + 1)
            k += 1
        if k < close and tokens[k].is_punct("<"):
            generic_end = self._try(self._skip_angle, tokens, k, close)
            if generic_end is not None:
                tokens.erase(k, generic_end)
                k = generic_end
        if k < close and tokens[k].is_punct("("):
            q = tokens.pairs[k]
            after = q + 1
            if after < close and tokens[after].is_punct(":"):
                return_end = self._try(self._skip_type, tokens, after + 1, close)
                after = return_end if return_end is not None else after
            if after < close and tokens[after].is_punct("{"):
                if tokens[start].is_name("constructor") or (
                        modifiers and tokens[modifiers[-1] + 1].is_name("constructor")):
                    self._parameter_properties(tokens, k, q, after, has_super)
                return tokens.pairs[after] + 1
            end = self._include_semicolon(tokens, after)
            tokens.erase(start, end)
            return end
        if k < close and tokens[k].is_punct(":"):
            type_end = self._try(self._skip_type, tokens, k + 1, close)
            if type_end is None:
                type_end = self._statement_end(tokens, k + 1, close)
            tokens.erase(k, type_end)
            k = type_end
        return self._statement_end(tokens, k, close)

    def _parameter_properties(self, tokens: TokenList, p: int, q: int, body: int, has_super: bool) -> None:
        """Turn `constructor(private x: T)` into an assignment at the top of the body."""
        names = []
        k = p + 1
        while k < q:
            if (tokens[k].kind is TokenKind.NAME and tokens[k].value in ACCESS_MODIFIERS
                    and tokens[k - 1].is_punct("(", ",")):
                j = k
                while j < q and tokens[j].value in ACCESS_MODIFIERS:
                    j += 1
                if j < q and tokens[j].kind is TokenKind.NAME:
                    names.append(tokens[j].value)
            k += 1
        if not names:
            return
        assignments = " ".join(f"this.{name} = {name};" for name in names)
        anchor = body
        if has_super:
            close = tokens.pairs[body]
            for k in range(body + 1, close - 1):
                if tokens[k].is_name("super") and tokens[k + 1].is_punct("("):
                    anchor = tokens.pairs[k + 1]
                    if anchor + 1 < close and tokens[anchor + 1].is_punct(";"):
                        anchor += 1
                    break
        token = tokens[anchor]
        separator = " " if token.is_punct("{", ";") else "; "
        tokens.replacements[anchor] = [token.value, separator + assignments]

    _keyword_handlers = {
        "type": _type_alias,
        "interface": _interface,
        "declare": _declare,
        "abstract": _abstract,
        "enum": _enum,
        "namespace": _namespace,
        "module": _namespace,
        "function": _function,
        "let": _variable,
        "const": _variable,
        "var": _variable,
        "as": _cast,
        "satisfies": _cast,
        "class": _class,
    }

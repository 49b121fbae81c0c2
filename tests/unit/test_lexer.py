"""
Tests for the JavaScript/TypeScript/JSX scanner.
"""

import pytest
from livepreview.frontend.lexer import tokenize
from livepreview.frontend.tokens import (
    JSXElement,
    JSXExpression,
    JSXText,
    TokenKind,
    decode_string_literal,
)
from livepreview.shared.errors import TransformSyntaxError


def _kinds(tokens):
    return [(t.kind, t.value) for t in tokens.tokens]


class TestTokens:
    """Basic token kinds, trivia and bracket pairing."""

    def test_simple_statement(self):
        tokens = tokenize("const x = 1; // note\n", "/a.js")
        assert _kinds(tokens) == [
            (TokenKind.NAME, "const"),
            (TokenKind.NAME, "x"),
            (TokenKind.PUNCT, "="),
            (TokenKind.NUMBER, "1"),
            (TokenKind.PUNCT, ";"),
        ]

    def test_gaps_keep_comments(self):
        tokens = tokenize("a /* c */ b", "/a.js")
        assert tokens.gap_before(1) == " /* c */ "

    def test_brackets_are_paired(self):
        tokens = tokenize("f(a[0], {b: 1})", "/a.js")
        values = [t.value for t in tokens.tokens]
        paren = values.index("(")
        assert tokens.pairs[paren] == len(values) - 1
        brace = values.index("{")
        assert values[tokens.pairs[brace]] == "}"

    def test_positions(self):
        tokens = tokenize("a\n  bb", "/a.js")
        assert (tokens[1].line, tokens[1].column) == (2, 3)

    def test_hashbang_is_skipped(self):
        tokens = tokenize("#!/usr/bin/env node\nrun()", "/a.js")
        assert tokens[0].value == "run"
        assert tokens.gap_before(0) == "#!/usr/bin/env node\n"

    def test_private_name_and_optional_chain(self):
        tokens = tokenize("this.#x?.y", "/a.js")
        assert [t.value for t in tokens.tokens] == ["this", ".", "#x", "?.", "y"]

    def test_optional_chain_vs_ternary_number(self):
        tokens = tokenize("a?.5:1", "/a.js")
        assert [t.value for t in tokens.tokens] == ["a", "?", ".5", ":", "1"]


class TestRegexAndDivision:
    """`/` is a regex at expression starts and division after operands."""

    def test_regex_after_assignment(self):
        tokens = tokenize("const r = /ab+c/gi;", "/a.js")
        assert tokens[3].kind is TokenKind.REGEX
        assert tokens[3].value == "/ab+c/gi"

    def test_division_after_operand(self):
        tokens = tokenize("x = a / b / c", "/a.js")
        assert all(t.kind is not TokenKind.REGEX for t in tokens.tokens)

    def test_regex_with_slash_in_class(self):
        tokens = tokenize("s.split(/[/]/)", "/a.js")
        assert tokens[4].kind is TokenKind.REGEX
        assert tokens[4].value == "/[/]/"

    def test_regex_after_return(self):
        tokens = tokenize("return /x/.test(s)", "/a.js")
        assert tokens[1].kind is TokenKind.REGEX


class TestTemplates:
    """Template literals are compound tokens with nested expressions."""

    def test_parts(self):
        tokens = tokenize("`a${b + `c${d}`}e`", "/a.js")
        assert len(tokens) == 1
        template = tokens[0]
        assert template.kind is TokenKind.TEMPLATE
        first, last = template.payload
        assert first.text == "a"
        assert [t.value for t in first.expression.tokens][:2] == ["b", "+"]
        assert last.text == "e" and last.expression is None

    def test_braces_inside_substitution(self):
        tokens = tokenize("`${ {a: 1}.a }`", "/a.js")
        expression = tokens[0].payload[0].expression
        assert [t.value for t in expression.tokens] == ["{", "a", ":", "1", "}", ".", "a"]


class TestJSX:
    """JSX elements become JSX tokens carrying an element tree."""

    def test_element_tree(self):
        tokens = tokenize('const a = <div id="x" {...p} on>hi {name}<br /></div>;', "/a.jsx")
        jsx = tokens[3]
        assert jsx.kind is TokenKind.JSX
        element = jsx.payload
        assert isinstance(element, JSXElement)
        assert element.name == "div"
        id_attr, spread, flag = element.attributes
        assert (id_attr.name, id_attr.value) == ("id", "x")
        assert spread.name is None and [t.value for t in spread.spread.tokens] == ["p"]
        assert flag.name == "on" and flag.value is None
        text, expression, br = element.children
        assert isinstance(text, JSXText) and text.raw == "hi "
        assert isinstance(expression, JSXExpression)
        assert isinstance(br, JSXElement) and br.name == "br"
        assert tokens[4].value == ";"

    def test_fragment_and_member_names(self):
        tokens = tokenize("x = <><Foo.Bar /><svg:rect /></>", "/a.jsx")
        element = tokens[2].payload
        assert element.is_fragment
        assert [child.name for child in element.children] == ["Foo.Bar", "svg:rect"]

    def test_comparison_is_not_jsx(self):
        tokens = tokenize("if (a < b) {}", "/a.jsx")
        assert all(t.kind is not TokenKind.JSX for t in tokens.tokens)

    def test_no_jsx_in_ts(self):
        tokens = tokenize("const a = <T>b;", "/a.ts", jsx=False, typescript=True)
        assert all(t.kind is not TokenKind.JSX for t in tokens.tokens)

    def test_generic_arrow_in_tsx(self):
        tokens = tokenize("const f = <T,>(x: T) => x;", "/a.tsx", typescript=True)
        assert all(t.kind is not TokenKind.JSX for t in tokens.tokens)

    def test_comment_child(self):
        tokens = tokenize("x = <a>{/* note */}</a>", "/a.jsx")
        (child,) = tokens[2].payload.children
        assert isinstance(child, JSXExpression) and child.expression is None


class TestLexerErrors:
    """Malformed input raises TransformSyntaxError with a location."""

    def test_unterminated_string(self):
        with pytest.raises(TransformSyntaxError) as info:
            tokenize('const s = "abc\n', "/a.js")
        assert "Unterminated string" in info.value.message
        assert info.value.path == "/a.js"
        assert (info.value.line, info.value.column) == (1, 11)

    def test_mismatched_closing_tag(self):
        with pytest.raises(TransformSyntaxError) as info:
            tokenize("const a = <div></span>;", "/App.jsx")
        assert "closing tag for <div>" in info.value.message
        assert (info.value.line, info.value.column) == (1, 16)

    def test_unterminated_jsx(self):
        with pytest.raises(TransformSyntaxError) as info:
            tokenize("const a = <div>\n", "/App.jsx")
        assert "Unterminated JSX contents" in info.value.message

    def test_unbalanced_bracket(self):
        with pytest.raises(TransformSyntaxError):
            tokenize("f(a]", "/a.js")
        with pytest.raises(TransformSyntaxError):
            tokenize("f(a", "/a.js")

    def test_stray_closing_angle_in_text(self):
        with pytest.raises(TransformSyntaxError) as info:
            tokenize("x = <p>a > b</p>", "/a.jsx")
        assert info.value.help_text is not None

    def test_error_renders_snippet(self):
        with pytest.raises(TransformSyntaxError) as info:
            tokenize("const a = <div></span>;", "/App.jsx")
        rendered = str(info.value)
        assert "/App.jsx:1:16" in rendered
        assert "const a = <div></span>;" in rendered
        assert "^" in rendered


class TestDecodeStringLiteral:
    """Cooked values of quoted literals."""

    @pytest.mark.parametrize("literal, expected", [
        ('"plain"', "plain"),
        ("'it\\'s'", "it's"),
        ('"a\\nb"', "a\nb"),
        ('"\\x41\\u0042\\u{43}"', "ABC"),
        ('"back\\\\slash"', "back\\slash"),
    ])
    def test_decode(self, literal, expected):
        assert decode_string_literal(literal) == expected

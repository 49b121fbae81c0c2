"""
Tests for TypeScript erasure, observed through the transformer output.
"""

import pytest
from livepreview.shared.errors import TransformSyntaxError
from tests.test_utils import squash


def _ts(transformer, source, path="/mod.ts"):
    return squash(transformer.transform(path, source).executable_source)


class TestAnnotations:
    """Variable, parameter and return type annotations."""

    def test_variable_annotation(self, transformer):
        assert _ts(transformer, "const x: number = 1;") == "const x = 1;"

    def test_definite_assignment(self, transformer):
        assert _ts(transformer, "let ready!: boolean;") == "let ready;"

    def test_multiple_declarators(self, transformer):
        assert _ts(transformer, "let a: string = 'a', b: Array<number> = [];") == "let a = 'a', b = [];"

    def test_function_parameters_and_return(self, transformer):
        out = _ts(transformer, "function add(a: number, b?: number): number { return a + (b ?? 0); }")
        assert out == "function add(a, b) { return a + (b ?? 0); }"

    def test_arrow_function(self, transformer):
        out = _ts(transformer, "const f = (x: string, y = 2): string => x.repeat(y);")
        assert out == "const f = (x, y = 2) => x.repeat(y);"

    @pytest.mark.parametrize("source, expected", [
        ("function f(a: Map<string, number>) {}", "function f(a) {}"),
        ("function f(a: Record<string, string[]>, b: number) {}", "function f(a, b) {}"),
        ("const h = (e: React.MouseEvent<HTMLButtonElement, MouseEvent>) => {};", "const h = (e) => {};"),
        ("function useT<K, V>(m: Map<K, V>, k: K) { return m.get(k); }", "function useT(m, k) { return m.get(k); }"),
        ("const g = (m: Map<string, number> = new Map(), n = 1) => m;", "const g = (m = new Map(), n = 1) => m;"),
    ])
    def test_multi_argument_generic_parameters(self, transformer, source, expected):
        assert _ts(transformer, source, path="/mod.tsx") == expected

    def test_union_and_object_types(self, transformer):
        out = _ts(transformer, "let v: { a: string } | null = null;")
        assert out == "let v = null;"

    def test_ternary_is_left_alone(self, transformer):
        out = _ts(transformer, "const y = a ? b : c;")
        assert out == "const y = a ? b : c;"

    def test_multiplication_call_is_left_alone(self, transformer):
        out = _ts(transformer, "const z = a * b(c ? d : e);")
        assert out == "const z = a * b(c ? d : e);"


class TestDeclarations:
    """Type-only declarations disappear."""

    def test_type_alias_and_interface(self, transformer):
        source = (
            "type Id = string | number;\n"
            "interface User { id: Id; name?: string }\n"
            "export const n = 1;\n"
        )
        out = transformer.transform("/mod.ts", source).executable_source
        assert "type" not in out
        assert "interface" not in out
        assert squash(out) == "export const n = 1;"

    def test_exported_type_alias(self, transformer):
        out = _ts(transformer, "export type Props = { a: number };\nexport default 1;")
        assert out == "export default 1;"

    def test_declare(self, transformer):
        out = _ts(transformer, "declare const VERSION: string;\nconsole.log(1);")
        assert out == "console.log(1);"

    def test_generic_function(self, transformer):
        out = _ts(transformer, "function first<T>(items: T[]): T { return items[0]; }")
        assert out == "function first(items) { return items[0]; }"

    def test_overload_signatures(self, transformer):
        source = (
            "function pick(a: string): string;\n"
            "function pick(a: number): number;\n"
            "function pick(a: any) { return a; }\n"
        )
        assert _ts(transformer, source) == "function pick(a) { return a; }"

    def test_type_named_variable_is_kept(self, transformer):
        assert _ts(transformer, "const type = 'x';\nconsole.log(type);") == "const type = 'x'; console.log(type);"

    def test_enum_is_rejected(self, transformer):
        with pytest.raises(TransformSyntaxError) as info:
            transformer.transform("/mod.ts", "enum Color { Red, Green }")
        assert "enum" in info.value.message
        assert info.value.help_text is not None


class TestExpressions:
    """Casts, non-null assertions and explicit type arguments."""

    def test_as_cast(self, transformer):
        assert _ts(transformer, "const el = document.body as HTMLElement;") == "const el = document.body;"

    def test_as_const(self, transformer):
        assert _ts(transformer, "const sizes = ['s', 'm'] as const;") == "const sizes = ['s', 'm'];"

    def test_satisfies(self, transformer):
        assert _ts(transformer, "const c = { a: 1 } satisfies Config;") == "const c = { a: 1 };"

    def test_non_null(self, transformer):
        assert _ts(transformer, "const el = document.getElementById('root')!;") == \
            "const el = document.getElementById('root');"

    def test_logical_not_is_kept(self, transformer):
        assert _ts(transformer, "const b = !a && x !== y;") == "const b = !a && x !== y;"

    def test_call_type_arguments(self, transformer):
        assert _ts(transformer, "const m = new Map<string, number>();") == "const m = new Map();"

    def test_comparison_is_kept(self, transformer):
        assert _ts(transformer, "const ok = a < b && c > d;") == "const ok = a < b && c > d;"


class TestClasses:
    """Class members, modifiers and parameter properties."""

    def test_fields_and_modifiers(self, transformer):
        source = (
            "abstract class Shape implements Drawable {\n"
            "  private name: string = 'shape';\n"
            "  abstract area(): number;\n"
            "  public describe(): string { return this.name; }\n"
            "}\n"
        )
        out = _ts(transformer, source)
        assert out == "class Shape { name = 'shape'; describe() { return this.name; } }"

    def test_parameter_properties(self, transformer):
        source = "class Point { constructor(private x: number, public y: number) {} }"
        out = _ts(transformer, source)
        assert out == "class Point { constructor(x, y) { this.x = x; this.y = y;} }"

    def test_generic_class(self, transformer):
        out = _ts(transformer, "class Box<T> extends Base<T> { value?: T; }")
        assert out == "class Box extends Base { value; }"

"""
JSX lowering

Rewrites JSX elements into calls against the automatic React runtime:

    <div className="a">{x}</div>  ->  _jsx("div", { className: "a", children: x })

Text children are whitespace-collapsed the way React tooling does it, so
the produced element tree matches what a bundler would hand React.
"""

import html
import json
import re
from typing import Callable, List, Set

from ..utils.config import JSX_HELPER_NAMES
from .tokens import JSXAttribute, JSXElement, JSXExpression, JSXText, TokenList

JSX_HELPER = JSX_HELPER_NAMES["jsx"]
JSXS_HELPER = JSX_HELPER_NAMES["jsxs"]
FRAGMENT_HELPER = JSX_HELPER_NAMES["Fragment"]

_LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")
_ATTRIBUTE_NEWLINE_RE = re.compile(r"\n\s+")


def clean_jsx_text(raw: str) -> str:
    """
    Collapse a JSX text child: lines are trimmed where they meet a line
    break, whitespace-only lines vanish, and the remaining lines are joined
    with a single space. Returns "" when nothing survives.
    """
    lines = _LINE_BREAK_RE.split(raw)
    last_non_empty = -1
    for index, line in enumerate(lines):
        if line.strip(" \t"):
            last_non_empty = index
    out = []
    for index, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if index != 0:
            trimmed = trimmed.lstrip(" ")
        if index != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if index != last_non_empty:
                trimmed += " "
            out.append(html.unescape(trimmed))
    return "".join(out)


def _has_top_level_comma(tokens: TokenList) -> bool:
    i = 0
    while i < len(tokens):
        if i in tokens.erased:
            i += 1
            continue
        token = tokens[i]
        if token.is_punct("(", "[", "{"):
            i = tokens.pairs[i] + 1
            continue
        if token.is_punct(","):
            return True
        i += 1
    return False


def _property_key(name: str) -> str:
    return name if name.isidentifier() else json.dumps(name)


class JSXLowering:
    """
    Lowers JSX elements to `_jsx` / `_jsxs` calls.

    render turns an embedded expression's TokenList into output chunks; it
    is supplied by the caller so that nested expressions go through the
    same rewriting (type erasure, import slots, nested JSX) as the rest of
    the module. helpers_used records which runtime helpers the output needs.
    """

    def __init__(self):
        self.helpers_used: Set[str] = set()

    def lower(self, element: JSXElement, render: Callable[[TokenList], List]) -> List:
        chunks: List = []
        children = self._children(element, render)
        helper = JSXS_HELPER if len(children) > 1 else JSX_HELPER
        self.helpers_used.add(helper)
        chunks.append(f"{helper}(")
        chunks.extend(self._element_type(element))
        chunks.append(", ")

        properties: List[List] = []
        key: List = []
        for attribute in element.attributes:
            if attribute.spread is not None:
                properties.append(["...", *self._expression(attribute.spread, render)])
            elif attribute.name == "key":
                key = self._attribute_value(attribute, render)
            else:
                properties.append([f"{_property_key(attribute.name)}: ",
                                   *self._attribute_value(attribute, render)])
        if len(children) == 1:
            properties.append(["children: ", *children[0]])
        elif children:
            entries: List = ["children: ["]
            for index, child in enumerate(children):
                if index:
                    entries.append(", ")
                entries.extend(child)
            entries.append("]")
            properties.append(entries)

        if properties:
            chunks.append("{ ")
            for index, entry in enumerate(properties):
                if index:
                    chunks.append(", ")
                chunks.extend(entry)
            chunks.append(" }")
        else:
            chunks.append("{}")
        if key:
            chunks.append(", ")
            chunks.extend(key)
        chunks.append(")")
        return chunks

    def _element_type(self, element: JSXElement) -> List:
        if element.is_fragment:
            self.helpers_used.add(FRAGMENT_HELPER)
            return [FRAGMENT_HELPER]
        name = element.name
        # intrinsic elements are passed by tag name
        if ":" in name or "-" in name or ("." not in name and re.match(r"^[a-z]", name)):
            return [json.dumps(name)]
        return [name]

    def _expression(self, tokens: TokenList, render: Callable[[TokenList], List]) -> List:
        chunks = render(tokens)
        if _has_top_level_comma(tokens):
            return ["(", *chunks, ")"]
        return chunks

    def _attribute_value(self, attribute: JSXAttribute, render: Callable[[TokenList], List]) -> List:
        value = attribute.value
        if value is None:
            return ["true"]
        if isinstance(value, str):
            text = _ATTRIBUTE_NEWLINE_RE.sub(" ", html.unescape(value))
            return [json.dumps(text)]
        if isinstance(value, JSXElement):
            return self.lower(value, render)
        return self._expression(value.expression, render)

    def _children(self, element: JSXElement, render: Callable[[TokenList], List]) -> List[List]:
        children: List[List] = []
        for child in element.children:
            if isinstance(child, JSXText):
                text = clean_jsx_text(child.raw)
                if text:
                    children.append([json.dumps(text)])
            elif isinstance(child, JSXExpression):
                if child.expression is not None:
                    children.append(self._expression(child.expression, render))
            else:
                children.append(self.lower(child, render))
        return children

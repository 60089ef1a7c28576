"""tree-sitter front end for JavaScript/JSX plus small node helpers."""

from __future__ import annotations

from functools import cache

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

FUNCTION_TYPES: frozenset[str] = frozenset(
    {
        "arrow_function",
        "function_expression",
        "function",  # older grammar name for function_expression
        "generator_function",
        "function_declaration",
        "generator_function_declaration",
        "method_definition",
    }
)

NodeKey = tuple[int, int, str]


@cache
def javascript_language() -> Language:
    return Language(tree_sitter_javascript.language())


def parse_source(source: str | bytes) -> Tree:
    """Parse JavaScript/JSX source. Never raises on syntax errors."""
    if isinstance(source, str):
        source = source.encode("utf-8")
    parser = Parser(javascript_language())
    return parser.parse(source)


def first_syntax_error(tree: Tree) -> str | None:
    """Describe the first ERROR/MISSING node, or None for a clean tree."""
    if not tree.root_node.has_error:
        return None
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            what = f"missing {node.type}" if node.is_missing else "unexpected syntax"
            return f"{what} at line {row + 1}, column {column + 1}"
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return "syntax error"


def node_key(node: Node) -> NodeKey:
    """Stable identity for a node; tree-sitter hands out fresh wrappers."""
    return (node.start_byte, node.end_byte, node.type)


def same_node(a: Node | None, b: Node | None) -> bool:
    if a is None or b is None:
        return False
    return node_key(a) == node_key(b)


def text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def contains(outer: Node, inner: Node) -> bool:
    """True if inner lies within outer's byte range."""
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


def expression_children(node: Node) -> list[Node]:
    """Named children minus comments: the elements of arguments/arrays."""
    return [c for c in node.named_children if c.type != "comment"]


def unwrap_parens(node: Node) -> Node:
    while node.type == "parenthesized_expression":
        inner = expression_children(node)
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def callee_name(call: Node) -> str | None:
    """Name of the called function: useEffect(...) or React.useEffect(...)."""
    func = call.child_by_field_name("function")
    if func is None:
        return None
    func = unwrap_parens(func)
    if func.type == "identifier":
        return text(func)
    if func.type == "member_expression":
        prop = func.child_by_field_name("property")
        if prop is not None and prop.type == "property_identifier":
            return text(prop)
    return None


def call_arguments(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return expression_children(args)


def is_hook_name(name: str) -> bool:
    """use, useFoo, use2D: the naming convention for hooks."""
    return name == "use" or (
        name.startswith("use") and len(name) > 3 and (name[3].isupper() or name[3].isdigit())
    )


def line_column(node: Node) -> tuple[int, int]:
    """1-based line and column of a node's start."""
    row, column = node.start_point
    return row + 1, column + 1

"""Scope model: lexical scopes, hoisted declarations and identifier resolution.

ScopeBuilder walks a tree-sitter tree top-down exactly once. Entering a
function or block pushes a Scope and hoists the declarations it owns; every
identifier in expression position is resolved against the scope stack and
recorded as an IdentifierUse. Call expressions are handed to an optional
callback as they are visited, with the scope they appear in.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import (
    FUNCTION_TYPES,
    NodeKey,
    callee_name,
    contains,
    expression_children,
    is_hook_name,
    node_key,
    text,
    unwrap_parens,
)
from exhaustive_deps.analysis.types import (
    Binding,
    BindingKind,
    DestructureSlot,
    IdentifierUse,
    Scope,
    ScopeKind,
)

if TYPE_CHECKING:
    from tree_sitter import Node, Tree

CallVisitor = Callable[["Node", Scope], None]

_DECLARATION_KEYWORDS: frozenset[str] = frozenset({"var", "let", "const"})


class ScopeManager:
    """Owns the scope tree and the current-scope cursor during one walk."""

    def __init__(self) -> None:
        self.scopes: list[Scope] = []
        self.bindings: list[Binding] = []
        self._current: Scope | None = None

    @property
    def current(self) -> Scope:
        if self._current is None:
            msg = "no scope has been entered"
            raise RuntimeError(msg)
        return self._current

    def enter_scope(self, kind: ScopeKind, node: Node) -> Scope:
        scope = Scope(id=len(self.scopes), kind=kind, node=node, parent=self._current)
        self.scopes.append(scope)
        self._current = scope
        return scope

    def exit_scope(self) -> None:
        self._current = self.current.parent

    @contextmanager
    def scope(self, kind: ScopeKind, node: Node) -> Iterator[Scope]:
        """Bracket a lexical region; the scope is popped even on error."""
        entered = self.enter_scope(kind, node)
        try:
            yield entered
        finally:
            self._current = entered.parent

    def declare(
        self,
        name: str,
        kind: BindingKind,
        node: Node,
        *,
        scope: Scope | None = None,
        declaration_kind: str | None = None,
        init: Node | None = None,
        slot: DestructureSlot | None = None,
    ) -> Binding:
        """Register a binding; a same-scope re-declaration replaces the old one."""
        target = scope if scope is not None else self.current
        previous = target.bindings.get(name)
        binding = Binding(
            id=len(self.bindings),
            name=name,
            scope=target,
            kind=kind,
            node=node,
            declaration_kind=declaration_kind,
            init=init,
            slot=slot if slot is not None else DestructureSlot.whole(),
            reassigned=previous is not None and init is not None,
        )
        self.bindings.append(binding)
        target.bindings[name] = binding
        return binding

    def resolve(self, name: str, scope: Scope | None = None) -> Binding | None:
        """Nearest binding for name, walking outward to the module scope."""
        current: Scope | None = scope if scope is not None else self.current
        while current is not None:
            binding = current.bindings.get(name)
            if binding is not None:
                return binding
            current = current.parent
        return None


@dataclass
class ScopeTree:
    """Result of one scope walk."""

    module: Scope
    scopes: list[Scope]
    bindings: list[Binding]
    uses: list[IdentifierUse] = field(default_factory=list)
    uses_by_node: dict[NodeKey, IdentifierUse] = field(default_factory=dict)
    scopes_by_node: dict[NodeKey, Scope] = field(default_factory=dict)

    def use_at(self, node: Node) -> IdentifierUse | None:
        return self.uses_by_node.get(node_key(node))

    def uses_within(self, node: Node) -> list[IdentifierUse]:
        """Identifier uses inside node's byte range, in source order."""
        return [use for use in self.uses if contains(node, use.node)]

    def scope_of(self, node: Node) -> Scope | None:
        """The scope a function/block node opened, if any."""
        return self.scopes_by_node.get(node_key(node))


def iter_pattern(
    pattern: Node, slot: DestructureSlot | None = None
) -> Iterator[tuple[str, Node, DestructureSlot | None]]:
    """Walk a binding/assignment pattern.

    Yields ("target", identifier, slot) for every bound name and
    ("expr", node, None) for expressions evaluated by the pattern: default
    values and computed keys. Nested patterns inherit the outermost slot.
    """
    kind = pattern.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        yield "target", pattern, slot if slot is not None else DestructureSlot.whole()
    elif kind == "assignment_pattern":
        left = pattern.child_by_field_name("left")
        right = pattern.child_by_field_name("right")
        if left is not None:
            yield from iter_pattern(left, slot)
        if right is not None:
            yield "expr", right, None
    elif kind == "rest_pattern":
        for child in expression_children(pattern):
            yield from iter_pattern(child, slot if slot is not None else DestructureSlot.rest())
    elif kind == "array_pattern":
        index = 0
        for child in pattern.children:
            if child.type == ",":
                index += 1
            elif child.is_named and child.type != "comment":
                child_slot = slot
                if child_slot is None:
                    child_slot = (
                        DestructureSlot.rest()
                        if child.type == "rest_pattern"
                        else DestructureSlot.position(index)
                    )
                yield from iter_pattern(child, child_slot)
    elif kind == "object_pattern":
        for child in expression_children(pattern):
            yield from _iter_object_pattern_entry(child, slot)
    else:
        # member/subscript targets in assignment patterns: evaluated, not bound
        yield "expr", pattern, None


def _iter_object_pattern_entry(
    entry: Node, slot: DestructureSlot | None
) -> Iterator[tuple[str, Node, DestructureSlot | None]]:
    if entry.type == "shorthand_property_identifier_pattern":
        yield "target", entry, slot if slot is not None else DestructureSlot.keyed(text(entry))
    elif entry.type == "pair_pattern":
        key = entry.child_by_field_name("key")
        value = entry.child_by_field_name("value")
        entry_slot = slot
        if key is not None and key.type == "computed_property_name":
            yield "expr", key, None
            entry_slot = slot if slot is not None else DestructureSlot.rest()
        elif key is not None and entry_slot is None:
            entry_slot = DestructureSlot.keyed(_property_key(key))
        if value is not None:
            yield from iter_pattern(value, entry_slot)
    elif entry.type == "object_assignment_pattern":
        left = entry.child_by_field_name("left")
        right = entry.child_by_field_name("right")
        if left is not None:
            if left.type == "shorthand_property_identifier_pattern":
                yield "target", left, slot if slot is not None else DestructureSlot.keyed(text(left))
            else:
                yield from iter_pattern(left, slot)
        if right is not None:
            yield "expr", right, None
    elif entry.type == "rest_pattern":
        yield from iter_pattern(entry, slot if slot is not None else DestructureSlot.rest())


def _property_key(key: Node) -> str:
    if key.type == "string":
        return text(key)[1:-1]
    return text(key)


class ScopeBuilder:
    """Single top-down walk that builds the scope tree.

    Usage:
        tree = ScopeBuilder(on_call=visitor).build(parse_source(code))
    """

    def __init__(self, on_call: CallVisitor | None = None) -> None:
        self.manager = ScopeManager()
        self.on_call = on_call
        self._uses: list[IdentifierUse] = []
        self._uses_by_node: dict[NodeKey, IdentifierUse] = {}
        self._scopes_by_node: dict[NodeKey, Scope] = {}
        self._handlers: dict[str, Callable[[Node], None]] = {
            "identifier": self._visit_identifier,
            "shorthand_property_identifier": self._visit_identifier,
            "statement_block": self._visit_block,
            "switch_body": self._visit_block,
            "for_statement": self._visit_for,
            "for_in_statement": self._visit_for_in,
            "catch_clause": self._visit_catch,
            "class_declaration": self._visit_class,
            "class": self._visit_class,
            "lexical_declaration": self._visit_declaration,
            "variable_declaration": self._visit_declaration,
            "assignment_expression": self._visit_assignment,
            "augmented_assignment_expression": self._visit_assignment,
            "update_expression": self._visit_update,
            "call_expression": self._visit_call,
            "jsx_opening_element": self._visit_jsx_element,
            "jsx_self_closing_element": self._visit_jsx_element,
            "jsx_closing_element": self._skip,
            "import_statement": self._skip,
            "export_clause": self._skip,
        }
        for function_type in FUNCTION_TYPES:
            self._handlers[function_type] = self._visit_function

    def build(self, tree: Tree) -> ScopeTree:
        root = tree.root_node
        with self.manager.scope(ScopeKind.MODULE, root) as module:
            self._scopes_by_node[node_key(root)] = module
            self._hoist_block(root.children, module)
            self._hoist_vars(root, module)
            for child in root.children:
                self._visit(child)
        return ScopeTree(
            module=module,
            scopes=self.manager.scopes,
            bindings=self.manager.bindings,
            uses=self._uses,
            uses_by_node=self._uses_by_node,
            scopes_by_node=self._scopes_by_node,
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _visit(self, node: Node) -> None:
        handler = self._handlers.get(node.type)
        if handler is not None:
            handler(node)
            return
        for child in node.children:
            self._visit(child)

    def _visit_children(self, node: Node) -> None:
        for child in node.children:
            self._visit(child)

    def _skip(self, node: Node) -> None:
        return

    def _visit_identifier(self, node: Node) -> None:
        self._record_use(node)

    def _record_use(self, node: Node, *, is_read: bool = True, is_write: bool = False) -> None:
        name = text(node)
        scope = self.manager.current
        binding = self.manager.resolve(name)
        use = IdentifierUse(
            node=node,
            name=name,
            binding=binding,
            scope=scope,
            is_read=is_read,
            is_write=is_write,
        )
        self._uses.append(use)
        self._uses_by_node[node_key(node)] = use
        if binding is not None:
            binding.uses.append(use)
            if is_write:
                binding.reassigned = True

    def _visit_function(self, node: Node) -> None:
        name = node.child_by_field_name("name")
        if node.type == "method_definition" and name is not None:
            if name.type == "computed_property_name":
                self._visit(name)
            name = None
        with self.manager.scope(ScopeKind.FUNCTION, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            # A function expression's own name is visible only inside it.
            if name is not None and node.type not in (
                "function_declaration",
                "generator_function_declaration",
            ):
                self.manager.declare(text(name), BindingKind.FUNCTION, node, init=node)
            params = node.child_by_field_name("parameters")
            if params is None:
                params = node.child_by_field_name("parameter")
            if params is not None:
                self._declare_parameters(params)
            body = node.child_by_field_name("body")
            if body is None:
                return
            if body.type == "statement_block":
                self._hoist_block(body.children, scope)
                self._hoist_vars(body, scope)
                self._visit_children(body)
            else:
                self._visit(body)

    def _declare_parameters(self, params: Node) -> None:
        patterns = [params] if params.type == "identifier" else expression_children(params)
        for pattern in patterns:
            for role, node, _ in iter_pattern(pattern):
                if role == "target":
                    self.manager.declare(text(node), BindingKind.PARAMETER, pattern)
                else:
                    self._visit(node)

    def _visit_block(self, node: Node) -> None:
        with self.manager.scope(ScopeKind.BLOCK, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            self._hoist_block(node.children, scope)
            self._visit_children(node)

    def _visit_for(self, node: Node) -> None:
        with self.manager.scope(ScopeKind.BLOCK, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            initializer = node.child_by_field_name("initializer")
            if initializer is None:
                heads = [c for c in node.named_children if c.type == "lexical_declaration"]
                initializer = heads[0] if heads else None
            if initializer is not None and initializer.type == "lexical_declaration":
                self._hoist_statement(initializer, scope)
            self._visit_children(node)

    def _visit_for_in(self, node: Node) -> None:
        with self.manager.scope(ScopeKind.BLOCK, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            keyword = _declaration_keyword(node)
            left = node.child_by_field_name("left")
            if keyword in ("let", "const") and left is not None:
                self._declare_pattern(left, BindingKind.LOCAL, scope, keyword, None)
            for child in node.children:
                if left is not None and child.start_byte == left.start_byte and child.type == left.type:
                    if keyword is None:
                        self._visit_target(child)
                    else:
                        self._visit_pattern_expressions(child)
                else:
                    self._visit(child)

    def _visit_catch(self, node: Node) -> None:
        with self.manager.scope(ScopeKind.BLOCK, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            param = node.child_by_field_name("parameter")
            if param is not None:
                for role, target, _ in iter_pattern(param):
                    if role == "target":
                        self.manager.declare(text(target), BindingKind.PARAMETER, param)
                    else:
                        self._visit(target)
            body = node.child_by_field_name("body")
            if body is not None:
                self._visit(body)

    def _visit_class(self, node: Node) -> None:
        name = node.child_by_field_name("name")
        with self.manager.scope(ScopeKind.BLOCK, node) as scope:
            self._scopes_by_node[node_key(node)] = scope
            if name is not None and node.type == "class":
                self.manager.declare(text(name), BindingKind.CLASS, node, init=node)
            for child in node.children:
                if name is not None and child.start_byte == name.start_byte and child.type == name.type:
                    continue
                self._visit(child)

    def _visit_declaration(self, node: Node) -> None:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            pattern = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if pattern is not None:
                self._visit_pattern_expressions(pattern)
            if value is not None:
                self._visit(value)

    def _visit_pattern_expressions(self, pattern: Node) -> None:
        for role, node, _ in iter_pattern(pattern):
            if role == "expr":
                self._visit(node)

    def _visit_target(self, target: Node) -> None:
        """Visit the left side of a plain assignment: bound names are writes."""
        target = unwrap_parens(target)
        if target.type == "identifier":
            self._record_use(target, is_read=False, is_write=True)
            return
        if target.type in ("object_pattern", "array_pattern"):
            for role, node, _ in iter_pattern(target):
                if role == "target":
                    self._record_use(node, is_read=False, is_write=True)
                else:
                    self._visit(node)
            return
        self._visit(target)

    def _visit_assignment(self, node: Node) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is not None:
            inner = unwrap_parens(left)
            if node.type == "augmented_assignment_expression" and inner.type == "identifier":
                self._record_use(inner, is_read=True, is_write=True)
            else:
                self._visit_target(left)
        if right is not None:
            self._visit(right)

    def _visit_update(self, node: Node) -> None:
        argument = node.child_by_field_name("argument")
        if argument is None:
            operands = expression_children(node)
            argument = operands[0] if operands else None
        if argument is None:
            return
        inner = unwrap_parens(argument)
        if inner.type == "identifier":
            self._record_use(inner, is_read=True, is_write=True)
        else:
            self._visit(argument)

    def _visit_call(self, node: Node) -> None:
        if self.on_call is not None:
            self.on_call(node, self.manager.current)
        self._visit_children(node)

    def _visit_jsx_element(self, node: Node) -> None:
        name = node.child_by_field_name("name")
        for child in node.children:
            if name is not None and child.start_byte == name.start_byte and child.type == name.type:
                self._visit_jsx_name(child)
            else:
                self._visit(child)

    def _visit_jsx_name(self, name: Node) -> None:
        if name.type == "identifier":
            # <div> is an intrinsic tag, <Widget> a component reference.
            if text(name)[:1].isupper():
                self._record_use(name)
        elif name.type == "member_expression":
            self._visit(name)
        elif name.type == "nested_identifier":
            identifiers = [c for c in name.named_children if c.type == "identifier"]
            if identifiers:
                self._record_use(identifiers[0])

    # ------------------------------------------------------------------
    # Hoisting
    # ------------------------------------------------------------------

    def _hoist_block(self, statements: list[Node], scope: Scope) -> None:
        for statement in statements:
            self._hoist_statement(statement, scope)

    def _hoist_statement(self, statement: Node, scope: Scope) -> None:
        kind = statement.type
        if kind == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                self._hoist_statement(declaration, scope)
            else:
                for child in statement.named_children:
                    if child.type in ("function_declaration", "class_declaration"):
                        self._hoist_statement(child, scope)
        elif kind == "lexical_declaration":
            keyword = _declaration_keyword(statement) or "let"
            self._hoist_declarators(statement, scope, keyword)
        elif kind in ("function_declaration", "generator_function_declaration"):
            name = statement.child_by_field_name("name")
            if name is not None:
                self.manager.declare(
                    text(name), BindingKind.FUNCTION, statement, scope=scope, init=statement
                )
        elif kind == "class_declaration":
            name = statement.child_by_field_name("name")
            if name is not None:
                self.manager.declare(
                    text(name), BindingKind.CLASS, statement, scope=scope, init=statement
                )
        elif kind == "import_statement":
            self._hoist_import(statement, scope)

    def _hoist_vars(self, container: Node, scope: Scope) -> None:
        """Declare every var in container, not descending into nested functions."""
        for child in container.children:
            if child.type in FUNCTION_TYPES or child.type in ("class_declaration", "class"):
                continue
            if child.type == "variable_declaration":
                self._hoist_declarators(child, scope, "var")
            elif child.type == "for_in_statement" and _declaration_keyword(child) == "var":
                left = child.child_by_field_name("left")
                if left is not None:
                    self._declare_pattern(left, BindingKind.LOCAL, scope, "var", None)
            self._hoist_vars(child, scope)

    def _hoist_declarators(self, declaration: Node, scope: Scope, keyword: str) -> None:
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            pattern = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if pattern is None:
                continue
            kind = BindingKind.LOCAL
            if value is not None:
                inner = unwrap_parens(value)
                if inner.type == "call_expression":
                    name = callee_name(inner)
                    if name is not None and is_hook_name(name):
                        kind = BindingKind.HOOK_RESULT
            self._declare_pattern(pattern, kind, scope, keyword, value, declarator)

    def _declare_pattern(
        self,
        pattern: Node,
        kind: BindingKind,
        scope: Scope,
        keyword: str | None,
        init: Node | None,
        declarator: Node | None = None,
    ) -> None:
        for role, target, slot in iter_pattern(pattern):
            if role != "target":
                continue
            self.manager.declare(
                text(target),
                kind,
                declarator if declarator is not None else pattern,
                scope=scope,
                declaration_kind=keyword,
                init=init,
                slot=slot,
            )

    def _hoist_import(self, statement: Node, scope: Scope) -> None:
        for clause in statement.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    self.manager.declare(text(part), BindingKind.IMPORT, statement, scope=scope)
                elif part.type == "namespace_import":
                    for name in part.named_children:
                        if name.type == "identifier":
                            self.manager.declare(
                                text(name), BindingKind.IMPORT, statement, scope=scope
                            )
                elif part.type == "named_imports":
                    for specifier in part.named_children:
                        if specifier.type != "import_specifier":
                            continue
                        local = specifier.child_by_field_name("alias")
                        if local is None:
                            local = specifier.child_by_field_name("name")
                        if local is not None:
                            self.manager.declare(
                                text(local), BindingKind.IMPORT, statement, scope=scope
                            )


def _declaration_keyword(node: Node) -> str | None:
    """const/let/var keyword of a declaration or for-in/of head."""
    kind = node.child_by_field_name("kind")
    if kind is not None and kind.type in _DECLARATION_KEYWORDS:
        return kind.type
    for child in node.children:
        if child.type in _DECLARATION_KEYWORDS:
            return child.type
    return None

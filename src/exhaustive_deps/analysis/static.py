"""StaticClassifier: which bindings keep their identity across renders.

Labels are computed on demand with first-match-wins precedence:

0. reassigned anywhere                         -> dynamic
1. whole value initialized from a primitive    -> static
2. result of a hook with a StaticHookSpec      -> static iff the slot is true
3. result of a memo hook (verify mode only)    -> static iff its dependency
   array is empty, or every dependency of its callback is itself static
4. composite constructions, declared functions -> dynamic (and unstable)
5. anything else                               -> dynamic

Rule 3 recursion tracks the bindings being classified; meeting one again
means a cycle and the participant is treated as dynamic.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import (
    callee_name,
    expression_children,
    node_key,
    text,
    unwrap_parens,
)
from exhaustive_deps.analysis.types import (
    BindingKind,
    HookKind,
    SlotKind,
    StaticLabel,
)

if TYPE_CHECKING:
    from tree_sitter import Node

    from exhaustive_deps.analysis.parser import NodeKey
    from exhaustive_deps.analysis.references import ReferenceExtractor
    from exhaustive_deps.analysis.types import Binding, DestructureSlot, HookCallSite


class SpecShape(StrEnum):
    WHOLE = "whole"
    POSITIONAL = "positional"
    KEYED = "keyed"


@dataclass(frozen=True, slots=True)
class StaticHookSpec:
    """Which parts of a hook's return value are stable.

    WHOLE(true) makes every binding taken from the call static.
    POSITIONAL answers for array destructuring, KEYED for object
    destructuring. Slots not marked true are dynamic.
    """

    shape: SpecShape
    whole: bool = False
    positions: tuple[bool, ...] = ()
    keys: Mapping[str, bool] = field(default_factory=dict)

    @classmethod
    def from_option(cls, value: bool | Sequence[bool] | Mapping[str, bool]) -> StaticHookSpec:
        if isinstance(value, bool):
            return cls(SpecShape.WHOLE, whole=value)
        if isinstance(value, Mapping):
            return cls(SpecShape.KEYED, keys={str(k): bool(v) for k, v in value.items()})
        return cls(SpecShape.POSITIONAL, positions=tuple(bool(v) for v in value))

    def is_static(self, slot: DestructureSlot) -> bool:
        if self.shape is SpecShape.WHOLE:
            return self.whole
        if self.shape is SpecShape.POSITIONAL:
            return (
                slot.kind is SlotKind.POSITION
                and slot.index is not None
                and slot.index < len(self.positions)
                and self.positions[slot.index]
            )
        return slot.kind is SlotKind.KEY and self.keys.get(slot.key or "", False)

    def to_option(self) -> bool | list[bool] | dict[str, bool]:
        if self.shape is SpecShape.WHOLE:
            return self.whole
        if self.shape is SpecShape.POSITIONAL:
            return list(self.positions)
        return dict(self.keys)


# State setters and ref containers keep their identity for the component's lifetime.
BUILTIN_STATIC_HOOKS: dict[str, StaticHookSpec] = {
    "useState": StaticHookSpec.from_option([False, True]),
    "useReducer": StaticHookSpec.from_option([False, True]),
    "useTransition": StaticHookSpec.from_option([False, True]),
    "useActionState": StaticHookSpec.from_option([False, True]),
    "useRef": StaticHookSpec.from_option(True),
}

_PRIMITIVE_TYPES: frozenset[str] = frozenset(
    {"string", "number", "true", "false", "null", "undefined"}
)
_UNARY_PRIMITIVE_OPERATORS: frozenset[str] = frozenset({"-", "+", "!", "~", "void", "typeof"})
_FUNCTION_EXPRESSIONS: frozenset[str] = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_LOGICAL_OPERATORS: frozenset[str] = frozenset({"||", "&&", "??"})


def is_primitive_literal(node: Node) -> bool:
    node = unwrap_parens(node)
    if node.type in _PRIMITIVE_TYPES:
        return True
    if node.type == "identifier":
        return text(node) == "undefined"
    if node.type == "template_string":
        return not any(c.type == "template_substitution" for c in node.children)
    if node.type == "unary_expression":
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        return (
            operator is not None
            and text(operator) in _UNARY_PRIMITIVE_OPERATORS
            and argument is not None
            and is_primitive_literal(argument)
        )
    return False


def expression_construction_type(node: Node) -> str | None:
    """Kind of fresh value node creates on every evaluation, if any."""
    node = unwrap_parens(node)
    kind = node.type
    if kind == "object":
        return "object"
    if kind == "array":
        return "array"
    if kind in _FUNCTION_EXPRESSIONS:
        return "function"
    if kind == "class":
        return "class"
    if kind in ("jsx_element", "jsx_self_closing_element", "jsx_fragment"):
        return "JSX element"
    if kind == "new_expression":
        return "object construction"
    if kind == "regex":
        return "regular expression"
    if kind == "ternary_expression":
        branches = (
            node.child_by_field_name("consequence"),
            node.child_by_field_name("alternative"),
        )
        if any(b is not None and expression_construction_type(b) for b in branches):
            return "conditional"
        return None
    if kind == "binary_expression":
        operator = node.child_by_field_name("operator")
        if operator is None or text(operator) not in _LOGICAL_OPERATORS:
            return None
        sides = (node.child_by_field_name("left"), node.child_by_field_name("right"))
        if any(s is not None and expression_construction_type(s) for s in sides):
            return "logical expression"
        return None
    if kind == "assignment_expression":
        right = node.child_by_field_name("right")
        if right is not None and expression_construction_type(right):
            return "assignment expression"
    return None


def construction_type(binding: Binding) -> str | None:
    """Construction kind for bindings that get a new identity every render."""
    if binding.kind is BindingKind.FUNCTION:
        return "function"
    if binding.kind is BindingKind.CLASS:
        return "class"
    if binding.slot.kind is not SlotKind.WHOLE or binding.init is None:
        return None
    return expression_construction_type(binding.init)


class StaticClassifier:
    """Lazily label bindings, caching each label for the rest of the pass."""

    def __init__(
        self,
        *,
        specs: Mapping[str, StaticHookSpec],
        sites: Mapping[NodeKey, HookCallSite],
        extractor: ReferenceExtractor,
        verify_memo_chain: bool,
        cache: dict[int, StaticLabel] | None = None,
    ) -> None:
        self.specs = specs
        self.sites = sites
        self.extractor = extractor
        self.verify_memo_chain = verify_memo_chain
        self.cache: dict[int, StaticLabel] = cache if cache is not None else {}

    def label(self, binding: Binding) -> StaticLabel:
        return self._label(binding, set())

    def is_static(self, binding: Binding) -> bool:
        return self.label(binding) is StaticLabel.STATIC

    def _label(self, binding: Binding, visiting: set[int]) -> StaticLabel:
        cached = self.cache.get(binding.id)
        if cached is not None:
            return cached
        if binding.id in visiting:
            return StaticLabel.DYNAMIC
        visiting.add(binding.id)
        try:
            label = self._classify(binding, visiting)
        finally:
            visiting.discard(binding.id)
        return self.cache.setdefault(binding.id, label)

    def _classify(self, binding: Binding, visiting: set[int]) -> StaticLabel:
        if binding.reassigned or binding.init is None:
            return StaticLabel.DYNAMIC
        if binding.kind not in (BindingKind.LOCAL, BindingKind.HOOK_RESULT):
            return StaticLabel.DYNAMIC

        value = unwrap_parens(binding.init)
        if binding.slot.kind is SlotKind.WHOLE and is_primitive_literal(value):
            return StaticLabel.STATIC

        if value.type == "call_expression":
            name = callee_name(value)
            spec = self.specs.get(name) if name is not None else None
            if spec is not None:
                return StaticLabel.STATIC if spec.is_static(binding.slot) else StaticLabel.DYNAMIC
            if self.verify_memo_chain:
                site = self.sites.get(node_key(value))
                if site is not None and site.kind is HookKind.MEMO:
                    return self._memo_label(site, visiting)

        return StaticLabel.DYNAMIC

    def _memo_label(self, site: HookCallSite, visiting: set[int]) -> StaticLabel:
        if site.dependencies is None:
            return StaticLabel.DYNAMIC
        declared = unwrap_parens(site.dependencies)
        if declared.type != "array":
            return StaticLabel.DYNAMIC
        if not expression_children(declared):
            return StaticLabel.STATIC
        if not site.has_inline_callback:
            return StaticLabel.DYNAMIC

        refs = self.extractor.extract(site)
        if refs.mutations:
            return StaticLabel.DYNAMIC
        for dependency in refs.dependencies.values():
            if self._label(dependency.binding, visiting) is not StaticLabel.STATIC:
                return StaticLabel.DYNAMIC
        return StaticLabel.STATIC

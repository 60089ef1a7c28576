"""Internal data types for hook dependency analysis.

Scopes and bindings are built once per file by the scope walk and are
mutated only while that walk runs. Call sites, dependency paths, fixes and
diagnostics are frozen once created.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tree_sitter import Node


class ScopeKind(StrEnum):
    MODULE = "module"
    FUNCTION = "function"
    BLOCK = "block"


class BindingKind(StrEnum):
    PARAMETER = "parameter"
    LOCAL = "local"
    IMPORT = "import"
    HOOK_RESULT = "hook_result"
    FUNCTION = "function"
    CLASS = "class"


class SlotKind(StrEnum):
    WHOLE = "whole"
    POSITION = "position"
    KEY = "key"
    REST = "rest"


class HookKind(StrEnum):
    EFFECT = "effect"
    MEMO = "memo"


class StaticLabel(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    UNKNOWN = "unknown"


class DiagnosticKind(StrEnum):
    MISSING_DEPENDENCY = "missing-dependency"
    UNNECESSARY_DEPENDENCY = "unnecessary-dependency"
    DUPLICATE_DEPENDENCY = "duplicate-dependency"
    UNSTABLE_LITERAL_DEPENDENCY = "unstable-literal-dependency"
    NON_ARRAY_DEPENDENCY_LIST = "non-array-dependency-list"
    COMPLEX_DEPENDENCY = "complex-dependency"
    UNKNOWN_CALLBACK = "unknown-callback"


@dataclass(frozen=True, slots=True)
class DestructureSlot:
    """Which part of an initializer a binding receives."""

    kind: SlotKind
    index: int | None = None  # array pattern position
    key: str | None = None  # object pattern key

    @classmethod
    def whole(cls) -> DestructureSlot:
        return cls(SlotKind.WHOLE)

    @classmethod
    def position(cls, index: int) -> DestructureSlot:
        return cls(SlotKind.POSITION, index=index)

    @classmethod
    def keyed(cls, key: str) -> DestructureSlot:
        return cls(SlotKind.KEY, key=key)

    @classmethod
    def rest(cls) -> DestructureSlot:
        return cls(SlotKind.REST)


@dataclass(eq=False, slots=True)
class Scope:
    """A lexical region: module, function or block."""

    id: int
    kind: ScopeKind
    node: Node
    parent: Scope | None = None
    bindings: dict[str, Binding] = field(default_factory=dict)

    def ancestors(self) -> list[Scope]:
        """This scope followed by every enclosing scope up to the module."""
        chain: list[Scope] = []
        current: Scope | None = self
        while current is not None:
            chain.append(current)
            current = current.parent
        return chain


@dataclass(eq=False, slots=True)
class Binding:
    """A declared name. Identity is the arena id, not the name."""

    id: int
    name: str
    scope: Scope
    kind: BindingKind
    node: Node  # declarator, function/class declaration, parameter or specifier
    declaration_kind: str | None = None  # const | let | var
    init: Node | None = None
    slot: DestructureSlot = field(default_factory=DestructureSlot.whole)
    reassigned: bool = False
    uses: list[IdentifierUse] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class IdentifierUse:
    """An identifier in expression position and what it resolved to."""

    node: Node
    name: str
    binding: Binding | None
    scope: Scope
    is_read: bool = True
    is_write: bool = False


@dataclass(frozen=True, slots=True)
class HookCallSite:
    """A recognized hook call with its callback and declared dependency list."""

    name: str
    kind: HookKind
    node: Node
    callback: Node
    dependencies: Node | None  # None: argument absent
    scope: Scope

    @property
    def has_inline_callback(self) -> bool:
        return self.callback.type in {
            "arrow_function",
            "function_expression",
            "function",
            "generator_function",
        }


@dataclass(frozen=True, slots=True)
class DependencyPath:
    """A binding plus the property path narrowing it, e.g. props.user.id."""

    binding: Binding
    path: tuple[str, ...]
    offset: int  # byte offset of the first use

    def render(self) -> str:
        return ".".join((self.binding.name, *self.path))

    def covers(self, other: DependencyPath) -> bool:
        """True if declaring self is enough to track other."""
        return (
            self.binding is other.binding
            and other.path[: len(self.path)] == self.path
        )


@dataclass(frozen=True, slots=True)
class Fix:
    """Replace source[start:end] (byte offsets) with replacement."""

    start: int
    end: int
    replacement: str
    description: str


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A reportable finding."""

    kind: DiagnosticKind
    message: str
    hook: str
    names: tuple[str, ...]
    start: int
    end: int
    line: int  # 1-based
    column: int  # 1-based
    fix: Fix | None = None


@dataclass(frozen=True, slots=True)
class FileReport:
    """Lint result for a single source file."""

    file_path: str
    diagnostics: list[Diagnostic]
    parse_error: str | None = None

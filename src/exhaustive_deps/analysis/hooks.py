"""Hook call-site classification.

A HookRegistry is a lookup table from callee name to how that hook takes its
callback and dependency list. It is built once per analysis pass from the
built-in hooks plus the ``additionalHooks`` pattern; new hooks are data.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import call_arguments, callee_name
from exhaustive_deps.analysis.types import HookCallSite, HookKind

if TYPE_CHECKING:
    from tree_sitter import Node

    from exhaustive_deps.analysis.types import Scope


@dataclass(frozen=True, slots=True)
class HookSpec:
    """How a hook is called: its kind and which argument is the callback."""

    kind: HookKind
    callback_index: int = 0


BUILTIN_HOOKS: dict[str, HookSpec] = {
    "useEffect": HookSpec(HookKind.EFFECT),
    "useLayoutEffect": HookSpec(HookKind.EFFECT),
    "useInsertionEffect": HookSpec(HookKind.EFFECT),
    "useMemo": HookSpec(HookKind.MEMO),
    "useCallback": HookSpec(HookKind.MEMO),
    "useImperativeHandle": HookSpec(HookKind.MEMO, callback_index=1),
}


class HookRegistry:
    """Name -> HookSpec table with an optional pattern for extra memo hooks."""

    def __init__(
        self,
        hooks: dict[str, HookSpec] | None = None,
        additional_hooks: str | re.Pattern[str] | None = None,
    ) -> None:
        self.hooks: dict[str, HookSpec] = dict(BUILTIN_HOOKS if hooks is None else hooks)
        if isinstance(additional_hooks, str):
            additional_hooks = re.compile(additional_hooks)
        self.additional_hooks = additional_hooks

    def lookup(self, name: str) -> HookSpec | None:
        spec = self.hooks.get(name)
        if spec is not None:
            return spec
        if self.additional_hooks is not None and self.additional_hooks.search(name):
            return HookSpec(HookKind.MEMO)
        return None

    def classify(self, call: Node, scope: Scope) -> HookCallSite | None:
        """Return a HookCallSite if call has a known hook's shape, else None."""
        name = callee_name(call)
        if name is None:
            return None
        spec = self.lookup(name)
        if spec is None:
            return None
        args = call_arguments(call)
        if len(args) <= spec.callback_index:
            return None
        callback = args[spec.callback_index]
        if callback.type == "spread_element":
            return None
        dependencies = None
        if len(args) > spec.callback_index + 1:
            dependencies = args[spec.callback_index + 1]
        return HookCallSite(
            name=name,
            kind=spec.kind,
            node=call,
            callback=callback,
            dependencies=dependencies,
            scope=scope,
        )

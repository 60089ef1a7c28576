"""Tests for StaticClassifier and StaticHookSpec."""

from __future__ import annotations

from textwrap import dedent

import pytest

from exhaustive_deps.analysis.hooks import HookRegistry
from exhaustive_deps.analysis.parser import node_key, parse_source
from exhaustive_deps.analysis.references import ReferenceExtractor
from exhaustive_deps.analysis.scope import ScopeBuilder, ScopeTree
from exhaustive_deps.analysis.static import (
    BUILTIN_STATIC_HOOKS,
    StaticClassifier,
    StaticHookSpec,
    construction_type,
)
from exhaustive_deps.analysis.types import Binding, DestructureSlot, StaticLabel

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Analysis:
    """Scope tree plus a classifier over it."""

    def __init__(self, source: str, *, verify: bool = False, static_hooks=None) -> None:
        registry = HookRegistry()
        sites = {}

        def on_call(node, scope):
            site = registry.classify(node, scope)
            if site is not None:
                sites[node_key(node)] = site

        self.tree: ScopeTree = ScopeBuilder(on_call=on_call).build(
            parse_source(dedent(source))
        )
        specs = dict(BUILTIN_STATIC_HOOKS)
        for name, value in (static_hooks or {}).items():
            specs[name] = StaticHookSpec.from_option(value)
        self.classifier = StaticClassifier(
            specs=specs,
            sites=sites,
            extractor=ReferenceExtractor(self.tree),
            verify_memo_chain=verify,
        )

    def binding(self, name: str) -> Binding:
        return next(b for b in self.tree.bindings if b.name == name)

    def label(self, name: str) -> StaticLabel:
        return self.classifier.label(self.binding(name))


# ---------------------------------------------------------------------------
# Primitive literals and reassignment
# ---------------------------------------------------------------------------
class TestPrimitives:
    def test_primitive_initializers_are_static(self):
        analysis = _Analysis("""\
            function C() {
              const a = 1;
              const b = 'x';
              const c = -1;
              const d = `plain`;
              const e = null;
              const f = true;
              let g = undefined;
            }
        """)
        for name in "abcdefg":
            assert analysis.label(name) is StaticLabel.STATIC, name

    def test_primitive_static_at_any_depth(self):
        analysis = _Analysis("""\
            function C() {
              if (ok) {
                for (;;) {
                  const deep = 42;
                }
              }
            }
        """)
        assert analysis.label("deep") is StaticLabel.STATIC

    def test_reassigned_primitive_is_dynamic(self):
        analysis = _Analysis("""\
            function C() {
              let n = 1;
              n = 2;
            }
        """)
        assert analysis.label("n") is StaticLabel.DYNAMIC

    def test_uninitialized_and_interpolated_are_dynamic(self):
        analysis = _Analysis("""\
            function C(name) {
              let pending;
              const greeting = `hi ${name}`;
            }
        """)
        assert analysis.label("pending") is StaticLabel.DYNAMIC
        assert analysis.label("greeting") is StaticLabel.DYNAMIC
        assert analysis.label("name") is StaticLabel.DYNAMIC

    def test_composites_are_dynamic(self):
        analysis = _Analysis("""\
            function C() {
              const obj = {};
              const list = [];
              const fn = () => {};
            }
        """)
        for name in ("obj", "list", "fn"):
            assert analysis.label(name) is StaticLabel.DYNAMIC


# ---------------------------------------------------------------------------
# Static hook specs
# ---------------------------------------------------------------------------
class TestStaticHookSpecs:
    def test_builtin_state_setter_and_ref(self):
        analysis = _Analysis("""\
            function C() {
              const [value, setValue] = useState(0);
              const [state, dispatch] = useReducer(reducer, {});
              const ref = useRef(null);
            }
        """)
        assert analysis.label("value") is StaticLabel.DYNAMIC
        assert analysis.label("setValue") is StaticLabel.STATIC
        assert analysis.label("state") is StaticLabel.DYNAMIC
        assert analysis.label("dispatch") is StaticLabel.STATIC
        assert analysis.label("ref") is StaticLabel.STATIC

    def test_whole_spec(self):
        analysis = _Analysis(
            """\
            function C() {
              const v = useStaticHook();
            }
            """,
            static_hooks={"useStaticHook": True},
        )
        assert analysis.label("v") is StaticLabel.STATIC

    def test_positional_spec(self):
        analysis = _Analysis(
            """\
            function C() {
              const [a, b, c] = useHook();
            }
            """,
            static_hooks={"useHook": [True, False]},
        )
        assert analysis.label("a") is StaticLabel.STATIC
        assert analysis.label("b") is StaticLabel.DYNAMIC
        assert analysis.label("c") is StaticLabel.DYNAMIC

    def test_keyed_spec_with_rename(self):
        analysis = _Analysis(
            """\
            function C() {
              const { staticValue: sv, other } = useHook();
            }
            """,
            static_hooks={"useHook": {"staticValue": True, "other": False}},
        )
        assert analysis.label("sv") is StaticLabel.STATIC
        assert analysis.label("other") is StaticLabel.DYNAMIC

    def test_spec_wins_over_composite_shape(self):
        analysis = _Analysis(
            """\
            function useHook() {
              const inner = { a: 1 };
              return inner;
            }
            function C() {
              const value = useHook();
            }
            """,
            static_hooks={"useHook": True},
        )
        assert analysis.label("value") is StaticLabel.STATIC

    def test_spec_is_static_per_slot(self):
        positional = StaticHookSpec.from_option([False, True])
        assert positional.is_static(DestructureSlot.position(1))
        assert not positional.is_static(DestructureSlot.position(0))
        assert not positional.is_static(DestructureSlot.position(5))
        assert not positional.is_static(DestructureSlot.whole())
        keyed = StaticHookSpec.from_option({"set": True})
        assert keyed.is_static(DestructureSlot.keyed("set"))
        assert not keyed.is_static(DestructureSlot.keyed("get"))
        assert not keyed.is_static(DestructureSlot.position(0))

    @pytest.mark.parametrize("value", [True, False, [False, True], {"a": True}])
    def test_option_form_preserved(self, value):
        assert StaticHookSpec.from_option(value).to_option() == value


# ---------------------------------------------------------------------------
# Memo chains (checkMemoizedVariableIsStatic)
# ---------------------------------------------------------------------------
class TestMemoChains:
    def test_empty_deps_memo_static_only_when_verifying(self):
        source = """\
            function C() {
              const memoized = useMemo(() => 'foo', []);
            }
        """
        assert _Analysis(source).label("memoized") is StaticLabel.DYNAMIC
        assert _Analysis(source, verify=True).label("memoized") is StaticLabel.STATIC

    def test_empty_deps_static_regardless_of_body(self):
        analysis = _Analysis(
            """\
            function C(props) {
              const cb = useCallback(() => props.onChange(), []);
            }
            """,
            verify=True,
        )
        assert analysis.label("cb") is StaticLabel.STATIC

    def test_chain_of_static_dependencies(self):
        analysis = _Analysis(
            """\
            function C() {
              const local = 1;
              const first = useMemo(() => local, [local]);
              const second = useCallback(() => first, [first]);
            }
            """,
            verify=True,
        )
        assert analysis.label("first") is StaticLabel.STATIC
        assert analysis.label("second") is StaticLabel.STATIC

    def test_dynamic_dependency_breaks_chain(self):
        analysis = _Analysis(
            """\
            function C() {
              const local = someFunc();
              const cb = useCallback(() => console.log(local), [local]);
            }
            """,
            verify=True,
        )
        assert analysis.label("cb") is StaticLabel.DYNAMIC

    def test_memo_without_dependency_array_is_dynamic(self):
        analysis = _Analysis(
            """\
            function C() {
              const value = useMemo(() => 1);
            }
            """,
            verify=True,
        )
        assert analysis.label("value") is StaticLabel.DYNAMIC

    def test_cycle_resolves_to_dynamic(self):
        analysis = _Analysis(
            """\
            function C() {
              const a = useMemo(() => b, [b]);
              const b = useMemo(() => a, [a]);
            }
            """,
            verify=True,
        )
        assert analysis.label("a") is StaticLabel.DYNAMIC
        assert analysis.label("b") is StaticLabel.DYNAMIC

    def test_labels_are_cached(self):
        analysis = _Analysis(
            """\
            function C() {
              const a = 1;
            }
            """
        )
        binding = analysis.binding("a")
        analysis.label("a")
        assert analysis.classifier.cache[binding.id] is StaticLabel.STATIC


# ---------------------------------------------------------------------------
# Construction types
# ---------------------------------------------------------------------------
class TestConstructionType:
    @pytest.mark.parametrize(
        ("initializer", "expected"),
        [
            ("{}", "object"),
            ("[]", "array"),
            ("() => {}", "function"),
            ("function () {}", "function"),
            ("class {}", "class"),
            ("<div />", "JSX element"),
            ("new Map()", "object construction"),
            ("/ab+c/", "regular expression"),
            ("flag ? {} : null", "conditional"),
            ("maybe || []", "logical expression"),
            ("flag ? 1 : 2", None),
            ("1", None),
            ("compute()", None),
        ],
    )
    def test_initializer_kinds(self, initializer, expected):
        analysis = _Analysis(f"function C(flag, maybe) {{ const value = {initializer}; }}\n")
        assert construction_type(analysis.binding("value")) == expected

    def test_declared_function_is_a_function_construction(self):
        analysis = _Analysis("""\
            function C() {
              function handler() {}
            }
        """)
        assert construction_type(analysis.binding("handler")) == "function"

    def test_destructured_binding_has_no_construction(self):
        analysis = _Analysis("function C() { const [a] = [{}]; }\n")
        assert construction_type(analysis.binding("a")) is None

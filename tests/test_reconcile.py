"""Tests for DependencyReconciler: required vs declared dependencies."""

from __future__ import annotations

from textwrap import dedent

from exhaustive_deps.analysis.hooks import HookRegistry
from exhaustive_deps.analysis.parser import node_key, parse_source
from exhaustive_deps.analysis.reconcile import DependencyReconciler, Reconciliation
from exhaustive_deps.analysis.references import ReferenceExtractor
from exhaustive_deps.analysis.scope import ScopeBuilder
from exhaustive_deps.analysis.static import BUILTIN_STATIC_HOOKS, StaticClassifier

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _reconcile(
    source: str,
    hook: str = "useEffect",
    *,
    report_static_dependencies: bool = False,
) -> Reconciliation:
    registry = HookRegistry()
    sites = {}

    def on_call(node, scope):
        site = registry.classify(node, scope)
        if site is not None:
            sites[node_key(node)] = site

    tree = ScopeBuilder(on_call=on_call).build(parse_source(dedent(source)))
    extractor = ReferenceExtractor(tree)
    classifier = StaticClassifier(
        specs=BUILTIN_STATIC_HOOKS,
        sites=sites,
        extractor=extractor,
        verify_memo_chain=False,
    )
    reconciler = DependencyReconciler(
        tree,
        extractor,
        classifier,
        report_static_dependencies=report_static_dependencies,
    )
    site = next(s for s in sites.values() if s.name == hook)
    return reconciler.reconcile(site)


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------
class TestCoverage:
    def test_exact_match_is_clean(self):
        result = _reconcile("""\
            function C({ a }) {
              useEffect(() => log(a), [a]);
            }
        """)
        assert [d.render() for d in result.required] == ["a"]
        assert result.missing == []
        assert result.unnecessary == []
        assert not result.needs_fix

    def test_declared_root_covers_required_path(self):
        result = _reconcile("""\
            function C(props) {
              useEffect(() => log(props.foo), [props]);
            }
        """)
        assert result.missing == []
        assert result.unnecessary == []

    def test_declared_path_does_not_cover_root(self):
        result = _reconcile("""\
            function C(props) {
              useEffect(() => log(props), [props.foo]);
            }
        """)
        assert [d.render() for d in result.missing] == ["props"]
        assert [d.source for d in result.unnecessary] == ["props.foo"]

    def test_empty_array_reports_every_dynamic_value(self):
        result = _reconcile("""\
            function C({ a, b }) {
              const limit = 10;
              useEffect(() => {
                log(a, b, limit);
              }, []);
            }
        """)
        assert [d.render() for d in result.missing] == ["a", "b"]

    def test_unused_declared_is_unnecessary(self):
        result = _reconcile("""\
            function C({ a, b }) {
              useEffect(() => log(a), [a, b]);
            }
        """)
        assert [d.source for d in result.unnecessary] == ["b"]
        assert [d.source for d in result.kept] == ["a"]

    def test_global_declared_is_unnecessary(self):
        result = _reconcile("""\
            function C() {
              useEffect(() => log(window.innerWidth), [window]);
            }
        """)
        assert result.required == []
        assert [d.source for d in result.unnecessary] == ["window"]


# ---------------------------------------------------------------------------
# Duplicates, complex entries, static entries
# ---------------------------------------------------------------------------
class TestDeclaredEntries:
    def test_duplicates_keep_first_copy(self):
        result = _reconcile("""\
            function C({ a }) {
              useEffect(() => log(a), [a, a]);
            }
        """)
        assert [d.source for d in result.duplicates] == ["a"]
        assert [d.source for d in result.kept] == ["a"]
        assert result.needs_fix

    def test_complex_entry_kept_and_reported(self):
        result = _reconcile("""\
            function C({ count }) {
              useEffect(() => {}, [count * 2]);
            }
        """)
        assert [d.source for d in result.complex] == ["count * 2"]
        assert [d.source for d in result.kept] == ["count * 2"]
        assert result.unnecessary == []

    def test_used_static_entry_tolerated(self):
        source = """\
            function C() {
              const [value, setValue] = useState(0);
              useEffect(() => setValue(1), [setValue]);
            }
        """
        assert _reconcile(source).unnecessary == []
        strict = _reconcile(source, report_static_dependencies=True)
        assert [d.source for d in strict.unnecessary] == ["setValue"]

    def test_unused_static_entry_is_unnecessary(self):
        result = _reconcile("""\
            function C() {
              const [value, setValue] = useState(0);
              useEffect(() => {}, [setValue]);
            }
        """)
        assert [d.source for d in result.unnecessary] == ["setValue"]

    def test_static_values_never_required(self):
        result = _reconcile("""\
            function C() {
              const ref = useRef(null);
              const [value, setValue] = useState(0);
              useEffect(() => {
                ref.current = value;
                setValue(1);
              }, []);
            }
        """)
        assert [d.render() for d in result.missing] == ["value"]


# ---------------------------------------------------------------------------
# Shapes the reconciler refuses to diff
# ---------------------------------------------------------------------------
class TestUncheckableShapes:
    def test_no_array_means_nothing_to_check(self):
        result = _reconcile("""\
            function C({ a }) {
              useEffect(() => log(a));
            }
        """)
        assert result.array is None
        assert result.required == []

    def test_non_array_argument(self):
        result = _reconcile("""\
            function C({ a }) {
              const deps = [a];
              useEffect(() => log(a), deps);
            }
        """)
        assert result.non_array
        assert result.missing == []

    def test_spread_element(self):
        result = _reconcile("""\
            function C({ a, rest }) {
              useEffect(() => log(a), [...rest]);
            }
        """)
        assert result.spread
        assert result.missing == []

    def test_unknown_callback(self):
        result = _reconcile("""\
            function C({ handler }) {
              useEffect(handler, []);
            }
        """)
        assert result.unknown_callback

    def test_named_callback_listed_in_deps_is_accepted(self):
        result = _reconcile(
            """\
            function C({ handler }) {
              const cb = useCallback(handler, [handler]);
            }
            """,
            hook="useCallback",
        )
        assert not result.unknown_callback
        assert not result.needs_fix


# ---------------------------------------------------------------------------
# Unstable constructions
# ---------------------------------------------------------------------------
class TestUnstable:
    def test_object_used_only_in_callback(self):
        result = _reconcile("""\
            function C() {
              const options = {};
              useEffect(() => log(options), [options]);
            }
        """)
        (unstable,) = result.unstable
        assert unstable.binding.name == "options"
        assert unstable.construction == "object"
        assert not unstable.used_outside_callback

    def test_object_also_used_in_render(self):
        result = _reconcile("""\
            function C() {
              const options = {};
              useEffect(() => log(options), [options]);
              return <Child options={options} />;
            }
        """)
        (unstable,) = result.unstable
        assert unstable.used_outside_callback

    def test_outer_scope_constructions_are_stable(self):
        result = _reconcile("""\
            const options = {};
            function C() {
              useEffect(() => log(options), [options]);
            }
        """)
        assert result.unstable == []

    def test_primitive_is_not_unstable(self):
        result = _reconcile("""\
            function C() {
              const size = 3;
              useEffect(() => log(size), [size]);
            }
        """)
        assert result.unstable == []

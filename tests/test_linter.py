"""Tests for the linter facade: sources, files, directories and fixing."""

from __future__ import annotations

import pytest

from exhaustive_deps.config import Config, RuleOptions
from exhaustive_deps.exceptions import SourceReadError
from exhaustive_deps.linter import (
    fix_file,
    fix_source,
    iter_source_files,
    lint_file,
    lint_files,
    lint_source,
)

CLEAN = """\
function C({ a }) {
  useEffect(() => console.log(a), [a]);
}
"""

MISSING = """\
function C({ a }) {
  useEffect(() => console.log(a), []);
}
"""


class TestLintSource:
    def test_clean_source(self):
        report = lint_source(CLEAN)
        assert report.diagnostics == []
        assert report.parse_error is None
        assert report.file_path == "<input>"

    def test_parse_error_skips_analysis(self):
        report = lint_source("function C( {\n  useEffect(() => a, []);\n", file_path="broken.js")
        assert report.parse_error is not None
        assert "line" in report.parse_error
        assert report.diagnostics == []

    def test_diagnostics_sorted_by_position(self):
        source = """\
function C({ a, b }) {
  useEffect(() => console.log(b), []);
  useEffect(() => console.log(a), []);
}
"""
        report = lint_source(source)
        assert [d.names for d in report.diagnostics] == [("b",), ("a",)]
        assert [d.line for d in report.diagnostics] == [2, 3]

    def test_options_are_applied(self):
        source = """\
function C() {
  const v = useThing();
  useEffect(() => console.log(v), []);
}
"""
        assert len(lint_source(source).diagnostics) == 1
        options = RuleOptions.model_validate({"staticHooks": {"useThing": True}})
        assert lint_source(source, options).diagnostics == []


class TestFiles:
    def test_lint_file(self, write_js):
        path = write_js("component.jsx", MISSING)
        report = lint_file(path)
        assert report.file_path == str(path)
        assert len(report.diagnostics) == 1

    def test_lint_missing_file_raises(self, tmp_path):
        with pytest.raises(SourceReadError):
            lint_file(tmp_path / "nope.js")

    def test_iter_source_files_filters_and_skips_excluded(self, tmp_path, write_js):
        write_js("src/a.js", CLEAN)
        write_js("src/b.jsx", CLEAN)
        write_js("src/notes.txt", "not js")
        write_js("node_modules/lib/index.js", CLEAN)
        explicit = write_js("scripts/tool.ts", CLEAN)
        found = iter_source_files([tmp_path, explicit, tmp_path / "src" / "a.js"])
        assert [p.name for p in found] == ["a.js", "b.jsx", "tool.ts"]

    def test_excluded_dirs_come_from_config(self, tmp_path, write_js):
        write_js("vendor/a.js", CLEAN)
        config = Config(base_dir=tmp_path / "cfg", exclude_dirs=frozenset({"vendor"}))
        assert iter_source_files([tmp_path], config) == []

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(SourceReadError, match="No such file"):
            iter_source_files([tmp_path / "missing"])

    def test_lint_files(self, tmp_path, write_js):
        write_js("clean.js", CLEAN)
        write_js("missing.js", MISSING)
        reports = lint_files([tmp_path])
        counts = {r.file_path.rsplit("/", 1)[-1]: len(r.diagnostics) for r in reports}
        assert counts == {"clean.js": 0, "missing.js": 1}


class TestFixing:
    def test_fix_source_returns_clean_report(self):
        fixed, report = fix_source(MISSING)
        assert "console.log(a), [a]);" in fixed
        assert report.diagnostics == []

    def test_fix_source_leaves_unfixable_findings(self):
        source = """\
function C({ a, deps }) {
  useEffect(() => console.log(a), deps);
}
"""
        fixed, report = fix_source(source)
        assert fixed == source
        assert len(report.diagnostics) == 1

    def test_fix_file_writes_and_keeps_line_endings(self, tmp_path):
        path = tmp_path / "crlf.js"
        path.write_bytes(MISSING.replace("\n", "\r\n").encode("utf-8"))
        changed, report = fix_file(path)
        assert changed
        assert report.diagnostics == []
        data = path.read_bytes()
        assert b"[a]);\r\n" in data
        assert b"\n" not in data.replace(b"\r\n", b"")

    def test_fix_file_untouched_when_clean(self, write_js):
        path = write_js("clean.js", CLEAN)
        before = path.stat().st_mtime_ns
        changed, _ = fix_file(path)
        assert not changed
        assert path.stat().st_mtime_ns == before

"""Tests for the per-file pipeline and workspace scanning."""

from pathlib import Path

import pytest

from varscope.analyzer.workspace import (
    WorkspaceScanner,
    analyze_source,
    discover_files,
    is_excluded,
    read_source,
)


@pytest.fixture
def project(tmp_path):
    """Small project tree with sources, vendored code and non-source files."""
    (tmp_path / 'src').mkdir()
    (tmp_path / 'src' / 'app.js').write_text("const a = 1;\nconsole.log(a);\n", encoding='utf-8')
    (tmp_path / 'src' / 'util.ts').write_text("let unused = 5;\n", encoding='utf-8')
    (tmp_path / 'node_modules' / 'lib').mkdir(parents=True)
    (tmp_path / 'node_modules' / 'lib' / 'index.js').write_text("var x = 1;\n", encoding='utf-8')
    (tmp_path / 'notes.txt').write_text("let ignored = 1;\n", encoding='utf-8')
    return tmp_path


class TestDiscovery:
    """Source file discovery."""

    def test_discover_files(self, project):
        """Sources are found and vendored dirs skipped."""
        files = discover_files(project)
        assert files == [project / 'src' / 'app.js', project / 'src' / 'util.ts']

    def test_custom_patterns(self, project):
        """Glob patterns can be overridden."""
        assert discover_files(project, patterns=['**/*.txt']) == [project / 'notes.txt']

    def test_is_excluded(self):
        """Excluded directory names anywhere in the path match."""
        assert is_excluded(Path('node_modules/lib/index.js'))
        assert is_excluded(Path('web/dist/bundle.js'))
        assert not is_excluded(Path('src/app.js'))


class TestWorkspaceScanner:
    """Multi-file orchestration."""

    def test_scan_directory(self, project):
        """Every source file is analysed."""
        scanner = WorkspaceScanner()
        results = scanner.scan(project)

        assert set(results) == {str(project / 'src' / 'app.js'), str(project / 'src' / 'util.ts')}
        app = results[str(project / 'src' / 'app.js')]
        assert [v.name for v in app.variables] == ['a']
        assert app.variables[0].file_path == str(project / 'src' / 'app.js')
        assert app.usage[0].usage_count == 1
        assert set(scanner.sources) == set(results)

    def test_scan_single_file(self, project):
        """A single file can be scanned."""
        target = project / 'src' / 'util.ts'
        results = WorkspaceScanner().scan(target)
        assert list(results) == [str(target)]
        assert results[str(target)].usage[0].is_unused

    def test_cancel_before_start(self, project):
        """Cancelling up front analyses nothing."""
        assert WorkspaceScanner().scan(project, should_cancel=lambda: True) == {}

    def test_cancel_between_files(self, project):
        """Cancellation is checked between files."""
        processed = []
        results = WorkspaceScanner().scan(
            project,
            should_cancel=lambda: len(processed) >= 1,
            on_file=processed.append,
        )
        assert len(results) == 1
        assert processed == [project / 'src' / 'app.js']

    def test_unreadable_file_is_skipped(self, project):
        """Undecodable files are skipped."""
        (project / 'src' / 'broken.js').write_bytes(b'\xff\xfe\xfa invalid')
        results = WorkspaceScanner().scan(project)
        assert str(project / 'src' / 'broken.js') not in results
        assert len(results) == 2

    def test_read_source_missing(self, tmp_path):
        """Missing files read as None."""
        assert read_source(tmp_path / 'missing.js') is None


class TestAnalyzeSource:
    """Single document pipeline."""

    def test_scope_tree_is_shared(self):
        """All passes share one scope tree."""
        text = "function f() {\n  let x = 1;\n  return x;\n}"
        analysis = analyze_source(text)
        scopes = list(analysis.scope_tree.walk())

        assert any(analysis.scoped[0].scope is scope for scope in scopes)
        assert any(analysis.lifecycles[0].scope is scope for scope in scopes)

    def test_dependency_guard(self):
        """Large files skip the dependency pass."""
        text = "let a = 1;\nlet b = a;\nlet c = b;"
        assert analyze_source(text).dependencies is not None
        guarded = analyze_source(text, max_dependency_variables=2)
        assert guarded.dependencies is None
        assert guarded.cycles == []
        assert len(guarded.usage) == 3

    def test_zero_limit_never_skips(self):
        """A limit of 0 never skips the dependency pass."""
        text = "let a = 1;\nlet b = a;"
        analysis = analyze_source(text, max_dependency_variables=0)
        assert analysis.dependencies is not None
        assert set(analysis.dependencies) == {'a', 'b'}

    def test_empty_document(self):
        """An empty document gives empty results."""
        analysis = analyze_source('')
        assert analysis.variables == []
        assert analysis.lifecycles == []
        assert analysis.dependencies == {}

"""End-to-end tests for the varscope CLI."""

import json

import pytest
from typer.testing import CliRunner

from varscope.analyzer.serialization import loads_analysis
from varscope.config import __version__
from varscope.main import app

runner = CliRunner()

SOURCE = """const limit = 10;
let unused = 5;
let a = b + 1;
let b = a + 1;
let count = 0;
count = count + limit;
function f() {
  let limit = 2;
  return limit;
}
"""


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / 'sample.js'
    path.write_text(SOURCE, encoding='utf-8')
    return path


def test_version():
    """--version prints the package version."""
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_missing_path(tmp_path):
    """A missing path exits with status 1."""
    result = runner.invoke(app, ['scan', str(tmp_path / 'nope.js')])
    assert result.exit_code == 1
    assert 'Error' in result.output


def test_scan(source_file):
    """scan lists declarations and a total."""
    result = runner.invoke(app, ['scan', str(source_file)])
    assert result.exit_code == 0, result.output
    assert 'limit' in result.output
    assert 'Total declarations: 6' in result.output


def test_usage_unused_only(source_file):
    """--unused-only keeps only unused variables."""
    result = runner.invoke(app, ['usage', str(source_file), '--unused-only'])
    assert result.exit_code == 0, result.output
    assert 'UNUSED' in result.output
    assert 'Unused: 1' in result.output


def test_scopes(source_file):
    """scopes shows the tree and counts shadowed variables."""
    result = runner.invoke(app, ['scopes', str(source_file)])
    assert result.exit_code == 0, result.output
    assert 'function f' in result.output
    assert 'shadowed by line 8' in result.output
    assert 'Shadowed variables: 1' in result.output


def test_deps_reports_cycle(source_file):
    """deps reports circular dependencies."""
    result = runner.invoke(app, ['deps', str(source_file)])
    assert result.exit_code == 0, result.output
    assert 'Circular dependency' in result.output


def test_lifecycle_by_name(source_file):
    """lifecycle can be limited to one name."""
    result = runner.invoke(app, ['lifecycle', str(source_file), '--name', 'count'])
    assert result.exit_code == 0, result.output
    assert 'declaration' in result.output
    assert 'assignment' in result.output


def test_xref_directory(source_file):
    """xref reports hotspots and unused names across files."""
    (source_file.parent / 'other.js').write_text("console.log(limit);\n", encoding='utf-8')
    result = runner.invoke(app, ['xref', str(source_file.parent), '--threshold', '3'])
    assert result.exit_code == 0, result.output
    assert 'Hotspots' in result.output
    assert 'Unused Across Files' in result.output


def test_export_stdout(source_file):
    """export writes JSON to stdout."""
    result = runner.invoke(app, ['export', str(source_file)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload['files'][0]['file_path'] == str(source_file.resolve())
    assert payload['files'][0]['cycles'] == [['a', 'b', 'a']]


def test_export_to_file(source_file, tmp_path):
    """export writes a file that loads back."""
    output = tmp_path / 'analysis.json'
    result = runner.invoke(app, ['export', str(source_file), '--output', str(output)])
    assert result.exit_code == 0, result.output

    analyses = loads_analysis(output.read_text(encoding='utf-8'))
    analysis = analyses[str(source_file.resolve())]
    assert [v.name for v in analysis.variables] == ['limit', 'unused', 'a', 'b', 'count', 'limit']


def test_empty_directory(tmp_path):
    """A directory without sources is reported, not an error."""
    result = runner.invoke(app, ['scan', str(tmp_path)])
    assert result.exit_code == 0
    assert 'No source files' in result.output

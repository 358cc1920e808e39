"""Tests for the declaration scanner and value type inference."""

import pytest

from varscope.analyzer.references import find_references
from varscope.analyzer.scanner import Variable, classify_value, scan_variables


class TestScanVariables:
    """Declaration discovery."""

    def test_simple_const(self):
        """A const declaration is fully described."""
        variables = scan_variables("const a = 1;\nconsole.log(a);")

        assert len(variables) == 1
        variable = variables[0]
        assert variable.name == 'a'
        assert variable.kind == 'const'
        assert variable.inferred_type == 'number'
        assert (variable.line, variable.column) == (1, 7)
        assert variable.raw_value == '1'

    def test_document_order_across_keywords(self):
        """Declarations come back in document order."""
        text = "var z = 1;\nconst y = 2;\nlet x = 3;"
        assert [v.name for v in scan_variables(text)] == ['z', 'y', 'x']

    def test_member_access_is_not_a_declaration(self):
        """Keywords after '.' are ignored."""
        text = "foo.var x = 1;\nlet y = 2;"
        assert [v.name for v in scan_variables(text)] == ['y']

    def test_keyword_after_block_open(self):
        """A declaration may follow '{' directly."""
        text = "if (ok) {let inner = 'x';}"
        variables = scan_variables(text)
        assert [v.name for v in variables] == ['inner']
        assert variables[0].inferred_type == 'string'

    def test_parenthesised_declaration_is_skipped(self):
        """Loop headers are not scanned."""
        # Only whitespace, ';' and '{' may precede the keyword
        assert scan_variables("for (let i = 0; i < 3; i++) {}") == []

    def test_only_first_declarator_is_captured(self):
        """Only the first name of a list is recorded."""
        variables = scan_variables("let a = 1, b = 2;")
        assert [v.name for v in variables] == ['a']

    def test_file_path_is_recorded(self):
        """The file path is part of the identity."""
        variable = scan_variables("let a;", file_path='src/app.js')[0]
        assert variable.file_path == 'src/app.js'
        assert variable.key == ('src/app.js', 'a', 1)

    def test_declaration_without_initializer(self):
        """No initializer means unknown type."""
        variable = scan_variables("let pending;")[0]
        assert variable.inferred_type == 'unknown'
        assert variable.raw_value is None

    def test_initializer_stops_at_newline(self):
        """An '=' on the next line is not an initializer."""
        variable = scan_variables("let x\ny = 3;")[0]
        assert variable.inferred_type == 'unknown'

    def test_trailing_comment_removed(self):
        """Trailing comments are not part of the value."""
        variable = scan_variables("const n = 5 // five")[0]
        assert variable.inferred_type == 'number'
        assert variable.raw_value == '5'

    def test_empty_text(self):
        """Empty text has no declarations."""
        assert scan_variables('') == []

    def test_line_and_column_point_at_identifier(self):
        """Positions point at the identifier."""
        text = "let a = 1;\n  const $b = [];"
        variable = scan_variables(text)[1]
        assert variable.name == '$b'
        assert text[variable.offset:variable.offset + 2] == '$b'
        assert (variable.line, variable.column) == (2, 9)


    def test_repeated_scan_is_stable(self):
        """Scanning twice gives the same records."""
        text = "const a = new Map();\nlet b = 'x';\nvar c;"
        assert scan_variables(text) == scan_variables(text)

    def test_every_declaration_has_a_reference(self):
        """Each declaration is among its name's references."""
        text = "const a = 1;\nif (ok) {let  = a;}\nvar c_1 = [a];"
        for variable in scan_variables(text):
            refs = find_references(text, variable.name)
            assert len(refs) >= 1
            assert variable.offset in [ref.offset for ref in refs]

class TestClassifyValue:
    """Coarse value types."""

    @pytest.mark.parametrize('value,expected', [
        ('"text"', 'string'),
        ("'text'", 'string'),
        ('`tpl ${x}`', 'string'),
        ('[1, 2]', 'array'),
        ('{ a: 1 }', 'object'),
        ('true', 'boolean'),
        ('false', 'boolean'),
        ('null', 'null'),
        ('undefined', 'undefined'),
        ('42', 'number'),
        ('-3.5', 'number'),
        ('1e3', 'number'),
        ('0x1F', 'number'),
        ('() => 1', 'function'),
        ('x => x * 2', 'function'),
        ('function () {}', 'function'),
        ('async function load() {}', 'function'),
        ('compute()', 'unknown'),
        ('a + b', 'unknown'),
    ])
    def test_value_types(self, value, expected):
        """Initializers map to coarse types."""
        assert classify_value(value)[0] == expected

    def test_constructor_name(self):
        """new X() records the constructor."""
        assert classify_value('new Map()') == ('instance', 'Map')

    def test_instance_type_label(self):
        """Instances are labelled with their constructor."""
        variable = scan_variables("const cache = new Map();")[0]
        assert variable.inferred_type == 'instance'
        assert variable.type_label == 'Map'


class TestDisplayValue:
    """Display truncation never touches the stored value."""

    def test_long_value_is_shortened(self):
        """Long values are truncated for display."""
        raw = '"' + 'x' * 60 + '"'
        variable = Variable('s', 'const', 'string', 1, 7, 6, raw_value=raw)
        shown = variable.display_value(50)
        assert len(shown) == 50
        assert shown.endswith('...')
        assert variable.raw_value == raw

    def test_short_value_kept(self):
        """Short values are shown as is."""
        variable = Variable('n', 'let', 'number', 1, 5, 4, raw_value='1')
        assert variable.display_value() == '1'

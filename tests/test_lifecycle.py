"""Tests for per-variable lifecycle events."""

from varscope.analyzer.lifecycle import find_unusual_patterns, lifecycle_events, track_lifecycle
from varscope.analyzer.scanner import scan_variables


def lifecycles_for(text):
    return track_lifecycle(text, scan_variables(text))


class TestLifecycleEvents:
    """Event kinds and ordering."""

    def test_full_lifecycle(self):
        """Declaration, assignment, modification and usage are tracked."""
        text = "let count = 0;\ncount = 5;\ncount += 1;\ncount++;\nconsole.log(count);"
        lifecycle = lifecycles_for(text)[0]

        summary = [(event.type, event.line, event.value) for event in lifecycle.events]
        assert summary == [
            ('declaration', 1, '0'),
            ('assignment', 2, '5'),
            ('modification', 3, '1'),
            ('modification', 4, None),
            ('usage', 5, None),
        ]
        assert not lifecycle.is_unusual

    def test_first_event_is_the_declaration(self):
        """The declaration opens the lifecycle."""
        text = "let a = 1;\nlet b = a;\na = b;"
        for lifecycle in lifecycles_for(text):
            assert lifecycle.events[0].type == 'declaration'
            assert lifecycle.events[0].line == lifecycle.variable.line

    def test_events_sorted_by_line(self):
        """Events are ordered by line."""
        text = "let a = 1;\nf(a);\na = 2;\ng(a);"
        lines = [event.line for event in lifecycles_for(text)[0].events]
        assert lines == sorted(lines)

    def test_prefix_increment_is_a_modification(self):
        """Prefix ++ counts as a modification."""
        lifecycle = lifecycles_for("let i = 0;\n++i;")[0]
        assert [event.type for event in lifecycle.events] == ['declaration', 'modification']

    def test_other_declarations_are_skipped(self):
        """Same-named declarations are not events."""
        text = "let v = 1;\nfunction f() {\n  let v = 2;\n}"
        outer = scan_variables(text)[0]
        assert [event.type for event in lifecycle_events(text, outer)] == ['declaration']


class TestTrackLifecycle:
    """Scope assignment and unusual patterns."""

    def test_empty_input(self):
        """No variables give no lifecycles."""
        assert track_lifecycle("let a = 1;", []) == []

    def test_scope_is_innermost(self):
        """Lifecycles record the innermost scope."""
        text = "let top = 1;\nfunction run() {\n  let local = top;\n}"
        top, local = lifecycles_for(text)
        assert top.scope.kind == 'global'
        assert local.scope.kind == 'function'
        assert local.scope.name == 'run'

    def test_write_only_is_unusual(self):
        """A lifecycle without usage is unusual."""
        lifecycles = lifecycles_for("let x = 1;\nx = 2;\nx = 3;\nlet y = 1;\nlog(y);")
        unusual = find_unusual_patterns(lifecycles)
        assert [variable.name for variable in unusual] == ['x']
        assert len(lifecycles[0].events_of('assignment')) == 2

"""Per-variable lifecycle: declaration, assignments, modifications and reads."""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .references import LineIndex, find_references, statement_end
from .scanner import Variable
from .scope import Scope, build_scope_tree, find_scope

EVENT_TYPES = ('declaration', 'assignment', 'modification', 'usage')

# Compound assignment after a name: +=, -=, **=, <<=, >>>=, &&=, ??= ...
_COMPOUND_AFTER = re.compile(r'\s*(?:\*\*|<<|>>>|>>|&&|\|\||\?\?|[+\-*/%&|^])=(?!=)')
_INCREMENT_AFTER = re.compile(r'\+\+|--')
_INCREMENT_BEFORE = re.compile(r'(?:\+\+|--)\s*$')


@dataclass(frozen=True)
class LifecycleEvent:
    """One step in a variable's life."""
    type: str  # one of EVENT_TYPES
    line: int
    column: int
    value: Optional[str] = None


@dataclass(frozen=True)
class Lifecycle:
    """Ordered events for one declaration and the scope it lives in."""
    variable: Variable
    events: Tuple[LifecycleEvent, ...]
    scope: Scope

    def events_of(self, event_type: str) -> List[LifecycleEvent]:
        return [event for event in self.events if event.type == event_type]

    @property
    def is_unusual(self) -> bool:
        """Declared or assigned but never read."""
        return not self.events_of('usage')


def _assigned_value(text: str, name_end: int) -> str:
    """Right-hand side of the assignment operator following a name."""
    operator = text.find('=', name_end)
    return text[operator + 1:statement_end(text, operator + 1)].strip()


def _is_modification(text: str, start: int, end: int) -> bool:
    if _COMPOUND_AFTER.match(text, end) or _INCREMENT_AFTER.match(text, end):
        return True
    line_start = text.rfind('\n', 0, start) + 1
    return _INCREMENT_BEFORE.search(text, line_start, start) is not None


def lifecycle_events(text: str, variable: Variable,
                     lines: Optional[LineIndex] = None) -> List[LifecycleEvent]:
    """Collect the events of one variable, ordered by line.

    Events on the same line keep encounter order: declaration, then the
    remaining references in document order.
    """
    events = [LifecycleEvent('declaration', variable.line, variable.column, variable.raw_value)]
    name_length = len(variable.name)

    for ref in find_references(text, variable.name, lines=lines):
        if ref.offset == variable.offset or ref.kind == 'declaration':
            # Own declaration, or a same-named declaration elsewhere
            continue
        if ref.kind == 'assignment':
            value = _assigned_value(text, ref.offset + name_length)
            events.append(LifecycleEvent('assignment', ref.line, ref.column, value))
        elif _is_modification(text, ref.offset, ref.offset + name_length):
            value = None
            if _COMPOUND_AFTER.match(text, ref.offset + name_length):
                value = _assigned_value(text, ref.offset + name_length)
            events.append(LifecycleEvent('modification', ref.line, ref.column, value))
        else:
            events.append(LifecycleEvent('usage', ref.line, ref.column))

    events.sort(key=lambda event: event.line)
    return events


def track_lifecycle(text: str, variables: List[Variable],
                    scope_tree: Optional[Scope] = None,
                    min_block_span: int = 2) -> List[Lifecycle]:
    """Build the lifecycle of every variable in a document.

    Args:
        text: Document text
        variables: Variables scanned from text
        scope_tree: Prebuilt tree for text; built when omitted
        min_block_span: Passed to build_scope_tree when building

    Returns:
        One Lifecycle per variable, in input order
    """
    if not variables:
        return []
    if scope_tree is None:
        scope_tree = build_scope_tree(text, min_block_span)

    lines = LineIndex(text)
    return [
        Lifecycle(
            variable=variable,
            events=tuple(lifecycle_events(text, variable, lines)),
            scope=find_scope(scope_tree, variable.offset),
        )
        for variable in variables
    ]


def find_unusual_patterns(lifecycles: List[Lifecycle]) -> List[Variable]:
    """Variables that are declared or assigned but never read."""
    return [lifecycle.variable for lifecycle in lifecycles if lifecycle.is_unusual]

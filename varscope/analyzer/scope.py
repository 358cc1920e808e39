"""Approximate lexical scope reconstruction and shadow detection.

Scopes are rebuilt from brace pairs and ``function`` signatures over raw text,
without a parser. Braces inside strings, comments or template literals can
desynchronise the brace stack; the builder never fails because of that, it
just produces a less accurate tree.
"""
import dataclasses
import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .references import LineIndex
from .scanner import Variable

logger = logging.getLogger(__name__)

SCOPE_KINDS = ('global', 'function', 'block')

# function name?(params) {   also anonymous, generator and TS return types
_FUNCTION_SIGNATURE = re.compile(
    r'\bfunction\b\s*\*?\s*([A-Za-z_$][A-Za-z0-9_$]*)?\s*\([^)]*\)\s*(?::[^{;=]*)?\{',
    re.ASCII,
)


@dataclass(eq=False)
class Scope:
    """A lexical region of a document. Equality is identity."""
    kind: str  # global, function, block
    start_line: int  # 1-based, inclusive
    end_line: int  # 1-based, inclusive
    start_offset: int
    end_offset: int
    name: Optional[str] = None
    parent: Optional['Scope'] = field(default=None, repr=False)
    children: List['Scope'] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if self.kind not in SCOPE_KINDS:
            raise ValueError(f"Unknown scope kind {self.kind!r}, expected one of {SCOPE_KINDS}")

    @property
    def depth(self) -> int:
        """Number of parent hops to the root."""
        depth = 0
        current = self.parent
        while current is not None:
            depth += 1
            current = current.parent
        return depth

    def contains_offset(self, offset: int) -> bool:
        return self.start_offset <= offset <= self.end_offset

    def contains(self, other: 'Scope') -> bool:
        return self.start_offset <= other.start_offset and other.end_offset <= self.end_offset

    def is_descendant_of(self, other: 'Scope') -> bool:
        current = self.parent
        while current is not None:
            if current is other:
                return True
            current = current.parent
        return False

    def walk(self) -> Iterator['Scope']:
        """Yield this scope and all nested scopes in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class ScopedVariable:
    """A variable together with its scope and shadowing annotation.

    ``shadowed_by`` lists deeper declarations of the same name that hide this
    one (innermost first); ``shadows`` is the innermost of them, the
    declaration this one is hidden by.
    """
    variable: Variable
    scope: Scope
    is_shadowed: bool = False
    shadowed_by: Tuple[Variable, ...] = ()
    shadows: Optional[Variable] = None

    @property
    def name(self) -> str:
        return self.variable.name

    @property
    def depth(self) -> int:
        return self.scope.depth


def _match_braces(text: str) -> List[Tuple[int, int]]:
    """Pair up '{' and '}' offsets with a stack.

    Returns:
        (open_offset, close_offset) pairs in closing order
    """
    stack = []
    pairs = []
    for offset, char in enumerate(text):
        if char == '{':
            stack.append(offset)
        elif char == '}':
            if not stack:
                logger.debug("Unmatched '}' at offset %d skipped", offset)
                continue
            pairs.append((stack.pop(), offset))
    if stack:
        logger.debug("%d unclosed '{' left on the brace stack", len(stack))
    return pairs


def _link(root: Scope, scopes: List[Scope]) -> None:
    """Attach each scope to the smallest scope fully containing it."""
    scopes.sort(key=lambda scope: (scope.start_offset, -scope.end_offset))
    stack = [root]
    for scope in scopes:
        # Partial overlaps climb to the nearest ancestor that fully contains
        while len(stack) > 1 and not stack[-1].contains(scope):
            stack.pop()
        parent = stack[-1]
        scope.parent = parent
        parent.children.append(scope)
        stack.append(scope)


def build_scope_tree(text: str, min_block_span: int = 2) -> Scope:
    """Reconstruct an approximate scope tree.

    Brace pairs opened by a ``function`` signature become function scopes
    (from the keyword to the closing brace). Other brace pairs become block
    scopes when they span at least ``min_block_span`` lines; shorter pairs are
    assumed to be object literals and dropped.

    Args:
        text: Document text
        min_block_span: Minimum end_line - start_line for a block scope

    Returns:
        Root global scope spanning the whole document
    """
    lines = LineIndex(text)
    root = Scope(
        kind='global',
        start_line=1,
        end_line=lines.line_count,
        start_offset=0,
        end_offset=len(text),
    )

    pairs = _match_braces(text)
    close_by_open: Dict[int, int] = dict(pairs)
    scopes = []
    function_braces = set()

    for match in _FUNCTION_SIGNATURE.finditer(text):
        open_offset = match.end() - 1
        close_offset = close_by_open.get(open_offset)
        if close_offset is None:
            logger.debug("Function signature at offset %d has no closing brace", match.start())
            continue
        function_braces.add(open_offset)
        scopes.append(Scope(
            kind='function',
            start_line=lines.line_of(match.start()),
            end_line=lines.line_of(close_offset),
            start_offset=match.start(),
            end_offset=close_offset,
            name=match.group(1),
        ))

    for open_offset, close_offset in pairs:
        if open_offset in function_braces:
            continue
        start_line = lines.line_of(open_offset)
        end_line = lines.line_of(close_offset)
        if end_line - start_line < min_block_span:
            continue
        scopes.append(Scope(
            kind='block',
            start_line=start_line,
            end_line=end_line,
            start_offset=open_offset,
            end_offset=close_offset,
        ))

    _link(root, scopes)
    return root


def find_scope(root: Scope, offset: int) -> Scope:
    """Return the innermost scope containing an offset."""
    current = root
    while True:
        for child in current.children:
            if child.contains_offset(offset):
                current = child
                break
        else:
            return current


def _hides(inner: ScopedVariable, outer: ScopedVariable) -> bool:
    """True if inner's declaration hides outer: inner's scope is nested in outer's.

    Declaration order does not matter; hoisted ``var`` and function-level
    bindings hide an outer name for the whole nested scope.
    """
    return inner.scope.is_descendant_of(outer.scope)


def detect_shadowing(scoped_variables: List[ScopedVariable]) -> List[ScopedVariable]:
    """Annotate same-named variables with shadowing relationships.

    Within a name group, a declaration is shadowed by every same-named
    declaration in a scope nested inside its own. ``shadowed_by`` lists those
    hiders deepest first and ``shadows`` is the deepest of them. Inputs are
    not modified; annotated copies are returned in input order. Variables in
    disjoint or sibling scopes never shadow each other.

    Args:
        scoped_variables: Variables with their scopes

    Returns:
        New ScopedVariable records carrying is_shadowed/shadowed_by/shadows
    """
    groups: Dict[str, List[int]] = defaultdict(list)
    for index, scoped in enumerate(scoped_variables):
        groups[scoped.name].append(index)

    result = [
        dataclasses.replace(scoped, is_shadowed=False, shadowed_by=(), shadows=None)
        for scoped in scoped_variables
    ]

    for indices in groups.values():
        if len(indices) < 2:
            continue

        # Deepest first; equal depth falls back to declaration order
        ranked = sorted(
            indices,
            key=lambda i: (-scoped_variables[i].depth, scoped_variables[i].variable.offset),
        )

        for index in indices:
            current = scoped_variables[index]
            hidden_by = tuple(
                scoped_variables[other].variable for other in ranked
                if other != index and _hides(scoped_variables[other], current)
            )
            if hidden_by:
                result[index] = dataclasses.replace(
                    result[index],
                    is_shadowed=True,
                    shadowed_by=hidden_by,
                    shadows=hidden_by[0],
                )

    return result


def analyze_scopes(text: str, variables: List[Variable],
                   scope_tree: Optional[Scope] = None,
                   min_block_span: int = 2) -> List[ScopedVariable]:
    """Assign each variable to its innermost scope and detect shadowing.

    Args:
        text: Document text
        variables: Variables scanned from text
        scope_tree: Prebuilt tree for text; built when omitted
        min_block_span: Passed to build_scope_tree when building

    Returns:
        ScopedVariable records in input order
    """
    if scope_tree is None:
        scope_tree = build_scope_tree(text, min_block_span)
    scoped = [
        ScopedVariable(variable=variable, scope=find_scope(scope_tree, variable.offset))
        for variable in variables
    ]
    return detect_shadowing(scoped)


def resolve_binding(scoped_variables: List[ScopedVariable], name: str,
                    offset: int) -> Optional[ScopedVariable]:
    """Find the declaration a reference at ``offset`` most likely binds to.

    Picks the same-named declaration in the deepest scope containing the
    offset; on ties, declarations made before the offset win, latest first.
    Scope-based and approximate.
    """
    candidates = [
        scoped for scoped in scoped_variables
        if scoped.name == name and scoped.scope.contains_offset(offset)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda s: (s.depth, s.variable.offset <= offset, s.variable.offset))

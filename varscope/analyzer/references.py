"""Whole-word reference finding shared by every analysis pass.

Every pass that needs to locate a variable name in source text goes through
this module so that escaping, word boundaries and position arithmetic are
computed one way only.
"""
import bisect
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

DECLARATION_KEYWORDS = ('const', 'let', 'var')

# Characters with special meaning inside a regular expression
_METACHARACTERS = re.compile(r'[.*+?^${}()|[\]\\]')

# Declaration keyword immediately before a name (modulo whitespace)
_KEYWORD_BEFORE = re.compile(r'(?<![\w$])(?:const|let|var)\s+$', re.ASCII)

# Plain assignment right after a name: '=' not followed by '=' or '>'
_ASSIGNMENT_AFTER = re.compile(r'\s*=(?![=>])')


@dataclass(frozen=True)
class Reference:
    """A single occurrence of a variable name in a document."""
    line: int  # 1-based
    column: int  # 1-based
    offset: int  # 0-based character offset of the match
    context: str  # fixed-width window around the match
    kind: str  # 'declaration', 'assignment' or 'read'


def escape_name(name: str) -> str:
    """Escape regex metacharacters in an identifier.

    Args:
        name: Identifier text (may contain '$')

    Returns:
        Name safe to embed in a pattern
    """
    return _METACHARACTERS.sub(lambda m: '\\' + m.group(0), name)


@lru_cache(maxsize=1024)
def word_pattern(name: str) -> re.Pattern:
    """Compile a whole-word pattern for a name.

    Boundaries treat '$' as an identifier character so names such as
    ``$el`` are found, and ``x`` is not matched inside ``$x``.
    """
    return re.compile(rf'(?<![\w$]){escape_name(name)}(?![\w$])', re.ASCII)


def contains_word(text: str, name: str) -> bool:
    """Check whether a name occurs as a whole word in text."""
    return word_pattern(name).search(text) is not None


class LineIndex:
    """Offset to line/column lookups for one document.

    Built once per document and shared by every pass that needs positions,
    so each lookup is a binary search instead of a rescan of the text.
    """

    def __init__(self, text: str):
        self.text = text
        self.newlines = [i for i, char in enumerate(text) if char == '\n']

    @property
    def line_count(self) -> int:
        return len(self.newlines) + 1

    def line_of(self, offset: int) -> int:
        """1-based line holding an offset. A newline belongs to the line it ends."""
        return bisect.bisect_left(self.newlines, offset) + 1

    def line_start(self, line: int) -> int:
        """Offset of the first character of a 1-based line."""
        return 0 if line <= 1 else self.newlines[line - 2] + 1

    def position(self, offset: int) -> Tuple[int, int]:
        """Convert a character offset to a 1-based (line, column) pair.

        Args:
            offset: 0-based character offset

        Returns:
            Tuple of (line, column), both 1-based
        """
        line = self.line_of(offset)
        return line, offset - self.line_start(line) + 1

    def line_text(self, line: int) -> str:
        """Text of a 1-based line without its newline ('' when out of range)."""
        if not 1 <= line <= self.line_count:
            return ''
        end = self.newlines[line - 1] if line <= len(self.newlines) else len(self.text)
        return self.text[self.line_start(line):end]


def statement_end(text: str, start: int) -> int:
    """Offset of the first ';' or newline at or after start, else end of text."""
    ends = [i for i in (text.find(';', start), text.find('\n', start)) if i != -1]
    return min(ends) if ends else len(text)


def classify_occurrence(text: str, start: int, end: int) -> str:
    """Classify a name occurrence as declaration, assignment or read.

    Args:
        text: Document text
        start: Offset where the name starts
        end: Offset just past the name

    Returns:
        'declaration', 'assignment' or 'read'
    """
    line_start = text.rfind('\n', 0, start) + 1
    if _KEYWORD_BEFORE.search(text, line_start, start):
        return 'declaration'
    if _ASSIGNMENT_AFTER.match(text, end):
        return 'assignment'
    return 'read'


def find_references(text: str, name: str, context_width: int = 50,
                    lines: Optional[LineIndex] = None) -> List[Reference]:
    """Find every whole-word occurrence of a name.

    The declaration itself is included; callers that want post-declaration
    use only filter it out by position.

    Args:
        text: Document text
        name: Variable name to search for
        context_width: Characters of context kept on each side of a match
        lines: Prebuilt LineIndex for text; built when omitted

    Returns:
        References in ascending offset order
    """
    if not name:
        return []

    if lines is None:
        lines = LineIndex(text)

    references = []
    for match in word_pattern(name).finditer(text):
        start, end = match.span()
        line, column = lines.position(start)
        context = text[max(0, start - context_width):min(len(text), end + context_width)]
        references.append(Reference(
            line=line,
            column=column,
            offset=start,
            context=context,
            kind=classify_occurrence(text, start, end),
        ))
    return references

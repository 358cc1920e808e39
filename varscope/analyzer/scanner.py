"""Declaration scanner for JavaScript/TypeScript source text.

Finds ``const``/``let``/``var`` declarations with lexical pattern matching and
infers a coarse value type from the initializer. This is not a parser: strings,
comments and regex literals are not masked, and only the first name of a
multi-declarator statement (``let a = 1, b = 2``) is captured.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .references import DECLARATION_KEYWORDS, LineIndex, statement_end

logger = logging.getLogger(__name__)

VALUE_TYPES = (
    'string', 'number', 'boolean', 'array', 'object', 'function',
    'null', 'undefined', 'instance', 'unknown',
)

# Characters allowed directly before a declaration keyword
_ALLOWED_BEFORE_KEYWORD = {' ', '\t', '\n', ';', '{'}

_DECLARATION_PATTERNS = {
    kind: re.compile(rf'\b({kind})\s+([A-Za-z_$][A-Za-z0-9_$]*)', re.ASCII)
    for kind in DECLARATION_KEYWORDS
}

# Literals accepted by JavaScript's Number() after trimming
_NUMERIC_LITERAL = re.compile(
    r'[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|Infinity)'
    r'|0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+'
)
_FUNCTION_START = re.compile(r'(?:async\s+)?function\b')
_CONSTRUCTOR_CALL = re.compile(r'new\s+([A-Za-z_$][A-Za-z0-9_$]*)', re.ASCII)


@dataclass(frozen=True)
class Variable:
    """A declared binding found by the scanner."""
    name: str
    kind: str  # const, let, var
    inferred_type: str  # one of VALUE_TYPES
    line: int  # 1-based line of the identifier
    column: int  # 1-based column of the identifier
    offset: int  # 0-based character offset of the identifier
    file_path: str = ""
    raw_value: Optional[str] = None  # full initializer text, never truncated
    instance_of: Optional[str] = None  # constructor name for 'instance' types

    @property
    def key(self) -> Tuple[str, str, int]:
        """Identity of this declaration: (file_path, name, line)."""
        return (self.file_path, self.name, self.line)

    @property
    def type_label(self) -> str:
        """Human-readable type, e.g. 'number' or 'Map' for ``new Map()``."""
        return self.instance_of or self.inferred_type

    def display_value(self, width: int = 50) -> str:
        """Initializer text shortened for display."""
        if self.raw_value is None:
            return ''
        if len(self.raw_value) <= width:
            return self.raw_value
        return self.raw_value[:max(width - 3, 0)] + '...'


def classify_value(value: str) -> Tuple[str, Optional[str]]:
    """Classify initializer text into a coarse value type.

    Args:
        value: Initializer text with surrounding whitespace and comments removed

    Returns:
        Tuple of (inferred_type, constructor name or None)
    """
    if value.startswith(('"', "'", '`')):
        return 'string', None
    if value.startswith('['):
        return 'array', None
    if value.startswith('{'):
        return 'object', None
    if value in ('true', 'false'):
        return 'boolean', None
    if value == 'null':
        return 'null', None
    if value == 'undefined':
        return 'undefined', None
    if _NUMERIC_LITERAL.fullmatch(value):
        return 'number', None
    if _FUNCTION_START.match(value) or value.startswith('(') or '=>' in value:
        return 'function', None
    if value.startswith('new ') or value.startswith('new\t'):
        constructor = _CONSTRUCTOR_CALL.match(value)
        return 'instance', constructor.group(1) if constructor else None
    return 'unknown', None


def infer_type(text: str, name_end: int) -> Tuple[str, Optional[str], Optional[str]]:
    """Infer the value type of a declaration from its initializer.

    The initializer is the text after the first '=' in the declaration
    statement, up to ';', newline or end of text, minus a trailing ``//``
    comment.

    Args:
        text: Document text
        name_end: Offset just past the declared identifier

    Returns:
        Tuple of (inferred_type, instance_of, raw_value); raw_value is None
        when the declaration has no initializer
    """
    end = statement_end(text, name_end)
    assignment = text.find('=', name_end, end)
    if assignment == -1:
        return 'unknown', None, None

    value = text[assignment + 1:end]
    comment = value.find('//')
    if comment != -1:
        value = value[:comment]
    value = value.strip()

    inferred, constructor = classify_value(value)
    return inferred, constructor, value


def scan_variables(text: str, file_path: str = "") -> List[Variable]:
    """Find every const/let/var declaration in a document.

    Args:
        text: Document text
        file_path: Owning file, stored on each Variable

    Returns:
        Variables in document order
    """
    lines = LineIndex(text)
    found = []
    for kind, pattern in _DECLARATION_PATTERNS.items():
        for match in pattern.finditer(text):
            start = match.start()
            if start > 0 and text[start - 1] not in _ALLOWED_BEFORE_KEYWORD:
                # Member access, identifier suffix or mid-expression: not a declaration
                logger.debug("Skipping %s match at offset %d (preceded by %r)",
                             kind, start, text[start - 1])
                continue

            name = match.group(2)
            name_start = match.start(2)
            line, column = lines.position(name_start)
            inferred, constructor, raw_value = infer_type(text, match.end(2))

            found.append(Variable(
                name=name,
                kind=kind,
                inferred_type=inferred,
                line=line,
                column=column,
                offset=name_start,
                file_path=file_path,
                raw_value=raw_value,
                instance_of=constructor,
            ))

    found.sort(key=lambda variable: variable.offset)
    return found

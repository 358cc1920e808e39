"""Usage classification: reference counts, unused and write-only variables."""
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .references import LineIndex, Reference, find_references, word_pattern
from .scanner import Variable

# '=', '+=', '-=', '*=', '/=', '%=' but not '==', '===', '!=', '<=', '>=', '=>'
_ASSIGNMENT_OPERATOR = re.compile(r'(?<![=!<>])[+\-*/%]?=(?![=>])')


@dataclass(frozen=True)
class UsageInfo:
    """Usage annotation for one declaration."""
    variable: Variable
    references: Tuple[Reference, ...]  # declaration excluded
    is_write_only: bool

    @property
    def usage_count(self) -> int:
        return len(self.references)

    @property
    def is_unused(self) -> bool:
        return self.usage_count == 0

    @property
    def status(self) -> str:
        if self.is_unused:
            return 'UNUSED'
        if self.is_write_only:
            return 'WRITE-ONLY'
        return 'ACTIVE'


@dataclass
class UsageStatistics:
    """Aggregate usage figures for a set of declarations."""
    total_variables: int = 0
    unused_variables: int = 0
    write_only_variables: int = 0
    average_usage: float = 0.0
    max_usage: int = 0
    min_usage: int = 0
    variable_types: Dict[str, int] = field(default_factory=dict)
    declaration_kinds: Dict[str, int] = field(default_factory=dict)
    most_used: List[UsageInfo] = field(default_factory=list)
    least_used: List[UsageInfo] = field(default_factory=list)


def is_assignment_line(line: str, name: str) -> bool:
    """Check whether a line assigns to a name.

    True when the line holds an assignment operator with the name occurring
    before it. Comparisons and arrows do not count.
    """
    pattern = word_pattern(name)
    for operator in _ASSIGNMENT_OPERATOR.finditer(line):
        if pattern.search(line, 0, operator.start()):
            return True
    return False


def classify_usage(text: str, variable: Variable, context_width: int = 50,
                   lines: Optional[LineIndex] = None) -> UsageInfo:
    """Classify how a single variable is used.

    References at the declaration position are excluded, so ``usage_count``
    counts post-declaration occurrences only.

    Args:
        text: Document text
        variable: Declaration to classify
        context_width: Context characters kept on each side of a reference
        lines: Prebuilt LineIndex for text; built when omitted

    Returns:
        UsageInfo for the variable
    """
    if lines is None:
        lines = LineIndex(text)
    references = tuple(
        ref for ref in find_references(text, variable.name, context_width, lines)
        if ref.offset != variable.offset
    )

    is_write_only = bool(references) and all(
        is_assignment_line(lines.line_text(ref.line), variable.name)
        for ref in references
    )

    return UsageInfo(variable=variable, references=references, is_write_only=is_write_only)


def analyze_usage(text: str, variables: List[Variable], context_width: int = 50) -> List[UsageInfo]:
    """Classify every variable in a document, preserving input order."""
    lines = LineIndex(text)
    return [classify_usage(text, variable, context_width, lines) for variable in variables]


def usage_statistics(usage: List[UsageInfo], top: int = 5) -> UsageStatistics:
    """Summarise usage across declarations.

    Args:
        usage: Results of analyze_usage
        top: How many entries to keep in the most/least used lists

    Returns:
        UsageStatistics (all zero for an empty input)
    """
    if not usage:
        return UsageStatistics()

    counts = [info.usage_count for info in usage]
    used = [info for info in usage if not info.is_unused]

    return UsageStatistics(
        total_variables=len(usage),
        unused_variables=sum(1 for info in usage if info.is_unused),
        write_only_variables=sum(1 for info in usage if info.is_write_only),
        average_usage=sum(counts) / len(counts),
        max_usage=max(counts),
        min_usage=min(counts),
        variable_types=dict(Counter(info.variable.type_label for info in usage)),
        declaration_kinds=dict(Counter(info.variable.kind for info in usage)),
        # sorted() is stable: ties keep document order
        most_used=sorted(used, key=lambda info: -info.usage_count)[:top],
        least_used=sorted(used, key=lambda info: info.usage_count)[:top],
    )

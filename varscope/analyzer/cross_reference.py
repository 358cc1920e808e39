"""Cross-file reference tracking.

Looks up every declared name in every document. Entries are keyed by name,
so the first declaration seen for a name represents all declarations of it.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .references import LineIndex, find_references
from .scanner import Variable


@dataclass(frozen=True)
class FileReference:
    """An occurrence of a name in a specific file."""
    file_path: str
    line: int
    column: int


@dataclass
class CrossReference:
    """All occurrences of one name across a set of documents."""
    variable: Variable
    references: List[FileReference] = field(default_factory=list)


CrossReferenceMap = Dict[str, CrossReference]


def track_cross_references(documents: Mapping[str, str],
                           variables_by_file: Mapping[str, List[Variable]]) -> CrossReferenceMap:
    """Find where each declared name occurs in every document.

    Args:
        documents: file path -> document text
        variables_by_file: file path -> variables declared in that file

    Returns:
        Name-keyed map; references include declarations
    """
    xrefs: CrossReferenceMap = {}
    for variables in variables_by_file.values():
        for variable in variables:
            if variable.name not in xrefs:
                xrefs[variable.name] = CrossReference(variable=variable)

    for file_path, text in documents.items():
        lines = LineIndex(text)
        for name, entry in xrefs.items():
            entry.references.extend(
                FileReference(file_path=file_path, line=ref.line, column=ref.column)
                for ref in find_references(text, name, lines=lines)
            )

    return xrefs


def find_unused_across(xrefs: CrossReferenceMap) -> List[Variable]:
    """Names that occur at most once (their declaration) in all documents."""
    return [entry.variable for entry in xrefs.values() if len(entry.references) <= 1]


def find_hotspots(xrefs: CrossReferenceMap, threshold: int = 10) -> List[Variable]:
    """Names referenced at least ``threshold`` times."""
    return [entry.variable for entry in xrefs.values() if len(entry.references) >= threshold]


def files_referencing(entry: CrossReference) -> List[str]:
    """Distinct files that mention a name, in first-seen order."""
    return list(dict.fromkeys(ref.file_path for ref in entry.references))

"""Per-file analysis pipeline and multi-file workspace scanning.

Each file is analysed independently; results are merged into a
``{file_path: FileAnalysis}`` mapping. Cancellation is cooperative and only
checked between files.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from .dependency import DependencyGraph, build_dependency_graph, find_circular_dependencies
from .lifecycle import Lifecycle, track_lifecycle
from .scanner import Variable, scan_variables
from .scope import Scope, ScopedVariable, analyze_scopes, build_scope_tree
from .usage import UsageInfo, analyze_usage

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ['**/*.js', '**/*.jsx', '**/*.ts', '**/*.tsx']

EXCLUDED_DIRS = {
    'node_modules', 'bower_components', 'vendor', 'third_party',
    'dist', 'build', 'out', 'coverage', '.next', '.nuxt',
    '.git', '.hg', '.svn', '.venv', 'venv', '__pycache__',
}


@dataclass
class FileAnalysis:
    """Every analysis result for one document."""
    file_path: str
    variables: List[Variable]
    usage: List[UsageInfo]
    scope_tree: Scope
    scoped: List[ScopedVariable]
    lifecycles: List[Lifecycle]
    dependencies: Optional[DependencyGraph] = None  # None when skipped for size
    cycles: List[List[str]] = field(default_factory=list)


def analyze_source(text: str, file_path: str = "", *,
                   context_width: int = 50,
                   min_block_span: int = 2,
                   max_dependency_variables: Optional[int] = None) -> FileAnalysis:
    """Run the full pipeline over one document.

    The scope tree is built once and shared by the scope and lifecycle passes.

    Args:
        text: Document text
        file_path: Path recorded on every Variable
        context_width: Reference context width
        min_block_span: Minimum line span for block scopes
        max_dependency_variables: Skip the quadratic dependency pass above
            this many variables (None or 0 means never skip)

    Returns:
        FileAnalysis for the document
    """
    variables = scan_variables(text, file_path)
    scope_tree = build_scope_tree(text, min_block_span)

    dependencies = None
    cycles: List[List[str]] = []
    if not max_dependency_variables or len(variables) <= max_dependency_variables:
        dependencies = build_dependency_graph(text, variables)
        cycles = find_circular_dependencies(dependencies)
    else:
        logger.warning("Skipping dependency analysis for %s: %d variables exceeds limit of %d",
                       file_path or '<text>', len(variables), max_dependency_variables)

    return FileAnalysis(
        file_path=file_path,
        variables=variables,
        usage=analyze_usage(text, variables, context_width),
        scope_tree=scope_tree,
        scoped=analyze_scopes(text, variables, scope_tree),
        lifecycles=track_lifecycle(text, variables, scope_tree),
        dependencies=dependencies,
        cycles=cycles,
    )


def is_excluded(path: Path, excluded_dirs: Iterable[str] = EXCLUDED_DIRS) -> bool:
    """Check whether any path component is an excluded directory."""
    excluded = set(excluded_dirs)
    return any(part in excluded for part in path.parts)


def discover_files(root: str | Path, patterns: Optional[List[str]] = None,
                   excluded_dirs: Iterable[str] = EXCLUDED_DIRS) -> List[Path]:
    """Find source files under a root directory.

    Args:
        root: Directory to search
        patterns: Glob patterns relative to root (defaults to JS/TS files)
        excluded_dirs: Directory names to skip anywhere in the tree

    Returns:
        Sorted list of matching file paths
    """
    root = Path(root)
    excluded = set(excluded_dirs)
    files: Set[Path] = set()
    for pattern in patterns or DEFAULT_PATTERNS:
        for file_path in root.glob(pattern):
            if file_path.is_file() and not is_excluded(file_path.relative_to(root), excluded):
                files.add(file_path)
    return sorted(files)


def read_source(file_path: Path) -> Optional[str]:
    """Read a source file as UTF-8, or None if it cannot be read."""
    try:
        return file_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable file %s: %s", file_path, e)
        return None


class WorkspaceScanner:
    """Analyse every matching file under a directory, one file at a time."""

    def __init__(self, patterns: Optional[List[str]] = None,
                 excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
                 context_width: int = 50,
                 min_block_span: int = 2,
                 max_dependency_variables: Optional[int] = 500):
        """Initialize the scanner.

        Args:
            patterns: Glob patterns for source files
            excluded_dirs: Directory names never descended into
            context_width: Reference context width
            min_block_span: Minimum line span for block scopes
            max_dependency_variables: Per-file guard for the dependency pass
        """
        self.patterns = patterns or list(DEFAULT_PATTERNS)
        self.excluded_dirs = set(excluded_dirs)
        self.context_width = context_width
        self.min_block_span = min_block_span
        self.max_dependency_variables = max_dependency_variables
        self.sources: Dict[str, str] = {}

    def analyze_file(self, file_path: str | Path) -> Optional[FileAnalysis]:
        """Read and analyse a single file; None if it cannot be read."""
        file_path = Path(file_path)
        text = read_source(file_path)
        if text is None:
            return None
        self.sources[str(file_path)] = text
        return analyze_source(
            text,
            str(file_path),
            context_width=self.context_width,
            min_block_span=self.min_block_span,
            max_dependency_variables=self.max_dependency_variables,
        )

    def scan(self, root: str | Path,
             should_cancel: Optional[Callable[[], bool]] = None,
             on_file: Optional[Callable[[Path], None]] = None) -> Dict[str, FileAnalysis]:
        """Analyse a file or every matching file under a directory.

        Args:
            root: File or directory to analyse
            should_cancel: Polled between files; True stops the scan
            on_file: Called after each file is processed (progress reporting)

        Returns:
            Mapping of file path to FileAnalysis for the files processed
        """
        root = Path(root)
        files = [root] if root.is_file() else discover_files(root, self.patterns, self.excluded_dirs)
        logger.info("Analysing %d file(s) under %s", len(files), root)

        results: Dict[str, FileAnalysis] = {}
        for file_path in files:
            if should_cancel is not None and should_cancel():
                logger.info("Scan cancelled after %d of %d file(s)", len(results), len(files))
                break
            analysis = self.analyze_file(file_path)
            if analysis is not None:
                results[str(file_path)] = analysis
            if on_file is not None:
                on_file(file_path)

        return results

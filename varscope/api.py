"""Public analysis API.

Every function takes document text plus previously computed structures and
returns plain result objects. Nothing here touches the filesystem or a UI.
"""
from .analyzer.dependency import (
    DependencyGraph,
    DependencyNode,
    build_dependency_graph,
    find_circular_dependencies,
)
from .analyzer.lifecycle import Lifecycle, LifecycleEvent, track_lifecycle
from .analyzer.references import Reference, find_references
from .analyzer.scanner import Variable, scan_variables
from .analyzer.scope import Scope, ScopedVariable, analyze_scopes, build_scope_tree, detect_shadowing
from .analyzer.usage import UsageInfo, analyze_usage
from .analyzer.workspace import FileAnalysis, analyze_source

__all__ = [
    'DependencyGraph', 'DependencyNode', 'FileAnalysis', 'Lifecycle',
    'LifecycleEvent', 'Reference', 'Scope', 'ScopedVariable', 'UsageInfo',
    'Variable',
    'scan_variables', 'find_references', 'analyze_usage', 'build_scope_tree',
    'analyze_scopes', 'detect_shadowing', 'build_dependency_graph',
    'find_circular_dependencies', 'track_lifecycle', 'analyze_source',
]

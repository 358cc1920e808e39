"""JSON round trip for analysis results.

Scopes are written once as a nested tree; scoped variables and lifecycles
point into it by pre-order index. The dependency graph is stored as NetworkX
node-link data.
"""
import dataclasses
import json
from typing import Dict, List, Optional

import networkx as nx

from .dependency import DependencyGraph, DependencyNode, to_digraph
from .lifecycle import Lifecycle, LifecycleEvent
from .references import Reference
from .scanner import Variable
from .scope import Scope, ScopedVariable
from .usage import UsageInfo
from .workspace import FileAnalysis

FORMAT_VERSION = "1.0"


def variable_to_dict(variable: Variable) -> dict:
    return dataclasses.asdict(variable)


def variable_from_dict(data: dict) -> Variable:
    return Variable(**data)


def reference_to_dict(reference: Reference) -> dict:
    return dataclasses.asdict(reference)


def reference_from_dict(data: dict) -> Reference:
    return Reference(**data)


def usage_to_dict(info: UsageInfo) -> dict:
    return {
        'variable': variable_to_dict(info.variable),
        'references': [reference_to_dict(ref) for ref in info.references],
        'is_write_only': info.is_write_only,
        'usage_count': info.usage_count,
        'is_unused': info.is_unused,
    }


def usage_from_dict(data: dict) -> UsageInfo:
    return UsageInfo(
        variable=variable_from_dict(data['variable']),
        references=tuple(reference_from_dict(ref) for ref in data['references']),
        is_write_only=data['is_write_only'],
    )


def scope_to_dict(scope: Scope) -> dict:
    """Serialize a scope and its descendants."""
    return {
        'kind': scope.kind,
        'start_line': scope.start_line,
        'end_line': scope.end_line,
        'start_offset': scope.start_offset,
        'end_offset': scope.end_offset,
        'name': scope.name,
        'children': [scope_to_dict(child) for child in scope.children],
    }


def scope_from_dict(data: dict, parent: Optional[Scope] = None) -> Scope:
    """Rebuild a scope tree, restoring parent links."""
    scope = Scope(
        kind=data['kind'],
        start_line=data['start_line'],
        end_line=data['end_line'],
        start_offset=data['start_offset'],
        end_offset=data['end_offset'],
        name=data.get('name'),
        parent=parent,
    )
    scope.children = [scope_from_dict(child, scope) for child in data.get('children', [])]
    return scope


def _scope_index(root: Scope) -> Dict[int, int]:
    return {id(scope): index for index, scope in enumerate(root.walk())}


def scoped_variable_to_dict(scoped: ScopedVariable, scope_index: Dict[int, int]) -> dict:
    return {
        'variable': variable_to_dict(scoped.variable),
        'scope': scope_index[id(scoped.scope)],
        'is_shadowed': scoped.is_shadowed,
        'shadowed_by': [variable_to_dict(v) for v in scoped.shadowed_by],
        'shadows': variable_to_dict(scoped.shadows) if scoped.shadows else None,
    }


def scoped_variable_from_dict(data: dict, scopes: List[Scope]) -> ScopedVariable:
    return ScopedVariable(
        variable=variable_from_dict(data['variable']),
        scope=scopes[data['scope']],
        is_shadowed=data['is_shadowed'],
        shadowed_by=tuple(variable_from_dict(v) for v in data['shadowed_by']),
        shadows=variable_from_dict(data['shadows']) if data['shadows'] else None,
    )


def lifecycle_to_dict(lifecycle: Lifecycle, scope_index: Dict[int, int]) -> dict:
    return {
        'variable': variable_to_dict(lifecycle.variable),
        'events': [dataclasses.asdict(event) for event in lifecycle.events],
        'scope': scope_index[id(lifecycle.scope)],
    }


def lifecycle_from_dict(data: dict, scopes: List[Scope]) -> Lifecycle:
    return Lifecycle(
        variable=variable_from_dict(data['variable']),
        events=tuple(LifecycleEvent(**event) for event in data['events']),
        scope=scopes[data['scope']],
    )


def graph_to_dict(graph: DependencyGraph) -> dict:
    """Serialize a dependency graph as node-link data."""
    digraph = to_digraph(graph, node_attributes=lambda v: {'variable': variable_to_dict(v)})
    for name, node in graph.items():
        # Kept explicitly so dependents order survives the round trip
        digraph.nodes[name]['dependents'] = list(node.dependents)
    return nx.node_link_data(digraph, edges='links')


def graph_from_dict(data: dict) -> DependencyGraph:
    digraph = nx.node_link_graph(data, directed=True, edges='links')
    graph: DependencyGraph = {}
    for name, attributes in digraph.nodes(data=True):
        graph[name] = DependencyNode(
            variable=variable_from_dict(attributes['variable']),
            dependencies=list(digraph.successors(name)),
            dependents=list(attributes.get('dependents', [])),
        )
    return graph


def analysis_to_dict(analysis: FileAnalysis) -> dict:
    """Serialize every result for one file."""
    scope_index = _scope_index(analysis.scope_tree)
    return {
        'version': FORMAT_VERSION,
        'file_path': analysis.file_path,
        'variables': [variable_to_dict(v) for v in analysis.variables],
        'usage': [usage_to_dict(info) for info in analysis.usage],
        'scope_tree': scope_to_dict(analysis.scope_tree),
        'scoped': [scoped_variable_to_dict(s, scope_index) for s in analysis.scoped],
        'lifecycles': [lifecycle_to_dict(lc, scope_index) for lc in analysis.lifecycles],
        'dependencies': graph_to_dict(analysis.dependencies) if analysis.dependencies is not None else None,
        'cycles': analysis.cycles,
    }


def analysis_from_dict(data: dict) -> FileAnalysis:
    scope_tree = scope_from_dict(data['scope_tree'])
    scopes = list(scope_tree.walk())
    return FileAnalysis(
        file_path=data['file_path'],
        variables=[variable_from_dict(v) for v in data['variables']],
        usage=[usage_from_dict(info) for info in data['usage']],
        scope_tree=scope_tree,
        scoped=[scoped_variable_from_dict(s, scopes) for s in data['scoped']],
        lifecycles=[lifecycle_from_dict(lc, scopes) for lc in data['lifecycles']],
        dependencies=graph_from_dict(data['dependencies']) if data['dependencies'] is not None else None,
        cycles=[list(cycle) for cycle in data['cycles']],
    )


def dumps_analysis(analyses: Dict[str, FileAnalysis], indent: Optional[int] = 2) -> str:
    """Serialize a workspace result (file path -> FileAnalysis) to JSON."""
    payload = {
        'version': FORMAT_VERSION,
        'files': [analysis_to_dict(analysis) for analysis in analyses.values()],
    }
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def loads_analysis(document: str) -> Dict[str, FileAnalysis]:
    """Inverse of dumps_analysis."""
    payload = json.loads(document)
    analyses = {}
    for data in payload.get('files', []):
        analysis = analysis_from_dict(data)
        analyses[analysis.file_path] = analysis
    return analyses

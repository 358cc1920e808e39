"""Variable dependency graph built from declaration statements.

Edges are name-keyed: two declarations sharing a name share one node. This
mirrors how consumers look results up and is a known source of ambiguity when
the same name is declared in several scopes.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import networkx as nx

from .references import contains_word, statement_end
from .scanner import Variable


@dataclass
class DependencyNode:
    """Adjacency entry for one variable name."""
    variable: Variable
    dependencies: List[str] = field(default_factory=list)  # names this one reads at declaration
    dependents: List[str] = field(default_factory=list)  # names whose declaration reads this one


DependencyGraph = Dict[str, DependencyNode]


def declaration_statement(text: str, variable: Variable) -> str:
    """Text of a declaration from its identifier to the first ';', newline or end."""
    return text[variable.offset:statement_end(text, variable.offset)]


def build_dependency_graph(text: str, variables: List[Variable]) -> DependencyGraph:
    """Build the name-keyed dependency graph for one document.

    ``A`` depends on ``B`` when ``B`` appears as a whole word in ``A``'s
    declaration statement. Every ordered pair of distinct names is checked,
    which is quadratic in the number of variables.

    Args:
        text: Document text
        variables: Variables scanned from text

    Returns:
        Mapping of name to DependencyNode, in first-declaration order
    """
    graph: DependencyGraph = {}
    for variable in variables:
        graph.setdefault(variable.name, DependencyNode(variable=variable))

    for variable in variables:
        statement = declaration_statement(text, variable)
        for other_name in graph:
            if other_name == variable.name or not contains_word(statement, other_name):
                continue
            node = graph[variable.name]
            if other_name not in node.dependencies:
                node.dependencies.append(other_name)
            other = graph[other_name]
            if variable.name not in other.dependents:
                other.dependents.append(variable.name)

    return graph


def find_circular_dependencies(graph: DependencyGraph) -> List[List[str]]:
    """Report dependency cycles with a depth-first search.

    A node already visited by an earlier search is not explored again. When
    the search reaches a node on the current path, the path slice from that
    node is reported, closed by repeating the node.

    Args:
        graph: Result of build_dependency_graph

    Returns:
        Cycles such as ``['a', 'b', 'a']``
    """
    cycles = []
    visited = set()

    for start in graph:
        if start in visited:
            continue

        visited.add(start)
        path = [start]
        pending = [iter(graph[start].dependencies)]

        # Iterative DFS keeps deep chains clear of the recursion limit
        while pending:
            dependency = next(pending[-1], None)
            if dependency is None:
                pending.pop()
                path.pop()
                continue
            if dependency not in graph:
                continue
            if dependency not in visited:
                visited.add(dependency)
                path.append(dependency)
                pending.append(iter(graph[dependency].dependencies))
            elif dependency in path:
                cycle = path[path.index(dependency):]
                cycle.append(dependency)
                cycles.append(cycle)

    return cycles


def to_digraph(graph: DependencyGraph,
               node_attributes: Optional[Callable[[Variable], dict]] = None) -> nx.DiGraph:
    """Convert a dependency graph to a NetworkX DiGraph.

    Edge (A, B) means "A depends on B".

    Args:
        graph: Result of build_dependency_graph
        node_attributes: Optional callable producing node attributes from
            the node's Variable

    Returns:
        NetworkX DiGraph with one node per variable name
    """
    digraph = nx.DiGraph()
    for name, node in graph.items():
        attributes = node_attributes(node.variable) if node_attributes else {}
        digraph.add_node(name, **attributes)
    for name, node in graph.items():
        for dependency in node.dependencies:
            digraph.add_edge(name, dependency)
    return digraph


def initialization_order(graph: DependencyGraph) -> Optional[List[str]]:
    """Order names so every variable follows its dependencies.

    Returns:
        Names in dependency-first order, or None when the graph has a cycle
    """
    digraph = to_digraph(graph)
    if not nx.is_directed_acyclic_graph(digraph):
        return None
    return list(reversed(list(nx.topological_sort(digraph))))

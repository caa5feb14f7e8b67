"""
Node Hierarchy
==============

Structural view of nodes organised by `part_of` links.

A link `source part_of target` makes target the parent of source. The
hierarchy is a directed graph over node ids only; part_of links that
touch non-node entities are ignored here.

ALLOWED:
- Parent / child lookup
- Ancestry and descendant traversal (cycle-safe)
- Root detection
- Cycle detection for a prospective link

FORBIDDEN:
- Ranking or weighting nodes by position in the hierarchy
- Mutating State (createLink owns that)
"""

from __future__ import annotations
from typing import List, Optional

import networkx as nx

from ..contracts.base import OK, ErrorCode, Result, fail
from ..contracts.entities import Node, State
from ..contracts.ontology import LinkRelation, parse_enum


def _part_of_graph(state: State) -> nx.DiGraph:
    """Edge child -> parent for every part_of link between two nodes."""
    graph = nx.DiGraph()
    node_ids = [n.id for n in state.nodes]
    graph.add_nodes_from(node_ids)
    for link in state.links:
        if link.relation != LinkRelation.PART_OF:
            continue
        if link.source_id in graph and link.target_id in graph:
            graph.add_edge(link.source_id, link.target_id)
    return graph


def _nodes_for(state: State, ids) -> List[Node]:
    by_id = {n.id: n for n in state.nodes}
    return [by_id[i] for i in ids if i in by_id]


def get_node_by_id(state: State, node_id: str) -> Optional[Node]:
    return next((n for n in state.nodes if n.id == node_id), None)


def get_parent_nodes(state: State, node_id: str) -> List[Node]:
    graph = _part_of_graph(state)
    if node_id not in graph:
        return []
    return _nodes_for(state, graph.successors(node_id))


def get_child_nodes(state: State, node_id: str) -> List[Node]:
    graph = _part_of_graph(state)
    if node_id not in graph:
        return []
    return _nodes_for(state, graph.predecessors(node_id))


def get_node_ancestry(state: State, node_id: str) -> List[Node]:
    """All ancestors, nearest first. Each node appears once even with cycles."""
    graph = _part_of_graph(state)
    if node_id not in graph:
        return []
    ordered = [n for n in nx.bfs_tree(graph, node_id) if n != node_id]
    return _nodes_for(state, ordered)


def get_node_descendants(state: State, node_id: str) -> List[Node]:
    """All descendants, nearest first. Each node appears once even with cycles."""
    graph = _part_of_graph(state)
    if node_id not in graph:
        return []
    ordered = [n for n in nx.bfs_tree(graph, node_id, reverse=True) if n != node_id]
    return _nodes_for(state, ordered)


def get_root_nodes(state: State) -> List[Node]:
    """Nodes with no outgoing part_of link."""
    graph = _part_of_graph(state)
    return [n for n in state.nodes if graph.out_degree(n.id) == 0]


def would_create_cycle(state: State, child_id: str, parent_id: str) -> bool:
    """True when linking child part_of parent closes a loop."""
    if child_id == parent_id:
        return True
    graph = _part_of_graph(state)
    if child_id not in graph or parent_id not in graph:
        return False
    # The parent already sits below the child
    return nx.has_path(graph, parent_id, child_id)


def validate_part_of_link(
    state: State,
    source_id: str,
    target_id: str,
    relation: object = LinkRelation.PART_OF
) -> Result:
    """Only part_of links are constrained; every other relation passes."""
    if parse_enum(LinkRelation, relation) != LinkRelation.PART_OF:
        return OK

    if source_id == target_id:
        return fail(ErrorCode.CYCLE_DETECTED,
                    "Cannot create part_of link: a node cannot be part_of itself")
    if get_node_by_id(state, source_id) is None:
        return fail(ErrorCode.NOT_FOUND, f"Source node not found: {source_id}")
    if get_node_by_id(state, target_id) is None:
        return fail(ErrorCode.NOT_FOUND, f"Target node not found: {target_id}")
    if would_create_cycle(state, source_id, target_id):
        return fail(
            ErrorCode.CYCLE_DETECTED,
            f"Cannot create part_of link: would create cycle between {source_id} and {target_id}"
        )
    return OK

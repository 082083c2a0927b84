# agen8/utils/graph.py
from typing import Iterator, List, Optional, Set, Tuple

import networkx as nx

from agen8.model.workflow import ConnectionMap, Workflow


def _targets(connections: ConnectionMap, name: str) -> List[str]:
    targets: List[str] = []
    for groups in (connections.get(name) or {}).values():
        for group in groups:
            for slot in group:
                targets.append(slot.node)
    return targets


def outgoing_targets(workflow: Workflow, node_name: str) -> List[str]:
    """
    Immediate successors of `node_name`, flattened over every output port and
    every slot group. A name with no entry in the connection map has none.
    """
    return _targets(workflow.connections, node_name)


def iter_edges(connections: ConnectionMap) -> Iterator[Tuple[str, str, str]]:
    """Yield (source, output port, target) for every slot in the map."""
    for src, ports in connections.items():
        for port, groups in ports.items():
            for group in groups:
                for slot in group:
                    yield src, port, slot.node


def edge_count(connections: ConnectionMap) -> int:
    return sum(1 for _ in iter_edges(connections))


def connected_node_names(workflow: Workflow) -> Set[str]:
    """
    Names that take part in at least one edge: every source key with a
    non-empty slot group, plus every slot target.
    """
    names: Set[str] = set()
    for src, ports in workflow.connections.items():
        for groups in ports.values():
            for group in groups:
                if group:
                    names.add(src)
                for slot in group:
                    names.add(slot.node)
    return names


def has_cycle_from(workflow: Workflow, start: str, done: Optional[Set[str]] = None) -> bool:
    """
    Depth-first back-edge search starting at `start`.

    `on_path` holds the nodes of the current DFS path, `done` the nodes whose
    descendants are fully explored. Only revisiting a node on the current path
    is a cycle, so diamonds (A->B, A->C, B->D, C->D) are not reported.
    Passing the same `done` set across several starts skips finished work.
    """
    if done is None:
        done = set()
    if start in done:
        return False

    on_path = {start}
    stack = [(start, iter(outgoing_targets(workflow, start)))]
    while stack:
        node, children = stack[-1]
        pushed = False
        for child in children:
            if child in on_path:
                return True
            if child not in done:
                on_path.add(child)
                stack.append((child, iter(outgoing_targets(workflow, child))))
                pushed = True
                break
        if not pushed:
            stack.pop()
            on_path.discard(node)
            done.add(node)
    return False


def build_digraph(workflow: Workflow) -> nx.DiGraph:
    """
    Name-keyed DiGraph of the workflow. Node attributes carry id/type/disabled;
    edges to names that are not in `nodes` are left out.
    """
    G = nx.DiGraph()
    for n in workflow.nodes:
        G.add_node(n.name, id=n.id, type=n.type, disabled=n.disabled)

    for src, _port, dst in iter_edges(workflow.connections):
        if src in G and dst in G:
            G.add_edge(src, dst)
    return G


def dangling_targets(workflow: Workflow) -> List[Tuple[str, str]]:
    """(source, target) pairs where either end is not a node of the workflow."""
    names = set(workflow.node_names())
    return [
        (src, dst)
        for src, _port, dst in iter_edges(workflow.connections)
        if src not in names or dst not in names
    ]

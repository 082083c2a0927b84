# agen8/structural/repair.py
"""
Connection repair for LLM-generated workflows.

LLMs regularly return node lists with missing or oddly shaped connections.
`normalize_connections` fixes the JSON shape, `repair_connections` wires the
node list into a sequential chain wherever an edge between neighbours is
missing. Both are pure: inputs are never modified.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Sequence

from agen8.model.workflow import Connection, ConnectionMap, Node, Workflow, clone_connections
from agen8.utils.graph import edge_count
from agen8.utils.logger import get_logger

log = get_logger("structural.repair")


def needs_repair(nodes: Sequence[Node], connections: ConnectionMap) -> bool:
    """
    Heuristic for "under-connected": no connections at all, or fewer source
    keys than a simple chain over `nodes` would have.
    """
    if len(nodes) < 2:
        return False
    return not connections or len(connections) < len(nodes) - 1


def repair_connections(nodes: Sequence[Node], connections: ConnectionMap) -> ConnectionMap:
    """
    Return a copy of `connections` with an edge node[i] -> node[i+1] on the
    "main" port for every neighbour pair that is not already linked there.

    Existing edges are kept as they are, and running the pass on its own
    output adds nothing.
    """
    repaired = clone_connections(connections)
    for current, following in zip(nodes, nodes[1:]):
        groups = repaired.setdefault(current.name, {}).setdefault("main", [])
        if any(slot.node == following.name for group in groups for slot in group):
            continue
        groups.append([Connection(node=following.name, type="main", index=0)])
    return repaired


def auto_repair(workflow: Workflow, force: bool = False) -> Workflow:
    """Apply `repair_connections` when the workflow looks under-connected (or when forced)."""
    if not force and not needs_repair(workflow.nodes, workflow.connections):
        return workflow.copy()

    before = edge_count(workflow.connections)
    repaired = workflow.copy()
    repaired.connections = repair_connections(repaired.nodes, repaired.connections)
    added = edge_count(repaired.connections) - before
    if added:
        log.info(f"auto-connected '{workflow.name}': added {added} sequential edge(s)")
    return repaired


def normalize_connections(raw: Any) -> Dict[str, Any]:
    """
    Coerce the raw JSON `connections` object into n8n's nesting
    (source -> port -> list of slot lists):

      - a port holding a single slot object becomes [[slot]]
      - a slot object sitting directly in the output list becomes [slot]
      - anything else in the output list becomes []
      - ports that are neither list nor object become []
      - sources whose value is not an object are dropped
    """
    if not isinstance(raw, dict):
        return {}

    fixed: Dict[str, Any] = {}
    for src, ports in raw.items():
        if not isinstance(ports, dict):
            continue
        fixed_ports: Dict[str, List[Any]] = {}
        for port, outputs in ports.items():
            if isinstance(outputs, list):
                fixed_ports[port] = [_normalize_output(o) for o in outputs]
            elif isinstance(outputs, dict):
                fixed_ports[port] = [[copy.deepcopy(outputs)]]
            else:
                fixed_ports[port] = []
        fixed[src] = fixed_ports
    return fixed


def _normalize_output(output: Any) -> List[Any]:
    if isinstance(output, list):
        return copy.deepcopy(output)
    if isinstance(output, dict):
        return [copy.deepcopy(output)]
    return []

# agen8/editor/layout.py

import math
from typing import Any, Dict, Optional, Tuple

import networkx as nx
from networkx.exception import NetworkXUnfeasible

from agen8.model.workflow import Workflow
from agen8.utils.graph import build_digraph

Position = Tuple[float, float]

X_SPACING = 350
Y_SPACING = 250


def grid_positions(count: int) -> list:
    """
    Canvas positions by list index: one row for up to 6 nodes, otherwise a
    grid of min(4, ceil(count / 3)) columns centred around x=100.
    """
    if count <= 6:
        return [(float(i * X_SPACING + 100), 300.0) for i in range(count)]

    columns = min(4, math.ceil(count / 3))
    offset_x = (columns - 1) * X_SPACING / 2
    positions = []
    for i in range(count):
        row, col = divmod(i, columns)
        positions.append((col * X_SPACING - offset_x + 100, float(row * Y_SPACING + 200)))
    return positions


def layered_layout(
    G: nx.DiGraph,
    horizontal: bool = True,
    layer_gap: float = 1.0,
    row_gap: float = 1.0,
) -> Optional[Dict[Any, Position]]:
    """
    Layered DAG layout: a node's layer is one past the deepest predecessor.
    Returns None when the graph has a cycle (no topological order).
    """
    level: Dict[Any, int] = {}
    try:
        for n in nx.topological_sort(G):
            preds = list(G.predecessors(n))
            level[n] = (max(level[p] for p in preds) + 1) if preds else 0
    except NetworkXUnfeasible:
        return None

    # group by level, keep deterministic order
    layers: Dict[int, list] = {}
    for n, L in level.items():
        layers.setdefault(L, []).append(n)
    for L in layers:
        layers[L].sort(key=str)

    pos: Dict[Any, Position] = {}
    for L, members in layers.items():
        for i, n in enumerate(members):
            if horizontal:
                pos[n] = (L * layer_gap, -(i * row_gap))
            else:
                pos[n] = (i * row_gap, -(L * layer_gap))
    return pos


def auto_arrange(workflow: Workflow, mode: str = "grid") -> Workflow:
    """
    Reposition every node. mode="grid" uses list order; mode="layered" follows
    the connections and falls back to the grid when they contain a cycle.
    """
    updated = workflow.copy()
    grid = grid_positions(len(updated.nodes))

    layered = None
    if mode == "layered":
        layered = layered_layout(build_digraph(updated), layer_gap=X_SPACING, row_gap=Y_SPACING)
    elif mode != "grid":
        raise ValueError(f"Unknown layout mode: {mode!r} (expected 'grid' or 'layered')")

    for i, node in enumerate(updated.nodes):
        if layered is not None and node.name in layered:
            x, y = layered[node.name]
            node.position = (x + 100, 300 - y)
        else:
            node.position = grid[i]
    return updated

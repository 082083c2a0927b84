# agen8/structural/metrics.py

from typing import Any, Dict

import networkx as nx

from agen8.model.workflow import Workflow
from agen8.structural import catalog
from agen8.utils.graph import build_digraph, dangling_targets, edge_count


def compute_structural_metrics(workflow: Workflow) -> Dict[str, Any]:
    """
    Descriptive graph numbers for reports and batch summaries.
    These never affect validity; `validate` is the only gate.
    """
    G = build_digraph(workflow)
    n_nodes = G.number_of_nodes()
    dangling = dangling_targets(workflow)

    if n_nodes == 0:
        return {
            "n_nodes": 0,
            "n_edges": 0,
            "n_slots": edge_count(workflow.connections),
            "connected_ratio": 0.0,
            "acyclic": 1.0,
            "orphan_ratio": 0.0,
            "n_triggers": 0,
            "dangling_edges": [list(e) for e in dangling],
        }

    # Connectivity: proportion of nodes in the largest weakly connected component
    largest_cc = max(nx.weakly_connected_components(G), key=len)
    connected_ratio = len(largest_cc) / n_nodes

    acyclic = 1.0 if nx.is_directed_acyclic_graph(G) else 0.0

    # Orphan nodes (no incoming and no outgoing)
    orphans = [n for n in G.nodes if G.in_degree(n) == 0 and G.out_degree(n) == 0]
    orphan_ratio = len(orphans) / n_nodes

    return {
        "n_nodes": n_nodes,
        "n_edges": G.number_of_edges(),   # distinct source->target pairs
        "n_slots": edge_count(workflow.connections),
        "connected_ratio": round(connected_ratio, 2),
        "acyclic": acyclic,
        "orphan_ratio": round(orphan_ratio, 2),
        "n_triggers": sum(1 for n in workflow.nodes if catalog.is_trigger_type(n.type)),
        "dangling_edges": [list(e) for e in dangling],
    }

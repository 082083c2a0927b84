# tests/test_graph.py

from agen8.model.workflow import Workflow
from agen8.utils.graph import (
    build_digraph,
    connected_node_names,
    dangling_targets,
    edge_count,
    has_cycle_from,
    iter_edges,
    outgoing_targets,
)


def _wf(names, edges):
    """Workflow of `set` nodes named `names`; `edges` are (src, dst) on main output 0."""
    connections = {}
    for src, dst in edges:
        connections.setdefault(src, {"main": [[]]})["main"][0].append(
            {"node": dst, "type": "main", "index": 0}
        )
    return Workflow.from_dict({
        "nodes": [{"id": n.lower(), "name": n, "type": "n8n-nodes-base.set"} for n in names],
        "connections": connections,
    })


def test_outgoing_targets_flattens_ports_and_groups():
    wf = Workflow.from_dict({
        "nodes": [{"id": n, "name": n, "type": "n8n-nodes-base.if"} for n in ("A", "B", "C", "D")],
        "connections": {
            "A": {
                "main": [
                    [{"node": "B", "type": "main", "index": 0}],
                    [{"node": "C", "type": "main", "index": 0}],
                ],
                "ai_tool": [[{"node": "D", "type": "ai_tool", "index": 0}]],
            }
        },
    })
    assert outgoing_targets(wf, "A") == ["B", "C", "D"]
    assert outgoing_targets(wf, "B") == []
    assert outgoing_targets(wf, "missing") == []


def test_iter_edges_and_edge_count():
    wf = _wf(["A", "B", "C"], [("A", "B"), ("A", "C"), ("B", "C")])
    assert list(iter_edges(wf.connections)) == [("A", "main", "B"), ("A", "main", "C"), ("B", "main", "C")]
    assert edge_count(wf.connections) == 3


def test_connected_names_include_sources_and_targets():
    wf = _wf(["A", "B", "C"], [("A", "B")])
    assert connected_node_names(wf) == {"A", "B"}


def test_source_with_only_empty_groups_is_not_connected():
    wf = Workflow.from_dict({
        "nodes": [{"id": "a", "name": "A", "type": "n8n-nodes-base.set"}],
        "connections": {"A": {"main": [[]]}},
    })
    assert connected_node_names(wf) == set()


def test_diamond_is_not_a_cycle():
    wf = _wf(["A", "B", "C", "D"], [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
    done = set()
    for source in wf.connections:
        assert not has_cycle_from(wf, source, done)
    assert done == {"A", "B", "C", "D"}


def test_back_edge_is_a_cycle():
    wf = _wf(["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
    assert has_cycle_from(wf, "A")
    assert has_cycle_from(wf, "B")


def test_self_loop_is_a_cycle():
    wf = _wf(["A"], [("A", "A")])
    assert has_cycle_from(wf, "A")


def test_cycle_not_reachable_from_start():
    wf = _wf(["A", "B", "C", "D"], [("A", "B"), ("C", "D"), ("D", "C")])
    assert not has_cycle_from(wf, "A")
    assert has_cycle_from(wf, "C")


def test_long_chain_does_not_recurse():
    names = [f"N{i}" for i in range(3000)]
    wf = _wf(names, list(zip(names, names[1:])))
    assert not has_cycle_from(wf, "N0")


def test_dangling_target_is_tolerated():
    wf = _wf(["A", "B"], [("A", "B"), ("B", "Ghost")])
    assert not has_cycle_from(wf, "A")
    assert dangling_targets(wf) == [("B", "Ghost")]

    G = build_digraph(wf)
    assert set(G.nodes) == {"A", "B"}
    assert list(G.edges) == [("A", "B")]
    assert G.nodes["A"]["id"] == "a"

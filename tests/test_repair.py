# tests/test_repair.py

from agen8.model.workflow import Workflow, connections_to_dict
from agen8.structural.repair import auto_repair, needs_repair, normalize_connections, repair_connections
from agen8.structural.validator import validate
from agen8.utils.graph import edge_count, outgoing_targets


def _wf(names, connections=None, trigger="start"):
    nodes = [{"id": f"n{i}", "name": n, "type": "n8n-nodes-base.set"} for i, n in enumerate(names)]
    if nodes and trigger:
        nodes[0]["type"] = f"n8n-nodes-base.{trigger}"
    return Workflow.from_dict({"name": "repair", "nodes": nodes, "connections": connections or {}})


def _edge(dst):
    return {"node": dst, "type": "main", "index": 0}


def test_needs_repair_heuristic():
    assert needs_repair(_wf(["A", "B"]).nodes, {})
    assert not needs_repair(_wf(["A"]).nodes, {})
    assert not needs_repair([], {})

    wf = _wf(["A", "B", "C"], {"A": {"main": [[_edge("B")]]}})
    assert needs_repair(wf.nodes, wf.connections)

    wf = _wf(["A", "B", "C"], {"A": {"main": [[_edge("B")]]}, "B": {"main": [[_edge("C")]]}})
    assert not needs_repair(wf.nodes, wf.connections)


def test_repair_chains_unconnected_nodes():
    wf = _wf(["Start", "Transform", "Send"])
    fixed = repair_connections(wf.nodes, wf.connections)
    assert connections_to_dict(fixed) == {
        "Start": {"main": [[_edge("Transform")]]},
        "Transform": {"main": [[_edge("Send")]]},
    }
    # input untouched
    assert wf.connections == {}


def test_repair_keeps_existing_edges():
    wf = _wf(["A", "B", "C", "D"], {
        "A": {"main": [[_edge("D")]]},
        "B": {"main": [[_edge("C")]]},
    })
    fixed = repair_connections(wf.nodes, wf.connections)
    assert connections_to_dict(fixed)["A"] == {"main": [[_edge("D")], [_edge("B")]]}
    assert connections_to_dict(fixed)["B"] == {"main": [[_edge("C")]]}
    assert connections_to_dict(fixed)["C"] == {"main": [[_edge("D")]]}


def test_repair_respects_edge_on_any_main_group():
    wf = _wf(["Check", "Yes"], {"Check": {"main": [[], [_edge("Yes")]]}})
    fixed = repair_connections(wf.nodes, wf.connections)
    assert connections_to_dict(fixed) == {"Check": {"main": [[], [_edge("Yes")]]}}


def test_repair_is_idempotent():
    wf = _wf(["A", "B", "C", "D"], {"B": {"main": [[_edge("A")]]}})
    once = repair_connections(wf.nodes, wf.connections)
    twice = repair_connections(wf.nodes, once)
    assert connections_to_dict(once) == connections_to_dict(twice)
    assert edge_count(once) == 4


def test_repair_single_node_adds_nothing():
    wf = _wf(["Only"])
    assert repair_connections(wf.nodes, wf.connections) == {}


def test_auto_repair_makes_chain_valid():
    wf = _wf(["Start", "A", "B"])
    assert not validate(wf).is_valid

    fixed = auto_repair(wf)
    assert validate(fixed).is_valid
    assert outgoing_targets(fixed, "Start") == ["A"]
    assert wf.connections == {}


def test_auto_repair_skips_connected_workflows_unless_forced():
    conns = {"Start": {"main": [[_edge("B")]]}, "B": {"main": [[_edge("A")]]}}
    wf = _wf(["Start", "A", "B"], conns)

    untouched = auto_repair(wf)
    assert connections_to_dict(untouched.connections) == conns
    assert untouched is not wf

    forced = auto_repair(wf, force=True)
    assert outgoing_targets(forced, "Start") == ["B", "A"]


def test_normalize_connections_fixes_shapes():
    raw = {
        "A": {"main": _edge("B")},
        "B": {"main": [_edge("C"), [_edge("D")], None, "junk"]},
        "C": {"main": "nope"},
        "D": ["not", "ports"],
    }
    assert normalize_connections(raw) == {
        "A": {"main": [[_edge("B")]]},
        "B": {"main": [[_edge("C")], [_edge("D")], [], []]},
        "C": {"main": []},
    }
    assert raw["A"]["main"] == _edge("B")


def test_normalize_connections_non_object():
    assert normalize_connections(None) == {}
    assert normalize_connections([]) == {}

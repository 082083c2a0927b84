# tests/test_editor.py

import pytest

from agen8.editor.layout import auto_arrange, grid_positions, layered_layout
from agen8.editor.operations import (
    add_connection,
    move_node,
    remove_connection,
    rename_connections,
    rename_node,
    set_disabled,
    update_parameters,
)
from agen8.errors import EditorError
from agen8.model.workflow import Workflow, connections_to_dict
from agen8.structural.validator import validate
from agen8.utils.graph import build_digraph, edge_count, iter_edges, outgoing_targets


def _edge(dst, index=0):
    return {"node": dst, "type": "main", "index": index}


def _sample():
    """Start -> Check -(true)-> Notify, Check -(false)-> Log, Log -> Notify"""
    return Workflow.from_dict({
        "name": "editor",
        "nodes": [
            {"id": "s", "name": "Start", "type": "n8n-nodes-base.start"},
            {"id": "c", "name": "Check", "type": "n8n-nodes-base.if"},
            {"id": "n", "name": "Notify", "type": "n8n-nodes-base.slack",
             "parameters": {"channel": "#ops", "text": "hi"}},
            {"id": "l", "name": "Log", "type": "n8n-nodes-base.set"},
        ],
        "connections": {
            "Start": {"main": [[_edge("Check")]]},
            "Check": {"main": [[_edge("Notify")], [_edge("Log")]]},
            "Log": {"main": [[_edge("Notify", 1)]]},
        },
    })


# ---------- rename ----------
def test_rename_rewrites_keys_and_targets():
    wf = _sample()
    renamed = rename_node(wf, "c", "Is Urgent?")

    assert renamed.node_by_id("c").name == "Is Urgent?"
    assert list(renamed.connections) == ["Start", "Is Urgent?", "Log"]
    assert outgoing_targets(renamed, "Start") == ["Is Urgent?"]
    assert outgoing_targets(renamed, "Is Urgent?") == ["Notify", "Log"]
    assert edge_count(renamed.connections) == edge_count(wf.connections)
    assert all("Check" not in (src, dst) for src, _port, dst in iter_edges(renamed.connections))
    # input untouched
    assert wf.node_by_id("c").name == "Check"
    assert "Check" in wf.connections


def test_rename_target_only_node_keeps_input_index():
    renamed = rename_node(_sample(), "n", "Alert")
    conns = connections_to_dict(renamed.connections)
    assert conns["Log"] == {"main": [[_edge("Alert", 1)]]}
    assert conns["Check"]["main"][0] == [_edge("Alert")]
    assert "Notify" not in conns


def test_rename_keeps_validity():
    wf = _sample()
    before = validate(wf)
    after = validate(rename_node(wf, "l", "Write Log"))
    assert before.is_valid and after.is_valid
    assert len(before.warnings) == len(after.warnings)


def test_rename_same_name_is_noop():
    wf = _sample()
    same = rename_node(wf, "c", "Check")
    assert same.to_dict() == wf.to_dict()
    assert same is not wf


def test_rename_errors():
    wf = _sample()
    with pytest.raises(EditorError, match="already named"):
        rename_node(wf, "c", "Log")
    with pytest.raises(EditorError, match="required"):
        rename_node(wf, "c", "   ")
    with pytest.raises(EditorError, match="Unknown node id"):
        rename_node(wf, "zzz", "New")


def test_rename_connections_self_loop():
    wf = Workflow.from_dict({
        "nodes": [{"id": "a", "name": "A", "type": "t"}],
        "connections": {"A": {"main": [[_edge("A")]]}},
    })
    conns = connections_to_dict(rename_connections(wf.connections, "A", "B"))
    assert conns == {"B": {"main": [[_edge("B")]]}}


# ---------- edges ----------
def test_add_connection():
    wf = _sample()
    updated = add_connection(wf, "s", "l")
    assert outgoing_targets(updated, "Start") == ["Check", "Log"]
    assert connections_to_dict(updated.connections)["Start"]["main"] == [[_edge("Check")], [_edge("Log")]]
    assert outgoing_targets(wf, "Start") == ["Check"]


def test_add_connection_ignores_duplicates_and_self_links():
    wf = _sample()
    assert add_connection(wf, "s", "c").to_dict() == wf.to_dict()
    assert add_connection(wf, "s", "s").to_dict() == wf.to_dict()


def test_add_connection_from_new_source():
    updated = add_connection(_sample(), "n", "l")
    assert connections_to_dict(updated.connections)["Notify"] == {"main": [[_edge("Log")]]}


def test_remove_connection_keeps_branch_index():
    updated = remove_connection(_sample(), "c", "n")
    assert connections_to_dict(updated.connections)["Check"] == {"main": [[], [_edge("Log")]]}


def test_remove_connection_drops_empty_source():
    updated = remove_connection(_sample(), "l", "n")
    assert "Log" not in updated.connections
    # removing again is harmless
    assert remove_connection(updated, "l", "n").to_dict() == updated.to_dict()


def test_remove_last_branch_trims_trailing_groups():
    updated = remove_connection(_sample(), "c", "l")
    assert connections_to_dict(updated.connections)["Check"] == {"main": [[_edge("Notify")]]}


# ---------- node fields ----------
def test_move_node():
    moved = move_node(_sample(), "n", 700, 120.5)
    assert moved.node_by_id("n").position == (700.0, 120.5)


def test_update_parameters_merge_replace_and_delete():
    wf = _sample()
    merged = update_parameters(wf, "n", {"text": "urgent", "attachments": []})
    assert merged.node_by_id("n").parameters == {"channel": "#ops", "text": "urgent", "attachments": []}

    dropped = update_parameters(wf, "n", {"text": None})
    assert dropped.node_by_id("n").parameters == {"channel": "#ops"}
    assert not validate(dropped).is_valid

    replaced = update_parameters(wf, "n", {"text": "x"}, replace=True)
    assert replaced.node_by_id("n").parameters == {"text": "x"}
    assert wf.node_by_id("n").parameters == {"channel": "#ops", "text": "hi"}


def test_set_disabled():
    wf = set_disabled(_sample(), "l", notes="not needed")
    log_node = wf.node_by_id("l")
    assert log_node.disabled and log_node.notes == "not needed"
    assert 'Node "Log" is disabled but still connected in the workflow' in [w.message for w in validate(wf).warnings]


# ---------- layout ----------
def test_grid_positions_single_row():
    assert grid_positions(3) == [(100.0, 300.0), (450.0, 300.0), (800.0, 300.0)]
    assert grid_positions(0) == []


def test_grid_positions_multi_row():
    pos = grid_positions(7)
    # ceil(7 / 3) = 3 columns, centred by 350
    assert pos[0] == (-250.0, 200.0)
    assert pos[2] == (450.0, 200.0)
    assert pos[3] == (-250.0, 450.0)
    assert pos[6] == (-250.0, 700.0)
    assert len(grid_positions(20)) == 20
    assert max(x for x, _ in grid_positions(20)) == 3 * 350 - 525 + 100


def test_layered_layout_levels():
    pos = layered_layout(build_digraph(_sample()), layer_gap=1.0, row_gap=1.0)
    assert pos["Start"][0] == 0
    assert pos["Check"][0] == 1
    assert pos["Log"][0] == 2
    assert pos["Notify"][0] == 3


def test_layered_layout_cycle_returns_none():
    wf = Workflow.from_dict({
        "nodes": [{"id": "a", "name": "A", "type": "t"}, {"id": "b", "name": "B", "type": "t"}],
        "connections": {"A": {"main": [[_edge("B")]]}, "B": {"main": [[_edge("A")]]}},
    })
    assert layered_layout(build_digraph(wf)) is None
    assert auto_arrange(wf, mode="layered").node_by_id("b").position == (450.0, 300.0)


def test_auto_arrange_modes():
    wf = _sample()
    grid = auto_arrange(wf)
    assert [n.position for n in grid.nodes] == grid_positions(4)

    layered = auto_arrange(wf, mode="layered")
    assert layered.node_by_id("s").position == (100.0, 300.0)
    assert layered.node_by_id("n").position == (100.0 + 3 * 350, 300.0)

    with pytest.raises(ValueError):
        auto_arrange(wf, mode="circle")

# agen8/editor/operations.py
"""
Edits the visual editor applies to a workflow.

Every function returns a new Workflow and leaves its argument untouched, so a
caller never observes a half-applied edit (e.g. a renamed node whose incoming
edges still point at the old name).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from agen8.errors import EditorError
from agen8.model.workflow import Connection, ConnectionMap, Node, Workflow
from agen8.utils.logger import get_logger

log = get_logger("editor")


def _require_node(workflow: Workflow, node_id: str) -> Node:
    node = workflow.node_by_id(node_id)
    if node is None:
        raise EditorError(f"Unknown node id: {node_id!r}")
    return node


# ---------- rename ----------
def rename_connections(connections: ConnectionMap, old_name: str, new_name: str) -> ConnectionMap:
    """
    Rewrite a connection map for a node rename: the source key `old_name`
    becomes `new_name` and so does every slot targeting it. Built as a new map
    in one pass; key order is preserved.
    """
    rewritten: ConnectionMap = {}
    for src, ports in connections.items():
        key = new_name if src == old_name else src
        new_ports = {
            port: [
                [Connection(new_name if s.node == old_name else s.node, s.type, s.index) for s in group]
                for group in groups
            ]
            for port, groups in ports.items()
        }
        if key in rewritten:
            # a stale key already used the new name; keep both edge sets
            for port, groups in new_ports.items():
                rewritten[key].setdefault(port, []).extend(groups)
        else:
            rewritten[key] = new_ports
    return rewritten


def rename_node(workflow: Workflow, node_id: str, new_name: str) -> Workflow:
    node = _require_node(workflow, node_id)
    new_name = (new_name or "").strip()
    if not new_name:
        raise EditorError("Node name is required")
    if new_name == node.name:
        return workflow.copy()
    clash = workflow.node_by_name(new_name)
    if clash is not None:
        raise EditorError(f'Another node (id {clash.id!r}) is already named "{new_name}"')

    old_name = node.name
    updated = workflow.copy()
    _require_node(updated, node_id).name = new_name
    updated.connections = rename_connections(workflow.connections, old_name, new_name)
    log.debug(f'renamed node {node_id!r}: "{old_name}" -> "{new_name}"')
    return updated


# ---------- edges ----------
def add_connection(workflow: Workflow, source_id: str, target_id: str, port: str = "main") -> Workflow:
    """
    Link source -> target as a new output group on `port`.
    Self-links and links that already exist (on any port) are ignored.
    """
    source = _require_node(workflow, source_id)
    target = _require_node(workflow, target_id)
    updated = workflow.copy()
    if source.name == target.name:
        return updated

    ports = updated.connections.get(source.name) or {}
    if any(s.node == target.name for groups in ports.values() for group in groups for s in group):
        return updated

    updated.connections.setdefault(source.name, {}).setdefault(port, []).append(
        [Connection(node=target.name, type="main", index=0)]
    )
    return updated


def remove_connection(workflow: Workflow, source_id: str, target_id: str) -> Workflow:
    """
    Drop every slot from source to target. Emptied trailing groups, ports and
    source keys are removed; emptied groups in the middle stay as [] so the
    remaining outputs keep their index (e.g. the "false" branch of an IF).
    """
    source = _require_node(workflow, source_id)
    target = _require_node(workflow, target_id)
    updated = workflow.copy()
    ports = updated.connections.get(source.name)
    if not ports:
        return updated

    for port in list(ports):
        groups: List[List[Connection]] = [
            [s for s in group if s.node != target.name] for group in ports[port]
        ]
        while groups and not groups[-1]:
            groups.pop()
        if groups:
            ports[port] = groups
        else:
            del ports[port]
    if not ports:
        del updated.connections[source.name]
    return updated


# ---------- node fields ----------
def move_node(workflow: Workflow, node_id: str, x: float, y: float) -> Workflow:
    updated = workflow.copy()
    _require_node(updated, node_id).position = (float(x), float(y))
    return updated


def update_parameters(
    workflow: Workflow,
    node_id: str,
    parameters: Dict[str, Any],
    replace: bool = False,
) -> Workflow:
    """Merge (or with replace=True, overwrite) a node's parameters. A None value deletes the key."""
    updated = workflow.copy()
    node = _require_node(updated, node_id)
    merged: Dict[str, Any] = {} if replace else dict(node.parameters)
    for key, value in parameters.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    node.parameters = merged
    return updated


def set_disabled(workflow: Workflow, node_id: str, disabled: bool = True, notes: Optional[str] = None) -> Workflow:
    updated = workflow.copy()
    node = _require_node(updated, node_id)
    node.disabled = disabled
    if notes is not None:
        node.notes = notes
    return updated

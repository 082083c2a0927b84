# agen8/model/workflow.py
"""
Typed in-memory representation of an n8n-style workflow.

Connections are keyed by source node *name* (not id), exactly like the n8n
export format:

    connections["Start"]["main"] = [
        [ Connection("Fetch", "main", 0), Connection("Log", "main", 0) ],   # output 0 fans out to two nodes
        [ Connection("Fallback", "main", 0) ],                              # output 1
    ]

`from_dict` / `to_dict` translate between these dataclasses and the JSON wire
shape; nothing in here validates semantics, that is the validator's job.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


DEFAULT_SETTINGS: Dict[str, Any] = {"executionOrder": "v1"}

# wire key -> dataclass attribute for the optional node flags
_NODE_FLAG_KEYS = {
    "notes": "notes",
    "continueOnFail": "continue_on_fail",
    "retryOnFail": "retry_on_fail",
    "maxTries": "max_tries",
    "waitBetweenTries": "wait_between_tries",
}
_NODE_CORE_KEYS = {"id", "name", "type", "position", "parameters", "disabled"} | set(_NODE_FLAG_KEYS)


@dataclass
class Connection:
    """One slot: the target node name, its input port and input index."""
    node: str
    type: str = "main"
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node, "type": self.type, "index": self.index}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Connection":
        index = raw.get("index", 0)
        return cls(
            node=str(raw.get("node")),
            type=str(raw.get("type") or "main"),
            index=index if isinstance(index, int) else 0,
        )


ConnectionMap = Dict[str, Dict[str, List[List[Connection]]]]


@dataclass
class Node:
    id: str
    name: str
    type: str
    position: Tuple[float, float] = (0.0, 0.0)
    parameters: Dict[str, Any] = field(default_factory=dict)
    disabled: bool = False
    notes: Optional[str] = None
    continue_on_fail: Optional[bool] = None
    retry_on_fail: Optional[bool] = None
    max_tries: Optional[int] = None
    wait_between_tries: Optional[int] = None
    # wire keys we do not model (typeVersion, credentials, webhookId, ...)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "position": [self.position[0], self.position[1]],
            "parameters": copy.deepcopy(self.parameters),
        }
        if self.disabled:
            out["disabled"] = True
        for wire_key, attr in _NODE_FLAG_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                out[wire_key] = value
        for k, v in self.extra.items():
            out.setdefault(k, copy.deepcopy(v))
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], fallback_id: str = "") -> "Node":
        name = raw.get("name")
        ntype = raw.get("type")
        nid = raw.get("id")
        params = raw.get("parameters")
        flags = {attr: raw.get(wire_key) for wire_key, attr in _NODE_FLAG_KEYS.items()}
        return cls(
            id=str(nid) if nid not in (None, "") else (fallback_id or str(name or "")),
            name=str(name) if name is not None else "",
            type=ntype if isinstance(ntype, str) else "",
            position=_parse_position(raw.get("position")),
            parameters=dict(params) if isinstance(params, dict) else {},
            disabled=bool(raw.get("disabled", False)),
            extra={k: copy.deepcopy(v) for k, v in raw.items() if k not in _NODE_CORE_KEYS},
            **flags,
        )


@dataclass
class Workflow:
    name: str = "Generated Workflow"
    nodes: List[Node] = field(default_factory=list)
    connections: ConnectionMap = field(default_factory=dict)
    active: bool = False
    settings: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SETTINGS))
    tags: List[str] = field(default_factory=list)
    static_data: Optional[Dict[str, Any]] = None
    id: Optional[str] = None

    # ---------- lookups ----------
    def node_names(self) -> List[str]:
        return [n.name for n in self.nodes]

    def node_by_name(self, name: str) -> Optional[Node]:
        for n in self.nodes:
            if n.name == name:
                return n
        return None

    def node_by_id(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def copy(self) -> "Workflow":
        return copy.deepcopy(self)

    # ---------- wire format ----------
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.id is not None:
            out["id"] = self.id
        out.update({
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes],
            "connections": connections_to_dict(self.connections),
            "active": self.active,
            "settings": copy.deepcopy(self.settings),
            "tags": list(self.tags),
        })
        if self.static_data is not None:
            out["staticData"] = copy.deepcopy(self.static_data)
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Workflow":
        nodes = [
            Node.from_dict(n, fallback_id=f"node-{i}")
            for i, n in enumerate(raw.get("nodes") or [])
            if isinstance(n, dict)
        ]
        settings = raw.get("settings")
        static_data = raw.get("staticData")
        wid = raw.get("id")
        return cls(
            name=str(raw.get("name") or "Generated Workflow"),
            nodes=nodes,
            connections=connections_from_dict(raw.get("connections")),
            active=bool(raw.get("active", False)),
            settings=dict(settings) if isinstance(settings, dict) else dict(DEFAULT_SETTINGS),
            tags=_parse_tags(raw.get("tags")),
            static_data=dict(static_data) if isinstance(static_data, dict) else None,
            id=str(wid) if wid is not None else None,
        )


# ---------- connection helpers ----------
def connections_from_dict(raw: Any) -> ConnectionMap:
    """
    Build a ConnectionMap from the n8n JSON shape.
    Slots without a target node name are dropped; anything that is not the
    expected nesting is skipped rather than raising.
    """
    result: ConnectionMap = {}
    if not isinstance(raw, dict):
        return result
    for src, ports in raw.items():
        if not isinstance(ports, dict):
            continue
        parsed_ports: Dict[str, List[List[Connection]]] = {}
        for port, groups in ports.items():
            if not isinstance(groups, list):
                continue
            parsed_groups: List[List[Connection]] = []
            for group in groups:
                if not isinstance(group, list):
                    # null placeholders keep output indices aligned in n8n exports
                    parsed_groups.append([])
                    continue
                parsed_groups.append([
                    Connection.from_dict(slot)
                    for slot in group
                    if isinstance(slot, dict) and slot.get("node")
                ])
            parsed_ports[str(port)] = parsed_groups
        result[str(src)] = parsed_ports
    return result


def connections_to_dict(connections: ConnectionMap) -> Dict[str, Any]:
    return {
        src: {
            port: [[slot.to_dict() for slot in group] for group in groups]
            for port, groups in ports.items()
        }
        for src, ports in connections.items()
    }


def clone_connections(connections: ConnectionMap) -> ConnectionMap:
    """Deep copy of a connection map (slots are copied, not shared)."""
    return {
        src: {
            port: [[Connection(s.node, s.type, s.index) for s in group] for group in groups]
            for port, groups in ports.items()
        }
        for src, ports in connections.items()
    }


def _parse_position(raw: Any) -> Tuple[float, float]:
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        x, y = raw
    elif isinstance(raw, dict):
        x, y = raw.get("x"), raw.get("y")
    else:
        return (0.0, 0.0)
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return (0.0, 0.0)
    return (float(x), float(y))


def _parse_tags(raw: Any) -> List[str]:
    if not isinstance(raw, Iterable) or isinstance(raw, (str, bytes, dict)):
        return []
    tags: List[str] = []
    for t in raw:
        # n8n API returns tag objects, exports may carry plain strings
        if isinstance(t, dict) and t.get("name"):
            tags.append(str(t["name"]))
        elif isinstance(t, str):
            tags.append(t)
    return tags

# utils/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from jsonschema import ValidationError, validate

from agen8.errors import WorkflowFormatError
from agen8.model.workflow import Workflow
from agen8.structural.repair import normalize_connections
from agen8.structural.schema import N8N_WORKFLOW_SCHEMA

# -------- Path helpers --------
PathLike = Union[str, Path]


def to_path(p: PathLike) -> Path:
    """Convert string-like to pathlib.Path."""
    return p if isinstance(p, Path) else Path(p)


def ensure_parent(path: PathLike) -> Path:
    """Ensure parent directory exists for a file path."""
    p = to_path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


# -------- JSON --------
def read_json(path: PathLike) -> Any:
    """Load JSON file with UTF-8."""
    with to_path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    """Write JSON atomically, pretty-formatted."""
    p = ensure_parent(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
    tmp.replace(p)
    return p


# -------- Workflows --------
def parse_workflow(data: Any, normalize: bool = True) -> Workflow:
    """
    Turn a decoded JSON document into a Workflow.
    Raises WorkflowFormatError when the document is not workflow-shaped.
    """
    try:
        validate(instance=data, schema=N8N_WORKFLOW_SCHEMA)
    except ValidationError as e:
        raise WorkflowFormatError(f"Not an n8n workflow: {e.message}") from e

    raw: Dict[str, Any] = dict(data)
    if normalize:
        raw["connections"] = normalize_connections(raw.get("connections"))
    return Workflow.from_dict(raw)


def load_workflow(path: PathLike, normalize: bool = True) -> Workflow:
    """Read and parse a workflow JSON file."""
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise WorkflowFormatError(f"{path}: invalid JSON ({e.msg} at line {e.lineno}, column {e.colno})") from e
    return parse_workflow(data, normalize=normalize)


def save_workflow(path: PathLike, workflow: Workflow) -> Path:
    return write_json(path, workflow.to_dict())


# -------- Matplotlib integration --------
def save_fig(fig, path: PathLike, **kwargs) -> Path:
    """
    Save matplotlib figure with sensible defaults.
    Example kwargs: bbox_inches="tight", pad_inches=0.03, dpi=200
    """
    p = ensure_parent(path)
    fig.savefig(p, **({"bbox_inches": "tight", "pad_inches": 0.03, "dpi": 200} | kwargs))
    return p

# agen8/model/result.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ERROR = "error"
WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single finding; `severity` is either "error" or "warning"."""
    severity: str
    message: str
    node_id: Optional[str] = None
    node_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.severity, "message": self.message}
        if self.node_id is not None:
            out["nodeId"] = self.node_id
        if self.node_name is not None:
            out["nodeName"] = self.node_name
        return out


@dataclass
class ValidationResult:
    """
    Outcome of validating one workflow.

    Errors block deployment, warnings never do: `is_valid` is derived from
    `errors` alone.
    """
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    disconnected_node_ids: List[str] = field(default_factory=list)
    missing_trigger: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, message: str, node_id: Optional[str] = None, node_name: Optional[str] = None) -> None:
        self.errors.append(ValidationIssue(ERROR, message, node_id, node_name))

    def add_warning(self, message: str, node_id: Optional[str] = None, node_name: Optional[str] = None) -> None:
        self.warnings.append(ValidationIssue(WARNING, message, node_id, node_name))

    def mark_disconnected(self, node_id: str) -> None:
        if node_id not in self.disconnected_node_ids:
            self.disconnected_node_ids.append(node_id)

    def issues_for(self, node_name: str) -> List[ValidationIssue]:
        """All errors and warnings attached to one node (used for decoration)."""
        return [i for i in self.errors + self.warnings if i.node_name == node_name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "disconnectedNodes": list(self.disconnected_node_ids),
            "missingTrigger": self.missing_trigger,
        }

# agen8/structural/validator.py

from collections import Counter
from typing import Optional, Set

from agen8.model.result import ValidationResult
from agen8.model.workflow import Workflow
from agen8.structural import catalog
from agen8.utils.graph import connected_node_names, has_cycle_from
from agen8.utils.logger import get_logger

log = get_logger("structural.validator")

CYCLE_WARNING = "Potential circular dependency detected in workflow connections"


def validate(workflow: Optional[Workflow]) -> ValidationResult:
    """
    Check a workflow and collect every error and warning.

    Only the two terminal checks (no workflow, no nodes) return early; all
    other checks always run so a node can collect several issues at once.
    Never raises on a well-typed Workflow; `result.is_valid` is the deploy gate.
    """
    result = ValidationResult()

    # 1) Nothing to look at
    if workflow is None:
        result.add_error("No workflow to validate")
        return result
    if not workflow.nodes:
        result.add_error("Workflow must contain at least one node")
        return result

    # 2) Names are graph keys, types drive every other rule
    _check_node_identity(workflow, result)

    # 3) Entry point
    _check_trigger(workflow, result)

    # 4) Connectivity (a lone node is trivially fine)
    connected = connected_node_names(workflow)
    if len(workflow.nodes) > 1:
        _check_connectivity(workflow, connected, result)

    # 5) Per-type parameters
    for node in workflow.nodes:
        spec = catalog.lookup(node.type)
        if spec is not None and spec.check is not None:
            spec.check(node, result)

    # 6) Disabled nodes left in the graph
    for node in workflow.nodes:
        if node.disabled and node.name in connected:
            result.add_warning(
                f'Node "{node.name}" is disabled but still connected in the workflow',
                node.id, node.name,
            )

    # 7) Cycles (reported once)
    if workflow.connections:
        _check_cycles(workflow, result)

    log.debug(
        f"validated '{workflow.name}': {len(workflow.nodes)} nodes, "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result


def _check_node_identity(workflow: Workflow, result: ValidationResult) -> None:
    counts = Counter(n.name for n in workflow.nodes if n.name)
    for name, count in counts.items():
        if count > 1:
            result.add_error(
                f'Node name "{name}" is used by {count} nodes; node names must be unique',
                node_name=name,
            )
    for node in workflow.nodes:
        if not node.name:
            result.add_error(f'Node with id "{node.id}" has no name', node.id)
        if not node.type:
            result.add_error(f'Node "{node.name or node.id}" has no type', node.id, node.name or None)


def _check_trigger(workflow: Workflow, result: ValidationResult) -> None:
    if not any(catalog.is_trigger_type(n.type) for n in workflow.nodes):
        result.missing_trigger = True
        result.add_error("Workflow must have at least one trigger node (Start, Webhook, Cron, etc.)")


def _check_connectivity(workflow: Workflow, connected: Set[str], result: ValidationResult) -> None:
    for node in workflow.nodes:
        if node.name in connected:
            continue
        result.mark_disconnected(node.id)
        if catalog.is_trigger_type(node.type):
            result.add_warning(
                f'Trigger node "{node.name}" is not connected to any other nodes',
                node.id, node.name,
            )
        else:
            result.add_error(
                f'Node "{node.name}" is not connected to the workflow',
                node.id, node.name,
            )


def _check_cycles(workflow: Workflow, result: ValidationResult) -> None:
    done: Set[str] = set()
    for source in workflow.connections:
        if has_cycle_from(workflow, source, done):
            result.add_warning(CYCLE_WARNING)
            return

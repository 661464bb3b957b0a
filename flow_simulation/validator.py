# Structural checks run on a process graph before simulating it.
# Findings are advisory: the simulator runs on graphs that fail them.
import logging
from dataclasses import dataclass
from typing import List, Optional

from tabulate import tabulate

from flow_simulation.graph_view import ProcessGraph

MAX_TASKS = 20

# Node types as the diagram editor names them in messages
EDITOR_NODE_TYPES = {"task": "process", "event": "event", "gateway": "gateway"}


@dataclass(frozen=True)
class ValidationIssue:
    id: str
    type: str  # 'error', 'warning' or 'info'
    message: str
    category: str  # 'structure', 'bpmn-compliance' or 'best-practice'
    node_id: Optional[str] = None


def _add_issue(issues, issue_type, message, category, node_id=None):
    issues.append(ValidationIssue(
        id=f"validation-{len(issues) + 1}",
        type=issue_type,
        message=message,
        category=category,
        node_id=node_id,
    ))


def _check_structure(graph, issues):
    start_events = graph.start_events()
    end_events = graph.end_events()

    if not start_events:
        _add_issue(issues, "error", "Process must have at least one Start Event", "structure")
    if not end_events:
        _add_issue(issues, "error", "Process must have at least one End Event", "structure")
    if len(start_events) > 1:
        _add_issue(issues, "warning",
                   f"Process has {len(start_events)} Start Events. Consider if this is intentional.",
                   "best-practice")


def _check_events(graph, issues):
    for event in graph.start_events():
        if graph.incoming_edges(event.id):
            _add_issue(issues, "error", "Start Event cannot have incoming sequence flows",
                       "bpmn-compliance", event.id)
        if not graph.outgoing_edges(event.id):
            _add_issue(issues, "error", "Start Event must have at least one outgoing sequence flow",
                       "structure", event.id)

    for event in graph.end_events():
        if graph.outgoing_edges(event.id):
            _add_issue(issues, "error", "End Event cannot have outgoing sequence flows",
                       "bpmn-compliance", event.id)
        if not graph.incoming_edges(event.id):
            _add_issue(issues, "warning", "End Event has no incoming sequence flows - unreachable",
                       "structure", event.id)


def _check_gateways(graph, issues):
    for gateway in (node for node in graph.nodes if node.is_gateway):
        outgoing = graph.outgoing_edges(gateway.id)
        gateway_type = gateway.gateway_subtype

        if not graph.incoming_edges(gateway.id):
            _add_issue(issues, "warning", f"{gateway_type} Gateway has no incoming flows",
                       "structure", gateway.id)
        if not outgoing:
            _add_issue(issues, "warning", f"{gateway_type} Gateway has no outgoing flows",
                       "structure", gateway.id)

        if gateway_type in ("exclusive", "inclusive") and len(outgoing) > 1:
            without_conditions = [edge for edge in outgoing if not edge.has_condition]
            if len(without_conditions) == len(outgoing):
                _add_issue(issues, "warning", f"{gateway_type} Gateway should have conditions on outgoing flows",
                           "best-practice", gateway.id)
            if gateway_type == "exclusive" and not without_conditions:
                _add_issue(issues, "info", "Consider marking one outgoing flow as default for Exclusive Gateway",
                           "best-practice", gateway.id)

        if gateway_type == "parallel" and any(edge.has_condition for edge in outgoing):
            _add_issue(issues, "warning", "Parallel Gateway should not have conditions on outgoing flows",
                       "bpmn-compliance", gateway.id)


def _check_connectivity(graph, issues):
    for node in graph.nodes:
        label = node.label or "Unnamed"
        node_type = EDITOR_NODE_TYPES.get(node.kind, node.kind)
        if not node.is_start_event and not graph.incoming_edges(node.id):
            _add_issue(issues, "warning", f'{node_type} "{label}" has no incoming connections',
                       "structure", node.id)
        if not node.is_end_event and not graph.outgoing_edges(node.id):
            _add_issue(issues, "warning", f'{node_type} "{label}" has no outgoing connections',
                       "structure", node.id)


def _check_best_practices(graph, issues):
    for node in graph.nodes:
        if not node.label.strip():
            node_type = EDITOR_NODE_TYPES.get(node.kind, node.kind)
            _add_issue(issues, "info", f"{node_type} should have a descriptive label",
                       "best-practice", node.id)

    tasks = [node for node in graph.nodes if node.kind == "task"]
    if len(tasks) > MAX_TASKS:
        _add_issue(issues, "info",
                   f"Process has {len(tasks)} tasks. Consider breaking into sub-processes for better readability.",
                   "best-practice")


def validate_process(graph: ProcessGraph) -> List[ValidationIssue]:
    """
    Checks a process graph against BPMN structure rules and best practices.

    Parameters:
        graph (ProcessGraph): The graph to check.

    Returns:
        list: ValidationIssue objects, empty for an empty graph.
    """
    issues: List[ValidationIssue] = []
    if len(graph) == 0:
        return issues

    _check_structure(graph, issues)
    _check_events(graph, issues)
    _check_gateways(graph, issues)
    _check_connectivity(graph, issues)
    _check_best_practices(graph, issues)
    return issues


def log_validation_issues(issues: List[ValidationIssue]):
    """Logs the issues as a table; errors are also logged at WARNING level."""
    if not issues:
        logging.info("Process validation found no issues.")
        return

    rows = [[issue.id, issue.type, issue.category, issue.node_id or "", issue.message] for issue in issues]
    table = tabulate(rows, headers=["Id", "Type", "Category", "Node", "Message"], tablefmt="grid")
    logging.info("Process validation issues:\n" + table)

    errors = [issue for issue in issues if issue.type == "error"]
    if errors:
        logging.warning(f"Process validation found {len(errors)} errors. The simulation may not behave as expected.")

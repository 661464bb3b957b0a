import logging
from collections import Counter
from pathlib import Path

import pandas as pd
from tabulate import tabulate

from flow_simulation.graph_view import ProcessGraph
from flow_simulation.models import RunState, TokenStatus

TOKEN_COLUMNS = ["Token", "Status", "Current Node", "Steps", "Path"]
NODE_COLUMNS = ["Node", "Label", "Kind", "Visits"]


def token_summary(state: RunState) -> pd.DataFrame:
    """One row per token: id, status, position, hops taken and the visited path."""
    rows = [
        {
            "Token": token.id,
            "Status": token.status.value,
            "Current Node": token.current_node_id,
            "Steps": max(len(token.path) - 1, 0),
            "Path": " -> ".join(token.path),
        }
        for token in state.tokens
    ]
    return pd.DataFrame(rows, columns=TOKEN_COLUMNS)


def node_visit_counts(state: RunState, graph: ProcessGraph) -> pd.DataFrame:
    """
    Counts, for each node of the graph, how many token paths include it.

    A forked child inherits its parent's path, so nodes before a split are
    counted once per child.
    """
    visits = Counter()
    for token in state.tokens:
        visits.update(set(token.path))

    rows = [
        {
            "Node": node.id,
            "Label": node.label,
            "Kind": node.gateway_subtype or node.event_subtype or node.kind,
            "Visits": visits.get(node.id, 0),
        }
        for node in graph.nodes
    ]
    return pd.DataFrame(rows, columns=NODE_COLUMNS)


def log_simulation_summary(state: RunState) -> dict:
    """Logs the token table and returns the token counts by status."""
    counts = {status.value: 0 for status in TokenStatus}
    for token in state.tokens:
        counts[token.status.value] += 1

    summary = token_summary(state)
    if summary.empty:
        logging.info("No tokens to report.")
    else:
        table = tabulate(summary, headers="keys", tablefmt="grid", showindex=False)
        logging.info(f"Token summary after {state.step_count} steps:\n" + table)

    logging.info(
        f"Tokens active: {counts['active']}, completed: {counts['completed']}, terminated: {counts['terminated']}."
    )
    return counts


def save_simulation_report(state: RunState, graph: ProcessGraph, output_path) -> str:
    """Writes the token summary and node visit counts to an Excel workbook."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        token_summary(state).to_excel(writer, index=False, sheet_name="Tokens")
        node_visit_counts(state, graph).to_excel(writer, index=False, sheet_name="Node Visits")

    logging.info(f"Simulation report saved to {output_path}")
    return str(output_path)

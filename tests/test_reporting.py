# Tests for run summaries and the Excel report

import logging

import pandas as pd

from flow_simulation.models import RunState
from flow_simulation.reporting import (
    log_simulation_summary,
    node_visit_counts,
    save_simulation_report,
    token_summary,
)
from flow_simulation.simulation import run_simulation


class TestTokenSummary:

    def test_one_row_per_token(self, parallel_graph):
        state = run_simulation(parallel_graph)
        summary = token_summary(state)
        assert list(summary.columns) == ["Token", "Status", "Current Node", "Steps", "Path"]
        assert len(summary) == 2
        assert set(summary["Status"]) == {"completed"}
        assert set(summary["Steps"]) == {4}
        assert "start -> split -> a -> join -> end" in set(summary["Path"])

    def test_empty_state(self):
        summary = token_summary(RunState())
        assert summary.empty
        assert list(summary.columns) == ["Token", "Status", "Current Node", "Steps", "Path"]


class TestNodeVisitCounts:

    def test_counts_paths_through_each_node(self, parallel_graph):
        state = run_simulation(parallel_graph)
        visits = node_visit_counts(state, parallel_graph).set_index("Node")["Visits"].to_dict()
        assert visits == {"start": 2, "split": 2, "a": 1, "b": 1, "join": 2, "end": 2}

    def test_kind_column(self, parallel_graph):
        frame = node_visit_counts(RunState(), parallel_graph).set_index("Node")
        assert frame.loc["split", "Kind"] == "parallel"
        assert frame.loc["start", "Kind"] == "start"
        assert frame.loc["a", "Kind"] == "task"
        assert frame["Visits"].sum() == 0


class TestLogSimulationSummary:

    def test_returns_counts_and_logs_table(self, linear_graph, caplog):
        caplog.set_level(logging.INFO)
        counts = log_simulation_summary(run_simulation(linear_graph))
        assert counts == {"active": 0, "completed": 1, "terminated": 0}
        assert "Token summary after 2 steps" in caplog.text
        assert "Token-1" in caplog.text

    def test_empty_run(self, caplog):
        caplog.set_level(logging.INFO)
        counts = log_simulation_summary(RunState())
        assert counts == {"active": 0, "completed": 0, "terminated": 0}
        assert "No tokens to report" in caplog.text


class TestSaveSimulationReport:

    def test_writes_both_sheets(self, parallel_graph, tmp_path):
        state = run_simulation(parallel_graph)
        output = save_simulation_report(state, parallel_graph, tmp_path / "out" / "report.xlsx")

        sheets = pd.read_excel(output, sheet_name=None, engine="openpyxl")
        assert set(sheets) == {"Tokens", "Node Visits"}
        assert len(sheets["Tokens"]) == 2
        assert len(sheets["Node Visits"]) == 6

# Tests for the command-line entry point

import json

import pandas as pd
import pytest

from helpers import event, flow, gateway, task


@pytest.fixture
def diagram_file(tmp_path):
    diagram = {
        "nodes": [event("s", "start"), gateway("g", "parallel"), task("a"), task("b"), event("e", "end")],
        "edges": [flow("f0", "s", "g"), flow("f1", "g", "a"), flow("f2", "g", "b"),
                  flow("f3", "a", "e"), flow("f4", "b", "e")],
    }
    path = tmp_path / "diagram.json"
    path.write_text(json.dumps(diagram))
    return path


@pytest.fixture
def main_module(tmp_path, monkeypatch):
    # main configures a log file in the working directory on import
    monkeypatch.chdir(tmp_path)
    import main
    return main


class TestMain:

    def test_headless_run_writes_report_and_graph(self, main_module, diagram_file, tmp_path, capsys):
        report = tmp_path / "report.xlsx"
        graph_json = tmp_path / "graph.json"
        main_module.main([str(diagram_file), "--report", str(report), "--graph-json", str(graph_json)])

        out = capsys.readouterr().out
        assert "Steps: 3" in out
        assert "'completed': 2" in out
        assert pd.read_excel(report, sheet_name="Tokens", engine="openpyxl").shape[0] == 2
        assert {link["key"] for link in json.loads(graph_json.read_text())["links"]} == {"f0", "f1", "f2", "f3", "f4"}

    def test_live_run(self, main_module, diagram_file, capsys):
        main_module.main([str(diagram_file), "--live", "--speed", "5"])
        out = capsys.readouterr().out
        assert "Step 0: nodes=['s']" in out
        assert "Step 3" in out

    def test_settings_overrides(self, main_module, tmp_path):
        parameters = tmp_path / "parameters.csv"
        pd.DataFrame({"name": ["speed ms", "seed"], "value": [400, 1]}).to_csv(parameters, index=False)
        args = main_module.parse_args(["d.json", "--parameters", str(parameters), "--random-paths", "--max-steps", "9"])
        settings = main_module.build_settings(args)
        assert settings.speed_ms == 400.0
        assert settings.seed == 1
        assert settings.use_random_paths is True
        assert settings.max_steps == 9

    def test_random_flag_defaults_to_sheet_value(self, main_module):
        args = main_module.parse_args(["d.json"])
        assert args.random_paths is None
        assert main_module.build_settings(args).use_random_paths is False

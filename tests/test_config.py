# Tests for reading simulation parameters

import pandas as pd
import pytest

from flow_simulation.config import SimulationSettings, get_simulation_parameters, load_settings


class TestGetSimulationParameters:

    def test_reads_all_parameters(self):
        sheet = pd.DataFrame({
            "Name": ["Speed ms", "Use random paths", "Seed", "Max steps"],
            "Value": [250, "yes", 11, 40],
        })
        settings = get_simulation_parameters(sheet)
        assert settings == SimulationSettings(speed_ms=250.0, use_random_paths=True, seed=11, max_steps=40)

    def test_missing_parameters_use_defaults(self, caplog):
        sheet = pd.DataFrame({"name": ["speed_ms"], "value": [750]})
        settings = get_simulation_parameters(sheet)
        assert settings.speed_ms == 750.0
        assert settings.use_random_paths is False
        assert settings.seed is None
        assert settings.max_steps == 1000
        assert "Parameter 'seed' not found" in caplog.text

    def test_sheet_without_expected_columns(self, caplog):
        settings = get_simulation_parameters(pd.DataFrame({"foo": [1]}))
        assert settings == SimulationSettings()
        assert "Using default values" in caplog.text

    @pytest.mark.parametrize("raw, expected", [("false", False), ("No", False), (0, False), ("TRUE", True),
                                               (1, True), ("random", True)])
    def test_random_paths_flag(self, raw, expected):
        sheet = pd.DataFrame({"name": ["use random paths"], "value": [raw]})
        assert get_simulation_parameters(sheet).use_random_paths is expected


class TestLoadSettings:

    def test_loads_csv(self, tmp_path):
        path = tmp_path / "parameters.csv"
        pd.DataFrame({"name": ["speed ms", "max steps"], "value": [100, 5]}).to_csv(path, index=False)
        settings = load_settings(path)
        assert settings.speed_ms == 100.0
        assert settings.max_steps == 5

    def test_loads_excel(self, tmp_path):
        path = tmp_path / "parameters.xlsx"
        pd.DataFrame({"Name": ["Seed"], "Value": [99]}).to_excel(path, index=False, engine="openpyxl")
        assert load_settings(path).seed == 99

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.xlsx")

# Read simulation parameters
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import pandas as pd

TRUE_VALUES = {"true", "yes", "1", "y", "on", "random"}


@dataclass
class SimulationSettings:
    speed_ms: float = 1000
    use_random_paths: bool = False
    seed: Optional[int] = None
    max_steps: int = 1000


def _to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def get_simulation_parameters(simulation_metrics: pd.DataFrame) -> SimulationSettings:
    """
    Builds SimulationSettings from a parameter sheet.

    Parameters:
        simulation_metrics (pd.DataFrame): Rows with a 'name' and a 'value' column,
            e.g. name='speed ms', value=500.

    Returns:
        SimulationSettings: Settings with defaults for any missing entry.
    """
    settings = SimulationSettings()

    # Convert column names to lowercase for consistent access
    simulation_metrics.columns = [str(column).lower() for column in simulation_metrics.columns]
    if "name" not in simulation_metrics.columns or "value" not in simulation_metrics.columns:
        logging.warning("Parameter sheet has no 'name'/'value' columns. Using default values.")
        return settings

    # 'Speed ms', 'speed_ms' and 'SPEED MS' all address the same field
    rows = {
        str(name).strip().lower().replace(" ", "_"): value
        for name, value in zip(simulation_metrics["name"], simulation_metrics["value"])
        if pd.notna(name)
    }

    for setting in fields(SimulationSettings):
        value = rows.get(setting.name)
        if value is None or pd.isna(value):
            logging.warning(f"Parameter '{setting.name}' not found. Defaulting to {getattr(settings, setting.name)}.")
            continue

        if setting.name == "use_random_paths":
            setattr(settings, setting.name, _to_bool(value))
        elif setting.name == "speed_ms":
            setattr(settings, setting.name, float(value))
        else:
            setattr(settings, setting.name, int(value))

    return settings


def load_settings(file_path) -> SimulationSettings:
    """Loads the parameter sheet from an .xlsx or .csv file."""
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Parameter file not found: {path}")

    if path.suffix.lower() == ".csv":
        simulation_metrics = pd.read_csv(path)
    else:
        simulation_metrics = pd.read_excel(path, sheet_name=0, engine="openpyxl")

    return get_simulation_parameters(simulation_metrics)

"""Case folder loader for capacity expansion inputs."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .catalog import Catalog, DemandProfile, Fuel, Network, PeriodStructure

logger = logging.getLogger(__name__)

GENERATORS_FILE = "Generators_data.csv"
FUELS_FILE = "Fuels_data.csv"
VARIABILITY_FILE = "Generators_variability.csv"
LOAD_FILE = "Load_data.csv"
NETWORK_FILE = "Network.csv"


class CaseDataLoader:
    """Reads a case folder of CSV tables into catalog objects."""

    def __init__(self, case_dir: str = "cases/example"):
        """Initialize the loader and read every table."""
        if not os.path.isabs(case_dir):
            project_root = Path(__file__).resolve().parents[3]
            case_path = project_root / case_dir
            if case_path.exists():
                self.case_dir = str(case_path)
            else:
                self.case_dir = case_dir
        else:
            self.case_dir = case_dir

        self.generators = None
        self.fuels = None
        self.variability = None
        self.load = None
        self.network_table = None

        self.load_data()

    def _read(self, filename: str, required: bool = True) -> Optional[pd.DataFrame]:
        path = os.path.join(self.case_dir, filename)
        if not os.path.exists(path):
            if required:
                raise FileNotFoundError(f"Case file not found: {path}")
            return None
        # Fuel "None" is a name, not a missing value
        return pd.read_csv(path, keep_default_na=False, na_values=[""])

    def load_data(self) -> None:
        """Load all CSV tables into pandas DataFrames."""
        self.generators = self._read(GENERATORS_FILE)
        self.fuels = self._read(FUELS_FILE)
        self.load = self._read(LOAD_FILE)
        self.variability = self._read(VARIABILITY_FILE, required=False)
        self.network_table = self._read(NETWORK_FILE, required=False)

        logger.info("Loaded case %s: %d resources, %d time steps, %s",
                    self.case_dir, len(self.generators), len(self.load),
                    "single zone" if self.network_table is None
                    else f"{len(self.network_table)} lines")

    @property
    def catalog(self) -> Catalog:
        return Catalog.from_frames(self.generators, Fuel.from_frame(self.fuels), self.variability)

    @property
    def demand(self) -> DemandProfile:
        return DemandProfile.from_frame(self.load)

    @property
    def periods(self) -> PeriodStructure:
        return PeriodStructure.from_frame(self.load)

    @property
    def network(self) -> Network:
        zones = self.demand.zones
        if self.network_table is None:
            if len(zones) != 1:
                raise FileNotFoundError(
                    f"{NETWORK_FILE} is required for a case with {len(zones)} zones"
                )
            return Network.single_zone(zones[0])
        return Network.from_frame(self.network_table, zones=zones)

    def get_case_summary(self) -> Dict[str, Any]:
        """Get a summary of the case."""
        demand = self.demand
        periods = self.periods
        return {
            "n_resources": len(self.generators),
            "n_zones": len(demand.zones),
            "n_lines": len(self.network.lines),
            "n_steps": periods.n_steps,
            "hours_per_period": periods.hours_per_period,
            "n_periods": periods.n_periods,
            "peak_load": float(demand.load.sum(axis=1).max()),
            "existing_capacity": float(self.generators.get("Existing_Cap_MW", pd.Series(dtype=float)).sum()),
        }

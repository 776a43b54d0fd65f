"""
Entity Catalog
==============

Typed, immutable records for everything a capacity expansion case is made of:

- ``Fuel``: fuel price and CO2 content, joined to resources by name
- ``Resource``: a generator or storage unit with its flags, bounds and costs
- ``TransmissionLine`` / ``Network``: zones linked by signed incidence rows
- ``DemandSegment`` / ``DemandProfile``: zonal load plus curtailment tranches
- ``PeriodStructure``: representative period length and cluster weights
- ``Catalog``: the working set of resources with their fuels and
  availability profiles

Each table-shaped input has a ``from_frame`` constructor that validates the
pandas DataFrame and raises ``SchemaError`` naming the offending record.
Derived quantities (variable cost, emission rate, start cost) are computed on
demand from the stored fields and are never written back.

Usage Example
-------------
>>> generators = pd.read_csv('case/Generators_data.csv')
>>> fuels = Fuel.from_frame(pd.read_csv('case/Fuels_data.csv'))
>>> catalog = Catalog.from_frames(generators, fuels)
>>> catalog.var_cost('natural_gas_combined_cycle')
27.4
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import PeriodError, SchemaError

logger = logging.getLogger(__name__)


# Generator table column -> (field name, default). A default of None marks a
# required column.
GENERATOR_COLUMNS: Dict[str, Tuple[str, Any]] = {
    "Resource": ("name", None),
    "Zone": ("zone", None),
    "Fuel": ("fuel", None),
    "THERM": ("therm", 0),
    "DISP": ("vre", 0),
    "NDISP": ("ndisp", 0),
    "STOR": ("stor", 0),
    "HYDRO": ("hydro", 0),
    "RPS": ("rps", 0),
    "CES": ("ces", 0),
    "Commit": ("commit", 0),
    "New_Build": ("new_build", None),
    "Existing_Cap_MW": ("existing_cap_mw", 0.0),
    "Max_Cap_MW": ("max_cap_mw", -1.0),
    "Existing_Cap_MWh": ("existing_cap_mwh", 0.0),
    "Max_Cap_MWh": ("max_cap_mwh", -1.0),
    "Fixed_OM_cost_per_MWyr": ("fixed_om_cost_per_mw_yr", 0.0),
    "Inv_cost_per_MWyr": ("inv_cost_per_mw_yr", 0.0),
    "Fixed_OM_cost_per_MWhyr": ("fixed_om_cost_per_mwh_yr", 0.0),
    "Inv_cost_per_MWhyr": ("inv_cost_per_mwh_yr", 0.0),
    "Var_OM_cost_per_MWh": ("var_om_cost_per_mwh", 0.0),
    "Start_cost_per_MW": ("start_cost_per_mw", 0.0),
    "Start_fuel_MMBTU_per_MW": ("start_fuel_mmbtu_per_mw", 0.0),
    "Heat_rate_MMBTU_per_MWh": ("heat_rate_mmbtu_per_mwh", 0.0),
    "Min_power": ("min_power", 0.0),
    "Ramp_Up_percentage": ("ramp_up_percentage", 1.0),
    "Ramp_Dn_percentage": ("ramp_dn_percentage", 1.0),
    "Up_time": ("up_time", 0),
    "Down_time": ("down_time", 0),
    "Eff_up": ("eff_up", 1.0),
    "Eff_down": ("eff_down", 1.0),
}

_FLAG_FIELDS = ("therm", "vre", "ndisp", "stor", "hydro", "rps", "ces", "commit")
_ZONE_COLUMN = re.compile(r"^z(\d+)$")
_LOAD_COLUMN = re.compile(r"^Load_MW_z(\d+)$")


def _is_missing(val) -> bool:
    return val is None or (isinstance(val, float) and np.isnan(val))


def _float(row: pd.Series, column: str, default: float = 0.0) -> float:
    val = row.get(column, default)
    return default if _is_missing(val) else float(val)


def _require_columns(df: pd.DataFrame, columns: Iterable[str], table: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError(f"{table} table is missing required column(s): {', '.join(missing)}")


@dataclass(frozen=True)
class Fuel:
    """Fuel price and carbon content."""
    name: str
    cost_per_mmbtu: float = 0.0
    co2_content_tons_per_mmbtu: float = 0.0

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> Dict[str, "Fuel"]:
        """Build a name -> Fuel mapping from a fuels table."""
        _require_columns(df, ["Fuel", "Cost_per_MMBtu"], "Fuels")
        fuels = {}
        for _, row in df.iterrows():
            name = str(row["Fuel"])
            if name in fuels:
                raise SchemaError(f"Duplicate fuel '{name}'")
            co2 = row.get("CO2_content_tons_per_MMBtu", 0.0)
            fuels[name] = cls(
                name=name,
                cost_per_mmbtu=float(row["Cost_per_MMBtu"]),
                co2_content_tons_per_mmbtu=0.0 if _is_missing(co2) else float(co2),
            )
        return fuels


@dataclass(frozen=True)
class Resource:
    """
    Generator or storage unit.

    Attributes
    ----------
    name : str
        Unique resource identifier
    zone : int
        Zone the resource is located in
    fuel : str
        Key into the fuels table (``"None"`` for fuel-free resources)
    therm, vre, ndisp, stor, hydro : bool
        Capability flags (thermal with ramp limits, variable renewable,
        non-dispatchable must-run, storage, hydro)
    commit : bool
        Unit commitment eligible (reported, not modelled)
    rps, ces : bool
        Clean energy policy eligibility
    new_build : int
        1 = new-build candidate, 0 = existing and retirable,
        -1 = existing and not retirable
    """
    name: str
    zone: int
    fuel: str
    new_build: int
    therm: bool = False
    vre: bool = False
    ndisp: bool = False
    stor: bool = False
    hydro: bool = False
    rps: bool = False
    ces: bool = False
    commit: bool = False
    existing_cap_mw: float = 0.0
    max_cap_mw: float = -1.0
    existing_cap_mwh: float = 0.0
    max_cap_mwh: float = -1.0
    fixed_om_cost_per_mw_yr: float = 0.0
    inv_cost_per_mw_yr: float = 0.0
    fixed_om_cost_per_mwh_yr: float = 0.0
    inv_cost_per_mwh_yr: float = 0.0
    var_om_cost_per_mwh: float = 0.0
    start_cost_per_mw: float = 0.0
    start_fuel_mmbtu_per_mw: float = 0.0
    heat_rate_mmbtu_per_mwh: float = 0.0
    min_power: float = 0.0
    ramp_up_percentage: float = 1.0
    ramp_dn_percentage: float = 1.0
    up_time: int = 0
    down_time: int = 0
    eff_up: float = 1.0
    eff_down: float = 1.0

    @property
    def is_new(self) -> bool:
        return self.new_build == 1

    @property
    def can_retire(self) -> bool:
        return self.new_build == 0

    def var_cost(self, fuel: Fuel) -> float:
        """Variable cost in $/MWh: O&M plus fuel burn."""
        return self.var_om_cost_per_mwh + self.heat_rate_mmbtu_per_mwh * fuel.cost_per_mmbtu

    def co2_rate(self, fuel: Fuel) -> float:
        """Emission rate in tCO2/MWh."""
        return self.heat_rate_mmbtu_per_mwh * fuel.co2_content_tons_per_mmbtu

    def start_cost(self, fuel: Fuel) -> float:
        """Start-up cost in $/MW started, including start fuel."""
        return self.start_cost_per_mw + self.start_fuel_mmbtu_per_mw * fuel.cost_per_mmbtu

    def validate(self) -> None:
        """Check record-level invariants."""
        if not self.stor and (self.existing_cap_mwh > 0 or self.max_cap_mwh > 0):
            raise SchemaError(
                f"Resource '{self.name}' is not storage but declares energy capacity"
            )
        if self.stor:
            for label, eff in (("Eff_up", self.eff_up), ("Eff_down", self.eff_down)):
                if not 0 < eff <= 1:
                    raise SchemaError(
                        f"Resource '{self.name}' has {label}={eff}, expected a value in (0, 1]"
                    )
        if self.new_build not in (-1, 0, 1):
            raise SchemaError(
                f"Resource '{self.name}' has New_Build={self.new_build}, expected -1, 0 or 1"
            )
        if self.existing_cap_mw < 0 or self.existing_cap_mwh < 0:
            raise SchemaError(f"Resource '{self.name}' has negative existing capacity")

    @classmethod
    def from_row(cls, row: pd.Series, position: int) -> "Resource":
        ident = row.get("Resource", f"row {position}")
        kwargs = {}
        for column, (field_name, default) in GENERATOR_COLUMNS.items():
            val = row.get(column, None)
            if _is_missing(val):
                if default is None:
                    raise SchemaError(f"Resource '{ident}' is missing required field '{column}'")
                val = default
            if field_name in _FLAG_FIELDS:
                val = int(val) >= 1
            elif field_name in ("zone", "new_build", "up_time", "down_time"):
                val = int(val)
            elif field_name in ("name", "fuel"):
                val = str(val)
            else:
                val = float(val)
            kwargs[field_name] = val
        resource = cls(**kwargs)
        resource.validate()
        return resource


@dataclass(frozen=True)
class TransmissionLine:
    """
    Inter-zonal transfer path.

    ``incidence`` maps zone -> +1 (source) / -1 (sink); zones not listed have
    coefficient 0. ``loss_percentage`` is carried for reporting only.
    """
    name: str
    incidence: Dict[int, int]
    max_flow_mw: float
    max_reinforcement_mw: float = 0.0
    reinforcement_cost_per_mw_yr: float = 0.0
    fixed_cost_per_mw_yr: float = 0.0
    loss_percentage: float = 0.0

    @property
    def source(self) -> int:
        return next(z for z, c in self.incidence.items() if c == 1)

    @property
    def sink(self) -> int:
        return next(z for z, c in self.incidence.items() if c == -1)

    def validate(self) -> None:
        coeffs = [c for c in self.incidence.values() if c != 0]
        if sorted(coeffs) != [-1, 1]:
            raise SchemaError(
                f"Line '{self.name}' must have exactly one +1 (source) and one -1 (sink) zone, "
                f"got {dict(self.incidence)}"
            )
        if not self.max_flow_mw >= 0 or not self.max_reinforcement_mw >= 0:
            raise SchemaError(f"Line '{self.name}' has a negative or missing capacity")


@dataclass(frozen=True)
class Network:
    """Zones and the lines that connect them."""
    zones: Tuple[int, ...]
    lines: Tuple[TransmissionLine, ...] = ()

    def __post_init__(self):
        if len(set(self.zones)) != len(self.zones):
            raise SchemaError(f"Duplicate zone identifiers in {self.zones}")
        names = [line.name for line in self.lines]
        if len(set(names)) != len(names):
            raise SchemaError("Duplicate transmission line names")
        for line in self.lines:
            line.validate()
            undefined = [z for z in line.incidence if z not in self.zones]
            if undefined:
                raise SchemaError(f"Line '{line.name}' references undefined zone(s) {undefined}")

    @property
    def line_names(self) -> List[str]:
        return [line.name for line in self.lines]

    def incidence_matrix(self) -> np.ndarray:
        """Signed (line x zone) incidence matrix; every row sums to zero."""
        matrix = np.zeros((len(self.lines), len(self.zones)), dtype=int)
        zone_pos = {z: i for i, z in enumerate(self.zones)}
        for i, line in enumerate(self.lines):
            for zone, coeff in line.incidence.items():
                matrix[i, zone_pos[zone]] = coeff
        return matrix

    @classmethod
    def single_zone(cls, zone: int = 1) -> "Network":
        return cls(zones=(zone,))

    @classmethod
    def from_frame(cls, df: pd.DataFrame, zones: Optional[Sequence[int]] = None) -> "Network":
        """
        Build the network from a table with one row per line and one signed
        ``z<k>`` column per zone.
        """
        _require_columns(df, ["Network_Lines", "Line_Max_Flow_MW"], "Network")
        zone_cols = {}
        for col in df.columns:
            match = _ZONE_COLUMN.match(str(col))
            if match:
                zone_cols[int(match.group(1))] = col
        if not zone_cols:
            raise SchemaError("Network table has no z<k> incidence columns")
        if zones is None:
            zones = sorted(zone_cols)

        lines = []
        for _, row in df.iterrows():
            if _is_missing(row["Network_Lines"]):
                continue
            name = str(row["Network_Lines"])
            if isinstance(row["Network_Lines"], float) and row["Network_Lines"].is_integer():
                name = str(int(row["Network_Lines"]))
            if _is_missing(row["Line_Max_Flow_MW"]):
                raise SchemaError(f"Line '{name}' is missing 'Line_Max_Flow_MW'")
            incidence = {}
            for zone, col in zone_cols.items():
                coeff = row[col]
                if not _is_missing(coeff) and int(coeff) != 0:
                    incidence[zone] = int(coeff)
            lines.append(TransmissionLine(
                name=name,
                incidence=incidence,
                max_flow_mw=float(row["Line_Max_Flow_MW"]),
                max_reinforcement_mw=_float(row, "Line_Max_Reinforcement_MW"),
                reinforcement_cost_per_mw_yr=_float(row, "Line_Reinforcement_Cost_per_MW_yr"),
                fixed_cost_per_mw_yr=_float(row, "Line_Fixed_Cost_per_MW_yr"),
                loss_percentage=_float(row, "Line_Loss_Percentage"),
            ))
        return cls(zones=tuple(int(z) for z in zones), lines=tuple(lines))


@dataclass(frozen=True)
class DemandSegment:
    """Curtailment tranche; segment 1 is involuntary load shedding."""
    segment: int
    cost_per_mwh: float
    max_fraction: float


@dataclass(frozen=True)
class DemandProfile:
    """
    Zonal demand and its curtailment segments.

    Attributes
    ----------
    load : pd.DataFrame
        Demand in MW, index = time step (1..N), one column per zone id
    voll : float
        Value of lost load ($/MWh)
    segments : tuple of DemandSegment
        Ordered curtailment tranches
    """
    load: pd.DataFrame
    voll: float
    segments: Tuple[DemandSegment, ...]

    def __post_init__(self):
        if not self.segments:
            raise SchemaError("Demand profile needs at least one curtailment segment")
        ids = [s.segment for s in self.segments]
        if len(set(ids)) != len(ids):
            raise SchemaError(f"Duplicate demand segment ids {ids}")
        for seg in self.segments:
            if seg.cost_per_mwh < 0 or not 0 <= seg.max_fraction <= 1:
                raise SchemaError(
                    f"Demand segment {seg.segment} needs a non-negative cost and a "
                    f"max fraction in [0, 1]"
                )
        if (self.load.values < 0).any():
            raise SchemaError("Demand table contains negative load")

    @property
    def zones(self) -> List[int]:
        return [int(z) for z in self.load.columns]

    @property
    def n_steps(self) -> int:
        return len(self.load)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "DemandProfile":
        """Parse a load table carrying VOLL, segment pairs and Load_MW_z<k> columns."""
        _require_columns(
            df,
            ["Voll", "Demand_Segment", "Cost_of_Demand_Curtailment_per_MW",
             "Max_Demand_Curtailment", "Time_Index"],
            "Load",
        )
        voll_values = df["Voll"].dropna()
        if voll_values.empty:
            raise SchemaError("Load table has no value in column 'Voll'")
        voll = float(voll_values.iloc[0])
        seg_rows = df.dropna(subset=["Demand_Segment"])
        segments = []
        for _, row in seg_rows.iterrows():
            seg_id = int(row["Demand_Segment"])
            for col in ("Cost_of_Demand_Curtailment_per_MW", "Max_Demand_Curtailment"):
                if _is_missing(row[col]):
                    raise SchemaError(f"Demand segment {seg_id} is missing '{col}'")
            segments.append(DemandSegment(
                segment=seg_id,
                cost_per_mwh=voll * float(row["Cost_of_Demand_Curtailment_per_MW"]),
                max_fraction=float(row["Max_Demand_Curtailment"]),
            ))

        load_cols = {}
        for col in df.columns:
            match = _LOAD_COLUMN.match(str(col))
            if match:
                load_cols[int(match.group(1))] = col
        if not load_cols:
            raise SchemaError("Load table has no Load_MW_z<k> columns")
        load = pd.DataFrame(
            {zone: df[col].astype(float).values for zone, col in sorted(load_cols.items())},
            index=pd.Index(df["Time_Index"].astype(int).values, name="time_step"),
        )
        return cls(load=load, voll=voll, segments=tuple(sorted(segments, key=lambda s: s.segment)))


@dataclass(frozen=True)
class PeriodStructure:
    """
    Representative period metadata.

    ``weights[p]`` is the number of horizon hours period ``p`` stands for;
    ``period_lengths`` is only given when the source lists one length per
    period and is used to reject heterogeneous lengths.
    """
    hours_per_period: int
    weights: Tuple[float, ...]
    n_steps: int
    period_lengths: Optional[Tuple[int, ...]] = None

    @property
    def n_periods(self) -> int:
        return len(self.weights)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "PeriodStructure":
        _require_columns(df, ["Timesteps_per_Rep_Period", "Sub_Weights", "Time_Index"], "Load")
        lengths = tuple(int(x) for x in df["Timesteps_per_Rep_Period"].dropna())
        weights = tuple(float(w) for w in df["Sub_Weights"].dropna())
        if not lengths:
            raise PeriodError("Load table has no value in column 'Timesteps_per_Rep_Period'")
        if not weights:
            raise PeriodError("Load table has no value in column 'Sub_Weights'")
        return cls(
            hours_per_period=lengths[0],
            weights=weights,
            n_steps=int(df["Time_Index"].dropna().shape[0]),
            period_lengths=lengths if len(lengths) > 1 else None,
        )


@dataclass(frozen=True)
class Catalog:
    """
    Working resource set with fuels and availability profiles.

    ``variability`` holds hourly availability factors (index = time step,
    columns = resource names). Non-VRE resources without a column are
    fully available (factor 1.0).
    """
    resources: Tuple[Resource, ...]
    fuels: Dict[str, Fuel]
    variability: pd.DataFrame = field(default_factory=pd.DataFrame)
    _by_name: Dict[str, Resource] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        names = [r.name for r in self.resources]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise SchemaError(f"Duplicate resource name(s): {', '.join(dupes)}")
        for r in self.resources:
            if r.fuel not in self.fuels:
                raise SchemaError(f"Resource '{r.name}' references undefined fuel '{r.fuel}'")
        if not self.variability.empty and (self.variability.values < 0).any():
            raise SchemaError("Availability table contains negative factors")
        object.__setattr__(self, "_by_name", {r.name: r for r in self.resources})

    @property
    def names(self) -> List[str]:
        return [r.name for r in self.resources]

    def resource(self, name: str) -> Resource:
        return self._by_name[name]

    def fuel_of(self, name: str) -> Fuel:
        return self.fuels[self.resource(name).fuel]

    def var_cost(self, name: str) -> float:
        return self.resource(name).var_cost(self.fuel_of(name))

    def co2_rate(self, name: str) -> float:
        return self.resource(name).co2_rate(self.fuel_of(name))

    def start_cost(self, name: str) -> float:
        return self.resource(name).start_cost(self.fuel_of(name))

    def availability(self, name: str, t: int) -> float:
        if name in self.variability.columns:
            return float(self.variability.at[t, name])
        return 1.0

    def without(self, names: Iterable[str]) -> "Catalog":
        """Copy of the catalog with the given resources dropped."""
        drop = set(names)
        keep = tuple(r for r in self.resources if r.name not in drop)
        cols = [c for c in self.variability.columns if c not in drop]
        return Catalog(resources=keep, fuels=self.fuels, variability=self.variability[cols])

    def validate_against(self, zones: Sequence[int], n_steps: int) -> None:
        """Cross-check resource zones and profile length against the case."""
        for r in self.resources:
            if r.zone not in zones:
                raise SchemaError(f"Resource '{r.name}' references undefined zone {r.zone}")
        unprofiled = [r.name for r in self.resources
                      if r.vre and r.name not in self.variability.columns]
        if unprofiled:
            raise SchemaError(
                f"Variable renewable resource(s) without an availability profile: "
                f"{', '.join(unprofiled)}"
            )
        if not self.variability.empty:
            if len(self.variability) != n_steps:
                raise SchemaError(
                    f"Availability table has {len(self.variability)} rows, expected {n_steps}"
                )
            expected = list(range(1, n_steps + 1))
            if list(self.variability.index) != expected:
                raise SchemaError("Availability table must be indexed by time steps 1..N")

    @classmethod
    def from_frames(cls, generators: pd.DataFrame, fuels: Dict[str, Fuel],
                    variability: Optional[pd.DataFrame] = None) -> "Catalog":
        """
        Build a catalog from a generator table, parsed fuels and an optional
        availability table.

        The availability table may carry a ``Time_Index`` column, which becomes
        the index; columns for resources not in the generator table are
        dropped with a warning.
        """
        _require_columns(
            generators,
            [c for c, (_, default) in GENERATOR_COLUMNS.items() if default is None],
            "Generators",
        )
        resources = tuple(
            Resource.from_row(row, i) for i, (_, row) in enumerate(generators.iterrows())
        )
        if variability is None:
            variability = pd.DataFrame()
        else:
            variability = variability.copy()
            if "Time_Index" in variability.columns:
                variability = variability.set_index("Time_Index")
            variability.index = variability.index.astype(int)
            names = {r.name for r in resources}
            unknown = [c for c in variability.columns if c not in names]
            if unknown:
                logger.warning("Ignoring availability profiles for unknown resources: %s", unknown)
                variability = variability.drop(columns=unknown)
            variability = variability.astype(float)
        return cls(resources=resources, fuels=fuels, variability=variability)

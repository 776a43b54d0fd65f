"""
Multi-zone Capacity Expansion Model
===================================

Builds and solves a linear capacity expansion problem over representative
periods: how much generation, storage and transfer capacity to keep, retire
or build, and how to dispatch it hour by hour, at least annualised cost.

Mathematical Formulation
------------------------
    min  FixedGen + FixedStorage + FixedTransmission
         + Σ_t w_t Σ_g c_g × GEN[t,g] + Σ_t w_t Σ_s Σ_z p_s × NSE[t,s,z]

    s.t. zonal balance, capacity coupling, capacity accounting and
         within-period time coupling (see ``constraints``)

where w_t = (period weight) / (hours per period) converts a sampled hour into
its share of the planning horizon.

Usage Example
-------------
>>> from zonal_cem.core.data_loader import CaseDataLoader
>>> from zonal_cem.core.cem import CapacityExpansionModel, ModelSettings
>>>
>>> case = CaseDataLoader('cases/three_zones')
>>> cem = CapacityExpansionModel(case.catalog, case.demand, case.periods, case.network,
>>>                              settings=ModelSettings(solver='appsi_highs'))
>>> cem.build_model()
>>> if cem.solve():
>>>     cem.print_summary()
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pyomo.environ import ConcreteModel, Param, Set

from .catalog import Catalog, DemandProfile, Network, PeriodStructure
from .constraints import add_constraints
from .exceptions import SchemaError
from .objective import add_objective
from .results import CaseResults, extract_results
from .solver import SolveOutcome, SolveStatus, solve_model
from .subsets import SubsetIndex, working_catalog
from .temporal import HOURS_PER_YEAR, TemporalIndex
from .variables import add_variables

logger = logging.getLogger(__name__)


@dataclass
class ModelSettings:
    """
    Run configuration.

    Attributes
    ----------
    solver : str
        Pyomo solver plugin name (default 'appsi_highs')
    time_limit : float, optional
        Solver wall-clock limit in seconds
    tee : bool
        Stream solver output
    solver_options : dict
        Extra options set on the solver plugin
    exclude_hydro_and_must_run : bool
        Drop hydro and non-dispatchable resources before building
    horizon_hours : float
        Hours the representative periods must add up to
    weight_rtol : float
        Relative tolerance for the annualisation check
    strict_weights : bool
        Reject (instead of warn about) inconsistent period weights
    """
    solver: str = "appsi_highs"
    time_limit: Optional[float] = None
    tee: bool = False
    solver_options: Dict[str, Any] = field(default_factory=dict)
    exclude_hydro_and_must_run: bool = True
    horizon_hours: float = HOURS_PER_YEAR
    weight_rtol: float = 0.01
    strict_weights: bool = False


class CapacityExpansionModel:
    """Multi-zone, representative-period capacity expansion LP."""

    def __init__(self,
                 catalog: Catalog,
                 demand: DemandProfile,
                 periods: PeriodStructure,
                 network: Optional[Network] = None,
                 settings: Optional[ModelSettings] = None):
        """Validate inputs and derive time weights and resource subsets."""
        self.settings = settings or ModelSettings()
        self.demand = demand
        self.periods = periods
        self.network = network or Network.single_zone(demand.zones[0])

        self.temporal = TemporalIndex.from_periods(periods)
        self.temporal.check_annualization(
            self.settings.horizon_hours,
            rtol=self.settings.weight_rtol,
            strict=self.settings.strict_weights,
        )
        self._validate_demand()

        self.catalog = working_catalog(catalog, self.settings.exclude_hydro_and_must_run)
        self.catalog.validate_against(self.network.zones, len(self.temporal.steps))
        self.subsets = SubsetIndex.from_catalog(self.catalog)
        if self.subsets.UC:
            logger.info("Unit commitment is not modelled; %d committed resource(s) "
                        "are dispatched linearly", len(self.subsets.UC))
        lossy = [line.name for line in self.network.lines if line.loss_percentage > 0]
        if lossy:
            logger.info("Line losses are not applied in the zonal balance (lines %s)", lossy)

        self.model = None
        self.outcome: Optional[SolveOutcome] = None

    def _validate_demand(self) -> None:
        if sorted(self.demand.zones) != sorted(self.network.zones):
            raise SchemaError(
                f"Demand zones {self.demand.zones} do not match network zones "
                f"{list(self.network.zones)}"
            )
        if list(self.demand.load.index) != list(self.temporal.steps):
            raise SchemaError(
                f"Demand table must be indexed by time steps 1..{len(self.temporal.steps)}"
            )

    def build_model(self) -> None:
        """Build sets, parameters, variables, constraints and the objective."""
        self.model = ConcreteModel(name="CEM-LP")
        m = self.model
        sub = self.subsets
        cat = self.catalog
        net = self.network
        tmp = self.temporal
        resources = {r.name: r for r in cat.resources}

        # Time
        m.T = Set(initialize=list(tmp.steps), ordered=True)
        m.STARTS = Set(within=m.T, initialize=list(tmp.starts), ordered=True)
        m.INTERIORS = Set(within=m.T, initialize=list(tmp.interiors), ordered=True)
        m.weight = Param(m.T, initialize=tmp.weights)
        m.prev = Param(m.T, initialize={t: tmp.previous(t) for t in tmp.steps})

        # Zones, segments, lines
        m.Z = Set(initialize=list(net.zones), ordered=True)
        m.S = Set(initialize=[s.segment for s in self.demand.segments], ordered=True)
        m.L = Set(initialize=net.line_names, ordered=True)

        demand = {}
        for t in tmp.steps:
            for z in net.zones:
                demand[(t, z)] = float(self.demand.load.at[t, z])
        m.demand = Param(m.T, m.Z, initialize=demand)
        m.nse_cost = Param(m.S, initialize={s.segment: s.cost_per_mwh for s in self.demand.segments})
        m.nse_max_fraction = Param(m.S, initialize={s.segment: s.max_fraction
                                                    for s in self.demand.segments})

        incidence = net.incidence_matrix()
        incidence_param = {}
        lines_at_zone = {z: [] for z in net.zones}
        for i, line in enumerate(net.lines):
            for j, z in enumerate(net.zones):
                if incidence[i, j] != 0:
                    incidence_param[(line.name, z)] = int(incidence[i, j])
                    lines_at_zone[z].append(line.name)
        m.incidence = Param(m.L, m.Z, initialize=incidence_param, default=0)
        m.L_AT_ZONE = Set(m.Z, within=m.L, initialize=lines_at_zone)

        lines = {line.name: line for line in net.lines}
        m.line_max_flow = Param(m.L, initialize={l: lines[l].max_flow_mw for l in lines})
        m.line_max_reinforcement = Param(m.L, initialize={l: lines[l].max_reinforcement_mw
                                                         for l in lines})
        m.line_reinforcement_cost = Param(m.L, initialize={l: lines[l].reinforcement_cost_per_mw_yr
                                                          for l in lines})
        m.line_fixed_cost = Param(m.L, initialize={l: lines[l].fixed_cost_per_mw_yr for l in lines})

        # Resources
        m.G = Set(initialize=list(sub.G), ordered=True)
        m.STOR = Set(within=m.G, initialize=list(sub.STOR), ordered=True)
        m.NEW = Set(within=m.G, initialize=list(sub.NEW), ordered=True)
        m.OLD = Set(within=m.G, initialize=list(sub.OLD), ordered=True)
        m.STOR_NEW = Set(within=m.STOR, initialize=list(sub.STOR_NEW), ordered=True)
        m.STOR_OLD = Set(within=m.STOR, initialize=list(sub.STOR_OLD), ordered=True)
        m.RAMP = Set(within=m.G, initialize=list(sub.RAMP), ordered=True)
        m.G_IN_ZONE = Set(m.Z, within=m.G, initialize={
            z: [g for g in sub.G if resources[g].zone == z] for z in net.zones
        })
        m.STOR_IN_ZONE = Set(m.Z, within=m.STOR, initialize={
            z: [g for g in sub.STOR if resources[g].zone == z] for z in net.zones
        })

        def by_resource(attr, names=sub.G):
            return {g: getattr(resources[g], attr) for g in names}

        m.existing_cap_mw = Param(m.G, initialize=by_resource("existing_cap_mw"))
        m.max_cap_mw = Param(m.G, initialize=by_resource("max_cap_mw"))
        m.can_retire = Param(m.G, initialize={g: int(resources[g].can_retire) for g in sub.G})
        m.fixed_om_cost = Param(m.G, initialize=by_resource("fixed_om_cost_per_mw_yr"))
        m.inv_cost = Param(m.G, initialize=by_resource("inv_cost_per_mw_yr"))
        m.var_cost = Param(m.G, initialize={g: cat.var_cost(g) for g in sub.G})
        m.ramp_up = Param(m.G, initialize=by_resource("ramp_up_percentage"))
        m.ramp_dn = Param(m.G, initialize=by_resource("ramp_dn_percentage"))
        m.availability = Param(m.T, m.G, initialize={
            (t, g): cat.availability(g, t) for t in tmp.steps for g in sub.G
        })

        m.existing_cap_mwh = Param(m.STOR, initialize=by_resource("existing_cap_mwh", sub.STOR))
        m.max_cap_mwh = Param(m.STOR, initialize=by_resource("max_cap_mwh", sub.STOR))
        m.fixed_om_cost_mwh = Param(m.STOR, initialize=by_resource("fixed_om_cost_per_mwh_yr", sub.STOR))
        m.inv_cost_mwh = Param(m.STOR, initialize=by_resource("inv_cost_per_mwh_yr", sub.STOR))
        m.eff_up = Param(m.STOR, initialize=by_resource("eff_up", sub.STOR))
        m.eff_down = Param(m.STOR, initialize=by_resource("eff_down", sub.STOR))

        add_variables(m)
        add_constraints(m)
        add_objective(m)

        logger.info(
            "Built %s: %d steps (%d periods of %d h), %d zones, %d resources "
            "(%d storage, %d new-build), %d lines",
            m.name, len(tmp.steps), tmp.n_periods, tmp.hours_per_period, len(net.zones),
            len(sub.G), len(sub.STOR), len(sub.NEW), len(net.lines),
        )

    def solve(self) -> bool:
        """Solve the model; True only for an optimal solution."""
        if self.model is None:
            self.build_model()
        s = self.settings
        self.outcome = solve_model(
            self.model,
            solver=s.solver,
            time_limit=s.time_limit,
            options=s.solver_options,
            tee=s.tee,
        )
        return self.outcome.ok

    @property
    def status(self) -> Optional[SolveStatus]:
        return self.outcome.status if self.outcome else None

    def get_results(self) -> Optional[CaseResults]:
        """Report tables, or None unless the last solve was optimal."""
        if self.model is None or self.outcome is None or not self.outcome.ok:
            return None
        return extract_results(self.model, self.catalog, self.demand, self.network, self.temporal)

    def print_summary(self) -> None:
        """Print formatted summary of the solved case."""
        results = self.get_results()
        if results is None:
            status = self.status.value if self.status else "not solved"
            print(f"No results available (status: {status})")
            return

        costs = results.costs.set_index("Cost")["Value"]
        print("\n" + "=" * 60)
        print("CAPACITY EXPANSION RESULTS SUMMARY")
        print("=" * 60)
        print(f"Total System Cost:        ${costs['Total_Costs']:,.2f}")
        print(f"  Fixed Generation:       ${costs['Fixed_Costs_Generation']:,.2f}")
        print(f"  Fixed Storage:          ${costs['Fixed_Costs_Storage']:,.2f}")
        print(f"  Fixed Transmission:     ${costs['Fixed_Costs_Transmission']:,.2f}")
        print(f"  Variable:               ${costs['Variable_Costs']:,.2f}")
        print(f"  Non-Served Energy:      ${costs['NSE_Costs']:,.2f}")

        print("\nCapacity by Resource:")
        for _, row in results.generation.iterrows():
            print(f"  {row['Resource']:30s} z{row['Zone']}: {row['Total_MW']:10.1f} MW "
                  f"({row['Change_in_MW']:+.1f}), {row['GWh']:10.1f} GWh")

        if not results.transmission.empty:
            print("\nTransfer Capacity:")
            for _, row in results.transmission.iterrows():
                print(f"  Line {row['Line']} (z{row['From_Zone']} -> z{row['To_Zone']}): "
                      f"{row['Total_Transfer_Capacity']:.1f} MW "
                      f"({row['Change_in_Transfer_Capacity']:+.1f})")

        total_nse = results.nse["Total_NSE_MWh"].sum()
        print(f"\nNon-Served Energy:        {total_nse:,.1f} MWh/yr")
        print("=" * 60)


def build_and_solve(catalog: Catalog,
                    demand: DemandProfile,
                    periods: PeriodStructure,
                    network: Optional[Network] = None,
                    settings: Optional[ModelSettings] = None
                    ) -> Tuple[SolveStatus, Optional[CaseResults]]:
    """
    Build, solve and extract in one call.

    Input problems raise ``SchemaError`` / ``PeriodError`` before any model is
    built. Solver outcomes are returned as the status; results are only
    returned for an optimal solve.
    """
    cem = CapacityExpansionModel(catalog, demand, periods, network, settings)
    cem.build_model()
    cem.solve()
    return cem.status, cem.get_results()

"""
Result extraction.

Read-only projection of a solved model into flat report tables. Nothing here
feeds back into the model.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd
from pyomo.environ import value

from .catalog import Catalog, DemandProfile, Network
from .objective import COST_TERMS
from .temporal import TemporalIndex

COST_LABELS = {
    "eFixedCostsGeneration": "Fixed_Costs_Generation",
    "eFixedCostsStorage": "Fixed_Costs_Storage",
    "eFixedCostsTransmission": "Fixed_Costs_Transmission",
    "eVariableCosts": "Variable_Costs",
    "eNSECosts": "NSE_Costs",
}


@dataclass(frozen=True)
class CaseResults:
    """
    Report tables for one optimal solve.

    Attributes
    ----------
    objective : float
        Total annualised system cost
    generation : pd.DataFrame
        Capacity and energy by resource, with shares of peak / total demand
    storage : pd.DataFrame
        Storage energy capacity by resource
    transmission : pd.DataFrame
        Transfer capacity by line
    nse : pd.DataFrame
        Non-served energy by segment and zone
    costs : pd.DataFrame
        Annualised cost by term, plus the total
    emissions : pd.DataFrame
        Annual CO2 by resource
    dispatch : pd.DataFrame
        Long table of hourly generation, charging and state of charge
    flows : pd.DataFrame
        Long table of hourly line flows
    """
    objective: float
    generation: pd.DataFrame
    storage: pd.DataFrame
    transmission: pd.DataFrame
    nse: pd.DataFrame
    costs: pd.DataFrame
    emissions: pd.DataFrame
    dispatch: pd.DataFrame
    flows: pd.DataFrame

    def tables(self) -> Dict[str, pd.DataFrame]:
        return {
            "generation": self.generation,
            "storage": self.storage,
            "transmission": self.transmission,
            "nse": self.nse,
            "costs": self.costs,
            "emissions": self.emissions,
            "dispatch": self.dispatch,
            "flows": self.flows,
        }

    def total_cost(self, label: str) -> float:
        return float(self.costs.set_index("Cost")["Value"][label])


def _share(numer: float, denom: float) -> float:
    return numer / denom * 100 if denom > 0 else np.nan


def recompute_costs(model, catalog: Catalog, demand: DemandProfile, network: Network,
                    temporal: TemporalIndex) -> Dict[str, float]:
    """
    Rebuild each cost term from solved variable values and catalog data.

    Independent of the objective expressions so the two can be compared.
    """
    fixed_gen = 0.0
    fixed_stor = 0.0
    for r in catalog.resources:
        fixed_gen += r.fixed_om_cost_per_mw_yr * value(model.vCAP[r.name])
        if r.is_new:
            fixed_gen += r.inv_cost_per_mw_yr * value(model.vNEW_CAP[r.name])
        if r.stor:
            fixed_stor += r.fixed_om_cost_per_mwh_yr * value(model.vE_CAP[r.name])
            if r.is_new:
                fixed_stor += r.inv_cost_per_mwh_yr * value(model.vNEW_E_CAP[r.name])

    fixed_trans = sum(
        line.fixed_cost_per_mw_yr * value(model.vT_CAP[line.name])
        + line.reinforcement_cost_per_mw_yr * value(model.vNEW_T_CAP[line.name])
        for line in network.lines
    )
    var_costs = {name: catalog.var_cost(name) for name in catalog.names}
    variable = sum(
        temporal.weights[t] * var_costs[g] * value(model.vGEN[t, g])
        for t in temporal.steps for g in catalog.names
    )
    nse = sum(
        temporal.weights[t] * seg.cost_per_mwh * value(model.vNSE[t, seg.segment, z])
        for t in temporal.steps for seg in demand.segments for z in network.zones
    )
    return {
        "Fixed_Costs_Generation": fixed_gen,
        "Fixed_Costs_Storage": fixed_stor,
        "Fixed_Costs_Transmission": fixed_trans,
        "Variable_Costs": variable,
        "NSE_Costs": nse,
    }


def extract_results(model, catalog: Catalog, demand: DemandProfile, network: Network,
                    temporal: TemporalIndex) -> CaseResults:
    """Build every report table from an optimally solved model."""
    steps = list(temporal.steps)
    weights = np.array([temporal.weights[t] for t in steps])
    load = demand.load.loc[steps, list(network.zones)]
    peak_demand = float(load.sum(axis=1).max())
    total_demand = float((load.values * weights[:, None]).sum())

    gen_rows = []
    emission_rows = []
    for r in catalog.resources:
        cap = value(model.vCAP[r.name])
        gen = np.array([value(model.vGEN[t, r.name]) for t in steps])
        annual_mwh = float((gen * weights).sum())
        gen_rows.append({
            "Resource": r.name,
            "Zone": r.zone,
            "Total_MW": cap,
            "Start_MW": r.existing_cap_mw,
            "Change_in_MW": cap - r.existing_cap_mw,
            "Percent_MW": _share(cap, peak_demand),
            "GWh": annual_mwh / 1000,
            "Percent_GWh": _share(annual_mwh, total_demand),
        })
        rate = catalog.co2_rate(r.name)
        emission_rows.append({
            "Resource": r.name,
            "Zone": r.zone,
            "CO2_Rate_t_per_MWh": rate,
            "CO2_Tons": rate * annual_mwh,
        })

    storage_rows = []
    for r in catalog.resources:
        if not r.stor:
            continue
        e_cap = value(model.vE_CAP[r.name])
        storage_rows.append({
            "Resource": r.name,
            "Zone": r.zone,
            "Total_Storage_MWh": e_cap,
            "Start_Storage_MWh": r.existing_cap_mwh,
            "Change_in_Storage_MWh": e_cap - r.existing_cap_mwh,
        })

    trans_rows = []
    for line in network.lines:
        t_cap = value(model.vT_CAP[line.name])
        trans_rows.append({
            "Line": line.name,
            "From_Zone": line.source,
            "To_Zone": line.sink,
            "Total_Transfer_Capacity": t_cap,
            "Start_Transfer_Capacity": line.max_flow_mw,
            "Change_in_Transfer_Capacity": t_cap - line.max_flow_mw,
        })

    nse_rows = []
    for seg in demand.segments:
        for z in network.zones:
            hourly = np.array([value(model.vNSE[t, seg.segment, z]) for t in steps])
            annual = float((hourly * weights).sum())
            zone_demand = float((load[z].values * weights).sum())
            nse_rows.append({
                "Segment": seg.segment,
                "Zone": z,
                "NSE_Price": seg.cost_per_mwh,
                "Max_NSE_MW": float(hourly.max()) if len(hourly) else 0.0,
                "Total_NSE_MWh": annual,
                "NSE_Percent_of_Demand": _share(annual, zone_demand),
            })

    costs = recompute_costs(model, catalog, demand, network, temporal)
    costs["Total_Costs"] = sum(costs.values())
    cost_df = pd.DataFrame({"Cost": list(costs), "Value": list(costs.values())})

    dispatch_rows = []
    stor = {r.name for r in catalog.resources if r.stor}
    for t in steps:
        for g in catalog.names:
            dispatch_rows.append({
                "Time_Index": t,
                "Resource": g,
                "Generation_MW": value(model.vGEN[t, g]),
                "Charge_MW": value(model.vCHARGE[t, g]) if g in stor else 0.0,
                "SOC_MWh": value(model.vSOC[t, g]) if g in stor else 0.0,
            })
    flow_rows = [
        {"Time_Index": t, "Line": line.name, "Flow_MW": value(model.vFLOW[t, line.name])}
        for t in steps for line in network.lines
    ]

    return CaseResults(
        objective=value(model.obj),
        generation=pd.DataFrame(gen_rows),
        storage=pd.DataFrame(storage_rows, columns=[
            "Resource", "Zone", "Total_Storage_MWh", "Start_Storage_MWh", "Change_in_Storage_MWh"]),
        transmission=pd.DataFrame(trans_rows, columns=[
            "Line", "From_Zone", "To_Zone", "Total_Transfer_Capacity",
            "Start_Transfer_Capacity", "Change_in_Transfer_Capacity"]),
        nse=pd.DataFrame(nse_rows),
        costs=cost_df,
        emissions=pd.DataFrame(emission_rows),
        dispatch=pd.DataFrame(dispatch_rows),
        flows=pd.DataFrame(flow_rows, columns=["Time_Index", "Line", "Flow_MW"]),
    )


def objective_terms(model) -> Dict[str, float]:
    """Values of the named objective expressions, keyed by report label."""
    return {COST_LABELS[term]: value(getattr(model, term)) for term in COST_TERMS}

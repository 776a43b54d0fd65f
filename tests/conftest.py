# tests/conftest.py

import pandas as pd
import pytest

from zonal_cem.core.catalog import (
    Catalog,
    DemandProfile,
    DemandSegment,
    Fuel,
    Network,
    PeriodStructure,
    Resource,
    TransmissionLine,
)


def _highs_available() -> bool:
    try:
        from pyomo.environ import SolverFactory
        return bool(SolverFactory("appsi_highs").available(exception_flag=False))
    except Exception:
        return False


@pytest.fixture(scope="session")
def highs():
    """Name of the LP solver used by solve tests; skips when HiGHS is missing."""
    if not _highs_available():
        pytest.skip("HiGHS (highspy + pyomo appsi_highs) not available")
    return "appsi_highs"


FUELS = {
    "None": Fuel("None"),
    "natural_gas": Fuel("natural_gas", cost_per_mmbtu=4.0, co2_content_tons_per_mmbtu=0.05306),
}


def load_frame(rows):
    """Demand DataFrame indexed 1..N from a list of per-step zone dicts."""
    return pd.DataFrame(rows, index=pd.Index(range(1, len(rows) + 1), name="time_step"))


@pytest.fixture
def scenario_a():
    """
    One zone, one ramp-limited thermal unit and one battery, a single 4-hour
    representative period weighted 365.
    """
    gas = Resource(
        name="gas_ct", zone=1, fuel="None", new_build=0, therm=True,
        existing_cap_mw=100.0, var_om_cost_per_mwh=20.0,
        ramp_up_percentage=0.5, ramp_dn_percentage=0.5,
    )
    battery = Resource(
        name="battery", zone=1, fuel="None", new_build=0, stor=True,
        existing_cap_mw=20.0, existing_cap_mwh=40.0, eff_up=0.9, eff_down=0.9,
    )
    catalog = Catalog(resources=(gas, battery), fuels=FUELS)
    demand = DemandProfile(
        load=load_frame([{1: 30.0}, {1: 40.0}, {1: 35.0}, {1: 25.0}]),
        voll=50000.0,
        segments=(DemandSegment(1, 50000.0, 1.0),),
    )
    periods = PeriodStructure(hours_per_period=4, weights=(365.0,), n_steps=4)
    return catalog, demand, periods, Network.single_zone(1)


@pytest.fixture
def scenario_b():
    """
    Wind-only zone 1 exporting over a 50 MW line to load-only zone 2.
    """
    wind = Resource(name="wind", zone=1, fuel="None", new_build=0, vre=True,
                    existing_cap_mw=200.0)
    variability = pd.DataFrame({"wind": [0.3] * 4}, index=range(1, 5))
    catalog = Catalog(resources=(wind,), fuels=FUELS, variability=variability)
    demand = DemandProfile(
        load=load_frame([{1: 0.0, 2: 80.0}] * 4),
        voll=1000.0,
        segments=(DemandSegment(1, 1000.0, 1.0),),
    )
    periods = PeriodStructure(hours_per_period=4, weights=(8760.0,), n_steps=4)
    line = TransmissionLine(name="1", incidence={1: 1, 2: -1}, max_flow_mw=50.0)
    network = Network(zones=(1, 2), lines=(line,))
    return catalog, demand, periods, network


@pytest.fixture
def two_zone_expansion():
    """
    Two zones and two 3-hour periods with new-build gas and storage, an
    existing wind fleet and a reinforceable line; every cost term is nonzero.
    """
    resources = (
        Resource(name="wind", zone=1, fuel="None", new_build=0, vre=True, rps=True,
                 existing_cap_mw=150.0, fixed_om_cost_per_mw_yr=40000.0),
        Resource(name="ccgt_new", zone=2, fuel="natural_gas", new_build=1, therm=True,
                 max_cap_mw=-1.0, inv_cost_per_mw_yr=90000.0, fixed_om_cost_per_mw_yr=10000.0,
                 var_om_cost_per_mwh=3.0, heat_rate_mmbtu_per_mwh=7.0,
                 ramp_up_percentage=0.6, ramp_dn_percentage=0.6),
        Resource(name="battery_new", zone=2, fuel="None", new_build=1, stor=True,
                 inv_cost_per_mw_yr=15000.0, inv_cost_per_mwh_yr=8000.0,
                 fixed_om_cost_per_mwh_yr=500.0, eff_up=0.92, eff_down=0.92),
        Resource(name="old_peaker", zone=2, fuel="natural_gas", new_build=0, therm=True,
                 existing_cap_mw=30.0, fixed_om_cost_per_mw_yr=20000.0,
                 var_om_cost_per_mwh=5.0, heat_rate_mmbtu_per_mwh=11.0),
    )
    variability = pd.DataFrame(
        {"wind": [0.8, 0.5, 0.2, 0.1, 0.4, 0.9]}, index=range(1, 7)
    )
    catalog = Catalog(resources=resources, fuels=FUELS, variability=variability)
    demand = DemandProfile(
        load=load_frame([
            {1: 20.0, 2: 60.0}, {1: 25.0, 2: 90.0}, {1: 30.0, 2: 110.0},
            {1: 15.0, 2: 50.0}, {1: 20.0, 2: 70.0}, {1: 25.0, 2: 80.0},
        ]),
        voll=9000.0,
        segments=(
            DemandSegment(1, 9000.0, 1.0),
            DemandSegment(2, 0.9 * 9000.0, 0.04),
        ),
    )
    periods = PeriodStructure(hours_per_period=3, weights=(4380.0, 4380.0), n_steps=6)
    line = TransmissionLine(
        name="z1_z2", incidence={1: 1, 2: -1}, max_flow_mw=40.0,
        max_reinforcement_mw=100.0, reinforcement_cost_per_mw_yr=20000.0,
        fixed_cost_per_mw_yr=1000.0,
    )
    network = Network(zones=(1, 2), lines=(line,))
    return catalog, demand, periods, network


@pytest.fixture
def case_dir(tmp_path):
    """Case folder with the five CSV tables for a two-zone, two-period case."""
    case = tmp_path / "two_zones"
    case.mkdir()

    pd.DataFrame([
        {"Resource": "wind", "Zone": 1, "THERM": 0, "DISP": 1, "NDISP": 0, "STOR": 0,
         "HYDRO": 0, "RPS": 1, "CES": 1, "Commit": 0, "New_Build": 1,
         "Existing_Cap_MW": 0, "Max_Cap_MW": -1, "Existing_Cap_MWh": 0, "Max_Cap_MWh": 0,
         "Inv_cost_per_MWyr": 85000, "Fixed_OM_cost_per_MWyr": 40000,
         "Inv_cost_per_MWhyr": 0, "Fixed_OM_cost_per_MWhyr": 0, "Var_OM_cost_per_MWh": 0,
         "Heat_rate_MMBTU_per_MWh": 0, "Fuel": "None", "Ramp_Up_percentage": 1,
         "Ramp_Dn_percentage": 1, "Eff_up": 1, "Eff_down": 1},
        {"Resource": "ccgt", "Zone": 2, "THERM": 1, "DISP": 0, "NDISP": 0, "STOR": 0,
         "HYDRO": 0, "RPS": 0, "CES": 0, "Commit": 1, "New_Build": 0,
         "Existing_Cap_MW": 120, "Max_Cap_MW": -1, "Existing_Cap_MWh": 0, "Max_Cap_MWh": 0,
         "Inv_cost_per_MWyr": 0, "Fixed_OM_cost_per_MWyr": 10000,
         "Inv_cost_per_MWhyr": 0, "Fixed_OM_cost_per_MWhyr": 0, "Var_OM_cost_per_MWh": 3.5,
         "Heat_rate_MMBTU_per_MWh": 7.2, "Fuel": "natural_gas", "Ramp_Up_percentage": 0.64,
         "Ramp_Dn_percentage": 0.64, "Eff_up": 1, "Eff_down": 1},
        {"Resource": "hydro", "Zone": 2, "THERM": 0, "DISP": 0, "NDISP": 0, "STOR": 0,
         "HYDRO": 1, "RPS": 1, "CES": 1, "Commit": 0, "New_Build": 0,
         "Existing_Cap_MW": 10, "Max_Cap_MW": -1, "Existing_Cap_MWh": 0, "Max_Cap_MWh": 0,
         "Inv_cost_per_MWyr": 0, "Fixed_OM_cost_per_MWyr": 0,
         "Inv_cost_per_MWhyr": 0, "Fixed_OM_cost_per_MWhyr": 0, "Var_OM_cost_per_MWh": 0,
         "Heat_rate_MMBTU_per_MWh": 0, "Fuel": "None", "Ramp_Up_percentage": 1,
         "Ramp_Dn_percentage": 1, "Eff_up": 1, "Eff_down": 1},
    ]).to_csv(case / "Generators_data.csv", index=False)

    pd.DataFrame([
        {"Fuel": "None", "Cost_per_MMBtu": 0.0, "CO2_content_tons_per_MMBtu": 0.0},
        {"Fuel": "natural_gas", "Cost_per_MMBtu": 4.0, "CO2_content_tons_per_MMBtu": 0.05306},
    ]).to_csv(case / "Fuels_data.csv", index=False)

    pd.DataFrame({
        "Time_Index": [1, 2, 3, 4],
        "wind": [0.6, 0.3, 0.5, 0.2],
        "ccgt": [1.0, 1.0, 1.0, 1.0],
        "hydro": [0.5, 0.5, 0.5, 0.5],
    }).to_csv(case / "Generators_variability.csv", index=False)

    nan = float("nan")
    pd.DataFrame({
        "Voll": [50000, nan, nan, nan],
        "Demand_Segment": [1, 2, nan, nan],
        "Cost_of_Demand_Curtailment_per_MW": [1.0, 0.9, nan, nan],
        "Max_Demand_Curtailment": [1.0, 0.04, nan, nan],
        "Rep_Periods": [2, nan, nan, nan],
        "Timesteps_per_Rep_Period": [2, nan, nan, nan],
        "Sub_Weights": [4380.0, 4380.0, nan, nan],
        "Time_Index": [1, 2, 3, 4],
        "Load_MW_z1": [20.0, 30.0, 25.0, 15.0],
        "Load_MW_z2": [70.0, 95.0, 80.0, 60.0],
    }).to_csv(case / "Load_data.csv", index=False)

    pd.DataFrame([
        {"Network_zones": "z1", "Network_Lines": 1, "z1": 1, "z2": -1,
         "Line_Max_Flow_MW": 30, "Line_Max_Reinforcement_MW": 50,
         "Line_Reinforcement_Cost_per_MW_yr": 25000, "Line_Fixed_Cost_per_MW_yr": 0,
         "Line_Loss_Percentage": 0.01},
    ]).to_csv(case / "Network.csv", index=False)

    return case

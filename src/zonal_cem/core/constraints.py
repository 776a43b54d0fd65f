"""
Constraint Generator
====================

Adds every constraint family of the capacity expansion LP to a Pyomo model
that already carries the sets, parameters and variables built by
``CapacityExpansionModel.build_model``.

Mathematical Formulation
------------------------
Zonal balance (every zone z, step t):

    Σ_{g∈G_z} GEN[t,g] + Σ_s NSE[t,s,z] - Σ_{g∈STOR_z} CHARGE[t,g]
        - D[t,z] - Σ_l A[l,z] × FLOW[t,l] = 0

where A is the signed line x zone incidence (+1 source, -1 sink), so a line
adds +FLOW to its source zone's exports and -FLOW to its sink zone's.

Capacity coupling:

    GEN[t,g]    ≤ a[t,g] × CAP[g]            (a = availability factor)
    CHARGE[t,g] ≤ CAP[g]                     g ∈ STOR
    SOC[t,g]    ≤ E_CAP[g]                   g ∈ STOR
    NSE[t,s,z]  ≤ m_s × D[t,z]
    -T_CAP[l]   ≤ FLOW[t,l] ≤ T_CAP[l]

Capacity accounting:

    CAP[g]   = Existing[g] - RET_CAP[g]      g ∈ OLD
    CAP[g]   = NEW_CAP[g]                    g ∈ NEW
    (same split for E_CAP on storage)
    T_CAP[l] = MaxFlow[l] - RET_T_CAP[l] + NEW_T_CAP[l]

Time coupling, with prev(t) = t-1 for interior steps and t+H-1 for the first
step of each representative period:

    GEN[t,g] - GEN[prev(t),g] ≤ ru[g] × CAP[g]             g ∈ RAMP
    GEN[prev(t),g] - GEN[t,g] ≤ rd[g] × CAP[g]             g ∈ RAMP
    SOC[t,g] = SOC[prev(t),g] + η_up × CHARGE[t,g] - GEN[t,g] / η_down    g ∈ STOR

Interior and wrap families share one rule each and differ only in the step
set they are built over, so both sides of a period boundary obey the same
relation.
"""

from pyomo.environ import Constraint


def add_demand_balance(model) -> None:
    """Zonal power balance for every zone and time step."""
    def demand_balance_rule(m, t, z):
        generation = sum(m.vGEN[t, g] for g in m.G_IN_ZONE[z])
        charging = sum(m.vCHARGE[t, g] for g in m.STOR_IN_ZONE[z])
        curtailment = sum(m.vNSE[t, s, z] for s in m.S)
        net_export = sum(m.incidence[l, z] * m.vFLOW[t, l] for l in m.L_AT_ZONE[z])
        return generation + curtailment - charging - m.demand[t, z] - net_export == 0

    model.cDemandBalance = Constraint(model.T, model.Z, rule=demand_balance_rule)


def add_capacity_coupling(model) -> None:
    """Bound hourly operation by installed capacity."""
    model.cMaxPower = Constraint(
        model.T, model.G,
        rule=lambda m, t, g: m.vGEN[t, g] <= m.availability[t, g] * m.vCAP[g]
    )
    model.cMaxCharge = Constraint(
        model.T, model.STOR,
        rule=lambda m, t, g: m.vCHARGE[t, g] <= m.vCAP[g]
    )
    model.cMaxSOC = Constraint(
        model.T, model.STOR,
        rule=lambda m, t, g: m.vSOC[t, g] <= m.vE_CAP[g]
    )
    model.cMaxNSE = Constraint(
        model.T, model.S, model.Z,
        rule=lambda m, t, s, z: m.vNSE[t, s, z] <= m.nse_max_fraction[s] * m.demand[t, z]
    )
    model.cMaxFlow = Constraint(
        model.T, model.L,
        rule=lambda m, t, l: m.vFLOW[t, l] <= m.vT_CAP[l]
    )
    model.cMinFlow = Constraint(
        model.T, model.L,
        rule=lambda m, t, l: m.vFLOW[t, l] >= -m.vT_CAP[l]
    )


def add_capacity_accounting(model) -> None:
    """Tie installed capacity to existing stock, retirements and new builds."""
    model.cCapOld = Constraint(
        model.OLD,
        rule=lambda m, g: m.vCAP[g] == m.existing_cap_mw[g] - m.vRET_CAP[g]
    )
    model.cCapNew = Constraint(
        model.NEW,
        rule=lambda m, g: m.vCAP[g] == m.vNEW_CAP[g]
    )
    model.cCapEnergyOld = Constraint(
        model.STOR_OLD,
        rule=lambda m, g: m.vE_CAP[g] == m.existing_cap_mwh[g] - m.vRET_E_CAP[g]
    )
    model.cCapEnergyNew = Constraint(
        model.STOR_NEW,
        rule=lambda m, g: m.vE_CAP[g] == m.vNEW_E_CAP[g]
    )
    model.cTransCap = Constraint(
        model.L,
        rule=lambda m, l: m.vT_CAP[l] == m.line_max_flow[l] - m.vRET_T_CAP[l] + m.vNEW_T_CAP[l]
    )


def _ramp_up_rule(m, t, g):
    return m.vGEN[t, g] - m.vGEN[m.prev[t], g] <= m.ramp_up[g] * m.vCAP[g]


def _ramp_dn_rule(m, t, g):
    return m.vGEN[m.prev[t], g] - m.vGEN[t, g] <= m.ramp_dn[g] * m.vCAP[g]


def _soc_rule(m, t, g):
    return (
        m.vSOC[t, g]
        == m.vSOC[m.prev[t], g]
        + m.eff_up[g] * m.vCHARGE[t, g]
        - m.vGEN[t, g] / m.eff_down[g]
    )


def add_time_coupling(model) -> None:
    """Ramp limits and storage state-of-charge recursion, wrapping within periods."""
    model.cRampUp = Constraint(model.INTERIORS, model.RAMP, rule=_ramp_up_rule)
    model.cRampUpWrap = Constraint(model.STARTS, model.RAMP, rule=_ramp_up_rule)
    model.cRampDn = Constraint(model.INTERIORS, model.RAMP, rule=_ramp_dn_rule)
    model.cRampDnWrap = Constraint(model.STARTS, model.RAMP, rule=_ramp_dn_rule)

    model.cSOC = Constraint(model.INTERIORS, model.STOR, rule=_soc_rule)
    model.cSOCWrap = Constraint(model.STARTS, model.STOR, rule=_soc_rule)


def add_constraints(model) -> None:
    add_demand_balance(model)
    add_capacity_coupling(model)
    add_capacity_accounting(model)
    add_time_coupling(model)

"""Decision variables of the capacity expansion model."""

from pyomo.environ import NonNegativeReals, Reals, Var


def _new_cap_bounds(m, g):
    cap = m.max_cap_mw[g]
    return (0, cap if cap > 0 else None)


def _new_energy_cap_bounds(m, g):
    cap = m.max_cap_mwh[g]
    return (0, cap if cap > 0 else None)


def _retirement_bounds(m, g):
    return (0, None if m.can_retire[g] else 0)


def add_capacity_variables(model) -> None:
    """Installed / retired / new capacity for resources, storage energy and lines."""
    model.vCAP = Var(model.G, domain=NonNegativeReals, doc="Installed power capacity (MW)")
    model.vRET_CAP = Var(model.OLD, domain=NonNegativeReals, bounds=_retirement_bounds,
                         doc="Retired existing capacity (MW)")
    model.vNEW_CAP = Var(model.NEW, domain=NonNegativeReals, bounds=_new_cap_bounds,
                         doc="New-build capacity (MW)")

    model.vE_CAP = Var(model.STOR, domain=NonNegativeReals, doc="Installed storage energy (MWh)")
    model.vRET_E_CAP = Var(model.STOR_OLD, domain=NonNegativeReals, bounds=_retirement_bounds,
                           doc="Retired storage energy (MWh)")
    model.vNEW_E_CAP = Var(model.STOR_NEW, domain=NonNegativeReals, bounds=_new_energy_cap_bounds,
                           doc="New storage energy (MWh)")

    model.vT_CAP = Var(model.L, domain=NonNegativeReals, doc="Line transfer capacity (MW)")
    model.vRET_T_CAP = Var(model.L, domain=NonNegativeReals, doc="Retired transfer capacity (MW)")
    model.vNEW_T_CAP = Var(model.L, domain=NonNegativeReals,
                           bounds=lambda m, l: (0, m.line_max_reinforcement[l]),
                           doc="Transfer capacity reinforcement (MW)")


def add_operational_variables(model) -> None:
    """Hourly dispatch, storage, curtailment and flow variables."""
    model.vGEN = Var(model.T, model.G, domain=NonNegativeReals, doc="Generation / discharge (MW)")
    model.vCHARGE = Var(model.T, model.STOR, domain=NonNegativeReals, doc="Storage charging (MW)")
    model.vSOC = Var(model.T, model.STOR, domain=NonNegativeReals, doc="State of charge (MWh)")
    model.vNSE = Var(model.T, model.S, model.Z, domain=NonNegativeReals,
                     doc="Non-served energy by segment (MW)")
    model.vFLOW = Var(model.T, model.L, domain=Reals, doc="Signed line flow, source to sink (MW)")


def add_variables(model) -> None:
    add_capacity_variables(model)
    add_operational_variables(model)

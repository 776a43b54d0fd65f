"""Objective: fixed costs plus annualised operational costs."""

from pyomo.environ import Expression, Objective, minimize

COST_TERMS = (
    "eFixedCostsGeneration",
    "eFixedCostsStorage",
    "eFixedCostsTransmission",
    "eVariableCosts",
    "eNSECosts",
)


def add_cost_expressions(model) -> None:
    """
    Declare the five cost terms as named expressions.

    Fixed terms are already annual. Operational terms are sums over sampled
    steps and each step is scaled by its annualisation weight.
    """
    model.eFixedCostsGeneration = Expression(
        expr=sum(model.fixed_om_cost[g] * model.vCAP[g] for g in model.G)
        + sum(model.inv_cost[g] * model.vNEW_CAP[g] for g in model.NEW)
    )
    model.eFixedCostsStorage = Expression(
        expr=sum(model.fixed_om_cost_mwh[g] * model.vE_CAP[g] for g in model.STOR)
        + sum(model.inv_cost_mwh[g] * model.vNEW_E_CAP[g] for g in model.STOR_NEW)
    )
    model.eFixedCostsTransmission = Expression(
        expr=sum(
            model.line_fixed_cost[l] * model.vT_CAP[l]
            + model.line_reinforcement_cost[l] * model.vNEW_T_CAP[l]
            for l in model.L
        )
    )
    model.eVariableCosts = Expression(
        expr=sum(
            model.weight[t] * model.var_cost[g] * model.vGEN[t, g]
            for t in model.T for g in model.G
        )
    )
    model.eNSECosts = Expression(
        expr=sum(
            model.weight[t] * model.nse_cost[s] * model.vNSE[t, s, z]
            for t in model.T for s in model.S for z in model.Z
        )
    )


def add_objective(model) -> None:
    add_cost_expressions(model)
    model.obj = Objective(
        expr=sum(getattr(model, term) for term in COST_TERMS),
        sense=minimize
    )

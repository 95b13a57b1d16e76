# src/pkode/models/tmdd.py
"""
Target-mediated drug disposition (full binding model).

States are concentrations: free drug L, free target R and drug-target
complex P.

    dL/dt = -kel*L - kon*L*R + koff*P
    dR/dt = ksyn - kdeg*R - kon*L*R + koff*P
    dP/dt = kon*L*R - koff*P - kint*P

Target turnover is assumed at steady state before dosing, so
ksyn = kdeg * R0 is always derived and cannot be overridden.
"""
from .base import ModelDefinition, frozen, ratio

_BINDING = dict(V=5.0, kel=0.1, kon=0.1, koff=0.01, kint=0.1, R0=1.0, kdeg=0.01)


def _binding(L, R, P, p):
    """(dL, dR, dP) from elimination, binding and target turnover."""
    bound = p["kon"] * L * R - p["koff"] * P
    return (
        -p["kel"] * L - bound,
        p["ksyn"] - p["kdeg"] * R - bound,
        bound - p["kint"] * P,
    )


class TMDD(ModelDefinition):
    """IV bolus into the central volume: L(0) = dose / V, R(0) = R0, P(0) = 0."""

    model_id = "tmdd"
    name = "Target-mediated drug disposition"
    defaults = frozen(**_BINDING)
    linear = False
    state_is_concentration = True

    def derive(self, p):
        return {"ksyn": p["kdeg"] * p["R0"]}

    def initial_state(self, p, dose):
        return [ratio(dose, p["V"]), p["R0"], 0.0]

    def rhs(self, t, y, p):
        L, R, P = y
        return list(_binding(L, R, P, p))


class TMDDOral(TMDD):
    """TMDD with a first-order absorption depot (amount, mg) at y[0] feeding L."""

    model_id = "tmdd-oral"
    name = "Target-mediated drug disposition, oral absorption"
    defaults = frozen(ka=0.5, F=0.8, **_BINDING)
    route = "oral"

    def initial_state(self, p, dose):
        return [p["F"] * dose, 0.0, p["R0"], 0.0]

    def rhs(self, t, y, p):
        Aa, L, R, P = y
        dL, dR, dP = _binding(L, R, P, p)
        absorbed = p["ka"] * Aa
        return [-absorbed, dL + absorbed / p["V"], dR, dP]


class TMDDMichaelisMenten(TMDD):
    """TMDD with an extra saturable elimination pathway on free drug, Vmax*L/(Km + L)."""

    model_id = "tmdd-mm"
    name = "Target-mediated drug disposition with Michaelis-Menten elimination"
    defaults = frozen(Vmax=10.0, Km=1.0, **_BINDING)

    def rhs(self, t, y, p):
        L, R, P = y
        dL, dR, dP = _binding(L, R, P, p)
        return [dL - p["Vmax"] * L / (p["Km"] + L), dR, dP]

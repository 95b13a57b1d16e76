# src/pkode/models/three_compartment.py
"""
Three-compartment models: central (V1) plus a shallow (V2, Q2) and a deep
(V3, Q3) peripheral compartment.
"""
from .base import CombinedRouteModel, ModelDefinition, frozen, ratio

_DISTRIBUTION = dict(V1=5.0, V2=10.0, V3=20.0, Q2=1.0, Q3=0.5)


def _distribution_constants(p):
    return {
        "k12": ratio(p["Q2"], p["V1"]),
        "k21": ratio(p["Q2"], p["V2"]),
        "k13": ratio(p["Q3"], p["V1"]),
        "k31": ratio(p["Q3"], p["V3"]),
    }


def _exchange(A1, A2, A3, p):
    """Net distribution rates (central, shallow, deep), in mg/h."""
    to_2 = p["k12"] * A1 - p["k21"] * A2
    to_3 = p["k13"] * A1 - p["k31"] * A3
    return -to_2 - to_3, to_2, to_3


class ThreeCompartmentIV(ModelDefinition):
    """
    y[0] = A1, central (mg)
    y[1] = A2, shallow peripheral (mg)
    y[2] = A3, deep peripheral (mg)
    """

    model_id = "3-compartment-iv"
    name = "Three-compartment IV bolus"
    defaults = frozen(CL=2.0, **_DISTRIBUTION)
    central_volume_key = "V1"

    def derive(self, p):
        return {"k10": ratio(p["CL"], p["V1"]), **_distribution_constants(p)}

    def initial_state(self, p, dose):
        return [dose, 0.0, 0.0]

    def rhs(self, t, y, p):
        A1, A2, A3 = y
        d1, d2, d3 = _exchange(A1, A2, A3, p)
        return [d1 - p["k10"] * A1, d2, d3]


class ThreeCompartmentOral(ThreeCompartmentIV):
    """Three-compartment model fed by a first-order absorption depot at y[0]."""

    model_id = "3-compartment-oral"
    name = "Three-compartment oral absorption"
    defaults = frozen(CL=2.0, ka=1.0, F=1.0, **_DISTRIBUTION)
    route = "oral"

    def initial_state(self, p, dose):
        return [p["F"] * dose, 0.0, 0.0, 0.0]

    def rhs(self, t, y, p):
        Aa, A1, A2, A3 = y
        d1, d2, d3 = _exchange(A1, A2, A3, p)
        absorbed = p["ka"] * Aa
        return [-absorbed, absorbed + d1 - p["k10"] * A1, d2, d3]


class ThreeCompartmentMM(ModelDefinition):
    """Three-compartment IV bolus with saturable elimination from the central compartment."""

    model_id = "3-compartment-mm"
    name = "Three-compartment Michaelis-Menten elimination"
    defaults = frozen(Vmax=50.0, Km=5.0, **_DISTRIBUTION)
    central_volume_key = "V1"
    linear = False

    def derive(self, p):
        return _distribution_constants(p)

    def initial_state(self, p, dose):
        return [dose, 0.0, 0.0]

    def elimination(self, A1, p):
        C1 = A1 / p["V1"]
        return p["Vmax"] * C1 / (p["Km"] + C1) * p["V1"]

    def rhs(self, t, y, p):
        A1, A2, A3 = y
        d1, d2, d3 = _exchange(A1, A2, A3, p)
        return [d1 - self.elimination(A1, p), d2, d3]


class ThreeCompartmentCombinedElimination(ThreeCompartmentMM):
    """Linear clearance CL and saturable elimination acting together."""

    model_id = "3-compartment-combined-elim"
    name = "Three-compartment combined linear and Michaelis-Menten elimination"
    defaults = frozen(CL=1.0, Vmax=50.0, Km=5.0, **_DISTRIBUTION)

    def elimination(self, A1, p):
        return p["CL"] * A1 / p["V1"] + super().elimination(A1, p)


def three_compartment_combined() -> CombinedRouteModel:
    return CombinedRouteModel("3-compartment-combined", "Three-compartment IV/oral",
                              iv=ThreeCompartmentIV(), oral=ThreeCompartmentOral())

# src/pkode/models/two_compartment.py
"""
Two-compartment models: a central compartment (V1) exchanging drug with one
peripheral compartment (V2) through inter-compartmental clearance Q.

Micro-constants: k10 = CL/V1, k12 = Q/V1, k21 = Q/V2. Elimination is always
from the central compartment, either linear (k10*A1), saturable
(Vmax*C1/(Km+C1), scaled back to an amount rate by V1) or both.
"""
from .base import CombinedRouteModel, ModelDefinition, frozen, ratio

_DISTRIBUTION = dict(V1=5.0, V2=15.0, Q=1.0)


def _micro_constants(p):
    return {
        "k10": ratio(p["CL"], p["V1"]),
        "k12": ratio(p["Q"], p["V1"]),
        "k21": ratio(p["Q"], p["V2"]),
    }


def _saturable_rate(A1, p):
    """Michaelis-Menten elimination as an amount rate (mg/h)."""
    C1 = A1 / p["V1"]
    return p["Vmax"] * C1 / (p["Km"] + C1) * p["V1"]


class TwoCompartmentIV(ModelDefinition):
    """
    y[0] = A1, central (mg)
    y[1] = A2, peripheral (mg)
    """

    model_id = "2-compartment-iv"
    name = "Two-compartment IV bolus"
    defaults = frozen(CL=2.0, **_DISTRIBUTION)
    central_volume_key = "V1"

    def derive(self, p):
        return _micro_constants(p)

    def initial_state(self, p, dose):
        return [dose, 0.0]

    def rhs(self, t, y, p):
        A1, A2 = y
        return [
            -p["k10"] * A1 - p["k12"] * A1 + p["k21"] * A2,
            p["k12"] * A1 - p["k21"] * A2,
        ]


class TwoCompartmentOral(ModelDefinition):
    """
    y[0] = Aa, absorption depot (mg), starts at F * dose
    y[1] = A1, central (mg)
    y[2] = A2, peripheral (mg)
    """

    model_id = "2-compartment-oral"
    name = "Two-compartment oral absorption"
    defaults = frozen(CL=2.0, ka=1.0, F=1.0, **_DISTRIBUTION)
    central_volume_key = "V1"
    route = "oral"

    def derive(self, p):
        return _micro_constants(p)

    def initial_state(self, p, dose):
        return [p["F"] * dose, 0.0, 0.0]

    def rhs(self, t, y, p):
        Aa, A1, A2 = y
        return [
            -p["ka"] * Aa,
            p["ka"] * Aa - p["k10"] * A1 - p["k12"] * A1 + p["k21"] * A2,
            p["k12"] * A1 - p["k21"] * A2,
        ]


class TwoCompartmentMM(ModelDefinition):
    """Two-compartment IV bolus with saturable elimination only."""

    model_id = "2-compartment-mm"
    name = "Two-compartment Michaelis-Menten elimination"
    defaults = frozen(Vmax=50.0, Km=5.0, **_DISTRIBUTION)
    central_volume_key = "V1"
    linear = False

    def derive(self, p):
        return {"k12": ratio(p["Q"], p["V1"]), "k21": ratio(p["Q"], p["V2"])}

    def initial_state(self, p, dose):
        return [dose, 0.0]

    def rhs(self, t, y, p):
        A1, A2 = y
        return [
            -_saturable_rate(A1, p) - p["k12"] * A1 + p["k21"] * A2,
            p["k12"] * A1 - p["k21"] * A2,
        ]


class TwoCompartmentCombinedElimination(TwoCompartmentMM):
    """Two-compartment IV bolus, linear clearance plus saturable elimination."""

    model_id = "2-compartment-combined-elim"
    name = "Two-compartment combined linear and Michaelis-Menten elimination"
    defaults = frozen(CL=1.0, Vmax=50.0, Km=5.0, **_DISTRIBUTION)

    def rhs(self, t, y, p):
        A1, A2 = y
        linear = p["CL"] * A1 / p["V1"]
        return [
            -(linear + _saturable_rate(A1, p)) - p["k12"] * A1 + p["k21"] * A2,
            p["k12"] * A1 - p["k21"] * A2,
        ]


def two_compartment_combined() -> CombinedRouteModel:
    return CombinedRouteModel("2-compartment-combined", "Two-compartment IV/oral",
                              iv=TwoCompartmentIV(), oral=TwoCompartmentOral())

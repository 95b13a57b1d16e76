# src/pkode/models/nonlinear.py
"""One-compartment IV bolus models with saturable (Michaelis-Menten) elimination."""
from .base import ModelDefinition, frozen


class MichaelisMenten(ModelDefinition):
    """
    dA/dt = -V * Vmax*C/(Km + C),  C = A/V

    Vmax is a concentration rate (mg/L/h); Km is in mg/L.
    """

    model_id = "michaelis-menten"
    name = "One-compartment Michaelis-Menten elimination"
    defaults = frozen(V=10.0, Vmax=50.0, Km=5.0)
    linear = False

    def initial_state(self, p, dose):
        return [dose]

    def elimination(self, C, p):
        """Elimination as an amount rate (mg/h)."""
        return p["V"] * p["Vmax"] * C / (p["Km"] + C)

    def rhs(self, t, y, p):
        C = y[0] / p["V"]
        return [-self.elimination(C, p)]


class CombinedElimination(MichaelisMenten):
    """
    Parallel linear and saturable elimination:

        dA/dt = -(CL*C + V * Vmax*C/(Km + C))

    With Vmax = 0 this is the one-compartment IV model with ke = CL/V.
    """

    model_id = "combined-elimination"
    name = "One-compartment combined linear and Michaelis-Menten elimination"
    defaults = frozen(V=10.0, CL=1.0, Vmax=50.0, Km=5.0)

    def elimination(self, C, p):
        return p["CL"] * C + super().elimination(C, p)

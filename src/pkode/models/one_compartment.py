# src/pkode/models/one_compartment.py
from .base import CombinedRouteModel, ModelDefinition, frozen, ratio


class OneCompartmentIV(ModelDefinition):
    """
    One-compartment model, IV bolus, first-order elimination.
    One state:
      y[0] = drug in central compartment (mg)
    """

    model_id = "1-compartment-iv"
    name = "One-compartment IV bolus"
    defaults = frozen(CL=2.0, V=10.0)

    def derive(self, p):
        return {"ke": ratio(p["CL"], p["V"])}

    def initial_state(self, p, dose):
        return [dose]

    def rhs(self, t, y, p):
        return [-p["ke"] * y[0]]


class OneCompartmentOral(ModelDefinition):
    """
    One-compartment model with first-order absorption and elimination.
    Two states:
      y[0] = drug in absorption depot (mg), starts at F * dose
      y[1] = drug in central compartment (mg)
    """

    model_id = "1-compartment-oral"
    name = "One-compartment oral absorption"
    defaults = frozen(CL=2.0, V=10.0, ka=1.0, F=1.0)
    route = "oral"

    def derive(self, p):
        return {"ke": ratio(p["CL"], p["V"])}

    def initial_state(self, p, dose):
        return [p["F"] * dose, 0.0]

    def rhs(self, t, y, p):
        A_gut, A_c = y
        return [
            -p["ka"] * A_gut,
            p["ka"] * A_gut - p["ke"] * A_c,
        ]


def one_compartment_combined() -> CombinedRouteModel:
    return CombinedRouteModel("1-compartment-combined", "One-compartment IV/oral",
                              iv=OneCompartmentIV(), oral=OneCompartmentOral())

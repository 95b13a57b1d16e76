# src/pkode/models/transit.py
"""
Transit-compartment absorption.

The oral dose (scaled by F) starts in the first of n transit states; drug
moves down the chain at rate ktr and the last transit state feeds the
central compartment:

    dT1/dt = -ktr*T1
    dTi/dt = ktr*T(i-1) - ktr*Ti          i = 2..n
    dA1/dt = ktr*Tn - elimination - distribution

State layout is [T1..Tn, A1, peripherals...], so the central compartment
sits at index n. Large ktr with a coarse fixed step makes the chain stiff.
"""
import numpy as np

from .base import ModelDefinition, frozen, ratio
from .three_compartment import ThreeCompartmentIV
from .two_compartment import TwoCompartmentIV

_TRANSIT = dict(ktr=1.0, n=3, F=1.0)


class TransitCompartment(ModelDefinition):
    """Transit chain feeding a one-compartment body with linear elimination."""

    model_id = "transit-compartment"
    name = "Transit-compartment absorption"
    defaults = frozen(CL=2.0, V=10.0, **_TRANSIT)
    route = "oral"
    n_peripherals = 0

    def derive(self, p):
        return {"ke": ratio(p["CL"], p["V"])}

    def central_index(self, p):
        return int(p["n"])

    def initial_state(self, p, dose):
        y0 = np.zeros(int(p["n"]) + 1 + self.n_peripherals)
        y0[0] = p["F"] * dose
        return y0

    def chain(self, y, p):
        """Derivatives of the n transit states and the inflow into the central compartment."""
        n = int(p["n"])
        ktr = p["ktr"]
        transit = np.asarray(y[:n], dtype=float)
        d = -ktr * transit
        d[1:] += ktr * transit[:-1]
        return d, ktr * transit[-1]

    def body(self, central, p):
        """Derivatives of [A1, peripherals...] without the absorption inflow."""
        return [-p["ke"] * central[0]]

    def rhs(self, t, y, p):
        n = int(p["n"])
        d_transit, inflow = self.chain(y, p)
        d_body = np.asarray(self.body(y[n:], p), dtype=float)
        d_body[0] += inflow
        return np.concatenate([d_transit, d_body])


class TwoCompartmentTransit(TransitCompartment):
    """Transit chain feeding a two-compartment body."""

    model_id = "2-compartment-transit"
    name = "Two-compartment transit absorption"
    defaults = frozen(CL=2.0, V1=5.0, V2=15.0, Q=1.0, **_TRANSIT)
    central_volume_key = "V1"
    n_peripherals = 1
    _body = TwoCompartmentIV()

    def derive(self, p):
        return self._body.derive(p)

    def body(self, central, p):
        return self._body.rhs(0.0, central, p)


class ThreeCompartmentTransit(TransitCompartment):
    """Transit chain feeding a three-compartment body."""

    model_id = "3-compartment-transit"
    name = "Three-compartment transit absorption"
    defaults = frozen(CL=2.0, V1=5.0, V2=10.0, V3=20.0, Q2=1.0, Q3=0.5, **_TRANSIT)
    central_volume_key = "V1"
    n_peripherals = 2
    _body = ThreeCompartmentIV()

    def derive(self, p):
        return self._body.derive(p)

    def body(self, central, p):
        return self._body.rhs(0.0, central, p)

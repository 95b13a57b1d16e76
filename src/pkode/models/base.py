# src/pkode/models/base.py
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Optional

import numpy as np

from ..errors import InvalidParameter
from ..types import ODESystem, Route, Trajectory


def frozen(**defaults: float) -> Mapping[str, float]:
    """Read-only defaults table, safe to share between threads."""
    return MappingProxyType(dict(defaults))


def ratio(num: float, den: float) -> float:
    """num / den that yields inf/nan for a zero denominator instead of raising."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(num) / np.float64(den))


def transit_count(value: Any) -> int:
    """Round a transit-compartment count half-up; fractional chains are not supported."""
    n = float(value)
    if not math.isfinite(n):
        raise InvalidParameter(f"n must be finite (got {value}).")
    n_int = int(math.floor(n + 0.5))
    if n_int < 1:
        raise InvalidParameter(f"n must round to at least 1 transit compartment (got {value}).")
    return n_int


class ModelDefinition(ABC):
    """
    One PK model topology.

    Subclasses set the identifier, the defaults table and the state layout,
    and implement `derive` (secondary rate constants), `initial_state` and
    `rhs`. Everything else (default filling, building the ODESystem,
    amount-to-concentration conversion) is shared.
    """

    model_id: str
    name: str
    defaults: Mapping[str, float]
    central_volume_key: str = "V"
    route: Route = "iv"
    # False for saturable and target-mediated models: dose superposition is approximate
    linear: ClassVar[bool] = True
    # True when the central state holds a concentration rather than an amount
    state_is_concentration: ClassVar[bool] = False

    def resolve_parameters(self, params: Optional[Mapping[str, Any]] = None) -> dict[str, float]:
        """
        Fill every parameter this model reads.

        A parameter is missing when its key is absent or its value is None;
        explicit zeros are kept. Keys the model does not use are ignored.
        """
        params = params or {}
        resolved: dict[str, float] = {}
        for key, default in self.defaults.items():
            value = params.get(key)
            resolved[key] = float(default if value is None else value)
        if "n" in resolved:
            resolved["n"] = transit_count(resolved["n"])
        resolved.update(self.derive(resolved))
        return resolved

    def derive(self, p: Mapping[str, float]) -> dict[str, float]:
        return {}

    def central_volume(self, params: Optional[Mapping[str, Any]] = None) -> float:
        params = params or {}
        value = params.get(self.central_volume_key)
        return float(self.defaults[self.central_volume_key] if value is None else value)

    def central_index(self, p: Mapping[str, float]) -> int:
        """Position of the central compartment in the state vector."""
        return 1 if self.route == "oral" else 0

    @abstractmethod
    def initial_state(self, p: Mapping[str, float], dose: float) -> list[float]:
        ...

    @abstractmethod
    def rhs(self, t: float, y: np.ndarray, p: Mapping[str, float]) -> list[float]:
        ...

    def for_route(self, route: Optional[str] = None) -> "ModelDefinition":
        """The definition that actually runs for `route` (None means the model's own)."""
        if route is not None and route != self.route:
            raise InvalidParameter(
                f"Model '{self.model_id}' is {self.route}-only (got route='{route}')."
            )
        return self

    def build_system(self, params: Optional[Mapping[str, Any]] = None, dose: float = 100.0,
                     route: Optional[str] = None) -> ODESystem:
        definition = self.for_route(route)
        if definition is not self:
            return definition.build_system(params, dose)
        resolved = self.resolve_parameters(params)
        return ODESystem(rhs=self.rhs, initial_state=self.initial_state(resolved, float(dose)),
                         parameters=MappingProxyType(resolved))

    def concentration(self, trajectory: Trajectory, resolved: Mapping[str, float]) -> np.ndarray:
        """Central-compartment concentration at every sample; no clamping."""
        central = trajectory.states[:, self.central_index(resolved)]
        if self.state_is_concentration:
            return central.copy()
        with np.errstate(divide="ignore", invalid="ignore"):
            return central / np.float64(resolved[self.central_volume_key])

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model_id!r})"


class CombinedRouteModel(ModelDefinition):
    """
    A model reachable by IV bolus or oral absorption; the route picks the topology.

    Defaults to IV when no route is given; every other method behaves like
    the IV variant.
    """

    def __init__(self, model_id: str, name: str, iv: ModelDefinition, oral: ModelDefinition):
        self.model_id = model_id
        self.name = name
        self._variants = {"iv": iv, "oral": oral}
        self.defaults = iv.defaults
        self.central_volume_key = iv.central_volume_key

    def for_route(self, route: Optional[str] = None) -> ModelDefinition:
        try:
            return self._variants[route or "iv"]
        except KeyError:
            raise InvalidParameter(
                f"Model '{self.model_id}' supports routes 'iv' and 'oral' (got route='{route}')."
            ) from None

    def derive(self, p):
        return self._variants["iv"].derive(p)

    def initial_state(self, p, dose):
        return self._variants["iv"].initial_state(p, dose)

    def rhs(self, t, y, p):
        return self._variants["iv"].rhs(t, y, p)

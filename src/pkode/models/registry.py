# src/pkode/models/registry.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from ..errors import UnknownModel
from ..types import ODESystem
from .base import ModelDefinition
from .nonlinear import CombinedElimination, MichaelisMenten
from .one_compartment import OneCompartmentIV, OneCompartmentOral, one_compartment_combined
from .three_compartment import (
    ThreeCompartmentCombinedElimination,
    ThreeCompartmentIV,
    ThreeCompartmentMM,
    ThreeCompartmentOral,
    three_compartment_combined,
)
from .tmdd import TMDD, TMDDMichaelisMenten, TMDDOral
from .transit import ThreeCompartmentTransit, TransitCompartment, TwoCompartmentTransit
from .two_compartment import (
    TwoCompartmentCombinedElimination,
    TwoCompartmentIV,
    TwoCompartmentMM,
    TwoCompartmentOral,
    two_compartment_combined,
)

MODEL_REGISTRY: dict[str, ModelDefinition] = {}


def register_model(definition: ModelDefinition, *aliases: str) -> ModelDefinition:
    """
    Make `definition` reachable under its own model_id and any aliases.

    Re-registering an identifier replaces the previous definition.
    """
    for model_id in (definition.model_id, *aliases):
        MODEL_REGISTRY[model_id] = definition
    return definition


def get_model(model_id: str) -> ModelDefinition:
    """Look up a model; unregistered identifiers raise UnknownModel."""
    try:
        return MODEL_REGISTRY[model_id]
    except KeyError:
        raise UnknownModel(model_id) from None


def available_models() -> list[str]:
    return sorted(MODEL_REGISTRY)


def build_system(model_id: str, params: Optional[Mapping[str, Any]] = None, dose: float = 100.0,
                 route: Optional[str] = None) -> ODESystem:
    """ODESystem for `model_id` with every missing parameter defaulted."""
    return get_model(model_id).build_system(params, dose, route=route)


def central_volume(model_id: str, params: Optional[Mapping[str, Any]] = None) -> float:
    return get_model(model_id).central_volume(params)


# Built-in catalog
register_model(OneCompartmentIV())
register_model(OneCompartmentOral())
register_model(one_compartment_combined())
register_model(TransitCompartment())
register_model(TwoCompartmentIV(), "2-compartment", "2-compartment-linear")
register_model(TwoCompartmentOral())
register_model(two_compartment_combined())
register_model(TwoCompartmentTransit())
register_model(TwoCompartmentMM())
register_model(TwoCompartmentCombinedElimination())
register_model(ThreeCompartmentIV(), "3-compartment", "3-compartment-linear")
register_model(ThreeCompartmentOral())
register_model(three_compartment_combined())
register_model(ThreeCompartmentTransit())
register_model(ThreeCompartmentMM())
register_model(ThreeCompartmentCombinedElimination())
register_model(MichaelisMenten())
register_model(CombinedElimination())
register_model(TMDD())
register_model(TMDDOral())
register_model(TMDDMichaelisMenten())

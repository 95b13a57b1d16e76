import numpy as np
import pytest

from pkode.errors import InvalidParameter, UnknownModel
from pkode.models.base import ModelDefinition, frozen
from pkode.models.registry import (
    MODEL_REGISTRY,
    available_models,
    build_system,
    central_volume,
    get_model,
    register_model,
)
from pkode.simulate import solve_model

ALL_MODELS = available_models()


def test_catalog_covers_every_topology():
    expected = {
        "1-compartment-iv", "1-compartment-oral", "1-compartment-combined",
        "transit-compartment",
        "2-compartment", "2-compartment-iv", "2-compartment-oral", "2-compartment-combined",
        "2-compartment-transit", "2-compartment-linear", "2-compartment-mm",
        "2-compartment-combined-elim",
        "3-compartment", "3-compartment-iv", "3-compartment-oral", "3-compartment-combined",
        "3-compartment-transit", "3-compartment-linear", "3-compartment-mm",
        "3-compartment-combined-elim",
        "michaelis-menten", "combined-elimination", "tmdd", "tmdd-oral", "tmdd-mm",
    }
    assert expected == set(ALL_MODELS)


@pytest.mark.parametrize("model_id", ALL_MODELS)
def test_every_model_builds_and_solves_with_defaults(model_id):
    system = build_system(model_id)
    dy = system.rhs(0.0, system.initial_state, system.parameters)
    assert len(dy) == system.n_states

    profile = solve_model(model_id)
    assert len(profile) == 241
    assert np.all(np.isfinite(profile.concentration))
    assert np.max(profile.concentration) > 0


def test_defaults_and_derived_rate_constants():
    p = build_system("2-compartment-iv").parameters
    assert (p["CL"], p["V1"], p["V2"], p["Q"]) == (2.0, 5.0, 15.0, 1.0)
    assert np.isclose(p["k10"], 0.4)
    assert np.isclose(p["k12"], 0.2)
    assert np.isclose(p["k21"], 1.0 / 15.0)

    p3 = build_system("3-compartment-oral").parameters
    assert (p3["V2"], p3["V3"], p3["Q2"], p3["Q3"], p3["ka"], p3["F"]) == (10.0, 20.0, 1.0, 0.5, 1.0, 1.0)
    assert np.isclose(p3["k13"], 0.1) and np.isclose(p3["k31"], 0.025)

    # combined elimination defaults to a lower linear clearance
    assert build_system("2-compartment-combined-elim").parameters["CL"] == 1.0
    assert build_system("combined-elimination").parameters["CL"] == 1.0

    tmdd_mm = build_system("tmdd-mm").parameters
    assert (tmdd_mm["Vmax"], tmdd_mm["Km"]) == (10.0, 1.0)
    assert build_system("michaelis-menten").parameters["Vmax"] == 50.0


def test_explicit_zero_is_kept_and_none_means_default():
    assert build_system("1-compartment-iv", {"CL": 0.0}).parameters["ke"] == 0.0
    assert build_system("1-compartment-iv", {"CL": None}).parameters["CL"] == 2.0


def test_unused_parameters_are_ignored():
    p = build_system("1-compartment-iv", {"CL": 4.0, "Vmax": 3.0, "foo": 1.0}).parameters
    assert "Vmax" not in p and "foo" not in p
    assert np.isclose(p["ke"], 0.4)


@pytest.mark.parametrize("raw,rounded", [(2.5, 3), (2.4, 2), (1, 1), (7.6, 8)])
def test_transit_count_rounds_half_up(raw, rounded):
    system = build_system("transit-compartment", {"n": raw})
    assert system.parameters["n"] == rounded
    assert system.n_states == rounded + 1


@pytest.mark.parametrize("bad_n", [0, 0.4, -2, float("nan")])
def test_transit_count_must_be_at_least_one(bad_n):
    with pytest.raises(InvalidParameter):
        build_system("transit-compartment", {"n": bad_n})


@pytest.mark.parametrize("model_id,extra", [
    ("transit-compartment", 1),
    ("2-compartment-transit", 2),
    ("3-compartment-transit", 3),
])
def test_transit_state_layout(model_id, extra):
    system = build_system(model_id, {"n": 4, "F": 0.5}, 200.0)
    assert system.n_states == 4 + extra
    assert system.initial_state[0] == 100.0
    assert np.all(system.initial_state[1:] == 0.0)


def test_oral_dose_scaled_by_bioavailability():
    system = build_system("2-compartment-oral", {"F": 0.6}, 100.0)
    assert np.allclose(system.initial_state, [60.0, 0.0, 0.0])


def test_oral_concentration_comes_from_central_compartment():
    """The absorption depot is state 0; the reported concentration starts at zero."""
    for model_id in ("1-compartment-oral", "2-compartment-oral", "3-compartment-oral",
                     "transit-compartment", "tmdd-oral"):
        profile = solve_model(model_id)
        assert profile.concentration[0] == 0.0
        assert np.max(profile.concentration) > 0.0


def test_tmdd_states_are_concentrations():
    system = build_system("tmdd", {"V": 4.0, "R0": 2.0, "kdeg": 0.05, "ksyn": 99.0}, 100.0)
    assert np.allclose(system.initial_state, [25.0, 2.0, 0.0])
    assert np.isclose(system.parameters["ksyn"], 0.1)

    profile = solve_model("tmdd", {"V": 4.0}, 100.0)
    assert profile.concentration[0] == 25.0


def test_tmdd_oral_initial_state_uses_default_bioavailability():
    system = build_system("tmdd-oral", {}, 100.0)
    assert np.allclose(system.initial_state, [80.0, 0.0, 1.0, 0.0])


def test_tmdd_target_stays_at_baseline_without_drug():
    system = build_system("tmdd", {}, 0.0)
    dy = system.rhs(0.0, system.initial_state, system.parameters)
    assert np.allclose(dy, 0.0)


def test_tmdd_mm_eliminates_faster_than_tmdd():
    base = solve_model("tmdd")
    saturable = solve_model("tmdd-mm")
    assert np.all(saturable.concentration[1:] < base.concentration[1:])


def test_combined_elimination_without_vmax_is_linear():
    linear = solve_model("1-compartment-iv", {"CL": 3.0, "V": 12.0})
    combined = solve_model("combined-elimination", {"CL": 3.0, "V": 12.0, "Vmax": 0.0})
    assert np.allclose(combined.concentration, linear.concentration, rtol=1e-12)

    two = solve_model("2-compartment-iv", {"CL": 1.0})
    two_combined = solve_model("2-compartment-combined-elim", {"CL": 1.0, "Vmax": 0.0})
    assert np.allclose(two_combined.concentration, two.concentration, rtol=1e-12)

    three = solve_model("3-compartment-iv", {"CL": 1.0})
    three_combined = solve_model("3-compartment-combined-elim", {"CL": 1.0, "Vmax": 0.0})
    assert np.allclose(three_combined.concentration, three.concentration, rtol=1e-12)


def test_michaelis_menten_saturates_at_high_concentration():
    """Far above Km elimination is close to zero-order: C drops by ~Vmax per hour."""
    profile = solve_model("michaelis-menten", {"Vmax": 2.0, "Km": 0.01, "V": 1.0}, 100.0,
                          {"end_time": 10.0, "step_size": 0.01})
    assert np.isclose(profile.concentration[-1], 100.0 - 2.0 * 10.0, rtol=1e-3)


def test_aliases_share_one_definition():
    assert get_model("2-compartment") is get_model("2-compartment-iv")
    assert get_model("3-compartment-linear") is get_model("3-compartment-iv")


def test_combined_models_choose_topology_by_route():
    iv = solve_model("2-compartment-combined")
    oral = solve_model("2-compartment-combined", route="oral")
    assert np.array_equal(iv.concentration, solve_model("2-compartment-iv").concentration)
    assert np.array_equal(oral.concentration, solve_model("2-compartment-oral").concentration)
    assert build_system("1-compartment-combined", route="oral").n_states == 2

    with pytest.raises(InvalidParameter):
        solve_model("3-compartment-combined", route="sc")


def test_single_route_models_reject_a_different_route():
    solve_model("1-compartment-oral", route="oral")
    with pytest.raises(InvalidParameter):
        solve_model("1-compartment-iv", route="oral")


def test_central_volume_lookup():
    assert central_volume("1-compartment-iv") == 10.0
    assert central_volume("3-compartment-mm", {"V1": 7.0}) == 7.0
    assert central_volume("tmdd") == 5.0
    assert central_volume("2-compartment-combined") == 5.0
    with pytest.raises(UnknownModel):
        central_volume("4-compartment")


def test_zero_volume_degenerates_to_non_finite_concentration():
    profile = solve_model("1-compartment-iv", {"V": 0.0})
    assert not np.all(np.isfinite(profile.concentration))


class ZeroOrderInput(ModelDefinition):
    model_id = "zero-order-test"
    name = "Constant-rate input"
    defaults = frozen(R=1.0, V=2.0)

    def initial_state(self, p, dose):
        return [dose]

    def rhs(self, t, y, p):
        return [p["R"]]


def test_register_custom_model():
    definition = register_model(ZeroOrderInput(), "zero-order-alias")
    try:
        profile = solve_model("zero-order-alias", {"R": 4.0}, 0.0, {"end_time": 2.0})
        assert np.allclose(profile.concentration, 2.0 * profile.time)
        assert get_model("zero-order-test") is definition
    finally:
        MODEL_REGISTRY.pop("zero-order-test")
        MODEL_REGISTRY.pop("zero-order-alias")
    assert "zero-order-test" not in available_models()

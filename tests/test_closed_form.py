import math
import numpy as np
import pytest

from pkode.errors import UnknownModel
from pkode.models.registry import build_system
from pkode.simulate import solve_model
from pkode.solvers import integrate
from pkode.types import SolverOptions


def test_iv_bolus_exponential_decay():
    """
    For a 1-compartment model with linear elimination, an IV bolus follows:
      C(t) = C0 * exp(-k t),  where k = CL / V and C0 = dose / V.
    RK4 at h=0.01 should match to well within 1e-4 relative error.
    """
    opts = SolverOptions(start_time=0.0, end_time=24.0, step_size=0.01, method="rk4")
    t, C = solve_model("1-compartment-iv", {"CL": 2.0, "V": 10.0}, 100.0, opts)

    C_expected = (100.0 / 10.0) * np.exp(-0.2 * t)

    assert len(t) == 2401
    assert np.isclose(t[-1], 24.0)
    assert np.allclose(C, C_expected, rtol=1e-4, atol=0.0)


def test_two_compartment_mass_conserved_without_elimination():
    """With CL=0 nothing leaves the body, so A1 + A2 stays equal to the dose."""
    system = build_system("2-compartment-iv", {"CL": 0.0, "V1": 5.0, "V2": 15.0, "Q": 1.0}, 100.0)
    traj = integrate(system, SolverOptions(end_time=48.0, step_size=0.1))

    total = traj.states.sum(axis=1)
    assert system.parameters["k10"] == 0.0
    assert np.allclose(total, 100.0, rtol=1e-9)
    # drug does move into the peripheral compartment
    assert traj.states[-1, 1] > 10.0


def test_three_compartment_mass_conserved_without_elimination():
    system = build_system("3-compartment-iv", {"CL": 0.0}, 250.0)
    traj = integrate(system, SolverOptions(end_time=24.0, step_size=0.05))
    assert np.allclose(traj.states.sum(axis=1), 250.0, rtol=1e-9)


def test_oral_single_peak_then_monotonic_decline():
    """
    1-compartment oral with ka > ke: one interior maximum at
    Tmax = ln(ka/ke) / (ka - ke), strictly decreasing afterwards.
    """
    ka, CL, V = 1.0, 2.0, 10.0
    ke = CL / V
    tmax_expected = math.log(ka / ke) / (ka - ke)

    t, C = solve_model("1-compartment-oral", {"ka": ka, "CL": CL, "V": V}, 100.0,
                       {"end_time": 24.0, "step_size": 0.01})

    assert C[0] == 0.0
    peak = int(np.argmax(C))
    assert 0 < peak < len(C) - 1
    assert abs(t[peak] - tmax_expected) <= 0.01

    diffs = np.diff(C)
    assert np.all(diffs[:peak] > 0)
    assert np.all(diffs[peak:] < 0)


@pytest.mark.parametrize("n", [1, 3, 5.4])
@pytest.mark.parametrize("F", [1.0, 0.7])
def test_transit_chain_mass_balance(n, F):
    """Transit + central amounts never exceed F*dose and drain towards zero."""
    dose = 100.0
    system = build_system("transit-compartment", {"n": n, "F": F, "ktr": 1.5}, dose)
    traj = integrate(system, SolverOptions(end_time=200.0, step_size=0.05))

    total = traj.states.sum(axis=1)
    assert traj.states.shape[1] == round(n) + 1
    assert np.isclose(total[0], F * dose)
    assert np.all(total <= F * dose * (1 + 1e-12))
    assert total[-1] < 1e-6 * dose


def test_rk4_beats_euler_on_smooth_decay():
    """For the same step, RK4's max error against the closed form is smaller than Euler's."""
    params = {"CL": 2.0, "V": 10.0}
    errors = {}
    for method in ("rk4", "euler"):
        t, C = solve_model("1-compartment-iv", params, 100.0,
                           SolverOptions(end_time=24.0, step_size=0.5, method=method))
        errors[method] = float(np.max(np.abs(C - 10.0 * np.exp(-0.2 * t))))

    assert errors["rk4"] < errors["euler"]
    assert errors["rk4"] < 1e-3


def test_unknown_model_is_rejected():
    """No silent fallback to the 1-compartment IV profile."""
    with pytest.raises(UnknownModel):
        solve_model("not-a-real-model", {}, 100.0)
    with pytest.raises(KeyError, match="not-a-real-model"):
        solve_model("not-a-real-model")


def test_two_compartment_iv_example():
    """V1=5, V2=15, CL=2, Q=1, 100 mg, 0-10 h at h=0.5: 21 samples from C0=20 mg/L, decreasing."""
    profile = solve_model(
        "2-compartment-iv", {"V1": 5.0, "V2": 15.0, "CL": 2.0, "Q": 1.0}, 100.0,
        {"startTime": 0, "endTime": 10, "stepSize": 0.5, "method": "rk4"},
    )

    assert len(profile) == 21
    assert profile.time[0] == 0.0 and profile.concentration[0] == 20.0
    assert np.isclose(profile.time[-1], 10.0)
    assert np.all(np.diff(profile.concentration) < 0)

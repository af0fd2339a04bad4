"""Conservation auditor tests.

Covers:
  - Diagnostic dict structure and deltas
  - Warning per violating component, labelled with the process id
  - Silence within tolerance
  - Precision / tolerance behaviour
"""

import logging

import pytest

from interactions.conservation import check_conservation, check_energy_momentum, momentum_difference
from interactions.kinematics import FourVector
from interactions.particles import ParticleData
from interactions.species import ParticleType

THING = ParticleType("Thing", pdg=9001, mass=0.5)


# ----------------------------- Utility ------------------------------------
def _assert_close(a, b, tol=1e-9, msg=""):
    assert abs(a - b) < tol, msg or f"Values differ: {a} vs {b} (tol={tol})"


def _with(*vectors):
    return [ParticleData(THING, momentum=v) for v in vectors]


# ----------------------------- Diagnostics --------------------------------
def test_momentum_difference_components():
    diff = momentum_difference(
        [FourVector(5, 1, 2, -3), FourVector(7, -1, -2, 3)],
        [FourVector(8, 0.5, 1, -1.5)],
    )
    _assert_close(diff.E, 4.0)
    _assert_close(diff.px, -0.5)
    _assert_close(diff.py, -1.0)
    _assert_close(diff.pz, 1.5)


def test_check_energy_momentum_dict_structure():
    p_in = [FourVector(10, 0, 0, 0)]
    p_out = [FourVector(4, 1, 0, 0), FourVector(6, -1, 0, 0)]
    diag = check_energy_momentum(p_in, p_out)
    assert diag['conserved'] is True
    for key in ['deltaE', 'deltaPx', 'deltaPy', 'deltaPz', 'E_initial', 'E_final']:
        assert key in diag
    _assert_close(diag['deltaE'], 0.0)
    _assert_close(diag['E_initial'], 10.0)
    _assert_close(diag['E_final'], 10.0)


def test_three_body_conserved():
    p_in = [FourVector(12, 0, 0, 0)]
    p_out = [FourVector(4, 2, 0, 0), FourVector(4, -1, 1, 0), FourVector(4, -1, -1, 0)]
    assert check_energy_momentum(p_in, p_out)['conserved']


def test_zero_vectors_conservation():
    z = FourVector(0.0, 0.0, 0.0, 0.0)
    assert check_energy_momentum([z], [z])['conserved']


# ------------------------------- Auditor ----------------------------------
def test_energy_violation_is_reported(caplog):
    incoming = _with(FourVector(2.0, 0.0, 0.0, 0.0))
    outgoing = _with(FourVector(0.99, 0.3, 0.0, 0.0), FourVector(1.0, -0.3, 0.0, 0.0))
    with caplog.at_level(logging.WARNING, logger="interactions.conservation"):
        diag = check_conservation(incoming, outgoing, id_process=42, tol=1e-6)
    assert not diag['conserved']
    _assert_close(diag['deltaE'], 0.01)
    messages = [r.getMessage() for r in caplog.records]
    assert len(messages) == 1
    assert "Process 42" in messages[0]
    assert "E conservation violation" in messages[0]


def test_each_momentum_component_named(caplog):
    incoming = _with(FourVector(2.0, 0.0, 0.0, 0.0))
    outgoing = _with(FourVector(2.0, 0.1, -0.1, 0.1))
    with caplog.at_level(logging.WARNING, logger="interactions.conservation"):
        check_conservation(incoming, outgoing, id_process=7)
    messages = " ".join(r.getMessage() for r in caplog.records)
    for component in ("px", "py", "pz"):
        assert f"{component} conservation violation" in messages
    assert "E conservation" not in messages


def test_silent_within_tolerance(caplog):
    incoming = _with(FourVector(2.0, 0.0, 0.0, 0.0))
    outgoing = _with(FourVector(1.0, 0.5, 0.0, 0.0), FourVector(1.0 + 1e-9, -0.5, 0.0, 0.0))
    with caplog.at_level(logging.WARNING, logger="interactions.conservation"):
        diag = check_conservation(incoming, outgoing, id_process=1)
    assert diag['conserved']
    assert caplog.records == []


def test_auditor_does_not_touch_particles():
    incoming = _with(FourVector(2.0, 0.0, 0.0, 0.0))
    outgoing = _with(FourVector(1.5, 0.0, 0.0, 0.0))
    check_conservation(incoming, outgoing, id_process=3)
    assert outgoing[0].momentum == FourVector(1.5, 0.0, 0.0, 0.0)


# ------------------------- Precision / Tolerance --------------------------
@pytest.mark.parametrize("offset,conserved", [(1e-7, True), (1e-3, False)])
def test_tolerance_boundary(offset, conserved):
    p_in = [FourVector(10.0 + offset, 0, 0, 0)]
    p_out = [FourVector(4.0, 1, 0, 0), FourVector(6.0, -1, 0, 0)]
    assert check_energy_momentum(p_in, p_out, tol=1e-6)['conserved'] is conserved


def test_large_values_scale():
    p_in = [FourVector(1e6, 1e5, -2e5, 3e5)]
    p_out = [FourVector(4e5, 5e4, -1e5, 1e5), FourVector(6e5, 5e4, -1e5, 2e5)]
    assert check_energy_momentum(p_in, p_out)['conserved']

"""Two-body CM kinematics."""

import logging
import math

import numpy as np
import pytest

from interactions.exceptions import InvalidResonanceFormation
from interactions.particles import ParticleData
from interactions.sampling import sample_cms_momenta
from interactions.species import ParticleType

PROTON = ParticleType("Proton", pdg=2212, mass=0.938)
RES = ParticleType("Res", pdg=9100, mass=0.776, width=0.149, minimum_mass=0.276)
RES2 = ParticleType("Res2", pdg=9101, mass=1.232, width=0.117, minimum_mass=1.076)


def _slots(*types):
    return [ParticleData(t) for t in types]


class RecordingSampler:
    def __init__(self, mass):
        self.mass = mass
        self.calls = []

    def __call__(self, species, partner_mass, sqrt_s, rng=None):
        self.calls.append((species, partner_mass, sqrt_s))
        return self.mass


# -------------------- Stable final states --------------------

@pytest.mark.parametrize("sqrt_s", [1.0001, 1.5, 2.0, 5.0, 100.0])
def test_energy_sum_and_back_to_back(sqrt_s, light, rng):
    heavy = ParticleType("Heavy", pdg=9002, mass=0.3)
    p_a, p_b = sample_cms_momenta(_slots(light, heavy), sqrt_s, rng)
    assert p_a.E + p_b.E == pytest.approx(sqrt_s, abs=1e-12)
    assert p_a.magnitude == pytest.approx(p_b.magnitude, abs=1e-12)
    assert np.allclose(p_a.p, -p_b.p)
    assert p_a.mass == pytest.approx(0.5, abs=1e-9)
    assert p_b.mass == pytest.approx(0.3, abs=1e-9)


def test_momenta_written_onto_particles(light, rng):
    outgoing = _slots(light, light)
    p_a, p_b = sample_cms_momenta(outgoing, 2.0, rng)
    assert outgoing[0].momentum is p_a
    assert outgoing[1].momentum is p_b


def test_fixed_direction(light, fixed_draws):
    # cos(theta) = 0, phi = pi/2: along +y
    p_a, p_b = sample_cms_momenta(_slots(light, light), 2.0, fixed_draws(0.5, 0.25))
    assert p_a.E == pytest.approx(1.0)
    assert p_a.py == pytest.approx(math.sqrt(0.75))
    assert p_a.px == pytest.approx(0.0, abs=1e-12)
    assert p_a.pz == pytest.approx(0.0, abs=1e-12)
    assert p_b.py == pytest.approx(-math.sqrt(0.75))


# -------------------- Threshold --------------------

def test_below_threshold_raises(light, rng):
    outgoing = _slots(light, light)
    with pytest.raises(InvalidResonanceFormation):
        sample_cms_momenta(outgoing, 0.9, rng)
    assert outgoing[0].momentum.E == 0.0


def test_threshold_uses_minimum_masses(rng):
    sampler = RecordingSampler(0.3)
    # pole masses 0.776 + 0.938 exceed 1.5, minimum masses 0.276 + 0.938 do not
    sample_cms_momenta(_slots(RES, PROTON), 1.5, rng, mass_sampler=sampler)
    assert len(sampler.calls) == 1


def test_exactly_at_threshold_warns(light, rng, caplog):
    caplog.set_level(logging.INFO, logger="interactions.sampling")
    p_a, p_b = sample_cms_momenta(_slots(light, light), 1.0, rng)
    assert p_a.magnitude == 0.0
    assert p_a.E == pytest.approx(0.5)
    levels = {r.levelno for r in caplog.records}
    assert logging.WARNING in levels
    assert logging.INFO in levels
    assert any("radial momentum" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


def test_zero_energy_rejected(rng):
    photon = ParticleType("Photon", pdg=22, mass=0.0)
    with pytest.raises(InvalidResonanceFormation):
        sample_cms_momenta(_slots(photon, photon), 0.0, rng)


def test_wrong_multiplicity(light, rng):
    with pytest.raises(ValueError):
        sample_cms_momenta(_slots(light, light, light), 3.0, rng)


# -------------------- Resonances --------------------

def test_resonance_mass_is_sampled(rng):
    sampler = RecordingSampler(0.7)
    p_a, p_b = sample_cms_momenta(_slots(RES, PROTON), 2.0, rng, mass_sampler=sampler)
    assert sampler.calls == [(RES, PROTON.mass, 2.0)]
    assert p_a.mass == pytest.approx(0.7, abs=1e-9)
    assert p_b.mass == pytest.approx(PROTON.mass, abs=1e-9)
    assert p_a.E + p_b.E == pytest.approx(2.0)


def test_second_particle_sampled_when_first_stable(rng):
    sampler = RecordingSampler(0.7)
    p_a, p_b = sample_cms_momenta(_slots(PROTON, RES), 2.0, rng, mass_sampler=sampler)
    assert sampler.calls == [(RES, PROTON.mass, 2.0)]
    assert p_b.mass == pytest.approx(0.7, abs=1e-9)


def test_only_one_mass_sampled(rng):
    sampler = RecordingSampler(0.7)
    p_a, p_b = sample_cms_momenta(_slots(RES, RES2), 3.0, rng, mass_sampler=sampler)
    assert sampler.calls == [(RES, RES2.mass, 3.0)]
    assert p_b.mass == pytest.approx(RES2.mass, abs=1e-9)


def test_default_sampler_stays_in_window(rng):
    for _ in range(200):
        p_a, _ = sample_cms_momenta(_slots(RES, PROTON), 1.5, rng)
        assert RES.minimum_mass - 1e-9 <= p_a.mass <= 1.5 - PROTON.mass + 1e-9

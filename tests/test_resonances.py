import numpy as np
import pytest

from interactions.exceptions import InvalidResonanceFormation
from interactions.resonances import breit_wigner, sample_resonance_mass
from interactions.species import ParticleType

RHO = ParticleType("Rho0", pdg=113, mass=0.776, width=0.149, minimum_mass=0.276)
PION = ParticleType("Pion0", pdg=111, mass=0.138)


def test_stable_species_keeps_pole_mass(rng):
    assert sample_resonance_mass(PION, 0.938, 2.0, rng) == PION.mass


def test_breit_wigner_peaks_at_pole():
    m = np.linspace(0.3, 1.3, 1001)
    density = breit_wigner(m, RHO.mass, RHO.width)
    assert m[np.argmax(density)] == pytest.approx(RHO.mass, abs=1e-3)
    # normalised over the full real line; most of it within +-10 widths
    assert np.trapezoid(breit_wigner(np.linspace(-1, 3, 40001), RHO.mass, RHO.width),
                        np.linspace(-1, 3, 40001)) == pytest.approx(1.0, abs=0.03)


def test_samples_within_window(rng):
    masses = [sample_resonance_mass(RHO, 0.938, 2.0, rng) for _ in range(2000)]
    assert min(masses) >= RHO.minimum_mass
    assert max(masses) <= 2.0 - 0.938


def test_median_near_pole(rng):
    masses = np.array([sample_resonance_mass(RHO, 0.938, 2.0, rng) for _ in range(20000)])
    assert np.median(masses) == pytest.approx(0.772, abs=0.01)


def test_narrow_window(rng):
    # window [0.276, 0.3], far below the pole
    masses = [sample_resonance_mass(RHO, 1.7, 2.0, rng) for _ in range(200)]
    assert all(0.276 <= m <= 0.3 + 1e-12 for m in masses)


def test_empty_window_raises(rng):
    with pytest.raises(InvalidResonanceFormation):
        sample_resonance_mass(RHO, 1.9, 2.0, rng)


def test_fixed_draw_edges(fixed_draws):
    lo = sample_resonance_mass(RHO, 0.938, 2.0, fixed_draws(0.0))
    assert lo == pytest.approx(RHO.minimum_mass, abs=1e-9)

"""
Resonance mass sampling.

Masses of unstable species are drawn from a non-relativistic Breit-Wigner
truncated to the kinematically allowed window, by inverting its CDF.
"""

import math
from typing import Optional

import numpy as np

from .exceptions import InvalidResonanceFormation
from .species import ParticleType


def breit_wigner(m, pole: float, width: float):
    """Normalised (untruncated) Breit-Wigner density in the mass ``m``."""
    m = np.asarray(m, dtype=float)
    half = 0.5 * width
    return (half / math.pi) / ((m - pole) ** 2 + half * half)


def sample_resonance_mass(species: ParticleType, partner_mass: float, sqrt_s: float,
                          rng: Optional[np.random.Generator] = None) -> float:
    """
    Sample the mass of ``species`` produced together with a partner of mass
    ``partner_mass`` at total energy ``sqrt_s``.

    Raises InvalidResonanceFormation if the allowed window is empty.
    """
    if species.is_stable:
        return species.mass

    m_min = species.minimum_mass
    m_max = sqrt_s - partner_mass
    if m_max < m_min:
        raise InvalidResonanceFormation(
            f"resonance mass window empty for {species.name}: "
            f"[{m_min:.6f}, {m_max:.6f}] at sqrt_s={sqrt_s:.6f}"
        )

    rng = rng or np.random.default_rng()
    half = 0.5 * species.width
    lo = math.atan((m_min - species.mass) / half)
    hi = math.atan((m_max - species.mass) / half)
    u = float(rng.random())
    mass = species.mass + half * math.tan(lo + u * (hi - lo))
    # tan() can overshoot by an ulp at the window edges
    return min(max(mass, m_min), m_max)

"""
Two-body final-state kinematics in the centre-of-mass frame.
"""

import logging
import math
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .exceptions import InvalidResonanceFormation
from .kinematics import FourVector, isotropic_direction
from .particles import ParticleData
from .resonances import sample_resonance_mass

logger = logging.getLogger(__name__)

MassSampler = Callable[..., float]


def sample_cms_momenta(outgoing: Sequence[ParticleData],
                       cms_energy: float,
                       rng: Optional[np.random.Generator] = None,
                       mass_sampler: MassSampler = sample_resonance_mass
                       ) -> Tuple[FourVector, FourVector]:
    """
    Give both outgoing particles back-to-back CM-frame four-momenta.

    If one of the two species is a resonance its mass is sampled with
    ``mass_sampler(species, partner_mass, cms_energy, rng)``. Only one mass
    is ever sampled: when particle A is unstable, B keeps its pole mass even
    if B is unstable too. The emission direction is isotropic.

    Raises
    ------
    ValueError
        If ``outgoing`` does not hold exactly two particles.
    InvalidResonanceFormation
        If ``cms_energy`` is not positive or below the sum of the minimum
        masses.
    """
    if len(outgoing) != 2:
        raise ValueError(f"sample_cms_momenta needs exactly 2 outgoing particles, got {len(outgoing)}")
    if not cms_energy > 0.0:
        raise InvalidResonanceFormation(f"non-positive sqrt_s={cms_energy!r} for a two-body final state")
    rng = rng or np.random.default_rng()

    p_a, p_b = outgoing
    t_a, t_b = p_a.type, p_b.type
    mass_a, mass_b = t_a.mass, t_b.mass

    if cms_energy < t_a.minimum_mass + t_b.minimum_mass:
        raise InvalidResonanceFormation(
            f"not enough energy! sqrt_s={cms_energy:.6f} < "
            f"{t_a.minimum_mass:.6f} ({t_a.name}) + {t_b.minimum_mass:.6f} ({t_b.name})"
        )

    if not t_a.is_stable:
        mass_a = mass_sampler(t_a, mass_b, cms_energy, rng)
    elif not t_b.is_stable:
        mass_b = mass_sampler(t_b, mass_a, cms_energy, rng)

    energy_a = (cms_energy * cms_energy + mass_a * mass_a - mass_b * mass_b) / (2.0 * cms_energy)
    p_squared = energy_a * energy_a - mass_a * mass_a
    momentum_radial = math.sqrt(max(p_squared, 0.0))
    if not momentum_radial > 0.0:
        logger.warning(f"radial momentum {momentum_radial} (p^2 = {p_squared}) for {t_a.name} {t_b.name}")

    direction = isotropic_direction(rng)
    if not energy_a > mass_a:
        logger.info(
            f"Particle {t_a.name} ({t_a.pdg}) radial momentum {momentum_radial}, direction {direction}; "
            f"Etot: {cms_energy} m_a: {mass_a} m_b: {mass_b} E_a: {energy_a}"
        )

    p_vec = momentum_radial * direction
    p_a.momentum = FourVector(energy_a, float(p_vec[0]), float(p_vec[1]), float(p_vec[2]))
    p_b.momentum = FourVector(cms_energy - energy_a, float(-p_vec[0]), float(-p_vec[1]), float(-p_vec[2]))

    logger.debug(f"p_a: {p_a}\np_b: {p_b}")
    return p_a.momentum, p_b.momentum

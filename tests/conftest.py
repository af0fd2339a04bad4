import math

import numpy as np
import pytest

from interactions.kinematics import FourVector
from interactions.particles import ParticleData
from interactions.species import ParticleType, SpeciesRegistry


class FixedDraws:
    """Stand-in generator replaying a fixed list of uniform [0, 1) draws."""

    def __init__(self, *draws):
        self._draws = list(draws)

    def random(self):
        return self._draws.pop(0)

    def uniform(self, low=0.0, high=1.0):
        return low + (high - low) * self.random()


def on_shell(ptype, px=0.0, py=0.0, pz=0.0, position=(0.0, 0.0, 0.0), mass=None):
    m = ptype.mass if mass is None else mass
    energy = math.sqrt(m * m + px * px + py * py + pz * pz)
    return ParticleData(ptype, momentum=FourVector(energy, px, py, pz), position=position)


@pytest.fixture
def fixed_draws():
    return FixedDraws


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture(scope="session")
def registry():
    return SpeciesRegistry.from_csv()


@pytest.fixture
def light():
    return ParticleType("Light", pdg=9001, mass=0.5)

"""
Candidate interactions.

An Action is one possible collision, decay or wall crossing between specific
particles. It is built from snapshots of its incoming particles, collects the
weighted branches it may end in, and is resolved exactly once into outgoing
particles. Whether the resolved action is applied to the particle pool is up
to the caller; the action itself never touches the pool.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .branches import BranchCollection, ProcessBranch, ProcessType
from .channel import choose_channel
from .conservation import check_conservation
from .exceptions import InteractionError
from .constants import REALLY_SMALL
from .kinematics import FourVector, total_momentum
from .particles import ParticleData, ParticlePool, ParticleSnapshot
from .resonances import sample_resonance_mass
from .sampling import MassSampler, sample_cms_momenta

logger = logging.getLogger(__name__)


def _as_snapshot(particle) -> ParticleSnapshot:
    if isinstance(particle, ParticleSnapshot):
        return particle
    return particle.snapshot()


class Action:
    """
    Base candidate interaction.

    Args:
        incoming: Particles taking part (ParticleData or snapshots; live
            records are copied).
        time_of_execution: Simulation time at which the action takes effect.
        mass_sampler: Resonance mass sampler used for two-body final states.

    Once committed to a pool, ``outgoing`` holds frozen snapshots of the
    committed records.
    """

    def __init__(self, incoming: Iterable, time_of_execution: float,
                 mass_sampler: MassSampler = sample_resonance_mass):
        self._incoming = tuple(_as_snapshot(p) for p in incoming)
        if not self._incoming:
            raise ValueError("An action needs at least one incoming particle")
        self.time_of_execution = float(time_of_execution)
        self.branches = BranchCollection()
        self.outgoing: List[ParticleData] = []
        self.chosen_branch: Optional[ProcessBranch] = None
        self.mass_sampler = mass_sampler
        self._resolved = False

    # -------------------- Branch bookkeeping --------------------

    @property
    def incoming(self) -> tuple:
        return self._incoming

    def append_branch(self, branch: ProcessBranch):
        self.branches.append(branch)

    def append_branches(self, branches: Iterable[ProcessBranch]):
        self.branches.extend(branches)

    @property
    def total_weight(self) -> float:
        return self.branches.total_weight

    @property
    def process_type(self) -> ProcessType:
        if self.chosen_branch is None:
            return ProcessType.NONE
        return self.chosen_branch.process_type

    # -------------------- Validity --------------------

    def is_valid(self, pool: ParticlePool) -> bool:
        """
        True if every incoming particle is still in the pool, unchanged.

        A particle that decayed or scattered inelastically is gone; one that
        scattered elastically is still there but carries a newer id_process.
        """
        for part in self._incoming:
            if not pool.has_data(part.id):
                return False
            if pool.data(part.id).id_process != part.id_process:
                return False
        return True

    # -------------------- Kinematics --------------------

    def interaction_point(self) -> np.ndarray:
        """Mean position of the incoming particles."""
        return np.mean([p.position for p in self._incoming], axis=0)

    def total_momentum_of_incoming(self) -> FourVector:
        return total_momentum(p.momentum for p in self._incoming)

    def sqrt_s(self) -> float:
        return self.total_momentum_of_incoming().mass

    # -------------------- Resolution --------------------

    def choose_channel(self, rng: Optional[np.random.Generator] = None):
        """Select a branch by weight; returns its final-state species."""
        self.chosen_branch = choose_channel(self.branches, rng, context=self)
        return self.chosen_branch.particle_types

    def sample_cms_momenta(self, rng: Optional[np.random.Generator] = None):
        return sample_cms_momenta(self.outgoing, self.sqrt_s(), rng, self.mass_sampler)

    def generate_final_state(self, rng: Optional[np.random.Generator] = None) -> List[ParticleData]:
        """
        Resolve the action: pick a channel, sample its two-body kinematics in
        the CM frame and boost the result into the computational frame.
        An action is resolved at most once; a second call raises
        InteractionError.
        """
        self._check_unresolved()
        rng = rng or np.random.default_rng()
        self.choose_channel(rng)
        self.outgoing = self.chosen_branch.particle_list()
        if len(self.outgoing) != 2:
            raise NotImplementedError(
                f"{len(self.outgoing)}-body final states are not supported ({self.chosen_branch})"
            )
        self.sample_cms_momenta(rng)

        beta_cm = self.total_momentum_of_incoming().beta()
        point = self.interaction_point()
        for p in self.outgoing:
            p.momentum = p.momentum.boost(beta_cm)
            p.position = point.copy()
        self._resolved = True
        return self.outgoing

    def _check_unresolved(self):
        if self._resolved:
            raise InteractionError(f"{type(self).__name__} at t={self.time_of_execution} is already resolved")

    def check_conservation(self, id_process: int, tol: float = REALLY_SMALL) -> dict:
        return check_conservation(self._incoming, self.outgoing, id_process, tol)

    # -------------------- Representation --------------------

    def __repr__(self):
        incoming = ", ".join(f"{p.type.name}#{p.id}" for p in self._incoming)
        outgoing = ", ".join(p.type.name for p in self.outgoing) or "-"
        branches = "\n".join(f"    {b}" for b in self.branches)
        return (
            f"{type(self).__name__}(t={self.time_of_execution:.4f}, in=[{incoming}], "
            f"out=[{outgoing}], total_weight={self.total_weight:.6g})\n{branches}"
        )


class ScatterAction(Action):
    """Two-particle collision."""

    def __init__(self, particle_a, particle_b, time_of_execution: float, **kwargs):
        super().__init__([particle_a, particle_b], time_of_execution, **kwargs)

    def add_elastic(self, weight: float):
        """Add the branch in which both particles keep their species."""
        types = tuple(p.type for p in self.incoming)
        self.append_branch(ProcessBranch(types, weight, ProcessType.ELASTIC))


class DecayAction(Action):
    """Decay of a single unstable particle in its rest frame."""

    def __init__(self, particle, time_of_execution: float, **kwargs):
        super().__init__([particle], time_of_execution, **kwargs)

    @property
    def particle(self) -> ParticleSnapshot:
        return self.incoming[0]


class WallCrossingAction(Action):
    """A particle leaving the box on one side and re-entering on the other."""

    def __init__(self, particle, time_of_execution: float, new_position: Sequence[float], **kwargs):
        super().__init__([particle], time_of_execution, **kwargs)
        self.new_position = np.asarray(new_position, dtype=float)
        self.append_branch(ProcessBranch((self.incoming[0].type,), 1.0, ProcessType.WALL))

    def generate_final_state(self, rng: Optional[np.random.Generator] = None) -> List[ParticleData]:
        self._check_unresolved()
        self.choose_channel(rng)
        particle = self.incoming[0]
        self.outgoing = [ParticleData(
            type=particle.type,
            id=particle.id,
            momentum=FourVector(*particle.momentum.to_tuple()),
            position=self.new_position.copy(),
        )]
        self._resolved = True
        return self.outgoing

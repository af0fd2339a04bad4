"""
Particle records and the live particle pool.

The pool owns the canonical, mutable state of every particle. Actions only
ever hold immutable snapshots; the ``id_process`` tag carried by both is what
tells a queued action that one of its particles has moved on.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .kinematics import FourVector
from .species import ParticleType


@dataclass(eq=False)
class ParticleData:
    type: ParticleType
    id: int = -1
    momentum: FourVector = field(default_factory=FourVector.zero)
    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    id_process: int = 0

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float)

    @property
    def pdg(self) -> int:
        return self.type.pdg

    @property
    def effective_mass(self) -> float:
        return self.momentum.mass

    def snapshot(self) -> "ParticleSnapshot":
        return ParticleSnapshot(
            id=self.id,
            type=self.type,
            momentum=FourVector(*self.momentum.to_tuple()),
            position=tuple(float(x) for x in self.position),
            id_process=self.id_process,
        )

    def __repr__(self):
        return (
            f"ParticleData(id={self.id}, {self.type.name}, id_process={self.id_process}, "
            f"p={self.momentum}, x={tuple(round(float(x), 6) for x in self.position)})"
        )


@dataclass(frozen=True)
class ParticleSnapshot:
    """Frozen copy of a particle as it was when an action was queued."""

    id: int
    type: ParticleType
    momentum: FourVector
    position: Tuple[float, float, float]
    id_process: int

    @property
    def pdg(self) -> int:
        return self.type.pdg


class ParticlePool:
    """Container of live particles keyed by their unique id."""

    def __init__(self, particles: Iterable[ParticleData] = ()):
        self._data: Dict[int, ParticleData] = {}
        self._next_id = 0
        for p in particles:
            self.add(p)

    def add(self, particle: ParticleData) -> ParticleData:
        """Insert a particle under a fresh id and return it."""
        particle.id = self._next_id
        self._next_id += 1
        self._data[particle.id] = particle
        return particle

    def has_data(self, particle_id: int) -> bool:
        return particle_id in self._data

    def data(self, particle_id: int) -> ParticleData:
        try:
            return self._data[particle_id]
        except KeyError:
            raise KeyError(f"Particle id {particle_id} not in pool") from None

    def remove(self, particle_id: int) -> ParticleData:
        return self._data.pop(particle_id)

    def update(self, particle_id: int, id_process: int,
               momentum: Optional[FourVector] = None,
               position: Optional[np.ndarray] = None) -> ParticleData:
        """Change a particle in place, tagging it with ``id_process``."""
        particle = self.data(particle_id)
        if id_process < particle.id_process:
            raise ValueError(
                f"id_process must not decrease (particle {particle_id}: "
                f"{particle.id_process} -> {id_process})"
            )
        if momentum is not None:
            particle.momentum = momentum
        if position is not None:
            particle.position = np.asarray(position, dtype=float)
        particle.id_process = id_process
        return particle

    def replace(self, incoming_ids: Sequence[int], outgoing: Iterable[ParticleData],
                id_process: int) -> List[ParticleData]:
        """Remove the incoming particles and insert the outgoing ones."""
        for pid in incoming_ids:
            self.remove(pid)
        inserted = []
        for p in outgoing:
            p.id_process = id_process
            inserted.append(self.add(p))
        return inserted

    def snapshots(self, particle_ids: Iterable[int]) -> List[ParticleSnapshot]:
        return [self.data(pid).snapshot() for pid in particle_ids]

    def __len__(self):
        return len(self._data)

    def __iter__(self) -> Iterator[ParticleData]:
        return iter(list(self._data.values()))

    def __contains__(self, particle_id) -> bool:
        return particle_id in self._data

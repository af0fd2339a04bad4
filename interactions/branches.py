"""
Weighted outcome branches of a candidate interaction.

A ProcessBranch is one possible final state with a relative weight (a
partial cross section or a branching ratio). A BranchCollection keeps the
branches of one action in insertion order together with their running total.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Iterator, List, Tuple

from .particles import ParticleData
from .species import ParticleType


class ProcessType(IntEnum):
    NONE = 0
    ELASTIC = 1
    TWO_TO_ONE = 2
    TWO_TO_TWO = 3
    DECAY = 5
    WALL = 6
    STRING = 41


@dataclass(frozen=True)
class ProcessBranch:
    particle_types: Tuple[ParticleType, ...]
    weight: float
    process_type: ProcessType = ProcessType.NONE

    def __post_init__(self):
        object.__setattr__(self, "particle_types", tuple(self.particle_types))
        if not self.weight >= 0.0:
            raise ValueError(f"Branch weight must be non-negative, got {self.weight}")

    @property
    def is_selectable(self) -> bool:
        """False for empty final states and "no interaction" placeholders."""
        return len(self.particle_types) > 0 and not self.particle_types[0].is_invalid

    @property
    def pdg_codes(self) -> Tuple[int, ...]:
        return tuple(t.pdg for t in self.particle_types)

    def particle_list(self) -> List[ParticleData]:
        """Fresh outgoing particle slots, one per final-state species."""
        return [ParticleData(type=t) for t in self.particle_types]

    def __repr__(self):
        names = " ".join(t.name for t in self.particle_types) or "∅"
        return f"ProcessBranch({names}, w={self.weight:.6g}, {self.process_type.name})"


class BranchCollection:
    """Ordered branches plus a running total of their weights."""

    def __init__(self, branches: Iterable[ProcessBranch] = ()):
        self._branches: List[ProcessBranch] = []
        self._total_weight = 0.0
        self.extend(branches)

    def append(self, branch: ProcessBranch):
        self._total_weight += branch.weight
        self._branches.append(branch)

    def extend(self, branches: Iterable[ProcessBranch]):
        if not self._branches:
            self.replace(branches)
            return
        for branch in branches:
            self.append(branch)

    def replace(self, branches: Iterable[ProcessBranch]):
        """Drop the current branches and adopt ``branches``, summing once."""
        self._branches = list(branches)
        self._total_weight = sum(b.weight for b in self._branches)

    @property
    def total_weight(self) -> float:
        return self._total_weight

    def __len__(self):
        return len(self._branches)

    def __iter__(self) -> Iterator[ProcessBranch]:
        return iter(self._branches)

    def __getitem__(self, index) -> ProcessBranch:
        return self._branches[index]

    def __bool__(self):
        return bool(self._branches)

    def __repr__(self):
        return f"BranchCollection({len(self)} branches, total_weight={self._total_weight:.6g})"

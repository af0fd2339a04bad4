"""
Candidate-interaction core for InteractX.

Usage:
    from interactions import ScatterAction, ProcessBranch, ProcessType

    action = ScatterAction(pion, proton, time_of_execution=0.5)
    action.add_elastic(20.0)
    action.append_branch(ProcessBranch((pi0, neutron), 5.0, ProcessType.TWO_TO_TWO))
    if action.is_valid(pool):
        action.generate_final_state(rng)
"""
__version__ = "0.3.0"

from .exceptions import InteractionError, InvalidResonanceFormation, ChannelSelectionError
from .kinematics import FourVector
from .species import ParticleType, SpeciesRegistry
from .particles import ParticleData, ParticleSnapshot, ParticlePool
from .branches import ProcessType, ProcessBranch, BranchCollection
from .action import Action, ScatterAction, DecayAction, WallCrossingAction
from .executor import perform_action, perform_actions, ProcessingReport

__all__ = [
    "InteractionError",
    "InvalidResonanceFormation",
    "ChannelSelectionError",
    "FourVector",
    "ParticleType",
    "SpeciesRegistry",
    "ParticleData",
    "ParticleSnapshot",
    "ParticlePool",
    "ProcessType",
    "ProcessBranch",
    "BranchCollection",
    "Action",
    "ScatterAction",
    "DecayAction",
    "WallCrossingAction",
    "perform_action",
    "perform_actions",
    "ProcessingReport",
]

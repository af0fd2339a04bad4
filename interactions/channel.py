"""
Monte Carlo channel selection.

Inverse-CDF sampling over the branches of one action: a single uniform draw
is compared against the running sum of normalised branch weights, in the
order the branches were added.
"""

import logging
from typing import Optional

import numpy as np

from .branches import BranchCollection, ProcessBranch
from .exceptions import ChannelSelectionError

logger = logging.getLogger(__name__)


def choose_channel(branches: BranchCollection,
                   rng: Optional[np.random.Generator] = None,
                   context: object = None) -> ProcessBranch:
    """
    Pick one branch with probability proportional to its weight.

    Parameters
    ----------
    branches : BranchCollection
        Candidate outcomes with their cached total weight.
    rng : numpy Generator, optional
        Anything with a ``random()`` method returning a float in [0, 1).
    context : object, optional
        Owner of the branches, included in the failure dump.

    Returns
    -------
    ProcessBranch
        The first selectable branch whose cumulative probability reaches
        the draw.

    Raises
    ------
    ChannelSelectionError
        If no branch is selected (zero total weight, or the cumulative sum
        falls short of the draw).
    """
    rng = rng or np.random.default_rng()
    total_weight = branches.total_weight
    random_interaction = float(rng.random())
    interaction_probability = 0.0

    if total_weight > 0.0:
        for branch in branches:
            if not branch.is_selectable:
                continue
            interaction_probability += branch.weight / total_weight
            if random_interaction <= interaction_probability:
                logger.debug(f"Selected {branch} (r={random_interaction:.6f})")
                return branch

    logger.critical(
        f"Problem in choose_channel: {len(branches)} branches, "
        f"cumulative probability {interaction_probability!r}, "
        f"total weight {total_weight!r}, draw {random_interaction!r}\n{context}"
    )
    raise ChannelSelectionError(
        f"No channel selected from {len(branches)} branches "
        f"(cumulative={interaction_probability}, total_weight={total_weight})"
    )

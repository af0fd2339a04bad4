"""
Applying resolved actions to the particle pool.

Validation is optimistic: an action is checked against the pool right before
its outcome is committed, and every commit retags the particles it touched
with a new id_process. Any other queued action sharing one of those particles
then fails ``is_valid`` and is dropped (last committer wins, no locking).
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from .action import Action
from .branches import ProcessType
from .constants import REALLY_SMALL
from .exceptions import ChannelSelectionError, InvalidResonanceFormation
from .particles import ParticlePool

logger = logging.getLogger(__name__)

# Process types after which the incoming particles live on under the same id
_IN_PLACE = (ProcessType.ELASTIC, ProcessType.WALL)


@dataclass
class ProcessingReport:
    performed: List[Action] = field(default_factory=list)
    stale: int = 0
    not_realized: int = 0
    failed: int = 0
    conservation_violations: int = 0

    @property
    def total(self) -> int:
        return len(self.performed) + self.stale + self.not_realized + self.failed


def perform_action(action: Action, pool: ParticlePool, id_process: int,
                   rng: Optional[np.random.Generator] = None,
                   tolerance: float = REALLY_SMALL) -> Optional[dict]:
    """
    Resolve ``action`` and commit it to ``pool`` under ``id_process``.

    Returns:
        The conservation diagnostic dict, or None if the action is stale.

    Raises:
        InvalidResonanceFormation: the chosen final state is not reachable
            at this energy; the pool is left untouched.
    """
    if not action.is_valid(pool):
        logger.debug(f"Dropping stale action {action!r}")
        return None

    action.generate_final_state(rng)
    diag = action.check_conservation(id_process, tolerance)

    if action.process_type in _IN_PLACE:
        committed = [
            pool.update(p_in.id, id_process, momentum=p_out.momentum, position=p_out.position)
            for p_in, p_out in zip(action.incoming, action.outgoing)
        ]
    else:
        committed = pool.replace([p.id for p in action.incoming], action.outgoing, id_process)
    # the pool owns the committed records, the action keeps frozen copies
    action.outgoing = [p.snapshot() for p in committed]

    logger.debug(
        f"Process {id_process} ({action.process_type.name}): "
        f"{' '.join(p.type.name for p in action.incoming)} → "
        f"{' '.join(p.type.name for p in committed)}"
    )
    return diag


def perform_actions(actions: Iterable[Action], pool: ParticlePool,
                    rng: Optional[np.random.Generator] = None,
                    first_process_id: int = 1,
                    tolerance: float = REALLY_SMALL) -> ProcessingReport:
    """
    Perform queued actions in order of execution time.

    Stale actions are skipped, actions without enough energy for their
    sampled final state are counted as not realized, and a failed channel
    selection drops only the candidate it happened in.
    """
    rng = rng or np.random.default_rng()
    report = ProcessingReport()
    id_process = first_process_id

    for action in sorted(actions, key=lambda a: a.time_of_execution):
        try:
            diag = perform_action(action, pool, id_process, rng, tolerance)
        except InvalidResonanceFormation as e:
            logger.info(f"Action not realized: {e}")
            report.not_realized += 1
            continue
        except ChannelSelectionError as e:
            # choose_channel already dumped the branches at CRITICAL
            logger.error(f"Dropping candidate: {e}")
            report.failed += 1
            continue
        if diag is None:
            report.stale += 1
            continue
        if not diag["conserved"]:
            report.conservation_violations += 1
        report.performed.append(action)
        id_process += 1

    logger.info(
        f"Performed {len(report.performed)}/{report.total} actions "
        f"({report.stale} stale, {report.not_realized} not realized, {report.failed} failed)"
    )
    return report

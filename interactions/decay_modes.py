import csv
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .action import DecayAction
from .branches import ProcessBranch, ProcessType
from .constants import DATA_DIR
from .species import SpeciesRegistry

logger = logging.getLogger(__name__)

DECAYS_CSV = DATA_DIR / "decays.csv"

DecayTable = Dict[int, List[Tuple[str, float]]]

# Simple in-memory cache: source -> decay table
_CACHE: Dict[str, DecayTable] = {}


def _add_mode(table: DecayTable, pdg_id, mode_text, branching_fraction):
    mode = (mode_text or "").strip()
    if not mode or "stable" in mode.lower():
        return
    try:
        br = float(branching_fraction)
    except (TypeError, ValueError):
        logger.warning(f"Skipping decay mode '{mode}' of PDG {pdg_id}: bad branching fraction {branching_fraction!r}")
        return
    table.setdefault(int(pdg_id), []).append((mode, br))


def load_decay_table(conn) -> DecayTable:
    """Read (pdg_id, decay_mode, branching_fraction) rows from a ``decays`` table."""
    cur = conn.cursor()
    try:
        cur.execute("SELECT pdg_id, decay_mode, branching_fraction FROM decays")
        rows = cur.fetchall()
    finally:
        cur.close()
    table: DecayTable = {}
    for pdg_id, mode, br in rows:
        _add_mode(table, pdg_id, mode, br)
    return table


def load_decay_table_csv(path: Union[str, Path] = DECAYS_CSV) -> DecayTable:
    """Read the decay CSV ("PDG ID", "Decay mode", "Branching fraction"), cached per path."""
    key = str(Path(path).resolve())
    if key in _CACHE:
        return _CACHE[key]

    table: DecayTable = {}
    with open(path, newline="", encoding="utf-8") as csvfile:
        for row in csv.DictReader(csvfile):
            _add_mode(table, row["PDG ID"], row["Decay mode"], row["Branching fraction"])

    _CACHE[key] = table
    return table


def split_mode(mode_text: str) -> List[str]:
    """
    Split a mode like 'π+ π−' into its tokens.
    Parenthetical notes are dropped: 'p π0 (P-wave)' -> ['p', 'π0'].
    """
    mode = re.sub(r"\s*\(.*?\)\s*", " ", mode_text).strip()
    mode = re.sub(r"\s+", " ", mode)
    return mode.split(" ") if mode else []


def decay_branches(registry: SpeciesRegistry, modes: List[Tuple[str, float]]) -> List[ProcessBranch]:
    """
    Turn (mode_text, branching_fraction) pairs into DECAY branches.

    Modes naming a species the registry does not know are skipped;
    negative branching fractions count as zero.
    """
    branches = []
    for mode, br in modes:
        tokens = split_mode(mode)
        try:
            types = tuple(registry.lookup(token) for token in tokens)
        except KeyError as e:
            logger.warning(f"Skipping decay mode '{mode}': {e}")
            continue
        if not types:
            continue
        branches.append(ProcessBranch(types, max(br, 0.0), ProcessType.DECAY))
    return branches


def make_decay_action(particle, registry: SpeciesRegistry, table: DecayTable,
                      time_of_execution: float, **kwargs) -> Optional[DecayAction]:
    """
    Build a DecayAction for ``particle`` with all of its known decay modes.
    Returns None for species without decay modes.
    """
    modes = table.get(particle.type.pdg, [])
    branches = decay_branches(registry, modes)
    if not branches:
        logger.debug(f"{particle.type.name} has no decay modes, no decay action")
        return None
    action = DecayAction(particle, time_of_execution, **kwargs)
    action.append_branches(branches)
    return action

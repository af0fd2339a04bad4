# conservation.py
# Four-momentum bookkeeping for resolved interactions.
#
# The audit is observational only: violations are logged with the process id
# and returned as numbers, the interaction itself is never touched.
import logging

from .constants import REALLY_SMALL
from .kinematics import FourVector, total_momentum

logger = logging.getLogger(__name__)

_COMPONENTS = (
    ("E", "deltaE"),
    ("px", "deltaPx"),
    ("py", "deltaPy"),
    ("pz", "deltaPz"),
)


def momentum_difference(initial_vectors, final_vectors) -> FourVector:
    """Sum of the initial four-momenta minus the sum of the final ones."""
    return total_momentum(initial_vectors) - total_momentum(final_vectors)


def check_energy_momentum(initial_vectors, final_vectors, tol=REALLY_SMALL):
    """Return diagnostic dict for full 4-momentum conservation.

    Returns dict with deltas for energy and momentum components and a
    boolean 'conserved' key summarizing result within tolerance.

    Examples
    --------
    >>> from interactions.kinematics import FourVector
    >>> p_in = [FourVector(10, 0, 0, 0)]
    >>> p_out = [FourVector(4, 1, 0, 0), FourVector(6, -1, 0, 0)]
    >>> check_energy_momentum(p_in, p_out)['conserved']
    True
    """
    initial_vectors = list(initial_vectors)
    final_vectors = list(final_vectors)
    diff = momentum_difference(initial_vectors, final_vectors)
    diag = {attr_key: getattr(diff, attr) for attr, attr_key in _COMPONENTS}
    diag['conserved'] = all(abs(diag[key]) <= tol for _, key in _COMPONENTS)
    diag['E_initial'] = sum(v.E for v in initial_vectors)
    diag['E_final'] = sum(v.E for v in final_vectors)
    return diag


def check_conservation(incoming, outgoing, id_process, tol=REALLY_SMALL):
    """
    Audit four-momentum conservation of one interaction.

    Parameters
    ----------
    incoming : iterable
        Incoming particles (anything with a ``momentum`` FourVector).
    outgoing : iterable
        Outgoing particles.
    id_process : int
        Process id, used to label warnings.
    tol : float
        Absolute tolerance per component (default REALLY_SMALL).

    Returns
    -------
    dict
        Same layout as ``check_energy_momentum``.
    """
    diag = check_energy_momentum(
        [p.momentum for p in incoming], [p.momentum for p in outgoing], tol
    )
    for attr, key in _COMPONENTS:
        if abs(diag[key]) > tol:
            logger.warning(f"Process {id_process}: {attr} conservation violation {diag[key]:.6e}")
    return diag

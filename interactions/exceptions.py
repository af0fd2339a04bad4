class InteractionError(Exception):
    """Base class for failures while resolving a candidate interaction."""


class InvalidResonanceFormation(InteractionError):
    """
    Not enough centre-of-mass energy to form the chosen final state.

    Recoverable: the caller drops the candidate and carries on.
    """


class ChannelSelectionError(InteractionError):
    """
    Monte Carlo channel selection fell through every branch.

    Means the cached total weight no longer matches the branches (or
    floating-point drift ate the last bin). Fatal for the candidate.
    """

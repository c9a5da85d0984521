"""Exception types raised by the statistics and regression routines."""

from __future__ import annotations


class ClusterStatsError(ValueError):
    """Base class for precondition and numerical failures."""


class LengthMismatchError(ClusterStatsError):
    """Predictors and outcomes have a different number of items."""


class InsufficientDataError(ClusterStatsError):
    """Too few (weighted) samples for the requested statistic or fit."""


class SingularMatrixError(ClusterStatsError):
    """The normal-equation matrix ``XᵗX`` is uninvertible or ill-conditioned.

    Callers may retry with a lower polynomial degree or different data; the
    fitting routines never recover on their own.
    """


def check_same_length(predictors, outcomes) -> int:
    """Return the shared length of ``predictors`` and ``outcomes``.

    Raises:
        LengthMismatchError: If the lengths differ.
    """
    n_pred = len(predictors)
    n_out = len(outcomes)
    if n_pred != n_out:
        raise LengthMismatchError(
            f"predictors and outcomes must have the same number of items "
            f"(got {n_pred} and {n_out})."
        )
    return n_pred

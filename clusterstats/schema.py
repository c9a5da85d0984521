"""Define standardized column names for candidate-ranking DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CandidateColumns:
    """Container for the column labels of :func:`rank_candidates` output.

    Attributes:
        model: Model kind (``power``, ``exponential``, ``polynomial``,
            ``linear`` or ``theil_sen_linear``).

        equation: Rendered equation of the fitted model, with the default
            five decimals.

        determination: Raw coefficient of determination (R²) against the
            original, untransformed data. This is the value to report.

        score: R² after the selector's heuristic bumps and penalties. Only
            meaningful for comparing candidates of one selection run.

        selected: True for the single winning candidate.
    """

    model: str = "Model"
    equation: str = "Equation"
    determination: str = "R²"
    score: str = "Weighted score"
    selected: str = "Selected"


COLUMNS = CandidateColumns()

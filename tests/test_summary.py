import math

import numpy as np
import pytest

from clusterstats.clusters import ClusterList, OwnedClusterList
from clusterstats.errors import InsufficientDataError
from clusterstats.summary import (
    mean,
    percentiles,
    quartiles_by_halves,
    standard_deviation,
    summarize,
)


def test_standard_deviation_textbook_sample():
    values = OwnedClusterList.from_values([2, 4, 4, 4, 5, 5, 7, 9])
    out = standard_deviation(values)
    assert math.isclose(out.mean, 5.0)
    assert math.isclose(out.standard_deviation, math.sqrt(32.0 / 7.0))
    assert round(out.standard_deviation, 3) == 2.138


def test_standard_deviation_weighted_matches_expanded():
    weighted = ClusterList([(2.0, 1), (4.0, 3), (5.0, 2), (7.0, 1), (9.0, 1)])
    out = standard_deviation(weighted)
    flat = np.array([2, 4, 4, 4, 5, 5, 7, 9], dtype=float)
    assert np.isclose(out.standard_deviation, np.std(flat, ddof=1))
    assert np.isclose(mean(weighted), flat.mean())


def test_standard_deviation_single_observation_is_nan():
    out = standard_deviation(ClusterList([(3.0, 1)]))
    assert out.mean == 3.0
    assert math.isnan(out.standard_deviation)


def test_mean_of_empty_list_raises():
    with pytest.raises(InsufficientDataError):
        mean(ClusterList([]))


def test_percentiles_sorts_and_reports_quartiles():
    values = OwnedClusterList([(float(v), 1) for v in (8, 3, 1, 6, 2, 7, 5, 4)])
    out = percentiles(values)
    assert out.median == 4.5
    assert out.lower_quadrille == 2.5
    assert out.higher_quadrille == 6.5
    assert values.is_sorted()


def test_quartiles_are_undefined_below_five_observations():
    out = percentiles(OwnedClusterList([(1.0, 2), (3.0, 2)]))
    assert out.median == 2.0
    assert out.lower_quadrille is None
    assert out.higher_quadrille is None

    halves = quartiles_by_halves(ClusterList([(1.0, 1), (2.0, 3)]))
    assert halves.lower_quadrille is None
    assert halves.higher_quadrille is None


def test_quartiles_by_halves_skip_middle_observation():
    values = ClusterList([(float(v), 1) for v in range(1, 8)])
    out = quartiles_by_halves(values)
    assert out.median == 4.0
    # halves are [1, 2, 3] and [5, 6, 7]
    assert out.lower_quadrille == 2.0
    assert out.higher_quadrille == 6.0


def test_quartiles_by_halves_with_weighted_clusters():
    values = ClusterList([(1.0, 3), (2.0, 2), (10.0, 5)])
    out = quartiles_by_halves(values)
    # flat: 1 1 1 2 2 | 10 10 10 10 10
    assert out.median == 6.0
    assert out.lower_quadrille == 1.0
    assert out.higher_quadrille == 10.0


def test_summarize_runs_full_pipeline():
    values = OwnedClusterList([(5.0, 1), (1.0, 2), (5.0, 2), (3.0, 1), (9.0, 1)])
    summary = summarize(values)
    assert summary.total_weight == 7
    assert summary.distinct_values == 4
    assert math.isclose(summary.mean, (5 * 3 + 1 * 2 + 3 + 9) / 7)
    # flat: 1 1 3 5 5 5 9
    assert summary.median == 5.0
    assert summary.lower_quadrille == 1.0
    assert summary.higher_quadrille == 5.0
    assert len(values) == 5

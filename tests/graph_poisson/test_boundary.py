from __future__ import annotations

import numpy as np
import pytest

from graph_poisson.boundary import (
    FORCING_GOVERNED,
    BoundaryClassifier,
    BoundaryMap,
    FixedValue,
    Forcing,
    ForcingGoverned,
    forcing,
    is_constrained,
)
from graph_poisson.geometry import BoundingBox


@pytest.fixture
def classifier() -> BoundaryClassifier:
    return BoundaryClassifier()


@pytest.mark.parametrize(
    "point, expected",
    [
        ((1.0, 0.3, 0.0), FixedValue(0.0)),
        ((-0.4, -1.0, 0.0), FixedValue(0.0)),
        ((0.65, 0.55, 0.0), FixedValue(-0.2)),
        ((-0.5, -0.7, 0.0), FixedValue(-0.2)),
        ((0.0, 0.1, 0.0), FixedValue(1.0)),
        ((0.6, -0.2, 0.0), FixedValue(1.0)),
        ((0.0, 0.5, 0.0), FORCING_GOVERNED),
        ((0.9, 0.0, 0.0), FORCING_GOVERNED),
    ],
)
def test_default_rules(classifier, point, expected):
    assert classifier.classify(point) == expected


def test_outer_boundary_wins_over_source_box(classifier):
    # inside the source box (z extent [-1, 1]) but also on the outer boundary
    assert classifier.classify((0.0, 0.0, 1.0)) == FixedValue(0.0)


def test_hole_wins_over_source_box():
    c = BoundaryClassifier(hole_radius=0.5)
    p = (0.3, 0.15, 0.0)
    assert c.source_box.contains(p)
    assert c.classify(p) == FixedValue(-0.2)


def test_hole_radius_is_strict(classifier):
    assert classifier.classify((0.8, 0.6, 0.0)) == FORCING_GOVERNED


def test_non_finite_position_is_forcing_governed(classifier):
    assert classifier.classify((np.nan, 0.0, 0.0)) is FORCING_GOVERNED
    assert classifier.classify((np.inf, 0.0, 0.0)) is FORCING_GOVERNED


def test_fixed_value_never_aliases_unconstrained():
    c = BoundaryClassifier(source_value=-1.0)
    bc = c.classify((0.0, 0.0, 0.0))
    assert bc == FixedValue(-1.0)
    assert is_constrained(bc)
    assert not is_constrained(FORCING_GOVERNED)
    assert ForcingGoverned() is FORCING_GOVERNED


def test_custom_source_box():
    c = BoundaryClassifier(source_box=BoundingBox((0.1, 0.1, -1), (0.3, 0.3, 1)))
    assert c.classify((0.0, 0.0, 0.0)) is FORCING_GOVERNED
    assert c((0.2, 0.2, 0.0)) == FixedValue(1.0)


def test_classify_graph(classifier, grid):
    g = grid(5)
    bmap = classifier.classify_graph(g)
    assert len(bmap) == 25
    free = np.flatnonzero(~bmap.constrained).tolist()
    # only (0, +-0.5) are interior; the rest is outer, hole or source
    assert free == [7, 17]
    assert bmap.values[12] == 1.0  # centre, source box
    assert bmap.values[6] == -0.2  # (-0.5, -0.5), hole
    assert bmap.condition(7) is FORCING_GOVERNED
    assert bmap.condition(0) == FixedValue(0.0)
    with pytest.raises(ValueError):
        bmap.values[0] = 5.0


def test_boundary_map_from_conditions():
    bmap = BoundaryMap.from_conditions([FixedValue(2.0), FORCING_GOVERNED])
    assert bmap.constrained.tolist() == [True, False]
    assert bmap.values.tolist() == [2.0, 0.0]


def test_forcing():
    assert forcing((0.0, 0.0, 0.0)) == pytest.approx(5.0)
    assert forcing((np.pi, 0.0, 0.0)) == pytest.approx(-5.0)
    assert forcing((-np.pi / 4, np.pi / 4, 0.0)) == pytest.approx(0.0, abs=1e-12)


def test_forcing_vectorized_matches_scalar():
    f = Forcing(scale=2.0)
    pts = np.array([[0.1, -0.2, 0.0], [0.5, 0.5, 0.3], [-1.0, 0.0, 0.0]])
    np.testing.assert_allclose(f.evaluate(pts), [f(p) for p in pts])

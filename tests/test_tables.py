"""Tests for the pandas views of helices and query batches."""

import numpy as np
import pandas as pd
import pytest

from trackhelix.constants import FCT
from trackhelix.helix import Helix
from trackhelix import tables

B_FIELD = 2.0
RADIUS = 1.0 / (FCT * B_FIELD)


@pytest.fixture
def helices():
    return [Helix.from_vectors([0.0, 0.0, 0.0], [1.0, 0.0, 1.0], 1.0, B_FIELD),
            Helix.from_vectors([10.0, 0.0, 5.0], [0.0, 1.0, 0.5], 1.0, B_FIELD),
            Helix.from_vectors([0.0, 0.0, 0.0], [1.0, 0.0, 1.0], 1.0, 0.0)]


def test_helix_table(helices):
    df = tables.helixTable(helices)
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 3
    for column in ('phi0', 'd0', 'z0', 'omega', 'tan_lambda', 'radius', 'bz', 'straight'):
        assert column in df.columns
    assert df['d0'].iloc[1] == pytest.approx(-10.0)
    assert list(df['straight']) == [False, False, True]
    assert np.isinf(df['radius'].iloc[2])


def test_cylinder_crossings(helices):
    df = tables.cylinderCrossings(helices[1], [5.0, 100.0, 1000.0])
    assert list(df.columns) == ['radius', 'x', 'y', 'z', 'time', 'found']
    assert list(df['found']) == [False, True, True]
    assert np.isnan(df['x'].iloc[0])
    r = np.hypot(df['x'].iloc[1:], df['y'].iloc[1:])
    np.testing.assert_allclose(r, [100.0, 1000.0])


def test_plane_crossings(helices):
    df = tables.planeCrossings(helices[0], [0.0, RADIUS * np.pi / 2])
    assert list(df['found']) == [True, True]
    np.testing.assert_allclose(df[['x', 'y']].iloc[1], [RADIUS, -RADIUS], atol=1e-6)


def test_point_distances(helices):
    points = [helices[0].getPointInZ(z).point for z in (10.0, 20.0)] + [[0.0, 0.0, 4.0]]
    df = tables.pointDistances(helices[0], points)
    assert list(df.columns) == ['x', 'y', 'z', 'rphi', 'dz', 'distance', 'time']
    np.testing.assert_allclose(df['distance'], [0.0, 0.0, 4.0], atol=1e-6)

"""Tests for the straight line helper."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from trackhelix.line import Line


def test_line_normalizes_direction():
    line = Line([1.0, 2.0, 3.0], [0.0, 0.0, 2.0])
    assert_allclose(line.unit_direction, [0.0, 0.0, 1.0])
    assert_allclose(line.direction, [0.0, 0.0, 2.0])
    assert_allclose(line.positionAt(-1.5), [1.0, 2.0, 1.5])


def test_zero_direction_is_rejected():
    with pytest.raises(ValueError):
        Line([0.0, 0.0, 0.0], [0.0, 0.0, 0.0])


def test_line_through_points():
    line = Line.through([1.0, 1.0, 0.0], [4.0, 5.0, 0.0])
    assert_allclose(line.unit_direction, [0.6, 0.8, 0.0])
    assert line.projectPoint([4.0, 5.0, 0.0]) == pytest.approx(5.0)


def test_distance_to_point():
    line = Line([0.0, 0.0, 0.0], [1.0, 0.0, 0.0])
    dist, foot = line.getDistanceToPoint([7.0, 3.0, 4.0])
    assert dist == pytest.approx(5.0)
    assert_allclose(foot, [7.0, 0.0, 0.0])
    assert repr(line) == "Line([0.0, 0.0, 0.0], [1.0, 0.0, 0.0])"

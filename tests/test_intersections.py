"""Tests for plane and cylinder intersections and momentum extrapolation."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from trackhelix.constants import FCT
from trackhelix.helix import Helix

B_FIELD = 2.0
RADIUS = 1.0 / (FCT * B_FIELD)


@pytest.fixture
def helix():
    # clockwise circle around (0, -RADIUS) through the origin, tan(lambda) = 1
    return Helix.from_vectors([0.0, 0.0, 0.0], [1.0, 0.0, 1.0], 1.0, B_FIELD)


@pytest.fixture
def displaced_helix():
    # closest approach to the z-axis at (10, 0), center at (10 + RADIUS, 0)
    return Helix.from_vectors([10.0, 0.0, 5.0], [0.0, 1.0, 0.5], 1.0, B_FIELD)


def test_point_in_xy_takes_first_crossing(helix):
    res = helix.getPointInXY(0.5 * RADIUS, 0.0, 0.0, 1.0)
    assert res
    h = 0.5 * np.sqrt(3.0) * RADIUS
    assert_allclose(res.point, [0.5 * RADIUS, -RADIUS + h, RADIUS * np.pi / 6], rtol=1e-9, atol=1e-6)
    assert res.time == pytest.approx(RADIUS * np.pi / 6)
    assert_allclose(res.second_point, [0.5 * RADIUS, -RADIUS - h, 5 * RADIUS * np.pi / 6], rtol=1e-9, atol=1e-6)
    assert res.second_time == pytest.approx(5 * RADIUS * np.pi / 6)


def test_point_in_xy_misses(helix):
    res = helix.getPointInXY(3 * RADIUS, 0.0, 0.0, 1.0)
    assert not res.found
    assert np.all(np.isnan(res.point))
    assert np.isnan(res.time)
    assert not helix.getPointInXY(0.0, 0.0, 0.0, 0.0).found


def test_point_in_z_self_consistency(helix, displaced_helix):
    for h in (helix, displaced_helix):
        for z in (-2000.0, -3.0, 0.0, 17.5, 12345.0):
            res = h.getPointInZ(z)
            assert res.found
            assert res.point[2] == z
            dist = h.getDistanceToPoint(res.point)
            assert dist.rphi < 1e-6
            assert dist.z < 1e-6


def test_point_in_z_behind_reference_point(helix):
    res = helix.getPointInZ(-100.0)
    assert res.found
    assert res.time == pytest.approx(-100.0)


def test_point_in_z_from_other_start(helix):
    start = helix.getPointInZ(1000.0).point
    direct = helix.getPointInZ(2500.0)
    via = helix.getPointInZ(2500.0, ref=start)
    assert_allclose(via.point, direct.point, atol=1e-6)
    assert via.time == pytest.approx(direct.time - 1000.0)


def test_point_in_z_flat_helix():
    flat = Helix.from_vectors([0.0, 0.0, 1.0], [1.0, 1.0, 0.0], -1.0, B_FIELD)
    res = flat.getPointInZ(5.0)
    assert not res.found
    assert np.all(np.isnan(res.point))


def test_point_on_circle(helix):
    res = helix.getPointOnCircle(100.0)
    assert res.found
    assert np.hypot(res.point[0], res.point[1]) == pytest.approx(100.0)
    assert res.point[0] > 0
    assert 0 < res.time < res.second_time
    assert np.hypot(res.second_point[0], res.second_point[1]) == pytest.approx(100.0)
    assert res.second_point[0] < 0
    assert helix.getDistanceToPoint(res.point).distance < 1e-6
    assert helix.getDistanceToPoint(res.second_point).distance < 1e-6


def test_point_on_circle_from_other_start(helix):
    start = helix.getPointInZ(RADIUS * np.pi / 2).point
    res = helix.getPointOnCircle(100.0, ref=start)
    assert res.found
    assert res.point[0] < 0
    assert res.time > 0


@pytest.mark.parametrize("radius", [5.0, 9.999, 2 * RADIUS + 10.5])
def test_point_on_circle_out_of_reach(displaced_helix, radius):
    res = displaced_helix.getPointOnCircle(radius)
    assert not res.found
    assert np.all(np.isnan(res.point))
    assert np.all(np.isnan(res.second_point))


def test_point_on_circle_at_closest_approach(displaced_helix):
    res = displaced_helix.getPointOnCircle(10.0 + 1e-9)
    assert res.found
    assert_allclose(res.point[:2], [10.0, 0.0], atol=1e-2)


def test_straight_line_intersections():
    line = Helix.from_vectors([-50.0, 0.0, 0.0], [1.0, 0.0, 1.0], 1.0, 0.0)
    res = line.getPointOnCircle(20.0)
    assert res.found
    assert_allclose(res.point, [-20.0, 0.0, 30.0])
    assert_allclose(res.second_point, [20.0, 0.0, 70.0])
    assert res.time == pytest.approx(30.0)
    res = line.getPointInXY(10.0, 0.0, 0.0, 1.0)
    assert_allclose(res.point, [10.0, 0.0, 60.0])
    # plane behind the start point
    assert not line.getPointInXY(-60.0, 0.0, 0.0, 1.0).found
    res = line.getPointOnCircle(60.0)
    assert_allclose(res.point, [60.0, 0.0, 110.0])
    assert np.all(np.isnan(res.second_point))
    outbound = Helix.from_vectors([50.0, 0.0, 0.0], [1.0, 0.0, 1.0], 1.0, 0.0)
    assert not outbound.getPointOnCircle(20.0).found


def test_extrapolated_momentum(helix):
    quarter = helix.getPointInZ(RADIUS * np.pi / 2).point
    assert_allclose(helix.getExtrapolatedMomentum(quarter), [0.0, -1.0, 1.0], atol=1e-12)
    mom = helix.getExtrapolatedMomentum(helix.getPointInZ(777.0).point)
    assert np.hypot(mom[0], mom[1]) == pytest.approx(helix.pxy)
    assert mom[2] == helix.momentum[2]


def test_point_in_xy_from_other_start(helix):
    start = helix.getPointInZ(RADIUS * np.pi / 2).point
    res = helix.getPointInXY(0.5 * RADIUS, 0.0, 0.0, 1.0, ref=start)
    assert res.found
    h = 0.5 * np.sqrt(3.0) * RADIUS
    # the crossing at y = -RADIUS + h has been passed already
    assert_allclose(res.point, [0.5 * RADIUS, -RADIUS - h, 5 * RADIUS * np.pi / 6], atol=1e-6)
    assert res.time == pytest.approx(RADIUS * np.pi / 3)
    assert res.second_time == pytest.approx(5 * RADIUS * np.pi / 3)


def test_straight_line_parallel_to_plane():
    line = Helix.from_vectors([0.0, 1.0, 0.0], [1.0, 0.0, 1.0], 1.0, 0.0)
    assert not line.getPointInXY(0.0, 0.0, 1.0, 0.0).found
    assert not line.getPointInXY(5.0, 1.0, -2.0, 0.0).found

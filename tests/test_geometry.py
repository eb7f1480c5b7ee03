"""Tests for the vectorized circle and helix kernels."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from trackhelix.geometry import (normalizeAngle, forwardPhase, circleLineIntersection,
                                 circleCircleIntersection, circleClosestPoints, helixNearestPoint)


def test_normalize_angle_default_interval():
    phi = normalizeAngle(np.array([0.0, 0.5, 3 * np.pi, -np.pi, np.pi, -3.5 * np.pi]))
    assert_allclose(phi, [0.0, 0.5, -np.pi, -np.pi, -np.pi, 0.5 * np.pi], atol=1e-12)
    assert np.all(phi >= -np.pi) and np.all(phi < np.pi)


def test_normalize_angle_positive_interval():
    assert normalizeAngle(-0.5, 0.0) == pytest.approx(2 * np.pi - 0.5)
    assert normalizeAngle(2 * np.pi, 0.0) == pytest.approx(0.0)
    assert normalizeAngle(-1e-18, 0.0) < 2 * np.pi


def test_forward_phase_follows_rotation_sense():
    # clockwise motion reaches smaller azimuths first
    assert forwardPhase(0.0, -0.5, 1.0) == pytest.approx(0.5)
    assert forwardPhase(0.0, -0.5, -1.0) == pytest.approx(2 * np.pi - 0.5)
    assert forwardPhase(1.0, 1.0, 1.0) == pytest.approx(0.0)


def test_circle_line_intersection():
    x1, y1, x2, y2, ok = circleLineIntersection(0.0, 0.0, 1.0, 0.0, 0.0, 2.0, 0.0)
    assert ok
    assert_allclose([x1, y1], [1.0, 0.0], atol=1e-12)
    assert_allclose([x2, y2], [-1.0, 0.0], atol=1e-12)


def test_circle_line_intersection_misses():
    x1, y1, x2, y2, ok = circleLineIntersection([0.0, 0.0], 0.0, 1.0, 0.0, [2.0, 0.5], 1.0, 0.0)
    assert list(ok) == [False, True]
    assert np.isnan(x1[0]) and np.isnan(y2[0])
    assert_allclose(y1[1], 0.5)
    # zero direction
    assert not circleLineIntersection(0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0)[4]


def test_circle_circle_intersection():
    x1, y1, x2, y2, ok = circleCircleIntersection(0.0, 0.0, 1.0, 1.0, 0.0, 1.0)
    assert ok
    h = np.sqrt(0.75)
    assert_allclose([x1, y1], [0.5, h])
    assert_allclose([x2, y2], [0.5, -h])


@pytest.mark.parametrize("xm2, r2", [(3.0, 1.0), (0.0, 1.0), (0.0, 2.0), (0.2, 0.5)])
def test_circle_circle_no_intersection(xm2, r2):
    x1, y1, x2, y2, ok = circleCircleIntersection(0.0, 0.0, 1.0, xm2, 0.0, r2)
    assert not ok
    assert np.isnan(x1) and np.isnan(y2)


def test_circle_closest_points_outside():
    x1, y1, x2, y2, dist = circleClosestPoints(0.0, 0.0, 1.0, 3.0, 0.0, 1.0)
    assert_allclose([x1, y1, x2, y2], [1.0, 0.0, 2.0, 0.0])
    assert dist == pytest.approx(1.0)


def test_circle_closest_points_nested_is_symmetric():
    a = circleClosestPoints(0.0, 0.0, 3.0, 1.0, 0.0, 1.0)
    b = circleClosestPoints(1.0, 0.0, 1.0, 0.0, 0.0, 3.0)
    assert a[4] == pytest.approx(1.0)
    assert b[4] == pytest.approx(1.0)
    assert_allclose(a[:2], b[2:4])
    assert_allclose(a[2:4], b[:2])


def test_helix_nearest_point_matches_brute_force():
    r, p = 10.0, 2.0
    point = np.array([12.0, 3.0, 5.0])
    x1, y1, z1, dist, dphi = helixNearestPoint(r, 0.0, 0.0, 0.0, 0.0, r, p, *point)
    phases = np.linspace(-4 * np.pi, 4 * np.pi, 400001)
    helix = np.stack((r * np.cos(phases), r * np.sin(phases), p * phases), axis=1)
    brute = np.min(np.linalg.norm(helix - point, axis=1))
    assert dist[0] == pytest.approx(brute, abs=1e-4)
    assert dist[0] <= brute + 1e-9
    assert_allclose([x1[0], y1[0], z1[0]], [r * np.cos(dphi[0]), r * np.sin(dphi[0]), p * dphi[0]], atol=1e-9)


def test_helix_nearest_point_on_helix():
    r, p = 10.0, 2.0
    point = [r * np.cos(1.0), r * np.sin(1.0), p * 1.0]
    x1, y1, z1, dist, dphi = helixNearestPoint(r, 0.0, 0.0, 0.0, 0.0, r, p, *point)
    assert dist[0] < 1e-6
    assert dphi[0] == pytest.approx(1.0, abs=1e-6)


def test_helix_nearest_point_flat_helix():
    x1, y1, z1, dist, dphi = helixNearestPoint(10.0, 0.0, 1.0, 0.0, 0.0, 10.0, 0.0, 0.0, 20.0, 4.0)
    assert_allclose([x1[0], y1[0], z1[0]], [0.0, 10.0, 1.0], atol=1e-12)
    assert dist[0] == pytest.approx(np.hypot(10.0, 3.0))
    assert dphi[0] == pytest.approx(0.5 * np.pi)

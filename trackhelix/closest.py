"""Closest approach of a helix to another helix or to a straight line.

The searches use the circle geometry of the helices where it gives the
answer directly (crossings and closest points in the x,y-plane) and
scipy.optimize for the remaining one- and two-dimensional minimizations.
Every iterative step is capped by the `*__maxiter` parameters of the helix
and reports whether it converged.

---

Copyright 2018 Edwin Steiner

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
this list of conditions and the following disclaimer in the documentation
and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

import numpy as np
import scipy.optimize

from trackhelix.constants import PI, TWO_PI
from trackhelix.geometry import normalizeAngle, circleCircleIntersection, circleClosestPoints
from trackhelix.line import Line
from trackhelix.results import HelixDistance, LineDistance

def closestPointsOfLines(p1, u1, p2, u2):
    """Find the points of closest approach of two straight lines.
    Args:
        p1, p2 (array (3,)): points on the lines
        u1, u2 (array (3,)): unit direction vectors of the lines
    Returns:
        x1, x2 (array (3,)): closest points on the first and second line
        s1, s2 (float): signed distances of x1, x2 from p1, p2 along the lines
        Note: For parallel lines the closest points are not unique. In that
              case x1 = p1 is returned.
    """
    w0 = p1 - p2
    b = np.dot(u1, u2)
    d = np.dot(u1, w0)
    e = np.dot(u2, w0)
    denom = 1.0 - b * b
    if denom < 1e-15:
        s1, s2 = 0.0, e
    else:
        s1 = (b * e - d) / denom
        s2 = (e - b * d) / denom
    return p1 + s1 * u1, p2 + s2 * u2, s1, s2

def _helixDistance(helix1, x1, helix2, x2, converged, iterations):
    diff = x1 - x2
    momentum = helix1.getExtrapolatedMomentum(x1) + helix2.getExtrapolatedMomentum(x2)
    return HelixDistance(distance=np.linalg.norm(diff),
                         rphi=np.hypot(diff[0], diff[1]),
                         z=abs(diff[2]),
                         position=0.5 * (x1 + x2),
                         momentum=momentum,
                         converged=bool(converged),
                         iterations=int(iterations))

def _basePhase(helix, xy):
    """Counter-clockwise phase from the reference point to the azimuth of xy, in [-pi, pi)."""
    phi = np.arctan2(xy[1] - helix.y_centre, xy[0] - helix.x_centre)
    return normalizeAngle(phi - helix.phi_ref_point)

def _zOfPhase(helix, dphi):
    return helix.reference_point[2] + helix.hel_p * dphi

def _nearestTurn(helix, base, z):
    """Return the phases (base + 2*pi*n) at which the helix comes closest to the given z values."""
    z = np.asarray(z)
    hel_p = helix.hel_p
    if hel_p == 0:
        return np.full(z.shape, base)
    n = np.floor((z - helix.reference_point[2] - hel_p * base) / helix.hel_pitch + 0.5)
    return base + TWO_PI * n

def _alignTurns(helix1, xy1, helix2, xy2, turns):
    """Choose the helix turns through two given transverse points with the
    smallest z-difference.
    Each helix contributes its turns within `turns` of its reference point,
    paired with the nearest turn of the other helix, so that the result does
    not depend on the order of the helices.
    Returns:
        x1, x2 (array (3,)): the points on the two helices
        s1, s2 (float): their arc lengths from the respective reference points
    """
    base1 = _basePhase(helix1, xy1)
    base2 = _basePhase(helix2, xy2)
    ks = TWO_PI * np.arange(-turns, turns + 1)
    dphi1 = base1 + ks
    dphi2 = base2 + ks
    dphi1 = np.concatenate((dphi1, _nearestTurn(helix1, base1, _zOfPhase(helix2, dphi2))))
    dphi2 = np.concatenate((_nearestTurn(helix2, base2, _zOfPhase(helix1, dphi1[:len(ks)])), dphi2))
    z1 = _zOfPhase(helix1, dphi1)
    z2 = _zOfPhase(helix2, dphi2)
    i = np.argmin(np.abs(z1 - z2))
    x1 = np.array([xy1[0], xy1[1], z1[i]])
    x2 = np.array([xy2[0], xy2[1], z2[i]])
    return x1, x2, float(helix1.arcLengthOfPhase(dphi1[i])), float(helix2.arcLengthOfPhase(dphi2[i]))

def _transverseCandidates(helix1, helix2):
    """Pairs of transverse points at which the two circles come closest."""
    x1, y1, x2, y2, ok = circleCircleIntersection(helix1.x_centre, helix1.y_centre, helix1.radius,
                                                  helix2.x_centre, helix2.y_centre, helix2.radius)
    if ok:
        first = (float(x1), float(y1))
        second = (float(x2), float(y2))
        return [(first, first), (second, second)]
    x1, y1, x2, y2, dist = circleClosestPoints(helix1.x_centre, helix1.y_centre, helix1.radius,
                                               helix2.x_centre, helix2.y_centre, helix2.radius)
    return [((float(x1), float(y1)), (float(x2), float(y2)))]

def _coaxialSearch(helix1, helix2, params):
    """Closest approach of helices sharing the same axis.
    Every azimuth gives the same transverse distance, so the azimuth is
    sampled on the full circle and the best sample is refined with a bounded
    Brent search.
    """
    turns = int(params['helix_distance__turns'])
    nsamples = max(int(params['helix_distance__nsamples']), 3)

    def pointsAt(theta):
        cos_t, sin_t = np.cos(theta), np.sin(theta)
        xy1 = (helix1.x_centre + helix1.radius * cos_t, helix1.y_centre + helix1.radius * sin_t)
        xy2 = (helix2.x_centre + helix2.radius * cos_t, helix2.y_centre + helix2.radius * sin_t)
        return _alignTurns(helix1, xy1, helix2, xy2, turns)

    def distance(theta):
        x1, x2, s1, s2 = pointsAt(theta)
        return np.linalg.norm(x1 - x2)

    thetas = np.linspace(-PI, PI, nsamples, endpoint=False)
    values = np.array([distance(theta) for theta in thetas])
    i = np.argmin(values)
    step = TWO_PI / nsamples
    res = scipy.optimize.minimize_scalar(distance, bounds=(thetas[i] - step, thetas[i] + step),
                                         method='bounded',
                                         options={'xatol': params['tolerance'],
                                                  'maxiter': int(params['helix_distance__maxiter'])})
    theta = res.x if res.fun <= values[i] else thetas[i]
    x1, x2, s1, s2 = pointsAt(theta)
    return x1, x2, s1, s2, res.success, getattr(res, 'nit', res.nfev)

def _refine3d(helix1, helix2, s1, s2, params):
    """Minimize the 3D distance of the two helices around the given arc lengths.
    The search is bounded to half a turn on either side of the seeds.
    """
    def fun(x):
        p1 = helix1.positionAt(x[0])
        p2 = helix2.positionAt(x[1])
        diff = p1.position - p2.position
        return np.dot(diff, diff), np.array([2.0 * np.dot(diff, p1.tangent),
                                             -2.0 * np.dot(diff, p2.tangent)])

    half1 = abs(float(helix1.arcLengthOfPhase(PI)))
    half2 = abs(float(helix2.arcLengthOfPhase(PI)))
    res = scipy.optimize.minimize(fun, np.array([s1, s2]), jac=True, method='L-BFGS-B',
                                  bounds=[(s1 - half1, s1 + half1), (s2 - half2, s2 + half2)],
                                  options={'maxiter': int(params['helix_distance__maxiter'])})
    return res.x[0], res.x[1], res.fun, res.success, res.nit

def helixHelixClosestApproach(helix1, helix2, params):
    """Closest approach of two helices, see `Helix.getDistanceToHelix`.
    Args:
        helix1, helix2 (Helix): initialized helices
        params (dict): helix parameters (`helix_distance__*`, `tolerance`)
    Returns:
        HelixDistance
    """
    if helix1.is_straight and helix2.is_straight:
        x1, x2, s1, s2 = closestPointsOfLines(helix1.reference_point, helix1.direction,
                                              helix2.reference_point, helix2.direction)
        return _helixDistance(helix1, x1, helix2, x2, True, 0)
    if helix1.is_straight or helix2.is_straight:
        if helix1.is_straight:
            curved, straight = helix2, helix1
        else:
            curved, straight = helix1, helix2
        result = helixLineClosestApproach(curved, Line(straight.reference_point, straight.direction), params)
        if curved is helix1:
            x1, x2 = result.helix_point, result.line_point
        else:
            x1, x2 = result.line_point, result.helix_point
        return _helixDistance(helix1, x1, helix2, x2, result.converged, result.iterations)

    d_centres = np.hypot(helix2.x_centre - helix1.x_centre, helix2.y_centre - helix1.y_centre)
    if d_centres <= params['tolerance']:
        x1, x2, s1, s2, converged, iterations = _coaxialSearch(helix1, helix2, params)
    else:
        turns = int(params['helix_distance__turns'])
        best = None
        for xy1, xy2 in _transverseCandidates(helix1, helix2):
            candidate = _alignTurns(helix1, xy1, helix2, xy2, turns)
            dist = np.linalg.norm(candidate[0] - candidate[1])
            if best is None or dist < best[0]:
                best = (dist, candidate)
        x1, x2, s1, s2 = best[1]
        converged, iterations = True, 0

    if params['helix_distance__refine_3d']:
        r1, r2, dist_sqr, success, nit = _refine3d(helix1, helix2, s1, s2, params)
        iterations += nit
        converged = converged and success
        if dist_sqr < np.dot(x1 - x2, x1 - x2):
            x1 = helix1.positionAt(r1).position
            x2 = helix2.positionAt(r2).position
    return _helixDistance(helix1, x1, helix2, x2, converged, iterations)

def _lineSeedPhases(helix, point, u):
    """Counter-clockwise phases of the helix turns nearest to where a line
    passes the helix cylinder.
    The seeds are the line's closest approach to the helix axis and its
    crossings of the cylinder. Lines parallel to the axis, and helices which
    do not move along z, give no seeds since all turns look alike to them.
    Returns:
        dphi (array (n_seeds,)): phases relative to the reference point
    """
    hel_p = helix.hel_p
    uxy_sqr = u[0]**2 + u[1]**2
    if hel_p == 0 or uxy_sqr < 1e-24:
        return np.zeros(0)
    wx = point[0] - helix.x_centre
    wy = point[1] - helix.y_centre
    t_axis = -(wx * u[0] + wy * u[1]) / uxy_sqr
    disc = t_axis**2 - (wx**2 + wy**2 - helix.radius**2) / uxy_sqr
    ts = [t_axis]
    if disc >= 0:
        ts += [t_axis - np.sqrt(disc), t_axis + np.sqrt(disc)]
    ts = np.array(ts)
    xy = (point[0] + ts * u[0], point[1] + ts * u[1])
    return _nearestTurn(helix, _basePhase(helix, xy), point[2] + ts * u[2])

def _lineWindows(helix, point, u, params):
    """Arc length intervals of the helix to scan for the closest approach to a line.
    One window of `line_distance__turns` turns on either side is opened around
    the reference point and around each seed. If the seeds lie within
    `line_distance__max_turns` turns of each other, the stretch between them
    is scanned as well.
    """
    turns = max(int(params['line_distance__turns']), 1)
    period = abs(float(helix.arcLengthOfPhase(TWO_PI)))
    seeds = helix.arcLengthOfPhase(_lineSeedPhases(helix, point, u))
    windows = [(c - turns * period, c + turns * period) for c in np.concatenate(([0.0], seeds))]
    if len(seeds) > 1:
        lo, hi = np.min(seeds), np.max(seeds)
        if hi - lo <= params['line_distance__max_turns'] * period:
            windows.append((lo - turns * period, hi + turns * period))
    return windows, period

def helixLineClosestApproach(helix, line, params):
    """Closest approach of a helix to a straight line, see `Helix.getDistanceToLine`.
    The distance to the line is sampled along the helix in windows around
    the reference point and around the turns where the line passes the
    helix cylinder. The best sample of each window is refined with a
    bounded Brent search.
    Args:
        helix (Helix): an initialized helix
        line: object with `reference_point` and `direction` attributes
        params (dict): helix parameters (`line_distance__*`, `tolerance`)
    Returns:
        LineDistance
    """
    point = np.asarray(line.reference_point, dtype=np.float64)
    direction = np.asarray(line.direction, dtype=np.float64)
    norm = np.linalg.norm(direction)
    if not norm > 0:
        raise ValueError("line direction must be non-zero")
    u = direction / norm
    if helix.is_straight:
        x1, x2, s1, s2 = closestPointsOfLines(helix.reference_point, helix.direction, point, u)
        return LineDistance(np.linalg.norm(x1 - x2), x1, x2, True, 0)

    def distanceSqr(s):
        diff = helix.positionAt(s).position - point
        perp = diff - (diff @ u)[..., np.newaxis] * u
        return np.sum(np.square(perp), axis=-1)

    nsamples = max(int(params['line_distance__nsamples']), 3)
    windows, period = _lineWindows(helix, point, u, params)
    best = None
    for lo, hi in windows:
        grid = np.linspace(lo, hi, int(np.ceil((hi - lo) / period * nsamples)) + 1)
        values = distanceSqr(grid)
        i = np.argmin(values)
        # the bounded Brent tolerance grows with |s|, search relative to the best sample
        s0 = grid[i]
        res = scipy.optimize.minimize_scalar(lambda ds: float(distanceSqr(s0 + ds)),
                                             bounds=(grid[max(i - 1, 0)] - s0,
                                                     grid[min(i + 1, len(grid) - 1)] - s0),
                                             method='bounded',
                                             options={'xatol': params['tolerance'],
                                                      'maxiter': int(params['line_distance__maxiter'])})
        if res.fun <= values[i]:
            value, s = res.fun, s0 + res.x
        else:
            value, s = values[i], s0
        if best is None or value < best[0]:
            best = (value, s, res)
    value, s_best, res = best
    helix_point = helix.positionAt(s_best).position
    line_point = point + np.dot(helix_point - point, u) * u
    return LineDistance(np.linalg.norm(helix_point - line_point), helix_point, line_point,
                        bool(res.success), int(getattr(res, 'nit', res.nfev)))

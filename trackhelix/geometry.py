"""Euclidean geometry of circles, lines and idealized helices in the x,y-plane.

The functions in this file are the numerical kernels behind the `Helix`
queries. They work on numpy arrays (or scalars) so that many configurations
can be evaluated at once; degenerate configurations are reported through
boolean arrays and NaN values rather than by raising.

Helix phases are measured counter-clockwise around the helix axis. A helix
is described here by its axis (hel_xm, hel_ym), its radius hel_r and hel_p,
the change of z per radian of (counter-clockwise) phase.

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

from trackhelix.constants import PI, TWO_PI

def normalizeAngle(phi, lower=-PI):
    """Map angles to the half-open interval [lower, lower + 2*pi).
    Args:
        phi (float or array): angles in radians
        lower (float): lower end of the target interval
    Returns:
        phi (np.float64 or array): normalized angles
    """
    phi = np.mod(np.asarray(phi, dtype=np.float64) - lower, TWO_PI)
    # np.mod may round tiny negative values up to exactly 2*pi
    phi = np.where(phi >= TWO_PI, 0.0, phi)
    return phi + lower

def forwardPhase(phi_from, phi_to, sense):
    """Return the angle to travel around a circle from phi_from to phi_to
    in the direction of motion.
    Args:
        phi_from, phi_to (float or array): azimuths around the circle center
        sense (float or array): +1 for clockwise motion, -1 for counter-clockwise
    Returns:
        alpha (float or array): travelled angle in [0, 2*pi)
    """
    return normalizeAngle(-sense * (np.asarray(phi_to) - np.asarray(phi_from)), 0.0)

def circleLineIntersection(xm, ym, r, x0, y0, ax, ay):
    """Intersect circles with straight lines in the x,y-plane.
    Args:
        xm, ym (float or array): circle centers
        r (float or array): circle radii
        x0, y0 (float or array): points on the lines
        ax, ay (float or array): direction vectors of the lines (need not be normalized)
    Returns:
        x1, y1 (array): first intersection, NaN where there is none
        x2, y2 (array): second intersection, NaN where there is none
            Note: for tangent lines both intersections coincide.
        ok (bool array): True where the line meets the circle
    """
    xm, ym, r, x0, y0, ax, ay = np.broadcast_arrays(
        *(np.asarray(v, dtype=np.float64) for v in (xm, ym, r, x0, y0, ax, ay)))
    aa = np.square(ax) + np.square(ay)
    has_dir = aa > 0
    aa = np.where(has_dir, aa, 1.0) # dummy value to avoid dividing by zero
    dx = x0 - xm
    dy = y0 - ym
    # solve |(x0, y0) + t*(ax, ay) - (xm, ym)|^2 = r^2 for the line parameter t
    bb = (ax * dx + ay * dy) / aa
    cc = (np.square(dx) + np.square(dy) - np.square(r)) / aa
    disc = np.square(bb) - cc
    ok = has_dir & (disc >= 0)
    root = np.sqrt(np.where(ok, disc, 0.0))
    t1 = np.where(ok, -bb + root, np.nan)
    t2 = np.where(ok, -bb - root, np.nan)
    return (x0 + t1 * ax, y0 + t1 * ay, x0 + t2 * ax, y0 + t2 * ay, ok)

def circleCircleIntersection(xm1, ym1, r1, xm2, ym2, r2):
    """Intersect pairs of circles in the x,y-plane.
    Args:
        xm1, ym1, r1 (float or array): centers and radii of the first circles
        xm2, ym2, r2 (float or array): centers and radii of the second circles
    Returns:
        x1, y1 (array): intersection to the left of the line from the first to
            the second center, NaN where there is none
        x2, y2 (array): intersection to the right of that line, NaN where there is none
        ok (bool array): True where the circles intersect
            Note: concentric circles are reported as not intersecting, even if
                  they coincide.
    """
    xm1, ym1, r1, xm2, ym2, r2 = np.broadcast_arrays(
        *(np.asarray(v, dtype=np.float64) for v in (xm1, ym1, r1, xm2, ym2, r2)))
    dx = xm2 - xm1
    dy = ym2 - ym1
    d = np.sqrt(np.square(dx) + np.square(dy))
    ok = (d > 0) & (d <= r1 + r2) & (d >= np.abs(r1 - r2))
    d = np.where(d > 0, d, 1.0) # dummy value to avoid dividing by zero
    # distance from the first center to the chord through both intersections
    a = (np.square(d) + np.square(r1) - np.square(r2)) / (2 * d)
    h = np.sqrt(np.maximum(np.square(r1) - np.square(a), 0.0))
    xb = xm1 + a * dx / d
    yb = ym1 + a * dy / d
    x1 = np.where(ok, xb - h * dy / d, np.nan)
    y1 = np.where(ok, yb + h * dx / d, np.nan)
    x2 = np.where(ok, xb + h * dy / d, np.nan)
    y2 = np.where(ok, yb - h * dx / d, np.nan)
    return (x1, y1, x2, y2, ok)

def circleClosestPoints(xm1, ym1, r1, xm2, ym2, r2):
    """Find the points of closest approach of non-intersecting circles in the x,y-plane.
    The circles may lie outside of each other or one inside the other.
    Args:
        xm1, ym1, r1 (float or array): centers and radii of the first circles
        xm2, ym2, r2 (float or array): centers and radii of the second circles
    Returns:
        x1, y1 (array): closest point on the first circle
        x2, y2 (array): closest point on the second circle
        dist (array): distance of the two points
        Note: For concentric circles the closest points are not unique. In
              that case the points along the x-axis direction are returned.
    """
    xm1, ym1, r1, xm2, ym2, r2 = np.broadcast_arrays(
        *(np.asarray(v, dtype=np.float64) for v in (xm1, ym1, r1, xm2, ym2, r2)))
    dx = xm2 - xm1
    dy = ym2 - ym1
    d = np.sqrt(np.square(dx) + np.square(dy))
    concentric = (d == 0)
    d = np.where(concentric, 1.0, d)
    # unit vector from the first towards the second center
    ux = np.where(concentric, 1.0, dx / d)
    uy = np.where(concentric, 0.0, dy / d)
    d = np.where(concentric, 0.0, d)
    # Note: The sign factors select which side of each circle faces the other one.
    #       Outside of each other: +1, -1. Second inside first: +1, +1.
    #       First inside second: -1, -1.
    first_inside = (d + r1 < r2)
    second_inside = (d + r2 < r1)
    sign1 = np.where(first_inside, -1.0, 1.0)
    sign2 = np.where(first_inside | second_inside, sign1, -1.0)
    x1 = xm1 + sign1 * r1 * ux
    y1 = ym1 + sign1 * r1 * uy
    x2 = xm2 + sign2 * r2 * ux
    y2 = ym2 + sign2 * r2 * uy
    dist = np.sqrt(np.square(x2 - x1) + np.square(y2 - y1))
    return (x1, y1, x2, y2, dist)

def helixNearestPoint(x0, y0, z0, hel_xm, hel_ym, hel_r, hel_p, x, y, z, iterations=20):
    """On each helix, find the point nearest to a respectively given reference point.
    Args:
        x0, y0, z0 (float or array (n_points,)): coordinates of initial points on the helices
        hel_xm, hel_ym (float or array (n_points,)): center coordinates of the helices
            in the x,y-plane
        hel_r (float or array (n_points,)): radii of the helices in the x,y-plane
        hel_p (float or array (n_points,)): change of z per radian of counter-clockwise
            phase. May be zero for flat helices.
        x, y, z (float or array (n_points,)): reference point coordinates
        iterations (positive int): maximum number of safeguarded Newton iterations
    Returns:
        x1, y1, z1 (array (n_points,)): coordinates of the nearest points
        dist (array (n_points,)): Euclidean distance from the reference points to
            the nearest points
        dphi (array (n_points,)): helix phase difference from (x0, y0, z0) to the
            nearest points
    """
    (x0, y0, z0, hel_xm, hel_ym, hel_r, hel_p, x, y, z) = np.broadcast_arrays(
        *(np.atleast_1d(np.asarray(v, dtype=np.float64))
          for v in (x0, y0, z0, hel_xm, hel_ym, hel_r, hel_p, x, y, z)))
    # make x,y-coordinates relative to the helix center
    dx = x - hel_xm
    dy = y - hel_ym
    dx0 = x0 - hel_xm
    dy0 = y0 - hel_ym
    # distance from reference point to helix center in the x,y-plane
    dr2 = np.sqrt(np.square(dx) + np.square(dy))
    # The nearest point (x1, y1, z1) satisfies the equivalent equations:
    #        sin(w + dph_diff) + (1/e) w                  = 0
    #        sin(u)            + (1/e) u - (1/e) dph_diff = 0
    #     -e sin(E)            +       E -       M        = 0
    # where
    #     E = pi + u        - 2*k*pi
    #     M = pi + dph_diff - 2*k*pi
    #     e = hel_r * dr2 / hel_p^2
    #     u is the difference in polar angle between the nearest point
    #         and the reference point (modulo 2*pi)
    #     w = (z1 - z) / hel_p is the phase difference between the nearest
    #         point and the helix point at the height of the reference point
    #     dph_z = (z - z0) / hel_p advances (x0, y0, z0) to the height z
    #     dph_xy = arctan2(dy, dx) - arctan2(dy0, dx0) advances (x0, y0, z0)
    #         to the polar angle of the reference point
    #     dph_diff = dph_z - dph_xy
    # The left hand side is proportional to the derivative of the squared
    # distance, so it is negative at E = 0 and positive at E = 2*pi. We keep
    # the root bracketed in [0, 2*pi] and fall back to bisection whenever a
    # Newton step would leave the bracket.
    flat = (hel_p == 0)
    hel_p_safe = np.where(flat, 1.0, hel_p) # dummy value, flat helices are fixed below
    dph_z = (z - z0) / hel_p_safe
    dph_xy = np.arctan2(dy, dx) - np.arctan2(dy0, dx0)
    dph_diff = dph_z - dph_xy
    e = hel_r * dr2 / np.square(hel_p_safe)
    k = np.ceil(dph_diff / TWO_PI - 0.5)
    M = PI + dph_diff - 2 * k * PI
    E = np.full(x.shape, PI)
    lo = np.zeros(x.shape)
    hi = np.full(x.shape, TWO_PI)
    for i in range(iterations):
        f = E - e * np.sin(E) - M
        lo = np.where(f < 0, E, lo)
        hi = np.where(f > 0, E, hi)
        fprime = 1.0 - e * np.cos(E)
        with np.errstate(divide='ignore', invalid='ignore'):
            E_newton = E - f / fprime
        inside = (fprime > 0) & (E_newton > lo) & (E_newton < hi)
        E = np.where(inside, E_newton, 0.5 * (lo + hi))
    # translate the solution back into the coordinates of the nearest point
    u = E - PI + 2 * k * PI
    w = u - dph_diff
    dphi = dph_z + w
    # flat helices: the nearest point has the polar angle of the reference point
    dphi = np.where(flat, dph_xy, dphi)
    z1 = np.where(flat, z0, z + hel_p * w)
    cos1 = np.cos(dphi)
    sin1 = np.sin(dphi)
    x1 = hel_xm + cos1 * dx0 - sin1 * dy0
    y1 = hel_ym + sin1 * dx0 + cos1 * dy0
    dist = np.sqrt(np.square(x - x1) + np.square(y - y1) + np.square(z - z1))
    return (x1, y1, z1, dist, dphi)

"""Helical trajectories of charged particles in a uniform magnetic field along +z.

The `Helix` class holds three equivalent parameterizations of the same
trajectory and derives all of them eagerly whenever one of its three
initializers is called:

    1) reference point, momentum vector, charge and field (`initializeVP`)
    2) circle in the x,y-plane plus helix slope and phase (`initializeBZ`),
           x = xCentre + radius * cos(phase), y = yCentre + radius * sin(phase),
       where the phase changes by bZ per unit of z
    3) canonical (LEP-wise) parameters phi0, d0, z0, omega, tanLambda
       anchored at the point of closest approach (PCA) to the z-axis
       (`initializeCanonical`)

Queries (plane and cylinder intersections, distances to points, lines and
other helices) read the stored parameters and never modify them.

Sign convention: with s = sign(charge * B), a particle with s = +1 moves
clockwise in the x,y-plane (seen from +z) and has omega > 0. Trajectories
without curvature (no field, no charge, no transverse momentum, or omega
close to zero) are handled as straight lines, see `Helix.is_straight`.

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

from collections import OrderedDict

import numpy as np

from trackhelix.constants import FCT, TWO_PI, HALF_PI
from trackhelix.geometry import (normalizeAngle, forwardPhase, circleLineIntersection,
                                 circleCircleIntersection, helixNearestPoint)
from trackhelix.results import Intersection, PointDistance, TrajectoryPoint
from trackhelix import closest

class HelixError(ValueError):
    """Raised for invalid helix input and for queries on an uninitialized helix."""

def _vector3(value, name):
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise HelixError("%s must be a 3-vector, got shape %r" % (name, vec.shape))
    if not np.all(np.isfinite(vec)):
        raise HelixError("%s must be finite, got %r" % (name, vec.tolist()))
    return vec.copy()

class Helix:
    """Parameter store and geometric queries for one helical trajectory.
    Units: positions in mm, momenta in GeV/c, magnetic field in Tesla, angles in radians.
    Note: A Helix is not thread-safe with respect to (re-)initialization and
          `setHelixEdges`; concurrent read-only queries are fine.
    """
    default_params = OrderedDict([
        # thresholds for the straight-line (zero curvature) treatment
        ('degen__min_b_field'       , 1e-9 ), # |B| [T] below which a trajectory is straight
        ('degen__min_pxy'           , 1e-12), # pxy [GeV/c] below which a trajectory is straight
        ('degen__min_omega'         , 1e-12), # |omega| [1/mm] below which canonical input is straight
        ('degen__max_radius'        , 1e9  ), # radius [mm] above which a trajectory is straight
        ('degen__min_tan_lambda'    , 1e-12), # |tanLambda| below which z-plane intersections fail

        # nearest point on the helix
        ('nearest__iterations'      , 20   ), # number of safeguarded Newton iterations

        # helix-to-helix closest approach
        ('helix_distance__turns'    , 1    ), # helix turns searched on either side of the reference points
        ('helix_distance__nsamples' , 72   ), # azimuth samples for coaxial helices
        ('helix_distance__maxiter'  , 100  ), # iteration cap of the refinements
        ('helix_distance__refine_3d', False), # if True, polish the result by minimizing the true 3D distance

        # helix-to-line closest approach
        ('line_distance__turns'     , 1    ), # helix turns scanned on either side of each seed turn
        ('line_distance__nsamples'  , 144  ), # arc length samples per helix turn
        ('line_distance__max_turns' , 50   ), # longest stretch [turns] of the helix scanned between seed turns
        ('line_distance__maxiter'   , 100  ), # iteration cap of the refinement

        ('tolerance'                , 1e-9 ), # absolute tolerance [mm or rad] of iterative refinements
    ])

    def __init__(self, params=None, logger=None):
        """Create an uninitialized helix. Call one of the initializers before
        running queries.
        Args:
            params (None or dict): numerical parameters overriding `default_params`
            logger (None or trackhelix.logging.Logger): if given, degenerate cases are reported to it
        """
        self.params = OrderedDict(self.default_params)
        if params is not None:
            unknown = set(params) - set(self.default_params)
            if unknown:
                raise HelixError("unknown helix parameters: %s" % ", ".join(sorted(unknown)))
            self.params.update(params)
        self.logger = logger
        self._start_point = np.full(3, np.nan)
        self._end_point = np.full(3, np.nan)
        self._reset()

    @classmethod
    def from_vectors(cls, pos, mom, charge, b_field, **kwargs):
        """Construct a helix initialized with `initializeVP`."""
        helix = cls(**kwargs)
        helix.initializeVP(pos, mom, charge, b_field)
        return helix

    @classmethod
    def from_circle(cls, x_centre, y_centre, radius, bz, phi0, b_field, sign_pz, z_begin, **kwargs):
        """Construct a helix initialized with `initializeBZ`."""
        helix = cls(**kwargs)
        helix.initializeBZ(x_centre, y_centre, radius, bz, phi0, b_field, sign_pz, z_begin)
        return helix

    @classmethod
    def from_canonical(cls, phi0, d0, z0, omega, tan_lambda, b_field, **kwargs):
        """Construct a helix initialized with `initializeCanonical`."""
        helix = cls(**kwargs)
        helix.initializeCanonical(phi0, d0, z0, omega, tan_lambda, b_field)
        return helix

    def _reset(self):
        nan = np.nan
        self._initialized = False
        self._straight = False
        self._sense = 0.0
        self._reference_point = np.full(3, nan)
        self._momentum = np.full(3, nan)
        self._direction = np.full(3, nan)
        self._charge = nan
        self._b_field = nan
        self._phi0 = nan
        self._d0 = nan
        self._z0 = nan
        self._omega = nan
        self._tan_lambda = nan
        self._pxy = nan
        self._radius = nan
        self._x_centre = nan
        self._y_centre = nan
        self._phi_ref_point = nan
        self._phi_at_pca = nan
        self._phi_mom_ref_point = nan
        self._x_at_pca = nan
        self._y_at_pca = nan
        self._px_at_pca = nan
        self._py_at_pca = nan
        self._bz = nan
        self._phi_z = nan

    def _log(self, *args):
        if self.logger is not None:
            self.logger.log(*args)

    # ------------------------------------------------------------------
    # initializers

    def initializeVP(self, pos, mom, charge, b_field):
        """Initialize from a point on the trajectory and the momentum there.
        Args:
            pos (array-like (3,)): reference point
            mom (array-like (3,)): momentum vector at the reference point
            charge (float): particle charge (usually +1 or -1)
            b_field (float): magnetic field along +z
        Raises:
            HelixError: for a zero or non-finite momentum vector
        """
        pos = _vector3(pos, 'pos')
        mom = _vector3(mom, 'mom')
        if not np.linalg.norm(mom) > 0:
            raise HelixError("momentum must be non-zero")
        self._reset()
        self._reference_point = pos
        self._momentum = mom
        self._charge = float(charge)
        self._b_field = float(b_field)
        self._pxy = np.hypot(mom[0], mom[1])
        self._phi_mom_ref_point = np.arctan2(mom[1], mom[0])
        abs_b = abs(self._b_field)
        if abs_b < self.params['degen__min_b_field']:
            self._initializeStraight("magnetic field %g T" % self._b_field)
            return
        if self._charge == 0:
            self._initializeStraight("neutral particle")
            return
        if self._pxy < self.params['degen__min_pxy']:
            self._initializeStraight("transverse momentum %g GeV" % self._pxy)
            return
        radius = self._pxy / (FCT * abs_b)
        if radius > self.params['degen__max_radius']:
            self._initializeStraight("radius %g mm" % radius)
            return
        sense = np.sign(self._charge * self._b_field)
        self._sense = sense
        self._radius = radius
        self._omega = sense / radius
        self._tan_lambda = mom[2] / self._pxy
        self._direction = mom / np.linalg.norm(mom)
        # the circle center is on the right of the momentum for clockwise motion
        phi_to_centre = self._phi_mom_ref_point - sense * HALF_PI
        self._x_centre = pos[0] + radius * np.cos(phi_to_centre)
        self._y_centre = pos[1] + radius * np.sin(phi_to_centre)
        self._phi_ref_point = np.arctan2(pos[1] - self._y_centre, pos[0] - self._x_centre)
        self._derivePCA()
        self._deriveSecondParameterization()
        self._initialized = True

    def initializeBZ(self, x_centre, y_centre, radius, bz, phi0, b_field, sign_pz, z_begin):
        """Initialize from the circle in the x,y-plane and the helix slope.
        The trajectory is
            x = x_centre + radius * cos(bz * (z - z_begin) + phi0)
            y = y_centre + radius * sin(bz * (z - z_begin) + phi0)
        Args:
            x_centre, y_centre (float): center of the circle in the x,y-plane
            radius (float): radius of the circle, must be positive
            bz (float): helix slope, change of the circle phase per unit of z; must be non-zero
            phi0 (float): circle phase at the reference point
            b_field (float): magnetic field along +z
            sign_pz (float): sign of the z-component of the momentum
                (only its sign is used, zero counts as positive)
            z_begin (float): z-coordinate of the reference point
        Raises:
            HelixError: for non-positive radius or zero slope
        Note: Without magnetic field the circle is kept, but momentum, pxy and
              charge are NaN.
        """
        if not (np.isfinite(radius) and radius > 0):
            raise HelixError("radius must be positive and finite, got %r" % (radius,))
        if not (np.isfinite(bz) and bz != 0):
            raise HelixError("helix slope bz must be non-zero and finite, got %r" % (bz,))
        self._reset()
        sign_pz = -1.0 if sign_pz < 0 else 1.0
        sense = -np.sign(bz) * sign_pz
        self._sense = sense
        self._b_field = float(b_field)
        self._charge = sense * (-1.0 if self._b_field < 0 else 1.0)
        self._radius = float(radius)
        self._omega = sense / self._radius
        self._x_centre = float(x_centre)
        self._y_centre = float(y_centre)
        self._pxy = FCT * abs(self._b_field) * self._radius
        self._tan_lambda = -sense / (self._radius * bz)
        if abs(self._b_field) < self.params['degen__min_b_field']:
            self._withoutField()
        self._reference_point = np.array([x_centre + radius * np.cos(phi0),
                                          y_centre + radius * np.sin(phi0),
                                          z_begin], dtype=np.float64)
        self._phi_ref_point = np.arctan2(self._reference_point[1] - self._y_centre,
                                         self._reference_point[0] - self._x_centre)
        self._phi_mom_ref_point = self._phi_ref_point - sense * HALF_PI
        self._momentum = np.array([self._pxy * np.cos(self._phi_mom_ref_point),
                                   self._pxy * np.sin(self._phi_mom_ref_point),
                                   self._pxy * self._tan_lambda])
        self._setDirection()
        self._derivePCA()
        self._bz = float(bz)
        self._phi_z = float(phi0)
        self._initialized = True

    def initializeCanonical(self, phi0, d0, z0, omega, tan_lambda, b_field):
        """Initialize from the canonical parameters. The reference point is the PCA.
        Args:
            phi0 (float): azimuth of the momentum at the PCA
            d0 (float): signed distance of closest approach in the x,y-plane;
                the PCA is (-d0 * sin(phi0), d0 * cos(phi0))
            z0 (float): z-coordinate of the PCA
            omega (float): signed curvature, positive for clockwise motion
            tan_lambda (float): tangent of the dip angle
            b_field (float): magnetic field along +z
        Note: For |omega| below `degen__min_omega` the trajectory is a straight
              line whose momentum magnitude is undetermined (momentum and pxy are NaN).
              Without magnetic field the circle is kept, but momentum, pxy and
              charge are NaN.
        """
        for name, value in (('phi0', phi0), ('d0', d0), ('z0', z0), ('omega', omega),
                            ('tan_lambda', tan_lambda), ('b_field', b_field)):
            if not np.isfinite(value):
                raise HelixError("%s must be finite, got %r" % (name, value))
        self._reset()
        self._phi0 = float(phi0)
        self._d0 = float(d0)
        self._z0 = float(z0)
        self._omega = float(omega)
        self._tan_lambda = float(tan_lambda)
        self._b_field = float(b_field)
        self._x_at_pca = -self._d0 * np.sin(self._phi0)
        self._y_at_pca = self._d0 * np.cos(self._phi0)
        self._reference_point = np.array([self._x_at_pca, self._y_at_pca, self._z0])
        if abs(self._omega) < self.params['degen__min_omega']:
            self._log("straight-line trajectory (omega %g)" % self._omega)
            self._straight = True
            self._omega = 0.0
            self._charge = 0.0
            self._radius = np.inf
            self._phi_mom_ref_point = self._phi0
            self._setDirection()
            self._initialized = True
            return
        sense = np.sign(self._omega)
        self._sense = sense
        self._charge = sense * (-1.0 if self._b_field < 0 else 1.0)
        self._radius = 1.0 / abs(self._omega)
        self._pxy = FCT * abs(self._b_field) * self._radius
        if abs(self._b_field) < self.params['degen__min_b_field']:
            self._withoutField()
        self._px_at_pca = self._pxy * np.cos(self._phi0)
        self._py_at_pca = self._pxy * np.sin(self._phi0)
        self._momentum = np.array([self._px_at_pca, self._py_at_pca, self._pxy * self._tan_lambda])
        self._phi_mom_ref_point = self._phi0
        self._setDirection()
        phi_to_centre = self._phi0 - sense * HALF_PI
        self._x_centre = self._x_at_pca + self._radius * np.cos(phi_to_centre)
        self._y_centre = self._y_at_pca + self._radius * np.sin(phi_to_centre)
        self._phi_at_pca = np.arctan2(self._y_at_pca - self._y_centre, self._x_at_pca - self._x_centre)
        self._phi_ref_point = self._phi_at_pca
        self._deriveSecondParameterization()
        self._initialized = True

    def _withoutField(self):
        """A curved trajectory given without magnetic field keeps its circle,
        but its momentum magnitude and charge cannot be derived."""
        self._log("no magnetic field (%g T) for a curved trajectory, momentum is undetermined" % self._b_field)
        self._charge = np.nan
        self._pxy = np.nan

    def _setDirection(self):
        direction = np.array([np.cos(self._phi_mom_ref_point), np.sin(self._phi_mom_ref_point),
                              self._tan_lambda])
        self._direction = direction / np.linalg.norm(direction)

    def _initializeStraight(self, reason):
        """Fill the parameter store for a trajectory without curvature.
        Requires reference point, momentum, charge, field, pxy and the momentum azimuth.
        """
        self._log("straight-line trajectory (%s)" % reason)
        pos = self._reference_point
        mom = self._momentum
        self._straight = True
        self._sense = 0.0
        self._omega = 0.0
        self._radius = np.inf
        self._direction = mom / np.linalg.norm(mom)
        if self._pxy > 0:
            self._tan_lambda = mom[2] / self._pxy
            self._phi0 = normalizeAngle(self._phi_mom_ref_point, 0.0)
            ux, uy = np.cos(self._phi0), np.sin(self._phi0)
            # transverse distance travelled from the PCA to the reference point
            t_ref = pos[0] * ux + pos[1] * uy
            self._x_at_pca = pos[0] - t_ref * ux
            self._y_at_pca = pos[1] - t_ref * uy
            self._z0 = pos[2] - t_ref * self._tan_lambda
        else:
            # parallel to the z-axis: every point has the same transverse distance
            self._tan_lambda = np.copysign(np.inf, mom[2])
            if np.hypot(pos[0], pos[1]) > 0:
                self._phi0 = normalizeAngle(np.arctan2(pos[1], pos[0]) - HALF_PI, 0.0)
            else:
                self._phi0 = 0.0
            self._x_at_pca = pos[0]
            self._y_at_pca = pos[1]
            self._z0 = pos[2]
        self._d0 = -self._x_at_pca * np.sin(self._phi0) + self._y_at_pca * np.cos(self._phi0)
        self._px_at_pca = self._pxy * np.cos(self._phi0)
        self._py_at_pca = self._pxy * np.sin(self._phi0)
        self._initialized = True

    def _derivePCA(self):
        """Derive the PCA and the canonical parameters from the circle, the
        rotation sense, pxy, tanLambda and the reference point."""
        sense = self._sense
        dist_centre = np.hypot(self._x_centre, self._y_centre)
        if dist_centre > 0:
            self._phi_at_pca = np.arctan2(-self._y_centre, -self._x_centre)
        else:
            # all points of a circle around the origin are closest to it
            self._log("helix circle is centered on the z-axis, using the reference point as PCA")
            self._phi_at_pca = self._phi_ref_point
        self._phi0 = normalizeAngle(self._phi_at_pca - sense * HALF_PI, 0.0)
        self._x_at_pca = self._x_centre + self._radius * np.cos(self._phi_at_pca)
        self._y_at_pca = self._y_centre + self._radius * np.sin(self._phi_at_pca)
        self._d0 = -self._x_at_pca * np.sin(self._phi0) + self._y_at_pca * np.cos(self._phi0)
        self._px_at_pca = self._pxy * np.cos(self._phi0)
        self._py_at_pca = self._pxy * np.sin(self._phi0)
        # The helix passes the azimuth of the PCA once per turn. Choose the
        # turn whose z-coordinate is closest to z = 0.
        hel_p = self.hel_p
        delta_phi = normalizeAngle(self._phi_ref_point - self._phi_at_pca)
        z_pca = self._reference_point[2] - hel_p * delta_phi
        if hel_p != 0:
            n_turns = np.floor(z_pca / self.hel_pitch + 0.5)
            z_pca -= self.hel_pitch * n_turns
        self._z0 = z_pca

    def _deriveSecondParameterization(self):
        if self._tan_lambda != 0:
            self._bz = -self._sense / (self._radius * self._tan_lambda)
        else:
            self._bz = -self._sense * np.inf
        self._phi_z = self._phi_ref_point

    def setHelixEdges(self, x_start, x_end):
        """Set the end points of a finite track segment on this helix.
        Args:
            x_start, x_end (array-like (3,)): starting point and end point
        """
        self._start_point = _vector3(x_start, 'x_start')
        self._end_point = _vector3(x_end, 'x_end')

    # ------------------------------------------------------------------
    # parameters

    @property
    def is_initialized(self):
        return self._initialized

    @property
    def is_straight(self):
        """True if the trajectory has no curvature and is handled as a straight line."""
        return self._straight

    @property
    def sense(self):
        """+1 for clockwise motion in the x,y-plane, -1 for counter-clockwise, 0 for straight lines."""
        return self._sense

    @property
    def reference_point(self):
        return self._reference_point.copy()

    @property
    def momentum(self):
        """Momentum vector at the reference point."""
        return self._momentum.copy()

    @property
    def direction(self):
        """Unit vector along the direction of motion at the reference point."""
        return self._direction.copy()

    @property
    def charge(self):
        return self._charge

    @property
    def b_field(self):
        return self._b_field

    @property
    def phi0(self):
        """Azimuth of the momentum at the PCA."""
        return self._phi0

    @property
    def d0(self):
        """Signed distance of closest approach to the z-axis in the x,y-plane."""
        return self._d0

    @property
    def z0(self):
        """z-coordinate of the PCA.
        Note: The helix passes the azimuth of the PCA once per turn. z0 is taken
              on the turn closest to z = 0, which need not be the turn reached
              by the shortest traversal from the reference point.
        """
        return self._z0

    @property
    def omega(self):
        """Signed curvature, positive for clockwise motion."""
        return self._omega

    @property
    def tan_lambda(self):
        """Tangent of the dip angle, pz / pxy."""
        return self._tan_lambda

    @property
    def pxy(self):
        """Transverse momentum."""
        return self._pxy

    @property
    def p(self):
        """Momentum magnitude."""
        return np.linalg.norm(self._momentum)

    @property
    def x_centre(self):
        return self._x_centre

    @property
    def y_centre(self):
        return self._y_centre

    @property
    def radius(self):
        """Radius of the circle in the x,y-plane (np.inf for straight lines)."""
        return self._radius

    @property
    def phi_ref_point(self):
        """Azimuth of the reference point around the circle center."""
        return self._phi_ref_point

    @property
    def phi_at_pca(self):
        """Azimuth of the PCA around the circle center."""
        return self._phi_at_pca

    @property
    def phi_mom_ref_point(self):
        """Azimuth of the momentum at the reference point."""
        return self._phi_mom_ref_point

    @property
    def x_at_pca(self):
        return self._x_at_pca

    @property
    def y_at_pca(self):
        return self._y_at_pca

    @property
    def px_at_pca(self):
        return self._px_at_pca

    @property
    def py_at_pca(self):
        return self._py_at_pca

    @property
    def bz(self):
        """Helix slope of the second parameterization (change of phase per unit of z)."""
        return self._bz

    @property
    def phi_z(self):
        """Circle phase of the second parameterization at the reference point."""
        return self._phi_z

    @property
    def hel_p(self):
        """Change of z per radian of counter-clockwise phase around the circle center."""
        return -self._sense * self._radius * self._tan_lambda

    @property
    def hel_pitch(self):
        """Signed change of z per counter-clockwise turn."""
        return TWO_PI * self.hel_p

    @property
    def start_point(self):
        return self._start_point.copy()

    @property
    def end_point(self):
        return self._end_point.copy()

    def toDict(self):
        """Return the main parameters as an ordered dictionary."""
        ref = self._reference_point
        mom = self._momentum
        return OrderedDict([
            ('x', ref[0]), ('y', ref[1]), ('z', ref[2]),
            ('px', mom[0]), ('py', mom[1]), ('pz', mom[2]),
            ('charge', self._charge), ('b_field', self._b_field),
            ('phi0', self._phi0), ('d0', self._d0), ('z0', self._z0),
            ('omega', self._omega), ('tan_lambda', self._tan_lambda),
            ('pxy', self._pxy), ('x_centre', self._x_centre), ('y_centre', self._y_centre),
            ('radius', self._radius), ('bz', self._bz), ('phi_z', self._phi_z),
            ('straight', self._straight),
        ])

    def __repr__(self):
        if not self._initialized:
            return "Helix(<uninitialized>)"
        return "Helix(phi0=%.6g, d0=%.6g, z0=%.6g, omega=%.6g, tan_lambda=%.6g, b_field=%.6g)" % (
            self._phi0, self._d0, self._z0, self._omega, self._tan_lambda, self._b_field)

    # ------------------------------------------------------------------
    # helpers for the queries

    def _checkInitialized(self):
        if not self._initialized:
            raise HelixError("helix is not initialized")

    def _reference(self, ref):
        """Return a reference point on the helix and its azimuth around the circle center."""
        if ref is None:
            return self._reference_point, self._phi_ref_point
        ref = _vector3(ref, 'ref')
        if self._straight:
            return ref, np.nan
        return ref, np.arctan2(ref[1] - self._y_centre, ref[0] - self._x_centre)

    def _transverseTime(self, t):
        """Generic time for a transverse arc length t."""
        if self._pxy > 0:
            return t / self._pxy
        return np.nan

    def _arcTime(self, s):
        """Generic time for a 3D arc length s."""
        p = self.p
        if p > 0:
            return s / p
        return np.nan

    @property
    def _cos_lambda(self):
        return 1.0 / np.sqrt(1.0 + np.square(self._tan_lambda))

    def arcLengthOfPhase(self, dphi):
        """Convert a counter-clockwise phase difference into the signed 3D arc
        length travelled in the direction of motion."""
        return -self._sense * self._radius * np.asarray(dphi) / self._cos_lambda

    def positionAt(self, s):
        """Move along the helix from the reference point.
        Args:
            s (float or array): signed 3D arc length; positive values move in
                the direction of the momentum
        Returns:
            TrajectoryPoint: position, unit tangent and curvature vector, each of
                shape s.shape + (3,)
        """
        self._checkInitialized()
        s = np.asarray(s, dtype=np.float64)
        if self._straight:
            position = self._reference_point + s[..., np.newaxis] * self._direction
            tangent = np.broadcast_to(self._direction, position.shape).copy()
            return TrajectoryPoint(position, tangent, np.zeros_like(position))
        cos_lambda = self._cos_lambda
        t = s * cos_lambda
        phi = self._phi_ref_point - self._sense * t / self._radius
        cos_phi = np.cos(phi)
        sin_phi = np.sin(phi)
        position = np.stack((self._x_centre + self._radius * cos_phi,
                             self._y_centre + self._radius * sin_phi,
                             self._reference_point[2] + t * self._tan_lambda), axis=-1)
        tangent = np.stack((self._sense * cos_lambda * sin_phi,
                            -self._sense * cos_lambda * cos_phi,
                            np.broadcast_to(cos_lambda * self._tan_lambda, phi.shape)), axis=-1)
        curvature_factor = -np.square(cos_lambda) / self._radius
        curvature = np.stack((curvature_factor * cos_phi,
                              curvature_factor * sin_phi,
                              np.zeros_like(phi)), axis=-1)
        return TrajectoryPoint(position, tangent, curvature)

    def _pickForward(self, ref, phi_ref, x1, y1, x2, y2):
        """Order two points on the circle by the angle travelled from the
        reference point in the direction of motion."""
        phis = np.arctan2(np.array([y1, y2]) - self._y_centre, np.array([x1, x2]) - self._x_centre)
        t = forwardPhase(phi_ref, phis, self._sense) * self._radius
        order = np.argsort(t, kind='stable')
        points = [np.array([(x1, x2)[i], (y1, y2)[i], ref[2] + t[i] * self._tan_lambda]) for i in order]
        times = [self._transverseTime(t[i]) for i in order]
        return Intersection(points[0], times[0], True, points[1], times[1])

    def _pickForwardOnLine(self, ref, x1, y1, x2, y2):
        """Straight-line version of `_pickForward`: choose the nearest crossing ahead."""
        u = self._direction
        uxy_sqr = u[0]**2 + u[1]**2
        s = [((x - ref[0]) * u[0] + (y - ref[1]) * u[1]) / uxy_sqr for x, y in ((x1, y1), (x2, y2))]
        ahead = sorted(si for si in s if si >= 0)
        if not ahead:
            return Intersection.missing()
        points = [ref + si * u for si in ahead]
        if len(points) == 1:
            return Intersection(points[0], self._arcTime(ahead[0]), True, np.full(3, np.nan), np.nan)
        return Intersection(points[0], self._arcTime(ahead[0]), True, points[1], self._arcTime(ahead[1]))

    # ------------------------------------------------------------------
    # point and intersection queries

    def getPointInXY(self, x0, y0, ax, ay, ref=None):
        """Intersect the helix with a plane parallel to the z-axis.
        Args:
            x0, y0 (float): a point of the plane in the x,y-plane
            ax, ay (float): direction of the plane's trace in the x,y-plane
            ref (None or array-like (3,)): point on the helix to start from,
                default is the reference point
        Returns:
            Intersection: the first intersection reached moving forward from
                `ref`; `found` is False if the helix does not meet the plane
        """
        self._checkInitialized()
        ref, phi_ref = self._reference(ref)
        if self._straight:
            u = self._direction
            det = ax * u[1] - ay * u[0]
            if det == 0:
                return Intersection.missing()
            s = ((x0 - ref[0]) * (-ay) + ax * (y0 - ref[1])) / det
            if s < 0:
                return Intersection.missing()
            return Intersection(ref + s * u, self._arcTime(s), True, np.full(3, np.nan), np.nan)
        x1, y1, x2, y2, ok = circleLineIntersection(self._x_centre, self._y_centre, self._radius,
                                                    x0, y0, ax, ay)
        if not ok:
            return Intersection.missing()
        return self._pickForward(ref, phi_ref, x1, y1, x2, y2)

    def getPointInZ(self, z_line, ref=None):
        """Intersect the helix with a plane perpendicular to the z-axis.
        Args:
            z_line (float): z-coordinate of the plane
            ref (None or array-like (3,)): point on the helix to start from,
                default is the reference point
        Returns:
            Intersection: the unique intersection; `time` is negative if the
                plane lies behind `ref`. `found` is False for trajectories
                which do not move along z.
        """
        self._checkInitialized()
        ref, phi_ref = self._reference(ref)
        if abs(self._tan_lambda) < self.params['degen__min_tan_lambda']:
            self._log("no unique intersection with z = %g for a transverse trajectory" % z_line)
            return Intersection.missing()
        if self._straight:
            s = (z_line - ref[2]) / self._direction[2]
            point = ref + s * self._direction
            point[2] = z_line
            return Intersection(point, self._arcTime(s), True, np.full(3, np.nan), np.nan)
        t = (z_line - ref[2]) / self._tan_lambda
        phi = phi_ref - self._sense * t / self._radius
        point = np.array([self._x_centre + self._radius * np.cos(phi),
                          self._y_centre + self._radius * np.sin(phi),
                          z_line])
        return Intersection(point, self._transverseTime(t), True, np.full(3, np.nan), np.nan)

    def getPointOnCircle(self, radius, ref=None):
        """Intersect the helix with a cylinder around the z-axis.
        Args:
            radius (float): radius of the cylinder
            ref (None or array-like (3,)): point on the helix to start from,
                default is the reference point
        Returns:
            Intersection: the first intersection reached moving forward from
                `ref`, with the other one as `second_point`; `found` is False if
                the helix does not reach the cylinder
        """
        self._checkInitialized()
        ref, phi_ref = self._reference(ref)
        if self._straight:
            x1, y1, x2, y2, ok = circleLineIntersection(0.0, 0.0, radius, ref[0], ref[1],
                                                        self._direction[0], self._direction[1])
            if not ok:
                return Intersection.missing()
            return self._pickForwardOnLine(ref, x1, y1, x2, y2)
        x1, y1, x2, y2, ok = circleCircleIntersection(self._x_centre, self._y_centre, self._radius,
                                                      0.0, 0.0, radius)
        if not ok:
            return Intersection.missing()
        return self._pickForward(ref, phi_ref, x1, y1, x2, y2)

    def getExtrapolatedMomentum(self, pos):
        """Return the momentum vector at a point on the helix.
        Args:
            pos (array-like (3,)): point on the helix (only its azimuth around
                the circle center is used)
        Returns:
            momentum (array (3,))
        """
        self._checkInitialized()
        pos = _vector3(pos, 'pos')
        if self._straight:
            return self._momentum.copy()
        phi = np.arctan2(pos[1] - self._y_centre, pos[0] - self._x_centre)
        phi_mom = phi - self._sense * HALF_PI
        return np.array([self._pxy * np.cos(phi_mom), self._pxy * np.sin(phi_mom), self._momentum[2]])

    # ------------------------------------------------------------------
    # distance queries

    def getDistanceToPoint(self, point):
        """Distance of closest approach of the helix to a point, measured at the
        azimuth of the point.
        Args:
            point (array-like (3,)): the point
        Returns:
            PointDistance: distances in the R-Phi plane, along z, and in 3D, plus
                the generic time to the helix point at the point's azimuth
        """
        self._checkInitialized()
        point = _vector3(point, 'point')
        ref = self._reference_point
        if self._straight:
            u = self._direction
            uxy = np.hypot(u[0], u[1])
            if uxy > 0:
                # transverse arc length from the reference point to the foot of the point
                t = ((point[0] - ref[0]) * u[0] + (point[1] - ref[1]) * u[1]) / uxy
                foot = ref[:2] + t * u[:2] / uxy
                rphi = np.hypot(*(point[:2] - foot))
                dist_z = abs(ref[2] + t * self._tan_lambda - point[2])
                s = t / uxy
            else:
                rphi = np.hypot(*(point[:2] - ref[:2]))
                dist_z = 0.0
                s = (point[2] - ref[2]) * u[2]
            return PointDistance(rphi, dist_z, np.hypot(rphi, dist_z), self._arcTime(s))
        rphi = abs(np.hypot(point[0] - self._x_centre, point[1] - self._y_centre) - self._radius)
        phi = np.arctan2(point[1] - self._y_centre, point[0] - self._x_centre)
        dphi = normalizeAngle(phi - self._phi_ref_point)
        hel_p = self.hel_p
        # the helix passes the azimuth of the point once per turn, take the
        # turn closest in z
        if hel_p != 0:
            dphi += TWO_PI * np.floor((point[2] - ref[2] - hel_p * dphi) / self.hel_pitch + 0.5)
        dist_z = abs(ref[2] + hel_p * dphi - point[2])
        t = -self._sense * self._radius * dphi
        return PointDistance(rphi, dist_z, np.hypot(rphi, dist_z), self._transverseTime(t))

    def getNearestPoints(self, points):
        """Find the points on the helix nearest to the given points in 3D.
        Args:
            points (array-like (n_points, 3)): the points
        Returns:
            nearest (array (n_points, 3)): nearest points on the helix
            dist (array (n_points,)): Euclidean distances
            s (array (n_points,)): signed 3D arc lengths from the reference
                point to the nearest points
        """
        self._checkInitialized()
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        ref = self._reference_point
        if self._straight:
            s = (points - ref) @ self._direction
            nearest = ref + s[:, np.newaxis] * self._direction
            return nearest, np.linalg.norm(points - nearest, axis=1), s
        x1, y1, z1, dist, dphi = helixNearestPoint(
            ref[0], ref[1], ref[2], self._x_centre, self._y_centre, self._radius, self.hel_p,
            points[:, 0], points[:, 1], points[:, 2], iterations=self.params['nearest__iterations'])
        return np.stack((x1, y1, z1), axis=1), dist, self.arcLengthOfPhase(dphi)

    def getNearestPoint(self, point):
        """Find the point on the helix nearest to a given point in 3D.
        Returns:
            nearest (array (3,)), dist (float), s (float): see `getNearestPoints`
        """
        nearest, dist, s = self.getNearestPoints(_vector3(point, 'point')[np.newaxis, :])
        return nearest[0], dist[0], s[0]

    def getDistanceToHelix(self, helix):
        """Closest approach of this helix to another one.
        The two helices are brought to their closest approach in the x,y-plane
        (crossing points of the circles, or closest points of disjoint circles)
        and, at those azimuths, the helix turns with the smallest z-difference
        are selected. With `helix_distance__refine_3d` the result is polished
        to the true 3D closest approach.
        Args:
            helix (Helix): the other helix
        Returns:
            HelixDistance: distance, position and summed momentum at the closest approach
        """
        self._checkInitialized()
        helix._checkInitialized()
        return closest.helixHelixClosestApproach(self, helix, self.params)

    def getDistanceToLine(self, line):
        """Closest approach of the helix to a straight line.
        Args:
            line: object with `reference_point` and `direction` attributes (see `line.Line`)
        Returns:
            LineDistance: distance and closest points
        """
        self._checkInitialized()
        return closest.helixLineClosestApproach(self, line, self.params)

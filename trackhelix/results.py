"""Result types returned by the helix queries.

All multi-valued results are returned by value as named tuples. Queries
which can fail geometrically (no intersection, no unique solution, search
not converged) report this through a flag in the result; coordinates of
failed results are NaN.

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

from collections import namedtuple

import numpy as np

class Intersection(namedtuple('Intersection',
                              ['point', 'time', 'found', 'second_point', 'second_time'])):
    """Intersection of a helix with a plane or cylinder.
    Attributes:
        point (array (3,)): coordinates of the selected intersection point
        time (float): generic time from the reference point to `point`, i.e.
            arc length divided by momentum magnitude (equivalently transverse
            arc length divided by pxy). Positive in the direction of motion.
        found (bool): False if there is no (unique) intersection
        second_point (array (3,)): the other solution for queries with two
            solutions, NaN otherwise
        second_time (float): generic time of `second_point`
    """
    __slots__ = ()

    def __bool__(self):
        return bool(self.found)

    @classmethod
    def missing(cls):
        """Return the result for a query without intersection."""
        nowhere = np.full(3, np.nan)
        return cls(nowhere, np.nan, False, nowhere.copy(), np.nan)

PointDistance = namedtuple('PointDistance', ['rphi', 'z', 'distance', 'time'])
PointDistance.__doc__ = """Distance of closest approach of a helix to a point.
    Attributes:
        rphi (float): distance in the R-Phi plane (from the point to the circle)
        z (float): distance along the z-axis to the nearest turn of the helix
            at the azimuth of the point
        distance (float): 3D distance, sqrt(rphi**2 + z**2)
        time (float): generic time from the reference point to the helix point
            at the point's azimuth
    """

HelixDistance = namedtuple('HelixDistance',
                           ['distance', 'rphi', 'z', 'position', 'momentum',
                            'converged', 'iterations'])
HelixDistance.__doc__ = """Closest approach of two helices.
    Attributes:
        distance (float): 3D distance between the two closest points
        rphi (float): distance of the two points in the R-Phi plane
        z (float): absolute z-difference of the two points
        position (array (3,)): midpoint between the two closest points
        momentum (array (3,)): sum of the momenta of both helices at their
            closest points (momentum of a two-prong vertex hypothesis)
        converged (bool): False if an iterative search hit its iteration cap
        iterations (int): number of iterations of the iterative searches
            (0 for closed-form solutions)
    """

LineDistance = namedtuple('LineDistance',
                          ['distance', 'helix_point', 'line_point', 'converged', 'iterations'])
LineDistance.__doc__ = """Closest approach of a helix to a line.
    Attributes:
        distance (float): 3D distance between the closest points
        helix_point (array (3,)): closest point on the helix
        line_point (array (3,)): closest point on the line
        converged (bool): False if the refinement hit its iteration cap
        iterations (int): number of refinement iterations
    """

TrajectoryPoint = namedtuple('TrajectoryPoint', ['position', 'tangent', 'curvature'])
TrajectoryPoint.__doc__ = """Local geometry of a helix at a given arc length.
    Attributes:
        position (array (3,)): point on the helix
        tangent (array (3,)): unit tangent vector in the direction of motion
        curvature (array (3,)): second derivative of the position with respect
            to arc length (points to the axis, zero for straight lines)
    """

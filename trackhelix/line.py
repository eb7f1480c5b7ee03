"""Straight line in 3D given by an anchor point and a direction.

Lines are consumed read-only by `Helix.getDistanceToLine`; only the
`reference_point` and `direction` attributes are used there, so any object
providing these works as well.

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

class Line:
    """Infinite straight line through `reference_point` along `direction`."""
    def __init__(self, reference_point, direction):
        """
        Args:
            reference_point (array-like (3,)): anchor point of the line
            direction (array-like (3,)): direction vector, need not be normalized
        Raises:
            ValueError: if the direction is the zero vector
        """
        self.reference_point = np.asarray(reference_point, dtype=np.float64).reshape(3)
        self.direction = np.asarray(direction, dtype=np.float64).reshape(3)
        norm = np.linalg.norm(self.direction)
        if not norm > 0:
            raise ValueError("line direction must be non-zero, got %r" % (self.direction,))
        self.unit_direction = self.direction / norm

    @classmethod
    def through(cls, point1, point2):
        """Construct the line through two distinct points."""
        point1 = np.asarray(point1, dtype=np.float64)
        return cls(point1, np.asarray(point2, dtype=np.float64) - point1)

    def positionAt(self, t):
        """Return the point at signed distance t from the anchor point."""
        return self.reference_point + t * self.unit_direction

    def projectPoint(self, point):
        """Return the signed distance along the line of the foot of the perpendicular
        from the given point."""
        return np.dot(np.asarray(point, dtype=np.float64) - self.reference_point, self.unit_direction)

    def getDistanceToPoint(self, point):
        """Distance of closest approach of the line to a point.
        Args:
            point (array-like (3,)): the point
        Returns:
            distance (float): Euclidean distance from the point to the line
            foot (array (3,)): the point on the line nearest to the given point
        """
        foot = self.positionAt(self.projectPoint(point))
        return np.linalg.norm(np.asarray(point, dtype=np.float64) - foot), foot

    def __repr__(self):
        return "Line(%r, %r)" % (self.reference_point.tolist(), self.direction.tolist())

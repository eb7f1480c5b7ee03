"""Tabular (pandas) views of helices and of batches of helix queries.

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
import pandas as pd

def helixTable(helices):
    """Tabulate the parameters of several helices.
    Args:
        helices (iterable of Helix): initialized helices
    Returns:
        df (pd.DataFrame): one row per helix, one column per parameter
            (see `Helix.toDict`)
    """
    return pd.DataFrame([helix.toDict() for helix in helices])

def _intersectionRows(key, values, results):
    rows = []
    for value, res in zip(values, results):
        rows.append(OrderedDict([
            (key   , value),
            ('x'   , res.point[0]),
            ('y'   , res.point[1]),
            ('z'   , res.point[2]),
            ('time', res.time),
            ('found', bool(res.found)),
        ]))
    return pd.DataFrame(rows, columns=[key, 'x', 'y', 'z', 'time', 'found'])

def cylinderCrossings(helix, radii, ref=None):
    """Intersect a helix with several cylinders around the z-axis.
    Args:
        helix (Helix): an initialized helix
        radii (iterable of float): cylinder radii
        ref (None or array-like (3,)): starting point on the helix
    Returns:
        df (pd.DataFrame): columns 'radius', 'x', 'y', 'z', 'time', 'found';
            coordinates and time are NaN where the cylinder is not reached
    """
    radii = np.asarray(list(radii), dtype=np.float64)
    return _intersectionRows('radius', radii, [helix.getPointOnCircle(r, ref=ref) for r in radii])

def planeCrossings(helix, zs, ref=None):
    """Intersect a helix with several planes perpendicular to the z-axis.
    Returns:
        df (pd.DataFrame): columns 'z_plane', 'x', 'y', 'z', 'time', 'found'
    """
    zs = np.asarray(list(zs), dtype=np.float64)
    return _intersectionRows('z_plane', zs, [helix.getPointInZ(z, ref=ref) for z in zs])

def pointDistances(helix, points):
    """Compute distances of several points to a helix.
    Args:
        helix (Helix): an initialized helix
        points (array-like (n_points, 3)): the points
    Returns:
        df (pd.DataFrame): columns 'x', 'y', 'z' of the points and 'rphi',
            'dz', 'distance', 'time' (see `Helix.getDistanceToPoint`)
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    df = pd.DataFrame(points, columns=['x', 'y', 'z'])
    dists = [helix.getDistanceToPoint(p) for p in points]
    df['rphi'] = [d.rphi for d in dists]
    df['dz'] = [d.z for d in dists]
    df['distance'] = [d.distance for d in dists]
    df['time'] = [d.time for d in dists]
    return df

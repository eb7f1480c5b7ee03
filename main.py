"""Command line driver for building helices and running geometric queries on them.

Example:
    python main.py --vp 0 0 0 1 0 1 --charge 1 --b-field 2 --z 100 --cylinder 500 1000
"""

import sys
import ast
import argparse
from collections import OrderedDict

import pandas as pd

from trackhelix.helix import Helix
from trackhelix.line import Line
from trackhelix.logging import Logger
from trackhelix import tables

def parseArgs(argv=None):
    parser = argparse.ArgumentParser(description='Build a particle helix and run geometric queries on it.')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--vp', help='helix from reference point and momentum', type=float, nargs=6,
                               metavar=('X', 'Y', 'Z', 'PX', 'PY', 'PZ'))
    group.add_argument('--circle', help='helix from circle, helix slope and phase', type=float, nargs=7,
                                   metavar=('XC', 'YC', 'R', 'BZ', 'PHI0', 'SIGNPZ', 'ZBEGIN'))
    group.add_argument('--canonical', help='helix from canonical parameters', type=float, nargs=5,
                                      metavar=('PHI0', 'D0', 'Z0', 'OMEGA', 'TANL'))
    parser.add_argument('--charge', help='particle charge (for --vp)', type=float, default=1.0)
    parser.add_argument('--b-field', help='magnetic field along +z in Tesla', type=float, default=2.0)
    parser.add_argument('--other-vp', help='second helix from reference point and momentum', type=float, nargs=6,
                                      metavar=('X', 'Y', 'Z', 'PX', 'PY', 'PZ'))
    parser.add_argument('--other-charge', help='charge of the second helix', type=float, default=-1.0)
    parser.add_argument('--z', help='intersect with the plane z = Z', type=float, action='append', default=[])
    parser.add_argument('--cylinder', help='intersect with cylinders around the z-axis', type=float, nargs='+',
                                      metavar='R', default=[])
    parser.add_argument('--plane', help='intersect with a plane parallel to the z-axis', type=float, nargs=4,
                                   metavar=('X0', 'Y0', 'AX', 'AY'), action='append', default=[])
    parser.add_argument('--point', help='distance to a point', type=float, nargs=3,
                                   metavar=('X', 'Y', 'Z'), action='append', default=[])
    parser.add_argument('--line', help='distance to a line', type=float, nargs=6,
                                  metavar=('X', 'Y', 'Z', 'DX', 'DY', 'DZ'), action='append', default=[])
    parser.add_argument('--helix-distance', help='closest approach to the second helix', action='store_true', default=False)
    parser.add_argument('--params-file', help='load helix parameters from the given file (later ones have priority)',
                                         action='append')
    parser.add_argument('-p', help='set a parameter to a given value (becomes effective in order, after param files)',
                              action='append', metavar="PARAM=VALUE", default=[])
    parser.add_argument('--log', help='set maximum log level', type=int, default=1)
    args = parser.parse_args(argv)
    if args.helix_distance and args.other_vp is None:
        parser.error("--helix-distance requires --other-vp")
    return args

def loadParams(params_files, assignments):
    """Collect helix parameters from files (python dict literals) and PARAM=VALUE strings.
    Args:
        params_files (None or list of str): file names, later ones have priority
        assignments (list of str): PARAM=VALUE strings, applied after the files
    Returns:
        params (OrderedDict)
    """
    params = OrderedDict()
    if params_files is not None:
        for filename in params_files:
            with open(filename) as file:
                params.update(ast.literal_eval(file.read()))
    for p in assignments:
        kv = p.split('=')
        if len(kv) != 2:
            raise RuntimeError("Could not parse -p PARAM=VALUE argument '" + p + "'")
        params[kv[0]] = ast.literal_eval(kv[1])
    return params

class HelixReport(Logger):
    """Runs the requested queries and logs their results."""
    def __init__(self, args, params, stream=None):
        super(HelixReport, self).__init__(max_log_indent=args.log, stream=stream)
        self.args = args
        self.params = params

    def buildHelices(self):
        args = self.args
        helix = Helix(params=self.params, logger=self)
        if args.vp is not None:
            helix.initializeVP(args.vp[:3], args.vp[3:], args.charge, args.b_field)
        elif args.circle is not None:
            xc, yc, radius, bz, phi0, sign_pz, z_begin = args.circle
            helix.initializeBZ(xc, yc, radius, bz, phi0, args.b_field, sign_pz, z_begin)
        else:
            helix.initializeCanonical(*args.canonical, args.b_field)
        other = None
        if args.other_vp is not None:
            other = Helix.from_vectors(args.other_vp[:3], args.other_vp[3:], args.other_charge, args.b_field,
                                       params=self.params, logger=self)
        return helix, other

    def run(self):
        """Build the helices, run all queries and return the result tables.
        Returns:
            results (OrderedDict): name -> pd.DataFrame
        """
        args = self.args
        results = OrderedDict()
        with self.timed("building helices"):
            helix, other = self.buildHelices()
        results['helices'] = tables.helixTable([h for h in (helix, other) if h is not None])
        self.log(results['helices'].T.to_string())

        if args.z:
            with self.timed("z-plane intersections"):
                results['z'] = tables.planeCrossings(helix, args.z)
                self.log(results['z'].to_string(index=False))
        if args.cylinder:
            with self.timed("cylinder intersections"):
                results['cylinder'] = tables.cylinderCrossings(helix, args.cylinder)
                self.log(results['cylinder'].to_string(index=False))
        if args.plane:
            with self.timed("plane intersections"):
                rows = []
                for x0, y0, ax, ay in args.plane:
                    res = helix.getPointInXY(x0, y0, ax, ay)
                    rows.append((x0, y0, ax, ay) + tuple(res.point) + (res.time, bool(res.found)))
                results['plane'] = pd.DataFrame(rows, columns=['x0', 'y0', 'ax', 'ay',
                                                               'x', 'y', 'z', 'time', 'found'])
                self.log(results['plane'].to_string(index=False))
        if args.point:
            with self.timed("point distances"):
                results['point'] = tables.pointDistances(helix, args.point)
                self.log(results['point'].to_string(index=False))
        if args.line:
            with self.timed("line distances"):
                rows = []
                for values in args.line:
                    res = helix.getDistanceToLine(Line(values[:3], values[3:]))
                    rows.append((res.distance,) + tuple(res.helix_point) + tuple(res.line_point)
                                + (res.converged, res.iterations))
                results['line'] = pd.DataFrame(rows, columns=['distance', 'hx', 'hy', 'hz', 'lx', 'ly', 'lz',
                                                              'converged', 'iterations'])
                self.log(results['line'].to_string(index=False))
        if args.helix_distance:
            with self.timed("helix distance"):
                res = helix.getDistanceToHelix(other)
                results['helix_distance'] = pd.DataFrame([OrderedDict([
                    ('distance'  , res.distance),
                    ('rphi'      , res.rphi),
                    ('dz'        , res.z),
                    ('x'         , res.position[0]),
                    ('y'         , res.position[1]),
                    ('z'         , res.position[2]),
                    ('px'        , res.momentum[0]),
                    ('py'        , res.momentum[1]),
                    ('pz'        , res.momentum[2]),
                    ('converged' , res.converged),
                    ('iterations', res.iterations),
                ])])
                self.log(results['helix_distance'].T.to_string())
                if not res.converged:
                    self.warn("helix distance search did not converge")
        return results

def main(argv=None):
    args = parseArgs(argv)
    params = loadParams(args.params_file, args.p)
    HelixReport(args, params).run()
    return 0

if __name__ == '__main__':
    sys.exit(main())

"""Three-point interpolators from which Yuksel curve segments are blended.

Each interpolator passes through three points a, b, c, reaching a at local
parameter 0, c at local parameter 1, and b at local parameter T (which need
not be 0.5). All evaluation methods accept either a scalar parameter or an
array of parameters, and return arrays of shape t.shape + (3,).

The set of variants is closed: make_interpolator() chooses one when a curve is
built, and the result never changes afterward.
 - QuadraticBezierInterpolator: a quadratic Bezier curve with its maximum of
   curvature at b.
 - CircularInterpolator: the circular arc through a, b, c, degrading to a
   straight line for coincident or collinear points.
 - ConstantTwistInterpolator: the scalar interpolator used for knot twist
   angles, which holds the middle value.
"""

import numpy

from . import geometry

INTERPOLATION_KINDS = ('auto', 'quadratic', 'circular')

# distance / cosine thresholds under which the Bezier fit falls back to t=0.5
DEGENERATE_LENGTH = 0.001
DEGENERATE_COSINE = 0.001
CUBIC_ROOT_EPSILON = 0.000001
COLLINEAR_TOLERANCE = 1e-6

_QUADRATIC_BEZIER_MATRIX = numpy.array([
    [1, 0, 0],
    [-2, 2, 0],
    [1, -2, 1]
], dtype=float)


def make_interpolator(a, b, c, kind='auto'):
    """Construct the interpolator of the requested kind through points a, b, c.

    Parameters:
        a, b, c: points of shape (3,)
        kind: 'quadratic', 'circular', or 'auto'. In 'auto' mode three distinct
            collinear points get a QuadraticBezierInterpolator (there is no
            circle through them); all other triples, including those with
            coincident points, get a CircularInterpolator.
    """
    if kind == 'quadratic':
        return QuadraticBezierInterpolator(a, b, c)
    elif kind == 'circular':
        return CircularInterpolator(a, b, c)
    elif kind == 'auto':
        a, b, c = _as_points(a, b, c)
        if not (numpy.array_equal(a, b) or numpy.array_equal(b, c)) and is_collinear(a, b, c):
            return QuadraticBezierInterpolator(a, b, c)
        return CircularInterpolator(a, b, c)
    raise ValueError(f'Interpolation kind must be one of {INTERPOLATION_KINDS}, not {kind!r}.')

def is_collinear(a, b, c, tolerance=COLLINEAR_TOLERANCE):
    """Return True if the turn a->b->c is straight to within the given relative
    tolerance (sine of the turning angle). Coincident points count as collinear."""
    ab = b - a
    bc = c - b
    cross = numpy.cross(ab, bc)
    return numpy.sqrt((cross**2).sum()) <= tolerance * numpy.sqrt((ab**2).sum() * (bc**2).sum())

def _as_points(*points):
    return [numpy.asarray(p, dtype=float) for p in points]


class QuadraticBezierInterpolator:
    """Quadratic Bezier curve through a, b, c, with b at the local maximum of curvature."""
    def __init__(self, a, b, c):
        a, b, c = _as_points(a, b, c)
        control_point, self.T = bezier_control_point(a, b, c)
        self.control_matrix = _QUADRATIC_BEZIER_MATRIX @ numpy.array([a, control_point, c])

    def evaluate(self, t):
        t = numpy.asarray(t, dtype=float)
        return numpy.stack([numpy.ones_like(t), t, t*t], axis=-1) @ self.control_matrix

    def evaluate_first_derivative(self, t):
        t = numpy.asarray(t, dtype=float)
        return numpy.stack([numpy.zeros_like(t), numpy.ones_like(t), 2*t], axis=-1) @ self.control_matrix

    def evaluate_second_derivative(self, t):
        t = numpy.asarray(t, dtype=float)
        return numpy.stack([numpy.zeros_like(t), numpy.zeros_like(t), numpy.full_like(t, 2)], axis=-1) @ self.control_matrix

    def __eq__(self, other):
        if not isinstance(other, QuadraticBezierInterpolator):
            return NotImplemented
        return self.T == other.T and numpy.array_equal(self.control_matrix, other.control_matrix)

    __hash__ = None


def bezier_control_point(a, b, c):
    """Return the control point of the quadratic Bezier curve that passes
    through a, b, and c, with the local maximum of curvature placed at b.

    Returns: control_point, t
        t: the curve parameter at which the curve passes through b.
    """
    a_to_c = c - a
    a_to_c_length = numpy.sqrt((a_to_c**2).sum())
    b_to_a = a - b
    b_to_a_length = numpy.sqrt((b_to_a**2).sum())

    if a_to_c_length < DEGENERATE_LENGTH or b_to_a_length < DEGENERATE_LENGTH:
        # overlapping points
        t = 0.5
    elif abs(numpy.dot(a_to_c, -b_to_a) / (a_to_c_length * b_to_a_length)) <= DEGENERATE_COSINE:
        t = 0.5
    else:
        v0 = a - b
        v2 = c - b
        v_dot = numpy.dot(v0, v2)
        t = _cubic_root(-numpy.dot(v0, v0), -v_dot / 3, v_dot / 3, numpy.dot(v2, v2))

    one_minus_t = 1 - t
    control_point = (b - one_minus_t**2 * a - t**2 * c) / (2 * one_minus_t * t)
    return control_point, float(t)

def _cubic_root(d, c, b, a, depth=0):
    """Find the root in [0, 1] of the cubic with Bernstein coefficients (d, c, b, a).

    Each call evaluates the cubic at the middle of the current interval and
    recurses into the half holding the sign change, using the de Casteljau
    split of the coefficients. The cubic must be increasing through its root
    (d < 0 < a). Recursion stops once the midpoint value is within
    CUBIC_ROOT_EPSILON of zero, or once the interval is below float resolution.
    """
    value = (d + 3*c + 3*b + a) / 8
    if depth < 64:
        if value >= CUBIC_ROOT_EPSILON:
            return _cubic_root(d, (d + c) / 2, (d + 2*c + b) / 4, value, depth + 1) / 2
        if value <= -CUBIC_ROOT_EPSILON:
            return 0.5 + _cubic_root(value, (c + 2*b + a) / 4, (b + a) / 2, a, depth + 1) / 2
    return 0.5


class CircularInterpolator:
    """Circular arc through a, b, c.

    If a and b (or b and c) are exactly equal, or the three points are
    collinear, the arc degenerates to the straight line from a to c, and
    is_linear is True.

    The arc is stored as a center, radius, and a rotation matrix whose columns
    are the in-plane direction to a, the in-plane direction 90 degrees further
    along the arc, and the plane normal. The arc sweeps angle_range radians
    from a to c, passing through b; angle_range may exceed pi.
    """
    def __init__(self, a, b, c):
        a, b, c = _as_points(a, b, c)
        self.start = a
        self.end = c
        self.center = None
        self.radius = 0.0
        self.angle_range = 0.0
        self.rotation = None
        if numpy.array_equal(a, b):
            self.is_linear = True
            self.T = 0.0
        elif numpy.array_equal(b, c):
            self.is_linear = True
            self.T = 1.0
        elif is_collinear(a, b, c):
            self.is_linear = True
            a_to_c = c - a
            length_sq = numpy.dot(a_to_c, a_to_c)
            self.T = float(numpy.clip(numpy.dot(b - a, a_to_c) / length_sq, 0, 1)) if length_sq > 0 else 0.5
        else:
            self.is_linear = False
            self.center = circumcenter(a, b, c)
            self.radius = float(numpy.sqrt(((a - self.center)**2).sum()))
            normal = geometry.normalize(numpy.cross(b - a, c - b))
            dir_a = geometry.normalize(a - self.center)
            self.rotation = numpy.transpose([dir_a, numpy.cross(normal, dir_a), normal])
            b_angle = self._angle_of(b)
            self.angle_range = self._angle_of(c)
            self.T = b_angle / self.angle_range

    def _angle_of(self, point):
        x, y, _ = (point - self.center) @ self.rotation
        return float(numpy.arctan2(y, x) % (2 * numpy.pi))

    def _on_circle(self, coords):
        return coords @ self.rotation.T

    def evaluate(self, t):
        t = numpy.asarray(t, dtype=float)
        if self.is_linear:
            return self.start + t[...,numpy.newaxis] * (self.end - self.start)
        angle = self.angle_range * t
        coords = numpy.stack([numpy.cos(angle), numpy.sin(angle), numpy.zeros_like(angle)], axis=-1)
        return self.center + self.radius * self._on_circle(coords)

    def evaluate_first_derivative(self, t):
        t = numpy.asarray(t, dtype=float)
        if self.is_linear:
            return numpy.zeros(t.shape + (3,)) + (self.end - self.start)
        angle = self.angle_range * t
        coords = numpy.stack([-numpy.sin(angle), numpy.cos(angle), numpy.zeros_like(angle)], axis=-1)
        return self.radius * self.angle_range * self._on_circle(coords)

    def evaluate_second_derivative(self, t):
        t = numpy.asarray(t, dtype=float)
        if self.is_linear:
            return numpy.zeros(t.shape + (3,))
        angle = self.angle_range * t
        coords = numpy.stack([numpy.cos(angle), numpy.sin(angle), numpy.zeros_like(angle)], axis=-1)
        return -self.radius * self.angle_range**2 * self._on_circle(coords)

    def __eq__(self, other):
        if not isinstance(other, CircularInterpolator):
            return NotImplemented
        if self.is_linear or other.is_linear:
            return (self.is_linear == other.is_linear and self.T == other.T and
                numpy.array_equal(self.start, other.start) and numpy.array_equal(self.end, other.end))
        return (self.T == other.T and self.radius == other.radius and
            numpy.array_equal(self.center, other.center) and numpy.array_equal(self.rotation, other.rotation))

    __hash__ = None


def circumcenter(a, b, c):
    """Return the center of the circle through three non-collinear 3d points,
    via their barycentric coordinates."""
    bc = c - b
    ca = a - c
    ab = b - a
    u = numpy.dot(bc, bc) * numpy.dot(ab, ca)
    v = numpy.dot(ca, ca) * numpy.dot(ab, bc)
    w = numpy.dot(ab, ab) * numpy.dot(ca, bc)
    return (u * a + v * b + w * c) / (u + v + w)


class ConstantTwistInterpolator:
    """Twist-angle interpolator that holds the middle of its three values."""
    T = 0.5

    def __init__(self, a, b, c):
        self.constant = float(b)

    def evaluate(self, t):
        if numpy.ndim(t) == 0:
            return self.constant
        return numpy.full(numpy.shape(t), self.constant)

    def __eq__(self, other):
        if not isinstance(other, ConstantTwistInterpolator):
            return NotImplemented
        return self.constant == other.constant

    __hash__ = None

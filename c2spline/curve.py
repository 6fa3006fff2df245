import numpy

from . import geometry
from . import interpolators
from .knot import Knot

class Curve:
    """One C2-continuous span of a Yuksel spline, built from four consecutive
    knots p0, p1, p2, p3 and running from p1 (at t=0) to p2 (at t=1).

    Interpolator A passes through (p0, p1, p2) and interpolator B through
    (p1, p2, p3). Over the span, A is traversed from p1 to p2 and B likewise;
    the two are combined with the trigonometric blend
        P(t) = cos(theta)**2 * A(T_A + (1-T_A)*t) + sin(theta)**2 * B(T_B*t)
    where theta = pi/2 * t. At each end of the span only one interpolator has
    weight, and that interpolator is shared with the neighboring span.

    The tangent and acceleration are built from the interpolators' own
    derivatives at their local parameters (A', B', A'', B''), with c=cos(theta)
    and s=sin(theta):
        P'  = 2cs(B-A) + c**2 A' + s**2 B'
        P'' = 2c**2 s**2 (B-A) + 4cs(B'-A') + c**2 A'' + s**2 B''
    so at a knot both neighboring spans report the shared interpolator's
    derivatives, and tangent and acceleration vectors agree across knots.

    Parameters:
        p0, p1, p2, p3: Knot instances, or positions of shape (3,)
        twist_angles: if the p values are positions, an optional sequence of
            their four twist angles in degrees (default all 0).
        matrix: optional 4x4 transform applied to the positions once, at
            construction.
        interpolation: 'auto', 'quadratic' or 'circular'; see
            interpolators.make_interpolator().

    All evaluate methods accept a scalar or an array of parameters in [0, 1]
    and do not clamp them (see curve_geometry for clamping versions).
    """
    def __init__(self, p0, p1, p2, p3, twist_angles=None, matrix=None, interpolation='auto'):
        knots = [p0, p1, p2, p3]
        if all(isinstance(k, Knot) for k in knots):
            positions = [k.position for k in knots]
            twist_angles = [k.twist_angle for k in knots]
        else:
            positions = [numpy.asarray(p, dtype=float) for p in knots]
            if twist_angles is None:
                twist_angles = [0.0] * 4
        if matrix is not None:
            positions = list(geometry.transform_points(matrix, numpy.array(positions)))
        p0, p1, p2, p3 = positions
        self.interpolator_a = interpolators.make_interpolator(p0, p1, p2, interpolation)
        self.interpolator_b = interpolators.make_interpolator(p1, p2, p3, interpolation)
        self.twist_a = interpolators.ConstantTwistInterpolator(*twist_angles[:3])
        self.twist_b = interpolators.ConstantTwistInterpolator(*twist_angles[1:])

    def _parameters(self, t):
        t = numpy.asarray(t, dtype=float)
        theta = numpy.pi / 2 * t
        local_a = self.interpolator_a.T + (1 - self.interpolator_a.T) * t
        local_b = self.interpolator_b.T * t
        return numpy.cos(theta), numpy.sin(theta), local_a, local_b

    def evaluate_position(self, t):
        cos, sin, local_a, local_b = self._parameters(t)
        a = self.interpolator_a.evaluate(local_a)
        b = self.interpolator_b.evaluate(local_b)
        return _blend(cos**2, a, sin**2, b)

    def evaluate_tangent(self, t):
        cos, sin, local_a, local_b = self._parameters(t)
        a = self.interpolator_a.evaluate(local_a)
        b = self.interpolator_b.evaluate(local_b)
        da = self.interpolator_a.evaluate_first_derivative(local_a)
        db = self.interpolator_b.evaluate_first_derivative(local_b)
        return _blend(2 * cos * sin, b - a, cos**2, da, sin**2, db)

    def evaluate_acceleration(self, t):
        cos, sin, local_a, local_b = self._parameters(t)
        a = self.interpolator_a.evaluate(local_a)
        b = self.interpolator_b.evaluate(local_b)
        da = self.interpolator_a.evaluate_first_derivative(local_a)
        db = self.interpolator_b.evaluate_first_derivative(local_b)
        dda = self.interpolator_a.evaluate_second_derivative(local_a)
        ddb = self.interpolator_b.evaluate_second_derivative(local_b)
        return _blend(2 * cos**2 * sin**2, b - a, 4 * cos * sin, db - da, cos**2, dda, sin**2, ddb)

    def evaluate_twist_angle(self, t):
        cos, sin, local_a, local_b = self._parameters(t)
        return cos**2 * self.twist_a.evaluate(local_a) + sin**2 * self.twist_b.evaluate(local_b)

    def approximate_length(self):
        """Estimate the curve length from the mean of the chord length and the
        length of the polygon through the interpolator end points. Faster but
        less accurate than curve_geometry.calculate_length()."""
        p0 = self.interpolator_a.evaluate(0)
        p1 = self.interpolator_b.evaluate(0)
        p2 = self.interpolator_a.evaluate(1)
        p3 = self.interpolator_b.evaluate(1)
        chord = numpy.linalg.norm(p3 - p0)
        net = numpy.linalg.norm(p0 - p1) + numpy.linalg.norm(p2 - p1) + numpy.linalg.norm(p3 - p2)
        return float((net + chord) / 2)

    def __eq__(self, other):
        if not isinstance(other, Curve):
            return NotImplemented
        return (self.interpolator_a == other.interpolator_a and self.interpolator_b == other.interpolator_b and
            self.twist_a == other.twist_a and self.twist_b == other.twist_b)

    __hash__ = None


def _blend(*weights_and_vectors):
    """Sum weight*vector pairs, broadcasting scalar or array weights over the
    trailing vector axis."""
    pairs = zip(weights_and_vectors[::2], weights_and_vectors[1::2])
    return sum(numpy.asarray(w)[...,numpy.newaxis] * v for w, v in pairs)

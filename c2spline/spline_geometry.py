"""Geometric queries over a whole Spline.

Positions along a spline are addressed by a normalized parameter t in [0, 1]
that is proportional to arclength (t=0.5 is halfway along the spline by
distance), unlike the per-curve parameters of the underlying Curve spans.
spline_to_curve_t() and curve_to_spline_t() convert between the two, and
convert_index_unit() converts between normalized, distance and knot-index
units (see PathIndexUnit).

Queries on an empty spline return sentinel values rather than raising.
"""

import enum
import logging

import numpy

from . import curve_geometry
from . import geometry

logger = logging.getLogger(__name__)

PICK_RESOLUTION_MIN = 2
PICK_RESOLUTION_DEFAULT = 4
PICK_RESOLUTION_MAX = 64
SUBDIVISION_COUNT_MIN = 6
SUBDIVISION_COUNT_MAX = 1024
MAX_NEAREST_ITERATIONS = 10
LINEAR_DISTANCE_EPSILON = 0.001

_INFINITE_VECTOR = numpy.full(3, numpy.inf)

class PathIndexUnit(enum.Enum):
    """Units for addressing a position along a spline.

    NORMALIZED: arclength fraction in [0, 1].
    DISTANCE: arclength from the start of the spline.
    KNOT: knot index plus the fraction of the distance along the curve leaving
        that knot (e.g. 2.5 is halfway, by distance, from knot 2 to knot 3).
    """
    NORMALIZED = 'normalized'
    DISTANCE = 'distance'
    KNOT = 'knot'

def spline_to_curve_t(spline, spline_t, use_lut=True):
    """Convert a normalized spline parameter into a curve index and a curve parameter.

    Parameters:
        spline: Spline instance
        spline_t: normalized spline parameter, clamped to [0, 1]
        use_lut: if True (default), invert the curve's distance lookup table so
            that the returned curve parameter lands at the requested arclength.
            If False, return the fraction of the curve's length instead, which
            is linear in distance but is not a curve parameter.

    Returns: (curve_index, curve_t)
    """
    knot_count = len(spline)
    if knot_count <= 1:
        return 0, 0.0
    spline_t = min(max(spline_t, 0), 1)
    target_length = spline_t * spline.get_length()
    start = 0.0
    for index in range(spline.get_curve_count()):
        curve_length = spline.get_curve_length(index)
        if target_length <= start + curve_length:
            if use_lut:
                curve_t = spline.get_curve_interpolation(index, target_length - start)
            else:
                curve_t = (target_length - start) / curve_length if curve_length > 0 else 0.0
            return index, curve_t
        start += curve_length
    return (knot_count - 1 if spline.closed else knot_count - 2), 1.0

def curve_to_spline_t(spline, curve, use_lut=True):
    """Convert a curve position (curve index + curve parameter, e.g. 1.25)
    into a normalized spline parameter.

    Parameters:
        spline: Spline instance
        curve: curve index plus fractional curve parameter
        use_lut: if True (default), the fractional part is a curve parameter,
            converted to a distance through the curve's lookup table. If False,
            the fractional part is taken to be the fraction of the curve's length.

    Returns: normalized spline parameter in [0, 1]
    """
    if len(spline) <= 1 or curve < 0:
        return 0.0
    if curve >= spline.get_curve_count():
        return 1.0
    length = spline.get_length()
    if length <= 0:
        return 0.0
    curve_index = int(numpy.floor(curve))
    fraction = curve - curve_index
    distance = sum(spline.get_curve_length(i) for i in range(curve_index))
    if use_lut:
        distance += curve_geometry.get_interpolation_to_distance(spline.get_curve_distance_lut(curve_index), fraction)
    else:
        distance += spline.get_curve_length(curve_index) * fraction
    return distance / length

def _curve_at(spline, t):
    curve_index, curve_t = spline_to_curve_t(spline, t)
    return spline.get_curve(curve_index), curve_t

def evaluate_position(spline, t):
    """Return the position at normalized parameter t, or +inf for an empty spline."""
    if len(spline) < 1:
        return _INFINITE_VECTOR.copy()
    curve, curve_t = _curve_at(spline, t)
    return curve_geometry.evaluate_position(curve, curve_t)

def evaluate_tangent(spline, t):
    """Return the curve tangent at normalized parameter t, or +inf for an empty spline.

    The tangent is the derivative with respect to the parameter of the curve
    containing t, not with respect to the spline parameter."""
    if len(spline) < 1:
        return _INFINITE_VECTOR.copy()
    curve, curve_t = _curve_at(spline, t)
    return curve_geometry.evaluate_tangent(curve, curve_t)

def evaluate_acceleration(spline, t):
    """Return the curve acceleration at normalized parameter t, or zero for an empty spline."""
    if len(spline) < 1:
        return numpy.zeros(3)
    curve, curve_t = _curve_at(spline, t)
    return curve_geometry.evaluate_acceleration(curve, curve_t)

def evaluate_twist_angle(spline, t):
    """Return the twist angle in degrees at normalized parameter t, or +inf for an empty spline."""
    if len(spline) < 1:
        return numpy.inf
    curve, curve_t = _curve_at(spline, t)
    return float(curve_geometry.evaluate_twist_angle(curve, curve_t))

def evaluate_curvature(spline, t):
    """Return the curvature at normalized parameter t, or 0 for an empty spline."""
    if len(spline) < 1:
        return 0.0
    curve, curve_t = _curve_at(spline, t)
    return float(curve_geometry.evaluate_curvature(curve, curve_t))

def evaluate_curvature_center(spline, t):
    """Return the center of the osculating circle at normalized parameter t.

    Returns the zero vector for an empty spline, or where the curvature is 0."""
    if len(spline) < 1:
        return numpy.zeros(3)
    curve, curve_t = _curve_at(spline, t)
    curvature = curve_geometry.evaluate_curvature(curve, curve_t)
    if not curvature > 0:
        return numpy.zeros(3)
    position = curve_geometry.evaluate_position(curve, curve_t)
    velocity = curve_geometry.evaluate_tangent(curve, curve_t)
    acceleration = curve_geometry.evaluate_acceleration(curve, curve_t)
    curvature_up = geometry.normalize(numpy.cross(acceleration, velocity))
    curvature_right = geometry.normalize(numpy.cross(velocity, curvature_up))
    return position + curvature_right / curvature

def evaluate(spline, t, normal_step_size=None):
    """Evaluate position, tangent and up vector at normalized parameter t.

    The up vector comes from the spline's NormalCache (see
    Spline.get_normal_cache()), so it includes knot twist.

    Returns: (ok, position, tangent, up_vector). For an empty spline, ok is
    False and the vectors are the origin, +z and +y.
    """
    if len(spline) < 1:
        return False, numpy.zeros(3), numpy.array([0., 0, 1]), numpy.array([0., 1, 0])
    curve, curve_t = _curve_at(spline, t)
    position = curve_geometry.evaluate_position(curve, curve_t)
    tangent = curve_geometry.evaluate_tangent(curve, curve_t)
    up_vector = spline.get_normal_cache(normal_step_size).evaluate(t)
    return True, position, tangent, up_vector

def calculate_length(spline, matrix):
    """Return the length of the spline after transforming its knots by a 4x4 matrix."""
    length = 0.0
    for index in range(spline.get_curve_count()):
        length += curve_geometry.calculate_length(spline.get_curve(index, matrix), spline.lut_resolution)
    return length

def get_bounds(spline, matrix=None):
    """Return the axis-aligned bounds (min, max) of the (optionally transformed)
    knot positions, or None for an empty spline."""
    if len(spline) < 1:
        return None
    positions = numpy.array([knot.position for knot in spline])
    if matrix is not None:
        positions = geometry.transform_points(matrix, positions)
    return positions.min(axis=0), positions.max(axis=0)

def get_subdivision_count(length, resolution):
    """Return the number of samples to use over a stretch of spline of the given
    length: sqrt(length) * resolution, clamped to [SUBDIVISION_COUNT_MIN, SUBDIVISION_COUNT_MAX]."""
    return int(max(SUBDIVISION_COUNT_MIN, min(SUBDIVISION_COUNT_MAX, numpy.sqrt(length) * resolution)))

def get_nearest_point(spline, target, resolution=PICK_RESOLUTION_DEFAULT, iterations=2):
    """Find the point on a spline nearest to a ray or to a point.

    The search is coarse-to-fine: at each iteration the current parameter
    window (initially [0, 1]) is sampled into a polyline, the polyline segment
    nearest the target is found, and that segment's parameter span becomes the
    next window. The number of samples per window scales with the square root
    of the window's arclength (see get_subdivision_count()).

    Parameters:
        spline: Spline instance
        target: a point of shape (3,), or a ray given as a geometry.Ray or any
            (origin, direction) pair of 3-vectors
        resolution: sampling density, clamped to [PICK_RESOLUTION_MIN, PICK_RESOLUTION_MAX]
        iterations: number of refinements, at most MAX_NEAREST_ITERATIONS

    Returns: NearestPoint(position, t, distance), with t the normalized spline
    parameter. For an empty spline, position is +inf, t is 0 and distance is +inf.
    """
    if len(spline) < 1:
        return curve_geometry.NearestPoint(_INFINITE_VECTOR.copy(), 0.0, numpy.inf)
    resolution = min(max(PICK_RESOLUTION_MIN, resolution), PICK_RESOLUTION_MAX)
    iterations = min(MAX_NEAREST_ITERATIONS, iterations)
    is_ray = isinstance(target, geometry.Ray) or numpy.shape(target) == (2, 3)
    if is_ray:
        origin, direction = (numpy.asarray(v, dtype=float) for v in target)
    else:
        target = numpy.asarray(target, dtype=float)
    window_start, window_length = 0.0, 1.0
    nearest = curve_geometry.NearestPoint(_INFINITE_VECTOR.copy(), 0.0, numpy.inf)
    length = spline.get_length()
    for i in range(iterations):
        segments = get_subdivision_count(length * window_length, resolution)
        t = window_start + window_length * numpy.linspace(0, 1, segments)
        points = numpy.array([evaluate_position(spline, ti) for ti in t])
        if is_ray:
            ray_points, line_points, _, line_params = geometry.closest_points_ray_to_line_segments(
                origin, direction, points[:-1], points[1:])
            distances = numpy.sqrt(((line_points - ray_points)**2).sum(axis=1))
            best = distances.argmin()
            position, distance = line_points[best], distances[best]
            nearest_t = t[best] + line_params[best] * (t[best+1] - t[best])
        else:
            position, nearest_t, best = geometry.closest_point_on_polyline(target, points, t)
            distance = numpy.sqrt(((position - target)**2).sum())
        window_start, window_length = t[best], t[best+1] - t[best]
        nearest = curve_geometry.NearestPoint(position, float(nearest_t), float(distance))
        logger.debug('Nearest point iteration %d: %d samples, t=%g, distance=%g', i, segments, nearest.t, nearest.distance)
    return nearest

def get_point_at_linear_distance(spline, from_t, relative_distance, epsilon=LINEAR_DISTANCE_EPSILON):
    """Find the point at a given straight-line distance from another point on the spline.

    Starting from from_t, step along the spline (forward for positive
    relative_distance, backward for negative) by the remaining shortfall
    between the requested distance and the straight-line distance reached so
    far, until the shortfall is within epsilon. The search stops at either
    end of the spline.

    Returns: (position, t)
    """
    if from_t < 0:
        return evaluate_position(spline, 0), 0.0
    length = spline.get_length()
    current_length = from_t * length
    if current_length + relative_distance >= length:
        return evaluate_position(spline, 1), 1.0
    if current_length + relative_distance <= 0:
        return evaluate_position(spline, 0), 0.0

    start = evaluate_position(spline, from_t)
    point = start
    result_t = from_t
    forward = relative_distance >= 0
    residual = abs(relative_distance)
    while residual > epsilon and (result_t < 1 if forward else result_t > 0):
        current_length += residual if forward else -residual
        result_t = min(max(current_length / length, 0), 1)
        point = evaluate_position(spline, result_t)
        residual = abs(relative_distance) - numpy.sqrt(((point - start)**2).sum())
    return point, result_t

def convert_index_unit(spline, t, from_unit, to_unit=None):
    """Convert a position along the spline between PathIndexUnit units.

    Parameters:
        spline: Spline instance
        t: position in from_unit units
        from_unit, to_unit: PathIndexUnit values. If to_unit is None, t is
            taken to be NORMALIZED and converted to from_unit.

    Normalized values are clamped to [0, 1] on open splines and wrapped into
    [0, 1) on closed splines (exact integers other than 0 and 1 are clamped).
    Knot units are converted linearly in distance along each curve, without
    the lookup tables.
    """
    if to_unit is None:
        from_unit, to_unit = PathIndexUnit.NORMALIZED, from_unit
    from_unit = PathIndexUnit(from_unit)
    to_unit = PathIndexUnit(to_unit)
    if from_unit == to_unit:
        if to_unit == PathIndexUnit.NORMALIZED:
            return _wrap_interpolation(t, spline.closed)
        return t
    return _convert_normalized_index_unit(spline, get_normalized_interpolation(spline, t, from_unit), to_unit)

def _convert_normalized_index_unit(spline, t, to_unit):
    if to_unit == PathIndexUnit.KNOT:
        curve_index, fraction = spline_to_curve_t(spline, t, use_lut=False)
        return curve_index + fraction
    elif to_unit == PathIndexUnit.DISTANCE:
        return t * spline.get_length()
    return t

def get_normalized_interpolation(spline, t, from_unit):
    """Convert a position in from_unit units to a normalized spline parameter."""
    from_unit = PathIndexUnit(from_unit)
    if from_unit == PathIndexUnit.KNOT:
        return _wrap_interpolation(curve_to_spline_t(spline, t, use_lut=False), spline.closed)
    elif from_unit == PathIndexUnit.DISTANCE:
        length = spline.get_length()
        return _wrap_interpolation(t / length if length > 0 else 0.0, spline.closed)
    return _wrap_interpolation(t, spline.closed)

def _wrap_interpolation(t, closed):
    if not closed or t % 1 == 0:
        return min(max(t, 0.0), 1.0)
    return t - numpy.floor(t)

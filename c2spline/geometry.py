import collections
import numpy
from scipy.spatial.transform import Rotation

Ray = collections.namedtuple('Ray', ['origin', 'direction'])

def cumulative_distances(points, unit=True):
    """Return cumulative distances along a polyline.

    Parameters:
    points: array of shape (n,m) consisting of n points in m dimensions
    unit: if True, return distances divided by total length of the curve,
          if False, return actual arc lengths. A zero-length polyline is
          returned as all zeros in either case."""
    points = numpy.asarray(points, dtype=float)
    distances = numpy.concatenate([[0], numpy.add.accumulate(numpy.sqrt(((points[:-1] - points[1:])**2).sum(axis=1)))])
    if unit and distances[-1] > 0:
        distances /= distances[-1]
    return distances

def closest_point_to_line_segments(point, lines_start, lines_end):
    """Given a point and a set of line segments (specified by starting
    and ending points), return the point on each line segment that is closest to the
    given point, and the parametric position along each line of that point.
    Degenerate (zero-length) segments report their start point at position 0."""
    v = lines_end - lines_start
    w = point - lines_start
    c1 = (v*w).sum(axis=1)
    c2 = (v*v).sum(axis=1)
    fractional_positions = numpy.divide(c1, c2, out=numpy.zeros_like(c1), where=c2 > 0)
    fractional_positions = fractional_positions.clip(0, 1)
    closest_points = lines_start + fractional_positions[:,numpy.newaxis]*v
    return closest_points, fractional_positions

def closest_points_ray_to_line_segments(ray_origin, ray_direction, lines_start, lines_end):
    """Given a ray and a set of line segments, return the closest pair of
    points between the ray and each segment.

    The ray starts at ray_origin and extends infinitely along ray_direction
    (which need not be unit length); each segment is clamped to its endpoints.

    Returns: ray_points, line_points, ray_params, line_params
        ray_points, line_points: arrays of shape (n, 3)
        ray_params: distance along the ray direction of each ray point, in
            units of |ray_direction|; always >= 0.
        line_params: fractional position of each line point in [0, 1]."""
    ray_origin = numpy.asarray(ray_origin, dtype=float)
    ray_direction = numpy.asarray(ray_direction, dtype=float)
    v = lines_end - lines_start
    w = lines_start - ray_origin
    a = ray_direction.dot(ray_direction)
    b = (v * ray_direction).sum(axis=1)
    c = (v * v).sum(axis=1)
    d = w.dot(ray_direction)
    e = (v * w).sum(axis=1)
    denom = a*c - b*b
    # parallel lines (denom == 0) are resolved at the segment start
    line_params = numpy.divide(b*d - a*e, denom, out=numpy.zeros_like(denom), where=denom > 1e-12 * a * c)
    line_params = line_params.clip(0, 1)
    line_points = lines_start + line_params[:,numpy.newaxis] * v
    if a > 0:
        ray_params = ((line_points - ray_origin) @ ray_direction) / a
    else:
        ray_params = numpy.zeros(len(line_points))
    ray_params = ray_params.clip(0, None)
    ray_points = ray_origin + ray_params[:,numpy.newaxis] * ray_direction
    # the ray clamp can move the ray point, so re-project it onto each segment
    clamped = ray_params == 0
    if clamped.any():
        line_points[clamped], line_params[clamped] = closest_point_to_line_segments(ray_origin,
            lines_start[clamped], lines_end[clamped])
    return ray_points, line_points, ray_params, line_params

def closest_point_on_polyline(point, points, parameters=None):
    """Return the point along a polyline nearest the given point, the parametric
    position of that point along the polyline, and the index of the segment
    containing it. If no input parameter values are given, then the cumulative
    distance along the polyline will be taken as the parameter."""
    points = numpy.asarray(points, dtype=float)
    closest_points, fractions = closest_point_to_line_segments(point, points[:-1], points[1:])
    distances = numpy.sqrt(((point - closest_points)**2).sum(axis=1))
    point_idx = distances.argmin()
    closest_point = closest_points[point_idx]
    if parameters is None:
        parameters = cumulative_distances(points, unit=False)
    start_u, stop_u = parameters[point_idx:point_idx+2]
    u_val = start_u + fractions[point_idx]*(stop_u - start_u)
    return closest_point, u_val, point_idx

def normalize(vectors):
    """Return vectors scaled to unit length along the last axis."""
    vectors = numpy.asarray(vectors, dtype=float)
    return vectors / numpy.sqrt((vectors**2).sum(axis=-1))[...,numpy.newaxis]

def angle_between_vectors(v_from, v_to):
    """Calculate the unsigned angle in radians between two 3d vectors."""
    cos = numpy.dot(normalize(v_from), normalize(v_to))
    return numpy.arccos(numpy.clip(cos, -1, 1))

def rotate_about_axis(vectors, axis, radians):
    """Rotate vectors about unit axes by angles in radians, following the
    right-hand rule.

    Parameters:
        vectors: array of shape (3,) or (n,3)
        axis: a single axis of shape (3,) or one axis per vector, shape (n,3)
        radians: a scalar angle, or one angle per vector, shape (n,)
    """
    axis = numpy.asarray(axis, dtype=float)
    rotvec = numpy.asarray(radians, dtype=float)[...,numpy.newaxis] * axis
    return Rotation.from_rotvec(rotvec).apply(vectors)

def slerp(v0, v1, t):
    """Spherically interpolate between two unit vectors.

    Falls back to linear interpolation when the vectors are (nearly) parallel."""
    v0 = numpy.asarray(v0, dtype=float)
    v1 = numpy.asarray(v1, dtype=float)
    omega = numpy.arccos(numpy.clip(numpy.dot(v0, v1), -1, 1))
    sin_omega = numpy.sin(omega)
    if sin_omega < 1e-6:
        return v0 + (v1 - v0) * t
    return (numpy.sin((1 - t) * omega) * v0 + numpy.sin(t * omega) * v1) / sin_omega

def transform_points(matrix, points):
    """Apply a 4x4 homogeneous transformation matrix to points of shape (3,) or (n,3),
    ignoring the projective row (as for affine transforms)."""
    matrix = numpy.asarray(matrix, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError('Transformation matrix must have shape (4, 4).')
    points = numpy.asarray(points, dtype=float)
    return points @ matrix[:3,:3].T + matrix[:3,3]

"""Geometric queries over a single curve.Curve span.

Parameters outside [0, 1] are clamped; nothing here raises on degenerate
geometry. Lengths are measured along the polyline through equally-spaced
parameter values, and distance lookup tables (LUTs) record that polyline's
cumulative length at each sample, for converting distances along the curve
back to curve parameters.
"""

import collections
import numpy

from . import geometry
from .curve import Curve

LUT_RESOLUTION = 30
DISTANCE_LUT_SCRATCH_RESOLUTION = 24
NEAREST_POINT_RESOLUTION = 16
NORMALS_PER_CURVE = 16

DISTANCE_LUT_DTYPE = numpy.dtype([('distance', float), ('t', float)])

NearestPoint = collections.namedtuple('NearestPoint', ['position', 't', 'distance'])

def evaluate_position(curve, t):
    """Return the position on the curve at parameter t (clamped to [0, 1])."""
    return curve.evaluate_position(numpy.clip(t, 0, 1))

def evaluate_tangent(curve, t):
    """Return the (non-normalized) first derivative of the curve at t."""
    return curve.evaluate_tangent(numpy.clip(t, 0, 1))

def evaluate_acceleration(curve, t):
    """Return the second derivative of the curve at t."""
    return curve.evaluate_acceleration(numpy.clip(t, 0, 1))

def evaluate_twist_angle(curve, t):
    """Return the blended knot twist angle, in degrees, at t."""
    return curve.evaluate_twist_angle(numpy.clip(t, 0, 1))

def evaluate_curvature(curve, t):
    """Return the curvature (inverse radius of the osculating circle) at t.

    A zero tangent yields nan."""
    t = numpy.clip(t, 0, 1)
    velocity = curve.evaluate_tangent(t)
    acceleration = curve.evaluate_acceleration(t)
    velocity_sq = (velocity**2).sum(axis=-1)
    acceleration_sq = (acceleration**2).sum(axis=-1)
    dot = (velocity * acceleration).sum(axis=-1)
    with numpy.errstate(divide='ignore', invalid='ignore'):
        # clip the rounding error that can make the radicand slightly negative
        return numpy.sqrt((velocity_sq * acceleration_sq - dot**2).clip(0, None)) / (velocity_sq * numpy.sqrt(velocity_sq))

def get_points(curve, num_points, derivative=0):
    """Evaluate a curve (or its derivative) at num_points equally-spaced
    parameter values from 0 to 1.

    Returns: array of shape (num_points, 3)"""
    t = numpy.linspace(0, 1, num_points)
    if derivative == 0:
        return curve.evaluate_position(t)
    elif derivative == 1:
        return curve.evaluate_tangent(t)
    elif derivative == 2:
        return curve.evaluate_acceleration(t)
    raise ValueError('Derivative order must be 0, 1, or 2.')

def calculate_length(curve, resolution=LUT_RESOLUTION):
    """Approximate the arc-length of the curve by evaluating it at 'resolution'
    equally-spaced positions and calculating the length of the resulting polyline.
    This is the length that a Spline caches for each of its curves."""
    points = get_points(curve, resolution)
    return float(numpy.sqrt(((points[:-1] - points[1:])**2).sum(axis=1)).sum())

def approximate_length(curve):
    """Estimate the length of the curve from its chord and control polygon.
    Faster but less accurate than calculate_length()."""
    return curve.approximate_length()

def make_distance_lut(resolution=LUT_RESOLUTION):
    """Return an uncomputed ("cold") distance lookup table of the given length.

    A cold table is marked by a negative distance in its first entry; see
    lut_is_valid() and calculate_curve_lengths()."""
    lut = numpy.zeros(resolution, dtype=DISTANCE_LUT_DTYPE)
    invalidate_lut(lut)
    return lut

def invalidate_lut(lut):
    """Mark a lookup table as needing recomputation."""
    lut['distance'][0] = -1

def lut_is_valid(lut):
    return len(lut) > 0 and lut['distance'][0] >= 0

def calculate_curve_lengths(curve, lookup_table=None, resolution=LUT_RESOLUTION):
    """Fill a distance lookup table for the curve.

    The curve is sampled at len(lookup_table) equally-spaced parameters, and
    each entry records the sample's parameter 't' and the cumulative polyline
    length 'distance' up to it. The first entry is always (0, 0).

    Parameters:
        curve: Curve instance
        lookup_table: structured array of DISTANCE_LUT_DTYPE to fill in place.
            If None, a new table with the given resolution is allocated.
        resolution: size of the allocated table when lookup_table is None.

    Returns: the filled lookup table.
    """
    if lookup_table is None:
        lookup_table = numpy.empty(resolution, dtype=DISTANCE_LUT_DTYPE)
    resolution = len(lookup_table)
    if resolution == 0:
        return lookup_table
    t = numpy.linspace(0, 1, resolution)
    points = curve.evaluate_position(t)
    lookup_table['t'] = t
    lookup_table['distance'] = geometry.cumulative_distances(points, unit=False)
    return lookup_table

def get_distance_to_interpolation(curve_or_lut, distance):
    """Return the curve parameter t at which the given distance along the curve is reached.

    Parameters:
        curve_or_lut: a lookup table from calculate_curve_lengths(), or a Curve.
            For a Curve, a small lookup table is computed on each call; callers
            converting many distances on one curve should build and pass a table.
        distance: distance along the curve, measured from t=0.

    Returns: t in [0, 1]. Distances <= 0 give 0, and distances at or beyond
    the curve length give 1. Between table entries t is linearly interpolated.
    """
    if isinstance(curve_or_lut, Curve):
        lut = calculate_curve_lengths(curve_or_lut, resolution=DISTANCE_LUT_SCRATCH_RESOLUTION)
    else:
        lut = curve_or_lut
    if lut is None or len(lut) < 1 or distance <= 0:
        return 0.0
    distances = lut['distance']
    if distance >= distances[-1]:
        return 1.0
    # first entry whose distance exceeds the query
    i = numpy.searchsorted(distances, distance, side='right')
    prev, current = lut[i-1], lut[i]
    fraction = (distance - prev['distance']) / (current['distance'] - prev['distance'])
    return float(prev['t'] + (current['t'] - prev['t']) * fraction)

def get_interpolation_to_distance(lut, t):
    """Return the distance along the curve reached at parameter t, the inverse
    of get_distance_to_interpolation()."""
    if lut is None or len(lut) < 1:
        return 0.0
    return float(numpy.interp(numpy.clip(t, 0, 1), lut['t'], lut['distance']))

def get_nearest_point(curve, ray, resolution=NEAREST_POINT_RESOLUTION):
    """Find the point on a curve nearest to a ray.

    The curve is approximated by a polyline through 'resolution' equally-spaced
    samples; the polyline segment nearest the ray wins, and the curve parameter
    is interpolated along that segment.

    Parameters:
        curve: Curve instance
        ray: geometry.Ray (or any (origin, direction) pair)
        resolution: number of polyline samples. Higher is more accurate.

    Returns: NearestPoint(position, t, distance), where distance is measured
    between the nearest curve point and the nearest point on the ray.
    """
    origin, direction = ray
    resolution = max(2, resolution)
    t = numpy.linspace(0, 1, resolution)
    points = curve.evaluate_position(t)
    ray_points, line_points, _, line_params = geometry.closest_points_ray_to_line_segments(
        origin, direction, points[:-1], points[1:])
    distances_sq = ((line_points - ray_points)**2).sum(axis=1)
    i = distances_sq.argmin()
    interpolation = t[i] + line_params[i] * (t[i+1] - t[i])
    return NearestPoint(line_points[i], float(interpolation), float(numpy.sqrt(distances_sq[i])))

def evaluate_up_vector(curve, t, start_up, end_up, num_frames=NORMALS_PER_CURVE):
    """Return the up vector at parameter t of a curve whose up vectors at its
    start and end are given.

    Rotation-minimizing frames are propagated from start_up along num_frames
    equally-spaced samples with the double reflection method of Wang et al.
    (2008, "Computation of rotation minimizing frames"). The final frame will
    generally not match end_up; the angular mismatch is eased in linearly
    along the curve, rotating each frame about its tangent, so that the up
    vectors run exactly from start_up to end_up. The result at t is the
    spherical interpolation of the two frames around t.

    Parameters:
        curve: Curve instance
        t: curve parameter, clamped to [0, 1]
        start_up, end_up: unit vectors perpendicular to the curve tangent at
            each end.
        num_frames: number of frames to propagate along the curve.

    Returns: unit up vector, shape (3,)
    """
    normals = rotation_minimizing_normals(curve, start_up, end_up, num_frames)
    t = float(numpy.clip(t, 0, 1))
    if t <= 0:
        return normals[0]
    if t >= 1:
        return normals[-1]
    step = 1 / (num_frames - 1)
    i = min(int(t / step), num_frames - 2)
    return geometry.slerp(normals[i], normals[i+1], (t - i * step) / step)

def rotation_minimizing_normals(curve, start_up, end_up, num_frames=NORMALS_PER_CURVE):
    """Return the corrected frame normals used by evaluate_up_vector(), as an
    array of shape (num_frames, 3) at equally-spaced curve parameters."""
    start_up = numpy.asarray(start_up, dtype=float)
    end_up = numpy.asarray(end_up, dtype=float)
    t = numpy.linspace(0, 1, num_frames)
    origins = curve.evaluate_position(t)
    tangents = geometry.normalize(curve.evaluate_tangent(t))
    normals = propagate_frames(origins, tangents, start_up)

    angle = geometry.angle_between_vectors(normals[-1], end_up)
    if angle != 0:
        # pick the rotation direction about the end tangent that carries end_up
        # onto the last propagated normal, then unwind it gradually
        axis = tangents[-1]
        positive = geometry.angle_between_vectors(geometry.rotate_about_axis(end_up, axis, angle), normals[-1])
        negative = geometry.angle_between_vectors(geometry.rotate_about_axis(end_up, axis, -angle), normals[-1])
        if positive > negative:
            angle = -angle
        normals[1:] = geometry.rotate_about_axis(normals[1:], tangents[1:], -angle * t[1:])
    normals[0] = start_up
    normals[-1] = end_up
    return normals

def propagate_frames(origins, tangents, start_normal):
    """Propagate a rotation-minimizing frame along sampled curve points by double reflection.

    Parameters:
        origins: array of shape (n, 3) of curve positions
        tangents: array of shape (n, 3) of unit tangents at those positions
        start_normal: normal of the first frame, perpendicular to tangents[0]

    Returns: array of shape (n, 3) of frame normals.
    """
    normals = numpy.empty_like(origins)
    normals[0] = start_normal
    binormal = geometry.normalize(numpy.cross(tangents[0], start_normal))
    for i in range(1, len(origins)):
        # reflect the previous binormal and tangent through the plane bisecting the two origins
        v1 = origins[i] - origins[i-1]
        c1 = v1.dot(v1)
        if c1 > 0:
            reflected_binormal = binormal - (2 / c1) * v1.dot(binormal) * v1
            reflected_tangent = tangents[i-1] - (2 / c1) * v1.dot(tangents[i-1]) * v1
        else:
            reflected_binormal = binormal
            reflected_tangent = tangents[i-1]
        # second reflection maps the reflected tangent onto the actual tangent
        v2 = tangents[i] - reflected_tangent
        c2 = v2.dot(v2)
        if c2 > 0:
            reflected_binormal = reflected_binormal - (2 / c2) * v2.dot(reflected_binormal) * v2
        binormal = geometry.normalize(reflected_binormal)
        normals[i] = geometry.normalize(numpy.cross(binormal, tangents[i]))
    return normals

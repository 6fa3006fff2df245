"""Test single-curve algorithms."""

import numpy
import pytest

from c2spline import curve_geometry
from c2spline import geometry
from c2spline.curve import Curve

LINE = Curve([0, 0, 0], [0, 0, 0], [10, 0, 0], [10, 0, 0])
QUARTER_CIRCLE = Curve([0, -1, 0], [1, 0, 0], [0, 1, 0], [-1, 0, 0])
WIGGLE = Curve([0, 0, 0], [1, 2, 0], [3, 2.5, 1], [4, 0, 2])


def test_clamping():
    numpy.testing.assert_allclose(curve_geometry.evaluate_position(LINE, -1), [0, 0, 0], atol=1e-12)
    numpy.testing.assert_allclose(curve_geometry.evaluate_position(LINE, 2), [10, 0, 0], atol=1e-12)
    numpy.testing.assert_allclose(curve_geometry.evaluate_tangent(WIGGLE, 1.5), WIGGLE.evaluate_tangent(1))


def test_lengths():
    assert curve_geometry.calculate_length(LINE) == pytest.approx(10)
    assert curve_geometry.calculate_length(QUARTER_CIRCLE, 100) == pytest.approx(numpy.pi / 2, rel=1e-3)
    assert curve_geometry.approximate_length(QUARTER_CIRCLE) == pytest.approx(2 * numpy.sqrt(2))


def test_curvature():
    for t in (0, 0.3, 0.6, 1):
        assert curve_geometry.evaluate_curvature(QUARTER_CIRCLE, t) == pytest.approx(1, rel=0.1)
    assert curve_geometry.evaluate_curvature(LINE, 0.5) == pytest.approx(0, abs=1e-12)


def test_get_points():
    points = curve_geometry.get_points(LINE, 5)
    numpy.testing.assert_allclose(points[:, 0], [0, 2.5, 5, 7.5, 10], atol=1e-12)
    assert curve_geometry.get_points(WIGGLE, 5, derivative=2).shape == (5, 3)
    with pytest.raises(ValueError):
        curve_geometry.get_points(LINE, 5, derivative=3)


def test_lut_cold_and_warm():
    lut = curve_geometry.make_distance_lut(10)
    assert not curve_geometry.lut_is_valid(lut)
    curve_geometry.calculate_curve_lengths(WIGGLE, lut)
    assert curve_geometry.lut_is_valid(lut)
    curve_geometry.invalidate_lut(lut)
    assert not curve_geometry.lut_is_valid(lut)


def test_lut_invariants():
    lut = curve_geometry.calculate_curve_lengths(WIGGLE)
    assert len(lut) == curve_geometry.LUT_RESOLUTION
    assert lut[0]['distance'] == 0 and lut[0]['t'] == 0
    assert lut[-1]['t'] == 1
    assert (numpy.diff(lut['distance']) >= 0).all()
    assert (numpy.diff(lut['t']) > 0).all()
    assert lut[-1]['distance'] == pytest.approx(curve_geometry.calculate_length(WIGGLE))


def test_distance_to_interpolation():
    lut = curve_geometry.calculate_curve_lengths(LINE)
    assert curve_geometry.get_distance_to_interpolation(lut, -1) == 0
    assert curve_geometry.get_distance_to_interpolation(lut, 0) == 0
    assert curve_geometry.get_distance_to_interpolation(lut, 10) == pytest.approx(1)
    assert curve_geometry.get_distance_to_interpolation(lut, 100) == 1
    assert curve_geometry.get_distance_to_interpolation(lut, 2.5) == pytest.approx(0.25)
    assert curve_geometry.get_distance_to_interpolation(LINE, 7.5) == pytest.approx(0.75)


def test_distance_to_interpolation_is_monotonic():
    lut = curve_geometry.calculate_curve_lengths(WIGGLE)
    distances = numpy.linspace(0, lut[-1]['distance'], 50)
    t = [curve_geometry.get_distance_to_interpolation(lut, d) for d in distances]
    assert (numpy.diff(t) > 0).all()


def test_interpolation_to_distance_inverts_lookup():
    lut = curve_geometry.calculate_curve_lengths(WIGGLE)
    for t in (0, 0.2, 0.55, 1):
        distance = curve_geometry.get_interpolation_to_distance(lut, t)
        assert curve_geometry.get_distance_to_interpolation(lut, distance) == pytest.approx(t)


def test_nearest_point_to_ray():
    ray = geometry.Ray(numpy.array([3., 5, 0]), numpy.array([0., -1, 0]))
    nearest = curve_geometry.get_nearest_point(LINE, ray)
    numpy.testing.assert_allclose(nearest.position, [3, 0, 0], atol=1e-9)
    assert nearest.t == pytest.approx(0.3)
    assert nearest.distance == pytest.approx(0, abs=1e-9)


def test_nearest_point_to_offset_ray():
    ray = geometry.Ray(numpy.array([6., 5, 2]), numpy.array([0., -1, 0]))
    nearest = curve_geometry.get_nearest_point(LINE, ray)
    assert nearest.t == pytest.approx(0.6)
    assert nearest.distance == pytest.approx(2)


def test_up_vector_endpoints():
    start_up = numpy.array([0., 1, 0])
    end_up = numpy.array([0., 0, 1])
    numpy.testing.assert_allclose(curve_geometry.evaluate_up_vector(LINE, 0, start_up, end_up), start_up)
    numpy.testing.assert_allclose(curve_geometry.evaluate_up_vector(LINE, 1, start_up, end_up), end_up)
    for t in (0.1, 0.5, 0.93):
        up = curve_geometry.evaluate_up_vector(LINE, t, start_up, end_up)
        assert numpy.linalg.norm(up) == pytest.approx(1)
        assert up[0] == pytest.approx(0, abs=1e-9)


def test_up_vector_turns_toward_end():
    start_up = numpy.array([0., 1, 0])
    end_up = numpy.array([0., 0, 1])
    normals = curve_geometry.rotation_minimizing_normals(LINE, start_up, end_up)
    assert len(normals) == curve_geometry.NORMALS_PER_CURVE
    # the mismatch is unwound a little at a time, so consecutive frames stay close
    steps = [geometry.angle_between_vectors(a, b) for a, b in zip(normals[:-1], normals[1:])]
    assert max(steps) == pytest.approx(numpy.pi / 2 / (len(normals) - 1))


def test_propagated_frames_are_perpendicular():
    t = numpy.linspace(0, 1, 20)
    origins = WIGGLE.evaluate_position(t)
    tangents = geometry.normalize(WIGGLE.evaluate_tangent(t))
    start = numpy.cross(tangents[0], [0, 0, 1])
    normals = curve_geometry.propagate_frames(origins, tangents, geometry.normalize(start))
    numpy.testing.assert_allclose((normals * tangents).sum(axis=1), 0, atol=1e-9)
    numpy.testing.assert_allclose(numpy.linalg.norm(normals, axis=1), 1)

"""Test the three-point interpolators."""

import numpy
import pytest

from c2spline import interpolators


def _finite_difference(function, t, h=1e-6):
    return (function(t + h) - function(t - h)) / (2 * h)


def test_auto_selection():
    collinear = interpolators.make_interpolator([0, 0, 0], [1, 0, 0], [3, 0, 0])
    assert isinstance(collinear, interpolators.QuadraticBezierInterpolator)
    coincident = interpolators.make_interpolator([0, 0, 0], [0, 0, 0], [3, 0, 0])
    assert isinstance(coincident, interpolators.CircularInterpolator)
    assert coincident.is_linear
    arc = interpolators.make_interpolator([1, 0, 0], [0, 1, 0], [-1, 0, 0])
    assert isinstance(arc, interpolators.CircularInterpolator)
    assert not arc.is_linear
    forced = interpolators.make_interpolator([1, 0, 0], [0, 1, 0], [-1, 0, 0], 'quadratic')
    assert isinstance(forced, interpolators.QuadraticBezierInterpolator)


def test_bad_kind():
    with pytest.raises(ValueError):
        interpolators.make_interpolator([1, 0, 0], [0, 1, 0], [-1, 0, 0], 'cubic')


@pytest.mark.parametrize('b', ([1, 1, 0], [0.2, 1.5, 0.3], [1, 0, 0]))
def test_bezier_passes_through_points(b):
    a = numpy.array([0., 0, 0])
    b = numpy.array(b, dtype=float)
    c = numpy.array([3., 0, 0])
    interpolator = interpolators.QuadraticBezierInterpolator(a, b, c)
    assert 0 < interpolator.T < 1
    numpy.testing.assert_allclose(interpolator.evaluate(0), a, atol=1e-12)
    numpy.testing.assert_allclose(interpolator.evaluate(1), c, atol=1e-12)
    numpy.testing.assert_allclose(interpolator.evaluate(interpolator.T), b, atol=1e-9)


def test_symmetric_bezier():
    control_point, t = interpolators.bezier_control_point(numpy.array([0., 0, 0]),
        numpy.array([1., 1, 0]), numpy.array([2., 0, 0]))
    assert t == 0.5
    numpy.testing.assert_allclose(control_point, [1, 2, 0])


def test_degenerate_bezier():
    control_point, t = interpolators.bezier_control_point(numpy.array([0., 0, 0]),
        numpy.array([0., 0, 0]), numpy.array([2., 0, 0]))
    assert t == 0.5


def test_bezier_derivatives():
    interpolator = interpolators.QuadraticBezierInterpolator([0, 0, 0], [0.2, 1.5, 0.3], [3, 0, 0])
    for t in (0.1, 0.5, 0.8):
        numpy.testing.assert_allclose(interpolator.evaluate_first_derivative(t),
            _finite_difference(interpolator.evaluate, t), rtol=1e-5, atol=1e-6)
        numpy.testing.assert_allclose(interpolator.evaluate_second_derivative(t),
            _finite_difference(interpolator.evaluate_first_derivative, t), rtol=1e-5, atol=1e-6)


def test_cubic_root():
    # Bernstein coefficients of the straight line t - 0.25
    assert interpolators._cubic_root(-0.25, 1/3 - 0.25, 2/3 - 0.25, 0.75) == pytest.approx(0.25, abs=1e-5)
    assert interpolators._cubic_root(-1, -1/3, 1/3, 1) == 0.5


def test_circle():
    interpolator = interpolators.CircularInterpolator([1, 0, 0], [0, 1, 0], [-1, 0, 0])
    assert interpolator.T == pytest.approx(0.5)
    assert interpolator.radius == pytest.approx(1)
    assert interpolator.angle_range == pytest.approx(numpy.pi)
    numpy.testing.assert_allclose(interpolator.center, [0, 0, 0], atol=1e-12)
    numpy.testing.assert_allclose(interpolator.evaluate(0.5), [0, 1, 0], atol=1e-12)
    numpy.testing.assert_allclose(interpolator.evaluate(1), [-1, 0, 0], atol=1e-12)


def test_circle_major_arc():
    # b lies on the long way around from a to c
    interpolator = interpolators.CircularInterpolator([1, 0, 0], [-1, 0, 0], [0, 1, 0])
    assert interpolator.angle_range == pytest.approx(3 * numpy.pi / 2)
    assert interpolator.T == pytest.approx(2 / 3)
    numpy.testing.assert_allclose(interpolator.evaluate(interpolator.T), [-1, 0, 0], atol=1e-12)
    numpy.testing.assert_allclose(interpolator.evaluate(1), [0, 1, 0], atol=1e-12)


def test_circle_derivatives():
    interpolator = interpolators.CircularInterpolator([1, 0, 0], [0, 2, 1], [-1, 0, 3])
    for t in (0, 0.3, 0.9):
        numpy.testing.assert_allclose(interpolator.evaluate_first_derivative(t),
            _finite_difference(interpolator.evaluate, t), rtol=1e-5, atol=1e-6)
        numpy.testing.assert_allclose(interpolator.evaluate_second_derivative(t),
            _finite_difference(interpolator.evaluate_first_derivative, t), rtol=1e-5, atol=1e-6)


def test_coincident_points_are_linear():
    start = interpolators.CircularInterpolator([0, 0, 0], [0, 0, 0], [4, 0, 0])
    assert start.is_linear and start.T == 0
    end = interpolators.CircularInterpolator([0, 0, 0], [4, 0, 0], [4, 0, 0])
    assert end.is_linear and end.T == 1
    numpy.testing.assert_allclose(start.evaluate(0.25), [1, 0, 0])
    numpy.testing.assert_allclose(start.evaluate_first_derivative(0.25), [4, 0, 0])
    numpy.testing.assert_allclose(start.evaluate_second_derivative(0.25), [0, 0, 0])


def test_collinear_circle_is_linear():
    interpolator = interpolators.CircularInterpolator([0, 0, 0], [1, 0, 0], [4, 0, 0])
    assert interpolator.is_linear
    assert interpolator.T == pytest.approx(0.25)


def test_array_evaluation():
    interpolator = interpolators.CircularInterpolator([1, 0, 0], [0, 1, 0], [-1, 0, 0])
    assert interpolator.evaluate(numpy.linspace(0, 1, 5)).shape == (5, 3)
    twist = interpolators.ConstantTwistInterpolator(10, 20, 30)
    assert twist.evaluate(0.9) == 20
    numpy.testing.assert_array_equal(twist.evaluate(numpy.zeros(3)), [20, 20, 20])

"""Test spline-wide up vectors."""

import numpy
import pytest

from c2spline import normal_cache
from c2spline import spline_geometry
from c2spline.knot import Knot
from c2spline.normal_cache import NormalCache
from c2spline.spline import Spline


def test_degenerate_splines():
    for spline in (Spline(), Spline([(1, 2, 3)]), Spline([(1, 2, 3), (1, 2, 3)])):
        cache = NormalCache(spline)
        numpy.testing.assert_array_equal(cache.evaluate(0.5), [0, 1, 0])


def test_coincident_knots():
    # rounding gives two coincident knots a tiny nonzero length
    spline = Spline([(1, 2, 3), (1, 2, 3)])
    assert spline.get_length() <= normal_cache.MIN_LENGTH
    cache = NormalCache(spline)
    assert len(cache.normals) == 0
    ok, position, tangent, up = spline_geometry.evaluate(spline, 0.5)
    assert ok
    numpy.testing.assert_allclose(position, [1, 2, 3])
    numpy.testing.assert_array_equal(up, [0, 1, 0])


def test_straight_line_keeps_up():
    spline = Spline([(0, 0, 0), (10, 0, 0)])
    cache = NormalCache(spline, step_size=0.5)
    assert len(cache.normals) == int(spline.get_length() / 0.5)
    for t in (0, 0.33, 1):
        numpy.testing.assert_allclose(cache.evaluate(t), [0, 1, 0], atol=1e-9)


def test_initial_up_is_made_perpendicular():
    spline = Spline([(0, 0, 0), (10, 0, 0)])
    cache = NormalCache(spline, step_size=1, initial_up=(1, 1, 0))
    numpy.testing.assert_allclose(cache.evaluate(0), [0, 1, 0], atol=1e-9)
    # an up vector along the tangent is replaced by some perpendicular
    cache = NormalCache(spline, step_size=1, initial_up=(1, 0, 0))
    up = cache.evaluate(0.5)
    assert numpy.linalg.norm(up) == pytest.approx(1)
    assert up[0] == pytest.approx(0, abs=1e-9)


def test_twist():
    spline = Spline([Knot((0, 0, 0), 0), Knot((10, 0, 0), 90)])
    cache = NormalCache(spline, step_size=0.1)
    numpy.testing.assert_allclose(cache.evaluate(0), [0, 1, 0], atol=1e-9)
    numpy.testing.assert_allclose(cache.evaluate(1), [0, 0, 1], atol=1e-9)
    halfway = numpy.sqrt(0.5)
    numpy.testing.assert_allclose(cache.evaluate(0.5), [0, halfway, halfway], atol=1e-2)


def test_normals_are_perpendicular():
    spline = Spline([(0, 0, 0), (1, 2, 0), (3, 2.5, 1), (4, 0, 2), (6, -1, 1)])
    cache = NormalCache(spline, step_size=0.05)
    for t in numpy.linspace(0, 1, 13):
        up = cache.evaluate(t)
        tangent = spline_geometry.evaluate_tangent(spline, t)
        tangent /= numpy.linalg.norm(tangent)
        assert numpy.linalg.norm(up) == pytest.approx(1, abs=1e-2)
        assert numpy.dot(up, tangent) == pytest.approx(0, abs=0.05)


def test_spline_memoizes_cache():
    spline = Spline([(0, 0, 0), (1, 2, 0), (3, 2.5, 1)])
    cache = spline.get_normal_cache()
    assert cache.step_size == NormalCache.DEFAULT_STEP_SIZE
    assert spline.get_normal_cache() is cache
    coarse = spline.get_normal_cache(0.5)
    assert coarse is not cache
    assert coarse.step_size == 0.5
    spline.append((4, 0, 2))
    assert spline.get_normal_cache(0.5) is not coarse

import collections
import enum
import logging

import numpy

from . import curve_geometry
from .curve import Curve
from .interpolators import INTERPOLATION_KINDS
from .knot import Knot
from .normal_cache import NormalCache

logger = logging.getLogger(__name__)

BATCH_MODIFICATION = -1

class SplineModification(enum.Enum):
    DEFAULT = 'default'
    CLOSED_MODIFIED = 'closed_modified'
    KNOT_MODIFIED = 'knot_modified'
    KNOT_INSERTED = 'knot_inserted'
    KNOT_REMOVED = 'knot_removed'

SplineChange = collections.namedtuple('SplineChange',
    ['spline', 'modification', 'knot_index', 'previous_curve_length', 'next_curve_length'])
SplineChange.__doc__ = """Description of a change to a Spline, passed to change callbacks.

knot_index is BATCH_MODIFICATION when the change is not about one knot.
previous_curve_length and next_curve_length are the lengths, before the
change, of the curves arriving at and leaving from knot_index (None when
there was no such curve to measure)."""


class CurveCache:
    """Memoized data for the curve leaving one knot: its distance lookup table
    and the Curve itself. The cache is cold until warm() is called, and
    invalidate() makes it cold again."""
    def __init__(self, resolution=curve_geometry.LUT_RESOLUTION):
        self.lut = curve_geometry.make_distance_lut(resolution)
        self.curve = None

    @property
    def valid(self):
        return curve_geometry.lut_is_valid(self.lut)

    def invalidate(self):
        curve_geometry.invalidate_lut(self.lut)
        self.curve = None

    def warm(self, curve):
        """Compute the lookup table for the given curve, if the cache is cold."""
        if self.curve is None:
            self.curve = curve
        if not self.valid:
            curve_geometry.calculate_curve_lengths(self.curve, self.lut)


class Spline:
    """An ordered, mutable sequence of knots defining a Yuksel C2 spline.

    The spline consists of one curve per knot (for a closed spline) or one
    fewer (for an open one). The curve leaving knot i is built from knots
    i-1, i, i+1, i+2; indices wrap around for closed splines and are clamped
    to the ends for open splines.

    Curve lengths and distance lookup tables are computed lazily and memoized.
    Every mutation (insert, remove, set, resize, clear, closing or opening the
    spline, changing the interpolation) invalidates all of them, then notifies
    the registered change callbacks with a SplineChange record, which the
    mutating method also returns.

    Parameters:
        knots: iterable of Knot instances (or positions, which are converted to
            Knots with zero twist).
        closed: if True, the last knot connects back to the first.
        interpolation: 'auto', 'quadratic' or 'circular'; see
            interpolators.make_interpolator().
        lut_resolution: number of entries in each curve's distance lookup
            table, which is also the number of samples used to measure
            curve lengths.

    Example:
        spline = Spline([(0,0,0), (1,1,0), (2,0,0)])
        spline.get_length()
        spline.append(Knot((3,1,0), twist_angle=45))
    """
    def __init__(self, knots=(), closed=False, interpolation='auto', lut_resolution=curve_geometry.LUT_RESOLUTION):
        _check_interpolation(interpolation)
        self._knots = [_as_knot(k) for k in knots]
        self._closed = bool(closed)
        self._interpolation = interpolation
        self._lut_resolution = lut_resolution
        self._caches = [CurveCache(lut_resolution) for k in self._knots]
        self._length = -1.0
        self._normal_cache = None
        self._callbacks = []
        self._last_curve_lengths = (None, None)

    def copy(self):
        """Return a new Spline with the same knots and settings, but no
        change callbacks."""
        return Spline(self._knots, self._closed, self._interpolation, self._lut_resolution)

    def copy_from(self, other):
        """Replace the knots and settings of this spline with those of another."""
        if other is self:
            return None
        self._knots = list(other._knots)
        self._closed = other._closed
        self._interpolation = other._interpolation
        self._caches = [CurveCache(self._lut_resolution) for k in self._knots]
        return self.set_dirty(SplineModification.DEFAULT)

    def __len__(self):
        return len(self._knots)

    def __iter__(self):
        return iter(self._knots)

    def __contains__(self, knot):
        return knot in self._knots

    def __getitem__(self, index):
        return self._knots[index]

    def __setitem__(self, index, knot):
        self.set_knot(index, knot)

    def __repr__(self):
        return f'Spline({self._knots!r}, closed={self._closed})'

    def index(self, knot):
        return self._knots.index(knot)

    @property
    def knots(self):
        return tuple(self._knots)

    @knots.setter
    def knots(self, knots):
        self._knots = [_as_knot(k) for k in knots]
        self._caches = [CurveCache(self._lut_resolution) for k in self._knots]
        self.set_dirty(SplineModification.DEFAULT)

    @property
    def closed(self):
        return self._closed

    @closed.setter
    def closed(self, closed):
        closed = bool(closed)
        if closed == self._closed:
            return
        self._closed = closed
        self.set_dirty(SplineModification.CLOSED_MODIFIED)

    @property
    def lut_resolution(self):
        return self._lut_resolution

    @property
    def interpolation(self):
        return self._interpolation

    @interpolation.setter
    def interpolation(self, interpolation):
        _check_interpolation(interpolation)
        if interpolation == self._interpolation:
            return
        self._interpolation = interpolation
        self.set_dirty(SplineModification.DEFAULT)

    def add_change_callback(self, callback):
        """Register callback(change) to be called with a SplineChange after every mutation."""
        self._callbacks.append(callback)

    def remove_change_callback(self, callback):
        self._callbacks.remove(callback)

    def set_dirty(self, modification, knot_index=BATCH_MODIFICATION):
        """Invalidate all cached lengths and notify the change callbacks.

        Returns: the SplineChange passed to the callbacks."""
        self.invalidate_caches()
        previous_length, next_length = self._last_curve_lengths
        self._last_curve_lengths = (None, None)
        change = SplineChange(self, modification, knot_index, previous_length, next_length)
        for callback in list(self._callbacks):
            callback(change)
        return change

    def invalidate_caches(self):
        """Invalidate all cached lengths without notifying the change callbacks."""
        self._length = -1.0
        self._normal_cache = None
        for cache in self._caches:
            cache.invalidate()

    def _cache_knot_operation_curves(self, index):
        """Record the lengths of the curves around a knot that is about to change."""
        count = len(self._knots)
        if count <= 1:
            self._last_curve_lengths = (None, None)
            return
        previous_length = self.get_curve_length(self.previous_index(index))
        next_length = self.get_curve_length(index) if index < count else None
        self._last_curve_lengths = (previous_length, next_length)

    def insert(self, index, knot):
        """Insert a knot before position index (0 <= index <= len(spline))."""
        knot = _as_knot(knot)
        count = len(self._knots)
        if not 0 <= index <= count:
            raise IndexError(f'Knot insertion index {index} out of range for spline with {count} knots.')
        self._cache_knot_operation_curves(index)
        self._knots.insert(index, knot)
        self._caches.insert(index, CurveCache(self._lut_resolution))
        return self.set_dirty(SplineModification.KNOT_INSERTED, index)

    def append(self, knot):
        return self.insert(len(self._knots), knot)

    def insert_on_curve(self, index, curve_t):
        """Insert a new knot at position index, placed on the curve that
        currently arrives at that index, at curve parameter curve_t.

        The new knot's position and twist are taken from the current spline,
        which then changes shape to pass through it."""
        curve = self.get_curve(self.previous_index(index))
        curve_t = numpy.clip(curve_t, 0, 1)
        knot = Knot(curve.evaluate_position(curve_t), curve.evaluate_twist_angle(curve_t))
        return self.insert(index, knot)

    def remove_at(self, index):
        """Remove the knot at position index."""
        index = self._check_index(index)
        self._cache_knot_operation_curves(index)
        del self._knots[index]
        del self._caches[index]
        return self.set_dirty(SplineModification.KNOT_REMOVED, index)

    def remove(self, knot):
        """Remove the first knot equal to the given knot.

        Returns: True if a knot was removed, False if none was found."""
        try:
            index = self._knots.index(knot)
        except ValueError:
            return False
        self.remove_at(index)
        return True

    def set_knot(self, index, knot):
        """Replace the knot at position index."""
        index = self._check_index(index)
        knot = _as_knot(knot)
        self._cache_knot_operation_curves(index)
        self._knots[index] = knot
        return self.set_dirty(SplineModification.KNOT_MODIFIED, index)

    def set_knot_no_notify(self, index, knot):
        """Replace the knot at position index without invalidating caches or
        notifying callbacks. The caller must call set_dirty() afterward."""
        self._knots[self._check_index(index)] = _as_knot(knot)

    def clear(self):
        self._knots.clear()
        self._caches.clear()
        return self.set_dirty(SplineModification.KNOT_REMOVED)

    def resize(self, new_size):
        """Grow the spline by appending default knots at the origin, or shrink
        it by removing knots from the end."""
        new_size = max(0, new_size)
        while len(self._knots) < new_size:
            self.append(Knot())
        while len(self._knots) > new_size:
            self.remove_at(len(self._knots) - 1)

    def _check_index(self, index):
        count = len(self._knots)
        if not -count <= index < count:
            raise IndexError(f'Knot index {index} out of range for spline with {count} knots.')
        return index % count

    def previous_index(self, index):
        return previous_index(index, len(self._knots), self._closed)

    def next_index(self, index):
        return next_index(index, len(self._knots), self._closed)

    def get_curve_count(self):
        return max(0, len(self._knots) - (0 if self._closed else 1))

    def get_curve(self, index, matrix=None):
        """Return the Curve leaving knot index.

        Parameters:
            index: knot index, 0 <= index < len(spline)
            matrix: optional 4x4 transform applied to the knot positions. Curves
                built without a matrix are memoized until the next mutation.
        """
        index = self._check_index(index)
        if matrix is None and self._caches[index].curve is not None:
            return self._caches[index].curve
        p0, p1, p2, p3 = get_curve_knot_indices(index, len(self._knots), self._closed)
        knots = self._knots
        curve = Curve(knots[p0], knots[p1], knots[p2], knots[p3], matrix=matrix, interpolation=self._interpolation)
        if matrix is None:
            self._caches[index].curve = curve
        return curve

    def get_curve_distance_lut(self, index):
        """Return the (memoized) distance lookup table of the curve leaving knot index."""
        index = self._check_index(index)
        cache = self._caches[index]
        if not cache.valid:
            cache.warm(self.get_curve(index))
            logger.debug('Computed distance lookup table for curve %d: length %g', index, cache.lut['distance'][-1])
        return cache.lut

    def get_curve_length(self, index):
        lut = self.get_curve_distance_lut(index)
        return float(lut['distance'][-1]) if len(lut) > 0 else 0.0

    def get_length(self):
        """Return the total length of the spline: the sum of its curve lengths."""
        if self._length < 0:
            self._length = sum(self.get_curve_length(i) for i in range(self.get_curve_count()))
        return self._length

    def get_curve_interpolation(self, index, curve_distance):
        """Return the parameter at which the curve leaving knot index reaches the given distance."""
        return curve_geometry.get_distance_to_interpolation(self.get_curve_distance_lut(index), curve_distance)

    def warmup(self):
        """Compute every curve's lookup table and the total length ahead of
        time, so that subsequent queries only read cached values."""
        self.get_length()

    def get_normal_cache(self, step_size=None):
        """Return a NormalCache of up vectors along the spline, memoized until
        the next mutation or a request with a different step size."""
        if step_size is None:
            step_size = NormalCache.DEFAULT_STEP_SIZE
        if self._normal_cache is None or self._normal_cache.step_size != step_size:
            self._normal_cache = NormalCache(self, step_size)
        return self._normal_cache


def get_curve_knot_indices(index, knot_count, closed):
    """Return the indices (p0, p1, p2, p3) of the four knots that define the
    curve leaving knot index, wrapping for closed splines and clamping for open ones."""
    if closed:
        return ((index - 1) % knot_count, index, (index + 1) % knot_count, (index + 2) % knot_count)
    return (max(index - 1, 0), index, min(index + 1, knot_count - 1), min(index + 2, knot_count - 1))

def previous_index(index, count, wrap):
    return (index + count - 1) % count if wrap else max(index - 1, 0)

def next_index(index, count, wrap):
    return (index + 1) % count if wrap else min(index + 1, count - 1)

def _as_knot(value):
    return value if isinstance(value, Knot) else Knot(value)

def _check_interpolation(interpolation):
    if interpolation not in INTERPOLATION_KINDS:
        raise ValueError(f'Interpolation kind must be one of {INTERPOLATION_KINDS}, not {interpolation!r}.')

import logging

import numpy

from . import curve_geometry
from . import geometry
from . import spline_geometry

logger = logging.getLogger(__name__)

# splines shorter than this have no usable tangent
MIN_LENGTH = 1e-9

class NormalCache:
    """Up vectors sampled along a whole spline.

    A rotation-minimizing frame is propagated from initial_up at the start of
    the spline through evenly-spaced spline parameters, about one per
    step_size of arclength, and each frame's normal is then rotated about the
    tangent by the spline's twist angle at that point. evaluate() linearly
    interpolates between the stored normals.

    The cache reflects the spline at construction time; Spline.get_normal_cache()
    rebuilds it after the spline changes.

    Parameters:
        spline: Spline instance
        step_size: approximate arclength between stored normals
        initial_up: up vector at the start of the spline; it is projected to
            be perpendicular to the starting tangent.
    """
    DEFAULT_STEP_SIZE = 0.01

    def __init__(self, spline, step_size=DEFAULT_STEP_SIZE, initial_up=(0, 1, 0)):
        self.step_size = step_size
        self.normals = numpy.empty((0, 3))
        if len(spline) < 2:
            return
        length = spline.get_length()
        if length <= MIN_LENGTH:
            return
        num = max(2, int(length / step_size))
        t = numpy.linspace(0, 1, num)
        origins = numpy.array([spline_geometry.evaluate_position(spline, ti) for ti in t])
        tangents = geometry.normalize(numpy.array([spline_geometry.evaluate_tangent(spline, ti) for ti in t]))
        twists = numpy.array([spline_geometry.evaluate_twist_angle(spline, ti) for ti in t])
        start_up = numpy.asarray(initial_up, dtype=float)
        start_up = start_up - start_up.dot(tangents[0]) * tangents[0]
        if numpy.sqrt((start_up**2).sum()) < 1e-6:
            # initial_up runs along the tangent: use the axis least aligned with it
            axis = numpy.eye(3)[numpy.abs(tangents[0]).argmin()]
            start_up = numpy.cross(tangents[0], axis)
        start_up = geometry.normalize(start_up)
        normals = curve_geometry.propagate_frames(origins, tangents, start_up)
        self.normals = geometry.rotate_about_axis(normals, tangents, numpy.radians(twists))
        logger.debug('Populated normal cache with %d normals over length %g', num, length)

    def evaluate(self, spline_t):
        """Return the up vector at normalized spline parameter spline_t.

        Returns +y if the cache is empty (the spline had fewer than two knots, or
        was no longer than MIN_LENGTH)."""
        if len(self.normals) < 2:
            return numpy.array([0., 1, 0])
        position = min(max(spline_t, 0), 1) * (len(self.normals) - 1)
        i = min(int(position), len(self.normals) - 2)
        fraction = position - i
        return self.normals[i] + (self.normals[i+1] - self.normals[i]) * fraction

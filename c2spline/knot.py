import numpy

from . import geometry

class Knot:
    """A spline control point: a position and a twist angle (in degrees) about
    the local tangent of the spline.

    Unlike the knots of a Bezier spline, a Knot carries no tangent handles: the
    spline passes through every knot position, but the tangent there is set by
    the neighboring knots.

    Knots are values: they compare equal when their positions and twist
    angles are identical, and the position array is read-only.
    """
    __slots__ = ('position', 'twist_angle')

    def __init__(self, position=(0, 0, 0), twist_angle=0.0):
        position = numpy.array(position, dtype=float)
        if position.shape != (3,):
            raise ValueError('Knot position must be a 3-dimensional point.')
        position.setflags(write=False)
        object.__setattr__(self, 'position', position)
        object.__setattr__(self, 'twist_angle', float(twist_angle))

    def __setattr__(self, name, value):
        raise AttributeError('Knot objects are immutable.')

    def transform(self, matrix):
        """Return a new Knot with its position multiplied by a 4x4 matrix."""
        return Knot(geometry.transform_points(matrix, self.position), self.twist_angle)

    def __add__(self, offset):
        return Knot(self.position + offset, self.twist_angle)

    def __sub__(self, offset):
        return Knot(self.position - offset, self.twist_angle)

    def __eq__(self, other):
        if not isinstance(other, Knot):
            return NotImplemented
        return numpy.array_equal(self.position, other.position) and self.twist_angle == other.twist_angle

    def __hash__(self):
        return hash((tuple(self.position), self.twist_angle))

    def __repr__(self):
        x, y, z = self.position
        return f'Knot(({x}, {y}, {z}), twist_angle={self.twist_angle})'

'''
# c2spline

Evaluation of Cem Yuksel's C2-continuous interpolating splines in 3d.

A spline passes through every one of its knots. Each span between two knots
is blended from two three-point interpolators (one through the knots before
and after the span's start, one through the knots around its end), which
makes the spline curvature-continuous without any tangent handles to edit.

Modules
-------
 - knot: the Knot value type (position plus twist angle).
 - interpolators: the three-point interpolators spans are blended from
   (quadratic Bezier, circular arc, constant twist).
 - curve: the Curve class, one blended span defined by four knots.
 - curve_geometry: sampling, length, distance lookup tables, nearest points
   and rotation-minimizing up vectors for a single Curve.
 - spline: the Spline container, with memoized curve lengths and change
   notifications.
 - spline_geometry: evaluation, nearest points and unit conversions along a
   whole Spline, addressed by a normalized arclength parameter.
 - normal_cache: up vectors (including knot twist) sampled along a Spline.
 - geometry: basic vector algorithms shared by the above.
'''

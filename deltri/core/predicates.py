"""Geometric predicates: orientation, collinear ordering, in-circle.

Two numeric families are provided and selected once per triangulation:

- ``InexactPredicates`` works on floats and treats values inside a relative
  band around zero as degenerate (collinear / cocircular / coincident).
  Coordinates above MAX_INEXACT_COORD in magnitude are rejected.
- ``ExactPredicates`` works on Python ints and ``fractions.Fraction``; every
  comparison is exact and there is no band. Finite floats are accepted and
  converted to their exact rational value.

Both families agree in sign for any input where the float family is outside
its band.
"""
from __future__ import annotations

import enum
import math
import numbers
from fractions import Fraction
from typing import Tuple

from .constants import EPS_ORIENT, EPS_IN_CIRCLE, EPS_COINCIDENT, MAX_INEXACT_COORD
from .errors import InvalidPositionError


class Orientation(enum.Enum):
    CLOCKWISE = -1
    COLLINEAR = 0
    COUNTER_CLOCKWISE = 1

    def is_cw(self) -> bool:
        return self is Orientation.CLOCKWISE

    def is_collinear(self) -> bool:
        return self is Orientation.COLLINEAR

    def is_ccw(self) -> bool:
        return self is Orientation.COUNTER_CLOCKWISE


class CollinearTest(enum.Enum):
    """Position of a point c on the line through a and b."""
    BEFORE = -1
    FIRST = 0
    BETWEEN = 1
    SECOND = 2
    AFTER = 3

    def is_before(self) -> bool:
        return self is CollinearTest.BEFORE

    def is_first(self) -> bool:
        return self is CollinearTest.FIRST

    def is_between(self) -> bool:
        return self is CollinearTest.BETWEEN

    def is_second(self) -> bool:
        return self is CollinearTest.SECOND

    def is_after(self) -> bool:
        return self is CollinearTest.AFTER


class InCircle(enum.Enum):
    OUTSIDE = -1
    COCIRCULAR = 0
    INSIDE = 1

    def is_inside(self) -> bool:
        return self is InCircle.INSIDE

    def is_cocircular(self) -> bool:
        return self is InCircle.COCIRCULAR

    def is_outside(self) -> bool:
        return self is InCircle.OUTSIDE


def _split_position(p) -> Tuple[object, object]:
    """Return the raw (x, y) of a 2-sequence, numpy array or x/y object."""
    if p is None:
        raise InvalidPositionError("position is None")
    if hasattr(p, 'x') and hasattr(p, 'y') and not hasattr(p, '__len__'):
        return p.x, p.y
    try:
        x, y = p
    except (TypeError, ValueError) as e:
        raise InvalidPositionError(f"position must have exactly two coordinates, got {p!r}") from e
    return x, y


class Predicates:
    """Base class of a predicate family.

    Subclasses provide coordinate coercion and the decision rules around zero;
    the combinatorial parts (collinear ordering, segment intersection
    parameter) are shared here.
    """

    exact = False

    def coerce(self, value):
        raise NotImplementedError("Subclasses must implement coerce")

    def validate_position(self, p):
        """Return the canonical ``(x, y)`` tuple of p or raise InvalidPositionError."""
        x, y = _split_position(p)
        return (self.coerce(x), self.coerce(y))

    # -- decision rules -------------------------------------------------
    def _orient_sign(self, det, magnitude) -> int:
        raise NotImplementedError

    def _in_circle_sign(self, det, permanent) -> int:
        raise NotImplementedError

    def _divide(self, num, den):
        raise NotImplementedError

    # -- predicates -----------------------------------------------------
    def orientation_triangle(self, a, b, c) -> Orientation:
        """Orientation of c relative to the directed line a->b."""
        bax = b[0] - a[0]
        bay = b[1] - a[1]
        cax = c[0] - a[0]
        cay = c[1] - a[1]
        lhs = bax * cay
        rhs = bay * cax
        s = self._orient_sign(lhs - rhs, abs(lhs) + abs(rhs))
        if s > 0:
            return Orientation.COUNTER_CLOCKWISE
        if s < 0:
            return Orientation.CLOCKWISE
        return Orientation.COLLINEAR

    def test_coincident_points(self, a, b) -> bool:
        raise NotImplementedError

    def distance_sq(self, a, b):
        dx = a[0] - b[0]
        dy = a[1] - b[1]
        return dx * dx + dy * dy

    def test_collinear_points(self, a, b, c) -> CollinearTest:
        """Order c along the segment a-b.

        The caller guarantees a and b are not coincident and c is collinear with
        them. A point coincident with an endpoint reports that endpoint; when it
        is coincident with both the nearer one wins.
        """
        on_a = self.test_coincident_points(a, c)
        on_b = self.test_coincident_points(b, c)
        if on_a and on_b:
            if self.distance_sq(a, c) <= self.distance_sq(b, c):
                return CollinearTest.FIRST
            return CollinearTest.SECOND
        if on_a:
            return CollinearTest.FIRST
        if on_b:
            return CollinearTest.SECOND

        # Project on the dominant axis of a->b
        abx = b[0] - a[0]
        aby = b[1] - a[1]
        if abs(abx) >= abs(aby):
            t, length = c[0] - a[0], abx
        else:
            t, length = c[1] - a[1], aby
        if length < 0:
            t, length = -t, -length
        if t < 0:
            return CollinearTest.BEFORE
        if t > length:
            return CollinearTest.AFTER
        return CollinearTest.BETWEEN

    def test_in_circle(self, a, b, c, d) -> InCircle:
        """Position of d relative to the circumcircle of the CCW triangle a, b, c."""
        adx = a[0] - d[0]
        ady = a[1] - d[1]
        bdx = b[0] - d[0]
        bdy = b[1] - d[1]
        cdx = c[0] - d[0]
        cdy = c[1] - d[1]

        alift = adx * adx + ady * ady
        blift = bdx * bdx + bdy * bdy
        clift = cdx * cdx + cdy * cdy

        bc1, bc2 = bdx * cdy, cdx * bdy
        ca1, ca2 = cdx * ady, adx * cdy
        ab1, ab2 = adx * bdy, bdx * ady

        det = alift * (bc1 - bc2) + blift * (ca1 - ca2) + clift * (ab1 - ab2)
        permanent = (alift * (abs(bc1) + abs(bc2))
                     + blift * (abs(ca1) + abs(ca2))
                     + clift * (abs(ab1) + abs(ab2)))
        s = self._in_circle_sign(det, permanent)
        if s > 0:
            return InCircle.INSIDE
        if s < 0:
            return InCircle.OUTSIDE
        return InCircle.COCIRCULAR

    def segment_intersection(self, a, b, c, d):
        """Crossing point of segments a-b and c-d.

        The caller guarantees the segments cross properly (c and d strictly on
        opposite sides of a-b and vice versa).
        """
        rx, ry = b[0] - a[0], b[1] - a[1]
        sx, sy = d[0] - c[0], d[1] - c[1]
        den = rx * sy - ry * sx
        num = (c[0] - a[0]) * sy - (c[1] - a[1]) * sx
        t = self._divide(num, den)
        return (self._normalize(a[0] + t * rx), self._normalize(a[1] + t * ry))

    def _normalize(self, value):
        return value


class InexactPredicates(Predicates):
    """Float predicates with relative tolerance bands."""

    exact = False

    def coerce(self, value):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidPositionError(f"coordinate must be a real number, got {value!r}")
        v = float(value)
        if not math.isfinite(v):
            raise InvalidPositionError(f"coordinate must be finite, got {value!r}")
        if abs(v) > MAX_INEXACT_COORD:
            raise InvalidPositionError(f"coordinate {value!r} exceeds the float range limit {MAX_INEXACT_COORD:g}")
        return v

    def _orient_sign(self, det, magnitude) -> int:
        if abs(det) <= EPS_ORIENT * magnitude:
            return 0
        return 1 if det > 0 else -1

    def _in_circle_sign(self, det, permanent) -> int:
        if abs(det) <= EPS_IN_CIRCLE * permanent:
            return 0
        return 1 if det > 0 else -1

    def _divide(self, num, den):
        return num / den

    def test_coincident_points(self, a, b) -> bool:
        scale = max(abs(a[0]), abs(a[1]), abs(b[0]), abs(b[1]))
        tol = EPS_COINCIDENT * scale
        return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


class ExactPredicates(Predicates):
    """Integer / rational predicates without tolerance."""

    exact = True

    def coerce(self, value):
        if isinstance(value, bool):
            raise InvalidPositionError(f"coordinate must be a number, got {value!r}")
        if isinstance(value, numbers.Integral):
            return int(value)
        if isinstance(value, numbers.Rational):
            return self._normalize(Fraction(value.numerator, value.denominator))
        if isinstance(value, numbers.Real):
            v = float(value)
            if not math.isfinite(v):
                raise InvalidPositionError(f"coordinate must be finite, got {value!r}")
            return self._normalize(Fraction(v))
        raise InvalidPositionError(f"coordinate is not representable exactly: {value!r}")

    def _orient_sign(self, det, magnitude) -> int:
        return (det > 0) - (det < 0)

    def _in_circle_sign(self, det, permanent) -> int:
        return (det > 0) - (det < 0)

    def _divide(self, num, den):
        return Fraction(num) / Fraction(den)

    def _normalize(self, value):
        if isinstance(value, Fraction) and value.denominator == 1:
            return int(value.numerator)
        return value

    def test_coincident_points(self, a, b) -> bool:
        return a[0] == b[0] and a[1] == b[1]


def make_predicates(exact: bool = False) -> Predicates:
    return ExactPredicates() if exact else InexactPredicates()


__all__ = [
    'Orientation', 'CollinearTest', 'InCircle',
    'Predicates', 'InexactPredicates', 'ExactPredicates', 'make_predicates',
]

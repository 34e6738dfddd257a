"""Line segment primitive.

A Line is the segment between two points. Zero-length lines are legal;
metrics that would divide by the squared length treat such a line as its
single endpoint.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Self

from pydantic import BaseModel
from shapely.geometry.base import BaseGeometry

from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry.intersection import (
    Geometry,
    IntersectResult,
    OutlineSegment,
    intersect,
    line_descriptor,
    linear_segment,
)
from sketchgeom.geometry.matrix import Matrix
from sketchgeom.geometry.point import Point

# Length of a cast ray: the largest integer a double represents exactly.
RAY_LENGTH = float(2**53 - 1)


class Line(BaseModel, frozen=True):
    """An immutable line segment from ``p1`` to ``p2``.

    Attributes:
        p1: Start point.
        p2: End point.
    """

    p1: Point
    p2: Point

    @classmethod
    def ray(cls, origin: Point, direction: Point) -> Self:
        """Build a segment from ``origin`` reaching far along ``direction``.

        The direction is normalized first; a zero direction yields a
        zero-length line at ``origin``.
        """
        return cls(p1=origin, p2=origin.add(direction.normalize().multiply(RAY_LENGTH)))

    @classmethod
    def from_points(cls, points: Sequence[Any]) -> Self:
        """Create a Line from the first two entries of a point sequence.

        Raises:
            MalformedSourceError: If fewer than two points are given.
        """
        if not isinstance(points, list | tuple) or len(points) < 2:
            raise MalformedSourceError(
                f"Line.from_points: {points!r} is not a valid source", points
            )
        return cls(p1=Point.from_source(points[0]), p2=Point.from_source(points[1]))

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    @property
    def length(self) -> float:
        return self.to_vector().length()

    @property
    def direction(self) -> Point:
        """Unit vector from p1 to p2 (ZERO for a zero-length line)."""
        return self.to_vector().normalize()

    @property
    def mid(self) -> Point:
        return Point(x=(self.p1.x + self.p2.x) / 2, y=(self.p1.y + self.p2.y) / 2)

    @property
    def reverse(self) -> Line:
        return Line(p1=self.p2, p2=self.p1)

    def to_vector(self) -> Point:
        return self.p2.subtract(self.p1)

    def _clamped_parameter(self, point: Point) -> float | None:
        """Projection parameter of ``point`` clamped to [0, 1]."""
        dx = self.p2.x - self.p1.x
        dy = self.p2.y - self.p1.y
        squared = dx * dx + dy * dy
        if squared == 0:
            return None
        t = ((point.x - self.p1.x) * dx + (point.y - self.p1.y) * dy) / squared
        return min(1.0, max(0.0, t))

    def distance_to(self, point: Point) -> float:
        """Distance from ``point`` to the nearest point of the segment."""
        return self.nearest_point_to(point).distance_to(point)

    def perp_distance_to(self, point: Point) -> float:
        """Signed distance from ``point`` to the infinite line.

        The sign tells which side of the line the point is on.
        """
        a, b = self.p1, self.p2
        squared = (b.x - a.x) ** 2 + (b.y - a.y) ** 2
        if squared == 0:
            return a.distance_to(point)
        s = ((a.y - point.y) * (b.x - a.x) - (a.x - point.x) * (b.y - a.y)) / squared
        return s * math.sqrt(squared)

    def nearest_point_to(self, point: Point) -> Point:
        """Closest point of the segment to ``point``."""
        t = self._clamped_parameter(point)
        if t is None or t == 0:
            return self.p1
        if t == 1:
            return self.p2
        return Point(
            x=(1 - t) * self.p1.x + t * self.p2.x,
            y=(1 - t) * self.p1.y + t * self.p2.y,
        )

    def project(self, point: Point) -> Point:
        """Project ``point`` onto the segment (clamped to its endpoints)."""
        t = self._clamped_parameter(point)
        if t is None:
            return self.p1
        return Point(
            x=self.p1.x + (self.p2.x - self.p1.x) * t,
            y=self.p1.y + (self.p2.y - self.p1.y) * t,
        )

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def coincident_with(self, other: Line) -> bool:
        """True if both lines share endpoints in either direction."""
        return self == other or self == other.reverse

    def connects_with(self, other: Line) -> bool:
        """True if the lines share at least one endpoint."""
        return any(mine == theirs for mine in self.to_tuple() for theirs in other.to_tuple())

    # ------------------------------------------------------------------
    # Derived shapes
    # ------------------------------------------------------------------

    def extend(self, amount: float) -> Line:
        """Push both endpoints outward along the line by ``amount``."""
        v = self.direction
        return Line(p1=self.p1.add(v.multiply(-amount)), p2=self.p2.add(v.multiply(amount)))

    def extrude(self, lhs: float, rhs: float = 0) -> list[Point]:
        """Quad offset ``lhs`` to one side of the line and ``rhs`` to the other.

        Returns the corners in order p1+lhs, p2+lhs, p2-rhs, p1-rhs, which is
        the outline of a stroke drawn along this centerline.
        """
        normal = self.to_vector().perp().normalize()
        return [
            self.p1.add(normal.multiply(lhs)),
            self.p2.add(normal.multiply(lhs)),
            self.p2.add(normal.multiply(-rhs)),
            self.p1.add(normal.multiply(-rhs)),
        ]

    def transform(self, matrix: Matrix) -> Line:
        return Line(p1=matrix.apply_point(self.p1), p2=matrix.apply_point(self.p2))

    def rotate(self, origin: Point, radians: float) -> Line:
        """Rotate the line about ``origin``."""
        return self.transform(
            Matrix.IDENTITY.translate(origin).rotate(radians).translate(origin.inverse())
        )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def intersects(self, other: Geometry) -> bool:
        return self.intersect_points(other) is not None

    def intersect_points(self, other: Geometry) -> IntersectResult:
        return intersect(self, other)

    def intersect_point(self, other: Geometry) -> Point | None:
        """First intersection point with ``other``, if any."""
        result = self.intersect_points(other)
        return result[0] if result else None

    def to_shape_descriptor(self) -> BaseGeometry:
        return line_descriptor(self.p1, self.p2)

    def outline_segments(self) -> list[OutlineSegment]:
        return [linear_segment(self.p1, self.p2)]

    def to_tuple(self) -> tuple[Point, Point]:
        return (self.p1, self.p2)

    def __str__(self) -> str:
        return f"{self.p1} -> {self.p2}"

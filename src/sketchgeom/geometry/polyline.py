"""Polyline: an ordered chain of points.

The point sequence is frozen at construction. A polyline is *closed* when
its first and last points are equal; there is no separate flag. Zero-length
steps between duplicate adjacent points are skipped when deriving lines.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Literal, Self

from pydantic import BaseModel, field_validator
from shapely.geometry.base import BaseGeometry

from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry.intersection import (
    Geometry,
    IntersectResult,
    OutlineSegment,
    chain_segments,
    intersect,
    polyline_descriptor,
)
from sketchgeom.geometry.line import Line
from sketchgeom.geometry.matrix import Matrix
from sketchgeom.geometry.numeric import EPSILON, KAPPA
from sketchgeom.geometry.path import (
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    Path,
    PathCommand,
    QuadTo,
)
from sketchgeom.geometry.point import Point
from sketchgeom.geometry.rect import Rect

RoundingMethod = Literal["quadratic", "cubic"]


class Polyline(BaseModel, frozen=True):
    """An immutable chain of at least one point.

    Attributes:
        points: The vertices in order.
    """

    points: tuple[Point, ...]

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> tuple[Point, ...]:
        points = Point.many_from(value)
        if not points:
            raise MalformedSourceError("Polyline must have at least one point", value)
        return tuple(points)

    @classmethod
    def from_points(cls, points: Any, close: bool = False) -> Self:
        """Build a polyline from anything that has points.

        Args:
            points: A point sequence or an object exposing points.
            close: Append the first point when the chain is not closed.
        """
        resolved = Point.many_from(points)
        if close and len(resolved) > 1 and resolved[0] != resolved[-1]:
            resolved.append(resolved[0])
        return cls(points=resolved)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def lines(self) -> list[Line]:
        """Segments between consecutive distinct points."""
        return [
            Line(p1=a, p2=b)
            for a, b in zip(self.points, self.points[1:], strict=False)
            if a != b
        ]

    @property
    def length(self) -> float:
        return sum(line.length for line in self.lines)

    @property
    def closed(self) -> bool:
        return self.points[0] == self.points[-1]

    @property
    def bounds(self) -> Rect:
        return Rect.from_points(self.points)

    @property
    def center(self) -> Point:
        """Centroid of the vertices (not of the enclosed area)."""
        return Point.average(self.points)

    # Extremes; ties go to the first point encountered.
    @property
    def left(self) -> Point:
        return min(self.points, key=lambda p: p.x)

    @property
    def right(self) -> Point:
        return max(self.points, key=lambda p: p.x)

    @property
    def top(self) -> Point:
        return min(self.points, key=lambda p: p.y)

    @property
    def bottom(self) -> Point:
        return max(self.points, key=lambda p: p.y)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, item: Any) -> bool:
        """True if every point of ``item`` lies inside the polyline.

        Points within 1e-5 of an edge count as inside. Otherwise a
        horizontal ray is cast from the point towards +X and the point is
        inside when it crosses an odd number of edges. An edge counts when
        exactly one of its ends lies strictly below the ray, so a ray
        through a vertex is counted once.
        """
        bounds = self.bounds
        lines = self.lines
        for pt in Point.many_from(item):
            if not bounds.contains(pt):
                return False
            crossings = 0
            for line in lines:
                if line.distance_to(pt) < EPSILON:
                    crossings = 1
                    break
                a, b = line.p1, line.p2
                if (a.y > pt.y) != (b.y > pt.y):
                    x = a.x + (pt.y - a.y) * (b.x - a.x) / (b.y - a.y)
                    if x >= pt.x:
                        crossings += 1
            if crossings % 2 == 0:
                return False
        return True

    def nearest_point_to(self, point: Point) -> Point:
        """Closest point on the chain; the only vertex if it has no lines."""
        candidates = [line.nearest_point_to(point) for line in self.lines]
        if not candidates:
            return self.points[0]
        return min(candidates, key=point.distance_to)

    def distance_to(self, point: Point) -> float:
        return self.nearest_point_to(point).distance_to(point)

    # ------------------------------------------------------------------
    # Derived shapes
    # ------------------------------------------------------------------

    def inflate(self, amount: float) -> Polyline:
        """Move every vertex ``amount`` away from the centroid.

        This is a radial push, not an edge-normal polygon offset; edges do
        not stay parallel for non-regular shapes.
        """
        center = self.center
        return Polyline(
            points=[p.add(p.subtract(center).normalize().multiply(amount)) for p in self.points]
        )

    def transform(self, matrix: Matrix) -> Polyline:
        return Polyline(points=matrix.apply_points(self.points))

    def to_path(self, close: bool = True) -> Path:
        """Straight-edged path through every vertex."""
        commands: list[PathCommand] = [MoveTo(point=self.points[0])]
        commands.extend(LineTo(point=p) for p in self.points[1:])
        if close:
            commands.append(ClosePath())
        return Path(commands=commands)

    def to_rounded_path(
        self,
        method: RoundingMethod,
        factor: float | Sequence[float],
        close: bool = True,
    ) -> Path:
        """Path with every corner rounded.

        At each vertex the curve starts and ends ``r`` away from the vertex
        along both adjacent lines, where ``r`` is the smaller of the corner
        factor and half of each adjacent line. ``quadratic`` uses the
        vertex as the control point; ``cubic`` pulls its two control points
        ``r * KAPPA`` towards the vertex, approximating a circular arc.

        Args:
            method: "quadratic" or "cubic".
            factor: Rounding radius, either one value for every corner or
                one per corner (missing entries are 0).
            close: Append a close command.

        Returns:
            The rounded path, or ``to_path(close)`` when there is nothing
            to round (zero or negative radius, empty factor list).
        """
        if isinstance(factor, Sequence):
            if not factor:
                return self.to_path(close)
            per_corner = list(factor)

            def radius_at(i: int) -> float:
                return per_corner[i] if i < len(per_corner) else 0
        else:
            if not factor or factor < 0:
                return self.to_path(close)
            scalar = factor

            def radius_at(i: int) -> float:
                return scalar

        lines = self.lines
        if not lines:
            return self.to_path(close)

        commands: list[PathCommand] = []
        for i, a in enumerate(lines):
            b = lines[(i + 1) % len(lines)]
            r = min(a.length / 2, b.length / 2, radius_at(i))

            vertex = a.p2
            start = vertex.add(Point.vector(vertex, a.p1).normalize().multiply(r))
            end = vertex.add(Point.vector(vertex, b.p2).normalize().multiply(r))

            commands.append(MoveTo(point=start) if i == 0 else LineTo(point=start))
            if method == "quadratic":
                commands.append(QuadTo(control=vertex, end=end))
            else:
                pull = r * KAPPA
                commands.append(
                    CubicTo(
                        control1=start.add(Point.vector(start, vertex).normalize().multiply(pull)),
                        control2=end.add(Point.vector(end, vertex).normalize().multiply(pull)),
                        end=end,
                    )
                )

        if close:
            commands.append(ClosePath())
        return Path(commands=commands)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def intersects(self, other: Geometry) -> bool:
        return self.intersect_points(other) is not None

    def intersect_points(self, other: Geometry) -> IntersectResult:
        return intersect(self, other)

    def to_shape_descriptor(self) -> BaseGeometry:
        return polyline_descriptor(self.points)

    def outline_segments(self) -> list[OutlineSegment]:
        return chain_segments(self.points)

    def __iter__(self) -> Iterator[Point]:  # type: ignore[override]
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

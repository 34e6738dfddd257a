"""Axis-aligned rectangle primitive.

A Rect is stored as ``left, top, width, height``. Width and height may be
negative (an unnormalized rect, e.g. one dragged up-left); ``normalize()``
returns the equivalent rect with non-negative size. ``right`` and
``bottom`` are always ``left + width`` and ``top + height``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Self

from pydantic import BaseModel, ValidationError
from shapely.geometry.base import BaseGeometry

from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry.intersection import (
    Geometry,
    IntersectResult,
    OutlineSegment,
    chain_segments,
    intersect,
    rect_descriptor,
)
from sketchgeom.geometry.line import Line
from sketchgeom.geometry.matrix import Matrix
from sketchgeom.geometry.numeric import format_number, round_to
from sketchgeom.geometry.point import Point, PointSource, is_point_like

if TYPE_CHECKING:
    from sketchgeom.geometry.path import Path
    from sketchgeom.geometry.polyline import Polyline

_NUMBER_TOKEN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

_RECT_FIELDS = ("left", "top", "width", "height")


def _rect_fields(source: Any) -> tuple[Any, ...] | None:
    if isinstance(source, Mapping):
        if all(name in source for name in _RECT_FIELDS):
            return tuple(source[name] for name in _RECT_FIELDS)
        return None
    if all(hasattr(source, name) for name in _RECT_FIELDS):
        return tuple(getattr(source, name) for name in _RECT_FIELDS)
    return None


class Rect(BaseModel, frozen=True):
    """An immutable axis-aligned rectangle.

    Attributes:
        left: X coordinate of the left edge.
        top: Y coordinate of the top edge.
        width: Horizontal extent (may be negative).
        height: Vertical extent (may be negative).
    """

    left: float
    top: float
    width: float
    height: float

    EMPTY: ClassVar[Rect]

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> Self:
        return cls(left=left, top=top, width=right - left, height=bottom - top)

    @classmethod
    def from_sequence(cls, ltwh: Sequence[float]) -> Self:
        """Create a Rect from ``[left, top, width, height]``."""
        if len(ltwh) < 4:
            raise MalformedSourceError(
                f"Rect.from_sequence: {ltwh!r} needs 4 values", ltwh
            )
        return cls(left=ltwh[0], top=ltwh[1], width=ltwh[2], height=ltwh[3])

    @classmethod
    def from_like(cls, like: Any) -> Self:
        """Create a Rect from any object or mapping with left/top/width/height."""
        fields = _rect_fields(like)
        if fields is None:
            raise MalformedSourceError(f"Rect.from_like: {like!r} is not rect-like", like)
        try:
            return cls(left=fields[0], top=fields[1], width=fields[2], height=fields[3])
        except ValidationError as exc:
            raise MalformedSourceError(
                f"Rect.from_like: {like!r} has non-numeric fields", like
            ) from exc

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> Self:
        """Bounding box of ``points``.

        Raises:
            MalformedSourceError: If ``points`` is empty.
        """
        pts = list(points)
        if not pts:
            raise MalformedSourceError("Rect.from_points: no points given", pts)
        return cls.from_edges(
            min(p.x for p in pts),
            min(p.y for p in pts),
            max(p.x for p in pts),
            max(p.y for p in pts),
        )

    @classmethod
    def from_point_buffer(
        cls,
        points: Sequence[Point],
        index: int | None = None,
        length: int | None = None,
    ) -> Self:
        """Bounding box of ``points[index:index + length]``."""
        if index is not None:
            points = points[index:]
        if length is not None:
            points = points[:length]
        return cls.from_points(points)

    @classmethod
    def from_center(cls, center: Point, radius: float | Point) -> Self:
        """Rect spanning ``radius`` in each direction from ``center``."""
        return cls.from_points([center.add(radius), center.subtract(radius)])

    @classmethod
    def from_circle(cls, center: Point, radius: float) -> Self:
        """Bounding box of a circle."""
        return cls.from_center(center, radius)

    @classmethod
    def from_dims(cls, position: Point, size: Point) -> Self:
        return cls(left=position.x, top=position.y, width=size.w, height=size.h)

    @classmethod
    def from_size(
        cls,
        size: PointSource,
        origin: Literal["top_left", "center"] = "top_left",
    ) -> Self:
        """Rect of ``size`` anchored at the origin by its top-left or center."""
        pt = Point.from_source(size)
        if origin == "top_left":
            return cls(left=0, top=0, width=pt.w, height=pt.h)
        return cls(left=pt.w / -2, top=pt.h / -2, width=pt.w, height=pt.h)

    @classmethod
    def from_many(cls, rects: Sequence[Rect]) -> Rect:
        """Bounding box of several rects; rects with no extent are ignored."""
        corners = [p for r in rects if r.width or r.height for p in r.points()]
        if not corners:
            return cls.EMPTY
        return cls.from_points(corners)

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse comma-separated ``"left, top, width, height"`` text.

        Each comma-separated part contributes its first numeric token.

        Raises:
            MalformedSourceError: If fewer than four parts are present or
                any part has no number.
        """
        parts = text.split(",")
        if len(parts) < 4:
            raise MalformedSourceError(f"{text!r} is not a valid rect", text)
        values: list[float] = []
        for part in parts:
            match = _NUMBER_TOKEN.search(part)
            if match is None:
                raise MalformedSourceError(f"{text!r} is not a valid rect", text)
            values.append(float(match.group()))
        return cls.from_sequence(values)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Point:
        return Point(x=self.left + self.width / 2, y=self.top + self.height / 2)

    @property
    def top_left(self) -> Point:
        return Point(x=self.left, y=self.top)

    @property
    def top_right(self) -> Point:
        return Point(x=self.right, y=self.top)

    @property
    def bottom_left(self) -> Point:
        return Point(x=self.left, y=self.bottom)

    @property
    def bottom_right(self) -> Point:
        return Point(x=self.right, y=self.bottom)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def size(self) -> Point:
        return Point(x=self.width, y=self.height)

    def edge(self, name: Literal["left", "top", "right", "bottom"]) -> float:
        return float(getattr(self, name))

    def point_at(self, xp: float, yp: float) -> Point:
        """Point at fractional position (xp, yp) inside the rect."""
        return Point(x=self.left + self.width * xp, y=self.top + self.height * yp)

    def points(self) -> list[Point]:
        """Corners clockwise from the top-left."""
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]

    def lines(self) -> list[Line]:
        """Edges clockwise from the top edge."""
        pts = self.points()
        return [Line(p1=pts[i], p2=pts[(i + 1) % len(pts)]) for i in range(len(pts))]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, item: Any) -> bool:
        """Inclusive containment of a point-like or a rect-like value.

        Raises:
            MalformedSourceError: If ``item`` is neither.
        """
        if isinstance(item, Point) or is_point_like(item):
            pt = Point.from_xy(item)
            return self.left <= pt.x <= self.right and self.top <= pt.y <= self.bottom
        other = item if isinstance(item, Rect) else Rect.from_like(item)
        return (
            other.left >= self.left
            and other.top >= self.top
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def clamp(self, other: Rect) -> Rect:
        """Intersect edge ranges; disjoint rects yield a negative size."""
        return Rect.from_edges(
            max(self.left, other.left),
            max(self.top, other.top),
            min(self.right, other.right),
            min(self.bottom, other.bottom),
        )

    def intersect(self, other: Rect) -> Rect:
        """Overlap of two rects from their sorted edges.

        Disjoint rects produce the gap between them rather than an empty
        rect; check ``intersects`` first when that matters.
        """
        xs = sorted((other.left, other.right, self.left, self.right))
        ys = sorted((other.top, other.bottom, self.top, self.bottom))
        return Rect(left=xs[1], top=ys[1], width=xs[2] - xs[1], height=ys[2] - ys[1])

    def encapsulation_vector(self, other: Rect) -> Point:
        """Minimal translation that moves ``other`` inside this rect.

        Returns ZERO when ``other`` is already contained or is at least as
        large as this rect along either axis. Otherwise returns the vector
        that moves the corner of ``other`` farthest from this rect's center
        onto the nearest edge.
        """
        if self.contains(other):
            return Point.ZERO
        if other.width >= self.width or other.height >= self.height:
            return Point.ZERO
        corner = self.center.farthest_of(other.points())
        on_edge = corner.nearest_of([edge.nearest_point_to(corner) for edge in self.lines()])
        return Point.vector(corner, on_edge)

    def project(self, point: Point) -> Point:
        """Project an outside point onto the edge facing it."""
        if not self.contains(point):
            ray = Line(p1=point, p2=self.center)
            for edge in self.lines():
                if edge.intersect_point(ray) is not None:
                    return edge.project(point)
        return point

    def distance_to(self, shape: Any) -> float:
        """Gap between this rect and the bounding box of ``shape``'s points."""
        other = Rect.from_points(Point.many_from(shape)).normalize()
        mine = self.normalize()
        dx = max(other.left - mine.right, mine.left - other.right, 0.0)
        dy = max(other.top - mine.bottom, mine.top - other.bottom, 0.0)
        return math.hypot(dx, dy)

    # ------------------------------------------------------------------
    # Derived rects
    # ------------------------------------------------------------------

    def extend(self, size: PointSource) -> Rect:
        """Grow width and height, keeping the top-left corner."""
        pt = Point.from_source(size)
        return Rect(
            left=self.left, top=self.top, width=self.width + pt.x, height=self.height + pt.y
        )

    def inflate(self, size: PointSource) -> Rect:
        """Grow outward on every side."""
        pt = Point.from_source(size)
        return Rect.from_edges(
            self.left - pt.x, self.top - pt.y, self.right + pt.x, self.bottom + pt.y
        )

    def offset(self, by: PointSource) -> Rect:
        pt = Point.from_source(by)
        return Rect(
            left=self.left + pt.x, top=self.top + pt.y, width=self.width, height=self.height
        )

    def round(self, precision: int = 0) -> Rect:
        """Round the edges (not the size) to ``precision`` decimals."""
        return Rect.from_edges(
            round_to(self.left, precision),
            round_to(self.top, precision),
            round_to(self.right, precision),
            round_to(self.bottom, precision),
        )

    def normalize(self) -> Rect:
        """Equivalent rect with non-negative width and height."""
        if self.width >= 0 and self.height >= 0:
            return self
        left, top, width, height = self.to_tuple()
        if width < 0:
            left += width
            width = -width
        if height < 0:
            top += height
            height = -height
        return Rect(left=left, top=top, width=width, height=height)

    def transform(self, matrix: Matrix) -> list[Point]:
        """Transformed corners; an affine image of a rect is not axis-aligned."""
        return [matrix.apply_point(p) for p in self.points()]

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def intersects(self, other: Geometry) -> bool:
        """Box overlap for rects (edges touching count); engine otherwise."""
        if isinstance(other, Rect):
            return not (
                other.left > self.right
                or other.right < self.left
                or other.top > self.bottom
                or other.bottom < self.top
            )
        return self.intersect_points(other) is not None

    def intersect_points(self, other: Geometry) -> IntersectResult:
        return intersect(self, other)

    def to_shape_descriptor(self) -> BaseGeometry:
        return rect_descriptor(self.points())

    def outline_segments(self) -> list[OutlineSegment]:
        corners = self.points()
        return chain_segments([*corners, corners[0]])

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_polyline(self) -> Polyline:
        """Closed polyline around the rect."""
        from sketchgeom.geometry.polyline import Polyline  # noqa: PLC0415

        return Polyline.from_points(self.points(), close=True)

    def to_oval(self) -> Path:
        """Rounded outline inscribed in the rect.

        Each corner is rounded with a cubic arc whose radius is limited by
        half of the adjacent sides, so a square becomes a circle and other
        rects become a stadium.
        """
        half_w, half_h = abs(self.width) / 2, abs(self.height) / 2
        return self.to_polyline().to_rounded_path("cubic", [half_w, half_h, half_w, half_h])

    def to_dot_frame(self, factor: float) -> list[Point]:
        """Points around the perimeter no farther apart than ``factor``."""
        frame: list[Point] = []
        for edge in self.lines():
            frame.append(edge.p1)
            n = math.ceil(edge.length / factor)
            if n <= 1:
                continue
            step = edge.length / n
            direction = edge.direction
            frame.extend(edge.p1.add(direction.multiply(step * i)) for i in range(1, n))
        return frame

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Convert to (left, top, width, height) tuple."""
        return (self.left, self.top, self.width, self.height)

    def to_dict(self) -> dict[str, float]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}

    def to_css(self) -> dict[str, str]:
        return {name: f"{format_number(value)}px" for name, value in self.to_dict().items()}

    def __str__(self) -> str:
        return f"[{', '.join(format_number(v) for v in self.to_tuple())}]"


Rect.EMPTY = Rect(left=0, top=0, width=0, height=0)

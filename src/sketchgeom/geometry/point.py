"""Immutable 2D point/vector primitive.

A Point plays two roles: a location in screen space (x grows rightward,
y grows downward) and a vector between locations. Every operation returns
a new Point.

Most operations accept any *point source* rather than only Point
instances. The accepted representations are:

    - a Point (returned unchanged)
    - a single number, broadcast to both axes
    - a string whose first two numeric tokens are x and y ("(100 100)", "50,50")
    - a 1- or 2-element sequence
    - any object or mapping exposing x/y, left/top, or width/height

Each representation has its own conversion function; ``Point.from_source``
only routes to the right one.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, ClassVar, Protocol, Self, TypeAlias, runtime_checkable

from pydantic import BaseModel, ValidationError

from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry.numeric import EPSILON, format_number, round_to

_NUMBER_TOKEN = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

# A normalized vector is accepted as unit length within this tolerance.
_UNIT_TOLERANCE = 1e-12

_ARROW_KEYS = {37: "LEFT", 38: "UP", 39: "RIGHT", 40: "DOWN"}


@runtime_checkable
class XYLike(Protocol):
    x: float
    y: float


@runtime_checkable
class LeftTopLike(Protocol):
    left: float
    top: float


@runtime_checkable
class WidthHeightLike(Protocol):
    width: float
    height: float


# Field pairs tried, in order, on objects and mappings.
_FIELD_SOURCES = (("x", "y"), ("left", "top"), ("width", "height"))


def _field_values(source: Any, names: tuple[str, str]) -> tuple[Any, Any] | None:
    """Read two named fields from a mapping or an object, if both exist."""
    if isinstance(source, Mapping):
        if names[0] in source and names[1] in source:
            return source[names[0]], source[names[1]]
        return None
    if hasattr(source, names[0]) and hasattr(source, names[1]):
        return getattr(source, names[0]), getattr(source, names[1])
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def is_point_like(value: Any) -> bool:
    """Return True if ``value`` exposes numeric ``x`` and ``y`` fields."""
    fields = _field_values(value, ("x", "y"))
    return fields is not None and all(_is_number(v) for v in fields)


class Point(BaseModel, frozen=True):
    """An immutable 2D cartesian coordinate or vector.

    Equality is exact component equality; use ``round`` first when
    comparing computed values.

    Attributes:
        x: Horizontal component.
        y: Vertical component (positive is down).
    """

    x: float
    y: float

    ZERO: ClassVar[Point]
    ORIGIN: ClassVar[Point]
    MAX: ClassVar[Point]
    MIN: ClassVar[Point]
    UP: ClassVar[Point]
    DOWN: ClassVar[Point]
    LEFT: ClassVar[Point]
    RIGHT: ClassVar[Point]
    UNIT_X: ClassVar[Point]
    UNIT_Y: ClassVar[Point]

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @classmethod
    def from_source(cls, source: PointSource) -> Point:
        """Convert any supported point source into a Point.

        Args:
            source: See the module docstring for accepted representations.

        Returns:
            The converted Point (``source`` itself if it already is one).

        Raises:
            MalformedSourceError: If no representation matches.
        """
        if isinstance(source, Point):
            return source
        if _is_number(source):
            return cls.from_number(source)
        if isinstance(source, str):
            return cls.parse(source)
        if isinstance(source, list | tuple):
            return cls.from_sequence(source)
        if source is not None:
            for names in _FIELD_SOURCES:
                fields = _field_values(source, names)
                if fields is not None:
                    return cls._coerce(fields[0], fields[1], source)
        raise MalformedSourceError(
            f"Point.from_source: {source!r} is not a valid point source", source
        )

    @classmethod
    def from_number(cls, value: float) -> Self:
        """Broadcast a single number to both axes."""
        return cls(x=value, y=value)

    @classmethod
    def parse(cls, text: str) -> Self:
        """Parse the first two numeric tokens of ``text`` as x and y.

        Accepts loosely formatted input such as ``"[50, 50]"``,
        ``"100, 100"`` or ``"(100 100)"``.

        Raises:
            MalformedSourceError: If fewer than two numbers are present.
        """
        if not isinstance(text, str):
            raise MalformedSourceError(
                f"Point.parse: {text!r} is not a valid input", text
            )
        tokens = _NUMBER_TOKEN.findall(text)
        if len(tokens) < 2:
            raise MalformedSourceError(
                f"Point.parse: {text!r} is not a valid input", text
            )
        return cls(x=float(tokens[0]), y=float(tokens[1]))

    @classmethod
    def from_sequence(cls, values: Sequence[Any]) -> Point:
        """Convert a 1- or 2-element sequence.

        A single number is broadcast; a single non-number element is
        converted recursively. Two elements are taken as (x, y).
        """
        if len(values) == 1:
            if _is_number(values[0]):
                return cls.from_number(values[0])
            return cls.from_source(values[0])
        if len(values) == 2:
            return cls._coerce(values[0], values[1], values)
        raise MalformedSourceError(
            f"Point.from_sequence: {values!r} is not a valid point source", values
        )

    @classmethod
    def from_xy(cls, source: XYLike | Mapping[str, float]) -> Self:
        return cls._from_fields(source, ("x", "y"))

    @classmethod
    def from_left_top(cls, source: LeftTopLike | Mapping[str, float]) -> Self:
        return cls._from_fields(source, ("left", "top"))

    @classmethod
    def from_width_height(cls, source: WidthHeightLike | Mapping[str, float]) -> Self:
        return cls._from_fields(source, ("width", "height"))

    @classmethod
    def from_prefixed(cls, source: Any, prefix: str) -> Self:
        """Read ``<prefix>X`` and ``<prefix>Y`` fields, e.g. ``clientX``."""
        return cls._from_fields(source, (f"{prefix}X", f"{prefix}Y"))

    @classmethod
    def _from_fields(cls, source: Any, names: tuple[str, str]) -> Self:
        fields = _field_values(source, names)
        if fields is None:
            raise MalformedSourceError(
                f"Point: fields {names} not present in {source!r}", source
            )
        return cls._coerce(fields[0], fields[1], source)

    @classmethod
    def _coerce(cls, x: Any, y: Any, source: Any) -> Self:
        try:
            return cls(x=x, y=y)
        except ValidationError as exc:
            raise MalformedSourceError(
                f"Point: {source!r} has non-numeric components", source
            ) from exc

    @classmethod
    def from_buffer(cls, buffer: Sequence[float], index: int = 0) -> Self:
        """Read x and y from ``buffer[index]`` and ``buffer[index + 1]``."""
        if len(buffer) < index + 2:
            raise MalformedSourceError(
                "Point.from_buffer: buffer not long enough", buffer
            )
        return cls(x=buffer[index], y=buffer[index + 1])

    @classmethod
    def from_key_code(cls, key_code: int) -> Point:
        """Map an arrow key code to a unit vector, ZERO for any other key."""
        name = _ARROW_KEYS.get(key_code)
        return getattr(cls, name) if name else cls.ZERO

    @classmethod
    def many_from(cls, source: Any) -> list[Point]:
        """Resolve a "has points" value into a list of Points.

        Accepts a Point, a sequence of point sources, or an object exposing
        ``points`` (attribute or method) or ``to_points()``.

        Raises:
            MalformedSourceError: If ``source`` carries no points.
        """
        if isinstance(source, Point):
            return [source]
        if isinstance(source, list | tuple):
            return [cls.from_source(p) for p in source]
        points = getattr(source, "points", None)
        if points is not None:
            return cls.many_from(points() if callable(points) else points)
        to_points = getattr(source, "to_points", None)
        if callable(to_points):
            return cls.many_from(to_points())
        raise MalformedSourceError(
            f"Point.many_from: {source!r} does not provide points", source
        )

    @classmethod
    def vector(cls, origin: PointSource, dest: PointSource) -> Point:
        """Return the vector from ``origin`` to ``dest``."""
        return cls.from_source(dest).subtract(origin)

    @classmethod
    def average(cls, points: Iterable[PointSource]) -> Point:
        """Return the mean of ``points``, or ZERO for an empty input."""
        resolved = [cls.from_source(p) for p in points]
        if not resolved:
            return cls.ZERO
        return cls(
            x=sum(p.x for p in resolved) / len(resolved),
            y=sum(p.y for p in resolved) / len(resolved),
        )

    @classmethod
    def flatten(cls, points: Iterable[PointSource]) -> list[float]:
        """Return ``[x0, y0, x1, y1, ...]`` for ``points``."""
        flat: list[float] = []
        for p in points:
            flat.extend(cls.from_source(p).to_tuple())
        return flat

    # ------------------------------------------------------------------
    # Size aliases
    # ------------------------------------------------------------------

    @property
    def w(self) -> float:
        """X under its name when the Point represents a size."""
        return self.x

    @property
    def h(self) -> float:
        """Y under its name when the Point represents a size."""
        return self.y

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def map(self, mutator: Callable[[float], float]) -> Point:
        """Apply ``mutator`` to both components."""
        return Point(x=mutator(self.x), y=mutator(self.y))

    def add(self, other: PointSource) -> Point:
        pt = Point.from_source(other)
        return Point(x=self.x + pt.x, y=self.y + pt.y)

    def subtract(self, other: PointSource) -> Point:
        pt = Point.from_source(other)
        return Point(x=self.x - pt.x, y=self.y - pt.y)

    def multiply(self, other: PointSource) -> Point:
        pt = Point.from_source(other)
        return Point(x=self.x * pt.x, y=self.y * pt.y)

    def divide(self, other: PointSource) -> Point:
        """Elementwise division; a zero divisor component raises."""
        pt = Point.from_source(other)
        return Point(x=self.x / pt.x, y=self.y / pt.y)

    def dot(self, other: PointSource) -> float:
        pt = Point.from_source(other)
        return self.x * pt.x + self.y * pt.y

    def cross(self, other: PointSource) -> float:
        """Perpendicular dot product, negated so positive is "down".

        In screen coordinates y grows downward, so a positive value means
        ``other`` lies clockwise from this vector.
        """
        pt = Point.from_source(other)
        return -(self.x * pt.y - self.y * pt.x)

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def length(self) -> float:
        """Alias for magnitude()."""
        return self.magnitude()

    def normalize(self) -> Point:
        """Return the unit vector, ZERO for (near) zero-length vectors."""
        length = self.magnitude()
        if abs(length - 1) <= _UNIT_TOLERANCE:
            return self
        if length > EPSILON:
            return self.multiply(1 / length)
        return Point.ZERO

    def perp(self) -> Point:
        """Rotate 90 degrees counter-clockwise."""
        return Point(x=self.y, y=-self.x)

    def perpcw(self) -> Point:
        """Rotate 90 degrees clockwise."""
        return Point(x=-self.y, y=self.x)

    def angle(self, relative_to: PointSource | None = None) -> float:
        """Signed angle from ``relative_to`` (default +X) in [-pi, pi].

        Positive angles are clockwise on screen.
        """
        to = Point.from_source(relative_to if relative_to is not None else Point.RIGHT)
        return math.atan2(self.cross(to), self.dot(to))

    def quadrant(self) -> int:
        """Quadrant of the vector, 0-3 clockwise starting south-east."""
        a = self.angle()
        if a > 0:
            return 0 if a < 1.5708 else 1
        return 2 if a < -1.5708 else 3

    def rotate(self, radians: float) -> Point:
        cos = math.cos(radians)
        sin = math.sin(radians)
        return Point(
            x=self.x * cos - self.y * sin,
            y=self.x * sin + self.y * cos,
        )

    def inverse(self) -> Point:
        """Negate both components."""
        return Point(x=-self.x, y=-self.y)

    def project(self, axis: Point) -> Point:
        """Project this vector onto ``axis``."""
        na = axis.normalize()
        nv = self.normalize()
        return na.multiply(self.length() * na.dot(nv))

    def lerp(self, to: Point, t: float) -> Point:
        """Interpolate towards ``to``; ``t`` of 0 is self, 1 is ``to``."""
        omt = 1.0 - t
        return Point(x=self.x * omt + to.x * t, y=self.y * omt + to.y * t)

    def distance_to(self, to: Point) -> float:
        return self.subtract(to).magnitude()

    def nearest_of(self, points: Iterable[Point]) -> Point:
        """Return the closest of ``points``; self if there are none."""
        best: Point | None = None
        best_distance = -1.0
        for candidate in points:
            distance = self.distance_to(candidate)
            if best is None or distance < best_distance:
                best, best_distance = candidate, distance
        return best if best is not None else self

    def farthest_of(self, points: Iterable[Point]) -> Point:
        """Return the most distant of ``points``; self if there are none."""
        best: Point | None = None
        best_distance = -1.0
        for candidate in points:
            distance = self.distance_to(candidate)
            if best is None or distance > best_distance:
                best, best_distance = candidate, distance
        return best if best is not None else self

    def clamp(self, minimum: Point, maximum: Point) -> Point:
        """Clamp each component to the inclusive [minimum, maximum] range."""
        return Point(
            x=min(max(self.x, minimum.x), maximum.x),
            y=min(max(self.y, minimum.y), maximum.y),
        )

    def round(self, precision: int = 0) -> Point:
        return self.map(lambda v: round_to(v, precision))

    def ceil(self) -> Point:
        return self.map(lambda v: float(math.ceil(v)))

    def floor(self) -> Point:
        return self.map(lambda v: float(math.floor(v)))

    def fix_nan(self, replacement: float = 1) -> Point:
        """Replace NaN or infinite components with ``replacement``."""
        return self.map(lambda v: v if math.isfinite(v) else replacement)

    def equals(self, other: Point) -> bool:
        return self.x == other.x and self.y == other.y

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def format(self, fmt: str | None = None) -> str:
        """Serialize as ``object``, ``array``, ``x`` (WxH) or ``svg``."""
        x, y = format_number(self.x), format_number(self.y)
        if fmt == "object":
            return f"{{x:{x}, y:{y}}}"
        if fmt == "array":
            return f"[{x}, {y}]"
        if fmt == "x":
            return f"{x}x{y}"
        if fmt == "svg":
            return f"{x} {y}"
        return str(self)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to (x, y) tuple."""
        return (self.x, self.y)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    def to_css(self) -> dict[str, str]:
        return {"left": f"{format_number(self.x)}px", "top": f"{format_number(self.y)}px"}

    def __str__(self) -> str:
        return f"[{format_number(self.x)},{format_number(self.y)}]"


PointSource: TypeAlias = (
    Point
    | float
    | int
    | str
    | Sequence[Any]
    | XYLike
    | LeftTopLike
    | WidthHeightLike
    | Mapping[str, float]
)

Point.ZERO = Point(x=0, y=0)
Point.ORIGIN = Point(x=0, y=0)
Point.MAX = Point(x=2147483647, y=2147483647)
Point.MIN = Point(x=-2147483647, y=-2147483647)
Point.UP = Point(x=0, y=-1)
Point.DOWN = Point(x=0, y=1)
Point.LEFT = Point(x=-1, y=0)
Point.RIGHT = Point(x=1, y=0)
Point.UNIT_X = Point(x=1, y=0)
Point.UNIT_Y = Point(x=0, y=1)

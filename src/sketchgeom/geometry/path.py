"""Multi-segment path built from SVG-style drawing commands.

A Path is an immutable sequence of commands: move, line, quadratic and
cubic Bezier, elliptical arc and close. All coordinates are absolute. The
first command must be a move or a close.

Paths serialize to SVG path data (``str(path)``) and parse back from it;
parsing and arc geometry go through svgelements. For intersection they are
flattened into polylines, sampling each curve and arc
``settings.CURVE_SAMPLES`` times, and hits are then refined against each
command's exact outline.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from functools import partial
from typing import Annotated, Any, Literal, Self

import numpy as np
import svgelements
from pydantic import BaseModel, Field, field_validator
from shapely.geometry.base import BaseGeometry

from sketchgeom.config import settings
from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry.intersection import (
    Geometry,
    IntersectResult,
    OutlineSegment,
    intersect,
    linear_segment,
    path_descriptor,
)
from sketchgeom.geometry.line import Line
from sketchgeom.geometry.matrix import Matrix
from sketchgeom.geometry.numeric import KAPPA, format_number, to_degrees
from sketchgeom.geometry.point import Point
from sketchgeom.geometry.rect import Rect

_NO_SAMPLES = np.empty((0, 2))


def _xy(point: Point) -> np.ndarray:
    return np.array([point.x, point.y], dtype=float)


# =============================================================================
# Commands
# =============================================================================


class MoveTo(BaseModel, frozen=True):
    """Start a new subpath at ``point``."""

    op: Literal["M"] = "M"
    point: Point

    @property
    def end(self) -> Point:
        return self.point

    def points(self) -> tuple[Point, ...]:
        return (self.point,)

    def operands(self) -> tuple[Any, ...]:
        return (self.point,)

    def transform(self, matrix: Matrix) -> MoveTo:
        return MoveTo(point=matrix.apply_point(self.point))


class LineTo(BaseModel, frozen=True):
    op: Literal["L"] = "L"
    point: Point

    @property
    def end(self) -> Point:
        return self.point

    def points(self) -> tuple[Point, ...]:
        return (self.point,)

    def operands(self) -> tuple[Any, ...]:
        return (self.point,)

    def transform(self, matrix: Matrix) -> LineTo:
        return LineTo(point=matrix.apply_point(self.point))

    def sample(self, start: Point, positions: np.ndarray) -> np.ndarray:
        return _xy(self.point)[np.newaxis, :]

    def outline(self, start: Point) -> OutlineSegment | None:
        return linear_segment(start, self.point)


class QuadTo(BaseModel, frozen=True):
    """Quadratic Bezier from the current point through ``control``."""

    op: Literal["Q"] = "Q"
    control: Point
    end: Point

    def points(self) -> tuple[Point, ...]:
        return (self.control, self.end)

    def operands(self) -> tuple[Any, ...]:
        return (self.control, self.end)

    def transform(self, matrix: Matrix) -> QuadTo:
        return QuadTo(control=matrix.apply_point(self.control), end=matrix.apply_point(self.end))

    def sample(self, start: Point, positions: np.ndarray) -> np.ndarray:
        t = positions[:, np.newaxis]
        omt = 1 - t
        return omt**2 * _xy(start) + 2 * omt * t * _xy(self.control) + t**2 * _xy(self.end)

    def outline(self, start: Point) -> OutlineSegment | None:
        return OutlineSegment(partial(self.sample, start), curved=True)


class CubicTo(BaseModel, frozen=True):
    """Cubic Bezier from the current point."""

    op: Literal["C"] = "C"
    control1: Point
    control2: Point
    end: Point

    def points(self) -> tuple[Point, ...]:
        return (self.control1, self.control2, self.end)

    def operands(self) -> tuple[Any, ...]:
        return (self.control1, self.control2, self.end)

    def transform(self, matrix: Matrix) -> CubicTo:
        return CubicTo(
            control1=matrix.apply_point(self.control1),
            control2=matrix.apply_point(self.control2),
            end=matrix.apply_point(self.end),
        )

    def sample(self, start: Point, positions: np.ndarray) -> np.ndarray:
        t = positions[:, np.newaxis]
        omt = 1 - t
        return (
            omt**3 * _xy(start)
            + 3 * omt**2 * t * _xy(self.control1)
            + 3 * omt * t**2 * _xy(self.control2)
            + t**3 * _xy(self.end)
        )

    def outline(self, start: Point) -> OutlineSegment | None:
        return OutlineSegment(partial(self.sample, start), curved=True)


class ArcTo(BaseModel, frozen=True):
    """SVG elliptical arc to ``end``.

    Attributes:
        radii: Ellipse radii (rx, ry); a size, not a location.
        rotation: X-axis rotation of the ellipse in degrees.
        large_arc: Take the arc spanning more than 180 degrees.
        sweep: Draw in the positive-angle (clockwise on screen) direction.
        end: End point.
    """

    op: Literal["A"] = "A"
    radii: Point
    rotation: float = 0
    large_arc: bool = False
    sweep: bool = False
    end: Point

    def points(self) -> tuple[Point, ...]:
        return (self.end,)

    def operands(self) -> tuple[Any, ...]:
        return (self.radii, self.rotation, int(self.large_arc), int(self.sweep), self.end)

    def transform(self, matrix: Matrix) -> ArcTo:
        """Map the end point; scale the radii and turn the ellipse axis.

        Exact for similarity transforms; shear is not representable.
        """
        parts = matrix.decompose()
        return self.model_copy(
            update={
                "radii": self.radii.multiply(parts.scale.map(abs)),
                "rotation": self.rotation + to_degrees(parts.rotation),
                "sweep": self.sweep if matrix.determinant() >= 0 else not self.sweep,
                "end": matrix.apply_point(self.end),
            }
        )

    def _flat(self) -> bool:
        return self.radii.x == 0 or self.radii.y == 0

    def _svg_arc(self, start: Point) -> svgelements.Arc:
        return svgelements.Arc(
            start.to_tuple(),
            abs(self.radii.x),
            abs(self.radii.y),
            self.rotation,
            self.large_arc,
            self.sweep,
            self.end.to_tuple(),
        )

    def sample(self, start: Point, positions: np.ndarray) -> np.ndarray:
        """Sample the arc at ``positions`` along its sweep.

        An arc ending where it starts draws nothing; a zero radius draws a
        straight line to the end point.
        """
        if start == self.end:
            return _NO_SAMPLES
        if self._flat():
            return _xy(self.end)[np.newaxis, :]
        return np.asarray(self._svg_arc(start).npoint(positions), dtype=float)

    def outline(self, start: Point) -> OutlineSegment | None:
        if start == self.end:
            return None
        if self._flat():
            return linear_segment(start, self.end)
        return OutlineSegment(self._svg_arc(start).npoint, curved=True)


class ClosePath(BaseModel, frozen=True):
    """Close the current subpath back to its starting point."""

    op: Literal["Z"] = "Z"

    def points(self) -> tuple[Point, ...]:
        return ()

    def operands(self) -> tuple[Any, ...]:
        return ()

    def transform(self, matrix: Matrix) -> ClosePath:
        return self


PathCommand = Annotated[
    MoveTo | LineTo | QuadTo | CubicTo | ArcTo | ClosePath,
    Field(discriminator="op"),
]


def _format_operand(value: Any) -> str:
    if isinstance(value, Point):
        return value.format("svg")
    return format_number(value)


# =============================================================================
# Path
# =============================================================================


class Path(BaseModel, frozen=True):
    """An immutable sequence of path commands.

    Attributes:
        commands: Drawing commands in order; the first is MoveTo or ClosePath.
    """

    commands: tuple[PathCommand, ...]

    @field_validator("commands")
    @classmethod
    def _starts_with_move_or_close(
        cls, commands: tuple[PathCommand, ...]
    ) -> tuple[PathCommand, ...]:
        if not commands or not isinstance(commands[0], MoveTo | ClosePath):
            raise MalformedSourceError("Path: first command must be M or Z", commands)
        return commands

    @classmethod
    def ellipse(cls, cx: float, cy: float, rx: float, ry: float) -> Self:
        """Closed four-cubic approximation of an ellipse."""
        ox = rx * KAPPA
        oy = ry * KAPPA
        return cls(
            commands=[
                MoveTo(point=Point(x=cx - rx, y=cy)),
                CubicTo(
                    control1=Point(x=cx - rx, y=cy - oy),
                    control2=Point(x=cx - ox, y=cy - ry),
                    end=Point(x=cx, y=cy - ry),
                ),
                CubicTo(
                    control1=Point(x=cx + ox, y=cy - ry),
                    control2=Point(x=cx + rx, y=cy - oy),
                    end=Point(x=cx + rx, y=cy),
                ),
                CubicTo(
                    control1=Point(x=cx + rx, y=cy + oy),
                    control2=Point(x=cx + ox, y=cy + ry),
                    end=Point(x=cx, y=cy + ry),
                ),
                CubicTo(
                    control1=Point(x=cx - ox, y=cy + ry),
                    control2=Point(x=cx - rx, y=cy + oy),
                    end=Point(x=cx - rx, y=cy),
                ),
                ClosePath(),
            ]
        )

    @classmethod
    def from_points(cls, points: Any) -> Self:
        """Closed polygon path through ``points``."""
        resolved = Point.many_from(points)
        if not resolved:
            raise MalformedSourceError("Path.from_points: no points given", points)
        commands: list[PathCommand] = [MoveTo(point=resolved[0])]
        commands.extend(LineTo(point=p) for p in resolved[1:])
        commands.append(ClosePath())
        return cls(commands=commands)

    @classmethod
    def move_to(cls, point: Point) -> PathBuilder:
        """Start a PathBuilder at ``point``."""
        return PathBuilder().move_to(point)

    @classmethod
    def parse(cls, data: str) -> Path:
        """Parse SVG path data.

        Supports every SVG command (M L H V Q T C S A Z, absolute and
        relative). Shorthand and relative commands are resolved into the
        absolute command types. Trailing text that is not path data is
        rejected rather than ignored.

        Raises:
            MalformedSourceError: If the data is not valid path data.
        """
        message = f"Path.parse: {data!r} is not valid path data"
        if not isinstance(data, str):
            raise MalformedSourceError(message, data)
        try:
            return Path(commands=_read_path_data(data))
        except (ValueError, MalformedSourceError) as exc:
            raise MalformedSourceError(message, data) from exc

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> Rect:
        """Bounding box of every point operand, control points included.

        This over-approximates the true curve bounds.
        """
        points = [p for command in self.commands for p in command.points()]
        if not points:
            return Rect.EMPTY
        return Rect.from_points(points)

    @property
    def closed(self) -> bool:
        return isinstance(self.commands[-1], ClosePath)

    def concat(self, *paths: Path) -> Path:
        return Path(commands=[c for path in (self, *paths) for c in path.commands])

    def flatten(self, samples: int | None = None) -> list[np.ndarray]:
        """Sample every subpath into an (n, 2) array of points.

        Args:
            samples: Points per curve or arc, including its start.
                Defaults to settings.CURVE_SAMPLES.
        """
        positions = np.linspace(0.0, 1.0, samples or settings.CURVE_SAMPLES)[1:]
        subpaths: list[np.ndarray] = []
        chunks: list[np.ndarray] = []
        subpath_start = cursor = Point.ZERO

        for command in self.commands:
            if isinstance(command, MoveTo):
                if chunks:
                    subpaths.append(np.vstack(chunks))
                subpath_start = cursor = command.point
                chunks = [_xy(cursor)[np.newaxis, :]]
            elif isinstance(command, ClosePath):
                if chunks:
                    chunks.append(_xy(subpath_start)[np.newaxis, :])
                    subpaths.append(np.vstack(chunks))
                cursor = subpath_start
                chunks = [_xy(cursor)[np.newaxis, :]]
            else:
                if not chunks:
                    chunks = [_xy(cursor)[np.newaxis, :]]
                chunks.append(command.sample(cursor, positions))
                cursor = command.end

        if chunks:
            subpaths.append(np.vstack(chunks))
        return [subpath for subpath in subpaths if len(subpath) >= 2]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, point: Point) -> bool:
        """Odd number of path crossings on a horizontal ray towards +X."""
        ray = Line(p1=Point(x=Point.MAX.x, y=point.y), p2=point)
        hits = self.intersect_points(ray)
        return hits is not None and len(hits) % 2 == 1

    def nearest_point(self, to: Point) -> Point | None:
        """Nearest crossing of the path by a ray from its center through ``to``.

        Returns None when the ray does not meet the path.
        """
        bounds = self.bounds
        center = bounds.center
        direction = Point.vector(center, to).normalize()
        reach = math.hypot(bounds.width, bounds.height) * 10
        hits = self.intersect_points(Line(p1=center, p2=to.add(direction.multiply(reach))))
        return to.nearest_of(hits) if hits else None

    def transform(self, matrix: Matrix) -> Path:
        return Path(commands=[command.transform(matrix) for command in self.commands])

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def intersects(self, other: Geometry) -> bool:
        return self.intersect_points(other) is not None

    def intersect_points(self, other: Geometry) -> IntersectResult:
        return intersect(self, other)

    def to_shape_descriptor(self) -> BaseGeometry:
        return path_descriptor(self.flatten())

    def outline_segments(self) -> list[OutlineSegment]:
        """Exact parametric outline of every drawing command."""
        segments: list[OutlineSegment | None] = []
        subpath_start = cursor = Point.ZERO
        for command in self.commands:
            if isinstance(command, MoveTo):
                subpath_start = cursor = command.point
            elif isinstance(command, ClosePath):
                if cursor != subpath_start:
                    segments.append(linear_segment(cursor, subpath_start))
                cursor = subpath_start
            else:
                segments.append(command.outline(cursor))
                cursor = command.end
        return [segment for segment in segments if segment is not None]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_svg(self, leave_open: bool = False) -> str:
        """SVG path data, e.g. ``"M 0 0 L 10 0 Z"``.

        Args:
            leave_open: Omit a trailing close command.
        """
        commands = self.commands
        if leave_open and self.closed:
            commands = commands[:-1]
        tokens: list[str] = []
        for command in commands:
            tokens.append(command.op)
            tokens.extend(_format_operand(v) for v in command.operands())
        return " ".join(tokens)

    def __str__(self) -> str:
        return self.to_svg()

    def __iter__(self) -> Iterator[PathCommand]:  # type: ignore[override]
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)


class PathBuilder:
    """Streaming construction of a Path."""

    def __init__(self) -> None:
        self._commands: list[PathCommand] = []

    def move_to(self, point: Point) -> Self:
        self._commands.append(MoveTo(point=point))
        return self

    def line_to(self, point: Point) -> Self:
        self._commands.append(LineTo(point=point))
        return self

    def quad_to(self, control: Point, end: Point) -> Self:
        self._commands.append(QuadTo(control=control, end=end))
        return self

    def cube_to(self, control1: Point, control2: Point, end: Point) -> Self:
        self._commands.append(CubicTo(control1=control1, control2=control2, end=end))
        return self

    def arc_to(
        self,
        radii: Point,
        end: Point,
        *,
        rotation: float = 0,
        large_arc: bool = False,
        sweep: bool = False,
    ) -> Self:
        self._commands.append(
            ArcTo(radii=radii, rotation=rotation, large_arc=large_arc, sweep=sweep, end=end)
        )
        return self

    def close(self) -> Self:
        self._commands.append(ClosePath())
        return self

    def build(self, close: bool = False) -> Path:
        """Create the Path, optionally appending a close command."""
        commands = list(self._commands)
        if close:
            commands.append(ClosePath())
        return Path(commands=commands)


# =============================================================================
# SVG path data parsing
# =============================================================================


class _SvgPathData(svgelements.Path):
    """svgelements path that also records each arc's SVG parameters.

    svgelements keeps arcs in center form; the flags and unscaled radii are
    needed to rebuild ArcTo commands exactly.
    """

    def __init__(self) -> None:
        super().__init__()
        self.arc_parameters: list[tuple[float, float, float, bool, bool]] = []

    def arc(self, *arc_args: Any, relative: bool = False, **kwargs: Any) -> Any:
        for index in range(0, len(arc_args), 6):
            rx, ry, rotation, large_arc, sweep = arc_args[index : index + 5]
            self.arc_parameters.append(
                (abs(float(rx)), abs(float(ry)), float(rotation), bool(large_arc), bool(sweep))
            )
        return super().arc(*arc_args, relative=relative, **kwargs)


def _from_svg_point(point: Any) -> Point:
    # A command letter with no operands leaves a coordinate unset.
    if point is None or point.x is None or point.y is None:
        raise ValueError("missing coordinate")
    return Point(x=float(point.x), y=float(point.y))


def _read_path_data(data: str) -> list[PathCommand]:
    """Lex ``data`` with svgelements and map its segments to commands.

    Raises:
        ValueError: On malformed operands or trailing text.
    """
    reader = _SvgPathData()
    lexer = svgelements.SVGLexicalParser()
    try:
        lexer.parse(reader, data)
    except (TypeError, AttributeError) as exc:
        raise ValueError(data) from exc
    if lexer.pos < lexer.limit:
        raise ValueError(data)

    arcs = iter(reader.arc_parameters)
    commands: list[PathCommand] = []
    for segment in reader:
        if isinstance(segment, svgelements.Move):
            commands.append(MoveTo(point=_from_svg_point(segment.end)))
        elif isinstance(segment, svgelements.Close):
            commands.append(ClosePath())
        elif isinstance(segment, svgelements.Line):
            commands.append(LineTo(point=_from_svg_point(segment.end)))
        elif isinstance(segment, svgelements.QuadraticBezier):
            commands.append(
                QuadTo(control=_from_svg_point(segment.control), end=_from_svg_point(segment.end))
            )
        elif isinstance(segment, svgelements.CubicBezier):
            commands.append(
                CubicTo(
                    control1=_from_svg_point(segment.control1),
                    control2=_from_svg_point(segment.control2),
                    end=_from_svg_point(segment.end),
                )
            )
        elif isinstance(segment, svgelements.Arc):
            rx, ry, rotation, large_arc, sweep = next(arcs)
            commands.append(
                ArcTo(
                    radii=Point(x=rx, y=ry),
                    rotation=rotation,
                    large_arc=large_arc,
                    sweep=sweep,
                    end=_from_svg_point(segment.end),
                )
            )
    return commands

"""Shared intersection capability for Line, Rect, Polyline and Path.

Every shape exports a *shape descriptor*: a shapely geometry of its
outline (never its interior). Intersection math is delegated to shapely
(GEOS); this module builds descriptors and turns the engine result into an
ordered, de-duplicated list of Points.

Paths arrive at the engine flattened (see ``Path.flatten``), so a hit on a
curve first lands on a chord. Each shape also exports its outline as
parametric segments, and hits involving a curve are moved onto the exact
outlines with Newton's method before they are returned.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from typing import NamedTuple, Protocol, TypeAlias, runtime_checkable

import numpy as np
import shapely
from shapely.geometry import LineString, MultiLineString
from shapely.geometry.base import BaseGeometry

from sketchgeom.config import settings
from sketchgeom.geometry.point import Point
from sketchgeom.utils.logging import get_logger, operation_context

logger = get_logger(__name__)

IntersectResult: TypeAlias = list[Point] | None

# Returned when two shapes do not intersect. Touching/tangent contacts are
# reported as points; there is no separate "empty" result.
NO_INTERSECTION: IntersectResult = None

_NEWTON_ITERATIONS = 24
_DERIVATIVE_STEP = 1e-7
# Refined parameters may overshoot [0, 1] by this much.
_PARAMETER_SLACK = 1e-9
# Outline segments tried per shape for each hit, nearest first.
_CANDIDATES = 3


class OutlineSegment(NamedTuple):
    """One parametric piece of a shape outline.

    Attributes:
        evaluate: Maps an array of parameters in [0, 1] to an (n, 2) array.
        curved: False for straight pieces, whose engine hits are exact.
    """

    evaluate: Callable[[np.ndarray], np.ndarray]
    curved: bool

    def at(self, t: float) -> np.ndarray:
        return self.evaluate(np.array([t]))[0]


@runtime_checkable
class Geometry(Protocol):
    """A shape that can be intersected with any other Geometry."""

    def intersects(self, other: Geometry) -> bool: ...

    def intersect_points(self, other: Geometry) -> IntersectResult: ...

    def to_shape_descriptor(self) -> BaseGeometry: ...

    def outline_segments(self) -> list[OutlineSegment]: ...


# =============================================================================
# Shape descriptors
# =============================================================================


def line_descriptor(p1: Point, p2: Point) -> BaseGeometry:
    return LineString([p1.to_tuple(), p2.to_tuple()])


def polyline_descriptor(points: Sequence[Point]) -> BaseGeometry:
    """Open chain through ``points``; a single point is a shapely Point."""
    if len(points) == 1:
        return shapely.Point(points[0].to_tuple())
    return LineString([p.to_tuple() for p in points])


def rect_descriptor(corners: Sequence[Point]) -> BaseGeometry:
    """Closed ring through the four corners of a rectangle."""
    return LineString([p.to_tuple() for p in (*corners, corners[0])])


def path_descriptor(subpaths: Sequence[np.ndarray]) -> BaseGeometry:
    """One LineString per flattened subpath; bare moves are dropped."""
    return MultiLineString([LineString(coords) for coords in subpaths if len(coords) >= 2])


def linear_segment(p1: Point, p2: Point) -> OutlineSegment:
    start = np.array(p1.to_tuple(), dtype=float)
    delta = np.array(p2.to_tuple(), dtype=float) - start
    return OutlineSegment(lambda t: start + np.outer(t, delta), curved=False)


def chain_segments(points: Sequence[Point]) -> list[OutlineSegment]:
    return [linear_segment(a, b) for a, b in zip(points, points[1:], strict=False)]


# =============================================================================
# Hit refinement
# =============================================================================


class _Candidate(NamedTuple):
    distance: float
    t: float
    spacing: float
    segment: OutlineSegment


def _candidates(segments: Sequence[OutlineSegment], hit: np.ndarray) -> list[_Candidate]:
    """Segments nearest to ``hit`` with the grid parameter closest to it."""
    grid = np.linspace(0.0, 1.0, settings.CURVE_SAMPLES)
    found = []
    for segment in segments:
        points = segment.evaluate(grid)
        distances = np.hypot(points[:, 0] - hit[0], points[:, 1] - hit[1])
        index = int(np.argmin(distances))
        steps = np.diff(points, axis=0)
        spacing = float(np.hypot(steps[:, 0], steps[:, 1]).max())
        found.append(_Candidate(float(distances[index]), float(grid[index]), spacing, segment))
    found.sort(key=lambda c: c.distance)
    return found[:_CANDIDATES]


def _derivative(segment: OutlineSegment, t: float) -> np.ndarray:
    forward = segment.at(t + _DERIVATIVE_STEP)
    backward = segment.at(t - _DERIVATIVE_STEP)
    return (forward - backward) / (2 * _DERIVATIVE_STEP)


def _solve(a: _Candidate, b: _Candidate) -> tuple[float, float] | None:
    """Parameters where the two segments meet, starting from the grid guesses."""
    s, t = a.t, b.t
    for _ in range(_NEWTON_ITERATIONS):
        residual = a.segment.at(s) - b.segment.at(t)
        jacobian = np.column_stack((_derivative(a.segment, s), -_derivative(b.segment, t)))
        try:
            ds, dt = np.linalg.solve(jacobian, -residual)
        except np.linalg.LinAlgError:
            return None
        s += ds
        t += dt
        if not (np.isfinite(s) and np.isfinite(t)):
            return None
        if abs(ds) <= 1e-15 and abs(dt) <= 1e-15:
            break
    low, high = -_PARAMETER_SLACK, 1 + _PARAMETER_SLACK
    if not (low <= s <= high and low <= t <= high):
        return None
    return s, t


def _refine(
    hit: tuple[float, float],
    segments_a: Sequence[OutlineSegment],
    segments_b: Sequence[OutlineSegment],
) -> tuple[float, float]:
    """Move an engine hit onto the exact outlines; keep it if Newton fails.

    Tangent contacts have a singular Jacobian and stay where the engine
    put them.
    """
    target = np.array(hit)
    for a in _candidates(segments_a, target):
        for b in _candidates(segments_b, target):
            if not (a.segment.curved or b.segment.curved):
                continue
            solved = _solve(a, b)
            if solved is None:
                continue
            s, t = solved
            on_curve = a.segment.at(s) if a.segment.curved else b.segment.at(t)
            # Engine hits sit on chords, within one grid step of the curve.
            if np.hypot(*(on_curve - target)) <= 2 * (a.spacing + b.spacing):
                return float(on_curve[0]), float(on_curve[1])
    return hit


# =============================================================================
# Engine adapter
# =============================================================================


def _engine_points(a: BaseGeometry, b: BaseGeometry) -> list[tuple[float, float]]:
    """Discrete contact points of two outlines.

    Collinear overlaps come back from GEOS as line parts; like coincident
    segments they have no discrete intersection point and are skipped.
    """
    result = shapely.intersection(a, b)
    if result.is_empty:
        return []
    return list(_iter_points(result))


def _iter_points(geometry: BaseGeometry) -> Iterator[tuple[float, float]]:
    if isinstance(geometry, shapely.Point):
        yield (geometry.x, geometry.y)
    elif hasattr(geometry, "geoms"):
        for part in geometry.geoms:
            yield from _iter_points(part)


def _dedupe(coords: list[tuple[float, float]], precision: int) -> list[Point]:
    seen: set[str] = set()
    points: list[Point] = []
    for x, y in coords:
        key = f"{x:.{precision}f},{y:.{precision}f}"
        if key in seen:
            continue
        seen.add(key)
        points.append(Point(x=x, y=y))
    return points


def intersect(a: Geometry, b: Geometry) -> IntersectResult:
    """Intersect two shapes through the engine.

    Hits involving a curved outline piece are refined onto the exact
    curve; hits between straight pieces are returned as the engine found
    them.

    Args:
        a: First shape.
        b: Second shape.

    Returns:
        Distinct contact points in engine order, or NO_INTERSECTION.
    """
    with operation_context(shape_kinds=f"{type(a).__name__}/{type(b).__name__}"):
        coords = _engine_points(a.to_shape_descriptor(), b.to_shape_descriptor())
        if not coords:
            return NO_INTERSECTION
        segments_a = a.outline_segments()
        segments_b = b.outline_segments()
        if any(s.curved for s in (*segments_a, *segments_b)):
            coords = [_refine(hit, segments_a, segments_b) for hit in coords]
        points = _dedupe(coords, settings.DEDUPE_PRECISION)
        logger.debug("Intersection computed", hits=len(points))
        return points

"""Unit tests for the shared intersection engine adapter."""

from __future__ import annotations

import numpy as np
import pytest
import shapely
from shapely.geometry import LineString, MultiLineString

from sketchgeom.config import Settings
from sketchgeom.geometry import (
    NO_INTERSECTION,
    CubicTo,
    Geometry,
    Line,
    Path,
    Point,
    Polyline,
    Rect,
    intersect,
)
from sketchgeom.geometry import intersection as intersection_module
from sketchgeom.utils.logging import (
    bind_operation_context,
    get_operation_context,
)


def _cubic_x_at_y(controls: list[tuple[float, float]], y: float) -> list[float]:
    """x of every point on a cubic Bezier where it crosses height ``y``."""
    p = np.array(controls, dtype=float)
    a = -p[0] + 3 * p[1] - 3 * p[2] + p[3]
    b = 3 * p[0] - 6 * p[1] + 3 * p[2]
    c = -3 * p[0] + 3 * p[1]
    d = p[0]
    roots = np.roots([a[1], b[1], c[1], d[1] - y])
    params = roots.real[(abs(roots.imag) < 1e-9) & (roots.real >= 0) & (roots.real <= 1)]
    return [float(((a[0] * t + b[0]) * t + c[0]) * t + d[0]) for t in params]


class TestShapeDescriptors:
    """Every shape describes its outline, never its interior."""

    def test_line_descriptor(self) -> None:
        d = Line(p1=Point(x=0, y=0), p2=Point(x=1, y=1)).to_shape_descriptor()
        assert isinstance(d, LineString)
        assert list(d.coords) == [(0, 0), (1, 1)]

    def test_rect_descriptor_is_closed_ring(self) -> None:
        d = Rect(left=0, top=0, width=2, height=1).to_shape_descriptor()
        assert isinstance(d, LineString)
        assert d.is_closed
        assert len(d.coords) == 5

    def test_single_point_polyline(self) -> None:
        d = Polyline(points=[(3, 4)]).to_shape_descriptor()
        assert isinstance(d, shapely.Point)

    def test_path_descriptor_drops_bare_moves(self) -> None:
        path = Path.parse("M 0 0 L 5 0 M 9 9")
        d = path.to_shape_descriptor()
        assert isinstance(d, MultiLineString)
        assert len(d.geoms) == 1

    def test_path_descriptor_from_arrays(self) -> None:
        d = intersection_module.path_descriptor(
            [np.array([[0.0, 0.0], [1.0, 0.0]]), np.array([[5.0, 5.0]])]
        )
        assert len(d.geoms) == 1

    def test_shapes_satisfy_geometry_protocol(self) -> None:
        shapes = [
            Line(p1=Point.ZERO, p2=Point(x=1, y=0)),
            Rect(left=0, top=0, width=1, height=1),
            Polyline(points=[(0, 0), (1, 1)]),
            Path.ellipse(0, 0, 1, 1),
        ]
        assert all(isinstance(s, Geometry) for s in shapes)


class TestIntersect:
    """Tests for result conversion."""

    def test_no_intersection_is_none(self) -> None:
        a = Line(p1=Point(x=0, y=0), p2=Point(x=1, y=0))
        b = Line(p1=Point(x=0, y=5), p2=Point(x=1, y=5))
        assert intersect(a, b) is NO_INTERSECTION

    def test_duplicate_hits_collapse(self) -> None:
        """A line through a shared vertex reports it once."""
        chain = Polyline(points=[(0, 0), (5, 5), (10, 0)])
        crossing = Line(p1=Point(x=5, y=10), p2=Point(x=5, y=-10))
        assert intersect(chain, crossing) == [Point(x=5, y=5)]

    def test_mixed_kinds_are_symmetric(self) -> None:
        rect = Rect(left=0, top=0, width=10, height=10)
        poly = Polyline(points=[(-5, 5), (15, 5)])
        forward = intersect(rect, poly)
        backward = intersect(poly, rect)
        assert forward is not None
        assert backward is not None
        assert sorted(p.to_tuple() for p in forward) == sorted(p.to_tuple() for p in backward)

    def test_dedupe_uses_precision(self) -> None:
        coords = [(1.0, 1.0), (1.0 + 1e-12, 1.0), (2.0, 2.0)]
        assert intersection_module._dedupe(coords, 10) == [
            Point(x=1, y=1),
            Point(x=2, y=2),
        ]
        assert len(intersection_module._dedupe(coords, 14)) == 3

    def test_dedupe_precision_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Coarser precision merges nearby hits."""
        coarse = Settings(
            DEDUPE_PRECISION=0,
            _env_file=None,  # type: ignore[call-arg]
        )
        monkeypatch.setattr(intersection_module, "settings", coarse)
        chain = Polyline(points=[(0, 0), (10, 0), (10, 0.1), (0, 0.1)])
        crossing = Line(p1=Point(x=5, y=-1), p2=Point(x=5, y=1))
        hits = intersect(chain, crossing)
        assert hits is not None
        assert len(hits) == 1


class TestCurveRefinement:
    """Hits on curves are moved off the flattening chords onto the curve."""

    def test_line_hit_lies_on_exact_cubic(self) -> None:
        circle = Path.ellipse(0, 0, 1000, 1000)
        hits = intersect(circle, Line(p1=Point(x=-2000, y=-300), p2=Point(x=2000, y=-300)))
        assert hits is not None
        assert len(hits) == 2
        leftmost = min(hits, key=lambda p: p.x)
        first = circle.commands[1]
        assert isinstance(first, CubicTo)
        controls = [(-1000.0, 0.0), *(p.to_tuple() for p in first.points())]
        (expected,) = _cubic_x_at_y(controls, -300)
        assert leftmost.x == pytest.approx(expected, abs=1e-6)
        assert leftmost.y == pytest.approx(-300, abs=1e-6)

    def test_hits_on_arc_lie_on_circle(self) -> None:
        arc = Path.parse("M 0 0 A 50 50 0 0 1 100 0")
        hits = arc.intersect_points(Line(p1=Point(x=-10, y=-20), p2=Point(x=110, y=-20)))
        assert hits is not None
        assert len(hits) == 2
        for hit in hits:
            assert hit.distance_to(Point(x=50, y=0)) == pytest.approx(50, abs=1e-9)

    def test_straight_hits_are_left_alone(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args: object) -> None:
            raise AssertionError("straight outlines need no refinement")

        monkeypatch.setattr(intersection_module, "_refine", fail)
        square = Path.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        hits = intersect(square, Line(p1=Point(x=5, y=-5), p2=Point(x=5, y=15)))
        assert hits is not None
        assert sorted(p.y for p in hits) == [0, 10]

    def test_outline_segments_follow_commands(self) -> None:
        path = Path.parse("M 0 0 L 10 0 Q 10 10 0 10 A 0 5 0 0 1 0 0 Z M 5 5 A 3 3 0 0 1 5 5")
        segments = path.outline_segments()
        assert [s.curved for s in segments] == [False, True, False]
        assert segments[1].at(0.5).tolist() == pytest.approx([7.5, 7.5])


class TestIntersectContext:
    def test_shape_kinds_are_bound_during_intersect(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: list[dict[str, str]] = []

        def engine(a: object, b: object) -> list[tuple[float, float]]:
            seen.append(get_operation_context())
            return []

        monkeypatch.setattr(intersection_module, "_engine_points", engine)
        bind_operation_context(operation="contains")
        intersect(
            Line(p1=Point.ZERO, p2=Point(x=1, y=1)),
            Rect(left=0, top=0, width=1, height=1),
        )
        assert seen == [{"operation": "contains", "shape_kinds": "Line/Rect"}]
        assert get_operation_context() == {"operation": "contains"}

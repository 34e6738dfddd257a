"""Unit tests for Path, its commands and PathBuilder."""

from __future__ import annotations

import math

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from sketchgeom.exceptions import MalformedSourceError
from sketchgeom.geometry import (
    KAPPA,
    ArcTo,
    ClosePath,
    CubicTo,
    Line,
    LineTo,
    Matrix,
    MoveTo,
    Path,
    Point,
    Polyline,
    QuadTo,
    Rect,
)


def _pt(x: float, y: float) -> Point:
    return Point(x=x, y=y)


class TestPathConstruction:
    """Tests for validation and constructors."""

    def test_must_start_with_move_or_close(self) -> None:
        with pytest.raises(MalformedSourceError, match="first command"):
            Path(commands=[LineTo(point=_pt(1, 1))])

    def test_empty_rejected(self) -> None:
        with pytest.raises(MalformedSourceError):
            Path(commands=[])

    def test_close_first_is_allowed(self) -> None:
        assert len(Path(commands=[ClosePath()])) == 1

    def test_commands_from_dicts(self) -> None:
        """Commands are discriminated by their op letter."""
        path = Path.model_validate(
            {"commands": [{"op": "M", "point": {"x": 0, "y": 0}}, {"op": "Z"}]}
        )
        assert isinstance(path.commands[0], MoveTo)
        assert isinstance(path.commands[1], ClosePath)

    def test_from_points(self) -> None:
        path = Path.from_points([(0, 0), (10, 0), (10, 10)])
        assert str(path) == "M 0 0 L 10 0 L 10 10 Z"

    def test_from_points_empty_rejected(self) -> None:
        with pytest.raises(MalformedSourceError):
            Path.from_points([])

    def test_builder(self) -> None:
        path = (
            Path.move_to(_pt(0, 0))
            .line_to(_pt(10, 0))
            .quad_to(_pt(15, 5), _pt(10, 10))
            .cube_to(_pt(8, 12), _pt(2, 12), _pt(0, 10))
            .build(close=True)
        )
        assert str(path) == "M 0 0 L 10 0 Q 15 5 10 10 C 8 12 2 12 0 10 Z"

    def test_builder_close_and_arc(self) -> None:
        path = (
            Path.move_to(_pt(0, 0))
            .arc_to(_pt(5, 5), _pt(10, 0), sweep=True)
            .close()
            .build()
        )
        assert str(path) == "M 0 0 A 5 5 0 0 1 10 0 Z"


class TestPathEllipse:
    """Tests for the four-cubic ellipse."""

    def test_shape(self) -> None:
        path = Path.ellipse(0, 0, 10, 10)
        assert isinstance(path.commands[0], MoveTo)
        assert sum(isinstance(c, CubicTo) for c in path) == 4
        assert path.closed

    def test_first_cubic_uses_kappa(self) -> None:
        first = Path.ellipse(0, 0, 10, 20).commands[1]
        assert isinstance(first, CubicTo)
        assert first.control1 == _pt(-10, -20 * KAPPA)
        assert first.control2 == _pt(-10 * KAPPA, -20)
        assert first.end == _pt(0, -20)

    def test_bounds(self) -> None:
        assert Path.ellipse(0, 0, 10, 10).bounds == Rect.from_edges(-10, -10, 10, 10)

    @given(
        cx=st.floats(min_value=-1e3, max_value=1e3),
        cy=st.floats(min_value=-1e3, max_value=1e3),
        rx=st.floats(min_value=0.1, max_value=1e3),
        ry=st.floats(min_value=0.1, max_value=1e3),
    )
    def test_ellipse_is_closed_and_bounded(
        self, cx: float, cy: float, rx: float, ry: float
    ) -> None:
        path = Path.ellipse(cx, cy, rx, ry)
        assert path.closed
        bounds = path.bounds
        assert bounds.left == pytest.approx(cx - rx)
        assert bounds.right == pytest.approx(cx + rx)
        assert bounds.top == pytest.approx(cy - ry)
        assert bounds.bottom == pytest.approx(cy + ry)


class TestPathSerialization:
    """Tests for SVG output and parsing."""

    def test_leave_open_omits_trailing_close(self) -> None:
        path = Path.from_points([(0, 0), (1, 0), (1, 1)])
        assert path.to_svg(leave_open=True) == "M 0 0 L 1 0 L 1 1"

    def test_parse_absolute(self) -> None:
        path = Path.parse("M0,0 L10,0 Q15,5 10,10 C8,12 2,12 0,10 Z")
        assert [c.op for c in path] == ["M", "L", "Q", "C", "Z"]
        assert str(path) == "M 0 0 L 10 0 Q 15 5 10 10 C 8 12 2 12 0 10 Z"

    def test_parse_relative_and_shorthand(self) -> None:
        path = Path.parse("m 10 10 h 5 v 5 l -5 0 z")
        assert str(path) == "M 10 10 L 15 10 L 15 15 L 10 15 Z"

    def test_parse_implicit_line_after_move(self) -> None:
        path = Path.parse("M 0 0 10 0 10 10")
        assert str(path) == "M 0 0 L 10 0 L 10 10"

    def test_parse_smooth_curves_reflect_controls(self) -> None:
        path = Path.parse("M 0 0 C 0 10 10 10 10 0 S 20 -10 20 0")
        smooth = path.commands[2]
        assert isinstance(smooth, CubicTo)
        assert smooth.control1 == _pt(10, -10)
        quad = Path.parse("M 0 0 Q 5 10 10 0 T 20 0").commands[2]
        assert isinstance(quad, QuadTo)
        assert quad.control == _pt(15, -10)

    def test_parse_arc(self) -> None:
        path = Path.parse("M 0 0 a 5 5 30 1 0 10 0")
        arc = path.commands[1]
        assert isinstance(arc, ArcTo)
        assert arc.radii == _pt(5, 5)
        assert arc.rotation == 30
        assert arc.large_arc
        assert not arc.sweep
        assert arc.end == _pt(10, 0)

    @pytest.mark.parametrize("flags", ["0 0", "0 1", "1 0", "1 1"])
    def test_parse_keeps_half_circle_arc_flags(self, flags: str) -> None:
        """A half circle draws the same for either large-arc flag; both are kept."""
        data = f"M 0 0 A 5 5 0 {flags} 10 0"
        assert str(Path.parse(data)) == data

    def test_parse_arc_radii_sign_is_dropped(self) -> None:
        arc = Path.parse("M 0 0 A -5 -3 0 0 1 10 0").commands[1]
        assert isinstance(arc, ArcTo)
        assert arc.radii == _pt(5, 3)

    def test_round_trip(self) -> None:
        original = Path.ellipse(3, 4, 5, 6)
        assert Path.parse(str(original)) == original

    @pytest.mark.parametrize(
        "data", ["", "L 1 1", "M 1", "M 1 1 X 2 2", "10 10", "M 0 0 L 1 1 Z 5", "M 0 0 H"]
    )
    def test_parse_rejects(self, data: str) -> None:
        with pytest.raises(MalformedSourceError, match="not valid path data"):
            Path.parse(data)


class TestPathGeometry:
    """Tests for bounds, containment and intersection."""

    def test_bounds_include_control_points(self) -> None:
        path = Path.parse("M 0 0 Q 5 20 10 0")
        assert path.bounds == Rect.from_edges(0, 0, 10, 20)

    def test_bounds_of_bare_close(self) -> None:
        assert Path(commands=[ClosePath()]).bounds == Rect.EMPTY

    def test_concat(self) -> None:
        a = Path.from_points([(0, 0), (1, 0), (1, 1)])
        b = Path.from_points([(5, 5), (6, 5), (6, 6)])
        joined = a.concat(b)
        assert len(joined) == len(a) + len(b)
        assert joined.commands[len(a)] == MoveTo(point=_pt(5, 5))

    def test_transform_maps_every_point(self) -> None:
        path = Path.parse("M 0 0 Q 5 5 10 0 Z").transform(Matrix.translation(1, 1))
        assert str(path) == "M 1 1 Q 6 6 11 1 Z"

    def test_transform_arc_scales_radii(self) -> None:
        arc = Path.parse("M 0 0 A 5 5 0 0 1 10 0").transform(Matrix.scaling(2))
        command = arc.commands[1]
        assert isinstance(command, ArcTo)
        assert command.radii == _pt(10, 10)
        assert command.end == _pt(20, 0)

    def test_flatten_samples_curves(self) -> None:
        subpaths = Path.ellipse(0, 0, 10, 10).flatten(samples=8)
        assert len(subpaths) == 1
        coords = subpaths[0]
        assert coords.shape == (1 + 4 * 7 + 1, 2)
        np.testing.assert_allclose(coords[0], coords[-1])
        radii = np.hypot(coords[:, 0], coords[:, 1])
        assert np.all(np.abs(radii - 10) < 0.05)

    def test_flatten_arc_stays_on_circle(self) -> None:
        path = Path.parse("M 0 0 A 5 5 0 0 1 10 0")
        coords = path.flatten(samples=17)[0]
        distances = np.hypot(coords[:, 0] - 5, coords[:, 1])
        np.testing.assert_allclose(distances, 5, atol=1e-9)
        # Sweep flag set: the arc bulges towards negative y on screen.
        assert coords[8, 1] == pytest.approx(-5)

    def test_flatten_degenerate_arc_is_line(self) -> None:
        coords = Path.parse("M 0 0 A 0 5 0 0 1 10 0").flatten()[0]
        assert coords.tolist() == [[0, 0], [10, 0]]

    def test_flatten_splits_subpaths(self) -> None:
        path = Path.parse("M 0 0 L 1 0 M 5 5 L 6 5")
        assert len(path.flatten()) == 2

    def test_contains(self) -> None:
        circle = Path.ellipse(0, 0, 10, 10)
        assert circle.contains(_pt(0, 1))
        assert circle.contains(_pt(-9, 1))
        assert not circle.contains(_pt(20, 1))
        assert not circle.contains(_pt(-20, 1))

    def test_contains_square_path(self) -> None:
        square = Path.from_points([(0, 0), (10, 0), (10, 10), (0, 10)])
        assert square.contains(_pt(5, 5))
        assert not square.contains(_pt(5, 15))

    def test_intersects_line(self) -> None:
        circle = Path.ellipse(0, 0, 10, 10)
        hits = circle.intersect_points(Line(p1=_pt(-20, 0.5), p2=_pt(20, 0.5)))
        assert hits is not None
        assert len(hits) == 2
        assert sorted(round(p.x) for p in hits) == [-10, 10]
        assert not circle.intersects(Line(p1=_pt(-2, 0), p2=_pt(2, 0)))

    def test_intersects_polyline_and_rect(self) -> None:
        circle = Path.ellipse(0, 0, 10, 10)
        assert circle.intersects(Polyline(points=[(0, 0), (0, 50)]))
        assert circle.intersects(Rect(left=5, top=5, width=20, height=20))
        assert not circle.intersects(Rect(left=-3, top=-3, width=6, height=6))

    def test_nearest_point(self) -> None:
        circle = Path.ellipse(0, 0, 10, 10)
        nearest = circle.nearest_point(_pt(30, 0))
        assert nearest is not None
        assert nearest.distance_to(_pt(10, 0)) < 1e-6

    def test_nearest_point_from_center_is_none(self) -> None:
        assert Path.ellipse(0, 0, 10, 10).nearest_point(_pt(0, 0)) is None

    @given(angle=st.floats(min_value=0, max_value=2 * math.pi))
    def test_nearest_point_lies_on_circle(self, angle: float) -> None:
        circle = Path.ellipse(0, 0, 10, 10)
        target = _pt(25 * math.cos(angle), 25 * math.sin(angle))
        nearest = circle.nearest_point(target)
        assert nearest is not None
        # A four-cubic circle strays from the true radius by under 0.03%.
        assert nearest.distance_to(Point.ZERO) == pytest.approx(10, abs=3e-3)
        assert abs(nearest.cross(target)) < 1e-6

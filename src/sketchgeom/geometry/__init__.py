"""Geometry kernel for sketchgeom.

Immutable value types for 2D drawing: points, affine matrices, line
segments, rectangles, polylines and command paths. Every operation returns
a new value. Shapes intersect one another through a shared engine backed
by shapely.

Example:
    from sketchgeom.geometry import Matrix, Point, Polyline

    square = Polyline.from_points([(0, 0), (10, 0), (10, 10), (0, 10)], close=True)
    square.contains(Point(x=5, y=5))  # True

    rounded = square.to_rounded_path("cubic", 2)
    print(rounded.transform(Matrix.IDENTITY.scale(2)))
"""

from sketchgeom.geometry.intersection import (
    NO_INTERSECTION,
    Geometry,
    IntersectResult,
    OutlineSegment,
    intersect,
)
from sketchgeom.geometry.line import RAY_LENGTH, Line
from sketchgeom.geometry.matrix import (
    MATRIX_TOLERANCE,
    AngleUnit,
    DecomposedMatrix,
    Matrix,
)
from sketchgeom.geometry.numeric import EPSILON, KAPPA
from sketchgeom.geometry.path import (
    ArcTo,
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    Path,
    PathBuilder,
    PathCommand,
    QuadTo,
)
from sketchgeom.geometry.point import Point, PointSource, is_point_like
from sketchgeom.geometry.polyline import Polyline, RoundingMethod
from sketchgeom.geometry.rect import Rect

__all__ = [
    "EPSILON",
    "KAPPA",
    "MATRIX_TOLERANCE",
    "NO_INTERSECTION",
    "RAY_LENGTH",
    "AngleUnit",
    "ArcTo",
    "ClosePath",
    "CubicTo",
    "DecomposedMatrix",
    "Geometry",
    "IntersectResult",
    "Line",
    "LineTo",
    "Matrix",
    "MoveTo",
    "OutlineSegment",
    "Path",
    "PathBuilder",
    "PathCommand",
    "Point",
    "PointSource",
    "Polyline",
    "QuadTo",
    "Rect",
    "RoundingMethod",
    "intersect",
    "is_point_like",
]

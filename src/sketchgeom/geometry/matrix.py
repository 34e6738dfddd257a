"""Immutable 2x3 affine transformation matrix.

The six coefficients map a point as::

    (x, y) -> (x * m11 + y * m21 + m31, x * m12 + y * m22 + m32)

which is the same layout as the CSS/SVG ``matrix(a, b, c, d, e, f)``
transform, with ``a..f`` aliasing ``m11..m32``.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum
from typing import Any, ClassVar, Protocol, TypeVar, overload

from pydantic import BaseModel

from sketchgeom.exceptions import MalformedSourceError, SingularMatrixError
from sketchgeom.geometry.numeric import format_number
from sketchgeom.geometry.point import Point

# Coefficients closer than this are considered equal; a determinant this
# close to zero is singular.
MATRIX_TOLERANCE = 1e-14

T_co = TypeVar("T_co", covariant=True)


class AngleUnit(str, Enum):
    """Unit of a rotation angle."""

    RADIANS = "radians"
    DEGREES = "degrees"


class MatrixTransformable(Protocol[T_co]):
    def transform(self, matrix: Matrix) -> T_co: ...


class DecomposedMatrix(BaseModel, frozen=True):
    """Scale, rotation (radians) and translation extracted from a Matrix."""

    scale: Point
    rotation: float
    translation: Point


def _approx(a: float, b: float) -> bool:
    return abs(a - b) < MATRIX_TOLERANCE


class Matrix(BaseModel, frozen=True):
    """An immutable affine transform.

    Builders compose onto the current matrix, so
    ``Matrix.IDENTITY.translate(10, 0).rotate(pi)`` first rotates a point
    and then translates it.
    """

    m11: float = 1
    m12: float = 0
    m21: float = 0
    m22: float = 1
    m31: float = 0
    m32: float = 0

    IDENTITY: ClassVar[Matrix]

    @classmethod
    def from_values(
        cls, a: float, b: float, c: float, d: float, e: float, f: float
    ) -> Matrix:
        """Create a Matrix from CSS-style ``a..f`` coefficients."""
        return cls(m11=a, m12=b, m21=c, m22=d, m31=e, m32=f)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Matrix:
        """Create a Matrix from ``[a, b, c, d, e, f]``."""
        if len(values) != 6:
            raise MalformedSourceError(
                f"Matrix.from_sequence: expected 6 values, got {len(values)}", values
            )
        return cls.from_values(*values)

    @classmethod
    def scaling(cls, sx: float | Point, sy: float | None = None) -> Matrix:
        return cls.IDENTITY.scale(sx, sy)

    @classmethod
    def translation(cls, tx: float | Point, ty: float | None = None) -> Matrix:
        return cls.IDENTITY.translate(tx, ty)

    @classmethod
    def rotation(cls, angle: float, unit: AngleUnit = AngleUnit.RADIANS) -> Matrix:
        return cls.IDENTITY.rotate(angle, unit)

    # CSS-style aliases
    @property
    def a(self) -> float:
        return self.m11

    @property
    def b(self) -> float:
        return self.m12

    @property
    def c(self) -> float:
        return self.m21

    @property
    def d(self) -> float:
        return self.m22

    @property
    def e(self) -> float:
        return self.m31

    @property
    def f(self) -> float:
        return self.m32

    def determinant(self) -> float:
        return self.m11 * self.m22 - self.m12 * self.m21

    def is_invertible(self) -> bool:
        return not _approx(self.determinant(), 0)

    def is_identity(self) -> bool:
        return self.approx_equals(Matrix.IDENTITY)

    def approx_equals(self, other: Matrix) -> bool:
        """Compare coefficients within MATRIX_TOLERANCE."""
        return all(
            _approx(mine, theirs)
            for mine, theirs in zip(self.to_tuple(), other.to_tuple(), strict=True)
        )

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def transform(
        self, a2: float, b2: float, c2: float, d2: float, e2: float, f2: float
    ) -> Matrix:
        """Right-multiply by the matrix ``(a2, b2, c2, d2, e2, f2)``."""
        a1, b1, c1, d1, e1, f1 = self.to_tuple()
        return Matrix(
            m11=a1 * a2 + c1 * b2,
            m12=b1 * a2 + d1 * b2,
            m21=a1 * c2 + c1 * d2,
            m22=b1 * c2 + d1 * d2,
            m31=a1 * e2 + c1 * f2 + e1,
            m32=b1 * e2 + d1 * f2 + f1,
        )

    def multiply(self, other: Matrix) -> Matrix:
        return self.transform(*other.to_tuple())

    def concat(self, other: Matrix) -> Matrix:
        """Alias for multiply()."""
        return self.multiply(other)

    def divide(self, other: Matrix) -> Matrix:
        """Multiply by the inverse of ``other``.

        Raises:
            SingularMatrixError: If ``other`` is not invertible.
        """
        return self.multiply(other.inverse())

    def divide_scalar(self, divisor: float) -> Matrix:
        return Matrix.from_values(*(v / divisor for v in self.to_tuple()))

    def scale(self, sx: float | Point, sy: float | None = None) -> Matrix:
        """Compose a scale; a single number scales both axes."""
        if isinstance(sx, Point):
            return self.transform(sx.x, 0, 0, sx.y, 0, 0)
        return self.transform(sx, 0, 0, sx if sy is None else sy, 0, 0)

    def translate(self, tx: float | Point, ty: float | None = None) -> Matrix:
        if isinstance(tx, Point):
            return self.transform(1, 0, 0, 1, tx.x, tx.y)
        return self.transform(1, 0, 0, 1, tx, 0 if ty is None else ty)

    def rotate(self, angle: float, unit: AngleUnit = AngleUnit.RADIANS) -> Matrix:
        if unit == AngleUnit.DEGREES:
            angle = angle * math.pi / 180
        cos = math.cos(angle)
        sin = math.sin(angle)
        return self.transform(cos, sin, -sin, cos, 0, 0)

    def inverse(self) -> Matrix:
        """Return the inverse transform.

        Raises:
            SingularMatrixError: If ``|determinant| < 1e-14``.
        """
        det = self.determinant()
        if _approx(det, 0):
            raise SingularMatrixError(det)
        return Matrix(
            m11=self.m22 / det,
            m12=-self.m12 / det,
            m21=-self.m21 / det,
            m22=self.m11 / det,
            m31=(self.m21 * self.m32 - self.m22 * self.m31) / det,
            m32=-(self.m11 * self.m32 - self.m12 * self.m31) / det,
        )

    def decompose(self) -> DecomposedMatrix:
        """Extract scale, rotation and translation.

        Shear is folded into the Y scale, so a sheared matrix does not
        round-trip through its decomposition.
        """
        rotation = math.atan2(self.m12, self.m11)
        shear = math.atan2(self.m22, self.m21) - math.pi / 2 - rotation
        scale_x = math.hypot(self.m11, self.m12)
        scale_y = math.hypot(self.m21, self.m22) * math.cos(shear)
        return DecomposedMatrix(
            scale=Point(x=scale_x, y=scale_y),
            rotation=rotation,
            translation=Point(x=self.m31, y=self.m32),
        )

    def decompose_tuple(self) -> tuple[Point, float, Point]:
        """Same as decompose() as a ``(scale, rotation, translation)`` tuple."""
        parts = self.decompose()
        return (parts.scale, parts.rotation, parts.translation)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply_xy(self, x: float, y: float) -> tuple[float, float]:
        return (
            x * self.m11 + y * self.m21 + self.m31,
            x * self.m12 + y * self.m22 + self.m32,
        )

    def apply_point(self, point: Point) -> Point:
        x, y = self.apply_xy(point.x, point.y)
        return Point(x=x, y=y)

    def apply_points(self, points: Sequence[Any]) -> list[Point] | tuple[Point, ...]:
        """Transform each point source; tuples stay tuples, anything else is a list.

        Raises:
            MalformedSourceError: If an element is not a point source.
        """
        mapped = [self.apply_point(Point.from_source(p)) for p in points]
        return tuple(mapped) if isinstance(points, tuple) else mapped

    @overload
    def apply(self, target: Point) -> Point: ...

    @overload
    def apply(self, target: list[Point]) -> list[Point]: ...

    @overload
    def apply(self, target: tuple[Point, ...]) -> tuple[Point, ...]: ...

    @overload
    def apply(self, target: MatrixTransformable[Any]) -> Any: ...

    def apply(self, target: Any) -> Any:
        """Transform a Point, a sequence of Points, or any transformable.

        Shapes (Line, Rect, Polyline, Path) are transformed through their
        own ``transform(matrix)`` method, so the result has the same kind as
        the input (Rect returns its four corner points).

        Raises:
            MalformedSourceError: If ``target`` cannot be transformed.
        """
        if isinstance(target, Point):
            return self.apply_point(target)
        if isinstance(target, list | tuple):
            return self.apply_points(target)
        transform = getattr(target, "transform", None)
        if callable(transform) and not isinstance(target, Matrix):
            return transform(self)
        raise MalformedSourceError(
            f"Matrix.apply: {target!r} cannot be transformed", target
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.m11, self.m12, self.m21, self.m22, self.m31, self.m32)

    def to_css(self) -> str:
        return f"matrix({','.join(format_number(v) for v in self.to_tuple())})"

    def to_css3d(self) -> str:
        values = (
            self.m11, self.m12, 0, 0,
            self.m21, self.m22, 0, 0,
            0, 0, 1, 0,
            self.m31, self.m32, 0, 1,
        )  # fmt: skip
        return f"matrix3d({', '.join(format_number(v) for v in values)})"

    def __str__(self) -> str:
        return self.to_css()


Matrix.IDENTITY = Matrix()

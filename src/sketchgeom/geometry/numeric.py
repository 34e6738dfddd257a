"""Scalar helpers shared by the geometry primitives."""

from __future__ import annotations

import math

# Control-point distance factor that makes a cubic Bezier approximate a
# quarter circle.
KAPPA = 0.5522847498307933984022516322796

# Distances below this are treated as zero.
EPSILON = 1e-5


def js_round(value: float) -> float:
    """Round half up (towards +inf), unlike Python's banker's rounding."""
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def round_to(value: float, precision: int = 0) -> float:
    """Round ``value`` to ``precision`` decimal places, halves rounding up."""
    factor = 10.0**precision
    return js_round(value * factor) / factor


def round_clamp(value: float, factor: float = 1) -> float:
    """Snap ``value`` to the nearest multiple of ``factor``."""
    return js_round(value / factor) * factor


def to_radians(degrees: float) -> float:
    return degrees * (math.pi * 2) / 360


def to_degrees(radians: float) -> float:
    return radians * 360 / (math.pi * 2)


def round_radians(radians: float, factor: float = 1) -> float:
    """Snap an angle to the nearest multiple of ``factor`` whole degrees."""
    degrees = js_round(to_degrees(radians))
    return to_radians(round_clamp(degrees, factor))


def format_number(value: float) -> str:
    """Format a coordinate the way SVG and CSS consumers expect.

    Integral values drop the trailing ``.0`` so ``10.0`` renders as ``10``.
    """
    value = float(value)
    if math.isfinite(value) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(float(value))

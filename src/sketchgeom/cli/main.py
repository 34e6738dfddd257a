"""sketchgeom CLI - inspect shapes and transforms from the shell.

Point lists are passed as ``;``-separated point strings, e.g.
``"0,0; 10,0; 10,10"``.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated

import typer

from sketchgeom import __version__
from sketchgeom.exceptions import GeometryError
from sketchgeom.geometry import AngleUnit, Matrix, Path, Point, Polyline, Rect
from sketchgeom.geometry.numeric import to_degrees
from sketchgeom.utils.logging import (
    bind_operation_context,
    configure_logging,
    get_logger,
)

app = typer.Typer(
    name="sketchgeom",
    help="sketchgeom: immutable 2D geometry for drawing tools",
    add_completion=False,
)


class Method(str, Enum):
    """Corner rounding method."""

    cubic = "cubic"  # Circular-arc approximation
    quadratic = "quadratic"  # Vertex as control point


Verbose = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
]
JsonOutput = Annotated[bool, typer.Option("--json", help="Output as JSON")]


# =============================================================================
# Commands
# =============================================================================


@app.command()
def version(json_output: JsonOutput = False) -> None:
    """Show version information."""
    if json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(f"sketchgeom {__version__}")


@app.command()
def ellipse(
    cx: Annotated[float, typer.Argument(help="Center X")],
    cy: Annotated[float, typer.Argument(help="Center Y")],
    rx: Annotated[float, typer.Argument(help="Horizontal radius")],
    ry: Annotated[float, typer.Argument(help="Vertical radius")],
    leave_open: Annotated[
        bool, typer.Option("--open", help="Omit the trailing close command")
    ] = False,
    verbose: Verbose = 0,
) -> None:
    """Print SVG path data approximating an ellipse."""
    _configure_logging(verbose)
    bind_operation_context(operation="ellipse", shape_kinds="Path")
    typer.echo(Path.ellipse(cx, cy, rx, ry).to_svg(leave_open=leave_open))


@app.command()
def rounded(
    points: Annotated[str, typer.Argument(help='Vertices, e.g. "0,0; 10,0; 10,10"')],
    radius: Annotated[float, typer.Option("--radius", "-r", help="Corner radius")],
    method: Annotated[
        Method, typer.Option("--method", "-m", help="Rounding method")
    ] = Method.cubic,
    leave_open: Annotated[
        bool, typer.Option("--open", help="Omit the trailing close command")
    ] = False,
    verbose: Verbose = 0,
) -> None:
    """Print SVG path data for a polyline with rounded corners."""
    _configure_logging(verbose)
    logger = get_logger(__name__)
    bind_operation_context(operation="rounded", shape_kinds="Polyline")

    try:
        polyline = Polyline(points=_parse_points(points))
        path = polyline.to_rounded_path(method.value, radius, close=not leave_open)
        typer.echo(path.to_svg())
    except GeometryError as e:
        logger.exception("Rounding failed")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def oval(
    rect: Annotated[str, typer.Argument(help='Rect as "left,top,width,height"')],
    verbose: Verbose = 0,
) -> None:
    """Print SVG path data for the oval inscribed in a rect."""
    _configure_logging(verbose)
    logger = get_logger(__name__)
    bind_operation_context(operation="oval", shape_kinds="Rect")

    try:
        typer.echo(Rect.parse(rect).to_oval().to_svg())
    except GeometryError as e:
        logger.exception("Oval failed")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def contains(
    points: Annotated[str, typer.Argument(help="Polygon vertices")],
    point: Annotated[str, typer.Argument(help='Point to test, e.g. "5,5"')],
    json_output: JsonOutput = False,
    verbose: Verbose = 0,
) -> None:
    """Test whether a point lies inside a polygon."""
    _configure_logging(verbose)
    logger = get_logger(__name__)
    bind_operation_context(operation="contains", shape_kinds="Polyline/Point")

    try:
        polygon = Polyline.from_points(_parse_points(points), close=True)
        inside = polygon.contains(Point.parse(point))
    except GeometryError as e:
        logger.exception("Containment test failed")
        _echo_error(e, json_output)
        raise typer.Exit(1) from None

    if json_output:
        typer.echo(json.dumps({"contains": inside}))
    else:
        typer.echo("inside" if inside else "outside")


@app.command()
def intersect(
    first: Annotated[str, typer.Argument(help="First polyline")],
    second: Annotated[str, typer.Argument(help="Second polyline")],
    json_output: JsonOutput = False,
    verbose: Verbose = 0,
) -> None:
    """List the points where two polylines cross."""
    _configure_logging(verbose)
    logger = get_logger(__name__)
    bind_operation_context(operation="intersect", shape_kinds="Polyline/Polyline")

    try:
        a = Polyline(points=_parse_points(first))
        b = Polyline(points=_parse_points(second))
        hits = a.intersect_points(b) or []
    except GeometryError as e:
        logger.exception("Intersection failed")
        _echo_error(e, json_output)
        raise typer.Exit(1) from None

    logger.info("Intersection finished", hits=len(hits))
    if json_output:
        typer.echo(json.dumps({"points": [p.to_dict() for p in hits]}))
    elif not hits:
        typer.echo("no intersection")
    else:
        for p in hits:
            typer.echo(str(p))


@app.command()
def matrix(
    translate: Annotated[
        str | None, typer.Option("--translate", "-t", help='Offset, e.g. "10,20"')
    ] = None,
    scale: Annotated[float | None, typer.Option("--scale", "-s", help="Scale")] = None,
    rotate: Annotated[
        float | None, typer.Option("--rotate", "-r", help="Rotation in degrees")
    ] = None,
    css3d: Annotated[bool, typer.Option("--css3d", help="Emit matrix3d()")] = False,
    json_output: JsonOutput = False,
    verbose: Verbose = 0,
) -> None:
    """Compose translate, rotate and scale (in that order) into a matrix."""
    _configure_logging(verbose)
    logger = get_logger(__name__)
    bind_operation_context(operation="matrix")

    try:
        m = Matrix.IDENTITY
        if translate is not None:
            m = m.translate(Point.parse(translate))
        if rotate is not None:
            m = m.rotate(rotate, AngleUnit.DEGREES)
        if scale is not None:
            m = m.scale(scale)
    except GeometryError as e:
        logger.exception("Matrix composition failed")
        _echo_error(e, json_output)
        raise typer.Exit(1) from None

    css = m.to_css3d() if css3d else m.to_css()
    if json_output:
        parts = m.decompose()
        output_data = {
            "css": css,
            "values": list(m.to_tuple()),
            "scale": parts.scale.to_dict(),
            "rotation": round(to_degrees(parts.rotation), 10),
            "translation": parts.translation.to_dict(),
        }
        typer.echo(json.dumps(output_data, indent=2))
    else:
        typer.echo(css)


# =============================================================================
# Helpers
# =============================================================================


def _parse_points(text: str) -> list[Point]:
    return [Point.parse(part) for part in text.split(";") if part.strip()]


def _echo_error(error: Exception, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps({"error": str(error)}))
    else:
        typer.echo(f"Error: {error}", err=True)


def _configure_logging(verbose: int) -> None:
    """Configure logging based on verbosity level."""
    if verbose == 0:
        level = "WARNING"
    elif verbose == 1:
        level = "INFO"
    else:  # verbose >= 2
        level = "DEBUG"

    configure_logging(level=level)

"""Command-line interface for sketchgeom.

Exposes shape construction, containment, intersection and matrix
composition as shell commands.
"""

from __future__ import annotations

from sketchgeom.cli.main import Method, app

__all__ = ["Method", "app"]

"""sketchgeom: immutable 2D geometry for drawing tools."""

__version__ = "0.1.0"

"""Grid layouts for work pages."""

from __future__ import annotations

from .engine import arrange, auto_layout, lay_out
from .models import (
    Bounds,
    Cell,
    CellType,
    LaidOutElement,
    LayoutError,
    LayoutIndexError,
    LayoutSyntaxError,
)
from .parser import normalize, normalize_rows, parse_cell

__all__ = [
    "Bounds",
    "Cell",
    "CellType",
    "LaidOutElement",
    "LayoutError",
    "LayoutIndexError",
    "LayoutSyntaxError",
    "arrange",
    "auto_layout",
    "lay_out",
    "normalize",
    "normalize_rows",
    "parse_cell",
]

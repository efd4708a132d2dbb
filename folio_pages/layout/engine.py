"""Place a work's paragraphs, media and links on a layout grid.

Rows of different lengths are stretched to a common width, the least common
multiple of all row lengths, by repeating each cell. A cell repeated
horizontally, or the same indexed cell appearing on consecutive rows, turns
into a single element spanning every position it covers.

Examples
--------
>>> from folio_pages.database.models import Paragraph, Work, WorkMetadata
>>> work = Work(
...     id="demo",
...     metadata=WorkMetadata(layout=["p", ["p", "p"]]),
...     paragraphs={"default": [Paragraph("a", "A"), Paragraph("b", "B"), Paragraph("c", "C")]},
... ).in_language("en")
>>> [(element.key, element.css()) for element in lay_out(work)]
[('paragraph0', 'grid-column: 1 / 3; grid-row: 1 / 2;'), ('paragraph1', 'grid-column: 1 / 2; grid-row: 2 / 3;'), ('paragraph2', 'grid-column: 2 / 3; grid-row: 2 / 3;')]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import math
import typing as typ

from .models import (
    Cell,
    CellType,
    LaidOutElement,
    LayoutIndexError,
    Position,
)
from .parser import normalize

if typ.TYPE_CHECKING:
    from folio_pages.database.models import LocalizedWork

__all__ = ["arrange", "assign_indices", "auto_layout", "expand", "lay_out"]

logger = logging.getLogger(__name__)


def auto_layout(work: LocalizedWork) -> list[list[Cell]]:
    """Return one row per paragraph, then per media, then per link."""
    rows = [[Cell(CellType.PARAGRAPH, index)] for index in range(len(work.paragraphs))]
    rows += [[Cell(CellType.MEDIA, index)] for index in range(len(work.media))]
    rows += [[Cell(CellType.LINK, index)] for index in range(len(work.links))]
    return rows


def assign_indices(grid: list[list[Cell]]) -> list[list[Cell]]:
    """Give every index-less cell the next index of its type.

    Cells are visited row by row, left to right. An explicit index moves the
    type's counter just past it.

    Examples
    --------
    >>> from folio_pages.layout.parser import normalize
    >>> [[str(cell) for cell in row] for row in assign_indices(normalize(["p", ["m2", "m"]]))]
    [['p1'], ['m2', 'm3']]
    """
    counters = dict.fromkeys(CellType, 0)
    assigned: list[list[Cell]] = []
    for row in grid:
        new_row: list[Cell] = []
        for cell in row:
            if not cell.has_index:
                cell = dc.replace(cell, index=counters[cell.type])
            counters[cell.type] = cell.index + 1
            new_row.append(cell)
        assigned.append(new_row)
    return assigned


def expand(grid: list[list[Cell]]) -> list[list[Cell]]:
    """Stretch every row to the least common multiple of the row lengths."""
    if not grid:
        return []
    width = math.lcm(*(len(row) for row in grid))
    return [
        [cell for cell in row for _ in range(width // len(row))] for row in grid
    ]


def _describe(grid: list[list[Cell]]) -> str:
    return "; ".join(", ".join(str(cell) for cell in row) for row in grid)


def _payload(
    work: LocalizedWork, cell: Cell, layout: str
) -> dict[str, typ.Any]:
    match cell.type:
        case CellType.PARAGRAPH:
            items, field = work.paragraphs, "paragraph"
        case CellType.MEDIA:
            items, field = work.media, "media"
        case CellType.LINK:
            items, field = work.links, "link"
        case _:
            return {}
    if cell.index >= len(items):
        raise LayoutIndexError(cell.type.plural, layout, len(items))
    return {field: items[cell.index]}


def arrange(work: LocalizedWork, grid: list[list[Cell]]) -> list[LaidOutElement]:
    """Lay out ``work``'s content following ``grid``.

    Spacers take up room in the grid but are not part of the result. Elements
    are ordered by starting column, then starting row.

    Raises
    ------
    LayoutIndexError
        If a cell refers past the end of the work's paragraphs, media or links.
    """
    indexed = assign_indices(grid)
    layout = _describe(indexed)
    positions: dict[tuple[CellType, int], list[Position]] = {}
    payloads: dict[tuple[CellType, int], dict[str, typ.Any]] = {}
    for row_number, row in enumerate(expand(indexed)):
        for column_number, cell in enumerate(row):
            key = (cell.type, cell.index)
            if key not in positions:
                payloads[key] = _payload(work, cell, layout)
                positions[key] = []
            positions[key].append((row_number, column_number))

    elements = [
        LaidOutElement(
            type=cell_type,
            index=index,
            positions=frozenset(cells),
            **payloads[(cell_type, index)],
        )
        for (cell_type, index), cells in positions.items()
        if cell_type is not CellType.SPACER
    ]
    elements.sort(
        key=lambda element: (
            element.bounds().column_start,
            element.bounds().row_start,
        )
    )
    return elements


def lay_out(work: LocalizedWork) -> list[LaidOutElement]:
    """Lay out ``work`` from its declared layout, or automatically when it has none.

    A declared layout holding only empty rows counts as no layout.

    Raises
    ------
    LayoutSyntaxError
        If the declared layout is malformed.
    LayoutIndexError
        If the declared layout refers to content the work does not have.
    """
    raw = work.metadata.layout
    grid = normalize(raw) if raw else []
    if not grid:
        grid = auto_layout(work)
    elements = arrange(work, grid)
    if not elements:
        logger.warning("layout of %s places no content", work.id)
    return elements

"""Normalize raw layout declarations into a grid of typed cells.

A layout is a list of rows. A row is either a single cell token or a list of
tokens; ``None`` stands for an empty spacer cell. Tokens are a type letter
(``p`` paragraph, ``m`` media, ``l`` link, ``.`` spacer) optionally followed
by a one-based index, as in ``m2``.

Examples
--------
>>> normalize_rows(["p", ["m1", None], ["[l]"]])
[['p'], ['m1', '.'], ['l']]
>>> [[str(cell) for cell in row] for row in normalize(["p", ["m1", "p"]])]
[['p'], ['m1', 'p']]
"""

from __future__ import annotations

import typing as typ

from .models import CELL_TYPES_BY_LETTER, Cell, CellType, LayoutSyntaxError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = ["normalize", "normalize_rows", "parse_cell"]


def _token(value: object) -> str:
    if value is None:
        return CellType.SPACER.letter
    return str(value).strip().removeprefix("[").removesuffix("]").strip()


def normalize_rows(raw: cabc.Iterable[object]) -> list[list[str]]:
    """Return ``raw`` as a list of non-empty rows of cell tokens.

    Empty rows are dropped.

    Raises
    ------
    LayoutSyntaxError
        If a row is neither a string, ``None`` nor a list of cells.
    """
    rows: list[list[str]] = []
    for row in raw:
        match row:
            case str() | None:
                rows.append([_token(row)])
            case list() | tuple():
                if row:
                    rows.append([_token(cell) for cell in row])
            case _:
                msg = "a layout row must be a cell or a list of cells"
                raise LayoutSyntaxError(repr(row), msg)
    return rows


def parse_cell(token: str) -> Cell:
    """Parse a single cell token.

    Raises
    ------
    LayoutSyntaxError
        If the token is empty, starts with an unknown letter, or carries an
        index that is not a positive integer.

    Examples
    --------
    >>> parse_cell("m2")
    Cell(type=<CellType.MEDIA: 'media'>, index=1)
    """
    text = _token(token)
    if not text:
        raise LayoutSyntaxError(token, "empty cell")
    cell_type = CELL_TYPES_BY_LETTER.get(text[0])
    if cell_type is None:
        raise LayoutSyntaxError(token, "unknown cell type, expected one of p m l .")
    digits = text[1:]
    if not digits:
        return Cell(cell_type)
    if not (digits.isascii() and digits.isdigit()):
        raise LayoutSyntaxError(token, "the index must be a positive integer")
    number = int(digits)
    if number < 1:
        raise LayoutSyntaxError(token, "indices start at 1")
    return Cell(cell_type, number - 1)


def normalize(raw: cabc.Iterable[object]) -> list[list[Cell]]:
    """Return ``raw`` as a grid of parsed cells."""
    return [[parse_cell(token) for token in row] for row in normalize_rows(raw)]

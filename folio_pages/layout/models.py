"""Types describing layout cells and the elements they lay out."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    from folio_pages.database.models import Link, Media, Paragraph

UNSET_INDEX = -1


class LayoutError(ValueError):
    """Base class for layouts that cannot be honored."""


class LayoutSyntaxError(LayoutError):
    """Raised when a layout cell or row is malformed."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid layout cell {token!r}: {reason}")


class LayoutIndexError(LayoutError):
    """Raised when a layout refers to more elements than the work has."""

    def __init__(self, kind: str, layout: str, available: int) -> None:
        self.kind = kind
        self.layout = layout
        self.available = available
        super().__init__(
            f"Not enough {kind} to satisfy the layout {layout}: "
            f"the work has only {available} {kind}"
        )


class CellType(enum.StrEnum):
    """Kinds of content a layout cell can hold."""

    PARAGRAPH = "paragraph"
    MEDIA = "media"
    LINK = "link"
    SPACER = "spacer"

    @property
    def letter(self) -> str:
        return "." if self is CellType.SPACER else self.value[0]

    @property
    def plural(self) -> str:
        """Return the name used for the kind in error messages."""
        return {
            CellType.PARAGRAPH: "paragraphs",
            CellType.MEDIA: "media",
            CellType.LINK: "links",
            CellType.SPACER: "spacers",
        }[self]


CELL_TYPES_BY_LETTER = {cell_type.letter: cell_type for cell_type in CellType}


@dc.dataclass(frozen=True, slots=True)
class Cell:
    """A layout cell: a content type and an optional zero-based index.

    An omitted index is stored as ``UNSET_INDEX`` until the engine assigns one.
    """

    type: CellType
    index: int = UNSET_INDEX

    @property
    def has_index(self) -> bool:
        return self.index != UNSET_INDEX

    def __str__(self) -> str:
        if not self.has_index:
            return self.type.letter
        return f"{self.type.letter}{self.index + 1}"


@dc.dataclass(frozen=True, slots=True)
class Bounds:
    """Inclusive, zero-based extent of an element in the grid."""

    row_start: int
    row_end: int
    column_start: int
    column_end: int

    def css(self) -> str:
        """Return CSS grid placement with one-based, end-exclusive lines.

        Examples
        --------
        >>> Bounds(row_start=2, row_end=6, column_start=0, column_end=0).css()
        'grid-column: 1 / 2; grid-row: 3 / 8;'
        """
        return (
            f"grid-column: {self.column_start + 1} / {self.column_end + 2}; "
            f"grid-row: {self.row_start + 1} / {self.row_end + 2};"
        )


Position = tuple[int, int]


@dc.dataclass(frozen=True, slots=True)
class LaidOutElement:
    """A content element placed on the layout grid.

    ``positions`` holds every ``(row, column)`` of the expanded grid the
    element covers; exactly one of ``paragraph``, ``media`` or ``link`` is set
    to match ``type``.
    """

    type: CellType
    index: int
    positions: frozenset[Position]
    paragraph: Paragraph | None = None
    media: Media | None = None
    link: Link | None = None

    @property
    def key(self) -> str:
        return f"{self.type}{self.index}"

    @property
    def general_content_type(self) -> str:
        return "" if self.media is None else self.media.general_content_type

    @property
    def id(self) -> str:
        payload = self.paragraph or self.media or self.link
        return "" if payload is None else payload.id

    @property
    def title(self) -> str:
        if self.media is not None:
            return self.media.title
        if self.link is not None:
            return self.link.title
        return ""

    def bounds(self) -> Bounds:
        rows = [row for row, _ in self.positions]
        columns = [column for _, column in self.positions]
        return Bounds(
            row_start=min(rows),
            row_end=max(rows),
            column_start=min(columns),
            column_end=max(columns),
        )

    def css(self) -> str:
        return self.bounds().css()

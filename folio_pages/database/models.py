"""Typed records describing the portfolio content database."""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
import typing as typ
import unicodedata

from bs4 import BeautifulSoup

if typ.TYPE_CHECKING:
    import collections.abc as cabc

DEFAULT_LANGUAGE_KEY = "default"
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


class DatabaseError(ValueError):
    """Raised when a database file is missing, malformed or inconsistent."""


def slugify(value: str) -> str:
    """Return a lowercase, dash-separated, ASCII-only form of ``value``.

    Examples
    --------
    >>> slugify("Motion design")
    'motion-design'
    >>> slugify("Créations sonores")
    'creations-sonores'
    """
    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = decomposed.encode("ascii", "ignore").decode("ascii")
    return _SLUG_PATTERN.sub("-", ascii_only.lower()).strip("-")


def parse_work_date(value: str) -> dt.date | None:
    """Parse a ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY`` date, or ``None`` if blank."""
    text = value.strip()
    if not text or text == "????":
        return None
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).replace(tzinfo=dt.UTC).date()
        except ValueError:
            continue
    msg = f"Unrecognized work date: {value!r}"
    raise DatabaseError(msg)


@dc.dataclass(frozen=True, slots=True)
class Paragraph:
    """A block of rich-text content belonging to a work."""

    id: str
    content: str

    @property
    def text(self) -> str:
        """Return the paragraph content stripped of its HTML markup."""
        return BeautifulSoup(self.content, "html.parser").get_text()


@dc.dataclass(frozen=True, slots=True)
class Media:
    """An image, video, audio clip or document attached to a work."""

    id: str
    source: str
    content_type: str = ""
    duration: float = 0.0
    alt: str = ""
    title: str = ""
    attributes: dict[str, bool] = dc.field(default_factory=dict)

    @property
    def general_content_type(self) -> str:
        """Return ``pdf`` for PDF documents, else the MIME type's leading part."""
        if self.content_type == "application/pdf":
            return "pdf"
        return self.content_type.split("/", 1)[0]


@dc.dataclass(frozen=True, slots=True)
class Link:
    """An outbound hyperlink attached to a work."""

    id: str
    url: str
    name: str = ""
    title: str = ""


@dc.dataclass(frozen=True, slots=True)
class WorkColors:
    """Theme colors declared by a work."""

    primary: str = ""
    secondary: str = ""
    tertiary: str = ""

    def css(self) -> str:
        """Return CSS custom property declarations for the declared colors."""
        declarations = [
            f"--{name}: {value};"
            for name, value in (
                ("primary", self.primary),
                ("secondary", self.secondary),
                ("tertiary", self.tertiary),
            )
            if value
        ]
        return " ".join(declarations)


@dc.dataclass(frozen=True, slots=True)
class WorkMetadata:
    """Metadata shared by every language of a work.

    When only ``created`` is known, ``started`` and ``finished`` default to it.
    ``layout`` keeps whatever raw shape the database declared; the layout parser
    normalizes it on demand.
    """

    created: str = ""
    started: str = ""
    finished: str = ""
    tags: tuple[str, ...] = ()
    made_with: tuple[str, ...] = ()
    colors: WorkColors = dc.field(default_factory=WorkColors)
    layout: list[typ.Any] = dc.field(default_factory=list)
    page_background: str = ""
    title: str = ""
    wip: bool = False
    private: bool = False
    thumbnail: str = ""

    def __post_init__(self) -> None:
        if self.created and not self.started and not self.finished:
            object.__setattr__(self, "started", self.created)
            object.__setattr__(self, "finished", self.created)

    @property
    def is_wip(self) -> bool:
        """Return ``True`` when flagged as work in progress or started but unfinished."""
        return self.wip or (bool(self.started) and not self.finished)

    def created_date(self) -> dt.date | None:
        """Return the most relevant date: creation, else finish, else start."""
        for value in (self.created, self.finished, self.started):
            if value:
                return parse_work_date(value)
        return None


def _localized(
    values: cabc.Mapping[str, list[typ.Any]], language: str
) -> list[typ.Any]:
    """Pick ``language``'s entries when non-empty, else the default ones."""
    chosen = values.get(language) or values.get(DEFAULT_LANGUAGE_KEY) or []
    return list(chosen)


@dc.dataclass(frozen=True, slots=True)
class LocalizedWork:
    """A work with its content resolved for a single language."""

    id: str
    language: str
    metadata: WorkMetadata
    title: str
    paragraphs: list[Paragraph]
    media: list[Media]
    links: list[Link]
    footnotes: dict[str, str]

    def __str__(self) -> str:
        return self.id

    @property
    def is_wip(self) -> bool:
        return self.metadata.is_wip

    @property
    def tags(self) -> tuple[str, ...]:
        return self.metadata.tags

    @property
    def made_with(self) -> tuple[str, ...]:
        return self.metadata.made_with

    def created_date(self) -> dt.date | None:
        return self.metadata.created_date()

    @property
    def summary(self) -> str:
        """Return the plain text of the first paragraph, if any."""
        if not self.paragraphs:
            return ""
        return self.paragraphs[0].text

    def thumbnail_source(self) -> str:
        """Return the thumbnail path, else the first image's source."""
        if self.metadata.thumbnail:
            return self.metadata.thumbnail
        for media in self.media:
            if media.general_content_type == "image":
                return media.source
        return ""


@dc.dataclass(frozen=True, slots=True)
class Work:
    """A portfolio work with per-language content.

    Content fields map a language code to its entries; the ``default`` key is
    used when a language has no entries of its own.
    """

    id: str
    metadata: WorkMetadata = dc.field(default_factory=WorkMetadata)
    title: dict[str, str] = dc.field(default_factory=dict)
    paragraphs: dict[str, list[Paragraph]] = dc.field(default_factory=dict)
    media: dict[str, list[Media]] = dc.field(default_factory=dict)
    links: dict[str, list[Link]] = dc.field(default_factory=dict)
    footnotes: dict[str, dict[str, str]] = dc.field(default_factory=dict)

    def __str__(self) -> str:
        return self.id

    def in_language(self, language: str) -> LocalizedWork:
        """Resolve every content field for ``language``.

        Examples
        --------
        >>> work = Work(id="neptune", title={"default": "Neptune"})
        >>> work.in_language("fr").title
        'Neptune'
        """
        title = (
            self.title.get(language)
            or self.title.get(DEFAULT_LANGUAGE_KEY)
            or self.metadata.title
            or self.id
        )
        footnotes = (
            self.footnotes.get(language)
            or self.footnotes.get(DEFAULT_LANGUAGE_KEY)
            or {}
        )
        return LocalizedWork(
            id=self.id,
            language=language,
            metadata=self.metadata,
            title=title,
            paragraphs=_localized(self.paragraphs, language),
            media=_localized(self.media, language),
            links=_localized(self.links, language),
            footnotes=dict(footnotes),
        )


def _matches_any(name: str, candidates: cabc.Iterable[str]) -> bool:
    wanted = name.casefold()
    return any(candidate.casefold() == wanted for candidate in candidates if candidate)


@dc.dataclass(frozen=True, slots=True)
class Tag:
    """A thematic tag applied to works."""

    singular: str
    plural: str
    aliases: tuple[str, ...] = ()
    description: str = ""
    learn_more_at: str = ""

    def __str__(self) -> str:
        return self.url_name

    @property
    def url_name(self) -> str:
        return slugify(self.plural)

    def referred_to_by(self, name: str) -> bool:
        """Return ``True`` when ``name`` designates this tag, ignoring case."""
        return _matches_any(
            name, (self.plural, self.singular, self.url_name, *self.aliases)
        )


@dc.dataclass(frozen=True, slots=True)
class Technology:
    """A tool, language or medium a work is made with."""

    slug: str
    name: str
    aliases: tuple[str, ...] = ()
    by: str = ""
    learn_more_at: str = ""
    description: str = ""

    def __str__(self) -> str:
        return self.slug

    def referred_to_by(self, name: str) -> bool:
        """Return ``True`` when ``name`` designates this technology, ignoring case."""
        return _matches_any(name, (self.slug, self.name, *self.aliases))


@dc.dataclass(frozen=True, slots=True)
class ExternalSite:
    """A third-party site hosting the author's profile or content."""

    name: str
    url: str
    purpose: str = ""
    aliases: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.url_name

    @property
    def url_name(self) -> str:
        return slugify(self.name)

    def referred_to_by(self, name: str) -> bool:
        """Return ``True`` when ``name`` designates this site, ignoring case."""
        return _matches_any(name, (self.name, self.url_name, *self.aliases))


@dc.dataclass(frozen=True, slots=True)
class LocalizedCollection:
    """A collection with its title and description resolved for one language."""

    id: str
    language: str
    title: str
    description: str
    learn_more_at: str = ""
    aliases: tuple[str, ...] = ()
    works: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.id

    def referred_to_by(self, name: str) -> bool:
        return _matches_any(name, (self.id, self.title, *self.aliases))


@dc.dataclass(frozen=True, slots=True)
class Collection:
    """A named group of works selected by a membership predicate.

    ``title`` and ``description`` map a language code to text, with the
    ``default`` key as fallback. ``works`` holds the IDs of matching works once
    the database has been loaded.
    """

    id: str
    title: dict[str, str] = dc.field(default_factory=dict)
    description: dict[str, str] = dc.field(default_factory=dict)
    learn_more_at: str = ""
    includes: str = ""
    aliases: tuple[str, ...] = ()
    works: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.id

    def title_in(self, language: str) -> str:
        return self.title.get(language) or self.title.get(DEFAULT_LANGUAGE_KEY, self.id)

    def description_in(self, language: str) -> str:
        return self.description.get(language) or self.description.get(
            DEFAULT_LANGUAGE_KEY, ""
        )

    def in_language(self, language: str) -> LocalizedCollection:
        """Resolve the title and description for ``language``.

        Examples
        --------
        >>> collection = Collection(id="godot", title={"fr": "Jeux Godot"})
        >>> collection.in_language("fr").title
        'Jeux Godot'
        >>> collection.in_language("en").title
        'godot'
        """
        return LocalizedCollection(
            id=self.id,
            language=language,
            title=self.title_in(language),
            description=self.description_in(language),
            learn_more_at=self.learn_more_at,
            aliases=self.aliases,
            works=self.works,
        )

    def referred_to_by(self, name: str) -> bool:
        return _matches_any(name, (self.id, *self.title.values(), *self.aliases))


@dc.dataclass(slots=True)
class Database:
    """All records available to the site builder."""

    works: list[Work] = dc.field(default_factory=list)
    tags: list[Tag] = dc.field(default_factory=list)
    technologies: list[Technology] = dc.field(default_factory=list)
    sites: list[ExternalSite] = dc.field(default_factory=list)
    collections: list[Collection] = dc.field(default_factory=list)

    def public_works(self) -> list[Work]:
        """Return the works not flagged as private."""
        return [work for work in self.works if not work.metadata.private]

    def work(self, work_id: str) -> Work:
        for work in self.works:
            if work.id == work_id:
                return work
        msg = f"No work with ID {work_id!r}"
        raise LookupError(msg)

    def lookup_tag(self, name: str) -> Tag:
        """Return the tag referred to by ``name``.

        Raises
        ------
        LookupError
            If no tag answers to ``name``.
        """
        for tag in self.tags:
            if tag.referred_to_by(name):
                return tag
        msg = f"No tag is referred to by {name!r}"
        raise LookupError(msg)

    def lookup_technology(self, name: str) -> Technology:
        """Return the technology referred to by ``name``.

        Raises
        ------
        LookupError
            If no technology answers to ``name``.
        """
        for technology in self.technologies:
            if technology.referred_to_by(name):
                return technology
        msg = f"No technology is referred to by {name!r}"
        raise LookupError(msg)

    def lookup_site(self, name: str) -> ExternalSite:
        for site in self.sites:
            if site.referred_to_by(name):
                return site
        msg = f"No site is referred to by {name!r}"
        raise LookupError(msg)

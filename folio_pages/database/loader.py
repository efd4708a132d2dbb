"""Load the portfolio database from its directory of JSON and YAML files.

The works live in ``database.json``, a JSON array produced by the portfolio
database builder. Tags, technologies, external sites and collections are
hand-written YAML files next to it. Work keys may be spelled with underscores
or spaces (``made_with`` or ``made with``).

Examples
--------
>>> from pathlib import Path
>>> from folio_pages.database import load_database
>>> database = load_database(Path("database"))  # doctest: +SKIP
>>> [work.id for work in database.works][:1]  # doctest: +SKIP
['neptune']
"""

from __future__ import annotations

import json
import logging
import re
import typing as typ
from pathlib import Path

from markdown import markdown
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from folio_pages import _constants
from folio_pages.paths.expressions import ExpressionEngine, ExpressionError

from .collections import collection_contains
from .models import (
    Collection,
    Database,
    DatabaseError,
    ExternalSite,
    Link,
    Media,
    Paragraph,
    Tag,
    Technology,
    Work,
    WorkColors,
    WorkMetadata,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = ["load_additional_data", "load_database", "load_works"]

logger = logging.getLogger(__name__)

_WORD_BOUNDARY = re.compile(r"[\s_\-]+")


def _yaml_loader() -> YAML:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    return loader


def _get(payload: cabc.Mapping[str, typ.Any], name: str, default: object = None) -> typ.Any:  # noqa: ANN401
    """Look ``name`` up under its underscore, space and camelCase spellings."""
    words = name.split("_")
    camel = words[0] + "".join(word.capitalize() for word in words[1:])
    for key in (name, " ".join(words), camel):
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _strings(values: object) -> tuple[str, ...]:
    match values:
        case None:
            return ()
        case str():
            return (values,)
        case list() | tuple():
            return tuple(str(value) for value in values)
        case _:
            msg = f"Expected a list of strings, got {values!r}"
            raise DatabaseError(msg)


def _per_language(
    payload: object,
    build: cabc.Callable[[cabc.Mapping[str, typ.Any]], typ.Any],
) -> dict[str, list[typ.Any]]:
    if not isinstance(payload, dict):
        return {}
    return {
        language: [build(item) for item in items or []]
        for language, items in payload.items()
    }


def _build_paragraph(raw: cabc.Mapping[str, typ.Any]) -> Paragraph:
    return Paragraph(id=str(_get(raw, "id", "")), content=str(_get(raw, "content", "")))


def _build_media(raw: cabc.Mapping[str, typ.Any]) -> Media:
    attributes = _get(raw, "attributes", {})
    return Media(
        id=str(_get(raw, "id", "")),
        source=str(_get(raw, "source", "") or _get(raw, "path", "")),
        content_type=str(_get(raw, "content_type", "")),
        duration=float(_get(raw, "duration", 0.0)),
        alt=str(_get(raw, "alt", "")),
        title=str(_get(raw, "title", "")),
        attributes={str(key): bool(value) for key, value in attributes.items()},
    )


def _build_link(raw: cabc.Mapping[str, typ.Any]) -> Link:
    return Link(
        id=str(_get(raw, "id", "")),
        url=str(_get(raw, "url", "")),
        name=str(_get(raw, "name", "")),
        title=str(_get(raw, "title", "")),
    )


def _build_metadata(raw: cabc.Mapping[str, typ.Any]) -> WorkMetadata:
    colors = _get(raw, "colors", {})
    layout = _get(raw, "layout", [])
    if not isinstance(layout, list):
        msg = f"A work layout must be a list of rows, got {layout!r}"
        raise DatabaseError(msg)
    return WorkMetadata(
        created=str(_get(raw, "created", "")),
        started=str(_get(raw, "started", "")),
        finished=str(_get(raw, "finished", "")),
        tags=_strings(_get(raw, "tags")),
        made_with=_strings(_get(raw, "made_with")),
        colors=WorkColors(
            primary=str(_get(colors, "primary", "")),
            secondary=str(_get(colors, "secondary", "")),
            tertiary=str(_get(colors, "tertiary", "")),
        ),
        layout=layout,
        page_background=str(_get(raw, "page_background", "")),
        title=str(_get(raw, "title", "")),
        wip=bool(_get(raw, "wip", False)),
        private=bool(_get(raw, "private", False)),
        thumbnail=str(_get(raw, "thumbnail", "")),
    )


def _build_work(raw: cabc.Mapping[str, typ.Any]) -> Work:
    work_id = _get(raw, "id")
    if not work_id:
        msg = "Every work needs an 'id'"
        raise DatabaseError(msg)
    footnotes = _get(raw, "footnotes", {})
    return Work(
        id=str(work_id),
        metadata=_build_metadata(_get(raw, "metadata", {})),
        title={str(key): str(value) for key, value in _get(raw, "title", {}).items()},
        paragraphs=_per_language(_get(raw, "paragraphs"), _build_paragraph),
        media=_per_language(_get(raw, "media"), _build_media),
        links=_per_language(_get(raw, "links"), _build_link),
        footnotes={
            str(language): {str(key): str(value) for key, value in (notes or {}).items()}
            for language, notes in footnotes.items()
        },
    )


def load_works(path: Path) -> list[Work]:
    """Load the works array from ``path``.

    Raises
    ------
    DatabaseError
        If the file cannot be read, is not valid JSON, or holds malformed works.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Could not load works from {path}: {exc}"
        raise DatabaseError(msg) from exc
    if not isinstance(payload, list):
        msg = f"{path} must hold a JSON array of works"
        raise DatabaseError(msg)
    try:
        works = [_build_work(item) for item in payload]
    except (AttributeError, TypeError, ValueError) as exc:
        msg = f"Malformed work in {path}: {exc}"
        raise DatabaseError(msg) from exc
    logger.info("loaded %d works from %s", len(works), path)
    return works


def _load_yaml(path: Path, *, required: bool) -> typ.Any:  # noqa: ANN401
    if not path.exists():
        if required:
            msg = f"Database file '{path}' not found."
            raise DatabaseError(msg)
        logger.info("%s not found, assuming it is empty", path)
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            return _yaml_loader().load(handle)
    except YAMLError as exc:
        msg = f"Could not parse {path}: {exc}"
        raise DatabaseError(msg) from exc


def _records(
    path: Path, *, required: bool, kind: type[list] | type[dict] = list
) -> typ.Any:  # noqa: ANN401
    loaded = _load_yaml(path, required=required)
    if loaded is None:
        return kind()
    if not isinstance(loaded, kind):
        msg = f"{path} must hold a YAML {'sequence' if kind is list else 'mapping'}"
        raise DatabaseError(msg)
    return loaded


def _build_tag(raw: cabc.Mapping[str, typ.Any]) -> Tag:
    singular = str(_get(raw, "singular", ""))
    return Tag(
        singular=singular,
        plural=str(_get(raw, "plural", singular)),
        aliases=_strings(_get(raw, "aliases")),
        description=str(_get(raw, "description", "")),
        learn_more_at=str(_get(raw, "learn_more_at", "")),
    )


def _build_technology(raw: cabc.Mapping[str, typ.Any]) -> Technology:
    name = str(_get(raw, "name", ""))
    return Technology(
        slug=str(_get(raw, "slug", name)),
        name=name,
        aliases=_strings(_get(raw, "aliases")),
        by=str(_get(raw, "by", "")),
        learn_more_at=str(_get(raw, "learn_more_at", "")),
        description=str(_get(raw, "description", "")),
    )


def _build_site(raw: cabc.Mapping[str, typ.Any]) -> ExternalSite:
    return ExternalSite(
        name=str(_get(raw, "name", "")),
        url=str(_get(raw, "url", "")),
        purpose=str(_get(raw, "purpose", "")),
        aliases=_strings(_get(raw, "aliases")),
    )


def _translations(payload: object) -> dict[str, str]:
    match payload:
        case None:
            return {}
        case str():
            return {"default": payload}
        case dict():
            return {str(key): str(value) for key, value in payload.items()}
        case _:
            msg = f"Expected a text or a mapping of language to text, got {payload!r}"
            raise DatabaseError(msg)


def _build_collection(collection_id: str, raw: cabc.Mapping[str, typ.Any]) -> Collection:
    descriptions = _translations(_get(raw, "description"))
    return Collection(
        id=collection_id,
        title=_translations(_get(raw, "title")),
        description={
            language: markdown(text) for language, text in descriptions.items()
        },
        learn_more_at=str(_get(raw, "learn_more_at", "")),
        includes=str(_get(raw, "includes", "")),
        aliases=_strings(_get(raw, "aliases")),
    )


def _fill_collections(
    collections: cabc.Iterable[Collection],
    database: Database,
    engine: ExpressionEngine,
) -> list[Collection]:
    filled: list[Collection] = []
    for collection in collections:
        members: list[str] = []
        for work in database.works:
            try:
                contained = collection_contains(collection, work, database, engine)
            except ExpressionError as exc:
                msg = f"While checking if {work.id} is in {collection.id}: {exc}"
                raise DatabaseError(msg) from exc
            if contained:
                members.append(work.id)
        logger.debug("collection %s holds %s", collection.id, members)
        filled.append(
            Collection(
                id=collection.id,
                title=collection.title,
                description=collection.description,
                learn_more_at=collection.learn_more_at,
                includes=collection.includes,
                aliases=collection.aliases,
                works=tuple(members),
            )
        )
    return filled


def load_database(directory: Path, *, engine: ExpressionEngine | None = None) -> Database:
    """Load every database file found in ``directory``.

    Parameters
    ----------
    directory : Path
        Folder holding ``database.json`` and the YAML record files.
    engine : ExpressionEngine, optional
        Engine used to evaluate collection predicates. A fresh one is created
        when omitted.

    Returns
    -------
    Database
        Works, tags, technologies, sites and filled collections. Missing
        ``sites.yaml`` or ``collections.yaml`` files yield empty lists.

    Raises
    ------
    DatabaseError
        If a required file is missing, a file is malformed, or a collection
        predicate cannot be evaluated.
    """
    works = load_works(directory / _constants.WORKS_FILE)
    try:
        tags = [
            _build_tag(raw)
            for raw in _records(directory / _constants.TAGS_FILE, required=True)
        ]
        technologies = [
            _build_technology(raw)
            for raw in _records(directory / _constants.TECHNOLOGIES_FILE, required=True)
        ]
        sites = [
            _build_site(raw)
            for raw in _records(directory / _constants.SITES_FILE, required=False)
        ]
        collections = [
            _build_collection(str(collection_id), raw or {})
            for collection_id, raw in _records(
                directory / _constants.COLLECTIONS_FILE, required=False, kind=dict
            ).items()
        ]
    except (AttributeError, TypeError) as exc:
        msg = f"Malformed record in {directory}: {exc}"
        raise DatabaseError(msg) from exc
    database = Database(
        works=works, tags=tags, technologies=technologies, sites=sites
    )
    database.collections = _fill_collections(
        collections, database, engine or ExpressionEngine()
    )
    return database


def _camel_case(stem: str) -> str:
    words = [word for word in _WORD_BOUNDARY.split(stem) if word]
    if not words:
        return stem
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def load_additional_data(paths: cabc.Iterable[Path]) -> dict[str, typ.Any]:
    """Load extra YAML or JSON files exposed to templates.

    Each file is available under the camelCase form of its stem, so
    ``data/social-links.yaml`` becomes ``socialLinks``.

    Raises
    ------
    DatabaseError
        If a file cannot be read or parsed.
    """
    data: dict[str, typ.Any] = {}
    for path in paths:
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = _yaml_loader().load(handle)
        except (OSError, YAMLError) as exc:
            msg = f"Could not load additional data from {path}: {exc}"
            raise DatabaseError(msg) from exc
        if loaded is None:
            logger.warning("additional data from %s is empty", path)
        data[_camel_case(path.stem)] = loaded
    return data

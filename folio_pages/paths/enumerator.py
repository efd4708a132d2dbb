"""Work out which objects a template iterates and how many pages it yields."""

from __future__ import annotations

import enum
import logging
import math
import re
import typing as typ

from .resolver import dynamic_path_expressions

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import PurePath

    from folio_pages.database.models import Database

__all__ = ["PageEnumerator", "PathVariable", "classify_expression"]

logger = logging.getLogger(__name__)

_NARROWED_LANGUAGE = re.compile(r"^\s*lang(?:uage)?\s+is\s+.+$", re.DOTALL)
_LEADING_VARIABLE = re.compile(
    r"^\s*(?P<name>work|tag|technology|tech|site|collection|language|lang)\b"
)


class PathVariable(enum.StrEnum):
    """What a dynamic path segment ranges over."""

    WORK = "work"
    TAG = "tag"
    TECHNOLOGY = "technology"
    SITE = "site"
    COLLECTION = "collection"
    LANGUAGE = "language"
    NARROWED_LANGUAGE = "narrowed language"

    @property
    def is_object(self) -> bool:
        """Return ``True`` for the kinds backed by database records."""
        return self not in {PathVariable.LANGUAGE, PathVariable.NARROWED_LANGUAGE}


_ALIASES = {"tech": PathVariable.TECHNOLOGY, "lang": PathVariable.LANGUAGE}


def classify_expression(expression: str) -> PathVariable | None:
    """Classify a dynamic segment by the variable it starts with.

    Examples
    --------
    >>> classify_expression('language is "fr"')
    <PathVariable.NARROWED_LANGUAGE: 'narrowed language'>
    >>> classify_expression("tech.slug")
    <PathVariable.TECHNOLOGY: 'technology'>
    >>> classify_expression("true") is None
    True
    """
    if _NARROWED_LANGUAGE.match(expression):
        return PathVariable.NARROWED_LANGUAGE
    match = _LEADING_VARIABLE.match(expression)
    if match is None:
        return None
    name = match.group("name")
    return _ALIASES.get(name) or PathVariable(name)


class PageEnumerator:
    """Count the pages each template produces.

    Parameters
    ----------
    database : Database
        Records the templates iterate over.
    languages : Sequence[str]
        Languages every page is rendered in.
    """

    def __init__(self, database: Database, languages: cabc.Sequence[str]) -> None:
        self.database = database
        self.languages = tuple(languages)

    def collection_size(self, variable: PathVariable) -> int:
        match variable:
            case PathVariable.WORK:
                return len(self.database.public_works())
            case PathVariable.TAG:
                return len(self.database.tags)
            case PathVariable.TECHNOLOGY:
                return len(self.database.technologies)
            case PathVariable.SITE:
                return len(self.database.sites)
            case PathVariable.COLLECTION:
                return len(self.database.collections)
            case _:
                return 1

    def variables(self, template: str | PurePath) -> list[PathVariable]:
        """Return the distinct variables ``template`` uses, in path order."""
        found: list[PathVariable] = []
        for expression in dynamic_path_expressions(template):
            variable = classify_expression(expression)
            if variable is not None and variable not in found:
                found.append(variable)
        return found

    def iterated_objects(self, template: str | PurePath) -> list[PathVariable]:
        """Return the record kinds ``template`` renders one page per item of."""
        return [variable for variable in self.variables(template) if variable.is_object]

    def count(self, template: str | PurePath) -> int:
        """Return how many pages ``template`` yields.

        Examples
        --------
        >>> from folio_pages.database.models import Database
        >>> PageEnumerator(Database(), ["fr", "en"]).count("src/about.pug")
        2
        """
        variables = self.variables(template)
        pages = math.prod(
            self.collection_size(variable)
            for variable in variables
            if variable.is_object
        )
        if PathVariable.NARROWED_LANGUAGE in variables:
            return pages
        return pages * len(self.languages)

    def total(self, templates: cabc.Iterable[str | PurePath]) -> int:
        """Sum the page counts of ``templates``; failures count as zero."""
        total = 0
        for template in templates:
            try:
                total += self.count(template)
            except (ValueError, LookupError) as exc:
                logger.warning("could not enumerate pages of %s: %s", template, exc)
        return total

"""Render page templates with the portfolio database in context.

Templates are Jinja2 files; ``.pug`` templates are converted on the fly by
the pypugjs Jinja extension. Every page receives the localized database, the
object it is rendered for and, on work pages, the laid-out content grid.
"""

from __future__ import annotations

import datetime as dt
import logging
import typing as typ

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from folio_pages.layout import LayoutSyntaxError, arrange, auto_layout, lay_out

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from folio_pages.database.models import Database, LocalizedWork
    from folio_pages.layout import LaidOutElement
    from folio_pages.paths import Hydration

__all__ = ["PageRenderer", "TemplateRenderError"]

logger = logging.getLogger(__name__)

PUG_EXTENSION = "pypugjs.ext.jinja.PyPugJSExtension"
_UNDATED = dt.date.max


class TemplateRenderError(ValueError):
    """Raised when a template fails to render for a given page."""

    def __init__(self, template: str, subject: str, language: str, reason: str) -> None:
        self.template = template
        self.subject = subject
        self.language = language
        self.reason = reason
        target = f"{subject} in {language}" if subject else language
        super().__init__(f"Could not render {template} for {target}: {reason}")


def _creation_key(work: LocalizedWork) -> dt.date:
    return work.created_date() or _UNDATED


def tagged(works: cabc.Iterable[LocalizedWork], *names: str) -> list[LocalizedWork]:
    """Keep works carrying any of the tags ``names``."""
    wanted = {name.casefold() for name in names}
    return [
        work for work in works if any(tag.casefold() in wanted for tag in work.tags)
    ]


def made_with(works: cabc.Iterable[LocalizedWork], *names: str) -> list[LocalizedWork]:
    """Keep works made with any of the technologies ``names``."""
    wanted = {name.casefold() for name in names}
    return [
        work
        for work in works
        if any(technology.casefold() in wanted for technology in work.made_with)
    ]


def finished(works: cabc.Iterable[LocalizedWork]) -> list[LocalizedWork]:
    return [work for work in works if not work.is_wip]


def unfinished(works: cabc.Iterable[LocalizedWork]) -> list[LocalizedWork]:
    return [work for work in works if work.is_wip]


def created_in(works: cabc.Iterable[LocalizedWork], year: int) -> list[LocalizedWork]:
    return [
        work
        for work in works
        if (created := work.created_date()) is not None and created.year == int(year)
    ]


def latest(works: cabc.Iterable[LocalizedWork]) -> list[LocalizedWork]:
    """Sort works newest first; undated works come first, as ongoing ones."""
    return sorted(works, key=_creation_key, reverse=True)


def excluding(
    works: cabc.Iterable[LocalizedWork], *excluded: LocalizedWork | str
) -> list[LocalizedWork]:
    ids = {str(work) for work in excluded}
    return [work for work in works if work.id not in ids]


def years_of_works(works: cabc.Iterable[LocalizedWork]) -> list[int]:
    """Return the distinct creation years of ``works``, most recent first."""
    years = {created.year for work in works if (created := work.created_date())}
    return sorted(years, reverse=True)


class PageRenderer:
    """Render templates from ``templates_dir`` against ``database``.

    Parameters
    ----------
    database : Database
        Records exposed to every template.
    templates_dir : Path
        Root of the template tree; template names are relative to it.
    additional_data : Mapping[str, Any], optional
        Extra values exposed to every template, keyed by name.
    """

    def __init__(
        self,
        database: Database,
        templates_dir: Path,
        *,
        additional_data: cabc.Mapping[str, typ.Any] | None = None,
    ) -> None:
        self.database = database
        self.templates_dir = templates_dir
        self.additional_data = dict(additional_data or {})
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(("html", "htm", "xml", "pug")),
            trim_blocks=True,
            lstrip_blocks=True,
            extensions=[PUG_EXTENSION],
        )
        self.env.filters.update(
            tagged=tagged,
            made_with=made_with,
            finished=finished,
            unfinished=unfinished,
            created_in=created_in,
            latest=latest,
            excluding=excluding,
            years_of_works=years_of_works,
        )
        self.env.globals.update(
            lookup_tag=database.lookup_tag,
            lookup_tech=database.lookup_technology,
            lookup_site=database.lookup_site,
        )

    def layout_for(self, work: LocalizedWork) -> list[LaidOutElement]:
        """Lay ``work`` out, falling back to the automatic layout when malformed.

        Raises
        ------
        LayoutIndexError
            If the declared layout refers to content the work does not have.
        """
        try:
            return lay_out(work)
        except LayoutSyntaxError as exc:
            logger.warning(
                "malformed layout for %s (%s), using the automatic layout", work.id, exc
            )
            return arrange(work, auto_layout(work))

    def template_data(self, hydration: Hydration) -> dict[str, typ.Any]:
        """Return the context ``hydration``'s page is rendered with."""
        language = hydration.language
        data: dict[str, typ.Any] = dict(self.additional_data)
        data.update(
            works=[work.in_language(language) for work in self.database.public_works()],
            tags=self.database.tags,
            technologies=self.database.technologies,
            sites=self.database.sites,
            collections=[
                collection.in_language(language)
                for collection in self.database.collections
            ],
            current_work=hydration.work,
            current_tag=hydration.tag,
            current_tech=hydration.tech,
            current_site=hydration.site,
            current_collection=hydration.collection,
            layout=[] if hydration.work is None else self.layout_for(hydration.work),
            language=language,
        )
        return data

    def render(self, template_name: str, hydration: Hydration) -> str:
        """Render ``template_name`` for ``hydration``.

        Raises
        ------
        TemplateRenderError
            If the template cannot be loaded or fails while rendering.
        LayoutIndexError
            If the current work's layout refers to missing content.
        """
        context = self.template_data(hydration)
        try:
            template = self.env.get_template(template_name)
            html = template.render(**context)
        except (TemplateError, LookupError, TypeError, ValueError) as exc:
            raise TemplateRenderError(
                template_name, hydration.name, hydration.language, str(exc)
            ) from exc
        if not html.endswith("\n"):
            html += "\n"
        return html

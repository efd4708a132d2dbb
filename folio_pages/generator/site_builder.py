"""Build every page of the site from the template tree.

For each template, :class:`SiteBuilder` renders one page per object of every
record kind the template's path iterates (works, tags, technologies, sites,
collections) and per configured language. Paths whose dynamic segments
evaluate to a falsy value are skipped. Templates are processed concurrently on
a thread pool; a failing page is logged and reported without stopping the
build.

Examples
--------
>>> from pathlib import Path
>>> from folio_pages.config import load_site_config
>>> from folio_pages.database import load_database
>>> config = load_site_config(Path("folio.yaml"))  # doctest: +SKIP
>>> report = SiteBuilder(config, load_database(config.database)).run()  # doctest: +SKIP
>>> report.failed  # doctest: +SKIP
[]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from concurrent.futures import ThreadPoolExecutor

from folio_pages import _constants
from folio_pages.config import IgnoreFiles
from folio_pages.deadlinks import all_links
from folio_pages.layout import LayoutError
from folio_pages.paths import (
    ExpressionEngine,
    ExpressionError,
    Hydration,
    PageEnumerator,
    PathVariable,
    output_path,
)

from .progress import BuildStep, ProgressTracker
from .renderer import PageRenderer, TemplateRenderError
from .translation import MessageCatalog, TranslationError, Translator

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from folio_pages.config import SiteConfig
    from folio_pages.database.models import Database

__all__ = ["BuildReport", "PageFailure", "SiteBuilder"]

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class PageFailure:
    """A page that could not be built."""

    template: Path
    subject: str
    language: str
    reason: str


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of a build.

    ``links`` maps every HTTP(S) link found in the written pages to the pages
    it appears on.
    """

    built: list[Path] = dc.field(default_factory=list)
    failed: list[PageFailure] = dc.field(default_factory=list)
    links: dict[str, list[Path]] = dc.field(default_factory=dict)

    def merge(self, other: BuildReport) -> None:
        self.built.extend(other.built)
        self.failed.extend(other.failed)
        for link, pages in other.links.items():
            self.links.setdefault(link, []).extend(pages)


class SiteBuilder:
    """Render the template tree of ``config`` into its output directory.

    Parameters
    ----------
    config : SiteConfig
        Where templates, translations and outputs live, and the languages.
    database : Database
        Records the templates are rendered for.
    catalogs : Mapping[str, MessageCatalog], optional
        Message catalogs by language. Missing languages get an empty catalog
        stored at the configured translations directory.
    additional_data : Mapping[str, Any], optional
        Extra values exposed to every template.
    progress : ProgressTracker, optional
        Tracker updated as pages are built.
    engine : ExpressionEngine, optional
        Engine evaluating path expressions; shared with its cache.
    """

    def __init__(
        self,
        config: SiteConfig,
        database: Database,
        *,
        catalogs: cabc.Mapping[str, MessageCatalog] | None = None,
        additional_data: cabc.Mapping[str, typ.Any] | None = None,
        progress: ProgressTracker | None = None,
        engine: ExpressionEngine | None = None,
    ) -> None:
        self.config = config
        self.database = database
        self.engine = engine or ExpressionEngine()
        self.progress = progress or ProgressTracker()
        self.enumerator = PageEnumerator(database, config.languages)
        self.renderer = PageRenderer(
            database, config.templates, additional_data=additional_data
        )
        self.catalogs = {
            language: (catalogs or {}).get(language)
            or MessageCatalog(language, path=config.catalog_path(language))
            for language in config.languages
        }
        self.translators = {
            language: Translator(catalog, source_language=config.source_language)
            for language, catalog in self.catalogs.items()
        }

    def scan(self) -> list[Path]:
        """Return the templates to build, sorted.

        Templates matched by an ``exclude`` pattern or by their closest
        ``.ortfoignore`` file are left out.
        """
        ignore_files = IgnoreFiles(self.config.templates)
        templates = [
            path
            for path in self.config.templates.rglob("*")
            if path.is_file()
            and path.suffix in _constants.TEMPLATE_SUFFIXES
            and not self.config.is_excluded(path)
            and not ignore_files.is_ignored(path)
        ]
        return sorted(templates)

    def count(self) -> int:
        """Return how many pages a build would produce at most."""
        return self.enumerator.total(
            template.relative_to(self.config.templates) for template in self.scan()
        )

    def _objects(self, variable: PathVariable) -> list[object]:
        match variable:
            case PathVariable.WORK:
                return list(self.database.public_works())
            case PathVariable.TAG:
                return list(self.database.tags)
            case PathVariable.TECHNOLOGY:
                return list(self.database.technologies)
            case PathVariable.SITE:
                return list(self.database.sites)
            case PathVariable.COLLECTION:
                return list(self.database.collections)
            case _:
                return []

    def hydrations(self, template: Path, language: str) -> list[Hydration]:
        """Return the candidates ``template`` is rendered for in ``language``.

        A template iterating no record kind is rendered once. A template
        iterating several kinds is tried against every object of each kind.
        """
        relative = template.relative_to(self.config.templates)
        variables = self.enumerator.iterated_objects(relative)
        if not variables:
            return [Hydration(language=language)]
        candidates: list[Hydration] = []
        for variable in variables:
            for item in self._objects(variable):
                match variable:
                    case PathVariable.WORK:
                        candidate = Hydration(
                            language=language, work=item.in_language(language)
                        )
                    case PathVariable.TAG:
                        candidate = Hydration(language=language, tag=item)
                    case PathVariable.TECHNOLOGY:
                        candidate = Hydration(language=language, tech=item)
                    case PathVariable.SITE:
                        candidate = Hydration(language=language, site=item)
                    case _:
                        candidate = Hydration(
                            language=language, collection=item.in_language(language)
                        )
                candidates.append(candidate)
        return candidates

    def _fail(
        self, report: BuildReport, template: Path, hydration: Hydration, exc: Exception
    ) -> BuildReport:
        report.failed.append(
            PageFailure(template, hydration.name, hydration.language, str(exc))
        )
        self.progress.increment()
        return report

    def build_page(self, template: Path, hydration: Hydration) -> BuildReport:
        """Render, translate and write ``template`` for one candidate.

        Errors of this page are logged and recorded in the returned report.
        """
        report = BuildReport()
        relative = template.relative_to(self.config.templates)
        try:
            target = output_path(
                hydration,
                template,
                templates_dir=self.config.templates,
                output_dir=self.config.output,
                engine=self.engine,
            )
        except ExpressionError as exc:
            logger.error("%s for %r: %s", relative, hydration.name, exc)
            return self._fail(report, template, hydration, exc)
        if target is None:
            return report

        self.progress.status(
            BuildStep.BUILD_PAGE,
            file=relative.as_posix(),
            language=hydration.language,
            output=str(target),
            object_id=hydration.name,
        )
        try:
            html = self.renderer.render(relative.as_posix(), hydration)
            self.progress.status(
                BuildStep.TRANSLATE,
                file=relative.as_posix(),
                language=hydration.language,
                output=str(target),
                object_id=hydration.name,
            )
            html = self.translators[hydration.language].translate(html)
            written = self._write(target, html)
        except (TemplateRenderError, LayoutError, TranslationError, OSError) as exc:
            logger.error("could not build %s: %s", target, exc)
            return self._fail(report, template, hydration, exc)

        report.built.append(written)
        for link in all_links(html):
            report.links.setdefault(link, []).append(written)
        self.progress.increment()
        return report

    def _write(self, target: Path, html: str) -> Path:
        # PDF conversion is left to external tools; ship the HTML source.
        if target.suffix == ".pdf":
            target = target.with_suffix(".html")
        self.progress.status(BuildStep.WRITE, output=str(target))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        logger.info("wrote %s", target)
        return target

    def build_template(self, template: Path) -> BuildReport:
        """Build every page ``template`` yields.

        An unexpected error fails the page it came from and the build goes on
        with the next candidate.
        """
        report = BuildReport()
        for language in self.config.languages:
            for hydration in self.hydrations(template, language):
                try:
                    partial = self.build_page(template, hydration)
                except Exception as exc:
                    logger.exception(
                        "unexpected error building %s for %r", template, hydration.name
                    )
                    partial = self._fail(BuildReport(), template, hydration, exc)
                report.merge(partial)
        return report

    def run(self) -> BuildReport:
        """Build the whole site and return what was written and what failed."""
        templates = self.scan()
        self.progress.total = self.enumerator.total(
            template.relative_to(self.config.templates) for template in templates
        )
        logger.info(
            "building %d templates (%d pages expected) with %d workers",
            len(templates),
            self.progress.total,
            self.config.workers,
        )
        report = BuildReport()
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            for partial in pool.map(self.build_template, templates):
                report.merge(partial)
        report.built.sort()
        logger.info("built %d pages, %d failed", len(report.built), len(report.failed))
        return report

    def save_catalogs(self) -> list[Path]:
        """Persist every catalog with the messages discovered during the build."""
        saved = []
        for language, catalog in self.catalogs.items():
            if language == self.config.source_language:
                continue
            saved.append(catalog.save())
            catalog.save_unused(
                self.config.translations
                / _constants.UNUSED_MESSAGES_TEMPLATE.format(language=language)
            )
        return saved

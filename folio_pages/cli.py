"""Cyclopts CLI entrypoint for building the portfolio site.

The ``folio`` console script loads ``folio.yaml`` and the content database,
renders every template into the output directory, updates the translation
catalogs and checks the links found in the generated pages. Options can also
be supplied through ``INPUT_*`` environment variables, which keeps CI
configuration short.

Examples
--------
Build the site described by the default configuration:

>>> from folio_pages.cli import main
>>> main()  # doctest: +SKIP

Count the pages a build would produce:

>>> from folio_pages.cli import app
>>> app(["count", "--config", "folio.yaml"])  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import logging
import shutil
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_site_config
from .database import load_additional_data, load_database
from .deadlinks import DeadLinkChecker
from .generator import BuildStep, ProgressTracker, SiteBuilder, load_catalogs

DEFAULT_CONFIG = Path("folio.yaml")

app = App(name="folio", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

logger = logging.getLogger(__name__)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(help="Render every template into the output directory.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    templates: typ.Annotated[
        Path | None,
        Parameter(help="Override the templates folder", env_var="INPUT_TEMPLATES"),
    ] = None,
    database: typ.Annotated[
        Path | None,
        Parameter(help="Override the database folder", env_var="INPUT_DATABASE"),
    ] = None,
    output: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT"),
    ] = None,
    workers: typ.Annotated[
        int | None,
        Parameter(help="Number of templates built at once", env_var="INPUT_WORKERS"),
    ] = None,
    progress_file: typ.Annotated[
        Path | None,
        Parameter(
            help="Write build progress as JSON to this file",
            env_var="INPUT_PROGRESS_FILE",
        ),
    ] = None,
    clean: typ.Annotated[
        bool, Parameter(help="Empty the output folder first", env_var="INPUT_CLEAN")
    ] = False,
    check_dead_links: typ.Annotated[
        bool | None,
        Parameter(
            help="Request every link found in the pages",
            env_var="INPUT_CHECK_DEAD_LINKS",
        ),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug messages", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build the whole site.

    Parameters
    ----------
    config : Path, optional
        Path to ``folio.yaml`` (overridable via ``INPUT_CONFIG``). A missing
        file means every default applies.
    templates, database, output : Path or None, optional
        Override the matching configuration entries.
    workers : int or None, optional
        Override the configured worker count.
    progress_file : Path or None, optional
        JSON file rewritten as pages are built.
    clean : bool, optional
        Remove the output folder before building.
    check_dead_links : bool or None, optional
        Override the configured dead link check.
    verbose : bool, optional
        Log debug messages.

    Raises
    ------
    SystemExit
        With status 1 when at least one page failed to build.
    """
    _configure_logging(verbose=verbose)
    site = load_site_config(config)
    overrides = {
        key: value
        for key, value in (
            ("templates", templates),
            ("database", database),
            ("output", output),
            ("workers", workers),
            ("check_dead_links", check_dead_links),
        )
        if value is not None
    }
    site = dc.replace(site, **overrides)

    progress = ProgressTracker(progress_file=progress_file)
    progress.status(BuildStep.LOAD_DATA, file=str(site.database))
    content = load_database(site.database)
    additional = load_additional_data(site.additional_data)
    catalogs = load_catalogs(site.translations, site.languages)

    if clean and site.output.exists():
        shutil.rmtree(site.output)

    builder = SiteBuilder(
        site, content, catalogs=catalogs, additional_data=additional, progress=progress
    )
    report = builder.run()
    for path in report.built:
        print(f"wrote {_format_path(path)}")
    for path in builder.save_catalogs():
        print(f"wrote {_format_path(path)}")

    if site.check_dead_links and report.links:
        progress.status(BuildStep.CHECK_LINKS)
        checker = DeadLinkChecker(workers=site.workers)
        try:
            links = checker.check(report.links)
        finally:
            checker.close()
        for link, pages in sorted(links.dead.items()):
            print(f"dead link {link} on {', '.join(_format_path(page) for page in pages)}")

    for failure in report.failed:
        print(f"failed {failure.template} ({failure.subject or '-'}, {failure.language})")
    print(f"built {len(report.built)} pages, {len(report.failed)} failed")
    if report.failed:
        raise SystemExit(1)


@app.command(help="Print how many pages a build would produce.")
def count(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Print the estimated number of pages.

    Parameters
    ----------
    config : Path, optional
        Path to ``folio.yaml`` (overridable via ``INPUT_CONFIG``).
    """
    _configure_logging(verbose=False)
    site = load_site_config(config)
    builder = SiteBuilder(site, load_database(site.database))
    print(builder.count())


def main() -> None:
    """Invoke the Cyclopts application that powers the ``folio`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()

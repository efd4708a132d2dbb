"""Typed dataclasses describing folio site configuration."""

from __future__ import annotations

import dataclasses as dc
import fnmatch
from pathlib import Path

from folio_pages import _constants


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteConfig:
    """Where the site's inputs live and how it is built.

    Relative paths are resolved against the directory holding the
    configuration file by :func:`folio_pages.config.load_site_config`.
    """

    templates: Path = Path("src")
    database: Path = Path("database")
    output: Path = Path("dist")
    languages: list[str] = dc.field(
        default_factory=lambda: list(_constants.DEFAULT_LANGUAGES)
    )
    source_language: str = _constants.SOURCE_LANGUAGE
    translations: Path = Path("i18n")
    additional_data: list[Path] = dc.field(default_factory=list)
    exclude: list[str] = dc.field(default_factory=lambda: ["*mixins/*"])
    workers: int = 4
    check_dead_links: bool = True

    def is_excluded(self, template: Path) -> bool:
        """Return ``True`` when ``template`` matches an ``exclude`` pattern.

        Patterns are matched against the path relative to the templates
        directory, using forward slashes.

        Examples
        --------
        >>> config = SiteConfig()
        >>> config.is_excluded(Path("src/mixins/header.pug"))
        True
        >>> config.is_excluded(Path("src/index.pug"))
        False
        """
        try:
            relative = template.relative_to(self.templates).as_posix()
        except ValueError:
            relative = template.as_posix()
        return any(
            fnmatch.fnmatchcase(relative, pattern)
            or fnmatch.fnmatchcase(f"/{relative}", pattern)
            for pattern in self.exclude
        )

    def catalog_path(self, language: str) -> Path:
        return self.translations / _constants.CATALOG_TEMPLATE.format(language=language)

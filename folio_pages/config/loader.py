"""Load ``folio.yaml`` into a :class:`SiteConfig`."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .models import SiteConfig, SiteConfigError

_PATH_KEYS = ("templates", "database", "output", "translations")
_KNOWN_KEYS = {field.name for field in dc.fields(SiteConfig)}


def _resolve(base: Path, value: object, key: str) -> Path:
    if not isinstance(value, str) or not value:
        msg = f"'{key}' must be a non-empty path string, got {value!r}"
        raise SiteConfigError(msg)
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _string_list(value: object, key: str) -> list[str]:
    match value:
        case str():
            return [value]
        case list() if all(isinstance(item, str) for item in value):
            return list(value)
        case _:
            msg = f"'{key}' must be a list of strings, got {value!r}"
            raise SiteConfigError(msg)


def _parse(raw: dict[str, typ.Any], base: Path) -> SiteConfig:
    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}"
        raise SiteConfigError(msg)

    defaults = SiteConfig()
    paths = {
        key: _resolve(base, raw[key], key) if key in raw else base / getattr(defaults, key)
        for key in _PATH_KEYS
    }

    languages = _string_list(raw.get("languages", defaults.languages), "languages")
    if not languages:
        msg = "At least one language must be configured."
        raise SiteConfigError(msg)
    source_language = raw.get("source_language", defaults.source_language)
    if not isinstance(source_language, str) or not source_language:
        msg = f"'source_language' must be a language code, got {source_language!r}"
        raise SiteConfigError(msg)

    workers = raw.get("workers", defaults.workers)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        msg = f"'workers' must be a positive integer, got {workers!r}"
        raise SiteConfigError(msg)

    check_dead_links = raw.get("check_dead_links", defaults.check_dead_links)
    if not isinstance(check_dead_links, bool):
        msg = f"'check_dead_links' must be true or false, got {check_dead_links!r}"
        raise SiteConfigError(msg)

    return SiteConfig(
        templates=paths["templates"],
        database=paths["database"],
        output=paths["output"],
        translations=paths["translations"],
        languages=languages,
        source_language=source_language,
        additional_data=[
            _resolve(base, item, "additional_data")
            for item in _string_list(raw.get("additional_data", []), "additional_data")
        ],
        exclude=_string_list(raw.get("exclude", defaults.exclude), "exclude"),
        workers=workers,
        check_dead_links=check_dead_links,
    )


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing where the site's inputs live.

    Parameters
    ----------
    path : Path
        Filesystem path to the configuration file (usually ``folio.yaml``).
        Relative paths inside it are resolved against its directory.

    Returns
    -------
    SiteConfig
        Parsed configuration. When ``path`` does not exist, every default is
        used, resolved against ``path``'s directory.

    Raises
    ------
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If a key is unknown or holds an invalid value.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from folio_pages.config import load_site_config
    >>> config = load_site_config(Path("folio.yaml"))  # doctest: +SKIP
    >>> config.languages  # doctest: +SKIP
    ['fr', 'en']
    """
    base = path.parent
    if not path.exists():
        return _parse({}, base)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return _parse(dict(loaded), base)

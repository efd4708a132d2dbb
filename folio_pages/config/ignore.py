"""Honour ``.ortfoignore`` files inside the template tree.

An ``.ortfoignore`` uses gitignore syntax. A template is checked against the
closest ignore file, looking first in the template's own directory and then
in each parent up to the templates directory. Patterns are relative to the
directory holding the ignore file, so ``/index.pug`` only matches there.

Examples
--------
>>> from pathlib import Path
>>> rules = IgnoreFiles(Path("src"))  # doctest: +SKIP
>>> rules.is_ignored(Path("src/drafts/old.pug"))  # doctest: +SKIP
True
"""

from __future__ import annotations

import logging
from pathlib import Path

import pathspec

from folio_pages import _constants

from .models import SiteConfigError

__all__ = ["IgnoreFiles"]

logger = logging.getLogger(__name__)


class IgnoreFiles:
    """Lazily parsed ``.ortfoignore`` files below ``root``.

    Parameters
    ----------
    root : Path
        The templates directory; no ignore file above it is consulted.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._specs: dict[Path, pathspec.GitIgnoreSpec | None] = {}

    def _load(self, directory: Path) -> pathspec.GitIgnoreSpec | None:
        if directory not in self._specs:
            path = directory / _constants.IGNORE_FILE
            spec = None
            if path.is_file():
                try:
                    lines = path.read_text(encoding="utf-8").splitlines()
                except OSError as exc:
                    msg = f"Cannot read {path}: {exc}"
                    raise SiteConfigError(msg) from exc
                spec = pathspec.GitIgnoreSpec.from_lines(lines)
            self._specs[directory] = spec
        return self._specs[directory]

    def closest(self, directory: Path) -> tuple[Path, pathspec.GitIgnoreSpec] | None:
        """Return the directory and rules of the ignore file closest to ``directory``."""
        current = directory
        while True:
            spec = self._load(current)
            if spec is not None:
                return current, spec
            if current == self.root or current.parent == current:
                return None
            current = current.parent

    def is_ignored(self, template: Path) -> bool:
        """Return ``True`` when the closest ignore file matches ``template``."""
        try:
            template.relative_to(self.root)
        except ValueError as exc:
            msg = f"{template} is outside the templates directory {self.root}"
            raise SiteConfigError(msg) from exc
        found = self.closest(template.parent)
        if found is None:
            return False
        base, spec = found
        if spec.match_file(template.relative_to(base).as_posix()):
            logger.debug(
                "ignoring %s because of %s", template, base / _constants.IGNORE_FILE
            )
            return True
        return False

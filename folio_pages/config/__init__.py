"""Load and validate the ``folio.yaml`` site configuration.

:func:`load_site_config` reads the file with ``ruamel.yaml``, applies the
defaults for any key left out and resolves relative paths against the file's
directory, producing a :class:`SiteConfig` the build driver consumes.

Examples
--------
>>> from pathlib import Path
>>> from folio_pages.config import load_site_config
>>> config = load_site_config(Path("folio.yaml"))  # doctest: +SKIP
>>> config.output  # doctest: +SKIP
PosixPath('dist')
"""

from .ignore import IgnoreFiles
from .loader import load_site_config
from .models import SiteConfig, SiteConfigError

__all__ = ["IgnoreFiles", "SiteConfig", "SiteConfigError", "load_site_config"]

"""Static site generator for a multilingual portfolio.

Templates whose paths hold expressions (``:work``, ``[language is "fr"]``)
are rendered once per matching database object and language, work pages lay
their content out on a grid, and the output is translated and link-checked.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from folio_pages import main
>>> main()  # doctest: +SKIP
>>> from folio_pages import app
>>> app(["count"])  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]

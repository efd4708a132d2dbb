"""Common literal values used across folio_pages.

These constants keep filenames, languages and template suffixes centralized so
the loaders, the build driver and the tests can import the same values without
drifting. Intended for internal use within the folio_pages package.

Examples
--------
>>> from folio_pages import _constants
>>> _constants.DEFAULT_LANGUAGES
('fr', 'en')
>>> _constants.CATALOG_TEMPLATE.format(language="fr")
'fr.yaml'
"""

DEFAULT_LANGUAGES = ("fr", "en")
SOURCE_LANGUAGE = "en"
TEMPLATE_SUFFIXES = (".html", ".pug")
IGNORE_FILE = ".ortfoignore"
CATALOG_TEMPLATE = "{language}.yaml"
UNUSED_MESSAGES_TEMPLATE = "{language}-unused-messages.yaml"

WORKS_FILE = "database.json"
TAGS_FILE = "tags.yaml"
TECHNOLOGIES_FILE = "technologies.yaml"
SITES_FILE = "sites.yaml"
COLLECTIONS_FILE = "collections.yaml"

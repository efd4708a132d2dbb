"""Shared fixtures describing a small portfolio site on disk."""

from __future__ import annotations

import json
import typing as typ
from textwrap import dedent

import pytest

if typ.TYPE_CHECKING:
    from pathlib import Path

WORKS: list[dict[str, typ.Any]] = [
    {
        "id": "neptune",
        "metadata": {
            "created": "2020-06-01",
            "tags": ["game"],
            "made with": ["godot"],
            "layout": ["p", ["m1", "p"], ["l"]],
            "colors": {"primary": "#0a3d62"},
        },
        "title": {"default": "Neptune"},
        "paragraphs": {
            "default": [
                {"id": "intro", "content": "A game about the sea."},
                {"id": "outro", "content": "Made during a jam."},
            ],
            "fr": [
                {"id": "intro", "content": "Un jeu sur la mer."},
                {"id": "outro", "content": "Fait pendant une jam."},
            ],
        },
        "media": {
            "default": [
                {"id": "cover", "source": "neptune.png", "content_type": "image/png"}
            ]
        },
        "links": {
            "default": [{"id": "play", "url": "https://example.com/neptune", "name": "Play"}]
        },
    },
    {
        "id": "sky-song",
        "metadata": {"created": "2021-03", "tags": ["music"], "made with": ["fl-studio"]},
        "title": {"en": "Sky song", "fr": "Chanson du ciel"},
        "paragraphs": {"default": [{"id": "about", "content": "A short song."}]},
    },
    {
        "id": "diary",
        "metadata": {"created": "2019", "private": True},
        "title": {"default": "Diary"},
    },
]

TAGS = """
- singular: game
  plural: games
  description: Interactive works.
- singular: music
  plural: music
  aliases: [song, songs]
"""

TECHNOLOGIES = """
- slug: godot
  name: Godot
  by: Godot Foundation
- slug: fl-studio
  name: FL Studio
  aliases: [fruityloops]
"""

SITES = """
- name: GitHub
  url: https://github.com/example
  purpose: code
"""

COLLECTIONS = """
games-made-with-godot:
  title:
    en: Godot games
    fr: Jeux Godot
  description: Everything built with **Godot**.
  includes: "#games and made with godot"
everything-but-neptune:
  title: Others
  includes: not neptune
"""

TEMPLATES: dict[str, str] = {
    ":language/index.html": dedent(
        """\
        <html lang="{{ language }}">
        <h1 i18n>Portfolio</h1>
        <ul>
        {% for work in works | latest %}
          <li>{{ work.title }}</li>
        {% endfor %}
        </ul>
        </html>
        """
    ),
    ":language/:work.html": dedent(
        """\
        <article style="{{ current_work.metadata.colors.css() }}">
        <h1>{{ current_work.title }}</h1>
        {% for element in layout %}
          <div class="{{ element.type }}" style="{{ element.css() }}">{{ element.id }}</div>
        {% endfor %}
        <a href="https://example.com/works/{{ current_work.id }}/">permalink</a>
        </article>
        """
    ),
    '[language is "fr"]/a-propos.html': "<p i18n>About me</p>\n",
    ":language/tags/:tag.html": "<h1>{{ current_tag.plural }}</h1>\n",
    "mixins/header.html": "<header>never built on its own</header>\n",
}

CATALOG_FR = """
- msgid: Portfolio
  msgctxt: ""
  msgstr: Portfolio
- msgid: About me
  msgctxt: ""
  msgstr: À propos de moi
- msgid: Stale entry
  msgctxt: ""
  msgstr: ""
"""


def write_site(root: Path) -> Path:
    """Write the sample site under ``root`` and return its ``folio.yaml`` path."""
    database = root / "database"
    database.mkdir(parents=True)
    (database / "database.json").write_text(json.dumps(WORKS), encoding="utf-8")
    (database / "tags.yaml").write_text(TAGS, encoding="utf-8")
    (database / "technologies.yaml").write_text(TECHNOLOGIES, encoding="utf-8")
    (database / "sites.yaml").write_text(SITES, encoding="utf-8")
    (database / "collections.yaml").write_text(COLLECTIONS, encoding="utf-8")

    for name, content in TEMPLATES.items():
        path = root / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    (root / "i18n").mkdir()
    (root / "i18n" / "fr.yaml").write_text(CATALOG_FR, encoding="utf-8")

    config = root / "folio.yaml"
    config.write_text(
        dedent(
            """\
            languages: [fr, en]
            workers: 2
            check_dead_links: false
            """
        ),
        encoding="utf-8",
    )
    return config


@pytest.fixture
def site_config_path(tmp_path: Path) -> Path:
    """Return the ``folio.yaml`` of a freshly written sample site."""
    return write_site(tmp_path / "site")

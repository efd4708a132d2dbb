"""Translate rendered pages through ``i18n`` markers and YAML message catalogs.

Templates mark translatable HTML by wrapping it in ``<i18n>`` or by putting
an ``i18n`` attribute on an element; an optional ``i18n-context`` attribute
disambiguates identical source strings. The markers are removed from every
page. For languages other than the source language, the marked inner HTML is
looked up in ``<translations>/<language>.yaml`` and replaced by its
translation, and unknown strings are recorded so :meth:`MessageCatalog.save`
can add them for translators.

Catalog files are YAML lists::

    - msgid: Hello
      msgctxt: ""
      msgstr: Bonjour

Pages may also hold dynamic messages between :data:`STRING_OPEN` and
:data:`STRING_CLOSE` delimiters, as a JSON object with ``value``, ``args``
and ``context`` keys. They are translated and formatted with ``%`` so
``{"value": "%d friends", "args": [8]}`` becomes ``8 amis`` in French.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import html
import json
import logging
import threading
import typing as typ

from bs4 import BeautifulSoup
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from folio_pages import _constants

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from bs4 import Tag

__all__ = ["Message", "MessageCatalog", "Translator", "load_catalogs"]

logger = logging.getLogger(__name__)

STRING_OPEN = "[=[=[={{{"
STRING_CLOSE = "}}}=]=]=]"


class TranslationError(ValueError):
    """Raised when a catalog or a dynamic message is malformed."""


@dc.dataclass(slots=True)
class Message:
    """A catalog entry; an empty ``msgstr`` means untranslated."""

    msgid: str
    msgctxt: str = ""
    msgstr: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.msgid, self.msgctxt)


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.default_flow_style = False
    yaml.allow_unicode = True
    yaml.width = 4096
    return yaml


class MessageCatalog:
    """Messages of one language, shared by every worker thread."""

    def __init__(
        self,
        language: str,
        messages: list[Message] | None = None,
        path: Path | None = None,
    ) -> None:
        self.language = language
        self.messages = list(messages or [])
        self.path = path
        self.missing: list[Message] = []
        self._seen: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    @classmethod
    def load(cls, directory: Path, language: str) -> MessageCatalog:
        """Load ``<directory>/<language>.yaml``; a missing file gives an empty catalog.

        Raises
        ------
        TranslationError
            If the file is not a YAML list of messages.
        """
        path = directory / _constants.CATALOG_TEMPLATE.format(language=language)
        if not path.exists():
            logger.info("no catalog for %s at %s, starting empty", language, path)
            return cls(language, path=path)
        try:
            with path.open("r", encoding="utf-8") as handle:
                loader = _yaml()
                loader.version = (1, 2)
                loaded = loader.load(handle) or []
        except YAMLError as exc:
            msg = f"Could not parse catalog {path}: {exc}"
            raise TranslationError(msg) from exc
        if not isinstance(loaded, list):
            msg = f"Catalog {path} must be a list of messages"
            raise TranslationError(msg)
        messages = []
        for entry in loaded:
            match entry:
                case str():
                    messages.append(Message(msgid=entry))
                case {"msgid": str() as msgid, **rest}:
                    messages.append(
                        Message(
                            msgid=msgid,
                            msgctxt=str(rest.get("msgctxt") or ""),
                            msgstr=str(rest.get("msgstr") or ""),
                        )
                    )
                case _:
                    msg = f"Malformed message in {path}: {entry!r}"
                    raise TranslationError(msg)
        return cls(language, messages, path=path)

    def lookup(self, msgid: str, context: str = "") -> str | None:
        """Return the translation of ``msgid`` in ``context``, if there is one."""
        with self._lock:
            self._seen.add((msgid, context))
            for message in self.messages:
                if message.key == (msgid, context) and message.msgstr:
                    return message.msgstr
        return None

    def add_missing(self, msgid: str, context: str = "") -> None:
        with self._lock:
            logger.debug("missing %s translation for %r", self.language, msgid)
            self.missing.append(Message(msgid=msgid, msgctxt=context))

    def unused(self) -> list[Message]:
        """Return the catalog messages no page asked for."""
        with self._lock:
            return [message for message in self.messages if message.key not in self._seen]

    def merged(self) -> list[Message]:
        """Return the messages to save.

        Unused untranslated messages are dropped, missing ones added, duplicates
        removed (first one wins) and the result sorted by ``(msgid, msgctxt)``.
        """
        with self._lock:
            kept = [
                message
                for message in self.messages
                if message.key in self._seen or message.msgstr
            ]
            unique: dict[tuple[str, str], Message] = {}
            for message in [*kept, *self.missing]:
                unique.setdefault(message.key, message)
        return sorted(unique.values(), key=lambda message: message.key)

    def save(self, path: Path | None = None) -> Path:
        """Write :meth:`merged` to ``path`` (defaults to where it was loaded from).

        Raises
        ------
        ValueError
            If no path was given and the catalog was not loaded from a file.
        """
        target = path or self.path
        if target is None:
            msg = f"No path to save the {self.language} catalog to"
            raise ValueError(msg)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = [dc.asdict(message) for message in self.merged()]
        with target.open("w", encoding="utf-8") as handle:
            _yaml().dump(payload, handle)
        return target

    def save_unused(self, path: Path) -> Path:
        """Write the unused messages report next to the catalog."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [
            {"msgid": message.msgid, "msgctxt": message.msgctxt}
            if message.msgctxt
            else message.msgid
            for message in self.unused()
        ]
        generated = dt.datetime.now(dt.UTC).isoformat(timespec="seconds")
        with path.open("w", encoding="utf-8") as handle:
            handle.write(f"# Generated at {generated}\n")
            _yaml().dump(payload, handle)
        return path


def load_catalogs(
    directory: Path, languages: cabc.Iterable[str]
) -> dict[str, MessageCatalog]:
    """Load the catalog of every language in ``languages``."""
    return {language: MessageCatalog.load(directory, language) for language in languages}


class Translator:
    """Apply a catalog to rendered HTML.

    Parameters
    ----------
    catalog : MessageCatalog
        Messages of the target language.
    source_language : str
        Language the templates are written in; pages in it are only stripped
        of their markers.
    """

    def __init__(self, catalog: MessageCatalog, *, source_language: str) -> None:
        self.catalog = catalog
        self.source_language = source_language

    @property
    def is_source(self) -> bool:
        return self.catalog.language == self.source_language

    def _translate_element(self, element: Tag) -> None:
        context = element.get("i18n-context") or ""
        if isinstance(context, list):
            context = " ".join(context)
        del element["i18n"]
        del element["i18n-context"]
        if self.is_source:
            return
        source = html.unescape(element.decode_contents()).strip()
        if not source:
            return
        translated = self.catalog.lookup(source, context)
        if translated is None:
            self.catalog.add_missing(source, context)
            return
        element.clear()
        fragment = BeautifulSoup(translated, "html.parser")
        for child in list(fragment.contents):
            element.append(child.extract())

    def translate(self, document: str) -> str:
        """Return ``document`` translated and stripped of ``i18n`` markers.

        Examples
        --------
        >>> catalog = MessageCatalog("fr", [Message("Hello", msgstr="Bonjour")])
        >>> Translator(catalog, source_language="en").translate("<p i18n>Hello</p>")
        '<p>Bonjour</p>'
        """
        soup = BeautifulSoup(document, "html.parser")
        markers = soup.find_all(
            lambda tag: tag.name == "i18n" or tag.has_attr("i18n")
        )
        for element in markers:
            self._translate_element(element)
        for wrapper in soup.find_all("i18n"):
            wrapper.unwrap()
        return self.translate_strings(str(soup))

    def translate_strings(self, content: str) -> str:
        """Replace every delimited dynamic message in ``content``.

        Raises
        ------
        TranslationError
            If a dynamic message is not valid JSON or its arguments do not
            fit its format.
        """
        pieces: list[str] = []
        rest = content
        while (start := rest.find(STRING_OPEN)) >= 0:
            end = rest.find(STRING_CLOSE, start)
            if end < 0:
                break
            raw = html.unescape(rest[start + len(STRING_OPEN) : end])
            try:
                payload = json.loads(raw)
                value = str(payload["value"])
                args = tuple(payload.get("args") or ())
                context = str(payload.get("context") or "")
            except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
                msg = f"Malformed dynamic message {raw!r}: {exc}"
                raise TranslationError(msg) from exc
            template = value
            if not self.is_source:
                translated = self.catalog.lookup(value, context)
                if translated is None:
                    self.catalog.add_missing(value, context)
                else:
                    template = translated
            try:
                formatted = template % args if args else template
            except (TypeError, ValueError) as exc:
                msg = f"Could not format dynamic message {value!r} with {args!r}: {exc}"
                raise TranslationError(msg) from exc
            pieces.append(rest[:start])
            pieces.append(formatted)
            rest = rest[end + len(STRING_CLOSE) :]
        pieces.append(rest)
        return "".join(pieces)

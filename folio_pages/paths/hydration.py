"""The candidate object a template is rendered for."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from folio_pages.database.models import (
        ExternalSite,
        LocalizedCollection,
        LocalizedWork,
        Tag,
        Technology,
    )


@dc.dataclass(frozen=True, slots=True)
class Hydration:
    """A language plus at most one work, tag, technology, site or collection.

    Examples
    --------
    >>> Hydration(language="fr").variables()["lang"]
    'fr'
    """

    language: str = ""
    work: LocalizedWork | None = None
    tag: Tag | None = None
    tech: Technology | None = None
    site: ExternalSite | None = None
    collection: LocalizedCollection | None = None

    def __post_init__(self) -> None:
        present = [
            name
            for name in ("work", "tag", "tech", "site", "collection")
            if getattr(self, name) is not None
        ]
        if len(present) > 1:
            msg = f"A hydration holds at most one object, got {', '.join(present)}"
            raise ValueError(msg)

    @property
    def is_empty(self) -> bool:
        return self.subject is None

    @property
    def subject(
        self,
    ) -> LocalizedWork | Tag | Technology | ExternalSite | LocalizedCollection | None:
        """Return whichever object this hydration carries, if any."""
        return self.work or self.tag or self.tech or self.site or self.collection

    @property
    def name(self) -> str:
        """Return an identifier for logs and progress reports."""
        subject = self.subject
        return "" if subject is None else str(subject)

    def variables(self) -> dict[str, object]:
        """Return the expression variables; absent objects are ``None``."""
        return {
            "work": self.work,
            "tag": self.tag,
            "tech": self.tech,
            "technology": self.tech,
            "site": self.site,
            "collection": self.collection,
            "language": self.language,
            "lang": self.language,
        }

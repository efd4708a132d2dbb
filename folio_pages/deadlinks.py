r"""Find rotten HTTP links in the generated pages.

Links are extracted from rendered HTML with a loose pattern stopping at
whitespace, quotes and angle brackets, then requested concurrently. A
response with a status of 400 or more marks the link as dead; a transport
failure leaves it unchecked rather than dead.

Example
-------
>>> from folio_pages.deadlinks import DeadLinkChecker, all_links
>>> sorted(all_links("see https://example.com/about/ for more"))
['https://example.com/about']
>>> checker = DeadLinkChecker(timeout=5)  # doctest: +SKIP
>>> checker.check({"https://example.com/missing": ["dist/index.html"]}).dead  # doctest: +SKIP
{'https://example.com/missing': ['dist/index.html']}
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ
from concurrent.futures import ThreadPoolExecutor
from http import HTTPStatus

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

if typ.TYPE_CHECKING:
    import collections.abc as cabc

__all__ = ["DeadLinkCheckError", "DeadLinkChecker", "DeadLinkReport", "all_links"]

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r"""\bhttps?://[^\s"'<>]+\b""")
_USER_AGENT = "folio-pages/0.1 (dead link checker)"


class DeadLinkCheckError(RuntimeError):
    """Raised when a link cannot be requested at all."""


def all_links(document: str) -> set[str]:
    """Return the distinct HTTP(S) links found in ``document``."""
    return set(LINK_PATTERN.findall(document))


@dc.dataclass(slots=True)
class DeadLinkReport:
    """Dead links and the pages they appear on, plus links that could not be checked."""

    dead: dict[str, list[typ.Any]] = dc.field(default_factory=dict)
    unchecked: dict[str, str] = dc.field(default_factory=dict)


def _session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        read=3,
        connect=2,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = _USER_AGENT
    return session


class DeadLinkChecker:
    """Request links concurrently and classify them as alive or dead.

    Parameters
    ----------
    session : requests.Session, optional
        Session used for every request. Defaults to one with retries on
        transient server errors.
    timeout : float, optional
        Per-request timeout in seconds.
    workers : int, optional
        Number of links requested at once.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float = 15.0,
        workers: int = 8,
    ) -> None:
        self._session = session or _session()
        self.timeout = timeout
        self.workers = workers

    def is_dead(self, link: str) -> bool:
        """Return ``True`` when ``link`` answers with an error status.

        Raises
        ------
        DeadLinkCheckError
            If the request itself fails.
        """
        try:
            response = self._session.get(
                link, timeout=self.timeout, allow_redirects=True, stream=True
            )
        except requests.RequestException as exc:
            msg = f"Could not request {link}: {exc}"
            raise DeadLinkCheckError(msg) from exc
        try:
            return response.status_code >= HTTPStatus.BAD_REQUEST
        finally:
            response.close()

    def _check_link(self, link: str) -> tuple[str, bool | None, str]:
        try:
            return link, self.is_dead(link), ""
        except DeadLinkCheckError as exc:
            logger.warning("%s", exc)
            return link, None, str(exc)

    def check(self, links: cabc.Mapping[str, cabc.Sequence[typ.Any]]) -> DeadLinkReport:
        """Check every link of ``links``, a map of link to the pages citing it."""
        report = DeadLinkReport()
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for link, dead, reason in pool.map(self._check_link, sorted(links)):
                if dead is None:
                    report.unchecked[link] = reason
                elif dead:
                    logger.warning("dead link %s on %d pages", link, len(links[link]))
                    report.dead[link] = list(links[link])
        return report

    def close(self) -> None:
        self._session.close()

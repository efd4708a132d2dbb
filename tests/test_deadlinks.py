"""Unit tests for link extraction and dead link checking."""

from __future__ import annotations

import logging
import typing as typ

import pytest
import requests

from folio_pages.deadlinks import DeadLinkCheckError, DeadLinkChecker, all_links

if typ.TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture

STATUSES = {
    "https://example.com/alive": 200,
    "https://example.com/moved": 301,
    "https://example.com/gone": 404,
    "https://example.com/broken": 500,
}


def test_all_links_finds_http_and_https() -> None:
    """Links are found in attributes and text, without surrounding markup."""
    document = (
        '<a href="https://example.com/works/neptune/">permalink</a>'
        "<p>See http://ewen.works and https://github.com/ewen-lbh.</p>"
        '<img src="/local.png">'
    )

    assert all_links(document) == {
        "https://example.com/works/neptune",
        "http://ewen.works",
        "https://github.com/ewen-lbh",
    }, f"unexpected links {all_links(document)!r}"


def test_all_links_deduplicates() -> None:
    document = "https://example.com/a https://example.com/a"

    assert all_links(document) == {"https://example.com/a"}, "expected one link"


@pytest.fixture
def session(mocker: MockerFixture) -> MagicMock:
    """Return a session answering with :data:`STATUSES`."""
    fake = mocker.create_autospec(requests.Session, instance=True)

    def get(url: str, **_: object) -> MagicMock:
        if url not in STATUSES:
            msg = f"cannot resolve {url}"
            raise requests.ConnectionError(msg)
        response = mocker.MagicMock()
        response.status_code = STATUSES[url]
        return response

    fake.get.side_effect = get
    return fake


@pytest.mark.parametrize(
    ("link", "dead"),
    [
        ("https://example.com/alive", False),
        ("https://example.com/moved", False),
        ("https://example.com/gone", True),
        ("https://example.com/broken", True),
    ],
)
def test_is_dead_follows_status(session: MagicMock, link: str, dead: bool) -> None:  # noqa: FBT001
    """Only statuses of 400 and above mark a link as dead."""
    checker = DeadLinkChecker(session=session, timeout=2)

    assert checker.is_dead(link) is dead, f"expected is_dead({link}) to be {dead}"
    session.get.assert_called_with(link, timeout=2, allow_redirects=True, stream=True)


def test_request_failures_raise(session: MagicMock) -> None:
    checker = DeadLinkChecker(session=session)

    with pytest.raises(DeadLinkCheckError, match="nowhere"):
        checker.is_dead("https://nowhere.invalid")


def test_check_reports_dead_and_unchecked_links(
    session: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Dead links keep the pages citing them; failures are set aside."""
    links = {
        "https://example.com/alive": ["dist/en/index.html"],
        "https://example.com/gone": ["dist/en/index.html", "dist/fr/index.html"],
        "https://nowhere.invalid": ["dist/fr/index.html"],
    }
    checker = DeadLinkChecker(session=session, workers=2)

    with caplog.at_level(logging.WARNING):
        report = checker.check(links)

    assert report.dead == {
        "https://example.com/gone": ["dist/en/index.html", "dist/fr/index.html"]
    }, f"unexpected dead links {report.dead!r}"
    assert list(report.unchecked) == ["https://nowhere.invalid"], (
        f"unexpected unchecked links {report.unchecked!r}"
    )
    assert "dead link https://example.com/gone" in caplog.text, (
        "expected dead links to be logged"
    )


def test_close_closes_the_session(session: MagicMock) -> None:
    DeadLinkChecker(session=session).close()

    session.close.assert_called_once_with()

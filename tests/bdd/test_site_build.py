"""Behaviour tests for building the sample portfolio site with pytest-bdd.

These scenarios write a small site (database, templates and a French catalog)
to a temporary directory, build it through :class:`SiteBuilder` and inspect
the generated pages and the saved catalog.

Usage
-----
Run ``pytest tests/bdd/test_site_build.py -v`` or filter with
``pytest -k site_build``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, scenarios, then, when
from ruamel.yaml import YAML

from folio_pages.config import load_site_config
from folio_pages.database import load_database
from folio_pages.generator import SiteBuilder, load_catalogs

if typ.TYPE_CHECKING:
    from folio_pages.config import SiteConfig
    from folio_pages.generator import BuildReport

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "site_build.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Returns
    -------
    ScenarioState
        Mutable dictionary used to exchange state between ``given``, ``when``,
        and ``then`` steps.
    """
    return {}


@given("a portfolio site with two public works")
def given_site(site_config_path: Path, scenario_state: ScenarioState) -> None:
    """Load the configuration of the freshly written sample site.

    Parameters
    ----------
    site_config_path : Path
        Path to the sample site's ``folio.yaml``.
    scenario_state : ScenarioState
        Mutable dictionary receiving the loaded ``config``.
    """
    scenario_state["config"] = load_site_config(site_config_path)


@when("I build the site")
def when_build(scenario_state: ScenarioState) -> None:
    """Build every page and save the catalogs.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared dictionary providing the ``config`` and receiving the ``report``.
    """
    config = typ.cast("SiteConfig", scenario_state["config"])
    builder = SiteBuilder(
        config,
        load_database(config.database),
        catalogs=load_catalogs(config.translations, config.languages),
    )
    scenario_state["report"] = builder.run()
    builder.save_catalogs()


@then("every work has a page in each language")
def then_work_pages(scenario_state: ScenarioState) -> None:
    config = typ.cast("SiteConfig", scenario_state["config"])
    report = typ.cast("BuildReport", scenario_state["report"])

    assert report.failed == [], f"unexpected failures {report.failed!r}"
    for language in config.languages:
        for work in ("neptune", "sky-song"):
            page = config.output / language / f"{work}.html"
            assert page in report.built, f"expected {page} to be built"
    assert not (config.output / "fr" / "diary.html").exists(), (
        "expected private works to have no page"
    )


@then("the French about page is translated")
def then_about_translated(scenario_state: ScenarioState) -> None:
    config = typ.cast("SiteConfig", scenario_state["config"])
    page = (config.output / "fr" / "a-propos.html").read_text(encoding="utf-8")

    assert page == "<p>À propos de moi</p>\n", f"unexpected page {page!r}"


@then("the French catalog lists the messages in use")
def then_catalog_saved(scenario_state: ScenarioState) -> None:
    """Verify stale untranslated messages were dropped from the catalog.

    Parameters
    ----------
    scenario_state : ScenarioState
        Shared dictionary holding the site ``config``.
    """
    config = typ.cast("SiteConfig", scenario_state["config"])
    catalog = YAML(typ="safe").load(config.catalog_path("fr").read_text(encoding="utf-8"))

    assert [entry["msgid"] for entry in catalog] == ["About me", "Portfolio"], (
        f"unexpected catalog {catalog!r}"
    )


@then("the about page exists only in French")
def then_about_only_french(scenario_state: ScenarioState) -> None:
    config = typ.cast("SiteConfig", scenario_state["config"])

    assert (config.output / "fr" / "a-propos.html").exists(), "expected a French page"
    assert not (config.output / "en").joinpath("a-propos.html").exists(), (
        "expected no English about page"
    )
    about_pages = sorted(
        path.parent.name for path in config.output.glob("*/a-propos.html")
    )
    assert about_pages == ["fr"], f"unexpected about pages {about_pages!r}"

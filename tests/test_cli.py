"""Tests for the ``folio`` command line entry points."""

from __future__ import annotations

import json
import typing as typ

import pytest

from folio_pages import cli

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


def test_build_writes_pages_and_catalogs(
    site_config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """``build`` prints every written file and a summary."""
    cli.build(config=site_config_path)

    out = capsys.readouterr().out
    site = site_config_path.parent

    assert (site / "dist" / "fr" / "neptune.html").exists(), "expected work pages"
    assert f"wrote {site / 'dist' / 'en' / 'index.html'}" in out, (
        f"expected written pages to be listed, got {out!r}"
    )
    assert f"wrote {site / 'i18n' / 'fr.yaml'}" in out, "expected the catalog to be listed"
    assert out.rstrip().endswith("built 11 pages, 0 failed"), f"unexpected summary {out!r}"


def test_build_overrides_output_and_cleans(
    site_config_path: Path, tmp_path: Path
) -> None:
    """Command line values win over the configuration file."""
    output = tmp_path / "public"
    stale = output / "stale.html"
    stale.parent.mkdir(parents=True)
    stale.write_text("old\n", encoding="utf-8")

    cli.build(config=site_config_path, output=output, workers=1, clean=True)

    assert (output / "en" / "sky-song.html").exists(), "expected the overridden output"
    assert not stale.exists(), "expected the output folder to be emptied first"


def test_build_writes_progress_file(site_config_path: Path, tmp_path: Path) -> None:
    progress_file = tmp_path / "progress.json"

    cli.build(config=site_config_path, progress_file=progress_file)

    snapshot = json.loads(progress_file.read_text(encoding="utf-8"))
    assert snapshot["processed"] == 11, f"unexpected progress {snapshot!r}"


def test_build_exits_with_failures(
    site_config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Failed pages are listed and turn into a non-zero exit status."""
    (site_config_path.parent / "src" / "broken.html").write_text(
        "{{ lookup_site('nowhere') }}\n", encoding="utf-8"
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=site_config_path)

    out = capsys.readouterr().out
    assert excinfo.value.code == 1, f"unexpected exit code {excinfo.value.code!r}"
    assert "failed " in out, f"expected failures to be listed, got {out!r}"
    assert "built 11 pages, 2 failed" in out, f"unexpected summary {out!r}"


def test_build_reports_dead_links(
    site_config_path: Path, mocker: MockerFixture, capsys: pytest.CaptureFixture[str]
) -> None:
    """With the check enabled, dead links are printed with their pages."""
    checker = mocker.patch.object(cli, "DeadLinkChecker", autospec=True)
    checker.return_value.check.return_value.dead = {
        "https://example.com/works/neptune": [
            site_config_path.parent / "dist" / "fr" / "neptune.html"
        ]
    }

    cli.build(config=site_config_path, check_dead_links=True)

    out = capsys.readouterr().out
    checked = checker.return_value.check.call_args.args[0]
    assert sorted(checked) == [
        "https://example.com/works/neptune",
        "https://example.com/works/sky-song",
    ], f"unexpected links checked {sorted(checked)!r}"
    assert "dead link https://example.com/works/neptune on " in out, (
        f"expected the dead link to be printed, got {out!r}"
    )
    checker.return_value.close.assert_called_once_with()


def test_build_skips_link_check_when_disabled(
    site_config_path: Path, mocker: MockerFixture
) -> None:
    checker = mocker.patch.object(cli, "DeadLinkChecker", autospec=True)

    cli.build(config=site_config_path)

    checker.assert_not_called()


def test_count_prints_estimate(
    site_config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.count(config=site_config_path)

    assert capsys.readouterr().out.strip() == "11", "expected 11 pages"


def test_count_reads_config_from_environment(
    site_config_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """``INPUT_CONFIG`` stands in for ``--config``."""
    monkeypatch.setenv("INPUT_CONFIG", str(site_config_path))

    command, bound, _ = cli.app.parse_args(["count"])
    command(*bound.args, **bound.kwargs)

    assert capsys.readouterr().out.strip() == "11", "expected 11 pages"

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from bizanalysis.cli.main import cli

FIXTURES = Path(__file__).parent / "fixtures"


def _invoke(client, *args: str):
    return CliRunner().invoke(cli, list(args), obj={"client": client})


def test_cli_help() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "bcg" in result.output
    assert "snapshots" in result.output


def test_health(client) -> None:
    result = _invoke(client, "health")
    assert result.exit_code == 0
    assert json.loads(result.output) == {"status": "ok"}


def test_template_to_stdout_and_file(client, tmp_path) -> None:
    result = _invoke(client, "bcg", "template")
    assert result.exit_code == 0
    assert result.output.splitlines()[0].startswith('"product_name","market_name"')

    out = tmp_path / "bcg_import_template.csv"
    result = _invoke(client, "bcg", "template", "--out", str(out))
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith('"product_name"')


def test_sample_compute_and_save(client, service) -> None:
    result = _invoke(client, "bcg", "sample", "--save")
    assert result.exit_code == 0, result.output
    assert "Cash Cow" in result.output
    assert "Saved snapshot" in result.output
    assert len(service.snapshots) == 1


def test_import_clean_file(client, service) -> None:
    result = _invoke(client, "bcg", "import", str(FIXTURES / "clean_import.csv"))
    assert result.exit_code == 0, result.output
    assert "Imported 2 market(s) and 4 product(s). BCG computed with 4 points." in result.output
    assert service.paths_called() == ["/markets/bulk", "/products/bulk", "/bcg"]


def test_import_with_database_down_still_charts(client, service) -> None:
    service.failing.add("/markets/bulk")
    result = _invoke(client, "bcg", "import", str(FIXTURES / "clean_import.csv"))
    assert result.exit_code == 0, result.output
    assert "(Database unavailable - entities not persisted)" in result.output
    assert "Alpha" in result.output


def test_import_invalid_file_sends_nothing(client, service) -> None:
    result = _invoke(client, "bcg", "import", str(FIXTURES / "bad_values.csv"))
    assert result.exit_code == 1
    assert "row 3" in result.output
    assert service.calls == []


def test_import_compute_failure(client, service) -> None:
    service.failing.add("/bcg")
    result = _invoke(client, "bcg", "import", str(FIXTURES / "clean_import.csv"))
    assert result.exit_code == 1
    assert "Import failed:" in result.output


def test_compare_marks_changed_rows(client, service) -> None:
    old = service.seed_snapshot("BCG", {"points": [{"name": "Alpha", "rms": 1.1, "growth": 8}]})
    new = service.seed_snapshot(
        "BCG",
        {"points": [{"name": "Alpha", "rms": 1.2, "growth": 14}, {"name": "Beta", "rms": 0.5, "growth": 4}]},
    )

    result = _invoke(client, "bcg", "compare", old["id"], new["id"])

    assert result.exit_code == 0, result.output
    assert "Cash Cow → Star" in result.output
    assert "+0.10" in result.output
    assert "1 changed, 1 new, 0 unchanged" in result.output


def test_snapshot_listing_and_show(client, service) -> None:
    assert "No snapshots yet." in _invoke(client, "snapshots", "list").output

    snap = service.seed_snapshot("SWOT", {"strengths": ["Brand"], "weaknesses": [], "opportunities": [], "threats": []})
    listing = _invoke(client, "snapshots", "list", "--kind", "SWOT")
    assert snap["id"][:8] in listing.output

    shown = _invoke(client, "snapshots", "show", snap["id"])
    assert shown.exit_code == 0
    assert "  - Brand" in shown.output


def test_show_missing_snapshot(client) -> None:
    result = _invoke(client, "snapshots", "show", "missing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_download_writes_json(client, service, tmp_path) -> None:
    snap = service.seed_snapshot("BCG", {"points": []}, note="q1")
    result = _invoke(client, "snapshots", "download", snap["id"], "--out-dir", str(tmp_path))
    assert result.exit_code == 0
    written = tmp_path / f"snapshot-{snap['id'][:8]}.json"
    assert json.loads(written.read_text())["note"] == "q1"


def test_swot_suggest_merges_into_starter_draft(client, service) -> None:
    points = service.seed_snapshot("BCG", {"points": [{"name": "Alpha", "rms": 1.2, "growth": 14}]})

    result = _invoke(client, "swot", "suggest", "--points-from", points["id"], "--company", "Acme", "--save")

    assert result.exit_code == 0, result.output
    assert "Loyal enterprise customers" in result.output
    assert "strong brand recognition" not in result.output
    assert "Saved snapshot" in result.output
    assert service.last_suggest_request["company"] == "Acme"
    assert service.last_suggest_request["points"][0]["name"] == "Alpha"


def test_points_render_as_table(client) -> None:
    result = _invoke(client, "bcg", "compute", "--name", "Solo", "--share", "30", "--rival", "25", "--growth", "14")
    assert result.exit_code == 0, result.output
    header = next(line for line in result.output.splitlines() if "Product" in line)
    assert "Quadrant" in header
    row = next(line for line in result.output.splitlines() if "Solo" in line)
    assert "1.20" in row
    assert "Star" in row


def test_save_failure_is_reported_without_traceback(client, service) -> None:
    service.failing.add("/snapshots")
    result = _invoke(client, "bcg", "sample", "--save")
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Request failed" in result.output
    assert "/snapshots unavailable" in result.output


def test_saving_an_empty_import_is_refused(client, tmp_path) -> None:
    empty = tmp_path / "empty.csv"
    empty.write_text("product_name,market_name,market_growth_rate,market_share_percent,largest_rival_share_percent\n")
    result = _invoke(client, "bcg", "import", str(empty), "--save")
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "No BCG points to save" in result.output


def test_swot_save_failure_is_reported(client, service) -> None:
    service.failing.add("/snapshots")
    result = _invoke(client, "swot", "suggest", "--save")
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Request failed" in result.output


def test_download_reports_service_errors(client, service) -> None:
    snap = service.seed_snapshot("BCG", {"points": []})
    service.failing.add("/snapshots/{id}")
    result = _invoke(client, "snapshots", "download", snap["id"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Request failed" in result.output

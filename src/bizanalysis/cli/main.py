"""Command-line interface for bizanalysis."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from ..actions import ActionGuard
from ..bcg.csv_import import TEMPLATE_FILENAME, load_import_file, template_csv
from ..bcg.diff import DiffRecord, format_delta, quadrant_label, summarize
from ..bcg.importer import ImportResult, import_rows, outcome_message
from ..errors import (
    ActionBusyError,
    AnalysisError,
    ApiError,
    ComputationError,
    SnapshotNotFoundError,
    ValidationError,
)
from ..models import BCGPoint, ProductIn, Snapshot, SnapshotKind, SWOTIn
from ..observability import new_run_id
from ..sdk.client import BizClient, BizConfig
from ..snapshots import (
    compare_snapshots,
    export_snapshot_json,
    list_snapshots,
    load_snapshot,
    save_bcg_snapshot,
    save_swot_snapshot,
    short_id,
    snapshot_item_count,
    snapshot_points,
    write_snapshot,
)
from ..swot.merge import SECTIONS, SwotDraft
from ..swot.suggest import suggest_and_merge

SAMPLE_PRODUCTS = [
    ProductIn(name="Alpha", market_share=0.30, largest_rival_share=0.25, market_growth_rate=14),
    ProductIn(name="Beta", market_share=0.18, largest_rival_share=0.35, market_growth_rate=12),
    ProductIn(name="Gamma", market_share=0.42, largest_rival_share=0.28, market_growth_rate=6),
    ProductIn(name="Delta", market_share=0.12, largest_rival_share=0.30, market_growth_rate=4),
]


def _console() -> Console:
    # Built per call so it binds to the stdout of the running command.
    return Console(highlight=False, markup=False)


def _client(ctx: click.Context) -> BizClient:
    return ctx.obj["client"]


def _guard(ctx: click.Context, name: str) -> ActionGuard:
    guards = ctx.obj.setdefault("guards", {})
    if name not in guards:
        guards[name] = ActionGuard(name)
    return guards[name]


def _points_table(points: Sequence[BCGPoint]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Product")
    table.add_column("RMS", justify="right")
    table.add_column("Growth %", justify="right")
    table.add_column("Quadrant")
    for p in points:
        table.add_row(p.name, f"{p.rms:.2f}", f"{p.growth:.2f}", p.quadrant.value)
    return table


def _diff_table(records: Sequence[DiffRecord]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Product")
    table.add_column("RMS Δ", justify="right")
    table.add_column("Growth Δ (pp)", justify="right")
    table.add_column("Quadrant")
    table.add_column("", justify="center")
    for r in records:
        table.add_row(
            r.name,
            format_delta(r.drms),
            format_delta(r.dgrowth),
            quadrant_label(r),
            "*" if r.changed else "",
            style="bold" if r.changed else None,
        )
    return table


def _snapshots_table(rows: Sequence[Snapshot]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Created")
    table.add_column("Kind")
    table.add_column("Items", justify="right")
    table.add_column("ID")
    for s in rows:
        table.add_row(s.created_at.isoformat(), s.kind, str(snapshot_item_count(s)), short_id(s))
    return table


def _api_failure(exc: ApiError) -> click.ClickException:
    return click.ClickException(f"Request failed: {exc}")


def _save_snapshot(
    save_fn: Callable[..., Snapshot], store: Any, content: Any, note: Optional[str]
) -> None:
    try:
        snapshot = save_fn(store, content, note=note)
    except ApiError as exc:
        raise _api_failure(exc) from exc
    except AnalysisError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Saved snapshot {short_id(snapshot)}")


@click.group()
@click.option("--base-url", envvar="BIZ_API_BASE_URL", default=None, help="Analysis service base URL.")
@click.option("--api-key", envvar="BIZ_API_KEY", default=None, help="API key sent as X-API-Key.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def cli(ctx: click.Context, base_url: Optional[str], api_key: Optional[str], verbose: bool) -> None:
    """Strategic-analysis command suite (BCG, SWOT, snapshots)."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING, format="[%(levelname)s] %(message)s"
    )
    ctx.ensure_object(dict)
    if "client" not in ctx.obj:
        ctx.obj["client"] = BizClient(BizConfig(base_url=base_url, api_key=api_key))
    new_run_id()


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Call GET /health and print the response."""

    try:
        click.echo(json.dumps(_client(ctx).health()))
    except ApiError as exc:
        raise _api_failure(exc) from exc


@cli.group()
def bcg() -> None:
    """BCG growth/share matrix commands."""


def _compute_and_show(ctx: click.Context, products: List[ProductIn], save: bool, note: Optional[str]) -> None:
    client = _client(ctx)
    try:
        points = _guard(ctx, "compute").run(client.compute_bcg, products)
    except ApiError as exc:
        raise _api_failure(exc) from exc
    _console().print(_points_table(points))
    if save:
        _save_snapshot(save_bcg_snapshot, client.snapshots, points, note)


@bcg.command("compute")
@click.option("--name", default="New Product", show_default=True, help="Product name.")
@click.option("--growth", type=float, default=12.0, show_default=True, help="Market growth %.")
@click.option("--share", type=float, default=20.0, show_default=True, help="Your market share %.")
@click.option("--rival", type=float, default=25.0, show_default=True, help="Largest rival share %.")
@click.option("--save", is_flag=True, help="Save the result as a BCG snapshot.")
@click.option("--note", default=None, help="Note stored with the snapshot.")
@click.pass_context
def bcg_compute(
    ctx: click.Context, name: str, growth: float, share: float, rival: float, save: bool, note: Optional[str]
) -> None:
    """Compute a single product from percentage inputs."""

    product = ProductIn(
        name=name, market_growth_rate=growth, market_share=share / 100.0, largest_rival_share=rival / 100.0
    )
    _compute_and_show(ctx, [product], save, note)


@bcg.command("sample")
@click.option("--save", is_flag=True, help="Save the result as a BCG snapshot.")
@click.option("--note", default="demo", show_default=True, help="Note stored with the snapshot.")
@click.pass_context
def bcg_sample(ctx: click.Context, save: bool, note: Optional[str]) -> None:
    """Compute the built-in four-product sample."""

    _compute_and_show(ctx, list(SAMPLE_PRODUCTS), save, note)


@bcg.command("template")
@click.option(
    "--out",
    "out_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Write the template to a file (e.g. {TEMPLATE_FILENAME}) instead of stdout.",
)
def bcg_template(out_path: Optional[Path]) -> None:
    """Print the CSV import template."""

    text = template_csv()
    if out_path is None:
        click.echo(text)
        return
    out_path.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Wrote {out_path}")


@bcg.command("import")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--save", is_flag=True, help="Save the computed points as a BCG snapshot.")
@click.option("--note", default=None, help="Note stored with the snapshot.")
@click.pass_context
def bcg_import(ctx: click.Context, csv_path: Path, save: bool, note: Optional[str]) -> None:
    """Import markets and products from CSV and compute the BCG matrix."""

    try:
        rows = load_import_file(csv_path)
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc

    client = _client(ctx)
    try:
        result = _guard(ctx, "import").run(import_rows, client, rows)
    except ComputationError as exc:
        raise click.ClickException(outcome_message(ImportResult.failed(exc))) from exc
    except ActionBusyError as exc:
        raise click.ClickException(str(exc)) from exc

    _console().print(_points_table(result.points))
    click.echo(outcome_message(result))
    if save:
        _save_snapshot(save_bcg_snapshot, client.snapshots, result.points, note)


@bcg.command("compare")
@click.argument("from_id")
@click.argument("to_id")
@click.pass_context
def bcg_compare(ctx: click.Context, from_id: str, to_id: str) -> None:
    """Compare two BCG snapshots; rows marked * changed quadrant."""

    try:
        records = compare_snapshots(_client(ctx).snapshots, from_id, to_id)
    except SnapshotNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ApiError as exc:
        raise _api_failure(exc) from exc
    _console().print(_diff_table(records))
    counts = summarize(records)
    click.echo(f"{counts['changed']} changed, {counts['new']} new, {counts['unchanged']} unchanged")


@cli.group()
def snapshots() -> None:
    """Stored snapshot commands."""


@snapshots.command("list")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in SnapshotKind]),
    default=SnapshotKind.BCG.value,
    show_default=True,
)
@click.option("--limit", type=int, default=20, show_default=True)
@click.pass_context
def snapshots_list(ctx: click.Context, kind: str, limit: int) -> None:
    """List the latest snapshots of one kind."""

    try:
        rows = list_snapshots(_client(ctx).snapshots, kind=kind, limit=limit)
    except ApiError as exc:
        raise _api_failure(exc) from exc
    if not rows:
        click.echo("No snapshots yet.")
        return
    _console().print(_snapshots_table(rows))


@snapshots.command("show")
@click.argument("snapshot_id")
@click.pass_context
def snapshots_show(ctx: click.Context, snapshot_id: str) -> None:
    """Show one snapshot read-only."""

    try:
        snapshot = load_snapshot(_client(ctx).snapshots, snapshot_id)
    except SnapshotNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ApiError as exc:
        raise _api_failure(exc) from exc

    click.echo(f"Snapshot {snapshot.kind} {short_id(snapshot)} {snapshot.created_at.isoformat()}")
    if snapshot.kind == SnapshotKind.BCG.value:
        _console().print(_points_table(snapshot_points(snapshot)))
    elif snapshot.kind == SnapshotKind.SWOT.value:
        swot = SWOTIn.model_validate(snapshot.payload)
        for section in SECTIONS:
            click.echo(f"{section.capitalize()}:")
            items = getattr(swot, section) or ["—"]
            for item in items:
                click.echo(f"  - {item}")
    else:
        click.echo(f"Unsupported snapshot kind: {snapshot.kind}")


@snapshots.command("download")
@click.argument("snapshot_id")
@click.option(
    "--out-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write snapshot-<id>.json into; prints to stdout when omitted.",
)
@click.pass_context
def snapshots_download(ctx: click.Context, snapshot_id: str, out_dir: Optional[Path]) -> None:
    """Export a snapshot as pretty-printed JSON."""

    try:
        snapshot = load_snapshot(_client(ctx).snapshots, snapshot_id)
    except SnapshotNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ApiError as exc:
        raise _api_failure(exc) from exc
    if out_dir is None:
        click.echo(export_snapshot_json(snapshot))
        return
    click.echo(f"Wrote {write_snapshot(snapshot, out_dir)}")


@cli.group()
def swot() -> None:
    """SWOT commands."""


@swot.command("suggest")
@click.option("--points-from", "points_id", default=None, help="BCG snapshot id to base suggestions on.")
@click.option("--base", "base_id", default=None, help="SWOT snapshot id to merge into (default: starter draft).")
@click.option("--company", default=None)
@click.option("--industry", default=None)
@click.option("--save", is_flag=True, help="Save the merged lists as a SWOT snapshot.")
@click.option("--note", default=None, help="Note stored with the snapshot.")
@click.pass_context
def swot_suggest(
    ctx: click.Context,
    points_id: Optional[str],
    base_id: Optional[str],
    company: Optional[str],
    industry: Optional[str],
    save: bool,
    note: Optional[str],
) -> None:
    """Merge AI-suggested SWOT items into a draft, skipping near-duplicates."""

    client = _client(ctx)
    try:
        points = snapshot_points(load_snapshot(client.snapshots, points_id)) if points_id else []
        draft = SwotDraft()
        if base_id:
            base = load_snapshot(client.snapshots, base_id)
            draft = SwotDraft.from_swot(SWOTIn.model_validate(base.payload))
        merged = _guard(ctx, "suggest").run(
            suggest_and_merge, client, draft, points, company=company, industry=industry
        )
    except SnapshotNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ApiError as exc:
        raise _api_failure(exc) from exc

    for section in SECTIONS:
        click.echo(f"{section.capitalize()}:")
        click.echo(getattr(merged, section))
        click.echo("")
    if save:
        _save_snapshot(save_swot_snapshot, client.snapshots, merged, note)


if __name__ == "__main__":
    cli()

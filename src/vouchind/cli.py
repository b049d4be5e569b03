import asyncio
import logging
import time
from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from vouchind.api.index_chain import index_chain
from vouchind.api.read import ReadAPI
from vouchind.core.config import IndexerConfig
from vouchind.core.errors import VouchindError
from vouchind.core.models import ChunkRecord
from vouchind.log import setup_logging
from vouchind.storage.export import export_views
from vouchind.storage.store import DuckDBStore

console = Console()

DEFAULT_DB = "./data/vouchind.duckdb"


def _block(value: str) -> int | str:
    v = value.strip().lower()
    if v in ("earliest", "genesis", "latest"):
        return v
    try:
        return int(v, 0)
    except ValueError as e:
        raise click.BadParameter(f"expected a block number, 'earliest' or 'latest', got {value!r}") from e


def _planned_chunks(start: int | str, end: int | str, step: int) -> int | None:
    if isinstance(start, int) and isinstance(end, int) and end >= start:
        return (end - start) // step + 1
    return None


def _open_store(db: str) -> DuckDBStore:
    if db != ":memory:" and not Path(db).exists():
        raise click.ClickException(f"no index database at {db}; run `vouchind index` first")
    return DuckDBStore(db)


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, envvar="VOUCHIND_LOG_LEVEL")
def cli(log_level: str) -> None:
    """vouchind: indexer and read API for VouchieVault goals, activity and streaks."""
    setup_logging(log_level)


@cli.command("index")
@click.option("--rpc", required=True, envvar="VOUCHIND_RPC_URL", help="RPC endpoint URL")
@click.option("--contract", required=True, envvar="VOUCHIND_CONTRACT", help="VouchieVault address")
@click.option("--from-block", "from_block", required=True, envvar="VOUCHIND_FROM_BLOCK", help="Block number or 'earliest'")
@click.option("--to-block", "to_block", default="latest", show_default=True, envvar="VOUCHIND_TO_BLOCK", help="Block number or 'latest'")
@click.option("--db", default=DEFAULT_DB, show_default=True, envvar="VOUCHIND_DB", help="DuckDB file")
@click.option("--manifests-dir", default="./data/manifests", show_default=True, envvar="VOUCHIND_MANIFESTS_DIR")
@click.option("--step", type=int, default=2_000, show_default=True, envvar="VOUCHIND_STEP", help="Blocks per request")
@click.option("--concurrency", type=int, default=8, show_default=True, envvar="VOUCHIND_CONCURRENCY", help="Max parallel requests")
@click.option("--confirmations", type=int, default=0, show_default=True, envvar="VOUCHIND_CONFIRMATIONS", help="Blocks behind head for 'latest'")
@click.option("--timeout", "timeout_s", type=int, default=20, show_default=True, envvar="VOUCHIND_TIMEOUT")
@click.option("--resume/--no-resume", default=False, show_default=True, help="Start from the stored cursor when it is ahead")
@click.option("--strict/--degrade", default=False, show_default=True, help="Fail on events that refer to unknown goals")
def index_cmd(
    rpc: str,
    contract: str,
    from_block: str,
    to_block: str,
    db: str,
    manifests_dir: str,
    step: int,
    concurrency: int,
    confirmations: int,
    timeout_s: int,
    resume: bool,
    strict: bool,
) -> None:
    """Index VouchieVault events over a block range into the local views."""
    config = IndexerConfig(
        rpc_url=rpc,
        address=contract,
        start_block=_block(from_block),
        end_block=_block(to_block),
        db_path=Path(db),
        manifests_dir=Path(manifests_dir),
        step=step,
        concurrency=concurrency,
        confirmations=confirmations,
        timeout_s=timeout_s,
        missing_goal_policy="strict" if strict else "degrade",
        resume=resume,
    )

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]indexing[/]"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("→"),
        TimeRemainingColumn(),
        TextColumn(" • {task.description}"),
        console=console,
        transient=False,
        expand=True,
    )
    t0 = time.time()

    with progress:
        task = progress.add_task(
            description=f"{from_block}-{to_block}",
            total=_planned_chunks(config.start_block, config.end_block, config.step),
        )

        def on_chunk(rec: ChunkRecord) -> None:
            progress.update(task, advance=1, description=f"block {rec.to_block:,} • {rec.decoded} events")

        try:
            out = asyncio.run(index_chain(config=config, on_chunk=on_chunk))
        except (VouchindError, ValueError) as e:
            raise click.ClickException(str(e)) from e

    elapsed = time.time() - t0
    console.print(f"[bold]done[/]: blocks {out.start_block:,}-{out.end_block:,} • {elapsed:.2f}s")
    console.print(
        f"[bold]summary[/]: "
        f"[green]applied[/]={out.stats.applied}  "
        f"[yellow]redelivered[/]={out.stats.redelivered}  "
        f"logs={out.source.total_logs}  "
        f"filtered={out.source.filtered}  "
        f"retries={out.source.retries}"
    )
    if out.stats.description_misses:
        console.print(f"[yellow]warning[/]: {out.stats.description_misses} goal(s) indexed without a description")
    if out.cursor is not None:
        console.print(f"cursor: block {out.cursor.block_number:,} log {out.cursor.log_index}")


@cli.command("feed")
@click.option("--db", default=DEFAULT_DB, show_default=True, envvar="VOUCHIND_DB")
@click.option("--user", "user", default=None, help="Only this address's activity")
@click.option("--type", "activity_type", default=None, help="Only this activity type")
@click.option("--limit", type=int, default=20, show_default=True)
def feed_cmd(db: str, user: str | None, activity_type: str | None, limit: int) -> None:
    """Show the newest activity rows."""
    with _open_store(db) as store:
        api = ReadAPI(store)
        try:
            if user:
                rows = api.list_activities_by_user(user, limit)
            else:
                rows = api.list_activities(limit, activity_type=activity_type)
        except ValueError as e:
            raise click.BadParameter(str(e)) from e

    table = Table(title="activity")
    for col in ("time", "type", "user", "goal", "title", "detail"):
        table.add_column(col)
    for a in rows:
        detail = ""
        if a.type == "goal_created":
            detail = f"stake={a.stake_amount} solo={a.is_solo}"
        elif a.type == "goal_resolved":
            detail = f"successful={a.successful}"
        elif a.type == "vote_cast":
            detail = f"valid={a.is_valid}"
        elif a.type in ("funds_claimed", "goal_canceled"):
            detail = f"amount={a.claim_amount}"
        elif a.type == "streak_frozen":
            detail = f"deadline={a.deadline}"
        table.add_row(
            time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(a.timestamp)),
            a.type,
            a.user,
            "" if a.goal_id is None else str(a.goal_id),
            a.goal_title or "",
            detail,
        )
    console.print(table)


@cli.command("stats")
@click.argument("address")
@click.option("--db", default=DEFAULT_DB, show_default=True, envvar="VOUCHIND_DB")
def stats_cmd(address: str, db: str) -> None:
    """Show one address's goal counters and streaks."""
    with _open_store(db) as store:
        stats = ReadAPI(store).get_user_stats(address)
    if stats is None:
        raise click.ClickException(f"no stats for {address.lower()}")

    table = Table(title=stats.address, show_header=False)
    table.add_column("field")
    table.add_column("value", justify="right")
    for name in (
        "goals_created",
        "goals_completed",
        "goals_failed",
        "total_staked",
        "total_saved",
        "total_lost",
        "current_streak",
        "longest_streak",
        "last_goal_at",
    ):
        value = getattr(stats, name)
        table.add_row(name, "" if value is None else str(value))
    console.print(table)


@cli.command("leaderboard")
@click.option("--db", default=DEFAULT_DB, show_default=True, envvar="VOUCHIND_DB")
@click.option("--sort", "sort_by", type=click.Choice(["streak", "saved"]), default="streak", show_default=True)
@click.option("--limit", type=int, default=10, show_default=True)
def leaderboard_cmd(db: str, sort_by: str, limit: int) -> None:
    """Rank addresses by current streak or total saved."""
    with _open_store(db) as store:
        rows = ReadAPI(store).list_leaderboard(sort_by, limit)  # type: ignore[arg-type]

    table = Table(title=f"leaderboard ({sort_by})")
    for col in ("#", "address", "streak", "longest", "completed", "saved"):
        table.add_column(col, justify="right" if col != "address" else "left")
    for i, s in enumerate(rows, start=1):
        table.add_row(
            str(i),
            s.address,
            str(s.current_streak),
            str(s.longest_streak),
            str(s.goals_completed),
            str(s.total_saved),
        )
    console.print(table)


@cli.command("export")
@click.argument("out_dir", type=click.Path(file_okay=False))
@click.option("--db", default=DEFAULT_DB, show_default=True, envvar="VOUCHIND_DB")
@click.option("--codec", default="zstd", show_default=True, help="Parquet compression codec")
def export_cmd(out_dir: str, db: str, codec: str) -> None:
    """Write the three views to Parquet files."""
    with _open_store(db) as store:
        written = export_views(store, out_dir, codec=codec)
    for view, path in written.items():
        console.print(f"[green]{view}[/] → {path}")


def main() -> None:
    logging.captureWarnings(True)
    cli()


if __name__ == "__main__":
    main()

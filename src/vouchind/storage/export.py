"""Parquet snapshots of the materialized views.

Amount columns (HUGEINT in the store) are written as strings, the same way
decoded uint256 values are kept exact elsewhere: Arrow has no 128-bit
integer type.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from . import sql_queries
from .store import DuckDBStore

_SCHEMAS: dict[str, pa.Schema] = {
    "goal": pa.schema(
        [
            ("id", pa.string()),
            ("creator", pa.string()),
            ("stake_amount", pa.string()),
            ("deadline", pa.int64()),
            ("description", pa.string()),
            ("is_solo", pa.bool_()),
            ("resolved", pa.bool_()),
            ("successful", pa.bool_()),
            ("created_at", pa.int64()),
            ("resolved_at", pa.int64()),
        ]
    ),
    "activity": pa.schema(
        [
            ("id", pa.string()),
            ("type", pa.string()),
            ("user", pa.string()),
            ("goal_id", pa.string()),
            ("goal_title", pa.string()),
            ("stake_amount", pa.string()),
            ("deadline", pa.int64()),
            ("is_solo", pa.bool_()),
            ("successful", pa.bool_()),
            ("is_valid", pa.bool_()),
            ("claim_amount", pa.string()),
            ("timestamp", pa.int64()),
            ("block_number", pa.int64()),
        ]
    ),
    "user_stats": pa.schema(
        [
            ("id", pa.string()),
            ("goals_created", pa.int32()),
            ("goals_completed", pa.int32()),
            ("goals_failed", pa.int32()),
            ("total_staked", pa.string()),
            ("total_saved", pa.string()),
            ("total_lost", pa.string()),
            ("current_streak", pa.int32()),
            ("longest_streak", pa.int32()),
            ("last_goal_at", pa.int64()),
        ]
    ),
}


def view_to_arrow_table(store: DuckDBStore, view: str) -> pa.Table:
    """Read one view into an Arrow table with a deterministic schema."""
    schema = _SCHEMAS[view]
    with store.cursor() as cur:
        rows = cur.execute(sql_queries.EXPORT_QUERIES[view]).fetchall()

    columns: dict[str, list] = {f.name: [] for f in schema}
    for row in rows:
        for f, value in zip(schema, row):
            if value is not None and pa.types.is_string(f.type) and not isinstance(value, str):
                value = str(value)
            columns[f.name].append(value)
    return pa.Table.from_pydict(columns, schema=schema)


def export_views(store: DuckDBStore, out_dir: str | Path, *, codec: str = "zstd") -> dict[str, Path]:
    """Write goal / activity / user_stats to `<out_dir>/<view>.parquet`."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    for view in _SCHEMAS:
        table = view_to_arrow_table(store, view)
        path = out / f"{view}.parquet"
        pq.write_table(table, path, compression=codec)
        written[view] = path
    return written

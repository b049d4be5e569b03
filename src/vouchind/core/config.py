from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

MissingGoalPolicy = Literal["degrade", "strict"]


@dataclass(frozen=True)
class IndexerConfig:
    """Configuration for one indexing run against a VouchieVault deployment."""

    rpc_url: str
    address: str
    start_block: int | str
    end_block: int | str
    db_path: Path = Path("./data/vouchind.duckdb")
    manifests_dir: Path = Path("./data/manifests")
    step: int = 2_000
    concurrency: int = 8
    confirmations: int = 0  # "latest" resolves to head - confirmations
    timeout_s: int = 20
    missing_goal_policy: MissingGoalPolicy = "degrade"
    resume: bool = False  # start from the store's cursor block when it is ahead of start_block

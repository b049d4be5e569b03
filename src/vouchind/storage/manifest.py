from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

from vouchind.core.models import ChunkRecord


class LiveManifest:
    """Append-only JSONL journal of the block ranges a run fetched.

    One line per state change (started / done / failed). The sync cursor in
    the store is what resumption relies on; the manifest is the operational
    record of what each run did.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)
        self._lock = asyncio.Lock()

    async def append(self, rec: ChunkRecord) -> None:
        """Append a chunk record; concurrent appends are serialized."""
        line = rec.to_json_line()
        async with self._lock:
            await asyncio.to_thread(self._write_line, self.path, line)

    def records(self) -> list[ChunkRecord]:
        """Read back every record written so far (blank lines skipped)."""
        out: list[ChunkRecord] = []
        with self.path.open() as f:
            for line in f:
                if line.strip():
                    out.append(ChunkRecord(**json.loads(line)))
        return out

    @staticmethod
    def _write_line(path: Path, line: str) -> None:
        with path.open("a", buffering=1) as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())

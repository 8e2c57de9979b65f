"""Parquet-backed valuation snapshot cache.

Each cache key is stored as a single-row Parquet file holding the
serialized ValuationResult and its expiry (wall-clock epoch seconds), so
snapshots survive process restarts and can be shared between workers on
one host.

Storage structure:
    data/valuations/{sha256(key)}.parquet

All I/O operations are async-compatible using asyncio.to_thread for
non-blocking execution.
"""

import asyncio
import hashlib
import logging
import time
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
from pydantic import ValidationError

from pricefuse.models import ValuationResult

logger = logging.getLogger(__name__)


class ParquetValuationCache:
    """Async Parquet cache for valuation snapshots.

    Writes are last-writer-wins: a put for an existing key replaces the
    file. Expired, unreadable or invalid files read as a miss.

    Args:
        base_path: Root directory for cache. Defaults to 'data/'.
        clock: Wall-clock time source in epoch seconds
    """

    def __init__(
        self,
        base_path: str | Path = "data",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.base_path = Path(base_path) / "valuations"
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def _get_file_path(self, key: str) -> Path:
        """File path for a cache key (hashed; keys may hold any characters)."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.base_path / f"{digest}.parquet"

    async def put(self, key: str, value: ValuationResult, ttl_seconds: int) -> Path:
        """Write a snapshot that expires ``ttl_seconds`` from now.

        Returns:
            Path to the written file
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        file_path = self._get_file_path(key)
        now = self._clock()
        frame = pd.DataFrame([{
            "key": key,
            "payload": value.model_dump_json(),
            "created_at": now,
            "expires_at": now + ttl_seconds,
        }])

        def _write() -> None:
            table = pa.Table.from_pandas(frame, preserve_index=False)
            tmp_path = file_path.with_suffix(".parquet.tmp")
            pq.write_table(table, tmp_path, compression="snappy")
            tmp_path.replace(file_path)

        await asyncio.to_thread(_write)
        return file_path

    async def get(self, key: str) -> ValuationResult | None:
        """Read a live snapshot, or None if absent, expired or corrupt."""
        file_path = self._get_file_path(key)

        if not file_path.exists():
            return None

        def _read() -> dict[str, Any] | None:
            try:
                records = pq.read_table(file_path).to_pandas().to_dict("records")
            except Exception as e:
                logger.warning(
                    "Failed to read cache file %s: %s. "
                    "File may be corrupted — returning None.",
                    file_path, e,
                )
                return None
            return records[0] if records else None

        record = await asyncio.to_thread(_read)
        if record is None or record.get("key") != key:
            return None

        if float(record["expires_at"]) <= self._clock():
            logger.debug("Cache snapshot expired for %s", key)
            return None

        try:
            return ValuationResult.model_validate_json(record["payload"])
        except ValidationError as e:
            logger.warning("Invalid cached valuation for %s: %s", key, e)
            return None

    async def invalidate(self, key: str) -> None:
        """Remove the snapshot for ``key`` if present."""
        file_path = self._get_file_path(key)
        await asyncio.to_thread(file_path.unlink, True)

    async def purge_expired(self) -> int:
        """Delete every expired snapshot file.

        Returns:
            Number of files removed
        """
        now = self._clock()

        def _purge() -> int:
            removed = 0
            for file_path in self.base_path.glob("*.parquet"):
                try:
                    expires = pq.read_table(file_path, columns=["expires_at"]).column(0)[0].as_py()
                except Exception as e:
                    logger.warning("Unreadable cache file %s: %s — removing", file_path, e)
                    expires = None
                if expires is None or float(expires) <= now:
                    file_path.unlink(missing_ok=True)
                    removed += 1
            return removed

        return await asyncio.to_thread(_purge)

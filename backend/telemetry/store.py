from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import duckdb

from telemetry.sql import (
    CREATE_EVENTS_TABLE_SQL,
    INSERT_EVENTS_SQL,
    SLOWEST_SQL_TEMPLATE,
    SUMMARY_SQL_TEMPLATE,
)

logger = logging.getLogger(__name__)

# Column order of INSERT_EVENTS_SQL.
EventRow = tuple[Any, ...]


def _opt(cast: Callable[[Any], Any], v: Any) -> Any:
    return None if v is None else cast(v)


@dataclass
class TelemetryStore:
    """
    Append-only log of viewport load outcomes.

    `record` only enqueues; one writer thread commits whatever is queued, so a
    load never waits on DuckDB.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[EventRow]" = field(default_factory=queue.Queue, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, name="telemetry-writer", daemon=True)
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        if self._worker is not None:
            self._worker.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        region: str,
        outcome: str,
        signature: str | None,
        bbox: str | None,
        elements: int | None = None,
        features: int | None = None,
        added: int | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
    ) -> None:
        self.start()
        self._q.put_nowait(
            (
                int(time.time() * 1000),
                region,
                outcome,
                signature,
                bbox,
                _opt(int, elements),
                _opt(int, features),
                _opt(int, added),
                _opt(float, duration_ms),
                error,
            )
        )

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Block until every recorded event is committed, or the timeout passes.
        """
        deadline = time.monotonic() + timeout_s
        while self._q.unfinished_tasks and time.monotonic() < deadline:
            time.sleep(0.01)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        with self._lock:
            return self.conn.execute(sql, params or []).fetchall()

    def summary(self, *, region: str | None = None, since_ms: int | None = None) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if region:
            where.append("region = ?")
            params.append(region)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)
        return [
            {
                "region": region_v,
                "outcome": outcome,
                "n": int(n),
                "avgMs": _opt(float, avg_ms),
                "p50Ms": _opt(float, p50),
                "p95Ms": _opt(float, p95),
                "features": int(features),
                "added": int(added),
            }
            for region_v, outcome, n, avg_ms, p50, p95, features, added in rows
        ]

    def slowest(self, *, region: str | None = None, limit: int = 25) -> list[dict[str, Any]]:
        where = ["duration_ms IS NOT NULL"]
        params: list[Any] = []
        if region:
            where.append("region = ?")
            params.append(region)
        params.append(max(1, min(200, int(limit))))

        rows = self.query(SLOWEST_SQL_TEMPLATE.format(where_sql=" AND ".join(where)), params)
        return [
            {
                "tsMs": int(ts_ms),
                "region": region_v,
                "outcome": outcome,
                "signature": signature,
                "durationMs": _opt(float, duration_ms),
                "elements": _opt(int, elements),
                "features": _opt(int, features),
            }
            for ts_ms, region_v, outcome, signature, duration_ms, elements, features in rows
        ]

    def reset(self) -> None:
        # The writer must be gone before the connection closes.
        self.stop()
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        while True:
            try:
                rows = [self._q.get(timeout=0.1)]
            except queue.Empty:
                if self._stop.is_set():
                    return
                continue
            while True:
                try:
                    rows.append(self._q.get_nowait())
                except queue.Empty:
                    break
            try:
                with self._lock:
                    self.conn.executemany(INSERT_EVENTS_SQL, rows)
                    self.conn.execute("CHECKPOINT;")
            except duckdb.Error:
                logger.warning("Dropped %d telemetry events", len(rows), exc_info=True)
            finally:
                for _ in rows:
                    self._q.task_done()

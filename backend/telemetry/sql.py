from __future__ import annotations

CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS load_events (
  ts_ms BIGINT,
  region TEXT,
  outcome TEXT,
  signature TEXT,
  bbox TEXT,
  elements INTEGER,
  features INTEGER,
  added INTEGER,
  duration_ms DOUBLE,
  error TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  region,
  outcome,
  COUNT(*) AS n,
  AVG(duration_ms) AS avg_ms,
  quantile_cont(duration_ms, 0.50) AS p50_ms,
  quantile_cont(duration_ms, 0.95) AS p95_ms,
  SUM(COALESCE(features, 0)) AS features,
  SUM(COALESCE(added, 0)) AS added
FROM load_events
{where_sql}
GROUP BY region, outcome
ORDER BY region, outcome
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  region,
  outcome,
  signature,
  duration_ms,
  elements,
  features
FROM load_events
WHERE {where_sql}
ORDER BY duration_ms DESC
LIMIT ?
"""

INSERT_EVENTS_SQL = """
INSERT INTO load_events
  (ts_ms, region, outcome, signature, bbox, elements, features, added, duration_ms, error)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

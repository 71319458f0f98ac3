from __future__ import annotations

CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS events (
  ts_ms BIGINT,
  endpoint TEXT,
  source TEXT,
  zoom INTEGER,
  sw_lat DOUBLE,
  sw_lon DOUBLE,
  ne_lat DOUBLE,
  ne_lon DOUBLE,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  source,
  endpoint,
  COUNT(*) AS n,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.50) AS p50_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.95) AS p95_total_ms,
  quantile_cont(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE), 0.99) AS p99_total_ms,
  AVG(try_cast(json_extract(stats_json, '$.clusters') AS DOUBLE)) AS avg_clusters,
  AVG(try_cast(json_extract(stats_json, '$.points') AS DOUBLE)) AS avg_points
FROM events
{where_sql}
GROUP BY source, endpoint
ORDER BY source, endpoint
"""

SLOWEST_SQL_TEMPLATE = """
SELECT
  ts_ms,
  source,
  endpoint,
  try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE) AS total_ms,
  try_cast(json_extract(stats_json, '$.clusters') AS BIGINT) AS clusters,
  zoom
FROM events
WHERE {where_sql}
ORDER BY total_ms DESC
LIMIT ?
"""

INSERT_EVENTS_SQL = """
INSERT INTO events
  (ts_ms, endpoint, source, zoom, sw_lat, sw_lon, ne_lat, ne_lon, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

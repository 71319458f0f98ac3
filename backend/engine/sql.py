from __future__ import annotations

CREATE_LOCATION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS location (
  id BIGINT PRIMARY KEY,
  name TEXT,
  latitude DOUBLE,
  longitude DOUBLE,
  quad_key TEXT
);
"""

# cqk = cluster quad key, cnt = how many locations in the cluster
CLUSTER_COUNTS_SQL_TEMPLATE = """
SELECT SUBSTRING(quad_key, 1, ?) AS cqk, COUNT(*) AS cnt
FROM location
WHERE latitude > ? AND latitude < ?
  AND {lon_sql}
GROUP BY cqk
"""

LON_INSIDE_SQL = "(longitude > ? AND longitude < ?)"
# Antimeridian-crossing box: east of sw OR west of ne.
LON_WRAPPED_SQL = "(longitude > ? OR longitude < ?)"

UPSERT_LOCATION_SQL = """
INSERT OR REPLACE INTO location (id, name, latitude, longitude, quad_key)
VALUES (?, ?, ?, ?, ?)
"""

UPDATE_LOCATION_POINT_SQL = """
UPDATE location SET latitude = ?, longitude = ?, quad_key = ?
WHERE id = ?
"""

PAGE_SQL_TEMPLATE = """
SELECT id, name, latitude, longitude, quad_key
FROM location
WHERE lower(name) LIKE ? ESCAPE '\\'
ORDER BY {sort_by} {order}, id ASC
LIMIT ? OFFSET ?
"""

FILTERED_COUNT_SQL = "SELECT COUNT(*) FROM location WHERE lower(name) LIKE ? ESCAPE '\\'"

BATCH_SQL = """
SELECT id, name, latitude, longitude, quad_key
FROM location
ORDER BY id
LIMIT ? OFFSET ?
"""

"""
Point-count sources.

A count source answers the bounding-box aggregate query: stored quad keys
grouped by a prefix of the requested zoom. The in-memory source scans a list;
the DuckDB store pushes the grouping into SQL.
"""

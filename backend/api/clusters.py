from __future__ import annotations

import time

from clustering.engine import clusters_to_json
from clustering.service import clusters_in_bounds
from engine.types import CountSource
from geo.aoi import BBox
from telemetry.singleton import get_store


def handle_clusters(source: CountSource, bounds: BBox, zoom: int) -> dict[str, dict]:
    """
    Cluster listing for a map viewport, keyed by quad key prefix.
    """
    t0 = time.perf_counter()
    clusters = clusters_in_bounds(source, bounds, zoom)
    payload = clusters_to_json(clusters)
    total_ms = (time.perf_counter() - t0) * 1000.0

    # Persist telemetry for later analysis (best-effort).
    try:
        store = get_store()
        if store is not None:
            store.record(
                endpoint="/clusters",
                source=source.name,
                zoom=zoom,
                bounds=bounds.to_dict(),
                stats={
                    "clusters": len(clusters),
                    "points": sum(c.count for c in clusters.values()),
                    "timingsMs": {"total": round(total_ms, 2)},
                },
            )
    except Exception:
        pass
    return payload

from __future__ import annotations

import logging

from clustering.engine import Cluster, cluster
from engine.types import CountQuery, CountSource
from geo.aoi import BBox
from geo.zoom import ZoomLevel

logger = logging.getLogger(__name__)


def clusters_in_bounds(
    source: CountSource, bounds: BBox, zoom: "int | ZoomLevel"
) -> dict[str, Cluster]:
    """
    Clusters for every non-empty tile at `zoom` inside the bounds.

    The zoom is checked before the source is queried. Source failures
    (AggregateQueryError) propagate unchanged.
    """
    z = ZoomLevel.of(zoom).require_stored()
    logger.info(
        f"Getting clusters in bounds {bounds.to_dict()} at zoom {z.value} from {source.name}"
    )
    counts = source.counts(CountQuery(bounds=bounds, zoom=z))
    logger.debug(f"Got back clusters map {counts}")
    return cluster(counts, z)

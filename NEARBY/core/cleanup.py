# NEARBY/core/cleanup
import logging
from typing import Dict

from NEARBY.core.errors import StoreError
from NEARBY.core.logger import log_to_cloud
from NEARBY.PLACES.catalog import CatalogCache
from NEARBY.PRESENCE.reconciler import PresenceReconciler

logger = logging.getLogger("core.cleanup")


async def cleanup_stale_presence(cache: CatalogCache, reconciler: PresenceReconciler) -> Dict[str, int]:
    """
    Prune stale / offline presence rows under every venue in the catalog.
    Returns the number of removed rows per venue (venues that failed are left out).
    """
    try:
        venues = await cache.get_venues()
    except StoreError as e:
        logger.warning("Presence cleanup skipped, catalog unavailable: %s", e)
        return {}

    removed = await reconciler.prune_all([v.id for v in venues])
    total = sum(removed.values())
    if total:
        log_to_cloud(
            "PRESENCE_CLEANUP",
            "INFO",
            f"Removed {total} stale presence rows",
            {"venues": {k: v for k, v in removed.items() if v}},
        )
    logger.debug("Presence cleanup checked %d venues, removed %d rows", len(venues), total)
    return removed

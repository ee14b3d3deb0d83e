import pytest

from conftest import NOW_MS
from NEARBY.core.cleanup import cleanup_stale_presence


@pytest.mark.asyncio
async def test_cleanup_prunes_every_catalog_venue(catalog, reconciler, presence):
    presence.active["cafe"] = {"old": NOW_MS - 2_000_000}
    presence.active["museum"] = {"offline": NOW_MS - 1000}

    removed = await cleanup_stale_presence(catalog, reconciler)

    assert removed == {"cafe": 1, "bar": 0, "museum": 1}
    assert presence.active == {"cafe": {}, "museum": {}}


@pytest.mark.asyncio
async def test_cleanup_skips_when_catalog_is_down(catalog, reconciler):
    catalog.fail = True
    assert await cleanup_stale_presence(catalog, reconciler) == {}

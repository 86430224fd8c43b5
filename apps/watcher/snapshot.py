"""
Snapshot Builder

Turns one point in time into one Snapshot: fetch the ranked IDs, keep the
first page, then fetch each item's detail one after another. Any fetch error
aborts the whole build; a partial snapshot is never returned.
"""

import logging
from datetime import datetime

from utils.schemas import MAX_PAGE_SIZE, ItemDetail, Snapshot

logger = logging.getLogger(__name__)

PAGE_SIZE = MAX_PAGE_SIZE


async def build_snapshot(now: datetime, fetcher, page_size: int = PAGE_SIZE) -> Snapshot:
    """
    Build the snapshot captured at `now`.

    Args:
        now: Capture time, recorded as the snapshot timestamp
        fetcher: Object exposing async list_top_ids() and get_detail(id)
        page_size: Number of leading ranked IDs to keep (at most 30)

    Returns:
        Snapshot holding min(page_size, len(ids)) items in rank order

    Raises:
        TransportError, DecodeError: Propagated unchanged from the fetcher
    """
    ids = await fetcher.list_top_ids()
    page = ids[:page_size]

    # Sequential on purpose: one request in flight, output order == rank order.
    items: list[ItemDetail] = []
    for item_id in page:
        items.append(await fetcher.get_detail(item_id))

    snapshot = Snapshot(timestamp=now, items=tuple(items))
    logger.debug(
        "Snapshot built",
        extra={"ranked_ids": len(ids), "items": len(snapshot.items)},
    )
    return snapshot

import logging
from typing import Any, List, Sequence

from mintalert.mints import CONTRACT_ENS2, RankedEntry
from mintalert.opensea import Collection, OpenSeaError
from mintalert.state import AnnouncedState


log = logging.getLogger(__name__)

MINT_THRESHOLD = 100


def should_call_out(collection: Collection, address: str, count: int) -> bool:
    """Decide whether a collection has enough public presence to announce."""
    if address.lower() == CONTRACT_ENS2.lower():
        return False
    log.info("[gate] Checking for callout %s (count %d)", address, count)
    if not collection.external_link and not collection.collection.twitter_username:
        return False
    return True


def announce(
    ranked: Sequence[RankedEntry],
    state: AnnouncedState,
    metadata: Any,
    notifiers: Sequence[Any],
    threshold: int = MINT_THRESHOLD,
) -> List[str]:
    """Walk the ranking and announce new, busy collections.

    Appends every announced address to ``state.recents`` and returns them.
    The first metadata lookup failure ends the walk; later candidates wait
    for the next run.
    """
    announced: List[str] = []
    for address, count in ranked:
        if count <= threshold:
            continue
        if state.is_announced(address):
            log.debug("[gate] %s already announced, skipping", address)
            continue
        try:
            collection = metadata.asset_contract(address)
        except OpenSeaError as e:
            log.error("[gate] Opensea API error on contract %s: %s", address, e)
            break
        if not should_call_out(collection, address, count):
            continue
        log.info(
            "[gate] Sending alerts. Contract: %s Slug: %s TwitterId: %s",
            address, collection.collection.slug, collection.collection.twitter_username,
        )
        for notifier in notifiers:
            notifier.send(collection, count)
        state.record(address)
        announced.append(address)
    return announced

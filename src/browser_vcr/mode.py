"""Record vs. playback selection at session start."""

import logging
from enum import Enum

from anyio import to_thread

from .cassette import Cassette
from .store import CassetteStore

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Session mode, fixed once a session has started."""

    RECORD = "record"
    PLAYBACK = "playback"


def select_mode(store: CassetteStore, name: str) -> tuple[Mode, Cassette]:
    """Pick the mode for a session from cassette presence.

    An existing cassette file means playback and is loaded in full (a corrupt
    file raises CorruptCassetteError). Otherwise a new, empty cassette is
    returned for recording; nothing is written until the first entry.
    """
    if store.exists(name):
        cassette = store.load(name)
        logger.info(f"Using cassette {name!r} ({len(cassette)} entries): {store.path_for(name)}")
        return Mode.PLAYBACK, cassette

    logger.info(f"Recording new cassette {name!r}: {store.path_for(name)}")
    return Mode.RECORD, Cassette(name=name)


async def select_mode_async(store: CassetteStore, name: str) -> tuple[Mode, Cassette]:
    """select_mode() on a worker thread, keeping disk I/O off the event loop."""
    return await to_thread.run_sync(select_mode, store, name)

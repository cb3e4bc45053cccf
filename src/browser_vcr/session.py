"""Scoped record/replay sessions.

    async with use_cassette(page, "wikipedia_homepage") as recorder:
        await page.goto("https://en.wikipedia.org/wiki/Main_Page")

The route is removed on every exit path, including a failing scenario. When the
scenario itself fails, its exception is the one that propagates; an error raised
while stopping the recorder is logged and attached to it as a note.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

from .config import VcrSettings
from .observability.logging import bind_session_context, clear_session_context
from .recorder import CassetteRecorder
from .store import CassetteStore

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def use_cassette(
    target: "Page | BrowserContext",
    name: str,
    *,
    store: CassetteStore | None = None,
    settings: VcrSettings | None = None,
) -> AsyncIterator[CassetteRecorder]:
    """Start a recorder for `name` on `target` and stop it when the block exits."""
    recorder = CassetteRecorder(target, name, store=store, settings=settings)
    mode = await recorder.start()
    bind_session_context(name, mode.value)
    try:
        yield recorder
    except BaseException as scenario_error:
        try:
            await recorder.stop()
        except Exception as e:
            logger.error(f"Stopping cassette {name!r} after a failed scenario also failed: {e!r}")
            scenario_error.add_note(f"while stopping cassette {name!r}: {e!r}")
        finally:
            clear_session_context()
        raise
    try:
        await recorder.stop()
    finally:
        clear_session_context()


async def with_cassette(
    target: "Page | BrowserContext",
    name: str,
    scenario: Callable[[], Awaitable[T]],
    *,
    store: CassetteStore | None = None,
    settings: VcrSettings | None = None,
) -> T:
    """Run `scenario` with cassette `name` active and return its result."""
    async with use_cassette(target, name, store=store, settings=settings):
        return await scenario()

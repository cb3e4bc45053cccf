"""Cassette recorder: intercepts browser traffic and records or replays it.

The recorder registers one catch-all route on a Playwright page (or browser
context) and decides per request:

- PLAYBACK: fulfill from the first cassette entry with the same fingerprint.
  A miss goes to the live network (or is aborted in strict playback) and is
  never recorded.
- RECORDING: fetch the real response, append it to the cassette, write the
  cassette to disk, then fulfill the request with the response unmodified.

Append + write run under one asyncio.Lock, so concurrent requests never
interleave writes or drop entries. Playback lookups take no lock.

Usage:
    recorder = CassetteRecorder(page, "wikipedia_homepage")
    await recorder.start()
    try:
        await page.goto("https://en.wikipedia.org/wiki/Main_Page")
    finally:
        await recorder.stop()
"""

import asyncio
import logging
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from .cassette import Cassette, Entry, RequestDescriptor, ResponseDescriptor
from .config import VcrSettings, get_settings
from .exceptions import CassetteWriteError, NoMatchingRecordingError, RecorderStateError, TransportError
from .fingerprint import fingerprint_request, is_interceptable
from .mode import Mode, select_mode_async
from .observability.logging import get_session_logger
from .observability.models import SessionStats
from .store import CassetteStore

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page, Request, Route

logger = logging.getLogger(__name__)

# Abort reason for strict-playback misses; the page sees a disconnected network.
STRICT_MISS_ERROR_CODE = "internetdisconnected"

# How long stop() waits for in-flight requests to finish recording (seconds).
DRAIN_TIMEOUT = 10.0


class RecorderState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PLAYBACK = "playback"


def _describe(request: "Request") -> str:
    return f"{request.method} {request.url}"


def _request_descriptor(request: "Request") -> RequestDescriptor:
    return RequestDescriptor.from_body(request.method, request.url, dict(request.headers), request.post_data_buffer)


class CassetteRecorder:
    """Records or replays one cassette for one page or browser context.

    Each instance owns its own route handler and only ever removes that
    handler, so several recorders can share a page without interfering.
    """

    def __init__(
        self,
        target: "Page | BrowserContext",
        name: str,
        *,
        store: CassetteStore | None = None,
        settings: VcrSettings | None = None,
    ):
        """Initialize recorder.

        Args:
            target: Playwright Page or BrowserContext whose requests are intercepted
            name: Cassette name (file is ``<cassettes_dir>/<name>.json``)
            store: Cassette store; defaults to one on the configured directory
            settings: Settings override; defaults to get_settings()
        """
        self.name = name
        self.settings = settings or get_settings()
        self.store = store or CassetteStore(self.settings.get_cassettes_dir())
        self.url_pattern = self.settings.url_pattern
        self.strict = self.settings.strict_playback

        self._target = target
        self._state = RecorderState.IDLE
        self._mode: Mode | None = None
        self._cassette: Cassette | None = None
        self._stats = SessionStats(cassette=name)
        self._events = get_session_logger(__name__).bind(cassette=name)

        self._lock = asyncio.Lock()
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._write_error: CassetteWriteError | None = None

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def mode(self) -> Mode | None:
        return self._mode

    @property
    def cassette(self) -> Cassette | None:
        return self._cassette

    @property
    def stats(self) -> SessionStats:
        return self._stats

    async def start(self) -> Mode:
        """Pick the mode, load the cassette and register the route.

        Raises:
            RecorderStateError: The recorder is already started.
            CorruptCassetteError: The existing cassette could not be parsed; no route is registered.
        """
        if self._state is not RecorderState.IDLE:
            raise RecorderStateError(f"Recorder for cassette {self.name!r} already started ({self._state.value})")

        mode, cassette = await select_mode_async(self.store, self.name)

        await self._target.route(self.url_pattern, self._handle_route)

        self._mode = mode
        self._cassette = cassette
        self._write_error = None
        self._state = RecorderState.RECORDING if mode is Mode.RECORD else RecorderState.PLAYBACK
        self._stats = SessionStats(cassette=self.name, mode=mode.value, started_at=datetime.now(UTC))
        self._events = get_session_logger(__name__).bind(cassette=self.name, mode=mode.value)
        logger.info(f"Cassette {self.name!r} started in {mode.value} mode")
        self._events.info("session_started")
        return mode

    async def stop(self) -> None:
        """Remove the route and wait for in-flight recordings to land on disk.

        Raises:
            CassetteWriteError: A cassette write failed during the session.
            NoMatchingRecordingError: Strict playback saw requests with no recording.
        """
        if self._state is RecorderState.IDLE:
            logger.debug(f"Recorder for cassette {self.name!r} is not started")
            return

        try:
            await self._target.unroute(self.url_pattern, self._handle_route)
        finally:
            await self._drain()
            self._state = RecorderState.IDLE
            self._stats.stopped_at = datetime.now(UTC)
            logger.info(
                f"Cassette {self.name!r} stopped: replayed={self._stats.replayed} recorded={self._stats.recorded} "
                f"passed_through={self._stats.passed_through} misses={self._stats.miss_count}"
            )
            self._events.info(
                "session_stopped",
                replayed=self._stats.replayed,
                recorded=self._stats.recorded,
                passed_through=self._stats.passed_through,
                misses=self._stats.miss_count,
            )

        if self._write_error is not None:
            raise self._write_error
        if self.strict and self._stats.misses:
            raise NoMatchingRecordingError(self.name, self._stats.misses)

    async def __aenter__(self) -> "CassetteRecorder":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _drain(self) -> None:
        if self._in_flight:
            logger.debug(f"Waiting for {self._in_flight} in-flight request(s) on cassette {self.name!r}")
            try:
                await asyncio.wait_for(self._idle.wait(), DRAIN_TIMEOUT)
            except TimeoutError:
                logger.warning(f"{self._in_flight} request(s) still in flight after stopping cassette {self.name!r}")
        # Any write already holding the lock finishes before we return.
        async with self._lock:
            pass

    async def _handle_route(self, route: "Route") -> None:
        """Route handler registered with the browser. Invoked concurrently."""
        self._in_flight += 1
        self._idle.clear()
        try:
            request = route.request
            if not is_interceptable(request.url):
                self._stats.skipped += 1
                await route.continue_()
                return

            if self._state is RecorderState.PLAYBACK:
                await self._playback(route, request)
            else:
                await self._record(route, request)
        finally:
            self._in_flight -= 1
            if not self._in_flight:
                self._idle.set()

    async def _playback(self, route: "Route", request: "Request") -> None:
        descriptor = _request_descriptor(request)
        entry = self._cassette.find(fingerprint_request(descriptor))

        if entry is not None:
            logger.debug(f"Replaying request: {_describe(request)}")
            self._stats.replayed += 1
            self._events.debug("request_replayed", method=request.method, url=request.url)
            await route.fulfill(
                status=entry.response.status,
                headers=dict(entry.response.headers),
                body=entry.response.body_bytes(),
            )
            return

        self._stats.misses.append(_describe(request))
        self._events.warning("request_unmatched", method=request.method, url=request.url, strict=self.strict)
        if self.strict:
            logger.warning(f"No recording found for: {_describe(request)} (aborted, strict playback)")
            await route.abort(STRICT_MISS_ERROR_CODE)
            return

        logger.warning(f"No recording found for: {_describe(request)}")
        logger.debug(f"Passing through request: {_describe(request)}")
        self._stats.passed_through += 1
        await route.continue_()

    async def _record(self, route: "Route", request: "Request") -> None:
        if self._write_error is not None:
            logger.warning(f"Cassette {self.name!r} can no longer be written, aborting: {_describe(request)}")
            await self._abort_quietly(route)
            return

        descriptor = _request_descriptor(request)
        logger.debug(f"Recording request: {_describe(request)}")

        try:
            response = await route.fetch()
        except TransportError as e:
            logger.warning(f"Live request failed, nothing recorded: {_describe(request)}: {e}")
            await self._abort_quietly(route)
            raise

        payload = await response.body()
        entry = Entry(
            request=descriptor,
            response=ResponseDescriptor.from_payload(response.status, dict(response.headers), payload),
        )

        async with self._lock:
            self._cassette.append(entry)
            try:
                await self.store.save_async(self._cassette, self.name)
            except CassetteWriteError as e:
                self._cassette.discard_last()
                logger.error(f"Failed to persist cassette {self.name!r}: {e}")
                self._events.error("cassette_write_failed", method=request.method, url=request.url, error=str(e))
                self._write_error = self._write_error or e
                await self._abort_quietly(route)
                raise
            self._stats.recorded += 1

        self._events.debug("request_recorded", method=request.method, url=request.url, status=response.status)

        await route.fulfill(response=response)

    async def _abort_quietly(self, route: "Route") -> None:
        try:
            await route.abort("failed")
        except TransportError as e:
            logger.debug(f"Could not abort route: {e}")

"""Custom exceptions for browser-vcr."""

from playwright.async_api import Error as PlaywrightError

# Live network failures surface as Playwright's own error and are never wrapped.
TransportError = PlaywrightError


class BrowserVcrError(Exception):
    """Base exception for browser-vcr errors."""

    pass


class CorruptCassetteError(BrowserVcrError):
    """Raised when an existing cassette file cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt cassette {path}: {reason}")


class CassetteWriteError(BrowserVcrError, OSError):
    """Raised when a cassette cannot be written to disk."""

    pass


class NoMatchingRecordingError(BrowserVcrError):
    """Raised in strict playback when requests had no recorded response."""

    def __init__(self, cassette: str, misses: list[str]):
        self.cassette = cassette
        self.misses = list(misses)
        preview = ", ".join(self.misses[:5])
        more = f" (+{len(self.misses) - 5} more)" if len(self.misses) > 5 else ""
        super().__init__(f"No recording in cassette {cassette!r} for {len(self.misses)} request(s): {preview}{more}")


class RecorderStateError(BrowserVcrError):
    """Raised when a recorder is started twice."""

    pass

"""Record and replay browser network traffic with cassettes."""

from .cassette import Cassette, Entry, RequestDescriptor, ResponseDescriptor
from .config import VcrSettings, get_settings
from .exceptions import (
    BrowserVcrError,
    CassetteWriteError,
    CorruptCassetteError,
    NoMatchingRecordingError,
    RecorderStateError,
    TransportError,
)
from .fingerprint import fingerprint, is_interceptable
from .mode import Mode, select_mode
from .recorder import CassetteRecorder, RecorderState
from .session import use_cassette, with_cassette
from .store import CassetteStore

__all__ = [
    # Models
    "Cassette",
    "Entry",
    "RequestDescriptor",
    "ResponseDescriptor",
    # Components
    "CassetteStore",
    "CassetteRecorder",
    "RecorderState",
    "Mode",
    "select_mode",
    "fingerprint",
    "is_interceptable",
    "use_cassette",
    "with_cassette",
    # Config
    "VcrSettings",
    "get_settings",
    # Exceptions
    "BrowserVcrError",
    "CorruptCassetteError",
    "CassetteWriteError",
    "NoMatchingRecordingError",
    "RecorderStateError",
    "TransportError",
]

"""Data models for session observability."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class SessionStats(BaseModel):
    """Per-session counters kept by a CassetteRecorder."""

    cassette: str
    mode: str | None = None

    # Timestamps
    started_at: datetime | None = None
    stopped_at: datetime | None = None

    # Per-request outcomes
    replayed: int = 0  # served from the cassette
    recorded: int = 0  # fetched live and appended
    passed_through: int = 0  # playback misses sent to the network
    skipped: int = 0  # non-http(s) requests left untouched
    misses: list[str] = Field(default_factory=list)  # "METHOD URL" of playback misses

    @property
    def duration_seconds(self) -> float | None:
        if not self.started_at:
            return None
        end = self.stopped_at or datetime.now(UTC)
        return (end - self.started_at).total_seconds()

    @property
    def miss_count(self) -> int:
        return len(self.misses)

"""Data models for cassettes.

A cassette is an ordered, append-only list of entries. Each entry pairs the
request the browser sent with the response it got back. The dict shape
produced by ``to_dict()`` is exactly what lands in the cassette file:

    {"entries": [{"request": {...}, "response": {...}}, ...]}
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from .fingerprint import fingerprint_request

# Dropped from stored responses: the body is kept decoded and its length is recomputed on replay.
UNSTORED_RESPONSE_HEADERS = frozenset({"content-length", "content-encoding", "transfer-encoding"})

BASE64_ENCODING = "base64"


def _string_mapping(value: Any, where: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise TypeError(f"{where} must be an object, got {type(value).__name__}")
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise TypeError(f"{where} must map strings to strings")
    return dict(value)


def _require_str(data: dict, key: str, where: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{where}.{key} must be a string, got {type(value).__name__}")
    return value


def strip_unstored_headers(headers: dict[str, str]) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in UNSTORED_RESPONSE_HEADERS}


@dataclass(frozen=True)
class RequestDescriptor:
    """A request as the browser sent it.

    ``post_data`` is text. Bodies that were not valid UTF-8 are kept
    base64-encoded with ``post_data_encoding="base64"``, and the fingerprint
    is taken over that encoded text.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    post_data: str | None = None  # None means the request had no body
    post_data_encoding: str | None = None

    @classmethod
    def from_body(cls, method: str, url: str, headers: dict[str, str], payload: bytes | None) -> "RequestDescriptor":
        """Build a storable request from the raw body bytes, choosing text or base64."""
        if not payload:
            return cls(method=method, url=url, headers=dict(headers))
        try:
            return cls(method=method, url=url, headers=dict(headers), post_data=payload.decode("utf-8"))
        except UnicodeDecodeError:
            return cls(
                method=method,
                url=url,
                headers=dict(headers),
                post_data=base64.b64encode(payload).decode("ascii"),
                post_data_encoding=BASE64_ENCODING,
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"url": self.url, "method": self.method, "headers": dict(self.headers)}
        if self.post_data is not None:
            data["postData"] = self.post_data
            if self.post_data_encoding:
                data["postDataEncoding"] = self.post_data_encoding
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RequestDescriptor":
        if not isinstance(data, dict):
            raise TypeError("request must be an object")
        post_data = data.get("postData")
        if post_data is not None and not isinstance(post_data, str):
            raise TypeError("request.postData must be a string")
        encoding = data.get("postDataEncoding")
        if encoding not in (None, BASE64_ENCODING):
            raise ValueError(f"Unsupported request.postDataEncoding: {encoding!r}")
        return cls(
            method=_require_str(data, "method", "request"),
            url=_require_str(data, "url", "request"),
            headers=_string_mapping(data.get("headers", {}), "request.headers"),
            post_data=post_data,
            post_data_encoding=encoding if post_data is not None else None,
        )


@dataclass(frozen=True)
class ResponseDescriptor:
    """A response as it is replayed.

    ``body`` is text. Bodies that were not valid UTF-8 are kept base64-encoded
    with ``encoding="base64"``; use ``body_bytes()`` to get the raw payload.
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    encoding: str | None = None

    @classmethod
    def from_payload(cls, status: int, headers: dict[str, str], payload: bytes) -> "ResponseDescriptor":
        """Build a storable response from raw bytes, choosing text or base64."""
        try:
            return cls(status=status, headers=strip_unstored_headers(headers), body=payload.decode("utf-8"))
        except UnicodeDecodeError:
            return cls(
                status=status,
                headers=strip_unstored_headers(headers),
                body=base64.b64encode(payload).decode("ascii"),
                encoding=BASE64_ENCODING,
            )

    def body_bytes(self) -> bytes:
        if self.encoding == BASE64_ENCODING:
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status, "headers": dict(self.headers), "body": self.body}
        if self.encoding:
            data["encoding"] = self.encoding
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResponseDescriptor":
        if not isinstance(data, dict):
            raise TypeError("response must be an object")
        status = data["status"]
        # bool is a subclass of int
        if isinstance(status, bool) or not isinstance(status, int):
            raise TypeError(f"response.status must be an integer, got {status!r}")
        encoding = data.get("encoding")
        if encoding not in (None, BASE64_ENCODING):
            raise ValueError(f"Unsupported response.encoding: {encoding!r}")
        body = _require_str(data, "body", "response")
        if encoding == BASE64_ENCODING:
            try:
                base64.b64decode(body, validate=True)
            except binascii.Error as e:
                raise ValueError(f"response.body is not valid base64: {e}") from e
        return cls(
            status=status,
            headers=_string_mapping(data.get("headers", {}), "response.headers"),
            body=body,
            encoding=encoding,
        )


@dataclass(frozen=True)
class Entry:
    """One recorded request/response pair. Never edited once appended."""

    request: RequestDescriptor
    response: ResponseDescriptor

    @property
    def fingerprint(self) -> str:
        return fingerprint_request(self.request)

    def to_dict(self) -> dict[str, Any]:
        return {"request": self.request.to_dict(), "response": self.response.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entry":
        if not isinstance(data, dict):
            raise TypeError("entry must be an object")
        return cls(
            request=RequestDescriptor.from_dict(data["request"]),
            response=ResponseDescriptor.from_dict(data["response"]),
        )


@dataclass
class Cassette:
    """Named, ordered collection of entries."""

    name: str
    entries: list[Entry] = field(default_factory=list)
    # fingerprint -> index of the first entry carrying it
    _index: dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.entries = list(self.entries)
        for i, entry in enumerate(self.entries):
            self._index.setdefault(entry.fingerprint, i)

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, entry: Entry) -> None:
        self._index.setdefault(entry.fingerprint, len(self.entries))
        self.entries.append(entry)

    def discard_last(self) -> Entry:
        """Remove the most recent entry, e.g. when it could not be persisted."""
        entry = self.entries.pop()
        if self._index.get(entry.fingerprint) == len(self.entries):
            del self._index[entry.fingerprint]
        return entry

    def find(self, key: str) -> Entry | None:
        """Return the first entry recorded for a fingerprint.

        Later entries with the same fingerprint are never reachable.
        """
        i = self._index.get(key)
        return self.entries[i] if i is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {"entries": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "Cassette":
        if not isinstance(data, dict):
            raise TypeError(f"cassette must be an object, got {type(data).__name__}")
        entries = data["entries"]
        if not isinstance(entries, list):
            raise TypeError("cassette.entries must be a list")
        return cls(name=name, entries=[Entry.from_dict(e) for e in entries])

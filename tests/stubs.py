"""Test doubles for the transport and metrics capabilities."""

import threading
from typing import Any

from pushload.exceptions import TransportError
from pushload.transport import TransportResponse


class StubTransport:
    """Transport answering every request with the same response or error."""

    def __init__(
        self, status_code: int = 200, text: str = "", error: Exception | None = None
    ) -> None:
        self.status_code: int = status_code
        self.text: str = text
        self.error: Exception | None = error
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def post_json(
        self, url: str, body: dict[str, Any], headers: dict[str, str], timeout: float
    ) -> TransportResponse:
        with self._lock:
            self.calls.append(dict(url=url, body=body, headers=headers, timeout=timeout))
        if self.error:
            raise TransportError(self.error)
        return TransportResponse(status_code=self.status_code, text=self.text)

    @property
    def bodies(self) -> list[dict[str, Any]]:
        with self._lock:
            return [call["body"] for call in self.calls]


class RecordingStatsClient:
    """Stands in for `statsd.StatsClient`, keeping every metric sent."""

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.timings: list[tuple[str, Any]] = []
        self._lock = threading.Lock()

    def incr(self, stat: str, count: int = 1, rate: float = 1) -> None:
        with self._lock:
            self.counters[stat] = self.counters.get(stat, 0) + count

    def timing(self, stat: str, delta: Any, rate: float = 1) -> None:
        with self._lock:
            self.timings.append((stat, delta))

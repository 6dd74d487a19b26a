"""In-process counters for transport activity."""

import threading
from collections import Counter
from typing import ClassVar

from feedsync.transport.errors import TransportErrorClass


class TransportMetrics:
    """Process-wide counters of what the transport sent and received.

    One shared instance (``get_instance()``) is updated by every
    HttpTransport; ``reset()`` drops it so tests start from zero.
    """

    _instance: ClassVar["TransportMetrics | None"] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._statuses: Counter[int] = Counter()
        self._failures: Counter[str] = Counter()
        self._not_modified = 0
        self._cancelled = 0
        self._bytes_received = 0
        self._duration_ms = 0.0

    @classmethod
    def get_instance(cls) -> "TransportMetrics":
        """Return the shared instance, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance."""
        with cls._instance_lock:
            cls._instance = None

    def record_request(
        self, status_code: int, bytes_received: int, duration_ms: float
    ) -> None:
        """Count a request that got a response, whatever its status."""
        with self._lock:
            self._statuses[status_code] += 1
            self._bytes_received += bytes_received
            self._duration_ms += duration_ms

    def record_not_modified(self) -> None:
        with self._lock:
            self._not_modified += 1

    def record_cancelled(self) -> None:
        with self._lock:
            self._cancelled += 1

    def record_failure(self, error_class: TransportErrorClass) -> None:
        with self._lock:
            self._failures[error_class.value] += 1

    @property
    def avg_duration_ms(self) -> float:
        """Mean duration of the requests that got a response."""
        with self._lock:
            count = sum(self._statuses.values())
            return self._duration_ms / count if count else 0.0

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Snapshot of all counters."""
        with self._lock:
            return {
                "http_requests_total": dict(self._statuses),
                "http_not_modified_total": self._not_modified,
                "http_cancelled_total": self._cancelled,
                "http_failures_total": dict(self._failures),
                "http_bytes_total": self._bytes_received,
                "http_duration_ms_total": self._duration_ms,
                "http_request_count": sum(self._statuses.values()),
            }

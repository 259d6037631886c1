"""Admission limiting for generation requests."""

import time
import logging
from typing import Callable, Dict, Optional, Tuple
from dataclasses import dataclass, field
from threading import Lock

from src.core.errors import QuotaExceededError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Window state for one client."""
    request_count: int = 0
    window_start: float = field(default_factory=time.time)
    last_request: float = field(default_factory=time.time)


class RateLimiter:
    """Fixed-window request counter per client identity.

    A client may make at most max_requests requests in a window of
    window_seconds that starts with its first request; the window restarts
    with the first request after it expires. Counter updates happen under a
    lock, so concurrent requests from one client are never undercounted.

    Attributes:
        max_requests: Maximum requests allowed per window
        window_seconds: Time window in seconds
        cleanup_interval: Seconds between cleanup of old entries

    Example:
        limiter = RateLimiter(max_requests=10, window_seconds=60)
        limiter.check("192.168.1.1")  # raises QuotaExceededError when over quota
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: int = 60,
        cleanup_interval: int = 300,
        clock: Callable[[], float] = time.time
    ):
        """Initialize the rate limiter.

        Args:
            max_requests: Maximum requests per window (default: 10)
            window_seconds: Time window in seconds (default: 60)
            cleanup_interval: Seconds between cleanup (default: 300)
            clock: Time source returning seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        self._clients: Dict[str, RateLimitEntry] = {}
        self._lock = Lock()
        self._last_cleanup = clock()

        logger.info(
            f"RateLimiter initialized: {max_requests} requests per {window_seconds}s"
        )

    def is_allowed(self, client_id: str) -> Tuple[bool, Optional[int]]:
        """Count a request and report whether it is admitted.

        Args:
            client_id: Unique identifier for the client (e.g., IP address)

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        with self._lock:
            current_time = self._clock()

            if current_time - self._last_cleanup > self.cleanup_interval:
                self._cleanup_old_entries(current_time)

            entry = self._clients.get(client_id)
            if entry is None:
                self._clients[client_id] = RateLimitEntry(
                    request_count=1,
                    window_start=current_time,
                    last_request=current_time
                )
                logger.debug(f"New client: {client_id}")
                return True, None

            time_since_window_start = current_time - entry.window_start
            if time_since_window_start >= self.window_seconds:
                entry.window_start = current_time
                entry.request_count = 1
                entry.last_request = current_time
                logger.debug(f"Window reset for client: {client_id}")
                return True, None

            if entry.request_count >= self.max_requests:
                time_until_reset = self.window_seconds - time_since_window_start
                retry_after = int(time_until_reset) + 1

                logger.warning(
                    f"Rate limit exceeded for {client_id}: "
                    f"{entry.request_count}/{self.max_requests} requests. "
                    f"Retry after {retry_after}s"
                )
                return False, retry_after

            entry.request_count += 1
            entry.last_request = current_time

            logger.debug(
                f"Request allowed for {client_id}: "
                f"{entry.request_count}/{self.max_requests} in window"
            )
            return True, None

    def check(self, client_id: str) -> None:
        """Admit a request or reject it.

        Args:
            client_id: Unique identifier for the client

        Raises:
            QuotaExceededError: If the client exhausted its quota
        """
        allowed, retry_after = self.is_allowed(client_id)
        if not allowed:
            raise QuotaExceededError(
                f"Too many requests. Limit is {self.max_requests} per "
                f"{self.window_seconds} seconds; retry after {retry_after}s",
                retry_after=retry_after
            )

    def _cleanup_old_entries(self, current_time: float) -> None:
        """Remove entries for clients that haven't made requests recently.

        Args:
            current_time: Current timestamp
        """
        cutoff_time = current_time - (self.window_seconds * 2)

        clients_to_remove = [
            client_id for client_id, entry in self._clients.items()
            if entry.last_request < cutoff_time
        ]

        for client_id in clients_to_remove:
            del self._clients[client_id]

        if clients_to_remove:
            logger.info(f"Cleaned up {len(clients_to_remove)} old rate limit entries")

        self._last_cleanup = current_time

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"RateLimiter(max_requests={self.max_requests}, "
            f"window_seconds={self.window_seconds}, "
            f"clients={len(self._clients)})"
        )

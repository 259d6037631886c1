"""Unit tests for rate limiter."""

import pytest
import threading
import time

from src.core.errors import QuotaExceededError
from src.utils.rate_limiter import RateLimiter, RateLimitEntry


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestRateLimitEntry:
    """Tests for RateLimitEntry dataclass."""

    def test_create_entry(self):
        """Test creating a rate limit entry."""
        entry = RateLimitEntry()

        assert entry.request_count == 0
        assert isinstance(entry.window_start, float)
        assert isinstance(entry.last_request, float)

    def test_entry_with_values(self):
        """Test creating entry with custom values."""
        now = time.time()
        entry = RateLimitEntry(request_count=5, window_start=now, last_request=now)

        assert entry.request_count == 5
        assert entry.window_start == now


class TestRateLimiter:
    """Tests for RateLimiter class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.limiter = RateLimiter(max_requests=10, window_seconds=60, clock=self.clock)

    def test_initialization(self):
        """Test limiter initialization."""
        assert self.limiter.max_requests == 10
        assert self.limiter.window_seconds == 60
        assert self.limiter.cleanup_interval == 300

    def test_first_request_allowed(self):
        """Test that first request from client is allowed."""
        allowed, retry_after = self.limiter.is_allowed("client1")

        assert allowed is True
        assert retry_after is None

    def test_eleventh_request_rejected(self):
        """Test that the request after the quota is rejected."""
        for _ in range(10):
            assert self.limiter.is_allowed("client1")[0] is True

        self.clock.advance(15)
        allowed, retry_after = self.limiter.is_allowed("client1")

        assert allowed is False
        assert retry_after == 46

    def test_check_raises(self):
        """Test that check() raises QuotaExceededError over quota."""
        for _ in range(10):
            self.limiter.check("client1")

        with pytest.raises(QuotaExceededError) as exc_info:
            self.limiter.check("client1")

        assert exc_info.value.retry_after == 61
        assert exc_info.value.status_code == 429

    def test_window_reset(self):
        """Test that a new window starts after expiry."""
        for _ in range(10):
            self.limiter.is_allowed("client1")
        assert self.limiter.is_allowed("client1")[0] is False

        self.clock.advance(60)

        assert self.limiter.is_allowed("client1") == (True, None)
        assert self.limiter._clients["client1"].request_count == 1

    def test_clients_independent(self):
        """Test that quotas are tracked per client."""
        for _ in range(10):
            self.limiter.is_allowed("client1")

        assert self.limiter.is_allowed("client1")[0] is False
        assert self.limiter.is_allowed("client2")[0] is True

    def test_rejected_requests_not_counted(self):
        """Test that rejections do not extend the count."""
        for _ in range(12):
            self.limiter.is_allowed("client1")

        assert self.limiter._clients["client1"].request_count == 10

    def test_cleanup_old_entries(self):
        """Test that idle clients are removed."""
        self.limiter.is_allowed("idle")
        self.clock.advance(301)

        self.limiter.is_allowed("active")

        assert "idle" not in self.limiter._clients
        assert "active" in self.limiter._clients

    def test_concurrent_requests_not_undercounted(self):
        """Test that concurrent requests admit exactly max_requests."""
        limiter = RateLimiter(max_requests=10, window_seconds=60)
        results = []
        results_lock = threading.Lock()

        def worker():
            allowed, _ = limiter.is_allowed("client1")
            with results_lock:
                results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(30)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 10
        assert results.count(False) == 20

    def test_repr(self):
        """Test string representation."""
        self.limiter.is_allowed("client1")

        assert repr(self.limiter) == "RateLimiter(max_requests=10, window_seconds=60, clients=1)"

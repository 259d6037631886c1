"""Health reporting based on model configuration and request counters."""

import logging
import time
from typing import Dict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock

from src.core.registry import DEFAULT_MODEL, ModelRegistry

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""
    status: HealthStatus
    message: str
    details: Dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }


class HealthChecker:
    """Reports whether the service can reach real providers.

    - healthy: the default model has a credential
    - degraded: some models are configured, but not the default one
    - unhealthy: no model is configured (every request would fail)

    Placeholder fallbacks are counted separately from errors, since they
    still answer the caller with an image.
    """

    def __init__(self, registry: ModelRegistry, default_model: str = DEFAULT_MODEL):
        """Initialize the health checker.

        Args:
            registry: Model registry to inspect
            default_model: Model used when requests don't name one
        """
        self.registry = registry
        self.default_model = default_model
        self.start_time = time.time()
        self.request_count = 0
        self.error_count = 0
        self.placeholder_count = 0
        self._lock = Lock()

    def check_health(self, include_details: bool = True) -> HealthCheckResult:
        """Perform the health check.

        Args:
            include_details: Whether to include per-model and counter details

        Returns:
            HealthCheckResult with status and details
        """
        configured = self.registry.configured_ids()

        if self.default_model in configured:
            status = HealthStatus.HEALTHY
            message = "All systems operational"
        elif configured:
            status = HealthStatus.DEGRADED
            message = f"Default model {self.default_model} is not configured"
        else:
            status = HealthStatus.UNHEALTHY
            message = "No model has an API key configured"

        details = {}
        if include_details:
            uptime_seconds = time.time() - self.start_time
            with self._lock:
                details = {
                    "uptime_seconds": round(uptime_seconds, 2),
                    "uptime_human": self._format_uptime(uptime_seconds),
                    "models": {
                        model_id: model_id in configured for model_id in self.registry.ids()
                    },
                    "request_count": self.request_count,
                    "error_count": self.error_count,
                    "placeholder_count": self.placeholder_count,
                }

        if status != HealthStatus.HEALTHY:
            logger.warning(f"Health check: {status.value} - {message}")

        return HealthCheckResult(status=status, message=message, details=details)

    def record_request(self, success: bool = True, placeholder: bool = False) -> None:
        """Record a request for metrics tracking.

        Args:
            success: Whether the request was successful
            placeholder: Whether the result was a placeholder
        """
        with self._lock:
            self.request_count += 1
            if not success:
                self.error_count += 1
            if placeholder:
                self.placeholder_count += 1

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime in human-readable form.

        Args:
            seconds: Uptime in seconds

        Returns:
            Formatted uptime string
        """
        days = int(seconds // 86400)
        hours = int((seconds % 86400) // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)

    def __repr__(self) -> str:
        """String representation."""
        uptime = self._format_uptime(time.time() - self.start_time)
        return f"HealthChecker(uptime={uptime}, requests={self.request_count})"

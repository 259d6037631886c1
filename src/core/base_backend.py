"""Abstract base class for provider adapters."""

import re
from abc import ABC, abstractmethod
from typing import Optional

from .errors import ProviderError, ProviderRejectedError
from .models import ModelProfile, NormalizedParameters, ProviderOutput

# Client errors that a later attempt may still get past
RETRYABLE_CLIENT_STATUSES = (408, 429)

_STATUS_PREFIX = re.compile(r"^(\d{3})\b")


def error_status(error: Exception) -> Optional[int]:
    """Extract the HTTP status carried by a client library exception, if any."""
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if not isinstance(status, int):
        status = getattr(error, "status", None)
    if isinstance(status, int):
        return status

    match = _STATUS_PREFIX.match(str(error))
    return int(match.group(1)) if match else None


def classify_provider_error(message: str, error: Exception) -> ProviderError:
    """Wrap a failed provider call in the matching ProviderError kind.

    4xx answers other than 408 and 429 are permanent; anything else
    (5xx, timeouts, connection failures) is worth another attempt.

    Args:
        message: Error message for the wrapped exception
        error: Exception raised by the HTTP client

    Returns:
        ProviderRejectedError for permanent failures, ProviderError otherwise
    """
    status = error_status(error)
    if status is not None and 400 <= status < 500 and status not in RETRYABLE_CLIENT_STATUSES:
        return ProviderRejectedError(message)
    return ProviderError(message)


class BaseBackend(ABC):
    """Abstract interface that all provider adapters must implement.

    One adapter exists per provider family. Adapters are stateless with
    respect to models: the endpoint and credential come from the
    ModelProfile on every call, so a single instance serves every model
    of its family.

    Attributes:
        timeout: Timeout in seconds for every outbound call
    """

    def __init__(self, timeout: float = 30.0):
        """Initialize the adapter.

        Args:
            timeout: Timeout in seconds for provider calls
        """
        self.timeout = timeout

    @abstractmethod
    def generate(
        self,
        params: NormalizedParameters,
        profile: ModelProfile
    ) -> ProviderOutput:
        """Generate an image.

        Args:
            params: Normalized generation parameters
            profile: Profile of the model to call

        Returns:
            A URL, a base64 string or raw image bytes

        Raises:
            ProviderError: On network failure, timeout, non-2xx response or
                a response missing the expected image field
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the human-readable name of this adapter."""
        pass

    @property
    @abstractmethod
    def family(self) -> str:
        """Get the provider family this adapter serves (matches ModelProfile.provider)."""
        pass

    def __repr__(self) -> str:
        """String representation of the adapter."""
        return f"{self.__class__.__name__}(name='{self.name}', timeout={self.timeout})"

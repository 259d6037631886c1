"""Error kinds raised by the generation pipeline.

Only InvalidRequestError, QuotaExceededError and ModelMisconfiguredError
ever leave the pipeline. ProviderError (and its permanent ProviderRejectedError
kind) and PostProcessingError are raised
internally and absorbed into a degraded but successful result.
"""

from typing import Optional


class GenerationError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        code: Short machine-readable error code
        status_code: HTTP status the transport layer should answer with
    """

    code = "generation_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        """Render the error in the transport error shape."""
        return {"error": self.code, "message": self.message}


class InvalidRequestError(GenerationError, ValueError):
    """The request is malformed (missing prompt, non-numeric parameter...)."""

    code = "validation_error"
    status_code = 400


class QuotaExceededError(GenerationError):
    """The client exhausted its admission quota for the current window."""

    code = "quota_exceeded"
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ModelMisconfiguredError(GenerationError):
    """The model id is unknown or its credential is not set."""

    code = "model_misconfigured"
    status_code = 500


class ProviderError(GenerationError, RuntimeError):
    """A provider adapter failed (network, timeout, malformed response)."""

    code = "provider_failure"


class ProviderRejectedError(ProviderError):
    """A provider failure that repeating the call cannot fix.

    Raised for a model without endpoint, 4xx answers other than 408/429
    and bodies missing the expected image field. Never retried.
    """


class PostProcessingError(GenerationError):
    """Fetching, decoding or re-encoding the provider output failed."""

    code = "post_processing_failure"

"""End-to-end generation pipeline."""

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from src.core.image_generator import GenerationOrchestrator
from src.core.models import GenerationMetadata, GenerationRequest, GenerationResult
from src.core.parameters import ParameterNormalizer
from src.utils.image_utils import ImageNormalizer
from src.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

ANONYMOUS_CLIENT = "anonymous"


class GenerationPipeline:
    """Admission -> enhancement -> normalization -> dispatch -> post-processing.

    Only InvalidRequestError, QuotaExceededError and ModelMisconfiguredError
    propagate out of generate(); provider and post-processing failures end
    in a successful result with degraded content.

    Attributes:
        orchestrator: Generation orchestrator
        normalizer: Parameter normalizer
        image_normalizer: Post-generation image normalizer
        limiter: Optional admission limiter
    """

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        normalizer: ParameterNormalizer,
        image_normalizer: Optional[ImageNormalizer] = None,
        limiter: Optional[RateLimiter] = None
    ):
        self.orchestrator = orchestrator
        self.normalizer = normalizer
        self.image_normalizer = image_normalizer or ImageNormalizer()
        self.limiter = limiter

    def admit(self, client_id: Optional[str]) -> None:
        """Run the admission check for a client.

        Raises:
            QuotaExceededError: If the client is over quota
        """
        if self.limiter is not None:
            self.limiter.check(client_id or ANONYMOUS_CLIENT)

    def generate_from_payload(
        self,
        payload: Any,
        client_id: Optional[str] = None
    ) -> GenerationResult:
        """Admit, validate and run an untrusted transport payload.

        Args:
            payload: Decoded request body
            client_id: Client identity for admission limiting

        Returns:
            GenerationResult

        Raises:
            QuotaExceededError: If the client is over quota
            InvalidRequestError: If the payload is not a valid request
            ModelMisconfiguredError: If the model cannot be dispatched
        """
        self.admit(client_id)
        request = GenerationRequest.from_payload(payload)
        return self._run(request)

    def generate(
        self,
        request: GenerationRequest,
        client_id: Optional[str] = None
    ) -> GenerationResult:
        """Run the pipeline for a validated request.

        Args:
            request: Generation request
            client_id: Client identity for admission limiting

        Returns:
            GenerationResult

        Raises:
            QuotaExceededError: If the client is over quota
            InvalidRequestError: If a parameter is invalid
            ModelMisconfiguredError: If the model cannot be dispatched
        """
        self.admit(client_id)
        return self._run(request)

    def _run(self, request: GenerationRequest) -> GenerationResult:
        logger.info(
            f"Generating with {request.model} ({request.style}): {request.prompt[:50]}..."
        )

        # Malformed numbers are a validation error even for an unknown model
        self.normalizer.coerce_overrides(request)
        profile = self.orchestrator.resolve_model(request.model)
        params = self.normalizer.normalize(request, profile)

        outcome = self.orchestrator.dispatch(
            params,
            profile,
            style=request.style,
            original_prompt=request.prompt
        )
        image = self.image_normalizer.normalize(outcome.image, request.quality)

        result = GenerationResult(
            id=str(uuid.uuid4()),
            image=image,
            metadata=GenerationMetadata(
                original_prompt=request.prompt,
                enhanced_prompt=params.prompt,
                negative_prompt=params.negative_prompt,
                style=request.style,
                model=request.model,
                provider=outcome.provider,
                placeholder=outcome.placeholder,
                fallback_reason=outcome.fallback_reason,
                warnings=outcome.warnings,
                parameters=params.as_dict(),
                timestamp=datetime.now(),
            ),
        )

        logger.info(
            f"Generation {result.id} finished via {outcome.provider}"
            f"{' (placeholder)' if outcome.placeholder else ''}"
        )
        return result

"""Generation orchestrator with placeholder fallback."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.backends.placeholder import PlaceholderGenerator
from src.core.base_backend import BaseBackend
from src.core.errors import ModelMisconfiguredError, ProviderError, ProviderRejectedError
from src.core.models import ModelProfile, NormalizedParameters, ProviderOutput
from src.core.registry import ModelRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    """What the orchestrator produced for one request.

    Attributes:
        image: Provider output (URL, base64 string or bytes)
        provider: Name of the adapter that produced it, or "placeholder"
        placeholder: Whether the placeholder path was taken
        fallback_reason: Why the provider output was replaced, if it was
        warnings: Capability mismatches noticed at dispatch time
    """

    image: ProviderOutput
    provider: str
    placeholder: bool = False
    fallback_reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class GenerationOrchestrator:
    """Routes normalized parameters to the adapter of the model's provider family.

    Misconfiguration (unknown model, missing credential, no adapter for the
    family) fails fast with ModelMisconfiguredError. Transient adapter
    failures are retried; every adapter failure, permanent or not, ends in
    a placeholder image, so dispatch itself always succeeds.

    Attributes:
        registry: Model capability registry
        adapters: Adapters keyed by provider family
        placeholder: Placeholder generator used on provider failure
        max_attempts: Attempts per adapter call before falling back
        retry_backoff: Exponential backoff multiplier in seconds
    """

    def __init__(
        self,
        registry: ModelRegistry,
        adapters: Iterable[BaseBackend],
        placeholder: Optional[PlaceholderGenerator] = None,
        max_attempts: int = 1,
        retry_backoff: float = 1.0
    ):
        """Initialize the orchestrator.

        Args:
            registry: Model capability registry
            adapters: One adapter per provider family
            placeholder: Placeholder generator (a default one is built if omitted)
            max_attempts: Attempts per adapter call
            retry_backoff: Backoff multiplier between attempts, in seconds
        """
        self.registry = registry
        self.adapters: Dict[str, BaseBackend] = {a.family: a for a in adapters}
        self.placeholder = placeholder or PlaceholderGenerator()
        self.max_attempts = max(1, max_attempts)
        self.retry_backoff = retry_backoff

        logger.info(
            f"Initialized GenerationOrchestrator with adapters: {sorted(self.adapters)}, "
            f"max_attempts: {self.max_attempts}"
        )

    def resolve_model(self, model_id: str) -> ModelProfile:
        """Look up a model and check it can be dispatched.

        Args:
            model_id: Model identifier

        Returns:
            The model's profile

        Raises:
            ModelMisconfiguredError: If the model is unknown, has no
                credential, or no adapter serves its provider family
        """
        profile = self.registry.get(model_id)
        if profile is None:
            logger.error(f"Unknown model requested: {model_id}")
            raise ModelMisconfiguredError(f"Model '{model_id}' is not configured")

        if not profile.is_configured:
            logger.error(f"Model {model_id} has no credential configured")
            raise ModelMisconfiguredError(f"API key missing for model '{model_id}'")

        if profile.provider not in self.adapters:
            logger.error(f"No adapter for provider family '{profile.provider}' ({model_id})")
            raise ModelMisconfiguredError(
                f"No adapter available for provider '{profile.provider}'"
            )

        return profile

    def capability_warnings(
        self,
        params: NormalizedParameters,
        profile: ModelProfile,
        style: Optional[str] = None
    ) -> List[str]:
        """Report where the parameters exceed what the model supports.

        Args:
            params: Normalized parameters
            profile: Model profile
            style: Requested style, if any

        Returns:
            Human-readable warnings (empty when everything fits)
        """
        caps = profile.capabilities
        warnings = []

        if params.width is not None and params.width > caps.max_width:
            warnings.append(
                f"width {params.width} exceeds {profile.id} maximum of {caps.max_width}"
            )
        if params.height is not None and params.height > caps.max_height:
            warnings.append(
                f"height {params.height} exceeds {profile.id} maximum of {caps.max_height}"
            )
        if style and caps.supported_styles and style not in caps.supported_styles:
            warnings.append(f"style '{style}' is not listed for {profile.id}")

        return warnings

    def _generate_with_retry(
        self,
        adapter: BaseBackend,
        params: NormalizedParameters,
        profile: ModelProfile
    ) -> ProviderOutput:
        """Call the adapter, retrying transient ProviderErrors.

        ProviderRejectedError and non-provider exceptions propagate after
        the first attempt.

        Raises:
            ProviderError: If every attempt fails
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff, min=0, max=10),
            retry=(
                retry_if_exception_type(ProviderError)
                & retry_if_not_exception_type(ProviderRejectedError)
            ),
            reraise=True
        )
        return retryer(adapter.generate, params, profile)

    def dispatch(
        self,
        params: NormalizedParameters,
        profile: ModelProfile,
        style: Optional[str] = None,
        original_prompt: Optional[str] = None
    ) -> DispatchOutcome:
        """Generate an image for a resolved model, falling back to a placeholder.

        Args:
            params: Normalized parameters
            profile: Profile returned by resolve_model()
            style: Requested style (only used for capability warnings)
            original_prompt: Caller prompt shown on a placeholder

        Returns:
            DispatchOutcome carrying provider or placeholder output
        """
        warnings = self.capability_warnings(params, profile, style)
        for warning in warnings:
            logger.warning(f"Capability mismatch: {warning}")

        adapter = self.adapters[profile.provider]
        try:
            logger.info(f"Dispatching {profile.id} to {adapter.name}")
            image = self._generate_with_retry(adapter, params, profile)
            if not image:
                raise ProviderError(f"{adapter.name} returned an empty image")
            logger.info(f"Successfully generated image with {adapter.name}")
            return DispatchOutcome(image=image, provider=adapter.name, warnings=warnings)

        except Exception as e:
            logger.warning(
                f"Provider {adapter.name} failed for {profile.id}: {e}. "
                f"Falling back to placeholder"
            )
            image = self.placeholder.generate(params, original_prompt=original_prompt)
            return DispatchOutcome(
                image=image,
                provider=self.placeholder.name,
                placeholder=True,
                fallback_reason=str(e),
                warnings=warnings
            )

    def generate(
        self,
        params: NormalizedParameters,
        model_id: str,
        style: Optional[str] = None,
        original_prompt: Optional[str] = None
    ) -> DispatchOutcome:
        """Resolve model_id and dispatch in one step.

        Raises:
            ModelMisconfiguredError: If the model cannot be dispatched
        """
        profile = self.resolve_model(model_id)
        return self.dispatch(params, profile, style=style, original_prompt=original_prompt)

    def get_adapter_names(self) -> Dict[str, str]:
        """Get adapter names keyed by provider family."""
        return {family: adapter.name for family, adapter in self.adapters.items()}

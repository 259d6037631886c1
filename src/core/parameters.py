"""Resolution of a GenerationRequest into dispatch-ready parameters."""

import logging
import math
import random
from typing import Any, Callable, Dict, Optional

from src.core.errors import InvalidRequestError
from src.core.models import GenerationRequest, ModelProfile, NormalizedParameters
from src.utils.prompt_enhancer import NegativePromptSynthesizer, PromptEnhancer

logger = logging.getLogger(__name__)

MAX_SEED = 2**32 - 1
MAX_DIMENSION = 8192

_TYPED_KEYS = ("steps", "cfg_scale", "width", "height", "seed")


def _to_number(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidRequestError(f"{name} must be numeric, got {value!r}")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidRequestError(f"{name} must be numeric, got {value!r}") from None
    else:
        raise InvalidRequestError(f"{name} must be numeric, got {value!r}")

    if not math.isfinite(number):
        raise InvalidRequestError(f"{name} must be finite, got {value!r}")
    return number


def coerce_int(name: str, value: Any) -> int:
    """Coerce value to int, truncating fractional input.

    Raises:
        InvalidRequestError: If value is not numeric or not finite
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(_to_number(name, value))


def coerce_float(name: str, value: Any) -> float:
    """Coerce value to float.

    Raises:
        InvalidRequestError: If value is not numeric or not finite
    """
    return float(_to_number(name, value))


def _check_ranges(params: Dict[str, Any]) -> None:
    for key in ("width", "height"):
        value = params.get(key)
        if value is not None and not 0 < value <= MAX_DIMENSION:
            raise InvalidRequestError(
                f"{key} must be between 1 and {MAX_DIMENSION}, got {value}"
            )
    if params.get("steps") is not None and params["steps"] < 1:
        raise InvalidRequestError(f"steps must be positive, got {params['steps']}")


class ParameterNormalizer:
    """Merges caller overrides with model defaults.

    Width and height are not clamped to the model's capabilities here;
    capability mismatches are reported at dispatch time.
    """

    def __init__(
        self,
        enhancer: PromptEnhancer,
        synthesizer: Optional[NegativePromptSynthesizer] = None,
        seed_source: Optional[Callable[[], int]] = None
    ):
        """Initialize the normalizer.

        Args:
            enhancer: Prompt enhancer used for the final prompt
            synthesizer: Negative prompt synthesizer
            seed_source: Callable drawing a fresh seed (defaults to a random 32-bit draw)
        """
        self.enhancer = enhancer
        self.synthesizer = synthesizer or NegativePromptSynthesizer()
        self.seed_source = seed_source or (lambda: random.randint(0, MAX_SEED))

    def coerce_overrides(self, request: GenerationRequest) -> Dict[str, Any]:
        """Coerce the caller's numeric overrides.

        Needs no model profile, so a malformed request is rejected before
        the model is looked up.

        Returns:
            Coerced values keyed by parameter name (only those the caller set)

        Raises:
            InvalidRequestError: If a numeric parameter is invalid
        """
        overrides: Dict[str, Any] = {}
        for key in ("steps", "cfg_scale", "width", "height", "seed"):
            value = getattr(request, key)
            if value is None:
                continue
            coerce = coerce_float if key == "cfg_scale" else coerce_int
            overrides[key] = coerce(key, value)

        _check_ranges(overrides)
        return overrides

    def normalize(
        self,
        request: GenerationRequest,
        profile: ModelProfile
    ) -> NormalizedParameters:
        """Resolve a request against a model profile.

        Args:
            request: Caller-supplied request
            profile: Profile of the requested model

        Returns:
            NormalizedParameters ready for dispatch

        Raises:
            InvalidRequestError: If a numeric parameter is invalid
        """
        params = dict(profile.default_params)

        # Model defaults go through the same coercion as caller values
        for key in ("steps", "width", "height"):
            if params.get(key) is not None:
                params[key] = coerce_int(key, params[key])
        if params.get("cfg_scale") is not None:
            params["cfg_scale"] = coerce_float("cfg_scale", params["cfg_scale"])

        overrides = self.coerce_overrides(request)
        seed = overrides.pop("seed", None)
        params.update(overrides)
        _check_ranges(params)

        prompt = self.enhancer.enhance(request.prompt, request.style)
        if request.negative_prompt and request.negative_prompt.strip():
            negative_prompt = request.negative_prompt
        else:
            negative_prompt = self.synthesizer.synthesize(request.style)

        if seed is None:
            seed = self.seed_source()

        normalized = NormalizedParameters(
            prompt=prompt,
            negative_prompt=negative_prompt,
            seed=seed,
            steps=params.get("steps"),
            cfg_scale=params.get("cfg_scale"),
            width=params.get("width"),
            height=params.get("height"),
            extra={k: v for k, v in params.items() if k not in _TYPED_KEYS},
        )
        logger.debug(f"Normalized parameters for {profile.id}: {normalized.as_dict()}")
        return normalized

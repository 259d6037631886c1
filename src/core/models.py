"""Core data models for the generation pipeline."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, FrozenSet, Tuple, Union
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)

from src.core.errors import InvalidRequestError

# Provider output arrives as a URL, a base64 string or raw image bytes
ProviderOutput = Union[str, bytes]

NumericInput = Optional[Union[int, float, str]]


class SamplingSettings(BaseModel):
    """Default sampling settings attached to a style."""

    model_config = ConfigDict(frozen=True)

    cfg_scale: float
    steps: int


class StyleProfile(BaseModel):
    """A named aesthetic category.

    Attributes:
        id: Style identifier (e.g. "anime")
        name: Human-readable style name
        display_modifiers: Modifier phrases shown to users for this style
        negative_prompt: Default negative prompt for the style
        default_sampling: Suggested cfg scale and step count
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    display_modifiers: Tuple[str, ...]
    negative_prompt: str
    default_sampling: SamplingSettings


class ModelCapabilities(BaseModel):
    """What a model can do."""

    model_config = ConfigDict(frozen=True)

    max_width: int
    max_height: int
    supported_styles: FrozenSet[str] = frozenset()
    supports_batch: bool = False
    supports_inpaint: bool = False
    supports_outpaint: bool = False


class ModelProfile(BaseModel):
    """An external text-to-image model and how to reach it.

    A missing endpoint or credential is a valid state meaning "unconfigured";
    it only becomes an error when generation is attempted.

    Attributes:
        id: Model identifier used by callers
        name: Human-readable model name
        provider: Provider family used to pick the adapter
        endpoint: Provider endpoint URL, if any
        credential: Provider credential, if configured
        provider_model: Model id on the provider side (SDK-based families)
        capabilities: Capability flags and resolution bounds
        default_params: Default generation parameters
        price_per_image: Price of a single generated image
        currency: Currency of the price
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    provider: str
    endpoint: Optional[str] = None
    credential: Optional[SecretStr] = None
    provider_model: Optional[str] = None
    capabilities: ModelCapabilities
    default_params: Dict[str, Any] = Field(default_factory=dict)
    price_per_image: Decimal = Decimal("0")
    currency: str = "USD"

    @property
    def is_configured(self) -> bool:
        """Whether a non-empty credential is set."""
        return self.credential is not None and bool(self.credential.get_secret_value())

    def api_key(self) -> str:
        """Return the raw credential, or an empty string when unset."""
        if self.credential is None:
            return ""
        return self.credential.get_secret_value()

    def with_overrides(
        self,
        endpoint: Optional[str] = None,
        credential: Optional[str] = None
    ) -> "ModelProfile":
        """Return a copy with endpoint and/or credential replaced.

        Args:
            endpoint: New endpoint (None keeps the current one)
            credential: New credential (None keeps the current one)

        Returns:
            A new ModelProfile
        """
        update: Dict[str, Any] = {}
        if endpoint:
            update["endpoint"] = endpoint
        if credential:
            update["credential"] = SecretStr(credential)
        return self.model_copy(update=update)

    def public_info(self) -> Dict[str, Any]:
        """Describe the model without exposing its credential."""
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "configured": self.is_configured,
            "capabilities": {
                "max_width": self.capabilities.max_width,
                "max_height": self.capabilities.max_height,
                "styles": sorted(self.capabilities.supported_styles),
                "supports_batch": self.capabilities.supports_batch,
                "supports_inpaint": self.capabilities.supports_inpaint,
                "supports_outpaint": self.capabilities.supports_outpaint,
            },
            "default_params": dict(self.default_params),
            "pricing": {
                "per_image": str(self.price_per_image),
                "currency": self.currency,
            },
        }


class GenerationRequest(BaseModel):
    """Caller-supplied generation request.

    Numeric fields are accepted as numbers or numeric strings; coercion and
    validation happen in the parameter normalizer.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "prompt": "a castle at sunset",
                "style": "fantasy",
                "model": "stable-diffusion-xl",
                "quality": 75,
                "steps": 30,
                "cfg_scale": 7,
                "width": 1024,
                "height": 1024,
                "seed": 42
            }
        }
    )

    prompt: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Natural-language description of the image"
    )
    style: str = Field(default="realistic", description="Style identifier")
    model: str = Field(default="stable-diffusion-xl", description="Model identifier")
    quality: int = Field(
        default=75,
        ge=0,
        le=100,
        description="Compression quality of the returned image"
    )
    steps: NumericInput = None
    cfg_scale: NumericInput = Field(
        default=None,
        validation_alias=AliasChoices("cfg_scale", "cfgScale")
    )
    negative_prompt: Optional[str] = Field(
        default=None,
        max_length=1000,
        validation_alias=AliasChoices("negative_prompt", "negativePrompt")
    )
    width: NumericInput = None
    height: NumericInput = None
    seed: NumericInput = None

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("style", "model")
    @classmethod
    def _identifier_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("identifier must not be blank")
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "GenerationRequest":
        """Build a request from an untrusted transport payload.

        Args:
            payload: Decoded request body

        Returns:
            Validated GenerationRequest

        Raises:
            InvalidRequestError: If the payload is not a valid request
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        prompt = payload.get("prompt")
        if prompt is None or (isinstance(prompt, str) and not prompt.strip()):
            raise InvalidRequestError("Prompt is required")

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidRequestError(f"Invalid request: {problems}") from e


class NormalizedParameters(BaseModel):
    """A fully resolved request, ready for dispatch to a provider.

    Attributes:
        prompt: Final enhanced prompt
        negative_prompt: Final negative prompt
        seed: Resolved seed (caller value or freshly drawn)
        steps: Sampling steps, if known
        cfg_scale: Guidance scale, if known
        width: Output width, if known
        height: Output height, if known
        extra: Remaining model-specific defaults (sampler, size, n...)
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    negative_prompt: str
    seed: int
    steps: Optional[int] = None
    cfg_scale: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        """Flatten into a plain, serializable parameter mapping."""
        params = dict(self.extra)
        params.update(
            self.model_dump(exclude={"extra"}, exclude_none=True)
        )
        return params

    def resolved_size(self, default: int = 1024) -> Tuple[int, int]:
        """Return (width, height), falling back to a "WxH" size default.

        Args:
            default: Edge length used when nothing else is known

        Returns:
            Tuple of (width, height)
        """
        width, height = self.width, self.height
        if width is None or height is None:
            size = str(self.extra.get("size", ""))
            if "x" in size:
                w, _, h = size.partition("x")
                if w.isdigit() and h.isdigit():
                    width = width or int(w)
                    height = height or int(h)
        return width or default, height or default


class GenerationMetadata(BaseModel):
    """Metadata describing how a result was produced."""

    model_config = ConfigDict(frozen=True)

    original_prompt: str
    enhanced_prompt: str
    negative_prompt: str
    style: str
    model: str
    provider: str
    placeholder: bool = False
    fallback_reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)


class GenerationResult(BaseModel):
    """Outcome of one successful pipeline run.

    The image is the canonical encoded image (a JPEG data URI) or, when
    post-processing failed, the untouched provider output.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64")

    id: str
    image: ProviderOutput
    metadata: GenerationMetadata

    def to_response(self) -> Dict[str, Any]:
        """Render the transport success shape."""
        data = self.model_dump(mode="json")
        return {
            "success": True,
            "id": data["id"],
            "image": data["image"],
            "metadata": data["metadata"],
        }

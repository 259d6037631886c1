"""Static style, lexicon and model registries.

All tables are built once at import time and exposed read-only. Model
profiles ship without credentials; the application layer supplies them via
ModelRegistry.from_overrides().
"""

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Iterable

from src.core.models import (
    ModelCapabilities,
    ModelProfile,
    SamplingSettings,
    StyleProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "realistic"
DEFAULT_MODEL = "stable-diffusion-xl"

GENERIC_NEGATIVE_PROMPT = (
    "ugly, deformed, noisy, blurry, distorted, grainy, low quality, bad anatomy"
)


def _style(
    style_id: str,
    name: str,
    modifiers: str,
    negative_prompt: str,
    cfg_scale: float,
    steps: int
) -> StyleProfile:
    return StyleProfile(
        id=style_id,
        name=name,
        display_modifiers=tuple(m.strip() for m in modifiers.split(",")),
        negative_prompt=negative_prompt,
        default_sampling=SamplingSettings(cfg_scale=cfg_scale, steps=steps),
    )


_STYLES = [
    _style(
        "realistic", "Photorealistic",
        "photorealistic, high detail, professional photography, 8k resolution, sharp focus",
        "cartoon, anime, illustration, painting, drawing, art, sketch, 3d, deformed",
        7, 50,
    ),
    _style(
        "anime", "Anime/Manga",
        "anime style, manga, cel shaded, studio ghibli, japanese animation",
        "realistic, photo, 3d render, western cartoon, ugly, deformed",
        10, 40,
    ),
    _style(
        "oil-painting", "Oil Painting",
        "oil painting, canvas texture, brushstrokes, classical art, traditional media",
        "photo, digital, 3d, modern, contemporary, ugly",
        8, 60,
    ),
    _style(
        "watercolor", "Watercolor",
        "watercolor painting, soft edges, paper texture, artistic, traditional",
        "photo, digital, 3d, hard edges, sharp",
        9, 45,
    ),
    _style(
        "digital-art", "Digital Art",
        "digital painting, artstation, concept art, matte painting, trending",
        "photo, traditional media, canvas, paper",
        7.5, 40,
    ),
    _style(
        "3d-render", "3D Render",
        "3d render, octane render, unreal engine, volumetric lighting, ray tracing",
        "2d, flat, painting, drawing, sketch",
        8, 50,
    ),
    _style(
        "pixel-art", "Pixel Art",
        "pixel art, 16-bit, retro gaming, pixelated, low resolution",
        "smooth, high resolution, realistic, 3d",
        10, 30,
    ),
    _style(
        "concept-art", "Concept Art",
        "concept art, production art, professional illustration, detailed design",
        "photo, amateur, sketch, unfinished",
        7, 50,
    ),
    _style(
        "abstract", "Abstract",
        "abstract art, non-representational, modern art, contemporary",
        "realistic, photo, figurative, representational",
        12, 40,
    ),
    _style(
        "surreal", "Surrealism",
        "surreal, dreamlike, salvador dali style, impossible geometry",
        "realistic, mundane, ordinary, logical",
        11, 55,
    ),
]

STYLES: Mapping[str, StyleProfile] = MappingProxyType({s.id: s for s in _STYLES})

# Ranked augmenting phrases used by the prompt enhancer, per style
ENHANCEMENT_PHRASES: Mapping[str, tuple] = MappingProxyType({
    "realistic": ("photorealistic", "8k resolution", "highly detailed", "professional photography"),
    "anime": ("anime style", "manga", "cel shaded", "studio ghibli aesthetic"),
    "oil-painting": ("oil on canvas", "brushstrokes visible", "classical art", "museum quality"),
    "watercolor": ("watercolor painting", "soft edges", "paper texture", "artistic"),
    "digital-art": ("digital painting", "artstation trending", "concept art", "matte painting"),
    "3d-render": ("3d render", "octane render", "volumetric lighting", "ray tracing"),
    "pixel-art": ("pixel art", "16-bit style", "retro gaming", "pixelated"),
    "concept-art": ("concept art", "production art", "professional illustration", "detailed design"),
})

# Topical keyword sets and the clause each one adds, checked in this order
TOPICAL_CLAUSES = (
    (frozenset({"portrait", "face"}), "detailed facial features, perfect eyes"),
    (frozenset({"landscape", "scenery"}), "epic scenery, atmospheric perspective"),
    (frozenset({"fantasy", "magical"}), "ethereal lighting, mystical atmosphere"),
)

POSITIVE_MOOD_CLAUSE = "vibrant colors, uplifting mood"
NEGATIVE_MOOD_CLAUSE = "moody atmosphere, dramatic lighting"

PRESETS: Mapping[str, tuple] = MappingProxyType({
    "portraits": (
        "Beautiful portrait of a woman with flowing hair, golden hour lighting",
        "Wise old wizard with long beard, mystical atmosphere",
        "Cyberpunk character with neon implants, night city background",
    ),
    "landscapes": (
        "Majestic mountain range at sunset, dramatic clouds",
        "Enchanted forest with glowing mushrooms, fairy lights",
        "Futuristic city skyline, flying cars, neon lights",
    ),
    "fantasy": (
        "Dragon perched on castle tower, moonlit night",
        "Magical portal in ancient ruins, swirling energy",
        "Floating islands in the sky, waterfalls, rainbow bridges",
    ),
    "scifi": (
        "Space station orbiting alien planet, nebula background",
        "Robot uprising in dystopian city, dramatic lighting",
        "Time machine laboratory, electrical arcs, steampunk aesthetic",
    ),
})


DEFAULT_MODELS = (
    ModelProfile(
        id="stable-diffusion-xl",
        name="Stable Diffusion XL",
        provider="stability",
        endpoint="https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image",
        capabilities=ModelCapabilities(
            max_width=1024,
            max_height=1024,
            supported_styles=frozenset({
                "realistic", "anime", "oil-painting", "watercolor", "digital-art", "3d-render"
            }),
            supports_batch=True,
            supports_inpaint=True,
            supports_outpaint=True,
        ),
        default_params={
            "cfg_scale": 7,
            "steps": 30,
            "samples": 1,
            "width": 1024,
            "height": 1024,
            "sampler": "K_DPMPP_2M",
        },
        price_per_image=Decimal("0.02"),
    ),
    ModelProfile(
        id="stable-diffusion-2",
        name="Stable Diffusion 2.1",
        provider="stability",
        endpoint="https://api.stability.ai/v1/generation/stable-diffusion-512-v2-1/text-to-image",
        capabilities=ModelCapabilities(
            max_width=768,
            max_height=768,
            supported_styles=frozenset({"realistic", "artistic", "anime", "sketch"}),
            supports_batch=True,
        ),
        default_params={
            "cfg_scale": 7.5,
            "steps": 50,
            "samples": 1,
            "width": 512,
            "height": 512,
        },
        price_per_image=Decimal("0.01"),
    ),
    ModelProfile(
        id="dalle-3",
        name="DALL-E 3",
        provider="openai",
        endpoint="https://api.openai.com/v1/images/generations",
        capabilities=ModelCapabilities(
            max_width=1792,
            max_height=1792,
            supported_styles=frozenset({"natural", "vivid"}),
        ),
        default_params={
            "model": "dall-e-3",
            "size": "1024x1024",
            "quality": "standard",
            "n": 1,
        },
        price_per_image=Decimal("0.04"),
    ),
    ModelProfile(
        id="midjourney",
        name="Midjourney v6",
        provider="generic",
        capabilities=ModelCapabilities(
            max_width=2048,
            max_height=2048,
            supported_styles=frozenset({"default", "raw", "stylize"}),
            supports_batch=True,
            supports_inpaint=True,
            supports_outpaint=True,
        ),
        default_params={
            "version": "6",
            "quality": 1,
            "stylize": 100,
        },
        price_per_image=Decimal("0.03"),
    ),
    ModelProfile(
        id="custom",
        name="Custom Model",
        provider="generic",
        capabilities=ModelCapabilities(
            max_width=2048,
            max_height=2048,
            supported_styles=frozenset({"custom"}),
            supports_batch=True,
        ),
        price_per_image=Decimal("0.01"),
    ),
    ModelProfile(
        id="flux-schnell",
        name="FLUX.1 schnell (Replicate)",
        provider="replicate",
        provider_model="black-forest-labs/flux-schnell",
        capabilities=ModelCapabilities(
            max_width=1440,
            max_height=1440,
            supported_styles=frozenset(STYLES),
        ),
        default_params={
            "steps": 4,
            "width": 1024,
            "height": 1024,
        },
        price_per_image=Decimal("0.003"),
    ),
    ModelProfile(
        id="sdxl-huggingface",
        name="Stable Diffusion XL (HuggingFace)",
        provider="huggingface",
        provider_model="stabilityai/stable-diffusion-xl-base-1.0",
        capabilities=ModelCapabilities(
            max_width=1024,
            max_height=1024,
            supported_styles=frozenset(STYLES),
        ),
        default_params={
            "cfg_scale": 7.5,
            "steps": 30,
            "width": 1024,
            "height": 1024,
        },
        price_per_image=Decimal("0"),
    ),
)


def get_style(style_id: str) -> Optional[StyleProfile]:
    """Look up a style profile by id."""
    return STYLES.get(style_id)


def list_styles() -> List[StyleProfile]:
    """Return all style profiles in registry order."""
    return list(STYLES.values())


class ModelRegistry:
    """Read-only mapping from model id to ModelProfile.

    Example:
        registry = ModelRegistry.from_overrides({
            "dalle-3": {"credential": "sk-..."}
        })
        profile = registry.get("dalle-3")
    """

    def __init__(self, profiles: Iterable[ModelProfile]):
        """Initialize the registry.

        Args:
            profiles: Model profiles, keyed by their id
        """
        self._profiles: Mapping[str, ModelProfile] = MappingProxyType(
            {profile.id: profile for profile in profiles}
        )

    @classmethod
    def from_overrides(
        cls,
        overrides: Optional[Dict[str, Dict[str, Optional[str]]]] = None,
        profiles: Iterable[ModelProfile] = DEFAULT_MODELS
    ) -> "ModelRegistry":
        """Build a registry from base profiles plus endpoint/credential overrides.

        Args:
            overrides: Mapping of model id to {"endpoint": ..., "credential": ...}
            profiles: Base profiles (defaults to the built-in table)

        Returns:
            New ModelRegistry
        """
        overrides = overrides or {}
        resolved = []
        for profile in profiles:
            override = overrides.get(profile.id, {})
            resolved.append(profile.with_overrides(
                endpoint=override.get("endpoint"),
                credential=override.get("credential"),
            ))

        registry = cls(resolved)
        logger.info(
            f"Model registry loaded: {len(resolved)} models, "
            f"configured: {registry.configured_ids()}"
        )
        return registry

    def get(self, model_id: str) -> Optional[ModelProfile]:
        """Return the profile for model_id, or None."""
        return self._profiles.get(model_id)

    def ids(self) -> List[str]:
        """Return all model ids."""
        return list(self._profiles)

    def configured_ids(self) -> List[str]:
        """Return ids of models that have a credential set."""
        return [mid for mid, p in self._profiles.items() if p.is_configured]

    def profiles(self) -> List[ModelProfile]:
        """Return all profiles."""
        return list(self._profiles.values())

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __repr__(self) -> str:
        return f"ModelRegistry(models={self.ids()})"

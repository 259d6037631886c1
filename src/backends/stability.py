"""Stability AI REST backend (inline base64 artifacts)."""

import logging
import requests

from src.core.base_backend import BaseBackend, classify_provider_error
from src.core.errors import ProviderRejectedError
from src.core.models import ModelProfile, NormalizedParameters

logger = logging.getLogger(__name__)


class StabilityBackend(BaseBackend):
    """Adapter for Stability AI's v1 text-to-image endpoints.

    The service answers with a list of artifacts, each carrying the image as
    a base64 string; the first artifact is returned as-is.
    """

    def generate(self, params: NormalizedParameters, profile: ModelProfile) -> str:
        """Generate an image using the Stability REST API.

        Args:
            params: Normalized generation parameters
            profile: Stability model profile

        Returns:
            Base64-encoded image data

        Raises:
            ProviderError: If the call fails or returns no artifact
        """
        if not profile.endpoint:
            raise ProviderRejectedError(f"No endpoint configured for {profile.id}")

        payload = {
            "text_prompts": [
                {"text": params.prompt, "weight": 1},
                {"text": params.negative_prompt, "weight": -1},
            ],
            "cfg_scale": params.cfg_scale,
            "steps": params.steps,
            "samples": params.extra.get("samples", 1),
            "width": params.width,
            "height": params.height,
            "seed": params.seed,
        }
        if params.extra.get("sampler"):
            payload["sampler"] = params.extra["sampler"]

        logger.info(f"Calling Stability API for {profile.id} with prompt: {params.prompt[:50]}...")

        try:
            with requests.Session() as session:
                response = session.post(
                    profile.endpoint,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {profile.api_key()}",
                        "Accept": "application/json",
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
                body = response.json()
        except ValueError as e:
            raise ProviderRejectedError(f"Stability API returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise classify_provider_error(f"Stability API request failed: {e}", e) from e

        artifacts = body.get("artifacts") if isinstance(body, dict) else None
        if not artifacts or not artifacts[0].get("base64"):
            raise ProviderRejectedError("No image data received from Stability API")

        logger.info(f"Stability API returned {len(artifacts)} artifact(s)")
        return artifacts[0]["base64"]

    @property
    def name(self) -> str:
        """Get the adapter name."""
        return "Stability"

    @property
    def family(self) -> str:
        return "stability"

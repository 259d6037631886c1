"""OpenAI Images backend (DALL-E, answers with a fetchable URL)."""

import logging
import requests

from src.core.base_backend import BaseBackend, classify_provider_error
from src.core.errors import ProviderRejectedError
from src.core.models import ModelProfile, NormalizedParameters

logger = logging.getLogger(__name__)


class OpenAIImagesBackend(BaseBackend):
    """Adapter for the OpenAI image generations endpoint.

    DALL-E does not take a negative prompt, a seed or sampling settings;
    only the prompt, size and quality are forwarded.
    """

    def generate(self, params: NormalizedParameters, profile: ModelProfile) -> str:
        """Generate an image using the OpenAI Images API.

        Args:
            params: Normalized generation parameters
            profile: DALL-E model profile

        Returns:
            URL of the generated image (or base64 data when the API inlines it)

        Raises:
            ProviderError: If the call fails or the response has no image
        """
        if not profile.endpoint:
            raise ProviderRejectedError(f"No endpoint configured for {profile.id}")

        if params.width and params.height:
            size = f"{params.width}x{params.height}"
        else:
            size = params.extra.get("size", "1024x1024")

        payload = {
            "model": params.extra.get("model", "dall-e-3"),
            "prompt": params.prompt,
            "size": size,
            "quality": params.extra.get("quality", "standard"),
            "n": 1,
        }

        logger.info(f"Calling OpenAI Images API ({payload['model']}, {size})")

        try:
            with requests.Session() as session:
                response = session.post(
                    profile.endpoint,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {profile.api_key()}",
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
                body = response.json()
        except ValueError as e:
            raise ProviderRejectedError(f"OpenAI Images returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise classify_provider_error(f"OpenAI Images request failed: {e}", e) from e

        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            raise ProviderRejectedError("No image data received from OpenAI Images")

        first = data[0]
        if first.get("url"):
            return first["url"]
        if first.get("b64_json"):
            return first["b64_json"]
        raise ProviderRejectedError("OpenAI Images response has neither url nor b64_json")

    @property
    def name(self) -> str:
        """Get the adapter name."""
        return "OpenAI Images"

    @property
    def family(self) -> str:
        return "openai"

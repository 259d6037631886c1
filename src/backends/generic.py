"""Backend for self-described JSON endpoints (Midjourney bridges, custom models)."""

import logging
import requests

from src.core.base_backend import BaseBackend, classify_provider_error
from src.core.errors import ProviderRejectedError
from src.core.models import ModelProfile, NormalizedParameters, ProviderOutput

logger = logging.getLogger(__name__)

URL_FIELDS = ("url", "image_url")
BASE64_FIELDS = ("image", "base64", "b64_json")


class GenericEndpointBackend(BaseBackend):
    """Posts the normalized parameters as JSON to the model's endpoint.

    The endpoint must answer with a JSON object carrying either a URL
    ("url" / "image_url") or base64 image data ("image" / "base64" /
    "b64_json"). A model without an endpoint fails with ProviderRejectedError.
    """

    def generate(self, params: NormalizedParameters, profile: ModelProfile) -> ProviderOutput:
        if not profile.endpoint:
            raise ProviderRejectedError(f"No endpoint configured for {profile.id}")

        logger.info(f"Calling {profile.id} endpoint with prompt: {params.prompt[:50]}...")

        try:
            with requests.Session() as session:
                response = session.post(
                    profile.endpoint,
                    json=params.as_dict(),
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {profile.api_key()}",
                    },
                    timeout=self.timeout,
                )
                response.raise_for_status()
                body = response.json()
        except ValueError as e:
            raise ProviderRejectedError(f"{profile.id} returned invalid JSON: {e}") from e
        except requests.exceptions.RequestException as e:
            raise classify_provider_error(f"{profile.id} request failed: {e}", e) from e

        if not isinstance(body, dict):
            raise ProviderRejectedError(f"{profile.id} returned an unexpected body")

        for field in URL_FIELDS + BASE64_FIELDS:
            value = body.get(field)
            if isinstance(value, str) and value:
                return value

        raise ProviderRejectedError(f"No image data received from {profile.id}")

    @property
    def name(self) -> str:
        """Get the adapter name."""
        return "Generic Endpoint"

    @property
    def family(self) -> str:
        return "generic"

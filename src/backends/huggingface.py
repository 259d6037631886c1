"""HuggingFace Inference API backend (answers with raw image bytes)."""

import io
import logging
from huggingface_hub import InferenceClient
from huggingface_hub.utils import HfHubHTTPError

from src.core.base_backend import BaseBackend, classify_provider_error
from src.core.errors import ProviderError
from src.core.models import ModelProfile, NormalizedParameters

logger = logging.getLogger(__name__)


class HuggingFaceBackend(BaseBackend):
    """Backend implementation using HuggingFace Inference API.

    The client hands back a PIL image, which is serialized to PNG bytes so
    the image normalizer receives a raw byte buffer.
    """

    DEFAULT_MODEL = "stabilityai/stable-diffusion-xl-base-1.0"

    def _client(self, profile: ModelProfile) -> InferenceClient:
        return InferenceClient(token=profile.api_key(), timeout=self.timeout)

    def generate(self, params: NormalizedParameters, profile: ModelProfile) -> bytes:
        """Generate an image using HuggingFace Inference API.

        Args:
            params: Normalized generation parameters
            profile: HuggingFace model profile

        Returns:
            PNG image bytes

        Raises:
            ProviderError: If the inference call fails
        """
        model = profile.provider_model or self.DEFAULT_MODEL
        logger.info(f"Calling HuggingFace {model} with prompt: {params.prompt[:50]}...")

        try:
            image = self._client(profile).text_to_image(
                prompt=params.prompt,
                negative_prompt=params.negative_prompt,
                model=model,
                guidance_scale=params.cfg_scale,
                num_inference_steps=params.steps,
                width=params.width,
                height=params.height,
            )
        except HfHubHTTPError as e:
            raise classify_provider_error(f"HuggingFace API error: {e}", e) from e
        except Exception as e:
            raise ProviderError(f"HuggingFace call failed: {e}") from e

        # Convert PIL Image to bytes
        img_byte_arr = io.BytesIO()
        image.save(img_byte_arr, format='PNG')
        image_data = img_byte_arr.getvalue()

        logger.info(f"HuggingFace returned image ({len(image_data)} bytes)")
        return image_data

    @property
    def name(self) -> str:
        """Get the backend name.

        Returns:
            The string "HuggingFace"
        """
        return "HuggingFace"

    @property
    def family(self) -> str:
        return "huggingface"

"""Replicate API backend (answers with a fetchable URL)."""

import logging
import replicate
from replicate.exceptions import ReplicateError

from src.core.base_backend import BaseBackend, classify_provider_error
from src.core.errors import ProviderError, ProviderRejectedError
from src.core.models import ModelProfile, NormalizedParameters

logger = logging.getLogger(__name__)


class ReplicateBackend(BaseBackend):
    """Backend implementation using Replicate API.

    Runs the profile's provider model (FLUX.1-schnell by default) and returns
    the URL of the first output; the image normalizer downloads it.
    """

    # FLUX.1-schnell is fast and high-quality
    DEFAULT_MODEL = "black-forest-labs/flux-schnell"

    def _client(self, profile: ModelProfile) -> replicate.Client:
        return replicate.Client(api_token=profile.api_key(), timeout=self.timeout)

    def generate(self, params: NormalizedParameters, profile: ModelProfile) -> str:
        """Generate an image using Replicate API.

        Args:
            params: Normalized generation parameters
            profile: Replicate model profile

        Returns:
            URL of the generated image

        Raises:
            ProviderError: If the prediction fails or yields no output
        """
        model = profile.provider_model or self.DEFAULT_MODEL

        input_params = {
            "prompt": params.prompt,
            "seed": params.seed,
        }

        # FLUX models: max 4 steps; SDXL/SD models: typically 20-50 steps
        if params.steps is not None:
            if "flux" in model.lower():
                input_params["num_inference_steps"] = min(params.steps, 4)
            else:
                input_params["num_inference_steps"] = params.steps

        if params.width and params.height:
            input_params["width"] = params.width
            input_params["height"] = params.height

        if "flux" not in model.lower():
            input_params["negative_prompt"] = params.negative_prompt
            if params.cfg_scale is not None:
                input_params["guidance_scale"] = params.cfg_scale

        logger.debug(f"Calling Replicate {model} with params: {list(input_params.keys())}")

        try:
            output = self._client(profile).run(model, input=input_params)
        except ReplicateError as e:
            raise classify_provider_error(f"Replicate API error: {e}", e) from e
        except Exception as e:
            raise ProviderError(f"Replicate call failed: {e}") from e

        # Replicate returns either a URL or list of URLs
        if isinstance(output, (list, tuple)):
            if not output:
                raise ProviderRejectedError("Replicate returned an empty output list")
            output = output[0]
        if not output:
            raise ProviderRejectedError("Replicate returned no output")

        image_url = str(output)
        logger.info(f"Replicate produced {image_url}")
        return image_url

    @property
    def name(self) -> str:
        """Get the backend name.

        Returns:
            The string "Replicate"
        """
        return "Replicate"

    @property
    def family(self) -> str:
        return "replicate"

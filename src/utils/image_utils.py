"""Image utility functions: provider output normalization."""

import base64
import binascii
import io
import logging
import requests
from PIL import Image

from src.core.errors import PostProcessingError
from src.core.models import ProviderOutput

logger = logging.getLogger(__name__)


class ImageFormat:
    """Canonical output format."""
    JPEG = "JPEG"
    MIME_TYPE = "image/jpeg"


def is_url(value: ProviderOutput) -> bool:
    """Whether a provider output is a fetchable URL."""
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def decode_base64_image(data: str) -> bytes:
    """Decode a base64 payload, accepting an optional data URI prefix.

    Raises:
        PostProcessingError: If the payload is not valid base64
    """
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise PostProcessingError(f"Invalid base64 image data: {e}") from e


def to_data_uri(image_bytes: bytes, mime_type: str = ImageFormat.MIME_TYPE) -> str:
    """Wrap image bytes into a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"


class ImageNormalizer:
    """Re-encodes provider output into the canonical JPEG data URI.

    Post-processing never blocks a response: on any failure the original
    provider output is returned untouched.

    Example:
        normalizer = ImageNormalizer(timeout=30)
        encoded = normalizer.normalize("https://example.com/image.png", quality=85)
    """

    def __init__(self, timeout: float = 30.0):
        """Initialize the normalizer.

        Args:
            timeout: Timeout in seconds for downloading URL outputs
        """
        self.timeout = timeout

    def fetch(self, url: str) -> bytes:
        """Download image bytes.

        Raises:
            PostProcessingError: If the download fails
        """
        try:
            with requests.Session() as session:
                response = session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.content
        except requests.exceptions.RequestException as e:
            raise PostProcessingError(f"Failed to download image: {e}") from e

    def to_bytes(self, output: ProviderOutput) -> bytes:
        """Turn any provider output shape into raw image bytes.

        Raises:
            PostProcessingError: If fetching or decoding fails
        """
        if isinstance(output, (bytes, bytearray)):
            return bytes(output)
        if is_url(output):
            return self.fetch(output)
        if isinstance(output, str):
            return decode_base64_image(output)
        raise PostProcessingError(f"Unsupported image representation: {type(output).__name__}")

    def encode(self, image_bytes: bytes, quality: int) -> bytes:
        """Re-encode image bytes as JPEG at the given quality.

        Raises:
            PostProcessingError: If the bytes are not a readable image
        """
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                # JPEG doesn't support transparency
                if image.mode in ('RGBA', 'LA', 'P'):
                    image = image.convert('RGBA')
                    rgb_image = Image.new('RGB', image.size, (255, 255, 255))
                    rgb_image.paste(image, mask=image.split()[-1])
                    image = rgb_image
                elif image.mode != 'RGB':
                    image = image.convert('RGB')

                output = io.BytesIO()
                image.save(output, format=ImageFormat.JPEG, quality=int(quality))
                return output.getvalue()
        except (OSError, ValueError) as e:
            raise PostProcessingError(f"Could not re-encode image: {e}") from e

    def normalize(self, output: ProviderOutput, quality: int) -> ProviderOutput:
        """Normalize provider output into a JPEG data URI.

        Args:
            output: URL, base64 string or raw bytes
            quality: JPEG quality (0-100)

        Returns:
            JPEG data URI, or the untouched output if processing failed
        """
        try:
            image_bytes = self.to_bytes(output)
            encoded = self.encode(image_bytes, quality)
        except Exception as e:
            logger.warning(f"Image processing error, returning original output: {e}")
            return output

        logger.debug(f"Normalized image to {len(encoded)} JPEG bytes at quality {quality}")
        return to_data_uri(encoded)


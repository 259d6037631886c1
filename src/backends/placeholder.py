"""Placeholder images used when no provider call succeeds."""

import io
import random
import logging
from typing import Optional, Sequence, Tuple
from PIL import Image, ImageChops, ImageDraw, ImageFont

from src.core.models import NormalizedParameters

logger = logging.getLogger(__name__)

GRADIENT_PALETTE: Tuple[Tuple[str, str], ...] = (
    ("#667eea", "#764ba2"),
    ("#f093fb", "#f5576c"),
    ("#4facfe", "#00f2fe"),
    ("#43e97b", "#38f9d7"),
    ("#fa709a", "#fee140"),
    ("#30cfd0", "#330867"),
    ("#a8edea", "#fed6e3"),
    ("#ff9a9e", "#fecfef"),
)

PROMPT_EXCERPT_LENGTH = 30


class PlaceholderGenerator:
    """Synthesizes a two-color diagonal gradient with a prompt overlay.

    Performs no I/O, so it cannot fail for valid parameters.

    Example:
        placeholder = PlaceholderGenerator()
        png_bytes = placeholder.generate(params, original_prompt="a castle")
    """

    name = "placeholder"

    def __init__(
        self,
        palette: Sequence[Tuple[str, str]] = GRADIENT_PALETTE,
        rng: Optional[random.Random] = None
    ):
        """Initialize the placeholder generator.

        Args:
            palette: Gradient color pairs to choose from
            rng: Random source used to pick a pair
        """
        self.palette = tuple(palette)
        self.rng = rng or random.Random()

    def generate(
        self,
        params: NormalizedParameters,
        original_prompt: Optional[str] = None
    ) -> bytes:
        """Render a placeholder image.

        Args:
            params: Normalized parameters (width/height decide the size)
            original_prompt: Prompt to excerpt in the overlay (defaults to params.prompt)

        Returns:
            PNG image bytes sized to the requested width and height
        """
        width, height = params.resolved_size()
        start, end = self.rng.choice(self.palette)

        image = self._gradient(width, height, start, end)

        prompt = original_prompt if original_prompt is not None else params.prompt
        text = f"AI Generated: {prompt[:PROMPT_EXCERPT_LENGTH]}..."
        try:
            self._draw_centered_text(image, text)
        except Exception as e:
            logger.warning(f"Could not add text to placeholder: {e}")

        img_bytes = io.BytesIO()
        image.save(img_bytes, format='PNG')
        image_data = img_bytes.getvalue()

        logger.info(f"Generated {width}x{height} placeholder ({start} -> {end})")
        return image_data

    @staticmethod
    def _gradient(width: int, height: int, start: str, end: str) -> Image.Image:
        # Top-left is the start color, bottom-right the end color
        vertical = Image.linear_gradient("L").resize((width, height))
        horizontal = Image.linear_gradient("L").transpose(
            Image.Transpose.ROTATE_90
        ).resize((width, height))
        mask = ImageChops.add(vertical, horizontal, scale=2.0)

        return Image.composite(
            Image.new("RGB", (width, height), end),
            Image.new("RGB", (width, height), start),
            mask,
        )

    @staticmethod
    def _draw_centered_text(image: Image.Image, text: str) -> None:
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default()
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = (image.width - (right - left)) // 2
        y = (image.height - (bottom - top)) // 2
        draw.text((x, y), text, fill=(255, 255, 255), font=font)

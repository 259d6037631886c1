"""Shared test fixtures and configuration."""

import base64
import io
import os
import random
import pytest
from unittest.mock import Mock
from PIL import Image

from src.backends.generic import GenericEndpointBackend
from src.backends.placeholder import PlaceholderGenerator
from src.core.base_backend import BaseBackend
from src.core.image_generator import GenerationOrchestrator
from src.core.models import GenerationRequest, NormalizedParameters
from src.core.parameters import ParameterNormalizer
from src.core.pipeline import GenerationPipeline
from src.core.registry import ModelRegistry
from src.utils.image_utils import ImageNormalizer
from src.utils.prompt_enhancer import PromptEnhancer
from src.utils.rate_limiter import RateLimiter
from src.utils.sentiment import SentimentAnalyzer


# Small lexicon so tests don't depend on the full AFINN word list
TEST_LEXICON = {
    "beautiful": 3,
    "happy": 3,
    "good": 3,
    "sad": -2,
    "gloomy": -2,
    "terrible": -3,
}


@pytest.fixture
def sample_prompt():
    """Return a sample prompt for testing."""
    return "a castle at sunset"


@pytest.fixture
def sample_generation_request(sample_prompt):
    """Return a sample GenerationRequest for testing."""
    return GenerationRequest(
        prompt=sample_prompt,
        style="oil-painting",
        model="stable-diffusion-xl",
        seed=42
    )


@pytest.fixture
def sample_fake_image():
    """Return a fake PIL Image for testing."""
    return Image.new('RGB', (64, 64), color='red')


@pytest.fixture
def sample_image_bytes(sample_fake_image):
    """Return sample image as PNG bytes."""
    img_byte_arr = io.BytesIO()
    sample_fake_image.save(img_byte_arr, format='PNG')
    return img_byte_arr.getvalue()


@pytest.fixture
def sample_base64_image(sample_image_bytes):
    """Return sample image as a base64 string."""
    return base64.b64encode(sample_image_bytes).decode('ascii')


@pytest.fixture
def sample_params():
    """Return NormalizedParameters for adapter tests."""
    return NormalizedParameters(
        prompt="a castle at sunset, oil on canvas, brushstrokes visible",
        negative_prompt="photo, digital, 3d, modern, contemporary, ugly",
        seed=42,
        steps=30,
        cfg_scale=7.0,
        width=1024,
        height=1024,
        extra={"samples": 1, "sampler": "K_DPMPP_2M"}
    )


@pytest.fixture
def test_lexicon():
    """Return the small sentiment lexicon used across tests."""
    return dict(TEST_LEXICON)


@pytest.fixture
def sentiment_analyzer(test_lexicon):
    """Return a SentimentAnalyzer backed by the test lexicon."""
    return SentimentAnalyzer(lexicon=test_lexicon)


@pytest.fixture
def test_enhancer(sentiment_analyzer):
    """Return a PromptEnhancer backed by the test lexicon."""
    return PromptEnhancer(analyzer=sentiment_analyzer)


@pytest.fixture
def configured_registry():
    """Return a registry with credentials for every model except "custom"."""
    return ModelRegistry.from_overrides({
        "stable-diffusion-xl": {"credential": "sk-stability-test"},
        "stable-diffusion-2": {"credential": "sk-stability-test"},
        "dalle-3": {"credential": "sk-openai-test"},
        "midjourney": {"credential": "mj-test-key"},
        "flux-schnell": {"credential": "r8_test_token"},
        "sdxl-huggingface": {"credential": "hf_test_token"},
    })


def _make_adapter(family, name=None, output=None, error=None):
    adapter = Mock(spec=BaseBackend)
    adapter.family = family
    adapter.name = name or family.title()
    if error is not None:
        adapter.generate.side_effect = error
    else:
        adapter.generate.return_value = output
    return adapter


@pytest.fixture
def make_adapter():
    """Return a factory for mocked provider adapters."""
    return _make_adapter


@pytest.fixture
def stability_adapter(sample_base64_image):
    """Return a mocked Stability adapter answering with a base64 PNG."""
    return _make_adapter("stability", "Stability", output=sample_base64_image)


@pytest.fixture
def orchestrator(configured_registry, stability_adapter):
    """Return an orchestrator with a mocked Stability adapter and the real generic one."""
    return GenerationOrchestrator(
        configured_registry,
        adapters=[stability_adapter, GenericEndpointBackend(timeout=1)],
        placeholder=PlaceholderGenerator(rng=random.Random(0)),
    )


@pytest.fixture
def pipeline(orchestrator, test_enhancer):
    """Return a fully wired pipeline with a fixed seed source."""
    return GenerationPipeline(
        orchestrator=orchestrator,
        normalizer=ParameterNormalizer(test_enhancer, seed_source=lambda: 1234),
        image_normalizer=ImageNormalizer(timeout=1),
        limiter=RateLimiter(max_requests=10, window_seconds=60),
    )


# Skip integration tests unless explicitly requested
def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests unless RUN_INTEGRATION_TESTS is set."""
    skip_integration = pytest.mark.skip(reason="Integration tests disabled (set RUN_INTEGRATION_TESTS=true to enable)")

    for item in items:
        if "integration" in item.keywords:
            if not os.getenv("RUN_INTEGRATION_TESTS", "").lower() == "true":
                item.add_marker(skip_integration)

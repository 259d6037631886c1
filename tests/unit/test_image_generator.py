"""Unit tests for the generation orchestrator."""

import io
import pytest
from unittest.mock import patch
from PIL import Image

from src.backends.generic import GenericEndpointBackend
from src.core.errors import ModelMisconfiguredError, ProviderError, ProviderRejectedError
from src.core.image_generator import DispatchOutcome, GenerationOrchestrator
from src.core.models import NormalizedParameters
from src.core.registry import ModelRegistry


class TestResolveModel:
    """Tests for GenerationOrchestrator.resolve_model()."""

    def test_known_configured_model(self, orchestrator):
        """Test resolving a dispatchable model."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")

        assert profile.id == "stable-diffusion-xl"

    def test_unknown_model(self, orchestrator, stability_adapter):
        """Test that an unknown model fails before any adapter call."""
        with pytest.raises(ModelMisconfiguredError, match="imagen"):
            orchestrator.resolve_model("imagen")

        stability_adapter.generate.assert_not_called()

    def test_missing_credential(self, stability_adapter):
        """Test that a model without credential is misconfigured."""
        orchestrator = GenerationOrchestrator(
            ModelRegistry.from_overrides(), adapters=[stability_adapter]
        )

        with pytest.raises(ModelMisconfiguredError, match="API key missing"):
            orchestrator.resolve_model("stable-diffusion-xl")

    def test_no_adapter_for_family(self, orchestrator):
        """Test that a family without adapter is misconfigured."""
        with pytest.raises(ModelMisconfiguredError, match="No adapter"):
            orchestrator.resolve_model("dalle-3")


class TestDispatch:
    """Tests for GenerationOrchestrator.dispatch()."""

    def test_success(self, orchestrator, stability_adapter, sample_params, sample_base64_image):
        """Test a successful provider call."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")
        outcome = orchestrator.dispatch(sample_params, profile, style="realistic")

        assert isinstance(outcome, DispatchOutcome)
        assert outcome.image == sample_base64_image
        assert outcome.provider == "Stability"
        assert outcome.placeholder is False
        assert outcome.fallback_reason is None
        stability_adapter.generate.assert_called_once_with(sample_params, profile)

    def test_provider_failure_falls_back(
        self, configured_registry, make_adapter, sample_params
    ):
        """Test that a failing adapter yields a placeholder."""
        adapter = make_adapter("stability", error=ProviderError("503 Service Unavailable"))
        orchestrator = GenerationOrchestrator(configured_registry, adapters=[adapter])
        profile = orchestrator.resolve_model("stable-diffusion-xl")

        outcome = orchestrator.dispatch(sample_params, profile, original_prompt="a castle")

        assert outcome.placeholder is True
        assert outcome.provider == "placeholder"
        assert "503" in outcome.fallback_reason
        image = Image.open(io.BytesIO(outcome.image))
        assert image.size == (1024, 1024)

    def test_timeout_falls_back(self, configured_registry, make_adapter, sample_params):
        """Test that a timeout yields a placeholder."""
        adapter = make_adapter("stability", error=ProviderError("Stability API request failed: timed out"))
        orchestrator = GenerationOrchestrator(configured_registry, adapters=[adapter])

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.placeholder is True
        assert "timed out" in outcome.fallback_reason

    def test_unexpected_exception_falls_back(self, configured_registry, make_adapter, sample_params):
        """Test that any adapter exception yields a placeholder without retry."""
        adapter = make_adapter("stability", error=KeyError("artifacts"))
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[adapter], max_attempts=3, retry_backoff=0
        )

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.placeholder is True
        assert adapter.generate.call_count == 1

    def test_empty_output_falls_back(self, configured_registry, make_adapter, sample_params):
        """Test that an empty provider output yields a placeholder."""
        adapter = make_adapter("stability", output="")
        orchestrator = GenerationOrchestrator(configured_registry, adapters=[adapter])

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.placeholder is True

    def test_retries_provider_errors(self, configured_registry, make_adapter, sample_params):
        """Test that transient failures are retried before falling back."""
        adapter = make_adapter("stability", error=ProviderError("502 Bad Gateway"))
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[adapter], max_attempts=3, retry_backoff=0
        )

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.placeholder is True
        assert adapter.generate.call_count == 3

    def test_retry_then_success(self, configured_registry, make_adapter, sample_params):
        """Test recovery on a later attempt."""
        adapter = make_adapter("stability", error=[ProviderError("502"), "AAAA"])
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[adapter], max_attempts=3, retry_backoff=0
        )

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.image == "AAAA"
        assert outcome.placeholder is False
        assert adapter.generate.call_count == 2

    def test_rejected_errors_not_retried(self, configured_registry, make_adapter, sample_params):
        """Test that permanent failures fall back after a single attempt."""
        adapter = make_adapter("stability", error=ProviderRejectedError("401 Unauthorized"))
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[adapter], max_attempts=3, retry_backoff=0
        )

        outcome = orchestrator.generate(sample_params, "stable-diffusion-xl")

        assert outcome.placeholder is True
        assert "401" in outcome.fallback_reason
        assert adapter.generate.call_count == 1

    def test_missing_endpoint_not_retried(self, configured_registry, sample_params):
        """Test that a model without endpoint is called once even with retries enabled."""
        backend = GenericEndpointBackend(timeout=1)
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[backend], max_attempts=3, retry_backoff=1.0
        )

        with patch.object(backend, "generate", wraps=backend.generate) as mock_generate:
            outcome = orchestrator.generate(sample_params, "midjourney")

        assert outcome.placeholder is True
        assert mock_generate.call_count == 1

    def test_configured_model_without_endpoint(self, configured_registry, sample_params):
        """Test that a generic model without endpoint falls back to a placeholder."""
        orchestrator = GenerationOrchestrator(
            configured_registry, adapters=[GenericEndpointBackend(timeout=1)]
        )

        outcome = orchestrator.generate(sample_params, "midjourney")

        assert outcome.placeholder is True
        assert "No endpoint" in outcome.fallback_reason

    def test_get_adapter_names(self, orchestrator):
        """Test adapter names keyed by family."""
        assert orchestrator.get_adapter_names() == {
            "stability": "Stability",
            "generic": "Generic Endpoint",
        }


class TestCapabilityWarnings:
    """Tests for GenerationOrchestrator.capability_warnings()."""

    def test_within_capabilities(self, orchestrator, sample_params):
        """Test parameters that fit the model."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")

        assert orchestrator.capability_warnings(sample_params, profile, "realistic") == []

    def test_dimension_exceeded(self, orchestrator):
        """Test dimensions above the model maximum."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")
        params = NormalizedParameters(
            prompt="p", negative_prompt="n", seed=1, width=2048, height=1024
        )

        warnings = orchestrator.capability_warnings(params, profile)

        assert warnings == ["width 2048 exceeds stable-diffusion-xl maximum of 1024"]

    def test_unsupported_style(self, orchestrator, sample_params):
        """Test styles not listed for the model."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")

        warnings = orchestrator.capability_warnings(sample_params, profile, "pixel-art")

        assert warnings == ["style 'pixel-art' is not listed for stable-diffusion-xl"]

    def test_warnings_attached_to_outcome(self, orchestrator, sample_params):
        """Test that dispatch reports warnings without failing."""
        profile = orchestrator.resolve_model("stable-diffusion-xl")

        outcome = orchestrator.dispatch(sample_params, profile, style="pixel-art")

        assert outcome.placeholder is False
        assert len(outcome.warnings) == 1

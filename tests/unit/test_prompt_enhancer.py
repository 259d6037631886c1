"""Unit tests for prompt enhancement."""

import pytest
from unittest.mock import patch

from src.core.registry import (
    GENERIC_NEGATIVE_PROMPT,
    NEGATIVE_MOOD_CLAUSE,
    POSITIVE_MOOD_CLAUSE,
    get_style,
)
from src.utils.prompt_enhancer import (
    NegativePromptSynthesizer,
    PromptEnhancer,
    get_prompt_enhancer,
    reset_prompt_enhancer,
)


class TestPromptEnhancer:
    """Tests for PromptEnhancer."""

    def test_style_phrases_appended(self, test_enhancer):
        """Test that the top two style phrases are appended."""
        result = test_enhancer.enhance("a castle at sunset", "oil-painting")

        assert result == "a castle at sunset, oil on canvas, brushstrokes visible"

    def test_original_prompt_is_prefix(self, test_enhancer):
        """Test that the caller prompt is never rewritten."""
        prompt = "A Portrait of a KNIGHT, in armor"

        for style in ("realistic", "anime", "pixel-art", "abstract", "unknown"):
            assert test_enhancer.enhance(prompt, style).startswith(prompt)

    def test_phrases_already_present_skipped(self, test_enhancer):
        """Test that style phrases present in the prompt are not repeated."""
        result = test_enhancer.enhance("Photorealistic image of a lighthouse", "realistic")

        assert result == "Photorealistic image of a lighthouse, 8k resolution, highly detailed"

    def test_present_phrases_never_reappended(self, test_enhancer):
        """Test that a prompt holding every style phrase gets none appended."""
        prompt = "Anime Style manga, cel shaded, studio ghibli aesthetic"

        assert test_enhancer.enhance(prompt, "anime") == prompt

    def test_unknown_style(self, test_enhancer):
        """Test that unknown styles skip the style phrases."""
        assert test_enhancer.enhance("a castle", "nonexistent") == "a castle"

    def test_style_without_phrases(self, test_enhancer):
        """Test styles that have no enhancement phrases."""
        assert test_enhancer.enhance("a castle", "surreal") == "a castle"

    def test_topical_portrait(self, test_enhancer):
        """Test the portrait clause."""
        result = test_enhancer.enhance("portrait of an old sailor", "nonexistent")

        assert result == "portrait of an old sailor, detailed facial features, perfect eyes"

    def test_multiple_topical_clauses_in_order(self, test_enhancer):
        """Test that every matching topic adds its clause, in table order."""
        result = test_enhancer.enhance("magical landscape", "nonexistent")

        assert result == (
            "magical landscape, epic scenery, atmospheric perspective, "
            "ethereal lighting, mystical atmosphere"
        )

    def test_positive_mood(self, test_enhancer):
        """Test that a positive prompt gets the uplifting clause last."""
        result = test_enhancer.enhance("beautiful happy garden", "anime")

        assert result == f"beautiful happy garden, anime style, manga, {POSITIVE_MOOD_CLAUSE}"

    def test_negative_mood(self, test_enhancer):
        """Test that a negative prompt gets the moody clause."""
        result = test_enhancer.enhance("terrible gloomy night", "nonexistent")

        assert result == f"terrible gloomy night, {NEGATIVE_MOOD_CLAUSE}"

    def test_mood_threshold(self, test_enhancer):
        """Test that weak sentiment adds no mood clause."""
        # 3 / 7 tokens is below the 0.5 threshold
        result = test_enhancer.enhance("beautiful castle on a hill at dawn", "nonexistent")

        assert result == "beautiful castle on a hill at dawn"

    def test_max_style_phrases_configurable(self, sentiment_analyzer):
        """Test a custom cap on style phrases."""
        enhancer = PromptEnhancer(analyzer=sentiment_analyzer, max_style_phrases=4)
        result = enhancer.enhance("a robot", "3d-render")

        assert result == "a robot, 3d render, octane render, volumetric lighting, ray tracing"

    def test_custom_thresholds(self, sentiment_analyzer):
        """Test custom sentiment thresholds."""
        enhancer = PromptEnhancer(analyzer=sentiment_analyzer, positive_threshold=0.1)
        result = enhancer.enhance("beautiful castle on a hill at dawn", "nonexistent")

        assert result.endswith(POSITIVE_MOOD_CLAUSE)

    def test_deterministic(self, test_enhancer):
        """Test that identical input gives identical output."""
        first = test_enhancer.enhance("a happy fantasy portrait", "watercolor")
        second = test_enhancer.enhance("a happy fantasy portrait", "watercolor")

        assert first == second


class TestNegativePromptSynthesizer:
    """Tests for NegativePromptSynthesizer."""

    def test_style_negative_prompt(self):
        """Test the style's own negative prompt."""
        synthesizer = NegativePromptSynthesizer()

        assert synthesizer.synthesize("anime") == get_style("anime").negative_prompt

    def test_unknown_style_fallback(self):
        """Test the generic fallback."""
        synthesizer = NegativePromptSynthesizer()

        assert synthesizer.synthesize("nonexistent") == GENERIC_NEGATIVE_PROMPT

    def test_custom_fallback(self):
        """Test a custom fallback."""
        synthesizer = NegativePromptSynthesizer(fallback="blurry")

        assert synthesizer.synthesize("nonexistent") == "blurry"


class TestGlobalPromptEnhancer:
    """Tests for the global enhancer instance."""

    def setup_method(self):
        """Set up test fixtures."""
        reset_prompt_enhancer()

    def teardown_method(self):
        """Clean up after tests."""
        reset_prompt_enhancer()

    @patch('src.utils.prompt_enhancer.SentimentAnalyzer')
    def test_singleton(self, mock_analyzer_class):
        """Test that the same instance is returned."""
        first = get_prompt_enhancer()
        second = get_prompt_enhancer()

        assert first is second
        mock_analyzer_class.assert_called_once()

    @patch('src.utils.prompt_enhancer.SentimentAnalyzer')
    def test_reset(self, mock_analyzer_class):
        """Test that reset creates a new instance."""
        first = get_prompt_enhancer()
        reset_prompt_enhancer()
        second = get_prompt_enhancer()

        assert first is not second

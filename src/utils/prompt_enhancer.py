"""Prompt enhancement and negative prompt synthesis."""

import logging
from typing import List, Optional

from src.core.registry import (
    ENHANCEMENT_PHRASES,
    GENERIC_NEGATIVE_PROMPT,
    NEGATIVE_MOOD_CLAUSE,
    POSITIVE_MOOD_CLAUSE,
    TOPICAL_CLAUSES,
    get_style,
)
from src.utils.sentiment import SentimentAnalyzer, tokenize

logger = logging.getLogger(__name__)

MAX_STYLE_PHRASES = 2
POSITIVE_SENTIMENT_THRESHOLD = 0.5
NEGATIVE_SENTIMENT_THRESHOLD = -0.5


class PromptEnhancer:
    """Appends style, topical and mood clauses to a prompt.

    The original prompt is never rewritten; clauses are only appended,
    joined with ", ". Only the style phrases are deduplicated, and only
    against the original prompt.

    Attributes:
        max_style_phrases: Maximum number of style phrases appended
        positive_threshold: Sentiment score above which the uplifting clause is added
        negative_threshold: Sentiment score below which the moody clause is added
    """

    def __init__(
        self,
        analyzer: Optional[SentimentAnalyzer] = None,
        max_style_phrases: int = MAX_STYLE_PHRASES,
        positive_threshold: float = POSITIVE_SENTIMENT_THRESHOLD,
        negative_threshold: float = NEGATIVE_SENTIMENT_THRESHOLD
    ):
        """Initialize the prompt enhancer.

        Args:
            analyzer: Sentiment analyzer (a default AFINN analyzer is built if omitted)
            max_style_phrases: Cap on appended style phrases
            positive_threshold: Upper sentiment threshold
            negative_threshold: Lower sentiment threshold
        """
        self.analyzer = analyzer or SentimentAnalyzer()
        self.max_style_phrases = max_style_phrases
        self.positive_threshold = positive_threshold
        self.negative_threshold = negative_threshold
        logger.info("PromptEnhancer initialized")

    def enhance(self, prompt: str, style: str) -> str:
        """Enhance a prompt for the given style.

        Args:
            prompt: Original prompt
            style: Style identifier (unknown styles skip the style phrases)

        Returns:
            Enhanced prompt
        """
        tokens = tokenize(prompt)
        clauses = self.style_phrases(prompt, style)
        clauses.extend(self.topical_clauses(tokens))

        mood = self.mood_clause(tokens)
        if mood:
            clauses.append(mood)

        enhanced = ", ".join([prompt] + clauses)
        logger.debug(f"Enhanced prompt: '{prompt}' -> '{enhanced}'")
        return enhanced

    def style_phrases(self, prompt: str, style: str) -> List[str]:
        """Pick style phrases not already present in the prompt.

        Args:
            prompt: Original prompt
            style: Style identifier

        Returns:
            Up to max_style_phrases phrases, in ranked order
        """
        phrases = ENHANCEMENT_PHRASES.get(style, ())
        prompt_lower = prompt.lower()
        missing = [p for p in phrases if p.lower() not in prompt_lower]
        return missing[:self.max_style_phrases]

    def topical_clauses(self, tokens: List[str]) -> List[str]:
        """Return one clause per topical keyword set present in the tokens."""
        token_set = set(tokens)
        return [clause for keywords, clause in TOPICAL_CLAUSES if keywords & token_set]

    def mood_clause(self, tokens: List[str]) -> Optional[str]:
        """Return the mood clause for the token sentiment, if any."""
        score = self.analyzer.score(tokens)
        if score > self.positive_threshold:
            return POSITIVE_MOOD_CLAUSE
        if score < self.negative_threshold:
            return NEGATIVE_MOOD_CLAUSE
        return None

    def __repr__(self) -> str:
        return (
            f"PromptEnhancer(max_style_phrases={self.max_style_phrases}, "
            f"thresholds=({self.negative_threshold}, {self.positive_threshold}))"
        )


class NegativePromptSynthesizer:
    """Produces the default negative prompt for a style."""

    def __init__(self, fallback: str = GENERIC_NEGATIVE_PROMPT):
        self.fallback = fallback

    def synthesize(self, style: str) -> str:
        """Return the style's negative prompt, or the generic fallback.

        Args:
            style: Style identifier

        Returns:
            Negative prompt text
        """
        profile = get_style(style)
        if profile is None:
            return self.fallback
        return profile.negative_prompt


# Global prompt enhancer instance
_global_enhancer: Optional[PromptEnhancer] = None


def get_prompt_enhancer() -> PromptEnhancer:
    """Get or create the global prompt enhancer instance.

    Returns:
        Global PromptEnhancer instance
    """
    global _global_enhancer

    if _global_enhancer is None:
        _global_enhancer = PromptEnhancer()

    return _global_enhancer


def reset_prompt_enhancer() -> None:
    """Reset the global prompt enhancer instance (useful for testing)."""
    global _global_enhancer
    _global_enhancer = None

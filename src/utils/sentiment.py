"""Lexicon-based sentiment scoring for prompt tokens.

Scores are the sum of AFINN word valences (looked up by Porter stem) divided
by the number of tokens, with a negation word flipping the sign of every
later hit. The result is bounded by the lexicon range (-5..5).
"""

import logging
from typing import Dict, List, Optional, Sequence

from afinn import Afinn
from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer

logger = logging.getLogger(__name__)

NEGATIONS = frozenset({
    "not", "no", "never", "neither", "nor", "none", "nobody", "nothing",
    "nowhere", "cannot", "without",
})

AFINN_WORD_FILE = "AFINN-en-165.txt"


def load_afinn_lexicon(filename: str = AFINN_WORD_FILE) -> Dict[str, int]:
    """Read an AFINN word file shipped with the afinn package."""
    afinn = Afinn(language="en")
    return afinn.read_word_file(afinn.full_filename(filename))


class SentimentAnalyzer:
    """Stem-based AFINN polarity scorer.

    Example:
        analyzer = SentimentAnalyzer()
        analyzer.score(["a", "beautiful", "happy", "garden"])  # > 0
    """

    def __init__(self, lexicon: Optional[Dict[str, int]] = None):
        """Initialize the analyzer.

        Args:
            lexicon: Word -> valence mapping (defaults to AFINN-165 English)
        """
        self.stemmer = PorterStemmer()
        if lexicon is None:
            lexicon = load_afinn_lexicon()
        # Multi-word phrases are not scored per token
        self.vocabulary: Dict[str, int] = {}
        for word, valence in lexicon.items():
            if " " in word:
                continue
            self.vocabulary[self.stemmer.stem(word)] = valence

        logger.debug(f"SentimentAnalyzer loaded {len(self.vocabulary)} stems")

    def score(self, tokens: Sequence[str]) -> float:
        """Score a token sequence.

        Args:
            tokens: Word tokens (any case)

        Returns:
            Average valence per token, 0.0 for an empty sequence
        """
        if not tokens:
            return 0.0

        total = 0
        negation = 1
        for token in tokens:
            word = token.lower()
            if word in NEGATIONS:
                negation = -1
                continue
            valence = self.vocabulary.get(self.stemmer.stem(word))
            if valence is not None:
                total += negation * valence

        return total / len(tokens)


_tokenizer = RegexpTokenizer(r"[A-Za-z0-9_]+")


def tokenize(text: str) -> List[str]:
    """Split text into lowercase word tokens."""
    return _tokenizer.tokenize(text.lower())

import functools
from dataclasses import dataclass
from typing import Optional, Protocol

import nltk
from loguru import logger
from nltk.sentiment.vader import SentimentIntensityAnalyzer

from .models import Sentiment

VADER_RESOURCE = "sentiment/vader_lexicon.zip"

POSITIVE_THRESHOLD = 0.3
NEGATIVE_THRESHOLD = -0.3


class SentimentScorer(Protocol):
    def score(self, text: str) -> float:
        """Return a polarity in [-1, 1]."""
        ...


class VaderScorer:
    """Lexicon-based scorer backed by NLTK's VADER compound polarity."""

    def __init__(self):
        self._analyzer = SentimentIntensityAnalyzer()

    def score(self, text: str) -> float:
        if not text or not text.strip():
            return 0.0
        compound = self._analyzer.polarity_scores(text)["compound"]
        return max(-1.0, min(1.0, compound))


@dataclass(frozen=True)
class SentimentCapability:
    available: bool
    scorer: Optional[SentimentScorer] = None
    reason: str = ""


def bucket_sentiment(score: float) -> Sentiment:
    if score < NEGATIVE_THRESHOLD:
        return Sentiment.NEGATIVE
    if score > POSITIVE_THRESHOLD:
        return Sentiment.POSITIVE
    return Sentiment.NEUTRAL


def classify_sentiment(text: str, scorer: SentimentScorer) -> Sentiment:
    if not text or not text.strip():
        return Sentiment.NEUTRAL
    return bucket_sentiment(scorer.score(text))


@functools.lru_cache(maxsize=None)
def probe_sentiment_capability(allow_download: bool = True) -> SentimentCapability:
    """Check once whether the VADER lexicon can be loaded.

    The result is cached for the life of the process; call
    ``probe_sentiment_capability.cache_clear()`` to probe again.
    """
    try:
        nltk.data.find(VADER_RESOURCE)
    except LookupError:
        if not allow_download:
            logger.info("VADER lexicon not installed and downloads are disabled")
            return SentimentCapability(available=False, reason="vader_lexicon not installed")

        logger.info("Downloading VADER lexicon...")
        if not nltk.download("vader_lexicon", quiet=True):
            logger.warning("VADER lexicon download failed, sentiment scoring unavailable")
            return SentimentCapability(available=False, reason="vader_lexicon download failed")

    try:
        scorer = VaderScorer()
    except (LookupError, OSError) as exc:
        logger.warning(f"Could not load VADER lexicon: {exc}")
        return SentimentCapability(available=False, reason=str(exc))

    logger.info("Sentiment scoring available (nltk VADER)")
    return SentimentCapability(available=True, scorer=scorer, reason="nltk vader")

import asyncio
import random
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from loguru import logger

from .errors import GenerationFailure
from .models import DreamEntry, Sentiment, ThemeReport
from .sentiment import SentimentCapability, SentimentScorer, classify_sentiment
from .themes import extract_themes, get_theme_color

FALLBACK_INTERPRETATION = (
    "Your dream appears to contain significant symbolism that reflects your inner thoughts and emotions."
)

INTERPRETATION_TEMPLATES: Tuple[str, ...] = (
    "Your dream about {title} suggests that you may be processing feelings of uncertainty in your waking life. "
    "The symbols in your dream point to a desire for clarity and resolution.",
    "The {title} in your dream represents transformation and change. "
    "This dream may be reflecting your current state of personal growth and evolution.",
    "Dreams involving {title} often symbolize hidden fears or desires. "
    "Consider what aspects of yourself might be represented by the elements in this dream.",
    "This dream suggests you're working through unresolved emotions related to {title}. "
    "Pay attention to how you felt during the dream - these emotions may be key to understanding "
    "what your subconscious is processing.",
    "The imagery of {title} in your dream could be connected to your creative potential. "
    "Your subconscious may be encouraging you to explore new ideas or perspectives.",
)

HOROSCOPE_TEMPLATES: Tuple[str, ...] = (
    "The stars align in your favor today. Be open to unexpected opportunities and trust your intuition "
    "when making decisions.",
    "A period of reflection will serve you well. Take time to consider your goals and the steps needed "
    "to achieve them.",
    "Communication is highlighted today. Express your thoughts clearly and be receptive to feedback from others.",
    "Focus on balance in your life. Ensure you're giving attention to both your responsibilities "
    "and personal well-being.",
    "Creativity flows strongly now. Channel this energy into projects that inspire you and bring joy.",
)

ENTRY_HOROSCOPE_TEMPLATE = (
    "Your recent dream about {title} suggests a period of transformation. "
    "Embrace change and remain adaptable as new opportunities emerge."
)

INTRO_TEMPLATES = {
    Sentiment.POSITIVE: "Your dream about {title} carries a hopeful, uplifting energy.",
    Sentiment.NEGATIVE: "Your dream about {title} reflects some tension or unease you may be carrying.",
    Sentiment.NEUTRAL: "Your dream about {title} has a calm, reflective quality.",
}

# First group with a keyword found inside any theme wins
THEME_SENTENCES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("water", "flow"),
     "Water often mirrors your emotional state, so notice whether it felt calm or turbulent."),
    (("fall", "flying"),
     "Flying or falling points to how much control you feel over the direction of your life."),
    (("chase", "running"),
     "Being chased suggests there is something in your waking life you would rather not face."),
    (("path", "journey", "travel"),
     "A path or journey hints that you are moving through a period of transition."),
    (("light", "sun"),
     "Light in a dream is a sign of clarity and renewed energy."),
)
GENERIC_THEME_SENTENCE = "The symbols in this dream point to thoughts your subconscious is still working through."

CLOSING_SENTENCE = "Take a moment to reflect on how these feelings connect to your waking life."


class Strategy(str, Enum):
    TEMPLATE = "template"
    HEURISTIC = "heuristic"


def select_strategy(setting: str, capability: SentimentCapability) -> Strategy:
    """Resolve the configured strategy against what the sentiment probe found."""
    if setting == Strategy.TEMPLATE.value:
        return Strategy.TEMPLATE
    if capability.available:
        return Strategy.HEURISTIC
    if setting == Strategy.HEURISTIC.value:
        logger.warning(f"Heuristic narratives requested but sentiment scoring is unavailable ({capability.reason}), "
                       "using templates")
    return Strategy.TEMPLATE


def theme_sentence(themes: Iterable[str]) -> str:
    themes = [theme.lower() for theme in themes]
    for keywords, sentence in THEME_SENTENCES:
        if any(keyword in theme for keyword in keywords for theme in themes):
            return sentence
    return GENERIC_THEME_SENTENCE


class NarrativeGenerator:
    """Builds interpretations and horoscopes for dream entries.

    Results are delivered asynchronously after ``delay`` seconds; the
    ``compose_*`` methods produce the same text synchronously.
    """

    def __init__(
        self,
        strategy: Strategy = Strategy.TEMPLATE,
        scorer: Optional[SentimentScorer] = None,
        delay: float = 1.5,
        rng: Optional[random.Random] = None,
    ):
        if strategy == Strategy.HEURISTIC and scorer is None:
            raise ValueError("the heuristic strategy needs a sentiment scorer")
        self.strategy = strategy
        self.scorer = scorer
        self.delay = delay
        self._rng = rng or random.Random()

    def _choose(self, pool: Sequence[str]) -> str:
        return pool[self._rng.randrange(len(pool))]

    def compose_interpretation(self, entry: DreamEntry) -> str:
        try:
            if self.strategy == Strategy.HEURISTIC:
                return self._heuristic_interpretation(entry)
            return self._template_interpretation(entry)
        except GenerationFailure as exc:
            logger.debug(f"Falling back to the generic interpretation for entry {entry.id}: {exc}")
            return FALLBACK_INTERPRETATION

    def _template_interpretation(self, entry: DreamEntry) -> str:
        title = entry.title.strip().lower()
        if not title:
            raise GenerationFailure("entry has no title")
        return self._choose(INTERPRETATION_TEMPLATES).format(title=title)

    def _heuristic_interpretation(self, entry: DreamEntry) -> str:
        title = entry.title.strip().lower()
        if not title:
            raise GenerationFailure("entry has no title")

        sentiment = classify_sentiment(entry.text, self.scorer)
        themes = list(extract_themes(entry.text)) + list(entry.tags)
        logger.debug(f"Entry {entry.id}: sentiment={sentiment.value} themes={themes}")

        return " ".join([
            INTRO_TEMPLATES[sentiment].format(title=title),
            theme_sentence(themes),
            CLOSING_SENTENCE,
        ])

    def horoscope_pool(self, entry: Optional[DreamEntry] = None) -> Tuple[str, ...]:
        if entry is None:
            return HOROSCOPE_TEMPLATES
        return HOROSCOPE_TEMPLATES + (ENTRY_HOROSCOPE_TEMPLATE.format(title=entry.title.strip().lower()),)

    def compose_horoscope(self, entry: Optional[DreamEntry] = None) -> str:
        return self._choose(self.horoscope_pool(entry))

    def theme_report(self, text: str) -> ThemeReport:
        themes = extract_themes(text)
        if self.scorer is not None:
            sentiment = classify_sentiment(text, self.scorer)
        else:
            sentiment = Sentiment.NEUTRAL
        return ThemeReport(
            themes=themes,
            sentiment=sentiment,
            colors={theme: get_theme_color(theme) for theme in themes},
        )

    async def interpret(self, entry: DreamEntry) -> str:
        text = self.compose_interpretation(entry)
        await asyncio.sleep(self.delay)
        return text

    async def horoscope(self, entry: Optional[DreamEntry] = None) -> str:
        text = self.compose_horoscope(entry)
        await asyncio.sleep(self.delay)
        return text

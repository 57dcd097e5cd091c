import string
from typing import Dict, List

MAX_THEMES = 5

# Theme categories and the whole-word keywords that signal them
THEME_CATEGORIES: Dict[str, List[str]] = {
    "water": ["water", "ocean", "sea", "river", "lake", "swim", "flood", "rain"],
    "flying": ["fly", "flying", "float", "falling", "jumping", "height", "sky"],
    "chase": ["chase", "run", "escape", "follow", "pursued", "hunting"],
    "family": ["family", "mother", "father", "sister", "brother", "child", "parent"],
    "travel": ["journey", "travel", "path", "road", "car", "trip", "destination"],
    "home": ["house", "home", "room", "building", "door", "window"],
    "fear": ["fear", "afraid", "scary", "threat", "danger", "dark", "hide"],
}

# Returned when nothing in the text matches a category
FALLBACK_THEMES = ["memory", "subconscious", "symbolism"]

THEME_COLORS = {
    "water": "#1E90FF",
    "flying": "#00CED1",
    "chase": "#FF8C00",
    "family": "#32CD32",
    "travel": "#8A2BE2",
    "home": "#4B0082",
    "fear": "#DC143C",
}


def get_theme_color(theme: str) -> str:
    return THEME_COLORS.get(theme, "#808080")


def tokenize(text: str) -> List[str]:
    """Split on whitespace, lower-case, and trim punctuation hugging each word."""
    tokens = []
    for word in text.lower().split():
        word = word.strip(string.punctuation)
        if word:
            tokens.append(word)
    return tokens


def extract_themes(text: str) -> List[str]:
    """Detect dream themes by keyword.

    Each category is reported once, in alphabetical order, and at most
    ``MAX_THEMES`` are returned. Text with no recognised keyword gets the
    generic fallback themes.
    """
    words = set(tokenize(text or ""))

    detected = [
        category
        for category, keywords in THEME_CATEGORIES.items()
        if any(keyword in words for keyword in keywords)
    ]

    if not detected:
        return list(FALLBACK_THEMES)
    return sorted(detected)[:MAX_THEMES]

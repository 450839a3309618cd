"""
Emotion vocabulary shared by the store and the presentation layer.

The store accepts any label; only display maps unknown labels to the default.
"""
from typing import Optional, Tuple

EMOTIONS = ("happy", "sad", "surprised", "angry", "nostalgic")
DEFAULT_EMOTION = "default"

EMOJI_MAP = {
    "happy": "😊",
    "sad": "😢",
    "surprised": "😲",
    "angry": "😠",
    "nostalgic": "🥹",
    DEFAULT_EMOTION: "🤖",
}


def is_known(emotion: Optional[str]) -> bool:
    return emotion in EMOTIONS


def emoji_for(emotion: Optional[str]) -> str:
    """Glyph for an emotion label, falling back to the default glyph."""
    if is_known(emotion):
        return EMOJI_MAP[emotion]
    return EMOJI_MAP[DEFAULT_EMOTION]


def describe(emotion: Optional[str]) -> Tuple[str, str]:
    """
    Display pair (glyph, label) for an emotion.

    Unknown or missing emotions render as the default glyph and label.
    """
    if not is_known(emotion):
        return EMOJI_MAP[DEFAULT_EMOTION], DEFAULT_EMOTION.capitalize()
    return EMOJI_MAP[emotion], emotion.capitalize()

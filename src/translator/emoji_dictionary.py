"""Offline word-to-emoji translation."""

import re
from typing import Dict

EMOJI_MAP: Dict[str, str] = {
    "hello": "👋",
    "hi": "👋",
    "love": "❤️",
    "heart": "❤️",
    "happy": "😊",
    "sad": "😢",
    "angry": "😠",
    "food": "🍔",
    "eat": "🍔",
    "drink": "🥤",
    "water": "💧",
    "fire": "🔥",
    "sun": "☀️",
    "moon": "🌙",
    "star": "⭐",
    "car": "🚗",
    "house": "🏠",
    "tree": "🌳",
    "flower": "🌸",
    "cat": "🐱",
    "dog": "🐶",
    "bird": "🐦",
    "fish": "🐠",
    "music": "🎵",
    "book": "📚",
    "phone": "📱",
    "computer": "💻",
    "money": "💰",
    "time": "⏰",
    "work": "💼",
    "school": "🏫",
    "party": "🎉",
    "birthday": "🎂",
    "gift": "🎁",
    "travel": "✈️",
    "beach": "🏖️",
    "mountain": "⛰️",
    "coffee": "☕",
    "pizza": "🍕",
    "beer": "🍺",
    "wine": "🍷",
}

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w]", re.ASCII)


def translate_to_emojis(text: str) -> str:
    """
    Replace known words with emoji.

    The whole string is lower-cased before splitting, so unmapped tokens come
    back lower-cased with their punctuation intact.

    Args:
        text: input sentence

    Returns:
        the sentence with dictionary words substituted, joined by single spaces
    """
    tokens = _WHITESPACE.split(text.lower())
    translated = []
    for token in tokens:
        cleaned = _NON_WORD.sub("", token)
        translated.append(EMOJI_MAP.get(cleaned) or token)
    return " ".join(translated)

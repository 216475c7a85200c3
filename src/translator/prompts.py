"""Prompt templates for the remote models."""

import json

TRANSLATION_PROMPT = """You are an Emoji Translator. Translate the given text into emojis wherever possible.
- Support any language.
- Keep only the essential words if emojis are insufficient.
- Preserve sentiment and tone.
- Do NOT add explanations. Output ONLY the emoji string (optionally with minimal words).

Text: {text}"""

LANGUAGE_DETECTION_PROMPT = (
    'Return only the ISO 639-1 language code for the language of this text. '
    'Use "en" for English. If mixed, return the dominant language. Text: {text}'
)


def build_translation_prompt(text: str) -> str:
    return TRANSLATION_PROMPT.format(text=text)


def build_detection_prompt(text: str) -> str:
    # Text is embedded as a JSON string literal.
    return LANGUAGE_DETECTION_PROMPT.format(text=json.dumps(text, ensure_ascii=False))

"""Remote language detection."""

import re
from typing import Optional

from config.logging_config import get_logger
from translator.prompts import build_detection_prompt
from translator.providers import ChatCompletionProvider

logger = get_logger(__name__)

_LANGUAGE_CODE = re.compile(r"[a-z]{2}")


def extract_language_code(reply: Optional[str]) -> Optional[str]:
    """First two-letter run of the lower-cased reply, or None."""
    match = _LANGUAGE_CODE.search((reply or "").strip().lower())
    return match.group(0) if match else None


class LanguageDetector:
    """Classifies the dominant language of a text as an ISO 639-1 code."""

    def __init__(
        self,
        provider: ChatCompletionProvider,
        temperature: float = 0.0,
        max_tokens: int = 5,
    ):
        self.provider = provider
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def detect(self, text: str) -> Optional[str]:
        """Return a two-letter code, or None when detection is unavailable."""
        if not self.provider.configured:
            return None
        try:
            reply = await self.provider.complete(
                build_detection_prompt(text),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.warning(f"Language detection failed: {type(e).__name__}: {e}")
            return None
        return extract_language_code(reply)

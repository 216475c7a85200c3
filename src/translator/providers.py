"""AsyncOpenAI-based chat completion providers."""

from typing import Dict, Optional

from openai import AsyncOpenAI

from config.logging_config import get_logger
from config.settings import Settings
from models.models import Provider
from translator.exceptions import EmptyCompletionError, ProviderNotConfiguredError

logger = get_logger(__name__)


class ChatCompletionProvider:
    """One remote model reachable through an OpenAI-compatible API."""

    def __init__(
        self,
        name: str,
        model: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.name = name
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.configured:
            raise ProviderNotConfiguredError(f"{self.name} API key is not configured")
        if self._client is None:
            options = {"api_key": self.api_key}
            if self.base_url:
                options["base_url"] = self.base_url
            if self.timeout:
                options["timeout"] = self.timeout
            self._client = AsyncOpenAI(**options)
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        """
        Send ``prompt`` as a single user message.

        Args:
            prompt: full prompt text
            temperature: sampling temperature
            max_tokens: output token budget

        Returns:
            the trimmed completion text

        Raises:
            ProviderNotConfiguredError: no API key
            EmptyCompletionError: the model answered with nothing usable
        """
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        text = (content or "").strip()
        if not text:
            raise EmptyCompletionError(f"{self.name} returned an empty completion")
        return text


def build_providers(
    settings: Settings, default_openai_model: str
) -> Dict[str, ChatCompletionProvider]:
    """Create the openai and gemini providers from settings."""
    return {
        Provider.OPENAI: ChatCompletionProvider(
            name=Provider.OPENAI,
            model=settings.openai_model or default_openai_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        ),
        Provider.GEMINI: ChatCompletionProvider(
            name=Provider.GEMINI,
            model=settings.gemini_model,
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            timeout=settings.request_timeout,
        ),
    }

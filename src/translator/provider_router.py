"""Provider selection policy."""

from typing import Optional

from models.models import Provider


def route_provider(detected: Optional[str], default_provider: str = Provider.GEMINI) -> str:
    """
    Pick the backend for a request.

    English goes to gemini and every other detected language to openai.
    Without a detection result the configured default is used; detection
    failure never disables the remote path.

    Args:
        detected: two-letter language code or None
        default_provider: DEFAULT_PROVIDER setting

    Returns:
        "openai" or "gemini"
    """
    if detected:
        return Provider.GEMINI if detected == "en" else Provider.OPENAI
    if (default_provider or "").lower() == Provider.OPENAI:
        return Provider.OPENAI
    return Provider.GEMINI

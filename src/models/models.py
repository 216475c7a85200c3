"""API data models."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator


class Provider:
    """Remote backend names."""

    OPENAI = "openai"
    GEMINI = "gemini"
    NOT_APPLICABLE = "n/a"


class Source:
    """Where a translation came from."""

    AI = "ai"
    LOCAL = "local"
    NOT_APPLICABLE = "n/a"


class ErrorCode:
    """Error markers returned in response bodies."""

    RATE_LIMITED = "rate_limited"
    MISSING_TEXT = "Missing text"
    AI_FAILED = "ai_failed"
    INVALID_REQUEST = "Invalid request"


class TranslateRequest(BaseModel):
    """Inbound translation request body."""

    text: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def truncated(self, limit: int) -> str:
        """Return the text cut to ``limit`` characters (not trimmed)."""
        return (self.text or "")[:limit]


@dataclass
class TranslationOutcome:
    """Result of a translation attempt that reached a provider decision."""

    output: str
    source: str
    provider: str
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "output": self.output,
            "source": self.source,
            "provider": self.provider,
        }
        if self.error:
            payload["error"] = self.error
        return payload


@dataclass
class LogEvent:
    """One structured record per handled request."""

    ip: str
    duration_ms: int
    provider: str = Provider.NOT_APPLICABLE
    source: str = Source.NOT_APPLICABLE
    lang: str = "unknown"
    rate_limited: bool = False
    event: str = field(default="translate")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "event": data.pop("event"),
            "ip": data.pop("ip"),
            "duration_ms": data.pop("duration_ms"),
            **data,
        }

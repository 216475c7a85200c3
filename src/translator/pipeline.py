"""Translation request pipeline.

A request moves through a fixed sequence of states. Every step is a method
that inspects the shared context and returns the next state; the loop stops
at the first terminal state and the matching responder builds the reply.

    RECEIVED -> RATE_CHECKED -> VALIDATED -> LOCAL_FALLBACK_COMPUTED
             -> LANGUAGE_DETECTED -> PROVIDER_SELECTED -> (terminal)

Terminal states: RATE_REJECTED, INVALID_INPUT, REMOTE_SUCCEEDED,
REMOTE_FAILED_OR_EMPTY, TOTAL_FAILURE.
"""

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from config.logging_config import get_logger
from config.settings import Settings
from models.models import ErrorCode, Provider, Source, TranslateRequest, TranslationOutcome
from translator.emoji_dictionary import translate_to_emojis
from translator.exceptions import InvalidRequestError
from translator.language_detector import LanguageDetector
from translator.prompts import build_translation_prompt
from translator.provider_router import route_provider
from translator.providers import ChatCompletionProvider
from translator.rate_limiter import RateLimiter

logger = get_logger(__name__)

_TEXT_FIELD = re.compile(r'"text"\s*:\s*"((?:[^"\\]|\\.)*)', re.DOTALL)


class PipelineState(str, Enum):
    RECEIVED = "received"
    RATE_CHECKED = "rate_checked"
    VALIDATED = "validated"
    LOCAL_FALLBACK_COMPUTED = "local_fallback_computed"
    LANGUAGE_DETECTED = "language_detected"
    PROVIDER_SELECTED = "provider_selected"
    # terminal
    RATE_REJECTED = "rate_rejected"
    INVALID_INPUT = "invalid_input"
    REMOTE_SUCCEEDED = "remote_succeeded"
    REMOTE_FAILED_OR_EMPTY = "remote_failed_or_empty"
    TOTAL_FAILURE = "total_failure"


TERMINAL_STATES = frozenset(
    {
        PipelineState.RATE_REJECTED,
        PipelineState.INVALID_INPUT,
        PipelineState.REMOTE_SUCCEEDED,
        PipelineState.REMOTE_FAILED_OR_EMPTY,
        PipelineState.TOTAL_FAILURE,
    }
)


@dataclass
class PipelineContext:
    """Mutable per-request state carried between steps."""

    client_id: str
    raw_body: bytes
    state: PipelineState = PipelineState.RECEIVED
    text: str = ""
    local: Optional[str] = None
    detected: Optional[str] = None
    provider: Optional[str] = None
    output: Optional[str] = None
    failure: Optional[BaseException] = None


@dataclass
class PipelineResult:
    """Finished response plus the fields the outcome log needs."""

    state: PipelineState
    status_code: int
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    provider: str = Provider.NOT_APPLICABLE
    source: str = Source.NOT_APPLICABLE
    lang: Optional[str] = None
    rate_limited: bool = False


def scrub_surrogates(text: str) -> str:
    """Replace unpaired UTF-16 surrogates with U+FFFD so the text encodes as UTF-8."""
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def recover_text(raw_body: bytes) -> Optional[str]:
    """
    Best-effort extraction of a ``"text"`` string from a malformed body.

    Accepts truncated JSON such as ``{"text": "hello wor``. Returns None when
    no string value can be found.
    """
    decoded = raw_body.decode("utf-8", errors="replace")
    match = _TEXT_FIELD.search(decoded)
    if not match:
        return None
    fragment = match.group(1)
    try:
        return scrub_surrogates(json.loads(f'"{fragment}"'))
    except ValueError:
        return scrub_surrogates(fragment)


class TranslationPipeline:
    """Rate check, validation, routing and remote call with local fallback."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        detector: LanguageDetector,
        providers: Dict[str, ChatCompletionProvider],
        default_provider: str = Provider.GEMINI,
        max_input_chars: int = 100,
        temperature: float = 0.9,
        max_output_tokens: int = 75,
        retry_after_seconds: int = 60,
        local_translator: Callable[[str], str] = translate_to_emojis,
    ):
        self.rate_limiter = rate_limiter
        self.detector = detector
        self.providers = providers
        self.default_provider = default_provider
        self.max_input_chars = max_input_chars
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.retry_after_seconds = retry_after_seconds
        self.local_translator = local_translator
        self._steps: Dict[
            PipelineState, Callable[[PipelineContext], Awaitable[PipelineState]]
        ] = {
            PipelineState.RECEIVED: self.check_rate,
            PipelineState.RATE_CHECKED: self.validate,
            PipelineState.VALIDATED: self.compute_local_fallback,
            PipelineState.LOCAL_FALLBACK_COMPUTED: self.detect_language,
            PipelineState.LANGUAGE_DETECTED: self.select_provider,
            PipelineState.PROVIDER_SELECTED: self.call_remote,
        }
        self._responders: Dict[
            PipelineState, Callable[[PipelineContext], PipelineResult]
        ] = {
            PipelineState.RATE_REJECTED: self._respond_rate_rejected,
            PipelineState.INVALID_INPUT: self._respond_invalid_input,
            PipelineState.REMOTE_SUCCEEDED: self._respond_remote_succeeded,
            PipelineState.REMOTE_FAILED_OR_EMPTY: self._respond_remote_failed,
            PipelineState.TOTAL_FAILURE: self._respond_total_failure,
        }

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        rate_limiter: RateLimiter,
        providers: Dict[str, ChatCompletionProvider],
    ) -> "TranslationPipeline":
        return cls(
            rate_limiter=rate_limiter,
            detector=LanguageDetector(providers[Provider.GEMINI]),
            providers=providers,
            default_provider=settings.default_provider,
            max_input_chars=settings.max_input_chars,
            temperature=settings.translation_temperature,
            max_output_tokens=settings.max_output_tokens,
            retry_after_seconds=math.ceil(settings.rate_limit_window_ms / 1000),
        )

    async def run(self, client_id: str, raw_body: bytes) -> PipelineResult:
        """Drive one request to a terminal state and build its response."""
        ctx = PipelineContext(client_id=client_id, raw_body=raw_body)
        while ctx.state not in TERMINAL_STATES:
            step = self._steps[ctx.state]
            try:
                ctx.state = await step(ctx)
            except Exception as e:
                logger.warning(
                    f"Pipeline step {ctx.state.value} failed: {type(e).__name__}: {e}"
                )
                ctx.failure = e
                ctx.state = PipelineState.TOTAL_FAILURE
        return self._responders[ctx.state](ctx)

    # steps

    async def check_rate(self, ctx: PipelineContext) -> PipelineState:
        if self.rate_limiter.admit(ctx.client_id):
            return PipelineState.RATE_REJECTED
        return PipelineState.RATE_CHECKED

    async def validate(self, ctx: PipelineContext) -> PipelineState:
        try:
            request = TranslateRequest.model_validate_json(ctx.raw_body or b"")
        except ValidationError as e:
            raise InvalidRequestError(
                f"unparseable request body ({e.error_count()} errors)"
            ) from e
        ctx.text = scrub_surrogates(request.truncated(self.max_input_chars))
        if not ctx.text.strip():
            return PipelineState.INVALID_INPUT
        return PipelineState.VALIDATED

    async def compute_local_fallback(self, ctx: PipelineContext) -> PipelineState:
        ctx.local = self.local_translator(ctx.text)
        return PipelineState.LOCAL_FALLBACK_COMPUTED

    async def detect_language(self, ctx: PipelineContext) -> PipelineState:
        ctx.detected = await self.detector.detect(ctx.text)
        return PipelineState.LANGUAGE_DETECTED

    async def select_provider(self, ctx: PipelineContext) -> PipelineState:
        ctx.provider = route_provider(ctx.detected, self.default_provider)
        return PipelineState.PROVIDER_SELECTED

    async def call_remote(self, ctx: PipelineContext) -> PipelineState:
        provider = self.providers[ctx.provider]
        try:
            output = await provider.complete(
                build_translation_prompt(ctx.text),
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
            )
            ctx.output = scrub_surrogates(output)
        except Exception as e:
            logger.warning(
                f"{ctx.provider} translation failed, using local dictionary: "
                f"{type(e).__name__}: {e}"
            )
            ctx.failure = e
            return PipelineState.REMOTE_FAILED_OR_EMPTY
        return PipelineState.REMOTE_SUCCEEDED

    # responders

    def _respond_rate_rejected(self, ctx: PipelineContext) -> PipelineResult:
        return PipelineResult(
            state=ctx.state,
            status_code=429,
            payload={"error": ErrorCode.RATE_LIMITED},
            headers={"Retry-After": str(self.retry_after_seconds)},
            rate_limited=True,
        )

    def _respond_invalid_input(self, ctx: PipelineContext) -> PipelineResult:
        return PipelineResult(
            state=ctx.state,
            status_code=400,
            payload={"error": ErrorCode.MISSING_TEXT},
        )

    def _respond_remote_succeeded(self, ctx: PipelineContext) -> PipelineResult:
        outcome = TranslationOutcome(output=ctx.output, source=Source.AI, provider=ctx.provider)
        return self._outcome_result(ctx, outcome)

    def _respond_remote_failed(self, ctx: PipelineContext) -> PipelineResult:
        outcome = TranslationOutcome(
            output=ctx.local,
            source=Source.LOCAL,
            provider=ctx.provider,
            error=ErrorCode.AI_FAILED,
        )
        return self._outcome_result(ctx, outcome)

    def _respond_total_failure(self, ctx: PipelineContext) -> PipelineResult:
        text = ctx.text if ctx.text.strip() else recover_text(ctx.raw_body or b"")
        output = None
        if text is not None and text.strip():
            text = text[: self.max_input_chars]
            try:
                output = ctx.local or self.local_translator(text)
            except Exception as e:
                logger.warning(f"Last-resort local translation failed: {type(e).__name__}: {e}")
        if not output:
            return PipelineResult(
                state=ctx.state,
                status_code=400,
                payload={"error": ErrorCode.INVALID_REQUEST},
                lang=ctx.detected,
            )
        outcome = TranslationOutcome(
            output=output,
            source=Source.LOCAL,
            provider=Provider.NOT_APPLICABLE,
            error=ErrorCode.AI_FAILED,
        )
        return self._outcome_result(ctx, outcome)

    def _outcome_result(self, ctx: PipelineContext, outcome: TranslationOutcome) -> PipelineResult:
        return PipelineResult(
            state=ctx.state,
            status_code=200,
            payload=outcome.to_payload(),
            provider=outcome.provider,
            source=outcome.source,
            lang=ctx.detected,
        )

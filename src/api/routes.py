"""Emoji Translator API routes.

Two deployment adapters expose the same pipeline. They differ only in where
they are mounted, how they load configuration and which OpenAI model they
default to.
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from .client_identity import hash_identifier, resolve_client_ip
from .outcome_logger import OutcomeLogger
from config.logging_config import get_logger
from config.settings import Settings, settings
from models.models import LogEvent
from translator.pipeline import TranslationPipeline
from translator.providers import ChatCompletionProvider, build_providers
from translator.rate_limiter import SlidingWindowRateLimiter

logger = get_logger(__name__)

outcome_logger = OutcomeLogger()


class Deployment:
    """Configuration source and limiter for one mount of the endpoint."""

    def __init__(
        self,
        name: str,
        default_openai_model: str,
        load_settings: Callable[[], Settings],
        cache_pipeline: bool,
    ):
        """
        Args:
            name: deployment label used in logs
            default_openai_model: model used when OPENAI_MODEL is unset
            load_settings: returns the settings for a request
            cache_pipeline: build the pipeline once instead of per request
        """
        self.name = name
        self.default_openai_model = default_openai_model
        self.load_settings = load_settings
        self.cache_pipeline = cache_pipeline
        self.rate_limiter: Optional[SlidingWindowRateLimiter] = None
        self._pipeline: Optional[TranslationPipeline] = None
        # one provider set per distinct credential/model configuration
        self._providers: Dict[Tuple, Dict[str, ChatCompletionProvider]] = {}

    def get_pipeline(self) -> TranslationPipeline:
        if self.cache_pipeline and self._pipeline is not None:
            return self._pipeline
        current = self.load_settings()
        if self.rate_limiter is None:
            self.rate_limiter = SlidingWindowRateLimiter(
                max_requests=current.rate_limit_max_requests,
                window_ms=current.rate_limit_window_ms,
                max_identifiers=current.rate_limit_max_identifiers,
            )
            logger.info(
                f"[{self.name}] rate limit {current.rate_limit_max_requests} requests "
                f"per {current.rate_limit_window_ms} ms"
            )
        pipeline = TranslationPipeline.from_settings(
            current,
            self.rate_limiter,
            self._providers_for(current),
        )
        if self.cache_pipeline:
            self._pipeline = pipeline
        return pipeline

    def _providers_for(self, current: Settings) -> Dict[str, ChatCompletionProvider]:
        key = (
            current.openai_api_key,
            current.openai_base_url,
            current.openai_model,
            current.gemini_api_key,
            current.gemini_model,
            current.gemini_base_url,
            current.request_timeout,
        )
        if key not in self._providers:
            self._providers[key] = build_providers(current, self.default_openai_model)
        return self._providers[key]

    async def aclose(self) -> None:
        """Close every provider client opened by this deployment."""
        for providers in self._providers.values():
            for provider in providers.values():
                await provider.aclose()
        self._providers.clear()
        self._pipeline = None


# Long-running server: settings read once at import.
app_deployment = Deployment(
    name="app",
    default_openai_model="gpt-4.1-nano",
    load_settings=lambda: settings,
    cache_pipeline=True,
)

# Functions-style handler: environment bindings re-read on every request.
functions_deployment = Deployment(
    name="functions",
    default_openai_model="gpt-4o-mini",
    load_settings=Settings,
    cache_pipeline=False,
)


def get_app_pipeline() -> TranslationPipeline:
    return app_deployment.get_pipeline()


def get_functions_pipeline() -> TranslationPipeline:
    return functions_deployment.get_pipeline()


def get_outcome_logger() -> OutcomeLogger:
    return outcome_logger


async def handle_translate(
    request: Request, pipeline: TranslationPipeline, outcome_log: OutcomeLogger
) -> JSONResponse:
    """Run the pipeline for one request and record its outcome."""
    started = time.monotonic()
    client_ip = resolve_client_ip(request.headers)
    result = await pipeline.run(client_ip, await request.body())
    outcome_log.emit(
        LogEvent(
            ip=hash_identifier(client_ip),
            duration_ms=int((time.monotonic() - started) * 1000),
            provider=result.provider,
            source=result.source,
            lang=result.lang or "unknown",
            rate_limited=result.rate_limited,
        )
    )
    return JSONResponse(
        content=result.payload,
        status_code=result.status_code,
        headers=result.headers,
    )


router = APIRouter(prefix="/api", tags=["translate"])
functions_router = APIRouter(prefix="/functions/api", tags=["translate"])


@router.post("/translate")
async def translate(
    request: Request,
    pipeline: TranslationPipeline = Depends(get_app_pipeline),
    outcome_log: OutcomeLogger = Depends(get_outcome_logger),
):
    """
    Translate text into emoji.

    Body: {"text": "..."}; only the first 100 characters are used.

    Returns:
        200 {"output", "source": "ai", "provider"} on success,
        200 {"output", "source": "local", "provider", "error": "ai_failed"} on fallback,
        400 {"error": "Missing text"} or {"error": "Invalid request"},
        429 {"error": "rate_limited"} with Retry-After
    """
    return await handle_translate(request, pipeline, outcome_log)


@functions_router.post("/translate")
async def translate_function(
    request: Request,
    pipeline: TranslationPipeline = Depends(get_functions_pipeline),
    outcome_log: OutcomeLogger = Depends(get_outcome_logger),
):
    """Functions-style mount of the translate endpoint."""
    return await handle_translate(request, pipeline, outcome_log)

"""FastAPI application serving pronunciation audio.

Endpoints:
    POST /tts          audio/mpeg for {word, ipa, phoneme?, bypass_cache?}
    POST /tts/report   record a bad pronunciation for {word, ipa, phoneme?}
    GET  /tts/stats    cache statistics
    GET  /status       process status

JSON responses use the envelope ``{"success", "message", "data"}``.
"""

import asyncio
import logging
import os
import time
from collections.abc import Collection
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..cache.errors import CacheWriteError
from ..cache.tiered import TieredAudioCache
from ..config import IpaspeakConfig, load_config
from ..providers import ProviderRegistry
from ..tts.errors import TTSAuthError, TTSError, TTSInputError
from ..tts.models import ReportRequest, SynthesisRequest
from ..tts.pipeline import PronunciationService
from .ratelimit import RateLimiter, RateLimits
from .schemas import Envelope, ReportBody, SynthesisBody

logger = logging.getLogger(__name__)


def envelope(
    status_code: int,
    success: bool,
    message: str,
    data: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope(success=success, message=message, data=data).model_dump(),
        headers=headers,
    )


def client_identity(request: Request, trusted_proxies: Collection[str] = ()) -> str:
    """Address that rate limits are keyed on.

    The first X-Forwarded-For address is used only when the peer is a
    trusted proxy; otherwise the peer host, else "unknown".
    """
    peer = request.client.host if request.client and request.client.host else None
    if peer is not None and peer in trusted_proxies:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return peer or "unknown"


def _rate_limited(limiter: RateLimiter, identity: str) -> JSONResponse:
    retry_after = max(1, limiter.retry_after(identity))
    return envelope(
        429,
        False,
        "Too many requests, try again later",
        {"retry_after": retry_after},
        headers={"Retry-After": str(retry_after)},
    )


def build_service(config: IpaspeakConfig) -> PronunciationService:
    """Create the pronunciation service from configuration."""
    synthesis = config.synthesis
    options: dict[str, Any] = {}
    if synthesis.provider == "google":
        options = {
            "language_code": synthesis.language_code,
            "speaking_rate": synthesis.speaking_rate,
        }
    provider = ProviderRegistry.get_instance(synthesis.provider, **options)

    cache = TieredAudioCache(
        cache_dir=config.cache.server_dir,
        memory_entries=config.cache.memory_entries,
        ttl_seconds=config.cache.server_ttl_seconds,
    )
    return PronunciationService(
        cache=cache,
        provider=provider,
        voice=synthesis.voice,
        provider_name=synthesis.provider,
    )


async def _sweep_loop(
    service: PronunciationService, limits: RateLimits, interval: float
) -> None:
    """Periodically drop expired cache entries and stale rate windows."""
    while True:
        await asyncio.sleep(interval)
        try:
            removed = await service.cache.prune_expired()
            windows = limits.synthesis.prune() + limits.report.prune()
            logger.debug(
                f"Sweep removed {removed} cache entries and {windows} rate windows"
            )
        except Exception as e:
            logger.warning(f"Cache sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create service state at startup and tear it down at shutdown."""
    state = app.state

    if getattr(state, "service", None) is None or getattr(state, "limits", None) is None:
        config = state.config or load_config()
        if getattr(state, "service", None) is None:
            state.service = build_service(config)
        if getattr(state, "limits", None) is None:
            state.limits = RateLimits.create(
                synthesis_per_window=config.rate_limit.synthesis_per_window,
                report_per_window=config.rate_limit.report_per_window,
                window_seconds=config.rate_limit.window_seconds,
            )
        if state.sweep_interval is None:
            state.sweep_interval = config.cache.sweep_interval
        if state.trusted_proxies is None:
            state.trusted_proxies = frozenset(config.http.trusted_proxies)

    if state.trusted_proxies is None:
        state.trusted_proxies = frozenset()
    state.started_at = time.time()

    sweep_task: asyncio.Task | None = None
    if state.sweep_interval and state.sweep_interval > 0:
        sweep_task = asyncio.create_task(
            _sweep_loop(state.service, state.limits, state.sweep_interval)
        )
        logger.info(f"Cache sweep every {state.sweep_interval}s")

    logger.info(f"ipaspeak server ready (provider: {state.service.provider_name})")

    try:
        yield
    finally:
        if sweep_task:
            sweep_task.cancel()
            try:
                await sweep_task
            except asyncio.CancelledError:
                pass
        logger.info("ipaspeak server stopped")


def create_app(
    service: PronunciationService | None = None,
    limits: RateLimits | None = None,
    config: IpaspeakConfig | None = None,
    sweep_interval: float | None = None,
    trusted_proxies: Collection[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Pronunciation service; built from config at startup if omitted
        limits: Rate limiters; built from config at startup if omitted
        config: Configuration; loaded from disk at startup if needed and omitted
        sweep_interval: Seconds between expiry sweeps, overriding config
        trusted_proxies: Peers whose X-Forwarded-For is honoured, overriding config
    """
    if trusted_proxies is None and config is not None:
        trusted_proxies = config.http.trusted_proxies

    app = FastAPI(title="ipaspeak", version=__version__, lifespan=lifespan)
    app.state.service = service
    app.state.limits = limits
    app.state.config = config
    app.state.sweep_interval = sweep_interval
    app.state.trusted_proxies = (
        frozenset(trusted_proxies) if trusted_proxies is not None else None
    )
    app.state.started_at = time.time()

    _register_exception_handlers(app)
    _register_routes(app)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
            for err in exc.errors()
        )
        logger.warning(f"Rejected invalid request to {request.url.path}: {details}")
        return envelope(422, False, f"Invalid request: {details}")

    @app.exception_handler(ValueError)
    async def value_error(request: Request, exc: ValueError):
        logger.warning(f"Rejected invalid request to {request.url.path}: {exc}")
        return envelope(422, False, f"Invalid request: {exc}")

    @app.exception_handler(TTSError)
    async def synthesis_error(request: Request, exc: TTSError):
        if isinstance(exc, TTSInputError):
            status_code = 422
        elif isinstance(exc, TTSAuthError):
            status_code = 502
        elif exc.retryable:
            status_code = 503
        else:
            status_code = 502
        logger.error(f"Synthesis failed ({status_code}): {exc}")
        return envelope(
            status_code,
            False,
            "Pronunciation unavailable, try again later"
            if exc.retryable
            else "Pronunciation unavailable",
            {"retryable": exc.retryable, "error": type(exc).__name__},
        )

    @app.exception_handler(CacheWriteError)
    async def cache_write_error(request: Request, exc: CacheWriteError):
        logger.error(f"Cache write failed on {request.url.path}: {exc}")
        return envelope(
            500,
            False,
            "Audio cache unavailable",
            {"retryable": True, "error": type(exc).__name__},
        )


def _register_routes(app: FastAPI) -> None:
    @app.post("/tts")
    async def synthesize(body: SynthesisBody, request: Request):
        state = request.app.state
        identity = client_identity(request, state.trusted_proxies or ())
        if not state.limits.synthesis.check(identity):
            return _rate_limited(state.limits.synthesis, identity)

        result = await state.service.synthesize(
            SynthesisRequest(
                word=body.word,
                ipa=body.ipa,
                phoneme=body.phoneme,
                part_of_speech=body.part_of_speech,
                bypass_cache=body.bypass_cache,
            )
        )
        return Response(
            content=result.audio,
            media_type="audio/mpeg",
            headers={
                "X-Cache": result.cache_status.value,
                "X-Cache-Key": str(result.key),
            },
        )

    @app.post("/tts/report")
    async def report(body: ReportBody, request: Request):
        state = request.app.state
        identity = client_identity(request, state.trusted_proxies or ())
        if not state.limits.report.check(identity):
            return _rate_limited(state.limits.report, identity)

        result = await state.service.report(
            ReportRequest(word=body.word, ipa=body.ipa, phoneme=body.phoneme)
        )
        return envelope(
            200,
            True,
            "Report recorded, the next playback regenerates the audio",
            {"key": str(result.key), "drop_local": True},
        )

    @app.get("/tts/stats")
    async def stats(request: Request):
        data = await request.app.state.service.stats()
        return envelope(200, True, "Cache statistics", data)

    @app.get("/status")
    async def status(request: Request):
        state = request.app.state
        return envelope(
            200,
            True,
            "Server running",
            {
                "pid": os.getpid(),
                "uptime": time.time() - state.started_at,
                "provider": state.service.provider_name,
                "version": __version__,
            },
        )


def run_server(
    host: str | None = None,
    port: int | None = None,
    config: IpaspeakConfig | None = None,
    log_level: str = "info",
) -> None:
    """Run the server with uvicorn until interrupted."""
    import uvicorn

    config = config or load_config()
    app = create_app(config=config)
    uvicorn.run(
        app,
        host=host or config.http.host,
        port=port or config.http.port,
        log_level=log_level,
    )

"""HTTP API for the generation pipeline."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool

from app.config import Settings, settings as default_settings
from src.backends.generic import GenericEndpointBackend
from src.backends.huggingface import HuggingFaceBackend
from src.backends.openai_images import OpenAIImagesBackend
from src.backends.placeholder import PlaceholderGenerator
from src.backends.replicate import ReplicateBackend
from src.backends.stability import StabilityBackend
from src.core.errors import GenerationError, QuotaExceededError
from src.core.image_generator import GenerationOrchestrator
from src.core.parameters import ParameterNormalizer
from src.core.pipeline import ANONYMOUS_CLIENT, GenerationPipeline
from src.core.registry import PRESETS, ModelRegistry, list_styles
from src.utils.health import HealthChecker
from src.utils.history_manager import GenerationHistory
from src.utils.image_utils import ImageNormalizer
from src.utils.prompt_enhancer import NegativePromptSynthesizer, get_prompt_enhancer
from src.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_pipeline(
    settings: Settings,
    registry: Optional[ModelRegistry] = None
) -> GenerationPipeline:
    """Wire the generation pipeline from settings.

    Args:
        settings: Application settings
        registry: Model registry (built from settings if omitted)

    Returns:
        Ready-to-use GenerationPipeline
    """
    registry = registry or ModelRegistry.from_overrides(settings.model_overrides())
    timeout = settings.timeout

    orchestrator = GenerationOrchestrator(
        registry,
        adapters=[
            StabilityBackend(timeout=timeout),
            OpenAIImagesBackend(timeout=timeout),
            GenericEndpointBackend(timeout=timeout),
            ReplicateBackend(timeout=timeout),
            HuggingFaceBackend(timeout=timeout),
        ],
        placeholder=PlaceholderGenerator(),
        max_attempts=settings.max_retries,
        retry_backoff=settings.retry_backoff,
    )

    return GenerationPipeline(
        orchestrator=orchestrator,
        normalizer=ParameterNormalizer(get_prompt_enhancer(), NegativePromptSynthesizer()),
        image_normalizer=ImageNormalizer(timeout=timeout),
        limiter=RateLimiter(
            max_requests=settings.effective_rate_limit(),
            window_seconds=settings.rate_limit_window,
        ),
    )


def _error_response(error: GenerationError) -> JSONResponse:
    headers = {}
    if isinstance(error, QuotaExceededError) and error.retry_after is not None:
        headers["Retry-After"] = str(error.retry_after)
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_payload(),
        headers=headers,
    )


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[GenerationPipeline] = None,
    history: Optional[GenerationHistory] = None
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Application settings (global settings if omitted)
        pipeline: Generation pipeline (built from settings if omitted)
        history: History store (a bounded in-memory store if omitted)

    Returns:
        FastAPI app
    """
    settings = settings or default_settings
    pipeline = pipeline or create_pipeline(settings)
    history = history or GenerationHistory(max_history=settings.max_history_items)
    registry = pipeline.orchestrator.registry
    health = HealthChecker(registry)

    app = FastAPI(title="AI Art Generator")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.pipeline = pipeline
    app.state.history = history
    app.state.health = health

    @app.get("/health")
    def health_check():
        return health.check_health().to_dict()

    @app.post("/api/generate")
    async def generate(request: Request):
        client_id = request.client.host if request.client else ANONYMOUS_CLIENT
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        try:
            result = await run_in_threadpool(
                pipeline.generate_from_payload, payload, client_id
            )
        except GenerationError as e:
            health.record_request(success=False)
            return _error_response(e)
        except Exception as e:
            logger.exception(f"Generation error: {e}")
            health.record_request(success=False)
            return JSONResponse(
                status_code=500,
                content={"error": "internal_error", "message": "Internal server error"},
            )

        history.add(result)
        health.record_request(success=True, placeholder=result.metadata.placeholder)
        return result.to_response()

    @app.get("/api/history")
    def get_history(limit: int = 20):
        return {"success": True, "history": history.export_metadata(limit)}

    @app.get("/api/history/{result_id}")
    def get_history_item(result_id: str):
        result = history.get_by_id(result_id)
        if result is None:
            return JSONResponse(
                status_code=404,
                content={"error": "not_found", "message": f"No generation with id {result_id}"},
            )
        return result.to_response()

    @app.get("/api/styles")
    def get_styles():
        return {
            "styles": [
                {
                    "id": style.id,
                    "name": style.name,
                    "modifiers": list(style.display_modifiers),
                    "negative_prompt": style.negative_prompt,
                    "settings": style.default_sampling.model_dump(),
                }
                for style in list_styles()
            ]
        }

    @app.get("/api/models")
    def get_models():
        return {"models": [profile.public_info() for profile in registry.profiles()]}

    @app.get("/api/presets")
    def get_presets():
        return {"presets": {category: list(prompts) for category, prompts in PRESETS.items()}}

    logger.info(f"API created, rate limit {settings.effective_rate_limit()}/{settings.rate_limit_window}s")
    return app

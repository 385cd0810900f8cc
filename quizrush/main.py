import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from quizrush.config import Settings
from quizrush.errors import register_error_handlers
from quizrush.middleware.rate_limit import limiter
from quizrush.routers import admin as admin_router
from quizrush.routers import export as export_router
from quizrush.routers import ocr as ocr_router
from quizrush.routers import puzzles as puzzles_router
from quizrush.routers import quiz as quiz_router
from quizrush.routers import trivia as trivia_router
from quizrush.services.identity import IdentityProvider
from quizrush.services.llm import LLMClient
from quizrush.services.logging import configure_logging, log_api_request
from quizrush.services.monitoring import REQUEST_COUNT, REQUEST_DURATION, get_metrics, health_checker
from quizrush.services.ocr import OCRClient
from quizrush.services.trivia_store import TriviaStore

logger = structlog.get_logger()

UNMATCHED_ENDPOINT = "unmatched"


def metrics_endpoint(request: Request) -> str:
    """Route template for metric labels; unmatched paths share one label"""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ENDPOINT)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_started", model=settings.openai_model, llm_configured=app.state.llm_client.configured)
        yield
        await app.state.llm_client.close()

    app = FastAPI(
        title="QuizRush",
        description="AI quiz and puzzle generation backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Provider handles, injected through quizrush.dependencies
    app.state.settings = settings
    app.state.llm_client = LLMClient(settings.openai_api_key, settings.openai_model, settings.openai_timeout)
    app.state.ocr_client = OCRClient(
        settings.azure_ocr_endpoint,
        settings.azure_ocr_key,
        poll_interval=settings.ocr_poll_interval,
        max_attempts=settings.ocr_max_attempts,
    )
    app.state.identity_provider = IdentityProvider(settings.firebase_service_account)
    app.state.trivia_store = TriviaStore(settings.redis_url, default_expire=settings.trivia_ttl_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    register_error_handlers(app)

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        log_api_request(request)

        response = await call_next(request)

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        endpoint = metrics_endpoint(request)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(process_time)

        response.response_time = process_time
        log_api_request(request, response)
        return response

    # ----------------- Health & Monitoring Endpoints -----------------
    @app.get("/")
    async def index():
        return {
            "status": "OK",
            "message": "QuizRush Backend is running!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint"""
        return health_checker.get_health_status(request.app.state.trivia_store, request.app.state.llm_client)

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        return get_metrics()

    # ----------------- Routers -----------------
    app.include_router(quiz_router.router)
    app.include_router(export_router.router)
    app.include_router(puzzles_router.router)
    app.include_router(trivia_router.router)
    app.include_router(ocr_router.router)
    app.include_router(admin_router.router)

    return app


app = create_app()

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.types import Scope

from garden_gateway.api import plants, species, tasks, weather
from garden_gateway.auth import IdentityVerifier
from garden_gateway.config import Settings, get_settings
from garden_gateway.errors import GatewayError
from garden_gateway.logging_config import configure_logging
from garden_gateway.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from garden_gateway.ratelimit import build_limiter, rate_limit_exceeded_handler
from garden_gateway.services.data_store import SupabaseDataStore
from garden_gateway.services.search_cache import SearchCache
from garden_gateway.services.species_client import SpeciesLookupClient
from garden_gateway.services.user_plants import UserPlantStore
from garden_gateway.services.user_tasks import UserTaskStore
from garden_gateway.services.weather_client import WeatherClient


logger = structlog.get_logger(__name__)

WEATHER_CONNECT_SOURCE = "https://api.openweathermap.org"
TREFLE_CONNECT_SOURCE = "https://trefle.io"


class ClientShellFiles(StaticFiles):
    """Static files that fall back to index.html for client-side routes."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404 or path == "api" or path.startswith("api/"):
                raise
            return await super().get_response("index.html", scope)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            error=type(exc).__name__,
            detail=exc.detail,
            path=request.url.path,
            exc_info=exc.__cause__ or False,
        )
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.public_message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    msg = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"msg": msg}, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("invalid_request", path=request.url.path, errors=exc.errors())
    return JSONResponse(status_code=400, content={"msg": "Invalid request body"})


def create_app(
    settings: Settings | None = None,
    *,
    identity_verifier: IdentityVerifier | None = None,
    data_store: SupabaseDataStore | None = None,
    species_client: SpeciesLookupClient | None = None,
    weather_client: WeatherClient | None = None,
    search_cache: SearchCache | None = None,
    rate_limiter: Limiter | None = None,
) -> FastAPI:
    if settings is None:
        settings = get_settings()
    settings.validate()
    configure_logging(settings.log_level, json_logs=settings.use_json_logs)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("startup", app=settings.app_name, environment=settings.environment, **settings.presence_report())
        yield
        logger.info("shutdown", app=settings.app_name)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    if data_store is None:
        data_store = SupabaseDataStore(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout_seconds=settings.persistence_timeout_seconds,
        )
    if identity_verifier is None:
        identity_verifier = IdentityVerifier(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout_seconds=settings.auth_timeout_seconds,
        )
    if search_cache is None:
        search_cache = SearchCache(ttl_seconds=settings.search_cache_ttl_seconds)
    if species_client is None:
        species_client = SpeciesLookupClient(
            settings.trefle_api_token,
            base_url=settings.trefle_base_url,
            timeout_seconds=settings.species_timeout_seconds,
        )
    if weather_client is None:
        weather_client = WeatherClient(
            settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout_seconds=settings.weather_timeout_seconds,
        )
    if rate_limiter is None:
        rate_limiter = build_limiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)

    app.state.settings = settings
    app.state.identity_verifier = identity_verifier
    app.state.search_cache = search_cache
    app.state.species_client = species_client
    app.state.weather_client = weather_client
    app.state.plant_store = UserPlantStore(data_store)
    app.state.task_store = UserTaskStore(data_store)
    app.state.limiter = rate_limiter

    # Starlette runs the last-added middleware first.
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        connect_sources=[settings.supabase_url, WEATHER_CONNECT_SOURCE, TREFLE_CONNECT_SOURCE],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    rate_limiter.exempt(health)

    app.include_router(species.router, prefix="/api", tags=["species"])
    app.include_router(plants.router, prefix="/api/user-plants", tags=["plants"])
    app.include_router(tasks.router, prefix="/api/user-tasks", tags=["tasks"])
    app.include_router(weather.router, prefix="/api/weather", tags=["weather"])

    static_dir = Path(settings.static_dir)
    if (static_dir / "index.html").exists():
        app.mount("/", ClientShellFiles(directory=str(static_dir), html=True), name="client")

    return app


def run() -> None:
    import uvicorn

    uvicorn.run(
        "garden_gateway.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )

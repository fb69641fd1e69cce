# ABOUTME: ASGI web entry point exposing the weather, search, reverse-geocode, prayer-times and calendar API.
# ABOUTME: Builds a Starlette app whose lifespan loads the city directory and cache before serving traffic.

import contextlib
import logging
import time
from datetime import datetime, timezone

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from src.config import Settings
from src.deps import AppDeps, build_deps
from src.errors import UpstreamError, WeatherAppError
from src.orchestrator import (
    get_calendar,
    get_prayer_times,
    handle_weather_request,
    reverse_geocode_place,
    search_cities,
)

logger = logging.getLogger(__name__)

_SECURITY_HEADERS = [
    (b"x-content-type-options", b"nosniff"),
    (b"referrer-policy", b"no-referrer-when-downgrade"),
    (b"permissions-policy", b"geolocation=(self)"),
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


class SecurityHeadersMiddleware:
    """ASGI middleware that appends static security headers to every HTTP response."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + _SECURITY_HEADERS
            await send(message)

        await self.app(scope, receive, send_with_headers)


def _deps(request: Request) -> AppDeps:
    return request.app.state.deps


async def weather(request: Request) -> JSONResponse:
    result = await handle_weather_request(
        _deps(request), request.query_params.get("lat"), request.query_params.get("lon")
    )
    return JSONResponse(result.to_json())


async def search(request: Request) -> JSONResponse:
    results = search_cities(_deps(request), request.query_params.get("q"))
    return JSONResponse([r.model_dump() for r in results])


async def reverse_geocode(request: Request) -> JSONResponse:
    place = await reverse_geocode_place(
        _deps(request), request.query_params.get("lat"), request.query_params.get("lon")
    )
    return JSONResponse(place.model_dump(by_alias=True))


async def prayer_times(request: Request) -> JSONResponse:
    data = await get_prayer_times(_deps(request), request.query_params.get("lat"), request.query_params.get("lon"))
    return JSONResponse(data)


async def calendar(request: Request) -> JSONResponse:
    return JSONResponse(await get_calendar(_deps(request), request.query_params.get("month")))


async def health(request: Request) -> JSONResponse:
    deps = _deps(request)
    return JSONResponse(
        {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at),
            "environment": deps.settings.environment,
            "cities": len(deps.directory),
            "cache": deps.cache.backend_name,
        }
    )


async def handle_app_error(request: Request, exc: WeatherAppError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s (status=%s)", request.url.path, exc.status)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


async def handle_not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        {"error": "Not Found", "message": f"API endpoint {request.method} {request.url.path} does not exist"},
        status_code=404,
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse({"error": "Internal Server Error"}, status_code=500)


def create_app(settings: Settings | None = None, deps: AppDeps | None = None) -> Starlette:
    """Build the ASGI app.

    Pass `deps` to reuse pre-built dependencies (tests do this); otherwise they are built
    from `settings` during startup and closed on shutdown.
    """
    settings = settings or (deps.settings if deps is not None else Settings.from_env())
    configure_logging(settings.log_level)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        owned = deps is None
        app.state.deps = deps if deps is not None else await build_deps(settings)
        app.state.started_at = time.monotonic()
        logger.info(
            "Serving with %d cities and %s cache", len(app.state.deps.directory), app.state.deps.cache.backend_name
        )
        try:
            yield
        finally:
            if owned:
                await app.state.deps.aclose()

    middleware = [Middleware(SecurityHeadersMiddleware)]
    if settings.cors_allowed_origins:
        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_allowed_origins,
                allow_credentials=True,
                allow_methods=["GET", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization"],
            )
        )

    return Starlette(
        routes=[
            Route("/api/health", health),
            Route("/api/weather", weather),
            Route("/api/search", search),
            Route("/api/reverse-geocode", reverse_geocode),
            Route("/api/prayertimes", prayer_times),
            Route("/api/calendar", calendar),
        ],
        middleware=middleware,
        exception_handlers={
            WeatherAppError: handle_app_error,
            404: handle_not_found,
            Exception: handle_unexpected,
        },
        lifespan=lifespan,
    )


app = create_app()

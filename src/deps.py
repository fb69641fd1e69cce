# ABOUTME: Dependency container for request handlers using Pydantic BaseModel.
# ABOUTME: Holds the shared httpx.AsyncClient, cache store, city directory and settings for the app lifetime.

import httpx
from pydantic import BaseModel, ConfigDict

from src.cache import CacheStore, build_cache_store
from src.cities import CityDirectory
from src.config import Settings


class AppDeps(BaseModel):
    """Dependencies handed to every orchestrator call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings
    http_client: httpx.AsyncClient
    cache: CacheStore
    directory: CityDirectory

    async def aclose(self) -> None:
        await self.http_client.aclose()
        await self.cache.aclose()


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared httpx client for all upstream providers.

    Requests are bounded by the configured timeout and are never retried.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.upstream_timeout),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "application/json, text/plain, */*",
        },
    )


async def build_deps(settings: Settings) -> AppDeps:
    """Load the city directory and pick a cache backend before serving traffic."""
    return AppDeps(
        settings=settings,
        http_client=create_http_client(settings),
        cache=await build_cache_store(settings.redis_url),
        directory=CityDirectory.load(settings.cities_path, settings.nearest_city_max_km),
    )

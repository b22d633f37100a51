"""
Service providers for request handlers.

Clients are built on first use so that missing backend credentials surface as a
ConfigurationError on the request that needs them. Tests override these
through app.dependency_overrides.
"""
from typing import Optional

import requests
from fastapi import Depends

from jobboard.core.config import settings
from jobboard.services.auth import IdentityClient
from jobboard.services.backend import BackendClient
from jobboard.services.cache import RevalidatingCache
from jobboard.services.job_mutations import JobMutationService
from jobboard.services.jobs import JobQueryService

_http = requests.Session()
_cache: Optional[RevalidatingCache] = None


def get_backend_client() -> BackendClient:
    return BackendClient.from_settings(settings, session=_http)


def get_identity_client() -> IdentityClient:
    return IdentityClient.from_settings(settings, session=_http)


def get_cache() -> RevalidatingCache:
    global _cache
    if _cache is None:
        _cache = RevalidatingCache(
            dedupe_interval=settings.cache_dedupe_seconds,
            max_workers=settings.cache_workers,
            enabled=settings.enable_caching,
            max_entries=settings.cache_max_entries,
        )
    return _cache


def shutdown_cache() -> None:
    global _cache
    if _cache is not None:
        _cache.shutdown()
        _cache = None


def get_job_queries(
    backend: BackendClient = Depends(get_backend_client),
    cache: RevalidatingCache = Depends(get_cache),
) -> JobQueryService:
    return JobQueryService(backend, cache)


def get_job_mutations(
    backend: BackendClient = Depends(get_backend_client),
    cache: RevalidatingCache = Depends(get_cache),
) -> JobMutationService:
    return JobMutationService(backend, cache)

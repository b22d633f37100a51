"""
Listing reads: browse (public or owner-scoped), filter options, detail by slug.
"""
import logging
import math
from typing import Any, Callable, List, Optional

from jobboard.models.job import Job, JobRecord, JobStatus, JobType
from jobboard.schemas.job import JobFilterOptions, JobListQuery, JobPage
from jobboard.services.backend import BackendClient
from jobboard.services.cache import CacheKey, RevalidatingCache

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"
LISTING_ORDER = ["published_at.desc.nullslast", "created_at.desc"]


def to_job(row: dict) -> Job:
    return Job.from_record(JobRecord.model_validate(row))


def auth_tag(access_token: Optional[str]) -> str:
    return "auth" if access_token else "anon"


class JobQueryService:
    def __init__(self, backend: BackendClient, cache: Optional[RevalidatingCache] = None):
        self.backend = backend
        self.cache = cache

    def _cached(self, key: CacheKey, fetcher: Callable[[], Any]) -> Any:
        if self.cache is None:
            return fetcher()
        return self.cache.get(key, fetcher)

    def list_jobs(self, query: JobListQuery, access_token: Optional[str] = None) -> JobPage:
        """
        One page of listings ordered by publish time (nulls last), then creation time.
        Public queries only see published listings; owner-scoped queries see every
        status of query.poster_id.
        """
        if query.owner_scope:
            if not query.poster_id:
                raise ValueError("Owner-scoped queries require poster_id")
            key = ("jobs/manage", query.poster_id, query.page, query.page_size,
                   query.location, query.job_type, auth_tag(access_token))
        else:
            key = ("jobs/published", query.page, query.page_size, query.location,
                   query.job_type, query.poster_id, auth_tag(access_token))
        return self._cached(key, lambda: self._fetch_page(query, access_token))

    def _fetch_page(self, query: JobListQuery, access_token: Optional[str]) -> JobPage:
        filters = {
            "location": query.location,
            "job_type": query.job_type,
            "poster_id": query.poster_id,
        }
        if not query.owner_scope:
            filters["job_status"] = JobStatus.PUBLISHED

        result = self.backend.select(
            JOBS_TABLE,
            filters=filters,
            order=LISTING_ORDER,
            limit=query.page_size,
            offset=query.offset,
            count=True,
            access_token=access_token,
        )
        total = result.total or 0
        return JobPage(
            items=[to_job(row) for row in result.rows],
            total=total,
            page=query.page,
            page_size=query.page_size,
            total_pages=max(1, math.ceil(total / query.page_size)),
        )

    def filter_options(
        self,
        poster_id: Optional[str] = None,
        owner_scope: bool = False,
        access_token: Optional[str] = None,
    ) -> JobFilterOptions:
        """Distinct locations and job types present in the matching listings."""
        if owner_scope:
            key = ("jobs/manage/filters", poster_id, auth_tag(access_token))
        else:
            key = ("jobs/published/filters", poster_id)

        def fetch() -> JobFilterOptions:
            filters = {"poster_id": poster_id}
            if not owner_scope:
                filters["job_status"] = JobStatus.PUBLISHED
            rows = self.backend.select(
                JOBS_TABLE, columns="location,job_type", filters=filters, access_token=access_token,
            ).rows
            locations = sorted({row["location"] for row in rows if row.get("location")})
            job_types = sorted({JobType(row["job_type"]) for row in rows if row.get("job_type")},
                               key=lambda t: list(JobType).index(t))
            return JobFilterOptions(locations=locations, job_types=job_types)

        return self._cached(key, fetch)

    def get_published_by_slug(self, slug: str) -> Optional[Job]:
        if not slug:
            return None

        def fetch() -> Optional[Job]:
            rows = self.backend.select(
                JOBS_TABLE,
                filters={"slug": slug, "job_status": JobStatus.PUBLISHED},
                limit=1,
            ).rows
            return to_job(rows[0]) if rows else None

        return self._cached(("job", slug), fetch)

    def get_owned_by_slug(self, slug: str, owner_id: str, access_token: Optional[str] = None) -> Optional[Job]:
        """Any status, but only when owner_id posted it."""
        if not slug or not owner_id:
            return None

        def fetch() -> Optional[Job]:
            rows = self.backend.select(
                JOBS_TABLE, filters={"slug": slug}, limit=1, access_token=access_token,
            ).rows
            if not rows:
                return None
            job = to_job(rows[0])
            if job.poster_id != owner_id:
                logger.info("Owner-scoped fetch by non-owner", extra={"slug": slug})
                return None
            return job

        return self._cached(("job-owner", slug, owner_id), fetch)

    def published_slugs(self) -> List[str]:
        def fetch() -> List[str]:
            rows = self.backend.select(
                JOBS_TABLE, columns="slug", filters={"job_status": JobStatus.PUBLISHED},
            ).rows
            return [row["slug"] for row in rows if isinstance(row.get("slug"), str) and row["slug"]]

        return self._cached(("jobs/slugs",), fetch)

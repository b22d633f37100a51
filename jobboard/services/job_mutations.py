"""
Listing writes: create, update, delete.

Translates the client-shaped JobInput into storage column names, applies the
publish-timestamp rule, and invalidates cached reads after each write.
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from jobboard.core.exceptions import AccessDeniedError, BackendRequestError
from jobboard.models.job import Job, JobStatus
from jobboard.schemas.job import JobInput
from jobboard.services.backend import BackendClient
from jobboard.services.cache import RevalidatingCache
from jobboard.services.jobs import JOBS_TABLE, to_job

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def generate_slug(title: str, company_name: str) -> str:
    base = "-".join(part for part in (slugify(title), slugify(company_name)) if part) or "listing"
    return f"{base}-{uuid.uuid4().hex[:6]}"


def null_if_empty(value: Optional[str]) -> Optional[str]:
    return value if value and value.strip() else None


def resolve_published_at(
    status: JobStatus,
    publish_immediately: bool = False,
    requested: Optional[datetime] = None,
    previous: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """published_at is set iff the listing is published."""
    if status != JobStatus.PUBLISHED:
        return None
    now = now or datetime.now(timezone.utc)
    if publish_immediately:
        return now
    return requested or previous or now


def to_record_payload(job_in: JobInput, published_at: Optional[datetime]) -> Dict[str, Any]:
    return {
        "title": job_in.title,
        "company_name": job_in.company_name,
        "location": job_in.location,
        "job_type": job_in.job_type.value,
        "job_status": job_in.job_status.value,
        "overview": null_if_empty(job_in.overview),
        "description": null_if_empty(job_in.description),
        "responsibilities": job_in.responsibilities,
        "requirements": job_in.requirements,
        "benefits": job_in.benefits,
        "about_company": null_if_empty(job_in.about_company),
        "application_url": null_if_empty(job_in.application_url),
        "application_email": null_if_empty(job_in.application_email),
        "salary_min": job_in.salary_min,
        "salary_max": job_in.salary_max,
        "salary_currency": null_if_empty(job_in.salary_currency),
        "tags": job_in.tags,
        "published_at": published_at.isoformat() if published_at else None,
    }


class JobMutationService:
    def __init__(self, backend: BackendClient, cache: Optional[RevalidatingCache] = None):
        self.backend = backend
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            # "job" also covers "jobs/..." keys
            self.cache.invalidate("job")

    @staticmethod
    def _single(rows: list, action: str) -> Job:
        if not rows:
            # Row-level policy filtered the write out
            raise BackendRequestError(404, "Not Found", f"No listing was returned after {action}")
        return to_job(rows[0])

    def create(self, job_in: JobInput, poster_id: str, access_token: Optional[str] = None) -> Job:
        published_at = resolve_published_at(
            job_in.job_status, job_in.publish_immediately, job_in.published_at,
        )
        payload = to_record_payload(job_in, published_at)
        payload["poster_id"] = poster_id
        payload["slug"] = generate_slug(job_in.title, job_in.company_name)

        try:
            rows = self.backend.insert(JOBS_TABLE, payload, access_token)
        except BackendRequestError as e:
            if e.status == 403:
                raise AccessDeniedError("You can only post listings under your own account") from e
            raise
        job = self._single(rows, "create")
        self._invalidate()
        logger.info("Listing created", extra={"job_id": job.id, "slug": job.slug, "status": job.job_status.value})
        return job

    def update(self, job: Job, job_in: JobInput, access_token: Optional[str] = None) -> Job:
        """Full update; poster_id and slug are never rewritten."""
        published_at = resolve_published_at(
            job_in.job_status, job_in.publish_immediately, job_in.published_at, job.published_at,
        )
        payload = to_record_payload(job_in, published_at)

        updated = self._single(
            self.backend.update(JOBS_TABLE, payload, {"id": job.id}, access_token), "update",
        )
        self._invalidate()
        logger.info("Listing updated", extra={"job_id": job.id, "status": updated.job_status.value})
        return updated

    def delete(self, job_id: str, access_token: Optional[str] = None) -> None:
        self.backend.delete(JOBS_TABLE, {"id": job_id}, access_token)
        self._invalidate()
        logger.info("Listing deleted", extra={"job_id": job_id})

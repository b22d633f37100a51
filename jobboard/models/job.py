"""
Job listing models.

`JobRecord` mirrors a row of the hosted `jobs` table (storage column names);
`Job` is the shape served to API consumers, serialised with camelCase keys.
"""
import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class JobType(str, enum.Enum):
    FULL_TIME = "Full-Time"
    PART_TIME = "Part-Time"
    CONTRACT = "Contract"


class JobStatus(str, enum.Enum):
    """
    Listing lifecycle.
    Only PUBLISHED listings are visible in public browse and detail views.
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


FALLBACK_POSTED_LABELS = {
    JobStatus.DRAFT: "Draft — not yet published",
    JobStatus.ARCHIVED: "Archived",
}

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
MONTH = 30 * DAY


class JobRecord(BaseModel):
    id: str
    slug: Optional[str] = None
    title: str
    company_name: str
    location: str
    job_type: JobType
    job_status: JobStatus
    overview: Optional[str] = None
    description: Optional[str] = None
    responsibilities: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    about_company: Optional[str] = None
    application_url: Optional[str] = None
    application_email: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    poster_id: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_currency: Optional[str] = None
    tags: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None


def _first_set(*values: Optional[str]) -> str:
    """First value that is not None; an empty string counts as set."""
    return next((v for v in values if v is not None), "")


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_published_label(published: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Human-readable age of a published listing ("Published 3 days ago")."""
    if published is None:
        return "Published"
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    elapsed = (now - published).total_seconds()
    if elapsed < MINUTE:
        return "Published moments ago"
    if elapsed < HOUR:
        return f"Published {_plural(int(elapsed // MINUTE), 'minute')} ago"
    if elapsed < DAY:
        return f"Published {_plural(int(elapsed // HOUR), 'hour')} ago"
    if elapsed < MONTH:
        return f"Published {_plural(int(elapsed // DAY), 'day')} ago"
    return f"Published on {published.strftime('%b')} {published.day}, {published.year}"


class Job(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    slug: str
    title: str
    company_name: str
    location: str
    job_type: JobType
    job_status: JobStatus
    overview: str = ""
    description: str = ""
    responsibilities: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    about_company: str = ""
    application_url: Optional[str] = None
    application_email: Optional[str] = None
    published_at: Optional[datetime] = None
    posted_on: str
    created_at: datetime
    updated_at: datetime
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_currency: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    poster_id: str

    @computed_field(alias="applyLink")
    @property
    def apply_link(self) -> Optional[str]:
        if self.application_url:
            return self.application_url
        if self.application_email:
            return f"mailto:{self.application_email}"
        return None

    @property
    def is_published(self) -> bool:
        return self.job_status == JobStatus.PUBLISHED

    @classmethod
    def from_record(cls, record: JobRecord, now: Optional[datetime] = None) -> "Job":
        if record.job_status == JobStatus.PUBLISHED:
            posted_on = format_published_label(record.published_at or record.created_at, now)
        else:
            posted_on = FALLBACK_POSTED_LABELS.get(record.job_status, "Published")

        return cls(
            id=record.id,
            slug=record.slug or "",
            title=record.title,
            company_name=record.company_name,
            location=record.location,
            job_type=record.job_type,
            job_status=record.job_status,
            overview=_first_set(record.overview, record.description),
            description=_first_set(record.description, record.overview),
            responsibilities=record.responsibilities or [],
            requirements=record.requirements or [],
            benefits=record.benefits or [],
            about_company=record.about_company or "",
            application_url=record.application_url,
            application_email=record.application_email,
            published_at=record.published_at,
            posted_on=posted_on,
            created_at=record.created_at,
            updated_at=record.updated_at,
            salary_min=record.salary_min,
            salary_max=record.salary_max,
            salary_currency=record.salary_currency,
            tags=record.tags or [],
            poster_id=record.poster_id,
        )

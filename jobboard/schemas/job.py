import re
from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from jobboard.models.job import Job, JobStatus, JobType


def multiline_to_list(value: str) -> List[str]:
    return [line.strip() for line in value.split("\n") if line.strip()]


def csv_to_list(value: str) -> List[str]:
    return [segment.strip() for segment in re.split(r"[,|\n]", value) if segment.strip()]


class JobInput(BaseModel):
    """
    Create/edit form payload.
    Required fields are checked here, before anything is sent to the backend.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    title: str = Field(..., min_length=1, max_length=200)
    company_name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    job_type: JobType = JobType.FULL_TIME
    job_status: JobStatus = JobStatus.DRAFT
    overview: str = ""
    description: str = ""
    responsibilities: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    about_company: str = ""
    application_url: Optional[str] = None
    application_email: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_currency: Optional[str] = Field(None, max_length=8)
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    publish_immediately: bool = False

    @field_validator("responsibilities", "requirements", "benefits", mode="before")
    @classmethod
    def split_lines(cls, value):
        if isinstance(value, str):
            return multiline_to_list(value)
        if isinstance(value, list):
            return [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        if isinstance(value, str):
            return csv_to_list(value)
        if isinstance(value, list):
            return [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return value

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salaryMin cannot be greater than salaryMax")
        return self


class JobListQuery(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(5, ge=1, le=50)
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    poster_id: Optional[str] = None
    # Owner-scoped views list every status for poster_id
    owner_scope: bool = False

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class JobPage(BaseModel):
    """Paginated list of listings."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[Job]
    total: int
    page: int
    page_size: int
    total_pages: int


class JobFilterOptions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    locations: List[str] = Field(default_factory=list)
    job_types: List[JobType] = Field(default_factory=list)

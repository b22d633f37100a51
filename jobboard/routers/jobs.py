from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from jobboard.core.config import settings
from jobboard.core.exceptions import NotFoundError, ValidationFailedError
from jobboard.dependencies import get_job_mutations, get_job_queries
from jobboard.models.job import Job, JobType
from jobboard.routers.auth_deps import CurrentUser, get_current_user, get_optional_token
from jobboard.schemas.job import JobFilterOptions, JobInput, JobListQuery, JobPage
from jobboard.services.job_mutations import JobMutationService
from jobboard.services.jobs import JobQueryService

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
)

NOT_FOUND_OR_FORBIDDEN = "We couldn't find that job or you don't have permission to edit it."


def _owned_job_or_404(slug: str, current_user: CurrentUser, queries: JobQueryService) -> Job:
    job = queries.get_owned_by_slug(slug, current_user.id, current_user.access_token)
    if job is None:
        raise NotFoundError(NOT_FOUND_OR_FORBIDDEN)
    return job


@router.get("", response_model=JobPage)
def browse_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.page_size, ge=1, le=settings.max_page_size),
    location: Optional[str] = None,
    job_type: Optional[JobType] = None,
    poster_id: Optional[str] = None,
    token: Optional[str] = Depends(get_optional_token),
    queries: JobQueryService = Depends(get_job_queries),
):
    """
    Browse published listings, newest first.
    """
    query = JobListQuery(page=page, page_size=page_size, location=location,
                         job_type=job_type, poster_id=poster_id)
    return queries.list_jobs(query, token)


@router.get("/filters", response_model=JobFilterOptions)
def browse_filters(
    poster_id: Optional[str] = None,
    queries: JobQueryService = Depends(get_job_queries),
):
    return queries.filter_options(poster_id=poster_id)


@router.get("/slugs", response_model=List[str])
def published_slugs(queries: JobQueryService = Depends(get_job_queries)):
    return queries.published_slugs()


@router.get("/mine", response_model=JobPage)
def my_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.page_size, ge=1, le=settings.max_page_size),
    location: Optional[str] = None,
    job_type: Optional[JobType] = None,
    current_user: CurrentUser = Depends(get_current_user),
    queries: JobQueryService = Depends(get_job_queries),
):
    """
    The caller's own listings in every status.
    """
    query = JobListQuery(page=page, page_size=page_size, location=location, job_type=job_type,
                         poster_id=current_user.id, owner_scope=True)
    return queries.list_jobs(query, current_user.access_token)


@router.get("/mine/filters", response_model=JobFilterOptions)
def my_filters(
    current_user: CurrentUser = Depends(get_current_user),
    queries: JobQueryService = Depends(get_job_queries),
):
    return queries.filter_options(current_user.id, owner_scope=True, access_token=current_user.access_token)


@router.post("", response_model=Job, status_code=status.HTTP_201_CREATED)
def create_job(
    job_in: JobInput,
    current_user: CurrentUser = Depends(get_current_user),
    mutations: JobMutationService = Depends(get_job_mutations),
):
    """
    Create a listing owned by the caller.
    """
    return mutations.create(job_in, current_user.id, current_user.access_token)


@router.get("/{slug}", response_model=Job)
def get_job(slug: str, queries: JobQueryService = Depends(get_job_queries)):
    """
    Public detail view; drafts and archived listings are not found here.
    """
    job = queries.get_published_by_slug(slug)
    if job is None:
        raise NotFoundError("Job not found")
    return job


@router.get("/{slug}/manage", response_model=Job)
def get_job_for_owner(
    slug: str,
    current_user: CurrentUser = Depends(get_current_user),
    queries: JobQueryService = Depends(get_job_queries),
):
    return _owned_job_or_404(slug, current_user, queries)


@router.put("/{slug}", response_model=Job)
def update_job(
    slug: str,
    job_in: JobInput,
    current_user: CurrentUser = Depends(get_current_user),
    queries: JobQueryService = Depends(get_job_queries),
    mutations: JobMutationService = Depends(get_job_mutations),
):
    """
    Update a listing, including status transitions.
    """
    job = _owned_job_or_404(slug, current_user, queries)
    return mutations.update(job, job_in, current_user.access_token)


@router.delete("/{slug}")
def delete_job(
    slug: str,
    confirm: bool = False,
    current_user: CurrentUser = Depends(get_current_user),
    queries: JobQueryService = Depends(get_job_queries),
    mutations: JobMutationService = Depends(get_job_mutations),
):
    """
    Permanently delete a listing. Requires ?confirm=true.
    """
    if not confirm:
        raise ValidationFailedError("Deletion must be confirmed")
    job = _owned_job_or_404(slug, current_user, queries)
    mutations.delete(job.id, current_user.access_token)
    return {"message": "Listing removed"}

"""
Long-lived job board client.

Composes the listing services with a single signed-in session and the
process-wide auth store, for scripts and other non-HTTP consumers.
"""
import logging
from typing import Any, Dict, Optional

import requests

from jobboard.core.config import Config, settings
from jobboard.core.exceptions import AuthenticationError, NotFoundError, ValidationFailedError
from jobboard.models.job import Job
from jobboard.schemas.auth import AuthResponse
from jobboard.schemas.job import JobFilterOptions, JobInput, JobListQuery, JobPage
from jobboard.services.auth import AuthSessionClient, IdentityClient
from jobboard.services.auth_state import AuthStore
from jobboard.services.backend import BackendClient
from jobboard.services.cache import RevalidatingCache
from jobboard.services.job_mutations import JobMutationService
from jobboard.services.jobs import JobQueryService

logger = logging.getLogger(__name__)


class JobBoardSession:
    def __init__(
        self,
        backend: BackendClient,
        identity: IdentityClient,
        cache: Optional[RevalidatingCache] = None,
        page_size: int = 5,
        redirect_url: Optional[str] = None,
    ):
        self.auth = AuthSessionClient(identity)
        self.store = AuthStore()
        self.cache = cache
        self.page_size = page_size
        self.redirect_url = redirect_url
        self.queries = JobQueryService(backend, cache)
        self.mutations = JobMutationService(backend, cache)

    @classmethod
    def from_settings(cls, config: Config = settings) -> "JobBoardSession":
        http = requests.Session()
        cache = RevalidatingCache(
            dedupe_interval=config.cache_dedupe_seconds,
            max_workers=config.cache_workers,
            enabled=config.enable_caching,
        )
        return cls(
            BackendClient.from_settings(config, session=http),
            IdentityClient.from_settings(config, session=http),
            cache=cache,
            page_size=config.page_size,
            redirect_url=config.auth_redirect_url,
        )

    def start(self) -> "JobBoardSession":
        self.store.bind(self.auth)
        return self

    def close(self) -> None:
        self.store.close()
        if self.cache is not None:
            self.cache.shutdown()

    def __enter__(self) -> "JobBoardSession":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()

    # --- Auth ---

    def sign_up(self, email: str, password: str, full_name: str,
                metadata: Optional[Dict[str, Any]] = None) -> AuthResponse:
        return self.auth.sign_up(email, password, full_name, metadata, self.redirect_url)

    def sign_in(self, email: str, password: str) -> AuthResponse:
        return self.auth.sign_in_with_password(email, password)

    def sign_out(self) -> None:
        self.auth.sign_out()

    def _require_user(self) -> str:
        if not self.store.is_authenticated:
            raise AuthenticationError("Sign-in required")
        return self.store.user_id

    @property
    def access_token(self) -> Optional[str]:
        # Refreshes an expired session; the store follows through its subscription
        session = self.auth.get_session()
        return session.access_token if session else None

    # --- Reads ---

    def browse(self, page: int = 1, location: Optional[str] = None,
               job_type: Optional[str] = None, mine_only: bool = False) -> JobPage:
        poster_id = self.store.user_id if mine_only else None
        query = JobListQuery(page=page, page_size=self.page_size, location=location,
                             job_type=job_type, poster_id=poster_id)
        return self.queries.list_jobs(query)

    def browse_filters(self, mine_only: bool = False) -> JobFilterOptions:
        return self.queries.filter_options(poster_id=self.store.user_id if mine_only else None)

    def manage(self, page: int = 1, location: Optional[str] = None,
               job_type: Optional[str] = None) -> JobPage:
        owner_id = self._require_user()
        query = JobListQuery(page=page, page_size=self.page_size, location=location,
                             job_type=job_type, poster_id=owner_id, owner_scope=True)
        return self.queries.list_jobs(query, self.access_token)

    def manage_filters(self) -> JobFilterOptions:
        owner_id = self._require_user()
        return self.queries.filter_options(owner_id, owner_scope=True, access_token=self.access_token)

    def job(self, slug: str) -> Optional[Job]:
        return self.queries.get_published_by_slug(slug)

    def editable_job(self, slug: str) -> Job:
        owner_id = self._require_user()
        job = self.queries.get_owned_by_slug(slug, owner_id, self.access_token)
        if job is None:
            raise NotFoundError("We couldn't find that job or you don't have permission to edit it.")
        return job

    # --- Writes ---

    def create_job(self, job_in: JobInput) -> Job:
        owner_id = self._require_user()
        return self.mutations.create(job_in, owner_id, self.access_token)

    def update_job(self, slug: str, job_in: JobInput) -> Job:
        job = self.editable_job(slug)
        return self.mutations.update(job, job_in, self.access_token)

    def delete_job(self, slug: str, confirm: bool = False) -> None:
        if not confirm:
            raise ValidationFailedError("Deletion must be confirmed")
        job = self.editable_job(slug)
        self.mutations.delete(job.id, self.access_token)

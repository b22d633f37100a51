import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

class Config(BaseModel):
    app_name: str = "Job Board"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Hosted backend (table API + identity provider share one project URL)
    supabase_url: Optional[str] = Field(default=os.getenv("SUPABASE_PROJECT_URL"))
    supabase_api_key: Optional[str] = Field(default=os.getenv("SUPABASE_API_KEY"))
    request_timeout_seconds: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

    # Auth
    auth_redirect_url: Optional[str] = Field(default=os.getenv("AUTH_REDIRECT_URL"))

    # Listings
    page_size: int = int(os.getenv("JOBS_PAGE_SIZE", "5"))
    max_page_size: int = 50

    # Enterprise Architecture
    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://localhost:3001,"
                "http://127.0.0.1:3000,http://127.0.0.1:3001,"
                "http://[::1]:3000,http://[::1]:3001",
            ).split(",")
            if o.strip()
        ]
    )

    # Scalability & Performance
    enable_caching: bool = os.getenv("ENABLE_CACHING", "true").lower() == "true"
    cache_dedupe_seconds: float = float(os.getenv("CACHE_DEDUPE_SECONDS", "2.0"))
    cache_workers: int = int(os.getenv("CACHE_WORKERS", "4"))
    cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "512"))
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    auth_rate_limit: str = os.getenv("AUTH_RATE_LIMIT", "10/minute")

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_api_key)

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if not settings.backend_configured:
    _logger.warning(
        "⚠ SUPABASE_PROJECT_URL / SUPABASE_API_KEY are not set; backend calls will fail until they are."
    )

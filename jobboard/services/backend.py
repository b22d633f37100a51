"""
REST client for the hosted table API (PostgREST dialect).

Filtering, ordering, pagination and row counting are all pushed down as query
parameters; this module only builds requests and unpacks responses.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from jobboard.core.config import Config, settings
from jobboard.core.exceptions import BackendRequestError, ConfigurationError
from jobboard.core.logging import request_id_var

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total: Optional[int] = None


def require_backend_config(config: Config) -> Tuple[str, str]:
    """Return (url, api_key) or raise if either is missing."""
    if not config.supabase_url or not config.supabase_api_key:
        raise ConfigurationError(
            "Backend environment variables are missing. Ensure SUPABASE_PROJECT_URL and SUPABASE_API_KEY are set."
        )
    return config.supabase_url.rstrip("/"), config.supabase_api_key


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """
    Total row count from a Content-Range header.
    "0-4/23" -> 23, "*/0" -> 0, "*/*" or missing -> None.
    """
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


def eq_filters(filters: Optional[Dict[str, Any]]) -> List[Tuple[str, str]]:
    params = []
    for column, value in (filters or {}).items():
        if value is None:
            continue
        if hasattr(value, "value"):
            value = value.value
        params.append((column, f"eq.{value}"))
    return params


class BackendClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Config = settings, session: Optional[requests.Session] = None) -> "BackendClient":
        url, key = require_backend_config(config)
        return cls(url, key, session=session, timeout=config.request_timeout_seconds)

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _headers(self, access_token: Optional[str] = None, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        req_id = request_id_var.get()
        if req_id:
            headers[settings.request_id_header] = req_id
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        table: str,
        params: Iterable[Tuple[str, str]] = (),
        payload: Any = None,
        access_token: Optional[str] = None,
        prefer: Optional[str] = None,
        accept: Tuple[int, ...] = (),
    ) -> requests.Response:
        url = f"{self.rest_url}/{table}"
        extra = {"Prefer": prefer} if prefer else None
        params = list(params)
        logger.debug(f"Backend {method} {table}", extra={"params": params})

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(access_token, extra),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Backend {method} {table} transport error: {e}")
            raise BackendRequestError(0, "Network Error", str(e)) from e

        if not response.ok and response.status_code not in accept:
            logger.warning(
                f"Backend {method} {table} failed with {response.status_code}",
                extra={"status_code": response.status_code},
            )
            raise BackendRequestError(response.status_code, response.reason or "", response.text)
        return response

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[List[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        count: bool = False,
        access_token: Optional[str] = None,
    ) -> QueryResult:
        params = [("select", columns)] + eq_filters(filters)
        if order:
            params.append(("order", ",".join(order)))
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset:
            params.append(("offset", str(offset)))

        # With an exact count, an offset past the last row is answered with 416
        response = self._request(
            "GET", table, params, access_token=access_token,
            prefer="count=exact" if count else None,
            accept=(416,) if count else (),
        )
        if response.status_code == 416:
            return QueryResult(rows=[], total=parse_content_range(response.headers.get("Content-Range")))
        rows = response.json()
        total = None
        if count:
            total = parse_content_range(response.headers.get("Content-Range"))
            if total is None:
                total = (offset or 0) + len(rows)
        return QueryResult(rows=rows, total=total)

    def insert(self, table: str, payload: Dict[str, Any], access_token: Optional[str] = None) -> List[Dict[str, Any]]:
        response = self._request(
            "POST", table, [("select", "*")], payload=payload,
            access_token=access_token, prefer="return=representation",
        )
        return response.json()

    def update(
        self,
        table: str,
        payload: Dict[str, Any],
        filters: Dict[str, Any],
        access_token: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = eq_filters(filters)
        if not params:
            raise ValueError("Refusing to update without a filter")
        params.append(("select", "*"))
        response = self._request(
            "PATCH", table, params, payload=payload,
            access_token=access_token, prefer="return=representation",
        )
        return response.json()

    def delete(self, table: str, filters: Dict[str, Any], access_token: Optional[str] = None) -> None:
        params = eq_filters(filters)
        if not params:
            raise ValueError("Refusing to delete without a filter")
        self._request("DELETE", table, params, access_token=access_token)

    def ping(self, table: str = "jobs") -> bool:
        self.select(table, columns="id", limit=1)
        return True

"""
In-process stand-in for the hosted backend, mounted on a requests.Session.

Implements the slice of the PostgREST table API and the GoTrue identity API
the app talks to: eq filters, order with nullslast, limit/offset, exact
counts via Content-Range, return=representation writes, a unique slug
constraint and owner-only row-level policies.
"""
import json
import time
import uuid
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from urllib.parse import parse_qsl, urlsplit

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

BASE_URL = "https://fake-project.supabase.test"
API_KEY = "test-anon-key"

RESERVED_PARAMS = {"select", "order", "limit", "offset"}


def _parse_ts(value):
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


class FakeSupabase(BaseAdapter):
    def __init__(self, api_key: str = API_KEY, auto_confirm: bool = True):
        super().__init__()
        self.api_key = api_key
        self.auto_confirm = auto_confirm
        self.rows = []
        self.users = {}
        self.tokens = {}
        self.refresh_tokens = {}
        self.calls = []
        self.failures = []
        self.last_signup = None
        self._last_ts = None

    # --- helpers for tests ---

    def now(self) -> str:
        ts = datetime.now(timezone.utc)
        if self._last_ts is not None and ts <= self._last_ts:
            ts = self._last_ts + timedelta(microseconds=1)
        self._last_ts = ts
        return ts.isoformat()

    def fail_next(self, status: int, payload=None):
        self.failures.append((status, payload if payload is not None else {"message": "boom"}))

    def create_user(self, email: str, password: str = "Secret123!", full_name: str = "Test User") -> dict:
        user = {
            "id": str(uuid.uuid4()),
            "email": email,
            "password": password,
            "user_metadata": {"full_name": full_name},
            "created_at": self.now(),
        }
        self.users[email] = user
        session = self._issue_session(user)
        return {"id": user["id"], "email": email, "access_token": session["access_token"],
                "refresh_token": session["refresh_token"]}

    def add_job(self, poster_id: str, **fields) -> dict:
        now = self.now()
        status = fields.pop("job_status", "published")
        row = {
            "id": str(uuid.uuid4()),
            "slug": f"listing-{uuid.uuid4().hex[:8]}",
            "title": "Engineer",
            "company_name": "Acme",
            "location": "Remote",
            "job_type": "Full-Time",
            "job_status": status,
            "overview": None,
            "description": None,
            "responsibilities": [],
            "requirements": [],
            "benefits": [],
            "about_company": None,
            "application_url": None,
            "application_email": None,
            "published_at": now if status == "published" else None,
            "created_at": now,
            "updated_at": now,
            "poster_id": poster_id,
            "salary_min": None,
            "salary_max": None,
            "salary_currency": None,
            "tags": [],
            "metadata": None,
        }
        row.update(fields)
        self.rows.append(row)
        return row

    def row_by_slug(self, slug: str):
        return next((row for row in self.rows if row["slug"] == slug), None)

    def rest_calls(self, method: str = None):
        return [c for c in self.calls if c[1].startswith("/rest/v1/") and (method is None or c[0] == method)]

    # --- transport ---

    def close(self):
        pass

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        parts = urlsplit(request.url)
        params = parse_qsl(parts.query, keep_blank_values=True)
        body = json.loads(request.body) if request.body else None
        self.calls.append((request.method, parts.path, params, dict(request.headers)))

        if request.headers.get("apikey") != self.api_key:
            return self._respond(request, 401, {"message": "Invalid API key"})
        if self.failures:
            status, payload = self.failures.pop(0)
            return self._respond(request, status, payload)

        if parts.path.startswith("/rest/v1/"):
            return self._rest(request, parts.path[len("/rest/v1/"):], params, body)
        if parts.path.startswith("/auth/v1/"):
            return self._auth(request, parts.path[len("/auth/v1/"):], params, body)
        return self._respond(request, 404, {"message": "Not found"})

    def _respond(self, request, status, payload=None, headers=None):
        response = requests.Response()
        response.status_code = status
        response.reason = HTTPStatus(status).phrase
        response.url = request.url
        response.request = request
        response.headers = CaseInsensitiveDict(headers or {})
        response.encoding = "utf-8"
        if payload is None:
            response._content = b""
        else:
            response._content = json.dumps(payload).encode("utf-8")
            response.headers["Content-Type"] = "application/json"
        return response

    def _bearer(self, request):
        header = request.headers.get("Authorization", "")
        return header[len("Bearer "):] if header.startswith("Bearer ") else None

    # --- table API ---

    def _caller(self, request):
        """(ok, user_id). Anonymous callers use the API key as bearer."""
        token = self._bearer(request)
        if token is None or token == self.api_key:
            return True, None
        if token in self.tokens:
            return True, self.tokens[token]
        return False, None

    def _matches(self, row, filters):
        for column, expected in filters:
            value = row.get(column)
            if value is None or str(value) != expected:
                return False
        return True

    def _order(self, rows, order):
        for term in reversed(order.split(",")):
            parts = term.split(".")
            column = parts[0]
            descending = "desc" in parts[1:]
            nulls_first = "nullsfirst" in parts[1:] or (descending and "nullslast" not in parts[1:])
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present = sorted(present, key=lambda r: _parse_ts(r[column]) if column.endswith("_at") else r[column],
                             reverse=descending)
            rows = missing + present if nulls_first else present + missing
        return rows

    def _rest(self, request, table, params, body):
        if table != "jobs":
            return self._respond(request, 404, {"message": f"relation {table} does not exist"})
        ok, caller = self._caller(request)
        if not ok:
            return self._respond(request, 401, {"code": "PGRST301", "message": "JWT expired"})

        filters = []
        options = {}
        for key, value in params:
            if key in RESERVED_PARAMS:
                options[key] = value
            elif value.startswith("eq."):
                filters.append((key, value[3:]))
        prefer = request.headers.get("Prefer", "")

        if request.method == "GET":
            visible = [r for r in self.rows if r["job_status"] == "published" or r["poster_id"] == caller]
            matched = [r for r in visible if self._matches(r, filters)]
            if "order" in options:
                matched = self._order(matched, options["order"])
            total = len(matched)
            offset = int(options.get("offset", 0))
            if "count=exact" in prefer and offset > total:
                return self._respond(request, 416, {
                    "code": "PGRST103", "message": "Requested range not satisfiable",
                    "details": f"An offset of {offset} was requested, but there are only {total} rows.",
                }, {"Content-Range": f"*/{total}"})
            limit = int(options["limit"]) if "limit" in options else None
            page = matched[offset:offset + limit] if limit is not None else matched[offset:]
            columns = options.get("select", "*")
            if columns != "*":
                names = columns.split(",")
                page = [{name: r.get(name) for name in names} for r in page]
            headers = {}
            if "count=exact" in prefer:
                headers["Content-Range"] = (
                    f"{offset}-{offset + len(page) - 1}/{total}" if page else f"*/{total}"
                )
            return self._respond(request, 200, page, headers)

        if caller is None:
            return self._respond(request, 401, {"code": "42501", "message": "permission denied for table jobs"})

        if request.method == "POST":
            if body.get("poster_id") != caller:
                return self._respond(request, 403, {
                    "code": "42501", "message": 'new row violates row-level security policy for table "jobs"'})
            if any(r["slug"] == body.get("slug") for r in self.rows):
                return self._respond(request, 409, {
                    "code": "23505", "message": 'duplicate key value violates unique constraint "jobs_slug_key"'})
            now = self.now()
            row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, "metadata": None}
            row.update(body)
            self.rows.append(row)
            return self._respond(request, 201, [row] if "return=representation" in prefer else None)

        owned = [r for r in self.rows if r["poster_id"] == caller and self._matches(r, filters)]

        if request.method == "PATCH":
            for row in owned:
                row.update(body)
                row["updated_at"] = self.now()
            return self._respond(request, 200, owned if "return=representation" in prefer else None)

        if request.method == "DELETE":
            ids = {r["id"] for r in owned}
            self.rows = [r for r in self.rows if r["id"] not in ids]
            return self._respond(request, 204)

        return self._respond(request, 405, {"message": "Method not allowed"})

    # --- identity API ---

    def _public_user(self, user):
        return {k: v for k, v in user.items() if k != "password"}

    def _issue_session(self, user):
        access_token = f"token-{uuid.uuid4().hex}"
        refresh_token = f"refresh-{uuid.uuid4().hex}"
        self.tokens[access_token] = user["id"]
        self.refresh_tokens[refresh_token] = user["id"]
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": 3600,
            "expires_at": int(time.time()) + 3600,
            "refresh_token": refresh_token,
            "user": self._public_user(user),
        }

    def _user_by_id(self, user_id):
        return next((u for u in self.users.values() if u["id"] == user_id), None)

    def _auth(self, request, path, params, body):
        query = dict(params)
        if path == "signup" and request.method == "POST":
            if body["email"] in self.users:
                return self._respond(request, 422, {"code": 422, "msg": "User already registered"})
            user = {
                "id": str(uuid.uuid4()),
                "email": body["email"],
                "password": body["password"],
                "user_metadata": body.get("data") or {},
                "created_at": self.now(),
            }
            self.users[body["email"]] = user
            self.last_signup = {"body": body, "redirect_to": query.get("redirect_to")}
            if self.auto_confirm:
                return self._respond(request, 200, self._issue_session(user))
            return self._respond(request, 200, self._public_user(user))

        if path == "token" and request.method == "POST":
            grant = query.get("grant_type")
            if grant == "password":
                user = self.users.get(body.get("email"))
                if user is None or user["password"] != body.get("password"):
                    return self._respond(request, 400, {
                        "error": "invalid_grant", "error_description": "Invalid login credentials"})
                return self._respond(request, 200, self._issue_session(user))
            if grant == "refresh_token":
                user_id = self.refresh_tokens.pop(body.get("refresh_token"), None)
                if user_id is None:
                    return self._respond(request, 400, {
                        "error": "invalid_grant", "error_description": "Invalid Refresh Token"})
                return self._respond(request, 200, self._issue_session(self._user_by_id(user_id)))
            return self._respond(request, 400, {"error": "unsupported_grant_type"})

        token = self._bearer(request)
        if path == "logout" and request.method == "POST":
            self.tokens.pop(token, None)
            return self._respond(request, 204)

        if path == "user" and request.method == "GET":
            user_id = self.tokens.get(token)
            if user_id is None:
                return self._respond(request, 401, {"msg": "invalid JWT"})
            return self._respond(request, 200, self._public_user(self._user_by_id(user_id)))

        return self._respond(request, 404, {"msg": "Not found"})

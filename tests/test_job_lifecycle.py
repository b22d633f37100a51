"""
End-to-end listing lifecycle: a hiring account drafts a listing, publishes it,
a visitor finds it, and the owner removes it.
"""
import pytest

from jobboard.core.exceptions import AuthenticationError, NotFoundError, ValidationFailedError
from jobboard.models.job import JobStatus
from jobboard.schemas.job import JobInput


def draft_input(**overrides):
    data = {
        "title": "Customer Success Manager",
        "company_name": "FlowState",
        "location": "Austin, TX",
        "job_type": "Part-Time",
        "overview": "Partner with growth-stage customers.",
        "requirements": "3+ years in Customer Success\nStrong facilitation skills",
    }
    data.update(overrides)
    return JobInput(**data)


def test_board_session_lifecycle(board, fake_backend):
    fake_backend.create_user("hiring@example.com", password="Secret123!", full_name="Hana Hiring")
    assert board.store.state.loading is False

    board.sign_in("hiring@example.com", "Secret123!")
    assert board.store.is_authenticated

    draft = board.create_job(draft_input())
    assert draft.job_status == JobStatus.DRAFT
    assert draft.published_at is None
    assert board.job(draft.slug) is None
    assert board.browse().total == 0
    assert [job.slug for job in board.manage().items] == [draft.slug]

    published = board.update_job(draft.slug, draft_input(job_status="published", publish_immediately=True))
    assert published.slug == draft.slug
    assert published.published_at is not None
    assert board.job(draft.slug).title == "Customer Success Manager"
    assert board.browse(location="Austin, TX").total == 1
    assert board.browse(mine_only=True).total == 1
    assert board.browse_filters().locations == ["Austin, TX"]

    with pytest.raises(ValidationFailedError):
        board.delete_job(draft.slug)
    board.delete_job(draft.slug, confirm=True)
    assert board.job(draft.slug) is None
    assert board.manage().total == 0

    board.sign_out()
    assert not board.store.is_authenticated

def test_board_session_requires_sign_in(board):
    with pytest.raises(AuthenticationError):
        board.manage()
    with pytest.raises(AuthenticationError):
        board.create_job(draft_input())

def test_board_session_cannot_edit_others_listings(board, fake_backend, other_user):
    row = fake_backend.add_job(other_user["id"])
    fake_backend.create_user("hiring@example.com", password="Secret123!")
    board.sign_in("hiring@example.com", "Secret123!")
    with pytest.raises(NotFoundError):
        board.update_job(row["slug"], draft_input())
    with pytest.raises(NotFoundError):
        board.delete_job(row["slug"], confirm=True)
    assert fake_backend.row_by_slug(row["slug"]) is not None

def test_board_session_sign_up_uses_redirect(board, fake_backend):
    result = board.sign_up("fresh@example.com", "Secret123!", "Fred Fresh")
    assert result.session is not None
    assert board.store.state.user.full_name == "Fred Fresh"
    assert fake_backend.last_signup["redirect_to"] == "https://jobs.example.com/auth/callback"

def test_api_lifecycle(client, owner, auth_headers):
    headers = auth_headers(owner)
    payload = {"title": "Marketing Strategist", "companyName": "Beacon Media", "location": "New York, NY",
               "jobType": "Contract"}

    created = client.post("/api/jobs", json=payload, headers=headers).json()
    slug = created["slug"]
    assert created["jobStatus"] == "draft"
    assert created["postedOn"].startswith("Draft")
    assert client.get(f"/api/jobs/{slug}").status_code == 404
    assert client.get("/api/jobs").json()["total"] == 0

    published = client.put(f"/api/jobs/{slug}", json={**payload, "jobStatus": "published"}, headers=headers)
    assert published.json()["publishedAt"] is not None
    assert client.get(f"/api/jobs/{slug}").status_code == 200
    assert client.get("/api/jobs").json()["items"][0]["slug"] == slug

    archived = client.put(f"/api/jobs/{slug}", json={**payload, "jobStatus": "archived"}, headers=headers).json()
    assert archived["postedOn"] == "Archived"
    assert archived["publishedAt"] is None
    assert client.get(f"/api/jobs/{slug}").status_code == 404

    assert client.delete(f"/api/jobs/{slug}?confirm=true", headers=headers).status_code == 200
    assert client.get("/api/jobs/mine", headers=headers).json()["total"] == 0

def test_board_session_refreshes_expired_token(board, fake_backend):
    fake_backend.create_user("hiring@example.com", password="Secret123!")
    board.sign_in("hiring@example.com", "Secret123!")
    stale = board.auth._session
    board.auth._session = stale.model_copy(update={"expires_at": 0})

    board.create_job(draft_input())
    assert board.store.access_token != stale.access_token
    assert board.manage().total == 1

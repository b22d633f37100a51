from fastapi import APIRouter, Depends, Request, status
import logging

from jobboard.core.config import settings
from jobboard.core.exceptions import AuthenticationError
from jobboard.core.limiter import limiter
from jobboard.dependencies import get_identity_client
from jobboard.routers.auth_deps import CurrentUser, get_current_user
from jobboard.schemas.auth import AuthResponse, RefreshRequest, SignInRequest, SignUpRequest, UserResponse
from jobboard.services.auth import IdentityClient

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.auth_rate_limit)
def sign_up(request: Request, data: SignUpRequest, identity: IdentityClient = Depends(get_identity_client)):
    """
    Create a hiring account. The session is null when the provider requires
    email confirmation first.
    """
    return identity.sign_up(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        metadata={"wants_newsletter": data.wants_newsletter},
        redirect_to=settings.auth_redirect_url,
    )

@router.post("/sign-in", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
def sign_in(request: Request, data: SignInRequest, identity: IdentityClient = Depends(get_identity_client)):
    result = identity.sign_in_with_password(data.email, data.password)
    if result.session is None:
        raise AuthenticationError("Sign-in did not return a session")
    logger.info("User signed in", extra={"user_id": result.session.user.id})
    return result

@router.post("/refresh", response_model=AuthResponse)
def refresh(data: RefreshRequest, identity: IdentityClient = Depends(get_identity_client)):
    return identity.refresh_session(data.refresh_token)

@router.post("/sign-out")
def sign_out(
    current_user: CurrentUser = Depends(get_current_user),
    identity: IdentityClient = Depends(get_identity_client),
):
    identity.sign_out(current_user.access_token)
    return {"message": "Signed out"}

@router.get("/me", response_model=UserResponse)
def get_me(current_user: CurrentUser = Depends(get_current_user)):
    user = current_user.user
    return UserResponse(id=user.id, email=user.email, full_name=user.full_name)

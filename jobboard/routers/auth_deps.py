"""
Auth dependencies.
Bearer tokens are identity-provider access tokens; they are validated by
asking the provider for the user they belong to.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from jobboard.core.exceptions import AuthenticationError
from jobboard.dependencies import get_identity_client
from jobboard.schemas.auth import AuthUser
from jobboard.services.auth import IdentityClient

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/sign-in", auto_error=False)


@dataclass
class CurrentUser:
    user: AuthUser
    access_token: str

    @property
    def id(self) -> str:
        return self.user.id


def get_optional_token(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    return token or None


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    identity: IdentityClient = Depends(get_identity_client),
) -> CurrentUser:
    """
    Resolves the caller from the bearer token.
    """
    if not token:
        raise AuthenticationError("Sign-in required")

    try:
        user = identity.get_user(token)
    except AuthenticationError:
        logger.warning("Authentication failed: token rejected by identity provider")
        raise
    return CurrentUser(user=user, access_token=token)

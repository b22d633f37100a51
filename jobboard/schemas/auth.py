from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from datetime import datetime, timezone


class CamelModel(BaseModel):
    """camelCase on the API wire; the identity provider's snake_case payloads still validate."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class AuthUser(CamelModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> Optional[str]:
        return self.user_metadata.get("full_name")

class AuthSession(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    user: AuthUser

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc).timestamp() >= self.expires_at

class AuthResponse(CamelModel):
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None

class SignUpRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    wants_newsletter: bool = True

class SignInRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class RefreshRequest(CamelModel):
    refresh_token: str

class UserResponse(CamelModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None

"""
Pydantic schemas for sessions and identities.
"""
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "email": "admin@example.com",
            "password": "********"
        }
    })

class UserRead(BaseModel):
    """Author row as stored in the ``users`` table."""
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)

class LoginResult(BaseModel):
    user: UserRead
    token: str

class IdentityRead(BaseModel):
    """Caller identity as reported by the identity provider."""
    id: Optional[str]
    email: Optional[str]
    name: Optional[str]

class CsrfTokenRead(BaseModel):
    token: str
    expires_in: int

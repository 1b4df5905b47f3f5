"""
Pydantic models for account data.

Fields on request models are optional so that a missing value reaches
``UserService`` and is reported as a validation error with status 400,
the same way for every endpoint.  Password hashes never appear in a
response model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """Payload for ``POST /api/auth/signup``."""

    first_name: Optional[str] = Field(None, alias="prenom", examples=["Awa"])
    last_name: Optional[str] = Field(None, alias="nom", examples=["Diop"])
    email: Optional[str] = Field(None, examples=["awa@example.com"])
    password: Optional[str] = Field(None, alias="mot_de_passe", examples=["strongpassword"])

    model_config = {"populate_by_name": True}


class LoginRequest(BaseModel):
    """Payload for ``POST /api/auth/login``."""

    email: Optional[str] = Field(None, examples=["awa@example.com"])
    password: Optional[str] = Field(None, alias="mot_de_passe", examples=["strongpassword"])

    model_config = {"populate_by_name": True}


class UserRead(BaseModel):
    """Schema for reading an account from the API."""

    id: int
    first_name: str = Field(..., alias="prenom")
    last_name: str = Field(..., alias="nom")
    email: str
    created_at: Optional[datetime] = Field(None, alias="cree_le")

    model_config = {"populate_by_name": True, "from_attributes": True}


class SignupResponse(BaseModel):
    message: str
    user: UserRead


class TokenResponse(BaseModel):
    """Bearer token issued on successful login, under the key ``token``."""

    message: str = "Login successful"
    access_token: str = Field(..., alias="token")
    token_type: str = "bearer"

    model_config = {"populate_by_name": True}

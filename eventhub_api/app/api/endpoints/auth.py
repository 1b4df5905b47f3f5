"""
Account endpoints: signup, login and the current account.

Login answers unknown e-mails and wrong passwords with the same 401 so
the endpoint cannot be used to discover which addresses have accounts.
"""

from fastapi import APIRouter, Depends, status

from eventhub_api.app.api.deps import get_current_user, get_user_service
from eventhub_api.app.schemas.user import (
    LoginRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserRead,
)
from eventhub_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    service: UserService = Depends(get_user_service),
) -> SignupResponse:
    """Create an account.

    Requires ``prenom``, ``nom``, ``email`` and ``mot_de_passe``.
    Returns 409 if the e-mail is already in use.
    """
    user = await service.signup(data)
    return SignupResponse(message="User created", user=user)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> TokenResponse:
    """Authenticate and return a bearer token valid for one hour."""
    return await service.login(data)


@router.get("/me", response_model=UserRead)
async def read_me(
    current_user: dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
) -> UserRead:
    """Return the account the bearer token was issued to."""
    return await service.get_user(current_user["user_id"])

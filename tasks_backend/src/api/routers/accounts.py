from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_account_service
from ..schemas import Credentials, ErrorResponse, MessageResponse, TokenResponse
from ..services import AccountService

router = APIRouter(tags=["accounts"])


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=MessageResponse,
    summary="Register",
    description="Create an account. The email must not be registered yet.",
    responses={
        200: {"description": "User registered"},
        400: {"model": ErrorResponse, "description": "Email or password missing"},
        409: {"model": ErrorResponse, "description": "User exists"},
    },
)
def register(payload: Credentials, service: AccountService = Depends(get_account_service)) -> MessageResponse:
    """
    Register a new user with a hashed password.
    """
    service.register(payload.email, payload.password)  # type: ignore[arg-type]
    return MessageResponse(message="User registered")


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login",
    description="Exchange email and password for a bearer token.",
    responses={
        200: {"description": "Token issued"},
        400: {"model": ErrorResponse, "description": "Email or password missing"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
def login(payload: Credentials, service: AccountService = Depends(get_account_service)) -> TokenResponse:
    """
    Check credentials and return a signed token for the Authorization header.
    """
    token = service.login(payload.email, payload.password)  # type: ignore[arg-type]
    return TokenResponse(token=token)

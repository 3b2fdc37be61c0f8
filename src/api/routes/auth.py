"""Authentication routes.

This module handles HTTP endpoints for user registration, login and session
token verification.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, status

from core.dependencies import SettingsDep, UserManagerDep
from core.exceptions import BadRequestError, ForbiddenError, UnauthenticatedError
from core.security import create_access_token, require_access
from schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    Role,
    TokenIdentity,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])

# Same message for unknown user and wrong password
INVALID_CREDENTIALS = "Invalid credentials"


def _require_credentials(username, password) -> None:
    if not username or not password:
        raise BadRequestError("Username and password are required")


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
def register(
    req: RegisterRequest,
    settings: SettingsDep,
    user_manager: UserManagerDep,
) -> RegisterResponse:
    """Register a new user.

    When ADMIN_REGISTRATION_TOKEN is configured, registering as admin
    requires presenting it as ``adminToken``.

    Args:
        req: Registration request with username, password and optional role.
        settings: Injected application settings.
        user_manager: Injected UserManager instance.

    Returns:
        RegisterResponse with the new user's id.

    Raises:
        BadRequestError: If username or password is missing.
        ForbiddenError: If an admin registration token is required and wrong.
        UserAlreadyExistsError: If the username is taken.
    """
    _require_credentials(req.username, req.password)
    role = req.role or Role.USER

    if role == Role.ADMIN and settings.admin_registration_token:
        if not req.adminToken or not secrets.compare_digest(
            req.adminToken, settings.admin_registration_token
        ):
            logger.warning("Rejected admin registration for %s: bad admin token", req.username)
            raise ForbiddenError("Invalid admin token")

    user = user_manager.create_user(req.username, req.password, role)
    return RegisterResponse(
        message="User registered successfully",
        userId=user.id,
        username=user.username,
    )


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(
    req: LoginRequest,
    settings: SettingsDep,
    user_manager: UserManagerDep,
) -> LoginResponse:
    """Login with username and password.

    Args:
        req: Login request with username and password.
        settings: Injected application settings.
        user_manager: Injected UserManager instance.

    Returns:
        LoginResponse with a session token and the user's role.

    Raises:
        BadRequestError: If username or password is missing.
        UnauthenticatedError: If the credentials do not match a user.
    """
    _require_credentials(req.username, req.password)

    user = user_manager.authenticate(req.username, req.password)
    if user is None:
        logger.info("Failed login for username: %s", req.username)
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    token = create_access_token(
        TokenIdentity(id=user.id, username=user.username, role=user.role), settings
    )
    return LoginResponse(message="Login successful", token=token, role=user.role)


@router.get("/auth/verify", response_model=VerifyResponse, summary="Verify session token")
def verify(identity: TokenIdentity = Depends(require_access())) -> VerifyResponse:
    """Report the identity behind the caller's session token."""
    return VerifyResponse(
        isValid=True,
        username=identity.username,
        role=identity.role,
        isAdmin=identity.is_admin,
    )

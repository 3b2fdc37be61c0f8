from datetime import datetime, timedelta

import pytest
import pytz
from jose import jwt

from config import Settings
from core.exceptions import ForbiddenError, UnauthenticatedError
from core.security import (
    AccessRequirement,
    authorize,
    create_access_token,
    decode_access_token,
)
from schemas.user import Role, TokenIdentity

SETTINGS = Settings(jwt_secret="unit-secret")
ALICE = TokenIdentity(id="64b7f0c2a1b2c3d4e5f60718", username="alice", role=Role.USER)
ROOT = TokenIdentity(id="64b7f0c2a1b2c3d4e5f60719", username="root", role=Role.ADMIN)


def test_token_carries_identity_and_expires_in_one_hour():
    issued = datetime(2024, 5, 1, 12, 0, tzinfo=pytz.utc)

    token = create_access_token(ALICE, SETTINGS, now=issued)
    claims = jwt.get_unverified_claims(token)

    assert claims["id"] == ALICE.id
    assert claims["username"] == "alice"
    assert claims["role"] == "user"
    assert claims["exp"] - claims["iat"] == 3600


def test_decode_round_trips_identity():
    assert decode_access_token(create_access_token(ROOT, SETTINGS), SETTINGS) == ROOT


def test_decode_rejects_expired_token():
    token = create_access_token(
        ALICE, SETTINGS, now=datetime.now(pytz.utc) - timedelta(minutes=61)
    )

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token, SETTINGS)


def test_decode_rejects_token_without_identity():
    token = jwt.encode({"sub": "alice"}, SETTINGS.jwt_secret, algorithm="HS256")

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token, SETTINGS)


def test_decode_rejects_unknown_role():
    token = jwt.encode(
        {"id": "1", "username": "alice", "role": "owner"},
        SETTINGS.jwt_secret,
        algorithm="HS256",
    )

    with pytest.raises(UnauthenticatedError):
        decode_access_token(token, SETTINGS)


def test_authorize_admin_only():
    admins = AccessRequirement(roles=frozenset({Role.ADMIN}))

    authorize(ROOT, admins)
    with pytest.raises(ForbiddenError):
        authorize(ALICE, admins)


def test_authorize_any_logged_in_user():
    logged_in = AccessRequirement()

    authorize(ALICE, logged_in)
    authorize(ROOT, logged_in)
    with pytest.raises(UnauthenticatedError):
        authorize(None, logged_in)


def test_authorize_public_requirement_admits_anonymous():
    authorize(None, AccessRequirement(authenticated=False))

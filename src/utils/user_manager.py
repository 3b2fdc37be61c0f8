"""User management utilities.

This module provides the credential store: user persistence in MongoDB,
bcrypt password hashing, and password verification.
"""

import functools
import logging
from typing import Optional

import bcrypt
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import BCRYPT_ROUNDS
from core.database import USERS_COLLECTION
from core.exceptions import UserAlreadyExistsError
from schemas.user import Role, User
from utils.converters import document_to_user, user_to_document

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_PASSWORD_BYTES:
        logger.warning(
            "Password exceeds %d bytes (%d bytes), truncating",
            BCRYPT_MAX_PASSWORD_BYTES,
            len(password_bytes),
        )
        password_bytes = password_bytes[:BCRYPT_MAX_PASSWORD_BYTES]
    return password_bytes


@functools.lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> bytes:
    """A throwaway bcrypt hash at the given cost, computed once per process."""
    return bcrypt.hashpw(b"unused-password", bcrypt.gensalt(rounds=rounds))


class UserManager:
    """Manages user data persistence and password checks."""

    def __init__(self, db: Database, rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: pymongo Database holding the users collection.
            rounds: bcrypt cost factor for new hashes.
        """
        self.collection = db[USERS_COLLECTION]
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        try:
            return bcrypt.checkpw(
                _password_bytes(plain_password), hashed_password.encode("utf-8")
            )
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def burn_password_check(self, plain_password: str) -> None:
        """Run one bcrypt comparison against a throwaway hash.

        Used when the username does not exist, so that an unknown user and a
        wrong password take comparable time. The throwaway hash is shared by
        every instance, so only the comparison is paid per request.
        """
        bcrypt.checkpw(_password_bytes(plain_password), _dummy_hash(self.rounds))

    def create_user(self, username: str, password: str, role: Role = Role.USER) -> User:
        """Create a new user.

        Args:
            username: Username for the new user.
            password: Plain text password.
            role: User role.

        Returns:
            Created User object.

        Raises:
            UserAlreadyExistsError: If username already exists.
        """
        if self.collection.find_one({"username": username}, {"_id": 1}):
            raise UserAlreadyExistsError(username)

        user = User(
            id="",
            username=username,
            password_hash=self.hash_password(password),
            role=role,
        )

        # Two concurrent registrations can both pass the check above; the
        # unique index settles it
        try:
            result = self.collection.insert_one(user_to_document(user))
        except DuplicateKeyError as e:
            raise UserAlreadyExistsError(username) from e

        user.id = str(result.inserted_id)
        logger.info("Created user: %s (role=%s)", username, role.value)
        return user

    def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username.

        Args:
            username: Username to look up.

        Returns:
            User object if found, None otherwise.
        """
        doc = self.collection.find_one({"username": username})
        if doc:
            return document_to_user(doc)
        return None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Check a username/password pair.

        Args:
            username: Username to look up.
            password: Plain text password.

        Returns:
            The matching User, or None when the user is unknown or the
            password is wrong. The two cases are indistinguishable.
        """
        user = self.get_user_by_username(username)
        if user is None:
            self.burn_password_check(password)
            return None
        if not self.verify_password(password, user.password_hash):
            return None
        return user

import bcrypt
import pytest

from core.database import USERS_COLLECTION, init_db
from core.exceptions import UserAlreadyExistsError
from schemas.user import Role
from utils.user_manager import UserManager


@pytest.fixture
def users(db):
    init_db(db)
    return UserManager(db, rounds=4)


def test_password_is_hashed(users):
    hashed = users.hash_password("secret123")

    assert hashed != "secret123"
    assert users.verify_password("secret123", hashed)
    assert not users.verify_password("secret124", hashed)


def test_verify_against_garbage_hash_is_false(users):
    assert users.verify_password("secret123", "not-a-bcrypt-hash") is False


def test_long_passwords_are_accepted(users):
    password = "p" * 100

    assert users.verify_password(password, users.hash_password(password))


def test_create_and_authenticate(users):
    created = users.create_user("alice", "secret123", Role.ADMIN)

    user = users.authenticate("alice", "secret123")

    assert user.id == created.id
    assert user.role == Role.ADMIN
    assert users.authenticate("alice", "wrong") is None
    assert users.authenticate("nobody", "secret123") is None


def test_duplicate_username(users, db):
    users.create_user("alice", "secret123")

    with pytest.raises(UserAlreadyExistsError):
        users.create_user("alice", "other")
    assert db[USERS_COLLECTION].count_documents({}) == 1


def test_unique_index_catches_racing_insert(users, db, monkeypatch):
    users.create_user("alice", "secret123")
    # Simulate a concurrent registration that passed the existence check
    monkeypatch.setattr(users.collection, "find_one", lambda *a, **k: None)

    with pytest.raises(UserAlreadyExistsError):
        users.create_user("alice", "other")


def test_failed_logins_cost_the_same_bcrypt_work(users, db, monkeypatch):
    users.create_user("alice", "secret123")
    # Warm the shared throwaway hash
    users.authenticate("nobody", "secret123")

    calls = {"hashpw": 0, "checkpw": 0}

    def counting(name):
        original = getattr(bcrypt, name)

        def wrapper(*args, **kwargs):
            calls[name] += 1
            return original(*args, **kwargs)

        return wrapper

    monkeypatch.setattr(bcrypt, "hashpw", counting("hashpw"))
    monkeypatch.setattr(bcrypt, "checkpw", counting("checkpw"))

    def cost(username):
        calls.update(hashpw=0, checkpw=0)
        # A fresh manager per attempt, as each request builds its own
        assert UserManager(db, rounds=4).authenticate(username, "wrong") is None
        return dict(calls)

    wrong_password = cost("alice")
    unknown_user = cost("mallory")
    another_unknown_user = cost("eve")

    assert wrong_password == {"hashpw": 0, "checkpw": 1}
    assert unknown_user == wrong_password
    assert another_unknown_user == wrong_password

"""User directory against the real storage: compare-and-swap and failure handling."""

import logging
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from models.user import User
from models.user_directory import UserDirectory
from utils.security import PersistenceFailure, hash_password


@pytest.fixture
def user(db):
    u = User(
        first_name="Carol",
        last_name="Jones",
        email="carol@example.com",
        phone="5550000001",
        password_hash=hash_password("carol-password"),
        date_of_birth=date(1988, 1, 2),
    )
    db.new(u)
    db.save()
    return u


@pytest.fixture
def directory(db):
    return UserDirectory(db)


def test_find(directory, user):
    assert directory.find(user.id).email == "carol@example.com"
    assert directory.find("no-such-user") is None


def test_no_session_by_default(directory, user):
    assert directory.stored_refresh_token(user.id) is None


def test_store_overwrites(directory, user):
    directory.store_refresh_token(user.id, "t1")
    directory.store_refresh_token(user.id, "t2")
    assert directory.stored_refresh_token(user.id) == "t2"


def test_replace_only_when_expected_matches(directory, user):
    directory.store_refresh_token(user.id, "t1")

    assert directory.replace_refresh_token(user.id, "other", "t2") is False
    assert directory.stored_refresh_token(user.id) == "t1"

    assert directory.replace_refresh_token(user.id, "t1", "t2") is True
    assert directory.stored_refresh_token(user.id) == "t2"

    # the old value can never win again
    assert directory.replace_refresh_token(user.id, "t1", "t3") is False
    assert directory.stored_refresh_token(user.id) == "t2"


def test_replace_with_empty_expected_never_matches(directory, user):
    assert directory.replace_refresh_token(user.id, None, "t1") is False
    assert directory.replace_refresh_token(user.id, "", "t1") is False
    assert directory.stored_refresh_token(user.id) is None


def test_clear(directory, user):
    directory.store_refresh_token(user.id, "t1")
    directory.clear_refresh_token(user.id)
    assert directory.stored_refresh_token(user.id) is None
    assert directory.replace_refresh_token(user.id, "t1", "t2") is False


class BrokenSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("database is locked"))


class BrokenStorage:
    def __init__(self):
        self.rolled_back = False

    def get_session(self):
        return BrokenSession()

    def rollback(self):
        self.rolled_back = True

    def save(self):
        pass


def test_write_failure_is_wrapped_and_logged_without_token(caplog):
    storage = BrokenStorage()
    directory = UserDirectory(storage)

    with caplog.at_level(logging.ERROR, logger="models.user_directory"):
        with pytest.raises(PersistenceFailure):
            directory.replace_refresh_token("user-1", "very-secret-token", "next-secret-token")

    assert storage.rolled_back
    assert any(r.levelno == logging.ERROR for r in caplog.records)
    assert "very-secret-token" not in caplog.text
    assert "next-secret-token" not in caplog.text

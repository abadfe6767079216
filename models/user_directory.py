"""
User directory: the persistence side of the token lifecycle.

Owns the ``users.refresh_token`` column. Every write goes through a single
UPDATE statement so that replacing the live refresh token is a
compare-and-swap rather than a read-then-write. The database row is the
authority: loaded User objects are not synchronized, so read the token back
with stored_refresh_token().
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from models.user import User
from utils.security import PersistenceFailure

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, storage):
        self.storage = storage

    def _fail(self, action: str, identity: str) -> PersistenceFailure:
        self.storage.rollback()
        logger.exception("user directory failed to %s for user %s", action, identity)
        return PersistenceFailure(f"could not {action}")

    def _update(self, identity: str, *criteria, **values) -> int:
        session = self.storage.get_session()
        stmt = (
            update(User)
            .where(User.id == identity, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        self.storage.save()
        return result.rowcount

    def find(self, identity: str) -> Optional[User]:
        try:
            return self.storage.get(User, identity)
        except SQLAlchemyError:
            raise self._fail("load user", identity)

    def stored_refresh_token(self, identity: str) -> Optional[str]:
        try:
            session = self.storage.get_session()
            return session.query(User.refresh_token).filter(User.id == identity).scalar()
        except SQLAlchemyError:
            raise self._fail("read refresh token", identity)

    def store_refresh_token(self, identity: str, token: str) -> None:
        try:
            self._update(identity, refresh_token=token)
        except SQLAlchemyError:
            raise self._fail("store refresh token", identity)

    def replace_refresh_token(self, identity: str, expected: str, new: str) -> bool:
        """Swap ``expected`` for ``new``; False when ``expected`` is no longer live."""
        if not expected:
            return False
        try:
            return self._update(identity, User.refresh_token == expected, refresh_token=new) == 1
        except SQLAlchemyError:
            raise self._fail("rotate refresh token", identity)

    def clear_refresh_token(self, identity: str) -> None:
        try:
            self._update(identity, refresh_token=None)
        except SQLAlchemyError:
            raise self._fail("clear refresh token", identity)

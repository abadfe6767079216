"""
Token lifecycle: issue, verify and rotate access/refresh token pairs.

Access tokens are stateless. Exactly one refresh token is live per user; it is
kept in the user directory and replaced with a compare-and-swap on rotation so
that a rotated or revoked refresh token can never be exchanged again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Any

from utils.security import (
    MissingToken,
    StaleOrRevokedToken,
    decode_token,
    encode_token,
    generate_jti,
)

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class TokenManager:
    """
    Stateless issuer/verifier; durable session state lives in ``directory``.

    ``clock`` is the single time source: it stamps iat/exp on issue and decides
    expiry on verify.
    """

    def __init__(
        self,
        directory,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "blog-api",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.directory = directory
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer
        self.clock = clock

    @classmethod
    def from_config(cls, config, directory) -> "TokenManager":
        return cls(
            directory,
            access_secret=config["JWT_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            issuer=config.get("JWT_ISSUER", "blog-api"),
        )

    def _claims(self, identity: str, token_type: str, ttl: timedelta) -> Dict[str, Any]:
        now = self.clock()
        return {
            "iss": self.issuer,
            "sub": str(identity),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }

    # issuance

    def issue_access_token(self, identity: str) -> str:
        claims = self._claims(identity, ACCESS, self.access_ttl)
        return encode_token(claims, self.access_secret, self.algorithm)

    def issue_refresh_token(self, identity: str) -> str:
        """Sign a refresh token. Persisting it is up to the caller."""
        claims = self._claims(identity, REFRESH, self.refresh_ttl)
        return encode_token(claims, self.refresh_secret, self.algorithm)

    def _pair(self, identity: str) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(identity),
            refresh_token=self.issue_refresh_token(identity),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    # verification

    def _decode(self, token: str, secret: str, token_type: str) -> Dict[str, Any]:
        return decode_token(
            token, secret, token_type, self.algorithm, issuer=self.issuer, now=self.clock()
        )

    def verify_access_token(self, token: str) -> str:
        """Return the identity carried by a valid access token."""
        return self._decode(token, self.access_secret, ACCESS)["sub"]

    def verify_refresh_token(self, token: str) -> str:
        """
        Signature/expiry check only. Whether the token is still the live one
        for its identity is decided by the directory in rotate().
        """
        return self._decode(token, self.refresh_secret, REFRESH)["sub"]

    # session state

    def start_session(self, identity: str) -> TokenPair:
        """Issue a fresh pair and make its refresh token the only live one."""
        pair = self._pair(identity)
        self.directory.store_refresh_token(identity, pair.refresh_token)
        logger.info("session started for user %s", identity)
        return pair

    def rotate(self, presented: str) -> TokenPair:
        if not presented:
            raise MissingToken("refresh_token is required")
        identity = self.verify_refresh_token(presented)
        if not self.directory.stored_refresh_token(identity):
            raise StaleOrRevokedToken()
        pair = self._pair(identity)
        if not self.directory.replace_refresh_token(identity, presented, pair.refresh_token):
            logger.debug("refresh rejected for user %s: token is not the live one", identity)
            raise StaleOrRevokedToken()
        logger.info("session rotated for user %s", identity)
        return pair

    def revoke(self, identity: str) -> None:
        self.directory.clear_refresh_token(identity)
        logger.info("session revoked for user %s", identity)

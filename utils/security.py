"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT signing/verification via PyJWT (pure functions: secret + claims -> token,
  secret + token -> claims or error)
- token error taxonomy shared by the token lifecycle and the HTTP layer
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

ph = PasswordHasher()


class TokenError(Exception):
    """Base class for every bearer-token failure (maps to 401)."""

    message = "Invalid token"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingToken(TokenError):
    message = "Token is required"


class MalformedOrExpiredToken(TokenError):
    message = "Invalid or expired token"


class StaleOrRevokedToken(TokenError):
    message = "Invalid or revoked refresh token"


class PersistenceFailure(Exception):
    """Raised when the user directory cannot read or write session state."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def encode_token(claims: Dict[str, Any], secret: str, algorithm: str = "HS256") -> str:
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(
    token: str,
    secret: str,
    expected_type: str,
    algorithm: str = "HS256",
    issuer: str | None = None,
    now: datetime | None = None,
) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises MalformedOrExpiredToken on a bad signature,
    an expired token, missing claims, a foreign issuer or a token of the wrong type.
    expected_type must be "access" or "refresh".

    When ``now`` is given, expiry is checked against it instead of the wall
    clock: a token is expired once now >= exp.
    """
    if not token:
        raise MissingToken()
    options = {"require": ["exp", "iat", "sub"] + (["iss"] if issuer else [])}
    if now is not None:
        options.update(verify_exp=False, verify_iat=False)
    try:
        decoded = jwt.decode(token, secret, algorithms=[algorithm], issuer=issuer, options=options)
    except jwt.ExpiredSignatureError:
        raise MalformedOrExpiredToken("Token has expired")
    except jwt.InvalidTokenError:
        raise MalformedOrExpiredToken("Invalid token")

    exp = decoded["exp"]
    if now is not None and (not isinstance(exp, (int, float)) or now.timestamp() >= exp):
        raise MalformedOrExpiredToken("Token has expired")

    if decoded.get("type") != expected_type:
        raise MalformedOrExpiredToken("Wrong token type")
    return decoded

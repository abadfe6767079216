from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from models import storage
from models.user_directory import UserDirectory
from utils.security import MissingToken, StaleOrRevokedToken
from utils.tokens import TokenManager


def token_manager() -> TokenManager:
    """Token manager bound to the current app config and the shared storage."""
    return TokenManager.from_config(current_app.config, UserDirectory(storage))


def bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise MissingToken("Missing or invalid Authorization header")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise MissingToken("Missing or invalid Authorization header")
    return token


def jwt_required():
    """
    Require a valid access token. TokenError subclasses propagate to the
    error handlers, which answer 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            manager = token_manager()
            user_id = manager.verify_access_token(bearer_token())
            user = manager.directory.find(user_id)
            if not user:
                raise StaleOrRevokedToken("User not found")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator

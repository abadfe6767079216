"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Keeps the single live refresh token on the user row so it can be rotated and revoked
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema

from utils.decorators import jwt_required, token_manager
from utils.security import MissingToken, hash_password, verify_password
from utils.uploads import incoming_image, save_image, delete_image
from .helpers import form_or_json

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


def ensure_unique_contact(session, email: str | None, phone: str | None, exclude_id: str | None = None):
    """409 when email or phone already belong to another user."""
    filters = []
    if email:
        filters.append(User.email == email)
    if phone:
        filters.append(User.phone == phone)
    if not filters:
        return
    q = session.query(User).filter(or_(*filters))
    if exclude_id:
        q = q.filter(User.id != exclude_id)
    existing = q.first()
    if existing:
        if email and existing.email == email:
            abort(409, description="Email already registered")
        abort(409, description="Phone number already registered")


@bp.post("/register")
def register():
    """
    Register a new user (JSON or multipart form with optional image).
    ---
    tags:
      - Auth
    consumes:
      - application/json
      - multipart/form-data
    parameters:
      - in: formData
        name: first_name
        type: string
        required: true
      - in: formData
        name: last_name
        type: string
        required: true
      - in: formData
        name: email
        type: string
        required: true
      - in: formData
        name: phone
        type: string
        required: true
        description: 10 digits
      - in: formData
        name: password
        type: string
        required: true
      - in: formData
        name: date_of_birth
        type: string
        format: date
        required: true
      - in: formData
        name: preferences
        type: string
        description: 'JSON array of categories, e.g. ["sports", "art"]'
      - in: formData
        name: image
        type: file
    responses:
      201:
        description: Created (returns user and tokens)
      409:
        description: Email or phone already registered
      422:
        description: Validation error
    """
    data = user_create_schema.load(form_or_json())
    image = incoming_image(request)

    session = storage.get_session()
    ensure_unique_contact(session, data["email"], data["phone"])

    user = User(
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        email=data["email"],
        phone=data["phone"],
        password_hash=hash_password(data["password"]),
        date_of_birth=data["date_of_birth"],
        preferences=data.get("preferences", []),
    )
    if image:
        user.image = save_image(image, "user")

    try:
        storage.new(user)
        storage.save()
    except SQLAlchemyError:
        delete_image(user.image)
        raise
    logger.info("registered user %s", user.id)

    pair = token_manager().start_session(user.id)
    return jsonify(
        {
            "data": {"user": user_out_schema.dump(user), **pair.to_dict()},
            "message": "Registration successful",
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login with email or phone: returns access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             identifier: { type: string, description: "email or phone" }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    payload = user_login_schema.load(form_or_json())
    identifier = payload["identifier"]

    session = storage.get_session()
    user: User = (
        session.query(User)
        .filter(or_(User.email == identifier.lower(), User.phone == identifier))
        .first()
    )
    if not user or not verify_password(payload["password"], user.password_hash):
        abort(401, description="Invalid credentials")

    pair = token_manager().start_session(user.id)
    return jsonify(
        {
            "data": {"user": user_out_schema.dump(user), **pair.to_dict()},
            "message": "Login successful",
        }
    ), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange the live refresh token for a new access/refresh pair (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
      - application/x-www-form-urlencoded
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Missing, invalid, expired, rotated or revoked refresh token
    """
    token = form_or_json().get("refresh_token")
    if not isinstance(token, str):
        raise MissingToken("refresh_token is required")

    pair = token_manager().rotate(token)
    return jsonify({"data": pair.to_dict()}), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the current refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: Logged out
      401:
        description: Unauthorized
    """
    token_manager().revoke(g.current_user.id)
    return ("", 204)

from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.article import Article
from models.user import User
from models.schemas.user import UserUpdateSchema, UserOutSchema, UserPublicSchema
from utils.decorators import jwt_required, token_manager
from utils.security import hash_password, verify_password
from utils.uploads import incoming_image, save_image, delete_image
from .auth import ensure_unique_contact
from .articles import dump_articles
from .helpers import form_or_json, paginate

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)

user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_public_schema = UserPublicSchema()


@bp.get("/profile")
@jwt_required()
def get_profile():
    """
    Current user's profile
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200


@bp.route("/profile", methods=["PUT", "PATCH"])
@jwt_required()
def update_profile():
    """
    Update the current user's profile (partial; JSON or multipart form)
    A password change needs current_password and new_password and ends the
    current session: the stored refresh token is revoked.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
      - multipart/form-data
    parameters:
      - { in: formData, name: first_name, type: string }
      - { in: formData, name: last_name, type: string }
      - { in: formData, name: email, type: string }
      - { in: formData, name: phone, type: string }
      - { in: formData, name: preferences, type: string, description: "JSON array" }
      - { in: formData, name: current_password, type: string }
      - { in: formData, name: new_password, type: string }
      - { in: formData, name: image, type: file }
    responses:
      200:
        description: Updated
      400:
        description: Current password is incorrect
      409:
        description: Email or phone already registered
      422:
        description: Validation error
    """
    user: User = g.current_user
    data = user_update_schema.load(form_or_json())
    image = incoming_image(request)

    session = storage.get_session()
    ensure_unique_contact(session, data.get("email"), data.get("phone"), exclude_id=user.id)

    password_changed = False
    if "new_password" in data:
        if not verify_password(data["current_password"], user.password_hash):
            abort(400, description="Current password is incorrect")
        user.password_hash = hash_password(data["new_password"])
        password_changed = True

    for field in ("first_name", "last_name", "email", "phone", "preferences"):
        if field in data:
            value = data[field]
            setattr(user, field, value.strip() if isinstance(value, str) else value)

    old_image = user.image
    if image:
        user.image = save_image(image, "user")

    try:
        storage.new(user)
        storage.save()
    except SQLAlchemyError:
        if image:
            delete_image(user.image)
        raise
    if image and old_image:
        delete_image(old_image)

    if password_changed:
        token_manager().revoke(user.id)
    logger.info("profile updated for user %s", user.id)

    return jsonify(
        {
            "data": {"user": user_out_schema.dump(user)},
            "message": "Profile updated successfully",
        }
    ), 200


@bp.get("/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Public profile of any user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200:
        description: OK
      404:
        description: User not found
    """
    user = storage.get(User, user_id)
    if not user:
        abort(404, description="User not found")
    return jsonify({"data": user_public_schema.dump(user)}), 200


@bp.get("/<user_id>/articles")
@jwt_required()
def get_user_articles(user_id: str):
    """
    Articles written by a user, newest first
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
    responses:
      200:
        description: OK
      404:
        description: User not found
    """
    if not storage.get(User, user_id):
        abort(404, description="User not found")
    session = storage.get_session()
    query = session.query(Article).filter(
        Article.author_id == user_id, Article.deleted_at.is_(None)
    )
    rows, meta = paginate(query, (Article.created_at.desc(),))
    return jsonify({"data": dump_articles(rows, g.current_user), "meta": meta}), 200

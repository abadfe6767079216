from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.article import Article, CATEGORIES, article_blocks
from models.schemas.article import ArticleCreateSchema, ArticleUpdateSchema, ArticleOutSchema
from utils.decorators import jwt_required
from utils.uploads import incoming_image, save_image, delete_image
from .helpers import form_or_json, paginate

logger = logging.getLogger(__name__)

bp = Blueprint("articles", __name__)

create_schema = ArticleCreateSchema()
update_schema = ArticleUpdateSchema()
out_schema = ArticleOutSchema()

NEWEST_FIRST = (Article.created_at.desc(),)


def dump_article(article: Article, viewer) -> dict:
    """Serialize with the viewer's own reaction state."""
    data = out_schema.dump(article)
    data["liked"] = any(u.id == viewer.id for u in article.liked_by)
    data["disliked"] = any(u.id == viewer.id for u in article.disliked_by)
    data["blocked"] = article.is_blocked_for(viewer)
    return data


def dump_articles(rows, viewer) -> list:
    return [dump_article(a, viewer) for a in rows]


def get_live_article(article_id: str) -> Article:
    article = storage.get(Article, article_id)
    if not article or article.is_deleted:
        abort(404, description="Article not found")
    return article


def get_own_article(article_id: str) -> Article:
    """Only the author may change an article; others get 404."""
    article = get_live_article(article_id)
    if article.author_id != g.current_user.id:
        abort(404, description="Article not found")
    return article


@bp.post("")
@jwt_required()
def create_article():
    """
    Create an article (multipart form, image required)
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: title, type: string, required: true }
      - { in: formData, name: description, type: string, required: true }
      - { in: formData, name: category, type: string, required: true }
      - { in: formData, name: tags, type: string, description: "JSON array of strings" }
      - { in: formData, name: image, type: file, required: true }
    responses:
      201:
        description: Created
      400:
        description: Image is required / invalid file type
      422:
        description: Validation error
    """
    image = incoming_image(request)
    if image is None:
        abort(400, description="Image is required")
    data = create_schema.load(form_or_json())

    article = Article(
        title=data["title"].strip(),
        description=data["description"],
        category=data["category"],
        tags=data.get("tags", []),
        author_id=g.current_user.id,
    )
    article.image = save_image(image, "article")
    try:
        storage.new(article)
        storage.save()
    except SQLAlchemyError:
        delete_image(article.image)
        raise
    logger.info("article %s created by user %s", article.id, g.current_user.id)

    return jsonify(
        {
            "data": dump_article(article, g.current_user),
            "message": "Article created successfully",
        }
    ), 201


@bp.get("")
@jwt_required()
def list_articles():
    """
    List articles, newest first, hiding the ones the caller blocked
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
      - in: query
        name: category
        type: string
    responses:
      200:
        description: OK
    """
    session = storage.get_session()
    viewer_id = g.current_user.id
    blocked_ids = select(article_blocks.c.article_id).where(article_blocks.c.user_id == viewer_id)
    query = session.query(Article).filter(
        Article.deleted_at.is_(None), Article.id.not_in(blocked_ids)
    )
    category = request.args.get("category")
    if category:
        category = category.strip().lower()
        if category not in CATEGORIES:
            abort(400, description=f"Unsupported category. Allowed: {', '.join(CATEGORIES)}")
        query = query.filter(Article.category == category)

    rows, meta = paginate(query, NEWEST_FIRST)
    return jsonify({"data": dump_articles(rows, g.current_user), "meta": meta}), 200


@bp.get("/mine")
@jwt_required()
def list_my_articles():
    """
    The caller's own articles, newest first
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    responses:
      200:
        description: OK
    """
    session = storage.get_session()
    query = session.query(Article).filter(
        Article.author_id == g.current_user.id, Article.deleted_at.is_(None)
    )
    rows, meta = paginate(query, NEWEST_FIRST)
    return jsonify({"data": dump_articles(rows, g.current_user), "meta": meta}), 200


@bp.get("/<article_id>")
@jwt_required()
def get_article(article_id: str):
    """
    Get an article by id
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - in: path
        name: article_id
        type: string
        required: true
    responses:
      200:
        description: OK
      403:
        description: Article is not available (blocked by the caller)
      404:
        description: Article not found
    """
    article = get_live_article(article_id)
    if article.is_blocked_for(g.current_user):
        abort(403, description="Article is not available")
    return jsonify({"data": dump_article(article, g.current_user)}), 200


@bp.route("/<article_id>", methods=["PUT", "PATCH"])
@jwt_required()
def update_article(article_id: str):
    """
    Update an article (author only; partial)
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    consumes:
      - application/json
      - multipart/form-data
    parameters:
      - { in: path, name: article_id, type: string, required: true }
      - { in: formData, name: title, type: string }
      - { in: formData, name: description, type: string }
      - { in: formData, name: category, type: string }
      - { in: formData, name: tags, type: string }
      - { in: formData, name: remove_image, type: boolean }
      - { in: formData, name: image, type: file }
    responses:
      200:
        description: Updated
      404:
        description: Article not found
      422:
        description: Validation error
    """
    article = get_own_article(article_id)
    data = update_schema.load(form_or_json())
    image = incoming_image(request)

    for field in ("title", "description", "category", "tags"):
        if field in data:
            value = data[field]
            setattr(article, field, value.strip() if field == "title" else value)

    stale_image = None
    if data.get("remove_image"):
        stale_image, article.image = article.image, None
    elif image:
        stale_image = article.image
        article.image = save_image(image, "article")

    try:
        storage.new(article)
        storage.save()
    except SQLAlchemyError:
        if image and not data.get("remove_image"):
            delete_image(article.image)
        raise
    delete_image(stale_image)

    return jsonify({"data": dump_article(article, g.current_user)}), 200


@bp.delete("/<article_id>")
@jwt_required()
def delete_article(article_id: str):
    """
    Soft delete an article (author only)
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - in: path
        name: article_id
        type: string
        required: true
    responses:
      204:
        description: Deleted
      404:
        description: Article not found
    """
    article = get_own_article(article_id)
    article.delete()  # Soft delete via mixin
    logger.info("article %s deleted", article.id)
    return ("", 204)


def _react(article_id: str, toggle: str):
    article = get_live_article(article_id)
    state = getattr(article, toggle)(g.current_user)
    storage.new(article)
    storage.save()
    return article, state


@bp.post("/<article_id>/block")
@jwt_required()
def block_article(article_id: str):
    """
    Toggle blocking an article for the caller
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - { in: path, name: article_id, type: string, required: true }
    responses:
      200:
        description: New block state
      404:
        description: Article not found
    """
    article, blocked = _react(article_id, "toggle_block")
    return jsonify({"data": {"id": article.id, "blocked": blocked}}), 200


@bp.post("/<article_id>/like")
@jwt_required()
def like_article(article_id: str):
    """
    Toggle a like (removes an existing dislike)
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - { in: path, name: article_id, type: string, required: true }
    responses:
      200:
        description: Article with updated counts
      404:
        description: Article not found
    """
    article, _ = _react(article_id, "toggle_like")
    return jsonify({"data": dump_article(article, g.current_user)}), 200


@bp.post("/<article_id>/dislike")
@jwt_required()
def dislike_article(article_id: str):
    """
    Toggle a dislike (removes an existing like)
    ---
    tags:
      - Articles
    security:
      - Bearer: []
    parameters:
      - { in: path, name: article_id, type: string, required: true }
    responses:
      200:
        description: Article with updated counts
      404:
        description: Article not found
    """
    article, _ = _react(article_id, "toggle_dislike")
    return jsonify({"data": dump_article(article, g.current_user)}), 200

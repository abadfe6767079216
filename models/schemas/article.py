from marshmallow import Schema, fields, pre_load, validate, EXCLUDE

from models.article import CATEGORIES
from models.schemas.common import parse_list_field
from models.schemas.user import AuthorSummarySchema


def _normalize(data):
    if isinstance(data, dict):
        data = dict(data)
        parse_list_field(data, "tags")
        if isinstance(data.get("tags"), list):
            data["tags"] = [t.strip() for t in data["tags"] if isinstance(t, str) and t.strip()]
        if isinstance(data.get("category"), str):
            data["category"] = data["category"].strip().lower()
    return data


class ArticleCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.String(required=True, validate=lambda s: 0 < len(s.strip()) <= 255)
    description = fields.String(required=True, validate=lambda s: len(s.strip()) > 0)
    category = fields.String(required=True, validate=validate.OneOf(CATEGORIES))
    tags = fields.List(fields.String(), load_default=list)

    @pre_load
    def normalize(self, data, **kwargs):
        return _normalize(data)


class ArticleUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.String(validate=lambda s: 0 < len(s.strip()) <= 255)
    description = fields.String(validate=lambda s: len(s.strip()) > 0)
    category = fields.String(validate=validate.OneOf(CATEGORIES))
    tags = fields.List(fields.String())
    remove_image = fields.Boolean(load_default=False)

    @pre_load
    def normalize(self, data, **kwargs):
        data = _normalize(data)
        return {k: v for k, v in data.items() if v != ""}


class ArticleOutSchema(Schema):
    id = fields.String()
    title = fields.String()
    description = fields.String()
    category = fields.String()
    image = fields.String(allow_none=True)
    tags = fields.List(fields.String())
    author = fields.Nested(AuthorSummarySchema)
    likes = fields.Method("get_likes")
    dislikes = fields.Method("get_dislikes")
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_likes(self, obj):
        return len(obj.liked_by)

    def get_dislikes(self, obj):
        return len(obj.disliked_by)

from marshmallow import Schema, fields, pre_load, validates, validates_schema, ValidationError, EXCLUDE

from models.schemas.common import (
    norm_email,
    parse_list_field,
    validate_not_future,
    validate_phone,
    validate_password,
    validate_categories,
)


def _normalize(data):
    if isinstance(data, dict):
        data = dict(data)
        if "email" in data:
            data["email"] = norm_email(data["email"])
        if isinstance(data.get("phone"), str):
            data["phone"] = data["phone"].strip()
        parse_list_field(data, "preferences")
    return data


class UserCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    first_name = fields.String(required=True, validate=lambda s: 0 < len(s.strip()) <= 100)
    last_name = fields.String(required=True, validate=lambda s: 0 < len(s.strip()) <= 100)
    email = fields.Email(required=True)
    phone = fields.String(required=True, validate=validate_phone)
    password = fields.String(required=True, load_only=True, validate=validate_password)
    date_of_birth = fields.Date(required=True)
    preferences = fields.List(fields.String(), load_default=list)

    @pre_load
    def normalize(self, data, **kwargs):
        return _normalize(data)

    @validates("date_of_birth")
    def _validate_dob(self, value, **kwargs):
        validate_not_future(value)

    @validates("preferences")
    def _validate_preferences(self, value, **kwargs):
        validate_categories(value)


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    identifier = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        # accept {"email": ...} from older clients
        if isinstance(data, dict) and "identifier" not in data and "email" in data:
            data = {"identifier": data.get("email"), "password": data.get("password")}
        if isinstance(data, dict) and isinstance(data.get("identifier"), str):
            data = dict(data, identifier=data["identifier"].strip())
        return data


class UserUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    first_name = fields.String(validate=lambda s: 0 < len(s.strip()) <= 100)
    last_name = fields.String(validate=lambda s: 0 < len(s.strip()) <= 100)
    email = fields.Email()
    phone = fields.String(validate=validate_phone)
    preferences = fields.List(fields.String())
    current_password = fields.String(load_only=True)
    new_password = fields.String(load_only=True, validate=validate_password)

    @pre_load
    def normalize(self, data, **kwargs):
        data = _normalize(data)
        # blank form fields mean "leave unchanged"
        return {k: v for k, v in data.items() if v != ""}

    @validates("preferences")
    def _validate_preferences(self, value, **kwargs):
        validate_categories(value)

    @validates_schema
    def _password_pair(self, data, **kwargs):
        if ("current_password" in data) != ("new_password" in data):
            raise ValidationError("current_password and new_password must be provided together.")


class UserOutSchema(Schema):
    id = fields.String()
    first_name = fields.String()
    last_name = fields.String()
    email = fields.String()
    phone = fields.String()
    image = fields.String(allow_none=True)
    preferences = fields.List(fields.String())
    date_of_birth = fields.Date()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class UserPublicSchema(Schema):
    """What other users may see: no contact details."""
    id = fields.String()
    first_name = fields.String()
    last_name = fields.String()
    image = fields.String(allow_none=True)
    preferences = fields.List(fields.String())
    created_at = fields.DateTime()


class AuthorSummarySchema(Schema):
    id = fields.String()
    first_name = fields.String()
    last_name = fields.String()

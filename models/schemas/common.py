import json
import re
from datetime import date

from marshmallow import ValidationError

from models.article import CATEGORIES

PHONE_RE = re.compile(r"^\d{10}$")
PASSWORD_MIN_LENGTH = 8


def norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def parse_list_field(data, name: str):
    """
    Form posts carry list fields as a JSON string ('["a", "b"]'); JSON bodies
    carry real lists. Normalize the former into the latter in place.
    """
    raw = data.get(name)
    if isinstance(raw, str):
        if not raw.strip():
            data[name] = []
            return data
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise ValidationError(f"Invalid {name} format", field_name=name)
        if not isinstance(parsed, list):
            raise ValidationError(f"{name} must be an array", field_name=name)
        data[name] = parsed
    return data


def validate_not_future(d: date) -> None:
    if d and d > date.today():
        raise ValidationError("Date cannot be in the future.")


def validate_phone(value: str) -> None:
    if not PHONE_RE.match(value or ""):
        raise ValidationError("Phone number must be exactly 10 digits.")


def validate_password(value: str) -> None:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")


def validate_categories(values) -> None:
    unknown = [v for v in values if v not in CATEGORIES]
    if unknown:
        raise ValidationError(f"Unknown categories: {unknown}. Allowed: {list(CATEGORIES)}")

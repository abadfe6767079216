"""
Image upload helpers: validate, store under UPLOAD_FOLDER with a random name,
and remove files that are replaced or orphaned by a failed request.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from flask import current_app, abort
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"


def upload_folder() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def incoming_image(request, field: str = "image") -> Optional[FileStorage]:
    """Return the uploaded file for ``field`` or None; 400 on a disallowed type."""
    file = request.files.get(field)
    if file is None or not file.filename:
        return None
    allowed = current_app.config["ALLOWED_IMAGE_MIME_TYPES"]
    if file.mimetype not in allowed:
        abort(400, description=f"Invalid file type. Allowed: {', '.join(allowed)}")
    return file


def save_image(file: FileStorage, prefix: str) -> str:
    """Write ``file`` to disk and return its public path (/uploads/<name>)."""
    _, ext = os.path.splitext(secure_filename(file.filename))
    name = f"{prefix}-{uuid.uuid4().hex}{ext.lower()}"
    file.save(os.path.join(upload_folder(), name))
    return URL_PREFIX + name


def delete_image(public_path: Optional[str]) -> None:
    if not public_path or not public_path.startswith(URL_PREFIX):
        return
    name = secure_filename(public_path[len(URL_PREFIX):])
    full_path = os.path.join(current_app.config["UPLOAD_FOLDER"], name)
    try:
        os.remove(full_path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("could not remove upload %s", name, exc_info=True)

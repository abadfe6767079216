from flask import Blueprint

from models import storage
from models.user import User

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
            users:
              type: integer
    """
    return {"status": "ok", "version": "1.0.0", "users": storage.count(User)}, 200

from flask import Blueprint

bp = Blueprint("health", __name__)

SERVICE_NAME = "channel-auth-api"
VERSION = "1.0.0"


@bp.get("/health")
def health():
    """
    Liveness probe
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status: { type: string, example: ok }
            service: { type: string, example: channel-auth-api }
            version: { type: string, example: 1.0.0 }
    """
    return {"status": "ok", "service": SERVICE_NAME, "version": VERSION}, 200

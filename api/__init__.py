from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage
from models.user_store import UserStore
from services import EXTENSION_KEY, AuthServices
from services.media import MediaUploader, S3MediaUploader
from services.rotation import RotationProtocol
from services.sessions import SessionManager
from utils.decorators import AuthGuard
from utils.tokens import TokenSettings

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Channel Auth API",
        "version": "1.0.0",
        "description": "Registration, login, token rotation and guarded account operations.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, test_config: dict | None = None,
               media: MediaUploader | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    test_config overrides individual keys; media replaces the S3 uploader.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if test_config:
        app.config.update(test_config)

    # Cookies carry credentials, so CORS must allow them
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}}, supports_credentials=True)

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    # Wire the auth services once; secrets are frozen from here on
    storage.reload(app.config["DATABASE_URL"])
    settings = TokenSettings.from_config(app.config)
    users = UserStore(storage)
    sessions = SessionManager(users, settings)
    app.extensions[EXTENSION_KEY] = AuthServices(
        settings=settings,
        users=users,
        sessions=sessions,
        rotation=RotationProtocol(sessions),
        guard=AuthGuard(users, settings),
        media=media or S3MediaUploader.from_config(app.config),
    )

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Channel Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app

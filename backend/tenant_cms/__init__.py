import os

from flask import Flask, abort, send_from_directory
from flask_swagger_ui import get_swaggerui_blueprint

from .api.v1 import v1_bp
from .cli import register_cli
from .config import config_by_name
from .errors import register_error_handlers
from .extensions import db, migrate, jwt, cache
from .logging_config import configure_logging
from .middleware.tenant_middleware import tenant_middleware

OPENAPI_URL = "/openapi/cms.yaml"
OPENAPI_FILE = "cms_openapi.yaml"
SWAGGER_URL = "/swagger"


def create_app(config_name: str = "development", overrides: dict = None) -> Flask:
    """
    Application factory. `overrides` is applied on top of the named config
    (tests point the database, upload folder and NGINX paths at tmp dirs).
    """
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.config.update(overrides or {})

    configure_logging(app)

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    for extension in (db, jwt, cache):
        extension.init_app(app)
    migrate.init_app(app, db)

    # Tenant resolution runs before every request
    tenant_middleware(app)

    app.register_blueprint(v1_bp, url_prefix="/api/v1")
    register_error_handlers(app)
    register_cli(app)
    register_api_docs(app)

    app.logger.info(f"Tenant CMS started with '{config_name}' config")
    return app


def register_api_docs(app: Flask) -> None:
    """OpenAPI document and Swagger UI, both served without a tenant."""
    docs_dir = os.path.join(app.root_path, "api", "v1")

    @app.route(OPENAPI_URL, methods=["GET"], endpoint="openapi_cms")
    def serve_openapi():
        if not os.path.exists(os.path.join(docs_dir, OPENAPI_FILE)):
            abort(404, description=f"{OPENAPI_FILE} not found")
        return send_from_directory(docs_dir, OPENAPI_FILE, mimetype="application/yaml")

    swagger_ui = get_swaggerui_blueprint(
        SWAGGER_URL,
        OPENAPI_URL,
        config={
            "app_name": "Tenant CMS API",
            "deepLinking": True,
            "persistAuthorization": True,
        },
    )
    app.register_blueprint(swagger_ui, url_prefix=SWAGGER_URL)

# backend/homebake/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from . import cache



def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.invites import invites_bp
    from .routes.users import users_bp
    from .routes.bread_types import bread_types_bp
    from .routes.batches import batches_bp
    from .routes.production import production_bp
    from .routes.sales import sales_bp
    from .routes.inventory import inventory_bp
    from .routes.dashboard import dashboard_bp
    from .routes.reports import reports_bp
    from .routes.notifications import notifications_bp
    from .routes.shift import shift_bp
    from .routes.pages import pages_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(invites_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(bread_types_bp)
    app.register_blueprint(batches_bp)
    app.register_blueprint(production_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(shift_bp)
    app.register_blueprint(pages_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            app.config.get("APP_URL", "").rstrip("/"),
        }
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app

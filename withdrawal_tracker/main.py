import logging
import os

from flask import Flask
from marshmallow import ValidationError

from .config import CONFIGS
from .extensions import db, migrate, jwt, ma, cors, bcrypt

def create_app(config_name=None, **overrides):
    app = Flask(__name__, instance_relative_config=False)
    env = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIGS.get(env, CONFIGS["development"]))
    app.config.update(overrides)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("withdrawal_tracker").setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    bcrypt.init_app(app)

    # models must be imported before create_all / migrations see the metadata
    from withdrawal_tracker.models import audit_entry, notification, request_comment, user, withdrawal_request  # noqa: F401

    # workflow core, built once per app
    from withdrawal_tracker.services.assignment_service import AssignmentResolver
    from withdrawal_tracker.services.audit_service import AuditLogger
    from withdrawal_tracker.services.notification_service import notify
    from withdrawal_tracker.services.permissions import default_permission_table
    from withdrawal_tracker.services.workflow_service import WorkflowManager

    app.extensions["workflow_manager"] = WorkflowManager(
        permissions=default_permission_table(),
        resolver=AssignmentResolver(),
        audit=AuditLogger(),
        notifier=notify,
    )

    # register blueprints
    from withdrawal_tracker.routes.auth_routes import bp as auth_bp
    from withdrawal_tracker.routes.request_routes import bp as request_bp
    from withdrawal_tracker.routes.user_routes import bp as user_bp
    from withdrawal_tracker.routes.notification_routes import bp as notification_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(request_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(notification_bp)

    from withdrawal_tracker.cli import create_user_command
    app.cli.add_command(create_user_command)

    # error handlers to match required error format
    from withdrawal_tracker.utils.exceptions import ServiceError
    from withdrawal_tracker.utils.response_formatter import error_response, service_error_response

    @app.errorhandler(ServiceError)
    def service_error(e):
        if e.status >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        else:
            app.logger.info("%s: %s", e.code, e.message)
        return service_error_response(e)

    @app.errorhandler(ValidationError)
    def validation_error(e):
        return error_response("VALIDATION_ERROR", "Invalid input", details=e.messages, status=422)

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", str(e), status=400)

    @app.errorhandler(401)
    def unauthorized(e):
        return error_response("UNAUTHORIZED", str(e), status=401)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    return app

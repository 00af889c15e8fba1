from dotenv import load_dotenv
load_dotenv()

from flask import Flask, render_template, request
from .config import Config
from .extensions import db, migrate, login_manager, mail, oauth
from .models import User


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


def _register_google(app):
    if not (app.config.get("GOOGLE_CLIENT_ID") and app.config.get("GOOGLE_CLIENT_SECRET")):
        return
    oauth.register(
        name="google",
        client_id=app.config["GOOGLE_CLIENT_ID"],
        client_secret=app.config["GOOGLE_CLIENT_SECRET"],
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        app.logger.warning("404 Not Found method=%s url=%s", request.method, request.path)
        return render_template("error.html", message="Page not found"), 404

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error("Unhandled error method=%s url=%s", request.method, request.path)
        return render_template("error.html", message="Internal Server Error"), 500

    @app.after_request
    def log_request(response):
        app.logger.debug("%s %s -> %s", request.method, request.path, response.status_code)
        return response


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    mail.init_app(app)
    oauth.init_app(app)
    _register_google(app)

    # import models so Alembic sees them
    from . import models  # noqa: F401

    # register blueprints
    from .main.routes import bp as main_bp
    from .auth.routes import bp as auth_bp
    from .progress.routes import bp as progress_bp
    from .quizzes.routes import bp as quizzes_bp
    from .billing.routes import bp as billing_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(progress_bp)
    app.register_blueprint(quizzes_bp)
    app.register_blueprint(billing_bp)

    from .content.cli import register_cli
    register_cli(app)

    _register_error_handlers(app)

    return app

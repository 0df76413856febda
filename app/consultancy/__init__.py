import logging
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask

from app.consultancy.auth import bp as auth_bp, load_current_user
from app.consultancy.config import load_config
from app.consultancy.db import init_db, teardown_db_session
from app.consultancy.errors import register_error_handlers
from app.consultancy.mailer import mailer_from_config
from app.consultancy.modules.case_studies.routes import bp as case_studies_bp
from app.consultancy.modules.contacts.routes import bp as contacts_bp
from app.consultancy.modules.insights.routes import bp as insights_bp
from app.consultancy.routes import bp as routes_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=24)

    # refuse to boot production on dev defaults
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if app.config.get("EMAIL_BACKEND") == "resend" and not app.config.get("RESEND_API_KEY"):
            app.logger.error("EMAIL CONFIG ERROR: RESEND_API_KEY is not set; 2FA logins will fail.")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.extensions["mailer"] = mailer_from_config(app.config)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(contacts_bp, url_prefix="/api")
    app.register_blueprint(insights_bp, url_prefix="/api")
    app.register_blueprint(case_studies_bp, url_prefix="/api")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)
    register_error_handlers(app)

    logging.getLogger(__name__).info("create_app() complete; app ready to serve (email backend=%s)", app.config.get("EMAIL_BACKEND"))
    return app

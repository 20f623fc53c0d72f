from datetime import date

from flask import Flask, jsonify
from config import Config
from routes import health_bp, calendar_bp, sessions_bp, quota_bp, audit_bp

from models import db
from flask_migrate import Migrate
from scheduling import ConflictPolicy, SchedulingError
from utils.auth_context import load_current_actor


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # fail at startup rather than on the first confirm
    ConflictPolicy(app.config.get("CONFLICT_POLICY"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(calendar_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(quota_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(err):
        if err.status_code >= 500:
            app.logger.error("scheduling failure: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.package import PackageStatus
from scheduling import PackageStore
from utils.audit import log_event

def register_cli(app):
    @app.cli.command("close-expired-packages")
    @click.option("--today", default=None, help="Reference day (YYYY-MM-DD), defaults to today.")
    def close_expired_packages(today):
        """Close active packages whose validity window ended before TODAY."""
        day = date.fromisoformat(today) if today else date.today()
        expired = PackageStore().expired_before(day)
        for pkg in expired:
            pkg.status = PackageStatus.CLOSED
            log_event("PACKAGE_CLOSE", entity="package", entity_id=pkg.id,
                      metadata={"end_date": pkg.end_date.isoformat()}, commit=False)
        db.session.commit()

        print(f"Closed {len(expired)} package(s)")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)

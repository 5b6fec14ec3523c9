# /app/__init__.py
import os
import logging
from flask import Flask
from dotenv import load_dotenv
from config import ProductionConfig
from services.config_service import ConfigManager
from app.routes import write_offs_bp, check_write_offs_command


load_dotenv()


def init_sentry():
    """
    Send ERROR logs and unhandled exceptions to Sentry when SENTRY_DSN is set.

    Every failed stage of a write-off run is logged at ERROR, so this is where
    operators see unreadable grids, directory outages and rejected dispatches.
    """
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        environment = os.getenv("FLASK_ENV") or os.getenv("ENV") or "development"

        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            integrations=[
                FlaskIntegration(),
                LoggingIntegration(
                    level=logging.INFO,        # breadcrumbs
                    event_level=logging.ERROR  # events
                ),
            ],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
            send_default_pii=True,
            attach_stacktrace=True,
            # SENTRY_DEBUG=1 for Sentry's own debug output
            debug=os.getenv("SENTRY_DEBUG", "0") == "1",
        )
        logging.info(f"Sentry initialized for environment: {environment}")
    except ImportError:
        logging.warning("sentry-sdk not installed, error tracking disabled")
    except Exception as e:
        logging.error(f"Failed to initialize Sentry: {e}")


def create_app(config_name: str = ""):
    # before the app exists, so start-up errors are reported too
    init_sentry()

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(ProductionConfig)

    # Secret
    app.secret_key = os.getenv("FLASK_SECRET", os.urandom(24))

    if config_name:
        app.config.from_object(f"config.{config_name}Config")

    # Merge JSON config
    app.config.update(ConfigManager().config)
    app.config.setdefault("write_offs", dict(app.config["WRITE_OFFS_DEFAULTS"]))

    # Logging (basic)
    logging.basicConfig(
        level=logging.DEBUG if app.config.get("DEBUG") else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # prevent duplicate handlers in some reload scenarios
    )
    logging.debug("write_offs config: %s", app.config.get("write_offs"))

    # Blueprints
    app.register_blueprint(write_offs_bp)

    # CLI
    app.cli.add_command(check_write_offs_command)  # type: ignore

    return app

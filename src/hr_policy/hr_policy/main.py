from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_error_handlers
from .common.logging_utils import setup_logging
from .database.bootstrap import apply_schema, list_tables

from .container import build_container
from .assistant.controller import register as register_assistant
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_records
from .employees.controller import register as register_employees
from .leaves.controller import register as register_leaves
from .marketplace.controller import register as register_marketplace
from .payroll.controller import register as register_payroll
from .policy.controller import register as register_policy
from .verification.controller import register as register_verification

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), json_output=bool(getattr(settings, "LOG_JSON", True)))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "app_starting",
        extra={
            "settings": settings_module,
            "db": f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
        },
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema_ready", extra={"tables": len(list_tables(db_config))})

    container = build_container(
        db_config=db_config,
        holiday_api_url=getattr(settings, "HOLIDAY_API_URL", "https://date.nager.at/api/v3"),
    )

    register_error_handlers(app)
    register_employees(app, container)
    register_policy(app, container)
    register_attendance(app, container)
    register_verification(app, container)
    register_leaves(app, container)
    register_payroll(app, container)
    register_marketplace(app, container)
    register_records(app, container)
    register_assistant(app, container)

    return app

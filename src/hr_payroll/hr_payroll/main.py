from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import describe_db, get_settings_module, load_settings

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_employees, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .jobs.scheduler import start_scheduler
from .leaves.controller import register as register_leaves
from .payroll.controller import register as register_payroll
from .salary_rules.controller import register as register_salary_rules

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = load_settings(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["SECRET_KEY"] = app.secret_key
    app.config["TOKEN_ALGORITHM"] = getattr(settings, "TOKEN_ALGORITHM", "HS256")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["MAIL_CONFIG"] = dict(getattr(settings, "MAIL_CONFIG", {}))
    app.config["STORAGE_CONFIG"] = dict(getattr(settings, "STORAGE_CONFIG", {}))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s db=%s", settings_module, describe_db(db_config))

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_employees(db_config)
            logger.info("demo seed ready")

        container = build_container(db_config=db_config)

    app.extensions["container"] = container

    register_salary_rules(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_payroll(app, container)

    if bool(getattr(settings, "SCHEDULER_ENABLED", False)):
        start_scheduler(container.payroll_service, timezone=getattr(settings, "SCHEDULER_TIMEZONE", "Asia/Dhaka"))

    return app

from fastapi import FastAPI
import logging
import os
from pathlib import Path
from fastapi.middleware.cors import CORSMiddleware

from birthday_api.api.router import api_router
from birthday_api.core.config import settings
from birthday_api.db.session import SessionLocal
from birthday_api.services.reminder_scheduler import ReminderScheduler

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by env var AUTO_APPLY_MIGRATIONS (default: '1'). Safe to run repeatedly.
    """
    if settings.env.lower() != "prod":
        return
    if os.getenv("AUTO_APPLY_MIGRATIONS", "1") != "1":
        return
    from alembic import command
    from alembic.config import Config
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "alembic"))
    try:
        logger.info("Applying Alembic migrations -> head ...")
        command.upgrade(cfg, "head")
        logger.info("Migrations applied successfully")
    except Exception:  # pragma: no cover
        # Do not kill the app on migration failure; can be retried manually.
        logger.exception("Migration failed")

app = FastAPI(title=settings.app_name, version="0.1.0")

# Configurable CORS origins (CORS_ORIGINS env). If empty -> dev defaults.
origins = settings.cors_origins
logger.info("Resolved CORS origins: %s", origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

app.state.reminder_scheduler = ReminderScheduler(SessionLocal, settings.reminder_tz)

@app.on_event("startup")
async def startup():
    _run_migrations_if_needed()
    if settings.reminders_enabled:
        app.state.reminder_scheduler.start()
    else:
        logger.info("Birthday reminders disabled (REMINDERS_ENABLED=0)")

@app.on_event("shutdown")
async def shutdown():
    await app.state.reminder_scheduler.stop()

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from pathlib import Path
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import os

logger = logging.getLogger(__name__)

LOCALTIME_PATH = Path("/etc/localtime")

def local_zone() -> tzinfo:
    """Host zone as a DST-aware ZoneInfo: $TZ first, then /etc/localtime, else UTC."""
    name = os.environ.get("TZ", "").strip().lstrip(":")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("TZ=%r is not an IANA zone name, falling back to %s", name, LOCALTIME_PATH)
    if LOCALTIME_PATH.exists():
        target = str(LOCALTIME_PATH.resolve())
        if "zoneinfo/" in target:
            try:
                return ZoneInfo(target.split("zoneinfo/", 1)[1])
            except (ZoneInfoNotFoundError, ValueError):
                pass
        with LOCALTIME_PATH.open("rb") as fh:
            return ZoneInfo.from_file(fh, key="localtime")
    logger.warning("host time zone unknown, using UTC for birthday reminders")
    return timezone.utc


class Settings(BaseSettings):
    app_name: str = Field(default="Birthday Reminder API", alias="APP_NAME")
    env: str = Field(default="dev", alias="ENV")
    secret_key: str = Field(default="devsecret", alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    # Raw env value (string), parsed to a list via property to avoid JSON decoding errors
    cors_origins_raw: Optional[str] = Field(default=None, alias="CORS_ORIGINS", description="Comma or space separated list of allowed CORS origins")
    # Background birthday scan
    reminders_enabled: bool = Field(default=True, alias="REMINDERS_ENABLED")
    reminder_timezone: Optional[str] = Field(default=None, alias="REMINDER_TIMEZONE", description="IANA zone for 'today' and the 08:00 trigger; empty means host local time")

    class Config:
        # Load env from backend/.env regardless of CWD
        env_file = str(Path(__file__).resolve().parents[2] / ".env")
        case_sensitive = False

    def _parse_list(self, v: Optional[str]) -> List[str]:
        if v is None:
            return []
        s = v.strip()
        if not s:
            return []
        if s.startswith("[") and s.endswith("]"):
            try:
                import json
                loaded = json.loads(s)
                if isinstance(loaded, list):
                    return [str(e).strip() for e in loaded if str(e).strip()]
            except ValueError:
                pass
        return [e.strip() for e in s.split(",") if e.strip()]

    @property
    def cors_origins(self) -> List[str]:
        items = self._parse_list(self.cors_origins_raw)
        # Fallback dev defaults if none provided
        if not items:
            return ["http://localhost:5173", "http://127.0.0.1:5173"]
        return items

    @property
    def reminder_tz(self) -> tzinfo:
        name = (self.reminder_timezone or "").strip()
        if not name:
            return local_zone()
        return ZoneInfo(name)

settings = Settings()  # type: ignore

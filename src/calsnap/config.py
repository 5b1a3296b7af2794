"""Application configuration."""

import logging
import os
import time
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_LOCALTIME_PATH = Path("/etc/localtime")

_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    chat_transport: str = "openai"
    analysis_temperature: float = 0.2
    analysis_max_tokens: int = 400
    analysis_image_detail: str = "high"
    analysis_timeout_seconds: float = 30.0
    storage_backend: str = "sqlite"
    sqlite_path: str = "calsnap.sqlite"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    timezone: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the configured timezone, falling back to the system local zone."""
    if name is None:
        return _system_timezone()
    cleaned = name.strip()
    if cleaned in {"", "local"}:
        return _system_timezone()
    return ZoneInfo(cleaned)


def _system_timezone() -> tzinfo:
    """Return the system zone with its full DST rules, not a fixed offset."""
    tz_name = os.getenv("TZ", "").lstrip(":").strip()
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            _logger.warning("Ignoring unknown TZ value %r", tz_name)
    if _LOCALTIME_PATH.is_file():
        with _LOCALTIME_PATH.open("rb") as handle:
            return ZoneInfo.from_file(handle, key="localtime")
    return _LocalTimezone()


class _LocalTimezone(tzinfo):
    """Local zone backed by the C library, evaluated per timestamp."""

    def utcoffset(self, dt: datetime | None) -> timedelta:
        return timedelta(seconds=self._local(dt).tm_gmtoff)

    def dst(self, dt: datetime | None) -> timedelta:
        if self._local(dt).tm_isdst > 0:
            return self.utcoffset(dt) - timedelta(seconds=-time.timezone)
        return timedelta(0)

    def tzname(self, dt: datetime | None) -> str:
        return self._local(dt).tm_zone

    def _local(self, dt: datetime | None) -> time.struct_time:
        if dt is None:
            return time.localtime()
        naive = dt.replace(tzinfo=None)
        return time.localtime(time.mktime((*naive.timetuple()[:8], -1)))

from __future__ import annotations

import os
from typing import Mapping, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from job_digest.errors import ConfigError

DEFAULT_DAYS_LOOKBACK = 7
MAX_DAYS_LOOKBACK = 36_500
DEFAULT_USER_AGENT = "JobAlertsBot/1.0 (+https://github.com/)"

RUN_REQUIRED_ENVS = (
    "SENDGRID_API_KEY",
    "EMAIL_FROM",
    "EMAIL_TO",
)


class Settings(BaseModel):
    sendgrid_api_key: str = ""
    email_from: str = ""
    email_to: list[str] = Field(default_factory=list)
    days_lookback: int = Field(default=DEFAULT_DAYS_LOOKBACK, ge=0, le=MAX_DAYS_LOOKBACK)
    keywords_csv: str | None = None
    request_timeout_seconds: float = Field(default=20.0, gt=0.0)
    user_agent: str = DEFAULT_USER_AGENT
    summary_max_length: int = Field(default=500, ge=1)
    snippet_radius: int = Field(default=150, ge=0)

    @field_validator("email_to", mode="before")
    @classmethod
    def _split_recipients(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_recipients(value)
        return value

    @field_validator("email_from")
    @classmethod
    def _validate_sender(cls, value: str) -> str:
        if value and "@" not in value:
            raise ValueError("EMAIL_FROM must be an email address")
        return value


def _env_value(environ: Mapping[str, str], key: str) -> str:
    return environ.get(key, "").strip()


def parse_recipients(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_days_lookback(raw: str) -> int:
    try:
        days = int(raw)
    except ValueError:
        return DEFAULT_DAYS_LOOKBACK
    if days < 0 or days > MAX_DAYS_LOOKBACK:
        return DEFAULT_DAYS_LOOKBACK
    return days


def missing_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> list[str]:
    source = os.environ if environ is None else environ
    missing = [key for key in required if not _env_value(source, key)]
    if "EMAIL_TO" in required and "EMAIL_TO" not in missing:
        if not parse_recipients(_env_value(source, "EMAIL_TO")):
            missing.append("EMAIL_TO")
    return missing


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    source = os.environ if environ is None else environ
    try:
        payload = {
            "sendgrid_api_key": _env_value(source, "SENDGRID_API_KEY"),
            "email_from": _env_value(source, "EMAIL_FROM"),
            "email_to": _env_value(source, "EMAIL_TO"),
            "days_lookback": parse_days_lookback(_env_value(source, "DAYS_LOOKBACK")),
            "keywords_csv": _env_value(source, "KEYWORDS_CSV") or None,
            "request_timeout_seconds": float(_env_value(source, "REQUEST_TIMEOUT_SECONDS") or "20"),
            "user_agent": _env_value(source, "USER_AGENT") or DEFAULT_USER_AGENT,
            "summary_max_length": int(_env_value(source, "SUMMARY_MAX_LENGTH") or "500"),
        }
        return Settings(**payload)
    except (ValueError, ValidationError) as exc:
        raise ConfigError(str(exc)) from exc


def assert_required_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> None:
    missing = missing_envs(required, environ)
    if missing:
        keys = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {keys}")


def mask_secret(value: str, visible_prefix: int = 3, visible_suffix: int = 2) -> str:
    if not value:
        return ""
    if len(value) <= visible_prefix + visible_suffix:
        return "*" * len(value)
    hidden = "*" * (len(value) - visible_prefix - visible_suffix)
    return f"{value[:visible_prefix]}{hidden}{value[-visible_suffix:]}"

"""
Runtime settings, read once from the environment at startup.

Nothing else in the package reads os.environ: entry points build a
Settings and pass it (or the clients built from it) down explicitly.
"""

import os
from dataclasses import dataclass

from frontdesk.domain.errors import ValidationError


def _int_env(env: dict[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(env: dict[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    db_path: str = "data/frontdesk.db"

    classifier_backend: str = "claude"      # "claude" or "simulator"
    anthropic_api_key: str = ""
    classifier_model: str = "claude-haiku-4-5-20251001"
    classifier_timeout_seconds: float = 20.0

    # e.g. "SMS:twilio,EMAIL:email,WEB_CHAT:console"
    delivery_channels: str = "WEB_CHAT:console,WHATSAPP:console"

    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""

    email_smtp_host: str = "smtp.gmail.com"
    email_smtp_port: int = 587
    email_imap_host: str = "imap.gmail.com"
    email_imap_port: int = 993
    email_user: str = ""
    email_password: str = ""
    email_hotel_id: str = ""                # hotel whose mailbox the daemon polls

    poll_interval: int = 60
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "Settings":
        env = dict(os.environ if env is None else env)
        settings = cls(
            db_path=env.get("DB_PATH", cls.db_path),
            classifier_backend=env.get("CLASSIFIER_BACKEND", cls.classifier_backend).lower(),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            classifier_model=env.get("CLASSIFIER_MODEL", cls.classifier_model),
            classifier_timeout_seconds=_float_env(
                env, "CLASSIFIER_TIMEOUT_SECONDS", cls.classifier_timeout_seconds
            ),
            delivery_channels=env.get("DELIVERY_CHANNELS", cls.delivery_channels),
            twilio_account_sid=env.get("TWILIO_ACCOUNT_SID", ""),
            twilio_auth_token=env.get("TWILIO_AUTH_TOKEN", ""),
            twilio_phone_number=env.get("TWILIO_PHONE_NUMBER", ""),
            email_smtp_host=env.get("EMAIL_SMTP_HOST", cls.email_smtp_host),
            email_smtp_port=_int_env(env, "EMAIL_SMTP_PORT", cls.email_smtp_port),
            email_imap_host=env.get("EMAIL_IMAP_HOST", cls.email_imap_host),
            email_imap_port=_int_env(env, "EMAIL_IMAP_PORT", cls.email_imap_port),
            email_user=env.get("EMAIL_USER", ""),
            email_password=env.get("EMAIL_PASSWORD", ""),
            email_hotel_id=env.get("EMAIL_HOTEL_ID", ""),
            poll_interval=_int_env(env, "POLL_INTERVAL", cls.poll_interval),
            api_host=env.get("API_HOST", cls.api_host),
            api_port=_int_env(env, "API_PORT", cls.api_port),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.classifier_backend not in ("claude", "simulator"):
            raise ValidationError(
                f"CLASSIFIER_BACKEND must be 'claude' or 'simulator', got {self.classifier_backend!r}"
            )
        if self.classifier_backend == "claude" and not self.anthropic_api_key:
            raise ValidationError("ANTHROPIC_API_KEY is required for the claude classifier")
        if self.classifier_timeout_seconds <= 0:
            raise ValidationError("CLASSIFIER_TIMEOUT_SECONDS must be positive")

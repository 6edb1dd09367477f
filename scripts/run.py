"""
Local process runner for the frontdesk daemon.

Every POLL_INTERVAL seconds: picks up new guest emails from the hotel
mailbox, runs them through Message Intake, and marks late follow-up tasks
as OVERDUE for every hotel.

Usage:
    source .env && python scripts/run.py

Environment variables (see frontdesk/config.py for defaults):
    ANTHROPIC_API_KEY       - Anthropic/Claude API key (unless CLASSIFIER_BACKEND=simulator)
    CLASSIFIER_BACKEND      - "claude" or "simulator" (default: claude)
    CLASSIFIER_MODEL, CLASSIFIER_TIMEOUT_SECONDS
    DB_PATH                 - SQLite database path (default: data/frontdesk.db)
    DELIVERY_CHANNELS       - e.g. "SMS:twilio,EMAIL:email,WEB_CHAT:console"
    POLL_INTERVAL           - seconds between polls (default: 60)

    # Email (only when EMAIL is mapped to the email provider)
    EMAIL_SMTP_HOST, EMAIL_SMTP_PORT, EMAIL_USER, EMAIL_PASSWORD
    EMAIL_IMAP_HOST, EMAIL_IMAP_PORT, EMAIL_HOTEL_ID

    # SMS (only when a channel is mapped to twilio)
    TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER
"""

import asyncio
import logging
import os
import sys

# Make sure project root is on sys.path when run as a script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from frontdesk.bootstrap import build_services, find_mailbox
from frontdesk.config import Settings
from frontdesk.daemon import poll_once
from frontdesk.domain.errors import ValidationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-7s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger(__name__)


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)


async def main() -> None:
    settings = _load_settings()
    services = build_services(settings)

    mailbox = find_mailbox(services)
    if mailbox is not None and not settings.email_hotel_id:
        print("ERROR: environment variable 'EMAIL_HOTEL_ID' is not set.", file=sys.stderr)
        sys.exit(1)

    log.info(
        "Daemon started: mailbox=%s  interval=%ds  db=%s",
        settings.email_hotel_id or "off",
        settings.poll_interval,
        settings.db_path,
    )

    while True:
        summary = await poll_once(
            services.message_intake,
            services.store,
            mailbox=mailbox,
            mailbox_hotel_id=settings.email_hotel_id,
        )
        if summary.processed or summary.failed or summary.overdue:
            log.info(
                "Cycle done: emails=%d failed=%d overdue=%d",
                len(summary.processed), summary.failed, summary.overdue,
            )
        log.info("Sleeping %ds …", settings.poll_interval)
        await asyncio.sleep(settings.poll_interval)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Daemon stopped.")

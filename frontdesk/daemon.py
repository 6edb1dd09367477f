"""
Core polling logic for the frontdesk daemon.

Kept apart from scripts/run.py so it can be imported and tested with
simulators, without Claude or IMAP.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from frontdesk.communication.ports import InboundMailbox
from frontdesk.domain.errors import FrontdeskError
from frontdesk.domain.records import Channel
from frontdesk.domain.store import HotelStore
from frontdesk.domain.tasks import sweep_overdue
from frontdesk.pipeline import IntakeRequest, IntakeResult, MessageIntake

log = logging.getLogger(__name__)


@dataclass
class PollSummary:
    processed: list[IntakeResult] = field(default_factory=list)
    failed: int = 0
    overdue: int = 0


async def poll_once(
    intake: MessageIntake,
    store: HotelStore,
    mailbox: InboundMailbox | None = None,
    mailbox_hotel_id: str = "",
    now: datetime | None = None,
) -> PollSummary:
    """
    One poll cycle.

    1. Fetch unseen emails from the hotel mailbox (if one is configured).
    2. Match each sender to a guest of that hotel and run Message Intake.
    3. Sweep every hotel for overdue follow-up tasks.

    A failure on one email or one hotel is logged and the cycle goes on.
    """
    summary = PollSummary()

    if mailbox is not None and mailbox_hotel_id:
        try:
            emails = await mailbox.poll_inbound()
        except FrontdeskError as exc:
            log.error("hotel=%s mailbox poll failed: %s", mailbox_hotel_id, exc)
            emails = []

        if emails:
            log.info("hotel=%s %d new email(s)", mailbox_hotel_id, len(emails))

        for mail in emails:
            try:
                guest = await store.find_guest_by_email(mailbox_hotel_id, mail.sender)
                result = await intake.handle_incoming_message(
                    IntakeRequest(
                        channel=Channel.EMAIL,
                        content=mail.body,
                        hotel_id=mailbox_hotel_id,
                        guest_id=guest.guest_id if guest else None,
                        language=guest.language if guest else None,
                    )
                )
            except FrontdeskError as exc:
                summary.failed += 1
                log.error("hotel=%s email from %s not processed: %s", mailbox_hotel_id, mail.sender, exc)
                continue

            summary.processed.append(result)
            log.debug(
                "hotel=%s email from %s → %s", mailbox_hotel_id, mail.sender, result.action
            )

    now = now or datetime.now(timezone.utc)
    try:
        hotels = await store.list_hotels()
    except FrontdeskError as exc:
        log.error("Failed to list hotels for SLA sweep: %s", exc)
        return summary

    for hotel in hotels:
        try:
            summary.overdue += len(await sweep_overdue(store, hotel.hotel_id, now))
        except FrontdeskError as exc:
            log.error("hotel=%s SLA sweep failed: %s", hotel.hotel_id, exc)

    return summary

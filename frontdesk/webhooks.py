"""
Webhook payload normalizers.

Providers each speak their own format; everything here turns one inbound
payload into the parameters the intake pipelines take.  No I/O.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from pydantic import BaseModel, ConfigDict, Field

from frontdesk.domain.errors import ValidationError
from frontdesk.domain.records import CallStatus, Channel
from frontdesk.pipeline import CallCompletion, IncomingCall, IntakeRequest

# Twilio call status → ours. "canceled" means the caller hung up before
# the call was answered.
_TWILIO_CALL_STATUS = {
    "queued": CallStatus.RINGING,
    "initiated": CallStatus.RINGING,
    "ringing": CallStatus.RINGING,
    "in-progress": CallStatus.IN_PROGRESS,
    "answered": CallStatus.IN_PROGRESS,
    "completed": CallStatus.COMPLETED,
    "busy": CallStatus.BUSY,
    "no-answer": CallStatus.NO_ANSWER,
    "failed": CallStatus.FAILED,
    "canceled": CallStatus.NO_ANSWER,
}


class MessageWebhookBody(BaseModel):
    """JSON body of POST /api/messages/webhook/{channel}."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    hotel_id: str | None = Field(default=None, alias="hotelId")
    guest_id: str | None = Field(default=None, alias="guestId")
    booking_id: str | None = Field(default=None, alias="bookingId")
    language: str | None = None


def parse_channel(raw: str) -> Channel:
    """Path segment → Channel. Accepts "sms", "web-chat", "WEB_CHAT"..."""
    try:
        return Channel(raw.strip().upper().replace("-", "_"))
    except ValueError as exc:
        raise ValidationError(f"unknown channel {raw!r}") from exc


def message_request(
    channel: str, body: MessageWebhookBody, header_hotel_id: str | None = None
) -> IntakeRequest:
    """The hotel may come from the body or from the X-Hotel-Id header."""
    hotel_id = body.hotel_id or header_hotel_id
    if not hotel_id:
        raise ValidationError("hotelId is required")
    return IntakeRequest(
        channel=parse_channel(channel),
        content=body.content,
        hotel_id=hotel_id,
        guest_id=body.guest_id or None,
        booking_id=body.booking_id or None,
        language=body.language or None,
    )


def _required(form: Mapping[str, str], key: str) -> str:
    value = (form.get(key) or "").strip()
    if not value:
        raise ValidationError(f"{key} is required")
    return value


def twilio_call_status(raw: str) -> CallStatus:
    try:
        return _TWILIO_CALL_STATUS[raw.strip().lower()]
    except KeyError as exc:
        raise ValidationError(f"unknown Twilio CallStatus {raw!r}") from exc


def _twilio_timestamp(raw: str | None) -> datetime | None:
    # Twilio sends RFC 2822 dates, e.g. "Tue, 10 Aug 2010 03:45:01 +0000"
    if not raw:
        return None
    try:
        dt = parsedate_to_datetime(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"bad Timestamp {raw!r}") from exc
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def twilio_incoming_call(form: Mapping[str, str]) -> IncomingCall:
    return IncomingCall(
        dialed_number=_required(form, "To"),
        caller_number=_required(form, "From"),
        provider_call_id=_required(form, "CallSid"),
    )


def twilio_transcript(form: Mapping[str, str]) -> tuple[str, str, str]:
    """Return (dialed number, CallSid, transcript text)."""
    return (
        _required(form, "To"),
        _required(form, "CallSid"),
        _required(form, "TranscriptionText"),
    )


def twilio_completion(form: Mapping[str, str]) -> tuple[str, str, CallCompletion]:
    """Return (dialed number, CallSid, completion) from a status callback."""
    duration = None
    raw_duration = (form.get("CallDuration") or "").strip()
    if raw_duration:
        try:
            duration = int(raw_duration)
        except ValueError as exc:
            raise ValidationError(f"bad CallDuration {raw_duration!r}") from exc

    completion = CallCompletion(
        status=twilio_call_status(_required(form, "CallStatus")),
        ended_at=_twilio_timestamp(form.get("Timestamp")),
        duration_seconds=duration,
        recording_url=(form.get("RecordingUrl") or None),
    )
    return _required(form, "To"), _required(form, "CallSid"), completion

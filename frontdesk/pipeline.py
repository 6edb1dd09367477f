"""
Intake pipelines.

Wires together all ports following the plan principle:
  AI → data → code

MessageIntake (text channels):
  1. Code: validate the request, resolve hotel / guest / booking
  2. Store: persist the inbound message            ← failures propagate
  3. AI: classify → ClassificationResult           ← failures degrade
  4. Code: escalation policy → maybe a FollowUpTask
  5. Store: persist the autonomous reply
  6. Store: annotate the inbound message with intent + sentiment
  7. Delivery: send the reply, record DELIVERED / FAILED

CallIntake (voice) follows the same shape across several webhooks:
call start → transcript → completion.  Calls are classified but never
escalated to a task.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from frontdesk.communication.ports import DeliveryProvider
from frontdesk.domain.classification import (
    ClassificationClient,
    ClassificationContext,
    ClassificationResult,
    clamp_urgency,
)
from frontdesk.domain.errors import (
    CallNotFoundError,
    ClassificationUnavailableError,
    DeliveryError,
    InvalidInputError,
    PersistenceError,
    TenantResolutionError,
    ValidationError,
)
from frontdesk.domain.escalation import EscalationDecision, decide
from frontdesk.domain.records import (
    TERMINAL_CALL_STATUSES,
    Booking,
    CallRecord,
    CallStatus,
    Channel,
    Direction,
    FollowUpTask,
    Guest,
    Hotel,
    Message,
    MessageStatus,
)
from frontdesk.domain.store import CallUpdate, HotelStore

log = logging.getLogger(__name__)

# Sent when the model classified the message but wrote no reply.
HOLDING_REPLY = "Thank you for your message. A member of our team will get back to you shortly."


@dataclass
class IntakeRequest:
    """An inbound text message, already normalized by the webhook layer."""
    channel: Channel
    content: str
    hotel_id: str
    guest_id: str | None = None
    booking_id: str | None = None
    language: str | None = None


@dataclass
class IntakeResult:
    action: Literal[
        "unclassified",  # classifier unavailable: stored only, a human will pick it up
        "responded",     # autonomous reply stored (and delivery attempted)
        "escalated",     # reply + follow-up task for staff
    ]
    message: Message
    ai_response: Message | None = None
    task: FollowUpTask | None = None
    classification: ClassificationResult | None = None


@dataclass
class IncomingCall:
    """A voice webhook: who called which hotel number."""
    dialed_number: str
    caller_number: str
    provider_call_id: str | None = None


@dataclass
class CallCompletion:
    """What the telephony provider reports when a call ends."""
    status: CallStatus
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_seconds: int | None = None   # used when timestamps are missing
    recording_url: str | None = None


@dataclass
class _Links:
    hotel: Hotel
    guest: Guest | None
    booking: Booking | None


async def resolve_links(
    store: HotelStore, hotel_id: str, guest_id: str | None, booking_id: str | None
) -> _Links:
    """Look up the hotel and the linked guest/booking, all under one tenant."""
    hotel = await store.get_hotel(hotel_id)
    if hotel is None:
        raise TenantResolutionError(f"unknown hotel {hotel_id!r}")

    guest = None
    if guest_id:
        guest = await store.get_guest(hotel_id, guest_id)
        if guest is None:
            raise ValidationError(f"guest {guest_id!r} does not belong to hotel {hotel_id!r}")

    booking = None
    if booking_id:
        booking = await store.get_booking(hotel_id, booking_id)
        if booking is None:
            raise ValidationError(f"booking {booking_id!r} does not belong to hotel {hotel_id!r}")

    return _Links(hotel=hotel, guest=guest, booking=booking)


def build_context(links: _Links, language: str | None = None) -> ClassificationContext:
    """The context rule shared by messages and calls."""
    prior = None
    if links.booking is not None:
        b = links.booking
        prior = f"Booking {b.confirmation_number}: {b.check_in} → {b.check_out}"
        if b.room_number:
            prior += f", room {b.room_number}"

    return ClassificationContext(
        hotel_name=links.hotel.name,
        guest_name=links.guest.first_name if links.guest else None,
        prior_context=prior,
        language=(
            language
            or (links.guest.language if links.guest else None)
            or links.hotel.default_language
        ),
    )


class MessageIntake:
    """
    Stateless pipeline: process one inbound text message per call.

    Only steps 1–2 can fail the request.  Everything after the inbound
    message is stored degrades the result instead of raising.
    """

    def __init__(
        self,
        store: HotelStore,
        classifier: ClassificationClient,
        providers: dict[Channel, DeliveryProvider] | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._providers = providers or {}

    async def handle_incoming_message(self, request: IntakeRequest) -> IntakeResult:
        if not request.hotel_id or not request.hotel_id.strip():
            raise ValidationError("hotel_id is required")
        if not request.content or not request.content.strip():
            raise ValidationError("content is required")

        links = await resolve_links(
            self._store, request.hotel_id, request.guest_id, request.booking_id
        )

        # Step 2: persist the inbound message
        message = await self._store.create_message(
            hotel_id=request.hotel_id,
            channel=request.channel,
            direction=Direction.INBOUND,
            content=request.content,
            status=MessageStatus.DELIVERED,
            guest_id=request.guest_id,
            booking_id=request.booking_id,
            language=request.language,
        )
        log.debug(
            "hotel=%s msg=%s channel=%s content=%.60r",
            message.hotel_id, message.message_id, message.channel.value, message.content,
        )

        # Step 3: AI classifies
        try:
            result = await self._classifier.classify(
                message.content, build_context(links, request.language)
            )
        except (ClassificationUnavailableError, InvalidInputError) as exc:
            log.warning(
                "hotel=%s msg=%s classification unavailable, stored without reply: %s",
                message.hotel_id, message.message_id, exc,
            )
            return IntakeResult(action="unclassified", message=message)

        decision = decide(result)
        log.info(
            "hotel=%s msg=%s classified → intent=%s sentiment=%s urgency=%d escalate=%s",
            message.hotel_id, message.message_id, result.intent, result.sentiment,
            result.urgency, decision.should_escalate,
        )

        # Step 4: escalate
        task = None
        if decision.should_escalate:
            task = await self._escalate(message, result, decision)

        # Step 5: respond
        ai_response = await self._respond(message, result)

        # Step 6: annotate (urgency is deliberately not stored on the message)
        try:
            await self._store.annotate_message(
                message.hotel_id, message.message_id, result.intent, result.sentiment
            )
            message.intent = result.intent
            message.sentiment = result.sentiment
        except PersistenceError as exc:
            log.error("hotel=%s msg=%s annotate failed: %s", message.hotel_id, message.message_id, exc)

        # Step 7: deliver
        if ai_response is not None:
            await self._deliver(ai_response, links.guest)

        return IntakeResult(
            action="escalated" if task is not None else "responded",
            message=message,
            ai_response=ai_response,
            task=task,
            classification=result,
        )

    async def send_message(
        self,
        hotel_id: str,
        channel: Channel,
        content: str,
        guest_id: str | None = None,
        booking_id: str | None = None,
    ) -> Message:
        """Send a staff-written message to a guest."""
        if not content or not content.strip():
            raise ValidationError("content is required")
        links = await resolve_links(self._store, hotel_id, guest_id, booking_id)

        message = await self._store.create_message(
            hotel_id=hotel_id,
            channel=channel,
            direction=Direction.OUTBOUND,
            content=content,
            status=MessageStatus.SENT,
            guest_id=guest_id,
            booking_id=booking_id,
        )
        await self._deliver(message, links.guest)
        return message

    async def _escalate(
        self, message: Message, result: ClassificationResult, decision: EscalationDecision
    ) -> FollowUpTask | None:
        try:
            task = await self._store.create_task(
                hotel_id=message.hotel_id,
                title=f"Guest Request: {result.intent or 'General'}",
                description=message.content,
                category=decision.category,
                priority=decision.priority,
                guest_id=message.guest_id,
                booking_id=message.booking_id,
                metadata={
                    "source": "message",
                    "message_id": message.message_id,
                    "channel": message.channel.value,
                },
            )
        except PersistenceError as exc:
            log.error("hotel=%s msg=%s task creation failed: %s", message.hotel_id, message.message_id, exc)
            return None

        log.info(
            "hotel=%s msg=%s escalated → task=%s category=%s priority=%s",
            message.hotel_id, message.message_id, task.task_id,
            task.category.value, task.priority.value,
        )
        return task

    async def _respond(self, message: Message, result: ClassificationResult) -> Message | None:
        try:
            return await self._store.create_message(
                hotel_id=message.hotel_id,
                channel=message.channel,
                direction=Direction.OUTBOUND,
                content=result.reply.strip() or HOLDING_REPLY,
                status=MessageStatus.SENT,
                guest_id=message.guest_id,
                booking_id=message.booking_id,
                language=message.language,
                autonomous=True,
                reply_to_id=message.message_id,
            )
        except PersistenceError as exc:
            log.error("hotel=%s msg=%s reply not stored: %s", message.hotel_id, message.message_id, exc)
            return None

    async def _deliver(self, message: Message, guest: Guest | None) -> None:
        """Fire-and-forget delivery; the outcome lands on message.status."""
        provider = self._providers.get(message.channel)
        if provider is None:
            log.info(
                "hotel=%s msg=%s no delivery provider for %s, left as %s",
                message.hotel_id, message.message_id, message.channel.value, message.status.value,
            )
            return

        try:
            tracking_id = await provider.send(message, guest)
            status = MessageStatus.DELIVERED
            log.info("hotel=%s msg=%s delivered (%s)", message.hotel_id, message.message_id, tracking_id)
        except DeliveryError as exc:
            status = MessageStatus.FAILED
            log.warning("hotel=%s msg=%s delivery failed: %s", message.hotel_id, message.message_id, exc)

        try:
            await self._store.update_message_status(message.hotel_id, message.message_id, status)
            message.status = status
        except PersistenceError as exc:
            log.error("hotel=%s msg=%s status update failed: %s", message.hotel_id, message.message_id, exc)


class CallIntake:
    """
    Stateless pipeline for voice calls, driven by provider webhooks.

    Unlike MessageIntake there is no escalation step: a classified call
    never opens a FollowUpTask.
    """

    def __init__(self, store: HotelStore, classifier: ClassificationClient):
        self._store = store
        self._classifier = classifier

    async def resolve_hotel(self, dialed_number: str) -> Hotel:
        hotel = await self._store.find_hotel_by_phone(dialed_number)
        if hotel is None:
            raise TenantResolutionError(f"no hotel for number {dialed_number!r}")
        return hotel

    async def handle_incoming_call(self, event: IncomingCall) -> CallRecord:
        hotel = await self.resolve_hotel(event.dialed_number)

        # Providers may repeat the start webhook; keep one record per call
        if event.provider_call_id:
            existing = await self._store.find_call_by_provider_id(
                hotel.hotel_id, event.provider_call_id
            )
            if existing is not None:
                log.info("hotel=%s call=%s already recorded", hotel.hotel_id, existing.call_id)
                return existing

        guest = await self._store.find_guest_by_phone(hotel.hotel_id, event.caller_number)

        call = await self._store.create_call(
            hotel_id=hotel.hotel_id,
            phone_number=event.caller_number,
            direction=Direction.INBOUND,
            status=CallStatus.IN_PROGRESS,
            provider_call_id=event.provider_call_id,
            guest_id=guest.guest_id if guest else None,
        )
        log.info(
            "hotel=%s call=%s inbound from %s guest=%s",
            hotel.hotel_id, call.call_id, event.caller_number,
            guest.guest_id if guest else "-",
        )
        return call

    async def find_provider_call(self, dialed_number: str, provider_call_id: str) -> CallRecord:
        """Resolve a provider callback (dialed number + provider id) to our record."""
        hotel = await self.resolve_hotel(dialed_number)
        call = await self._store.find_call_by_provider_id(hotel.hotel_id, provider_call_id)
        if call is None:
            raise CallNotFoundError(f"no call {provider_call_id!r} for hotel {hotel.hotel_id!r}")
        return call

    async def attach_transcript(self, hotel_id: str, call_id: str, transcript: str) -> CallRecord:
        """Store a transcript and classify it. Classification failure is not fatal."""
        if not transcript or not transcript.strip():
            raise ValidationError("transcript is required")

        call = await self._store.get_call(hotel_id, call_id)
        if call is None:
            raise CallNotFoundError(f"call {call_id} not found")

        links = await resolve_links(self._store, hotel_id, call.guest_id, call.booking_id)
        # A new transcript invalidates whatever the previous one was classified as
        call = await self._store.update_call(
            hotel_id, call_id, CallUpdate(transcript=transcript, clear_classification=True)
        )

        try:
            result = await self._classifier.classify(transcript, build_context(links))
        except (ClassificationUnavailableError, InvalidInputError) as exc:
            log.warning("hotel=%s call=%s transcript stored unclassified: %s", hotel_id, call_id, exc)
            return call

        log.info(
            "hotel=%s call=%s classified → intent=%s sentiment=%s urgency=%d",
            hotel_id, call_id, result.intent, result.sentiment, result.urgency,
        )
        return await self._store.update_call(
            hotel_id,
            call_id,
            CallUpdate(
                intent=result.intent,
                sentiment=result.sentiment,
                urgency=clamp_urgency(result.urgency),
                summary=result.summary,
            ),
        )

    async def complete_call(
        self, hotel_id: str, call_id: str, completion: CallCompletion
    ) -> CallRecord:
        if completion.status not in TERMINAL_CALL_STATUSES:
            raise ValidationError(f"{completion.status.value} is not a terminal call status")

        call = await self._store.get_call(hotel_id, call_id)
        if call is None:
            raise CallNotFoundError(f"call {call_id} not found")

        duration = completion.duration_seconds
        if completion.started_at is not None and completion.ended_at is not None:
            seconds = (completion.ended_at - completion.started_at).total_seconds()
            if seconds < 0:
                raise ValidationError("call ended before it started")
            duration = int(seconds)

        call = await self._store.update_call(
            hotel_id,
            call_id,
            CallUpdate(
                status=completion.status,
                duration_seconds=duration,
                ended_at=completion.ended_at,
                recording_url=completion.recording_url,
            ),
        )
        log.info(
            "hotel=%s call=%s ended status=%s duration=%ss",
            hotel_id, call_id, call.status.value, call.duration_seconds,
        )
        return call

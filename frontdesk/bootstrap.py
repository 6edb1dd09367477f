"""Build the long-lived collaborators from Settings. Used by every entry point."""

import logging
import os
from dataclasses import dataclass

from frontdesk.communication.factory import create_delivery_providers
from frontdesk.communication.ports import DeliveryProvider, InboundMailbox
from frontdesk.config import Settings
from frontdesk.domain.classification import ClassificationClient
from frontdesk.domain.records import Channel
from frontdesk.domain.store import HotelStore
from frontdesk.pipeline import CallIntake, MessageIntake

log = logging.getLogger(__name__)


@dataclass
class Services:
    store: HotelStore
    classifier: ClassificationClient
    providers: dict[Channel, DeliveryProvider]
    message_intake: MessageIntake
    call_intake: CallIntake


def build_store(settings: Settings) -> HotelStore:
    from frontdesk.adapters.sqlite_store import SqliteHotelStore

    directory = os.path.dirname(settings.db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return SqliteHotelStore(db_path=settings.db_path)


def build_classifier(settings: Settings) -> ClassificationClient:
    if settings.classifier_backend == "simulator":
        from frontdesk.adapters.simulator_classifier import SimulatorClassificationClient

        log.warning("Using the keyword simulator classifier (CLASSIFIER_BACKEND=simulator)")
        return SimulatorClassificationClient()

    from frontdesk.adapters.claude_classifier import ClaudeClassificationClient

    return ClaudeClassificationClient(
        api_key=settings.anthropic_api_key,
        model=settings.classifier_model,
        timeout=settings.classifier_timeout_seconds,
    )


def build_services(settings: Settings, store: HotelStore | None = None) -> Services:
    store = store or build_store(settings)
    classifier = build_classifier(settings)
    providers = create_delivery_providers(settings)
    log.info(
        "Delivery channels: %s",
        ", ".join(f"{c.value}={type(p).__name__}" for c, p in providers.items()) or "none",
    )
    return Services(
        store=store,
        classifier=classifier,
        providers=providers,
        message_intake=MessageIntake(store, classifier, providers),
        call_intake=CallIntake(store, classifier),
    )


def find_mailbox(services: Services) -> InboundMailbox | None:
    """The EMAIL channel's provider doubles as the inbound mailbox."""
    provider = services.providers.get(Channel.EMAIL)
    return provider if isinstance(provider, InboundMailbox) else None

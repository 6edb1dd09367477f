from enum import Enum

from frontdesk.config import Settings
from frontdesk.domain.records import Channel

from .ports import DeliveryProvider


class ProviderKind(Enum):
    CONSOLE = "console"
    TWILIO = "twilio"
    EMAIL = "email"


def parse_channel_map(spec: str) -> dict[Channel, ProviderKind]:
    """
    Parse "SMS:twilio,EMAIL:email" into {Channel.SMS: ProviderKind.TWILIO, ...}.

    Unknown channels or provider kinds raise ValueError.
    """
    mapping: dict[Channel, ProviderKind] = {}
    for item in spec.split(","):
        item = item.strip()
        if not item:
            continue
        channel_name, _, kind_name = item.partition(":")
        try:
            channel = Channel(channel_name.strip().upper())
            kind = ProviderKind(kind_name.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown delivery mapping: {item!r}") from exc
        mapping[channel] = kind
    return mapping


def create_provider(kind: ProviderKind, settings: Settings) -> DeliveryProvider:
    """Factory: build one delivery adapter from settings."""
    if kind is ProviderKind.TWILIO:
        from .twilio_sms import TwilioSmsProvider

        return TwilioSmsProvider(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
        )

    if kind is ProviderKind.EMAIL:
        from .email_provider import EmailDeliveryProvider

        return EmailDeliveryProvider(
            smtp_host=settings.email_smtp_host,
            smtp_port=settings.email_smtp_port,
            smtp_user=settings.email_user,
            smtp_password=settings.email_password,
            imap_host=settings.email_imap_host,
            imap_port=settings.email_imap_port,
        )

    from .console_provider import ConsoleDeliveryProvider

    return ConsoleDeliveryProvider()


def create_delivery_providers(settings: Settings) -> dict[Channel, DeliveryProvider]:
    """
    Build one provider per configured channel.

    Channels mapped to the same kind share one adapter instance.
    """
    built: dict[ProviderKind, DeliveryProvider] = {}
    providers: dict[Channel, DeliveryProvider] = {}
    for channel, kind in parse_channel_map(settings.delivery_channels).items():
        if kind not in built:
            built[kind] = create_provider(kind, settings)
        providers[channel] = built[kind]
    return providers

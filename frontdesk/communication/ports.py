from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from frontdesk.domain.records import Guest, Message


@dataclass
class InboundEmail:
    """A guest email picked up from the hotel mailbox."""

    sender: str
    subject: str
    body: str
    received_at: datetime


class DeliveryProvider(ABC):
    """
    Port: how an outbound message reaches the guest.

    The pipeline depends ONLY on this interface.  It doesn't know or care
    whether the message goes out as an SMS, an email or a console print.
    Delivery is fire-and-forget: no callback confirms receipt.
    """

    @abstractmethod
    async def send(self, message: Message, guest: Guest | None) -> str:
        """
        Send one outbound message.
        Returns a tracking ID (provider message SID, email Message-ID, ...).
        Raises DeliveryError on any failure.
        """
        ...


class InboundMailbox(ABC):
    """Port: a mailbox the daemon polls for new guest emails."""

    @abstractmethod
    async def poll_inbound(self) -> list[InboundEmail]:
        """Return emails not seen before and mark them seen."""
        ...

import uuid

from frontdesk.domain.errors import DeliveryError
from frontdesk.domain.records import Guest, Message

from .ports import DeliveryProvider


class ConsoleDeliveryProvider(DeliveryProvider):
    """Adapter: print to console and remember what was sent. For dev/testing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[Message] = []

    async def send(self, message: Message, guest: Guest | None) -> str:
        if self.fail:
            raise DeliveryError(f"simulated {message.channel.value} delivery failure")

        self.sent.append(message)
        recipient = guest.first_name if guest else "(unknown guest)"

        print(f"\n{'=' * 60}")
        print(f"  TO GUEST: {recipient}  via {message.channel.value}")
        print(f"  HOTEL: {message.hotel_id}")
        print(f"  MESSAGE ID: {message.message_id}")
        print(f"{'=' * 60}")
        print(message.content)
        print(f"{'=' * 60}\n")

        return f"console-{uuid.uuid4().hex[:12]}"

import asyncio

import requests

from frontdesk.domain.errors import DeliveryError
from frontdesk.domain.records import Guest, Message

from .ports import DeliveryProvider

BASE_URL = "https://api.twilio.com/2010-04-01"


class TwilioSmsProvider(DeliveryProvider):
    """Adapter: send SMS through the Twilio Messages REST API."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 10.0):
        self.account_sid = account_sid
        self.from_number = from_number
        self.timeout = timeout
        self.session = requests.Session()
        self.session.auth = (account_sid, auth_token)

    async def send(self, message: Message, guest: Guest | None) -> str:
        if guest is None or not guest.phone:
            raise DeliveryError("guest has no phone number")

        return await asyncio.to_thread(self._post, guest.phone, message.content)

    def _post(self, to: str, body: str) -> str:
        url = f"{BASE_URL}/Accounts/{self.account_sid}/Messages.json"
        try:
            resp = self.session.post(
                url,
                data={"To": to, "From": self.from_number, "Body": body},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json().get("sid", "")
        except (requests.RequestException, ValueError) as exc:
            raise DeliveryError(f"twilio: {exc}") from exc

import asyncio
import email as email_lib
import email.utils
import smtplib
from datetime import datetime, timezone
from email.mime.text import MIMEText

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from frontdesk.domain.errors import DeliveryError
from frontdesk.domain.records import Guest, Message

from .ports import DeliveryProvider, InboundEmail, InboundMailbox


class EmailDeliveryProvider(DeliveryProvider, InboundMailbox):
    """Adapter: talk to guests via email (SMTP send, IMAP receive)."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str,
        smtp_password: str,
        imap_host: str,
        imap_port: int,
        subject: str = "Your stay",
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.imap_host = imap_host
        self.imap_port = imap_port
        self.subject = subject
        self.timeout = timeout

    async def send(self, message: Message, guest: Guest | None) -> str:
        if guest is None or not guest.email:
            raise DeliveryError("guest has no email address")

        msg = MIMEText(message.content, _charset="utf-8")
        msg["Subject"] = self.subject
        msg["From"] = self.smtp_user
        msg["To"] = guest.email
        msg["Message-ID"] = email.utils.make_msgid(domain="frontdesk")
        msg["X-Message-ID"] = message.message_id

        try:
            await asyncio.to_thread(self._send_smtp, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"smtp: {exc}") from exc

        return msg["Message-ID"]

    def _send_smtp(self, msg: MIMEText) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg)

    async def poll_inbound(self) -> list[InboundEmail]:
        """Fetch unseen guest emails from INBOX and mark them seen."""
        try:
            return await asyncio.to_thread(self._fetch_unseen)
        except (IMAPClientError, OSError) as exc:
            raise DeliveryError(f"imap: {exc}") from exc

    def _fetch_unseen(self) -> list[InboundEmail]:
        inbound = []

        with IMAPClient(self.imap_host, port=self.imap_port, ssl=True, timeout=self.timeout) as client:
            client.login(self.smtp_user, self.smtp_password)
            client.select_folder("INBOX")

            uids = client.search(["UNSEEN"])
            if not uids:
                return inbound

            fetched = client.fetch(uids, ["RFC822"])
            for uid, data in fetched.items():
                msg = email_lib.message_from_bytes(data[b"RFC822"])
                _, sender = email.utils.parseaddr(msg["From"] or "")
                body = self._get_body(msg).strip()
                if sender and body:
                    inbound.append(
                        InboundEmail(
                            sender=sender.lower(),
                            subject=msg["Subject"] or "",
                            body=body,
                            received_at=datetime.now(timezone.utc),
                        )
                    )
                client.set_flags([uid], [b"\\Seen"])

        return inbound

    @staticmethod
    def _get_body(msg) -> str:
        if msg.is_multipart():
            for part in msg.walk():
                if part.get_content_type() == "text/plain":
                    payload = part.get_payload(decode=True)
                    if payload:
                        return payload.decode("utf-8", errors="replace")
            return ""
        payload = msg.get_payload(decode=True)
        if payload:
            return payload.decode("utf-8", errors="replace")
        return ""

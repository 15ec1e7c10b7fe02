"""How a logged WhatsApp message leaves the workshop.

The automation only depends on the MessageTransport interface. The default
ManualTransport sends nothing: messages are queued and staff send them from
the wa.me link on each logged message. A Cloud API client can be dropped in
by overriding get_transport.
"""
from dataclasses import dataclass
from typing import Optional, Protocol


class TransportError(Exception):
    """The messaging provider refused or could not be reached"""


@dataclass(frozen=True)
class DeliveryResult:
    status: str  # "sent" or "queued"
    provider_message_id: Optional[str] = None


class MessageTransport(Protocol):
    def send(self, phone_number: str, body: str) -> DeliveryResult: ...


class ManualTransport:
    def send(self, phone_number: str, body: str) -> DeliveryResult:
        return DeliveryResult(status="queued")


def get_transport() -> MessageTransport:
    return ManualTransport()

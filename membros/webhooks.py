import hashlib
import hmac
from typing import Any

import msgspec

from membros import _enums, _errors

__all__ = ("SIGNATURE_HEADER", "construct_event", "parse_event", "verify_signature")

SIGNATURE_HEADER = "X-Membros-Signature"
"""Header carrying the hex HMAC-SHA256 of the raw request body."""


class Event(msgspec.Struct, kw_only=True):
    """
    A webhook notification sent by Membros.
    """

    type: _enums.WebhookEventType
    """Event discriminator, e.g. ``charge.paid``."""
    data: dict[str, Any]
    """Object the event refers to, usually an order or a charge."""
    id: str | None = None
    """Unique event identifier."""
    created_at: str | None = None


def compute_signature(payload: bytes | str, secret: str) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes | str, signature: str, secret: str) -> bool:
    """
    Check a webhook signature.

    Parameters
    ----------
    payload : bytes or str
        Raw request body, exactly as received.
    signature : str
        Value of the ``X-Membros-Signature`` header.
    secret : str
        Webhook secret configured in the Membros dashboard.

    Returns
    -------
    bool
        True if the signature matches. The comparison runs in constant time.
    """
    if not signature or not signature.isascii():
        return False
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


def parse_event(payload: bytes | str) -> Event:
    """
    Parse a webhook payload without checking its signature.

    Raises
    ------
    msgspec.DecodeError
        If the payload cannot be decoded or has an unknown event type.
    """
    return msgspec.json.decode(payload, type=Event)


def construct_event(payload: bytes | str, signature: str, secret: str) -> Event:
    """
    Verify the signature, then parse the payload.

    Raises
    ------
    MembrosValidationError
        With code ``INVALID_SIGNATURE`` if the signature does not match.
    msgspec.DecodeError
        If the payload cannot be decoded.
    """
    if not verify_signature(payload, signature, secret):
        raise _errors.MembrosValidationError("Invalid webhook signature", "INVALID_SIGNATURE")
    return parse_event(payload)

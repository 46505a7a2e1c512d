"""Build :class:`RetrievedMessage` objects from raw ``RFC822`` payloads.

What:
  Turn the bytes returned by an IMAP ``UID FETCH ... RFC822`` into a parsed
  :class:`email.message.EmailMessage`, a lower-cased header mapping and a
  bounded plain-text body, bundled with the UID they came from.

Why:
  The fetch executor treats message parsing as a black box with a strict
  contract: every payload either becomes a message object or raises a typed
  error. The standard library parser is lenient and never raises on garbage,
  so this module adds the checks that turn "nothing recognisable" into
  :class:`~mailretriever.errors.MessageParseError`.

How:
  Use :class:`~email.parser.BytesParser` with the default policy, reject
  payloads that are empty or carry no header at all, walk MIME parts for the
  first ``text/*`` leaf and truncate it on encoded bytes.

Interfaces:
  :class:`RetrievedMessage`, :func:`build_message`, :func:`parse_message`.

Invariants & Safety:
  - Body text is always a ``str``; undecodable bytes are dropped with
    ``errors="ignore"``.
  - Truncation happens on UTF-8 bytes so multi-byte code points are never
    split.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from email import errors as email_errors
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Dict, Optional, Tuple

from ..errors import MessageParseError


MAX_BODY_BYTES = 1_000_000
"""Soft upper bound for decoded body size in bytes."""


@dataclass(frozen=True)
class RetrievedMessage:
    """One message handed to the caller after a retrieval.

    Attributes:
      uid: Server-assigned UID the payload was fetched under.
      message: Parsed :class:`EmailMessage`.
      headers: Header values keyed by lower-cased name.
      body_text: First textual body part, bounded by :data:`MAX_BODY_BYTES`.
      raw: Original payload bytes.
    """

    uid: int
    message: EmailMessage = field(repr=False)
    headers: Dict[str, str] = field(repr=False)
    body_text: str = field(repr=False)
    raw: bytes = field(repr=False)

    @property
    def subject(self) -> Optional[str]:
        return self.headers.get("subject")

    @property
    def sender(self) -> Optional[str]:
        return self.headers.get("from")

    @property
    def message_id(self) -> Optional[str]:
        return self.headers.get("message-id")


def parse_message(raw: bytes) -> Tuple[EmailMessage, Dict[str, str], str]:
    """Parse ``raw`` into a message, a header mapping and a text body.

    Args:
      raw: Raw message bytes as retrieved from an ``RFC822`` fetch.

    Returns:
      Tuple of the parsed :class:`EmailMessage`, headers keyed by lower-cased
      name, and the truncated text body.

    Raises:
      MessageParseError: If ``raw`` is not bytes, is empty, or contains no
        header section.
    """

    if not isinstance(raw, (bytes, bytearray)):
        raise MessageParseError(f"expected bytes payload, got {type(raw).__name__}")
    if not raw.strip():
        raise MessageParseError("empty message payload")
    try:
        message = BytesParser(policy=policy.default).parsebytes(bytes(raw))
        headers = {k.lower(): str(v) for k, v in message.items()}
    except (email_errors.MessageError, ValueError, TypeError) as exc:
        raise MessageParseError(f"unparseable message: {exc}") from exc
    if not headers:
        raise MessageParseError("payload has no RFC 822 header section")
    return message, headers, _extract_body_text(message)


def build_message(uid: int, raw: bytes) -> RetrievedMessage:
    """Construct the :class:`RetrievedMessage` for one fetched payload."""

    message, headers, body_text = parse_message(raw)
    return RetrievedMessage(
        uid=int(uid),
        message=message,
        headers=headers,
        body_text=body_text,
        raw=bytes(raw),
    )


def _extract_body_text(message: EmailMessage) -> str:
    """Return the first ``text/*`` leaf of ``message`` as bounded text."""

    if message.is_multipart():
        for part in message.walk():
            if part.is_multipart():
                continue
            if part.get_content_type().startswith("text/"):
                return _truncate(_part_text(part))
        return ""
    if message.get_content_maintype() != "text":
        return ""
    return _truncate(_part_text(message))


def _part_text(part: EmailMessage) -> str:
    charset = part.get_content_charset("utf-8")
    try:
        payload = part.get_content()
    except (KeyError, LookupError):
        # Unknown charset: decode the transfer-encoded bytes ourselves.
        payload = part.get_payload(decode=True) or b""
        charset = "utf-8"
    if isinstance(payload, bytes):
        payload = payload.decode(charset, errors="ignore")
    return str(payload)


def _truncate(text: str) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= MAX_BODY_BYTES:
        return text
    return encoded[:MAX_BODY_BYTES].decode("utf-8", errors="ignore")

"""Exception hierarchy shared by every retriever layer.

What:
  Define the typed failures a retrieval call can surface, from caller mistakes
  (bad options, missing callbacks) to transport and wire-level problems.

Why:
  Callers need to tell a rejected login apart from an unreachable host or a
  malformed payload without parsing ``imapclient`` messages. A single base
  class lets them catch everything retriever-related in one clause.

How:
  Every error derives from :class:`RetrieverError`. Caller bugs additionally
  inherit from the matching builtin (``TypeError``/``ValueError``) so generic
  handlers keep working. :class:`ProtocolError` keeps the underlying exception
  on ``cause`` in addition to the implicit ``__cause__`` chain.

Interfaces:
  :class:`RetrieverError`, :class:`InvalidUsageError`,
  :class:`InvalidRequestError`, :class:`ConnectionError`,
  :class:`AuthenticationError`, :class:`MailboxError`,
  :class:`ProtocolError`, :class:`MessageParseError`,
  :class:`ConfigLoadError`.

Invariants & Safety:
  - No retriever code retries on any of these errors; they always propagate.
  - ``ConnectionError`` shadows the builtin inside this module
    only; import it qualified (``errors.ConnectionError``) when both are
    needed.
"""
from __future__ import annotations

from typing import Optional


class RetrieverError(Exception):
    """Base class for all retriever failures."""


class InvalidUsageError(RetrieverError, TypeError):
    """Raised when the API is called incorrectly (e.g. missing action block)."""


class InvalidRequestError(RetrieverError, ValueError):
    """Raised when retrieval options cannot be normalised."""


class ConnectionError(RetrieverError):  # noqa: A001 - mirrors the transport vocabulary
    """Raised when the transport to the mail server cannot be opened."""


class AuthenticationError(RetrieverError):
    """Raised when the server rejects the configured credentials."""


class MailboxError(RetrieverError):
    """Raised when the configured mailbox does not exist or cannot be selected."""


class ProtocolError(RetrieverError):
    """Wire-level failure during search, fetch, flag, or message parsing.

    Attributes:
      operation: Short name of the session operation that failed.
      cause: The underlying transport or parser exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class MessageParseError(RetrieverError, ValueError):
    """Raised by the message helper when a payload is not an RFC 822 message."""


class ConfigLoadError(RetrieverError):
    """Raised when a retriever configuration file cannot be read or validated."""


__all__ = [
    "RetrieverError",
    "InvalidUsageError",
    "InvalidRequestError",
    "ConnectionError",
    "AuthenticationError",
    "MailboxError",
    "ProtocolError",
    "MessageParseError",
    "ConfigLoadError",
]

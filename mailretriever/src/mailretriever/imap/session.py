"""Scoped IMAP sessions with guaranteed release.

What:
  Wrap one ``imapclient.IMAPClient`` connection in :class:`MailSession`, which
  opens, authenticates and selects the configured mailbox on entry and always
  logs out on exit. :func:`with_session` runs a caller-supplied action inside
  such a session and returns its result.

Why:
  A retrieval call must never leak a server session, whether it succeeds,
  fails on login, or blows up while parsing a message. Centralising the
  lifecycle also gives every transport failure a typed error so callers can
  distinguish bad credentials from a missing mailbox or a dropped socket.

How:
  :meth:`MailSession.open` translates each setup step's failures into
  :class:`~mailretriever.errors.ConnectionError`,
  :class:`~mailretriever.errors.AuthenticationError` or
  :class:`~mailretriever.errors.MailboxError` and closes the half-open
  connection itself before re-raising, because ``__exit__`` does not run
  when ``__enter__`` fails. :meth:`MailSession.close` is idempotent, falls
  back from ``logout`` to ``shutdown`` and only logs its own failures.

Interfaces:
  :class:`MailSession` (``search``, ``fetch``, ``mark_seen``, ``close``),
  :func:`with_session`.

Invariants & Safety:
  - All message operations use UIDs (``IMAPClient`` defaults to UID mode).
  - ``close`` performs network I/O at most once per session.
  - Errors raised while closing never replace the exception that ended the
    session.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from imapclient import SEEN, IMAPClient
from imapclient import exceptions as imap_exceptions

from ..config.schema import RetrieverConfig
from ..errors import (
    AuthenticationError,
    ConnectionError,
    InvalidUsageError,
    MailboxError,
    ProtocolError,
)
from ..utils.logging import JsonLogger, get_logger


FETCH_ITEM = "RFC822"
_FETCH_KEY = FETCH_ITEM.encode("ascii")

_TRANSPORT_ERRORS = (imap_exceptions.IMAPClientError, OSError)

T = TypeVar("T")


class MailSession:
    """Context manager owning a single authenticated, mailbox-selected client."""

    def __init__(
        self,
        config: RetrieverConfig,
        *,
        logger: Optional[JsonLogger] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self._config = config
        self._logger = (logger or get_logger("mailretriever.imap")).bind(
            run_id=run_id, address=config.address, mailbox=config.mailbox
        )
        self._client: Optional[IMAPClient] = None
        self._closed = False

    def __enter__(self) -> "MailSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def config(self) -> RetrieverConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        """Connect, log in and select the configured mailbox.

        Raises:
          InvalidUsageError: If the session was already opened or closed.
          ConnectionError: If the transport cannot be established.
          AuthenticationError: If credentials are missing or the server rejects
            them.
          MailboxError: If the mailbox cannot be selected.
          ProtocolError: If the connection drops during login or select.
        """

        if self._client is not None or self._closed:
            raise InvalidUsageError("MailSession instances cannot be reopened")
        cfg = self._config
        try:
            self._client = IMAPClient(cfg.address, port=cfg.port, ssl=cfg.enable_ssl)
        except _TRANSPORT_ERRORS as exc:
            self._closed = True
            raise ConnectionError(
                f"Unable to connect to {cfg.address}:{cfg.port}: {exc}"
            ) from exc
        self._logger.info("IMAP connection opened", port=cfg.port, ssl=cfg.enable_ssl)
        try:
            self._login()
            self._select()
        except BaseException:
            self.close()
            raise

    def _login(self) -> None:
        cfg = self._config
        if cfg.user_name is None or cfg.password is None:
            raise AuthenticationError(
                f"Missing credentials for {cfg.address}: user_name and password are required"
            )
        try:
            self.client.login(cfg.user_name, cfg.password)
        except imap_exceptions.IMAPClientAbortError as exc:
            raise ProtocolError("Connection lost during login", operation="login", cause=exc) from exc
        except imap_exceptions.IMAPClientError as exc:
            raise AuthenticationError(
                f"Login rejected for {cfg.user_name!r} on {cfg.address}: {exc}"
            ) from exc
        except OSError as exc:
            raise ProtocolError("Connection lost during login", operation="login", cause=exc) from exc

    def _select(self) -> None:
        mailbox = self._config.mailbox
        try:
            selected = self.client.select_folder(mailbox)
        except imap_exceptions.IMAPClientAbortError as exc:
            raise ProtocolError("Connection lost during select", operation="select", cause=exc) from exc
        except imap_exceptions.IMAPClientError as exc:
            raise MailboxError(f"Cannot select mailbox {mailbox!r}: {exc}") from exc
        except OSError as exc:
            raise ProtocolError("Connection lost during select", operation="select", cause=exc) from exc
        self._logger.debug("Mailbox selected", exists=(selected or {}).get(b"EXISTS"))

    @property
    def client(self) -> IMAPClient:
        if self._client is None:
            raise InvalidUsageError("IMAP session is not open")
        return self._client

    def search(self, terms: List[str]) -> List[int]:
        """Run a UID search and return matching UIDs in server order."""

        try:
            uids = self.client.search(terms)
        except _TRANSPORT_ERRORS as exc:
            raise ProtocolError(f"UID SEARCH failed: {exc}", operation="search", cause=exc) from exc
        return [int(uid) for uid in uids]

    def fetch(self, uids: Iterable[int]) -> Dict[int, bytes]:
        """Fetch full ``RFC822`` payloads for ``uids`` in one round-trip.

        Returns:
          Mapping of UID to raw bytes, in the order the server answered.
        """

        try:
            response = self.client.fetch(list(uids), [FETCH_ITEM])
        except _TRANSPORT_ERRORS as exc:
            raise ProtocolError(f"UID FETCH failed: {exc}", operation="fetch", cause=exc) from exc
        payloads: Dict[int, bytes] = {}
        for uid, data in response.items():
            raw = data.get(_FETCH_KEY)
            if raw is None:
                raise ProtocolError(f"UID {uid} returned no {FETCH_ITEM} data", operation="fetch")
            payloads[int(uid)] = raw
        return payloads

    def mark_seen(self, uids: Iterable[int]) -> None:
        """Add ``\\Seen`` to every UID in a single ``UID STORE``."""

        try:
            self.client.add_flags(list(uids), [SEEN])
        except _TRANSPORT_ERRORS as exc:
            raise ProtocolError(f"UID STORE failed: {exc}", operation="store", cause=exc) from exc

    def close(self) -> None:
        """Log out and drop the connection; safe to call repeatedly."""

        if self._closed:
            return
        self._closed = True
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.logout()
        except Exception as exc:
            self._logger.warning("IMAP logout failed", error=str(exc))
            try:
                client.shutdown()
            except Exception as shutdown_exc:
                self._logger.warning("IMAP shutdown failed", error=str(shutdown_exc))
            return
        self._logger.info("IMAP session closed")


def with_session(
    config: RetrieverConfig,
    action: Callable[[MailSession], T],
    *,
    logger: Optional[JsonLogger] = None,
    run_id: Optional[str] = None,
) -> T:
    """Run ``action`` inside a freshly opened session and return its result.

    The session is closed exactly once after ``action`` returns or raises.

    Raises:
      InvalidUsageError: If ``action`` is missing or not callable; raised
        before any connection attempt.
    """

    if action is None or not callable(action):
        raise InvalidUsageError("with_session requires a callable action")
    with MailSession(config, logger=logger, run_id=run_id) as session:
        return action(session)

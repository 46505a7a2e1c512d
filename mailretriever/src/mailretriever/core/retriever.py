"""High-level IMAP retriever exposing ``first``/``last``/``all``/``find``.

What:
  :class:`Retriever` binds a frozen :class:`RetrieverConfig` and turns each
  call into normalise → open session → search/fetch/flag → close.

Why:
  Most callers only want "the oldest unread message" or "the ten newest
  matches"; they should not have to think about sessions, UIDs or flags.

How:
  The convenience methods fill in ``what``/``count`` and delegate to
  :meth:`Retriever.find`, which validates the options with
  :func:`~mailretriever.core.planner.normalize` before any network I/O and
  then runs :func:`~mailretriever.imap.fetch.execute` inside
  :func:`~mailretriever.imap.session.with_session`.

Interfaces:
  :class:`Retriever`.

Invariants & Safety:
  - A retriever holds no mutable state besides its logger; concurrent calls
    each open an independent session.
  - ``all`` ignores any caller-supplied ``count``; use ``find`` for a bounded
    "all".
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from ..config.loader import load_retriever_config
from ..config.schema import RetrieverConfig
from ..errors import InvalidUsageError
from ..imap.fetch import MessageObserver, execute
from ..imap.session import MailSession, with_session
from ..utils.ids import new_run_id
from ..utils.logging import JsonLogger, get_logger
from ..utils.mime import RetrievedMessage
from .planner import ALL, FIRST, LAST, UNBOUNDED, normalize


FindResult = Union[RetrievedMessage, List[RetrievedMessage]]


class Retriever:
    """Retrieve messages from one IMAP mailbox.

    Example::

        retriever = Retriever(address="imap.example.org", port=993,
                              user_name="me", password="secret",
                              enable_ssl=True)
        oldest = retriever.first()
        newest_ten = retriever.last(count=10)
        everything = retriever.all()
    """

    def __init__(
        self,
        settings: Optional[Union[RetrieverConfig, Mapping[str, Any]]] = None,
        *,
        logger: Optional[JsonLogger] = None,
        **overrides: Any,
    ) -> None:
        """Merge ``settings`` and keyword ``overrides`` onto the defaults.

        Args:
          settings: A :class:`RetrieverConfig` or a mapping of its fields.
          logger: Structured logger shared by session and fetch records.
          **overrides: Individual settings taking precedence over ``settings``.

        Raises:
          pydantic.ValidationError: If the merged settings are invalid.
        """

        if isinstance(settings, RetrieverConfig):
            base = settings
        else:
            base = RetrieverConfig().with_overrides(settings)
        self._settings = base.with_overrides(overrides) if overrides else base
        self._logger = logger or get_logger("mailretriever")

    @classmethod
    def from_config_file(
        cls,
        path: Optional[Union[Path, str]] = None,
        *,
        logger: Optional[JsonLogger] = None,
        **overrides: Any,
    ) -> "Retriever":
        """Build a retriever from ``retriever.yaml`` (see :mod:`mailretriever.config.loader`)."""

        return cls(load_retriever_config(path), logger=logger, **overrides)

    @property
    def settings(self) -> RetrieverConfig:
        return self._settings

    def first(
        self,
        count: Optional[int] = None,
        order: Optional[str] = None,
        on_message: Optional[MessageObserver] = None,
        *,
        mark_seen: bool = True,
    ) -> FindResult:
        """Return the oldest message, or the oldest ``count`` messages."""

        return self.find(FIRST, 1 if count is None else count, order, on_message, mark_seen=mark_seen)

    def last(
        self,
        count: Optional[int] = None,
        order: Optional[str] = None,
        on_message: Optional[MessageObserver] = None,
        *,
        mark_seen: bool = True,
    ) -> FindResult:
        """Return the newest message, or the newest ``count`` messages."""

        return self.find(LAST, 1 if count is None else count, order, on_message, mark_seen=mark_seen)

    def all(
        self,
        order: Optional[str] = None,
        on_message: Optional[MessageObserver] = None,
        *,
        count: Any = None,
        mark_seen: bool = True,
    ) -> List[RetrievedMessage]:
        """Return every message matching the configured query.

        ``count`` is accepted for symmetry with :meth:`find` but always
        replaced by an unbounded count.
        """

        return self.find(ALL, UNBOUNDED, order, on_message, mark_seen=mark_seen)

    def find(
        self,
        what: Optional[str] = None,
        count: Any = None,
        order: Optional[str] = None,
        on_message: Optional[MessageObserver] = None,
        *,
        mark_seen: bool = True,
    ) -> FindResult:
        """Search the configured mailbox and return the selected messages.

        Args:
          what: ``"first"`` (oldest, default), ``"last"`` (newest) or ``"all"``.
          count: Positive number of messages, or ``"all"``. Defaults to 1, or to
            every match when ``what`` is ``"all"``. A bounded ``"all"`` keeps
            the oldest ``count`` matches.
          order: ``"asc"`` (default) or ``"desc"``. Validated but does not
            reorder the result.
          on_message: Observer called with each message as it is built.
          mark_seen: Flag the retrieved messages ``\\Seen`` on the server.

        Returns:
          A single :class:`RetrievedMessage` when the resolved count is 1 and
          one message was found, otherwise a list (possibly empty).

        Raises:
          InvalidUsageError: ``on_message`` is given but not callable.
          InvalidRequestError: Options cannot be normalised.
          ConnectionError, AuthenticationError, MailboxError, ProtocolError:
            Propagated from the session.
        """

        request = normalize(
            {"what": what, "count": count, "order": order, "mark_seen": mark_seen}
        )
        if on_message is not None and not callable(on_message):
            raise InvalidUsageError("on_message must be callable")
        run_id = new_run_id()
        terms = self._settings.search_terms
        logger = self._logger.bind(run_id=run_id)

        def _run(session: MailSession) -> List[RetrievedMessage]:
            return execute(session, request, terms, on_message, logger=logger)

        messages = with_session(self._settings, _run, logger=logger, run_id=run_id)
        logger.info(
            "Retrieval finished",
            mailbox=self._settings.mailbox,
            what=request.what,
            count=request.count,
            returned=len(messages),
        )
        if request.single and len(messages) == 1:
            return messages[0]
        return messages

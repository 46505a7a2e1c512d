"""Run the search → fetch → flag plan inside an open session.

What:
  :func:`execute` searches the selected mailbox, narrows the UIDs according
  to a :class:`~mailretriever.core.planner.RetrievalRequest`, fetches every
  retained payload in one batch, builds message objects, and marks the
  retained UIDs as ``\\Seen``.

Why:
  Ordering matters for correctness: flags are only set once every message has
  been parsed and handed to the observer, so a crash mid-way never leaves
  unread mail silently marked as read.

How:
  Delegates the wire operations to :class:`~mailretriever.imap.session.MailSession`
  and message construction to :func:`~mailretriever.utils.mime.build_message`.
  Parser failures are re-raised as :class:`~mailretriever.errors.ProtocolError`.

Interfaces:
  :func:`execute`, :data:`MessageObserver`.

Invariants:
  - An empty selection issues neither a fetch nor a flag command.
  - At most one fetch and one store are issued per call.
  - Returned messages follow the fetch response order.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from ..core.planner import RetrievalRequest, select_identifiers
from ..errors import MessageParseError, ProtocolError
from ..utils.logging import JsonLogger, get_logger
from ..utils.mime import RetrievedMessage, build_message
from .session import MailSession


MessageObserver = Callable[[RetrievedMessage], None]


def execute(
    session: MailSession,
    request: RetrievalRequest,
    terms: Sequence[str],
    on_message: Optional[MessageObserver] = None,
    *,
    logger: Optional[JsonLogger] = None,
    run_id: Optional[str] = None,
) -> List[RetrievedMessage]:
    """Retrieve the messages ``request`` selects from the session's mailbox.

    Args:
      session: Open, mailbox-selected session.
      request: Normalised retrieval options.
      terms: IMAP search terms, e.g. ``["UNSEEN", "FROM", "a@b.c"]``.
      on_message: Optional observer invoked with each message, in fetch order,
        before it is added to the result.
      logger: Structured logger; defaults to the ``mailretriever.fetch``
        component.
      run_id: Identifier correlating log lines of one call.

    Returns:
      Messages in fetch order; empty when nothing matched.

    Raises:
      ProtocolError: On search, fetch, store or parse failures.
    """

    log = (logger or get_logger("mailretriever.fetch")).bind(run_id=run_id)
    matched = session.search(list(terms))
    selected = select_identifiers(request, matched)
    log.info(
        "Search completed",
        terms=list(terms),
        matched=len(matched),
        selected=len(selected),
        what=request.what,
        count=request.count,
    )
    if not selected:
        return []

    payloads = session.fetch(selected)
    messages: List[RetrievedMessage] = []
    for uid, raw in payloads.items():
        try:
            message = build_message(uid, raw)
        except MessageParseError as exc:
            raise ProtocolError(
                f"Cannot parse message UID {uid}: {exc}", operation="parse", cause=exc
            ) from exc
        if on_message is not None:
            on_message(message)
        messages.append(message)
    log.info("Messages fetched", fetched=len(messages), uids=list(payloads))

    if request.mark_seen:
        session.mark_seen(selected)
        log.debug("Messages flagged as seen", flagged=len(selected))
    return messages

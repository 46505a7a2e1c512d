"""Facade for the IMAP integration layer.

What:
  Surface :class:`MailSession` / :func:`with_session` (session lifecycle) and
  :func:`execute` (search, fetch and flag inside a session).

Invariants & Safety:
  - Sessions never outlive the call that opened them.
  - All message operations are UID based.
"""

from .fetch import MessageObserver, execute
from .session import MailSession, with_session

__all__ = ["MailSession", "with_session", "execute", "MessageObserver"]

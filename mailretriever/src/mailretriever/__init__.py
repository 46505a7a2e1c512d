"""
Module: mailretriever.__init__

What:
  Public surface of the IMAP retriever: the :class:`Retriever` facade, its
  settings model, the message type it returns and the error hierarchy.

Why:
  Callers should be able to write ``from mailretriever import Retriever`` and
  catch ``mailretriever.RetrieverError`` without knowing the internal layout
  (``config``, ``core``, ``imap``, ``utils``).

Invariants:
  - Only the symbols listed in ``__all__`` are supported API.
"""

from .config import RetrieverConfig, load_retriever_config
from .core.planner import UNBOUNDED, RetrievalRequest
from .core.retriever import Retriever
from .errors import (
    AuthenticationError,
    ConfigLoadError,
    ConnectionError,
    InvalidRequestError,
    InvalidUsageError,
    MailboxError,
    MessageParseError,
    ProtocolError,
    RetrieverError,
)
from .utils.mime import RetrievedMessage

__version__ = "0.1.0"

__all__ = [
    "Retriever",
    "RetrieverConfig",
    "RetrievalRequest",
    "RetrievedMessage",
    "UNBOUNDED",
    "load_retriever_config",
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

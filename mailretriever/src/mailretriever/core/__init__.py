"""Retrieval planning and the public :class:`Retriever` facade.

What:
  Expose the request normaliser and UID selection rules. The retriever itself
  lives in :mod:`mailretriever.core.retriever` and is re-exported from the
  package root.
"""

from .planner import UNBOUNDED, RetrievalRequest, normalize, select_identifiers

__all__ = ["UNBOUNDED", "RetrievalRequest", "normalize", "select_identifiers"]

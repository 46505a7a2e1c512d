"""Normalise retrieval options and apply them to search results.

What:
  Convert the loose ``what``/``count``/``order`` option bag accepted by the
  public retriever methods into a fully-populated :class:`RetrievalRequest`,
  and turn that request into a concrete UID selection.

Why:
  Validating options once, before any network I/O, means a typo in ``what``
  or a zero ``count`` never costs a login round-trip. Keeping selection pure
  makes the boundary rules testable without a server.

How:
  :func:`normalize` fills defaults and rejects bad values.
  :func:`select_identifiers` takes the ascending UID list from a search and
  returns the identifiers to fetch: ``first`` keeps the oldest ``count``,
  ``last`` reverses before taking the head so it keeps the newest ``count``.

Interfaces:
  :class:`RetrievalRequest`, :data:`UNBOUNDED`, :func:`normalize`,
  :func:`select_identifiers`.

Invariants:
  - ``count`` is either a positive ``int`` or :data:`UNBOUNDED`.
  - Truncation never fails when fewer identifiers exist than requested.
  - ``order`` is validated and kept but does not influence selection or the
    order of returned messages.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Mapping, Optional, Sequence, Union

from ..errors import InvalidRequestError, InvalidUsageError


UNBOUNDED = "all"
"""Sentinel count meaning "every matching message"."""

FIRST = "first"
LAST = "last"
ALL = "all"
ASC = "asc"
DESC = "desc"

_WHAT = (FIRST, LAST, ALL)
_ORDER = (ASC, DESC)
_OPTION_KEYS = frozenset({"what", "count", "order", "mark_seen"})

Count = Union[int, Literal["all"]]


@dataclass(frozen=True)
class RetrievalRequest:
    """Fully-populated options for one retrieval call."""

    what: str = FIRST
    count: Count = 1
    order: str = ASC
    mark_seen: bool = True

    @property
    def bounded(self) -> bool:
        return self.count != UNBOUNDED

    @property
    def single(self) -> bool:
        """True when the caller asked for exactly one message."""

        return self.count == 1


def normalize(options: Optional[Mapping[str, Any]] = None) -> RetrievalRequest:
    """Build a :class:`RetrievalRequest` from a possibly-partial option bag.

    Unset (``None``) values take their defaults: ``what`` → ``"first"``,
    ``order`` → ``"asc"``, ``count`` → ``1`` or :data:`UNBOUNDED` when
    ``what`` is ``"all"``, ``mark_seen`` → ``True``.

    Raises:
      InvalidUsageError: ``options`` is not a mapping or has unknown keys.
      InvalidRequestError: ``what``/``order`` are unknown or ``count`` is not a
        positive integer.
    """

    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise InvalidUsageError(f"options must be a mapping, got {type(options).__name__}")
    unknown = set(options) - _OPTION_KEYS
    if unknown:
        raise InvalidUsageError(f"Unknown retrieval option(s): {', '.join(sorted(unknown))}")

    what = options.get("what") or FIRST
    if what not in _WHAT:
        raise InvalidRequestError(f"what must be one of {_WHAT}, got {what!r}")

    order = options.get("order") or ASC
    if order not in _ORDER:
        raise InvalidRequestError(f"order must be one of {_ORDER}, got {order!r}")

    count = options.get("count")
    if count is None:
        count = UNBOUNDED if what == ALL else 1
    count = _validate_count(count)

    mark_seen = options.get("mark_seen")
    return RetrievalRequest(
        what=what,
        count=count,
        order=order,
        mark_seen=True if mark_seen is None else bool(mark_seen),
    )


def _validate_count(count: Any) -> Count:
    if count == UNBOUNDED and isinstance(count, str):
        return UNBOUNDED
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidRequestError(f"count must be a positive integer or {UNBOUNDED!r}, got {count!r}")
    if count <= 0:
        raise InvalidRequestError(f"count must be positive, got {count}")
    return count


def select_identifiers(request: RetrievalRequest, uids: Sequence[int]) -> List[int]:
    """Return the UIDs ``request`` selects from an ascending search result."""

    selected = list(uids)
    if request.what == LAST:
        selected.reverse()
    if request.bounded:
        selected = selected[: request.count]
    return selected

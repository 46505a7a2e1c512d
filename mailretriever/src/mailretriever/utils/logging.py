"""Structured JSON logging for retriever sessions.

What:
  Offer a tiny facade over Python streams so the session manager and fetch
  executor emit one JSON object per line with consistent fields and automatic
  removal of credentials and message content.

Why:
  Retrieval runs are usually embedded in cron jobs or workers whose logs get
  grepped after the fact. A fixed layout keeps parsing trivial, and redaction
  keeps passwords and subjects out of shared log storage.

How:
  :class:`JsonLogger` is a dataclass bound to a stream, a component label and
  a context mapping. :meth:`JsonLogger.bind` derives a child logger whose
  context (run id, mailbox, server) is merged into every record, so a whole
  retrieval can be followed by filtering on ``run_id``. Context and ``extra``
  values are scrubbed recursively, including inside lists, before being
  serialised with :func:`json.dump`; the stream is flushed after every record.

Interfaces:
  :class:`JsonLogger`, :func:`get_logger`.

Invariants & Safety:
  - Every record carries ``ts`` (ISO8601 UTC), ``lvl``, ``msg`` and
    ``component``.
  - Keys listed in :data:`SENSITIVE_KEYS` are replaced with ``[redacted]`` at
    any nesting depth.
  - Per-call ``extra`` values win over bound context on key collisions.
"""
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


REDACTED = "[redacted]"

SENSITIVE_KEYS = frozenset({"subject", "body", "preview", "snippet", "password"})


@dataclass
class JsonLogger:
    """Structured JSON logger with automatic redaction.

    What:
      Emits single-line JSON entries with a timestamp, severity, component tag
      and optional context fields.

    Why:
      Centralising the schema and redaction avoids ad-hoc ``print`` calls and
      gives tests a stable format to assert against.

    How:
      Stores the destination stream, component label and bound context; the
      level helpers funnel into :meth:`log`.
    """

    stream: Any = field(default_factory=lambda: sys.stdout)
    component: str = "mailretriever"
    context: Mapping[str, Any] = field(default_factory=dict)

    def bind(self, **context: Any) -> "JsonLogger":
        """Return a logger sharing this stream with ``context`` added.

        ``None`` values are dropped so optional identifiers do not show up as
        ``null`` fields.
        """

        merged = dict(self.context)
        merged.update({key: value for key, value in context.items() if value is not None})
        return replace(self, context=merged)

    def log(self, level: str, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        """Serialise ``message`` and redacted ``extra`` to the stream.

        Args:
          level: Human-readable severity (e.g. ``"info"``).
          message: Core log message.
          extra: Optional context dictionary, redacted recursively.
        """

        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "lvl": level.upper(),
            "msg": message,
            "component": self.component,
        }
        fields = dict(self.context)
        fields.update(extra or {})
        if fields:
            payload.update(self._redact(fields))
        json.dump(payload, self.stream, separators=(",", ":"), default=str)
        self.stream.write("\n")
        self.stream.flush()

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log("DEBUG", message, extra=kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log("INFO", message, extra=kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log("WARN", message, extra=kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log("ERROR", message, extra=kwargs)

    @staticmethod
    def _redact(data: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``data`` with sensitive values masked."""

        return {
            key: REDACTED if key in SENSITIVE_KEYS else JsonLogger._scrub(value)
            for key, value in data.items()
        }

    @staticmethod
    def _scrub(value: Any) -> Any:
        if isinstance(value, Mapping):
            return JsonLogger._redact(value)
        if isinstance(value, (list, tuple)):
            return [JsonLogger._scrub(item) for item in value]
        return value


def get_logger(component: str, stream: Any = None) -> JsonLogger:
    """Construct a :class:`JsonLogger` for ``component``.

    Args:
      component: Logical subsystem name included in every record.
      stream: Optional destination; defaults to ``stderr`` so library output
        never mixes with a host program's stdout.

    Returns:
      Configured :class:`JsonLogger` instance.
    """

    return JsonLogger(stream=stream if stream is not None else sys.stderr, component=component)

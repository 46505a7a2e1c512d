"""Run identifiers used to correlate the log lines of one retrieval call.

What:
  Provide :func:`new_run_id`, combining a UTC timestamp with a short random
  suffix.

Why:
  Several retrievals may run concurrently against the same server; a per-call
  identifier lets operators group session, search, fetch and flag records.

Interfaces:
  :func:`new_run_id`.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone


def new_run_id() -> str:
    """Return a unique identifier such as ``2024-01-01T00:00:00+00:00#1a2b3c``."""

    timestamp = datetime.now(timezone.utc).isoformat()
    suffix = secrets.token_hex(3)
    return f"{timestamp}#{suffix}"

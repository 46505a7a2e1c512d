"""Shared helpers for logging, run identifiers and message parsing.

Interfaces:
  ``get_logger``, ``JsonLogger``, ``new_run_id``, ``RetrievedMessage``,
  ``build_message``.
"""

from .ids import new_run_id
from .logging import JsonLogger, get_logger
from .mime import RetrievedMessage, build_message

__all__ = [
    "get_logger",
    "JsonLogger",
    "new_run_id",
    "RetrievedMessage",
    "build_message",
]

"""Pytest configuration shared by the unit and end-to-end suites.

What:
  Make the ``mailretriever`` source tree importable, isolate configuration
  discovery from the developer's machine, and expose fixtures wiring a
  :class:`Retriever` to the in-memory IMAP fake.

Why:
  Every suite needs the same scaffolding; centralising it keeps tests focused
  on retrieval behaviour.

How:
  Prepend ``mailretriever/src`` and ``tests/unit`` to ``sys.path``, clear
  ``MAILRETRIEVER_CONFIG_PATH`` and the loader cache around every test, and
  monkeypatch ``mailretriever.imap.session.IMAPClient`` with the fake
  backend's factory.

Interfaces:
  ``isolated_config`` (autouse), ``backend``, ``log_stream``, ``retriever``.
"""

import io
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "mailretriever" / "src"
UNIT_DIR = Path(__file__).resolve().parent / "unit"
for extra in (SRC_DIR, UNIT_DIR):
    if extra.exists() and str(extra) not in sys.path:
        sys.path.insert(0, str(extra))

import pytest

from fakes import FakeImapBackend, make_message
from mailretriever import Retriever
from mailretriever.config.loader import CONFIG_ENV, reset_config_cache
from mailretriever.utils.logging import JsonLogger


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run each test from an empty directory with no config override."""

    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_config_cache()
    try:
        yield
    finally:
        reset_config_cache()


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeImapBackend:
    """Fake server holding three messages (UIDs 1, 2, 3) in ``INBOX``."""

    fake = FakeImapBackend()
    for subject in ("first", "second", "third"):
        fake.append("INBOX", make_message(subject))
    monkeypatch.setattr("mailretriever.imap.session.IMAPClient", fake.connect)
    return fake


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def retriever(backend, log_stream) -> Retriever:
    return Retriever(
        address="imap.example.org",
        port=993,
        user_name="bob",
        password="hunter2",
        enable_ssl=True,
        logger=JsonLogger(stream=log_stream, component="test"),
    )

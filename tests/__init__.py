"""Test package marker for the retriever suites.

What:
  Marks ``tests`` as a package so the shared ``conftest`` is imported once for
  both ``tests/unit`` and ``tests/e2e``.

Invariants & Safety:
  - Importing ``tests`` has no side effects; path and fixture setup lives in
    ``tests/conftest.py``.
"""

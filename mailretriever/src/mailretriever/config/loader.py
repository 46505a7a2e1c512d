"""Locate, parse and cache retriever settings stored in YAML files.

What:
  Resolve a ``retriever.yaml`` document, validate it into a
  :class:`~mailretriever.config.schema.RetrieverConfig`, and memoise the result.

Why:
  Deployments keep credentials and server addresses out of code. Centralising
  discovery keeps the precedence rules identical for every caller and turns
  filesystem, YAML and schema problems into a single typed error.

How:
  Candidate paths are yielded in priority order (explicit argument,
  ``MAILRETRIEVER_CONFIG_PATH``, working directory, user config directory).
  The first existing file is parsed with :func:`yaml.safe_load`; settings may
  live at the top level or under a ``retriever`` key. Validation goes through
  :meth:`RetrieverConfig.model_validate`.

Interfaces:
  :func:`load_retriever_config`, :func:`parse_config_text`,
  :func:`reset_config_cache`.

Invariants:
  - Every returned configuration has passed strict pydantic validation.
  - ``reload=True`` always bypasses the cache.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

import yaml
from pydantic import ValidationError

from ..errors import ConfigLoadError
from .schema import RetrieverConfig


CONFIG_ENV = "MAILRETRIEVER_CONFIG_PATH"
SECTION_KEY = "retriever"
_DEFAULT_LOCATIONS: Tuple[Path, ...] = (
    Path("retriever.yaml"),
    Path("~/.config/mailretriever/retriever.yaml"),
)
_CACHE: Optional[Tuple[Path, RetrieverConfig]] = None


def _candidate_paths(path: Optional[Path]) -> Iterable[Path]:
    """Yield configuration locations from most to least specific, deduplicated."""

    seen: set[Path] = set()
    env_path = os.environ.get(CONFIG_ENV)
    candidates = [path, Path(env_path) if env_path else None, *_DEFAULT_LOCATIONS]
    for candidate in candidates:
        if candidate is None:
            continue
        candidate = candidate.expanduser()
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def parse_config_text(text: str, source: str = "<string>") -> RetrieverConfig:
    """Parse YAML ``text`` into a validated :class:`RetrieverConfig`.

    Args:
      text: YAML document; an empty document yields the defaults.
      source: Label used in error messages.

    Raises:
      ConfigLoadError: On YAML syntax errors, a non-mapping document, or
        schema violations.
    """

    try:
        payload: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigLoadError(f"{source} must contain a mapping at the top-level")
    if SECTION_KEY in payload:
        payload = payload[SECTION_KEY] or {}
        if not isinstance(payload, dict):
            raise ConfigLoadError(f"'{SECTION_KEY}' in {source} must be a mapping")
    try:
        return RetrieverConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigLoadError(f"Invalid retriever settings in {source}: {exc}") from exc


def _load_from_path(path: Path) -> RetrieverConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Unable to read configuration file {path}: {exc}") from exc
    return parse_config_text(text, str(path))


def load_retriever_config(
    path: Optional[Path | str] = None,
    *,
    reload: bool = False,
) -> RetrieverConfig:
    """Resolve, parse and cache the retriever configuration.

    Args:
      path: Optional explicit location of the YAML file.
      reload: Bypass the cache and read from disk again.

    Returns:
      The validated configuration.

    Raises:
      ConfigLoadError: If no candidate exists or the first existing one is
        invalid.
    """

    global _CACHE

    requested = Path(path).expanduser() if path is not None else None
    if not reload and _CACHE is not None:
        cached_path, cached_config = _CACHE
        if requested is None or cached_path == requested:
            return cached_config

    searched: list[str] = []
    for candidate in _candidate_paths(requested):
        if not candidate.exists():
            searched.append(str(candidate))
            continue
        config = _load_from_path(candidate)
        _CACHE = (candidate, config)
        return config

    raise ConfigLoadError(
        f"Unable to locate retriever configuration (searched: {', '.join(searched) or '<none>'})"
    )


def reset_config_cache() -> None:
    """Forget the memoised configuration."""

    global _CACHE
    _CACHE = None

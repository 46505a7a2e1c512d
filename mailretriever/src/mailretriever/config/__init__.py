"""Retriever configuration package.

What:
  Re-export the :class:`RetrieverConfig` model and the YAML loader helpers.

Interfaces:
  - RetrieverConfig / DEFAULT_CONFIG: validated, frozen connection settings.
  - load_retriever_config / parse_config_text / reset_config_cache: discover
    and cache ``retriever.yaml``.
"""

from .loader import load_retriever_config, parse_config_text, reset_config_cache
from .schema import DEFAULT_CONFIG, RetrieverConfig

__all__ = [
    "RetrieverConfig",
    "DEFAULT_CONFIG",
    "load_retriever_config",
    "parse_config_text",
    "reset_config_cache",
]

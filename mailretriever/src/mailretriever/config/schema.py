"""Pydantic model describing retriever connection settings."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RetrieverConfig(BaseModel):
    """Immutable IMAP retriever settings.

    Defaults match a local, unencrypted server on port 110 searching
    ``INBOX`` for ``ALL`` messages. Instances are frozen; use
    :meth:`with_overrides` to derive a new configuration.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str = "localhost"
    port: int = Field(default=110, gt=0, le=65535)
    user_name: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    mailbox: str = "INBOX"
    query: str = "ALL"
    enable_ssl: bool = False

    @field_validator("mailbox", "query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @property
    def search_terms(self) -> List[str]:
        """``query`` tokenised on whitespace into discrete IMAP search terms."""

        return self.query.split()

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "RetrieverConfig":
        """Return a validated copy with ``overrides`` merged over these values."""

        merged = self.model_dump()
        merged.update(dict(overrides or {}))
        merged.update(kwargs)
        return RetrieverConfig.model_validate(merged)


DEFAULT_CONFIG = RetrieverConfig()

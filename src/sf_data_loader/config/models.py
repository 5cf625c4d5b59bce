"""Pydantic models for loader configuration."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

# Used when a profile sets no ids_path
DEFAULT_IDS_DIRNAME = "sf-data-loader-ids"


# ============================================================================
# Configuration Models
# ============================================================================


class LoaderProfile(BaseModel):
    """Org connection and fixture locations from sf-data-loader.toml."""

    user: str
    records_path: str
    login_url: str = "https://login.salesforce.com"
    version: str = "59.0"
    password: str | None = None  # Falls back to SF_PASSWORD env var
    ids_path: str | None = None
    tooling_sobjects: list[str] = Field(default_factory=list)
    call_options: dict[str, str] = Field(default_factory=dict)
    description: str = ""

    @property
    def resolved_ids_path(self) -> Path:
        """Directory holding the persisted per-collection id files."""
        if self.ids_path:
            return Path(self.ids_path)
        return Path(tempfile.gettempdir()) / DEFAULT_IDS_DIRNAME


class LoaderConfig(BaseModel):
    """Complete loader configuration from sf-data-loader.toml."""

    profiles: dict[str, LoaderProfile]
    log_level: str = "INFO"

"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from sf_data_loader.config import load_loader_config, LoaderProfile, LoaderConfig
"""

from sf_data_loader.config.loader import load_loader_config
from sf_data_loader.config.models import LoaderConfig, LoaderProfile

__all__ = ["load_loader_config", "LoaderConfig", "LoaderProfile"]

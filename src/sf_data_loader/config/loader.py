"""Configuration loading from sf-data-loader.toml."""

import tomllib
from pathlib import Path

from sf_data_loader.config.models import LoaderConfig, LoaderProfile

CONFIG_FILENAME = "sf-data-loader.toml"


def load_loader_config(config_path: Path | None = None) -> LoaderConfig:
    """Load loader configuration from TOML file.

    Args:
        config_path: Path to the config file (default: ./sf-data-loader.toml)

    Returns:
        LoaderConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Loader config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] table."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = LoaderProfile(**profile_data)

    if not profiles:
        raise ValueError(f"No profiles defined in {config_path.name}")

    logging_settings = data.get("logging", {})

    return LoaderConfig(
        profiles=profiles,
        log_level=logging_settings.get("level", "INFO"),
    )

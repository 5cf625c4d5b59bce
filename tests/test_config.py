"""Tests for loader config models and the TOML loader."""

import tempfile
import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from sf_data_loader.config.loader import CONFIG_FILENAME, load_loader_config
from sf_data_loader.config.models import LoaderConfig, LoaderProfile


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / CONFIG_FILENAME
    path.write_text(textwrap.dedent(body))
    return path


class TestLoaderProfile:
    """Profile defaults and derived paths."""

    def test_defaults(self):
        profile = LoaderProfile(user="me@example.com", records_path="fixtures")
        assert profile.login_url == "https://login.salesforce.com"
        assert profile.version == "59.0"
        assert profile.password is None
        assert profile.tooling_sobjects == []
        assert profile.call_options == {}

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            LoaderProfile(user="me@example.com")

    def test_ids_path_default_under_tempdir(self):
        profile = LoaderProfile(user="u", records_path="fixtures")
        assert profile.resolved_ids_path == Path(tempfile.gettempdir()) / "sf-data-loader-ids"

    def test_ids_path_explicit(self, tmp_path):
        profile = LoaderProfile(user="u", records_path="fixtures", ids_path=str(tmp_path))
        assert profile.resolved_ids_path == tmp_path

    def test_config_log_level_default(self):
        config = LoaderConfig(profiles={})
        assert config.log_level == "INFO"


class TestLoadLoaderConfig:
    """TOML parsing of [profiles.<name>] and [logging]."""

    def test_load_profiles(self, tmp_path):
        path = _write_config(tmp_path, """
            [profiles.sandbox]
            user = "me@example.com.dev"
            records_path = "fixtures"
            login_url = "https://test.salesforce.com"
            tooling_sobjects = ["ApexClass"]
            description = "Dev sandbox"

            [profiles.sandbox.call_options]
            client = "sf-data-loader"

            [profiles.prod]
            user = "me@example.com"
            records_path = "prod-fixtures"

            [logging]
            level = "DEBUG"
        """)

        config = load_loader_config(path)

        assert list(config.profiles) == ["sandbox", "prod"]
        sandbox = config.profiles["sandbox"]
        assert sandbox.login_url == "https://test.salesforce.com"
        assert sandbox.tooling_sobjects == ["ApexClass"]
        assert sandbox.call_options == {"client": "sf-data-loader"}
        assert config.profiles["prod"].records_path == "prod-fixtures"
        assert config.log_level == "DEBUG"

    def test_default_path_is_cwd(self, tmp_path, monkeypatch):
        _write_config(tmp_path, """
            [profiles.only]
            user = "u"
            records_path = "fixtures"
        """)
        monkeypatch.chdir(tmp_path)

        config = load_loader_config()

        assert list(config.profiles) == ["only"]
        assert config.log_level == "INFO"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Loader config not found"):
            load_loader_config(tmp_path / "missing.toml")

    def test_no_profiles(self, tmp_path):
        path = _write_config(tmp_path, """
            [logging]
            level = "DEBUG"
        """)
        with pytest.raises(ValueError, match="No profiles"):
            load_loader_config(path)

    def test_invalid_profile(self, tmp_path):
        path = _write_config(tmp_path, """
            [profiles.broken]
            user = "u"
        """)
        with pytest.raises(ValidationError):
            load_loader_config(path)

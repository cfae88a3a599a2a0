"""
Tests for configuration loading.

Run with: pytest tests/test_config.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core import config as config_module
from core.config import get_config, get_section, get_server_config, load_config


class TestLoadConfig:
    """Tests for reading YAML files."""

    def test_project_config_has_expected_timing(self):
        config = load_config()
        assert config["feed"]["interval_ms"] == 100
        assert config["enrollment"]["target_count"] == 10
        assert config["enrollment"]["interval_ms"] == 200
        assert config["matching"]["distance_threshold"] == pytest.approx(0.6)
        assert config["api"]["base_url"] == "http://localhost:3000"

    def test_load_custom_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("feed:\n  interval_ms: 50\n", encoding="utf-8")
        assert load_config(str(path)) == {"feed": {"interval_ms": 50}}

    def test_empty_file_is_empty_dict(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))


class TestSections:
    """Tests for the singleton accessors."""

    @pytest.fixture(autouse=True)
    def reset_singleton(self):
        yield
        config_module._config_instance = None

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_unknown_section(self):
        with pytest.raises(KeyError, match="not_a_section"):
            get_section("not_a_section")

    def test_server_config(self, monkeypatch):
        monkeypatch.setattr(
            config_module, "_config_instance", {"api": {"host": "127.0.0.1", "port": "8000"}}
        )
        assert get_server_config() == {"host": "127.0.0.1", "port": 8000}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

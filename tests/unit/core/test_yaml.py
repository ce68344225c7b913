"""Unit tests for core.yaml module."""

import pytest

from shrine.core.exceptions import ConfigurationError
from shrine.core.yaml import load_yaml


class TestLoadYaml:
    def test_mapping(self, tmp_path):
        path = tmp_path / "gateway.yaml"
        path.write_text("port: 9000\nforwarding:\n  relays: [wss://relay.example.com]\n")
        assert load_yaml(path) == {
            "port": 9000,
            "forwarding": {"relays": ["wss://relay.example.com"]},
        }

    def test_accepts_str_path(self, tmp_path):
        path = tmp_path / "gateway.yaml"
        path.write_text("port: 1\n")
        assert load_yaml(str(path)) == {"port": 1}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("port: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml(path)

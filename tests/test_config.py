"""Tests for project configuration loading."""

import pytest

from cfn_diff.config import DiffConfig, load_config
from cfn_diff.errors import ConfigError


def _write_config(root, text):
    cfg_dir = root / ".cfn-diff"
    cfg_dir.mkdir(exist_ok=True)
    (cfg_dir / "config.yaml").write_text(text)


class TestLoadConfig:
    """Test configuration defaults and overrides."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CFN_DIFF_FETCH_MAX_WORKERS", raising=False)
        assert load_config(tmp_path) == DiffConfig()

    def test_values_from_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CFN_DIFF_FETCH_MAX_WORKERS", raising=False)
        _write_config(tmp_path, (
            "construct_path_key: my:path\n"
            "fetch_max_workers: 8\n"
            "resource_models_file: models.yaml\n"
            "exclude:\n  - Foo.Bar\n  - Foo/Baz/Resource\n"
        ))
        config = load_config(tmp_path)
        assert config.construct_path_key == "my:path"
        assert config.fetch_max_workers == 8
        assert config.exclude == ["Foo.Bar", "Foo/Baz/Resource"]
        assert config.resource_models_file == str(tmp_path / "models.yaml")

    def test_env_override(self, tmp_path, monkeypatch):
        _write_config(tmp_path, "fetch_max_workers: 8\n")
        monkeypatch.setenv("CFN_DIFF_FETCH_MAX_WORKERS", "2")
        assert load_config(tmp_path).fetch_max_workers == 2

    def test_unreadable_yaml_falls_back(self, tmp_path, monkeypatch, caplog):
        monkeypatch.delenv("CFN_DIFF_FETCH_MAX_WORKERS", raising=False)
        _write_config(tmp_path, "exclude: [unclosed\n")
        assert load_config(tmp_path) == DiffConfig()
        assert "Ignoring unreadable config" in caplog.text

    def test_invalid_exclude(self, tmp_path):
        _write_config(tmp_path, "exclude: Foo.Bar\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_workers(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CFN_DIFF_FETCH_MAX_WORKERS", "zero")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

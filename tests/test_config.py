"""Tests for configuration loading."""

import json

import pytest

from fpstrack.core.config import (
    FpstrackConfig,
    config_to_dict,
    dict_to_config,
    generate_default_config,
    get_config,
    load_config,
    load_config_file,
    load_env_config,
    merge_configs,
    reset_config,
    save_config,
    set_config,
)


class TestDefaults:
    def test_default_values(self):
        config = FpstrackConfig()

        assert config.parser.base_prefix == "MWG_"
        assert config.aggregation.window_ms == 30_000
        assert config.aggregation.max_samples == 200
        assert config.session.debounce_seconds == pytest.approx(0.2)
        assert config.export.default_format == "json"


class TestConfigFiles:
    """Tests for reading config files in each format."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "fpstrack.yaml"
        path.write_text("parser:\n  base_prefix: XYZ_\naggregation:\n  window_ms: 60000\n")

        config = load_config(path, include_env=False)

        assert config.parser.base_prefix == "XYZ_"
        assert config.aggregation.window_ms == 60000
        assert config.aggregation.max_samples == 200

    def test_toml(self, tmp_path):
        path = tmp_path / "fpstrack.toml"
        path.write_text('[aggregation]\nsmoothing_radius = 3\n\n[session]\ndebounce_seconds = 0.1\n')

        config = load_config(path, include_env=False)

        assert config.aggregation.smoothing_radius == 3
        assert config.session.debounce_seconds == pytest.approx(0.1)

    def test_json(self, tmp_path):
        path = tmp_path / "fpstrack.json"
        path.write_text(json.dumps({"export": {"json_indent": 4}}))

        assert load_config(path, include_env=False).export.json_indent == 4

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_unknown_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[parser]\n")
        assert load_config_file(path) == {}

    def test_missing_file(self, tmp_path):
        assert load_config_file(tmp_path / "nope.yaml") == {}

    def test_unknown_keys_ignored(self):
        config = dict_to_config({"parser": {"base_prefix": "A_", "bogus": 1}, "extra": {}})

        assert config.parser.base_prefix == "A_"
        assert not hasattr(config.parser, "bogus")


class TestEnvironment:
    """Tests for FPSTRACK_* environment variables."""

    def test_env_values_converted(self, monkeypatch):
        monkeypatch.setenv("FPSTRACK_WINDOW_MS", "45000")
        monkeypatch.setenv("FPSTRACK_DEBOUNCE_SECONDS", "0.5")
        monkeypatch.setenv("FPSTRACK_LOG_LEVEL", "DEBUG")

        env = load_env_config()

        assert env["aggregation"]["window_ms"] == 45000
        assert env["session"]["debounce_seconds"] == 0.5
        assert env["logging"]["level"] == "DEBUG"

    def test_prefix_stays_string(self, monkeypatch):
        monkeypatch.setenv("FPSTRACK_PREFIX", "2024")
        assert load_env_config()["parser"]["base_prefix"] == "2024"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "fpstrack.yaml"
        path.write_text("parser:\n  base_prefix: FILE_\naggregation:\n  smoothing_radius: 1\n")
        monkeypatch.setenv("FPSTRACK_PREFIX", "ENV_")

        config = load_config(path)

        assert config.parser.base_prefix == "ENV_"
        assert config.aggregation.smoothing_radius == 1

    def test_env_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv("FPSTRACK_PREFIX", "ENV_")
        assert load_config(include_env=False).parser.base_prefix == "MWG_"


class TestMergeAndSave:
    def test_merge_is_recursive(self):
        merged = merge_configs({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}, "b": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 4}

    def test_save_and_reload_yaml(self, tmp_path):
        config = FpstrackConfig()
        config.aggregation.window_ms = 12_000.0
        path = tmp_path / "saved.yaml"

        save_config(config, path)

        assert load_config(path, include_env=False) == config

    def test_save_json(self, tmp_path):
        path = tmp_path / "saved.json"
        save_config(FpstrackConfig(), path)
        assert json.loads(path.read_text()) == config_to_dict(FpstrackConfig())

    def test_save_unknown_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown config format"):
            save_config(FpstrackConfig(), tmp_path / "config.toml")

    def test_generate_default_yaml(self, tmp_path):
        path = tmp_path / "fpstrack.yaml"
        generate_default_config(path)

        assert load_config(path, include_env=False) == FpstrackConfig()


class TestGlobalConfig:
    def test_set_and_reset(self):
        custom = FpstrackConfig()
        custom.parser.base_prefix = "G_"

        set_config(custom)
        assert get_config() is custom

        reset_config()
        assert get_config().parser.base_prefix == "MWG_"

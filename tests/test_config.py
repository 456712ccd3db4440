"""Tests for heartbeat option validation and YAML loading."""

import pytest

from healthchecked.config import DEFAULT_INTERVAL_MS, HeartbeatConfig, load_config
from healthchecked.errors import InvalidConfig


class TestHeartbeatConfig:

    def test_defaults(self):
        assert HeartbeatConfig().interval == DEFAULT_INTERVAL_MS == 2000

    def test_from_none(self):
        assert HeartbeatConfig.from_options(None).interval == 2000

    def test_from_mapping(self):
        assert HeartbeatConfig.from_options({"interval": 500}).interval == 500

    def test_from_config_instance(self):
        config = HeartbeatConfig(interval=750)
        assert HeartbeatConfig.from_options(config) is config

    @pytest.mark.parametrize("bad", [0, -1, "fast", 1.5, True, None])
    def test_invalid_interval(self, bad):
        with pytest.raises(InvalidConfig):
            HeartbeatConfig.from_options({"interval": bad})

    def test_unknown_option_rejected(self):
        with pytest.raises(InvalidConfig, match="retries"):
            HeartbeatConfig.from_options({"interval": 1000, "retries": 3})

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidConfig):
            HeartbeatConfig.from_options([("interval", 1000)])

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            HeartbeatConfig.from_options({"interval": 0})


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml").interval == 2000

    def test_top_level_options(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("interval: 1500\n")
        assert load_config(path).interval == 1500

    def test_heartbeat_section(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("heartbeat:\n  interval: 3000\nother: true\n")
        assert load_config(path).interval == 3000

    def test_empty_file(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("")
        assert load_config(path).interval == 2000

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("interval: [1, 2\n")
        with pytest.raises(InvalidConfig):
            load_config(path)

    def test_invalid_value_in_file(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("heartbeat:\n  interval: -5\n")
        with pytest.raises(InvalidConfig):
            load_config(path)

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "hb.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(InvalidConfig):
            load_config(path)

"""Tests for configuration loading."""

import pytest
import yaml

from musicquiz.utils.config import (
    CONFIG_SCHEMA,
    ConfigManager,
    get_default_config,
    load_config,
)
from musicquiz.utils.errors import ConfigurationError


@pytest.fixture
def config_file(tmp_path):
    def write(data):
        path = tmp_path / "config.yaml"
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f)
        return path
    return write


class TestConfigManager:
    def test_dot_notation(self):
        manager = ConfigManager({"quiz": {"reveal_delay_ms": 1500}})
        assert manager.get("quiz.reveal_delay_ms") == 1500
        assert manager.get("quiz.missing", default=7) == 7

    def test_required_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager({}).get("quiz.seed", required=True)
        assert exc_info.value.config_key == "quiz.seed"

    def test_set_creates_sections(self):
        manager = ConfigManager()
        manager.set("scores.backend", "yaml")
        assert manager.get_section("scores") == {"backend": "yaml"}

    def test_get_section_of_scalar_is_empty(self):
        assert ConfigManager({"quiz": 3}).get_section("quiz") == {}

    def test_merge_is_deep(self):
        manager = ConfigManager(get_default_config())
        manager.merge({"quiz": {"seed": 99}})
        assert manager.get("quiz.seed") == 99
        assert manager.get("quiz.max_candidates") == 4

    def test_to_dict_is_a_copy(self):
        manager = ConfigManager({"quiz": {"seed": 1}})
        manager.to_dict()["quiz"]["seed"] = 2
        assert manager.get("quiz.seed") == 1

    def test_env_interpolation(self, config_file, monkeypatch):
        monkeypatch.setenv("MUSICQUIZ_TEST_SCORES", "/tmp/scores.yaml")
        path = config_file({"scores": {"path": "${MUSICQUIZ_TEST_SCORES}", "tags": ["${NOT_SET_ANYWHERE}"]}})
        manager = ConfigManager.from_file(path)
        assert manager.get("scores.path") == "/tmp/scores.yaml"
        assert manager.get("scores.tags") == ["${NOT_SET_ANYWHERE}"]

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager.from_file(tmp_path / "absent.yaml")

    def test_from_file_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager.from_file(path)

    def test_validate_rejects_wrong_type(self):
        config = get_default_config()
        config["quiz"]["reveal_delay_ms"] = "soon"
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config).validate(CONFIG_SCHEMA)
        assert exc_info.value.config_key == "quiz.reveal_delay_ms"

    def test_validate_rejects_bool_for_int(self):
        config = get_default_config()
        config["quiz"]["max_candidates"] = True
        with pytest.raises(ConfigurationError):
            ConfigManager(config).validate(CONFIG_SCHEMA)

    def test_validate_required(self):
        with pytest.raises(ConfigurationError):
            ConfigManager({}).validate(CONFIG_SCHEMA)


class TestLoadConfig:
    def test_file_layered_over_defaults(self, config_file):
        path = config_file({"quiz": {"reveal_delay_ms": 500}, "scores": {"backend": "yaml"}})
        config = load_config(str(path))
        assert config["quiz"]["reveal_delay_ms"] == 500
        assert config["quiz"]["min_candidates"] == 2
        assert config["scores"]["backend"] == "yaml"

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_file_fails_validation(self, config_file):
        path = config_file({"quiz": {"min_candidates": "two"}})
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config["quiz"]["reveal_delay_ms"] == 2000
        assert config["quiz"]["max_candidates"] == 4

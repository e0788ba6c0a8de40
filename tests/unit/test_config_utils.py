"""Unit tests for the config module."""

import pytest

from container_diff.models.options import OutputFormat, RetrievalMode
from container_diff.utils.config import (
    ContainerDiffConfig,
    EngineConfig,
    FilesystemConfig,
    RegistryConfig,
    ResolverConfig,
    get_config,
    get_config_paths,
    load_config,
    set_config,
)
from container_diff.utils.errors import ConfigurationError


class TestSectionDefaults:
    """Tests for configuration section defaults."""

    def test_resolver(self):
        """Test resolver defaults."""
        config = ResolverConfig()
        assert config.work_dir is None
        assert config.retrieval == RetrievalMode.CLI

    def test_registry(self):
        """Test registry defaults."""
        config = RegistryConfig()
        assert config.timeout == 30.0
        assert config.max_retries == 3
        assert config.insecure_registries == []

    def test_filesystem(self):
        """Test filesystem defaults."""
        config = FilesystemConfig()
        assert config.case_sensitive is True
        assert config.compute_digests is True

    def test_engine_workers_must_be_positive(self):
        """Test max_workers is validated."""
        with pytest.raises(ValueError):
            EngineConfig(max_workers=0)


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, tmp_path):
        """Test loading sections from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "resolver:\n"
            "  retrieval: engine\n"
            "registry:\n"
            "  timeout: 5\n"
            "  insecure_registries: [localhost:5000]\n"
            "output:\n"
            "  default_format: json\n"
        )

        config = load_config(path)

        assert config.resolver.retrieval == RetrievalMode.ENGINE
        assert config.registry.timeout == 5
        assert config.registry.insecure_registries == ["localhost:5000"]
        assert config.output.default_format == OutputFormat.JSON
        assert config.engine.max_workers == 4

    def test_empty_file(self, tmp_path):
        """Test an empty file gives defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == ContainerDiffConfig()

    def test_missing_explicit_file(self, tmp_path):
        """Test a missing explicit file is an error."""
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML is reported."""
        path = tmp_path / "config.yaml"
        path.write_text("resolver: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        """Test a top-level list is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_invalid_value(self, tmp_path):
        """Test validation errors name the offending key."""
        path = tmp_path / "config.yaml"
        path.write_text("engine:\n  max_workers: 0\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.details["config_key"] == "engine.max_workers"

    def test_search_paths_without_files(self, tmp_path, monkeypatch):
        """Test defaults are used when no config file exists."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

        assert load_config() == ContainerDiffConfig()

    def test_config_paths(self, tmp_path, monkeypatch):
        """Test XDG_CONFIG_HOME is honored."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert tmp_path / "container-diff" / "config.yaml" in get_config_paths()


class TestGlobalConfig:
    """Tests for the process-wide configuration."""

    def test_set_and_get(self):
        """Test set_config replaces the global instance."""
        config = ContainerDiffConfig(engine=EngineConfig(max_workers=8))
        set_config(config)

        assert get_config() is config

"""
Configuration Tests
===================

Defaults, YAML loading and environment overrides.
"""

from pathlib import Path

import pytest

from render_capture.config import Settings, load_config


@pytest.fixture
def no_config_file(tmp_path, monkeypatch):
    """Run from a directory without config.yaml."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestDefaults:
    """Tests for default settings."""

    def test_defaults(self, no_config_file):
        """Verify defaults apply with no file or environment."""
        settings = load_config(environ={})

        assert settings.server.default_port == 3000
        assert settings.server.port is None
        assert settings.server.preferred_port == 3000
        assert not settings.server.port_is_explicit
        assert settings.storage.root == Path.cwd()
        assert settings.storage.frames_path == Path.cwd() / "frames"
        assert settings.storage.output_file == "out.mp4"
        assert settings.encoder.binary == "ffmpeg"
        assert settings.encoder.strict_json is False


class TestYamlConfig:
    """Tests for config.yaml loading."""

    def test_loads_yaml(self, tmp_path):
        """Verify settings load from a YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "server:\n"
            "  default_port: 4100\n"
            "storage:\n"
            f"  root: {tmp_path}\n"
            "  frames_dir: captured\n"
            "encoder:\n"
            "  binary: /usr/local/bin/ffmpeg\n"
        )

        settings = load_config(str(config_file), environ={})

        assert settings.server.preferred_port == 4100
        assert not settings.server.port_is_explicit
        assert settings.storage.frames_path == tmp_path / "captured"
        assert settings.encoder.binary == "/usr/local/bin/ffmpeg"

    def test_empty_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert load_config(str(config_file), environ={}) == Settings()


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def test_port_env_is_explicit(self, no_config_file):
        """Verify PORT marks the port as explicit."""
        settings = load_config(environ={"PORT": "8080"})

        assert settings.server.port == 8080
        assert settings.server.preferred_port == 8080
        assert settings.server.port_is_explicit

    def test_port_takes_precedence(self, no_config_file):
        """Verify PORT wins over the prefixed variable."""
        settings = load_config(environ={"PORT": "8080", "RENDER_CAPTURE_PORT": "9090"})
        assert settings.server.port == 8080

    def test_env_overrides_yaml(self, tmp_path):
        """Verify environment variables override the YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("encoder:\n  binary: from-yaml\n")

        settings = load_config(
            str(config_file),
            environ={
                "RENDER_CAPTURE_FFMPEG": "from-env",
                "RENDER_CAPTURE_ROOT": str(tmp_path),
                "RENDER_CAPTURE_STRICT_JSON": "true",
                "RENDER_CAPTURE_LOG_LEVEL": "DEBUG",
            },
        )

        assert settings.encoder.binary == "from-env"
        assert settings.storage.root == tmp_path
        assert settings.encoder.strict_json is True
        assert settings.logging.level == "DEBUG"

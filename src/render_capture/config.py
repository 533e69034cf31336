"""
render-capture Configuration
============================

This module handles configuration loading for the capture service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    PORT                        -> server.port (explicit port)
    RENDER_CAPTURE_PORT         -> server.port (explicit port)
    RENDER_CAPTURE_HOST         -> server.host
    RENDER_CAPTURE_ROOT         -> storage.root
    RENDER_CAPTURE_FFMPEG       -> encoder.binary
    RENDER_CAPTURE_STRICT_JSON  -> encoder.strict_json
    RENDER_CAPTURE_LOG_LEVEL    -> logging.level

Unlike a module-level singleton, settings are built explicitly and handed
to ``create_app``, so several independent instances can share a process.

Example:
    from render_capture.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.storage.frames_path)
"""

import os
import logging
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification."""

    name: str = Field(default="render-capture", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Bind host")
    port: Optional[int] = Field(
        default=None,
        ge=0,
        le=65535,
        description="Explicit operator port (disables ephemeral fallback)",
    )
    default_port: int = Field(
        default=3000,
        ge=0,
        le=65535,
        description="Port tried when no explicit port is configured",
    )

    @property
    def preferred_port(self) -> int:
        """Port to try first."""
        return self.port if self.port is not None else self.default_port

    @property
    def port_is_explicit(self) -> bool:
        """Whether the operator pinned the port."""
        return self.port is not None


class StorageConfig(BaseModel):
    """Service root and on-disk layout."""

    root: Path = Field(
        default_factory=Path.cwd,
        description="Service root: static files, frames dir and output live here",
    )
    frames_dir: str = Field(
        default="frames",
        description="Working directory for frames, relative to root",
    )
    default_document: str = Field(
        default="index.html",
        description="Document served for the empty path",
    )
    output_file: str = Field(
        default="out.mp4",
        description="Encoded video file name, relative to root",
    )

    @property
    def frames_path(self) -> Path:
        """Absolute working directory path."""
        return self.root / self.frames_dir


class EncoderConfig(BaseModel):
    """External encoder configuration."""

    binary: str = Field(default="ffmpeg", description="Encoder executable")
    forward_output: bool = Field(
        default=True,
        description="Copy encoder stdout/stderr to the service's own streams",
    )
    strict_json: bool = Field(
        default=False,
        description="Reject malformed /encode bodies instead of using defaults",
    )
    stderr_tail_lines: int = Field(
        default=20,
        ge=0,
        description="Encoder stderr lines kept for failure diagnostics",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for render-capture.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        Settings: Loaded configuration
    """
    if environ is None:
        environ = os.environ

    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break

    config_data: dict = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data, environ)

    return Settings.model_validate(config_data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict, environ: Mapping[str, str]) -> None:
    """Apply environment variable overrides to config data."""

    # Server settings
    if env_port := environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := environ.get("RENDER_CAPTURE_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    if env_host := environ.get("RENDER_CAPTURE_HOST"):
        config_data.setdefault("server", {})["host"] = env_host

    # Storage settings
    if env_root := environ.get("RENDER_CAPTURE_ROOT"):
        config_data.setdefault("storage", {})["root"] = env_root

    # Encoder settings
    if env_ffmpeg := environ.get("RENDER_CAPTURE_FFMPEG"):
        config_data.setdefault("encoder", {})["binary"] = env_ffmpeg
    if env_strict := environ.get("RENDER_CAPTURE_STRICT_JSON"):
        config_data.setdefault("encoder", {})["strict_json"] = _parse_bool(env_strict)

    # Logging settings
    if env_log := environ.get("RENDER_CAPTURE_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

"""Configuration management module for routekit.

This module handles loading and validating configuration from multiple sources:
- Configuration files (YAML)
- Environment variables
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class RouterConfig(BaseModel):
    """Router and dispatch configuration."""

    base_path: str = Field(default="/", description="Application mount point")
    check_allowed_methods: bool = Field(
        default=False,
        description="Treat a method mismatch as no match (404) instead of 405",
    )
    always_allowed_methods: list[str] = Field(
        default_factory=lambda: ["HEAD"],
        description="Methods never answered with 405 and always listed in Allow",
    )

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, v: str) -> str:
        """Validate the base path is absolute."""
        if not v.startswith("/"):
            raise ValueError(f"Invalid base_path: {v}. Must start with '/'")
        return v

    @field_validator("always_allowed_methods")
    @classmethod
    def normalize_methods(cls, v: list[str]) -> list[str]:
        """Upper-case the always allowed methods."""
        return [method.upper() for method in v]


class RouteDefinition(BaseModel):
    """A route declared in configuration."""

    pattern: str = Field(description="URL path pattern")
    handler: str = Field(description="Named action handling the route")
    methods: list[str] = Field(default_factory=list, description="Allowed methods (empty = all)")
    name: str = Field(default="", description="Unique route name")
    attributes: dict[str, Any] = Field(default_factory=dict, description="Route attributes")


class ResourceDefinition(BaseModel):
    """A list/detail/create/update/delete resource declared in configuration."""

    pattern: str = Field(description="Base URL path pattern")
    handler: str = Field(description="Named action prefix")
    name: str = Field(default="", description="Route name prefix")
    permission: bool = Field(default=True, description="Set permission attributes")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or text)")
    output: str = Field(default="stdout", description="Log output (stdout, file path, etc.)")
    correlation_id_header: str = Field(
        default="X-Request-ID", description="Header name for correlation ID"
    )
    redact_fields: list[str] = Field(
        default_factory=lambda: ["Authorization", "Cookie", "password", "token"],
        description="Field names to redact from logs",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is valid."""
        valid_formats = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = Field(default=True, description="Enable metrics collection")
    endpoint: str = Field(default="/metrics", description="Metrics endpoint path")


class RoutekitConfig(BaseModel):
    """Main routekit configuration."""

    environment: str = Field(default="development", description="Environment name")
    router: RouterConfig = Field(default_factory=RouterConfig)
    routes: list[RouteDefinition] = Field(default_factory=list)
    resources: list[ResourceDefinition] = Field(default_factory=list)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


class ConfigLoader:
    """Loads and validates configuration from multiple sources."""

    def __init__(self, config_path: str | None = None):
        """Initialize the configuration loader.

        Args:
            config_path: Path to configuration file. If None, uses environment variable
                        ROUTEKIT_CONFIG_PATH or defaults to config/routekit.yaml
        """
        self.config_path = self._resolve_config_path(config_path)

    def _resolve_config_path(self, config_path: str | None) -> Path:
        """Resolve configuration file path."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("ROUTEKIT_CONFIG_PATH")
        if env_path:
            return Path(env_path)

        # Try environment-specific config first
        env = os.getenv("ROUTEKIT_ENV", "development")
        env_specific = Path(f"config/routekit.{env}.yaml")
        if env_specific.exists():
            return env_specific

        return Path("config/routekit.yaml")

    def load(self) -> RoutekitConfig:
        """Load and validate configuration.

        Returns:
            Validated RoutekitConfig instance

        Raises:
            ValueError: If configuration is invalid
        """
        config_dict = self._load_from_file()
        config_dict = self._override_from_env(config_dict)

        try:
            config = RoutekitConfig(**config_dict)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        return config

    def _load_from_file(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            # Missing file means defaults
            return {}

        with open(self.config_path) as f:
            config_dict = yaml.safe_load(f) or {}

        return config_dict

    def _override_from_env(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Override configuration with environment variables.

        Environment variables follow the pattern: ROUTEKIT_<SETTING>
        For example: ROUTEKIT_BASE_PATH=/app
        """
        # Router config
        if base_path := os.getenv("ROUTEKIT_BASE_PATH"):
            config_dict.setdefault("router", {})["base_path"] = base_path
        if check := os.getenv("ROUTEKIT_CHECK_ALLOWED_METHODS"):
            config_dict.setdefault("router", {})["check_allowed_methods"] = check.lower() == "true"

        # Logging config
        if log_level := os.getenv("ROUTEKIT_LOG_LEVEL"):
            config_dict.setdefault("logging", {})["level"] = log_level
        if log_format := os.getenv("ROUTEKIT_LOG_FORMAT"):
            config_dict.setdefault("logging", {})["format"] = log_format

        # Metrics config
        if metrics_enabled := os.getenv("ROUTEKIT_METRICS_ENABLED"):
            config_dict.setdefault("metrics", {})["enabled"] = metrics_enabled.lower() == "true"

        # Environment
        if env := os.getenv("ROUTEKIT_ENV"):
            config_dict["environment"] = env

        return config_dict


def load_config(config_path: str | None = None) -> RoutekitConfig:
    """Load configuration (convenience function).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Validated RoutekitConfig instance
    """
    loader = ConfigLoader(config_path)
    return loader.load()

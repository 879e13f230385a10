"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class OCIConfig:
    compartment_id: str = ""
    root_compartment_id: str = ""  # direct children only, not the whole subtree
    display_name: str = ""  # exact match; empty = no filter
    use_instance_principals: bool = True
    config_file: str = "~/.oci/config"  # only used without instance principals
    profile: str = "DEFAULT"
    request_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class DiscoveryConfig:
    port: int = 80
    refresh_interval_seconds: float = 60.0
    max_pages: int = 1000


@dataclass(frozen=True)
class OutputConfig:
    file: str = "custom_sd.json"


@dataclass(frozen=True)
class MetricsConfig:
    listen_port: int = 0  # 0 disables the HTTP exporter
    listen_addr: str = "0.0.0.0"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "logfmt"


@dataclass(frozen=True)
class AppConfig:
    oci: OCIConfig = field(default_factory=OCIConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _coerce_string(key: str, ft: Any, value: str) -> Any:
    """Convert a string (typically an interpolated ${ENV} value) to a bool/int/float field type."""
    if ft is bool:
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigError(f"'{key}' must be a boolean, got {value!r}")
    try:
        return ft(value.strip())
    except ValueError:
        raise ConfigError(f"'{key}' must be {ft.__name__}, got {value!r}") from None


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__") and value is not None:
            if not isinstance(value, dict):
                raise ConfigError(f"'{key}' must be a mapping")
            kwargs[key] = _build_nested(ft, value)
        elif value is None:
            # "key:" with no value in YAML keeps the default
            continue
        elif ft in (bool, int, float) and isinstance(value, str):
            kwargs[key] = _coerce_string(key, ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    validate(config)
    return config


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate(config: AppConfig) -> None:
    """Validate configuration values."""
    oci = config.oci
    if bool(oci.compartment_id) == bool(oci.root_compartment_id):
        raise ConfigError(
            "OCI SD configuration requires either a specific compartment id "
            "or the root compartment id (not both)"
        )

    if not isinstance(oci.use_instance_principals, bool):
        raise ConfigError("oci.use_instance_principals must be true or false")

    if not _is_int(config.discovery.port) or not 1 <= config.discovery.port <= 65535:
        raise ConfigError("discovery.port must be an integer between 1 and 65535")

    if not _is_number(config.discovery.refresh_interval_seconds) \
            or config.discovery.refresh_interval_seconds <= 0:
        raise ConfigError("discovery.refresh_interval_seconds must be > 0")

    if not _is_int(config.discovery.max_pages) or config.discovery.max_pages < 1:
        raise ConfigError("discovery.max_pages must be >= 1")

    if not _is_number(oci.request_timeout_seconds) or oci.request_timeout_seconds <= 0:
        raise ConfigError("oci.request_timeout_seconds must be > 0")

    if not _is_int(config.metrics.listen_port) or not 0 <= config.metrics.listen_port <= 65535:
        raise ConfigError("metrics.listen_port must be between 0 and 65535")

    if not config.output.file:
        raise ConfigError("output.file is required")

    if config.logging.format not in ("json", "logfmt"):
        raise ConfigError("logging.format must be 'json' or 'logfmt'")

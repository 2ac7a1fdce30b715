"""Configuration loading and overrides for runtime tunables.

Values come from three layers, lowest precedence first: the defaults on
``Constants``, a YAML/JSON config file, and CLI flags. Each layer is applied
onto ``Constants`` so every module reads one source of truth.

Example config::

    registry:
      url: https://registry.npmjs.org/
      timeout: 30
      retries: 3
    storage:
      artifacts_dir: ./artifacts
      metadata_index: ./packages.yml
    limits:
      max_depth: 32
      max_units: 2000
      failure_policy: best_effort
    server:
      host: 127.0.0.1
      port: 8080
    logging:
      level: INFO
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from constants import Constants
from errors import ConfigurationError
from sizing.policy import POLICIES

logger = logging.getLogger(__name__)


def _positive_int(value: Any) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"expected a positive integer, got {value!r}")
    return number


def _non_negative_float(value: Any) -> float:
    number = float(value)
    if number < 0:
        raise ValueError(f"expected a non-negative number, got {value!r}")
    return number


def _policy_name(value: Any) -> str:
    name = str(value).strip().lower()
    if name not in POLICIES:
        raise ValueError(f"expected one of {sorted(POLICIES)}, got {value!r}")
    return name


def _log_level(value: Any) -> str:
    name = str(value).strip().upper()
    if not isinstance(getattr(logging, name, None), int):
        raise ValueError(f"unknown log level {value!r}")
    return name


# (section, key) -> (Constants attribute, coercion)
_CONFIG_MAP: Dict[Tuple[str, str], Tuple[str, Callable[[Any], Any]]] = {
    ("registry", "url"): ("REGISTRY_URL_NPM", str),
    ("registry", "timeout"): ("REQUEST_TIMEOUT", _positive_int),
    ("registry", "retries"): ("HTTP_RETRY_MAX", _positive_int),
    ("registry", "retry_delay"): ("HTTP_RETRY_BASE_DELAY_SEC", _non_negative_float),
    ("storage", "artifacts_dir"): ("STORE_DIR", str),
    ("storage", "metadata_index"): ("METADATA_INDEX", str),
    ("limits", "max_depth"): ("MAX_DEPTH", _positive_int),
    ("limits", "max_units"): ("MAX_UNITS", _positive_int),
    ("limits", "max_manifest_bytes"): ("MAX_MANIFEST_BYTES", _positive_int),
    ("limits", "failure_policy"): ("FAILURE_POLICY", _policy_name),
    ("server", "host"): ("SERVER_HOST", str),
    ("server", "port"): ("SERVER_PORT", _positive_int),
}


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML (or JSON) configuration file.

    Args:
        config_path: Path to the config file; None returns an empty config.

    Returns:
        Parsed configuration dict.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def apply_config(config: Dict[str, Any]) -> None:
    """Apply a parsed config dict onto ``Constants``.

    Raises:
        ConfigurationError: On a non-mapping section or an invalid value.
    """
    for section, values in config.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping")
        if section == "logging":
            if "level" in values:
                try:
                    os.environ.setdefault(Constants.ENV_LOG_LEVEL, _log_level(values["level"]))
                except ValueError as e:
                    raise ConfigurationError(f"Invalid logging.level: {e}") from e
            continue
        for key, value in values.items():
            target = _CONFIG_MAP.get((section, key))
            if target is None:
                logger.warning("Ignoring unknown config key %s.%s", section, key)
                continue
            attr, coerce = target
            try:
                setattr(Constants, attr, coerce(value))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid {section}.{key}: {e}") from e


# CLI dest -> (section, key)
_CLI_MAP = {
    "REGISTRY_URL": ("registry", "url"),
    "STORE_DIR": ("storage", "artifacts_dir"),
    "METADATA_INDEX": ("storage", "metadata_index"),
    "MAX_DEPTH": ("limits", "max_depth"),
    "MAX_UNITS": ("limits", "max_units"),
    "FAILURE_POLICY": ("limits", "failure_policy"),
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
}


def apply_cli_overrides(args: Any) -> None:
    """Apply CLI flags onto ``Constants`` with highest precedence."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for dest, (section, key) in _CLI_MAP.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    apply_config(overrides)


def load_and_apply(args: Any) -> Dict[str, Any]:
    """Load the config named by ``--config`` (or ``$PKGCOST_CONFIG``) and apply all layers."""
    config_path = getattr(args, "CONFIG", None) or os.environ.get(Constants.ENV_CONFIG)
    config = load_config_file(config_path)
    apply_config(config)
    apply_cli_overrides(args)
    if config_path:
        logger.info("Loaded config from: %s", config_path)
    return config

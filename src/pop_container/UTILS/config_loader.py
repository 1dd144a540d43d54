"""
Loading of the build configuration from a YAML file and the environment.
"""
import os
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from ..MODELS.build_config import BuildConfig
from .errors import ConfigError

ENV_PREFIX = "POP_CONTAINER_"

# Fields given as comma separated lists in the environment
LIST_FIELDS = {"keyring_paths", "build_packages"}


def _parse_env_value(field: str, value: str) -> Any:
    if field in LIST_FIELDS:
        return [item.strip() for item in value.split(",") if item.strip()]
    if field == "chroot_env":
        pairs = [item.split("=", 1) for item in value.split(",") if "=" in item]
        return {k.strip(): v.strip() for k, v in pairs}
    return value


def load_file(path: str) -> Dict[str, Any]:
    """
    Reads a YAML configuration file.

    :param path: Path to the file.
    :return: The top-level mapping.
    :raises ConfigError: If the file is unreadable or not a mapping.
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def env_overrides(environ: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """
    Collects ``POP_CONTAINER_<FIELD>`` values for known configuration fields.
    """
    overrides = {}
    for field in BuildConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{field.upper()}")
        if value is not None:
            overrides[field] = _parse_env_value(field, value)
    return overrides


def load_config(path: Optional[str] = None,
                environ: Optional[Mapping[str, str]] = None,
                dotenv_path: Optional[str] = ".env") -> BuildConfig:
    """
    Resolves the build configuration.

    Later sources win: defaults, the YAML file, the ``.env`` file, then the
    process environment.

    :param path: Optional YAML configuration file.
    :param environ: Environment to read. Defaults to ``os.environ``.
    :param dotenv_path: ``.env`` file to read, if it exists.
    :return: A validated BuildConfig.
    :raises ConfigError: If any source is invalid.
    """
    environ = os.environ if environ is None else environ

    values: Dict[str, Any] = {}
    if path:
        values.update(load_file(path))

    merged_env: Dict[str, Optional[str]] = {}
    if dotenv_path and os.path.exists(dotenv_path):
        merged_env.update(dotenv_values(dotenv_path))
    merged_env.update(environ)
    values.update(env_overrides(merged_env))

    try:
        return BuildConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: YAML on disk to a validated, frozen HelferleinConfig.

    global:
      config_version: "1.0.0"
      seed: 7
    train:
      epochs: 10
      lr_decay: 0.5
      optimizer_args: {lr: 0.001}

load_config returns the whole file; load_train_config returns just the options
of a tb_train run, with defaults when the file has no `train:` section.
Any failure stops here with a ConfigError subclass.
"""

from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from helferlein.config.exceptions import ConfigLoadError, ConfigValidationError
from helferlein.config.schema import HelferleinConfig, TrainConfig

PathLike = Union[str, Path]


def _parse_yaml(config_path: Path) -> dict[str, Any]:
    """
    Parse `config_path` into a mapping.

    Raises:
        ConfigLoadError: If the path is missing or not a file, can't be read,
            isn't valid YAML, or holds something other than a mapping.
    """
    if not config_path.is_file():
        reason = "not a file" if config_path.exists() else "not found"
        raise ConfigLoadError(f"Config file {reason}: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as fh:
            parsed = yaml.safe_load(fh)
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file {config_path} must hold a YAML mapping, got {type(parsed).__name__}"
        )
    return parsed


def load_config(config_path: PathLike) -> HelferleinConfig:
    """
    Load and validate a config file.

    Args:
        config_path: Path to a YAML config file.

    Returns:
        A frozen HelferleinConfig.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    path = Path(config_path)
    raw = _parse_yaml(path)

    try:
        return HelferleinConfig.model_validate(raw)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {path}:\n{err}") from err


def load_train_config(config_path: PathLike) -> TrainConfig:
    """The `train:` section of a config file, or TrainConfig() if there is none."""
    config = load_config(config_path)
    return config.train if config.train is not None else TrainConfig()

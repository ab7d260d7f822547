# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for helferlein.

Shuffling loaders, noise and mask decorators and weight initialisation all draw
from python's `random` and torch's global generator. Seeding both once before
building models and loaders makes a run repeatable.
"""

import logging
import os
import random
from pathlib import Path

import torch

from helferlein.config.schema import GlobalConfig
from helferlein.logging.logger import get_logger


def set_deterministic_seed(seed: int) -> None:
    """
    Seed python's random module, PYTHONHASHSEED and torch (CPU and CUDA).

    Args:
        seed: Integer seed value, >= 0.
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)

    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True  # type: ignore[attr-defined]
        torch.backends.cudnn.benchmark = False  # type: ignore[attr-defined]


def bootstrap(config: GlobalConfig) -> logging.Logger:
    """
    Seed everything and configure the package logger from the global config.

    Returns:
        The configured `helferlein` logger.
    """
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file is not None else None
    logger = get_logger("helferlein", log_level=config.log_level, log_file=log_file)

    logger.info(
        "helferlein bootstrap complete",
        extra={
            "project": config.project_name,
            "seed": config.seed,
            "torch_version": torch.__version__,
            "cuda": torch.cuda.is_available(),
        },
    )
    return logger

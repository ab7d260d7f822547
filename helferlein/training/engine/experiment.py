# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Run directory layout for helferlein.

    <tb_dir>/<tb_name>/<YYYY-mm-ddTHH-MM-SS>/
      ├── config.json        frozen TrainConfig snapshot
      ├── events.out.tfevents.*
      └── checkpoints/
          └── checkpoint_<step>.pt
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from helferlein.config.schema import TrainConfig
from helferlein.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

RUN_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def run_dir_name(tb_dir: Path, tb_name: str, start_time: datetime) -> Path:
    """Run directory for a run named `tb_name` started at `start_time`."""
    return tb_dir / tb_name / start_time.strftime(RUN_TIMESTAMP_FORMAT)


def create_run_dir(config: TrainConfig, start_time: datetime) -> Path:
    """
    Create the run directory and snapshot the config into it.

    Returns:
        Path to the run directory.
    """
    run_dir = run_dir_name(Path(config.tb_dir), config.tb_name, start_time)
    run_dir.mkdir(parents=True, exist_ok=True)

    (run_dir / "config.json").write_text(
        json.dumps(config.model_dump(), indent=2, default=str),
        encoding="utf-8",
    )

    logger.info("Run directory created", extra={"path": str(run_dir)})
    return run_dir

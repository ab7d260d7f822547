# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model checkpoints for helferlein.

tb_train writes one file per checkpoint into the run's checkpoint directory:

    <tb_dir>/<tb_name>/<timestamp>/checkpoints/checkpoint_<step>.pt

Each file holds the model's state_dict, the step, the class name of the model
and the learning rate at that step. Saves are atomic: the data is written to a
temporary file in the same directory and renamed into place, so a crash never
leaves a truncated checkpoint behind.
"""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import torch
import torch.nn as nn

from helferlein.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_PREFIX = "checkpoint_"
_SUFFIX = ".pt"


@dataclass(frozen=True)
class CheckpointMetadata:
    """What is stored next to the weights."""

    step: int
    model_class: str
    learning_rate: Optional[float] = None


def checkpoint_path(checkpoint_dir: Path, step: int) -> Path:
    """Path of the checkpoint for `step` inside `checkpoint_dir`."""
    return checkpoint_dir / f"{_PREFIX}{step}{_SUFFIX}"


def save_checkpoint(
    model: nn.Module,
    step: int,
    checkpoint_dir: Path,
    learning_rate: Optional[float] = None,
) -> Path:
    """
    Save `model` atomically as checkpoint_<step>.pt in `checkpoint_dir`.

    Args:
        model: The model to checkpoint.
        step: Training step, used in the file name.
        checkpoint_dir: Target directory, created if missing.
        learning_rate: Current learning rate, stored for reference.

    Returns:
        Path to the written file.
    """
    checkpoint_dir.mkdir(parents=True, exist_ok=True)
    target = checkpoint_path(checkpoint_dir, step)

    payload = {
        "step": step,
        "model_class": type(model).__qualname__,
        "learning_rate": learning_rate,
        "model_state": model.state_dict(),
    }

    tmp = tempfile.NamedTemporaryFile(
        dir=str(checkpoint_dir), prefix=".ckpt_tmp_", suffix=_SUFFIX, delete=False
    )
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            torch.save(payload, tmp)
        tmp_path.replace(target)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise

    logger.info("Checkpoint saved", extra={"step": step, "path": str(target)})
    return target


def load_checkpoint(
    path: Path,
    model: nn.Module,
    device: Optional[torch.device] = None,
) -> CheckpointMetadata:
    """
    Restore `model` from a checkpoint file.

    Returns:
        The metadata stored with the checkpoint.

    Raises:
        FileNotFoundError: If `path` doesn't exist.
        RuntimeError: If the file holds no model state.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Checkpoint not found: {path}")

    map_location = device if device is not None else "cpu"
    payload = torch.load(path, map_location=map_location, weights_only=True)
    if not isinstance(payload, dict) or "model_state" not in payload:
        raise RuntimeError(f"No model state in checkpoint {path}")

    model.load_state_dict(payload["model_state"])

    metadata = CheckpointMetadata(
        step=int(payload.get("step", 0)),
        model_class=str(payload.get("model_class", "")),
        learning_rate=payload.get("learning_rate"),
    )
    logger.info("Checkpoint loaded", extra={"step": metadata.step, "path": str(path)})
    return metadata


def find_latest_checkpoint(checkpoint_dir: Path) -> Optional[Path]:
    """
    The checkpoint with the highest step in `checkpoint_dir`, or None.
    """
    if not checkpoint_dir.is_dir():
        return None

    candidates = []
    for f in checkpoint_dir.glob(f"{_PREFIX}*{_SUFFIX}"):
        step = f.name[len(_PREFIX) : -len(_SUFFIX)]
        if step.isdigit():
            candidates.append((int(step), f))

    if not candidates:
        return None
    return max(candidates)[1]

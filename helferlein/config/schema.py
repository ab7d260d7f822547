# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for helferlein.

All models are frozen pydantic v2 models with:
  - frozen=True: a training run cannot change its own configuration
  - extra="forbid": a misspelt option fails loudly instead of being ignored
  - validate_default=True: defaults are type-checked like user values

Paths (TensorBoard root, checkpoint subdirectory, log file) live here as plain
values and are handed to the code that needs them. There is no module-level
data directory.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility and logging.

    Loaded from the `global:` section of a YAML file.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="helferlein", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Random seed for python and torch",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class TrainConfig(BaseModel):
    """
    Options of a `tb_train` run. Loaded from the `train:` section.

    Every `*_freq` value is "times per epoch": it is turned into a step
    interval as ceil(n_minibatches / freq) when the run starts. Fractional
    values are allowed, so cp_freq=0.5 means one checkpoint every two epochs.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    epochs: int = Field(default=1, ge=1, description="Passes over the training data")
    lr_decay: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Factor applied to the learning rate at every decay step; None disables decay",
    )
    lrd_freq: float = Field(
        default=1.0,
        gt=0.0,
        description="Learning-rate decay steps per epoch",
    )
    l2: float = Field(
        default=0.0,
        ge=0.0,
        description="Weight-decay coefficient added to every gradient as l2 * parameter",
    )
    eval_size: float = Field(
        default=0.2,
        gt=0.0,
        le=1.0,
        description="Fraction of the validation (or training) minibatches used per evaluation",
    )
    eval_freq: float = Field(default=1.0, gt=0.0, description="Evaluations per epoch")
    mb_loss_freq: float = Field(
        default=100.0,
        gt=0.0,
        description="Minibatch-loss reports per epoch",
    )
    cp_freq: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Checkpoints per epoch; None disables checkpointing",
    )
    cp_dir: str = Field(
        default="checkpoints",
        description="Checkpoint directory, relative to the run directory",
    )
    tb_dir: str = Field(default="logs", description="Root directory of TensorBoard runs")
    tb_name: str = Field(
        default="run",
        description="Run name, used as a directory name below tb_dir",
    )
    tb_text: str = Field(
        default="Description of tb_train() run.",
        description="Free text stored in the run's TensorBoard text log",
    )
    optimizer_args: dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments for the optimizer class (lr, betas, momentum, ...)",
    )


class HelferleinConfig(BaseModel):
    """
    Top-level container. A YAML file always has `global:` and may have `train:`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    train: Optional[TrainConfig] = Field(default=None)

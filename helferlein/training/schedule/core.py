# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Step intervals of a training run.

All periodic work in tb_train (evaluation, loss reports, checkpoints,
learning-rate decay) is configured as "times per epoch". The schedule turns
each of those into a fixed step interval once, before the first step:

    interval = ceil(n_trn / freq)

so reports are evenly spaced within every epoch no matter how many epochs run.
A frequency above the number of minibatches gives an interval of 1.
"""

import math
from dataclasses import dataclass
from typing import Optional

from helferlein.config.schema import TrainConfig


def resolve_interval(n_steps: int, freq: float) -> int:
    """
    Convert `freq` events per `n_steps` steps into a step interval (>= 1).

    Raises:
        ValueError: If freq is not positive.
    """
    if freq <= 0:
        raise ValueError(f"Frequency must be > 0, got {freq}")
    return max(1, math.ceil(n_steps / freq))


def is_due(step: int, interval: Optional[int]) -> bool:
    """True if `interval` is enabled and `step` is a multiple of it."""
    return interval is not None and step % interval == 0


@dataclass(frozen=True)
class TrainingSchedule:
    """Intervals and evaluation subsampling resolved for one run."""

    n_trn: int
    n_vld: int
    epochs: int
    n_eval: int
    nth_trn: int
    nth_vld: int
    eval_every: int
    loss_every: int
    lr_every: Optional[int]
    cp_every: Optional[int]

    @property
    def total_steps(self) -> int:
        return self.epochs * self.n_trn


def build_schedule(config: TrainConfig, n_trn: int, n_vld: Optional[int]) -> TrainingSchedule:
    """
    Resolve every interval of `config` against a training set of n_trn minibatches.

    Evaluation visits about eval_size of the validation minibatches (of the
    training minibatches when the validation set is missing or empty), and the same number
    of training minibatches, by taking every nth_trn-th / nth_vld-th element.

    Args:
        config: The run's configuration.
        n_trn: Minibatches per training epoch.
        n_vld: Minibatches in the validation set, or None without one.
    """
    n_src = n_vld if n_vld else n_trn
    n_eval = max(1, math.ceil(n_src * config.eval_size))

    lr_every = resolve_interval(n_trn, config.lrd_freq) if config.lr_decay is not None else None
    cp_every = resolve_interval(n_trn, config.cp_freq) if config.cp_freq is not None else None

    return TrainingSchedule(
        n_trn=n_trn,
        n_vld=n_vld or 0,
        epochs=config.epochs,
        n_eval=n_eval,
        nth_trn=max(1, math.ceil(n_trn / n_eval)),
        nth_vld=max(1, math.ceil((n_vld or 0) / n_eval)),
        eval_every=resolve_interval(n_trn, config.eval_freq),
        loss_every=resolve_interval(n_trn, config.mb_loss_freq),
        lr_every=lr_every,
        cp_every=cp_every,
    )

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training and evaluation metrics for helferlein.

  - LossBuffer collects minibatch losses between two loss reports.
  - mean_loss / mean_metric average a model's loss or a metric function over
    a (usually decimated) loader without tracking gradients.
  - evaluate bundles both for a training and an optional validation view.
  - accuracy is the usual metric for classifiers, suitable as acc_fun.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

import torch
import torch.nn as nn

MetricFn = Callable[[torch.Tensor, Any], Any]


@dataclass
class LossBuffer:
    """
    Rolling buffer of minibatch losses, emptied at every loss report.
    """

    _losses: list[float] = field(default_factory=list, init=False)

    def record(self, loss: float) -> None:
        self._losses.append(loss)

    def mean(self) -> float:
        if not self._losses:
            return math.nan
        return sum(self._losses) / len(self._losses)

    def flush(self) -> float:
        """Return the mean and clear the buffer."""
        value = self.mean()
        self._losses = []
        return value

    def __len__(self) -> int:
        return len(self._losses)


def _scalar(value: Any) -> float:
    if isinstance(value, torch.Tensor):
        return float(value.detach().float().mean())
    return float(value)


def mean_loss(model: nn.Module, data: Iterable[Any]) -> Optional[float]:
    """
    Mean of model(x, y) over all minibatches of `data`.

    Returns:
        The mean loss, or None if `data` yielded nothing.
    """
    total = 0.0
    count = 0
    with torch.no_grad():
        for x, y in data:
            total += _scalar(model(x, y))
            count += 1
    return total / count if count else None


def mean_metric(model: nn.Module, fun: MetricFn, data: Iterable[Any]) -> Optional[float]:
    """
    Mean of fun(model(x), y) over all minibatches of `data`.

    Returns:
        The mean metric, or None if `data` yielded nothing.
    """
    total = 0.0
    count = 0
    with torch.no_grad():
        for x, y in data:
            total += _scalar(fun(model(x), y))
            count += 1
    return total / count if count else None


@dataclass(frozen=True)
class EvalResult:
    """Losses and metrics of one evaluation. None means not computed."""

    loss_train: Optional[float]
    loss_valid: Optional[float]
    acc_train: Optional[float] = None
    acc_valid: Optional[float] = None


def evaluate(
    model: nn.Module,
    trn: Iterable[Any],
    vld: Optional[Iterable[Any]],
    acc_fun: Optional[MetricFn] = None,
) -> EvalResult:
    """
    Evaluate `model` on a training view and an optional validation view.

    The model is put into eval mode for the duration and restored afterwards.
    """
    was_training = model.training
    model.eval()
    try:
        loss_trn = mean_loss(model, trn)
        loss_vld = mean_loss(model, vld) if vld is not None else None
        acc_trn = acc_vld = None
        if acc_fun is not None:
            acc_trn = mean_metric(model, acc_fun, trn)
            acc_vld = mean_metric(model, acc_fun, vld) if vld is not None else None
    finally:
        model.train(was_training)

    return EvalResult(
        loss_train=loss_trn,
        loss_valid=loss_vld,
        acc_train=acc_trn,
        acc_valid=acc_vld,
    )


def accuracy(predictions: torch.Tensor, labels: torch.Tensor) -> float:
    """
    Fraction of samples whose highest-scoring class equals the label.

    Args:
        predictions: Class scores of shape (batch, n_classes).
        labels: Integer class labels of shape (batch,).
    """
    hits = predictions.argmax(dim=-1) == labels.reshape(-1).to(predictions.device)
    return float(hits.float().mean())

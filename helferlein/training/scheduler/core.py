# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Learning-rate state for helferlein.

The learning rate of a run is held in exactly one place: the parameter groups
of its optimizer. Every trainable parameter is updated through those groups,
so changing the value there is immediately visible to all of them. Decay is a
plain multiplication applied by tb_train at its decay interval.
"""

from torch.optim import Optimizer


def get_learning_rate(optimizer: Optimizer) -> float:
    """Current learning rate, read from the first parameter group."""
    return float(optimizer.param_groups[0]["lr"])


def set_learning_rate(optimizer: Optimizer, lr: float) -> None:
    """Write `lr` into every parameter group."""
    for group in optimizer.param_groups:
        group["lr"] = lr


def decay_learning_rate(optimizer: Optimizer, factor: float) -> float:
    """
    Multiply the learning rate by `factor` and return the new value.

    Groups that started with different rates all end up at the decayed rate of
    the first group.
    """
    lr = get_learning_rate(optimizer) * factor
    set_learning_rate(optimizer, lr)
    return lr

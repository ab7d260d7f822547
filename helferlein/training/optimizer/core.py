# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Optimizer construction and L2 regularisation for helferlein.

tb_train takes an optimizer *class* plus keyword options (lr, betas, momentum,
...) rather than a ready optimizer, and builds it here over the model's
trainable parameters.

L2 regularisation is not delegated to the optimizer's own weight_decay option.
It is added to the gradients before every step, as grad + l2 * parameter, and
only for parameters that actually received a gradient from the current loss.
That keeps the behaviour identical across optimizer classes.
"""

from typing import Any, Iterable

import torch
import torch.nn as nn


def create_optimizer(
    model: nn.Module,
    optimizer_cls: type[torch.optim.Optimizer],
    **optimizer_args: Any,
) -> torch.optim.Optimizer:
    """
    Build `optimizer_cls` over every parameter of `model` with requires_grad.

    Args:
        model: The model whose parameters to optimize.
        optimizer_cls: e.g. torch.optim.Adam or torch.optim.SGD.
        **optimizer_args: Passed to the optimizer constructor.

    Returns:
        The optimizer.
    """
    params = [p for p in model.parameters() if p.requires_grad]
    return optimizer_cls(params, **optimizer_args)


@torch.no_grad()
def apply_weight_decay(params: Iterable[torch.Tensor], l2: float) -> None:
    """
    Add l2 * p to the gradient of every parameter that has one.

    Parameters without a gradient were not part of the loss and are left alone.
    """
    if l2 == 0.0:
        return
    for p in params:
        if p.grad is not None:
            p.grad.add_(p, alpha=l2)

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model containers: chains of layers with a built-in loss.

A chain is called two ways, which is the calling convention tb_train expects:

    model(x)     -> predictions
    model(x, y)  -> scalar loss, traceable by autograd

The layers themselves are ordinary nn.Modules (nn.Linear, nn.Conv2d, ...) and
are run in the order given.
"""

from typing import Optional

import torch
import torch.nn as nn
import torch.nn.functional as F


class NeuNet(nn.Module):
    """
    Sequential chain of layers. Subclasses define the loss.

    Args:
        *layers: Modules applied to the input in order.
    """

    def __init__(self, *layers: nn.Module) -> None:
        super().__init__()
        self.layers = nn.ModuleList(layers)

    def add_layer(self, layer: nn.Module) -> None:
        """Append a layer to the end of the chain."""
        self.layers.append(layer)

    def forward(self, x: torch.Tensor, y: Optional[torch.Tensor] = None) -> torch.Tensor:
        for layer in self.layers:
            x = layer(x)
        if y is None:
            return x
        return self.loss(x, y)

    def loss(self, predictions: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError(f"{type(self).__name__} does not define a loss")

    def count_parameters(self) -> int:
        """Number of trainable parameters."""
        return sum(p.numel() for p in self.parameters() if p.requires_grad)


class Classifier(NeuNet):
    """
    Chain for classification. Predictions are raw class scores of shape
    (batch, n_classes); the loss is the mean cross-entropy against integer
    class labels.
    """

    def loss(self, predictions: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        return F.cross_entropy(predictions, y.long())


class Regressor(NeuNet):
    """Chain for regression; the loss is the mean squared error."""

    def loss(self, predictions: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        target = y.to(predictions.dtype).reshape(predictions.shape)
        return F.mse_loss(predictions, target)

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Inference helpers for trained helferlein models.
"""

import logging
from typing import Any, Iterable, Optional, Sequence, Union

import torch
import torch.nn as nn

from helferlein.logging.logger import get_logger
from helferlein.model.chains import Classifier

logger: logging.Logger = get_logger(__name__)


def predict(
    model: nn.Module,
    x: Union[torch.Tensor, Iterable[Any]],
    softmax: bool = False,
) -> torch.Tensor:
    """
    Run `model` on `x` and return float32 predictions.

    Args:
        model: A model callable as model(x).
        x: A tensor, or a loader/iterable of minibatches. Minibatches may be
           bare inputs or (x, y) pairs; the results are concatenated along
           the batch dimension.
        softmax: Return softmax probabilities instead of raw scores. Only
           applied to Classifier models.
    """
    with torch.no_grad():
        if isinstance(x, torch.Tensor):
            y = model(x)
        else:
            outputs = []
            for mb in x:
                if isinstance(mb, (tuple, list)):
                    mb = mb[0]
                outputs.append(model(mb))
            y = torch.cat(outputs, dim=0)

    y = y.detach().float()
    if softmax and isinstance(model, Classifier):
        return torch.softmax(y, dim=-1)
    return y


def predict_top5(
    model: nn.Module,
    x: Union[torch.Tensor, Iterable[Any]],
    top_n: int = 5,
    classes: Optional[Sequence[str]] = None,
) -> torch.Tensor:
    """
    Log the top_n classes (by softmax probability) for every sample of `x`.

    Args:
        model: A classification model.
        x: Inputs as accepted by predict().
        top_n: Number of hits to report per sample.
        classes: Optional human-readable label per class index.

    Returns:
        The raw predictions.
    """
    y = predict(model, x, softmax=False)
    n_classes = y.shape[-1]
    top_n = min(top_n, n_classes)

    for i, scores in enumerate(y):
        probs = torch.softmax(scores, dim=-1)
        top = torch.argsort(probs, descending=True)[:top_n].tolist()
        hits = [
            {
                "class": t,
                "label": classes[t] if classes is not None else "-",
                "softmax": round(float(probs[t]), 4),
            }
            for t in top
        ]
        logger.info(f"top-{top_n} hits for sample {i}", extra={"sample": i, "hits": hits})

    return y

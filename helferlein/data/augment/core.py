# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Augmenting decorators for minibatch loaders.

MBNoiser and MBMasquerade wrap any loader of (x, y) minibatches and change
the input x of every minibatch as it is pulled. Labels pass through untouched,
length and states are those of the wrapped loader, and the source tensors are
never modified: each pull transforms a fresh copy.

Decorators stack, e.g.

    trn = MBMasquerade(MBNoiser(Minibatches(x, y, 64), sigma=0.05), rho=0.1)
"""

import math
from typing import Any, Optional

import torch

from helferlein.data.iterators.core import DataLoader, Step

MASK_MODES = ("noise", "patch")


def add_noise(
    x: torch.Tensor,
    sigma: float,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Multiply x elementwise by Gaussian noise with mean 1.0 and sd sigma.

    Integer inputs (raw pixel bytes, counts) come back in the default float
    dtype.
    """
    if not x.is_floating_point():
        x = x.to(torch.get_default_dtype())
    noise = torch.randn(x.shape, generator=generator, dtype=x.dtype).to(x.device)
    return x * (noise * sigma + 1.0)


def mask_values(
    x: torch.Tensor,
    rho: float,
    value: float,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """Return a copy of x where each element is replaced by value with probability rho."""
    mask = torch.rand(x.shape, generator=generator).to(x.device) < rho
    return x.masked_fill(mask, value)


def mask_patch(
    x: torch.Tensor,
    rho: float,
    value: float,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """
    Return a copy of x with one hyper-rectangle overwritten by value.

    Along each axis of size s the patch covers ceil(rho * s) positions starting
    at a uniformly drawn offset that keeps it inside the tensor.
    """
    slices = []
    for size in x.shape:
        p_size = math.ceil(size * rho)
        start = int(torch.randint(0, size - p_size + 1, (1,), generator=generator))
        slices.append(slice(start, start + p_size))

    masked = x.clone()
    masked[tuple(slices)] = value
    return masked


class MBNoiser(DataLoader):
    """
    Add multiplicative Gaussian noise to the inputs of another loader.

    Every value of x is multiplied by a draw from N(1.0, sigma), so sigma=0
    reproduces the source exactly.

    Args:
        mbs: Loader of (x, y) minibatches.
        sigma: Standard deviation of the noise.
        generator: Optional torch.Generator for reproducible noise.
    """

    def __init__(
        self,
        mbs: DataLoader,
        sigma: float = 1.0,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self.mbs = mbs
        self.sigma = sigma
        self.generator = generator

    def iterate(self, state: Any = None) -> Optional[Step]:
        step = self.mbs.iterate(state)
        if step is None:
            return None
        (x, y), next_state = step
        return (add_noise(x, self.sigma, self.generator), y), next_state

    def __len__(self) -> int:
        return len(self.mbs)

    def __repr__(self) -> str:
        return f"MBNoiser({self.mbs!r}, sigma={self.sigma})"


class MBMasquerade(DataLoader):
    """
    Partially mask the inputs of another loader.

    Args:
        it: Loader of (x, y) minibatches.
        rho: Mask density; 1.0 masks everything, 0.0 nothing.
        mode: "noise" overwrites randomly scattered single values,
              "patch" overwrites a single rectangular region.
        value: The value written into masked positions.
        generator: Optional torch.Generator for reproducible masks.

    Raises:
        ValueError: For an unknown mode.
    """

    def __init__(
        self,
        it: DataLoader,
        rho: float = 0.1,
        mode: str = "noise",
        value: float = 0.0,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        if mode not in MASK_MODES:
            raise ValueError(f"Unknown mask mode '{mode}'. Must be one of: {', '.join(MASK_MODES)}")
        self.it = it
        self.rho = rho
        self.mode = mode
        self.value = value
        self.generator = generator

    def iterate(self, state: Any = None) -> Optional[Step]:
        step = self.it.iterate(state)
        if step is None:
            return None

        (x, y), next_state = step
        if self.mode == "noise":
            x = mask_values(x, self.rho, self.value, self.generator)
        else:
            x = mask_patch(x, self.rho, self.value, self.generator)
        return (x, y), next_state

    def __len__(self) -> int:
        return len(self.it)

    def __repr__(self) -> str:
        return f"MBMasquerade({self.it!r}, rho={self.rho}, value={self.value}, mode='{self.mode}')"

# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Restartable minibatch iterators for helferlein.

Every loader implements one small protocol:

  - len(it)                -> number of elements in one pass, no side effects
  - it.iterate()           -> (element, state) for the first element, or None
  - it.iterate(state)      -> (element, state) for the next element, or None

`None` as a return value means the pass is exhausted; it is never an element.
`None` as an argument means "start a new pass". Loaders that shuffle draw their
permutation at that moment, not at construction, so every pass is freshly
shuffled.

States are opaque. A loader that owns an element order returns the pair
(order, position), where order is the permutation drawn for the current pass
(None when unshuffled). Decorators pass their inner loader's state through
unchanged. Because the order travels with the state rather than living on the
loader, a pass can be resumed from any recorded state, which is what
split_minibatches relies on, and restarting a loader (an evaluation pass in
the middle of a training epoch, say) leaves passes already under way alone.

All loaders are also ordinary Python iterables, so `for x, y in loader:` runs
one pass.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional, Sequence

import torch

Step = tuple[Any, Any]


def _permutation(n: int, generator: Optional[torch.Generator]) -> tuple[int, ...]:
    """Uniform random permutation of range(n)."""
    return tuple(torch.randperm(n, generator=generator).tolist())


class DataLoader(ABC):
    """Base class of all minibatch iterators."""

    @abstractmethod
    def iterate(self, state: Any = None) -> Optional[Step]:
        """Return (element, next_state), or None once the pass is exhausted."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of elements produced by one full pass."""

    def __iter__(self) -> Iterator[Any]:
        step = self.iterate()
        while step is not None:
            element, state = step
            yield element
            step = self.iterate(state)

    def eltype(self) -> type:
        """
        Type of the elements this loader produces.

        Pulls the first element of a new pass, so shuffling loaders reshuffle.
        """
        step = self.iterate()
        if step is None:
            raise ValueError(f"{type(self).__name__} is empty; element type is unknown")
        return type(step[0])


class Minibatches(DataLoader):
    """
    Array-backed minibatch source.

    Slices `x` and `y` along their first (sample) dimension into batches of
    `batch_size`. The last incomplete batch is dropped unless `partial=True`.
    With `shuffle=True` the sample order is redrawn at the start of every pass.

    The state is (sample order of the pass, index of the next batch), so a
    recorded state always points at the same slice of the same samples.

    Args:
        x: Input tensor, samples along dim 0.
        y: Label tensor with the same number of samples, or None for
           unlabelled data (elements are then bare input batches).
        batch_size: Samples per minibatch.
        shuffle: Redraw the sample order on every pass.
        partial: Keep a trailing batch smaller than batch_size.
        generator: Optional torch.Generator for reproducible shuffling.
    """

    def __init__(
        self,
        x: torch.Tensor,
        y: Optional[torch.Tensor],
        batch_size: int,
        shuffle: bool = False,
        partial: bool = False,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if y is not None and y.shape[0] != x.shape[0]:
            raise ValueError(
                f"x and y disagree on the number of samples: {x.shape[0]} vs {y.shape[0]}"
            )

        self.x = x
        self.y = y
        self.batch_size = batch_size
        self.shuffle = shuffle
        self.partial = partial
        self.generator = generator

        n_samples = x.shape[0]
        if partial:
            self._length = math.ceil(n_samples / batch_size)
        else:
            self._length = n_samples // batch_size

    def iterate(self, state: Any = None) -> Optional[Step]:
        if state is None:
            order = None
            if self.shuffle:
                order = torch.randperm(self.x.shape[0], generator=self.generator)
            pos = 0
        else:
            order, pos = state

        if pos >= self._length:
            return None

        start = pos * self.batch_size
        if order is None:
            idx = slice(start, start + self.batch_size)
        else:
            idx = order[start : start + self.batch_size]
        next_state = (order, pos + 1)
        if self.y is None:
            return self.x[idx], next_state
        return (self.x[idx], self.y[idx]), next_state

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        return (
            f"Minibatches({self._length} batches of {self.batch_size}, "
            f"shuffle={self.shuffle}, partial={self.partial})"
        )


class SequenceData(DataLoader):
    """
    Generic loader over an indexable collection of ready-made minibatches.

    With `shuffle=True` the minibatch order is a fresh uniform permutation on
    every pass; the permutation is fixed for the duration of that pass.

    Args:
        mbs: List, tuple or other sequence of minibatches.
        shuffle: Shuffle the minibatches at the start of every pass.
        generator: Optional torch.Generator for reproducible shuffling.
    """

    def __init__(
        self,
        mbs: Sequence[Any],
        shuffle: bool = True,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self.mbs = mbs
        self.shuffle = shuffle
        self.generator = generator
        self._length = len(mbs)

    def iterate(self, state: Any = None) -> Optional[Step]:
        if state is None:
            order = _permutation(self._length, self.generator) if self.shuffle else None
            pos = 0
        else:
            order, pos = state

        if pos >= self._length:
            return None
        index = pos if order is None else order[pos]
        return self.mbs[index], (order, pos + 1)

    def __len__(self) -> int:
        return self._length

    def __repr__(self) -> str:
        return f"SequenceData({self._length} minibatches, shuffle={self.shuffle})"


class PartialIterator(DataLoader):
    """
    Iterate only a chosen subset of another loader's states.

    Each pull takes the next entry of `indices`, calls `inner.iterate(entry)`
    exactly once and returns the element; the inner loader's follow-up state
    is dropped.

    The index list is copied at construction. With `shuffle=True` that copy is
    permuted at the start of every pass; `reshuffle()` does the same on demand.

    The state of a pass is (visiting order, position). The order is a snapshot
    taken at restart, so reshuffling, or a new pass started elsewhere, never
    moves a pass that is already under way.

    A `None` entry starts a fresh inner pass, so it only names a fixed element
    when the inner loader does not shuffle.

    Args:
        inner: The wrapped loader.
        indices: Inner states to visit.
        shuffle: Permute the visiting order at the start of every pass.
        generator: Optional torch.Generator for reproducible shuffling.
    """

    def __init__(
        self,
        inner: DataLoader,
        indices: Sequence[Any],
        shuffle: bool = True,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self.inner = inner
        self.shuffle = shuffle
        self.generator = generator
        self._indices = list(indices)

    @property
    def indices(self) -> tuple[Any, ...]:
        """Current visiting order of inner states (read-only view)."""
        return tuple(self._indices)

    def reshuffle(self) -> None:
        """Permute the visiting order."""
        perm = _permutation(len(self._indices), self.generator)
        self._indices = [self._indices[i] for i in perm]

    def iterate(self, state: Any = None) -> Optional[Step]:
        if state is None:
            if self.shuffle:
                self.reshuffle()
            order, pos = tuple(self._indices), 0
        else:
            order, pos = state

        if pos >= len(order):
            return None

        inner_state = order[pos]
        step = self.inner.iterate(inner_state)
        if step is None:
            raise RuntimeError(
                f"Inner loader is exhausted at recorded state {inner_state!r}; "
                "it was changed after the states were collected"
            )
        return step[0], (order, pos + 1)

    def __len__(self) -> int:
        return len(self._indices)

    def __repr__(self) -> str:
        return f"PartialIterator({len(self._indices)} of {len(self.inner)}, shuffle={self.shuffle})"


class TakeNth(DataLoader):
    """
    Decimated view: yields elements n, 2n, 3n, ... of the wrapped loader.

    Used to bound the cost of evaluation passes. Restarting the view restarts
    the inner loader, including its shuffling.
    """

    def __init__(self, inner: DataLoader, n: int) -> None:
        if n < 1:
            raise ValueError(f"TakeNth step must be >= 1, got {n}")
        self.inner = inner
        self.n = n

    def iterate(self, state: Any = None) -> Optional[Step]:
        step = self.inner.iterate(state)
        for _ in range(self.n - 1):
            if step is None:
                return None
            step = self.inner.iterate(step[1])
        return step

    def __len__(self) -> int:
        return len(self.inner) // self.n

    def __repr__(self) -> str:
        return f"TakeNth({self.inner!r}, {self.n})"

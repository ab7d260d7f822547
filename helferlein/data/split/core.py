# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Train/validation split of a minibatch loader without copying data.

split_minibatches walks the loader once and records the state that produced
each element. Those states are divided into two lists, and each list drives a
PartialIterator over the very same loader. Both halves therefore read the
original tensors: changing the source changes what both partitions return.

The first recorded state is None, which restarts the loader, so the loader
being split must not shuffle: an unshuffled Minibatches or
SequenceData(shuffle=False) is fine.
"""

import logging
from typing import Any, Optional

import torch

from helferlein.data.iterators.core import DataLoader, PartialIterator
from helferlein.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)


def collect_states(it: DataLoader) -> list[Any]:
    """
    Return the state that produces each element of one full pass over `it`.

    The first entry is None (the initial pull). The state returned together
    with the last element would only produce exhaustion, so it is not kept.
    """
    states: list[Any] = [None]
    step = it.iterate()
    while step is not None:
        _, state = step
        states.append(state)
        step = it.iterate(state)
    states.pop()
    return states


def split_minibatches(
    it: DataLoader,
    at: float = 0.8,
    shuffle: bool = True,
    generator: Optional[torch.Generator] = None,
) -> tuple[PartialIterator, PartialIterator]:
    """
    Split `it` into a training and a validation PartialIterator.

    The split point is round(at * n). The training half is never empty for a
    non-empty source: a split point of 0 still hands the first state to
    training and leaves the other n - 1 to validation. The validation half
    may be empty (at=1.0).

    Args:
        it: Loader to split. Its states are collected with one full pass.
        at: Fraction of minibatches that go to the training half.
        shuffle: Shuffle the states before splitting, and make both
            partitions reshuffle their order on every pass.
        generator: Optional torch.Generator for reproducible shuffling.

    Returns:
        (train, validation) partial iterators sharing `it`.
    """
    states = collect_states(it)

    if shuffle:
        perm = torch.randperm(len(states), generator=generator).tolist()
        states = [states[i] for i in perm]

    n_total = len(states)
    n_trn = int(round(n_total * at))
    if n_trn == 0 and n_total > 0:
        n_trn = 1

    trn_idx = states[:n_trn]
    vld_idx = states[n_trn:]

    logger.debug(
        "Minibatches split",
        extra={"total": n_total, "train": len(trn_idx), "valid": len(vld_idx), "at": at},
    )

    return (
        PartialIterator(it, trn_idx, shuffle=shuffle, generator=generator),
        PartialIterator(it, vld_idx, shuffle=shuffle, generator=generator),
    )

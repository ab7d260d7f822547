# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
helferlein minibatch loaders.

Subsystems:
  - iterators: loader protocol, Minibatches, SequenceData, PartialIterator, TakeNth
  - split: split_minibatches (train/validation without copying)
  - augment: MBNoiser, MBMasquerade decorators
"""

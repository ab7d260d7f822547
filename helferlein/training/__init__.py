# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
helferlein training infrastructure package.

Subsystems:
  - engine: tb_train loop and run directory layout
  - schedule: per-epoch frequencies to step intervals
  - scheduler: shared learning rate and decay
  - optimizer: optimizer factory and L2 term
  - metrics: loss buffer, evaluation, accuracy
  - sink: TensorBoard metric sink
  - checkpoint: atomic checkpoint save/load
  - predict: inference helpers
"""

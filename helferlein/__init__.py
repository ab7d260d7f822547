# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
helferlein: training helpers on top of PyTorch.

Subsystems:
  - data: restartable minibatch loaders, non-copying splits, noise and masking
  - model: Classifier / Regressor layer chains
  - training: tb_train loop with evaluation, checkpoints and lr decay
  - config: frozen pydantic configuration loaded from YAML
  - logging: structured JSON logger
"""

__version__ = "0.1.0"

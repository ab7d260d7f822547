# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
helferlein model containers.

Layers are plain torch.nn modules; chains.py wraps them into models that
return predictions for model(x) and a loss for model(x, y).
"""

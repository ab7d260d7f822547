# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the augmenting decorators MBNoiser and MBMasquerade.
"""

import math

import pytest
import torch

from helferlein.data.augment.core import MBMasquerade, MBNoiser, mask_patch
from helferlein.data.iterators.core import Minibatches, SequenceData


def _source(n: int = 4) -> tuple[torch.Tensor, torch.Tensor, Minibatches]:
    x = torch.rand(n * 8, 6, 10) + 1.0
    y = torch.arange(n * 8)
    return x, y, Minibatches(x, y, 8)


class TestMBNoiser:
    def test_zero_sigma_is_identity(self) -> None:
        x, _, mbs = _source()
        noised = list(MBNoiser(mbs, sigma=0.0))
        for (xb, _), (xs, _) in zip(noised, mbs):
            assert torch.equal(xb, xs)

    def test_changes_inputs_and_keeps_labels(self) -> None:
        _, _, mbs = _source()
        for (xb, yb), (xs, ys) in zip(MBNoiser(mbs, sigma=0.5), mbs):
            assert xb.shape == xs.shape
            assert not torch.equal(xb, xs)
            assert torch.equal(yb, ys)

    def test_noise_is_multiplicative_around_one(self) -> None:
        x = torch.ones(1, 20000)
        gen = torch.Generator().manual_seed(0)
        (xb, _), = list(MBNoiser(SequenceData([(x, None)], shuffle=False), sigma=0.1, generator=gen))
        assert abs(float(xb.mean()) - 1.0) < 0.01
        assert abs(float(xb.std()) - 0.1) < 0.01

    def test_source_not_mutated(self) -> None:
        x, _, mbs = _source()
        before = x.clone()
        list(MBNoiser(mbs, sigma=2.0))
        assert torch.equal(x, before)

    def test_integer_inputs_become_float(self) -> None:
        x = torch.randint(0, 256, (8, 4, 4), dtype=torch.uint8)
        mbs = Minibatches(x, torch.arange(8), 4)
        for (xb, _), (xs, _) in zip(MBNoiser(mbs, sigma=0.0), mbs):
            assert xb.is_floating_point()
            assert torch.equal(xb, xs.float())
        (xb, _), = list(MBNoiser(Minibatches(x, torch.arange(8), 8), sigma=0.3))
        assert xb.dtype == torch.get_default_dtype()

    def test_length_passes_through(self) -> None:
        _, _, mbs = _source(5)
        assert len(MBNoiser(mbs)) == len(mbs) == 5


class TestMBMasquerade:
    def test_zero_rho_is_identity(self) -> None:
        _, _, mbs = _source()
        for mode in ("noise", "patch"):
            for (xb, _), (xs, _) in zip(MBMasquerade(mbs, rho=0.0, mode=mode), mbs):
                assert torch.equal(xb, xs)

    def test_full_rho_noise_masks_everything(self) -> None:
        _, _, mbs = _source()
        for xb, _ in MBMasquerade(mbs, rho=1.0, mode="noise", value=-3.0):
            assert torch.all(xb == -3.0)

    def test_noise_density(self) -> None:
        x = torch.ones(100, 100)
        gen = torch.Generator().manual_seed(0)
        masked = MBMasquerade(SequenceData([(x, 0)], shuffle=False), rho=0.3, generator=gen)
        (xb, _), = list(masked)
        assert abs(float((xb == 0.0).float().mean()) - 0.3) < 0.02

    def test_patch_is_one_contiguous_block(self) -> None:
        x = torch.ones(8, 6, 10)
        rho = 0.5
        patched = mask_patch(x, rho, 0.0, torch.Generator().manual_seed(4))

        hit = (patched == 0.0).nonzero()
        expected = [math.ceil(rho * s) for s in x.shape]
        extent = (hit.max(dim=0).values - hit.min(dim=0).values + 1).tolist()

        assert extent == expected
        assert len(hit) == math.prod(expected)

    def test_patch_stays_inside_tensor(self) -> None:
        x = torch.ones(3, 5)
        for seed in range(20):
            patched = mask_patch(x, 0.9, 0.0, torch.Generator().manual_seed(seed))
            assert int((patched == 0.0).sum()) == math.ceil(0.9 * 3) * math.ceil(0.9 * 5)

    def test_source_not_mutated(self) -> None:
        x, _, mbs = _source()
        before = x.clone()
        list(MBMasquerade(mbs, rho=0.5, mode="patch"))
        list(MBMasquerade(mbs, rho=0.5, mode="noise"))
        assert torch.equal(x, before)

    def test_labels_pass_through(self) -> None:
        _, y, mbs = _source()
        labels = torch.cat([yb for _, yb in MBMasquerade(mbs, rho=0.5)])
        assert torch.equal(labels, y)

    def test_unknown_mode_raises(self) -> None:
        _, _, mbs = _source()
        with pytest.raises(ValueError, match="Unknown mask mode"):
            MBMasquerade(mbs, mode="stripes")


class TestDecoratorStacking:
    def test_noiser_inside_masquerade(self) -> None:
        _, _, mbs = _source()
        stacked = MBMasquerade(MBNoiser(mbs, sigma=0.1), rho=1.0, value=5.0)
        assert len(stacked) == len(mbs)
        for xb, _ in stacked:
            assert torch.all(xb == 5.0)

    def test_states_pass_through_decorators(self) -> None:
        _, _, mbs = _source()
        stacked = MBNoiser(MBMasquerade(mbs, rho=0.0), sigma=0.0)
        (_, state) = stacked.iterate()
        assert state == mbs.iterate()[1]

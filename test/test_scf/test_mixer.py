# This file is part of scfmix.
#
# SPDX-Identifier: Apache-2.0
# Copyright (C) 2024 Grimme Group
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Test the mixers.
"""

from __future__ import annotations

import pytest
import torch

from scfmix import FieldSet, OutputHandler
from scfmix._src.scf import HistoryBuffer, OverlapMatrix
from scfmix._src.scf.mixer import Mixer, Pulay, Simple, mix_plain
from scfmix._src.typing import Tensor
from scfmix._src.typing.exceptions import (
    DegenerateHistoryError,
    DegenerateHistoryWarning,
)

DEVICE = None


def func(x: Tensor) -> Tensor:
    """Linear fixed-point map with fixed point ``x = 2``."""
    return 0.5 * x + 1.0


def run_mixer(mixer: Mixer, guess: FieldSet, nsteps: int) -> list[FieldSet]:
    """
    Drive a mixer through `nsteps` iterations of :func:`func`, keeping history
    and overlap matrix in lockstep as the SCF does.
    """
    depth = mixer.options["history"]
    history = HistoryBuffer(depth)
    overlap = OverlapMatrix(depth, dtype=guess.dtype, device=guess.device)

    x = guess
    steps = []
    for _ in range(nsteps):
        if history.append(x.clone()):
            overlap.reset()
        x = mixer.iter(FieldSet(func(x.primary)), history, overlap)
        steps.append(x)

    return steps


def fill(
    mixer: Mixer, snapshots: list[FieldSet], new: list[FieldSet]
) -> tuple[FieldSet, HistoryBuffer, OverlapMatrix]:
    """Feed given snapshots and new fields to the mixer."""
    depth = mixer.options["history"]
    history = HistoryBuffer(depth)
    overlap = OverlapMatrix(depth, dtype=snapshots[0].dtype)

    x = snapshots[0]
    for s, n in zip(snapshots, new):
        if history.append(s):
            overlap.reset()
        x = mixer.iter(n, history, overlap)

    return x, history, overlap


###############################################################################


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
def test_plain_full_step(dtype: torch.dtype) -> None:
    dd = {"device": DEVICE, "dtype": dtype}
    old = FieldSet(torch.tensor([1.0, 2.0, 3.0], **dd), torch.ones(3, **dd))
    new = FieldSet(torch.tensor([0.1, 0.2, 0.3], **dd), torch.zeros(3, **dd))

    x = mix_plain(new, old, 1.0)
    assert x is not new
    assert torch.equal(x.primary, new.primary)
    assert x.auxiliary is not None and new.auxiliary is not None
    assert torch.equal(x.auxiliary, new.auxiliary)


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
@pytest.mark.parametrize("damp", [0.05, 0.3, 0.5, 0.9])
def test_plain_convex(dtype: torch.dtype, damp: float) -> None:
    dd = {"device": DEVICE, "dtype": dtype}
    old = FieldSet(torch.tensor([1.0, -2.0, 3.0, 0.0], **dd))
    new = FieldSet(torch.tensor([-1.0, 2.0, 3.0, 5.0], **dd))

    x = mix_plain(new, old, damp)
    lower = torch.minimum(old.primary, new.primary)
    upper = torch.maximum(old.primary, new.primary)
    tol = 10 * torch.finfo(dtype).eps

    assert (x.primary >= lower - tol).all()
    assert (x.primary <= upper + tol).all()

    ref = damp * new.primary + (1 - damp) * old.primary
    assert torch.allclose(x.primary, ref)


def test_simple() -> None:
    mixer = Simple({"damp": 0.5})

    with pytest.raises(RuntimeError):
        _ = mixer.delta

    history = HistoryBuffer(2)
    overlap = OverlapMatrix(2)
    history.append(FieldSet(torch.tensor([0.0, 2.0])))

    x = mixer.iter(FieldSet(torch.tensor([1.0, 4.0])), history, overlap)
    assert pytest.approx([0.5, 3.0]) == x.primary.tolist()
    assert pytest.approx([1.0, 2.0]) == mixer.delta.primary.tolist()
    assert mixer.iter_step == 1

    # simple mixing does not touch the overlap matrix
    assert len(overlap) == 0

    mixer.reset()
    assert mixer.iter_step == 0
    with pytest.raises(RuntimeError):
        _ = mixer.delta


@pytest.mark.parametrize("damp", [0.0, -0.5, 1.5])
def test_fail_damp(damp: float) -> None:
    with pytest.raises(ValueError):
        Simple({"damp": damp})

    with pytest.raises(ValueError):
        Pulay({"damp": damp})


def test_simple_converges() -> None:
    guess = FieldSet(torch.zeros(3, device=DEVICE, dtype=torch.double))
    steps = run_mixer(Simple({"damp": 0.5}), guess, 60)

    ref = torch.full((3,), 2.0, device=DEVICE, dtype=torch.double)
    assert torch.allclose(steps[-1].primary, ref)


###############################################################################


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
@pytest.mark.parametrize("damp", [0.3, 0.5, 1.0])
def test_pulay_depth_one_is_plain(dtype: torch.dtype, damp: float) -> None:
    guess = FieldSet(torch.tensor([0.0, 1.0, -3.0], device=DEVICE, dtype=dtype))

    simple = run_mixer(Simple({"damp": damp, "history": 1}), guess, 8)
    pulay = run_mixer(Pulay({"damp": damp, "history": 1}), guess, 8)

    for s, p in zip(simple, pulay):
        assert torch.equal(s.primary, p.primary)


def test_pulay_plain_until_full() -> None:
    dd = {"device": DEVICE, "dtype": torch.double}
    mixer = Pulay({"damp": 0.5, "history": 3})

    snapshots = [FieldSet(torch.tensor([0.0, 0.0], **dd))]
    new = [FieldSet(torch.tensor([2.0, 4.0], **dd))]

    x, history, overlap = fill(mixer, snapshots, new)
    assert pytest.approx([1.0, 2.0]) == x.primary.tolist()
    assert mixer.coefficients is None

    # residual of the iteration enters history and overlap
    assert len(history.residuals) == 1
    assert pytest.approx(20.0) == overlap.submatrix(1).item()


@pytest.mark.parametrize("dtype", [torch.float, torch.double])
def test_pulay_coefficients(dtype: torch.dtype) -> None:
    dd = {"device": DEVICE, "dtype": dtype}
    mixer = Pulay({"damp": 0.5, "history": 3})

    snapshots = [
        FieldSet(torch.tensor([0.0, 0.0, 0.0], **dd)),
        FieldSet(torch.tensor([1.0, 0.0, 0.0], **dd)),
        FieldSet(torch.tensor([2.0, 1.0, 0.0], **dd)),
    ]
    residuals = [
        FieldSet(torch.tensor([1.0, 0.0, 0.0], **dd)),
        FieldSet(torch.tensor([1.0, 1.0, 0.0], **dd)),
        FieldSet(torch.tensor([0.0, 1.0, 1.0], **dd)),
    ]
    new = [s + r for s, r in zip(snapshots, residuals)]

    x, _, overlap = fill(mixer, snapshots, new)

    c = mixer.coefficients
    assert c is not None
    assert c.shape == (3,)
    assert pytest.approx(1.0, abs=1e-5) == c.sum().item()

    # mixed field is the combination of the snapshots
    ref = sum(ci * s.primary for ci, s in zip(c, snapshots))
    assert isinstance(ref, Tensor)
    assert torch.allclose(x.primary, ref, atol=1e-5)

    # residual of the combination follows from the lowest eigenvalue
    evals, _ = overlap.diagonalize()
    assert mixer.norm is not None
    assert mixer.residual_norms is not None
    after = torch.sqrt(evals[0]) / mixer.norm.abs()
    assert pytest.approx(after.item(), rel=1e-4) == mixer.residual_norms["after"].item()
    assert pytest.approx(2.0**0.5) == mixer.residual_norms["before"].item()

    mixer.reset()
    assert mixer.coefficients is None
    assert mixer.residual_norms is None


def test_pulay_lowest_eigenvector() -> None:
    dd = {"device": DEVICE, "dtype": torch.double}
    mixer = Pulay({"damp": 0.5, "history": 3})

    # orthogonal residuals: the smallest one wins
    snapshots = [
        FieldSet(torch.tensor([0.0, 0.0, 0.0], **dd)),
        FieldSet(torch.tensor([5.0, 0.0, 0.0], **dd)),
        FieldSet(torch.tensor([7.0, 1.0, 0.0], **dd)),
    ]
    residuals = [
        FieldSet(torch.tensor([0.0, 0.0, 1.0], **dd)),
        FieldSet(torch.tensor([0.0, 0.1, 0.0], **dd)),
        FieldSet(torch.tensor([0.5, 0.0, 0.0], **dd)),
    ]
    new = [s + r for s, r in zip(snapshots, residuals)]

    x, _, _ = fill(mixer, snapshots, new)
    assert torch.allclose(x.primary, snapshots[1].primary)

    assert mixer.coefficients is not None
    ref = torch.tensor([0.0, 1.0, 0.0], **dd)
    assert torch.allclose(mixer.coefficients, ref, atol=1e-10)


def test_pulay_identical_zero_residuals() -> None:
    dd = {"device": DEVICE, "dtype": torch.double}
    mixer = Pulay({"damp": 0.5, "history": 3})

    common = FieldSet(torch.tensor([0.3, -1.2, 4.0], **dd))
    snapshots = [common.clone() for _ in range(3)]
    new = [common.clone() for _ in range(3)]

    OutputHandler.clear_warnings()
    x, _, _ = fill(mixer, snapshots, new)

    assert torch.allclose(x.primary, common.primary)
    assert mixer.coefficients is None

    assert len(OutputHandler.warnings) == 1
    _, w = OutputHandler.warnings[0]
    assert w is DegenerateHistoryWarning
    OutputHandler.clear_warnings()


@pytest.mark.parametrize("strict", [True, False])
def test_pulay_identical_residuals(strict: bool) -> None:
    dd = {"device": DEVICE, "dtype": torch.double}
    mixer = Pulay({"damp": 0.5, "history": 3, "strict": strict})

    residual = FieldSet(torch.tensor([1.0, 1.0], **dd))
    snapshots = [FieldSet(torch.tensor([float(i), 0.0], **dd)) for i in range(3)]
    new = [s + residual for s in snapshots]

    OutputHandler.clear_warnings()

    if strict is True:
        with pytest.raises(DegenerateHistoryError):
            fill(mixer, snapshots, new)
        return

    x, _, _ = fill(mixer, snapshots, new)

    # fallback: plain mixing of the latest systems
    ref = mix_plain(new[-1], snapshots[-1], 0.5)
    assert torch.allclose(x.primary, ref.primary)

    assert len(OutputHandler.warnings) == 1
    assert OutputHandler.warnings[0][1] is DegenerateHistoryWarning
    OutputHandler.clear_warnings()

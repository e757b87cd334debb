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
Test the history of the SCF.
"""

from __future__ import annotations

import pytest
import torch

from scfmix import FieldSet
from scfmix._src.scf import HistoryBuffer


def field(value: float) -> FieldSet:
    return FieldSet(torch.tensor([value]))


@pytest.mark.parametrize("depth", [1, 2, 3, 5])
def test_reset_when_full(depth: int) -> None:
    history = HistoryBuffer(depth)

    for i in range(3 * depth + 1):
        reset = history.append(field(float(i)))

        # never exceeds the depth
        assert 1 <= len(history) <= depth

        # full buffer is cleared completely, not shifted
        if i > 0 and i % depth == 0:
            assert reset is True
            assert len(history) == 1
        else:
            assert reset is False

        assert history.latest.snapshot.primary.item() == float(i)


def test_order() -> None:
    history = HistoryBuffer(3)
    for i in range(3):
        history.append(field(float(i)))

    assert history.full
    assert [s.primary.item() for s in history.snapshots] == [0.0, 1.0, 2.0]

    # access by age, 0 is the most recent entry
    assert history[0].snapshot.primary.item() == 2.0
    assert history[2].snapshot.primary.item() == 0.0

    with pytest.raises(IndexError):
        _ = history[3]


def test_residuals() -> None:
    history = HistoryBuffer(2)
    history.append(field(1.0))

    with pytest.raises(RuntimeError):
        _ = history.residuals

    history.set_residual(field(0.5))
    assert len(history.residuals) == 1
    assert history.latest.residual is not None


def test_fail() -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(0)

    history = HistoryBuffer(2)
    with pytest.raises(RuntimeError):
        _ = history.latest

    with pytest.raises(RuntimeError):
        history.set_residual(field(1.0))

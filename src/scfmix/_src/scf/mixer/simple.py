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
Simple Mixing
=============
"""

from __future__ import annotations

from scfmix._src.typing import override

from ..fieldset import FieldSet
from ..history import HistoryBuffer
from ..overlap import OverlapMatrix
from .base import Mixer

__all__ = ["Simple", "mix_plain"]


def mix_plain(x_new: FieldSet, x_old: FieldSet, damp: float) -> FieldSet:
    r"""
    Linear combination of the new and the old system:

    .. math::

        \alpha x_\mathrm{new} + (1-\alpha) x_\mathrm{old}

    The auxiliary field is mixed in the same way if present.

    Parameters
    ----------
    x_new : FieldSet
        New system.
    x_old : FieldSet
        Old system.
    damp : float
        Mixing fraction :math:`\alpha`, i.e. the weight of the new system.

    Returns
    -------
    FieldSet
        Mixed system.
    """
    if damp == 1.0:
        return x_new.clone()
    return x_old + (x_new - x_old) * damp


class Simple(Mixer):
    r"""
    Simple (plain, linear) mixing algorithm.

    Mixes the field produced by the current iteration with the field that
    entered it (latest snapshot of the history):

    .. math::

        \alpha x_\mathrm{new} + (1-\alpha) x_\mathrm{old}

    Given a small enough mixing fraction, simple mixing converges for a wide
    range of problems, however, it tends to be significantly slower than
    Pulay mixing. The residual overlap matrix is not touched.

    Examples
    --------
    >>> import torch
    >>> from scfmix import FieldSet
    >>> from scfmix._src.scf import HistoryBuffer, OverlapMatrix
    >>> from scfmix._src.scf.mixer import Simple
    >>>
    >>> history, overlap = HistoryBuffer(1), OverlapMatrix(1)
    >>> history.append(FieldSet(torch.tensor([0.0])))
    >>> Simple({"damp": 0.5}).iter(FieldSet(torch.tensor([1.0])), history, overlap)
    >>> # FieldSet with primary field tensor([0.5])
    """

    @override
    def iter(
        self,
        x_new: FieldSet,
        history: HistoryBuffer,
        overlap: OverlapMatrix,
    ) -> FieldSet:
        self.iter_step += 1

        x_old = history.latest.snapshot
        self._delta = x_new - x_old

        return mix_plain(x_new, x_old, self.options["damp"])

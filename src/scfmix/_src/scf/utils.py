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
SCF: Utility
============

Inner products and linear combinations of field sets.

If a `torch.distributed` process group is initialized, every field only holds
the local part of the domain. Inner products are then summed over all ranks
(``all_reduce``), so that every rank sees the same scalar, and coefficients
derived from them are broadcast from rank 0.
"""

from __future__ import annotations

import torch
import torch.distributed as dist
from tad_mctc.math import einsum

from scfmix._src.typing import Sequence, Tensor

from .fieldset import FieldSet

__all__ = [
    "broadcast",
    "inner",
    "is_distributed",
    "linear_combination",
    "norm",
]


def is_distributed() -> bool:
    """
    Check if a process group for distributed computations is running.

    Returns
    -------
    bool
        Whether a process group is initialized.
    """
    return dist.is_available() and dist.is_initialized()


def inner(r1: FieldSet, r2: FieldSet, dv: float = 1.0) -> Tensor:
    """
    Inner product of two field sets, i.e., the sum over all fields of the
    integrated pointwise product (real part only).

    .. math::

        \\langle r_1 | r_2 \\rangle = \\sum_f \\int r_{1,f} r_{2,f} \\mathrm{d}V

    Parameters
    ----------
    r1 : FieldSet
        First field set.
    r2 : FieldSet
        Second field set.
    dv : float, optional
        Volume element of the integration. Defaults to ``1.0``.

    Returns
    -------
    Tensor
        Scalar inner product (reduced over all ranks).
    """
    if len(r1) != len(r2):
        raise ValueError(
            f"Number of fields differs ({len(r1)} and {len(r2)}). Cannot "
            "compute the inner product."
        )

    s = sum(torch.sum(torch.real(a * b)) for a, b in zip(r1, r2)) * dv
    s = torch.as_tensor(s, dtype=r1.dtype, device=r1.device)

    if is_distributed():
        dist.all_reduce(s, op=dist.ReduceOp.SUM)

    return s


def norm(r: FieldSet, dv: float = 1.0) -> Tensor:
    """
    Norm of a field set induced by :func:`inner`.

    Parameters
    ----------
    r : FieldSet
        Field set.
    dv : float, optional
        Volume element of the integration. Defaults to ``1.0``.

    Returns
    -------
    Tensor
        Scalar norm.
    """
    return torch.sqrt(inner(r, r, dv=dv))


def broadcast(tensor: Tensor, src: int = 0) -> Tensor:
    """
    Broadcast a tensor from rank `src` to all ranks. Without a process group,
    the tensor is returned unchanged.

    Parameters
    ----------
    tensor : Tensor
        Tensor to broadcast (modified in-place on receiving ranks).
    src : int, optional
        Sending rank. Defaults to ``0``.

    Returns
    -------
    Tensor
        The broadcast tensor.
    """
    if is_distributed():
        tensor = tensor.contiguous()
        dist.broadcast(tensor, src)
    return tensor


def linear_combination(coeffs: Tensor, fields: Sequence[FieldSet]) -> FieldSet:
    """
    Weighted sum of field sets.

    Parameters
    ----------
    coeffs : Tensor
        Coefficients of shape ``(n,)``.
    fields : Sequence[FieldSet]
        The `n` field sets to combine. All must have the same layout.

    Returns
    -------
    FieldSet
        The linear combination :math:`\\sum_i c_i x_i`.
    """
    if len(fields) != coeffs.shape[-1]:
        raise ValueError(
            f"Number of coefficients ({coeffs.shape[-1]}) does not match "
            f"number of field sets ({len(fields)})."
        )

    # shape: (n, nfields, *shape)
    stacked = torch.stack([f.as_tensor() for f in fields], dim=0)
    combined = einsum("i,i...->...", coeffs.to(stacked.dtype), stacked)
    return FieldSet.from_tensor(combined)

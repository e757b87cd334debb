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
SCF: Residual Overlap
=====================

Symmetric matrix of the inner products between the residuals stored in the
history. The matrix is allocated once with the maximum size (history depth)
and only the leading block, whose size equals the number of stored residuals,
is valid. Each update only computes the row and column of the newest residual.
"""

from __future__ import annotations

import logging

import torch

from scfmix._src.typing import (
    DD,
    Sequence,
    Tensor,
    get_default_device,
    get_default_dtype,
)

from .fieldset import FieldSet
from .utils import inner

__all__ = ["OverlapMatrix"]


logger = logging.getLogger(__name__)


class OverlapMatrix:
    """
    Incrementally updated residual overlap matrix.
    """

    depth: int
    """Maximum size of the matrix (history depth)."""

    size: int
    """Size of the valid leading block."""

    dv: float
    """Volume element for the inner products."""

    def __init__(
        self,
        depth: int,
        dv: float = 1.0,
        device: torch.device | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        if depth < 1:
            raise ValueError(f"Size of overlap matrix must be positive ({depth}).")

        self.depth = depth
        self.dv = dv
        self.size = 0

        dd: DD = {
            "device": device if device is not None else get_default_device(),
            "dtype": dtype if dtype is not None else get_default_dtype(),
        }
        self._matrix = torch.zeros((depth, depth), **dd)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.size}/{self.depth})"

    @property
    def matrix(self) -> Tensor:
        """Full (preallocated) matrix. Only the leading block is valid."""
        return self._matrix

    def update(self, residuals: Sequence[FieldSet]) -> None:
        """
        Add the newest residual, which must be the last element of
        `residuals`, as new row and column. The other residuals must be the
        ones already contained in the matrix (in the same order).

        Parameters
        ----------
        residuals : Sequence[FieldSet]
            All residuals of the history, oldest first.

        Raises
        ------
        RuntimeError
            Matrix and history are out of sync or the matrix is full.
        """
        n = len(residuals)
        if n != self.size + 1:
            raise RuntimeError(
                f"Overlap matrix holds {self.size} residuals but {n} were "
                "given. Exactly one new residual must be added per update; "
                "reset the matrix together with the history."
            )
        if n > self.depth:
            raise RuntimeError(
                f"Overlap matrix is full ({self.depth}). Reset it before "
                "adding new residuals."
            )

        newest = residuals[-1]
        if self._matrix.device != newest.device or self._matrix.dtype != newest.dtype:
            self._matrix = self._matrix.to(device=newest.device, dtype=newest.dtype)

        row = torch.stack([inner(r, newest, dv=self.dv) for r in residuals])

        # out-of-place update keeps earlier views (submatrices) valid
        matrix = self._matrix.clone()
        matrix[n - 1, :n] = row
        matrix[:n, n - 1] = row
        self._matrix = matrix

        self.size = n
        logger.debug("Overlap matrix updated to size %d.", n)

    def submatrix(self, n: int | None = None) -> Tensor:
        """
        Get the valid leading block of the matrix.

        Parameters
        ----------
        n : int | None, optional
            Size of the block. Defaults to the number of stored residuals.

        Returns
        -------
        Tensor
            Symmetric matrix of shape ``(n, n)``.
        """
        n = self.size if n is None else n
        if not 0 < n <= self.size:
            raise ValueError(
                f"Requested block of size {n}, but only {self.size} residuals "
                "are stored."
            )
        return self._matrix[:n, :n]

    def diagonalize(self, n: int | None = None) -> tuple[Tensor, Tensor]:
        """
        Eigendecomposition of the valid block.

        Parameters
        ----------
        n : int | None, optional
            Size of the block. Defaults to the number of stored residuals.

        Returns
        -------
        (Tensor, Tensor)
            Eigenvalues in ascending order and the corresponding (normalized)
            eigenvectors as columns.
        """
        evals, evecs = torch.linalg.eigh(self.submatrix(n))
        return evals, evecs

    def reset(self) -> None:
        """Invalidate all entries."""
        self._matrix = torch.zeros_like(self._matrix)
        self.size = 0

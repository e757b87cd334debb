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
Pulay Mixing
============

This module contains the Pulay mixing algorithm, also known as direct
inversion in the iterative subspace (DIIS).
"""

from __future__ import annotations

import logging

import torch

from scfmix._src.io import OutputHandler
from scfmix._src.typing import ResidualNorms, Tensor, override
from scfmix._src.typing.exceptions import (
    DegenerateHistoryError,
    DegenerateHistoryWarning,
)

from ..fieldset import FieldSet
from ..history import HistoryBuffer
from ..overlap import OverlapMatrix
from ..utils import broadcast, linear_combination, norm
from .base import Mixer
from .simple import mix_plain

__all__ = ["Pulay"]


logger = logging.getLogger(__name__)


class Pulay(Mixer):
    r"""
    Generalized Pulay (DIIS) mixing algorithm.

    Instead of mixing only the two latest systems, Pulay mixing extrapolates
    from all systems :math:`x_i` in the history. The coefficients :math:`c_i`
    of the linear combination are chosen such that the combined residual

    .. math::

        r = \sum_i c_i r_i, \qquad \sum_i c_i = 1

    becomes minimal. Here, the coefficients are taken from the eigenvector of
    the lowest eigenvalue of the residual overlap matrix
    :math:`B_{ij} = \langle r_i | r_j \rangle`, which is then normalized to a
    unit sum.

    Note
    ----
    Extrapolation only happens once the history is full. Until then, and
    for histories holding a single residual, simple mixing with the
    configured mixing fraction is used. Since a full history is cleared on
    the next append, Pulay steps occur every `history` iterations.

    Warning
    -------
    Linearly dependent residuals render the overlap matrix singular and the
    normalization of the coefficients ill-defined. Such a degenerate history
    is detected via the relative eigenvalue cutoff ``rcond``. In strict mode,
    a :class:`DegenerateHistoryError` is raised, otherwise the step falls back
    to simple mixing and a :class:`DegenerateHistoryWarning` is issued.

    References
    ----------
    .. [Pulay] Pulay, P. (1980). Convergence acceleration of iterative
       sequences. The case of SCF iteration. Chemical Physics Letters, 73(2),
       393–398.
    """

    coefficients: Tensor | None
    """Normalized coefficients of the latest extrapolation."""

    norm: Tensor | None
    """Sum of the unnormalized coefficients of the latest extrapolation."""

    residual_norms: ResidualNorms | None
    """Residual norms before and after the latest extrapolation."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.coefficients = None
        self.norm = None
        self.residual_norms = None

    @override
    def reset(self) -> None:
        super().reset()
        self.coefficients = None
        self.norm = None
        self.residual_norms = None

    @property
    def history(self) -> int:
        """Number of systems required for an extrapolation."""
        return self.options["history"]

    @override
    def iter(
        self,
        x_new: FieldSet,
        history: HistoryBuffer,
        overlap: OverlapMatrix,
    ) -> FieldSet:
        self.iter_step += 1

        x_old = history.latest.snapshot

        # residual of this iteration enters history and overlap matrix
        residual = x_new - x_old
        history.set_residual(residual)
        overlap.update(history.residuals)
        self._delta = residual

        # dimension of the subspace
        n = len(history)
        if n < self.history or n < 2:
            logger.debug(
                "History holds %d of %d systems. Using simple mixing.",
                n,
                self.history,
            )
            return mix_plain(x_new, x_old, self.options["damp"])

        coeffs = self.get_coefficients(overlap, n)
        if coeffs is None:
            return mix_plain(x_new, x_old, self.options["damp"])

        x_mix = linear_combination(coeffs, history.snapshots)
        r_mix = linear_combination(coeffs, history.residuals)

        dv = self.options["dv"]
        self.coefficients = coeffs
        self.residual_norms = {
            "before": norm(residual, dv=dv),
            "after": norm(r_mix, dv=dv),
        }

        OutputHandler.write_stdout(
            f"    Pulay: norm {self.norm: .6E}   "
            f"residual {self.residual_norms['before']: .6E} -> "
            f"{self.residual_norms['after']: .6E}",
            v=6,
        )

        return x_mix

    def get_coefficients(self, overlap: OverlapMatrix, n: int) -> Tensor | None:
        """
        Obtain the extrapolation coefficients from the residual overlap
        matrix.

        Parameters
        ----------
        overlap : OverlapMatrix
            Residual overlap matrix.
        n : int
            Number of systems in the history.

        Returns
        -------
        Tensor | None
            Coefficients (summing to one) or ``None`` if the history is
            degenerate and simple mixing should be used instead.

        Raises
        ------
        DegenerateHistoryError
            Degenerate history in strict mode.
        """
        evals, evecs = overlap.diagonalize(n)

        # eigenvalues are ascending: column 0 minimizes the residual norm
        c = evecs[:, 0]
        self.norm = c.sum()

        msg = self._check_degeneracy(evals, self.norm)
        if msg is not None:
            if self.options["strict"] is True:
                raise DegenerateHistoryError(msg)

            OutputHandler.warn(
                msg + " Using simple mixing instead.", DegenerateHistoryWarning
            )
            return None

        # all ranks must mix with identical coefficients
        return broadcast(c / self.norm)

    def _check_degeneracy(self, evals: Tensor, cnorm: Tensor) -> str | None:
        rcond = max(self.options["rcond"], torch.finfo(evals.dtype).eps)
        emax = evals[-1]

        if emax <= 0.0:
            return (
                "Residual overlap matrix vanishes (all residuals are zero); "
                "Pulay extrapolation is undefined."
            )

        if evals[0] < rcond * emax:
            return (
                f"Residual overlap matrix is rank deficient (lowest "
                f"eigenvalue {evals[0]:.3E}, highest eigenvalue {emax:.3E}, "
                f"rcond={rcond:.1E})."
            )

        if torch.abs(cnorm) < rcond:
            return (
                f"Sum of the Pulay coefficients vanishes ({cnorm:.3E}); "
                "coefficients cannot be normalized."
            )

        return None

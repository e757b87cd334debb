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
ABC: Inner Solver
=================

Interface between the SCF and the (external) inner solver, which computes the
eigenstates of the Hamiltonian defined by a given field and, from those, the
energy and the updated density or potential.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from scfmix._src.typing import Tensor

from .fieldset import FieldSet

__all__ = ["InnerSolver"]


class InnerSolver(ABC):
    """
    Abstract base class for the inner (band/orbital) solver.

    Within one SCF iteration, the SCF

    1. freezes the Hamiltonian (:meth:`freeze`),
    2. calls :meth:`solve` for every independent partition (e.g. k-point or
       spin channel),
    3. unfreezes the Hamiltonian (:meth:`unfreeze`) and
    4. obtains the energy and the updated mixed variable from :meth:`update`.

    Implementations signal failures by raising (e.g.
    :class:`~scfmix._src.typing.exceptions.InnerSolverError`). The SCF does
    not catch these errors.
    """

    nstates: int = 1
    """Number of independent partitions that are solved separately."""

    fixed: bool = False
    """Whether the Hamiltonian is currently frozen."""

    def freeze(self) -> None:
        """Freeze the Hamiltonian (no field updates during :meth:`solve`)."""
        self.fixed = True

    def unfreeze(self) -> None:
        """Unfreeze the Hamiltonian."""
        self.fixed = False

    @abstractmethod
    def solve(self, field: FieldSet, state: int) -> Tensor | None:
        """
        Minimize the eigenstates of one partition for the frozen Hamiltonian.

        Parameters
        ----------
        field : FieldSet
            Potential defining the Hamiltonian.
        state : int
            Index of the partition (``0 <= state < nstates``).

        Returns
        -------
        Tensor | None
            Optional energy of the partition (only used for debug output).
        """

    @abstractmethod
    def update(self, mixed: int) -> tuple[Tensor, FieldSet]:
        """
        Compute the energy and the updated field from the current eigenstates.

        Parameters
        ----------
        mixed : int
            Label of the mixed variable (``labels.MIXED_DENSITY`` or
            ``labels.MIXED_POTENTIAL``), which determines whether the density
            or the potential is returned.

        Returns
        -------
        (Tensor, FieldSet)
            Energy and updated density or potential.
        """

    def potential_from_density(self, density: FieldSet) -> tuple[FieldSet, Tensor]:
        """
        Compute the potential (and the corresponding energy) of a density.
        Only required if the density is mixed.

        Parameters
        ----------
        density : FieldSet
            Density.

        Returns
        -------
        (FieldSet, Tensor)
            Potential and energy.
        """
        raise NotImplementedError(
            f"'{self.__class__.__name__}' cannot compute potentials from "
            "densities. Mix the potential instead."
        )

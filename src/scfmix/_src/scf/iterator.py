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
Self-consistent field
=====================

Outer loop of the self-consistent field procedure. In every iteration, the
inner solver computes the eigenstates for the frozen Hamiltonian, from which
the energy and the updated density (or potential) follow. The updated
variable is mixed with the history of previous iterations until the energy
changes by less than the threshold.

Example
-------

.. code-block:: python

    from scfmix import ConfigSCF, SelfConsistentField

    config = ConfigSCF(mixer="pulay", mixed_variable="potential", history=5)
    scf = SelfConsistentField(solver, config=config)
    result = scf(guess)
"""

from __future__ import annotations

import logging

import torch

from scfmix._src.config import ConfigSCF, check_tols
from scfmix._src.constants import labels
from scfmix._src.io import OutputHandler
from scfmix._src.timing import timer
from scfmix._src.timing.decorator import timer_decorator
from scfmix._src.typing import Tensor
from scfmix._src.typing.exceptions import (
    FieldSetError,
    SCFConvergenceError,
    SCFConvergenceWarning,
)

from .fieldset import FieldSet
from .history import HistoryBuffer
from .mixer import Mixer, Pulay, Simple
from .overlap import OverlapMatrix
from .result import SCFResult
from .solver import InnerSolver

__all__ = ["SelfConsistentField"]


logger = logging.getLogger(__name__)


def _same_device(actual: torch.device, requested: torch.device) -> bool:
    # "cuda" matches any CUDA device, "cuda:1" only the second one
    if actual.type != requested.type:
        return False
    return requested.index is None or actual.index == requested.index


class SelfConsistentField:
    """
    Self-consistent field iterator, which drives an inner solver to a
    self-consistent solution by mixing densities or potentials.
    """

    class _Data:
        """
        State of a single SCF run.
        """

        field: FieldSet
        """Current value of the mixed variable (density or potential)."""

        potential: FieldSet
        """Potential defining the Hamiltonian of the current iteration."""

        energy: Tensor | None
        """Energy of the latest iteration."""

        energies: list[Tensor]
        """Energies of all iterations."""

        history: HistoryBuffer
        """Snapshots and residuals of previous iterations."""

        overlap: OverlapMatrix
        """Overlap matrix of the residuals in `history`."""

        iter: int
        """Number of iterations."""

        etol: float
        """Energy threshold, clipped to the precision of the fields."""

        def __init__(
            self, guess: FieldSet, history: HistoryBuffer, overlap: OverlapMatrix
        ) -> None:
            self.field = guess
            self.potential = guess
            self.history = history
            self.overlap = overlap

            self.energy = None
            self.energies = []
            self.iter = 0
            self.etol = 0.0

        def reset(self) -> None:
            """Reset the history and the iteration count."""
            self.history.clear()
            self.overlap.reset()
            self.energy = None
            self.energies = []
            self.iter = 0

    _data: _Data | None
    """State of the latest run."""

    solver: InnerSolver
    """Inner solver providing energies and updated fields."""

    config: ConfigSCF
    """Configuration object for the SCF procedure."""

    mixer: Mixer
    """Mixer for the variable defining the Hamiltonian."""

    def __init__(
        self,
        solver: InnerSolver,
        config: ConfigSCF | None = None,
        mixer: Mixer | None = None,
    ) -> None:
        if not isinstance(solver, InnerSolver):
            raise TypeError(
                "The inner solver must be derived from 'InnerSolver', but "
                f"'{type(solver)}' was given."
            )

        if config is None:
            config = ConfigSCF()
        elif not isinstance(config, ConfigSCF):
            raise ValueError("Invalid configuration object.")

        self.solver = solver
        self.config = config
        self.mixer = mixer if mixer is not None else self._get_mixer()
        self._data = None

    def _get_mixer(self) -> Mixer:
        opts = {
            "damp": self.config.damp,
            "history": self.config.history,
            "dv": self.config.dv,
            "rcond": self.config.rcond,
            "strict": self.config.strict,
        }

        if self.config.mixer == labels.MIXER_PLAIN:
            return Simple(opts)
        if self.config.mixer == labels.MIXER_PULAY:
            return Pulay(opts)

        raise ValueError(f"Unknown mixer '{self.config.mixer}'.")

    @property
    def mix_density(self) -> bool:
        """Whether the density (``True``) or the potential is mixed."""
        return self.config.mixed_variable == labels.MIXED_DENSITY

    @property
    def data(self) -> _Data:
        """
        State of the latest run.

        Raises
        ------
        RuntimeError
            SCF has not been run yet.
        """
        if self._data is None:
            raise RuntimeError("SCF has not been run yet.")
        return self._data

    def __call__(self, guess: FieldSet) -> SCFResult:
        """Alias of :meth:`run`."""
        return self.run(guess)

    def run(self, guess: FieldSet) -> SCFResult:
        """
        Run the self-consistent iterations until the energy is stationary or
        the maximum number of iterations is reached.

        Parameters
        ----------
        guess : FieldSet
            Initial density or potential (see `config.mixed_variable`).

        Returns
        -------
        SCFResult
            Final field, convergence flag, number of iterations and energies.

        Raises
        ------
        FieldSetError
            Auxiliary field, dtype or device of the guess does not match the
            configuration.
        SCFConvergenceError
            No convergence and `config.force_convergence` is set.
        """
        guess.validate(self.config.auxiliary)

        if self.config.dtype is not None and guess.dtype != self.config.dtype:
            raise FieldSetError(
                f"Dtype of the guess ({guess.dtype}) does not match the "
                f"configured dtype ({self.config.dtype})."
            )
        if self.config.device is not None and not _same_device(
            guess.device, torch.device(self.config.device)
        ):
            raise FieldSetError(
                f"Device of the guess ({guess.device}) does not match the "
                f"configured device ({self.config.device})."
            )

        with OutputHandler.with_verbosity(self.config.verbosity):
            timer.start("SCF")
            try:
                result = self._run(guess)
            finally:
                timer.stop("SCF")

        return result

    def _run(self, guess: FieldSet) -> SCFResult:
        history = HistoryBuffer(self.config.history)
        overlap = OverlapMatrix(
            self.config.history,
            dv=self.config.dv,
            device=guess.device,
            dtype=guess.dtype,
        )
        self._data = self._Data(guess, history, overlap)
        self._data.etol = check_tols(self.config.etol, guess.dtype)
        self.mixer.reset()

        if self.mix_density:
            self._data.potential, _ = self.solver.potential_from_density(guess)

        OutputHandler.write_stdout(
            f"\nSCF: mixing {labels.MIXED_MAP[self.config.mixed_variable]} "
            f"with {self.mixer.label} mixer (damping {self.config.damp}, "
            f"history {self.config.history}).",
            v=4,
        )
        OutputHandler.write_stdout(
            f"\n{'iter':<5} {'Energy':<24} {'Delta E':<16}", v=3
        )
        OutputHandler.write_stdout(47 * "-", v=3)

        converged = False
        for i in range(self.config.maxiter):
            self._data.iter = i + 1

            self.iterate(self._data.potential)
            energy, x_new = self.solver.update(self.config.mixed_variable)

            ediff = self._print(energy)
            self._data.energy = energy
            self._data.energies.append(energy)

            if i > 0 and ediff < self._data.etol:
                converged = True
                break

            x_new.validate(self.config.auxiliary)
            self._data.field = self.mix(x_new)

            if self.mix_density:
                self._data.potential, _ = self.solver.potential_from_density(
                    self._data.field
                )
            else:
                self._data.potential = self._data.field

        OutputHandler.write_stdout(47 * "-", v=3)
        OutputHandler.write_stdout("", v=3)

        if converged is False:
            msg = (
                f"\nSCF does not converge after {self.config.maxiter} cycles "
                f"using {self.mixer.label} mixing with a damping factor of "
                f"{self.mixer.options['damp']}."
            )
            if self.config.force_convergence is True:
                raise SCFConvergenceError(msg)

            # only issue warning, return anyway
            OutputHandler.warn(msg, SCFConvergenceWarning)
        else:
            OutputHandler.write_stdout(
                f"SCF converged in {self._data.iter} iterations.", v=4
            )

        assert self._data.energy is not None
        return {
            "field": self._data.field,
            "converged": converged,
            "iterations": self._data.iter,
            "energy": self._data.energy,
            "energies": self._data.energies,
        }

    @timer_decorator("Inner Solve", "SCF")
    def iterate(self, potential: FieldSet) -> None:
        """
        Solve for the eigenstates of all partitions at the frozen Hamiltonian.

        Parameters
        ----------
        potential : FieldSet
            Potential defining the Hamiltonian.
        """
        self.solver.freeze()
        try:
            for q in range(self.solver.nstates):
                e = self.solver.solve(potential, q)
                if e is not None:
                    logger.debug("State %d: energy %s", q, e)
        finally:
            self.solver.unfreeze()

    @timer_decorator("Mixing", "SCF")
    def mix(self, x_new: FieldSet) -> FieldSet:
        """
        Store the current field in the history and mix it with the new one.

        Parameters
        ----------
        x_new : FieldSet
            Density or potential produced by the current iteration.

        Returns
        -------
        FieldSet
            Mixed density or potential for the next iteration.
        """
        data = self.data

        if data.history.append(data.field.clone()):
            data.overlap.reset()
            logger.debug("History full. Resetting history and overlap matrix.")

        return self.mixer.iter(x_new, data.history, data.overlap)

    def _print(self, energy: Tensor) -> float:
        data = self.data

        if data.energy is None:
            ediff = float("inf")
        else:
            ediff = torch.abs(energy.detach() - data.energy.detach()).max().item()

        if OutputHandler.verbosity >= 3:
            e = energy.detach().sum().item()
            OutputHandler.write_row(
                "SCF Iterations",
                f"{data.iter:3}",
                [f"{e: .14E}", f"{ediff: .6E}"],
            )

        return ediff

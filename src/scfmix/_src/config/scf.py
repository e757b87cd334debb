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
SCF configuration.
"""

from __future__ import annotations

import torch

from scfmix._src.constants import defaults, labels
from scfmix._src.io import OutputHandler
from scfmix._src.typing import Any
from scfmix._src.typing.exceptions import ToleranceWarning

__all__ = ["ConfigSCF", "check_tols"]


class ConfigSCF:
    """
    Configuration for the SCF.

    All options with a fixed set of choices are represented as integers.
    String options are converted to integers in the constructor. After
    construction, the configuration is read-only.
    """

    strict: bool
    """Strict mode for SCF configuration. Always throws errors if ``True``."""

    mixer: int
    """Mixing scheme for SCF iterations."""

    mixed_variable: int
    """Variable defining the Hamiltonian that is mixed (density or potential)."""

    history: int
    """Number of past iterations retained for Pulay mixing."""

    damp: float
    """Mixing fraction (weight of the new iterate) for simple mixing."""

    etol: float
    """Threshold for the energy difference between consecutive iterations."""

    maxiter: int
    """Maximum number of SCF iterations."""

    auxiliary: bool
    """Whether every field carries an auxiliary component."""

    dv: float
    """Volume element used for the integration of field products."""

    rcond: float
    """Relative eigenvalue cutoff for detecting a degenerate history."""

    force_convergence: bool
    """Raise an error instead of a warning if the SCF does not converge."""

    verbosity: int | None
    """Verbosity of the output handler during the SCF (``None``: unchanged)."""

    # PyTorch

    device: torch.device | None
    """Device of the fields (``None``: taken from the initial guess)."""

    dtype: torch.dtype | None
    """Data type of the fields (``None``: taken from the initial guess)."""

    def __init__(
        self,
        *,
        strict: bool = defaults.STRICT,
        mixer: str | int = defaults.MIXER,
        mixed_variable: str | int = defaults.MIXED_VARIABLE,
        history: int = defaults.HISTORY,
        damp: float = defaults.DAMP,
        etol: float = defaults.ETOL,
        maxiter: int = defaults.MAXITER,
        auxiliary: bool = defaults.AUXILIARY,
        dv: float = defaults.DV,
        rcond: float = defaults.RCOND,
        force_convergence: bool = defaults.SCF_FORCE_CONVERGENCE,
        verbosity: int | None = None,
        # PyTorch
        device: torch.device | None = None,
        dtype: torch.dtype | None = None,
    ) -> None:
        self.strict = strict

        if isinstance(mixer, str):
            if mixer.casefold() in labels.MIXER_PLAIN_STRS:
                self.mixer = labels.MIXER_PLAIN
            elif mixer.casefold() in labels.MIXER_PULAY_STRS:
                self.mixer = labels.MIXER_PULAY
            else:
                mixer_labels = labels.MIXER_PLAIN_STRS + labels.MIXER_PULAY_STRS
                raise ValueError(
                    f"Unknown mixer '{mixer}'. Choose from "
                    f"'{', '.join(mixer_labels)}'."
                )
        elif isinstance(mixer, int) and not isinstance(mixer, bool):
            if mixer not in (labels.MIXER_PLAIN, labels.MIXER_PULAY):
                mixer_labels = labels.MIXER_PLAIN_STRS + labels.MIXER_PULAY_STRS
                raise ValueError(
                    f"Unknown mixer '{mixer}'. Choose from "
                    f"'{', '.join(mixer_labels)}'."
                )
            self.mixer = mixer
        else:
            raise TypeError(
                "The mixer must be of type 'int' or 'str', but "
                f"'{type(mixer)}' was given."
            )

        if isinstance(mixed_variable, str):
            if mixed_variable.casefold() in labels.MIXED_DENSITY_STRS:
                self.mixed_variable = labels.MIXED_DENSITY
            elif mixed_variable.casefold() in labels.MIXED_POTENTIAL_STRS:
                self.mixed_variable = labels.MIXED_POTENTIAL
            else:
                mixed_labels = (
                    labels.MIXED_DENSITY_STRS + labels.MIXED_POTENTIAL_STRS
                )
                raise ValueError(
                    f"Unknown mixed variable '{mixed_variable}'. "
                    f"Use one of '{', '.join(mixed_labels)}'."
                )
        elif isinstance(mixed_variable, int) and not isinstance(
            mixed_variable, bool
        ):
            if mixed_variable not in (labels.MIXED_DENSITY, labels.MIXED_POTENTIAL):
                mixed_labels = (
                    labels.MIXED_DENSITY_STRS + labels.MIXED_POTENTIAL_STRS
                )
                raise ValueError(
                    f"Unknown mixed variable '{mixed_variable}'. "
                    f"Use one of '{', '.join(mixed_labels)}'."
                )
            self.mixed_variable = mixed_variable
        else:
            raise TypeError(
                "The mixed variable must be of type 'int' or 'str', but "
                f"'{type(mixed_variable)}' was given."
            )

        if not isinstance(history, int) or isinstance(history, bool):
            raise TypeError(
                f"The history depth must be an integer, but '{type(history)}' "
                "was given."
            )
        if history < 1:
            raise ValueError(f"The history depth must be at least 1 ({history}).")
        self.history = history

        if not isinstance(maxiter, int) or isinstance(maxiter, bool):
            raise TypeError(
                f"The maximum number of iterations must be an integer, but "
                f"'{type(maxiter)}' was given."
            )
        if maxiter < 1:
            raise ValueError(
                f"The maximum number of iterations must be positive ({maxiter})."
            )
        self.maxiter = maxiter

        if not 0.0 < damp <= 1.0:
            raise ValueError(f"The mixing fraction must be in (0, 1] ({damp}).")
        self.damp = float(damp)

        if dv <= 0.0:
            raise ValueError(f"The volume element must be positive ({dv}).")
        self.dv = float(dv)

        if etol <= 0.0:
            raise ValueError(f"The energy threshold must be positive ({etol}).")
        if rcond < 0.0:
            raise ValueError(f"The eigenvalue cutoff must not be negative ({rcond}).")

        self.auxiliary = bool(auxiliary)
        self.force_convergence = force_convergence
        self.verbosity = verbosity

        self.device = device
        self.dtype = dtype

        # clipped again against the dtype of the guess when the SCF runs
        self.etol = check_tols(etol, dtype) if dtype is not None else etol
        self.rcond = rcond

        self._frozen = True

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(
                f"Cannot set '{name}'. The SCF configuration is read-only; "
                "create a new 'ConfigSCF' instead."
            )
        super().__setattr__(name, value)

    def info(self) -> dict[str, Any]:
        """
        Return a dictionary with the SCF configuration.

        Returns
        -------
        dict[str, Any]
            Dictionary with the SCF configuration.
        """
        return {
            "SCF Options": {
                "Mixer": labels.MIXER_MAP[self.mixer],
                "Mixed Variable": labels.MIXED_MAP[self.mixed_variable],
                "History": self.history,
                "Damping Factor": self.damp,
                "Maxiter": self.maxiter,
                "Energy tolerance": self.etol,
                "Auxiliary Field": self.auxiliary,
                "Force Convergence": self.force_convergence,
            }
        }

    def __str__(self) -> str:  # pragma: no cover
        config_str = [
            "Configuration for SCF:",
            f"  Mixer: {labels.MIXER_MAP[self.mixer]}",
            f"  Mixed Variable: {labels.MIXED_MAP[self.mixed_variable]}",
            f"  History: {self.history}",
            f"  Damping Factor: {self.damp}",
            f"  Energy Tolerance: {self.etol}",
            f"  Maximum Iterations: {self.maxiter}",
            f"  Auxiliary Field: {self.auxiliary}",
            f"  Strict: {self.strict}",
            f"  Force Convergence: {self.force_convergence}",
            f"  Device: {self.device}",
            f"  Data Type: {self.dtype}",
        ]
        return "\n".join(config_str)

    def __repr__(self) -> str:  # pragma: no cover
        return str(self)


def check_tols(value: float, dtype: torch.dtype) -> float:
    """
    Set tolerances to catch unreasonably small values.

    Parameters
    ----------
    value : float
        Selected tolerance that will be checked.
    dtype : torch.dtype
        Floating point precision to adjust tolerances to.

    Returns
    -------
    float
        Possibly corrected tolerance.
    """
    eps = torch.finfo(dtype).eps

    if value < eps:
        OutputHandler.warn(
            f"Selected tolerance ({value:.2E}) is smaller than the "
            f"smallest value for the selected dtype ({dtype}, "
            f"{eps:.2E}). Switching to {100*eps:.2E} instead.",
            ToleranceWarning,
        )
        return 100 * eps

    return value

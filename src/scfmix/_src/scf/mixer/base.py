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
ABC: SCF Mixer
==============

This module contains the abstract base class for all mixers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from scfmix._src.constants import defaults
from scfmix._src.typing import Any

from ..fieldset import FieldSet
from ..history import HistoryBuffer
from ..overlap import OverlapMatrix

__all__ = ["Mixer", "DEFAULT_OPTS"]


DEFAULT_OPTS = {
    "damp": defaults.DAMP,
    "history": defaults.HISTORY,
    "dv": defaults.DV,
    "rcond": defaults.RCOND,
    "strict": defaults.STRICT,
}


class Mixer(ABC):
    """
    Abstract base class for mixer.
    """

    label: str
    """Label for the Mixer."""

    iter_step: int
    """Number of mixing iterations taken."""

    options: dict[str, Any]
    """Options for the mixer (damping, history depth, ...)."""

    _delta: FieldSet | None
    """Residual of the latest mixing step (new minus old system)."""

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        opts = dict(DEFAULT_OPTS)
        if options is not None:
            opts.update(options)

        if not 0.0 < opts["damp"] <= 1.0:
            raise ValueError(f"Mixing fraction must be in (0, 1] ({opts['damp']}).")

        self.label = self.__class__.__name__
        self.options = opts
        self.iter_step = 0
        self._delta = None

    def __str__(self) -> str:
        """Returns representative string."""
        return f"{self.__class__.__name__}({self.iter_step}, {self.options})"

    def __repr__(self) -> str:
        return str(self)

    @abstractmethod
    def iter(
        self,
        x_new: FieldSet,
        history: HistoryBuffer,
        overlap: OverlapMatrix,
    ) -> FieldSet:
        """
        Performs the mixing operation & returns the newly mixed system.

        This should contain only the code required to carry out the mixing
        operation.

        Parameters
        ----------
        x_new : FieldSet
            New system, i.e., the field produced by the current iteration.
        history : HistoryBuffer
            History of the SCF. Its latest snapshot is the field that entered
            the current iteration.
        overlap : OverlapMatrix
            Residual overlap matrix (kept in sync with `history`).

        Returns
        -------
        FieldSet
            Newly mixed system.
        """

    @property
    def delta(self) -> FieldSet:
        """
        Residual of the latest mixing step (new minus old system).
        """
        if self._delta is None:
            raise RuntimeError("Mixer has not been started yet.")
        return self._delta

    def reset(self) -> None:
        """
        Resets the mixer to its initial state.

        Calling this function will reset the class & its internal attributes.
        However, any properties set during the initialisation process will be
        retained.
        """
        self.iter_step = 0
        self._delta = None

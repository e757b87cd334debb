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
Default Settings
================

This module contains the defaults for all `scfmix` calculations.
"""

from __future__ import annotations

# General

STRICT = False
"""
Strict mode. Always throws errors if ``True``, instead of making sensible
adaptations (e.g. falling back to simple mixing for a degenerate history).
"""

# SCF settings

MIXER = "plain"
"""SCF mixing scheme for convergence acceleration."""

DAMP = 0.5
"""Mixing fraction, i.e., weight of the newest iterate in simple mixing."""

HISTORY = 10
"""Number of past iterations retained for Pulay mixing."""

MAXITER = 50
"""Maximum number of SCF iterations."""

ETOL = 1e-8
"""Convergence threshold for the energy difference between two iterations."""

MIXED_VARIABLE = "density"
"""Variable that defines the Hamiltonian and is mixed in each iteration."""

AUXILIARY = False
"""Whether an auxiliary field (e.g. kinetic energy density) is carried."""

DV = 1.0
"""Volume element used for integrating products of fields."""

RCOND = 1e-12
"""
Relative eigenvalue cutoff below which the residual overlap matrix is
considered rank deficient. Clipped to the machine epsilon of the dtype.
"""

SCF_FORCE_CONVERGENCE = False
"""Whether to raise an error if the SCF does not converge."""

# Output

VERBOSITY = 5
"""Verbosity of printout."""

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
Exceptions: SCF
===============

Errors and warnings emitted during the self-consistent iterations.
"""

__all__ = [
    "DegenerateHistoryError",
    "DegenerateHistoryWarning",
    "FieldSetError",
    "InnerSolverError",
    "SCFConvergenceError",
    "SCFConvergenceWarning",
]


class SCFConvergenceError(RuntimeError):
    """
    Error for failed SCF convergence (only raised if convergence is forced).
    """


class SCFConvergenceWarning(UserWarning):
    """
    Warning for failed SCF convergence.
    """


class DegenerateHistoryError(RuntimeError):
    """
    Error for a rank-deficient residual overlap matrix or a vanishing
    normalization of the Pulay coefficients. Only raised in strict mode.
    """


class DegenerateHistoryWarning(UserWarning):
    """
    Warning for a degenerate Pulay history. The mixer falls back to simple
    mixing for the affected step.
    """


class FieldSetError(ValueError):
    """
    Error for inconsistent fields, i.e., fields with differing shapes, dtypes
    or devices, or an auxiliary field that does not match the configuration.
    """


class InnerSolverError(RuntimeError):
    """
    Error for failures of the inner (band/orbital) solver. The SCF never
    catches this error; it terminates the run.
    """

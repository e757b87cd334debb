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
SCF: Result
===========

Result type for SCF.
"""

from __future__ import annotations

from scfmix._src.typing import Tensor, TypedDict

from .fieldset import FieldSet

__all__ = ["SCFResult"]


class SCFResult(TypedDict):
    """Collection of SCF result variables."""

    field: FieldSet
    """Final (converged or latest) field."""

    converged: bool
    """Whether the energy threshold was met."""

    iterations: int
    """Number of SCF iterations, i.e., calls to the inner solver."""

    energy: Tensor
    """Energy of the final iteration."""

    energies: list[Tensor]
    """Energies of all iterations."""

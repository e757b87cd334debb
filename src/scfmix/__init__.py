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
scfmix
======

Convergence engine for self-consistent field calculations: density or
potential mixing (plain and Pulay/DIIS) driving an external inner solver.
"""

# import timer first to get correct total time
from scfmix._src.timing import timer

timer.start("Import")
timer.start("PyTorch", parent_uid="Import")
import torch

timer.stop("PyTorch")
timer.start("scfmix", parent_uid="Import")

###############################################################################

from scfmix.__version__ import __version__

# order is important here
from scfmix._src.io import OutputHandler as OutputHandler
from scfmix._src.scf import FieldSet as FieldSet
from scfmix._src.scf import InnerSolver as InnerSolver
from scfmix._src.scf import SelfConsistentField as SelfConsistentField
from scfmix._src.config import ConfigSCF as ConfigSCF

from scfmix import config as config
from scfmix import exceptions as exceptions
from scfmix import labels as labels
from scfmix import mixer as mixer
from scfmix import scf as scf
from scfmix import typing as typing

###############################################################################

# stop timers and remove from global namespace
del torch
timer.stop("scfmix")
timer.stop("Import")

###############################################################################

__all__ = [
    "ConfigSCF",
    "FieldSet",
    "InnerSolver",
    "OutputHandler",
    "SelfConsistentField",
    "timer",
    "__version__",
]

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
SCF
===

Self-consistent field driver, inner solver interface and the history data
structures used for mixing.
"""

from scfmix._src.scf import FieldSet as FieldSet
from scfmix._src.scf import HistoryBuffer as HistoryBuffer
from scfmix._src.scf import HistoryEntry as HistoryEntry
from scfmix._src.scf import InnerSolver as InnerSolver
from scfmix._src.scf import OverlapMatrix as OverlapMatrix
from scfmix._src.scf import SCFResult as SCFResult
from scfmix._src.scf import SelfConsistentField as SelfConsistentField
from scfmix._src.scf import inner as inner
from scfmix._src.scf import norm as norm

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
Mixer
=====

Mixing schemes for the self-consistent field iterations.

- :class:`Simple`: plain (linear) mixing with a fixed mixing fraction
- :class:`Pulay`: generalized Pulay (DIIS) extrapolation from the history
"""

from scfmix._src.scf.mixer import Mixer as Mixer
from scfmix._src.scf.mixer import Pulay as Pulay
from scfmix._src.scf.mixer import Simple as Simple
from scfmix._src.scf.mixer import mix_plain as mix_plain

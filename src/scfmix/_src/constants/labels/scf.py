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
Labels: SCF
===========

Labels for SCF-related options.
"""

# mixer
MIXER_PLAIN = 0
"""Integer code for plain (linear/simple) mixing."""

MIXER_PLAIN_STRS = ("plain", "linear", "l", "simple", "s")
"""String codes for plain (linear/simple) mixing."""

MIXER_PULAY = 1
"""Integer code for Pulay mixing (DIIS)."""

MIXER_PULAY_STRS = ("pulay", "diis", "p")
"""String codes for Pulay mixing (DIIS)."""

MIXER_MAP = ["Plain", "Pulay"]
"""String map (for printing) of mixing methods."""

# mixed variable
MIXED_DENSITY = 0
"""Integer code for mixing of the density."""

MIXED_DENSITY_STRS = ("density", "densities", "n", "rho")
"""String codes for mixing of the density."""

MIXED_POTENTIAL = 1
"""Integer code for mixing of the potential."""

MIXED_POTENTIAL_STRS = ("potential", "pot", "v")
"""String codes for mixing of the potential."""

MIXED_MAP = ["density", "potential"]
"""String map (for printing) of the mixed variable."""

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
Self-consistent mean-field solution of a few particles in a one-dimensional
harmonic trap with a contact interaction.
"""
import torch

import scfmix
from scfmix import ConfigSCF, FieldSet, InnerSolver, OutputHandler
from scfmix.labels import MIXED_DENSITY

dd = {"device": torch.device("cpu"), "dtype": torch.double}

npts = 201
x = torch.linspace(-8.0, 8.0, npts, **dd)
h = (x[1] - x[0]).item()

# kinetic energy (finite differences) and external potential
lap = (
    torch.diag(torch.full((npts - 1,), 1.0, **dd), -1)
    + torch.diag(torch.full((npts,), -2.0, **dd))
    + torch.diag(torch.full((npts - 1,), 1.0, **dd), 1)
)
kinetic = -0.5 * lap / h**2
vext = 0.5 * x**2


class MeanField(InnerSolver):
    def __init__(self, nocc: int, g: float) -> None:
        self.nocc = nocc
        self.g = g

    def solve(self, field, state):
        hamiltonian = kinetic + torch.diag(field.primary)
        self.evals, evecs = torch.linalg.eigh(hamiltonian)

        self.vin = field.primary
        self.orbitals = evecs[:, : self.nocc] / h**0.5
        return self.evals[: self.nocc].sum()

    def update(self, mixed):
        density = (self.orbitals**2).sum(-1)

        # band energy minus double counting
        vint = self.vin - vext
        energy = (
            self.evals[: self.nocc].sum()
            - (vint * density).sum() * h
            + 0.5 * self.g * (density**2).sum() * h
        )

        if mixed == MIXED_DENSITY:
            return energy, FieldSet(density)
        return energy, FieldSet(vext + self.g * density)

    def potential_from_density(self, density):
        n = density.primary
        return FieldSet(vext + self.g * n), 0.5 * self.g * (n**2).sum() * h


solver = MeanField(nocc=3, g=2.0)
guess = FieldSet(torch.zeros(npts, **dd))

for mixer in ("plain", "pulay"):
    config = ConfigSCF(
        mixer=mixer,
        mixed_variable="density",
        damp=0.3,
        history=4,
        etol=1e-10,
        maxiter=200,
        dv=h,
        dtype=torch.double,
    )

    scf = scfmix.SelfConsistentField(solver, config=config)
    result = scf(guess)

    OutputHandler.write_stdout(
        f"{mixer:>6}: E = {result['energy']: .10f}   "
        f"converged = {result['converged']}   "
        f"iterations = {result['iterations']}"
    )

OutputHandler.dump_warnings()
scfmix.timer.print(v=5)

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
Field Set
=========

Container for collecting and handling the fields that are converged in the
SCF, i.e., the density or the potential on a discretized domain.

A field set holds a primary field and, optionally, an auxiliary field (e.g.
the kinetic energy density or its potential). Both fields always share the
same shape, dtype and device. Whether the auxiliary field is present is a
property of the whole run and checked once before the SCF starts.
"""

from __future__ import annotations

import torch

from scfmix._src.typing import Iterator, Self, Tensor
from scfmix._src.typing.exceptions import FieldSetError

__all__ = ["FieldSet"]


class FieldSet:
    """
    Ordered collection of one or two same-shaped fields.

    Field sets support the arithmetic required for mixing (addition,
    subtraction and multiplication with scalars), which is always carried out
    field by field.
    """

    __slots__ = ["_primary", "_auxiliary"]

    def __init__(self, primary: Tensor, auxiliary: Tensor | None = None) -> None:
        if auxiliary is not None:
            if auxiliary.shape != primary.shape:
                raise FieldSetError(
                    f"Shape of auxiliary field ({auxiliary.shape}) does not "
                    f"match shape of primary field ({primary.shape})."
                )
            if auxiliary.dtype != primary.dtype:
                raise FieldSetError(
                    f"Dtype of auxiliary field ({auxiliary.dtype}) does not "
                    f"match dtype of primary field ({primary.dtype})."
                )
            if auxiliary.device != primary.device:
                raise FieldSetError(
                    f"Device of auxiliary field ({auxiliary.device}) does not "
                    f"match device of primary field ({primary.device})."
                )

        self._primary = primary
        self._auxiliary = auxiliary

    # primary

    @property
    def primary(self) -> Tensor:
        return self._primary

    # auxiliary

    @property
    def auxiliary(self) -> Tensor | None:
        return self._auxiliary

    @property
    def has_auxiliary(self) -> bool:
        return self._auxiliary is not None

    # properties of all fields

    @property
    def shape(self) -> torch.Size:
        return self._primary.shape

    @property
    def dtype(self) -> torch.dtype:
        return self._primary.dtype

    @property
    def device(self) -> torch.device:
        return self._primary.device

    def __len__(self) -> int:
        return 2 if self.has_auxiliary else 1

    def __iter__(self) -> Iterator[Tensor]:
        yield self._primary
        if self._auxiliary is not None:
            yield self._auxiliary

    def validate(self, auxiliary: bool) -> None:
        """
        Check that the presence of the auxiliary field matches the setting for
        the whole run.

        Parameters
        ----------
        auxiliary : bool
            Whether the run requires an auxiliary field.

        Raises
        ------
        FieldSetError
            Auxiliary field present but not requested or vice versa.
        """
        if auxiliary and not self.has_auxiliary:
            raise FieldSetError(
                "An auxiliary field is required by the configuration, but "
                "the field set only contains the primary field."
            )
        if not auxiliary and self.has_auxiliary:
            raise FieldSetError(
                "The field set contains an auxiliary field, but the "
                "configuration does not request one."
            )

    def _check_compatible(self, other: FieldSet) -> None:
        if not isinstance(other, FieldSet):
            raise TypeError(
                f"Only field sets can be combined, but '{type(other)}' was given."
            )
        if self.has_auxiliary != other.has_auxiliary:
            raise FieldSetError(
                "Cannot combine a field set with and a field set without "
                "auxiliary field."
            )
        if self.shape != other.shape:
            raise FieldSetError(
                f"Cannot combine field sets of shapes {self.shape} and "
                f"{other.shape}."
            )
        if self.dtype != other.dtype or self.device != other.device:
            raise FieldSetError(
                f"Cannot combine field sets on {self.device} ({self.dtype}) "
                f"and {other.device} ({other.dtype})."
            )

    @staticmethod
    def _combine(a: Tensor | None, b: Tensor | None, op) -> Tensor | None:
        if a is None or b is None:
            return None
        return op(a, b)

    def __add__(self, other: FieldSet) -> FieldSet:
        self._check_compatible(other)
        return self.__class__(
            self._primary + other.primary,
            self._combine(self._auxiliary, other.auxiliary, torch.add),
        )

    def __sub__(self, other: FieldSet) -> FieldSet:
        self._check_compatible(other)
        return self.__class__(
            self._primary - other.primary,
            self._combine(self._auxiliary, other.auxiliary, torch.sub),
        )

    def __mul__(self, scalar: float | Tensor) -> FieldSet:
        if isinstance(scalar, FieldSet):
            raise TypeError("Field sets can only be multiplied by scalars.")
        aux = self._auxiliary * scalar if self._auxiliary is not None else None
        return self.__class__(self._primary * scalar, aux)

    __rmul__ = __mul__

    def __neg__(self) -> FieldSet:
        return self * -1.0

    def clone(self) -> Self:
        """Return a deep copy (snapshot) of the field set."""
        aux = self._auxiliary.clone() if self._auxiliary is not None else None
        return self.__class__(self._primary.clone(), aux)

    def detach(self) -> Self:
        """Return a field set detached from the autograd graph."""
        aux = self._auxiliary.detach() if self._auxiliary is not None else None
        return self.__class__(self._primary.detach(), aux)

    def zeros_like(self) -> Self:
        """Return a field set of zeros with the same layout."""
        aux = (
            torch.zeros_like(self._auxiliary)
            if self._auxiliary is not None
            else None
        )
        return self.__class__(torch.zeros_like(self._primary), aux)

    def as_tensor(self) -> Tensor:
        """
        Stack all fields into a single tensor of shape ``(nfields, *shape)``.

        Returns
        -------
        Tensor
            Stacked fields.
        """
        return torch.stack(list(self), dim=0)

    @classmethod
    def from_tensor(cls, tensor: Tensor) -> FieldSet:
        """
        Create a field set from the stacked representation.

        Parameters
        ----------
        tensor : Tensor
            Stacked fields of shape ``(nfields, *shape)`` with one or two
            fields.

        Returns
        -------
        FieldSet
            Field set with the primary and (optionally) auxiliary field.
        """
        if tensor.ndim < 1 or tensor.shape[0] not in (1, 2):
            raise FieldSetError(
                "The stacked representation must contain one or two fields "
                f"along the first dimension, but has shape {tensor.shape}."
            )

        if tensor.shape[0] == 1:
            return cls(tensor[0])
        return cls(tensor[0], tensor[1])

    def allclose(self, other: FieldSet, **kwargs) -> bool:
        """Compare two field sets with ``torch.allclose``."""
        self._check_compatible(other)
        return all(torch.allclose(a, b, **kwargs) for a, b in zip(self, other))

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(shape={tuple(self.shape)}, "
            f"auxiliary={self.has_auxiliary}, dtype={self.dtype})"
        )

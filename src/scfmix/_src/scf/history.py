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
SCF: History
============

Bounded history of field snapshots and residuals of past SCF iterations.

Note
----
The history is not a sliding window. Once it holds `depth` entries, the next
append clears it completely, so that the buffer afterwards only contains the
newly appended entry. The residual overlap matrix must be reset at the same
time (see :meth:`HistoryBuffer.append`).
"""

from __future__ import annotations

from scfmix._src.typing import Iterator

from .fieldset import FieldSet

__all__ = ["HistoryBuffer", "HistoryEntry"]


class HistoryEntry:
    """
    Snapshot of the field that entered an iteration and, once known, the
    residual of that iteration.
    """

    __slots__ = ["snapshot", "residual"]

    snapshot: FieldSet
    """Field that defined the Hamiltonian of the iteration."""

    residual: FieldSet | None
    """Difference between the produced and the input field."""

    def __init__(self, snapshot: FieldSet, residual: FieldSet | None = None) -> None:
        self.snapshot = snapshot
        self.residual = residual

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(snapshot={self.snapshot}, "
            f"residual={self.residual is not None})"
        )


class HistoryBuffer:
    """
    Ordered sequence of history entries with a maximum length.

    Entries are stored from oldest to newest, i.e., the most recent entry is
    the last one.
    """

    depth: int
    """Maximum number of entries."""

    entries: list[HistoryEntry]
    """Stored entries (oldest first)."""

    def __init__(self, depth: int) -> None:
        if depth < 1:
            raise ValueError(f"History depth must be at least 1 ({depth}).")

        self.depth = depth
        self.entries = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries)

    def __getitem__(self, age: int) -> HistoryEntry:
        """
        Get an entry by its age (0 is the most recent entry).
        """
        if not 0 <= age < len(self.entries):
            raise IndexError(
                f"History holds {len(self.entries)} entries, age {age} is "
                "out of range."
            )
        return self.entries[-1 - age]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self)}/{self.depth})"

    @property
    def full(self) -> bool:
        return len(self.entries) >= self.depth

    @property
    def latest(self) -> HistoryEntry:
        """
        Most recent entry.

        Raises
        ------
        RuntimeError
            History is empty.
        """
        if len(self.entries) == 0:
            raise RuntimeError("History is empty.")
        return self.entries[-1]

    @property
    def snapshots(self) -> list[FieldSet]:
        """Field snapshots (oldest first)."""
        return [e.snapshot for e in self.entries]

    @property
    def residuals(self) -> list[FieldSet]:
        """
        Residuals of all entries (oldest first).

        Raises
        ------
        RuntimeError
            An entry without residual is encountered.
        """
        residuals = []
        for i, e in enumerate(self.entries):
            if e.residual is None:
                raise RuntimeError(f"History entry {i} has no residual yet.")
            residuals.append(e.residual)
        return residuals

    def append(self, snapshot: FieldSet) -> bool:
        """
        Append a new snapshot. If the buffer is full, it is cleared first.

        Parameters
        ----------
        snapshot : FieldSet
            Field that enters the current iteration. The history stores it
            as is, so the caller must hand over a copy it does not modify.

        Returns
        -------
        bool
            Whether the buffer was reset before appending.
        """
        reset = self.full
        if reset:
            self.clear()

        self.entries.append(HistoryEntry(snapshot))
        return reset

    def set_residual(self, residual: FieldSet) -> None:
        """
        Attach the residual of the current iteration to the latest entry.

        Parameters
        ----------
        residual : FieldSet
            Residual of the current iteration.
        """
        self.latest.residual = residual

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []

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
Definition of a timer class that can contain multiple timers.

The SCF records the time spent in the inner solver and in the mixing step
below a common "SCF" parent timer.

For developers
--------------
Remember to manually reset the timer in tests that are supposed to fail.
Otherwise, `timer.stop()` may not be called and the next test tries to start
the same timer again, which will throw a (confusing) `TimerError`.
"""

from __future__ import annotations

import time

__all__ = ["timer", "TimerError"]


class TimerError(Exception):
    """
    A custom exception used to report errors in use of Timer class.
    """


def _sync() -> None:
    """
    Wait for all kernels in all streams on a CUDA device to complete.
    """
    import torch

    if torch.cuda.is_available():
        torch.cuda.synchronize()


class _Timers:
    """
    Collection of Timers.
    Upon instantiation, a timer with the label 'total' is started.
    """

    class _Timer:
        """Instance of a Timer."""

        label: str | None
        """Name of the Timer."""

        parent: _Timers
        """Parent Timer collection."""

        _start_time: float | None
        """Time when the timer was started. Should not be accessed directly."""

        elapsed_time: float
        """Elapsed time in seconds."""

        def __init__(
            self, parent: _Timers, label: str | None = None, cuda_sync: bool = False
        ) -> None:
            self.parent = parent
            self.label = label
            self._start_time = None
            self.elapsed_time = 0.0
            self.cuda_sync = cuda_sync

        def start(self) -> None:
            """
            Start a new timer.

            Raises
            ------
            TimerError
                If timer is already running.
            """
            if not self.parent.enabled:
                return

            if self._start_time is not None:
                raise TimerError(
                    f"Timer '{self.label}' is running. Use `.stop()` to stop it."
                )

            if self.cuda_sync is True:
                _sync()

            self._start_time = time.perf_counter()

        def stop(self) -> float:
            """
            Stop the timer.

            Returns
            -------
            float
                Elapsed time in seconds.

            Raises
            ------
            TimerError
                If timer is not running.
            """
            if not self.parent.enabled:
                return 0.0

            if self._start_time is None:
                raise TimerError(
                    f"Timer '{self.label}' is not running. Use .start() to start it."
                )

            if self.cuda_sync is True:
                _sync()

            self.elapsed_time += time.perf_counter() - self._start_time
            self._start_time = None

            return self.elapsed_time

        def is_running(self) -> bool:
            """
            Check if the timer is running.

            Returns
            -------
            bool
                Whether the timer currently runs (``True``) or not (``False``).
            """
            return self._start_time is not None

    timers: dict[str, _Timer]
    """Dictionary of timers."""

    label: str | None
    """Name for the Timer collection."""

    def __init__(
        self,
        label: str | None = None,
        autostart: bool = False,
        cuda_sync: bool = False,
    ) -> None:
        self.label = label
        self.timers = {}
        self._enabled = True
        self._subtimer_parent_map: dict[str, str] = {}
        self._cuda_sync = cuda_sync

        if autostart is True:
            self.reset()

    def enable(self) -> None:
        """
        Enable all timers in the collection.
        """
        self._enabled = True

    def disable(self) -> None:
        """
        Disable all timers in the collection.
        """
        self._enabled = False

    @property
    def enabled(self) -> bool:
        """
        Check if the timer is enabled.

        Returns
        -------
        bool
            Whether the timer is enabled (``True``) or not (``False``).
        """
        return self._enabled

    def start(
        self, uid: str, label: str | None = None, parent_uid: str | None = None
    ) -> None:
        """
        Create a new timer or start an existing timer with `uid`.

        Parameters
        ----------
        uid : str
            ID of the timer.
        label : str | None
            Name of the timer (used for printing). Defaults to ``None``.
            If no `label` is given, the `uid` is used.
        parent_uid : str | None
            ID of the parent timer. Defaults to ``None``.
        """
        if not self._enabled:
            return

        if uid in self.timers:
            self.timers[uid].start()
            return

        t = self._Timer(self, uid if label is None else label, self._cuda_sync)
        t.start()

        self.timers[uid] = t

        if parent_uid is not None and parent_uid in self.timers:
            self._subtimer_parent_map[uid] = parent_uid

    def stop(self, uid: str) -> float:
        """
        Stop the timer

        Parameters
        ----------
        uid : str
            Unique ID of the timer.

        Returns
        -------
        float
            Elapsed time in seconds.

        Raises
        ------
        TimerError
            If timer dubbed `uid` does not exist.
        """
        if not self.enabled:
            return 0.0

        if uid not in self.timers:
            raise TimerError(f"Timer '{uid}' does not exist.")

        return self.timers[uid].stop()

    def reset(self) -> None:
        """
        Reset all timers in the collection.

        This method reinitializes the timers dictionary and restarts the
        'total' timer.
        """
        self.timers = {}
        self._subtimer_parent_map = {}
        self.start("total")

    def get_times(self) -> dict[str, dict]:
        """
        Get the elapsed times of all timers, including the percentage of the
        total time (main timers) or of the parent timer (sub timers).

        Returns
        -------
        dict[str, dict]
            Dictionary of timer IDs and elapsed times.
        """
        if self.timers["total"].is_running():
            self.timers["total"].stop()

        KEY = "value"
        times: dict[str, dict] = {}

        for k in self.timers:
            if k not in self._subtimer_parent_map:
                times[k] = {KEY: None, "sub": {}}

        for uid, t in self.timers.items():
            if uid in self._subtimer_parent_map:
                parent = self._subtimer_parent_map[uid]
                times[parent]["sub"][uid] = t.elapsed_time
            else:
                times[uid][KEY] = t.elapsed_time

        total_time = times["total"][KEY]
        for main_timer, details in times.items():
            if main_timer == "total":
                continue

            main_time = details[KEY]
            pct = main_time / total_time * 100 if total_time > 0.0 else 0.0
            details["percentage"] = f"{pct:.2f}"

            for subtimer, sub_time in details["sub"].items():
                pct = sub_time / main_time * 100 if main_time > 0.0 else 0.0
                details["sub"][subtimer] = {KEY: sub_time, "percentage": f"{pct:.2f}"}

        return times

    def print(self, v: int = 5, precision: int = 3) -> None:
        """Print the elapsed times of all timers in a table."""
        if not self._enabled:
            return

        # pylint: disable=import-outside-toplevel
        from ..io import OutputHandler

        OutputHandler.write_table(
            self.get_times(),
            title="Timings",
            columns=["Objective", "Time (s)", "% Total"],
            v=v,
            precision=precision,
        )


timer = _Timers(autostart=True, cuda_sync=False)
"""Global instance of the timer class."""

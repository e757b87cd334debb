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
Test the `Timer` and Timer collections (`Timers`).
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from scfmix import OutputHandler
from scfmix._src.timing.decorator import timer_decorator
from scfmix._src.timing.timer import TimerError, _sync, _Timers


def test_fail() -> None:
    timer = _Timers()

    # try to stop a timer that was never started
    with pytest.raises(TimerError):
        timer.stop("test")

    # try to start a timer that is already running
    timer.start("test")
    with pytest.raises(TimerError):
        timer.start("test")

    # stop the timer and try to stop it again
    timer.stop("test")
    with pytest.raises(TimerError):
        timer.timers["test"].stop()


def test_running() -> None:
    timer = _Timers()
    timer.start("test")
    assert timer.timers["test"].is_running()

    timer.stop("test")
    assert not timer.timers["test"].is_running()


def test_disabled() -> None:
    timer = _Timers()
    timer.disable()
    assert timer.enabled is False

    timer.start("test")
    assert "test" not in timer.timers
    assert timer.stop("test") == 0.0

    timer.enable()
    assert timer.enabled is True


def test_get_times() -> None:
    timer = _Timers(autostart=True)
    timer.start("SCF")
    timer.start("Mixing", parent_uid="SCF")
    timer.stop("Mixing")
    timer.stop("SCF")

    times = timer.get_times()
    assert not timer.timers["total"].is_running()

    assert "total" in times
    assert "SCF" in times
    assert "Mixing" not in times
    assert "Mixing" in times["SCF"]["sub"]

    assert "percentage" in times["SCF"]
    assert "percentage" in times["SCF"]["sub"]["Mixing"]

    assert times["SCF"]["value"] == timer.timers["SCF"].elapsed_time

    timer.reset()
    assert list(timer.timers.keys()) == ["total"]


def test_decorator() -> None:
    from scfmix._src.timing import timer

    enabled = timer.enabled
    timer.enable()

    @timer_decorator("Decorated")
    def func(x: int) -> int:
        return 2 * x

    @timer_decorator()
    def fail() -> None:
        raise ValueError("Error in timed function.")

    try:
        assert func(2) == 4
        assert "Decorated" in timer.timers
        assert not timer.timers["Decorated"].is_running()

        # timer is stopped even if the function raises
        with pytest.raises(ValueError):
            fail()
        assert not timer.timers["fail"].is_running()
    finally:
        if enabled is False:
            timer.disable()


def test_print() -> None:
    timer = _Timers(autostart=True)
    timer.start("SCF")
    timer.stop("SCF")

    with patch.object(OutputHandler, "write_table") as mocker:
        timer.print(v=5)

    mocker.assert_called_once()
    assert mocker.call_args.kwargs["title"] == "Timings"

    # disabled timers do not print
    timer.disable()
    with patch.object(OutputHandler, "write_table") as mocker:
        timer.print(v=5)

    mocker.assert_not_called()


@patch("torch.cuda.synchronize")
@patch("torch.cuda.is_available", return_value=False)
def test_sync_false(mocker_avail, mocker_sync) -> None:
    _sync()

    mocker_avail.assert_called_once()
    mocker_sync.assert_not_called()


@patch("torch.cuda.synchronize")
@patch("torch.cuda.is_available", return_value=True)
def test_sync_true(mocker_avail, mocker_sync) -> None:
    _sync()

    mocker_avail.assert_called_once()
    mocker_sync.assert_called_once()

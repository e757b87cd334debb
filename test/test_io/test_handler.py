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
Test the output handler.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from scfmix import OutputHandler
from scfmix._src.typing.exceptions import DegenerateHistoryWarning


def test_verbosity() -> None:
    original = OutputHandler.verbosity

    with OutputHandler.with_verbosity(7):
        assert OutputHandler.verbosity == 7
    assert OutputHandler.verbosity == original

    # `None` leaves the verbosity unchanged
    with OutputHandler.with_verbosity(None):  # type: ignore
        assert OutputHandler.verbosity == original

    with pytest.raises(TypeError):
        OutputHandler.verbosity = "high"  # type: ignore


def test_write_stdout() -> None:
    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(5):
            OutputHandler.write_stdout("Energy: %.3f", 1.0)
            OutputHandler.write_stdout(lambda: "lazy")
            OutputHandler.write_stdout("hidden", v=6)

    assert mocker.call_count == 2
    assert mocker.call_args_list[0].args[0] == "Energy: 1.000"
    assert mocker.call_args_list[1].args[0] == "lazy"


def test_write_row() -> None:
    OutputHandler.json_data = {}

    with patch.object(OutputHandler.console_logger, "info") as mocker:
        with OutputHandler.with_verbosity(2):
            OutputHandler.write_row("Table", "  1", ["a", "b"])
        mocker.assert_not_called()

        with OutputHandler.with_verbosity(3):
            OutputHandler.write_row("Table", "  1", ["a", "b"])
        mocker.assert_called_once_with("  1   a   b")

    assert OutputHandler.json_data == {"Table": {"1": ["a", "b"]}}
    OutputHandler.json_data = {}


def test_json(tmp_path: Path) -> None:
    file = tmp_path / "out.json"

    original = OutputHandler.json_file
    handlers = dict(OutputHandler.handlers)
    OutputHandler.json_data = {}

    try:
        OutputHandler.json_file = str(file)
        OutputHandler.setup_json_logger()

        with OutputHandler.with_verbosity(3):
            OutputHandler.write_row("SCF Iterations", "  1", ["-1.0", "inf"])

        with open(file, encoding="utf8") as f:
            data = json.load(f)
        assert data == {"SCF Iterations": {"1": ["-1.0", "inf"]}}
    finally:
        OutputHandler.json_file = original
        OutputHandler.handlers = handlers
        OutputHandler.json_data = {}


def test_warnings() -> None:
    OutputHandler.clear_warnings()

    OutputHandler.warn("first")
    OutputHandler.warn("second", DegenerateHistoryWarning)
    assert OutputHandler.warnings == [
        ("first", UserWarning),
        ("second", DegenerateHistoryWarning),
    ]

    with patch.object(OutputHandler.console_logger, "warning") as mocker:
        OutputHandler.dump_warnings()
    assert mocker.call_count == 3

    OutputHandler.clear_warnings()
    assert len(OutputHandler.warnings) == 0

    with patch.object(OutputHandler.console_logger, "warning") as mocker:
        OutputHandler.dump_warnings()
    mocker.assert_not_called()


def test_write_table() -> None:
    data = {
        "total": {"value": 2.0},
        "SCF": {
            "value": 1.0,
            "percentage": "50.00",
            "sub": {"Mixing": {"value": 0.5, "percentage": "50.00"}},
        },
    }
    columns = ["Objective", "Time (s)", "% Total"]

    def lines(verbosity: int) -> list[str]:
        with patch.object(OutputHandler.console_logger, "info") as mocker:
            with OutputHandler.with_verbosity(verbosity):
                OutputHandler.write_table(data, title="Timings", columns=columns)
        return [c.args[0] for c in mocker.call_args_list]

    assert lines(4) == []

    out = lines(5)
    assert any(line.startswith("SCF") for line in out)
    assert not any("- Mixing" in line for line in out)

    sums = [line for line in out if line.startswith("Sum")]
    assert len(sums) == 1
    assert "1.000" in sums[0] and "50.00" in sums[0]

    # sub entries only for higher verbosity
    assert any("- Mixing" in line for line in lines(6))

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
I/O: Output Handler
===================

The I/O module contains the singleton `OutputHandler` class that is used to
write output to various streams (console, JSON, ...).

The SCF engine only ever writes to the handler (iteration table, Pulay
diagnostics, warnings). Nothing written here is read back by the engine.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path

from scfmix._src.constants import defaults
from scfmix._src.typing import Any, Generator, override

__all__ = ["OutputHandler"]


class CustomStreamHandler(logging.StreamHandler):
    """
    A custom stream handler that allows for the addition of a newline at the
    end of the message.
    """

    @override
    def emit(self, record):
        """
        Emit a record.

        If a formatter is specified, it is used to format the record.
        The record is then written to the stream with a trailing newline
        unless the record carries ``newline=False``.
        """
        try:
            msg = self.format(record)

            if getattr(record, "newline", True):
                msg += self.terminator

            self.stream.write(msg)
            self.stream.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


class _OutputHandler:
    """
    Singleton class that handles output to the console and JSON file.
    """

    def __init__(self):
        self.handlers = {}
        self.warnings: list[tuple[str, type[Warning]]] = []

        self.console_logger = logging.getLogger("scfmix_console")
        self.setup_console_logger()

        self._verbosity = defaults.VERBOSITY
        self._json_file = "scfmix.json"
        self.json_data = {}

    @property
    def json_file(self) -> str:
        """
        Get the path to the JSON file.

        Returns
        -------
        str
            The path to the JSON file.
        """
        return self._json_file

    @json_file.setter
    def json_file(self, file: str) -> None:
        self._json_file = file

    @property
    def verbosity(self) -> int:
        """
        Get the verbosity level.

        Returns
        -------
        int
            The verbosity level.
        """
        return self._verbosity

    @verbosity.setter
    def verbosity(self, level: int | None) -> None:
        if level is None:
            return

        if not isinstance(level, int):
            raise TypeError("Verbosity level must be an integer.")
        self._verbosity = level

    @contextmanager
    def with_verbosity(self, level: int) -> Generator[None, Any, None]:
        original_verbosity = self.verbosity
        self.verbosity = level
        try:
            yield
        finally:
            self.verbosity = original_verbosity

    def setup_console_logger(self, level=logging.INFO):
        """
        Setup the console logger.

        Parameters
        ----------
        level : int, optional
            The logging level. Defaults to `logging.INFO`.
        """
        ch = CustomStreamHandler()
        ch.setLevel(level)
        ch.setFormatter(logging.Formatter("%(message)s"))
        self.console_logger.addHandler(ch)
        self.console_logger.setLevel(level)
        self.console_logger.propagate = False

    def setup_json_logger(self):
        """Setup the JSON logger."""
        self.handlers["json"] = self.json_output

        if Path(self.json_file).is_file():
            with open(self.json_file, encoding="utf8") as file:
                self.json_data = json.load(file)

    def json_output(self, data: dict[str, Any]):
        """
        Write data to the JSON file.

        Parameters
        ----------
        data : dict[str, Any]
            The data to write to the JSON file.
        """
        if "json" not in self.handlers:
            return

        self.json_data.update(data)
        with open(self.json_file, "w", encoding="utf8") as file:
            json.dump(self.json_data, file, indent=4)

    def write_stdout(
        self,
        msg: str,
        *args,
        v: int = 5,
        newline: bool = True,
    ) -> None:
        """
        Write a message to the console.

        Parameters
        ----------
        msg : str
            The message to write.
        v : int, optional
            The verbosity level at which to write the message. Defaults to 5,
            which is the standard verbosity level between 0 and 10.
        newline : bool, optional
            Whether to add a newline at the end of the message.
            Defaults to ``True``.
        """
        if self.verbosity >= v:
            if callable(msg):
                # Example: f(lambda: f"Energy: {e:.14f}")
                message = msg()
            elif args:
                # Example: f("Energy: %.14f", e)
                message = msg % args
            else:
                message = msg

            extra = {"newline": newline}
            self.console_logger.info(message, extra=extra)

    def write_row(
        self, table_name: str, key: str, row: list[Any], v: int = 3
    ) -> None:
        """
        Write a single row of data to a specified table in both console and
        JSON output.

        Parameters
        ----------
        table_name : str
            The name of the table to which the row belongs.
        key : str
            The row identifier (e.g. the iteration number).
        row : list[Any]
            A single row of data to be written.
        v : int, optional
            The verbosity level at which to write the row. Defaults to 3.
        """
        if self.verbosity < v:
            return

        self.console_logger.info("   ".join([key] + row))

        if table_name not in self.json_data:
            self.json_data[table_name] = {}
        self.json_data[table_name][key.strip()] = row

        # update JSON file with the new row
        self.json_output({})

    #######################################

    def warn(self, msg: str, warning_type: type[Warning] = UserWarning) -> None:
        """
        Add a warning message to the list of warnings.

        Parameters
        ----------
        msg : str
            The warning message.
        warning_type : type[Warning], optional
            The type of warning. Defaults to ``UserWarning``.
        """
        self.warnings.append((msg, warning_type))

    def clear_warnings(self) -> None:
        """Remove all collected warnings."""
        self.warnings = []

    def dump_warnings(self) -> None:
        """Dump all warnings to the console."""
        if len(self.warnings) == 0:
            return

        self.console_logger.warning("\nWARNINGS")
        for msg, warning_type in self.warnings:
            self.console_logger.warning(f"[{warning_type.__name__}] {msg}")

    def write_table(
        self,
        data: dict[str, dict[str, Any]],
        title: str,
        columns: list[str],
        v: int = 5,
        precision: int = 3,
    ) -> None:
        """
        Print a table of timings (value and percentage of the total) with
        optional sub entries.

        Parameters
        ----------
        data : dict[str, dict[str, Any]]
            The timings to print. Must contain a ``"total"`` entry.
        title : str
            Title of the table.
        columns : list[str]
            Header of the three columns.
        v : int, optional
            The verbosity level at which to print the data. Defaults to 5.
        precision : int, optional
            The precision of the timings. Defaults to 3.
        """
        if self.verbosity < v:
            return

        # also write to JSON file
        self.json_output({title: data})

        key = "value"
        TOTAL = "total"

        main_format = "{:<22} {:>10} {:>14}"
        sub_format = " {:<21} {:>10} {:>14}"

        self.write_stdout(f"\n\n{title}\n" + "-" * len(title) + "\n", v=v)
        self.write_stdout(main_format.format(*columns), v=v)
        self.write_stdout("-" * 48, v=v)

        true_tot = data[TOTAL][key]
        count_tot = 0.0

        for name, details in data.items():
            if name == TOTAL:
                continue

            self.write_stdout(
                main_format.format(
                    name,
                    f"{details[key]:.{precision}f}",
                    details.get("percentage", ""),
                ),
                v=v,
            )
            count_tot += details[key]

            # sub entries only for higher verbosity
            if self.verbosity < (v + 1):
                continue

            for subname, subdetails in details.get("sub", {}).items():
                self.write_stdout(
                    sub_format.format(
                        f"- {subname}",
                        f"{subdetails[key]:.{precision}f}",
                        f"{subdetails.get('percentage', '')}",
                    ),
                    v=v,
                )

        self.write_stdout("-" * 48, v=v)
        pct = count_tot / true_tot * 100 if true_tot > 0.0 else 0.0
        self.write_stdout(
            main_format.format("Sum", f"{count_tot:.{precision}f}", f"{pct:.2f}"),
            v=v,
        )
        self.write_stdout(
            main_format.format(
                TOTAL.title(), f"{true_tot:.{precision}f}", "100.00"
            ),
            v=v,
        )


OutputHandler = _OutputHandler()

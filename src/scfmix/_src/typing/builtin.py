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
Typing: Built-ins
=================

Re-exports of the standard library type annotations.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Iterator,
    Literal,
    NoReturn,
    TypedDict,
    TypeVar,
    cast,
    overload,
)

__all__ = [
    "TYPE_CHECKING",
    "Any",
    "Iterator",
    "Literal",
    "NoReturn",
    "TypedDict",
    "TypeVar",
    "cast",
    "overload",
]

# Copyright © 2022 CISPA Helmholtz Center for Information Security.
# Author: Dominic Steinhöfel.
#
# This file is part of smtgen.
#
# smtgen is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# smtgen is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with smtgen.  If not, see <http://www.gnu.org/licenses/>.

from returns.maybe import Some, Nothing

from smtgen.access_path import parameter, qualified, local_variable, Field
from smtgen.model import ModelParameter, NumeralValue, BoolValue, UnknownValue
from smtgen.type_context import SimpleTypeContext, FunctionMetadata

PAIR_A = qualified(parameter(1), Field(0, "a"))
PAIR_B = qualified(parameter(1), Field(1, "b"))

TYPE_CONTEXT = SimpleTypeContext(
    {
        parameter(1): "int",
        parameter(2): "int",
        PAIR_A: "int",
        PAIR_B: "int",
        local_variable(1): "int",
    }
)

PAIR_TYPE_CONTEXT = SimpleTypeContext(
    {
        parameter(1): "Pair",
        PAIR_A: "int",
        PAIR_B: "int",
    }
)

ONE_INT = FunctionMetadata(["int"])
TWO_INTS = FunctionMetadata(["int", "int"])
ONE_PAIR = FunctionMetadata(["Pair"])


def numeral_param(name: str, path, value: int) -> ModelParameter:
    return ModelParameter(name, Some(path), NumeralValue(value))


def bool_param(name: str, path, value: bool) -> ModelParameter:
    return ModelParameter(name, Some(path), BoolValue(value))


def unknown_param(name: str, path) -> ModelParameter:
    return ModelParameter(name, Some(path), UnknownValue())


def pathless_param(name: str, value: int) -> ModelParameter:
    return ModelParameter(name, Nothing, NumeralValue(value))


F_EXPECTED = """# Tests generated for `f`.
from __future__ import annotations

import unittest


class TestF(unittest.TestCase):
    def test_0(self):
        x: int = 42

        f(42)
"""

G_EXPECTED = """# Tests generated for `g`.
from __future__ import annotations

import unittest
from typing import Optional


def make_pair(a: Optional[int] = None, b: Optional[int] = None) -> Pair:
    raise NotImplementedError('construct Pair from its constrained fields')


class TestG(unittest.TestCase):
    def test_0(self):
        a: int = 1

        g(make_pair(1, None))

    def test_1(self):
        a: int = 5
        b: int = 7

        g(make_pair(5, 7))
"""

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

"""
Values reported by a solver for the free variables of a satisfiable query, and
the model parameters tying such a value to the access path it constrains.
"""

from dataclasses import dataclass
from typing import Optional

from returns.maybe import Maybe, Nothing

from smtgen.access_path import AccessPath

NUMERAL_MIN = -(2**127)
NUMERAL_MAX = 2**127 - 1

# Rendered in place of values the solver could not report.
UNKNOWN_LITERAL = "..."


class ModelValue:
    def to_literal(self) -> str:
        raise NotImplementedError()

    def __str__(self) -> str:
        return self.to_literal()


@dataclass(frozen=True)
class BoolValue(ModelValue):
    value: bool

    def to_literal(self) -> str:
        """
        >>> BoolValue(True).to_literal()
        'True'
        """
        return "True" if self.value else "False"


@dataclass(frozen=True)
class NumeralValue(ModelValue):
    value: int

    def __post_init__(self):
        if not NUMERAL_MIN <= self.value <= NUMERAL_MAX:
            raise ValueError(
                f"Numeral {self.value} exceeds the range of a signed 128-bit integer"
            )

    def to_literal(self) -> str:
        """
        >>> NumeralValue(-42).to_literal()
        '-42'
        """
        return str(self.value)


@dataclass(frozen=True)
class UnknownValue(ModelValue):
    def to_literal(self) -> str:
        """
        >>> UnknownValue().to_literal()
        '...'
        """
        return UNKNOWN_LITERAL


@dataclass(frozen=True)
class ModelParameter:
    """
    One free variable of a satisfying assignment. The access path is `Nothing`
    if the solver could not associate the variable with a storage location.

    >>> from smtgen.access_path import parameter
    >>> from returns.maybe import Some
    >>> ModelParameter("x", Some(parameter(1)), NumeralValue(42)).initializer
    'x = 42'
    """

    name: str
    access_path: Maybe[AccessPath] = Nothing
    value: ModelValue = UnknownValue()
    debug_initializer: Optional[str] = None

    @property
    def initializer(self) -> str:
        if self.debug_initializer is not None:
            return self.debug_initializer
        return f"{self.name} = {self.value.to_literal()}"

    def __str__(self) -> str:
        return f"{self.name}@{self.access_path.map(str).value_or('?')}: {self.value}"

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
Access paths describe storage locations reachable from a checked expression.
They are produced by the abstract interpreter; this module only provides the
representation and the correlation of paths with their root.

Paths should be built with the factories :func:`parameter`,
:func:`local_variable`, and :func:`qualified`. These hash-cons their results, such
that equal paths are identical objects and paths sharing a base share that base
by identity:

>>> p = qualified(parameter(1), Field(0, "a"))
>>> q = qualified(parameter(1), Field(1, "b"))
>>> find_root(p) is find_root(q) is parameter(1)
True

>>> str(qualified(qualified(parameter(2), Deref()), Index(3)))
'(*param_2)[3]'
"""

from dataclasses import dataclass
from functools import lru_cache

from returns.maybe import Maybe, Some, Nothing

from smtgen.type_defs import Ordinal


class Selector:
    """A step from a base location to a location reachable from it."""

    def apply(self, base: str) -> str:
        raise NotImplementedError()


@dataclass(frozen=True)
class Field(Selector):
    index: int
    name: str

    def apply(self, base: str) -> str:
        return f"{base}.{self.name}"


@dataclass(frozen=True)
class Index(Selector):
    value: int

    def apply(self, base: str) -> str:
        return f"{base}[{self.value}]"


@dataclass(frozen=True)
class Deref(Selector):
    def apply(self, base: str) -> str:
        return f"(*{base})"


class AccessPath:
    def render(self) -> str:
        raise NotImplementedError()

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Parameter(AccessPath):
    ordinal: Ordinal

    def render(self) -> str:
        return f"param_{self.ordinal}"


@dataclass(frozen=True)
class LocalVariable(AccessPath):
    ordinal: int

    def render(self) -> str:
        return f"local_{self.ordinal}"


@dataclass(frozen=True)
class Qualified(AccessPath):
    base: AccessPath
    selector: Selector

    def render(self) -> str:
        return self.selector.apply(self.base.render())

    def __str__(self) -> str:
        result = self.render()
        if isinstance(self.selector, Deref):
            return result[1:-1]
        return result


@lru_cache(maxsize=None)
def parameter(ordinal: Ordinal) -> Parameter:
    assert ordinal >= 1, f"Parameter ordinals are 1-based, got {ordinal}"
    return Parameter(ordinal)


@lru_cache(maxsize=None)
def local_variable(ordinal: int) -> LocalVariable:
    return LocalVariable(ordinal)


@lru_cache(maxsize=None)
def qualified(base: AccessPath, selector: Selector) -> Qualified:
    return Qualified(base, selector)


def find_root(path: AccessPath) -> AccessPath:
    """
    Follows the base links of qualified paths until reaching a path that is not
    qualified, and returns that root object.

    >>> find_root(parameter(3)) is parameter(3)
    True

    >>> path = qualified(qualified(parameter(1), Field(0, "inner")), Field(2, "x"))
    >>> find_root(path)
    Parameter(ordinal=1)

    >>> find_root(find_root(path)) is find_root(path)
    True

    :param path: Any access path.
    :return: The root of the path's qualification chain.
    """

    while isinstance(path, Qualified):
        path = path.base
    return path


def root_parameter_ordinal(path: AccessPath) -> Maybe[Ordinal]:
    """
    >>> root_parameter_ordinal(qualified(parameter(2), Field(0, "a")))
    <Some: 2>

    >>> root_parameter_ordinal(qualified(local_variable(4), Deref()))
    <Nothing>

    :param path: Any access path.
    :return: The ordinal of the path's root if that root is a function parameter.
    """

    match find_root(path):
        case Parameter(ordinal):
            return Some(ordinal)
        case _:
            return Nothing


def depth(path: AccessPath) -> int:
    result = 0
    while isinstance(path, Qualified):
        path = path.base
        result += 1
    return result

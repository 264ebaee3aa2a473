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
Interfaces to the verifier's type information. The test generator only needs
to resolve the declared type of an access path and to render a type as text.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Tuple, TypeVar

from frozendict import frozendict
from returns.maybe import Maybe, Nothing

from smtgen.access_path import AccessPath
from smtgen.type_defs import Location

T = TypeVar("T")


class TypeContext(Protocol[T]):
    def get_path_type(self, path: AccessPath, location: Location) -> Maybe[T]:
        """Resolves the declared type of the storage location `path`."""
        ...

    def type_name(self, ty: T) -> str:
        """Renders a type in the syntax of the generated tests."""
        ...


@dataclass(frozen=True)
class FunctionMetadata:
    """The declared argument types of a function, in ordinal order."""

    argument_types: Tuple[Any, ...]

    def __init__(self, argument_types):
        object.__setattr__(self, "argument_types", tuple(argument_types))

    @property
    def arg_count(self) -> int:
        return len(self.argument_types)

    def argument_type(self, ordinal: int) -> Any:
        assert 1 <= ordinal <= self.arg_count
        return self.argument_types[ordinal - 1]


class SimpleTypeContext:
    """
    A type context whose types are plain type names, looked up per access path.

    >>> from smtgen.access_path import parameter, qualified, Field
    >>> ctx = SimpleTypeContext({parameter(1): "Point"})
    >>> ctx.get_path_type(parameter(1), None)
    <Some: Point>

    >>> ctx.get_path_type(qualified(parameter(1), Field(0, "x")), None)
    <Nothing>
    """

    def __init__(
        self,
        path_types: Mapping[AccessPath, str],
        default_type: Maybe[str] = Nothing,
    ):
        self.path_types: frozendict[AccessPath, str] = frozendict(path_types)
        self.default_type = default_type

    def get_path_type(self, path: AccessPath, location: Location) -> Maybe[str]:
        return Maybe.from_optional(self.path_types.get(path)).lash(
            lambda _: self.default_type
        )

    def type_name(self, ty: str) -> str:
        return ty

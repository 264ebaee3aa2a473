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

import importlib.resources
import keyword
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import returns
from frozendict import frozendict
from returns.maybe import Maybe, Some
from returns.result import Success, Failure, Result


@dataclass(frozen=True)
class lazyjoin:
    s: str
    items: Iterable[Any]

    def __str__(self):
        return self.s.join(map(str, self.items))


@dataclass(frozen=True)
class lazystr:
    c: Callable[[], Any]

    def __str__(self):
        return str(self.c())


def get_smtgen_resource_file_content(path_to_file: str) -> str:
    traversable = importlib.resources.files("smtgen").joinpath(path_to_file)
    with importlib.resources.as_file(traversable) as path:
        with open(path, "r") as file:
            return file.read()


def sanitize_function_name(function_name: str) -> str:
    """
    Turns a (qualified) function name into a string usable as an identifier and
    as a file name. Path separators become underscores, and so does any other
    character that may not occur in an identifier.

    >>> sanitize_function_name("pkg.module.parse")
    'pkg_module_parse'

    >>> sanitize_function_name("crate::module::parse")
    'crate_module_parse'

    >>> sanitize_function_name("Vec<u8>::push")
    'Vec_u8__push'

    >>> sanitize_function_name("2nd")
    '_2nd'

    :param function_name: The raw function name.
    :return: The sanitized name.
    """

    result = re.sub(r"\W", "_", function_name.replace("::", "_").replace(".", "_"))
    if not result or result[0].isdigit():
        result = "_" + result
    return result


def to_identifier(name: str) -> str:
    """
    Converts a display name into a Python identifier.

    >>> to_identifier("x")
    'x'

    >>> to_identifier("point.x")
    'point_x'

    >>> to_identifier("class")
    'class_'

    >>> to_identifier("0")
    '_0'

    :param name: The display name.
    :return: A valid, non-keyword identifier.
    """

    result = re.sub(r"\W", "_", name)
    if not result or result[0].isdigit():
        result = "_" + result
    if keyword.iskeyword(result):
        result += "_"
    return result


def deep_str(obj: Any) -> str:
    """
    This function computes a "deep" string representation of :code:`obj`. This means
    that it also (recursively) invokes :code:`__str__` on all the elements of a list,
    tuple, set, dict, or Maybe/Success/Failure container (from the returns library).

    >>> class X:
    ...     def __str__(self):
    ...         return "'An X'"
    ...     def __repr__(self):
    ...         return "X()"

    >>> str((X(), X()))
    '(X(), X())'

    >>> deep_str((X(), X()))
    "('An X', 'An X')"

    >>> deep_str(frozendict({X(): [X()]}))
    "{'An X': ['An X']}"

    >>> deep_str(returns.result.Failure([X(), X()]))
    "<Failure: ['An X', 'An X']>"

    >>> deep_str(StopIteration())
    'StopIteration()'

    :param obj: The object to recursively convert into a string.
    :return: A "deep" string representation of :code:`obj`.
    """

    if isinstance(obj, tuple):
        return (
            "(" + ", ".join(map(deep_str, obj)) + ("," if len(obj) == 1 else "") + ")"
        )
    elif isinstance(obj, list):
        return "[" + ", ".join(map(deep_str, obj)) + "]"
    elif isinstance(obj, set) or isinstance(obj, frozenset):
        return "{" + ", ".join(map(deep_str, obj)) + "}"
    elif isinstance(obj, dict) or isinstance(obj, frozendict):
        return (
            "{"
            + ", ".join([f"{deep_str(a)}: {deep_str(b)}" for a, b in obj.items()])
            + "}"
        )
    elif isinstance(obj, Maybe):
        match obj:
            case Some(elem):
                return str(Some(deep_str(elem)))
            case returns.maybe.Nothing:
                return str(obj)
    elif isinstance(obj, Result):
        match obj:
            case Success(inner):
                return str(Success(deep_str(inner)))
            case returns.result.Failure(inner):
                return str(Failure(deep_str(inner)))
    elif not str(obj):
        return repr(obj)
    else:
        return str(obj)

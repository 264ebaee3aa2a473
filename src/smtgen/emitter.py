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
Renders the tests recorded for one function as the source of a Python test
module. Rendering is free of I/O and deterministic; writing the modules is left
to :meth:`smtgen.testgen.TestGenerator.emit`.
"""

import keyword
import re
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional

from returns.maybe import Some

from smtgen.helpers import to_identifier
from smtgen.model import UNKNOWN_LITERAL

if TYPE_CHECKING:
    from smtgen.testgen import (
        FunctionArgument,
        FunctionTestGroup,
        ResolvedParameter,
        TestCase,
    )

INDENT = "    "


def module_file_name(group: "FunctionTestGroup") -> str:
    return f"{group.function_name}_tests.py"


def container_class_name(group: "FunctionTestGroup") -> str:
    """
    >>> from smtgen.testgen import FunctionTestGroup
    >>> container_class_name(FunctionTestGroup("pkg_geometry_area", "pkg.geometry.area"))
    'TestPkgGeometryArea'
    """

    return "Test" + "".join(
        part[:1].upper() + part[1:] for part in group.function_name.split("_") if part
    )


def constructor_name(argument: "FunctionArgument") -> str:
    return f"make_{to_identifier(argument.display_name)}"


def is_dotted_identifier(name: str) -> bool:
    return all(
        part.isidentifier() and not keyword.iskeyword(part) for part in name.split(".")
    )


def callee_name(raw_function_name: str) -> str:
    """
    The expression through which the generated tests call the function. Names
    that are not dotted Python identifiers are called by their last path
    segment.

    >>> callee_name("pkg.geometry.area")
    'pkg.geometry.area'

    >>> callee_name("crate::geometry::area")
    'area'

    >>> callee_name("Vec<u8>::push")
    'push'
    """

    if is_dotted_identifier(raw_function_name):
        return raw_function_name
    return to_identifier(re.split(r"::|\.", raw_function_name)[-1])


def module_to_import(raw_function_name: str) -> Optional[str]:
    """
    >>> module_to_import("pkg.geometry.area")
    'pkg.geometry'

    >>> module_to_import("area") is None
    True

    >>> module_to_import("crate::area") is None
    True
    """

    if "." not in raw_function_name or not is_dotted_identifier(raw_function_name):
        return None

    return raw_function_name.rsplit(".", 1)[0]


def reserved_names(group: "FunctionTestGroup") -> FrozenSet[str]:
    """Module-level names a test body must not rebind."""

    callee_root = callee_name(group.raw_function_name).split(".")[0]
    return frozenset(
        {callee_root, "self", "unittest", "Optional"}
        | {
            constructor_name(argument)
            for argument in group.arguments
            if argument.related_fields
        }
    )


def local_name(name: str, reserved: FrozenSet[str]) -> str:
    """
    >>> local_name("f", frozenset({"f", "f_"}))
    'f__'
    """

    result = to_identifier(name)
    while result in reserved:
        result += "_"
    return result


def render_constructor_stub(argument: "FunctionArgument") -> List[str]:
    params = ", ".join(
        f"{to_identifier(name)}: Optional[{field.type_name}] = None"
        for name, field in argument.related_fields.items()
    )

    message = f"construct {argument.type_name} from its constrained fields"

    return [
        f"def {constructor_name(argument)}({params}) -> {argument.type_name}:",
        f"{INDENT}raise NotImplementedError({message!r})",
    ]


def unconstrained_arguments(
    group: "FunctionTestGroup", testcase: "TestCase"
) -> List["FunctionArgument"]:
    direct_ordinals = set()
    for param in testcase.parameters:
        match param.parameter_ordinal:
            case Some(ordinal):
                direct_ordinals.add(ordinal)

    return [
        argument
        for argument in group.arguments
        if argument.ordinal not in direct_ordinals and not argument.related_fields
    ]


def placeholder_names(
    group: "FunctionTestGroup", testcase: "TestCase"
) -> Dict[int, str]:
    """
    Names of the local variables bound to a placeholder for the arguments the
    assignment says nothing about, by ordinal. They never coincide with a
    reserved name or with the binding of a resolved parameter.
    """

    reserved = reserved_names(group)
    taken = set(reserved) | {
        local_name(param.name, reserved) for param in testcase.parameters
    }

    result: Dict[int, str] = {}
    for argument in unconstrained_arguments(group, testcase):
        name = local_name(argument.display_name, frozenset(taken))
        taken.add(name)
        result[argument.ordinal] = name

    return result


def render_call_arguments(
    group: "FunctionTestGroup", testcase: "TestCase"
) -> Dict[int, str]:
    placeholders = placeholder_names(group, testcase)
    direct_values: Dict[int, "ResolvedParameter"] = {}
    field_values: Dict[int, Dict[str, "ResolvedParameter"]] = {}
    for param in testcase.parameters:
        match param.parameter_ordinal:
            case Some(ordinal):
                direct_values[ordinal] = param
            case _:
                field_values.setdefault(param.owning_argument_ordinal, {})[
                    param.name
                ] = param

    result: Dict[int, str] = {}
    for argument in group.arguments:
        if argument.ordinal in direct_values:
            result[argument.ordinal] = direct_values[argument.ordinal].value_text
        elif argument.related_fields:
            present = field_values.get(argument.ordinal, {})
            stub_args = ", ".join(
                present[name].value_text if name in present else "None"
                for name in argument.related_fields
            )
            result[argument.ordinal] = f"{constructor_name(argument)}({stub_args})"
        else:
            result[argument.ordinal] = placeholders[argument.ordinal]

    return result


def render_test_case(
    test_ind: int, group: "FunctionTestGroup", testcase: "TestCase"
) -> List[str]:
    body_indent = INDENT * 2
    reserved = reserved_names(group)

    initializers = [
        f"{body_indent}{local_name(param.name, reserved)}: "
        f"{param.type_name} = {param.value_text}"
        for param in testcase.parameters
    ]

    call_args = render_call_arguments(group, testcase)

    # Arguments about which the assignment says nothing are bound to a placeholder.
    for ordinal, name in placeholder_names(group, testcase).items():
        type_name = group.argument(ordinal).type_name
        initializers.append(f"{body_indent}{name}: {type_name} = {UNKNOWN_LITERAL}")

    func_call = (
        f"{body_indent}{callee_name(group.raw_function_name)}("
        + ", ".join(call_args[argument.ordinal] for argument in group.arguments)
        + ")"
    )

    lines = [f"{INDENT}def test_{test_ind}(self):"]
    lines.extend(initializers)
    if initializers:
        lines.append("")
    lines.append(func_call)
    return lines


def render_function_tests(group: "FunctionTestGroup") -> str:
    """
    Renders the test module for all test cases recorded for a function.

    >>> from returns.maybe import Some
    >>> from smtgen.testgen import (
    ...     FunctionArgument, FunctionTestGroup, ResolvedParameter, TestCase)
    >>> x = ResolvedParameter("x", "int", "int", "42", Some(1), 1)
    >>> group = FunctionTestGroup(
    ...     "f", "f",
    ...     param_map={"x": x},
    ...     arguments=[FunctionArgument("int", "int", "x", 1)],
    ...     test_cases=[TestCase(None, (x,))])
    >>> print(render_function_tests(group))
    # Tests generated for `f`.
    from __future__ import annotations
    <BLANKLINE>
    import unittest
    <BLANKLINE>
    <BLANKLINE>
    class TestF(unittest.TestCase):
        def test_0(self):
            x: int = 42
    <BLANKLINE>
            f(42)
    <BLANKLINE>

    :param group: The tests recorded for one function.
    :return: The source code of the test module.
    """

    stub_arguments = [argument for argument in group.arguments if argument.related_fields]

    lines = [
        f"# Tests generated for `{group.raw_function_name}`.",
        "from __future__ import annotations",
        "",
        "import unittest",
    ]

    if stub_arguments:
        lines.append("from typing import Optional")

    module = module_to_import(group.raw_function_name)
    if module is not None:
        lines.extend(["", f"import {module}"])

    for argument in stub_arguments:
        lines.extend(["", ""])
        lines.extend(render_constructor_stub(argument))

    lines.extend(["", "", f"class {container_class_name(group)}(unittest.TestCase):"])

    if not group.test_cases:
        lines.append(f"{INDENT}pass")

    for test_ind, testcase in enumerate(group.test_cases):
        if test_ind:
            lines.append("")
        lines.extend(render_test_case(test_ind, group, testcase))

    return "\n".join(lines) + "\n"

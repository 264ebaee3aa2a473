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
Collects satisfying assignments reported for checked conditions and turns them
into test modules, one per function. A :class:`TestGenerator` lives for one
verification run: it is created with an output directory, receives any number of
:meth:`TestGenerator.add_test` calls, and writes its modules in one final
:meth:`TestGenerator.emit` call.
"""

import logging
import os
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from frozendict import frozendict
from returns.maybe import Maybe, Some, Nothing
from returns.result import Result, Success, Failure

from smtgen.access_path import AccessPath, Parameter, root_parameter_ordinal
from smtgen.emitter import render_function_tests, module_file_name
from smtgen.helpers import sanitize_function_name, lazystr, deep_str
from smtgen.model import ModelParameter
from smtgen.type_context import TypeContext, FunctionMetadata
from smtgen.type_defs import DebugNames, Location, Ordinal

LOGGER = logging.getLogger(__name__)


class TestRecordingError(Exception):
    __test__ = False

    def __init__(self, msg: str, *args):
        super().__init__(msg, *args)
        self.msg = msg

    def __str__(self):
        return f"TestRecordingError({self.msg})"


@dataclass(frozen=True)
class ResolvedParameter:
    name: str
    declared_type: Any
    type_name: str
    value_text: str
    # Only set if the access path is the argument itself, not a part of it
    parameter_ordinal: Maybe[Ordinal]
    owning_argument_ordinal: Ordinal

    @property
    def is_field(self) -> bool:
        return self.parameter_ordinal == Nothing

    def __str__(self):
        return f"{self.name}: {self.type_name} = {self.value_text}"


@dataclass
class FunctionArgument:
    declared_type: Any
    type_name: str
    display_name: str
    ordinal: Ordinal
    # Field display name to the first resolution of that field
    related_fields: Dict[str, ResolvedParameter] = field(default_factory=dict)


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    checked_value: Any
    parameters: Tuple[ResolvedParameter, ...]


@dataclass
class FunctionTestGroup:
    function_name: str
    raw_function_name: str
    param_map: Dict[str, ResolvedParameter] = field(default_factory=dict)
    arguments: List[FunctionArgument] = field(default_factory=list)
    test_cases: List[TestCase] = field(default_factory=list)

    def argument(self, ordinal: Ordinal) -> FunctionArgument:
        return self.arguments[ordinal - 1]


class TestGenerator:
    __test__ = False

    def __init__(self, output_dir: str | os.PathLike, type_context: TypeContext):
        self.output_dir = pathlib.Path(output_dir)
        self.type_context = type_context
        self._groups: Dict[str, FunctionTestGroup] = {}

    def __repr__(self):
        return f"TestGenerator({str(self.output_dir)!r})"

    @property
    def groups(self) -> Mapping[str, FunctionTestGroup]:
        return frozendict({name: self._groups[name] for name in sorted(self._groups)})

    def add_test(
        self,
        function_name: str,
        checked_value: Any,
        model_parameters: Sequence[ModelParameter],
        metadata: FunctionMetadata,
        debug_names: DebugNames,
        location: Location = None,
    ) -> Result[TestCase, TestRecordingError]:
        """
        Records a test case for the given satisfying assignment. Nothing is
        recorded if any model parameter cannot be resolved to a function argument
        and a type.

        :param function_name: The (qualified) name of the function under test.
        :param checked_value: The symbolic value that was checked.
        :param model_parameters: The model parameters of the satisfying assignment.
        :param metadata: The declared argument types of the function.
        :param debug_names: Display names of the function's arguments, by ordinal.
        :param location: The source location passed on to the type context.
        :return: The recorded test case or an error explaining why none was
            recorded.
        """

        function_name_filtered = sanitize_function_name(function_name)
        group = self._groups.get(function_name_filtered)
        if group is not None and group.raw_function_name != function_name:
            LOGGER.warning(
                "%s and %s share the test module %s; its tests call %s",
                group.raw_function_name,
                function_name,
                module_file_name(group),
                group.raw_function_name,
            )

        arg_count = len(group.arguments) if group is not None else metadata.arg_count

        resolved_params: List[ResolvedParameter] = []
        for param in model_parameters:
            match self.resolve_parameter(param, arg_count, location):
                case Success(resolved):
                    resolved_params.append(resolved)
                case Failure(error):
                    LOGGER.warning(
                        "Not recording a test case for %s: %s", function_name, error
                    )
                    return Failure(error)

        if group is None:
            group = self._create_group(
                function_name, function_name_filtered, metadata, debug_names
            )

        for resolved in resolved_params:
            if resolved.is_field:
                group.argument(resolved.owning_argument_ordinal).related_fields.setdefault(
                    resolved.name, resolved
                )
            group.param_map.setdefault(resolved.name, resolved)

        testcase = TestCase(checked_value, tuple(resolved_params))
        group.test_cases.append(testcase)

        LOGGER.debug(
            "Recorded test case %d for %s: %s",
            len(group.test_cases) - 1,
            function_name,
            lazystr(lambda: deep_str(testcase.parameters)),
        )

        return Success(testcase)

    def resolve_parameter(
        self, param: ModelParameter, arg_count: int, location: Location = None
    ) -> Result[ResolvedParameter, TestRecordingError]:
        match param.access_path:
            case Some(path):
                pass
            case _:
                return Failure(
                    TestRecordingError(f"model parameter {param.name} has no access path")
                )

        match root_parameter_ordinal(path):
            case Some(ordinal) if 1 <= ordinal <= arg_count:
                owning_argument_ordinal = ordinal
            case Some(ordinal):
                return Failure(
                    TestRecordingError(
                        f"access path {path} of model parameter {param.name} refers "
                        f"to argument {ordinal}, but the function has {arg_count}"
                    )
                )
            case _:
                return Failure(
                    TestRecordingError(
                        f"access path {path} of model parameter {param.name} is not "
                        "rooted at a function argument"
                    )
                )

        match self.type_context.get_path_type(path, location):
            case Some(ty):
                declared_type = ty
            case _:
                return Failure(
                    TestRecordingError(
                        f"cannot resolve the type of {path} (model parameter {param.name})"
                    )
                )

        return Success(
            ResolvedParameter(
                name=param.name,
                declared_type=declared_type,
                type_name=self.type_context.type_name(declared_type),
                value_text=param.value.to_literal(),
                parameter_ordinal=direct_parameter_ordinal(path),
                owning_argument_ordinal=owning_argument_ordinal,
            )
        )

    def _create_group(
        self,
        function_name: str,
        function_name_filtered: str,
        metadata: FunctionMetadata,
        debug_names: DebugNames,
    ) -> FunctionTestGroup:
        arguments = [
            FunctionArgument(
                declared_type=metadata.argument_type(ordinal),
                type_name=self.type_context.type_name(metadata.argument_type(ordinal)),
                display_name=debug_names.get(ordinal, f"param_{ordinal}"),
                ordinal=ordinal,
            )
            for ordinal in range(1, metadata.arg_count + 1)
        ]

        group = FunctionTestGroup(
            function_name=function_name_filtered,
            raw_function_name=function_name,
            arguments=arguments,
        )
        self._groups[function_name_filtered] = group
        return group

    def emit(self) -> List[pathlib.Path]:
        """
        Writes one test module per recorded function into the output directory,
        which is created if needed. A module that cannot be written is reported,
        and the remaining modules are written nevertheless.

        :return: The paths of the modules that were written.
        """

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            LOGGER.error(
                "Could not create the test output directory %s: %s", self.output_dir, err
            )
            return []

        written: List[pathlib.Path] = []
        groups = self.groups
        for function_name, group in groups.items():
            out_file = self.output_dir / module_file_name(group)
            try:
                out_file.write_text(render_function_tests(group), encoding="utf-8")
            except OSError as err:
                LOGGER.error("Could not write tests for %s: %s", function_name, err)
                continue

            LOGGER.debug(
                "Wrote %d test(s) for %s to %s",
                len(group.test_cases),
                group.raw_function_name,
                out_file,
            )
            written.append(out_file)

        LOGGER.info(
            "Wrote %d of %d test module(s) to %s",
            len(written),
            len(groups),
            self.output_dir,
        )
        return written


def direct_parameter_ordinal(path: AccessPath) -> Maybe[Ordinal]:
    match path:
        case Parameter(ordinal):
            return Some(ordinal)
        case _:
            return Nothing

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
JSON encoding of solver results, model values, access paths, and recorded
satisfying assignments. A recordings document looks as follows:

.. code-block:: json

    {"functions": [{
        "name": "pkg.geometry.area",
        "argument_types": ["Rect"],
        "debug_names": {"1": "rect"},
        "path_types": [{"path": {"kind": "parameter", "ordinal": 1}, "type": "Rect"}],
        "assignments": [[{
            "name": "w",
            "path": {"kind": "qualified",
                     "base": {"kind": "parameter", "ordinal": 1},
                     "selector": {"kind": "field", "index": 0, "name": "w"}},
            "value": {"kind": "numeral", "value": 3}}]]}]}
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Type

from frozendict import frozendict
from returns.maybe import Maybe, Nothing, Some
from returns.result import Result, safe

from smtgen.access_path import (
    AccessPath,
    Parameter,
    LocalVariable,
    Qualified,
    Selector,
    Field,
    Index,
    Deref,
    parameter,
    local_variable,
    qualified,
)
from smtgen.model import ModelValue, BoolValue, NumeralValue, UnknownValue, ModelParameter
from smtgen.smt_solver import SmtResult
from smtgen.testgen import TestGenerator, TestCase, TestRecordingError
from smtgen.type_context import FunctionMetadata
from smtgen.type_defs import FrozenDebugNames


@dataclass(frozen=True)
class FunctionRecording:
    name: str
    metadata: FunctionMetadata
    debug_names: FrozenDebugNames
    path_types: frozendict[AccessPath, str]
    assignments: Tuple[Tuple[ModelParameter, ...], ...]


def _get(data: Any, key: str, expected_type: Type | Tuple[Type, ...]) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, found {data!r}")
    if key not in data:
        raise ValueError(f"missing key '{key}' in {data!r}")
    value = data[key]
    if not isinstance(value, expected_type) or (
        isinstance(value, bool) and expected_type is int
    ):
        raise ValueError(f"unexpected value {value!r} for key '{key}'")
    return value


def _as_list(value: Any) -> List[Any]:
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON array, found {value!r}")
    return value


def encode_result(result: SmtResult) -> str:
    return result.value


def _decode_result(data: Any) -> SmtResult:
    return SmtResult(data)


def decode_result(data: Any) -> Result[SmtResult, ValueError]:
    """
    >>> decode_result("undefined")
    <Success: undefined>
    """

    return safe(exceptions=(ValueError,))(_decode_result)(data)


def encode_selector(selector: Selector) -> Dict[str, Any]:
    match selector:
        case Field(index, name):
            return {"kind": "field", "index": index, "name": name}
        case Index(value):
            return {"kind": "index", "value": value}
        case Deref():
            return {"kind": "deref"}
    raise NotImplementedError(f"Unsupported selector {selector!r}")


def _decode_selector(data: Any) -> Selector:
    match _get(data, "kind", str):
        case "field":
            return Field(_get(data, "index", int), _get(data, "name", str))
        case "index":
            return Index(_get(data, "value", int))
        case "deref":
            return Deref()
        case kind:
            raise ValueError(f"unknown selector kind '{kind}'")


def encode_path(path: AccessPath) -> Dict[str, Any]:
    """
    >>> from smtgen.access_path import parameter, qualified, Field
    >>> encode_path(qualified(parameter(1), Field(0, "a")))["selector"]
    {'kind': 'field', 'index': 0, 'name': 'a'}
    """

    match path:
        case Parameter(ordinal):
            return {"kind": "parameter", "ordinal": ordinal}
        case LocalVariable(ordinal):
            return {"kind": "local", "ordinal": ordinal}
        case Qualified(base, selector):
            return {
                "kind": "qualified",
                "base": encode_path(base),
                "selector": encode_selector(selector),
            }
    raise NotImplementedError(f"Unsupported access path {path!r}")


def _decode_path(data: Any) -> AccessPath:
    match _get(data, "kind", str):
        case "parameter":
            ordinal = _get(data, "ordinal", int)
            if ordinal < 1:
                raise ValueError(f"parameter ordinals start at 1, found {ordinal}")
            return parameter(ordinal)
        case "local":
            return local_variable(_get(data, "ordinal", int))
        case "qualified":
            return qualified(
                _decode_path(_get(data, "base", dict)),
                _decode_selector(_get(data, "selector", dict)),
            )
        case kind:
            raise ValueError(f"unknown access path kind '{kind}'")


def decode_path(data: Any) -> Result[AccessPath, ValueError]:
    """
    >>> decode_path({"kind": "parameter", "ordinal": 2})
    <Success: param_2>

    >>> decode_path({"kind": "parameter"})
    <Failure: missing key 'ordinal' in {'kind': 'parameter'}>
    """

    return safe(exceptions=(ValueError,))(_decode_path)(data)


def encode_value(value: ModelValue) -> Dict[str, Any]:
    match value:
        case BoolValue(b):
            return {"kind": "bool", "value": b}
        case NumeralValue(n):
            return {"kind": "numeral", "value": n}
        case UnknownValue():
            return {"kind": "unknown"}
    raise NotImplementedError(f"Unsupported model value {value!r}")


def _decode_value(data: Any) -> ModelValue:
    match _get(data, "kind", str):
        case "bool":
            return BoolValue(_get(data, "value", bool))
        case "numeral":
            return NumeralValue(_get(data, "value", int))
        case "unknown":
            return UnknownValue()
        case kind:
            raise ValueError(f"unknown model value kind '{kind}'")


def decode_value(data: Any) -> Result[ModelValue, ValueError]:
    return safe(exceptions=(ValueError,))(_decode_value)(data)


def encode_model_parameter(param: ModelParameter) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "name": param.name,
        "path": param.access_path.map(encode_path).value_or(None),
        "value": encode_value(param.value),
    }
    if param.debug_initializer is not None:
        result["debug_initializer"] = param.debug_initializer
    return result


def _decode_model_parameter(data: Any) -> ModelParameter:
    path_data = data.get("path") if isinstance(data, dict) else None
    debug_initializer = data.get("debug_initializer") if isinstance(data, dict) else None
    if debug_initializer is not None and not isinstance(debug_initializer, str):
        raise ValueError(f"unexpected debug initializer {debug_initializer!r}")

    return ModelParameter(
        name=_get(data, "name", str),
        access_path=Nothing if path_data is None else Some(_decode_path(path_data)),
        value=_decode_value(_get(data, "value", dict)),
        debug_initializer=debug_initializer,
    )


def decode_model_parameter(data: Any) -> Result[ModelParameter, ValueError]:
    return safe(exceptions=(ValueError,))(_decode_model_parameter)(data)


def encode_recording(recording: FunctionRecording) -> Dict[str, Any]:
    return {
        "name": recording.name,
        "argument_types": list(recording.metadata.argument_types),
        "debug_names": {
            str(ordinal): name for ordinal, name in recording.debug_names.items()
        },
        "path_types": [
            {"path": encode_path(path), "type": type_name}
            for path, type_name in recording.path_types.items()
        ],
        "assignments": [
            [encode_model_parameter(param) for param in assignment]
            for assignment in recording.assignments
        ],
    }


def _decode_recording(data: Any) -> FunctionRecording:
    argument_types = _get(data, "argument_types", list)
    if not all(isinstance(ty, str) for ty in argument_types):
        raise ValueError(f"argument types must be strings, found {argument_types!r}")

    debug_names: Dict[int, str] = {}
    for ordinal, name in _get(data, "debug_names", dict).items():
        if not ordinal.isdigit() or not isinstance(name, str):
            raise ValueError(f"unexpected debug name entry {ordinal!r}: {name!r}")
        debug_names[int(ordinal)] = name

    path_types = {
        _decode_path(_get(entry, "path", dict)): _get(entry, "type", str)
        for entry in _get(data, "path_types", list)
    }

    assignments = tuple(
        tuple(_decode_model_parameter(param) for param in _as_list(assignment))
        for assignment in _get(data, "assignments", list)
    )

    return FunctionRecording(
        name=_get(data, "name", str),
        metadata=FunctionMetadata(argument_types),
        debug_names=frozendict(debug_names),
        path_types=frozendict(path_types),
        assignments=assignments,
    )


def _load_recordings(text: str) -> List[FunctionRecording]:
    return [
        _decode_recording(function)
        for function in _get(json.loads(text), "functions", list)
    ]


def load_recordings(text: str) -> Result[List[FunctionRecording], ValueError]:
    return safe(exceptions=(ValueError,))(_load_recordings)(text)


def dump_recordings(recordings: List[FunctionRecording], pretty_print: bool = False) -> str:
    return json.dumps(
        {"functions": [encode_recording(recording) for recording in recordings]},
        indent=None if not pretty_print else 4,
    )


class RecordingsTypeContext:
    """
    Resolves path types from recordings. As the paths of different functions
    overlap, the location passed to :meth:`get_path_type` must be the name of the
    recorded function.
    """

    def __init__(self, recordings: List[FunctionRecording]):
        self.path_types: Dict[str, frozendict[AccessPath, str]] = {
            recording.name: recording.path_types for recording in recordings
        }

    def get_path_type(self, path: AccessPath, location: Any) -> Maybe[str]:
        return Maybe.from_optional(self.path_types.get(location, {}).get(path))

    def type_name(self, ty: str) -> str:
        return ty


def replay_recordings(
    recordings: List[FunctionRecording], generator: TestGenerator
) -> List[Result[TestCase, TestRecordingError]]:
    return [
        generator.add_test(
            recording.name,
            None,
            assignment,
            recording.metadata,
            recording.debug_names,
            recording.name,
        )
        for recording in recordings
        for assignment in recording.assignments
    ]

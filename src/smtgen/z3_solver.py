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

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import z3
from returns.maybe import Maybe

from smtgen.access_path import AccessPath
from smtgen.helpers import lazyjoin
from smtgen.model import ModelParameter
from smtgen.smt_solver import SmtSolver, SmtResult, SolverStub, SolverProtocolError
from smtgen.z3_helpers import get_free_constants, z3_value_to_model_value

LOGGER = logging.getLogger(__name__)


def to_smt_result(z3_result: z3.CheckSatResult) -> SmtResult:
    if z3_result == z3.sat:
        return SmtResult.SATISFIABLE
    if z3_result == z3.unsat:
        return SmtResult.UNSATISFIABLE
    return SmtResult.UNDEFINED


def accept_z3_predicate(symbolic_expression: Any) -> z3.BoolRef:
    if not z3.is_bool(symbolic_expression):
        raise TypeError(
            f"Cannot translate {symbolic_expression!r} "
            f"(type {type(symbolic_expression).__name__}) into a z3 predicate"
        )
    return symbolic_expression


class Z3Solver(SmtSolver[z3.BoolRef, Any]):
    """
    An :class:`~smtgen.smt_solver.SmtSolver` backed by z3. Verifier expressions
    are translated by the `translator` callable; by default, they must already be
    z3 Boolean expressions. Free z3 constants are associated with access paths
    through `variable_paths`; constants missing there yield model parameters
    without access path.
    """

    def __init__(
        self,
        timeout_ms: Optional[int] = None,
        translator: Callable[[Any], z3.BoolRef] = accept_z3_predicate,
        variable_paths: Optional[Mapping[str, AccessPath]] = None,
    ):
        super().__init__()
        self.timeout_ms = timeout_ms
        self.translator = translator
        self.variable_paths: Dict[str, AccessPath] = dict(variable_paths or {})

        self.solver = z3.Solver()
        self._configure()
        self.last_result: Optional[SmtResult] = None

    def _configure(self) -> None:
        if self.timeout_ms is not None:
            self.solver.set("timeout", self.timeout_ms)

    def register_variable(self, name: str, path: AccessPath) -> None:
        self.variable_paths[name] = path

    def assertions(self) -> Tuple[z3.BoolRef, ...]:
        return tuple(self.solver.assertions())

    def as_debug_string(self, expression: z3.BoolRef) -> str:
        return expression.sexpr()

    def assert_predicate(self, expression: z3.BoolRef) -> None:
        self.solver.add(expression)
        self.last_result = None

    def reset(self) -> None:
        super().reset()
        self.solver.reset()
        self._configure()
        self.last_result = None

    def backtrack(self) -> None:
        super().backtrack()
        self.solver.pop()
        self.last_result = None

    def set_backtrack_position(self) -> None:
        super().set_backtrack_position()
        self.solver.push()

    def get_as_smt_predicate(self, symbolic_expression: Any) -> z3.BoolRef:
        return self.translator(symbolic_expression)

    def invert_predicate(self, expression: z3.BoolRef) -> z3.BoolRef:
        return z3.Not(expression)

    def solve(self) -> SmtResult:
        result = to_smt_result(self.solver.check())
        if result == SmtResult.UNDEFINED:
            LOGGER.debug(
                "z3 could not decide the current context (%s)",
                self.solver.reason_unknown(),
            )
        self.last_result = result
        return result

    def _model(self) -> z3.ModelRef:
        if self.last_result != SmtResult.SATISFIABLE:
            raise SolverProtocolError(
                "a model is only available directly after a satisfiable solve(), "
                f"last result: {self.last_result}"
            )
        return self.solver.model()

    def get_model_as_string(self) -> str:
        return str(self._model())

    def get_model_params(self, symbolic_expression: Any) -> List[ModelParameter]:
        model = self._model()
        result: List[ModelParameter] = []

        for constant in get_free_constants(self.get_as_smt_predicate(symbolic_expression)):
            name = str(constant)
            value = z3_value_to_model_value(
                model.eval(constant, model_completion=True)
            )
            result.append(
                ModelParameter(
                    name=name,
                    access_path=Maybe.from_optional(self.variable_paths.get(name)),
                    value=value,
                    debug_initializer=f"{name} = {value.to_literal()}",
                )
            )

        LOGGER.debug("Model parameters: %s", lazyjoin(", ", result))
        return result

    def get_solver_state_as_string(self) -> str:
        return self.solver.sexpr()


def create_solver(backend: str = "z3", timeout_ms: Optional[int] = None) -> SmtSolver:
    if backend == "z3":
        return Z3Solver(timeout_ms=timeout_ms)
    if backend == "stub":
        return SolverStub()
    raise ValueError(f"Unknown solver backend '{backend}', expected 'z3' or 'stub'")

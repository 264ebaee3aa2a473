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

import enum
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Generic, Iterator, List, TypeVar

from smtgen.helpers import lazystr
from smtgen.model import ModelParameter

LOGGER = logging.getLogger(__name__)

MAX_BACKTRACK_DEPTH = 1000

E = TypeVar("E")
S = TypeVar("S")


class SmtResult(enum.Enum):
    """The result of using the solver to solve an expression."""

    # There is an assignment of values to the free variables for which the
    # expression is true.
    SATISFIABLE = "satisfiable"
    # There is a proof that no assignment of values to the free variables can
    # make the expression true.
    UNSATISFIABLE = "unsatisfiable"
    # The solver gave up, e.g., because it timed out. This carries no information.
    UNDEFINED = "undefined"

    def __str__(self):
        return self.value


class SolverProtocolError(RuntimeError):
    def __init__(self, msg: str, *args):
        super().__init__(msg, *args)
        self.msg = msg

    def __str__(self):
        return f"SolverProtocolError({self.msg})"


class SmtSolver(ABC, Generic[E, S]):
    """
    The functionality a solver must expose for the verifier to use it. `E` is the
    solver's native expression type, `S` the type of the verifier's symbolic
    expressions.

    Contexts form a stack: :meth:`set_backtrack_position` pushes a new context,
    :meth:`backtrack` discards it together with all predicates asserted since the
    matching push. At most :data:`MAX_BACKTRACK_DEPTH` contexts may be open at
    the same time. Implementations overriding the two methods must call the
    implementations in this class, which enforce these preconditions.
    """

    def __init__(self):
        self.__backtrack_depth = 0

    @property
    def backtrack_depth(self) -> int:
        return self.__backtrack_depth

    @abstractmethod
    def as_debug_string(self, expression: E) -> str:
        """Returns a string representation of the given expression for debugging."""
        raise NotImplementedError()

    @abstractmethod
    def assert_predicate(self, expression: E) -> None:
        """Adds the given expression to the current context."""
        raise NotImplementedError()

    def reset(self) -> None:
        """Discards all contexts and predicates."""
        self.__backtrack_depth = 0

    def backtrack(self) -> None:
        """
        Destroys the current context and restores the containing context as
        current.
        """

        if self.__backtrack_depth <= 0:
            raise SolverProtocolError("backtrack() called without an open context")
        self.__backtrack_depth -= 1

    @abstractmethod
    def get_as_smt_predicate(self, symbolic_expression: S) -> E:
        """
        Translates the verifier expression into a corresponding expression for
        the solver. Does not change the state of the solver.
        """
        raise NotImplementedError()

    @abstractmethod
    def get_model_as_string(self) -> str:
        """
        Provides a string that contains a set of variable assignments that
        satisfied the assertions in the solver. Can only be called after
        :meth:`solve` returned :attr:`SmtResult.SATISFIABLE`.
        """
        raise NotImplementedError()

    @abstractmethod
    def get_model_params(self, symbolic_expression: S) -> List[ModelParameter]:
        """
        Returns one model parameter per free variable of the given expression.
        Can only be called directly after :meth:`solve` returned
        :attr:`SmtResult.SATISFIABLE`, and while the context still holds the
        relevant assertions.
        """
        raise NotImplementedError()

    @abstractmethod
    def get_solver_state_as_string(self) -> str:
        """
        Provides a string that contains a listing of all of the definitions and
        assertions that have been added to the solver.
        """
        raise NotImplementedError()

    @abstractmethod
    def invert_predicate(self, expression: E) -> E:
        """Returns an expression that is the logical inverse of the given one."""
        raise NotImplementedError()

    def set_backtrack_position(self) -> None:
        """
        Creates a nested context. When the matching :meth:`backtrack` is called,
        the state of the solver is restored to what it was when this was called.
        """

        if self.__backtrack_depth >= MAX_BACKTRACK_DEPTH:
            raise SolverProtocolError(
                f"more than {MAX_BACKTRACK_DEPTH} nested backtrack positions"
            )
        self.__backtrack_depth += 1

    @abstractmethod
    def solve(self) -> SmtResult:
        """
        Tries to find an assignment of values to the free variables such that
        the assertions in all active contexts are true.
        """
        raise NotImplementedError()

    @contextmanager
    def backtrack_scope(self) -> Iterator["SmtSolver[E, S]"]:
        self.set_backtrack_position()
        try:
            yield self
        finally:
            self.backtrack()

    def solve_expression(self, expression: E) -> SmtResult:
        """
        Establishes if the given expression can be satisfied (or not) without
        changing the current context.
        """

        with self.backtrack_scope():
            self.assert_predicate(expression)
            result = self.solve()

        LOGGER.debug(
            "Solving %s: %s", lazystr(lambda: self.as_debug_string(expression)), result
        )
        return result


class SolverStub(SmtSolver[int, Any]):
    """
    A solver to use in configurations where no real solver is available. It
    never decides anything.
    """

    def as_debug_string(self, expression: int) -> str:
        return "not implemented"

    def assert_predicate(self, expression: int) -> None:
        pass

    def get_as_smt_predicate(self, symbolic_expression: Any) -> int:
        return 0

    def get_model_as_string(self) -> str:
        return "not implemented"

    def get_model_params(self, symbolic_expression: Any) -> List[ModelParameter]:
        return []

    def get_solver_state_as_string(self) -> str:
        return "not implemented"

    def invert_predicate(self, expression: int) -> int:
        return 0

    def solve(self) -> SmtResult:
        return SmtResult.UNDEFINED

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
The boundary between the verifier and this package: checks a condition with a
solver and, if it is satisfiable, records the satisfying assignment as a test
case.
"""

import logging
from typing import Any

from smtgen.helpers import lazystr
from smtgen.smt_solver import SmtSolver, SmtResult
from smtgen.testgen import TestGenerator
from smtgen.type_context import FunctionMetadata
from smtgen.type_defs import DebugNames, Location

LOGGER = logging.getLogger(__name__)


def check_condition(
    solver: SmtSolver,
    generator: TestGenerator,
    function_name: str,
    checked_value: Any,
    metadata: FunctionMetadata,
    debug_names: DebugNames,
    location: Location = None,
) -> SmtResult:
    """
    Decides whether `checked_value` can be true in the solver's current context.
    Only a satisfiable result is recorded as a test case; the solver's context is
    the same after the call as before.

    :param solver: The solver to use.
    :param generator: The test generator receiving satisfying assignments.
    :param function_name: The function containing the checked condition.
    :param checked_value: The verifier's symbolic expression to check.
    :param metadata: The declared argument types of the function.
    :param debug_names: Display names of the function's arguments, by ordinal.
    :param location: The source location of the condition.
    :return: The solver's result.
    """

    predicate = solver.get_as_smt_predicate(checked_value)

    with solver.backtrack_scope():
        solver.assert_predicate(predicate)
        result = solver.solve()

        match result:
            case SmtResult.SATISFIABLE:
                params = solver.get_model_params(checked_value)
                LOGGER.debug(
                    "%s in %s is satisfiable: %s",
                    lazystr(lambda: solver.as_debug_string(predicate)),
                    function_name,
                    lazystr(solver.get_model_as_string),
                )
                generator.add_test(
                    function_name,
                    checked_value,
                    params,
                    metadata,
                    debug_names,
                    location,
                )
            case SmtResult.UNSATISFIABLE:
                LOGGER.debug(
                    "%s in %s is unsatisfiable",
                    lazystr(lambda: solver.as_debug_string(predicate)),
                    function_name,
                )
            case SmtResult.UNDEFINED:
                LOGGER.warning(
                    "Satisfiability of %s in %s could not be decided",
                    lazystr(lambda: solver.as_debug_string(predicate)),
                    function_name,
                )

    return result

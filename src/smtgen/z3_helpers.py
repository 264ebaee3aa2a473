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

from typing import Dict, Generator, List, Optional, Sequence, Union

import z3

from smtgen.model import (
    ModelValue,
    BoolValue,
    NumeralValue,
    UnknownValue,
    NUMERAL_MIN,
    NUMERAL_MAX,
)


def z3_and(formulas: Sequence[z3.BoolRef]) -> z3.BoolRef:
    if not formulas:
        return z3.BoolVal(True)
    if len(formulas) == 1:
        return formulas[0]
    return z3.And(*formulas)


def is_z3_var(expr: z3.ExprRef) -> bool:
    return z3.is_const(expr) and expr.decl().kind() == z3.Z3_OP_UNINTERPRETED


def visit_z3_expr(
    e: z3.ExprRef | z3.QuantifierRef,
    seen: Optional[Dict[Union[z3.ExprRef, z3.QuantifierRef], bool]] = None,
) -> Generator[z3.ExprRef | z3.QuantifierRef, None, None]:
    if seen is None:
        seen = {}
    elif e in seen:
        return

    seen[e] = True
    yield e

    if z3.is_app(e):
        for ch in e.children():
            for e in visit_z3_expr(ch, seen):
                yield e
        return

    if z3.is_quantifier(e):
        for e in visit_z3_expr(e.body(), seen):
            yield e
        return


def get_free_constants(expr: z3.ExprRef) -> List[z3.ExprRef]:
    """
    >>> x, y = z3.Ints("x y")
    >>> get_free_constants(z3.And(y > x, x > 0, y < 10))
    [x, y]

    :param expr: The expression to collect constants from.
    :return: The uninterpreted constants in `expr`, sorted by name.
    """

    constants = {
        str(sub_expr): sub_expr for sub_expr in visit_z3_expr(expr) if is_z3_var(sub_expr)
    }
    return [constants[name] for name in sorted(constants)]


def z3_value_to_model_value(value: z3.ExprRef) -> ModelValue:
    """
    Converts a value from a z3 model into a model value. Bit-vectors are
    interpreted as signed.

    >>> z3_value_to_model_value(z3.BoolVal(False))
    BoolValue(value=False)

    >>> z3_value_to_model_value(z3.IntVal(-7))
    NumeralValue(value=-7)

    >>> z3_value_to_model_value(z3.BitVecVal(255, 8))
    NumeralValue(value=-1)

    >>> z3_value_to_model_value(z3.StringVal("abc"))
    UnknownValue()

    >>> z3_value_to_model_value(z3.IntVal(2**130))
    UnknownValue()

    :param value: A value obtained by evaluating an expression in a model.
    :return: The corresponding model value.
    """

    if z3.is_true(value):
        return BoolValue(True)
    if z3.is_false(value):
        return BoolValue(False)

    numeral: Optional[int] = None
    if z3.is_int_value(value):
        numeral = value.as_long()
    elif z3.is_bv_value(value):
        numeral = value.as_signed_long()

    if numeral is None or not NUMERAL_MIN <= numeral <= NUMERAL_MAX:
        return UnknownValue()

    return NumeralValue(numeral)

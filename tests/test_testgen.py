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

import os
import pathlib
import tempfile
import unittest

from returns.maybe import Some
from returns.result import Success, Failure

from smtgen.access_path import local_variable, parameter, qualified, Deref
from smtgen.testgen import TestGenerator, TestRecordingError
from test_data import (
    F_EXPECTED,
    G_EXPECTED,
    ONE_INT,
    ONE_PAIR,
    PAIR_A,
    PAIR_B,
    PAIR_TYPE_CONTEXT,
    TWO_INTS,
    TYPE_CONTEXT,
    numeral_param,
    pathless_param,
)


class TestTestGenerator(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.out_dir = pathlib.Path(self.tmp_dir.name) / "generated"

    def test_fresh_generator_is_empty(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        self.assertEqual({}, dict(generator.groups))
        self.assertEqual([], generator.emit())
        self.assertEqual([], os.listdir(self.out_dir))

    def test_add_test_creates_group(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        result = generator.add_test(
            "f", "cond", [numeral_param("x", parameter(1), 42)], ONE_INT, {}
        )

        self.assertIsInstance(result, Success)
        group = generator.groups["f"]
        self.assertEqual("f", group.raw_function_name)
        self.assertEqual(1, len(group.arguments))
        self.assertEqual("param_1", group.argument(1).display_name)
        self.assertEqual({}, group.argument(1).related_fields)
        self.assertEqual(["x"], list(group.param_map))

        testcase = group.test_cases[0]
        self.assertEqual("cond", testcase.checked_value)
        (resolved,) = testcase.parameters
        self.assertEqual("42", resolved.value_text)
        self.assertEqual("int", resolved.type_name)
        self.assertEqual(Some(1), resolved.parameter_ordinal)
        self.assertFalse(resolved.is_field)

    def test_function_names_are_sanitized(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test(
            "crate::geometry::area", None, [numeral_param("x", parameter(1), 1)], ONE_INT, {}
        )

        self.assertEqual(["crate_geometry_area"], list(generator.groups))
        self.assertEqual(
            "crate::geometry::area",
            generator.groups["crate_geometry_area"].raw_function_name,
        )

    def test_colliding_function_names_are_reported(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test("a.b", None, [numeral_param("x", parameter(1), 1)], ONE_INT, {})

        with self.assertLogs("smtgen.testgen", "WARNING") as logs:
            result = generator.add_test(
                "a_b", None, [numeral_param("x", parameter(1), 2)], ONE_INT, {}
            )

        self.assertIsInstance(result, Success)
        self.assertIn("a.b and a_b share the test module a_b_tests.py", logs.output[0])
        group = generator.groups["a_b"]
        self.assertEqual("a.b", group.raw_function_name)
        self.assertEqual(2, len(group.test_cases))

    def test_test_cases_keep_their_order(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        for value in [3, 1, 2]:
            generator.add_test(
                "f", None, [numeral_param("x", parameter(1), value)], ONE_INT, {}
            )

        self.assertEqual(
            ["3", "1", "2"],
            [
                testcase.parameters[0].value_text
                for testcase in generator.groups["f"].test_cases
            ],
        )

    def test_first_field_resolution_wins(self):
        generator = TestGenerator(self.out_dir, PAIR_TYPE_CONTEXT)
        generator.add_test("g", None, [numeral_param("a", PAIR_A, 1)], ONE_PAIR, {})
        generator.add_test(
            "g",
            None,
            [numeral_param("a", PAIR_A, 5), numeral_param("b", PAIR_B, 7)],
            ONE_PAIR,
            {},
        )

        group = generator.groups["g"]
        fields = group.argument(1).related_fields
        self.assertEqual(["a", "b"], list(fields))
        self.assertEqual("1", fields["a"].value_text)
        self.assertEqual("7", fields["b"].value_text)
        self.assertTrue(fields["a"].is_field)
        self.assertEqual(1, fields["a"].owning_argument_ordinal)
        self.assertEqual("1", group.param_map["a"].value_text)

    def test_direct_parameters_are_not_fields(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test(
            "f",
            None,
            [numeral_param("x", parameter(1), 1), numeral_param("a", PAIR_A, 2)],
            TWO_INTS,
            {},
        )

        group = generator.groups["f"]
        self.assertEqual(["a"], list(group.argument(1).related_fields))
        self.assertEqual({}, group.argument(2).related_fields)

    def test_parameter_without_path_is_rejected(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        with self.assertLogs("smtgen.testgen", "WARNING"):
            result = generator.add_test(
                "f",
                None,
                [numeral_param("x", parameter(1), 1), pathless_param("y", 2)],
                ONE_INT,
                {},
            )

        self.assertIsInstance(result, Failure)
        self.assertIsInstance(result.failure(), TestRecordingError)
        self.assertEqual({}, dict(generator.groups))

    def test_parameter_rooted_at_local_is_rejected(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        with self.assertLogs("smtgen.testgen", "WARNING"):
            result = generator.add_test(
                "f", None, [numeral_param("l", local_variable(1), 1)], ONE_INT, {}
            )

        self.assertIsInstance(result, Failure)
        self.assertEqual({}, dict(generator.groups))

    def test_parameter_beyond_arity_is_rejected(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        with self.assertLogs("smtgen.testgen", "WARNING"):
            result = generator.add_test(
                "f", None, [numeral_param("y", parameter(2), 1)], ONE_INT, {}
            )

        self.assertIsInstance(result, Failure)
        self.assertIn("argument 2", str(result.failure()))

    def test_unresolvable_type_is_rejected(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test("f", None, [numeral_param("x", parameter(1), 1)], ONE_INT, {})

        with self.assertLogs("smtgen.testgen", "WARNING"):
            result = generator.add_test(
                "f",
                None,
                [numeral_param("p", qualified(parameter(1), Deref()), 1)],
                ONE_INT,
                {},
            )

        self.assertIsInstance(result, Failure)
        self.assertEqual(1, len(generator.groups["f"].test_cases))

    def test_empty_assignment_is_recorded(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        result = generator.add_test("f", None, [], ONE_INT, {1: "x"})

        self.assertIsInstance(result, Success)
        self.assertEqual((), result.unwrap().parameters)

    def test_emit(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test("f", None, [numeral_param("x", parameter(1), 42)], ONE_INT, {})

        written = generator.emit()

        self.assertEqual([self.out_dir / "f_tests.py"], written)
        self.assertEqual(F_EXPECTED, written[0].read_text(encoding="utf-8"))

    def test_emit_writes_one_module_per_function(self):
        generator = TestGenerator(self.out_dir, PAIR_TYPE_CONTEXT)
        generator.add_test(
            "g", None, [numeral_param("a", PAIR_A, 1)], ONE_PAIR, {1: "pair"}
        )
        generator.add_test(
            "g",
            None,
            [numeral_param("a", PAIR_A, 5), numeral_param("b", PAIR_B, 7)],
            ONE_PAIR,
            {1: "pair"},
        )
        generator.add_test("b", None, [], ONE_PAIR, {})
        generator.add_test("a", None, [], ONE_PAIR, {})

        written = generator.emit()

        self.assertEqual(
            ["a_tests.py", "b_tests.py", "g_tests.py"], [path.name for path in written]
        )
        self.assertEqual(G_EXPECTED, (self.out_dir / "g_tests.py").read_text())

    def test_emit_is_deterministic(self):
        def run(out_dir: pathlib.Path) -> bytes:
            generator = TestGenerator(out_dir, PAIR_TYPE_CONTEXT)
            generator.add_test(
                "g",
                None,
                [numeral_param("b", PAIR_B, 2), numeral_param("a", PAIR_A, 1)],
                ONE_PAIR,
                {1: "pair"},
            )
            (path,) = generator.emit()
            return path.read_bytes()

        self.assertEqual(
            run(self.out_dir / "first"), run(self.out_dir / "second")
        )

    def test_emit_continues_after_write_failure(self):
        generator = TestGenerator(self.out_dir, TYPE_CONTEXT)
        generator.add_test("f", None, [numeral_param("x", parameter(1), 1)], ONE_INT, {})
        generator.add_test("h", None, [numeral_param("x", parameter(1), 2)], ONE_INT, {})

        # A directory in place of the first module makes writing it fail.
        (self.out_dir / "f_tests.py").mkdir(parents=True)

        with self.assertLogs("smtgen.testgen", "ERROR"):
            written = generator.emit()

        self.assertEqual([self.out_dir / "h_tests.py"], written)
        self.assertTrue((self.out_dir / "h_tests.py").is_file())


if __name__ == "__main__":
    unittest.main()

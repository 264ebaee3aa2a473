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

import io
import json
import os
import tempfile
import unittest
from tempfile import NamedTemporaryFile
from typing import Tuple

from smtgen import __version__ as smtgen_version
from smtgen import cli
from smtgen.cli import DATA_FORMAT_ERROR, USAGE_ERROR
from test_data import G_EXPECTED
from test_serialization import G_RECORDINGS


def run_smtgen(*args) -> Tuple[str, str, int]:
    stdout, stderr = io.StringIO(), io.StringIO()
    try:
        cli.main(*[str(arg) for arg in args], stdout=stdout, stderr=stderr)
        code = 0
    except SystemExit as sys_exit:
        code = sys_exit.code

    return stdout.getvalue().strip(), stderr.getvalue().strip(), code


def write_input_file(content: str, suffix: str) -> NamedTemporaryFile:
    input_file = NamedTemporaryFile(suffix=suffix)
    input_file.write(content.strip().encode("utf-8"))
    input_file.seek(0)
    return input_file


class TestCli(unittest.TestCase):
    def test_version(self):
        stdout, stderr, code = run_smtgen("-v")
        self.assertFalse(code)
        self.assertFalse(stderr)
        self.assertEqual(smtgen_version, stdout.split(" ")[-1].strip())

    def test_no_command(self):
        stdout, stderr, code = run_smtgen()
        self.assertEqual(USAGE_ERROR, code)
        self.assertFalse(stdout)
        self.assertIn("generate", stderr)

    def test_generate(self):
        recordings_file = write_input_file(json.dumps(G_RECORDINGS), ".json")

        with tempfile.TemporaryDirectory() as out_dir:
            stdout, stderr, code = run_smtgen(
                "generate", recordings_file.name, "-d", out_dir
            )

            self.assertFalse(code)
            self.assertFalse(stderr)
            self.assertEqual(os.path.join(out_dir, "g_tests.py"), stdout)
            with open(stdout) as generated:
                self.assertEqual(G_EXPECTED, generated.read())

        recordings_file.close()

    def test_generate_reports_unrecordable_assignments(self):
        recordings = {
            "functions": [
                {
                    "name": "f",
                    "argument_types": ["int"],
                    "debug_names": {},
                    "path_types": [],
                    "assignments": [
                        [
                            {
                                "name": "x",
                                "path": {"kind": "parameter", "ordinal": 1},
                                "value": {"kind": "numeral", "value": 1},
                            }
                        ]
                    ],
                }
            ]
        }
        recordings_file = write_input_file(json.dumps(recordings), ".json")

        with tempfile.TemporaryDirectory() as out_dir:
            stdout, stderr, code = run_smtgen(
                "generate", recordings_file.name, "-d", out_dir
            )

            self.assertFalse(code)
            self.assertFalse(stdout)
            self.assertIn("1 of 1 assignment(s) could not be recorded", stderr)
            self.assertEqual([], os.listdir(out_dir))

        recordings_file.close()

    def test_generate_malformed_recordings(self):
        recordings_file = write_input_file('{"functions": 17}', ".json")

        stdout, stderr, code = run_smtgen("generate", recordings_file.name)

        self.assertEqual(DATA_FORMAT_ERROR, code)
        self.assertFalse(stdout)
        self.assertIn("could not read recordings", stderr)

        recordings_file.close()

    def test_check_sat_with_model(self):
        smt_file = write_input_file(
            """
(declare-const x Int)
(assert (> x 41))
(assert (< x 43))""",
            ".smt2",
        )

        stdout, stderr, code = run_smtgen("check", smt_file.name, "--model")

        self.assertFalse(code)
        self.assertFalse(stderr)
        self.assertEqual(["sat", "[x = 42]"], stdout.split("\n"))

        smt_file.close()

    def test_check_unsat(self):
        smt_file = write_input_file(
            """
(declare-const x Int)
(assert (> x 0))
(assert (< x 0))""",
            ".smt2",
        )

        stdout, stderr, code = run_smtgen("check", smt_file.name, "-m", "-t", 1000)

        self.assertFalse(code)
        self.assertEqual("unsat", stdout)

        smt_file.close()

    def test_check_stub_backend(self):
        smt_file = write_input_file("(assert true)", ".smt2")

        stdout, stderr, code = run_smtgen("check", smt_file.name, "-b", "stub")

        self.assertFalse(code)
        self.assertEqual("unknown", stdout)

        smt_file.close()

    def test_check_parse_error(self):
        smt_file = write_input_file("(assert (> y 0))", ".smt2")

        stdout, stderr, code = run_smtgen("check", smt_file.name)

        self.assertEqual(DATA_FORMAT_ERROR, code)
        self.assertFalse(stdout)
        self.assertIn("could not parse", stderr)

        smt_file.close()


if __name__ == "__main__":
    unittest.main()

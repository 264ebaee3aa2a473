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

import argparse
import logging
import sys
from argparse import ArgumentParser, Namespace
from contextlib import redirect_stdout, redirect_stderr

import z3
from returns.result import Success, Failure

from smtgen import __version__ as smtgen_version
from smtgen.config import get_default
from smtgen.serialization import (
    load_recordings,
    replay_recordings,
    RecordingsTypeContext,
)
from smtgen.smt_solver import SmtResult
from smtgen.testgen import TestGenerator
from smtgen.z3_solver import create_solver

# Exit Codes
USAGE_ERROR = 2
DATA_FORMAT_ERROR = 65

SMT_LIB_RESULTS = {
    SmtResult.SATISFIABLE: "sat",
    SmtResult.UNSATISFIABLE: "unsat",
    SmtResult.UNDEFINED: "unknown",
}


def main(*args: str, stdout=sys.stdout, stderr=sys.stderr):
    parser = create_parsers(stdout, stderr)

    with redirect_stdout(stdout):
        with redirect_stderr(stderr):
            args = parser.parse_args(args or sys.argv[1:])

    if not args.command and not args.version:
        parser.print_usage(file=stderr)
        print(
            "smtgen: error: You have to choose a global option or one of the "
            + "commands `generate` or `check`",
            file=stderr,
        )
        sys.exit(USAGE_ERROR)

    if args.version:
        print(f"smtgen version {smtgen_version}", file=stdout)
        sys.exit(0)

    level_mapping = {
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }

    logging.basicConfig(stream=stderr, level=level_mapping[args.log_level])

    args.func(args)


def generate(stdout, stderr, parser: ArgumentParser, args: Namespace):
    command = args.command

    with args.file as recordings_file:
        text = recordings_file.read()

    match load_recordings(text):
        case Success(recordings):
            pass
        case Failure(error):
            print(
                f"smtgen {command}: error: could not read recordings from "
                + f"{args.file.name} ({error})",
                file=stderr,
            )
            sys.exit(DATA_FORMAT_ERROR)

    generator = TestGenerator(args.output_dir, RecordingsTypeContext(recordings))
    results = replay_recordings(recordings, generator)
    num_failures = sum(1 for result in results if isinstance(result, Failure))
    if num_failures:
        print(
            f"smtgen {command}: warning: {num_failures} of {len(results)} "
            + "assignment(s) could not be recorded",
            file=stderr,
        )

    for path in generator.emit():
        print(path, file=stdout)


def check(stdout, stderr, parser: ArgumentParser, args: Namespace):
    command = args.command

    with args.file as smt_file:
        text = smt_file.read()

    try:
        formulas = list(z3.parse_smt2_string(text))
    except z3.Z3Exception as exc:
        print(
            f"smtgen {command}: error: could not parse {args.file.name} ({exc})",
            file=stderr,
        )
        sys.exit(DATA_FORMAT_ERROR)

    timeout_ms = args.timeout_ms if args.timeout_ms > 0 else None
    solver = create_solver(args.backend, timeout_ms)
    for formula in formulas:
        solver.assert_predicate(solver.get_as_smt_predicate(formula))

    result = solver.solve()
    print(SMT_LIB_RESULTS[result], file=stdout)

    if args.model and result == SmtResult.SATISFIABLE:
        print(solver.get_model_as_string(), file=stdout)


def create_parsers(stdout, stderr):
    parser = argparse.ArgumentParser(
        prog="smtgen",
        description="""
The smtgen command line interface.""",
    )

    parser.add_argument(
        "-v", "--version", help="Print the smtgen version number", action="store_true"
    )

    subparsers = parser.add_subparsers(title="Commands", dest="command", required=False)

    create_generate_parser(subparsers, stdout, stderr)
    create_check_parser(subparsers, stdout, stderr)

    return parser


def create_generate_parser(subparsers, stdout, stderr):
    parser = subparsers.add_parser(
        "generate",
        help="write test modules for recorded satisfying assignments",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="""
Replay satisfying assignments recorded in a JSON file and write one test module per
function into the output directory.""",
    )
    parser.set_defaults(func=lambda *args: generate(stdout, stderr, parser, *args))

    parser.add_argument(
        "file",
        type=argparse.FileType("r", encoding="UTF-8"),
        help="a JSON file with recorded satisfying assignments",
    )

    output_dir_arg(parser)
    log_level_arg(parser)


def create_check_parser(subparsers, stdout, stderr):
    parser = subparsers.add_parser(
        "check",
        help="decide the satisfiability of an SMT-LIB 2 file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        description="""
Assert the formulas of an SMT-LIB 2 file and print `sat`, `unsat`, or `unknown`.""",
    )
    parser.set_defaults(func=lambda *args: check(stdout, stderr, parser, *args))

    parser.add_argument(
        "file",
        type=argparse.FileType("r", encoding="UTF-8"),
        help="an SMT-LIB 2 file",
    )

    parser.add_argument(
        "-b",
        "--backend",
        choices=["z3", "stub"],
        default=get_default(sys.stderr, "check", "--backend").value_or("z3"),
        help="the solver backend to use",
    )

    parser.add_argument(
        "-t",
        "--timeout-ms",
        type=int,
        default=get_default(sys.stderr, "check", "--timeout-ms").value_or(-1),
        help="""
The number of milliseconds after which the solver gives up. Non-positive numbers
imply that no timeout is set""",
    )

    parser.add_argument(
        "-m",
        "--model",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="print a model if the formulas are satisfiable",
    )

    log_level_arg(parser)


def log_level_arg(parser):
    command = parser.prog.split(" ")[-1]

    parser.add_argument(
        "-l",
        "--log-level",
        choices=["ERROR", "WARNING", "INFO", "DEBUG"],
        default=get_default(sys.stderr, command, "--log-level").value_or("WARNING"),
        help="set the logging level",
    )


def output_dir_arg(parser: ArgumentParser):
    command = parser.prog.split(" ")[-1]

    parser.add_argument(
        "-d",
        "--output-dir",
        default=get_default(sys.stderr, command, "--output-dir").value_or(
            "generated_tests"
        ),
        help="a directory into which to place the generated test modules",
    )


if __name__ == "__main__":
    main()

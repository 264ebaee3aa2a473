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
import sys
from functools import lru_cache
from typing import Any, Dict, List

import toml
from returns.maybe import Maybe

from smtgen.helpers import get_smtgen_resource_file_content

RC_FILE_NAME = ".smtgenrc"

OptionValue = str | int | float | bool


def rc_file_candidates() -> List[pathlib.Path]:
    return [
        pathlib.Path(directory) / RC_FILE_NAME
        for directory in (os.getcwd(), pathlib.Path.home())
    ]


def validate_rc_defaults(defaults: Any) -> Dict[str, Dict[str, OptionValue]]:
    """
    Flattens the `defaults` table of one configuration source, where each
    command maps to an array holding exactly one table of options.

    >>> validate_rc_defaults({"check": [{"--backend": "stub"}]})
    {'check': {'--backend': 'stub'}}

    >>> validate_rc_defaults({"check": {"--backend": "stub"}})
    Traceback (most recent call last):
    ...
    RuntimeError: Unexpected .smtgenrc format for 'check': expected [[defaults.check]] holding scalar options

    :param defaults: The parsed `defaults` table.
    :return: Option values per command.
    """

    if not isinstance(defaults, dict):
        raise RuntimeError(f"Unexpected {RC_FILE_NAME} format: no [defaults] table")

    result: Dict[str, Dict[str, OptionValue]] = {}
    for command, tables in defaults.items():
        match tables:
            case [dict(options)] if all(
                isinstance(value, (str, int, float, bool)) for value in options.values()
            ):
                result[command] = dict(options)
            case _:
                raise RuntimeError(
                    f"Unexpected {RC_FILE_NAME} format for '{command}': "
                    f"expected [[defaults.{command}]] holding scalar options"
                )

    return result


@lru_cache
def read_smtgen_rc_defaults(
    content: Maybe[str] = Maybe.empty,
) -> Dict[str, Dict[str, OptionValue]]:
    """
    Merges the command line defaults of all configuration sources. An option
    set by an earlier source wins over the same option in a later one. The
    sources are the `content` string, `./.smtgenrc`, `~/.smtgenrc`, and the
    `.smtgenrc` shipped with smtgen.

    >>> read_smtgen_rc_defaults(Maybe.from_value(
    ...     '[[defaults.generate]]\\n"--output-dir" = "out"'))["generate"]["--output-dir"]
    'out'

    :param content: TOML text taking precedence over all files.
    :return: Option values per command; "default" applies to every command.
    """

    sources: List[str] = []
    content.map(sources.append)
    sources.extend(path.read_text() for path in rc_file_candidates() if path.exists())
    sources.append(get_smtgen_resource_file_content(f"resources/{RC_FILE_NAME}"))

    result: Dict[str, Dict[str, OptionValue]] = {}
    for source in sources:
        defaults = validate_rc_defaults(toml.loads(source).get("defaults", {}))
        for command, options in defaults.items():
            for option, value in options.items():
                result.setdefault(command, {}).setdefault(option, value)

    return result


def get_default(
    stderr, command: str, argument: str, content: Maybe[str] = Maybe.empty
) -> Maybe[OptionValue]:
    try:
        config = read_smtgen_rc_defaults(content)
    except (RuntimeError, toml.TomlDecodeError) as err:
        print(
            f"smtgen {command}: error: could not load {RC_FILE_NAME} ({err})",
            file=stderr,
        )
        sys.exit(1)

    default = config.get("default", {}).get(argument, None)
    return Maybe.from_optional(config.get(command, {}).get(argument, default))

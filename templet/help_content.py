from __future__ import annotations

import textwrap
from typing import Any


HELP_TOPICS: tuple[str, ...] = ("syntax", "paths", "errors", "config")


def help_topics_text() -> dict[str, str]:
    return {
        "syntax": textwrap.dedent(
            r"""
            Template syntax reference

            Placeholders:
            - ${path} is replaced by a string or number found at path
            - other values (missing, null, lists, objects) leave ${path} as is
            - \${path} is kept literally and the backslash is dropped

            Conditionals:
            ${#if [!]path}...${#end if}
            ${#if [!]path OP operand}...${#end if}
            - OP: <, >, <=, >=, ===, ==, !==, !=
            - operand: null, undefined, true, false, 'text', "text", `text`,
              a number, or another path
            - === and == compare lists and objects by identity, not contents

            Iteration:
            ${#each path as value}...${#end each}
            ${#each path as key to value}...${#end each}
            - lists are paired by index, objects by key
            - an object with a numeric "length" key is paired by index 0..length-1

            Escaping:
            \${#if x} is kept literally, like an escaped placeholder.
            """
        ).strip(),
        "paths": textwrap.dedent(
            """
            Path reference

            - dots separate keys: user.address.city
            - brackets index lists or quote keys: items[0], data['first name']
            - lists and strings expose length: items.length
            - a missing step makes the whole path undefined
            """
        ).strip(),
        "errors": textwrap.dedent(
            """
            Error codes

            TPL_001 unknown branch kind in an open marker
            TPL_002 close marker does not match the open branch
            TPL_003 branch left open when rendering
            TPL_004 unsupported comparison operator
            TPL_005 malformed if/each marker
            TPL_006 data fails --schema validation
            TPL_007 template or data input cannot be read
            TPL_999 unexpected error
            """
        ).strip(),
        "config": textwrap.dedent(
            """
            Runtime config

            Files (later overrides earlier):
            ~/.config/templet/config.yaml
            ./.templet.yaml

            Supported keys:
            io.encoding
            io.data_format (auto, json, yaml)
            templates.search_paths

            Environment:
            TEMPLET_PATH (extra template directories, searched first)
            TEMPLET_NO_CONFIG_AUTOLOAD=1
            """
        ).strip(),
    }


def help_topics_json() -> dict[str, Any]:
    return {
        "syntax": {
            "placeholder": "${path}",
            "escape": "\\${path}",
            "if": ["${#if [!]path}", "${#if [!]path OP operand}", "${#end if}"],
            "each": ["${#each path as value}", "${#each path as key to value}", "${#end each}"],
            "operators": ["<", ">", "<=", ">=", "===", "==", "!==", "!="],
            "operand_literals": ["null", "undefined", "true", "false", "quoted string", "number"],
        },
        "paths": {
            "forms": ["a.b", "a[0]", "a['key']", 'a["key"]', "a.length"],
            "missing": "undefined",
        },
        "errors": {
            "TPL_001": "UnknownBranchError",
            "TPL_002": "MismatchedCloseError",
            "TPL_003": "UnclosedBranchError",
            "TPL_004": "UnsupportedOperatorError",
            "TPL_005": "MarkerSyntaxError",
            "TPL_006": "ContextSchemaError",
            "TPL_007": "InputError",
            "TPL_999": "UnexpectedError",
        },
        "config": {
            "paths": ["~/.config/templet/config.yaml", "./.templet.yaml"],
            "keys": ["io.encoding", "io.data_format", "templates.search_paths"],
            "env": ["TEMPLET_PATH", "TEMPLET_NO_CONFIG_AUTOLOAD"],
        },
    }

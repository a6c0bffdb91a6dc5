from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import textwrap
from pathlib import Path
from typing import Any

import yaml

from templet.config import get_runtime_config, load_runtime_config, resolve_template_path
from templet.errors import TempletError, make_error
from templet.help_content import HELP_TOPICS, help_topics_json, help_topics_text
from templet.template import compile_template
from templet.templating import MARKER_PATTERN, tokenise
from templet.validation import validate_context


LOGGER = logging.getLogger(__name__)


class _HelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter):
    pass


def _input_error(message: str, **details: Any) -> TempletError:
    return make_error(
        error_code="TPL_007",
        error_type="InputError",
        message=message,
        details=details,
        recovery_hint="Check the path and that the file holds valid JSON/YAML.",
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding=get_runtime_config().encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise _input_error(f"Could not read {path}.", path=str(path), reason=str(exc))


def _parse_document(text: str, path: Path) -> Any:
    data_format = get_runtime_config().data_format
    if data_format == "auto":
        data_format = "yaml" if path.suffix.lower() in {".yaml", ".yml"} else "json"
    try:
        if data_format == "yaml":
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise _input_error(f"Invalid {data_format} in {path}.", path=str(path), reason=str(exc))


def _load_data(args: argparse.Namespace) -> Any:
    if args.data_file:
        p = Path(args.data_file)
        return _parse_document(_read_text(p), p)
    if args.data:
        try:
            return json.loads(args.data)
        except json.JSONDecodeError as exc:
            raise _input_error("--data must be valid JSON.", reason=str(exc))
    return {}


def _load_template(args: argparse.Namespace) -> tuple[Path, str]:
    path = resolve_template_path(args.template)
    return path, _read_text(path)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=True))


def cmd_render(args: argparse.Namespace) -> int:
    path, source = _load_template(args)
    data = _load_data(args)
    if args.schema:
        schema_path = Path(args.schema)
        schema = _parse_document(_read_text(schema_path), schema_path)
        if not isinstance(schema, dict):
            raise _input_error("Schema file must contain an object.", path=str(schema_path))
        validate_context(instance=data, schema=schema)
    rendered = compile_template(source).render(data)
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(rendered, encoding=get_runtime_config().encoding)
        LOGGER.info("Rendered %s to %s", path, out)
        return 0
    sys.stdout.write(rendered)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    path, source = _load_template(args)
    template = compile_template(source)
    result = {
        "ok": template.is_closed,
        "path": str(path),
        "open_kinds": list(template.open_kinds),
        "branches": {"if": template.count("if"), "each": template.count("each")},
    }
    _print_json(result)
    return 0 if template.is_closed else 1


def cmd_inspect(args: argparse.Namespace) -> int:
    path, source = _load_template(args)
    template = compile_template(source)
    _print_json({"path": str(path), "closed": template.is_closed, "tree": template.to_dict()})
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    _path, source = _load_template(args)
    _print_json(tokenise(source, MARKER_PATTERN))
    return 0


def cmd_help(args: argparse.Namespace) -> int:
    topic = args.topic
    if args.format == "json":
        _print_json({"topic": topic, "content": help_topics_json()[topic]})
        return 0
    print(help_topics_text()[topic])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="templet",
        description="Compile and render templates with ${#if} and ${#each} markers.",
        formatter_class=_HelpFormatter,
        epilog=textwrap.dedent(
            """
            Quick start:
              templet check page.tpl
              templet render page.tpl --data '{"items": [{"name": "A"}]}'

            Syntax help:
              templet help syntax --format text
            """
        ),
    )
    parser.add_argument(
        "--no-config-autoload",
        action="store_true",
        help="Disable automatic loading of config files.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log diagnostics to stderr")
    sub = parser.add_subparsers(
        dest="command",
        required=True,
        metavar="{render,check,inspect,tokens,help}",
    )

    r_p = sub.add_parser(
        "render",
        help="Render a template with data",
        description="Compile a template and render it against a JSON/YAML data context.",
        formatter_class=_HelpFormatter,
    )
    r_p.add_argument("template", metavar="TEMPLATE", help="Template path or name on the search path")
    r_p.add_argument("--data", metavar="JSON", help="Inline JSON data context")
    r_p.add_argument("--data-file", metavar="PATH", help="JSON/YAML data file")
    r_p.add_argument("--schema", metavar="PATH", help="JSON Schema the data must satisfy")
    r_p.add_argument("--output", metavar="PATH", help="Write output here instead of stdout")
    r_p.set_defaults(func=cmd_render)

    c_p = sub.add_parser(
        "check",
        help="Check that a template compiles and is closed",
        description="Compile a template and report open branches and branch counts.",
        formatter_class=_HelpFormatter,
    )
    c_p.add_argument("template", metavar="TEMPLATE", help="Template path or name on the search path")
    c_p.set_defaults(func=cmd_check)

    i_p = sub.add_parser(
        "inspect",
        help="Print the compiled branch tree",
        description="Print the compiled tree of text, if and each branches as JSON.",
        formatter_class=_HelpFormatter,
    )
    i_p.add_argument("template", metavar="TEMPLATE", help="Template path or name on the search path")
    i_p.set_defaults(func=cmd_inspect)

    t_p = sub.add_parser(
        "tokens",
        help="Print tokenizer fragments",
        description="Print the literal and marker fragments a template splits into.",
        formatter_class=_HelpFormatter,
    )
    t_p.add_argument("template", metavar="TEMPLATE", help="Template path or name on the search path")
    t_p.set_defaults(func=cmd_tokens)

    h_p = sub.add_parser(
        "help",
        help="Show template authoring help topics",
        description="Show detailed help for writing templates.",
        formatter_class=_HelpFormatter,
    )
    h_p.add_argument("topic", choices=list(HELP_TOPICS), metavar="TOPIC", help="Help topic to print")
    h_p.add_argument(
        "--format",
        choices=["text", "json"],
        default="json",
        help="Output format for help topic",
    )
    h_p.set_defaults(func=cmd_help)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        if args.command == "help":
            return int(args.func(args))
        autoload = not args.no_config_autoload and os.environ.get("TEMPLET_NO_CONFIG_AUTOLOAD") != "1"
        load_runtime_config(autoload=autoload)
        return int(args.func(args))
    except TempletError as exc:
        _print_json(exc.payload.to_dict())
        return 1
    except Exception as exc:
        payload = {
            "error_code": "TPL_999",
            "error_type": type(exc).__name__,
            "message": str(exc),
            "details": {},
            "received_payload": None,
            "recovery_hint": "Rerun with --verbose or check the template and data inputs.",
            "doc_ref": "docs/errors.md#TPL_999",
        }
        _print_json(payload)
        return 1


if __name__ == "__main__":
    sys.exit(main())

# src/sqlcompose/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from . import dialects
from .config import get_config, load_builder_config, set_config
from .errors import ExitCode, InvalidInput, SqlComposeError, problem_to_dict
from .expr import StrQ
from .query import Query, render_debug
from .tokenizer import tokenize

logger = logging.getLogger("sqlcompose.cli")


# =============================================================================
# Helpers: input + formatting
# =============================================================================

def _print_payload(payload: Dict[str, Any], fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True, default=str))
    elif fmt == "jsonl":
        print(json.dumps(payload, ensure_ascii=False, sort_keys=True, default=str))
    else:
        # "text": caller prints human-friendly output
        pass


def _read_sql(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _load_args(args: argparse.Namespace) -> Any:
    """Argument source from --args (JSON text) or --args-file (YAML or JSON)."""
    if args.args is not None and args.args_file is not None:
        raise InvalidInput(
            "--args and --args-file are mutually exclusive",
            remediation="Pass arguments inline or from a file, not both.",
        )

    if args.args is not None:
        try:
            return json.loads(args.args)
        except ValueError as e:
            raise InvalidInput(
                "Failed to parse --args as JSON",
                details={"error": repr(e)},
                remediation="Pass a JSON array for $N placeholders or a JSON object for :name placeholders.",
                cause=e,
            )

    if args.args_file is not None:
        p = Path(args.args_file)
        if not p.exists():
            raise InvalidInput(
                f"Arguments file not found: {args.args_file}",
                details={"path": args.args_file},
                remediation="Verify the path is correct and the file exists.",
            )
        try:
            return yaml.safe_load(p.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise InvalidInput(
                f"Failed to parse arguments file: {args.args_file}",
                details={"path": args.args_file, "error": repr(e)},
                remediation="Ensure the file is valid YAML or JSON encoded in UTF-8.",
                cause=e,
            )

    return None


def _check_source_shape(source: Any) -> None:
    if source is None or isinstance(source, (list, dict)):
        return
    raise InvalidInput(
        f"Arguments must be a list or an object, got {type(source).__name__}",
        details={"type": type(source).__name__},
        remediation="Use a list for $N placeholders or an object for :name placeholders.",
    )


# =============================================================================
# Commands
# =============================================================================

def cmd_render(args: argparse.Namespace) -> int:
    cfg = get_config()
    dialect = args.dialect or cfg.dialect
    check_unused = cfg.check_unused and not args.no_check_unused
    try:
        dialects.get(dialect)
    except KeyError as e:
        raise InvalidInput(
            f"Unknown dialect: {dialect}",
            details={"dialect": dialect, "available": sorted(dialects.available())},
            remediation="Run `sqlcompose dialects` to list registered dialects.",
            cause=e,
        )

    sql = _read_sql(args.sql)
    source = _load_args(args)
    _check_source_shape(source)

    query = Query()
    query.append(StrQ(sql, source, check_unused=check_unused))
    text, out_args = query.reify(dialect)
    logger.debug("rendered %d chars with %d argument(s) for %s", len(text), len(out_args), dialect)

    if args.format in ("json", "jsonl"):
        _print_payload({"ok": True, "dialect": dialect, "sql": text, "args": out_args}, args.format)
    elif args.debug:
        print(render_debug(text, out_args))
    else:
        print(text)
        print(json.dumps(out_args, ensure_ascii=False, default=str))
    return 0


def cmd_tokenize(args: argparse.Namespace) -> int:
    sql = _read_sql(args.sql)
    tokens = tokenize(sql)
    rows = [
        {
            "kind": t.kind.value,
            "start": t.start,
            "end": t.end,
            "value": t.value,
            "text": t.text(sql),
        }
        for t in tokens
    ]

    if args.format in ("json", "jsonl"):
        _print_payload({"ok": True, "tokens": rows}, args.format)
    else:
        for r in rows:
            value = "" if r["value"] is None else f" value={r['value']!r}"
            print(f"{r['kind']:<20} {r['start']:>5}:{r['end']:<5}{value} {r['text']!r}")
    return 0


def cmd_dialects(args: argparse.Namespace) -> int:
    default = get_config().dialect
    rows = [
        {
            "name": name,
            "paramstyle": d.paramstyle,
            "example": d.marker(1),
            "default": name == default,
        }
        for name, d in sorted(dialects.available().items())
    ]

    if args.format in ("json", "jsonl"):
        _print_payload({"ok": True, "dialects": rows}, args.format)
    else:
        for r in rows:
            mark = " (default)" if r["default"] else ""
            print(f"{r['name']:<10} {r['paramstyle']:<15} {r['example']}{mark}")
    return 0


# =============================================================================
# Parser + entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--format", choices=["text", "json", "jsonl"], default="text")
    common.add_argument("--config", default=None, help="YAML/JSON builder config")
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")

    parser = argparse.ArgumentParser(
        prog="sqlcompose",
        description="Render SQL templates with $N / :name placeholders into parameterized queries.",
    )
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("render", parents=[common], help="Substitute arguments and print SQL plus args")
    p.add_argument("sql", help="SQL text, or '-' to read stdin")
    p.add_argument("--args", default=None, help="JSON array (for $N) or object (for :name)")
    p.add_argument("--args-file", default=None, help="YAML/JSON file holding the arguments")
    p.add_argument("--dialect", default=None, help="Marker dialect (see `sqlcompose dialects`)")
    p.add_argument("--no-check-unused", action="store_true", help="Allow arguments the SQL never references")
    p.add_argument("--debug", action="store_true", help="Print SQL followed by inline argument literals")
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("tokenize", parents=[common], help="Print the token spans of SQL text")
    p.add_argument("sql", help="SQL text, or '-' to read stdin")
    p.set_defaults(func=cmd_tokenize)

    p = sub.add_parser("dialects", parents=[common], help="List registered marker dialects")
    p.set_defaults(func=cmd_dialects)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point used by the console script."""
    return _main(argv)


def _main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "cmd", None):
        parser.print_help()
        return 2

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    fmt = getattr(args, "format", "text")
    previous = None
    try:
        if args.config:
            previous = set_config(load_builder_config(args.config))
            logger.debug("loaded config from %s", args.config)
        return int(args.func(args))
    except SqlComposeError as e:
        payload = {"ok": False, "error": problem_to_dict(e.problem), "exit_code": int(e.exit_code)}
        if fmt in ("json", "jsonl"):
            _print_payload(payload, fmt)
        else:
            err = payload["error"]
            print(f"ERROR[{err.get('code', 'SQLC_ERROR')}]: {err.get('message')}", file=sys.stderr)
            if err.get("remediation"):
                print(f"REMEDIATION: {err['remediation']}", file=sys.stderr)
            print(f"DETAILS: {err.get('details', {})}", file=sys.stderr)
        return int(e.exit_code)
    except Exception as e:
        logger.debug("unexpected error", exc_info=True)
        payload = {
            "ok": False,
            "error": {
                "code": "SQLC_INTERNAL_ERROR",
                "category": "internal",
                "message": "Unexpected error",
                "details": {"error": repr(e)},
            },
            "exit_code": int(ExitCode.INTERNAL_ERROR),
        }
        if fmt in ("json", "jsonl"):
            _print_payload(payload, fmt)
        else:
            print(f"ERROR[SQLC_INTERNAL_ERROR]: {e!r}", file=sys.stderr)
        return int(ExitCode.INTERNAL_ERROR)
    finally:
        if previous is not None:
            set_config(previous)


if __name__ == "__main__":
    raise SystemExit(main())

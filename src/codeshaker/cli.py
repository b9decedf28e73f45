#!/usr/bin/env python3
"""
CLI entrypoint for codeshaker

Subcommands:
  - shake:  shake an ESTree JSON module down to the requested exports
  - init:   write an example codeshaker.yaml
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="codeshaker", description="Tree-shake ESTree modules")
    sub = parser.add_subparsers(dest="cmd")

    p_shake = sub.add_parser("shake", help="Remove everything the requested exports do not need")
    p_shake.add_argument("input", help="ESTree JSON file ('-' for stdin)")
    p_shake.add_argument(
        "--only",
        default="",
        help="Comma separated exports to keep ('*' keeps all, 'side-effect' keeps side-effect imports); empty removes everything",
    )
    p_shake.add_argument("--config", default=None, help="Path to configuration (YAML or pyproject.toml)")
    p_shake.add_argument("--filename", default=None, help="Module filename used for feature globs (default: input path)")
    p_shake.add_argument(
        "--if-unknown-export",
        choices=["error", "ignore", "reexport-all", "skip-shaking"],
        default=None,
        help="Override the configured policy for unknown exports",
    )
    p_shake.add_argument("--keep-side-effects", action="store_true", help="Keep every side-effect import")
    p_shake.add_argument("--output", "-o", default=None, help="Write shaken ESTree JSON here (default: stdout)")
    p_shake.add_argument("--summary", default=None, help="Write the import/export summary JSON here")
    p_shake.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    p_init = sub.add_parser("init", help="Generate configuration (codeshaker.yaml)")
    p_init.add_argument("--output", default="codeshaker.yaml", help="Where to write the configuration")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing file")

    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        sys.exit(0)

    if args.cmd == "init":
        from .config_loader import save_example_config

        try:
            path = save_example_config(Path(args.output), force=args.force)
        except FileExistsError as e:
            print(f"{e} (use --force to overwrite)", file=sys.stderr)
            sys.exit(2)
        print(f"Wrote {path}")
        return

    if args.cmd == "shake":
        sys.exit(_shake(args))


def _shake(args: argparse.Namespace) -> int:
    # Lazy imports keep `codeshaker init` fast
    from pydantic import ValidationError

    from .config_loader import load_config
    from .errors import UnknownExportError
    from .shaker import ShakeSession

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if args.if_unknown_export:
        config.if_unknown_export = args.if_unknown_export
    if args.keep_side_effects:
        config.keep_side_effects = True

    try:
        if args.input == "-":
            data = json.load(sys.stdin)
        else:
            with open(args.input, "r", encoding="utf-8") as f:
                data = json.load(f)
    except OSError as e:
        print(f"Cannot read {args.input}: {e}", file=sys.stderr)
        return 2
    except json.JSONDecodeError as e:
        print(f"{args.input} is not valid JSON: {e}", file=sys.stderr)
        return 2
    if not isinstance(data, dict) or data.get("type") not in ("Program", "File"):
        print(f"{args.input} is not an ESTree Program or File", file=sys.stderr)
        return 2

    only = [name.strip() for name in args.only.split(",") if name.strip()]
    filename = args.filename or ("" if args.input == "-" else args.input)

    try:
        result = ShakeSession(config).shake_estree(data, only, filename=filename)
    except UnknownExportError as e:
        print(str(e), file=sys.stderr)
        return 1

    shaken = json.dumps(result.to_estree(), ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(shaken, encoding="utf-8")
    else:
        print(shaken)

    summary = json.dumps(result.summary_dict(), ensure_ascii=False, indent=2)
    if args.summary:
        Path(args.summary).write_text(summary, encoding="utf-8")
    elif args.output:
        print(summary)

    logger.info("%s: %s", filename or "<stdin>", result.outcome.value)
    return 0


if __name__ == "__main__":
    main()

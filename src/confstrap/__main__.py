from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional, Sequence

import yaml

from confstrap.bootstrap import Bootstrapper, ConfigContext
from confstrap.config.models import BootstrapOptions, FileLoggingSettings, LoggingSettings
from confstrap.logging import init_logging
from confstrap.sources.models import Source

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="confstrap", description="Resolve and inspect service configuration")
    parser.add_argument("--type", dest="config_type", default=None, help="Config file type (default: json)")
    parser.add_argument("--filename", default=None, help="Config file base name without extension (default: config)")
    parser.add_argument("--prefix", dest="env_prefix", default=None, help="Environment variable prefix")
    parser.add_argument(
        "--dir",
        dest="search_dirs",
        action="append",
        default=None,
        help="Config search directory; repeat to search several in order",
    )
    parser.add_argument("--dotenv", dest="dotenv_path", default=None, help="Path to the .env file (default: .env)")
    parser.add_argument("--no-dotenv", action="store_true", help="Do not load a .env file")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file, rotated daily")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: show
    show_parser = subparsers.add_parser("show", help="Print the resolved configuration")
    show_parser.add_argument("--key", default=None, help="Print a single key instead of all settings")
    show_parser.add_argument("--format", choices=("json", "yaml"), default="json", help="Output format")

    # Command: sources
    sources_parser = subparsers.add_parser("sources", help="Print the per-source readiness verdict")
    sources_parser.add_argument("--format", choices=("json", "yaml"), default="json", help="Output format")

    # Command: check
    check_parser = subparsers.add_parser("check", help="Exit non-zero when required keys or sources are missing")
    check_parser.add_argument("--require", action="append", default=[], metavar="KEY", help="Mandatory key")
    check_parser.add_argument(
        "--source",
        action="append",
        default=[],
        choices=[s.value for s in Source],
        help="Source that must have loaded successfully",
    )
    check_parser.add_argument(
        "--any-source",
        action="store_true",
        help="Fail only when every source failed",
    )

    return parser


def _options_from_args(args: argparse.Namespace) -> BootstrapOptions:
    fields: Dict[str, Any] = {}
    for name in ("config_type", "filename", "env_prefix", "dotenv_path"):
        value = getattr(args, name)
        if value is not None:
            fields[name] = value
    if args.search_dirs:
        fields["search_dirs"] = tuple(args.search_dirs)
    if args.no_dotenv:
        fields["dotenv_path"] = None
    return BootstrapOptions(**fields)


def _dump(data: Any, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=True, default_flow_style=False).rstrip("\n")
    return json.dumps(data, indent=2, sort_keys=True, default=str)


def _run_show(context: ConfigContext, args: argparse.Namespace) -> int:
    if args.key is None:
        print(_dump(context.store.all_settings(), args.format))
        return 0
    value = context.get(args.key)
    if value is None:
        logger.error("Configuration key is not defined. key=%s", args.key)
        return 1
    print(_dump(value, args.format))
    return 0


def _run_sources(context: ConfigContext, args: argparse.Namespace) -> int:
    print(_dump(context.readiness_report(), args.format))
    return 0


def _run_check(context: ConfigContext, args: argparse.Namespace) -> int:
    if args.source or args.any_source:
        context.ensure_sources_succeeded(*(Source(s) for s in args.source))
    if args.require:
        context.ensure_loaded(*args.require)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    file_settings = FileLoggingSettings(path=args.log_file) if args.log_file else None
    init_logging(LoggingSettings(level=args.log_level, file=file_settings))

    context = Bootstrapper().run(_options_from_args(args))

    if args.command == "show":
        return _run_show(context, args)
    if args.command == "sources":
        return _run_sources(context, args)
    if args.command == "check":
        return _run_check(context, args)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())

# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/cli/args.py
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.config_loader import Config
from ..core.logger import Log, c
from ..core.utils import U


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Combines raw description formatting with default value display in help."""


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # Global config/logging (two-phase parse relies on these)
    from .. import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier). $IMAGEPREP_CONFIG is loaded first.",
    )
    p.add_argument("--dump-config", action="store_true", help="Print effective config and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv trace")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit logs as NDJSON.")


def build_parser(prog: str, description: str, epilog: str = "", **kwargs: Any) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=prog,
        description=c(description, "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=c(epilog, "cyan") if epilog else None,
        **kwargs,
    )
    _add_global_config_logging(p)
    return p


def _build_preparser() -> argparse.ArgumentParser:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    return pre


def parse_args_with_config(
    parser: argparse.ArgumentParser,
    argv: Optional[Sequence[str]] = None,
    *,
    section: str,
) -> Tuple[argparse.Namespace, Dict[str, Any], Any]:
    """
    Phase 0: parse only the flags needed to set up logging and find config
    Phase 1: full parse
    Phase 2: load + merge config files
    --dump-config prints the effective `section` and exits.
    """
    argv = list(sys.argv[1:] if argv is None else argv)

    pre = _build_preparser()
    args0, _rest = pre.parse_known_args(argv)
    logger = Log.setup(args0.verbose, args0.log_file, quiet=args0.quiet, json_logs=args0.json_logs)

    args = parser.parse_args(argv)

    cfgs = Config.expand_configs(logger, args0.config)
    conf = Config.load_many(logger, cfgs) if cfgs else {}

    if args.dump_config:
        print(U.json_dump(Config.effective(conf, [section])))
        raise SystemExit(0)

    return args, conf, logger

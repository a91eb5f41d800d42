# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/cli/sanitize_cmd.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..config.config_loader import Config
from ..core.exceptions import Fatal, format_exception_for_cli, wrap_fatal
from ..core.utils import U
from ..sanitize.adapter import OsAdapter, WindowsAdapter
from ..sanitize.metadata import MetadataSink
from ..sanitize.orchestrator import Sanitizer
from .args import build_parser, parse_args_with_config
from .help_texts import SANITIZE_EPILOG


def build_sanitize_parser() -> argparse.ArgumentParser:
    p = build_parser(
        "image-sanitize",
        "image-sanitize: clear transient Windows state before an image is captured",
        SANITIZE_EPILOG,
    )
    p.add_argument("--sink", dest="sink_path", default=None, help="Metadata sink executable (overrides config).")
    p.add_argument("--cleanmgr", dest="cleanmgr_path", default=None, help="Disk cleanup executable (overrides config).")
    p.add_argument("--report", dest="report", default=None, help="Write a JSON run report to this path.")
    return p


def _live_adapter(logger: logging.Logger) -> OsAdapter:
    try:
        return WindowsAdapter(logger)
    except ImportError as e:
        raise wrap_fatal("image-sanitize must run on Windows", e, platform=sys.platform) from e


def run(args: argparse.Namespace, conf: Dict[str, Any], logger: logging.Logger, adapter: Optional[OsAdapter] = None) -> int:
    cfg = Config.sanitize(conf, sink_path=args.sink_path, cleanmgr_path=args.cleanmgr_path)
    sink = MetadataSink(logger, cfg.sink_path)
    report = Sanitizer(logger, adapter or _live_adapter(logger), sink.put, cfg).run()

    if args.report:
        U.write_text(Path(args.report), U.json_dump(report.to_jsonable()) + "\n")

    # The terminal state lives in the sink; success and reported errors both exit 0.
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger: Optional[logging.Logger] = None
    try:
        args, conf, logger = parse_args_with_config(build_sanitize_parser(), argv, section="sanitize")
        rc = run(args, conf, logger)
    except Fatal as e:
        msg = format_exception_for_cli(e, verbose=1)
        if logger is not None:
            logger.error(msg)
        else:
            print(f"💥 ERROR    {msg}", file=sys.stderr)
        raise SystemExit(e.code)
    except KeyboardInterrupt:
        if logger is not None:
            logger.warning("Interrupted by user (Ctrl+C).")
        raise SystemExit(130)
    raise SystemExit(rc)

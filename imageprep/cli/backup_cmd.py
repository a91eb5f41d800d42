# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/cli/backup_cmd.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..backup.runner import BackupRunner, status_file
from ..config.config_loader import Config
from ..core.exceptions import Fatal, format_exception_for_cli
from .args import build_parser, parse_args_with_config
from .help_texts import BACKUP_EPILOG


def build_backup_parser() -> argparse.ArgumentParser:
    p = build_parser(
        "registry-backup",
        "registry-backup: mirror image registry metadata to the object store",
        BACKUP_EPILOG,
    )
    p.add_argument("-y", "--yes", dest="yes", action="store_true", help="Do not ask for confirmation.")
    return p


def run(args: argparse.Namespace, conf: Dict[str, Any], logger: logging.Logger) -> int:
    cfg = Config.backup(conf)
    with status_file(Path(cfg.status_path), logger) as status:
        status.code = BackupRunner(logger, cfg, assume_yes=args.yes).run()
    return status.code


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger: Optional[logging.Logger] = None
    try:
        args, conf, logger = parse_args_with_config(build_backup_parser(), argv, section="backup")
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

# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/core/utils.py
from __future__ import annotations

import contextlib
import json
import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .logger import is_tty


class U:
    @staticmethod
    def which(prog: str) -> Optional[str]:
        from shutil import which as _which
        return _which(prog)

    @staticmethod
    def json_dump(obj: Any) -> str:
        return json.dumps(obj, indent=2, sort_keys=True, default=str)

    @staticmethod
    def _pretty_cmd(cmd: Sequence[str]) -> str:
        return " ".join(shlex.quote(str(x)) for x in cmd)

    @staticmethod
    def run_cmd(
        logger: logging.Logger,
        cmd: List[str],
        *,
        check: bool = True,
        capture: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and block until it exits.

        - capture=True collects stdout/stderr as text
        - check=True raises CalledProcessError on a non-zero exit

        Failures are logged and re-raised unchanged (including
        FileNotFoundError / PermissionError from a missing or unusable
        executable) so callers can classify them.
        """
        pretty = U._pretty_cmd(cmd)
        logger.debug("Running: %s", pretty)

        try:
            return subprocess.run(cmd, check=check, capture_output=capture, text=True)

        except subprocess.CalledProcessError as e:
            stdout = (e.stdout or e.output or "").strip()
            stderr = (e.stderr or "").strip()
            if stdout or stderr:
                logger.error(
                    "Command failed: %s%s%s",
                    pretty,
                    f"\nstdout:\n{stdout}" if stdout else "",
                    f"\nstderr:\n{stderr}" if stderr else "",
                )
            else:
                logger.error("Command failed: %s (rc=%s, no output)", pretty, e.returncode)
            raise

        except OSError as e:
            logger.error("Command error: %s (%s)", pretty, e)
            raise

    @staticmethod
    @contextlib.contextmanager
    def spinner(label: str) -> Iterator[None]:
        """
        Rich spinner with elapsed time around a blocking call.
        Silent when stderr is not a TTY (image builds usually run headless).
        """
        if not is_tty():
            yield
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=Console(stderr=True),
            transient=True,
        ) as progress:
            progress.add_task(label, total=None)
            yield

    @staticmethod
    def write_text(p: Path, text: str) -> None:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")

# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/backup/runner.py
"""
One-way mirror of the image registry's on-disk metadata to the object store.

Refuses to run until a restore has happened on this host (marker file), so a
freshly provisioned, empty registry can never overwrite the remote copy.
"""
from __future__ import annotations

import contextlib
import json
import logging
import posixpath
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

from rich.prompt import Confirm

from ..core.exceptions import ImagePrepError, wrap_backup
from ..core.logger import Log
from ..core.utils import U
from .models import BackupConfig


class ExitStatus:
    def __init__(self, code: int = 0):
        self.code = code


def _exit_code(code: Any) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _write_status(path: Path, code: int, logger: logging.Logger) -> None:
    try:
        U.write_text(path, f"{code}\n")
    except OSError as e:
        logger.error("Cannot write status file %s: %s", path, e)


@contextlib.contextmanager
def status_file(path: Path, logger: logging.Logger) -> Iterator[ExitStatus]:
    """
    Record the final exit code of the enclosed block in `path`, one decimal
    line, whether the block returns, raises or exits.
    """
    status = ExitStatus()
    try:
        yield status
    except SystemExit as e:
        status.code = _exit_code(e.code)
        raise
    except KeyboardInterrupt:
        status.code = 130
        raise
    except ImagePrepError as e:
        status.code = e.code
        raise
    except BaseException:
        status.code = 1
        raise
    finally:
        _write_status(path, status.code, logger)


def lookup(obj: Dict[str, Any], dotted: str) -> Any:
    cur: Any = obj
    for part in dotted.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


class BackupRunner:
    def __init__(
        self,
        logger: logging.Logger,
        config: Optional[BackupConfig] = None,
        *,
        assume_yes: bool = False,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        self.logger = logger
        self.config = config or BackupConfig()
        self.assume_yes = assume_yes
        self._confirm = confirm or (lambda q: Confirm.ask(q, default=False))

    def require_restore_marker(self) -> None:
        marker = Path(self.config.marker_path)
        if not marker.exists():
            raise wrap_backup(
                "Refusing to back up: restore has not run on this host",
                marker=str(marker),
            )
        self.logger.debug("Restore marker present: %s", marker)

    def load_service_config(self) -> Dict[str, Any]:
        cmd = list(self.config.config_loader_cmd)
        try:
            cp = U.run_cmd(self.logger, cmd, capture=True, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise wrap_backup("Cannot load registry service config", e, cmd=U._pretty_cmd(cmd)) from e

        try:
            data = json.loads(cp.stdout or "")
        except json.JSONDecodeError as e:
            raise wrap_backup("Registry service config is not valid JSON", e, cmd=U._pretty_cmd(cmd)) from e
        if not isinstance(data, dict):
            raise wrap_backup("Registry service config is not a JSON object", cmd=U._pretty_cmd(cmd))
        return data

    def resolve_remote(self, service_conf: Dict[str, Any]) -> str:
        root = lookup(service_conf, self.config.remote_key)
        if not root or not isinstance(root, str):
            raise wrap_backup(f"Service config has no '{self.config.remote_key}'", setting=self.config.remote_key)
        return posixpath.join(root, self.config.remote_suffix) if self.config.remote_suffix else root

    def mirror(self, local_dir: str, remote: str) -> str:
        src = Path(local_dir)
        if not src.is_dir():
            raise wrap_backup(f"Local directory missing: {src}", path=str(src))

        target = posixpath.join(remote, src.name)
        cmd = [*self.config.sync_cmd, str(src), target]
        Log.step(self.logger, f"Mirroring {src} -> {target}")
        try:
            with U.spinner(f"Mirroring {src.name}"):
                U.run_cmd(self.logger, cmd, check=True)
        except subprocess.CalledProcessError as e:
            raise wrap_backup(f"Mirror of {src} failed", e, code=e.returncode or 1, target=target) from e
        except OSError as e:
            code = 127 if isinstance(e, FileNotFoundError) else 1
            raise wrap_backup(f"Cannot run {self.config.sync_cmd[0]}", e, code=code) from e
        return target

    def run(self) -> int:
        Log.banner(self.logger, "registry backup")
        self.require_restore_marker()
        remote = self.resolve_remote(self.load_service_config())

        dirs = ", ".join(self.config.local_dirs)
        if not self.assume_yes and not self._confirm(f"Mirror {dirs} to {remote}?"):
            Log.warn(self.logger, "Backup aborted by user")
            return 1

        for local_dir in self.config.local_dirs:
            self.mirror(local_dir, remote)

        Log.ok(self.logger, f"Backed up {len(self.config.local_dirs)} directories to {remote}")
        return 0

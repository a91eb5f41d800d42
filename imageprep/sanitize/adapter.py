# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/sanitize/adapter.py
"""
OS-facing operations used by the sanitizer.

Every operation returns an OpResult tagged with an ErrorKind instead of
raising, so the orchestrator decides tolerance per step by matching on the
tag. The live implementation talks to the registry through winreg, runs
cleanmgr as a blocking subprocess and empties the recycle bin through
shell32.
"""
from __future__ import annotations

import ctypes
import fnmatch
import glob
import logging
import os
import shutil
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterator, List, Optional

from ..core.utils import U
from .models import AUTORUN_VALUE, ErrorKind, OpResult

# SHEmptyRecycleBin flags
SHERB_NOCONFIRMATION = 0x00000001
SHERB_NOPROGRESSUI = 0x00000002
SHERB_NOSOUND = 0x00000004


class OsAdapter(ABC):
    """Registry, process and filesystem operations the sanitizer needs."""

    @abstractmethod
    def move_entry(self, src_parent: str, name: str, dst_parent: str) -> OpResult:
        """Move key `name` (with values and subkeys) from src_parent to dst_parent."""
        ...

    @abstractmethod
    def list_entries(self, parent: str) -> OpResult:
        """Subkey names under parent, as a list."""
        ...

    @abstractmethod
    def get_autorun(self, parent: str, name: str) -> OpResult:
        """Autorun flag of an entry as int, or None when the value is absent."""
        ...

    @abstractmethod
    def set_autorun(self, parent: str, name: str, value: Optional[int]) -> OpResult:
        """Write the Autorun flag; None deletes the value."""
        ...

    @abstractmethod
    def run_cleanup(self, executable: str, flag: str) -> OpResult:
        """Run the disk-cleanup utility and wait for it. Value is the exit code."""
        ...

    @abstractmethod
    def empty_trash(self) -> OpResult:
        ...

    @abstractmethod
    def remove_glob(self, pattern: str) -> OpResult:
        """Force-delete every match of pattern. Value is the number of removed items."""
        ...


def _clear_readonly(path: str) -> None:
    for root, dirs, files in os.walk(path):
        for n in dirs + files:
            p = os.path.join(root, n)
            try:
                os.chmod(p, stat.S_IWRITE | stat.S_IREAD)
            except OSError:
                continue


def _has_magic(s: str) -> bool:
    return any(ch in s for ch in "*?[")


def expand_glob(pattern: str) -> Iterator[str]:
    """
    Like glob.glob, but the last component also matches dot-prefixed names.
    """
    head, tail = os.path.split(pattern)
    if not _has_magic(tail):
        yield from glob.glob(pattern)
        return

    dirs = glob.glob(head) if _has_magic(head) else [head or os.curdir]
    for d in dirs:
        try:
            with os.scandir(d) as it:
                names = sorted(e.name for e in it)
        except OSError:
            continue
        for name in fnmatch.filter(names, tail):
            yield os.path.join(d, name)


def force_remove(path: str) -> bool:
    """Remove a file, link or directory tree. Returns True if it is gone."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            _clear_readonly(path)
            shutil.rmtree(path, ignore_errors=True)
        else:
            os.chmod(path, stat.S_IWRITE | stat.S_IREAD)
            os.remove(path)
    except OSError:
        pass
    return not os.path.lexists(path)


class WindowsAdapter(OsAdapter):
    """
    Live Windows implementation.

    Registry paths are relative to HKEY_LOCAL_MACHINE and always opened in
    the 64-bit view so a 32-bit interpreter sees the same VolumeCaches as
    cleanmgr does.
    """

    def __init__(self, logger: logging.Logger, *, reg: Any = None, shell32: Any = None):
        self.logger = logger
        if reg is None:
            import winreg as reg  # Windows only
        self._reg = reg
        self._shell32 = shell32
        self._hive = reg.HKEY_LOCAL_MACHINE
        self._view = reg.KEY_WOW64_64KEY

    # ------------------------------------------------------------------
    # registry helpers
    # ------------------------------------------------------------------

    def _open(self, path: str, access: Optional[int] = None) -> Any:
        access = self._reg.KEY_READ if access is None else access
        return self._reg.OpenKey(self._hive, path, 0, access | self._view)

    def _subkeys(self, key: Any) -> List[str]:
        count = self._reg.QueryInfoKey(key)[0]
        return [self._reg.EnumKey(key, i) for i in range(count)]

    def _copy_tree(self, src: str, dst: str) -> None:
        reg = self._reg
        with self._open(src) as sk:
            n_values = reg.QueryInfoKey(sk)[1]
            with reg.CreateKeyEx(self._hive, dst, 0, reg.KEY_WRITE | self._view) as dk:
                for i in range(n_values):
                    vname, data, vtype = reg.EnumValue(sk, i)
                    reg.SetValueEx(dk, vname, 0, vtype, data)
            children = self._subkeys(sk)
        for child in children:
            self._copy_tree(f"{src}\\{child}", f"{dst}\\{child}")

    def _delete_tree(self, path: str) -> None:
        with self._open(path) as k:
            children = self._subkeys(k)
        for child in children:
            self._delete_tree(f"{path}\\{child}")
        self._reg.DeleteKeyEx(self._hive, path, self._view, 0)

    def _exists(self, path: str) -> bool:
        try:
            with self._open(path):
                return True
        except FileNotFoundError:
            return False

    # ------------------------------------------------------------------
    # OsAdapter
    # ------------------------------------------------------------------

    def move_entry(self, src_parent: str, name: str, dst_parent: str) -> OpResult:
        src = f"{src_parent}\\{name}"
        dst = f"{dst_parent}\\{name}"
        try:
            if not self._exists(src):
                return OpResult.failure(ErrorKind.ABSENT_TARGET, src)
            if self._exists(dst):
                return OpResult.failure(ErrorKind.OTHER, f"destination exists: {dst}")
            self._copy_tree(src, dst)
            self._delete_tree(src)
        except OSError as e:
            return OpResult.failure(ErrorKind.OTHER, f"{src} -> {dst}: {e}")
        self.logger.debug("Moved HKLM\\%s -> HKLM\\%s", src, dst)
        return OpResult.success(dst)

    def list_entries(self, parent: str) -> OpResult:
        try:
            with self._open(parent) as k:
                return OpResult.success(self._subkeys(k))
        except OSError as e:
            return OpResult.failure(ErrorKind.OTHER, f"{parent}: {e}")

    def get_autorun(self, parent: str, name: str) -> OpResult:
        path = f"{parent}\\{name}"
        try:
            with self._open(path) as k:
                try:
                    value, _vtype = self._reg.QueryValueEx(k, AUTORUN_VALUE)
                except FileNotFoundError:
                    return OpResult.success(None)
        except OSError as e:
            return OpResult.failure(ErrorKind.OTHER, f"{path}: {e}")
        try:
            return OpResult.success(int(value))
        except (TypeError, ValueError):
            return OpResult.failure(ErrorKind.OTHER, f"{path}: non-integer {AUTORUN_VALUE}={value!r}")

    def set_autorun(self, parent: str, name: str, value: Optional[int]) -> OpResult:
        path = f"{parent}\\{name}"
        try:
            with self._open(path, self._reg.KEY_SET_VALUE) as k:
                if value is None:
                    try:
                        self._reg.DeleteValue(k, AUTORUN_VALUE)
                    except FileNotFoundError:
                        pass
                else:
                    self._reg.SetValueEx(k, AUTORUN_VALUE, 0, self._reg.REG_DWORD, int(value))
        except OSError as e:
            return OpResult.failure(ErrorKind.OTHER, f"{path}: {e}")
        return OpResult.success(value)

    def run_cleanup(self, executable: str, flag: str) -> OpResult:
        if not Path(executable).exists() and U.which(executable) is None:
            return OpResult.failure(ErrorKind.UTILITY_UNAVAILABLE, executable)
        try:
            with U.spinner(f"Waiting for {Path(executable).name} {flag}"):
                cp = U.run_cmd(self.logger, [executable, flag], check=False)
        except FileNotFoundError:
            return OpResult.failure(ErrorKind.UTILITY_UNAVAILABLE, executable)
        except OSError as e:
            return OpResult.failure(ErrorKind.OTHER, f"{executable}: {e}")
        self.logger.debug("%s exited rc=%s", executable, cp.returncode)
        return OpResult.success(cp.returncode)

    def empty_trash(self) -> OpResult:
        try:
            shell32 = self._shell32 if self._shell32 is not None else ctypes.windll.shell32  # type: ignore[attr-defined]
            fn = shell32.SHEmptyRecycleBinW
        except (AttributeError, OSError) as e:
            return OpResult.failure(ErrorKind.UTILITY_UNAVAILABLE, str(e))

        try:
            hr = fn(None, None, SHERB_NOCONFIRMATION | SHERB_NOPROGRESSUI | SHERB_NOSOUND)
        except OSError as e:
            return OpResult.failure(ErrorKind.OS_ERROR, str(e))
        except Exception as e:
            return OpResult.failure(ErrorKind.OTHER, f"{type(e).__name__}: {e}")

        if hr:
            return OpResult.failure(ErrorKind.OS_ERROR, f"HRESULT 0x{int(hr) & 0xFFFFFFFF:08X}")
        return OpResult.success()

    def remove_glob(self, pattern: str) -> OpResult:
        removed = 0
        for match in expand_glob(os.path.expandvars(pattern)):
            if force_remove(match):
                removed += 1
            else:
                self.logger.debug("Left in place: %s", match)
        return OpResult.success(removed)

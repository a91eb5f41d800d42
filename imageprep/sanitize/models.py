# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/sanitize/models.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

VOLUME_CACHES = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Explorer\VolumeCaches"

# Out of enumeration scope while cleanmgr runs; restored afterwards.
HOLDING_PATH = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Explorer"

# Categories cleanmgr would otherwise pick on its own and that take far
# longer than the image-capture timeout allows.
EXPENSIVE_CATEGORIES: Tuple[str, ...] = (
    "Update Cleanup",
    "Service Pack Cleanup",
)

CLEANUP_GLOBS: Tuple[str, ...] = (
    r"C:\Windows\Temp\*",
    r"C:\Windows\Logs\*",
    r"C:\Windows\Minidump\*",
    r"C:\PerfLogs\*",
    r"C:\Windows\Downloaded Program Files\*",
    r"C:\Windows\*.log",
    r"C:\Users\*\AppData\Local\Temp\*",
)

CLEANMGR = r"C:\Windows\System32\cleanmgr.exe"
CLEANMGR_UNATTENDED_FLAG = "/autoclean"

METADATA_SINK = r"C:\smartdc\bin\mdata-put.exe"

AUTORUN_VALUE = "Autorun"
AUTORUN_ON = 1


class ErrorKind(str, Enum):
    """Classification carried by every OS adapter result."""
    NONE = "none"
    ABSENT_TARGET = "absent_target"  # entry does not exist on this OS edition
    UTILITY_UNAVAILABLE = "utility_unavailable"  # tool/API not present on this OS edition
    OS_ERROR = "os_error"  # underlying OS call reported an error
    OTHER = "other"


@dataclass(frozen=True)
class OpResult:
    kind: ErrorKind = ErrorKind.NONE
    value: Any = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.NONE

    @classmethod
    def success(cls, value: Any = None) -> "OpResult":
        return cls(ErrorKind.NONE, value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str = "") -> "OpResult":
        return cls(kind, None, detail)


@dataclass(frozen=True)
class CleanupCategoryEntry:
    name: str
    autorun: Optional[int]  # None when the value is absent
    location: str = VOLUME_CACHES

    @property
    def path(self) -> str:
        return f"{self.location}\\{self.name}"

    @property
    def flagged(self) -> bool:
        return self.autorun == AUTORUN_ON


class RunState(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self is not RunState.RUNNING


class OutcomeKind(str, Enum):
    CONTINUE = "continue"
    TOLERATED_SKIP = "tolerated_skip"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepOutcome:
    kind: OutcomeKind
    message: str = ""

    @property
    def fatal(self) -> bool:
        return self.kind is OutcomeKind.FATAL

    @classmethod
    def proceed(cls, message: str = "") -> "StepOutcome":
        return cls(OutcomeKind.CONTINUE, message)

    @classmethod
    def skipped(cls, message: str = "") -> "StepOutcome":
        return cls(OutcomeKind.TOLERATED_SKIP, message)

    @classmethod
    def abort(cls, message: str) -> "StepOutcome":
        return cls(OutcomeKind.FATAL, message)


@dataclass(frozen=True)
class SanitizeConfig:
    """Fixed paths and lists the sanitizer operates on."""
    parent_path: str = VOLUME_CACHES
    holding_path: str = HOLDING_PATH
    expensive_categories: Tuple[str, ...] = EXPENSIVE_CATEGORIES
    cleanup_globs: Tuple[str, ...] = CLEANUP_GLOBS
    cleanmgr_path: str = CLEANMGR
    cleanmgr_flag: str = CLEANMGR_UNATTENDED_FLAG
    sink_path: str = METADATA_SINK


@dataclass
class SanitizeReport:
    state: Optional[RunState] = None
    error: Optional[str] = None
    steps: List[Tuple[str, OutcomeKind]] = field(default_factory=list)
    added_auto_paths: List[str] = field(default_factory=list)
    relocated: List[str] = field(default_factory=list)
    removed: Dict[str, int] = field(default_factory=dict)

    def to_jsonable(self) -> Dict[str, Any]:
        d = asdict(self)
        d["state"] = self.state.value if self.state else None
        d["steps"] = [[name, kind.value] for name, kind in self.steps]
        return d

# SPDX-License-Identifier: LGPL-3.0-or-later
# imageprep/sanitize/__init__.py
from .adapter import OsAdapter, WindowsAdapter
from .metadata import MetadataSink, RunTracker
from .models import (
    CleanupCategoryEntry,
    ErrorKind,
    OpResult,
    OutcomeKind,
    RunState,
    SanitizeConfig,
    SanitizeReport,
    StepOutcome,
)
from .orchestrator import Sanitizer
from .steps import DEFAULT_STEPS, RunContext, Step

__all__ = [
    "CleanupCategoryEntry",
    "DEFAULT_STEPS",
    "ErrorKind",
    "MetadataSink",
    "OpResult",
    "OsAdapter",
    "OutcomeKind",
    "RunContext",
    "RunState",
    "RunTracker",
    "SanitizeConfig",
    "SanitizeReport",
    "Sanitizer",
    "Step",
    "StepOutcome",
    "WindowsAdapter",
]

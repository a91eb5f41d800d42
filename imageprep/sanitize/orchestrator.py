# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/sanitize/orchestrator.py
from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..core.logger import Log
from .adapter import OsAdapter
from .metadata import RunTracker
from .models import OutcomeKind, SanitizeConfig, SanitizeReport
from .steps import DEFAULT_STEPS, RunContext, Step


class Sanitizer:
    """
    Runs the sanitize steps in order, once.

    State goes running -> success, or running -> error at the first fatal
    step; nothing after a fatal step runs and nothing already changed is
    rolled back.
    """

    def __init__(
        self,
        logger: logging.Logger,
        adapter: OsAdapter,
        put: Callable[[str, str], None],
        config: Optional[SanitizeConfig] = None,
        steps: Sequence[Step] = DEFAULT_STEPS,
    ):
        self.logger = logger
        self.adapter = adapter
        self.config = config or SanitizeConfig()
        self.steps = tuple(steps)
        self.tracker = RunTracker(put)

    def run(self) -> SanitizeReport:
        report = SanitizeReport()
        ctx = RunContext(config=self.config, adapter=self.adapter, logger=self.logger)

        Log.banner(self.logger, "image sanitize")
        self.tracker.running()

        for step in self.steps:
            Log.step(self.logger, step.description, step=step.name)
            ctx.logger = Log.bind(self.logger, step=step.name)
            outcome = step.run(ctx)
            report.steps.append((step.name, outcome.kind))

            if outcome.fatal:
                Log.fail(self.logger, f"{step.name}: {outcome.message}")
                self.tracker.error(outcome.message)
                report.error = outcome.message
                break

            if outcome.kind is OutcomeKind.TOLERATED_SKIP:
                Log.warn(self.logger, f"{step.name} skipped: {outcome.message}")
            elif outcome.message:
                self.logger.info("%s: %s", step.name, outcome.message)
        else:
            self.tracker.success()
            Log.ok(self.logger, "Image sanitized")

        report.state = self.tracker.state
        report.added_auto_paths = [ctx.path(n) for n in ctx.added]
        report.relocated = list(ctx.relocated)
        report.removed = dict(ctx.removed)
        return report

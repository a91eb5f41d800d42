# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/sanitize/steps.py
"""
Ordered sanitize steps.

Each step takes the RunContext and returns a StepOutcome. Tolerance is
decided here, per step, by matching on the adapter's ErrorKind:

  relocate       ABSENT_TARGET tolerated, anything else "Bad move"
  enumerate      any failure "Unknown hive"
  flag           read failure "Bad Get-Item", write failure "Bad Set-Item"
  cleanmgr       UTILITY_UNAVAILABLE tolerated, anything else "Bad cleanmgr"
  unflag         any failure "Bad auto undo"
  restore        entries relocated by this run only; ABSENT_TARGET tolerated,
                 anything else "Bad move back"
  empty-recycle  OS_ERROR / UTILITY_UNAVAILABLE tolerated, else "Bad empty recycle"
  remove-globs   every failure tolerated
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .adapter import OsAdapter
from .models import AUTORUN_ON, CleanupCategoryEntry, ErrorKind, SanitizeConfig, StepOutcome

ERR_MOVE = "Bad move"
ERR_HIVE = "Unknown hive"
ERR_GET = "Bad Get-Item"
ERR_SET = "Bad Set-Item"
ERR_CLEANMGR = "Bad cleanmgr"
ERR_UNDO = "Bad auto undo"
ERR_MOVE_BACK = "Bad move back"
ERR_RECYCLE = "Bad empty recycle"


@dataclass
class RunContext:
    config: SanitizeConfig
    adapter: OsAdapter
    logger: Union[logging.Logger, logging.LoggerAdapter]
    entries: List[str] = field(default_factory=list)
    observed: List[CleanupCategoryEntry] = field(default_factory=list)
    relocated: List[str] = field(default_factory=list)
    # AddedAutoPaths: entry names flagged by this run, in flag order
    added: List[str] = field(default_factory=list)
    prior_autorun: Dict[str, Optional[int]] = field(default_factory=dict)
    removed: Dict[str, int] = field(default_factory=dict)

    def path(self, name: str) -> str:
        return f"{self.config.parent_path}\\{name}"


StepFunc = Callable[[RunContext], StepOutcome]


@dataclass(frozen=True)
class Step:
    name: str
    description: str
    run: StepFunc


def _move_all(
    ctx: RunContext, names: Sequence[str], src: str, dst: str, err: str, moved: Optional[List[str]] = None
) -> StepOutcome:
    absent = 0
    for name in names:
        r = ctx.adapter.move_entry(src, name, dst)
        if r.ok:
            if moved is not None:
                moved.append(name)
            continue
        if r.kind is ErrorKind.ABSENT_TARGET:
            ctx.logger.debug("Category not present, skipping: %s", name)
            absent += 1
            continue
        ctx.logger.error("Moving %r failed: %s", name, r.detail)
        return StepOutcome.abort(err)
    if absent == len(names):
        return StepOutcome.skipped("no expensive categories present")
    return StepOutcome.proceed()


def relocate_expensive(ctx: RunContext) -> StepOutcome:
    names = ctx.config.expensive_categories
    return _move_all(ctx, names, ctx.config.parent_path, ctx.config.holding_path, ERR_MOVE, ctx.relocated)


def enumerate_entries(ctx: RunContext) -> StepOutcome:
    r = ctx.adapter.list_entries(ctx.config.parent_path)
    if not r.ok:
        ctx.logger.error("Cannot enumerate %s: %s", ctx.config.parent_path, r.detail)
        return StepOutcome.abort(ERR_HIVE)
    ctx.entries = list(r.value or [])
    ctx.logger.debug("%d cleanup categories", len(ctx.entries))
    return StepOutcome.proceed()


def flag_entries(ctx: RunContext) -> StepOutcome:
    for name in ctx.entries:
        got = ctx.adapter.get_autorun(ctx.config.parent_path, name)
        if not got.ok:
            ctx.logger.error("Reading flag of %r failed: %s", name, got.detail)
            return StepOutcome.abort(ERR_GET)
        entry = CleanupCategoryEntry(name, got.value, ctx.config.parent_path)
        ctx.observed.append(entry)
        if entry.flagged:
            continue
        put = ctx.adapter.set_autorun(ctx.config.parent_path, name, AUTORUN_ON)
        if not put.ok:
            ctx.logger.error("Flagging %r failed: %s", entry.path, put.detail)
            return StepOutcome.abort(ERR_SET)
        ctx.prior_autorun[name] = entry.autorun
        ctx.added.append(name)
    return StepOutcome.proceed(f"flagged {len(ctx.added)}")


def run_cleanmgr(ctx: RunContext) -> StepOutcome:
    r = ctx.adapter.run_cleanup(ctx.config.cleanmgr_path, ctx.config.cleanmgr_flag)
    if r.ok:
        return StepOutcome.proceed(f"rc={r.value}")
    if r.kind is ErrorKind.UTILITY_UNAVAILABLE:
        ctx.logger.info("cleanmgr not available on this edition, skipping")
        return StepOutcome.skipped("cleanmgr unavailable")
    ctx.logger.error("cleanmgr failed: %s", r.detail)
    return StepOutcome.abort(ERR_CLEANMGR)


def unflag_entries(ctx: RunContext) -> StepOutcome:
    for name in ctx.added:
        r = ctx.adapter.set_autorun(ctx.config.parent_path, name, ctx.prior_autorun.get(name))
        if not r.ok:
            ctx.logger.error("Restoring flag of %r failed: %s", name, r.detail)
            return StepOutcome.abort(ERR_UNDO)
    return StepOutcome.proceed()


def restore_expensive(ctx: RunContext) -> StepOutcome:
    # only what this run moved; older holding entries stay put
    return _move_all(ctx, list(ctx.relocated), ctx.config.holding_path, ctx.config.parent_path, ERR_MOVE_BACK)


def empty_recycle(ctx: RunContext) -> StepOutcome:
    r = ctx.adapter.empty_trash()
    if r.ok:
        return StepOutcome.proceed()
    if r.kind in (ErrorKind.OS_ERROR, ErrorKind.UTILITY_UNAVAILABLE):
        ctx.logger.debug("Recycle bin not emptied (%s): %s", r.kind.value, r.detail)
        return StepOutcome.skipped(r.kind.value)
    ctx.logger.error("Emptying recycle bin failed: %s", r.detail)
    return StepOutcome.abort(ERR_RECYCLE)


def remove_globs(ctx: RunContext) -> StepOutcome:
    for pattern in ctx.config.cleanup_globs:
        try:
            r = ctx.adapter.remove_glob(pattern)
        except Exception as e:
            ctx.logger.debug("Removing %s failed: %s", pattern, e)
            continue
        if r.ok:
            ctx.removed[pattern] = int(r.value or 0)
        else:
            ctx.logger.debug("Removing %s failed: %s", pattern, r.detail)
    return StepOutcome.proceed(f"removed {sum(ctx.removed.values())}")


DEFAULT_STEPS: Tuple[Step, ...] = (
    Step("relocate", "Move expensive cleanup categories out of scope", relocate_expensive),
    Step("enumerate", "Enumerate cleanup categories", enumerate_entries),
    Step("flag", "Flag cleanup categories for autorun", flag_entries),
    Step("cleanmgr", "Run disk cleanup unattended", run_cleanmgr),
    Step("unflag", "Restore autorun flags", unflag_entries),
    Step("restore", "Move expensive cleanup categories back", restore_expensive),
    Step("empty-recycle", "Empty recycle bins", empty_recycle),
    Step("remove-globs", "Delete temporary files and logs", remove_globs),
)

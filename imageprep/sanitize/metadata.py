# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/sanitize/metadata.py
from __future__ import annotations

import logging
import subprocess
from typing import Callable, Optional

from ..core.exceptions import wrap_sink
from ..core.utils import U
from .models import RunState


class MetadataSink:
    """
    Key/value sink read by the image-capture orchestrator.

    Each put() runs `<sink_path> <key> <value>`.
    """

    def __init__(self, logger: logging.Logger, sink_path: str):
        self.logger = logger
        self.sink_path = sink_path

    def put(self, key: str, value: str) -> None:
        try:
            U.run_cmd(self.logger, [self.sink_path, key, value], check=True, capture=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise wrap_sink(f"metadata sink failed to record {key}", e, sink=self.sink_path, mdata_key=key) from e
        self.logger.debug("metadata %s=%s", key, value)


class RunTracker:
    """
    Publishes RunState through the sink and refuses to leave a terminal state.
    """

    def __init__(self, put: Callable[[str, str], None]):
        self._put = put
        self.state: Optional[RunState] = None

    def _record(self, key: str, value: str) -> None:
        self._put(key, value)

    def _advance(self, state: RunState) -> None:
        if self.state is not None and self.state.terminal:
            raise ValueError(f"run state is terminal ({self.state.value}); cannot move to {state.value}")
        if state is RunState.RUNNING and self.state is RunState.RUNNING:
            raise ValueError("run already announced")
        if state.terminal and self.state is not RunState.RUNNING:
            raise ValueError(f"cannot reach {state.value} before running")
        self.state = state

    def running(self) -> None:
        self._advance(RunState.RUNNING)
        self._record("state", RunState.RUNNING.value)

    def success(self) -> None:
        self._advance(RunState.SUCCESS)
        self._record("state", RunState.SUCCESS.value)

    def error(self, message: str) -> None:
        self._advance(RunState.ERROR)
        self._record("state", RunState.ERROR.value)
        self._record("error", message)

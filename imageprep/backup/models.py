# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/backup/models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BackupConfig:
    # argv printing the registry service config as a JSON object on stdout
    config_loader_cmd: Tuple[str, ...] = ("imgapi-config",)
    # dotted path to the remote root inside that JSON
    remote_key: str = "manta.rootDir"
    remote_suffix: str = "backup"
    local_dirs: Tuple[str, ...] = (
        "/data/imgapi/manifests",
        "/data/imgapi/images",
    )
    marker_path: str = "/data/imgapi/etc/restored.marker"
    status_path: str = "/var/run/imgapi-backup.status"
    sync_cmd: Tuple[str, ...] = ("manta-sync", "--delete")

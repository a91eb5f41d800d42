# SPDX-License-Identifier: LGPL-3.0-or-later
# imageprep/backup/__init__.py
from .models import BackupConfig
from .runner import BackupRunner, status_file

__all__ = ["BackupConfig", "BackupRunner", "status_file"]

# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/__init__.py
"""
imageprep - VM image lifecycle helpers

  image-sanitize   clear transient Windows state before an image is captured
  registry-backup  mirror image registry metadata to the object store

Usage as a library:

    from imageprep import Sanitizer, MetadataSink, WindowsAdapter

    sink = MetadataSink(logger, r"C:\\smartdc\\bin\\mdata-put.exe")
    report = Sanitizer(logger, WindowsAdapter(logger), sink.put).run()
"""

__version__ = "0.1.0"

from .backup import BackupConfig, BackupRunner
from .sanitize import MetadataSink, SanitizeConfig, Sanitizer, WindowsAdapter

__all__ = [
    "__version__",
    "BackupConfig",
    "BackupRunner",
    "MetadataSink",
    "SanitizeConfig",
    "Sanitizer",
    "WindowsAdapter",
]

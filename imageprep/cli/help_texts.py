# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/cli/help_texts.py

SANITIZE_EPILOG = r"""YAML example:

  sanitize:
    sink_path: 'C:\smartdc\bin\mdata-put.exe'
    expensive_categories:
      - Update Cleanup
      - Service Pack Cleanup
    cleanup_globs:
      - 'C:\Windows\Temp\*'
      - '%SystemRoot%\Logs\*'

Progress is published through the metadata sink:
  state=running, then state=success, or state=error plus error=<reason>.
"""

BACKUP_EPILOG = r"""YAML example:

  backup:
    config_loader_cmd: [imgapi-config]
    remote_key: manta.rootDir
    local_dirs: [/data/imgapi/manifests, /data/imgapi/images]
    marker_path: /data/imgapi/etc/restored.marker
    status_path: /var/run/imgapi-backup.status

The exit code of every run is written to status_path.
"""

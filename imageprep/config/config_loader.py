# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# imageprep/config/config_loader.py
from __future__ import annotations

import dataclasses
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, get_origin, get_type_hints

import yaml

from ..backup.models import BackupConfig
from ..core.exceptions import wrap_config
from ..sanitize.models import SanitizeConfig

ENV_CONFIG = "IMAGEPREP_CONFIG"

SECTIONS: Dict[str, type] = {
    "sanitize": SanitizeConfig,
    "backup": BackupConfig,
}

T = TypeVar("T")


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _coerce(section: str, key: str, value: Any, hint: Any) -> Any:
    """
    Tuple[str, ...] fields take a list of strings or a single string (one
    item). Anything else is a config error.
    """
    if get_origin(hint) is not tuple:
        return value
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise wrap_config(
        f"'{section}.{key}' must be a string or a list of strings, got {type(value).__name__}",
        section=section,
        field=key,
    )


class Config:
    """
    YAML/JSON config files, merged in order (later overrides earlier).

    Layout:

      sanitize:
        sink_path: 'C:\\smartdc\\bin\\mdata-put.exe'
        cleanup_globs: [...]
      backup:
        local_dirs: [...]
    """

    @staticmethod
    def expand_configs(logger: logging.Logger, cfgs: Sequence[str]) -> List[Path]:
        """Prepend $IMAGEPREP_CONFIG, expand ~ and check every file exists."""
        raw: List[str] = []
        env = os.environ.get(ENV_CONFIG)
        if env:
            raw.append(env)
        raw.extend(cfgs)

        out: List[Path] = []
        for item in raw:
            p = Path(item).expanduser()
            if not p.is_file():
                raise wrap_config(f"Config file not found: {p}", path=str(p))
            out.append(p)
        logger.debug("Config files: %s", [str(p) for p in out])
        return out

    @staticmethod
    def load_file(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        text = path.read_text(encoding="utf-8")
        try:
            if path.suffix.lower() == ".json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text) or {}
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise wrap_config(f"Cannot parse config {path}", e, path=str(path)) from e

        if not isinstance(data, dict):
            raise wrap_config(f"Config {path} must be a mapping at top level", path=str(path))

        unknown = sorted(set(data) - set(SECTIONS))
        if unknown:
            raise wrap_config(f"Unknown config section(s) in {path}: {', '.join(unknown)}", path=str(path))

        logger.debug("Loaded config %s (%s)", path, ", ".join(sorted(data)) or "empty")
        return data

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_file(logger, p))
        return merged

    @staticmethod
    def section(conf: Dict[str, Any], name: str, cls: Type[T], **overrides: Any) -> T:
        """
        Build the frozen dataclass for a section. Sequence fields become tuples; None
        overrides are ignored so CLI flags only win when given.
        """
        raw = dict(conf.get(name) or {})
        raw.update({k: v for k, v in overrides.items() if v is not None})

        known = {f.name for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
        unknown = sorted(set(raw) - known)
        if unknown:
            raise wrap_config(f"Unknown key(s) in '{name}': {', '.join(unknown)}", section=name)

        hints = get_type_hints(cls)
        values = {k: _coerce(name, k, v, hints.get(k)) for k, v in raw.items()}
        return cls(**values)

    @staticmethod
    def sanitize(conf: Dict[str, Any], **overrides: Any) -> SanitizeConfig:
        return Config.section(conf, "sanitize", SanitizeConfig, **overrides)

    @staticmethod
    def backup(conf: Dict[str, Any], **overrides: Any) -> BackupConfig:
        return Config.section(conf, "backup", BackupConfig, **overrides)

    @staticmethod
    def effective(conf: Dict[str, Any], sections: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """Merged config with defaults filled in, for --dump-config."""
        out: Dict[str, Any] = {}
        for name in sections or SECTIONS:
            out[name] = dataclasses.asdict(Config.section(conf, name, SECTIONS[name]))
        return out

# imageprep/core/__init__.py
from .exceptions import BackupError, ConfigError, Fatal, ImagePrepError, SinkError
from .logger import Log
from .utils import U

__all__ = ["BackupError", "ConfigError", "Fatal", "ImagePrepError", "SinkError", "Log", "U"]

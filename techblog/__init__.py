from .builder import build
from .config import load_config
from .errors import (
    BuildError,
    ConfigError,
    DuplicatePermalinkError,
    DuplicateSeriesPartError,
    MalformedMetadataError,
    UnknownLayoutError,
)

__version__ = "0.1.0"

__all__ = [
    "build",
    "load_config",
    "BuildError",
    "ConfigError",
    "DuplicatePermalinkError",
    "DuplicateSeriesPartError",
    "MalformedMetadataError",
    "UnknownLayoutError",
]

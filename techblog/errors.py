from pathlib import Path


class BuildError(Exception):
    """Base class for every fatal build-time error."""


class ConfigError(BuildError):
    pass


class MalformedMetadataError(BuildError):
    """
    Front matter is missing, unparsable, or lacks a required field.

    Carries the offending file and field name so the operator can fix the
    source without digging.
    """

    def __init__(self, path, field: str, reason: str = "missing"):
        self.path = Path(path)
        self.field = field
        self.reason = reason
        super().__init__(f"{self.path}: {field}: {reason}")


class DuplicateSeriesPartError(BuildError):
    def __init__(self, series: str, part, first, second):
        self.series = series
        self.part = part
        self.paths = (Path(first), Path(second))
        super().__init__(
            f"series {series!r} has two documents with series_part {part}: "
            f"{self.paths[0]} and {self.paths[1]}"
        )


class DuplicatePermalinkError(BuildError):
    def __init__(self, permalink: str, first: str, second: str):
        self.permalink = permalink
        self.sources = (first, second)
        super().__init__(f"permalink {permalink} is claimed by both {first} and {second}")


class UnknownLayoutError(BuildError):
    def __init__(self, path, layout):
        self.path = Path(path)
        self.layout = layout
        super().__init__(f"{self.path}: unknown layout {layout!r}")

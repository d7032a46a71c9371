from pathlib import Path


class DeclfactsError(Exception):
    """Base class for extraction failures."""


class ExtractionError(DeclfactsError):
    """Raised when a translation unit can't be loaded."""

    def __init__(self, path: Path | str, message: str = ""):
        self.path = Path(path)
        self.message = message
        super().__init__(f"Failed to parse {path}: {message}" if message else f"Failed to parse {path}")

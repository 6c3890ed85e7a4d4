from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ScrollcastError(Exception):
    """Base exception for errors in the scrollcast package."""


@dataclass(frozen=True)
class RootNotFoundError(ScrollcastError):
    """Raised when the repository root is missing or cannot be opened."""

    root: Path
    message: str = "The repository root does not exist or is not a directory."


@dataclass(frozen=True)
class OutputLocationError(ScrollcastError):
    """Raised when the output location cannot be created or written."""

    path: Path
    reason: str = ""
    message: str = "The output location cannot be created."


@dataclass(frozen=True)
class FileProcessingError(ScrollcastError):
    """Raised when a single file cannot be read or processed."""

    file: Path
    reason: str = ""


@dataclass(frozen=True)
class RendererUnavailableError(ScrollcastError):
    """Raised when no renderer is registered for the requested output format."""

    output_format: str
    message: str = "No renderer is registered for this output format."


@dataclass(frozen=True)
class InvalidConfigError(ScrollcastError):
    """Raised when a configuration file cannot be parsed."""

    path: Path
    reason: str = ""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, ConfigDict, Field

from scrollcast.config import OutputFormat
from scrollcast.exceptions import OutputLocationError, RendererUnavailableError
from scrollcast.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from scrollcast.settings import Settings


class DocumentMetadata(BaseModel):
    """Metadata handed to a renderer together with the document text."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="Document")
    author: str | None = Field(default=None)
    date: str | None = Field(default_factory=lambda: datetime.now(UTC).strftime("%Y-%m-%d"))
    language: str = Field(default="en")
    include_toc: bool = Field(default=True)
    syntax_theme: str = Field(default="kate")

    @classmethod
    def from_settings(cls, settings: Settings) -> DocumentMetadata:
        return cls(
            title=settings.document_title,
            author=settings.author,
            language=settings.language,
            include_toc=settings.include_toc,
            syntax_theme=settings.highlight_theme,
        )


class Renderer(Protocol):
    """Turns the assembled document into a final artifact on disk."""

    def render(self, document: str, metadata: DocumentMetadata, output_path: Path) -> Path: ...


def ensure_output_location(output_path: Path) -> None:
    """Create the parent directory of `output_path`.

    Raises:
        OutputLocationError: if the directory cannot be created
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputLocationError(path=output_path, reason=str(e)) from e


class MarkdownWriter:
    """Writes the document text unchanged: the plain-text output format."""

    def render(self, document: str, metadata: DocumentMetadata, output_path: Path) -> Path:  # noqa: ARG002
        ensure_output_location(output_path)
        try:
            output_path.write_text(document, encoding="utf-8")
        except OSError as e:
            raise OutputLocationError(path=output_path, reason=str(e)) from e
        logger.info("Wrote document", path=str(output_path), chars=len(document))
        return output_path


RENDERERS: dict[OutputFormat, Callable[[], Renderer]] = {
    OutputFormat.MARKDOWN: MarkdownWriter,
}


def register_renderer(output_format: OutputFormat) -> Callable[[Callable[[], Renderer]], Callable[[], Renderer]]:
    """Decorator registering a renderer factory for an output format.

    Paginated, e-book and hypertext renderers live outside this package and
    plug in through this registry.

    Args:
        output_format (OutputFormat): the format the factory produces

    Returns:
        Callable: a decorator that registers and returns the factory
    """

    def decorator(factory: Callable[[], Renderer]) -> Callable[[], Renderer]:
        RENDERERS[output_format] = factory
        return factory

    return decorator


def create_renderer(output_format: OutputFormat) -> Renderer:
    """Instantiate the renderer registered for `output_format`.

    Raises:
        RendererUnavailableError: if nothing is registered for the format
    """
    factory = RENDERERS.get(output_format)
    if factory is None:
        raise RendererUnavailableError(output_format=str(output_format))
    return factory()

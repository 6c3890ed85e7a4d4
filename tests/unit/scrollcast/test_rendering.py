from __future__ import annotations

from pathlib import Path

import pytest

from scrollcast.config import OutputFormat
from scrollcast.exceptions import OutputLocationError, RendererUnavailableError
from scrollcast.rendering import (
    RENDERERS,
    DocumentMetadata,
    MarkdownWriter,
    create_renderer,
    ensure_output_location,
    register_renderer,
)
from scrollcast.settings import Settings


@pytest.mark.unit
def test_markdown_writer_creates_parent_directories(tmp_path: Path) -> None:
    target = tmp_path / "out" / "nested" / "doc.md"

    written = MarkdownWriter().render("# Title\n", DocumentMetadata(), target)

    assert written == target
    assert target.read_text(encoding="utf-8") == "# Title\n"


@pytest.mark.unit
def test_output_location_under_a_file_fails(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(OutputLocationError) as exc_info:
        ensure_output_location(blocker / "doc.md")

    assert exc_info.value.path == blocker / "doc.md"


@pytest.mark.unit
def test_markdown_is_always_available() -> None:
    assert isinstance(create_renderer(OutputFormat.MARKDOWN), MarkdownWriter)


@pytest.mark.unit
@pytest.mark.parametrize("fmt", [OutputFormat.PDF, OutputFormat.EPUB, OutputFormat.HTML])
def test_unregistered_formats_are_unavailable(fmt: OutputFormat) -> None:
    with pytest.raises(RendererUnavailableError) as exc_info:
        create_renderer(fmt)

    assert exc_info.value.output_format == str(fmt)


@pytest.mark.unit
def test_register_renderer_adds_a_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("scrollcast.rendering.RENDERERS", dict(RENDERERS))

    @register_renderer(OutputFormat.HTML)
    class HtmlStub:
        def render(self, document: str, metadata: DocumentMetadata, output_path: Path) -> Path:  # noqa: ARG002
            return output_path

    assert isinstance(create_renderer(OutputFormat.HTML), HtmlStub)


@pytest.mark.unit
def test_metadata_from_settings(tmp_path: Path) -> None:
    settings = Settings(root=tmp_path, title="Book", author="Ada", highlight_theme="tango", include_toc=False)

    meta = DocumentMetadata.from_settings(settings)

    assert meta.title == "Book"
    assert meta.author == "Ada"
    assert meta.syntax_theme == "tango"
    assert meta.include_toc is False
    assert meta.date is not None

"""Document assembly: turns file records into one markdown document.

Files are consumed in batches of the planned chunk size. Between batches the
assembler reaches a cooperative checkpoint (a generator yield, a callback or
an `await`) and samples process memory for diagnostics.
"""

from __future__ import annotations

import asyncio
import io
from datetime import UTC, datetime
from itertools import batched
from typing import TYPE_CHECKING

import psutil

from scrollcast.config import DOCUMENT_MARKUP_LANGUAGE, MIB, PAGE_BREAK
from scrollcast.logging import logger
from scrollcast.transforms import (
    AnchorRegistry,
    build_tree_lines,
    escape_markup,
    fence_for,
    format_file_size,
    truncate_oversized,
    wrap_long_lines,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from scrollcast.config import FileRecord
    from scrollcast.settings import Settings

    Highlighter = Callable[[str, str], str | None]


def now_utc() -> str:
    """Return the current UTC time as `YYYY-MM-DD HH:MM:SS UTC`."""
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


class MemoryProbe:
    """Samples the resident memory of the current process.

    Owned by one assembler for the duration of a run. Crossing the soft limit
    logs a single warning; processing is never throttled.
    """

    def __init__(self, soft_limit_mb: int | None = None) -> None:
        self.soft_limit_mb = soft_limit_mb
        self.peak_mb = 0.0
        self.samples = 0
        self._warned = False
        self._process = psutil.Process()

    def sample(self) -> float:
        """Record the current resident memory and return it in MiB."""
        rss_mb = self._process.memory_info().rss / MIB
        self.samples += 1
        self.peak_mb = max(self.peak_mb, rss_mb)
        if self.soft_limit_mb is not None and rss_mb > self.soft_limit_mb and not self._warned:
            self._warned = True
            logger.warning("Memory above soft limit", rss_mb=round(rss_mb, 1), soft_limit_mb=self.soft_limit_mb)
        return rss_mb


class DocumentAssembler:
    """Builds the document buffer of one run.

    Args:
        settings: the effective configuration (title, TOC and tree flags,
            truncation and wrapping limits, memory soft limit)
        highlighter: optional collaborator returning a rendered body for
            `(text, language)`, or None to keep the plain fenced block
        clock: returns the generation timestamp
    """

    def __init__(
        self,
        settings: Settings,
        *,
        highlighter: Highlighter | None = None,
        clock: Callable[[], str] | None = None,
    ) -> None:
        self.settings = settings
        self.highlighter = highlighter
        self.clock = clock or now_utc
        self.memory = MemoryProbe(settings.memory_soft_limit_mb)
        self.anchors = AnchorRegistry()
        self.buffer = io.StringIO()

    def prepare_content(self, rec: FileRecord) -> str:
        """Apply truncation then long-line wrapping to a record's content."""
        s = self.settings
        content = rec.content
        if not rec.is_binary:
            content = truncate_oversized(
                content,
                rec.size,
                s.max_file_size,
                preview_size=s.preview_size,
                sample_size=s.sample_size,
                max_samples=s.max_samples,
            )
        return wrap_long_lines(content, s.wrap_width)

    def write_header(self, files: Sequence[FileRecord]) -> None:
        out = self.buffer
        out.write(f"# {escape_markup(self.settings.document_title)}\n\n")
        out.write(f"Generated on: {self.clock()}\n\n")

        if self.settings.include_toc and files:
            out.write("## Table of Contents\n\n")
            for rec in files:
                out.write(f"- [{escape_markup(rec.relative_path)}](#{self.anchors.anchor(rec.relative_path)})\n")
            out.write("\n")

        if self.settings.include_file_tree:
            tree = build_tree_lines(self.settings.document_title, [r.relative_path for r in files])
            out.write("## File Structure\n\n")
            out.write("```text\n")
            out.write("\n".join(tree))
            out.write("\n```\n\n")

        out.write("## File Contents\n\n")

    def write_file(self, rec: FileRecord) -> None:
        out = self.buffer
        out.write(f"{PAGE_BREAK}\n\n")
        out.write(f"### {escape_markup(rec.relative_path)} {{#{self.anchors.anchor(rec.relative_path)}}}\n\n")
        out.write(f"**Size:** {format_file_size(rec.size)}\n\n")

        body = self.prepare_content(rec)
        if self.highlighter is not None and rec.language:
            highlighted = self.highlighter(body, rec.language)
            if highlighted is not None:
                body = highlighted
        if rec.language == DOCUMENT_MARKUP_LANGUAGE:
            out.write(body)
            if not body.endswith("\n"):
                out.write("\n")
        else:
            fence = fence_for(body)
            out.write(f"{fence}{rec.language or ''}\n")
            out.write(body)
            if not body.endswith("\n"):
                out.write("\n")
            out.write(f"{fence}\n")
        out.write("\n---\n\n")

    def stream(self, files: Sequence[FileRecord], chunk_size: int) -> Iterator[int]:
        """Write the document, yielding after each batch.

        Each yield is a checkpoint where the caller may cede control; the
        yielded value is the number of files written so far.

        Args:
            files (Sequence[FileRecord]): records in output order
            chunk_size (int): number of files per batch

        Yields:
            int: files written so far
        """
        self.write_header(files)
        if not files:
            logger.warning("No files to include after filtering")
            return
        written = 0
        total_batches = -(-len(files) // chunk_size)
        for index, batch in enumerate(batched(files, chunk_size), start=1):
            for rec in batch:
                self.write_file(rec)
            written += len(batch)
            rss_mb = self.memory.sample()
            logger.debug("Assembled batch", batch=index, batches=total_batches, files=written, rss_mb=round(rss_mb, 1))
            yield written

    def assemble(
        self,
        files: Sequence[FileRecord],
        chunk_size: int,
        *,
        checkpoint: Callable[[], object] | None = None,
    ) -> str:
        """Assemble the whole document.

        Args:
            files (Sequence[FileRecord]): records in output order
            chunk_size (int): number of files per batch
            checkpoint: called between batches to let the host reclaim memory

        Returns:
            str: the document text
        """
        for written in self.stream(files, chunk_size):
            if checkpoint is not None and written < len(files):
                checkpoint()
        return self.buffer.getvalue()

    async def assemble_async(self, files: Sequence[FileRecord], chunk_size: int) -> str:
        """Assemble the document, yielding to the event loop between batches."""
        for written in self.stream(files, chunk_size):
            if written < len(files):
                await asyncio.sleep(0)
        return self.buffer.getvalue()


def assemble(
    files: Sequence[FileRecord],
    chunk_size: int,
    settings: Settings,
    *,
    highlighter: Highlighter | None = None,
    checkpoint: Callable[[], object] | None = None,
) -> str:
    """Assemble `files` into one document with a fresh `DocumentAssembler`."""
    return DocumentAssembler(settings, highlighter=highlighter).assemble(files, chunk_size, checkpoint=checkpoint)

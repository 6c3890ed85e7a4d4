from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from scrollcast.assembler import DocumentAssembler
from scrollcast.config import FileRecord
from scrollcast.logging import logger
from scrollcast.planner import ChunkPlan, plan_chunk_size
from scrollcast.rendering import DocumentMetadata, create_renderer
from scrollcast.walker import discover

if TYPE_CHECKING:
    from collections.abc import Callable

    from scrollcast.assembler import Highlighter
    from scrollcast.exclusion import ExclusionRuleSet
    from scrollcast.settings import Settings


class RunResult(BaseModel):
    """Outcome of one pipeline run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    files: tuple[FileRecord, ...]
    plan: ChunkPlan
    document: str
    output_path: Path | None = None


def build_document(
    settings: Settings,
    *,
    rules: ExclusionRuleSet | None = None,
    highlighter: Highlighter | None = None,
    checkpoint: Callable[[], object] | None = None,
) -> RunResult:
    """Walk, plan and assemble without writing anything.

    Args:
        settings (Settings): the effective configuration
        rules (ExclusionRuleSet | None): prebuilt exclusion rules
        highlighter: optional highlighting collaborator
        checkpoint: called between assembly batches

    Raises:
        RootNotFoundError: if the root cannot be opened

    Returns:
        RunResult: the records, plan and document (no output path)
    """
    files = discover(settings.root, settings, rules=rules)
    if not files:
        logger.warning("No files remain after filtering", root=str(settings.root))
    plan = plan_chunk_size(files, settings.default_chunk_size)
    assembler = DocumentAssembler(settings, highlighter=highlighter)
    document = assembler.assemble(files, plan.effective_chunk_size, checkpoint=checkpoint)
    logger.info("Assembled document", files=len(files), peak_rss_mb=round(assembler.memory.peak_mb, 1))
    return RunResult(files=tuple(files), plan=plan, document=document)


def run(
    settings: Settings,
    *,
    rules: ExclusionRuleSet | None = None,
    highlighter: Highlighter | None = None,
    checkpoint: Callable[[], object] | None = None,
) -> RunResult:
    """Run the whole pipeline and hand the document to the renderer.

    Raises:
        RootNotFoundError: if the root cannot be opened
        OutputLocationError: if the output cannot be written
        RendererUnavailableError: if no renderer exists for the output format

    Returns:
        RunResult: the run outcome, including the written output path
    """
    renderer = create_renderer(settings.output_format)
    result = build_document(settings, rules=rules, highlighter=highlighter, checkpoint=checkpoint)
    output_path = renderer.render(result.document, DocumentMetadata.from_settings(settings), settings.output_path)
    return result.model_copy(update={"output_path": output_path})

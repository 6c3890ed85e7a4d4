from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, computed_field

from scrollcast.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from scrollcast.config import FileRecord

STRICT_FILE_COUNT = 10
STRICT_TOTAL_SIZE = 1_000_000
STRICT_LARGE_FILE_COUNT = 5
SMALL_BATCH_FILE_COUNT = 5
SMALL_BATCH_AVERAGE_SIZE = 10_000
SMALL_BATCH_SIZE = 3


class RepositoryStats(BaseModel):
    """Aggregate statistics of a walk result."""

    model_config = ConfigDict(frozen=True)

    file_count: int = Field(default=0, ge=0)
    total_size: int = Field(default=0, ge=0)
    large_file_count: int = Field(default=0, ge=0)
    huge_file_count: int = Field(default=0, ge=0)

    @computed_field
    @property
    def average_size(self) -> float:
        """Mean file size in bytes, 0 for an empty walk."""
        return self.total_size / self.file_count if self.file_count else 0.0

    @classmethod
    def from_records(cls, files: Sequence[FileRecord]) -> RepositoryStats:
        """Compute the statistics of discovered files."""
        return cls(
            file_count=len(files),
            total_size=sum(f.size for f in files),
            large_file_count=sum(1 for f in files if f.is_large),
            huge_file_count=sum(1 for f in files if f.is_huge),
        )


class ChunkPlan(BaseModel):
    """Batch size chosen for one run."""

    model_config = ConfigDict(frozen=True)

    effective_chunk_size: PositiveInt
    stats: RepositoryStats = Field(default_factory=RepositoryStats)


def chunk_size_for(stats: RepositoryStats, default_chunk_size: int) -> int:
    """Pick a batch size from repository statistics.

    First match wins:
    1) more than 10 files, more than 1,000,000 bytes in total, or more than
       5 large files: 1 (one file at a time).
    2) more than 5 files or an average above 10,000 bytes: 3.
    3) otherwise `default_chunk_size`.

    Args:
        stats (RepositoryStats): aggregate statistics of the walk
        default_chunk_size (int): batch size for small repositories

    Returns:
        int: the batch size
    """
    if (
        stats.file_count > STRICT_FILE_COUNT
        or stats.total_size > STRICT_TOTAL_SIZE
        or stats.large_file_count > STRICT_LARGE_FILE_COUNT
    ):
        return 1
    if stats.file_count > SMALL_BATCH_FILE_COUNT or stats.average_size > SMALL_BATCH_AVERAGE_SIZE:
        return SMALL_BATCH_SIZE
    return default_chunk_size


def plan_chunk_size(files: Sequence[FileRecord], default_chunk_size: int) -> ChunkPlan:
    """Compute the chunk plan of a walk result.

    Args:
        files (Sequence[FileRecord]): the discovered records
        default_chunk_size (int): batch size for small repositories

    Returns:
        ChunkPlan: the plan, carrying the statistics it was derived from
    """
    stats = RepositoryStats.from_records(files)
    size = chunk_size_for(stats, default_chunk_size)
    logger.info(
        "Planned chunk size",
        chunk_size=size,
        file_count=stats.file_count,
        total_size=stats.total_size,
        large_files=stats.large_file_count,
        huge_files=stats.huge_file_count,
    )
    return ChunkPlan(effective_chunk_size=size, stats=stats)

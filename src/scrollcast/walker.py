from __future__ import annotations

import os
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from scrollcast.classifier import classify_bytes
from scrollcast.config import (
    HUGE_FILE_THRESHOLD,
    LARGE_REPOSITORY_FILE_COUNT,
    TOP_DIRECTORIES_REPORTED,
    FileRecord,
)
from scrollcast.exceptions import FileProcessingError, RootNotFoundError
from scrollcast.exclusion import ExclusionRuleSet, VcsIgnore, is_excluded
from scrollcast.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from scrollcast.settings import Settings


def relpath(path: Path, root: Path) -> str:
    """Return the root-relative path of `path` with POSIX separators.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Raises:
        FileProcessingError: if `path` is not under `root`

    Returns:
        str: the relative path from root to path
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError as e:
        raise FileProcessingError(file=path, reason=f"not under {root}") from e


def sort_key(record: FileRecord) -> bytes:
    """Byte-wise ordering key of a record's relative path."""
    return record.relative_path.encode("utf-8", errors="surrogateescape")


def iter_candidate_files(root: Path, rules: ExclusionRuleSet) -> Iterator[Path]:
    """Walk `root` and yield regular files whose directories are not excluded.

    Excluded directories are pruned rather than descended into, symbolic
    links are never followed, and the `.gitignore` of every visited directory
    is registered with the VCS matcher before its entries are evaluated.

    Args:
        root (Path): the resolved repository root
        rules (ExclusionRuleSet): the exclusion rules of the run

    Yields:
        Path: absolute paths of candidate regular files
    """

    def on_error(err: OSError) -> None:
        logger.warning("Cannot read directory", path=err.filename, error=err.strerror)

    for current, dirs, files in os.walk(root, onerror=on_error, followlinks=False):
        here = Path(current)
        rel_dir = "" if here == root else relpath(here, root)
        if rel_dir and rules.vcs is not None and rules.respect_vcs_ignore:
            rules.vcs.load_directory(rel_dir, here)
        kept: list[str] = []
        for d in sorted(dirs):
            child_rel = f"{rel_dir}/{d}" if rel_dir else d
            if (here / d).is_symlink() or is_excluded(child_rel, rules, is_dir=True):
                continue
            kept.append(d)
        dirs[:] = kept
        for f in sorted(files):
            p = here / f
            if p.is_symlink() or not p.is_file():
                continue
            yield p


def read_record(path: Path, root: Path) -> FileRecord:
    """Read and classify one file.

    Args:
        path (Path): absolute file path
        root (Path): repository root

    Raises:
        FileProcessingError: if the file cannot be read

    Returns:
        FileRecord: the classified record
    """
    rel = relpath(path, root)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileProcessingError(file=path, reason=str(e)) from e
    content, language, is_binary = classify_bytes(rel, data)
    return FileRecord(relative_path=rel, content=content, language=language, size=len(data), is_binary=is_binary)


def directory_file_counts(records: Sequence[FileRecord]) -> list[tuple[str, int]]:
    """Count included files per parent directory, most populated first.

    Args:
        records (Sequence[FileRecord]): the discovered records

    Returns:
        list[tuple[str, int]]: (directory, count) pairs; "." is the root
    """
    counts = Counter(str(PurePosixPath(r.relative_path).parent) for r in records)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def report_large_repository(records: Sequence[FileRecord]) -> None:
    """Log advisories for large repositories and huge files."""
    if len(records) > LARGE_REPOSITORY_FILE_COUNT:
        top = directory_file_counts(records)[:TOP_DIRECTORIES_REPORTED]
        logger.warning(
            "Processing many files; the document may be large",
            file_count=len(records),
            top_directories=[f"{d} - {n} files" for d, n in top],
            hint="Use .gitignore or ignore rules to reduce the number of files.",
        )
    for rec in records:
        if rec.size > HUGE_FILE_THRESHOLD:
            logger.warning("Huge file will be truncated or slow to render", path=rec.relative_path, size=rec.size)


def build_rules(root: Path, settings: Settings, *, global_ignore: Path | None = None) -> ExclusionRuleSet:
    """Create the exclusion rules of a run, loading VCS ignore files when enabled.

    Args:
        root (Path): the resolved repository root
        settings (Settings): the effective configuration
        global_ignore (Path | None): explicit global ignore file, bypassing lookup

    Returns:
        ExclusionRuleSet: the rules for `discover`
    """
    vcs = VcsIgnore.for_root(root, global_file=global_ignore) if settings.respect_gitignore else None
    return ExclusionRuleSet.from_settings(settings, vcs=vcs)


def discover(root: Path, settings: Settings, *, rules: ExclusionRuleSet | None = None) -> list[FileRecord]:
    """Discover, read and classify every included file under `root`.

    Per-file failures are logged and the file skipped. The result is sorted
    byte-wise by relative path, so repeated runs on an unchanged tree yield
    identical output.

    Args:
        root (Path): the repository root
        settings (Settings): the effective configuration
        rules (ExclusionRuleSet | None): prebuilt rules; built from `settings` when None

    Raises:
        RootNotFoundError: if `root` does not exist or is not a directory

    Returns:
        list[FileRecord]: one record per included file
    """
    if not root.is_dir():
        raise RootNotFoundError(root=root)
    try:
        root = root.resolve(strict=True)
        os.scandir(root).close()
    except OSError as e:
        raise RootNotFoundError(root=root) from e

    if rules is None:
        rules = build_rules(root, settings)

    records: list[FileRecord] = []
    for path in iter_candidate_files(root, rules):
        try:
            rel = relpath(path, root)
            if is_excluded(rel, rules):
                continue
            records.append(read_record(path, root))
        except FileProcessingError as e:
            logger.warning("Skipping file", path=str(e.file), reason=e.reason)

    records.sort(key=sort_key)
    logger.info("Discovered files", root=str(root), file_count=len(records))
    report_large_repository(records)
    return records

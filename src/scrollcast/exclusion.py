"""Exclusion policy: decides whether a root-relative path is left out.

Built-in tables are always active. Caller-supplied rules and VCS ignore
files add to them; every predicate is independent and any match excludes.
"""

from __future__ import annotations

import os
import subprocess  # noqa: S404
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec
from pydantic import BaseModel, ConfigDict, Field

from scrollcast.config import BUILTIN_EXCLUDED_DIRS, BUILTIN_EXCLUDED_EXTENSIONS, BUILTIN_EXCLUDED_FILES
from scrollcast.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from scrollcast.settings import Settings

IGNORE_FILE_NAME = ".gitignore"


def normalize_rel(path: str) -> str:
    """Normalize a relative path to POSIX separators without leading `./` or `/`.

    Args:
        path (str): a root-relative path, possibly using backslashes

    Returns:
        str: the normalized path
    """
    rel = path.replace("\\", "/")
    while rel.startswith("./"):
        rel = rel[2:]
    return rel.strip("/")


def _read_ignore_lines(path: Path) -> list[str] | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        logger.warning("Cannot read ignore file", path=str(path), error=str(e))
        return None


def global_ignore_file() -> Path | None:
    """Locate the user's global VCS ignore file.

    Uses `git config core.excludesFile` when git is available, and falls back
    to `$XDG_CONFIG_HOME/git/ignore` (or `~/.config/git/ignore`).

    Returns:
        Path | None: the global ignore file, or None if none exists
    """
    try:
        out = subprocess.run(
            ["git", "config", "--get", "core.excludesFile"],  # noqa: S607
            text=True,
            capture_output=True,
            check=False,
        )
        configured = out.stdout.strip()
    except OSError:
        configured = ""
    if configured:
        candidate = Path(configured).expanduser()
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
        candidate = Path(xdg) / "git" / "ignore"
    return candidate if candidate.is_file() else None


class VcsIgnore:
    """Layered VCS ignore matcher.

    Levels, from highest to lowest precedence: the nearest enclosing
    `.gitignore`, enclosing `.gitignore` files further up, the repository
    exclude file, the global ignore file. The highest level with a matching
    pattern decides, and within a level the last matching pattern wins, so a
    negation re-includes a path. A path under an ignored directory stays
    ignored.

    Ignore files of nested directories are registered while walking through
    `load_directory`; matching itself never touches the filesystem.
    """

    def __init__(
        self,
        *,
        global_lines: Iterable[str] | None = None,
        exclude_lines: Iterable[str] | None = None,
    ) -> None:
        self._global = GitIgnoreSpec.from_lines(global_lines) if global_lines else None
        self._exclude = GitIgnoreSpec.from_lines(exclude_lines) if exclude_lines else None
        self._specs: dict[str, GitIgnoreSpec] = {}

    @classmethod
    def for_root(cls, root: Path, *, global_file: Path | None = None, use_global: bool = True) -> VcsIgnore:
        """Build a matcher with the global and repository exclude files of `root`.

        Args:
            root (Path): repository root
            global_file (Path | None): explicit global ignore file; when None and
                `use_global` is set, the user's configured file is looked up
            use_global (bool): whether to consult a global ignore file at all

        Returns:
            VcsIgnore: a matcher with the root `.gitignore` already loaded
        """
        if global_file is None and use_global:
            global_file = global_ignore_file()
        global_lines = _read_ignore_lines(global_file) if global_file else None
        exclude_path = root / ".git" / "info" / "exclude"
        exclude_lines = _read_ignore_lines(exclude_path) if exclude_path.is_file() else None
        matcher = cls(global_lines=global_lines, exclude_lines=exclude_lines)
        matcher.load_directory("", root)
        return matcher

    def add_patterns(self, rel_dir: str, lines: Iterable[str]) -> None:
        """Register ignore patterns that apply below `rel_dir` ("" for the root)."""
        self._specs[normalize_rel(rel_dir)] = GitIgnoreSpec.from_lines(lines)

    def load_directory(self, rel_dir: str, abs_dir: Path) -> None:
        """Register the `.gitignore` of a directory, if it has one."""
        ignore_file = abs_dir / IGNORE_FILE_NAME
        if not ignore_file.is_file():
            return
        lines = _read_ignore_lines(ignore_file)
        if lines is not None:
            self.add_patterns(rel_dir, lines)

    def _match(self, rel: str, *, is_dir: bool) -> bool | None:
        parts = rel.split("/")
        suffix = "/" if is_dir else ""
        for depth in range(len(parts) - 1, -1, -1):
            spec = self._specs.get("/".join(parts[:depth]))
            if spec is None:
                continue
            result = spec.check_file("/".join(parts[depth:]) + suffix)
            if result.include is not None:
                return result.include
        for spec in (self._exclude, self._global):
            if spec is None:
                continue
            result = spec.check_file(rel + suffix)
            if result.include is not None:
                return result.include
        return None

    def is_ignored(self, rel: str, *, is_dir: bool = False) -> bool:
        """Check whether a root-relative path is ignored.

        Args:
            rel (str): root-relative POSIX path
            is_dir (bool): whether the path names a directory

        Returns:
            bool: True if the path or one of its parent directories is ignored
        """
        rel = normalize_rel(rel)
        if not rel:
            return False
        parts = rel.split("/")
        for depth in range(1, len(parts)):
            if self._match("/".join(parts[:depth]), is_dir=True):
                return True
        return bool(self._match(rel, is_dir=is_dir))


class ExclusionRuleSet(BaseModel):
    """Every rule consulted by `is_excluded`.

    Attributes:
        builtin_dirs: Directory names excluded at any depth.
        builtin_files: Base names always excluded.
        builtin_extensions: Extensions (with leading dot, case-sensitive) always excluded.
        respect_vcs_ignore: Whether `vcs` is consulted.
        ignored_files: Substrings matched against the relative path and base name.
        ignored_extensions: Caller-supplied extensions.
        ignored_directories: Caller-supplied directory prefixes.
        vcs: Loaded VCS ignore matcher (only used when `respect_vcs_ignore`).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    builtin_dirs: frozenset[str] = Field(default=BUILTIN_EXCLUDED_DIRS)
    builtin_files: frozenset[str] = Field(default=BUILTIN_EXCLUDED_FILES)
    builtin_extensions: frozenset[str] = Field(default=BUILTIN_EXCLUDED_EXTENSIONS)
    respect_vcs_ignore: bool = Field(default=True)
    ignored_files: tuple[str, ...] = Field(default=())
    ignored_extensions: tuple[str, ...] = Field(default=())
    ignored_directories: tuple[str, ...] = Field(default=())
    vcs: VcsIgnore | None = Field(default=None)

    @classmethod
    def from_settings(cls, settings: Settings, vcs: VcsIgnore | None = None) -> ExclusionRuleSet:
        """Build the rule set of a run from its settings."""
        return cls(
            respect_vcs_ignore=settings.respect_gitignore,
            ignored_files=tuple(f for f in settings.ignored_files if f),
            ignored_extensions=tuple(settings.ignored_extensions),
            ignored_directories=tuple(_directory_prefix(d) for d in settings.ignored_directories if normalize_rel(d)),
            vcs=vcs,
        )


def _directory_prefix(entry: str) -> str:
    # a trailing separator is kept so "docs/" only covers "docs/..."
    rel = normalize_rel(entry)
    return f"{rel}/" if entry.replace("\\", "/").endswith("/") else rel


def _in_ignored_directory(rel: str, directories: Iterable[str], *, is_dir: bool) -> bool:
    # plain prefix test: "docs" also covers "docs-old/..."
    candidate = f"{rel}/" if is_dir else rel
    return any(candidate.startswith(d) for d in directories)


def is_excluded(path: str, rules: ExclusionRuleSet, *, is_dir: bool = False) -> bool:
    """Decide whether a root-relative path is excluded.

    Pure: only `rules` is consulted, never the filesystem. For directories only
    the directory rules apply (builtin names, ignored directories, VCS ignore),
    which lets the walker prune them.

    Args:
        path (str): root-relative path (any separator)
        rules (ExclusionRuleSet): the rules of the run
        is_dir (bool): whether the path names a directory

    Returns:
        bool: True if any rule excludes the path
    """
    rel = normalize_rel(path)
    posix = PurePosixPath(rel)
    parts = posix.parts
    dir_parts = parts if is_dir else parts[:-1]

    if any(part in rules.builtin_dirs for part in dir_parts):
        return True
    if _in_ignored_directory(rel, rules.ignored_directories, is_dir=is_dir):
        return True
    if rules.respect_vcs_ignore and rules.vcs is not None and rules.vcs.is_ignored(rel, is_dir=is_dir):
        return True
    if is_dir:
        return False

    name = posix.name
    # base names such as `.DS_Store` also appear in the directory table
    if name in rules.builtin_files or name in rules.builtin_dirs:
        return True
    suffix = posix.suffix
    if suffix and suffix in rules.builtin_extensions:
        return True
    if any(entry in rel or entry in name for entry in rules.ignored_files):
        return True
    return bool(suffix) and suffix in rules.ignored_extensions

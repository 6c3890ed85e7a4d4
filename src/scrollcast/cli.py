"""scrollcast: turn a source tree into one printable document.

Usage
-----
    scrollcast ./my-repo --output my-repo.md
    scrollcast ./my-repo --format md --no-toc --ignore-dir docs --ignore-ext .lock
    scrollcast ./my-repo --config scrollcast.yaml --log-file run.log
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING, Any

from scrollcast import __version__
from scrollcast.config import OutputFormat
from scrollcast.logging import logger, setup_logging
from scrollcast.pipeline import run
from scrollcast.settings import Settings, resolve_settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scrollcast",
        description="Convert a repository into a single structured document.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("root", nargs="?", type=Path, default=None, help="Repository root (default: cwd).")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output file.")
    p.add_argument(
        "-f",
        "--format",
        dest="output_format",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Output format.",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML configuration file.")
    p.add_argument("--title", default=None, help="Document title.")
    p.add_argument("--author", default=None, help="Document author.")
    p.add_argument("--theme", dest="highlight_theme", default=None, help="Highlight theme name.")
    p.add_argument("--log-file", default=None, help="Log file path.")

    p.add_argument("--no-toc", dest="include_toc", action="store_false", default=None, help="Omit the TOC.")
    p.add_argument(
        "--no-tree",
        dest="include_file_tree",
        action="store_false",
        default=None,
        help="Omit the file tree listing.",
    )
    p.add_argument(
        "--no-gitignore",
        dest="respect_gitignore",
        action="store_false",
        default=None,
        help="Do not honor VCS ignore files.",
    )
    p.add_argument("--ignore-file", dest="ignored_files", action="append", default=None, help="Ignored name (repeatable).")
    p.add_argument(
        "--ignore-ext",
        dest="ignored_extensions",
        action="append",
        default=None,
        help="Ignored extension, e.g. .log (repeatable).",
    )
    p.add_argument(
        "--ignore-dir",
        dest="ignored_directories",
        action="append",
        default=None,
        help="Ignored directory prefix (repeatable).",
    )
    p.add_argument("--chunk-size", dest="default_chunk_size", type=int, default=None, help="Default batch size.")
    p.add_argument("--max-file-size", type=int, default=None, help="Files above (bytes) are truncated.")
    p.add_argument("--memory-limit-mb", dest="memory_soft_limit_mb", type=int, default=None, help="Memory warning threshold.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line flags and resolve the effective settings.

    Flags left unset fall through to the configuration file, the `.env`
    layer and the built-in defaults.

    Args:
        argv: arguments without the program name; None reads `sys.argv`

    Returns:
        Settings: the effective configuration
    """
    args = vars(build_parser().parse_args(argv))
    config_file: Path | None = args.pop("config")
    overrides: dict[str, Any] = {k: v for k, v in args.items() if v is not None}
    return resolve_settings(overrides, config_file=config_file)


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    result = run(settings)
    logger.info("Done", output=str(result.output_path), files=len(result.files))
    print(f"Wrote {result.output_path} format={settings.output_format} files={len(result.files)}")  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

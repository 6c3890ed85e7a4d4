from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from scrollcast.config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MAX_SAMPLES,
    DEFAULT_PREVIEW_SIZE,
    DEFAULT_SAMPLE_SIZE,
    DEFAULT_WRAP_WIDTH,
    OutputFormat,
)
from scrollcast.exceptions import InvalidConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "SCROLLCAST_"
DEFAULT_CONFIG_NAME = "scrollcast.yaml"

_LIST_FIELDS = frozenset({"ignored_files", "ignored_extensions", "ignored_directories"})
_IGNORE_SECTION_KEYS = {
    "files": "ignored_files",
    "extensions": "ignored_extensions",
    "directories": "ignored_directories",
}


class Settings(BaseModel):
    """Effective configuration of one scrollcast run.

    Instances are immutable: every layer (defaults, environment, configuration
    file, explicit flags) is merged by `resolve_settings` before the pipeline
    starts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    root: Path = Field(default_factory=Path.cwd, description="Repository root.")
    output: Path | None = Field(default=None, description="Output file; defaults to <root name>.<ext>.")
    output_format: OutputFormat = Field(default=OutputFormat.MARKDOWN, description="Output format.")
    title: str | None = Field(default=None, description="Document title; defaults to the root name.")
    author: str | None = Field(default=None, description="Document author.")
    include_toc: bool = Field(default=True, description="Emit a table of contents.")
    include_file_tree: bool = Field(default=True, description="Emit the file tree listing.")
    respect_gitignore: bool = Field(default=True, description="Honor VCS ignore files.")

    ignored_files: tuple[str, ...] = Field(default=(), description="Ignored file substrings.")
    ignored_extensions: tuple[str, ...] = Field(default=(), description="Ignored extensions (with dot).")
    ignored_directories: tuple[str, ...] = Field(default=(), description="Ignored directory prefixes.")

    default_chunk_size: PositiveInt = Field(default=DEFAULT_CHUNK_SIZE, description="Batch size for small repositories.")
    max_file_size: PositiveInt = Field(default=DEFAULT_MAX_FILE_SIZE, description="Files above are truncated.")
    preview_size: PositiveInt = Field(default=DEFAULT_PREVIEW_SIZE, description="Leading preview of truncated files.")
    sample_size: PositiveInt = Field(default=DEFAULT_SAMPLE_SIZE, description="Size of each truncated-file sample.")
    max_samples: int = Field(default=DEFAULT_MAX_SAMPLES, ge=0, description="Samples drawn from truncated files.")
    wrap_width: PositiveInt = Field(default=DEFAULT_WRAP_WIDTH, description="Long-line wrapping threshold.")
    memory_soft_limit_mb: PositiveInt | None = Field(default=2048, description="Memory warning threshold (MiB).")

    highlight_theme: str = Field(default="kate", description="Highlight theme passed to the renderer.")
    language: str = Field(default="en", description="Document language tag.")
    log_file: str = Field(default="", description="Log file path.")

    @property
    def document_title(self) -> str:
        """Title of the document, falling back to the root directory name."""
        return self.title or self.root.resolve().name or str(self.root)

    @property
    def output_path(self) -> Path:
        """Output file, defaulting to `<root name>.<format extension>` in the cwd."""
        if self.output is not None:
            return self.output
        name = self.root.resolve().name or "repository"
        return Path(f"{name}.{self.output_format.extension}")


def _coerce_value(key: str, value: Any) -> Any:  # noqa: ANN401
    if key in _LIST_FIELDS and isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return value


def load_env_layer(env_file: str | Path | None = None) -> dict[str, Any]:
    """Read `SCROLLCAST_*` entries from a dotenv file.

    Args:
        env_file: Explicit dotenv path. When None, the nearest `.env` from the
            current working directory is used, if any.

    Returns:
        dict[str, Any]: settings keys (lower-cased, prefix removed) to raw values
    """
    path = str(env_file) if env_file else find_dotenv(usecwd=True)
    if not path:
        return {}
    layer: dict[str, Any] = {}
    for key, value in dotenv_values(path).items():
        if not key.startswith(ENV_PREFIX) or value is None:
            continue
        name = key.removeprefix(ENV_PREFIX).lower()
        if name in Settings.model_fields:
            layer[name] = _coerce_value(name, value)
    return layer


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file into a flat settings mapping.

    Flat keys map directly to `Settings` fields. An `ignore` section with
    `files`, `extensions` and `directories` lists is flattened into the
    matching `ignored_*` fields.

    Args:
        path (Path): the YAML file to read

    Raises:
        InvalidConfigError: if the file cannot be parsed or is not a mapping

    Returns:
        dict[str, Any]: the flattened settings mapping
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise InvalidConfigError(path=path, reason=str(e)) from e
    if not isinstance(data, dict):
        raise InvalidConfigError(path=path, reason="top-level value must be a mapping")

    layer: dict[str, Any] = {}
    ignore = data.pop("ignore", None) or {}
    if not isinstance(ignore, dict):
        raise InvalidConfigError(path=path, reason="'ignore' must be a mapping")
    for key, field in _IGNORE_SECTION_KEYS.items():
        if key in ignore:
            layer[field] = tuple(ignore[key] or ())
    for key, value in data.items():
        layer[str(key)] = _coerce_value(str(key), value)
    return layer


def resolve_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    config_file: Path | None = None,
    env_file: str | Path | None = None,
) -> Settings:
    """Resolve the layered configuration into one immutable `Settings`.

    Precedence, lowest to highest: built-in defaults, `SCROLLCAST_*` dotenv
    entries, the YAML configuration file, explicit overrides. Override values
    of None are treated as "not given".

    Args:
        overrides: explicit values, typically parsed command-line flags
        config_file: YAML configuration file; when None, `scrollcast.yaml` in
            the root is used if present
        env_file: dotenv file; when None, the nearest `.env` is searched

    Returns:
        Settings: the effective configuration
    """
    given = {k: v for k, v in (overrides or {}).items() if v is not None}
    merged: dict[str, Any] = {}
    merged.update(load_env_layer(env_file))

    root = Path(given.get("root", merged.get("root", Path.cwd())))
    if config_file is None and (root / DEFAULT_CONFIG_NAME).is_file():
        config_file = root / DEFAULT_CONFIG_NAME
    if config_file is not None:
        merged.update(load_config_file(config_file))

    merged.update(given)
    return Settings.model_validate(merged)

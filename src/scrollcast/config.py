from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field

KIB = 1024
MIB = 1024 * KIB

LARGE_FILE_THRESHOLD = 50 * KIB
HUGE_FILE_THRESHOLD = 10 * MIB
LARGE_REPOSITORY_FILE_COUNT = 50
TOP_DIRECTORIES_REPORTED = 5

DEFAULT_MAX_FILE_SIZE = 50 * MIB
DEFAULT_PREVIEW_SIZE = 100 * KIB
DEFAULT_SAMPLE_SIZE = 10 * KIB
DEFAULT_MAX_SAMPLES = 5
DEFAULT_WRAP_WIDTH = 100
DEFAULT_CHUNK_SIZE = 10

# Markup dialect of the assembled document; files tagged with it are inlined.
DOCUMENT_MARKUP_LANGUAGE = "markdown"
PAGE_BREAK = "\\newpage"

BUILTIN_EXCLUDED_DIRS = frozenset({
    # version control
    ".git",
    ".svn",
    ".hg",
    # IDE and editor folders
    ".vscode",
    ".idea",
    ".vs",
    # build output
    "target",
    "dist",
    "build",
    "out",
    # dependencies
    "node_modules",
    "vendor",
    ".cargo",
    # caches
    ".cache",
    "__pycache__",
    ".pytest_cache",
    # OS artifacts
    ".DS_Store",
    "Thumbs.db",
})

BUILTIN_EXCLUDED_FILES = frozenset({
    ".gitignore",
    ".gitmodules",
    ".gitattributes",
    "package-lock.json",
    "yarn.lock",
    "Cargo.lock",
    "composer.lock",
    "Gemfile.lock",
    ".editorconfig",
    ".DS_Store",
    "Thumbs.db",
    "desktop.ini",
})

BUILTIN_EXCLUDED_EXTENSIONS = frozenset({
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".svg", ".ico", ".webp",
    # video
    ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mkv",
    # audio
    ".mp3", ".wav", ".flac", ".aac", ".ogg", ".wma",
    # archives
    ".zip", ".tar", ".gz", ".bz2", ".rar", ".7z", ".xz",
    # executables
    ".exe", ".dll", ".so", ".dylib", ".bin", ".app",
    # binary documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".ps",
    # fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
})  # fmt: skip

EXT2LANG: dict[str, str] = {
    ".rs": "rust",
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "jsx",
    ".tsx": "tsx",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".sass": "scss",
    ".json": "json",
    ".xml": "xml",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".markdown": "markdown",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "zsh",
    ".fish": "fish",
    ".c": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".c++": "cpp",
    ".h": "c",
    ".hpp": "c",
    ".go": "go",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".swift": "swift",
    ".php": "php",
    ".rb": "ruby",
    ".pl": "perl",
    ".lua": "lua",
    ".r": "r",
    ".sql": "sql",
    ".dockerfile": "dockerfile",
    ".env": "bash",
    ".sol": "solidity",
    ".vy": "python",
    ".move": "rust",
}

ENV_FILE_PREFIX = ".env"
CONTAINER_BUILD_PREFIX = "dockerfile"


class OutputFormat(StrEnum):
    """Output formats understood by the rendering boundary."""

    PDF = "pdf"
    EPUB = "epub"
    HTML = "html"
    MARKDOWN = "md"

    @property
    def extension(self) -> str:
        """File extension (without dot) of artifacts in this format."""
        return self.value


class FileRecord(BaseModel):
    """One discovered file, ready to be embedded in the document.

    Attributes:
        relative_path: Root-relative path with POSIX separators.
        content: Decoded text, or a binary placeholder.
        language: Fence language tag, or None when unknown.
        size: Original byte length on disk, never the length of `content`.
        is_binary: Whether `content` is a placeholder for binary data.
    """

    model_config = ConfigDict(frozen=True)

    relative_path: str = Field(..., description="Root-relative, slash-normalized path")
    content: str = Field(..., description="Decoded text or binary placeholder")
    language: str | None = Field(default=None, description="Fenced code block language tag")
    size: int = Field(..., ge=0, description="Original size in bytes")
    is_binary: bool = Field(default=False, description="Content is a binary placeholder")

    @computed_field
    @property
    def is_large(self) -> bool:
        """Whether the file counts as large for chunk planning."""
        return self.size > LARGE_FILE_THRESHOLD

    @computed_field
    @property
    def is_huge(self) -> bool:
        """Whether the file counts as huge for chunk planning and advisories."""
        return self.size > HUGE_FILE_THRESHOLD

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from scrollcast.config import DEFAULT_MAX_SAMPLES, DEFAULT_PREVIEW_SIZE, DEFAULT_SAMPLE_SIZE, DEFAULT_WRAP_WIDTH

if TYPE_CHECKING:
    from collections.abc import Sequence

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
MARKUP_SPECIAL_CHARS = "_#$%&^{}"
LINE_BREAKPOINTS = frozenset(" ,;)}")

_ESCAPE_TABLE = str.maketrans({c: f"\\{c}" for c in MARKUP_SPECIAL_CHARS})
_BACKTICK_RUN = re.compile(r"`{3,}")


def format_file_size(size: int) -> str:
    """Format a byte count with binary prefixes.

    Sizes under 1024 bytes are exact ("512 B"); larger sizes are divided by
    1024 until they fit a unit and shown with one decimal ("1.5 KB").

    Args:
        size (int): the size in bytes

    Returns:
        str: the human-readable size
    """
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:  # noqa: PLR2004
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{size} {SIZE_UNITS[0]}"
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def escape_markup(text: str) -> str:
    """Backslash-escape the characters `_ # $ % & ^ { }` for headings and TOC entries."""
    return text.translate(_ESCAPE_TABLE)


def anchor_slug(relative_path: str) -> str:
    """Return the heading anchor of a path: separators and dots become hyphens."""
    return relative_path.replace("/", "-").replace("\\", "-").replace(".", "-")


class AnchorRegistry:
    """Hands out unique anchors for one document.

    The first path with a given slug keeps it; later paths that normalize to
    the same slug get `-2`, `-3`, ... appended. Asking again for a known path
    returns the anchor it already received.
    """

    def __init__(self) -> None:
        self._by_path: dict[str, str] = {}
        self._taken: set[str] = set()

    def anchor(self, relative_path: str) -> str:
        if relative_path in self._by_path:
            return self._by_path[relative_path]
        base = anchor_slug(relative_path)
        slug = base
        n = 1
        while slug in self._taken:
            n += 1
            slug = f"{base}-{n}"
        self._taken.add(slug)
        self._by_path[relative_path] = slug
        return slug


def wrap_line(line: str, width: int = DEFAULT_WRAP_WIDTH) -> list[str]:
    """Break one line at breakpoints once it reaches `width` characters.

    A segment ends at the first space, comma, semicolon, closing parenthesis
    or closing brace at or past the width; the breakpoint stays on the
    segment it ends. A line without such a breakpoint is left as is.

    Args:
        line (str): the line to wrap
        width (int): the wrapping threshold

    Returns:
        list[str]: the resulting segments
    """
    if len(line) <= width:
        return [line]
    segments: list[str] = []
    start = 0
    i = start + width - 1
    while i < len(line):
        if line[i] in LINE_BREAKPOINTS:
            segments.append(line[start : i + 1])
            start = i + 1
            i = start + width - 1
        else:
            i += 1
    if start < len(line):
        segments.append(line[start:])
    return segments


def wrap_long_lines(content: str, width: int = DEFAULT_WRAP_WIDTH) -> str:
    """Wrap every line of `content` longer than `width` characters.

    Lines within the limit are untouched; line endings are normalized to `\\n`.

    Args:
        content (str): the text to wrap
        width (int): the wrapping threshold

    Returns:
        str: the wrapped text
    """
    lines = [line.removesuffix("\r") for line in content.split("\n")]
    if not any(len(line) > width for line in lines):
        return content
    out: list[str] = []
    for line in lines:
        out.extend(wrap_line(line, width))
    return "\n".join(out)


def _line_count(text: str) -> int:
    return text.count("\n") + 1 if text else 0


def _render_truncated(content: str, size: int, preview_len: int, sample_len: int, count: int) -> str:
    total = len(content)
    rest_len = total - preview_len
    omitted = rest_len - count * sample_len
    parts: list[str] = [
        content[:preview_len],
        f"\n\n... [File continues for {rest_len:,} more characters, {omitted:,} omitted "
        f"({format_file_size(size)} total)] ...\n",
    ]
    shown = content[:preview_len]
    if count:
        step = (rest_len - sample_len) / (count - 1) if count > 1 else 0
        for n in range(count):
            offset = preview_len + int(n * step)
            sample = content[offset : offset + sample_len]
            shown += sample
            pct = offset * 100 / total if total else 0
            parts.append(f"\n... [Sample {n + 1}/{count} at {pct:.0f}%] ...\n{sample}\n")
    parts.append(
        f"\n... [Summary: {format_file_size(size)} total, "
        f"showing ~{_line_count(shown):,} of ~{_line_count(content):,} lines] ...\n",
    )
    return "".join(parts)


def truncate_oversized(
    content: str,
    size: int,
    max_size: int,
    *,
    preview_size: int = DEFAULT_PREVIEW_SIZE,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> str:
    """Shorten the content of a file whose original size exceeds `max_size`.

    The result holds a leading preview, a notice of how much was omitted, up
    to `max_samples` evenly spaced samples of the remainder (each marked with
    its position as a percentage) and a closing summary. Files at or under
    the limit are returned unchanged.

    Preview and samples are measured in characters of the decoded text. They
    start at half and a quarter of it; when the markers push the result past
    the input length, samples are dropped one by one and then the preview is
    shortened. Content shorter than the notice and summary alone cannot be
    shortened and comes back as notice and summary only.

    Args:
        content (str): the decoded file content
        size (int): the original size in bytes
        max_size (int): the size limit in bytes
        preview_size (int): length of the leading preview
        sample_size (int): length of each sample
        max_samples (int): maximum number of samples

    Returns:
        str: the original or shortened content
    """
    if size <= max_size:
        return content

    total = len(content)
    preview_len = min(preview_size, total // 2)
    sample_len = min(sample_size, total // (4 * max_samples)) if max_samples else 0
    count = min(max_samples, (total - preview_len) // sample_len) if sample_len else 0

    while True:
        result = _render_truncated(content, size, preview_len, sample_len, count)
        excess = len(result) - total + 1
        if excess <= 0 or (count == 0 and preview_len == 0):
            return result
        if count:
            count -= 1
        else:
            preview_len = max(0, preview_len - excess)


def fence_for(content: str) -> str:
    """Return a backtick fence longer than any backtick run inside `content`."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=2)
    return "`" * (longest + 1)


def build_tree_lines(root_name: str, rel_paths: Sequence[str]) -> list[str]:
    """Build a visual tree representation of file paths.

    Args:
        root_name (str): the name to use for the root of the tree
        rel_paths (Sequence[str]): the file paths relative to the root, using POSIX separators (e.g. "src/main.py")

    Returns:
        list[str]: a list of strings representing the tree structure, suitable for printing
    """
    rels = sorted({p.strip("/").replace("\\", "/") for p in rel_paths if p.strip()})
    tree: dict[str, Any] = {}
    for rp in rels:
        cur = tree
        parts = rp.split("/")
        for i, part in enumerate(parts):
            if i == len(parts) - 1:
                cur.setdefault("__files__", set()).add(part)
            else:
                cur = cur.setdefault(part, {})

    lines: list[str] = [f"{root_name}/"]

    def walk(node: dict[str, Any], prefix: str) -> None:
        dirs = sorted(k for k in node if k != "__files__")
        files = sorted(node.get("__files__", set()))
        entries: list[tuple[str, str, Any]] = []
        entries.extend(("dir", d, node[d]) for d in dirs)
        entries.extend(("file", f, None) for f in files)
        for idx, (kind, name, child) in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name + ("/" if kind == "dir" else ""))
            if kind == "dir":
                ext = "    " if last else "│   "
                walk(child, prefix + ext)

    walk(tree, "")
    return lines

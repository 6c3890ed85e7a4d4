from __future__ import annotations

import codecs
from pathlib import PurePosixPath

from scrollcast.config import CONTAINER_BUILD_PREFIX, ENV_FILE_PREFIX, EXT2LANG

# Longest BOMs first: the UTF-32-LE BOM starts with the UTF-16-LE one.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

NUL_SNIFF_BYTES = 1024
UTF8_SNIFF_BYTES = 4096


def detect_bom(data: bytes) -> tuple[str, int] | None:
    """Detect a Unicode byte-order mark.

    Args:
        data (bytes): the raw file content

    Returns:
        tuple[str, int] | None: the codec name and BOM length, or None without a BOM
    """
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return encoding, len(bom)
    return None


def sniff_text_utf8(data: bytes, nbytes: int = UTF8_SNIFF_BYTES) -> bool:
    """Check whether the head of `data` looks like UTF-8 text.

    A NUL byte in the first KiB marks the data as binary. Otherwise the first
    `nbytes` must decode as UTF-8; a multi-byte sequence cut at the sniff
    boundary is accepted.

    Args:
        data (bytes): raw content without a byte-order mark
        nbytes (int, optional): number of bytes to validate. Defaults to 4096.

    Returns:
        bool: True if the content is UTF-8 text, False otherwise
    """
    if b"\x00" in data[:NUL_SNIFF_BYTES]:
        return False
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(data[:nbytes], final=len(data) <= nbytes)
    except UnicodeDecodeError:
        return False
    return True


def decode_text(data: bytes) -> str | None:
    """Decode file content to text, or return None for binary content.

    Content with a UTF-8, UTF-16 or UTF-32 byte-order mark is decoded with the
    matching codec; otherwise content that sniffs as UTF-8 is decoded. Decoding
    is lossy: invalid sequences become U+FFFD.

    Args:
        data (bytes): the raw file content

    Returns:
        str | None: the decoded text, or None if the content is binary
    """
    bom = detect_bom(data)
    if bom is not None:
        encoding, skip = bom
        return data[skip:].decode(encoding, errors="replace")
    if not sniff_text_utf8(data):
        return None
    return data.decode("utf-8", errors="replace")


def binary_placeholder(name: str, size: int) -> str:
    """Return the text embedded in place of a binary file's bytes."""
    return f"[Binary file: {name} ({size} bytes)]"


def detect_language(relative_path: str) -> str | None:
    """Determine the fence language tag of a file.

    - `.env` files and variants (`.env.local`, ...) are shell-like: "bash".
    - names starting with "dockerfile" (any case) are "dockerfile".
    - otherwise the extension (case-insensitive) is looked up in `EXT2LANG`.

    Args:
        relative_path (str): the file path; only its base name is used

    Returns:
        str | None: the language tag, or None for unknown files
    """
    path = PurePosixPath(relative_path.replace("\\", "/"))
    name = path.name
    if name.startswith(ENV_FILE_PREFIX):
        return "bash"
    if name.lower().startswith(CONTAINER_BUILD_PREFIX):
        return "dockerfile"
    suffix = path.suffix.lower()
    if not suffix:
        return None
    return EXT2LANG.get(suffix)


def classify_bytes(relative_path: str, data: bytes) -> tuple[str, str | None, bool]:
    """Classify raw file content.

    Args:
        relative_path (str): root-relative path of the file
        data (bytes): the raw file content

    Returns:
        tuple[str, str | None, bool]: the text to embed (decoded content or a
            binary placeholder), the language tag (None for binary files) and
            whether the file is binary
    """
    text = decode_text(data)
    if text is None:
        name = PurePosixPath(relative_path.replace("\\", "/")).name
        return binary_placeholder(name, len(data)), None, True
    return text, detect_language(relative_path), False

"""
KEN_ALL row source.

Responsibilities:
- decode the legacy Shift_JIS (cp932) text, or detect the encoding
- normalize CR/CRLF line endings to LF
- split lines into raw field lists, lazily
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

from charset_normalizer import from_bytes, from_path

from .logger import get_logger
from .rules import NEWLINES

logger = get_logger(__name__)

AUTO = "auto"


def detect_encoding(raw: bytes, default: str) -> str:
    """Best-effort guess via charset-normalizer, `default` when undecided."""
    match = from_bytes(raw).best()
    if match is None:
        return default
    return match.encoding


def _without_bom(encoding: str) -> str:
    # keep a UTF-8 BOM out of the first area code
    if encoding.lower().replace("-", "_") in ("utf_8", "utf8"):
        return "utf-8-sig"
    return encoding


def decode_source(raw: bytes, encoding: str) -> Tuple[str, str]:
    """
    Decode an in-memory KEN_ALL payload.

    Returns (text, encoding_used). Undecodable input raises UnicodeDecodeError.
    """
    used = detect_encoding(raw, "utf-8") if encoding == AUTO else encoding
    if raw.startswith(b"\xef\xbb\xbf"):
        used = _without_bom(used)
    return raw.decode(used), used


def read_rows(lines: Iterable[str]) -> Iterator[List[str]]:
    """Split lines into raw field lists. Blank lines come out as []."""
    normalized = (NEWLINES.sub("\n", line) for line in lines)
    yield from csv.reader(normalized)


def iter_text_rows(text: str) -> Iterator[List[str]]:
    return read_rows(io.StringIO(text, newline=""))


def iter_file_rows(path: Union[str, Path], encoding: str) -> Iterator[List[str]]:
    """Stream rows from a KEN_ALL file without loading it whole."""
    if encoding == AUTO:
        match = from_path(path).best()
        encoding = _without_bom(match.encoding if match is not None else "utf-8")
        logger.info("source_encoding_detected", path=str(path), encoding=encoding)

    with open(path, encoding=encoding, newline="") as fh:
        yield from read_rows(fh)

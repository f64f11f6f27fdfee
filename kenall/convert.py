"""
KEN_ALL conversion pipeline.

raw row -> continuation merge -> town-area normalization -> window dedup -> sink

Rows are consumed lazily and written as soon as their batch is resolved.
"""

from __future__ import annotations

import base64
import hashlib
import io
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, TextIO, Union

from .archive import discard_extracted, fetch_archive
from .config import settings
from .dedupe import DeduplicationWindow
from .logger import get_logger
from .merge import ContinuationMerger
from .models import ConversionSummary, Postcode
from .normalize import normalize_town_area
from .rules import TARGET_ENCODING
from .source import decode_source, iter_file_rows, iter_text_rows

logger = get_logger(__name__)


class KenAllConverter:
    """Single sequential fold over KEN_ALL rows."""

    def __init__(self, interleaved_area_groups: Optional[Iterable[Sequence[str]]] = None):
        if interleaved_area_groups is None:
            interleaved_area_groups = settings.interleaved_area_groups
        self.merger = ContinuationMerger()
        self.window = DeduplicationWindow(interleaved_area_groups)
        self.summary = ConversionSummary()

    def process(self, rows: Iterable[Sequence[str]]) -> Iterator[Postcode]:
        for row in rows:
            self.summary.rows_read += 1

            # blank lines have no area code
            if not row or not row[0]:
                self.summary.blank_rows_skipped += 1
                continue

            was_pending = self.merger.pending is not None
            target = self.merger.feed(Postcode.from_row(row))
            if was_pending:
                self.summary.continuation_rows_merged += 1
            if target is None:
                continue

            candidates = normalize_town_area(target)
            self.summary.candidates += len(candidates)
            survivors = self.window.admit(candidates)
            self.summary.records_written += len(survivors)
            yield from survivors

        dropped = self.merger.finish()
        if dropped is not None:
            self.summary.pending_dropped += 1
            logger.warning(
                "unclosed_town_area_dropped",
                postcode=dropped.postcode,
                town_area=dropped.town_area,
            )

        self.summary.duplicates_suppressed = self.window.duplicates
        self.summary.window_resets = self.window.resets


def write_records(records: Iterable[Postcode], out: TextIO) -> int:
    written = 0
    for record in records:
        out.write(record.to_csv() + "\n")
        written += 1
    return written


def convert_file(
    source_path: Union[str, Path],
    output_path: Union[str, Path],
    encoding: Optional[str] = None,
    converter: Optional[KenAllConverter] = None,
) -> ConversionSummary:
    """Convert a local KEN_ALL CSV into `output_path`."""
    converter = converter or KenAllConverter()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rows = iter_file_rows(source_path, encoding or settings.source_encoding)
    with open(output_path, "w", encoding=TARGET_ENCODING, newline="") as out:
        write_records(converter.process(rows), out)

    logger.info(
        "conversion_complete",
        source=str(source_path),
        output=str(output_path),
        **converter.summary.model_dump(),
    )
    return converter.summary


def convert(
    output_path: Optional[Union[str, Path]] = None,
    source_path: Optional[Union[str, Path]] = None,
    url: Optional[str] = None,
) -> ConversionSummary:
    """
    Run the whole conversion.

    Without `source_path` the archive is downloaded from `url` (or the
    configured source URL) and the extracted file is removed afterwards.
    """
    output_path = output_path or settings.output_path
    if source_path is not None:
        return convert_file(source_path, output_path)

    csv_file = fetch_archive(url)
    try:
        return convert_file(csv_file, output_path)
    finally:
        discard_extracted(csv_file)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def convert_csv_bytes(raw: bytes, encoding: Optional[str] = None) -> Dict[str, Any]:
    """
    In-memory conversion for the HTTP endpoint.
    Returns a dict matching the API's response envelope.
    """
    text, used = decode_source(raw, encoding or settings.source_encoding)

    converter = KenAllConverter()
    out = io.StringIO(newline="")
    write_records(converter.process(iter_text_rows(text)), out)
    converted = out.getvalue().encode(TARGET_ENCODING)

    return {
        "converted_csv": {
            "sha256": _sha256_hex(converted),
            "encoding": TARGET_ENCODING,
            "content_b64": base64.b64encode(converted).decode("ascii"),
        },
        "report": {
            "summary": converter.summary.model_dump(),
            "source_encoding": used,
        },
    }

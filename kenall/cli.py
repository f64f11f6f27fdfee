import argparse
from typing import List, Optional

from .archive import ArchiveError
from .convert import convert
from .logger import get_logger, setup_logging
from .models import MalformedRowError

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kenall-convert",
        description="Download KEN_ALL and write the town-area normalized CSV.",
    )
    parser.add_argument("--output", help="Output CSV path (default: KENALL_OUTPUT_PATH)")
    parser.add_argument("--source", help="Convert a local KEN_ALL CSV instead of downloading")
    parser.add_argument("--url", help="Archive URL (default: KENALL_SOURCE_URL)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    try:
        summary = convert(output_path=args.output, source_path=args.source, url=args.url)
    except (ArchiveError, MalformedRowError, UnicodeDecodeError, OSError) as e:
        logger.error("conversion_aborted", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info("done", records_written=summary.records_written)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

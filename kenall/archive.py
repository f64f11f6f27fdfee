"""
KEN_ALL archive acquisition.

Downloads the Japan Post zip, extracts the single CSV it contains and removes
the zip again. Failures are fatal; nothing is retried.
"""
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Union

import requests

from .config import settings
from .logger import get_logger

logger = get_logger(__name__)


class ArchiveError(RuntimeError):
    """The source archive could not be downloaded or extracted."""


def download(url: str, destination: Path, timeout: Optional[float] = None) -> Path:
    timeout = timeout if timeout is not None else settings.download_timeout
    logger.info("archive_download_started", url=url)

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(destination, "wb") as fh:
                for chunk in response.iter_content(chunk_size=64 * 1024):
                    fh.write(chunk)
    except requests.RequestException as e:
        logger.error("archive_download_failed", url=url, error=str(e), error_type=type(e).__name__)
        raise ArchiveError(f"download of {url} failed: {e}") from e

    logger.info("archive_downloaded", url=url, bytes=destination.stat().st_size)
    return destination


def extract_single_file(zip_path: Union[str, Path], target_dir: Union[str, Path]) -> Path:
    """Extract the first member of the archive flat into `target_dir`."""
    try:
        Path(target_dir).mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(zip_path) as archive:
            names = [name for name in archive.namelist() if not name.endswith("/")]
            if not names:
                raise ArchiveError(f"{zip_path} is empty")
            extracted = Path(target_dir) / Path(names[0]).name
            with archive.open(names[0]) as member, open(extracted, "wb") as fh:
                shutil.copyfileobj(member, fh)
    except ArchiveError:
        raise
    except (zipfile.BadZipFile, RuntimeError, NotImplementedError, OSError) as e:
        logger.error("archive_extract_failed", zip_path=str(zip_path), error=str(e), error_type=type(e).__name__)
        raise ArchiveError(f"extraction of {zip_path} failed: {e}") from e

    logger.info("archive_extracted", member=names[0], path=str(extracted))
    return extracted


def fetch_archive(url: Optional[str] = None, work_dir: Optional[str] = None) -> Path:
    """
    Download and unpack the KEN_ALL archive, returning the CSV path.

    The CSV sits alone in a fresh directory; hand it to `discard_extracted`
    once done.
    """
    url = url or settings.source_url
    work_dir = work_dir or settings.work_dir or tempfile.gettempdir()

    fd, zip_name = tempfile.mkstemp(prefix="ken_all", suffix=".zip", dir=work_dir)
    os.close(fd)
    zip_path = Path(zip_name)
    target_dir = None
    try:
        download(url, zip_path)
        target_dir = tempfile.mkdtemp(prefix="ken_all", dir=work_dir)
        return extract_single_file(zip_path, target_dir)
    except ArchiveError:
        if target_dir is not None:
            shutil.rmtree(target_dir, ignore_errors=True)
        raise
    finally:
        zip_path.unlink(missing_ok=True)


def discard_extracted(csv_file: Path) -> None:
    """Remove a file returned by `fetch_archive` together with its directory."""
    shutil.rmtree(csv_file.parent)
    logger.info("archive_work_dir_removed", path=str(csv_file.parent))

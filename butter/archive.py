"""Archive download and extraction.

Used by ``install`` (the base project archive) and ``infuse`` (toolkit
archives).  Downloads are streamed to disk with httpx; extraction strips a
fixed number of leading path components, the way release archives wrap their
content in a single top-level directory.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath

import httpx

from .utils import ButterError


class ArchiveError(ButterError):
    """Raised when an archive cannot be downloaded or extracted."""


async def download(
    url: str,
    destination: Path,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """Stream *url* into *destination*.

    Raises:
        ArchiveError: On transport errors or a non-success HTTP status.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        async with httpx.AsyncClient(follow_redirects=True, transport=transport) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with destination.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
    except httpx.HTTPStatusError as exc:
        raise ArchiveError(
            f"Download of {url} failed with HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise ArchiveError(f"Download of {url} failed: {exc}") from exc
    return destination


def extract_zip(archive: Path, target: Path, strip: int = 1) -> list[Path]:
    """Extract *archive* into *target*, dropping *strip* leading path parts.

    Members whose stripped path is empty (the wrapper directory itself) are
    skipped.

    Returns:
        The files written.

    Raises:
        ArchiveError: If the archive is unreadable or a member would land
            outside *target*.
    """
    target.mkdir(parents=True, exist_ok=True)
    root = target.resolve()
    written: list[Path] = []

    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                parts = PurePosixPath(info.filename).parts[strip:]
                if not parts:
                    continue
                dest = root.joinpath(*parts).resolve()
                if dest != root and root not in dest.parents:
                    raise ArchiveError(f"Archive member escapes target directory: {info.filename}")
                if info.is_dir():
                    dest.mkdir(parents=True, exist_ok=True)
                    continue
                dest.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, dest.open("wb") as out:
                    shutil.copyfileobj(src, out)
                written.append(dest)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"Could not extract {archive}: {exc}") from exc

    return written


async def fetch_and_extract(
    url: str,
    target: Path,
    strip: int = 1,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Path]:
    """Download *url* to a temporary file, extract it into *target*, clean up."""
    fd, tmp_name = tempfile.mkstemp(suffix=".zip")
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        await download(url, tmp_path, transport=transport)
        return await asyncio.to_thread(extract_zip, tmp_path, target, strip)
    finally:
        tmp_path.unlink(missing_ok=True)

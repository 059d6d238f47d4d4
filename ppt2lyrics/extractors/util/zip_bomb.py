from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass

from ppt2lyrics.exceptions import ExtractionContainerOpenError, ExtractionZipBombError


@dataclass(frozen=True)
class ZipBombLimits:
    """
    Heuristics for rejecting probable ZIP bombs.

    Presentation packages are mostly XML plus media. The defaults leave room
    for decks with large embedded videos while still catching extreme bombs.
    """

    max_entries: int = 20_000
    max_total_uncompressed_bytes: int = 2 * 1024 * 1024 * 1024  # 2 GiB
    max_single_uncompressed_bytes: int = 1 * 1024 * 1024 * 1024  # 1 GiB
    max_total_compression_ratio: float = 200.0
    max_entry_compression_ratio: float = 500.0


DEFAULT_ZIP_BOMB_LIMITS = ZipBombLimits()


def _suffix(source: str | None) -> str:
    return f" [{source}]" if source else ""


def validate_zipfile(
    zf: zipfile.ZipFile,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> None:
    """
    Validate a ZIP container against high-confidence ZIP-bomb indicators.

    Only the central directory is inspected; nothing is decompressed.
    """
    infos = zf.infolist()

    if len(infos) > limits.max_entries:
        raise ExtractionZipBombError(
            f"ZIP container has too many entries ({len(infos)} > {limits.max_entries})"
            + _suffix(source)
        )

    total_uncompressed = 0
    total_compressed = 0

    for info in infos:
        if info.is_dir():
            continue

        if info.file_size > limits.max_single_uncompressed_bytes:
            raise ExtractionZipBombError(
                f"ZIP entry {info.filename} too large ({info.file_size} bytes > "
                f"{limits.max_single_uncompressed_bytes})" + _suffix(source)
            )

        if info.file_size > 0:
            if info.compress_size <= 0:
                raise ExtractionZipBombError(
                    f"ZIP entry {info.filename} has zero compressed size but "
                    "non-zero uncompressed size" + _suffix(source)
                )
            ratio = info.file_size / info.compress_size
            if ratio > limits.max_entry_compression_ratio:
                raise ExtractionZipBombError(
                    f"ZIP entry {info.filename} compression ratio too high "
                    f"({ratio:.1f} > {limits.max_entry_compression_ratio})"
                    + _suffix(source)
                )

        total_uncompressed += info.file_size
        total_compressed += info.compress_size

        if total_uncompressed > limits.max_total_uncompressed_bytes:
            raise ExtractionZipBombError(
                f"ZIP total uncompressed size too large ({total_uncompressed} bytes > "
                f"{limits.max_total_uncompressed_bytes})" + _suffix(source)
            )

    if total_uncompressed > 0:
        total_ratio = total_uncompressed / max(total_compressed, 1)
        if total_ratio > limits.max_total_compression_ratio:
            raise ExtractionZipBombError(
                f"ZIP total compression ratio too high ({total_ratio:.1f} > "
                f"{limits.max_total_compression_ratio})" + _suffix(source)
            )


def open_zipfile(
    file_like: io.BytesIO,
    *,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    source: str | None = None,
) -> zipfile.ZipFile:
    """
    Open a ZIP file and validate it for ZIP-bomb indicators.

    Caller owns the returned ZipFile and must close it.
    """
    file_like.seek(0)
    try:
        zf = zipfile.ZipFile(file_like, "r")
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
        raise ExtractionContainerOpenError(
            f"Failed to open ZIP archive: {exc}" + _suffix(source), cause=exc
        ) from exc
    try:
        validate_zipfile(zf, limits=limits, source=source)
    except Exception:
        zf.close()
        raise
    return zf

import io
import logging
import mimetypes
import os
from typing import Any, Callable, Generator

from ppt2lyrics.exceptions import ExtractionFileFormatNotSupportedError
from ppt2lyrics.extractors.data_types import Presentation, PresentationFormat

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK\x03\x04"
OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _format_from_magic(data: bytes | None) -> PresentationFormat | None:
    if not data:
        return None
    if data.startswith(ZIP_SIGNATURE):
        return PresentationFormat.MODERN_ZIP
    if len(data) >= len(OLE_SIGNATURE) and data.startswith(OLE_SIGNATURE):
        return PresentationFormat.LEGACY_BINARY
    return None


def _format_from_filename(filename: str | None) -> PresentationFormat | None:
    if not filename:
        return None
    _, extension = os.path.splitext(filename.lower())
    return PresentationFormat.from_extension(extension) if extension else None


def detect_format(
    data: bytes | None = None, filename: str | None = None
) -> PresentationFormat:
    """Classify a presentation by its magic bytes, falling back to the file extension.

    :raises ExtractionFileFormatNotSupportedError: neither the content nor the
        filename identify a supported presentation format
    """
    fmt = _format_from_magic(data)
    if fmt is not None:
        logger.debug(f"Detected format {fmt.value} from magic bytes ({filename})")
        return fmt

    fmt = _format_from_filename(filename)
    if fmt is not None:
        logger.debug(f"Detected format {fmt.value} from file extension ({filename})")
        return fmt

    logger.debug(f"File [{filename}] is not a supported presentation")
    raise ExtractionFileFormatNotSupportedError(file_path=filename)


def _get_extractor(
    fmt: PresentationFormat,
) -> Callable[[io.BytesIO, str | None], Generator[Presentation, Any, None]]:
    """Return the extractor function for a format (lazy import)."""
    if fmt == PresentationFormat.LEGACY_BINARY:
        from ppt2lyrics.extractors.ms_legacy.ppt_extractor import read_ppt

        return read_ppt
    elif fmt == PresentationFormat.MODERN_ZIP:
        from ppt2lyrics.extractors.ms_modern.pptx_extractor import read_pptx

        return read_pptx
    else:
        raise RuntimeError(f"No extractor for format: {fmt}")


def is_supported_file(path: str) -> bool:
    """Checks if the path is a supported file"""
    return _format_from_filename(path) is not None


def get_extractor(
    path: str,
) -> Callable[[io.BytesIO, str | None], Generator[Presentation, Any, None]]:
    """Analyses the path of a file and returns a suited extractor.
       The file MUST not exist (yet). The path or filename alone suffices to return an
       extractor.

    :returns a function of an extractor. All extractors take a file-like object as parameter
    :raises RuntimeError: File is not covered by any extractor
    """
    fmt = _format_from_filename(path)
    if fmt is None:
        mime_type, _ = mimetypes.guess_type(path.lower())
        logger.debug(f"File [{path}] with mime type [{mime_type}] is not supported")
        raise RuntimeError(f"File type not supported: {mime_type}")

    logger.debug(f"Detected file type: {fmt.value} for file: {path}")
    return _get_extractor(fmt)

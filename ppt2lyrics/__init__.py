"""
ppt2lyrics: Lyric extraction from PowerPoint presentations.

Reads worship song slides from legacy PowerPoint (.ppt) and Office Open XML
(.pptx) files, cleans the text into lyric lines and formats them for import
into ProPresenter.
"""

import io
import logging
from pathlib import Path
from typing import Any, Generator

from ppt2lyrics.exceptions import ExtractionFileReadError
from ppt2lyrics.extractors.data_types import Presentation, PresentationFormat
from ppt2lyrics.formatting import ProPresenterFormatter
from ppt2lyrics.normalize import normalize_lines, normalize_with_title
from ppt2lyrics.router import detect_format, get_extractor, is_supported_file

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def read_pptx(
    file_like: io.BytesIO, path: str | None = None
) -> Generator[Presentation, Any, None]:
    """Extract content from a PPTX file."""
    from ppt2lyrics.extractors.ms_modern.pptx_extractor import read_pptx as _read_pptx

    return _read_pptx(file_like, path)


def read_ppt(
    file_like: io.BytesIO, path: str | None = None
) -> Generator[Presentation, Any, None]:
    """Extract content from a PPT file."""
    from ppt2lyrics.extractors.ms_legacy.ppt_extractor import read_ppt as _read_ppt

    return _read_ppt(file_like, path)


def parse_legacy(data: bytes, filename: str, **kwargs) -> Presentation:
    """Parse a legacy .ppt file held in memory."""
    from ppt2lyrics.extractors.ms_legacy.ppt_extractor import (
        parse_legacy as _parse_legacy,
    )

    return _parse_legacy(data, filename, **kwargs)


def parse_modern(data: bytes, filename: str, **kwargs) -> Presentation:
    """Parse a .pptx file held in memory."""
    from ppt2lyrics.extractors.ms_modern.pptx_extractor import (
        parse_modern as _parse_modern,
    )

    return _parse_modern(data, filename, **kwargs)


def parse_presentation(
    data: bytes, filename: str, *, include_notes: bool = False, path: str | None = None
) -> Presentation:
    """
    Detect the format of a presentation held in memory and parse it.

    Raises:
        ExtractionFileFormatNotSupportedError: Neither the content nor the
            filename identify a .ppt or .pptx file.
        ExtractionError: Any parser failure (see parse_legacy/parse_modern).
    """
    fmt = detect_format(data, filename)
    if fmt == PresentationFormat.LEGACY_BINARY:
        return parse_legacy(data, filename, include_notes=include_notes, path=path)
    return parse_modern(data, filename, include_notes=include_notes, path=path)


def _read_bytes(path: Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise ExtractionFileReadError(
            str(path), f"Failed to read file: {exc.strerror or exc}", cause=exc
        ) from exc


def read_file(
    path: str | Path, *, include_notes: bool = False
) -> Generator[Presentation, Any, None]:
    """
    Read and extract content from a presentation file.

    The format is detected from the file content, falling back to the
    extension.

    Args:
        path: Path to the .ppt or .pptx file.
        include_notes: Also extract speaker notes.

    Yields:
        Presentation: The extracted presentation.

    Raises:
        ExtractionFileReadError: If the file cannot be read.
        ExtractionFileFormatNotSupportedError: If the file is not a presentation.

    Example:
        >>> import ppt2lyrics
        >>> for presentation in ppt2lyrics.read_file("Amazing Grace.pptx"):
        ...     print(presentation.get_full_text())
    """
    path = Path(path)
    data = _read_bytes(path)
    yield parse_presentation(
        data, path.name, include_notes=include_notes, path=str(path)
    )


def extract_lyrics(path: str | Path, lines_per_slide: int = 2) -> str:
    """
    Read a presentation and return its lyrics as ProPresenter import text.

    A song title found on the first slide becomes its own slide at the top.
    """
    path = Path(path)
    presentation = next(read_file(path))
    title, lines = normalize_with_title(presentation, path.name)
    logger.debug(f"{path.name}: title={title!r}, {len(lines)} lines")
    return ProPresenterFormatter(lines_per_slide).format_with_title(lines, title)


__all__ = [
    # Version
    "__version__",
    # Main functions
    "read_file",
    "extract_lyrics",
    "detect_format",
    "is_supported_file",
    "get_extractor",
    "parse_presentation",
    # Format-specific parsers
    "parse_legacy",
    "parse_modern",
    "read_ppt",
    "read_pptx",
    # Normalization
    "normalize_lines",
    "normalize_with_title",
]

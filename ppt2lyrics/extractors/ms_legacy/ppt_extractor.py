"""
PPT Lyric Extractor
===================

Extracts slide text from legacy Microsoft PowerPoint .ppt files
(PowerPoint 97-2003 binary format, stored in an OLE2/CFBF container).

The slide text lives in the "PowerPoint Document" stream as a tree of
records (see ``records`` for the header layout). Extraction runs in three
steps:

    1. Validation: a quick scan of the stream that refuses files which are
       too small, carry no DocumentContainer, hold no text records at all,
       or contain too many malformed records.
    2. Collection: a second walk over the same records that decodes every
       TextCharsAtom/TextBytesAtom, tagged with the purpose declared by the
       preceding TextHeaderAtom and the number of SlidePersistAtoms seen so
       far.
    3. Assembly: text entries are grouped into slides (see
       ``slide_assembly``).

Text Types
----------
The TextHeaderAtom declares what kind of text follows:
    - 0: Title
    - 1: Body
    - 2: Notes
    - 3: Not used
    - 4: Other (often the main text of song slides)
    - 5: Center body (subtitle)
    - 6: Center title
    - 7: Half body
    - 8: Quarter body

Notes and unused text never end up on a slide. Notes text can be collected
separately with ``include_notes=True``.

Dependencies
------------
olefile: https://github.com/decalage2/olefile
    pip install olefile

    Provides:
    - OLE compound document parsing
    - Stream reading
    - SummaryInformation metadata

Known Limitations
-----------------
- Encrypted/password-protected files are not supported
- Very old PowerPoint versions (<97) are rejected
- Text inside embedded OLE objects (charts, Excel sheets) is not extracted
- Slide boundaries are reconstructed heuristically

Usage
-----
    >>> import io
    >>> from ppt2lyrics.extractors.ms_legacy.ppt_extractor import read_ppt
    >>>
    >>> with open("Amazing Grace.ppt", "rb") as f:
    ...     for ppt in read_ppt(io.BytesIO(f.read()), path="Amazing Grace.ppt"):
    ...         for slide in ppt.slides:
    ...             print(slide.number, slide.texts())
"""

import io
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Generator

import olefile

from ppt2lyrics.exceptions import (
    ExtractionContainerOpenError,
    ExtractionError,
    ExtractionFailedError,
    ExtractionFileCorruptedError,
    ExtractionFileEncryptedError,
    ExtractionFileFormatNotSupportedError,
)
from ppt2lyrics.extractors.data_types import (
    Presentation,
    PresentationFormat,
    PresentationMetadata,
    Slide,
)
from ppt2lyrics.extractors.ms_legacy.records import (
    MAX_TEXT_PURPOSE,
    RT_DOCUMENT,
    RT_SLIDE,
    RT_SLIDE_PERSIST_ATOM,
    RT_TEXT_BYTES_ATOM,
    RT_TEXT_CHARS_ATOM,
    RT_TEXT_HEADER_ATOM,
    MalformedRecord,
    RecordHeader,
    TextEntry,
    TextPurpose,
    decode_text_bytes,
    decode_text_chars,
    read_text_purpose_code,
    walk_records,
)
from ppt2lyrics.extractors.ms_legacy.slide_assembly import assemble_slides
from ppt2lyrics.extractors.util.encryption import is_ppt_encrypted

logger = logging.getLogger(__name__)

PPT_DOCUMENT_STREAM = "PowerPoint Document"
CURRENT_USER_STREAM = "Current User"

# Placeholder text of slide masters and layouts, matched case-insensitively
TEMPLATE_PATTERNS = (
    "click to edit",
    "edit master",
    "master title",
    "master text",
    "second level",
    "third level",
    "fourth level",
    "fifth level",
)

NO_TEXT_WARNING = (
    "No text content extracted from '{filename}'. The file may use an "
    "unsupported text storage format or contain only images/graphics."
)


@dataclass(frozen=True)
class LegacyParseLimits:
    """Thresholds applied while validating and walking a PowerPoint Document stream."""

    min_stream_size: int = 512
    max_malformed_records: int = 10
    max_nesting_depth: int = 64


DEFAULT_LEGACY_LIMITS = LegacyParseLimits()


@dataclass
class StreamValidation:
    """Tally of what a validation scan found in the PowerPoint Document stream."""

    stream_size: int = 0
    has_document: bool = False
    has_slides: bool = False
    has_text_headers: bool = False
    has_text_content: bool = False
    text_record_count: int = 0
    malformed_records: int = 0
    unsupported_text_types: set[int] = field(default_factory=set)


@dataclass(frozen=True)
class _TraversalState:
    """Text purpose and persist count in effect at a point of the record walk."""

    purpose: TextPurpose = TextPurpose.BODY
    slide_hint: int = 0

    def advance(self, data: bytes, header: RecordHeader) -> "_TraversalState":
        if header.rec_type == RT_TEXT_HEADER_ATOM:
            code = read_text_purpose_code(data, header)
            if code is not None:
                return replace(self, purpose=TextPurpose.from_code(code))
        elif header.rec_type == RT_SLIDE_PERSIST_ATOM:
            return replace(self, slide_hint=self.slide_hint + 1)
        return self


@dataclass(frozen=True)
class StreamText:
    slides: tuple[Slide, ...]
    notes: tuple[str, ...]


def read_ppt(
    file_like: BinaryIO, path: str | None = None
) -> Generator[Presentation, Any, None]:
    """
    Extract slide text and metadata from a legacy PowerPoint .ppt file.

    Uses a generator pattern for API consistency with the other readers,
    even though a .ppt file holds exactly one presentation.

    Args:
        file_like: File-like object containing the complete PPT file data.
        path: Optional filesystem path to the source file, used for the
            file metadata and the presentation's filename.

    Yields:
        Presentation: The extracted presentation.

    Raises:
        ExtractionFileCorruptedError: Input or main stream too small, or too
            many malformed records.
        ExtractionContainerOpenError: Not a readable OLE container.
        ExtractionFileEncryptedError: Password-protected presentation.
        ExtractionFileFormatNotSupportedError: Missing PowerPoint Document
            stream, DocumentContainer or text records.
        ExtractionFailedError: Any other failure during extraction.
    """
    try:
        file_like.seek(0)
        data = file_like.read()
    except Exception as exc:
        raise ExtractionFailedError("Failed to read PPT input", cause=exc) from exc

    filename = Path(path).name if path else ""
    yield parse_legacy(data, filename, path=path)


def parse_legacy(
    data: bytes,
    filename: str,
    *,
    limits: LegacyParseLimits = DEFAULT_LEGACY_LIMITS,
    include_notes: bool = False,
    path: str | None = None,
) -> Presentation:
    """
    Parse a legacy .ppt file held in memory.

    Validation failures are raised before any text is extracted. A file that
    validates but yields no slide text produces an empty presentation with a
    warning.
    """
    try:
        return _parse_legacy(
            data, filename, limits=limits, include_notes=include_notes, path=path
        )
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionFailedError(
            f"Failed to extract legacy presentation '{filename}'", cause=exc
        ) from exc


def _parse_legacy(
    data: bytes,
    filename: str,
    *,
    limits: LegacyParseLimits,
    include_notes: bool,
    path: str | None,
) -> Presentation:
    if len(data) < limits.min_stream_size:
        raise ExtractionFileCorruptedError(
            f"File too small ({len(data)} bytes) to be a PowerPoint presentation. "
            f"Minimum expected: {limits.min_stream_size} bytes. "
            "File may be corrupted or truncated."
        )

    stream_data, metadata = _read_document_stream(io.BytesIO(data))

    validation = validate_stream(stream_data, limits)
    logger.debug(
        f"PPT validation: stream_size={validation.stream_size}, "
        f"has_document={validation.has_document}, "
        f"has_slides={validation.has_slides}, "
        f"has_text_headers={validation.has_text_headers}, "
        f"has_text_content={validation.has_text_content}, "
        f"text_records={validation.text_record_count}, "
        f"malformed={validation.malformed_records}"
    )

    extracted = extract_text_from_stream(
        stream_data, max_depth=limits.max_nesting_depth
    )

    warnings: list[str] = []
    if not extracted.slides:
        message = NO_TEXT_WARNING.format(filename=filename)
        logger.warning(message)
        warnings.append(message)

    logger.info(f"Extracted {len(extracted.slides)} slides from '{filename}'")

    return Presentation(
        filename=filename,
        format=PresentationFormat.LEGACY_BINARY,
        slides=extracted.slides,
        notes=extracted.notes if include_notes else None,
        metadata=metadata.with_path(path),
        warnings=tuple(warnings),
    )


def _read_document_stream(
    file_like: io.BytesIO,
) -> tuple[bytes, PresentationMetadata]:
    """Open the OLE container, check its streams and read the main stream."""
    if not olefile.isOleFile(file_like):
        raise ExtractionContainerOpenError(
            "Not a valid OLE compound file (bad header signature)"
        )
    file_like.seek(0)

    try:
        ole = olefile.OleFileIO(file_like)
    except Exception as exc:
        raise ExtractionContainerOpenError(
            f"Failed to open OLE container: {exc}", cause=exc
        ) from exc

    with ole:
        _validate_structure(ole)
        metadata = _extract_metadata(ole)
        with ole.openstream(PPT_DOCUMENT_STREAM) as stream:
            stream_data = stream.read()

    return stream_data, metadata


def _validate_structure(ole: olefile.OleFileIO) -> None:
    if is_ppt_encrypted(ole):
        raise ExtractionFileEncryptedError(
            "Presentation is encrypted or password-protected"
        )

    if not ole.exists(PPT_DOCUMENT_STREAM):
        raise ExtractionFileFormatNotSupportedError(
            "Missing 'PowerPoint Document' stream. This may not be a valid PPT "
            "file or may be a different Office format."
        )

    if not ole.exists(CURRENT_USER_STREAM):
        logger.warning(
            "Missing 'Current User' stream. File may be an older PPT format variant."
        )


def _extract_metadata(ole: olefile.OleFileIO) -> PresentationMetadata:
    """
    Read document properties from the OLE SummaryInformation stream.

    Failures are logged and yield empty metadata.
    """

    def decode_if_bytes(value) -> str:
        if isinstance(value, bytes):
            return value.decode("cp1252", errors="replace")
        return str(value) if value else ""

    try:
        meta = ole.get_metadata()
    except Exception as e:
        logger.debug(f"Failed to read SummaryInformation: {e}")
        return PresentationMetadata()

    created = getattr(meta, "create_time", None)
    modified = getattr(meta, "last_saved_time", None)
    return PresentationMetadata(
        title=decode_if_bytes(getattr(meta, "title", None)),
        author=decode_if_bytes(getattr(meta, "author", None)),
        subject=decode_if_bytes(getattr(meta, "subject", None)),
        created=created.isoformat() if isinstance(created, datetime) else "",
        modified=modified.isoformat() if isinstance(modified, datetime) else "",
    )


def validate_stream(
    data: bytes, limits: LegacyParseLimits = DEFAULT_LEGACY_LIMITS
) -> StreamValidation:
    """
    Scan the PowerPoint Document stream and refuse files that cannot be parsed.

    Raises:
        ExtractionFileCorruptedError: The stream is too small or has too many
            malformed records.
        ExtractionFileFormatNotSupportedError: No DocumentContainer or no text
            records at all.
    """
    validation = StreamValidation(stream_size=len(data))

    if len(data) < limits.min_stream_size:
        raise ExtractionFileCorruptedError(
            f"PowerPoint Document stream too small ({len(data)} bytes). "
            f"Minimum expected: {limits.min_stream_size} bytes. "
            "File may be corrupted or truncated."
        )

    for item in walk_records(data, max_depth=limits.max_nesting_depth):
        if isinstance(item, MalformedRecord):
            logger.debug(f"Malformed record: {item.reason}")
            validation.malformed_records += 1
            continue

        if item.rec_type == RT_DOCUMENT:
            validation.has_document = True
        elif item.rec_type == RT_SLIDE:
            validation.has_slides = True
        elif item.rec_type == RT_TEXT_HEADER_ATOM:
            validation.has_text_headers = True
            code = read_text_purpose_code(data, item)
            if code is not None and code > MAX_TEXT_PURPOSE:
                validation.unsupported_text_types.add(code)
        elif item.rec_type in (RT_TEXT_CHARS_ATOM, RT_TEXT_BYTES_ATOM):
            validation.has_text_content = True
            validation.text_record_count += 1

    if not validation.has_document:
        raise ExtractionFileFormatNotSupportedError(
            "No DocumentContainer record found. This file may use an unsupported "
            "PowerPoint format version (pre-97) or be corrupted."
        )

    if not validation.has_text_content and not validation.has_text_headers:
        raise ExtractionFileFormatNotSupportedError(
            "No text records found in file. This presentation may contain only "
            "images/graphics, or uses an unsupported text storage format."
        )

    if validation.unsupported_text_types:
        logger.warning(
            f"File contains unsupported text types: "
            f"{sorted(validation.unsupported_text_types)}. "
            "Some text may not be extracted."
        )

    if validation.malformed_records > limits.max_malformed_records:
        raise ExtractionFileCorruptedError(
            f"Too many malformed records ({validation.malformed_records}) detected. "
            "File may be corrupted."
        )

    return validation


def is_displayable_text(text: str) -> bool:
    """False for blank text, master placeholders and lone bullet characters."""
    trimmed = text.strip()
    if not trimmed:
        return False

    lowered = trimmed.lower()
    if any(pattern in lowered for pattern in TEMPLATE_PATTERNS):
        return False

    if len(trimmed) == 1 and not trimmed.isalnum():
        return False

    return True


def is_valid_slide_text(text: str, purpose: TextPurpose) -> bool:
    """Check if text is slide content (not notes, template or junk)."""
    return purpose.is_slide_content and is_displayable_text(text)


def collect_text_entries(data: bytes, max_depth: int = 64) -> list[TextEntry]:
    """
    Decode every text atom of the stream, in stream order.

    Each entry carries the purpose in effect and the SlidePersistAtom count
    at its position. Entries are filtered for displayable text only; callers
    decide what to do with each purpose.
    """
    entries: list[TextEntry] = []
    state = _TraversalState()

    for item in walk_records(data, max_depth=max_depth):
        if isinstance(item, MalformedRecord):
            continue

        state = state.advance(data, item)

        if item.rec_type == RT_TEXT_CHARS_ATOM:
            text = decode_text_chars(data[item.body_start : item.body_end])
        elif item.rec_type == RT_TEXT_BYTES_ATOM:
            text = decode_text_bytes(data[item.body_start : item.body_end])
        else:
            continue

        if text is None or not is_displayable_text(text):
            continue

        entries.append(
            TextEntry(
                text=text,
                purpose=state.purpose,
                offset=item.offset,
                slide_hint=state.slide_hint,
            )
        )

    return entries


def extract_text_from_stream(data: bytes, max_depth: int = 64) -> StreamText:
    """Collect text entries and assemble them into slides and notes."""
    entries = collect_text_entries(data, max_depth=max_depth)
    slide_entries = [e for e in entries if e.purpose.is_slide_content]
    notes = tuple(e.text.strip() for e in entries if e.purpose == TextPurpose.NOTES)

    logger.debug(
        f"Collected {len(entries)} text entries "
        f"({len(slide_entries)} slide text, {len(notes)} notes)"
    )

    return StreamText(slides=tuple(assemble_slides(slide_entries)), notes=notes)

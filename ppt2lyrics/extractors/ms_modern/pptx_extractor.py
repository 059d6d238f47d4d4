"""
PPTX Lyric Extractor
====================

Extracts slide text from Microsoft PowerPoint .pptx files (Office Open XML,
PowerPoint 2007 and later) by reading the ZIP archive and its XML parts
directly.

File Format Background
----------------------
The .pptx format is a ZIP archive containing XML files following the Office
Open XML (OOXML) standard. The parts used here:

    ppt/_rels/presentation.xml.rels: Presentation relationships (slides)
    ppt/slides/slide1.xml, slide2.xml, ...: Individual slide content
    ppt/slides/_rels/slide1.xml.rels: Per-slide relationships (notes, ...)
    ppt/notesSlides/notesSlide1.xml, ...: Speaker notes
    docProps/core.xml: Metadata (title, author, dates)

XML Namespaces:
    - p: http://schemas.openxmlformats.org/presentationml/2006/main
    - a: http://schemas.openxmlformats.org/drawingml/2006/main

Elements are matched by local name so that both transitional and strict
OOXML packages are read.

Slide Ordering
--------------
Slides are ordered by the number in their relationship id (rId3 -> 3), or
by the number in the slide file name when the id has none (slide12.xml ->
12). Slides without either come last, ordered by path.

Text Ordering
-------------
Every shape (p:sp) and picture (p:pic) with text becomes one text run.
Runs are sorted by position (top-to-bottom, left-to-right). Shapes without
an offset keep their document order after the positioned ones.

Known Limitations
-----------------
- Tables and chart labels are not extracted
- SmartArt text is not extracted
- Password-protected files are not supported

Usage
-----
    >>> import io
    >>> from ppt2lyrics.extractors.ms_modern.pptx_extractor import read_pptx
    >>>
    >>> with open("Amazing Grace.pptx", "rb") as f:
    ...     for pptx in read_pptx(io.BytesIO(f.read()), path="Amazing Grace.pptx"):
    ...         for slide in pptx.slides:
    ...             print(slide.number, slide.texts())
"""

import io
import logging
import posixpath
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator
from xml.etree import ElementTree as ET

from ppt2lyrics.exceptions import (
    ExtractionError,
    ExtractionFailedError,
    ExtractionFileEncryptedError,
    ExtractionStructureError,
)
from ppt2lyrics.extractors.data_types import (
    Presentation,
    PresentationFormat,
    PresentationMetadata,
    Slide,
    TextRun,
)
from ppt2lyrics.extractors.util.encryption import is_ooxml_encrypted
from ppt2lyrics.extractors.util.zip_bomb import (
    DEFAULT_ZIP_BOMB_LIMITS,
    ZipBombLimits,
    open_zipfile,
)

logger = logging.getLogger(__name__)

REL_NS = "{http://schemas.openxmlformats.org/package/2006/relationships}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"
DCTERMS_NS = "{http://purl.org/dc/terms/}"

PRESENTATION_RELS_PATH = "ppt/_rels/presentation.xml.rels"
CORE_PROPERTIES_PATH = "docProps/core.xml"

OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

SHAPE_TAGS = {"sp", "pic"}

# Placeholders on notes pages that never hold notes text
NOTES_SKIP_PLACEHOLDERS = {"sldNum", "sldImg", "hdr", "ftr", "dt"}

_TRAILING_DIGITS = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class SlideRelationship:
    rel_id: str
    path: str
    order: int | None


@dataclass
class _ShapeText:
    """Text and offset of one shape, filled while streaming a slide part."""

    paragraphs: list[str]
    x: float | None = None
    y: float | None = None
    placeholder: str | None = None

    @property
    def text(self) -> str:
        return "\n".join(self.paragraphs).strip()

    def to_run(self) -> TextRun:
        return TextRun(text=self.text, x=self.x, y=self.y)


def read_pptx(
    file_like: io.BytesIO, path: str | None = None
) -> Generator[Presentation, Any, None]:
    """
    Extract slide text and metadata from a PowerPoint .pptx file.

    Uses a generator pattern for API consistency with the other readers,
    even though a .pptx file holds exactly one presentation.

    Args:
        file_like: BytesIO object containing the complete PPTX file data.
        path: Optional filesystem path to the source file, used for the
            file metadata and the presentation's filename.

    Yields:
        Presentation: The extracted presentation.

    Raises:
        ExtractionContainerOpenError: Not a readable ZIP archive (or a
            probable ZIP bomb).
        ExtractionFileEncryptedError: Password-protected presentation.
        ExtractionStructureError: Missing or unreadable relationship manifest.
        ExtractionFailedError: Any other failure during extraction.
    """
    logger.debug("Reading pptx")
    try:
        file_like.seek(0)
        data = file_like.read()
    except Exception as exc:
        raise ExtractionFailedError("Failed to read PPTX input", cause=exc) from exc

    filename = Path(path).name if path else ""
    yield parse_modern(data, filename, path=path)


def parse_modern(
    data: bytes,
    filename: str,
    *,
    include_notes: bool = False,
    limits: ZipBombLimits = DEFAULT_ZIP_BOMB_LIMITS,
    path: str | None = None,
) -> Presentation:
    """
    Parse a .pptx file held in memory.

    Slide parts that are missing or contain malformed XML do not fail the
    whole file; they are logged and yield whatever text was read before the
    problem.
    """
    try:
        return _parse_modern(
            data, filename, include_notes=include_notes, limits=limits, path=path
        )
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionFailedError(
            f"Failed to extract presentation '{filename}'", cause=exc
        ) from exc


def _parse_modern(
    data: bytes,
    filename: str,
    *,
    include_notes: bool,
    limits: ZipBombLimits,
    path: str | None,
) -> Presentation:
    file_like = io.BytesIO(data)

    if data.startswith(OLE_SIGNATURE) and is_ooxml_encrypted(file_like):
        raise ExtractionFileEncryptedError(
            "Presentation is encrypted or password-protected"
        )

    with open_zipfile(file_like, limits=limits, source=filename or None) as z:
        namelist = set(z.namelist())
        relationships = read_slide_relationships(z, namelist)
        metadata = _extract_metadata(z, namelist)

        slides: list[Slide] = []
        for number, rel in enumerate(relationships, start=1):
            slides.append(_process_slide(z, namelist, rel.path, number, include_notes))

    notes = None
    if include_notes:
        notes = tuple(slide.notes for slide in slides if slide.notes)

    warnings: list[str] = []
    if not any(slide.lines for slide in slides):
        message = f"No text content extracted from '{filename}'."
        logger.warning(message)
        warnings.append(message)

    logger.info(f"Extracted PPTX: {len(slides)} slides from '{filename}'")

    return Presentation(
        filename=filename,
        format=PresentationFormat.MODERN_ZIP,
        slides=tuple(slides),
        notes=notes,
        metadata=metadata.with_path(path),
        warnings=tuple(warnings),
    )


def extract_slide_number(value: str) -> int | None:
    """Trailing number of a relationship id or part name ("rId2", "slide3.xml")."""
    stem = value
    for suffix in (".rels", ".xml"):
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
    match = _TRAILING_DIGITS.search(stem)
    return int(match.group(1)) if match else None


def resolve_target(base_dir: str, target: str) -> str:
    """Resolve a relationship target to an archive member name."""
    if target.startswith("/"):
        return target[1:]
    return posixpath.normpath(posixpath.join(base_dir, target))


def _relationship_kind(rel_type: str) -> str:
    return rel_type.rstrip("/").rsplit("/", 1)[-1]


def read_slide_relationships(
    z: zipfile.ZipFile, namelist: set[str]
) -> list[SlideRelationship]:
    """
    Read the slide relationships of the presentation in display order.

    Raises:
        ExtractionStructureError: The manifest is missing or not valid XML.
    """
    if PRESENTATION_RELS_PATH not in namelist:
        raise ExtractionStructureError(
            f"Missing relationship manifest '{PRESENTATION_RELS_PATH}'. "
            "This may not be a PowerPoint presentation."
        )

    try:
        with z.open(PRESENTATION_RELS_PATH) as f:
            root = ET.parse(f).getroot()
    except ET.ParseError as exc:
        raise ExtractionStructureError(
            f"Error parsing relationships: {exc}", cause=exc
        ) from exc

    relationships = []
    for rel in root.iter(f"{REL_NS}Relationship"):
        rel_type = rel.get("Type") or ""
        target = rel.get("Target") or ""
        rel_id = rel.get("Id") or ""
        if _relationship_kind(rel_type) != "slide" or not target:
            continue

        order = extract_slide_number(rel_id)
        if order is None:
            order = extract_slide_number(posixpath.basename(target))

        relationships.append(
            SlideRelationship(
                rel_id=rel_id, path=resolve_target("ppt", target), order=order
            )
        )

    relationships.sort(
        key=lambda r: (r.order is None, r.order if r.order is not None else 0, r.path)
    )
    logger.debug(f"Slide order: {[r.path for r in relationships]}")
    return relationships


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def extract_shapes(source, part_name: str = "") -> list[_ShapeText]:
    """
    Stream a slide (or notes) part and collect the text of its shapes.

    Shapes without text are dropped. On malformed XML the shapes completed
    before the error are returned.
    """
    shapes: list[_ShapeText] = []
    current: _ShapeText | None = None
    paragraph: list[str] | None = None
    tx_body_depth = 0

    try:
        for event, elem in ET.iterparse(source, events=("start", "end")):
            name = _local_name(elem.tag)

            if event == "start":
                if name in SHAPE_TAGS:
                    current = _ShapeText(paragraphs=[])
                elif current is None:
                    continue
                elif name == "off" and current.x is None and current.y is None:
                    current.x = _parse_float(elem.get("x"))
                    current.y = _parse_float(elem.get("y"))
                elif name == "ph":
                    current.placeholder = elem.get("type", "body")
                elif name == "txBody":
                    tx_body_depth += 1
                elif name == "p" and tx_body_depth:
                    paragraph = []
                continue

            if current is None:
                continue

            if name == "t" and paragraph is not None:
                paragraph.append(elem.text or "")
            elif name == "br" and paragraph is not None:
                paragraph.append("\n")
            elif name == "p" and paragraph is not None:
                current.paragraphs.append("".join(paragraph))
                paragraph = None
            elif name == "txBody":
                tx_body_depth = max(tx_body_depth - 1, 0)
            elif name in SHAPE_TAGS:
                if current.text:
                    shapes.append(current)
                current = None
                paragraph = None
                tx_body_depth = 0
                elem.clear()
    except ET.ParseError as e:
        logger.warning(
            f"Malformed XML in {part_name or 'slide part'} "
            f"(keeping {len(shapes)} shapes read before the error): {e}"
        )

    return shapes


def sort_runs(runs: list[TextRun]) -> list[TextRun]:
    """Top-to-bottom, left-to-right; runs without an offset last."""
    positioned = [r for r in runs if r.has_position]
    unpositioned = [r for r in runs if not r.has_position]
    positioned.sort(key=lambda r: (r.y, r.x))
    return positioned + unpositioned


def _slide_rels_path(slide_path: str) -> str:
    slide_dir, slide_name = posixpath.split(slide_path)
    return posixpath.join(slide_dir, "_rels", f"{slide_name}.rels")


def _find_notes_path(
    z: zipfile.ZipFile, namelist: set[str], slide_path: str
) -> str | None:
    rels_path = _slide_rels_path(slide_path)
    if rels_path not in namelist:
        return None

    try:
        with z.open(rels_path) as f:
            root = ET.parse(f).getroot()
    except ET.ParseError as e:
        logger.warning(f"Failed to parse {rels_path}: {e}")
        return None

    for rel in root.iter(f"{REL_NS}Relationship"):
        if _relationship_kind(rel.get("Type") or "") == "notesSlide":
            target = rel.get("Target") or ""
            if target:
                return resolve_target(posixpath.dirname(slide_path), target)
    return None


def _extract_notes(
    z: zipfile.ZipFile, namelist: set[str], slide_path: str
) -> str | None:
    notes_path = _find_notes_path(z, namelist, slide_path)
    if notes_path is None:
        return None
    if notes_path not in namelist:
        logger.warning(f"Notes part not found: {notes_path}")
        return None

    with z.open(notes_path) as f:
        shapes = extract_shapes(f, notes_path)

    runs = sort_runs(
        [s.to_run() for s in shapes if s.placeholder not in NOTES_SKIP_PLACEHOLDERS]
    )
    return "\n".join(r.text for r in runs) or None


def _process_slide(
    z: zipfile.ZipFile,
    namelist: set[str],
    slide_path: str,
    slide_number: int,
    include_notes: bool,
) -> Slide:
    logger.debug(f"Processing slide [{slide_number}]: {slide_path}")

    if slide_path not in namelist:
        logger.warning(f"Slide not found: {slide_path}")
        return Slide(number=slide_number)

    with z.open(slide_path) as f:
        shapes = extract_shapes(f, slide_path)

    lines = tuple(sort_runs([s.to_run() for s in shapes]))
    notes = _extract_notes(z, namelist, slide_path) if include_notes else None
    return Slide(number=slide_number, lines=lines, notes=notes)


def _extract_metadata(z: zipfile.ZipFile, namelist: set[str]) -> PresentationMetadata:
    """Read document properties from docProps/core.xml, if present."""
    if CORE_PROPERTIES_PATH not in namelist:
        return PresentationMetadata()

    try:
        with z.open(CORE_PROPERTIES_PATH) as f:
            root = ET.parse(f).getroot()
    except ET.ParseError as e:
        logger.debug(f"Failed to parse {CORE_PROPERTIES_PATH}: {e}")
        return PresentationMetadata()

    def text_of(tag: str) -> str:
        elem = root.find(tag)
        if elem is not None and elem.text:
            return elem.text
        return ""

    return PresentationMetadata(
        title=text_of(f"{DC_NS}title"),
        author=text_of(f"{DC_NS}creator"),
        subject=text_of(f"{DC_NS}subject"),
        created=text_of(f"{DCTERMS_NS}created").rstrip("Z"),
        modified=text_of(f"{DCTERMS_NS}modified").rstrip("Z"),
    )

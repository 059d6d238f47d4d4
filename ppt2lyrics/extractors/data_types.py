import enum
import typing
from abc import abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class FileMetadataInterface:
    filename: str | None = None
    file_extension: str | None = None
    file_path: str | None = None
    folder_path: str | None = None

    def with_path(self, path: str | Path | None):
        """Return a copy with the file metadata fields populated from a path."""
        if path is None:
            return self
        p = Path(path)
        return replace(
            self,
            filename=p.name,
            file_extension=p.suffix,
            file_path=str(p.resolve()) if p.exists() else str(p),
            folder_path=(
                str(p.parent.resolve()) if p.parent.exists() else str(p.parent)
            ),
        )


class ExtractionInterface(Protocol):
    @abstractmethod
    def iterator(self) -> typing.Iterator[str]:
        """
        Returns an iterator over the extracted text, one unit per slide.
        Speaker notes are not part of this iterator's return values.
        """
        ...

    @abstractmethod
    def get_full_text(self) -> str:
        """Full text of the slide deck as one single block of text"""
        ...

    @abstractmethod
    def get_metadata(self) -> FileMetadataInterface:
        """Returns the metadata of the extracted file"""
        ...


class PresentationFormat(enum.Enum):
    """Container format of a presentation file."""

    LEGACY_BINARY = "ppt"  # OLE2 compound file, PowerPoint 97-2003
    MODERN_ZIP = "pptx"  # Office Open XML package

    @classmethod
    def from_extension(cls, extension: str) -> "PresentationFormat | None":
        """Map a file extension (with or without the dot) to a format."""
        ext = extension.lower().lstrip(".")
        for fmt in cls:
            if fmt.value == ext:
                return fmt
        return None


@dataclass(frozen=True)
class TextRun:
    """A piece of text from a slide, optionally with its on-slide position."""

    text: str
    x: float | None = None
    y: float | None = None

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None


@dataclass(frozen=True)
class Slide:
    """Text content of one slide, in reading order."""

    number: int
    lines: tuple[TextRun, ...] = ()
    notes: str | None = None

    def texts(self) -> list[str]:
        return [run.text for run in self.lines]

    @property
    def text_combined(self) -> str:
        """All text from this slide combined."""
        return "\n".join(self.texts())


@dataclass(frozen=True)
class PresentationMetadata(FileMetadataInterface):
    """File and document properties of a presentation."""

    title: str = ""
    author: str = ""
    subject: str = ""
    created: str = ""
    modified: str = ""


@dataclass(frozen=True)
class Presentation(ExtractionInterface):
    """Complete extracted content from a PPT or PPTX file."""

    filename: str
    format: PresentationFormat
    slides: tuple[Slide, ...] = ()
    notes: tuple[str, ...] | None = None
    metadata: PresentationMetadata = field(default_factory=PresentationMetadata)
    warnings: tuple[str, ...] = ()

    def iterator(self) -> typing.Iterator[str]:
        """Iterate over slide text, yielding combined text per slide."""
        for slide in self.slides:
            yield slide.text_combined

    def get_full_text(self) -> str:
        """Full text of the slide deck as one single block of text"""
        return "\n".join(self.iterator())

    def get_metadata(self) -> PresentationMetadata:
        """Returns the metadata of the extracted file."""
        return self.metadata

    @property
    def slide_count(self) -> int:
        """Number of slides extracted."""
        return len(self.slides)

    def all_lines(self) -> list[str]:
        """Text of every run on every slide, flattened in slide order."""
        return [run.text for slide in self.slides for run in slide.lines]

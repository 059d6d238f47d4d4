"""
PPT record primitives
=====================

Low-level helpers shared by the validation and extraction passes of the
legacy PowerPoint extractor.

Every record in the "PowerPoint Document" stream starts with an 8-byte
header:
    - Bytes 0-1: recVer (low 4 bits) and recInstance (high 12 bits)
    - Bytes 2-3: recType
    - Bytes 4-7: recLen, length of the body that follows the header

A recVer of 0xF marks a container whose body is itself a sequence of
records. Containers can nest arbitrarily deep, so the stream is walked with
an explicit stack instead of recursion.
"""

import enum
import struct
from dataclasses import dataclass
from typing import Iterator

# =============================================================================
# Record Type Constants (from MS-PPT specification)
# =============================================================================

RT_DOCUMENT = 0x03E8  # DocumentContainer, root of the presentation
RT_SLIDE = 0x03EE  # SlideContainer
RT_SLIDE_PERSIST_ATOM = 0x03F3  # Starts a slide's text inside SlideListWithText
RT_TEXT_HEADER_ATOM = 0x0F9F  # Declares the purpose of the text that follows
RT_TEXT_CHARS_ATOM = 0x0FA0  # Unicode text (UTF-16LE)
RT_TEXT_BYTES_ATOM = 0x0FA8  # 8-bit text (Windows-1252)
RT_CSTRING = 0x0FBA  # Metadata strings, never slide content

RECORD_HEADER = struct.Struct("<HHI")
RECORD_HEADER_SIZE = RECORD_HEADER.size
CONTAINER_VERSION = 0x0F

# Highest TextHeaderAtom value defined by the format
MAX_TEXT_PURPOSE = 8


class TextPurpose(enum.IntEnum):
    """Text types declared by RT_TextHeaderAtom."""

    TITLE = 0
    BODY = 1
    NOTES = 2
    UNUSED = 3
    OTHER = 4
    CENTER_BODY = 5
    CENTER_TITLE = 6
    HALF_BODY = 7
    QUARTER_BODY = 8

    @classmethod
    def from_code(cls, code: int) -> "TextPurpose":
        try:
            return cls(code)
        except ValueError:
            return cls.OTHER

    @property
    def is_title(self) -> bool:
        return self in (TextPurpose.TITLE, TextPurpose.CENTER_TITLE)

    @property
    def is_slide_content(self) -> bool:
        # OTHER is commonly used for the main text of song slides
        return self not in (TextPurpose.NOTES, TextPurpose.UNUSED)


@dataclass(frozen=True)
class RecordHeader:
    offset: int
    rec_ver: int
    rec_instance: int
    rec_type: int
    length: int
    depth: int

    @property
    def body_start(self) -> int:
        return self.offset + RECORD_HEADER_SIZE

    @property
    def body_end(self) -> int:
        return self.body_start + self.length

    @property
    def is_container(self) -> bool:
        return self.rec_ver == CONTAINER_VERSION


@dataclass(frozen=True)
class MalformedRecord:
    """A record that could not be walked; the enclosing scope is abandoned."""

    offset: int
    depth: int
    reason: str


@dataclass(frozen=True)
class TextEntry:
    """A decoded text run together with its position in the record tree."""

    text: str
    purpose: TextPurpose
    offset: int
    slide_hint: int


def walk_records(
    data: bytes, max_depth: int = 64
) -> Iterator[RecordHeader | MalformedRecord]:
    """
    Walk all records of a stream in stream order, descending into containers.

    Yields a RecordHeader for every well-formed record (a container is
    yielded before its children) and a MalformedRecord whenever a body
    overruns its enclosing scope or the stream, or a container would exceed
    max_depth. An overrunning record ends its scope; walking resumes with
    the next sibling of the enclosing container.
    """
    data_len = len(data)
    # Each scope is [next offset, end offset, depth of its records]
    stack: list[list[int]] = [[0, data_len, 0]]

    while stack:
        scope = stack[-1]
        pos, end, depth = scope

        if pos + RECORD_HEADER_SIZE > end:
            stack.pop()
            continue

        ver_instance, rec_type, rec_len = RECORD_HEADER.unpack_from(data, pos)
        body_end = pos + RECORD_HEADER_SIZE + rec_len

        if body_end > end or body_end > data_len:
            yield MalformedRecord(
                offset=pos,
                depth=depth,
                reason=(
                    f"record 0x{rec_type:04X} at offset {pos} declares {rec_len} "
                    f"bytes, past the end of its scope at {end}"
                ),
            )
            stack.pop()
            continue

        header = RecordHeader(
            offset=pos,
            rec_ver=ver_instance & 0x0F,
            rec_instance=(ver_instance >> 4) & 0x0FFF,
            rec_type=rec_type,
            length=rec_len,
            depth=depth,
        )
        yield header
        scope[0] = body_end

        if header.is_container:
            if depth + 1 > max_depth:
                yield MalformedRecord(
                    offset=pos,
                    depth=depth,
                    reason=f"container at offset {pos} nested deeper than {max_depth}",
                )
            else:
                stack.append([header.body_start, body_end, depth + 1])


def read_text_purpose_code(data: bytes, header: RecordHeader) -> int | None:
    """Return the raw text type of a TextHeaderAtom, or None if it is too short."""
    if header.length < 4:
        return None
    return struct.unpack_from("<I", data, header.body_start)[0]


def decode_text_chars(body: bytes) -> str | None:
    """
    Decode a TextCharsAtom body (UTF-16LE code units).

    Decoding stops at the first NUL code unit or unpaired surrogate. Odd
    length bodies cannot hold whole code units and are rejected.
    """
    if not body or len(body) % 2 != 0:
        return None

    decoded = body.decode("utf-16-le", errors="surrogatepass")
    chars = []
    for char in decoded:
        if char == "\x00" or "\ud800" <= char <= "\udfff":
            break
        chars.append(char)

    text = "".join(chars)
    if not text.strip():
        return None
    return text


def decode_text_bytes(body: bytes) -> str | None:
    """
    Decode a TextBytesAtom body as Windows-1252.

    0x00-0x7F are ASCII, 0xA0-0xFF map to the same code point and 0x80-0x9F
    go through the cp1252 table (curly quotes, dashes, ellipsis, trademark,
    ...). The five slots cp1252 leaves undefined (0x81, 0x8D, 0x8F, 0x90,
    0x9D) are dropped.
    """
    if not body:
        return None

    nul = body.find(b"\x00")
    if nul != -1:
        body = body[:nul]

    text = body.decode("cp1252", errors="ignore")
    if not text.strip():
        return None
    return text

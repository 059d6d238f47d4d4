import io
import zipfile

import pytest

from ppt2lyrics.exceptions import ExtractionContainerOpenError, ExtractionZipBombError
from ppt2lyrics.extractors.util.zip_bomb import ZipBombLimits, open_zipfile


def _make_zip_bytesio(files: dict[str, bytes]) -> io.BytesIO:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    buffer.seek(0)
    return buffer


def test_zip_bomb_detection_can_use_low_thresholds__compression_ratio() -> None:
    buffer = _make_zip_bytesio({"ppt/slides/slide1.xml": b"A" * 10_000})

    with pytest.raises(ExtractionZipBombError):
        open_zipfile(
            buffer,
            limits=ZipBombLimits(
                max_entry_compression_ratio=10.0,
                max_total_compression_ratio=10.0,
            ),
            source="test",
        )

    with open_zipfile(
        buffer,
        limits=ZipBombLimits(
            max_entry_compression_ratio=10_000.0,
            max_total_compression_ratio=10_000.0,
        ),
        source="test",
    ) as zf:
        assert zf.namelist() == ["ppt/slides/slide1.xml"]


def test_zip_bomb_detection_can_use_low_thresholds__entry_count() -> None:
    buffer = _make_zip_bytesio(
        {
            "ppt/slides/slide1.xml": b"a",
            "ppt/slides/slide2.xml": b"b",
            "ppt/slides/slide3.xml": b"c",
        }
    )

    with pytest.raises(ExtractionZipBombError):
        open_zipfile(
            buffer,
            limits=ZipBombLimits(max_entries=2),
            source="test",
        )


def test_zip_bomb_detection_can_use_low_thresholds__entry_size() -> None:
    buffer = _make_zip_bytesio({"ppt/media/video1.mp4": b"\x00" * 2_000})

    with pytest.raises(ExtractionZipBombError) as exc_info:
        open_zipfile(
            buffer,
            limits=ZipBombLimits(
                max_single_uncompressed_bytes=1_000,
                max_entry_compression_ratio=10_000.0,
                max_total_compression_ratio=10_000.0,
            ),
            source="big.pptx",
        )
    assert "[big.pptx]" in str(exc_info.value)


def test_open_zipfile_reads_from_start_of_buffer() -> None:
    buffer = _make_zip_bytesio({"a.xml": b"<a/>"})
    buffer.seek(5)

    with open_zipfile(buffer) as zf:
        assert zf.read("a.xml") == b"<a/>"


def test_open_zipfile_rejects_non_zip_data() -> None:
    with pytest.raises(ExtractionContainerOpenError) as exc_info:
        open_zipfile(io.BytesIO(b"not a zip archive"), source="fake.pptx")

    assert not isinstance(exc_info.value, ExtractionZipBombError)
    assert "fake.pptx" in str(exc_info.value)

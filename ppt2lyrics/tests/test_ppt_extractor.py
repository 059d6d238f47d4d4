import io
import logging
from unittest import TestCase

import pytest

from ppt2lyrics.exceptions import (
    ExtractionContainerOpenError,
    ExtractionFileCorruptedError,
    ExtractionFileEncryptedError,
    ExtractionFileFormatNotSupportedError,
)
from ppt2lyrics.extractors.data_types import Presentation, PresentationFormat
from ppt2lyrics.extractors.ms_legacy.ppt_extractor import (
    LegacyParseLimits,
    extract_text_from_stream,
    is_displayable_text,
    is_valid_slide_text,
    parse_legacy,
    read_ppt,
    validate_stream,
)
from ppt2lyrics.extractors.ms_legacy.records import RT_TEXT_BYTES_ATOM, TextPurpose
from ppt2lyrics.tests.builders import (
    bad_record,
    body,
    build_cfb,
    build_ppt,
    container,
    document_stream,
    record,
    slide_list,
    slide_persist,
    text_bytes,
    text_chars,
    text_header,
    title,
)

logger = logging.getLogger(__name__)

tc = TestCase()


def _amazing_grace_stream() -> bytes:
    return document_stream(
        slide_list(
            slide_persist(),
            title("Amazing Grace"),
            body("Amazing grace how sweet the sound"),
            slide_persist(),
            body("That saved a wretch like me"),
            body("I once was lost but now am found"),
        )
    )


##############
# Validation #
##############


def test_validate_stream__tally() -> None:
    stream = document_stream(text_header(TextPurpose.BODY) + text_bytes("Test"))

    validation = validate_stream(stream)

    tc.assertTrue(validation.has_document)
    tc.assertTrue(validation.has_text_headers)
    tc.assertTrue(validation.has_text_content)
    tc.assertFalse(validation.has_slides)
    tc.assertEqual(1, validation.text_record_count)
    tc.assertEqual(0, validation.malformed_records)
    tc.assertEqual(512, validation.stream_size)


def test_validate_stream__too_small() -> None:
    stream = container(0x03E8, body("Test"))

    with pytest.raises(ExtractionFileCorruptedError):
        validate_stream(stream)


def test_validate_stream__no_document_container() -> None:
    stream = slide_list(body("Test")).ljust(512, b"\x00")

    with pytest.raises(ExtractionFileFormatNotSupportedError) as exc_info:
        validate_stream(stream)
    tc.assertIn("DocumentContainer", str(exc_info.value))


def test_validate_stream__no_text_records() -> None:
    stream = document_stream(slide_list(slide_persist()))

    with pytest.raises(ExtractionFileFormatNotSupportedError) as exc_info:
        validate_stream(stream)
    tc.assertIn("No text records", str(exc_info.value))


def test_validate_stream__headers_without_text_are_accepted() -> None:
    validation = validate_stream(document_stream(text_header(TextPurpose.BODY)))
    tc.assertTrue(validation.has_text_headers)
    tc.assertFalse(validation.has_text_content)


def test_validate_stream__malformed_records() -> None:
    broken = [container(0x0FF0, bad_record(RT_TEXT_BYTES_ATOM, 1000)) for _ in range(11)]

    with pytest.raises(ExtractionFileCorruptedError) as exc_info:
        validate_stream(document_stream(body("Test"), *broken))
    tc.assertIn("11", str(exc_info.value))

    # the limit itself is tolerated
    validation = validate_stream(document_stream(body("Test"), *broken[:10]))
    tc.assertEqual(10, validation.malformed_records)


def test_validate_stream__custom_limits() -> None:
    broken = container(0x0FF0, bad_record(RT_TEXT_BYTES_ATOM, 1000))
    limits = LegacyParseLimits(max_malformed_records=0)

    with pytest.raises(ExtractionFileCorruptedError):
        validate_stream(document_stream(body("Test"), broken), limits)


def test_validate_stream__unsupported_text_type(caplog) -> None:
    stream = document_stream(text_header(12) + text_bytes("Test"))

    with caplog.at_level(logging.WARNING):
        validation = validate_stream(stream)

    tc.assertEqual({12}, validation.unsupported_text_types)
    tc.assertIn("unsupported text types: [12]", caplog.text)


##############
# Extraction #
##############


def test_is_displayable_text() -> None:
    tc.assertTrue(is_displayable_text("Amazing grace"))
    tc.assertTrue(is_displayable_text("A"))
    tc.assertFalse(is_displayable_text("   "))
    tc.assertFalse(is_displayable_text("•"))
    tc.assertFalse(is_displayable_text("Click to edit Master title style"))
    tc.assertFalse(is_displayable_text("Second level"))
    tc.assertFalse(is_valid_slide_text("Key of G", TextPurpose.NOTES))
    tc.assertFalse(is_valid_slide_text("hidden", TextPurpose.UNUSED))
    tc.assertTrue(is_valid_slide_text("Chorus", TextPurpose.OTHER))


def test_extract_text_from_stream__groups_by_persist_atoms() -> None:
    extracted = extract_text_from_stream(_amazing_grace_stream())

    tc.assertEqual(2, len(extracted.slides))
    tc.assertEqual(
        ["Amazing Grace", "Amazing grace how sweet the sound"],
        extracted.slides[0].texts(),
    )
    tc.assertEqual(
        ["That saved a wretch like me", "I once was lost but now am found"],
        extracted.slides[1].texts(),
    )
    tc.assertEqual((), extracted.notes)


def test_extract_text_from_stream__title_split_fallback() -> None:
    stream = document_stream(
        title("Verse 1"),
        body("line one"),
        title("Verse 2"),
        body("line two"),
    )

    extracted = extract_text_from_stream(stream)

    tc.assertEqual(
        [["Verse 1", "line one"], ["Verse 2", "line two"]],
        [slide.texts() for slide in extracted.slides],
    )


def test_extract_text_from_stream__filters_templates_and_notes() -> None:
    stream = document_stream(
        slide_list(
            slide_persist(),
            text_header(TextPurpose.TITLE),
            text_chars("Click to edit Master title style"),
            body("Holy holy holy"),
            text_header(TextPurpose.NOTES),
            text_bytes("Key of G"),
            text_header(TextPurpose.UNUSED),
            text_bytes("unused"),
        )
    )

    extracted = extract_text_from_stream(stream)

    tc.assertEqual([["Holy holy holy"]], [s.texts() for s in extracted.slides])
    tc.assertEqual(("Key of G",), extracted.notes)


def test_extract_text_from_stream__text_without_header_is_body() -> None:
    extracted = extract_text_from_stream(document_stream(text_bytes("no header")))
    tc.assertEqual(["no header"], extracted.slides[0].texts())


def test_extract_text_from_stream__skips_malformed_and_keeps_going() -> None:
    stream = document_stream(
        body("before"),
        container(0x0FF0, bad_record(RT_TEXT_BYTES_ATOM, 1000)),
        body("after"),
    )

    extracted = extract_text_from_stream(stream)

    tc.assertEqual(["before", "after"], extracted.slides[0].texts())


###########
# Parsing #
###########


def test_parse_legacy__amazing_grace() -> None:
    data = build_ppt(_amazing_grace_stream())

    presentation = parse_legacy(data, "Amazing Grace.ppt")

    tc.assertIsInstance(presentation, Presentation)
    tc.assertEqual(PresentationFormat.LEGACY_BINARY, presentation.format)
    tc.assertEqual("Amazing Grace.ppt", presentation.filename)
    tc.assertEqual(2, presentation.slide_count)
    tc.assertEqual("Amazing Grace", presentation.slides[0].lines[0].text)
    tc.assertIsNone(presentation.notes)
    tc.assertEqual((), presentation.warnings)
    tc.assertEqual("", presentation.metadata.title)


def test_parse_legacy__too_small() -> None:
    with pytest.raises(ExtractionFileCorruptedError):
        parse_legacy(b"\x00" * 100, "tiny.ppt")


def test_parse_legacy__not_ole() -> None:
    with pytest.raises(ExtractionContainerOpenError):
        parse_legacy(b"x" * 600, "fake.ppt")


def test_parse_legacy__missing_document_stream() -> None:
    data = build_cfb({"WordDocument": b"\x00" * 600})

    with pytest.raises(ExtractionFileFormatNotSupportedError) as exc_info:
        parse_legacy(data, "letter.ppt")
    tc.assertNotIsInstance(exc_info.value, ExtractionFileEncryptedError)
    tc.assertIn("PowerPoint Document", str(exc_info.value))


def test_parse_legacy__encrypted() -> None:
    data = build_ppt(_amazing_grace_stream(), extra={"EncryptedSummary": b"\x01"})

    with pytest.raises(ExtractionFileEncryptedError):
        parse_legacy(data, "secret.ppt")


def test_parse_legacy__missing_current_user(caplog) -> None:
    data = build_ppt(_amazing_grace_stream(), current_user=False)

    with caplog.at_level(logging.WARNING):
        presentation = parse_legacy(data, "old.ppt")

    tc.assertEqual(2, presentation.slide_count)
    tc.assertIn("Current User", caplog.text)


def test_parse_legacy__notes() -> None:
    stream = document_stream(
        slide_list(
            slide_persist(),
            body("Be thou my vision"),
            text_header(TextPurpose.NOTES),
            text_bytes("  Key of G  "),
        )
    )
    data = build_ppt(stream)

    without = parse_legacy(data, "vision.ppt")
    tc.assertIsNone(without.notes)

    with_notes = parse_legacy(data, "vision.ppt", include_notes=True)
    tc.assertEqual(("Key of G",), with_notes.notes)
    tc.assertEqual(["Be thou my vision"], with_notes.all_lines())


def test_parse_legacy__no_text_warning() -> None:
    stream = document_stream(text_header(TextPurpose.BODY), record(0x0FA8, b"   "))

    presentation = parse_legacy(build_ppt(stream), "blank.ppt")

    tc.assertEqual(0, presentation.slide_count)
    tc.assertEqual(1, len(presentation.warnings))
    tc.assertIn("No text content extracted from 'blank.ppt'", presentation.warnings[0])


def test_read_ppt() -> None:
    data = build_ppt(_amazing_grace_stream())

    presentations = list(read_ppt(io.BytesIO(data), path="songs/Amazing Grace.ppt"))

    tc.assertEqual(1, len(presentations))
    ppt = presentations[0]
    tc.assertEqual("Amazing Grace.ppt", ppt.filename)
    tc.assertEqual("Amazing Grace.ppt", ppt.metadata.filename)
    tc.assertEqual(".ppt", ppt.metadata.file_extension)
    tc.assertEqual(
        "Amazing Grace\nAmazing grace how sweet the sound\n"
        "That saved a wretch like me\nI once was lost but now am found",
        ppt.get_full_text(),
    )

import unittest

from ppt2lyrics.formatting import (
    FormattedSlide,
    ProPresenterFormatter,
    count_output_slides,
    split_into_slides,
)

tc = unittest.TestCase()

LINES = [
    "Amazing grace how sweet the sound",
    "That saved a wretch like me",
    "I once was lost but now am found",
]


def test_split_into_slides():
    slides = split_into_slides(LINES, 2)

    tc.assertEqual(2, len(slides))
    tc.assertEqual(FormattedSlide(lines=tuple(LINES[:2])), slides[0])
    tc.assertEqual(LINES[2], str(slides[1]))
    tc.assertEqual([], split_into_slides([], 2))


def test_format():
    formatter = ProPresenterFormatter()

    tc.assertEqual(
        "Amazing grace how sweet the sound\nThat saved a wretch like me\n\n"
        "I once was lost but now am found",
        formatter.format(LINES),
    )
    tc.assertEqual("", formatter.format([]))


def test_format__lines_per_slide():
    tc.assertEqual("a\nb\nc\n\nd", ProPresenterFormatter(3).format(["a", "b", "c", "d"]))
    tc.assertEqual("a\n\nb", ProPresenterFormatter(1).format(["a", "b"]))


def test_format__lines_per_slide_is_at_least_one():
    formatter = ProPresenterFormatter(0)

    tc.assertEqual(1, formatter.lines_per_slide)
    tc.assertEqual("a\n\nb", formatter.format(["a", "b"]))


def test_format_with_newline():
    formatter = ProPresenterFormatter()
    tc.assertEqual("a\nb\n", formatter.format_with_newline(["a", "b"]))
    tc.assertEqual("", formatter.format_with_newline([]))


def test_format_with_title():
    formatter = ProPresenterFormatter(2)

    tc.assertEqual(
        "Amazing Grace\n\n"
        "Amazing grace how sweet the sound\nThat saved a wretch like me\n\n"
        "I once was lost but now am found\n",
        formatter.format_with_title(LINES, "Amazing Grace"),
    )
    tc.assertEqual("a\nb\n", formatter.format_with_title(["a", "b"], None))
    tc.assertEqual("Amazing Grace\n", formatter.format_with_title([], "Amazing Grace"))
    tc.assertEqual("", formatter.format_with_title([], None))


def test_count_output_slides():
    tc.assertEqual(2, count_output_slides(LINES, 2))
    tc.assertEqual(3, count_output_slides(LINES, 2, "Amazing Grace"))
    tc.assertEqual(1, count_output_slides([], 2, "Amazing Grace"))
    tc.assertEqual(0, count_output_slides([], 2))

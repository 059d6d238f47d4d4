import unittest

from ppt2lyrics.extractors.ms_legacy.records import TextEntry, TextPurpose
from ppt2lyrics.extractors.ms_legacy.slide_assembly import (
    PersistMarkerGrouping,
    TitleSplitGrouping,
    assemble_slides,
    build_slide,
    group_entries,
)

tc = unittest.TestCase()


def _entry(text, purpose=TextPurpose.BODY, offset=0, hint=0):
    return TextEntry(text=text, purpose=purpose, offset=offset, slide_hint=hint)


def test_persist_marker_grouping_splits_on_hint_change():
    entries = [
        _entry("a", offset=0, hint=1),
        _entry("b", offset=10, hint=1),
        _entry("c", offset=20, hint=2),
        _entry("d", offset=30, hint=3),
    ]

    groups = PersistMarkerGrouping().group(entries)

    tc.assertEqual([["a", "b"], ["c"], ["d"]], [[e.text for e in g] for g in groups])


def test_title_split_grouping():
    entries = [
        _entry("Song", TextPurpose.TITLE, 0),
        _entry("line 1", offset=10),
        _entry("Verse 2", TextPurpose.CENTER_TITLE, 20),
        _entry("line 2", offset=30),
    ]

    groups = TitleSplitGrouping().group(entries)

    tc.assertEqual(
        [["Song", "line 1"], ["Verse 2", "line 2"]],
        [[e.text for e in g] for g in groups],
    )


def test_group_entries_falls_back_when_markers_are_missing():
    entries = [
        _entry("Song", TextPurpose.TITLE, 0),
        _entry("line 1", offset=10),
        _entry("Chorus", TextPurpose.TITLE, 20),
        _entry("line 2", offset=30),
    ]

    groups = group_entries(entries)

    tc.assertEqual(2, len(groups))


def test_group_entries_keeps_single_group_when_nothing_splits():
    entries = [_entry("one", offset=0), _entry("two", offset=10)]

    groups = group_entries(entries)

    tc.assertEqual([["one", "two"]], [[e.text for e in g] for g in groups])


def test_single_entry_is_conclusive():
    groups = group_entries([_entry("only", hint=0)])
    tc.assertEqual(1, len(groups))


def test_build_slide_puts_titles_first():
    group = [
        _entry("line 1", offset=10),
        _entry("Title", TextPurpose.TITLE, 30),
        _entry("line 2", offset=20),
    ]

    slide = build_slide(4, group)

    tc.assertEqual(4, slide.number)
    tc.assertEqual(["Title", "line 1", "line 2"], slide.texts())


def test_assemble_slides_numbers_from_one():
    entries = [
        _entry("Amazing Grace", TextPurpose.TITLE, 0, hint=1),
        _entry("how sweet the sound", offset=10, hint=1),
        _entry("that saved a wretch", offset=20, hint=2),
    ]

    slides = assemble_slides(entries)

    tc.assertEqual([1, 2], [s.number for s in slides])
    tc.assertEqual(["Amazing Grace", "how sweet the sound"], slides[0].texts())
    tc.assertEqual(["that saved a wretch"], slides[1].texts())


def test_assemble_slides_empty():
    tc.assertEqual([], assemble_slides([]))
